import pytest

from dualsig.constants import SECP256K1_ORDER
from dualsig.exceptions import DerivationError, InvalidSeedError, ValidationError
from dualsig.utils import validation as v


def test_private_key_validation():
    assert v.validate_private_key("0x" + "01" * 32) == b"\x01" * 32
    assert v.validate_private_key(bytearray(b"\x01" * 32)) == b"\x01" * 32
    for bad in (b"\x00" * 32, SECP256K1_ORDER.to_bytes(32, "big"), b"\x01" * 31, "zz"):
        with pytest.raises(ValidationError):
            v.validate_private_key(bad)


def test_public_key_validation():
    compressed = b"\x02" + b"\x11" * 32
    assert v.validate_public_key(compressed) == compressed
    assert v.validate_public_key(b"\x04" + b"\x11" * 64)[0] == 0x04
    for bad in (b"\x05" + b"\x11" * 32, b"\x04" + b"\x11" * 32, "zz"):
        with pytest.raises(ValidationError):
            v.validate_public_key(bad)


def test_mnemonic_validation(mnemonic):
    assert v.is_valid_mnemonic(mnemonic)
    assert not v.is_valid_mnemonic(" ".join(["abandon"] * 12))
    assert not v.is_valid_mnemonic(" ".join(["abandon"] * 10 + ["about"]))
    assert not v.is_valid_mnemonic("not a mnemonic at all")


def test_seed_bytes_validation():
    seed = b"\x01" * 16
    copy = v.validate_seed_bytes(seed)
    assert isinstance(copy, bytearray)
    assert bytes(copy) == seed
    assert len(v.validate_seed_bytes(b"\x01" * 64)) == 64
    for length in (0, 15, 65):
        with pytest.raises(InvalidSeedError):
            v.validate_seed_bytes(b"\x01" * length)


def test_index_validation():
    assert v.validate_index(0) == 0
    assert v.validate_index(2**31 - 1) == 2**31 - 1
    for bad in (-1, 2**31, True, "1", 1.0):
        with pytest.raises(DerivationError):
            v.validate_index(bad)
