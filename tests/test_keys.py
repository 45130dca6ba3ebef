import pytest

from dualsig.constants import HARDENED_OFFSET
from dualsig.crypto.bip39 import mnemonic_to_seed
from dualsig.crypto.hd import HDNode
from dualsig.crypto.keys import PrivateKey, PublicKey
from dualsig.crypto.signature import (
    encode_der_signature, parse_ecdsa_signature,
    personal_message_bytes, serialize_transaction,
)
from dualsig.exceptions import CryptoError, DerivationError, InvalidSeedError
from dualsig.types.keys import wipe_buffer
from dualsig.utils.encoding import keccak256

ETH_ADDRESS_0 = "0x9858EfFD232B4033E47d90003D41EC34EcaEda94"


def test_mnemonic_to_seed_vector(mnemonic):
    seed = mnemonic_to_seed(mnemonic)
    assert len(seed) == 64
    assert seed.hex().startswith("5eb00bbddcf069084889a8ab9155")
    assert mnemonic_to_seed("  " + mnemonic.replace(" ", "   ") + "\n") == seed
    assert mnemonic_to_seed(mnemonic, passphrase="TREZOR") != seed


def test_mnemonic_to_seed_rejects_invalid():
    with pytest.raises(InvalidSeedError):
        mnemonic_to_seed("hello world")


def test_hd_derivation_vector(mnemonic):
    master = HDNode.from_seed(mnemonic_to_seed(mnemonic))
    node = master.derive_path("m/44'/60'/0'/0/0")
    assert PublicKey(node.public_key).checksum_address() == ETH_ADDRESS_0
    key = PrivateKey(bytes(node.private_key))
    assert key.public_key(compressed=False).checksum_address() == ETH_ADDRESS_0


def test_hd_node_owns_its_buffers():
    private_key = bytearray(b"\x01" * 32)
    chain_code = bytearray(b"\x02" * 32)
    node = HDNode(private_key, PrivateKey(bytes(private_key)).public_key().compressed, chain_code)
    wipe_buffer(private_key)
    wipe_buffer(chain_code)
    assert node.private_key == b"\x01" * 32
    assert node.chain_code == b"\x02" * 32

    child = node.derive(HARDENED_OFFSET)
    assert isinstance(child.private_key, bytearray)
    assert any(child.private_key) and any(child.chain_code)
    # Parent is left intact
    assert node.private_key == b"\x01" * 32
    assert node.derive(HARDENED_OFFSET).private_key == child.private_key

    child.wipe()
    assert child.is_wiped
    assert not any(child.chain_code)


def test_hd_from_seed_is_repeatable(mnemonic):
    seed = mnemonic_to_seed(mnemonic)
    first = HDNode.from_seed(seed)
    second = HDNode.from_seed(seed)
    assert first.private_key == second.private_key
    assert first.chain_code == second.chain_code
    assert first.private_key is not second.private_key
    first.wipe()
    assert any(second.private_key)
    assert second.derive(0).public_key == HDNode.from_seed(seed).derive(0).public_key


def test_hd_invalid_path_component(mnemonic):
    master = HDNode.from_seed(mnemonic_to_seed(mnemonic))
    with pytest.raises(DerivationError):
        master.derive_path("m/44'/abc/0")


def test_hd_wipe(mnemonic):
    node = HDNode.from_seed(mnemonic_to_seed(mnemonic))
    node.wipe()
    assert node.private_key is None
    with pytest.raises(DerivationError):
        node.derive(0)


def test_recoverable_signature_roundtrip():
    key = PrivateKey(b"\x01" * 32)
    message_hash = keccak256(b"hello")
    r, s, recovery = key.sign_recoverable(message_hash)

    public_key = key.public_key()
    assert public_key.verify(r, s, message_hash)
    assert not public_key.verify(r, s, keccak256(b"other"))
    assert PublicKey.recover(message_hash, r, s, recovery) == public_key


def test_private_key_wipe():
    key = PrivateKey("02" * 32)
    key.wipe()
    assert key.is_wiped
    assert repr(key) == "PrivateKey(<wiped>)"
    with pytest.raises(CryptoError):
        key.sign_recoverable(b"\x00" * 32)


def test_der_signature_encoding():
    assert encode_der_signature(1, 2) == bytes.fromhex("3006020101020102")
    # High bit set gets a leading zero byte
    assert encode_der_signature(0x80, 1) == bytes.fromhex("300702020080020101")


def test_parse_ecdsa_signature_shapes():
    r_bytes = (5).to_bytes(32, "big")
    s_bytes = (7).to_bytes(32, "big")
    assert parse_ecdsa_signature(r_bytes + s_bytes) == (5, 7, None)
    assert parse_ecdsa_signature(r_bytes + s_bytes + bytes([28])) == (5, 7, 1)
    assert parse_ecdsa_signature((r_bytes + s_bytes).hex()) == (5, 7, None)
    assert parse_ecdsa_signature({"r": r_bytes.hex(), "s": s_bytes.hex(), "v": 27}) == (5, 7, 0)
    with pytest.raises(CryptoError):
        parse_ecdsa_signature(b"\x01" * 10)
    with pytest.raises(CryptoError):
        parse_ecdsa_signature(12345)


def test_personal_message_prefix():
    assert personal_message_bytes(b"hello") == b"\x19Ethereum Signed Message:\n5hello"


def test_serialize_transaction_defaults():
    encoded = serialize_transaction({"to": "0xabc", "value": 10})
    assert encoded == b'[0,0,21000,"0xabc",10,"0x",1]'
    assert serialize_transaction({"to": "0xabc", "value": 10, "gas": 50000})[:12] == b'[0,0,50000,"'
