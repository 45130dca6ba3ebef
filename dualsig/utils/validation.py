"""Validation utilities for dual signing."""

import re
from typing import Union

from mnemonic import Mnemonic

from ..constants import (
    HARDENED_OFFSET,
    MAX_SEED_LENGTH,
    MIN_SEED_LENGTH,
    SECP256K1_ORDER,
)
from ..exceptions import DerivationError, InvalidSeedError, ValidationError

__all__ = [
    "validate_private_key",
    "validate_public_key",
    "is_valid_mnemonic",
    "validate_seed_bytes",
    "validate_index",
]

# Regex patterns
HEX_PATTERN = re.compile(r"^[0-9a-fA-F]*$")

_WORDLIST = Mnemonic("english")


def _normalize_hex(key: str) -> bytes:
    if key.startswith("0x"):
        key = key[2:]
    if not HEX_PATTERN.match(key):
        raise ValidationError("Key must be hexadecimal")
    try:
        return bytes.fromhex(key)
    except ValueError as e:
        raise ValidationError(f"Invalid hex key: {e}") from e


def validate_private_key(key: Union[str, bytes, bytearray]) -> bytes:
    """
    Validate secp256k1 private key and return as bytes.

    Args:
        key: Private key as hex string or bytes

    Returns:
        Private key as 32 bytes

    Raises:
        ValidationError: If private key is invalid
    """
    if isinstance(key, str):
        key = _normalize_hex(key)
    key = bytes(key)

    if len(key) != 32:
        raise ValidationError(f"Private key must be 32 bytes, got {len(key)}")

    key_int = int.from_bytes(key, "big")

    if key_int == 0:
        raise ValidationError("Private key cannot be zero")
    if key_int >= SECP256K1_ORDER:
        raise ValidationError("Private key exceeds curve order")

    return key


def validate_public_key(key: Union[str, bytes]) -> bytes:
    """
    Validate secp256k1 public key and return as bytes.

    Args:
        key: Public key as hex string or bytes

    Returns:
        Public key bytes (33 or 65 bytes)

    Raises:
        ValidationError: If public key is invalid
    """
    if isinstance(key, str):
        key = _normalize_hex(key)
    key = bytes(key)

    if len(key) == 33:
        if key[0] not in (0x02, 0x03):
            raise ValidationError("Compressed public key must start with 0x02 or 0x03")
    elif len(key) == 65:
        if key[0] != 0x04:
            raise ValidationError("Uncompressed public key must start with 0x04")
    else:
        raise ValidationError(f"Public key must be 33 or 65 bytes, got {len(key)}")

    return key


def is_valid_mnemonic(phrase: str) -> bool:
    """Check word list membership and BIP-39 checksum (English)."""
    words = phrase.split()
    if len(words) not in (12, 15, 18, 21, 24):
        return False
    try:
        return bool(_WORDLIST.check(" ".join(words)))
    except (ValueError, LookupError):
        return False


def validate_seed_bytes(seed: Union[bytes, bytearray, memoryview]) -> bytearray:
    """
    Validate raw seed bytes and return an owned copy.

    Raises:
        InvalidSeedError: If the seed is not 16 to 64 bytes
    """
    seed = bytearray(seed)
    if not MIN_SEED_LENGTH <= len(seed) <= MAX_SEED_LENGTH:
        raise InvalidSeedError(
            f"Seed must be between {MIN_SEED_LENGTH} and {MAX_SEED_LENGTH} bytes, "
            f"got {len(seed)}"
        )
    return seed


def validate_index(value: int, name: str = "index") -> int:
    """
    Validate an account or address index.

    Raises:
        DerivationError: If the index is not an int in [0, 2**31)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise DerivationError(f"{name} must be an integer, got {type(value).__name__}")
    if not 0 <= value < HARDENED_OFFSET:
        raise DerivationError(f"{name} out of range: {value}")
    return value
