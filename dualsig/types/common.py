"""Common type definitions for dual signing."""

from typing import NewType, Union

__all__ = [
    "HexStr",
    "Address",
    "DerivationPath",
    "Timestamp",
    "PrivateKeyBytes",
    "PublicKeyBytes",
    "Seed",
]

# Basic types
HexStr = NewType("HexStr", str)
"""Hexadecimal string representation."""

Address = NewType("Address", str)
"""Ethereum or ML-DSA address string."""

DerivationPath = NewType("DerivationPath", str)
"""BIP-32 path like m/44'/60'/0'/0/0."""

Timestamp = NewType("Timestamp", int)
"""Unix timestamp in milliseconds."""

# Crypto types
PrivateKeyBytes = NewType("PrivateKeyBytes", bytes)
"""32-byte secp256k1 scalar or ML-DSA secret key."""

PublicKeyBytes = NewType("PublicKeyBytes", bytes)
"""33/65 byte secp256k1 point or ML-DSA public key."""

# Type aliases
Seed = Union[str, bytes, bytearray, memoryview]
"""BIP-39 mnemonic or raw seed bytes."""
