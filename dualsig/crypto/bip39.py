"""BIP39 mnemonic to seed conversion."""

import hashlib
import unicodedata

from ..exceptions import InvalidSeedError
from ..utils.validation import is_valid_mnemonic

__all__ = ["mnemonic_to_seed", "normalize_mnemonic"]

PBKDF2_ROUNDS = 2048


def normalize_mnemonic(mnemonic: str) -> str:
    """NFKD-normalize and collapse whitespace."""
    return " ".join(unicodedata.normalize("NFKD", mnemonic).split())


def mnemonic_to_seed(mnemonic: str, passphrase: str = "", validate: bool = True) -> bytes:
    """
    Convert mnemonic to 64-byte seed using PBKDF2.

    Args:
        mnemonic: BIP39 sentence
        passphrase: Optional BIP39 passphrase
        validate: Check word list and checksum first

    Returns:
        64-byte seed

    Raises:
        InvalidSeedError: If validation is on and the mnemonic is not BIP39
    """
    mnemonic = normalize_mnemonic(mnemonic)
    if validate and not is_valid_mnemonic(mnemonic):
        raise InvalidSeedError("Seed string is not a valid BIP-39 mnemonic")

    mnemonic_bytes = mnemonic.encode("utf-8")
    passphrase_bytes = unicodedata.normalize("NFKD", "mnemonic" + passphrase).encode("utf-8")

    return hashlib.pbkdf2_hmac(
        "sha512",
        mnemonic_bytes,
        passphrase_bytes,
        PBKDF2_ROUNDS,
        dklen=64
    )
