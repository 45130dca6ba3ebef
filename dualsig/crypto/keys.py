"""secp256k1 key management for Ethereum-style signing."""

from typing import Optional, Tuple, Union

from coincurve import PrivateKey as SecpPrivateKey, PublicKey as SecpPublicKey

from ..constants import ADDRESS_LENGTH, SECP256K1_ORDER
from ..exceptions import CryptoError, SigningError, ValidationError
from ..types.common import Address, PrivateKeyBytes, PublicKeyBytes
from ..types.keys import wipe_buffer
from ..utils.encoding import keccak256, to_checksum_address
from ..utils.validation import validate_private_key, validate_public_key
from ..crypto.signature import encode_der_signature

__all__ = ["PrivateKey", "PublicKey"]


class PrivateKey:
    """
    secp256k1 private key wrapper.

    Owns a mutable copy of the 32-byte scalar so it can be zeroed by
    :meth:`wipe`.
    """

    def __init__(self, key: Union[bytes, bytearray, str]) -> None:
        """
        Initialize private key.

        Args:
            key: Private key as 32 bytes or hex string

        Raises:
            ValidationError: If key format is invalid
        """
        # Validate and normalize key
        self._secret: Optional[bytearray] = bytearray(validate_private_key(key))

        # Initialize crypto library
        self._key: Optional[SecpPrivateKey] = SecpPrivateKey(bytes(self._secret))

    @property
    def secret(self) -> PrivateKeyBytes:
        """Get a copy of the private key bytes."""
        return PrivateKeyBytes(bytes(self._require_secret()))

    def hex(self) -> str:
        """Get private key as hex string."""
        return self._require_secret().hex()

    def public_key(self, compressed: bool = True) -> "PublicKey":
        """
        Get corresponding public key.

        Args:
            compressed: Return compressed format

        Returns:
            PublicKey instance
        """
        serialized = self._require_key().public_key.format(compressed=compressed)
        return PublicKey(serialized)

    def sign_recoverable(self, message_hash: bytes) -> Tuple[int, int, int]:
        """
        Create recoverable RFC 6979 signature over a 32-byte hash.

        Args:
            message_hash: 32-byte hash to sign

        Returns:
            Tuple of (r, s, recovery_id)

        Raises:
            ValueError: If the hash is not 32 bytes
            SigningError: If signing fails
        """
        if len(message_hash) != 32:
            raise ValueError("Message hash must be 32 bytes")

        key = self._require_key()
        try:
            raw = key.sign_recoverable(bytes(message_hash), hasher=None)
        except Exception as e:
            raise SigningError(f"Recoverable signing failed: {e}") from e

        r = int.from_bytes(raw[:32], "big")
        s = int.from_bytes(raw[32:64], "big")
        return r, s, raw[64]

    def wipe(self) -> None:
        """Zero the scalar and drop the library handle."""
        wipe_buffer(self._secret)
        self._secret = None
        self._key = None

    @property
    def is_wiped(self) -> bool:
        return self._secret is None

    def _require_secret(self) -> bytearray:
        if self._secret is None:
            raise CryptoError("Private key has been wiped")
        return self._secret

    def _require_key(self) -> SecpPrivateKey:
        if self._key is None:
            raise CryptoError("Private key has been wiped")
        return self._key

    def __eq__(self, other: object) -> bool:
        """Check equality."""
        if not isinstance(other, PrivateKey):
            return False
        return self._secret is not None and self._secret == other._secret

    def __repr__(self) -> str:
        """String representation."""
        if self._secret is None:
            return "PrivateKey(<wiped>)"
        # Show first and last 4 chars of hex for security
        hex_str = self.hex()
        return f"PrivateKey({hex_str[:4]}...{hex_str[-4:]})"


class PublicKey:
    """
    secp256k1 public key wrapper.

    Handles point compression, signature verification and Ethereum
    address derivation.
    """

    def __init__(self, key: Union[bytes, str, "PublicKey"]) -> None:
        """
        Initialize public key.

        Args:
            key: Public key as 33/65 bytes, hex string, or another PublicKey

        Raises:
            ValidationError: If key format is invalid or not on the curve
        """
        if isinstance(key, PublicKey):
            self._key = key._key
            return

        key_bytes = validate_public_key(key)
        try:
            self._key = SecpPublicKey(key_bytes)
        except Exception as e:
            raise ValidationError(f"Public key is not a valid curve point: {e}") from e

    @classmethod
    def recover(cls, message_hash: bytes, r: int, s: int, recovery: int) -> "PublicKey":
        """
        Recover the signing public key.

        Args:
            message_hash: 32-byte signed hash
            r: Signature r value
            s: Signature s value
            recovery: Recovery id (0-3)

        Returns:
            Recovered PublicKey

        Raises:
            CryptoError: If recovery fails
        """
        try:
            signature = r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([recovery])
            key = SecpPublicKey.from_signature_and_message(signature, message_hash, hasher=None)
        except Exception as e:
            raise CryptoError(f"Public key recovery failed: {e}") from e
        return cls(key.format(compressed=False))

    @property
    def compressed(self) -> PublicKeyBytes:
        """33-byte SEC1 encoding."""
        return PublicKeyBytes(self._key.format(compressed=True))

    @property
    def uncompressed(self) -> PublicKeyBytes:
        """65-byte SEC1 encoding."""
        return PublicKeyBytes(self._key.format(compressed=False))

    def eth_address(self) -> Address:
        """
        Get Ethereum address.

        Returns:
            Lowercase 0x-prefixed address (last 20 bytes of keccak256(X||Y))
        """
        digest = keccak256(self.uncompressed[1:])
        return Address("0x" + digest[-ADDRESS_LENGTH:].hex())

    def checksum_address(self) -> Address:
        """Get EIP-55 checksummed Ethereum address."""
        return to_checksum_address(self.eth_address())

    def verify(self, r: int, s: int, message_hash: bytes) -> bool:
        """
        Verify signature.

        Args:
            r: Signature r value
            s: Signature s value
            message_hash: 32-byte message hash

        Returns:
            True if signature is valid
        """
        if len(message_hash) != 32:
            return False
        if not (0 < r < SECP256K1_ORDER and 0 < s < SECP256K1_ORDER):
            return False

        try:
            return bool(self._key.verify(encode_der_signature(r, s), bytes(message_hash), hasher=None))
        except Exception:
            return False

    def __eq__(self, other: object) -> bool:
        """Check equality."""
        if not isinstance(other, PublicKey):
            return False
        return self.compressed == other.compressed

    def __repr__(self) -> str:
        """String representation."""
        return f"PublicKey({self.eth_address()})"
