"""
ML-DSA signer for post-quantum signatures.

Wraps one derived ML-DSA key pair (FIPS 204, formerly CRYSTALS-Dilithium).
Signing and verification go through the backend that generated the key
pair. When that backend is the placeholder one, signatures are flagged
``placeholder=True`` and verification degrades to a signature size check.
"""

import logging
import time
from typing import Any, Dict, Optional, Union

from ..constants import ADDRESS_LENGTH, FINGERPRINT_LENGTH, MLDSA_ADDRESS_PREFIX
from ..crypto.backends import PQBackend
from ..exceptions import CryptoError, SigningError
from ..types.common import Address, DerivationPath, HexStr, Timestamp
from ..types.keys import MLDSAKeyMaterial
from ..types.signature import MLDSAAddressFormats, MLDSAPublicKeyInfo, MLDSASignature
from ..utils.encoding import data_to_bytes, hex_to_bytes, sha3_256

__all__ = ["MLDSASigner"]

logger = logging.getLogger(__name__)


class MLDSASigner:
    """
    Post-quantum signer over one derived ML-DSA key pair.

    The signer takes ownership of the key material it is given and zeroes
    the secret key and sub-seed on :meth:`dispose`.
    """

    def __init__(self, key_material: MLDSAKeyMaterial) -> None:
        """
        Initialize signer.

        Args:
            key_material: Key material from DualKeyDerivation

        Raises:
            CryptoError: If the key material is missing
        """
        if key_material is None or not key_material.private_key or not key_material.public_key:
            raise CryptoError("Invalid key pair provided to MLDSASigner")

        self._material: Optional[MLDSAKeyMaterial] = key_material
        self._backend: PQBackend = key_material.backend
        self._public_key: bytes = bytes(key_material.public_key)
        self._algorithm = key_material.algorithm
        self._path: DerivationPath = key_material.path
        self._account_index = key_material.account_index
        self._address_index = key_material.address_index
        self._has_real_implementation = not key_material.placeholder
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self._validate_key_sizes()
        if not self._has_real_implementation:
            self._logger.warning(
                f"{self._algorithm.value} signer at {self._path} uses placeholder keys. "
                "Signatures are NOT secure."
            )

    def _validate_key_sizes(self) -> None:
        """Log a warning when real key sizes do not match the parameter set."""
        if not self._has_real_implementation:
            return

        expected = self._algorithm.params
        if len(self._material.private_key) != expected.private_key_size:
            self._logger.warning(
                f"Invalid private key size for {self._algorithm.value}: "
                f"expected {expected.private_key_size}, got {len(self._material.private_key)}"
            )
        if len(self._public_key) != expected.public_key_size:
            self._logger.warning(
                f"Invalid public key size for {self._algorithm.value}: "
                f"expected {expected.public_key_size}, got {len(self._public_key)}"
            )

    @property
    def algorithm(self) -> str:
        return self._algorithm.value

    @property
    def security_level(self) -> int:
        return self._algorithm.params.security_level

    @property
    def is_disposed(self) -> bool:
        return self._material is None

    def sign(
        self,
        data: Any,
        deterministic: bool = True,
        context: Union[bytes, str] = b""
    ) -> MLDSASignature:
        """
        Sign data with ML-DSA.

        Args:
            data: Bytes, UTF-8 or 0x-hex string, or JSON-serializable object
            deterministic: Use deterministic signing
            context: FIPS 204 context string (bytes or UTF-8 string)

        Returns:
            ML-DSA signature. ``placeholder`` is True for placeholder keys.

        Raises:
            UnsupportedDataTypeError: If data cannot be serialized
            SigningError: If the primitive fails
            CryptoError: If the signer has been disposed
        """
        material = self._require_material()
        message = data_to_bytes(data)
        context_bytes = self._context_bytes(context)

        try:
            signature = self._backend.sign(material, message, context_bytes, deterministic)
        except Exception as e:
            raise SigningError(f"{self._algorithm.value} signing failed: {e}") from e

        return MLDSASignature(
            signature=bytes(signature),
            algorithm=self._algorithm.value,
            security_level=self.security_level,
            public_key=self._public_key,
            message_hash=HexStr(sha3_256(message).hex()),
            context=HexStr(context_bytes.hex()),
            timestamp=Timestamp(int(time.time() * 1000)),
            placeholder=self._backend.is_placeholder,
        )

    def verify(
        self,
        data: Any,
        signature: Union[MLDSASignature, bytes, str],
        public_key: Optional[Union[bytes, str]] = None,
        context: Optional[Union[bytes, str]] = None,
    ) -> bool:
        """
        Verify an ML-DSA signature.

        For placeholder keys this only checks the signature length. That is
        not cryptographic verification.

        Args:
            data: Original data
            signature: Signature object, bytes, or hex string
            public_key: Public key (default: this signer's key)
            context: Context string. Defaults to the one recorded in a
                signature object, else empty.

        Returns:
            True if signature is valid, False on any invalid or malformed input
        """
        try:
            message = data_to_bytes(data)

            if isinstance(signature, MLDSASignature):
                sig_bytes = signature.signature
                if context is None:
                    context = hex_to_bytes(signature.context)
            elif isinstance(signature, (bytes, bytearray)):
                sig_bytes = bytes(signature)
            elif isinstance(signature, str):
                sig_bytes = hex_to_bytes(signature)
            else:
                return False

            if public_key is None:
                key = self._public_key
            elif isinstance(public_key, str):
                key = hex_to_bytes(public_key)
            else:
                key = bytes(public_key)

            return self._backend.verify(key, message, sig_bytes, self._context_bytes(context or b""))
        except Exception as e:
            self._logger.debug(f"ML-DSA verification rejected input: {e}")
            return False

    def _address_bytes(self) -> bytes:
        return sha3_256(self._public_key)[:ADDRESS_LENGTH]

    def get_address(self) -> Address:
        """
        Get ML-DSA address.

        Returns:
            ``mldsa:<hex>`` of the first 20 bytes of SHA3-256(public key)
        """
        return Address(f"{MLDSA_ADDRESS_PREFIX}:{self._address_bytes().hex()}")

    def get_address_formats(self) -> MLDSAAddressFormats:
        """Get ML-DSA address in standard, full and truncated forms."""
        address_hex = self._address_bytes().hex()
        return MLDSAAddressFormats(
            standard=self.get_address(),
            hex=HexStr(address_hex),
            full=f"{MLDSA_ADDRESS_PREFIX}:{self._algorithm.value.lower()}:{address_hex}",
            truncated=f"{MLDSA_ADDRESS_PREFIX}:{address_hex[:8]}...{address_hex[-6:]}",
        )

    def get_public_key(self) -> MLDSAPublicKeyInfo:
        """Get public key plus derivation metadata."""
        return MLDSAPublicKeyInfo(
            public_key=self._public_key,
            algorithm=self._algorithm.value,
            security_level=self.security_level,
            path=self._path,
            account_index=self._account_index,
            address_index=self._address_index,
            address=self.get_address(),
        )

    def get_fingerprint(self) -> str:
        """First 8 bytes of SHA3-256(public key), as hex."""
        return sha3_256(self._public_key)[:FINGERPRINT_LENGTH].hex()

    def export_public_key(self) -> Dict[str, Any]:
        """Export public key for sharing."""
        return {
            "algorithm": self._algorithm.value,
            "publicKey": self._public_key.hex(),
            "fingerprint": self.get_fingerprint(),
            "address": self.get_address(),
            "securityLevel": self.security_level,
            "placeholder": not self._has_real_implementation,
        }

    def get_signature_size(self) -> int:
        """Expected signature size in bytes."""
        return self._algorithm.params.signature_size

    def has_real_implementation(self) -> bool:
        """True unless the keys came from the placeholder backend."""
        return self._has_real_implementation

    def get_info(self) -> Dict[str, Any]:
        """Get signer information. Contains no private key material."""
        params = self._algorithm.params
        return {
            "type": "ML-DSA",
            "algorithm": self._algorithm.value,
            "securityLevel": params.security_level,
            "nistLevel": f"NIST Level {params.security_level}",
            "address": self.get_address(),
            "fingerprint": self.get_fingerprint(),
            "publicKeySize": params.public_key_size,
            "privateKeySize": params.private_key_size,
            "signatureSize": params.signature_size,
            "path": self._path,
            "accountIndex": self._account_index,
            "addressIndex": self._address_index,
            "backend": self._backend.name,
            "hasRealImplementation": self._has_real_implementation,
        }

    def dispose(self) -> None:
        """Zero the secret key and sub-seed. Idempotent."""
        if self._material is not None:
            self._material.wipe()
            self._material = None

    def _context_bytes(self, context: Union[bytes, str]) -> bytes:
        if isinstance(context, str):
            return context.encode("utf-8")
        return bytes(context)

    def _require_material(self) -> MLDSAKeyMaterial:
        if self._material is None:
            raise CryptoError("ML-DSA signer has been disposed")
        return self._material

    def __repr__(self) -> str:
        return (
            f"<MLDSASigner algorithm={self._algorithm.value} "
            f"address={self.get_address()} placeholder={not self._has_real_implementation}>"
        )
