"""ECDSA (secp256k1) signer for Ethereum-compatible signatures."""

import logging
from typing import Any, Dict, Mapping, Optional, Union

from ..constants import ECDSA_CURVE, RECOVERY_BASE
from ..crypto.keys import PrivateKey, PublicKey
from ..crypto.signature import (
    parse_ecdsa_signature,
    personal_message_bytes,
    serialize_transaction,
)
from ..exceptions import CryptoError
from ..types.common import Address, DerivationPath, HexStr
from ..types.keys import ECDSAKeyMaterial
from ..types.signature import ECDSAPublicKeyInfo, ECDSASignature, SignedTransaction
from ..utils.encoding import data_to_bytes, keccak256

__all__ = ["ECDSASigner"]

logger = logging.getLogger(__name__)


class ECDSASigner:
    """
    Ethereum-style signer over one derived secp256k1 key.

    The signer takes ownership of the key material it is given and zeroes
    it on :meth:`dispose`.
    """

    def __init__(self, key_material: ECDSAKeyMaterial) -> None:
        """
        Initialize signer.

        Args:
            key_material: Key material from DualKeyDerivation

        Raises:
            CryptoError: If the key material is missing or unusable
        """
        if key_material is None or not key_material.private_key or not key_material.public_key:
            raise CryptoError("Invalid key pair provided to ECDSASigner")

        self._material: Optional[ECDSAKeyMaterial] = key_material
        self._private_key: Optional[PrivateKey] = PrivateKey(key_material.private_key)
        self._public_key: Optional[PublicKey] = PublicKey(key_material.public_key)
        self._path: DerivationPath = key_material.path
        self._account_index = key_material.account_index
        self._address_index = key_material.address_index
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def path(self) -> DerivationPath:
        return self._path

    @property
    def is_disposed(self) -> bool:
        return self._private_key is None

    def _message_hash(self, data: Any, hash_message: bool, add_prefix: bool) -> bytes:
        message = data_to_bytes(data)

        if add_prefix:
            # A prefixed message is always hashed
            return keccak256(personal_message_bytes(message))
        if hash_message:
            return keccak256(message)
        if len(message) != 32:
            raise ValueError(
                f"Unhashed input must be a 32-byte digest, got {len(message)} bytes"
            )
        return message

    def sign(
        self,
        data: Any,
        hash_message: bool = True,
        add_prefix: bool = False
    ) -> ECDSASignature:
        """
        Sign data with secp256k1.

        Args:
            data: Bytes, UTF-8 or 0x-hex string, or JSON-serializable object
            hash_message: Keccak-256 the message before signing. When False
                the data must already be a 32-byte digest.
            add_prefix: Prepend the EIP-191 personal message prefix. Implies
                hashing regardless of ``hash_message``.

        Returns:
            Recoverable signature with v normalized to 27/28

        Raises:
            UnsupportedDataTypeError: If data cannot be serialized
            ValueError: If unhashed data is not 32 bytes
            CryptoError: If the signer has been disposed
        """
        private_key = self._require_private_key()
        message_hash = self._message_hash(data, hash_message, add_prefix)

        r, s, recovery = private_key.sign_recoverable(message_hash)
        r_hex = r.to_bytes(32, "big").hex()
        s_hex = s.to_bytes(32, "big").hex()
        v = recovery + RECOVERY_BASE

        return ECDSASignature(
            r=HexStr(r_hex),
            s=HexStr(s_hex),
            v=v,
            recovery=recovery,
            signature=HexStr(r_hex + s_hex),
            serialized=HexStr(r_hex + s_hex + bytes([v]).hex()),
            message_hash=HexStr(message_hash.hex()),
        )

    def sign_message(self, message: Any) -> ECDSASignature:
        """Sign a message with the EIP-191 personal message prefix."""
        return self.sign(message, hash_message=True, add_prefix=True)

    def sign_transaction(self, tx: Mapping[str, Any]) -> SignedTransaction:
        """
        Sign transaction data.

        The transaction is serialized as a deterministic JSON field list,
        not RLP.

        Args:
            tx: Transaction fields

        Returns:
            Transaction with signature attached
        """
        signature = self.sign(serialize_transaction(tx), hash_message=True, add_prefix=False)
        return SignedTransaction(transaction=dict(tx), signature=signature)

    def verify(
        self,
        data: Any,
        signature: Union[ECDSASignature, Mapping[str, Any], str, bytes],
        public_key: Optional[Union[bytes, str, PublicKey]] = None,
        hash_message: bool = True,
        add_prefix: bool = False,
    ) -> bool:
        """
        Verify an ECDSA signature.

        Args:
            data: Original data
            signature: Signature object, mapping with r/s, or 64/65 bytes (or hex)
            public_key: Public key (default: this signer's key)
            hash_message: Same meaning as in :meth:`sign`
            add_prefix: Same meaning as in :meth:`sign`

        Returns:
            True if signature is valid, False on any invalid or malformed input
        """
        try:
            message_hash = self._message_hash(data, hash_message, add_prefix)
            r, s, _ = parse_ecdsa_signature(signature)
            key = PublicKey(public_key) if public_key is not None else self._public_key
            if key is None:
                return False
            return key.verify(r, s, message_hash)
        except Exception as e:
            self._logger.debug(f"ECDSA verification rejected input: {e}")
            return False

    def recover_public_key(
        self,
        data: Any,
        signature: Union[ECDSASignature, Mapping[str, Any], str, bytes],
        hash_message: bool = True,
        add_prefix: bool = False,
    ) -> bytes:
        """
        Recover the uncompressed public key from a signature.

        Raises:
            CryptoError: If the signature carries no recovery id or recovery fails
        """
        message_hash = self._message_hash(data, hash_message, add_prefix)
        r, s, recovery = parse_ecdsa_signature(signature)
        if recovery is None:
            raise CryptoError("Signature has no recovery id")
        return bytes(PublicKey.recover(message_hash, r, s, recovery).uncompressed)

    def get_address(self) -> Address:
        """Get Ethereum address (lowercase, 0x-prefixed)."""
        return self._require_public_key().eth_address()

    def get_checksum_address(self) -> Address:
        """Get EIP-55 checksummed Ethereum address."""
        return self._require_public_key().checksum_address()

    def get_public_key(self) -> ECDSAPublicKeyInfo:
        """Get public key in compressed and uncompressed form."""
        public_key = self._require_public_key()
        return ECDSAPublicKeyInfo(
            compressed=HexStr(public_key.compressed.hex()),
            uncompressed=HexStr(public_key.uncompressed.hex()),
            path=self._path,
            account_index=self._account_index,
            address_index=self._address_index,
        )

    def get_fingerprint(self) -> str:
        """First 16 hex chars of the compressed public key."""
        return self._require_public_key().compressed.hex()[:16]

    def export_private_key(self) -> str:
        """
        Export private key as hex.

        Handle with extreme care. The returned string is a copy and cannot
        be wiped by :meth:`dispose`.
        """
        self._logger.warning(f"Exporting private key for {self._path}")
        return self._require_private_key().hex()

    def get_info(self) -> Dict[str, Any]:
        """Get signer information. Contains no private key material."""
        return {
            "type": "ECDSA",
            "curve": ECDSA_CURVE,
            "address": self.get_address(),
            "checksumAddress": self.get_checksum_address(),
            "publicKeyCompressed": self.get_public_key().compressed,
            "path": self._path,
            "accountIndex": self._account_index,
            "addressIndex": self._address_index,
        }

    def dispose(self) -> None:
        """Zero the private scalar. Idempotent."""
        if self._private_key is not None:
            self._private_key.wipe()
            self._private_key = None
        if self._material is not None:
            self._material.wipe()
            self._material = None
        self._public_key = None

    def _require_private_key(self) -> PrivateKey:
        if self._private_key is None:
            raise CryptoError("ECDSA signer has been disposed")
        return self._private_key

    def _require_public_key(self) -> PublicKey:
        if self._public_key is None:
            raise CryptoError("ECDSA signer has been disposed")
        return self._public_key

    def __repr__(self) -> str:
        if self._public_key is None:
            return "<ECDSASigner disposed>"
        return f"<ECDSASigner address={self.get_address()} path={self._path}>"
