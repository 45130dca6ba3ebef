"""Signature, public key and address result types."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..types.common import Address, DerivationPath, HexStr, Timestamp

__all__ = [
    "ECDSASignature",
    "MLDSASignature",
    "SignedTransaction",
    "ECDSAPublicKeyInfo",
    "MLDSAPublicKeyInfo",
    "MLDSAAddressFormats",
    "DualAddresses",
    "DualPublicKeys",
    "DualFingerprints",
    "DualSignatureResult",
]


@dataclass(frozen=True)
class ECDSASignature:
    """
    Recoverable secp256k1 signature.

    Attributes:
        r: 32-byte r value as 64 hex chars
        s: 32-byte s value as 64 hex chars
        v: Recovery id offset by 27 (27 or 28)
        recovery: Raw recovery id (0 or 1)
        signature: Compact r||s hex
        serialized: r||s||v hex, the 65-byte form used for address recovery
        message_hash: Hex of the 32 bytes that were signed
    """

    r: HexStr
    s: HexStr
    v: int
    recovery: int
    signature: HexStr
    serialized: HexStr
    message_hash: HexStr

    @property
    def compact(self) -> HexStr:
        return self.signature

    def to_bytes(self) -> bytes:
        """65-byte r||s||v encoding."""
        return bytes.fromhex(self.serialized)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "r": self.r,
            "s": self.s,
            "v": self.v,
            "recovery": self.recovery,
            "signature": self.signature,
            "serialized": self.serialized,
            "messageHash": self.message_hash,
        }


@dataclass(frozen=True)
class MLDSASignature:
    """
    ML-DSA signature.

    ``placeholder`` is True when the signature came from the placeholder
    backend. Such signatures prove nothing and must be rejected wherever
    the signature matters for security.
    """

    signature: bytes
    algorithm: str
    security_level: int
    public_key: bytes
    message_hash: HexStr
    context: HexStr
    timestamp: Timestamp
    placeholder: bool = False

    @property
    def signature_hex(self) -> HexStr:
        return HexStr(self.signature.hex())

    def __len__(self) -> int:
        return len(self.signature)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signature": self.signature_hex,
            "algorithm": self.algorithm,
            "securityLevel": self.security_level,
            "publicKey": self.public_key.hex(),
            "messageHash": self.message_hash,
            "context": self.context,
            "timestamp": self.timestamp,
            "placeholder": self.placeholder,
        }


@dataclass(frozen=True)
class SignedTransaction:
    """Transaction fields with the ECDSA signature attached."""

    transaction: Dict[str, Any]
    signature: ECDSASignature

    @property
    def v(self) -> int:
        return self.signature.v

    @property
    def r(self) -> HexStr:
        return self.signature.r

    @property
    def s(self) -> HexStr:
        return self.signature.s

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.transaction,
            "signature": self.signature.to_dict(),
            "v": self.v,
            "r": self.r,
            "s": self.s,
        }


@dataclass(frozen=True)
class ECDSAPublicKeyInfo:
    """secp256k1 public key encodings plus derivation metadata."""

    compressed: HexStr
    uncompressed: HexStr
    path: DerivationPath
    account_index: int
    address_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "compressed": self.compressed,
            "uncompressed": self.uncompressed,
            "path": self.path,
            "accountIndex": self.account_index,
            "addressIndex": self.address_index,
        }


@dataclass(frozen=True)
class MLDSAPublicKeyInfo:
    """ML-DSA public key plus derivation metadata."""

    public_key: bytes
    algorithm: str
    security_level: int
    path: DerivationPath
    account_index: int
    address_index: int
    address: Address

    @property
    def hex(self) -> HexStr:
        return HexStr(self.public_key.hex())

    @property
    def size(self) -> int:
        return len(self.public_key)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hex": self.hex,
            "size": self.size,
            "algorithm": self.algorithm,
            "securityLevel": self.security_level,
            "path": self.path,
            "accountIndex": self.account_index,
            "addressIndex": self.address_index,
            "address": self.address,
        }


@dataclass(frozen=True)
class MLDSAAddressFormats:
    """An ML-DSA address rendered several ways."""

    standard: Address
    hex: HexStr
    full: str
    truncated: str

    @property
    def raw(self) -> bytes:
        return bytes.fromhex(self.hex)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "standard": self.standard,
            "hex": self.hex,
            "full": self.full,
            "truncated": self.truncated,
        }


@dataclass(frozen=True)
class DualAddresses:
    """Addresses of both signers. Disabled signers contribute None."""

    ethereum: Optional[Address] = None
    ethereum_checksum: Optional[Address] = None
    mldsa: Optional[Address] = None
    mldsa_formats: Optional[MLDSAAddressFormats] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ethereum": self.ethereum,
            "ethereumChecksum": self.ethereum_checksum,
            "mldsa": self.mldsa,
            "mldsaFormats": self.mldsa_formats.to_dict() if self.mldsa_formats else None,
        }


@dataclass(frozen=True)
class DualPublicKeys:
    """Public keys of both signers."""

    ecdsa: Optional[ECDSAPublicKeyInfo] = None
    mldsa: Optional[MLDSAPublicKeyInfo] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ecdsa": self.ecdsa.to_dict() if self.ecdsa else None,
            "mldsa": self.mldsa.to_dict() if self.mldsa else None,
        }


@dataclass(frozen=True)
class DualFingerprints:
    """Short public key identifiers for display."""

    ecdsa: Optional[str] = None
    mldsa: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"ecdsa": self.ecdsa, "mldsa": self.mldsa}


@dataclass(frozen=True)
class DualSignatureResult:
    """
    Result of a dual signing call.

    A branch is None only when that algorithm is disabled. Signing failures
    raise instead of producing a None branch.
    """

    ecdsa: Optional[ECDSASignature]
    mldsa: Optional[MLDSASignature]
    data: Any
    timestamp: Timestamp
    account_index: int
    address_index: int

    @property
    def is_placeholder(self) -> bool:
        return self.mldsa is not None and self.mldsa.placeholder

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ecdsa": self.ecdsa.to_dict() if self.ecdsa else None,
            "mldsa": self.mldsa.to_dict() if self.mldsa else None,
            "data": self.data,
            "timestamp": self.timestamp,
            "accountIndex": self.account_index,
            "addressIndex": self.address_index,
        }
