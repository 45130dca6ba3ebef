"""Constants for dual ECDSA / ML-DSA signing."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict

__all__ = [
    "BIP44_PURPOSE",
    "ECDSA_COIN_TYPE",
    "MLDSA_COIN_TYPE",
    "HARDENED_OFFSET",
    "SECP256K1_ORDER",
    "ECDSA_CURVE",
    "ETH_MESSAGE_PREFIX",
    "RECOVERY_BASE",
    "MLDSA_ADDRESS_PREFIX",
    "ADDRESS_LENGTH",
    "FINGERPRINT_LENGTH",
    "MIN_SEED_LENGTH",
    "MAX_SEED_LENGTH",
    "MLDSA_SEED_LENGTH",
    "MLDSAParams",
    "MLDSAAlgorithm",
    "ML_DSA_LEVELS",
    "DEFAULT_MLDSA_ALGORITHM",
    "SignatureType",
    "DerivationNamespace",
]

# BIP-44
BIP44_PURPOSE = 44
ECDSA_COIN_TYPE = 60      # Ethereum
MLDSA_COIN_TYPE = 9000    # experimental range
HARDENED_OFFSET = 0x80000000

SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
ECDSA_CURVE = "secp256k1"

# EIP-191 personal_sign
ETH_MESSAGE_PREFIX = "\x19Ethereum Signed Message:\n"
RECOVERY_BASE = 27

MLDSA_ADDRESS_PREFIX = "mldsa"
ADDRESS_LENGTH = 20
FINGERPRINT_LENGTH = 8

MIN_SEED_LENGTH = 16
MAX_SEED_LENGTH = 64
MLDSA_SEED_LENGTH = 32


@dataclass(frozen=True)
class MLDSAParams:
    """Sizes of one FIPS 204 parameter set."""

    name: str
    security_level: int
    public_key_size: int
    private_key_size: int
    signature_size: int


class MLDSAAlgorithm(str, Enum):
    """ML-DSA parameter sets."""

    ML_DSA_44 = "ML-DSA-44"
    ML_DSA_65 = "ML-DSA-65"
    ML_DSA_87 = "ML-DSA-87"

    @property
    def params(self) -> MLDSAParams:
        return ML_DSA_LEVELS[self]

    @classmethod
    def from_value(cls, value: "str | MLDSAAlgorithm") -> "MLDSAAlgorithm":
        """Parse 'ML-DSA-65', 'ml_dsa_65' or an enum member."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().upper().replace("_", "-")
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unknown ML-DSA algorithm: {value}")


ML_DSA_LEVELS: Dict[MLDSAAlgorithm, MLDSAParams] = {
    MLDSAAlgorithm.ML_DSA_44: MLDSAParams("ML-DSA-44", 2, 1312, 2560, 2420),
    MLDSAAlgorithm.ML_DSA_65: MLDSAParams("ML-DSA-65", 3, 1952, 4032, 3309),
    MLDSAAlgorithm.ML_DSA_87: MLDSAParams("ML-DSA-87", 5, 2592, 4896, 4627),
}

DEFAULT_MLDSA_ALGORITHM = MLDSAAlgorithm.ML_DSA_65


class SignatureType(str, Enum):
    """Signing modes of the dual-signature protocol."""

    ECDSA = "ecdsa"
    MLDSA = "mldsa"
    DUAL = "dual"


class DerivationNamespace(str, Enum):
    """Coin-type namespaces separating the two key spaces."""

    ECDSA = "ecdsa"
    MLDSA = "mldsa"

    @property
    def coin_type(self) -> int:
        if self is DerivationNamespace.ECDSA:
            return ECDSA_COIN_TYPE
        return MLDSA_COIN_TYPE

    @property
    def prefix(self) -> str:
        return f"m/{BIP44_PURPOSE}'/{self.coin_type}'"
