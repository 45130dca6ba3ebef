"""Type definitions for dual signing."""

# Common types
from ..types.common import (
    HexStr,
    Address,
    DerivationPath,
    Timestamp,
    PrivateKeyBytes,
    PublicKeyBytes,
    Seed,
)

# Key material
from ..types.keys import (
    ECDSAKeyMaterial,
    MLDSAKeyMaterial,
    DerivedKeys,
    DerivationPaths,
    wipe_buffer,
)

# Signatures, keys and addresses
from ..types.signature import (
    ECDSASignature,
    MLDSASignature,
    SignedTransaction,
    ECDSAPublicKeyInfo,
    MLDSAPublicKeyInfo,
    MLDSAAddressFormats,
    DualAddresses,
    DualPublicKeys,
    DualFingerprints,
    DualSignatureResult,
)

__all__ = [
    # Common
    "HexStr",
    "Address",
    "DerivationPath",
    "Timestamp",
    "PrivateKeyBytes",
    "PublicKeyBytes",
    "Seed",

    # Key material
    "ECDSAKeyMaterial",
    "MLDSAKeyMaterial",
    "DerivedKeys",
    "DerivationPaths",
    "wipe_buffer",

    # Results
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
