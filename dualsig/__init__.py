"""
Dual-signature Python library

ECDSA (secp256k1) and ML-DSA (FIPS 204) signing from a single BIP-39 seed,
with the two key spaces separated by BIP-44 coin type.
"""

from typing import Any, Optional

from .account import AccountLike, SeedAccount
from .constants import MLDSAAlgorithm, SignatureType
from .exceptions import (
    DualSigError,
    ValidationError,
    InvalidSeedError,
    UnsupportedDataTypeError,
    ConfigurationError,
    AlgorithmDisabledError,
    InvalidSignatureTypeError,
    InitializationError,
    NotInitializedError,
    ProtocolDisposedError,
    CryptoError,
    DerivationError,
    SigningError,
)
from .crypto import (
    DualKeyDerivation,
    ECDSASigner,
    MLDSASigner,
    MLDSABackend,
    PlaceholderBackend,
)
from .protocols import DualSignatureConfig, DualSignatureProtocol, ProtocolState
from .types import (
    ECDSASignature,
    MLDSASignature,
    DualSignatureResult,
    DualAddresses,
)
from .types.common import Seed

__version__ = "1.0.0"

__all__ = [
    # Protocol
    "DualSignatureProtocol",
    "DualSignatureConfig",
    "ProtocolState",
    "create_protocol",

    # Accounts
    "AccountLike",
    "SeedAccount",

    # Algorithms
    "MLDSAAlgorithm",
    "SignatureType",

    # Components
    "DualKeyDerivation",
    "ECDSASigner",
    "MLDSASigner",
    "MLDSABackend",
    "PlaceholderBackend",

    # Exceptions
    "DualSigError",
    "ValidationError",
    "InvalidSeedError",
    "UnsupportedDataTypeError",
    "ConfigurationError",
    "AlgorithmDisabledError",
    "InvalidSignatureTypeError",
    "InitializationError",
    "NotInitializedError",
    "ProtocolDisposedError",
    "CryptoError",
    "DerivationError",
    "SigningError",

    # Types
    "ECDSASignature",
    "MLDSASignature",
    "DualSignatureResult",
    "DualAddresses",
]


def create_protocol(
    seed: Seed,
    account_index: int = 0,
    address_index: int = 0,
    placeholder: bool = False,
    **kwargs: Any
) -> DualSignatureProtocol:
    """
    Create a dual-signature protocol for a seed.

    Args:
        seed: BIP-39 mnemonic or 16-64 seed bytes
        account_index: BIP-44 account index
        address_index: BIP-44 address index
        placeholder: Use placeholder ML-DSA keys (NOT secure, for testing)
        **kwargs: DualSignatureConfig fields

    Returns:
        Uninitialized protocol instance

    Example:
        >>> protocol = dualsig.create_protocol(mnemonic)
        >>> result = await protocol.dual_sign("hello")
    """
    account = SeedAccount(seed, account_index=account_index, address_index=address_index)
    config = DualSignatureConfig().merge(**kwargs)

    backend: Optional[PlaceholderBackend] = None
    if placeholder:
        backend = PlaceholderBackend(config.mldsa_algorithm)
    return DualSignatureProtocol(account, config=config, backend=backend)
