"""Configuration for the dual-signature protocol."""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from ..constants import DEFAULT_MLDSA_ALGORITHM, MLDSAAlgorithm, SignatureType
from ..exceptions import ConfigurationError, InvalidSignatureTypeError
from ..types.common import Seed

__all__ = ["DualSignatureConfig", "ProtocolState"]


class ProtocolState(str, Enum):
    """Lifecycle states of a DualSignatureProtocol."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    DISPOSED = "disposed"


# camelCase keys accepted by from_dict()
_ALIASES = {
    "ecdsaEnabled": "ecdsa_enabled",
    "mldsaEnabled": "mldsa_enabled",
    "defaultSignatureType": "default_signature_type",
    "mldsaAlgorithm": "mldsa_algorithm",
    "autoInitialize": "auto_initialize",
    "accountIndex": "account_index",
    "addressIndex": "address_index",
}


@dataclass
class DualSignatureConfig:
    """
    Protocol configuration.

    Attributes:
        ecdsa_enabled: Create the secp256k1 signer
        mldsa_enabled: Create the ML-DSA signer
        default_signature_type: Mode used by ``sign()`` without an explicit type
        mldsa_algorithm: ML-DSA parameter set
        auto_initialize: Initialize on first use instead of raising
        seed: Seed override (takes precedence over the account's seed)
        account_index: Account index override
        address_index: Address index override
        passphrase: BIP-39 passphrase for mnemonic seeds
    """

    ecdsa_enabled: bool = True
    mldsa_enabled: bool = True
    default_signature_type: Union[str, SignatureType] = SignatureType.ECDSA
    mldsa_algorithm: Union[str, MLDSAAlgorithm] = DEFAULT_MLDSA_ALGORITHM
    auto_initialize: bool = True
    seed: Optional[Seed] = field(default=None, repr=False)
    account_index: Optional[int] = None
    address_index: Optional[int] = None
    passphrase: str = field(default="", repr=False)

    def validate(self) -> "DualSignatureConfig":
        """
        Normalize enum fields and check values.

        Returns:
            self, for chaining

        Raises:
            ConfigurationError: If the algorithm or an index is invalid
            InvalidSignatureTypeError: If the default signature type is unknown
        """
        try:
            self.mldsa_algorithm = MLDSAAlgorithm.from_value(self.mldsa_algorithm)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        try:
            self.default_signature_type = SignatureType(self.default_signature_type)
        except ValueError as e:
            raise InvalidSignatureTypeError(self.default_signature_type) from e

        for name in ("account_index", "address_index"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigurationError(f"{name} must be a non-negative integer, got {value!r}")

        return self

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DualSignatureConfig":
        """
        Build a config from snake_case or camelCase keys.

        Raises:
            ConfigurationError: If a key is unknown
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown configuration option: {key}")
            kwargs[name] = value
        return cls(**kwargs).validate()

    def merge(self, **overrides: Any) -> "DualSignatureConfig":
        """Return a validated copy with the given fields replaced."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data.update(overrides)
        return DualSignatureConfig.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration. The seed and passphrase are never included."""
        return {
            "ecdsaEnabled": self.ecdsa_enabled,
            "mldsaEnabled": self.mldsa_enabled,
            "defaultSignatureType": SignatureType(self.default_signature_type).value,
            "mldsaAlgorithm": MLDSAAlgorithm.from_value(self.mldsa_algorithm).value,
            "autoInitialize": self.auto_initialize,
            "accountIndex": self.account_index,
            "addressIndex": self.address_index,
            "hasSeed": self.seed is not None,
        }
