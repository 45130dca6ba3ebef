"""Dual-signature exceptions hierarchy."""

from typing import Any, Optional

__all__ = [
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
]


class DualSigError(Exception):
    """Base exception for all dual-signature errors."""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Optional[Any] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ValidationError(DualSigError):
    """Raised when validation fails."""
    pass


class InvalidSeedError(ValidationError):
    """Raised when a seed is neither a BIP-39 mnemonic nor 16-64 seed bytes."""
    pass


class UnsupportedDataTypeError(ValidationError):
    """Raised when data to sign is not bytes, a string or JSON-serializable."""

    def __init__(self, data_type: type, message: Optional[str] = None) -> None:
        if message is None:
            message = f"Unsupported data type for signing: {data_type.__name__}"
        super().__init__(message)
        self.data_type = data_type


class ConfigurationError(DualSigError):
    """Raised when the protocol is constructed or configured incorrectly."""
    pass


class AlgorithmDisabledError(ConfigurationError):
    """Raised when calling a signer that is disabled in configuration."""

    def __init__(self, algorithm: str, message: Optional[str] = None) -> None:
        if message is None:
            message = f"{algorithm} signing is not enabled"
        super().__init__(message)
        self.algorithm = algorithm


class InvalidSignatureTypeError(ConfigurationError):
    """Raised for an unknown signature dispatch type."""

    def __init__(self, signature_type: Any, message: Optional[str] = None) -> None:
        if message is None:
            message = f"Invalid signature type: {signature_type}"
        super().__init__(message)
        self.signature_type = signature_type


class InitializationError(DualSigError):
    """Raised when the protocol cannot be initialized."""
    pass


class NotInitializedError(DualSigError):
    """Raised when the protocol is used before initialize() without auto-init."""
    pass


class ProtocolDisposedError(NotInitializedError):
    """Raised when the protocol is used after dispose()."""
    pass


class CryptoError(DualSigError):
    """Raised when cryptographic operation fails."""
    pass


class DerivationError(CryptoError):
    """Raised when HD derivation yields no usable key."""
    pass


class SigningError(CryptoError):
    """Raised when a signing primitive fails."""
    pass
