"""Signing protocols built on the derived key pairs."""

from ..protocols.config import DualSignatureConfig, ProtocolState
from ..protocols.dual_signature import DualSignatureProtocol

__all__ = [
    "DualSignatureConfig",
    "DualSignatureProtocol",
    "ProtocolState",
]
