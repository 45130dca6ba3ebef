"""Derived key material types."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

from ..constants import ECDSA_CURVE, MLDSAAlgorithm
from ..types.common import DerivationPath

if TYPE_CHECKING:
    from ..crypto.backends import PQBackend

__all__ = [
    "ECDSAKeyMaterial",
    "MLDSAKeyMaterial",
    "DerivedKeys",
    "DerivationPaths",
    "wipe_buffer",
]


def wipe_buffer(buffer: Optional[bytearray]) -> None:
    """Overwrite a mutable buffer with zeros in place."""
    if buffer is None:
        return
    for i in range(len(buffer)):
        buffer[i] = 0


@dataclass
class ECDSAKeyMaterial:
    """secp256k1 key pair derived along the Ethereum coin-type path."""

    private_key: bytearray
    public_key: bytes
    chain_code: bytes
    path: DerivationPath
    account_index: int = 0
    address_index: int = 0
    curve: str = ECDSA_CURVE

    def wipe(self) -> None:
        """Zero the private scalar."""
        wipe_buffer(self.private_key)

    @property
    def is_wiped(self) -> bool:
        return not any(self.private_key)

    def __repr__(self) -> str:
        return f"ECDSAKeyMaterial(path={self.path!r})"


@dataclass
class MLDSAKeyMaterial:
    """
    ML-DSA key pair derived from a 32-byte sub-seed.

    The sub-seed is the first 32 bytes of the private key found at the
    ML-DSA coin-type path. ``placeholder`` is True when the key pair was
    expanded by the placeholder backend rather than a real ML-DSA keygen.
    """

    private_key: bytearray
    public_key: bytes
    seed: bytearray
    path: DerivationPath
    algorithm: MLDSAAlgorithm
    backend: "PQBackend"
    account_index: int = 0
    address_index: int = 0
    placeholder: bool = False

    @property
    def security_level(self) -> int:
        return self.algorithm.params.security_level

    def wipe(self) -> None:
        """Zero the secret key and the sub-seed."""
        wipe_buffer(self.private_key)
        wipe_buffer(self.seed)

    @property
    def is_wiped(self) -> bool:
        return not any(self.private_key) and not any(self.seed)

    def __repr__(self) -> str:
        return (
            f"MLDSAKeyMaterial(path={self.path!r}, algorithm={self.algorithm.value}, "
            f"placeholder={self.placeholder})"
        )


@dataclass
class DerivedKeys:
    """Both key materials for one (account, address) pair."""

    ecdsa: ECDSAKeyMaterial
    mldsa: MLDSAKeyMaterial
    account_index: int
    address_index: int

    def wipe(self) -> None:
        self.ecdsa.wipe()
        self.mldsa.wipe()


@dataclass(frozen=True)
class DerivationPaths:
    """Derivation paths of both key types, for display and auditing."""

    ecdsa: DerivationPath
    mldsa: DerivationPath

    def to_dict(self) -> Dict[str, Any]:
        return {"ecdsa": str(self.ecdsa), "mldsa": str(self.mldsa)}
