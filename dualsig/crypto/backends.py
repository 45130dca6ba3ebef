"""
ML-DSA primitive backends.

The derivation engine and ML-DSA signer never call a post-quantum library
directly. They go through a :class:`PQBackend` chosen at construction time:

- :class:`MLDSABackend` delegates to ``dilithium-py`` (FIPS 204).
- :class:`PlaceholderBackend` produces deterministic filler keys and
  signatures of the correct sizes. It exists so the signing pipeline stays
  usable where the real primitive fails, and it is NOT cryptographically
  secure. Every key and signature it produces is flagged ``placeholder``.
"""

import logging
from abc import ABC, abstractmethod
from typing import Tuple, Union

from dilithium_py.ml_dsa import ML_DSA_44, ML_DSA_65, ML_DSA_87

from ..constants import MLDSA_SEED_LENGTH, MLDSAAlgorithm, MLDSAParams
from ..types.keys import MLDSAKeyMaterial
from ..utils.encoding import sha3_256, shake256

__all__ = ["PQBackend", "MLDSABackend", "PlaceholderBackend", "get_backend"]

logger = logging.getLogger(__name__)

_IMPLEMENTATIONS = {
    MLDSAAlgorithm.ML_DSA_44: ML_DSA_44,
    MLDSAAlgorithm.ML_DSA_65: ML_DSA_65,
    MLDSAAlgorithm.ML_DSA_87: ML_DSA_87,
}

MAX_CONTEXT_LENGTH = 255


class PQBackend(ABC):
    """
    Interface of a post-quantum signature primitive.

    All implementations work on one ML-DSA parameter set and expose the
    same operations, so callers can swap them without branching.
    """

    name: str = "abstract"
    is_placeholder: bool = False

    def __init__(self, algorithm: Union[str, MLDSAAlgorithm]) -> None:
        """
        Initialize backend.

        Args:
            algorithm: ML-DSA parameter set
        """
        self.algorithm = MLDSAAlgorithm.from_value(algorithm)
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def params(self) -> MLDSAParams:
        return self.algorithm.params

    @property
    def has_real_implementation(self) -> bool:
        return not self.is_placeholder

    @abstractmethod
    def keygen(self, seed: bytes) -> Tuple[bytes, bytes]:
        """
        Deterministically generate a key pair.

        Args:
            seed: 32-byte sub-seed

        Returns:
            Tuple of (public_key, secret_key)
        """
        raise NotImplementedError

    @abstractmethod
    def sign(
        self,
        key: MLDSAKeyMaterial,
        message: bytes,
        context: bytes = b"",
        deterministic: bool = True,
    ) -> bytes:
        """
        Sign a message.

        Args:
            key: Key material produced by this backend's keygen
            message: Message bytes
            context: FIPS 204 context string (at most 255 bytes)
            deterministic: Use the deterministic signing variant

        Returns:
            Signature bytes of ``params.signature_size`` length
        """
        raise NotImplementedError

    @abstractmethod
    def verify(
        self,
        public_key: bytes,
        message: bytes,
        signature: bytes,
        context: bytes = b"",
    ) -> bool:
        """Verify a signature. Never raises."""
        raise NotImplementedError

    def _check_seed(self, seed: bytes) -> bytes:
        if len(seed) != MLDSA_SEED_LENGTH:
            raise ValueError(f"ML-DSA seed must be {MLDSA_SEED_LENGTH} bytes, got {len(seed)}")
        return bytes(seed)

    def _check_context(self, context: bytes) -> bytes:
        if len(context) > MAX_CONTEXT_LENGTH:
            raise ValueError(f"Context must be at most {MAX_CONTEXT_LENGTH} bytes")
        return bytes(context)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(algorithm={self.algorithm.value})"


class MLDSABackend(PQBackend):
    """FIPS 204 ML-DSA via dilithium-py."""

    name = "dilithium-py"
    is_placeholder = False

    def __init__(self, algorithm: Union[str, MLDSAAlgorithm]) -> None:
        super().__init__(algorithm)
        self._impl = _IMPLEMENTATIONS[self.algorithm]

    def keygen(self, seed: bytes) -> Tuple[bytes, bytes]:
        public_key, secret_key = self._impl.key_derive(self._check_seed(seed))
        return public_key, secret_key

    def sign(
        self,
        key: MLDSAKeyMaterial,
        message: bytes,
        context: bytes = b"",
        deterministic: bool = True,
    ) -> bytes:
        return self._impl.sign(
            bytes(key.private_key),
            bytes(message),
            ctx=self._check_context(context),
            deterministic=deterministic,
        )

    def verify(
        self,
        public_key: bytes,
        message: bytes,
        signature: bytes,
        context: bytes = b"",
    ) -> bool:
        try:
            return bool(self._impl.verify(
                bytes(public_key),
                bytes(message),
                bytes(signature),
                ctx=self._check_context(context),
            ))
        except Exception as e:
            self._logger.debug(f"ML-DSA verification rejected input: {e}")
            return False


class PlaceholderBackend(PQBackend):
    """
    Deterministic stand-in for ML-DSA. NOT secure.

    Keys are SHAKE-256 expansions of the sub-seed. Signatures are
    SHAKE-256 expansions of SHA3-256(H(message) || H(seed) || context).
    Verification only checks the signature length, so it accepts any byte
    string of the right size. Never accept placeholder signatures for
    anything security relevant.
    """

    name = "placeholder"
    is_placeholder = True

    def keygen(self, seed: bytes) -> Tuple[bytes, bytes]:
        seed = self._check_seed(seed)
        secret_key = shake256(seed + b"\x00", self.params.private_key_size)
        public_key = shake256(seed + b"\x01", self.params.public_key_size)
        return public_key, secret_key

    def sign(
        self,
        key: MLDSAKeyMaterial,
        message: bytes,
        context: bytes = b"",
        deterministic: bool = True,
    ) -> bytes:
        # Output is deterministic whatever ``deterministic`` says
        self._logger.warning(
            f"Using placeholder {self.algorithm.value} signature. NOT secure for production!"
        )
        combined = sha3_256(
            sha3_256(message) + sha3_256(bytes(key.seed)) + self._check_context(context)
        )
        return shake256(combined, self.params.signature_size)

    def verify(
        self,
        public_key: bytes,
        message: bytes,
        signature: bytes,
        context: bytes = b"",
    ) -> bool:
        self._logger.warning(
            "Placeholder ML-DSA verification only checks signature size"
        )
        try:
            return len(signature) == self.params.signature_size
        except TypeError:
            return False


def get_backend(
    algorithm: Union[str, MLDSAAlgorithm],
    placeholder: bool = False
) -> PQBackend:
    """
    Create an ML-DSA backend.

    Args:
        algorithm: ML-DSA parameter set
        placeholder: Return the placeholder backend

    Returns:
        Backend instance
    """
    if placeholder:
        return PlaceholderBackend(algorithm)
    return MLDSABackend(algorithm)
