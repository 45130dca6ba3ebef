"""
Dual key derivation.

Derives an ECDSA (secp256k1) key and an ML-DSA key from one BIP-39 seed
along two BIP-44 paths that differ only in the coin type:

    ECDSA:  m/44'/60'/<account>'/0/<address>
    ML-DSA: m/44'/9000'/<account>'/0/<address>

The ML-DSA key pair is generated from the first 32 bytes of the private
key found at its path.
"""

import asyncio
import hmac
import logging
from typing import Any, Dict, Optional, Union

from ..constants import (
    DEFAULT_MLDSA_ALGORITHM,
    ECDSA_CURVE,
    MLDSA_SEED_LENGTH,
    DerivationNamespace,
    MLDSAAlgorithm,
)
from ..crypto.backends import PQBackend, PlaceholderBackend, get_backend
from ..crypto.bip39 import mnemonic_to_seed
from ..crypto.hd import HDNode
from ..exceptions import DerivationError, InvalidSeedError
from ..types.common import DerivationPath, Seed
from ..types.keys import (
    DerivationPaths,
    DerivedKeys,
    ECDSAKeyMaterial,
    MLDSAKeyMaterial,
    wipe_buffer,
)
from ..utils.validation import validate_index, validate_seed_bytes

__all__ = ["DualKeyDerivation", "build_path"]

logger = logging.getLogger(__name__)


def build_path(
    namespace: Union[str, DerivationNamespace],
    account_index: int = 0,
    address_index: int = 0
) -> DerivationPath:
    """
    Build a BIP-44 path for one key namespace.

    Args:
        namespace: 'ecdsa' or 'mldsa'
        account_index: Hardened account index
        address_index: Address index on the external chain

    Returns:
        Path like m/44'/60'/0'/0/0

    Raises:
        DerivationError: If the namespace or an index is invalid
    """
    try:
        namespace = DerivationNamespace(namespace)
    except ValueError as e:
        raise DerivationError(f"Invalid key type: {namespace}") from e

    validate_index(account_index, "account_index")
    validate_index(address_index, "address_index")
    return DerivationPath(f"{namespace.prefix}/{account_index}'/0/{address_index}")


class DualKeyDerivation:
    """
    Derives both key types from one seed.

    The engine owns a copy of the seed and the BIP-32 master node. Derived
    key material is handed over to the caller, who becomes responsible for
    wiping it. :meth:`dispose` zeroes the seed and master node.
    """

    def __init__(
        self,
        seed: Seed,
        algorithm: Union[str, MLDSAAlgorithm] = DEFAULT_MLDSA_ALGORITHM,
        backend: Optional[PQBackend] = None,
        passphrase: str = "",
    ) -> None:
        """
        Initialize derivation engine.

        The seed is validated lazily, on first derivation.

        Args:
            seed: BIP-39 mnemonic or 16-64 seed bytes
            algorithm: ML-DSA parameter set
            backend: ML-DSA primitive (default: dilithium-py)
            passphrase: BIP-39 passphrase for mnemonic seeds
        """
        self.algorithm = MLDSAAlgorithm.from_value(algorithm)
        self._backend = backend or get_backend(self.algorithm)
        if self._backend.algorithm is not self.algorithm:
            raise DerivationError(
                f"Backend is for {self._backend.algorithm.value}, "
                f"engine is for {self.algorithm.value}"
            )

        if isinstance(seed, (bytes, bytearray, memoryview)):
            self._seed: Optional[Union[str, bytearray]] = bytearray(seed)
        else:
            self._seed = seed
        self._passphrase = passphrase
        self._master_seed: Optional[bytearray] = None
        self._master_node: Optional[HDNode] = None
        self._initialized = False
        self._disposed = False
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def backend(self) -> PQBackend:
        return self._backend

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def _initialize(self) -> None:
        """Build the master node from the seed."""
        if self._initialized:
            return
        if self._disposed:
            raise DerivationError("Key derivation has been disposed")

        if isinstance(self._seed, str):
            master_seed = bytearray(mnemonic_to_seed(self._seed, self._passphrase))
        elif isinstance(self._seed, bytearray):
            master_seed = validate_seed_bytes(self._seed)
        else:
            raise InvalidSeedError(
                "Seed must be a BIP-39 mnemonic string or seed bytes",
                data=type(self._seed).__name__,
            )

        self._master_node = HDNode.from_seed(master_seed)
        self._master_seed = master_seed
        self._initialized = True
        self._logger.debug("Master key initialized")

    def _derive_node(self, path: DerivationPath) -> HDNode:
        self._initialize()
        node = self._master_node.derive_path(path)
        if node.private_key is None or not any(node.private_key):
            node.wipe()
            raise DerivationError(f"Failed to derive private key at {path}")
        return node

    async def derive_ecdsa_key(
        self,
        account_index: int = 0,
        address_index: int = 0
    ) -> ECDSAKeyMaterial:
        """
        Derive the secp256k1 key pair.

        Args:
            account_index: Account index
            address_index: Address index

        Returns:
            ECDSA key material (caller owns and must wipe it)

        Raises:
            InvalidSeedError: If the seed is not recognized
            DerivationError: If no valid private key results
        """
        path = build_path(DerivationNamespace.ECDSA, account_index, address_index)
        node = self._derive_node(path)
        try:
            return ECDSAKeyMaterial(
                private_key=bytearray(node.private_key),
                public_key=node.public_key,
                chain_code=bytes(node.chain_code),
                path=path,
                account_index=account_index,
                address_index=address_index,
            )
        finally:
            node.wipe()

    async def derive_mldsa_key(
        self,
        account_index: int = 0,
        address_index: int = 0
    ) -> MLDSAKeyMaterial:
        """
        Derive the ML-DSA key pair.

        Falls back to the placeholder backend if the configured backend
        fails to generate keys. The returned material is then flagged
        ``placeholder``.

        Args:
            account_index: Account index
            address_index: Address index

        Returns:
            ML-DSA key material (caller owns and must wipe it)

        Raises:
            InvalidSeedError: If the seed is not recognized
            DerivationError: If no valid private key results
        """
        path = build_path(DerivationNamespace.MLDSA, account_index, address_index)
        node = self._derive_node(path)
        try:
            sub_seed = bytearray(node.private_key[:MLDSA_SEED_LENGTH])
        finally:
            node.wipe()

        backend = self._backend
        try:
            # Key generation is CPU bound
            public_key, secret_key = await asyncio.to_thread(backend.keygen, bytes(sub_seed))
        except Exception as e:
            self._logger.warning(
                f"{backend.name} keygen failed for {self.algorithm.value}, "
                f"using placeholder keys: {e}"
            )
            backend = PlaceholderBackend(self.algorithm)
            public_key, secret_key = await asyncio.to_thread(backend.keygen, bytes(sub_seed))

        return MLDSAKeyMaterial(
            private_key=bytearray(secret_key),
            public_key=bytes(public_key),
            seed=sub_seed,
            path=path,
            algorithm=self.algorithm,
            backend=backend,
            account_index=account_index,
            address_index=address_index,
            placeholder=backend.is_placeholder,
        )

    async def derive_both_keys(
        self,
        account_index: int = 0,
        address_index: int = 0
    ) -> DerivedKeys:
        """Derive both key pairs for the same account and address."""
        ecdsa_key, mldsa_key = await asyncio.gather(
            self.derive_ecdsa_key(account_index, address_index),
            self.derive_mldsa_key(account_index, address_index),
        )
        return DerivedKeys(
            ecdsa=ecdsa_key,
            mldsa=mldsa_key,
            account_index=account_index,
            address_index=address_index,
        )

    def get_derivation_paths(
        self,
        account_index: int = 0,
        address_index: int = 0
    ) -> DerivationPaths:
        """Get derivation paths for both key types. Pure."""
        return DerivationPaths(
            ecdsa=build_path(DerivationNamespace.ECDSA, account_index, address_index),
            mldsa=build_path(DerivationNamespace.MLDSA, account_index, address_index),
        )

    async def validate_determinism(
        self,
        account_index: int = 0,
        address_index: int = 0
    ) -> bool:
        """
        Derive both keys twice and compare them byte for byte.

        ML-DSA keys are compared at the sub-seed level, and at the key level
        when both derivations used a real backend.
        """
        first = await self.derive_both_keys(account_index, address_index)
        second = await self.derive_both_keys(account_index, address_index)
        try:
            ecdsa_match = (
                hmac.compare_digest(bytes(first.ecdsa.private_key), bytes(second.ecdsa.private_key))
                and first.ecdsa.public_key == second.ecdsa.public_key
            )
            mldsa_match = hmac.compare_digest(bytes(first.mldsa.seed), bytes(second.mldsa.seed))
            if not first.mldsa.placeholder and not second.mldsa.placeholder:
                mldsa_match = mldsa_match and (
                    first.mldsa.public_key == second.mldsa.public_key
                    and hmac.compare_digest(
                        bytes(first.mldsa.private_key), bytes(second.mldsa.private_key)
                    )
                )
            return ecdsa_match and mldsa_match
        finally:
            first.wipe()
            second.wipe()

    def get_info(self) -> Dict[str, Any]:
        """Get information about the derivation setup."""
        return {
            "initialized": self._initialized,
            "paths": {
                namespace.value: {"coinType": namespace.coin_type, "prefix": namespace.prefix}
                for namespace in DerivationNamespace
            },
            "ecdsaCurve": ECDSA_CURVE,
            "mldsaAlgorithm": self.algorithm.value,
            "mldsaSecurityLevel": self.algorithm.params.security_level,
            "mldsaBackend": self._backend.name,
        }

    def dispose(self) -> None:
        """Zero the master key and seed bytes. Idempotent."""
        if self._master_node is not None:
            self._master_node.wipe()
            self._master_node = None

        wipe_buffer(self._master_seed)
        self._master_seed = None

        if isinstance(self._seed, bytearray):
            wipe_buffer(self._seed)
        self._seed = None
        self._passphrase = ""

        self._initialized = False
        self._disposed = True

    def __repr__(self) -> str:
        return (
            f"<DualKeyDerivation algorithm={self.algorithm.value} "
            f"initialized={self._initialized}>"
        )
