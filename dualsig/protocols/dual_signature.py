"""
Dual-signature protocol.

Coordinates an ECDSA (secp256k1) signer and an ML-DSA signer derived from
one seed. The protocol owns the derivation engine and both signers, creates
them once during :meth:`DualSignatureProtocol.initialize` and destroys them
together on :meth:`DualSignatureProtocol.dispose`.

Example:
    >>> account = SeedAccount("abandon abandon ... about")
    >>> async with DualSignatureProtocol(account) as protocol:
    ...     result = await protocol.dual_sign({"test": "data"})
"""

import asyncio
import logging
import time
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from ..account import require_account, resolve_index, resolve_seed
from ..constants import SignatureType
from ..crypto.backends import PQBackend
from ..crypto.derivation import DualKeyDerivation
from ..crypto.ecdsa import ECDSASigner
from ..crypto.mldsa import MLDSASigner
from ..exceptions import (
    AlgorithmDisabledError,
    InitializationError,
    InvalidSeedError,
    InvalidSignatureTypeError,
    NotInitializedError,
    ProtocolDisposedError,
)
from ..protocols.config import DualSignatureConfig, ProtocolState
from ..types.common import Timestamp
from ..types.signature import (
    DualAddresses,
    DualFingerprints,
    DualPublicKeys,
    DualSignatureResult,
    ECDSASignature,
    MLDSASignature,
    SignedTransaction,
)

__all__ = ["DualSignatureProtocol"]

logger = logging.getLogger(__name__)

_ECDSA_OPTIONS = ("hash_message", "add_prefix")
_MLDSA_OPTIONS = ("deterministic", "context")


def _pick(options: Mapping[str, Any], names: Tuple[str, ...]) -> Dict[str, Any]:
    return {name: options[name] for name in names if name in options}


class DualSignatureProtocol:
    """
    ECDSA + ML-DSA signing for one account.

    Both key pairs come from the same seed along separate coin-type paths
    (``m/44'/60'/...`` and ``m/44'/9000'/...``). Either algorithm can be
    disabled in configuration. Address and public key lookups are cached
    per ``(account_index, address_index)``.
    """

    def __init__(
        self,
        account: Any,
        config: Optional[Union[DualSignatureConfig, Mapping[str, Any]]] = None,
        backend: Optional[PQBackend] = None,
        **overrides: Any
    ) -> None:
        """
        Initialize protocol.

        Args:
            account: Account collaborator (see :class:`dualsig.account.AccountLike`)
            config: Configuration object or mapping
            backend: ML-DSA primitive (default: dilithium-py)
            **overrides: Configuration fields overriding ``config``

        Raises:
            ConfigurationError: If the account is missing or the config is invalid
        """
        self._account = require_account(account)

        if config is None:
            config = DualSignatureConfig()
        elif not isinstance(config, DualSignatureConfig):
            config = DualSignatureConfig.from_dict(config)
        self.config = config.merge(**overrides) if overrides else config.validate()

        self._backend = backend
        self._state = ProtocolState.UNINITIALIZED
        self._init_lock = asyncio.Lock()

        self._derivation: Optional[DualKeyDerivation] = None
        self._ecdsa_signer: Optional[ECDSASigner] = None
        self._mldsa_signer: Optional[MLDSASigner] = None
        self._account_index = 0
        self._address_index = 0

        self._address_cache: Dict[Tuple[int, int], DualAddresses] = {}
        self._public_key_cache: Dict[Tuple[int, int], DualPublicKeys] = {}
        self._cache_hits = 0
        self._cache_misses = 0

        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def state(self) -> ProtocolState:
        return self._state

    @property
    def account_index(self) -> int:
        return self._account_index

    @property
    def address_index(self) -> int:
        return self._address_index

    @property
    def cache_stats(self) -> Dict[str, int]:
        """Cache hit/miss counters and current entry counts."""
        return {
            "hits": self._cache_hits,
            "misses": self._cache_misses,
            "addresses": len(self._address_cache),
            "publicKeys": len(self._public_key_cache),
        }

    def is_initialized(self) -> bool:
        """True once initialize() has completed and until dispose()."""
        return self._state is ProtocolState.READY

    # Lifecycle

    async def initialize(self) -> None:
        """
        Derive keys and create the enabled signers.

        A no-op once initialized. Concurrent callers share one initialization.

        Raises:
            InvalidSeedError: If the seed is neither a mnemonic nor 16-64 bytes
            InitializationError: If no seed is available or derivation fails
            ProtocolDisposedError: If the protocol has been disposed
        """
        if self._state is ProtocolState.READY:
            return
        self._check_not_disposed()

        async with self._init_lock:
            if self._state is ProtocolState.READY:
                return
            self._check_not_disposed()

            self._state = ProtocolState.INITIALIZING
            try:
                await self._setup()
            except Exception:
                if self._state is ProtocolState.INITIALIZING:
                    self._state = ProtocolState.UNINITIALIZED
                raise

            self._state = ProtocolState.READY

        self._logger.info(
            f"Dual-signature protocol ready "
            f"(ecdsa={self._ecdsa_signer is not None}, mldsa={self._mldsa_signer is not None}, "
            f"account={self._account_index}, address={self._address_index})"
        )

    async def _setup(self) -> None:
        derivation: Optional[DualKeyDerivation] = None
        ecdsa_signer: Optional[ECDSASigner] = None
        mldsa_signer: Optional[MLDSASigner] = None

        try:
            seed = await resolve_seed(self._account, self.config.seed)
            if seed is None:
                raise InitializationError(
                    "No seed available: set config.seed or provide an account with get_seed()"
                )

            account_index = await resolve_index(
                self._account, "get_account_index", self.config.account_index
            )
            address_index = await resolve_index(
                self._account, "get_address_index", self.config.address_index
            )

            derivation = DualKeyDerivation(
                seed,
                algorithm=self.config.mldsa_algorithm,
                backend=self._backend,
                passphrase=self.config.passphrase,
            )

            if self.config.ecdsa_enabled:
                ecdsa_signer = ECDSASigner(
                    await derivation.derive_ecdsa_key(account_index, address_index)
                )
            if self.config.mldsa_enabled:
                mldsa_signer = MLDSASigner(
                    await derivation.derive_mldsa_key(account_index, address_index)
                )
        except (InvalidSeedError, InitializationError):
            self._release(derivation, ecdsa_signer, mldsa_signer)
            raise
        except Exception as e:
            self._release(derivation, ecdsa_signer, mldsa_signer)
            raise InitializationError(f"Failed to initialize dual-signature protocol: {e}") from e

        if self._state is ProtocolState.DISPOSED:
            # dispose() ran while setup was suspended
            self._release(derivation, ecdsa_signer, mldsa_signer)
            raise ProtocolDisposedError("DualSignatureProtocol was disposed during initialization")

        self._derivation = derivation
        self._ecdsa_signer = ecdsa_signer
        self._mldsa_signer = mldsa_signer
        self._account_index = account_index
        self._address_index = address_index

    def _check_not_disposed(self) -> None:
        if self._state is ProtocolState.DISPOSED:
            raise ProtocolDisposedError("DualSignatureProtocol has been disposed")

    async def _ensure_initialized(self) -> None:
        if self._state is ProtocolState.READY:
            return
        self._check_not_disposed()
        if not self.config.auto_initialize:
            raise NotInitializedError(
                "DualSignatureProtocol not initialized. "
                "Call initialize() first or enable auto_initialize"
            )
        await self.initialize()

    async def _require_ecdsa(self) -> ECDSASigner:
        if not self.config.ecdsa_enabled:
            raise AlgorithmDisabledError("ECDSA")
        await self._ensure_initialized()
        return self._ecdsa_signer

    async def _require_mldsa(self) -> MLDSASigner:
        if not self.config.mldsa_enabled:
            raise AlgorithmDisabledError("ML-DSA")
        await self._ensure_initialized()
        return self._mldsa_signer

    # Signing

    async def sign_with_ecdsa(
        self,
        data: Any,
        hash_message: bool = True,
        add_prefix: bool = False
    ) -> ECDSASignature:
        """
        Sign with the ECDSA signer.

        Args:
            data: Bytes, UTF-8 or 0x-hex string, or JSON-serializable object
            hash_message: Keccak-256 the message before signing
            add_prefix: Prepend the EIP-191 prefix (implies hashing)

        Raises:
            AlgorithmDisabledError: If ECDSA is disabled
            NotInitializedError: If not initialized and auto-init is off
        """
        signer = await self._require_ecdsa()
        return signer.sign(data, hash_message=hash_message, add_prefix=add_prefix)

    async def sign_with_mldsa(
        self,
        data: Any,
        deterministic: bool = True,
        context: Union[bytes, str] = b""
    ) -> MLDSASignature:
        """
        Sign with the ML-DSA signer.

        Check ``placeholder`` on the result before submitting it anywhere
        security-relevant.

        Raises:
            AlgorithmDisabledError: If ML-DSA is disabled
            NotInitializedError: If not initialized and auto-init is off
        """
        signer = await self._require_mldsa()
        # ML-DSA signing is CPU bound
        return await asyncio.to_thread(
            signer.sign, data, deterministic=deterministic, context=context
        )

    async def sign_message_with_ecdsa(self, message: Any) -> ECDSASignature:
        """Sign an EIP-191 personal message."""
        signer = await self._require_ecdsa()
        return signer.sign_message(message)

    async def sign_transaction_with_ecdsa(self, tx: Mapping[str, Any]) -> SignedTransaction:
        """Sign transaction fields with the ECDSA key."""
        signer = await self._require_ecdsa()
        return signer.sign_transaction(tx)

    async def _ecdsa_branch(self, data: Any, **options: Any) -> Optional[ECDSASignature]:
        if self._ecdsa_signer is None:
            return None
        return self._ecdsa_signer.sign(data, **options)

    async def _mldsa_branch(self, data: Any, **options: Any) -> Optional[MLDSASignature]:
        if self._mldsa_signer is None:
            return None
        return await asyncio.to_thread(self._mldsa_signer.sign, data, **options)

    async def dual_sign(
        self,
        data: Any,
        hash_message: bool = True,
        add_prefix: bool = False,
        deterministic: bool = True,
        context: Union[bytes, str] = b"",
    ) -> DualSignatureResult:
        """
        Sign with both algorithms concurrently.

        A disabled algorithm yields None for its branch. A failure in an
        enabled branch raises.

        Args:
            data: Data to sign
            hash_message: ECDSA option, see :meth:`sign_with_ecdsa`
            add_prefix: ECDSA option, see :meth:`sign_with_ecdsa`
            deterministic: ML-DSA option, see :meth:`sign_with_mldsa`
            context: ML-DSA option, see :meth:`sign_with_mldsa`

        Returns:
            Both signatures plus the signed data, timestamp and indices
        """
        await self._ensure_initialized()

        ecdsa_signature, mldsa_signature = await asyncio.gather(
            self._ecdsa_branch(data, hash_message=hash_message, add_prefix=add_prefix),
            self._mldsa_branch(data, deterministic=deterministic, context=context),
        )

        return DualSignatureResult(
            ecdsa=ecdsa_signature,
            mldsa=mldsa_signature,
            data=data,
            timestamp=Timestamp(int(time.time() * 1000)),
            account_index=self._account_index,
            address_index=self._address_index,
        )

    async def sign(
        self,
        data: Any,
        signature_type: Optional[Union[str, SignatureType]] = None,
        **options: Any
    ) -> Union[ECDSASignature, MLDSASignature, DualSignatureResult]:
        """
        Sign in one of the three modes.

        Args:
            data: Data to sign
            signature_type: 'ecdsa', 'mldsa' or 'dual' (default: configured type)
            **options: Options of the selected signing method. Options that
                do not apply to the selected mode are ignored.

        Raises:
            InvalidSignatureTypeError: If the type is unknown
        """
        if signature_type is None:
            signature_type = self.config.default_signature_type
        try:
            mode = SignatureType(signature_type)
        except ValueError as e:
            raise InvalidSignatureTypeError(signature_type) from e

        if mode is SignatureType.ECDSA:
            return await self.sign_with_ecdsa(data, **_pick(options, _ECDSA_OPTIONS))
        if mode is SignatureType.MLDSA:
            return await self.sign_with_mldsa(data, **_pick(options, _MLDSA_OPTIONS))
        return await self.dual_sign(data, **_pick(options, _ECDSA_OPTIONS + _MLDSA_OPTIONS))

    # Verification

    async def verify_ecdsa(
        self,
        data: Any,
        signature: Any,
        public_key: Optional[Union[bytes, str]] = None,
        hash_message: bool = True,
        add_prefix: bool = False,
    ) -> bool:
        """
        Verify an ECDSA signature.

        Returns False for malformed input.

        Raises:
            AlgorithmDisabledError: If ECDSA is disabled
        """
        signer = await self._require_ecdsa()
        return signer.verify(
            data, signature, public_key, hash_message=hash_message, add_prefix=add_prefix
        )

    async def verify_mldsa(
        self,
        data: Any,
        signature: Any,
        public_key: Optional[Union[bytes, str]] = None,
        context: Optional[Union[bytes, str]] = None,
    ) -> bool:
        """
        Verify an ML-DSA signature.

        With placeholder keys this is only a size check. Returns False for
        malformed input.

        Raises:
            AlgorithmDisabledError: If ML-DSA is disabled
        """
        signer = await self._require_mldsa()
        return signer.verify(data, signature, public_key, context=context)

    # Keys and addresses

    def _cache_key(self) -> Tuple[int, int]:
        return (self._account_index, self._address_index)

    async def get_addresses(self) -> DualAddresses:
        """
        Get addresses for both algorithms.

        Cached per (account_index, address_index) until clear_caches().
        """
        await self._ensure_initialized()
        key = self._cache_key()

        cached = self._address_cache.get(key)
        if cached is not None:
            self._cache_hits += 1
            return cached

        self._cache_misses += 1
        ecdsa, mldsa = self._ecdsa_signer, self._mldsa_signer
        addresses = DualAddresses(
            ethereum=ecdsa.get_address() if ecdsa else None,
            ethereum_checksum=ecdsa.get_checksum_address() if ecdsa else None,
            mldsa=mldsa.get_address() if mldsa else None,
            mldsa_formats=mldsa.get_address_formats() if mldsa else None,
        )
        self._address_cache[key] = addresses
        return addresses

    async def get_public_keys(self) -> DualPublicKeys:
        """
        Get public keys for both algorithms.

        Cached per (account_index, address_index) until clear_caches().
        """
        await self._ensure_initialized()
        key = self._cache_key()

        cached = self._public_key_cache.get(key)
        if cached is not None:
            self._cache_hits += 1
            return cached

        self._cache_misses += 1
        public_keys = DualPublicKeys(
            ecdsa=self._ecdsa_signer.get_public_key() if self._ecdsa_signer else None,
            mldsa=self._mldsa_signer.get_public_key() if self._mldsa_signer else None,
        )
        self._public_key_cache[key] = public_keys
        return public_keys

    async def get_fingerprints(self) -> DualFingerprints:
        """Get short public key fingerprints for display and logs."""
        await self._ensure_initialized()
        return DualFingerprints(
            ecdsa=self._ecdsa_signer.get_fingerprint() if self._ecdsa_signer else None,
            mldsa=self._mldsa_signer.get_fingerprint() if self._mldsa_signer else None,
        )

    async def export_public_keys(self) -> Dict[str, Any]:
        """Export public keys for sharing."""
        await self._ensure_initialized()

        exported: Dict[str, Any] = {
            "accountIndex": self._account_index,
            "addressIndex": self._address_index,
            "ecdsa": None,
            "mldsa": None,
        }
        if self._ecdsa_signer:
            public_key = self._ecdsa_signer.get_public_key()
            exported["ecdsa"] = {
                "algorithm": "ECDSA-secp256k1",
                "publicKey": public_key.compressed,
                "publicKeyUncompressed": public_key.uncompressed,
                "fingerprint": self._ecdsa_signer.get_fingerprint(),
                "address": self._ecdsa_signer.get_checksum_address(),
                "path": public_key.path,
            }
        if self._mldsa_signer:
            exported["mldsa"] = self._mldsa_signer.export_public_key()
        return exported

    async def get_info(self) -> Dict[str, Any]:
        """
        Get protocol information for diagnostics.

        Initializes first when ``auto_initialize`` is on and the protocol
        has not been disposed. Otherwise an uninitialized protocol reports
        only its state, config and cache counters. Contains no private key
        material.
        """
        if self._state is not ProtocolState.DISPOSED and self.config.auto_initialize:
            await self._ensure_initialized()

        info: Dict[str, Any] = {
            "state": self._state.value,
            "initialized": self.is_initialized(),
            "config": self.config.to_dict(),
            "cache": self.cache_stats,
        }
        if not self.is_initialized():
            return info

        info.update({
            "accountIndex": self._account_index,
            "addressIndex": self._address_index,
            "paths": self._derivation.get_derivation_paths(
                self._account_index, self._address_index
            ).to_dict(),
            "derivation": self._derivation.get_info(),
            "ecdsa": self._ecdsa_signer.get_info() if self._ecdsa_signer else None,
            "mldsa": self._mldsa_signer.get_info() if self._mldsa_signer else None,
            "addresses": (await self.get_addresses()).to_dict(),
        })
        return info

    def clear_caches(self) -> None:
        """Drop cached addresses and public keys."""
        self._address_cache.clear()
        self._public_key_cache.clear()
        self._logger.debug("Caches cleared")

    # Disposal

    def _release(
        self,
        derivation: Optional[DualKeyDerivation],
        ecdsa_signer: Optional[ECDSASigner],
        mldsa_signer: Optional[MLDSASigner],
    ) -> None:
        for component in (ecdsa_signer, mldsa_signer, derivation):
            if component is None:
                continue
            try:
                component.dispose()
            except Exception as e:
                self._logger.warning(f"Failed to dispose {component.__class__.__name__}: {e}")

    def dispose(self) -> None:
        """
        Zero all key material and release the signers. Idempotent.

        Safe to call in any state. Later calls other than dispose() raise
        ProtocolDisposedError.
        """
        if self._state is ProtocolState.DISPOSED:
            return

        self._release(self._derivation, self._ecdsa_signer, self._mldsa_signer)
        self._derivation = None
        self._ecdsa_signer = None
        self._mldsa_signer = None
        self.clear_caches()
        self._state = ProtocolState.DISPOSED
        self._logger.info("Dual-signature protocol disposed")

    # Context manager support
    async def __aenter__(self) -> "DualSignatureProtocol":
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        self.dispose()

    def __repr__(self) -> str:
        return (
            f"<DualSignatureProtocol state={self._state.value} "
            f"account={self._account_index} address={self._address_index}>"
        )
