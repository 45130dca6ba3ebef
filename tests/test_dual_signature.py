import asyncio
import threading

import pytest

from dualsig import create_protocol
from dualsig.account import SeedAccount
from dualsig.crypto.backends import PlaceholderBackend
from dualsig.exceptions import (
    AlgorithmDisabledError,
    ConfigurationError,
    InitializationError,
    InvalidSeedError,
    InvalidSignatureTypeError,
    NotInitializedError,
    ProtocolDisposedError,
)
from dualsig.protocols import DualSignatureProtocol, ProtocolState
from dualsig.types import DualSignatureResult, ECDSASignature, MLDSASignature


class IndexOnlyAccount:
    async def get_account_index(self):
        return 1

    async def get_address_index(self):
        return 2


class CountingAccount(SeedAccount):
    def __init__(self, seed):
        super().__init__(seed)
        self.seed_calls = 0

    async def get_seed(self):
        self.seed_calls += 1
        await asyncio.sleep(0)
        return await super().get_seed()


def test_account_is_required():
    with pytest.raises(ConfigurationError):
        DualSignatureProtocol(None)


@pytest.mark.asyncio
async def test_paths_scenario(make_protocol):
    protocol = make_protocol()
    await protocol.initialize()
    info = await protocol.get_info()
    assert info["paths"] == {"ecdsa": "m/44'/60'/0'/0/0", "mldsa": "m/44'/9000'/0'/0/0"}


@pytest.mark.asyncio
async def test_signing_scenario(make_protocol):
    protocol = make_protocol(mldsa_algorithm="ML-DSA-65")
    first = await protocol.sign_with_ecdsa("test message")
    second = await protocol.sign_with_ecdsa("test message")
    assert (first.r, first.s, first.v) == (second.r, second.s, second.v)

    pq = await protocol.sign_with_mldsa("test message")
    assert len(pq.signature) == 3309
    assert pq.placeholder


@pytest.mark.asyncio
async def test_dual_sign_scenario(make_protocol):
    protocol = make_protocol()
    result = await protocol.dual_sign({"test": "data"})
    assert isinstance(result, DualSignatureResult)
    assert isinstance(result.ecdsa, ECDSASignature)
    assert isinstance(result.mldsa, MLDSASignature)
    assert isinstance(result.timestamp, int)
    assert result.account_index == 0
    assert result.address_index == 0
    assert result.data == {"test": "data"}
    assert result.is_placeholder

    assert await protocol.verify_ecdsa({"test": "data"}, result.ecdsa)
    assert await protocol.verify_mldsa({"test": "data"}, result.mldsa)
    assert result.to_dict()["accountIndex"] == 0


@pytest.mark.asyncio
async def test_auto_initialize(make_protocol):
    protocol = make_protocol()
    assert protocol.state is ProtocolState.UNINITIALIZED
    assert not protocol.is_initialized()
    await protocol.get_addresses()
    assert protocol.is_initialized()
    assert protocol.state is ProtocolState.READY


@pytest.mark.asyncio
async def test_not_initialized_without_auto_initialize(make_protocol):
    protocol = make_protocol(auto_initialize=False)
    with pytest.raises(NotInitializedError):
        await protocol.sign_with_ecdsa("hello")
    with pytest.raises(NotInitializedError):
        await protocol.get_addresses()

    await protocol.initialize()
    await protocol.initialize()
    assert await protocol.sign_with_ecdsa("hello")


@pytest.mark.asyncio
async def test_concurrent_initialization_runs_once(mnemonic, placeholder_backend):
    account = CountingAccount(mnemonic)
    protocol = DualSignatureProtocol(account, backend=placeholder_backend)
    await asyncio.gather(protocol.initialize(), protocol.initialize(), protocol.get_addresses())
    assert account.seed_calls == 1
    protocol.dispose()


@pytest.mark.asyncio
async def test_missing_seed(make_protocol):
    protocol = make_protocol(account=SeedAccount())
    with pytest.raises(InitializationError):
        await protocol.initialize()
    assert protocol.state is ProtocolState.UNINITIALIZED

    protocol = make_protocol(account=object())
    with pytest.raises(InitializationError):
        await protocol.initialize()


@pytest.mark.asyncio
async def test_invalid_seed_propagates(make_protocol):
    protocol = make_protocol(account=SeedAccount("definitely not a mnemonic"))
    with pytest.raises(InvalidSeedError):
        await protocol.initialize()


@pytest.mark.asyncio
async def test_config_overrides_account(make_protocol, mnemonic):
    protocol = make_protocol(account=IndexOnlyAccount(), seed=mnemonic)
    result = await protocol.dual_sign("hello")
    assert (result.account_index, result.address_index) == (1, 2)

    protocol = make_protocol(
        account=IndexOnlyAccount(), seed=mnemonic, account_index=0, address_index=0
    )
    addresses = await protocol.get_addresses()
    assert addresses.ethereum_checksum == "0x9858EfFD232B4033E47d90003D41EC34EcaEda94"


@pytest.mark.asyncio
async def test_mldsa_disabled(make_protocol):
    protocol = make_protocol(mldsa_enabled=False)
    result = await protocol.dual_sign("hello")
    assert result.ecdsa is not None
    assert result.mldsa is None
    assert not result.is_placeholder

    with pytest.raises(AlgorithmDisabledError):
        await protocol.sign_with_mldsa("hello")
    with pytest.raises(AlgorithmDisabledError):
        await protocol.verify_mldsa("hello", b"\x00" * 3309)

    addresses = await protocol.get_addresses()
    assert addresses.mldsa is None
    assert addresses.ethereum is not None


@pytest.mark.asyncio
async def test_ecdsa_disabled(make_protocol):
    protocol = make_protocol(ecdsa_enabled=False, default_signature_type="mldsa")
    result = await protocol.dual_sign("hello")
    assert result.ecdsa is None
    assert result.mldsa is not None

    assert isinstance(await protocol.sign("hello"), MLDSASignature)
    with pytest.raises(AlgorithmDisabledError):
        await protocol.sign_with_ecdsa("hello")
    with pytest.raises(AlgorithmDisabledError):
        await protocol.sign_message_with_ecdsa("hello")


@pytest.mark.asyncio
async def test_sign_dispatch(make_protocol):
    protocol = make_protocol()
    assert isinstance(await protocol.sign("hello"), ECDSASignature)
    assert isinstance(await protocol.sign("hello", signature_type="mldsa"), MLDSASignature)
    assert isinstance(await protocol.sign("hello", signature_type="dual"), DualSignatureResult)

    prefixed = await protocol.sign("hello", signature_type="ecdsa", add_prefix=True, context=b"x")
    assert prefixed == await protocol.sign_message_with_ecdsa("hello")

    with pytest.raises(InvalidSignatureTypeError):
        await protocol.sign("hello", signature_type="rsa")


@pytest.mark.asyncio
async def test_sign_transaction(make_protocol):
    protocol = make_protocol()
    signed = await protocol.sign_transaction_with_ecdsa({"to": "0x" + "22" * 20, "value": 1})
    assert signed.v in (27, 28)


@pytest.mark.asyncio
async def test_verify_malformed_input(make_protocol):
    protocol = make_protocol()
    assert not await protocol.verify_ecdsa("hello", b"garbage")
    assert not await protocol.verify_ecdsa("hello", None)
    assert not await protocol.verify_mldsa("hello", b"\x00" * 5)


@pytest.mark.asyncio
async def test_address_cache(make_protocol):
    protocol = make_protocol()
    first = await protocol.get_addresses()
    second = await protocol.get_addresses()
    assert first is second
    assert protocol.cache_stats["hits"] == 1
    assert protocol.cache_stats["misses"] == 1

    protocol.clear_caches()
    third = await protocol.get_addresses()
    assert third is not first
    assert third == first
    assert protocol.cache_stats["misses"] == 2


@pytest.mark.asyncio
async def test_public_key_cache(make_protocol):
    protocol = make_protocol()
    first = await protocol.get_public_keys()
    assert await protocol.get_public_keys() is first
    assert first.ecdsa.path == "m/44'/60'/0'/0/0"
    assert first.mldsa.path == "m/44'/9000'/0'/0/0"

    protocol.clear_caches()
    assert await protocol.get_public_keys() is not first


@pytest.mark.asyncio
async def test_fingerprints_and_export(make_protocol):
    protocol = make_protocol()
    fingerprints = await protocol.get_fingerprints()
    assert len(fingerprints.ecdsa) == 16
    assert len(fingerprints.mldsa) == 16

    exported = await protocol.export_public_keys()
    assert exported["ecdsa"]["address"] == "0x9858EfFD232B4033E47d90003D41EC34EcaEda94"
    assert exported["mldsa"]["placeholder"] is True


@pytest.mark.asyncio
async def test_get_info(make_protocol):
    protocol = make_protocol()
    info = await protocol.get_info()
    assert info["initialized"] is True
    assert info["state"] == "ready"
    assert "seed" not in info["config"]
    assert info["ecdsa"]["type"] == "ECDSA"
    assert info["mldsa"]["type"] == "ML-DSA"
    assert info["addresses"]["ethereum"] is not None

    protocol.dispose()
    info = await protocol.get_info()
    assert info["state"] == "disposed"
    assert "addresses" not in info


@pytest.mark.asyncio
async def test_get_info_without_auto_initialize(make_protocol):
    protocol = make_protocol(auto_initialize=False)
    info = await protocol.get_info()
    assert info["initialized"] is False
    assert info["state"] == "uninitialized"
    assert "addresses" not in info
    assert protocol.state is ProtocolState.UNINITIALIZED

    await protocol.initialize()
    info = await protocol.get_info()
    assert info["addresses"]["ethereum"] is not None


@pytest.mark.asyncio
async def test_dispose_is_idempotent(make_protocol):
    protocol = make_protocol()
    protocol.dispose()
    protocol.dispose()
    assert protocol.state is ProtocolState.DISPOSED

    protocol = make_protocol()
    await protocol.get_addresses()
    protocol.dispose()
    protocol.dispose()
    assert not protocol.is_initialized()
    assert protocol.cache_stats["addresses"] == 0


@pytest.mark.asyncio
async def test_calls_after_dispose(make_protocol):
    protocol = make_protocol()
    await protocol.initialize()
    protocol.dispose()
    with pytest.raises(ProtocolDisposedError):
        await protocol.sign_with_ecdsa("hello")
    with pytest.raises(NotInitializedError):
        await protocol.get_addresses()
    with pytest.raises(ProtocolDisposedError):
        await protocol.initialize()


@pytest.mark.asyncio
async def test_context_manager(mnemonic):
    protocol = create_protocol(mnemonic, placeholder=True)
    async with protocol:
        assert protocol.is_initialized()
        assert (await protocol.dual_sign("hello")).is_placeholder
    assert protocol.state is ProtocolState.DISPOSED


@pytest.mark.asyncio
async def test_backend_mismatch_fails_initialization(mnemonic):
    protocol = DualSignatureProtocol(
        SeedAccount(mnemonic),
        backend=PlaceholderBackend("ML-DSA-44"),
        mldsa_algorithm="ML-DSA-87",
    )
    with pytest.raises(InitializationError):
        await protocol.initialize()
    protocol.dispose()


class BlockingAccount(SeedAccount):
    def __init__(self, seed):
        super().__init__(seed)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def get_seed(self):
        self.entered.set()
        await self.release.wait()
        return await super().get_seed()


@pytest.mark.asyncio
async def test_dispose_during_initialization(mnemonic, placeholder_backend):
    account = BlockingAccount(mnemonic)
    protocol = DualSignatureProtocol(account, backend=placeholder_backend)

    task = asyncio.create_task(protocol.initialize())
    await account.entered.wait()
    assert protocol.state is ProtocolState.INITIALIZING

    protocol.dispose()
    account.release.set()
    with pytest.raises(ProtocolDisposedError):
        await task

    assert protocol.is_initialized() is False
    assert protocol.state is ProtocolState.DISPOSED
    with pytest.raises(ProtocolDisposedError):
        await protocol.sign_with_ecdsa("hello")


@pytest.mark.asyncio
async def test_real_backend_dual_sign(mnemonic):
    protocol = DualSignatureProtocol(SeedAccount(mnemonic), mldsa_algorithm="ML-DSA-44")
    try:
        result = await protocol.dual_sign({"test": "data"})
        assert result.mldsa.placeholder is False
        assert not result.is_placeholder
        assert len(result.mldsa.signature) == 2420

        assert await protocol.verify_ecdsa({"test": "data"}, result.ecdsa)
        assert await protocol.verify_mldsa({"test": "data"}, result.mldsa)
        assert not await protocol.verify_mldsa({"test": "other"}, result.mldsa)

        single = await protocol.sign({"test": "data"}, signature_type="mldsa")
        assert isinstance(single, MLDSASignature)
        assert single.placeholder is False
        assert await protocol.verify_mldsa({"test": "data"}, single)

        exported = await protocol.export_public_keys()
        assert exported["mldsa"]["placeholder"] is False
    finally:
        protocol.dispose()


class ThreadRecordingBackend(PlaceholderBackend):
    def __init__(self, algorithm):
        super().__init__(algorithm)
        self.threads = []

    def keygen(self, seed):
        self.threads.append(threading.get_ident())
        return super().keygen(seed)

    def sign(self, key, message, context=b"", deterministic=True):
        self.threads.append(threading.get_ident())
        return super().sign(key, message, context, deterministic)


@pytest.mark.asyncio
async def test_mldsa_work_runs_off_the_event_loop(mnemonic):
    backend = ThreadRecordingBackend("ML-DSA-65")
    protocol = DualSignatureProtocol(SeedAccount(mnemonic), backend=backend)
    loop_thread = threading.get_ident()
    try:
        await protocol.sign_with_mldsa("hello")
        await protocol.dual_sign("hello")
    finally:
        protocol.dispose()

    # keygen, sign_with_mldsa, dual_sign
    assert len(backend.threads) == 3
    assert loop_thread not in backend.threads
