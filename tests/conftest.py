import pytest

from dualsig.account import SeedAccount
from dualsig.constants import MLDSAAlgorithm
from dualsig.crypto.backends import PlaceholderBackend
from dualsig.crypto.derivation import DualKeyDerivation
from dualsig.protocols import DualSignatureProtocol

TEST_MNEMONIC = " ".join(["abandon"] * 11 + ["about"])


@pytest.fixture
def mnemonic():
    return TEST_MNEMONIC


@pytest.fixture
def placeholder_backend():
    return PlaceholderBackend(MLDSAAlgorithm.ML_DSA_65)


@pytest.fixture
def derivation(mnemonic, placeholder_backend):
    engine = DualKeyDerivation(mnemonic, backend=placeholder_backend)
    yield engine
    engine.dispose()


@pytest.fixture
def make_protocol(mnemonic, placeholder_backend):
    created = []

    def factory(account=None, **overrides):
        if account is None:
            account = SeedAccount(mnemonic)
        protocol = DualSignatureProtocol(account, backend=placeholder_backend, **overrides)
        created.append(protocol)
        return protocol

    yield factory
    for protocol in created:
        protocol.dispose()
