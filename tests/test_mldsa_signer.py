import pytest
import pytest_asyncio

from dualsig.constants import MLDSAAlgorithm
from dualsig.crypto.derivation import DualKeyDerivation
from dualsig.crypto.mldsa import MLDSASigner
from dualsig.exceptions import CryptoError
from dualsig.utils.encoding import sha3_256


@pytest_asyncio.fixture
async def placeholder_signer(derivation):
    instance = MLDSASigner(await derivation.derive_mldsa_key(0, 0))
    yield instance
    instance.dispose()


@pytest_asyncio.fixture
async def real_signer(mnemonic):
    engine = DualKeyDerivation(mnemonic, algorithm="ML-DSA-44")
    instance = MLDSASigner(await engine.derive_mldsa_key(0, 0))
    yield instance
    instance.dispose()
    engine.dispose()


@pytest.mark.asyncio
async def test_real_sign_verify_roundtrip(real_signer):
    assert real_signer.has_real_implementation()
    signature = real_signer.sign("test message")
    assert not signature.placeholder
    assert len(signature) == MLDSAAlgorithm.ML_DSA_44.params.signature_size
    assert real_signer.verify("test message", signature)
    assert not real_signer.verify("other message", signature)


@pytest.mark.asyncio
async def test_real_context(real_signer):
    signature = real_signer.sign({"test": "data"}, context="app")
    assert signature.context == b"app".hex()
    # Context recorded in the signature is used by default
    assert real_signer.verify({"test": "data"}, signature)
    assert real_signer.verify({"test": "data"}, signature.signature, context=b"app")
    assert not real_signer.verify({"test": "data"}, signature.signature)


@pytest.mark.asyncio
async def test_real_deterministic_signing(real_signer):
    first = real_signer.sign(b"payload")
    second = real_signer.sign(b"payload")
    assert first.signature == second.signature


@pytest.mark.asyncio
async def test_real_verify_never_raises(real_signer):
    assert not real_signer.verify("hello", b"\x00" * 10)
    assert not real_signer.verify("hello", "zz")
    assert not real_signer.verify("hello", None)
    assert not real_signer.verify(3.5, real_signer.sign("hello"))


@pytest.mark.asyncio
async def test_placeholder_signature(placeholder_signer):
    assert not placeholder_signer.has_real_implementation()
    signature = placeholder_signer.sign("test message")
    assert signature.placeholder
    assert len(signature) == 3309
    assert placeholder_signer.get_signature_size() == 3309
    assert placeholder_signer.sign("test message").signature == signature.signature
    assert placeholder_signer.sign("other").signature != signature.signature


@pytest.mark.asyncio
async def test_placeholder_verify_is_size_only(placeholder_signer):
    signature = placeholder_signer.sign("test message")
    assert placeholder_signer.verify("test message", signature)
    # Any bytes of the right size pass
    assert placeholder_signer.verify("anything", b"\x00" * 3309)
    assert not placeholder_signer.verify("test message", signature.signature[:-1])


@pytest.mark.asyncio
async def test_address_and_fingerprint(placeholder_signer):
    public_key = placeholder_signer.get_public_key()
    digest = sha3_256(public_key.public_key)

    address = placeholder_signer.get_address()
    assert address == f"mldsa:{digest[:20].hex()}"
    assert placeholder_signer.get_fingerprint() == digest[:8].hex()

    formats = placeholder_signer.get_address_formats()
    assert formats.standard == address
    assert formats.raw == digest[:20]
    assert formats.full.startswith("mldsa:ml-dsa-65:")
    assert formats.truncated.startswith("mldsa:") and "..." in formats.truncated

    assert public_key.path == "m/44'/9000'/0'/0/0"
    assert public_key.size == 1952
    assert public_key.address == address


@pytest.mark.asyncio
async def test_export_and_info(placeholder_signer):
    exported = placeholder_signer.export_public_key()
    assert exported["algorithm"] == "ML-DSA-65"
    assert exported["placeholder"] is True
    assert exported["securityLevel"] == 3

    info = placeholder_signer.get_info()
    assert info["backend"] == "placeholder"
    assert info["hasRealImplementation"] is False
    assert info["signatureSize"] == 3309


@pytest.mark.asyncio
async def test_dispose(derivation):
    material = await derivation.derive_mldsa_key(0, 1)
    signer = MLDSASigner(material)
    signer.dispose()
    signer.dispose()
    assert signer.is_disposed
    assert material.is_wiped
    with pytest.raises(CryptoError):
        signer.sign("hello")


def test_rejects_missing_material():
    with pytest.raises(CryptoError):
        MLDSASigner(None)
