import pytest

from dualsig.account import SeedAccount, require_account, resolve_index, resolve_seed
from dualsig.constants import MLDSAAlgorithm, SignatureType
from dualsig.exceptions import ConfigurationError, DerivationError, InvalidSignatureTypeError
from dualsig.protocols import DualSignatureConfig


def test_defaults():
    config = DualSignatureConfig().validate()
    assert config.ecdsa_enabled and config.mldsa_enabled
    assert config.default_signature_type is SignatureType.ECDSA
    assert config.mldsa_algorithm is MLDSAAlgorithm.ML_DSA_65
    assert config.auto_initialize
    assert config.seed is None
    assert config.account_index is None and config.address_index is None


def test_validate_normalizes_values():
    config = DualSignatureConfig(mldsa_algorithm="ml_dsa_87", default_signature_type="dual").validate()
    assert config.mldsa_algorithm is MLDSAAlgorithm.ML_DSA_87
    assert config.mldsa_algorithm.params.security_level == 5
    assert config.default_signature_type is SignatureType.DUAL


def test_validate_rejects_bad_values():
    with pytest.raises(ConfigurationError):
        DualSignatureConfig(mldsa_algorithm="ML-DSA-99").validate()
    with pytest.raises(InvalidSignatureTypeError):
        DualSignatureConfig(default_signature_type="classical").validate()
    with pytest.raises(ConfigurationError):
        DualSignatureConfig(account_index=-1).validate()
    with pytest.raises(ConfigurationError):
        DualSignatureConfig(address_index="3").validate()


def test_from_dict_accepts_camel_case():
    config = DualSignatureConfig.from_dict({
        "ecdsaEnabled": False,
        "mldsaAlgorithm": "ML-DSA-44",
        "autoInitialize": False,
        "accountIndex": 2,
    })
    assert config.ecdsa_enabled is False
    assert config.mldsa_algorithm is MLDSAAlgorithm.ML_DSA_44
    assert config.auto_initialize is False
    assert config.account_index == 2
    with pytest.raises(ConfigurationError):
        DualSignatureConfig.from_dict({"unknownOption": True})


def test_to_dict_hides_seed():
    config = DualSignatureConfig(seed="secret words", passphrase="hunter2").validate()
    exported = config.to_dict()
    assert exported["hasSeed"] is True
    assert "secret words" not in repr(exported)
    assert "secret words" not in repr(config)
    assert "hunter2" not in repr(config)


def test_merge_returns_copy():
    base = DualSignatureConfig().validate()
    merged = base.merge(mldsa_enabled=False)
    assert merged.mldsa_enabled is False
    assert base.mldsa_enabled is True


@pytest.mark.asyncio
async def test_seed_resolution_order():
    account = SeedAccount(b"\x01" * 32)
    assert await resolve_seed(account) == b"\x01" * 32
    assert await resolve_seed(account, override="override") == "override"
    assert await resolve_seed(object()) is None


@pytest.mark.asyncio
async def test_index_resolution_order():
    account = SeedAccount(account_index=4, address_index=9)
    assert await resolve_index(account, "get_account_index") == 4
    assert await resolve_index(account, "get_address_index") == 9
    assert await resolve_index(account, "get_account_index", override=1) == 1
    assert await resolve_index(object(), "get_account_index") == 0
    with pytest.raises(DerivationError):
        await resolve_index(account, "get_account_index", override=-5)


def test_seed_account():
    account = SeedAccount("words", account_index=1, label="main")
    assert account.to_dict() == {
        "accountIndex": 1,
        "addressIndex": 0,
        "label": "main",
        "hasSeed": True,
    }
    assert "words" not in repr(account)
    with pytest.raises(DerivationError):
        SeedAccount(account_index=-1)


def test_require_account():
    account = SeedAccount()
    assert require_account(account) is account
    with pytest.raises(ConfigurationError):
        require_account(None)
