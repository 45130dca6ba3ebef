"""Account collaborator contract for the dual-signature protocol."""

import logging
from typing import Any, Dict, Optional, Protocol

from .exceptions import ConfigurationError
from .types.common import Seed
from .utils.validation import validate_index

__all__ = ["AccountLike", "SeedAccount", "resolve_seed", "resolve_index", "require_account"]

logger = logging.getLogger(__name__)


class AccountLike(Protocol):
    """
    What the protocol may ask of a wallet account.

    Accounts may implement any subset of these methods. Resolution order
    for each value is: explicit configuration override, then the account
    method, then the default (index 0; there is no default seed).
    """

    async def get_seed(self) -> Optional[Seed]:
        ...

    async def get_account_index(self) -> int:
        ...

    async def get_address_index(self) -> int:
        ...


async def resolve_seed(account: Any, override: Optional[Seed] = None) -> Optional[Seed]:
    """
    Resolve the seed from an override or the account.

    Args:
        account: Account collaborator
        override: Explicit seed from configuration

    Returns:
        Seed, or None when no source provides one
    """
    if override is not None:
        return override

    get_seed = getattr(account, "get_seed", None)
    if get_seed is None:
        return None
    return await get_seed()


async def resolve_index(
    account: Any,
    method: str,
    override: Optional[int] = None,
    default: int = 0
) -> int:
    """
    Resolve an account or address index.

    Args:
        account: Account collaborator
        method: 'get_account_index' or 'get_address_index'
        override: Explicit index from configuration
        default: Value when neither source provides one

    Returns:
        Validated index
    """
    if override is not None:
        return validate_index(override, method[len("get_"):])

    getter = getattr(account, method, None)
    if getter is None:
        return default

    value = await getter()
    if value is None:
        return default
    return validate_index(value, method[len("get_"):])


class SeedAccount:
    """
    Minimal account holding a seed and its indices.

    Useful where no wallet account is at hand, e.g. in tests and scripts.
    """

    def __init__(
        self,
        seed: Optional[Seed] = None,
        account_index: int = 0,
        address_index: int = 0,
        label: Optional[str] = None,
    ) -> None:
        """
        Initialize account.

        Args:
            seed: BIP-39 mnemonic or seed bytes (None for a seedless account)
            account_index: BIP-44 account index
            address_index: BIP-44 address index
            label: Account label
        """
        if isinstance(seed, (bytes, bytearray, memoryview)):
            seed = bytes(seed)
        self._seed = seed
        self._account_index = validate_index(account_index, "account_index")
        self._address_index = validate_index(address_index, "address_index")
        self.label = label

    async def get_seed(self) -> Optional[Seed]:
        """Get the account seed."""
        return self._seed

    async def get_account_index(self) -> int:
        """Get the account index."""
        return self._account_index

    async def get_address_index(self) -> int:
        """Get the address index."""
        return self._address_index

    def to_dict(self) -> Dict[str, Any]:
        """Export account data (without seed)."""
        return {
            "accountIndex": self._account_index,
            "addressIndex": self._address_index,
            "label": self.label,
            "hasSeed": self._seed is not None,
        }

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<SeedAccount account={self._account_index} "
            f"address={self._address_index} label={self.label}>"
        )


def require_account(account: Any) -> Any:
    """Reject a missing account collaborator."""
    if account is None:
        raise ConfigurationError("Account is required for DualSignatureProtocol")
    return account
