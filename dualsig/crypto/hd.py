"""Hierarchical Deterministic key derivation (BIP32)."""

import hashlib
import hmac
from typing import Optional, Union

from ..constants import HARDENED_OFFSET, MAX_SEED_LENGTH, MIN_SEED_LENGTH, SECP256K1_ORDER
from ..crypto.keys import PrivateKey
from ..exceptions import DerivationError
from ..types.keys import wipe_buffer

N = SECP256K1_ORDER


def _public_key_of(secret: bytearray) -> bytes:
    key = PrivateKey(secret)
    try:
        return key.public_key(compressed=True).compressed
    finally:
        key.wipe()


class HDNode:
    """HD wallet node (BIP32)."""

    def __init__(
        self,
        private_key: Optional[Union[bytes, bytearray]],
        public_key: bytes,
        chain_code: Union[bytes, bytearray],
    ):
        self.private_key = bytearray(private_key) if private_key is not None else None
        self.public_key = public_key
        self.chain_code = bytearray(chain_code)

    @classmethod
    def from_seed(cls, seed: Union[bytes, bytearray]) -> "HDNode":
        """Create master node from seed."""
        if len(seed) < MIN_SEED_LENGTH or len(seed) > MAX_SEED_LENGTH:
            raise ValueError("Seed must be between 16 and 64 bytes")

        h = bytearray(hmac.new(b"Bitcoin seed", seed, hashlib.sha512).digest())
        private_key = h[:32]
        chain_code = h[32:]

        try:
            key_int = int.from_bytes(private_key, 'big')
            if key_int == 0 or key_int >= N:
                raise DerivationError("Invalid master key")

            return cls(
                private_key=private_key,
                public_key=_public_key_of(private_key),
                chain_code=chain_code,
            )
        finally:
            # The node holds its own copies
            wipe_buffer(h)
            wipe_buffer(private_key)
            wipe_buffer(chain_code)

    def derive(self, index: int) -> "HDNode":
        """Derive child node."""
        if self.private_key is None:
            raise DerivationError("Cannot derive from a node without private key")

        if index >= HARDENED_OFFSET:
            data = bytearray(37)
            data[1:33] = self.private_key
            data[33:] = index.to_bytes(4, 'big')
        else:
            data = bytearray(self.public_key) + index.to_bytes(4, 'big')

        h = bytearray(hmac.new(self.chain_code, data, hashlib.sha512).digest())
        child_private_key = bytearray(32)
        chain_code = h[32:]

        try:
            child_key_int = int.from_bytes(h[:32], 'big')
            parent_key_int = int.from_bytes(self.private_key, 'big')
            child_private_int = (parent_key_int + child_key_int) % N

            # BIP32: skip to the next index when the child is invalid
            if child_key_int >= N or child_private_int == 0:
                return self.derive(index + 1)

            child_private_key[:] = child_private_int.to_bytes(32, 'big')
            return HDNode(
                private_key=child_private_key,
                public_key=_public_key_of(child_private_key),
                chain_code=chain_code,
            )
        finally:
            wipe_buffer(data)
            wipe_buffer(h)
            wipe_buffer(child_private_key)
            wipe_buffer(chain_code)

    def derive_path(self, path: str) -> "HDNode":
        """Derive using BIP32 path like m/44'/60'/0'/0/0."""
        if not path or path in ('m', 'M'):
            return self

        if path.startswith('m/') or path.startswith('M/'):
            path = path[2:]

        node = self
        for component in path.split('/'):
            if not component:
                continue

            try:
                if component.endswith("'") or component.endswith("h"):
                    index = int(component[:-1]) + HARDENED_OFFSET
                else:
                    index = int(component)
            except ValueError as e:
                raise DerivationError(f"Invalid path component: {component!r}") from e

            child = node.derive(index)
            # Intermediate nodes are not handed out
            if node is not self:
                node.wipe()
            node = child

        return node

    def wipe(self) -> None:
        """Zero private key and chain code."""
        wipe_buffer(self.private_key)
        wipe_buffer(self.chain_code)
        self.private_key = None

    @property
    def is_wiped(self) -> bool:
        return self.private_key is None

    def __repr__(self) -> str:
        return f"HDNode(wiped={self.is_wiped})"
