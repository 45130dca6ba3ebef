"""Cryptographic components for dual ECDSA / ML-DSA signing."""

from ..crypto.keys import PrivateKey, PublicKey
from ..crypto.hd import HDNode
from ..crypto.bip39 import mnemonic_to_seed
from ..crypto.backends import PQBackend, MLDSABackend, PlaceholderBackend, get_backend
from ..crypto.derivation import DualKeyDerivation, build_path
from ..crypto.ecdsa import ECDSASigner
from ..crypto.mldsa import MLDSASigner
from ..crypto.signature import (
    serialize_transaction,
    parse_ecdsa_signature,
    encode_der_signature,
)

__all__ = [
    # Keys
    "PrivateKey",
    "PublicKey",
    "HDNode",
    "mnemonic_to_seed",

    # ML-DSA backends
    "PQBackend",
    "MLDSABackend",
    "PlaceholderBackend",
    "get_backend",

    # Derivation and signers
    "DualKeyDerivation",
    "build_path",
    "ECDSASigner",
    "MLDSASigner",

    # Signatures
    "serialize_transaction",
    "parse_ecdsa_signature",
    "encode_der_signature",
]
