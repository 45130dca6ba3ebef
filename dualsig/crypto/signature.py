"""Signature encoding utilities for Ethereum-style ECDSA."""

from typing import Any, Dict, Mapping, Optional, Tuple, Union

from ..constants import ETH_MESSAGE_PREFIX, RECOVERY_BASE
from ..exceptions import CryptoError
from ..utils.encoding import hex_to_bytes, serialize_json

__all__ = [
    "personal_message_bytes",
    "serialize_transaction",
    "parse_ecdsa_signature",
    "encode_der_signature",
]

DEFAULT_GAS_LIMIT = 21000
DEFAULT_CHAIN_ID = 1


def personal_message_bytes(message: bytes) -> bytes:
    """
    Prepend the EIP-191 personal message prefix.

    Args:
        message: Message bytes

    Returns:
        ``"\\x19Ethereum Signed Message:\\n" + len(message) + message``
    """
    prefix = f"{ETH_MESSAGE_PREFIX}{len(message)}".encode("utf-8")
    return prefix + message


def serialize_transaction(tx: Mapping[str, Any]) -> bytes:
    """
    Deterministically serialize a transaction-shaped mapping.

    This is a JSON field list, not RLP. Chain-specific encoding belongs to
    the wallet layer.

    Args:
        tx: Transaction fields (nonce, gasPrice, gasLimit/gas, to, value,
            data, chainId)

    Returns:
        Serialized bytes
    """
    fields = [
        tx.get("nonce") or 0,
        tx.get("gasPrice") or 0,
        tx.get("gasLimit") or tx.get("gas") or DEFAULT_GAS_LIMIT,
        tx.get("to") or "",
        tx.get("value") or 0,
        tx.get("data") or "0x",
        tx.get("chainId") or DEFAULT_CHAIN_ID,
    ]
    return serialize_json(fields)


def parse_ecdsa_signature(
    signature: Union[Mapping[str, Any], str, bytes, bytearray, Any]
) -> Tuple[int, int, Optional[int]]:
    """
    Normalize the accepted signature shapes to (r, s, recovery).

    Accepts an object or mapping with ``r``/``s`` (and optional ``v`` or
    ``recovery``), or a hex string / bytes of 64 (compact) or 65
    (r||s||v) bytes.

    Returns:
        Tuple of (r, s, recovery) where recovery may be None

    Raises:
        CryptoError: If the signature cannot be parsed
    """
    try:
        if isinstance(signature, Mapping):
            fields: Dict[str, Any] = dict(signature)
        elif hasattr(signature, "r") and hasattr(signature, "s"):
            fields = {
                "r": signature.r,
                "s": signature.s,
                "v": getattr(signature, "v", None),
                "recovery": getattr(signature, "recovery", None),
            }
        else:
            fields = {}

        if fields:
            r = _to_int(fields["r"])
            s = _to_int(fields["s"])
            recovery = fields.get("recovery")
            if recovery is None and fields.get("v") is not None:
                recovery = _normalize_v(int(fields["v"]))
            return r, s, recovery

        if isinstance(signature, str):
            raw = hex_to_bytes(signature)
        elif isinstance(signature, (bytes, bytearray)):
            raw = bytes(signature)
        else:
            raise ValueError(f"unsupported signature type {type(signature).__name__}")

        if len(raw) == 64:
            return int.from_bytes(raw[:32], "big"), int.from_bytes(raw[32:], "big"), None
        if len(raw) == 65:
            return (
                int.from_bytes(raw[:32], "big"),
                int.from_bytes(raw[32:64], "big"),
                _normalize_v(raw[64]),
            )
        raise ValueError(f"signature must be 64 or 65 bytes, got {len(raw)}")

    except CryptoError:
        raise
    except Exception as e:
        raise CryptoError(f"Invalid ECDSA signature: {e}") from e


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    return int.from_bytes(hex_to_bytes(str(value)), "big")


def _normalize_v(v: int) -> int:
    if v >= RECOVERY_BASE:
        return (v - RECOVERY_BASE) % 2
    return v


def encode_der_signature(r: int, s: int) -> bytes:
    """
    Encode signature as DER.

    Args:
        r: Signature r value
        s: Signature s value

    Returns:
        DER-encoded signature
    """
    def _encode_int(value: int) -> bytes:
        data = value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")
        if data[0] & 0x80:
            data = b"\x00" + data
        return b"\x02" + bytes([len(data)]) + data

    # Combine into sequence
    sequence = _encode_int(r) + _encode_int(s)
    return b"\x30" + bytes([len(sequence)]) + sequence
