"""Encoding and hashing utilities for dual signing."""

import hashlib
import json
from typing import Any, Union

from Crypto.Hash import keccak

from ..exceptions import UnsupportedDataTypeError, ValidationError
from ..types.common import Address, HexStr

__all__ = [
    "hex_to_bytes",
    "keccak256",
    "sha3_256",
    "shake256",
    "data_to_bytes",
    "serialize_json",
    "to_checksum_address",
]


def hex_to_bytes(hex_str: Union[HexStr, str]) -> bytes:
    """
    Convert hex string to bytes.

    Args:
        hex_str: Hex string with or without 0x prefix

    Returns:
        Decoded bytes

    Raises:
        ValidationError: If hex string is invalid
    """
    try:
        # Remove 0x prefix if present
        if isinstance(hex_str, str) and hex_str[:2] in ("0x", "0X"):
            hex_str = hex_str[2:]
        return bytes.fromhex(hex_str)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"Invalid hex string: {hex_str}") from e


def keccak256(data: bytes) -> bytes:
    """Ethereum Keccak-256 (pre-standard SHA3 padding)."""
    return keccak.new(digest_bits=256, data=bytes(data)).digest()


def sha3_256(data: bytes) -> bytes:
    """FIPS 202 SHA3-256."""
    return hashlib.sha3_256(bytes(data)).digest()


def shake256(data: bytes, length: int) -> bytes:
    """FIPS 202 SHAKE256 expanded to ``length`` bytes."""
    return hashlib.shake_256(bytes(data)).digest(length)


def serialize_json(obj: Any) -> bytes:
    """
    Serialize an object to compact, key-sorted UTF-8 JSON.

    Args:
        obj: JSON-serializable object

    Returns:
        JSON bytes

    Raises:
        UnsupportedDataTypeError: If the object cannot be serialized
    """
    try:
        return json.dumps(
            obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False
        ).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise UnsupportedDataTypeError(type(obj)) from e


def data_to_bytes(data: Any) -> bytes:
    """
    Convert signable data to bytes.

    Bytes pass through. Strings starting with ``0x`` are decoded as hex,
    other strings are UTF-8 encoded. Dicts, lists and tuples are serialized
    as JSON.

    Args:
        data: Data to convert

    Returns:
        Message bytes

    Raises:
        UnsupportedDataTypeError: If data is of any other type
        ValidationError: If a 0x string is not valid hex
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        if data[:2] in ("0x", "0X"):
            return hex_to_bytes(data)
        return data.encode("utf-8")
    if isinstance(data, (dict, list, tuple)):
        return serialize_json(data)
    raise UnsupportedDataTypeError(type(data))


def to_checksum_address(address: str) -> Address:
    """
    Apply EIP-55 mixed-case checksum to a hex address.

    Args:
        address: 0x-prefixed 40 hex char address

    Returns:
        Checksummed address
    """
    lower = address.lower()
    if lower.startswith("0x"):
        lower = lower[2:]
    digest = keccak256(lower.encode("ascii")).hex()

    checksummed = "".join(
        char.upper() if int(digest[i], 16) >= 8 else char
        for i, char in enumerate(lower)
    )
    return Address(f"0x{checksummed}")
