from __future__ import annotations

import re
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

DOCUMENT_HASH_BYTES = 32

_HEX_RE = re.compile(r"[0-9a-fA-F]*")
_DOCUMENT_HASH_RE = re.compile(r"[0-9a-fA-F]{64}")


def bytes_to_hex(b: BytesLike) -> str:
    """
    Bytes -> lowercase hex string, no prefix.
    """
    return bytes(b).hex()


def hex_to_bytes(s: str) -> bytes:
    """
    Hex string (no prefix) -> bytes.

    Strict: odd lengths and non-hex characters (a '0x' prefix, whitespace or
    a trailing newline, which `bytes.fromhex` would otherwise skip) raise
    ValueError instead of being truncated or ignored.
    """
    if not isinstance(s, str):
        raise TypeError("hex_to_bytes expects a string")
    if len(s) % 2 != 0:
        raise ValueError("hex string must have even length")
    if not _HEX_RE.fullmatch(s):
        raise ValueError("hex string contains non-hex characters")
    return bytes.fromhex(s)


def is_document_hash(s: object) -> bool:
    """True for a string of exactly 64 hex digits (no prefix)."""
    return isinstance(s, str) and bool(_DOCUMENT_HASH_RE.fullmatch(s))


def document_hash_to_bytes(s: str) -> bytes:
    """
    64-hex-digit document hash -> 32 raw bytes.

    Anything else (prefix, wrong length, non-hex) is rejected.
    """
    if not is_document_hash(s):
        raise ValueError("document hash must be exactly 64 hex digits")
    return bytes.fromhex(s)


def document_hash_from_bytes(b: BytesLike) -> str:
    """32 raw bytes -> 64 lowercase hex characters."""
    raw = bytes(b)
    if len(raw) != DOCUMENT_HASH_BYTES:
        raise ValueError(
            f"document hash must be {DOCUMENT_HASH_BYTES} bytes, got {len(raw)}"
        )
    return raw.hex()


__all__ = [
    "BytesLike",
    "DOCUMENT_HASH_BYTES",
    "bytes_to_hex",
    "hex_to_bytes",
    "is_document_hash",
    "document_hash_to_bytes",
    "document_hash_from_bytes",
]
