"""
idreg_sdk.utils
---------------

Small helpers shared across the SDK:

- bytes : strict hex <-> bytes conversion and document-hash checks
"""

from __future__ import annotations

from .bytes import (  # noqa: F401
    bytes_to_hex,
    document_hash_from_bytes,
    document_hash_to_bytes,
    hex_to_bytes,
    is_document_hash,
)

__all__ = [
    "bytes_to_hex",
    "hex_to_bytes",
    "is_document_hash",
    "document_hash_to_bytes",
    "document_hash_from_bytes",
]
