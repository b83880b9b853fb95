"""
Version helpers for the identity-registry Python SDK.
"""

from __future__ import annotations

# Bump this when publishing
__version__ = "0.1.0"


def version() -> str:
    """Human-friendly version string, e.g. 'idreg-sdk 0.1.0'."""
    return f"idreg-sdk {__version__}"


__all__ = ["__version__", "version"]
