"""
idreg_sdk.types
---------------

- core  : pipeline dataclasses (invocations, transaction stages, endpoint
          responses, outcomes) and the contract's record types
- scval : typed argument encoders and contract value decoders
"""

from __future__ import annotations

from . import scval as scval  # noqa: F401
from .core import (  # noqa: F401
    AccessPermission,
    AccountInfo,
    Certainty,
    IdentityRecord,
    Invocation,
    OutcomeKind,
    TransactionOutcome,
    TxAmbiguousSuccess,
    TxFailed,
    TxSuccess,
    TxTimeout,
)

__all__ = [
    "scval",
    "AccessPermission",
    "AccountInfo",
    "Certainty",
    "IdentityRecord",
    "Invocation",
    "OutcomeKind",
    "TransactionOutcome",
    "TxAmbiguousSuccess",
    "TxFailed",
    "TxSuccess",
    "TxTimeout",
]
