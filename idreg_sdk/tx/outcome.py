"""
Outcome classification.

Maps what the pipeline observed into one of four outcomes:

    TxSuccess            committed; decoded return value attached
    TxFailed             committed as failed (or definitively rejected)
    TxTimeout            poll budget exhausted; status unknown
    TxAmbiguousSuccess   endpoint said SUCCESS but its payload was undecodable

The last two carry `Certainty.UNKNOWN`: the caller should check the hash
independently before acting on either.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from idreg_sdk.errors import is_decode_ambiguity
from idreg_sdk.types import scval
from idreg_sdk.types.core import (
    PollResult,
    PollStatus,
    TransactionOutcome,
    TxAmbiguousSuccess,
    TxFailed,
    TxSuccess,
    TxTimeout,
)

log = logging.getLogger(__name__)

AMBIGUOUS_NOTE = "submission likely succeeded; response payload could not be decoded"


def classify_poll(
    result: PollResult, *, decode: Callable[[Any], Any] = scval.to_native
) -> TransactionOutcome:
    if result.status is PollStatus.SUCCESS:
        raw = result.response.return_value if result.response is not None else None
        return TxSuccess(tx_hash=result.tx_hash, return_value=decode(raw))
    if result.status is PollStatus.FAILED:
        code = result.response.result_code if result.response is not None else None
        reason = f"transaction failed on ledger ({code})" if code else "transaction failed on ledger"
        return TxFailed(tx_hash=result.tx_hash, reason=reason, result_code=code)
    return TxTimeout(tx_hash=result.tx_hash, attempts_made=result.attempts)


def classify_exception(exc: BaseException, tx_hash: Optional[str]) -> TxAmbiguousSuccess:
    """
    Turn a decode failure on a SUCCESS response into `TxAmbiguousSuccess`.

    Anything else is re-raised unchanged.
    """
    if not is_decode_ambiguity(exc):
        raise exc
    h = tx_hash or getattr(exc, "tx_hash", None)
    log.warning("ambiguous outcome for tx=%s: %s", h, exc)
    return TxAmbiguousSuccess(tx_hash=h, note=AMBIGUOUS_NOTE)


__all__ = ["classify_poll", "classify_exception", "AMBIGUOUS_NOTE"]
