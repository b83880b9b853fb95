"""
idreg_sdk.tx.send
=================

Submit signed transactions and await their confirmation.

Primary entry points
--------------------
- submit(endpoint, signed) -> SubmissionHandle
    Exactly one `sendTransaction` call. A signed transaction can be submitted
    once; retrying after a rejection means building a new one.

- ConfirmationPoller(endpoint, interval_s=1.0, max_attempts=30).wait(handle) -> PollResult
    Bounded fixed-interval polling of `getTransaction` until the ledger reports
    SUCCESS or FAILED, or the attempt budget runs out (TIMEOUT).

Polling
-------
A handle whose initial status is already SUCCESS is returned without polling.
PENDING and DUPLICATE (the endpoint already holds this exact envelope) are
polled alike: one sleep, then one query, per attempt. There is no backoff.

`sleep` is injectable so tests can run the full attempt budget instantly.
Cancelling the task awaiting `wait` abandons only this local poll; the
transaction itself may still commit.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from idreg_sdk.errors import SubmissionError
from idreg_sdk.rpc.endpoint import EndpointClient
from idreg_sdk.types.core import (
    PollResult,
    PollStatus,
    SignedTransaction,
    SubmissionHandle,
    SubmitStatus,
    TransactionStatusResponse,
    TxStatus,
)

log = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

DEFAULT_POLL_INTERVAL_S = 1.0
DEFAULT_POLL_MAX_ATTEMPTS = 30


# -----------------------------------------------------------------------------
# Submitter
# -----------------------------------------------------------------------------


async def submit(endpoint: EndpointClient, signed: SignedTransaction) -> SubmissionHandle:
    """
    Submit `signed` once.

    Raises:
        SubmissionError on ledger rejection (ERROR), on TRY_AGAIN_LATER
        (retryable=True; rebuild and resubmit later) and when `signed` was
        already submitted.
    """
    signed.claim_for_submission()
    fn = signed.invocation.function
    resp = await endpoint.send_transaction(signed.to_xdr())
    tx_hash = resp.tx_hash or signed.tx_hash

    if resp.status is SubmitStatus.ERROR:
        log.info("submission of %s rejected tx=%s code=%s", fn, tx_hash, resp.error_result_code)
        raise SubmissionError(
            "transaction rejected by the ledger",
            tx_hash=tx_hash,
            status=resp.status.value,
            result_code=resp.error_result_code,
        )
    if resp.status is SubmitStatus.TRY_AGAIN_LATER:
        log.info("submission of %s deferred by endpoint tx=%s", fn, tx_hash)
        raise SubmissionError(
            "endpoint is not accepting transactions right now; rebuild and resubmit later",
            tx_hash=tx_hash,
            status=resp.status.value,
            retryable=True,
        )

    log.info("submitted %s tx=%s status=%s", fn, tx_hash, resp.status.value)
    return SubmissionHandle(tx_hash=tx_hash, initial_status=resp.status)


# -----------------------------------------------------------------------------
# Confirmation poller
# -----------------------------------------------------------------------------


class ConfirmationPoller:
    """Bounded fixed-interval confirmation polling."""

    def __init__(
        self,
        endpoint: EndpointClient,
        *,
        interval_s: float = DEFAULT_POLL_INTERVAL_S,
        max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS,
        sleep: Optional[Sleep] = None,
    ) -> None:
        if interval_s < 0:
            raise ValueError("interval_s must be >= 0")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.endpoint = endpoint
        self.interval_s = float(interval_s)
        self.max_attempts = int(max_attempts)
        self._sleep: Sleep = sleep or asyncio.sleep

    async def wait(self, handle: SubmissionHandle) -> PollResult:
        if handle.initial_status is SubmitStatus.SUCCESS:
            return PollResult(tx_hash=handle.tx_hash, status=PollStatus.SUCCESS, attempts=0)

        attempts = 0
        last: Optional[TransactionStatusResponse] = None
        while attempts < self.max_attempts:
            await self._sleep(self.interval_s)
            last = await self.endpoint.get_transaction(handle.tx_hash)
            attempts += 1
            log.debug(
                "poll tx=%s attempt=%d/%d status=%s",
                handle.tx_hash,
                attempts,
                self.max_attempts,
                last.status.value,
            )
            if last.status is TxStatus.SUCCESS:
                log.info("confirmed tx=%s after %d poll(s)", handle.tx_hash, attempts)
                return PollResult(handle.tx_hash, PollStatus.SUCCESS, attempts, last)
            if last.status is TxStatus.FAILED:
                log.info("tx=%s failed on ledger (code=%s)", handle.tx_hash, last.result_code)
                return PollResult(handle.tx_hash, PollStatus.FAILED, attempts, last)

        log.info("gave up waiting for tx=%s after %d poll(s)", handle.tx_hash, attempts)
        return PollResult(handle.tx_hash, PollStatus.TIMEOUT, attempts, last)


__all__ = [
    "submit",
    "ConfirmationPoller",
    "DEFAULT_POLL_INTERVAL_S",
    "DEFAULT_POLL_MAX_ATTEMPTS",
]
