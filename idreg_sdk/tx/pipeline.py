"""
idreg_sdk.tx.pipeline
=====================

The two end-to-end paths a contract call takes.

Writes (`submit_invocation`)
    build -> simulate -> sign -> submit -> poll -> classify

    A simulation rejection raises `SimulationError` and nothing is submitted.
    Build, signing and submission errors propagate unchanged. Once a hash is
    known, the result is always a `TransactionOutcome`, except for errors that
    say nothing about the transaction itself (e.g. a broken transport while
    polling), which propagate as well.

Reads (`query`)
    build -> simulate -> decode

    Never signed or submitted. Without an explicit `source`, the envelope is
    built for a throwaway random account at sequence 0, with no account lookup.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from stellar_sdk import Keypair

from idreg_sdk.config import SDKConfig
from idreg_sdk.errors import ResponseDecodeError, SimulationError
from idreg_sdk.rpc.endpoint import EndpointClient
from idreg_sdk.tx.build import build_unsigned, build_unsigned_for
from idreg_sdk.tx.outcome import classify_exception, classify_poll
from idreg_sdk.tx.send import ConfirmationPoller, Sleep, submit
from idreg_sdk.tx.simulate import simulate
from idreg_sdk.types import scval
from idreg_sdk.types.core import (
    AccountId,
    AccountInfo,
    Invocation,
    SimulationFailure,
    SimulationResult,
    SimulationSuccess,
    TransactionOutcome,
    UnsignedTransaction,
)
from idreg_sdk.wallet.signer import public_key_of, sign_transaction

log = logging.getLogger(__name__)

Decoder = Callable[[Any], Any]


def _require_success(sim: SimulationResult, invocation: Invocation) -> SimulationSuccess:
    if isinstance(sim, SimulationFailure):
        raise SimulationError(sim.error, function=invocation.function, events=list(sim.events))
    return sim


async def _build(
    endpoint: EndpointClient,
    source: Optional[AccountId],
    invocation: Invocation,
    cfg: SDKConfig,
) -> UnsignedTransaction:
    kwargs = dict(
        network_passphrase=cfg.network_passphrase,
        base_fee=cfg.base_fee,
        timeout_s=cfg.tx_timeout,
    )
    if source is None:
        throwaway = AccountInfo(account_id=Keypair.random().public_key, sequence=0)
        return build_unsigned_for(throwaway, invocation, **kwargs)
    return await build_unsigned(endpoint, source, invocation, **kwargs)


async def query(
    endpoint: EndpointClient,
    invocation: Invocation,
    *,
    source: Optional[AccountId] = None,
    decode: Decoder = scval.to_native,
    config: Optional[SDKConfig] = None,
) -> Any:
    """Run a read-only invocation through simulation and return its decoded value."""
    cfg = config or SDKConfig()
    unsigned = await _build(endpoint, source, invocation, cfg)
    sim = _require_success(await simulate(endpoint, unsigned), invocation)
    return decode(sim.return_value)


async def submit_invocation(
    endpoint: EndpointClient,
    invocation: Invocation,
    *,
    secret: str,
    source: Optional[AccountId] = None,
    config: Optional[SDKConfig] = None,
    decode: Decoder = scval.to_native,
    sleep: Optional[Sleep] = None,
) -> TransactionOutcome:
    """
    Run a state-changing invocation to a final outcome.

    `source` defaults to the account controlled by `secret`.
    """
    cfg = config or SDKConfig()
    if source is None:
        source = public_key_of(secret)

    unsigned = await _build(endpoint, source, invocation, cfg)
    sim = _require_success(await simulate(endpoint, unsigned), invocation)
    signed = sign_transaction(sim.prepared, secret)
    handle = await submit(endpoint, signed)

    poller = ConfirmationPoller(
        endpoint,
        interval_s=cfg.poll_interval,
        max_attempts=cfg.poll_max_attempts,
        sleep=sleep,
    )
    try:
        result = await poller.wait(handle)
    except ResponseDecodeError as e:
        return classify_exception(e, handle.tx_hash)

    outcome = classify_poll(result, decode=decode)
    log.info("%s tx=%s -> %s", invocation.function, outcome.tx_hash, outcome.kind.value)
    return outcome


__all__ = ["query", "submit_invocation"]
