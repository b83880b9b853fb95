"""
idreg_sdk.tx.build
==================

Builder for single-invocation contract transactions.

    unsigned = await build_unsigned(
        endpoint, "GB...", invocation,
        network_passphrase=cfg.network_passphrase,
        base_fee=cfg.base_fee,
        timeout_s=cfg.tx_timeout,
    )

The builder performs the only account read of the write pipeline: it asks the
endpoint for the source's current sequence number, and the envelope carries
current + 1. A missing account surfaces as `AccountNotFoundError` and is not
retried here.

`build_unsigned_for` takes an already-known `AccountInfo` and performs no I/O.
"""

from __future__ import annotations

import logging

from stellar_sdk import Account, TransactionBuilder

from idreg_sdk.config import BASE_FEE
from idreg_sdk.errors import ArgumentError
from idreg_sdk.rpc.endpoint import EndpointClient
from idreg_sdk.types.core import AccountId, AccountInfo, Invocation, UnsignedTransaction

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30


def build_unsigned_for(
    account: AccountInfo,
    invocation: Invocation,
    *,
    network_passphrase: str,
    base_fee: int = BASE_FEE,
    timeout_s: int = DEFAULT_TIMEOUT_S,
) -> UnsignedTransaction:
    if base_fee <= 0:
        raise ArgumentError(f"base_fee must be positive, got {base_fee}", parameter="base_fee")
    if timeout_s <= 0:
        raise ArgumentError(f"timeout_s must be positive, got {timeout_s}", parameter="timeout_s")

    try:
        builder = TransactionBuilder(
            source_account=Account(account.account_id, account.sequence),
            network_passphrase=network_passphrase,
            base_fee=base_fee,
        )
        builder.append_invoke_contract_function_op(
            contract_id=invocation.contract_id,
            function_name=invocation.function,
            parameters=list(invocation.args),
        )
        envelope = builder.set_timeout(timeout_s).build()
    except ValueError as e:
        # bad strkeys are the only thing stellar_sdk rejects at this point
        raise ArgumentError(str(e), function=invocation.function) from e

    tx = envelope.transaction
    log.debug(
        "built %s on %s source=%s seq=%d",
        invocation.function,
        invocation.contract_id,
        account.account_id,
        tx.sequence,
    )
    return UnsignedTransaction(
        envelope=envelope,
        invocation=invocation,
        source=account.account_id,
        sequence=tx.sequence,
        fee=tx.fee,
        valid_until=tx.preconditions.time_bounds.max_time,
    )


async def build_unsigned(
    endpoint: EndpointClient,
    source: AccountId,
    invocation: Invocation,
    *,
    network_passphrase: str,
    base_fee: int = BASE_FEE,
    timeout_s: int = DEFAULT_TIMEOUT_S,
) -> UnsignedTransaction:
    """Look up `source`'s sequence and build the envelope at sequence + 1."""
    account = await endpoint.get_account(source)
    return build_unsigned_for(
        account,
        invocation,
        network_passphrase=network_passphrase,
        base_fee=base_fee,
        timeout_s=timeout_s,
    )


__all__ = ["build_unsigned", "build_unsigned_for", "DEFAULT_TIMEOUT_S"]
