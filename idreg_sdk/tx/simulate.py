"""
Simulate an unsigned transaction and assemble the submittable envelope.

Simulation is the one place a contract-level rejection (authorization,
arguments, business rules) is detected before any state changes. Its
diagnostic is returned verbatim in a `SimulationFailure`; nothing here
retries.

On success the endpoint's footprint, minimum resource fee and authorization
entries are merged into a *copy* of the envelope; the unsigned input is left
as it was.
"""

from __future__ import annotations

import logging

from stellar_sdk import TransactionEnvelope
from stellar_sdk.operation import InvokeHostFunction

from idreg_sdk.rpc.endpoint import EndpointClient
from idreg_sdk.types.core import (
    PreparedTransaction,
    SimulateResponse,
    SimulationFailure,
    SimulationResult,
    SimulationSuccess,
    UnsignedTransaction,
)

log = logging.getLogger(__name__)

RESTORE_REQUIRED = "ledger entries required by this call are archived and must be restored first"


def assemble(unsigned: UnsignedTransaction, sim: SimulateResponse) -> PreparedTransaction:
    """Merge a successful simulation into a copy of `unsigned`'s envelope."""
    envelope = TransactionEnvelope.from_xdr(
        unsigned.envelope.to_xdr(), unsigned.envelope.network_passphrase
    )
    tx = envelope.transaction
    tx.fee = unsigned.fee + sim.min_resource_fee
    tx.soroban_data = sim.transaction_data

    op = tx.operations[0]
    if isinstance(op, InvokeHostFunction) and not op.auth:
        op.auth = list(sim.auth)

    return PreparedTransaction(
        envelope=envelope,
        invocation=unsigned.invocation,
        source=unsigned.source,
        fee=tx.fee,
    )


async def simulate(endpoint: EndpointClient, unsigned: UnsignedTransaction) -> SimulationResult:
    sim = await endpoint.simulate_transaction(unsigned.to_xdr())
    fn = unsigned.invocation.function

    if sim.error is not None:
        log.info("simulation of %s rejected: %s", fn, sim.error)
        return SimulationFailure(error=sim.error, events=sim.events, latest_ledger=sim.latest_ledger)
    if sim.restore_required:
        log.info("simulation of %s needs a ledger restore", fn)
        return SimulationFailure(
            error=RESTORE_REQUIRED, events=sim.events, latest_ledger=sim.latest_ledger
        )

    prepared = assemble(unsigned, sim)
    log.debug("simulated %s: resource_fee=%d total_fee=%d", fn, sim.min_resource_fee, prepared.fee)
    return SimulationSuccess(
        prepared=prepared,
        transaction_data=sim.transaction_data,
        min_resource_fee=sim.min_resource_fee,
        return_value=sim.return_value,
        latest_ledger=sim.latest_ledger,
    )


__all__ = ["simulate", "assemble", "RESTORE_REQUIRED"]
