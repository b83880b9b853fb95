import time

import pytest
from stellar_sdk import Address, scval
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.operation import InvokeHostFunction

from idreg_sdk.errors import AccountNotFoundError, ArgumentError
from idreg_sdk.tx.build import build_unsigned, build_unsigned_for
from idreg_sdk.tx.simulate import RESTORE_REQUIRED, simulate
from idreg_sdk.types.core import (
    AccountInfo,
    Invocation,
    SimulateResponse,
    SimulationFailure,
    SimulationSuccess,
)

from conftest import CONTRACT_ID, OWNER, PASSPHRASE, STRANGER, FakeEndpoint, invocation, sim_ok


def _source_auth_entry(fn: str) -> stellar_xdr.SorobanAuthorizationEntry:
    return stellar_xdr.SorobanAuthorizationEntry(
        credentials=stellar_xdr.SorobanCredentials(
            type=stellar_xdr.SorobanCredentialsType.SOROBAN_CREDENTIALS_SOURCE_ACCOUNT
        ),
        root_invocation=stellar_xdr.SorobanAuthorizedInvocation(
            function=stellar_xdr.SorobanAuthorizedFunction(
                type=stellar_xdr.SorobanAuthorizedFunctionType.SOROBAN_AUTHORIZED_FUNCTION_TYPE_CONTRACT_FN,
                contract_fn=stellar_xdr.InvokeContractArgs(
                    contract_address=Address(CONTRACT_ID).to_xdr_sc_address(),
                    function_name=stellar_xdr.SCSymbol(fn.encode()),
                    args=[],
                ),
            ),
            sub_invocations=[],
        ),
    )


@pytest.mark.asyncio
async def test_build_uses_next_sequence_and_validity_window(endpoint):
    before = int(time.time())
    unsigned = await build_unsigned(
        endpoint,
        OWNER.public_key,
        invocation("get_total_identities"),
        network_passphrase=PASSPHRASE,
        base_fee=100,
        timeout_s=30,
    )
    assert endpoint.calls == [("get_account", OWNER.public_key)]
    assert unsigned.sequence == 101
    assert unsigned.envelope.transaction.sequence == 101
    assert unsigned.fee == 100
    assert unsigned.source == OWNER.public_key
    assert before + 30 <= unsigned.valid_until <= int(time.time()) + 30
    assert unsigned.envelope.signatures == []


@pytest.mark.asyncio
async def test_build_missing_account_is_idempotent_and_side_effect_free():
    ep = FakeEndpoint(accounts={})
    for _ in range(2):
        with pytest.raises(AccountNotFoundError) as ei:
            await build_unsigned(
                ep, STRANGER.public_key, invocation(), network_passphrase=PASSPHRASE
            )
        assert ei.value.account_id == STRANGER.public_key
    assert ep.count("get_account") == 2
    assert ep.count("simulate_transaction") == 0
    assert ep.count("send_transaction") == 0


def test_build_for_known_account_carries_the_invocation():
    inv = invocation("get_identity", scval.to_string("DID001"), scval.to_address(OWNER.public_key))
    unsigned = build_unsigned_for(
        AccountInfo(OWNER.public_key, 0), inv, network_passphrase=PASSPHRASE
    )
    op = unsigned.envelope.transaction.operations[0]
    assert isinstance(op, InvokeHostFunction)
    call = op.host_function.invoke_contract
    assert call.function_name.sc_symbol == b"get_identity"
    assert len(call.args) == 2
    assert unsigned.sequence == 1


def test_build_rejects_bad_contract_id():
    with pytest.raises(ArgumentError):
        build_unsigned_for(
            AccountInfo(OWNER.public_key, 0),
            Invocation(contract_id="not-a-contract", function="get_admin"),
            network_passphrase=PASSPHRASE,
        )


@pytest.mark.parametrize("kwargs", [{"base_fee": 0}, {"timeout_s": 0}])
def test_build_rejects_non_positive_knobs(kwargs):
    with pytest.raises(ArgumentError):
        build_unsigned_for(
            AccountInfo(OWNER.public_key, 0), invocation(), network_passphrase=PASSPHRASE, **kwargs
        )


def _unsigned():
    return build_unsigned_for(
        AccountInfo(OWNER.public_key, 5), invocation(), network_passphrase=PASSPHRASE
    )


@pytest.mark.asyncio
async def test_simulation_error_is_a_failure_with_verbatim_diagnostic():
    diag = "HostError: Error(Contract, #3) identity already exists"
    ep = FakeEndpoint(simulation=SimulateResponse(error=diag, events=("e1",)))
    result = await simulate(ep, _unsigned())
    assert isinstance(result, SimulationFailure)
    assert result.ok is False
    assert result.error == diag
    assert result.events == ("e1",)
    assert ep.count("simulate_transaction") == 1


@pytest.mark.asyncio
async def test_simulation_requiring_restore_is_a_failure():
    sim = SimulateResponse(
        transaction_data=sim_ok().transaction_data, min_resource_fee=10, restore_required=True
    )
    result = await simulate(FakeEndpoint(simulation=sim), _unsigned())
    assert isinstance(result, SimulationFailure)
    assert result.error == RESTORE_REQUIRED


@pytest.mark.asyncio
async def test_simulation_success_assembles_a_copy():
    unsigned = _unsigned()
    auth = _source_auth_entry("register_identity")
    ep = FakeEndpoint(simulation=sim_ok(min_resource_fee=4_321, return_value=scval.to_bool(True), auth=[auth]))

    result = await simulate(ep, unsigned)

    assert isinstance(result, SimulationSuccess)
    assert result.ok is True
    assert result.min_resource_fee == 4_321
    assert result.return_value == scval.to_bool(True)

    prepared = result.prepared
    tx = prepared.envelope.transaction
    assert prepared.fee == unsigned.fee + 4_321
    assert tx.fee == prepared.fee
    assert tx.soroban_data == result.transaction_data
    assert tx.sequence == unsigned.sequence
    assert len(tx.operations[0].auth) == 1
    assert prepared.tx_hash == prepared.envelope.hash_hex()

    # the unsigned envelope is untouched
    assert unsigned.envelope.transaction.fee == unsigned.fee
    assert unsigned.envelope.transaction.soroban_data is None
    assert not unsigned.envelope.transaction.operations[0].auth
