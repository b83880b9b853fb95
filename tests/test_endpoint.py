import base64
import json
import struct

import httpx
import pytest
import respx
from stellar_sdk import SorobanDataBuilder, scval
from stellar_sdk import xdr as stellar_xdr

from idreg_sdk.errors import (
    AccountNotFoundError,
    ArgumentError,
    DecodeErrorKind,
    JsonRpcCode,
    ResponseDecodeError,
    RpcError,
    SimulationError,
    is_decode_ambiguity,
)
from idreg_sdk.rpc.endpoint import SorobanEndpoint
from idreg_sdk.rpc.http import RpcClient
from idreg_sdk.tx.pipeline import query
from idreg_sdk.types.core import SubmitStatus, TxStatus

from conftest import OWNER, invocation

TX_HASH = "ab" * 32

# TransactionResult{feeCharged=100, result=txBAD_SEQ}
BAD_SEQ_RESULT_XDR = "AAAAAAAAAGT////7AAAAAA=="


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode()


URL = "https://rpc.test"


class RpcErr:
    """A JSON-RPC error envelope; every other scripted dict is sent as `result`."""

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message


class Rpc:
    """Scripted JSON-RPC server; plugged into a respx route as its side effect."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        nxt = self.responses.pop(0)
        if isinstance(nxt, httpx.Response):
            return nxt
        if isinstance(nxt, Exception):
            raise nxt
        if isinstance(nxt, RpcErr):
            error = {"code": nxt.code, "message": nxt.message}
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": error})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": nxt})


@pytest.fixture
def router():
    with respx.mock(assert_all_called=False) as mocked:
        yield mocked


def _endpoint(router, rpc: Rpc, *, max_retries: int = 2) -> SorobanEndpoint:
    router.post(URL).mock(side_effect=rpc)
    client = RpcClient(URL, max_retries=max_retries, backoff_base=0.0, backoff_max=0.0)
    return SorobanEndpoint(client)


def _account_entry_xdr(seq: int) -> str:
    entry = stellar_xdr.LedgerEntryData(
        type=stellar_xdr.LedgerEntryType.ACCOUNT,
        account=stellar_xdr.AccountEntry(
            account_id=OWNER.xdr_account_id(),
            balance=stellar_xdr.Int64(10_000_000),
            seq_num=stellar_xdr.SequenceNumber(stellar_xdr.Int64(seq)),
            num_sub_entries=stellar_xdr.Uint32(0),
            inflation_dest=None,
            flags=stellar_xdr.Uint32(0),
            home_domain=stellar_xdr.String32(b""),
            thresholds=stellar_xdr.Thresholds(b"\x01\x00\x00\x00"),
            signers=[],
            ext=stellar_xdr.AccountEntryExt(v=0),
        ),
    )
    return entry.to_xdr()


# --- accounts -----------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_account_reads_sequence(router):
    rpc = Rpc({"entries": [{"key": "k", "xdr": _account_entry_xdr(41)}], "latestLedger": 9})
    async with _endpoint(router, rpc) as ep:
        info = await ep.get_account(OWNER.public_key)
    assert info.account_id == OWNER.public_key
    assert info.sequence == 41
    assert rpc.requests[0]["method"] == "getLedgerEntries"
    assert len(rpc.requests[0]["params"]["keys"]) == 1


@pytest.mark.asyncio
async def test_get_account_missing_is_account_not_found(router):
    rpc = Rpc({"entries": [], "latestLedger": 9}, {"latestLedger": 9})
    async with _endpoint(router, rpc) as ep:
        for _ in range(2):
            with pytest.raises(AccountNotFoundError) as ei:
                await ep.get_account(OWNER.public_key)
            assert "fund this account" in str(ei.value)
    assert len(rpc.requests) == 2


@pytest.mark.asyncio
async def test_get_account_rejects_bad_strkey_without_io(router):
    rpc = Rpc()
    async with _endpoint(router, rpc) as ep:
        with pytest.raises(ArgumentError):
            await ep.get_account("not-an-account")
    assert rpc.requests == []


# --- simulate -----------------------------------------------------------------


@pytest.mark.asyncio
async def test_simulate_error_is_returned_verbatim(router):
    rpc = Rpc({"error": "HostError: Error(Contract, #1)", "events": ["ev"], "latestLedger": 5})
    async with _endpoint(router, rpc) as ep:
        sim = await ep.simulate_transaction("AAAA")
    assert sim.error == "HostError: Error(Contract, #1)"
    assert sim.events == ("ev",)
    assert rpc.requests[0]["params"] == {"transaction": "AAAA"}


@pytest.mark.asyncio
async def test_query_raises_simulation_error_with_wire_diagnostic(router):
    diagnostic = "HostError: Error(Contract, #3)"
    rpc = Rpc({"error": diagnostic, "events": ["ev1", "ev2"], "latestLedger": 5})
    async with _endpoint(router, rpc) as ep:
        with pytest.raises(SimulationError) as ei:
            await query(ep, invocation("get_identity"))
    assert ei.value.message == diagnostic
    assert ei.value.function == "get_identity"
    assert ei.value.events == ["ev1", "ev2"]
    assert [r["method"] for r in rpc.requests] == ["simulateTransaction"]


@pytest.mark.asyncio
async def test_simulate_success_decodes_resources_and_result(router):
    data = SorobanDataBuilder().set_resource_fee(1234).build()
    rpc = Rpc(
        {
            "transactionData": data.to_xdr(),
            "minResourceFee": "1234",
            "results": [{"auth": [], "xdr": scval.to_bool(True).to_xdr()}],
            "latestLedger": 77,
        }
    )
    async with _endpoint(router, rpc) as ep:
        sim = await ep.simulate_transaction("AAAA")
    assert sim.error is None
    assert sim.min_resource_fee == 1234
    assert sim.transaction_data == data
    assert sim.return_value == scval.to_bool(True)
    assert sim.latest_ledger == 77
    assert sim.restore_required is False


@pytest.mark.asyncio
async def test_simulate_flags_restore_preamble(router):
    data = SorobanDataBuilder().build()
    rpc = Rpc(
        {
            "transactionData": data.to_xdr(),
            "minResourceFee": "10",
            "results": [],
            "restorePreamble": {"transactionData": data.to_xdr(), "minResourceFee": "5"},
        }
    )
    async with _endpoint(router, rpc) as ep:
        sim = await ep.simulate_transaction("AAAA")
    assert sim.restore_required is True


# --- send ---------------------------------------------------------------------


@pytest.mark.asyncio
async def test_send_transaction_error_decodes_result_code(router):
    rpc = Rpc({"status": "ERROR", "hash": TX_HASH, "errorResultXdr": BAD_SEQ_RESULT_XDR})
    async with _endpoint(router, rpc) as ep:
        resp = await ep.send_transaction("AAAA")
    assert resp.status is SubmitStatus.ERROR
    assert resp.tx_hash == TX_HASH
    assert resp.error_result_code == "txBAD_SEQ"


@pytest.mark.asyncio
async def test_send_transaction_is_never_retried_by_transport(router):
    rpc = Rpc(httpx.Response(503), {"status": "PENDING", "hash": TX_HASH})
    async with _endpoint(router, rpc, max_retries=3) as ep:
        with pytest.raises(RpcError) as ei:
            await ep.send_transaction("AAAA")
    assert ei.value.code == JsonRpcCode.TRANSPORT_FAILED
    assert len(rpc.requests) == 1


@pytest.mark.asyncio
async def test_send_transaction_unknown_status_is_shape_error(router):
    rpc = Rpc({"status": "WHATEVER", "hash": TX_HASH})
    async with _endpoint(router, rpc) as ep:
        with pytest.raises(ResponseDecodeError) as ei:
            await ep.send_transaction("AAAA")
    assert ei.value.kind is DecodeErrorKind.SHAPE


# --- getTransaction -----------------------------------------------------------


@pytest.mark.asyncio
async def test_get_transaction_not_found(router):
    rpc = Rpc({"status": "NOT_FOUND", "latestLedger": 3})
    async with _endpoint(router, rpc) as ep:
        resp = await ep.get_transaction(TX_HASH)
    assert resp.status is TxStatus.NOT_FOUND
    assert resp.terminal is False
    assert rpc.requests[0]["params"] == {"hash": TX_HASH}


@pytest.mark.asyncio
async def test_get_transaction_success_without_meta(router):
    rpc = Rpc({"status": "SUCCESS", "ledger": 12, "latestLedger": 13})
    async with _endpoint(router, rpc) as ep:
        resp = await ep.get_transaction(TX_HASH)
    assert resp.status is TxStatus.SUCCESS
    assert resp.ledger == 12
    assert resp.return_value is None


@pytest.mark.asyncio
async def test_get_transaction_success_with_unknown_meta_version_is_ambiguous(router):
    meta = _b64(struct.pack(">i", 99))
    rpc = Rpc({"status": "SUCCESS", "ledger": 12, "resultMetaXdr": meta})
    async with _endpoint(router, rpc) as ep:
        with pytest.raises(ResponseDecodeError) as ei:
            await ep.get_transaction(TX_HASH)
    err = ei.value
    assert err.kind is DecodeErrorKind.UNION_SWITCH
    assert err.response_status == "SUCCESS"
    assert err.tx_hash == TX_HASH
    assert is_decode_ambiguity(err)


@pytest.mark.asyncio
async def test_get_transaction_success_with_truncated_meta_is_ambiguous(router):
    meta = _b64(struct.pack(">i", 3))
    rpc = Rpc({"status": "SUCCESS", "resultMetaXdr": meta})
    async with _endpoint(router, rpc) as ep:
        with pytest.raises(ResponseDecodeError) as ei:
            await ep.get_transaction(TX_HASH)
    assert ei.value.kind is DecodeErrorKind.STRUCTURE
    assert is_decode_ambiguity(ei.value)


@pytest.mark.asyncio
async def test_get_transaction_success_with_non_base64_meta_is_not_ambiguous(router):
    rpc = Rpc({"status": "SUCCESS", "resultMetaXdr": "!!not base64!!"})
    async with _endpoint(router, rpc) as ep:
        with pytest.raises(ResponseDecodeError) as ei:
            await ep.get_transaction(TX_HASH)
    assert ei.value.kind is DecodeErrorKind.ENCODING
    assert not is_decode_ambiguity(ei.value)


@pytest.mark.asyncio
async def test_get_transaction_failed_with_undecodable_result_stays_failed(router):
    rpc = Rpc({"status": "FAILED", "ledger": 12, "resultXdr": _b64(b"\x00\x00")})
    async with _endpoint(router, rpc) as ep:
        resp = await ep.get_transaction(TX_HASH)
    assert resp.status is TxStatus.FAILED
    assert resp.result_code is None


@pytest.mark.asyncio
async def test_get_transaction_failed_decodes_result_code(router):
    rpc = Rpc({"status": "FAILED", "ledger": 12, "resultXdr": BAD_SEQ_RESULT_XDR})
    async with _endpoint(router, rpc) as ep:
        resp = await ep.get_transaction(TX_HASH)
    assert resp.result_code == "txBAD_SEQ"


# --- transport ----------------------------------------------------------------


@pytest.mark.asyncio
async def test_transient_http_errors_are_retried(router):
    rpc = Rpc(httpx.Response(503), httpx.Response(429), {"status": "healthy"})
    async with _endpoint(router, rpc, max_retries=2) as ep:
        health = await ep.get_health()
    assert health == {"status": "healthy"}
    assert len(rpc.requests) == 3


@pytest.mark.asyncio
async def test_backoff_is_capped_and_jittered():
    async with RpcClient(URL, backoff_base=0.5, backoff_max=1.0) as client:
        delays = [client._backoff(attempt) for attempt in (1, 2, 5, 30)]
    assert all(0.0 <= d <= 1.0 for d in delays)
    assert delays[0] <= 0.5


@pytest.mark.asyncio
async def test_connect_errors_exhaust_into_rpc_error(router):
    boom = httpx.ConnectError("connection refused")
    rpc = Rpc(boom, boom)
    async with _endpoint(router, rpc, max_retries=1) as ep:
        with pytest.raises(RpcError) as ei:
            await ep.get_latest_ledger()
    assert ei.value.code == JsonRpcCode.TRANSPORT_FAILED
    assert len(rpc.requests) == 2


@pytest.mark.asyncio
async def test_jsonrpc_error_objects_are_not_retried(router):
    rpc = Rpc(RpcErr(-32602, "invalid params"))
    async with _endpoint(router, rpc, max_retries=3) as ep:
        with pytest.raises(RpcError) as ei:
            await ep.get_network()
    assert ei.value.code == -32602
    assert ei.value.method == "getNetwork"
    assert len(rpc.requests) == 1


@pytest.mark.asyncio
async def test_non_json_body_is_parse_error(router):
    rpc = Rpc(httpx.Response(200, text="<html>oops</html>"))
    async with _endpoint(router, rpc) as ep:
        with pytest.raises(RpcError) as ei:
            await ep.get_health()
    assert ei.value.code == JsonRpcCode.PARSE_ERROR
