"""
idreg_sdk.rpc.endpoint
======================

Typed Soroban RPC primitives on top of the JSON-RPC transport.

    get_account(account_id)          -> AccountInfo              (getLedgerEntries)
    simulate_transaction(xdr)        -> SimulateResponse         (simulateTransaction)
    send_transaction(xdr)            -> SendTransactionResponse  (sendTransaction)
    get_transaction(tx_hash)         -> TransactionStatusResponse (getTransaction)

plus `get_health`, `get_network` and `get_latest_ledger` for diagnostics.

The endpoint is a stateless handle: it owns an HTTP connection pool and
nothing else, and is passed explicitly to every pipeline stage.

Decode failures
---------------
Every XDR payload is decoded through `decode_xdr`, which tags failures with a
`DecodeErrorKind` at the point of detection:

- ENCODING     : the payload is not base64
- UNION_SWITCH : an XDR union carried a discriminant this client does not know
- STRUCTURE    : the payload is truncated or otherwise misaligned

`get_transaction` additionally records the endpoint-reported status on the
error (`response_status`), which is what `idreg_sdk.errors.is_decode_ambiguity`
keys on. For FAILED transactions an undecodable result is folded into the
response (`result_code=None`) rather than raised: the status alone is
authoritative there.
"""

from __future__ import annotations

import binascii
import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Type, TypeVar

from stellar_sdk import Keypair, StrKey
from stellar_sdk import xdr as stellar_xdr

from idreg_sdk.config import SDKConfig
from idreg_sdk.errors import (
    AccountNotFoundError,
    ArgumentError,
    DecodeErrorKind,
    ResponseDecodeError,
)
from idreg_sdk.rpc.http import RpcClient
from idreg_sdk.types.core import (
    AccountInfo,
    SendTransactionResponse,
    SimulateResponse,
    SubmitStatus,
    TransactionStatusResponse,
    TxStatus,
)

log = logging.getLogger(__name__)

X = TypeVar("X")


# -----------------------------------------------------------------------------
# Protocol consumed by the pipeline (tests substitute in-memory fakes)
# -----------------------------------------------------------------------------


class EndpointClient(Protocol):
    async def get_account(self, account_id: str) -> AccountInfo: ...

    async def simulate_transaction(self, envelope_xdr: str) -> SimulateResponse: ...

    async def send_transaction(self, envelope_xdr: str) -> SendTransactionResponse: ...

    async def get_transaction(self, tx_hash: str) -> TransactionStatusResponse: ...


# -----------------------------------------------------------------------------
# XDR decoding with typed failure tags
# -----------------------------------------------------------------------------


def decode_xdr(
    xdr_cls: Type[X],
    payload: Any,
    *,
    method: str,
    tx_hash: Optional[str] = None,
    response_status: Optional[str] = None,
) -> X:
    """
    Decode a base64 XDR payload into `xdr_cls`, raising ResponseDecodeError
    with a precise kind on failure.
    """

    def _fail(kind: DecodeErrorKind, detail: str) -> ResponseDecodeError:
        return ResponseDecodeError(
            kind,
            f"cannot decode {xdr_cls.__name__}: {detail}",
            method=method,
            tx_hash=tx_hash,
            response_status=response_status,
        )

    if not isinstance(payload, str):
        raise _fail(DecodeErrorKind.SHAPE, f"expected base64 string, got {type(payload).__name__}")
    try:
        return xdr_cls.from_xdr(payload)  # type: ignore[attr-defined]
    except binascii.Error as e:
        raise _fail(DecodeErrorKind.ENCODING, str(e)) from e
    except ValueError as e:
        # stellar_sdk's generated XDR raises ValueError for unknown enum/union arms
        raise _fail(DecodeErrorKind.UNION_SWITCH, str(e)) from e
    except Exception as e:
        raise _fail(DecodeErrorKind.STRUCTURE, f"{type(e).__name__}: {e}") from e


def meta_return_value(
    meta: stellar_xdr.TransactionMeta, *, tx_hash: Optional[str] = None
) -> Optional[stellar_xdr.SCVal]:
    """
    Pull the contract return value out of transaction meta.

    Meta versions 0-2 predate contracts (no return value). Versions this
    client has no arm for are reported as a union-switch failure.
    """
    for arm in ("v4", "v3"):
        body = getattr(meta, arm, None)
        if body is not None:
            soroban_meta = getattr(body, "soroban_meta", None)
            return getattr(soroban_meta, "return_value", None) if soroban_meta is not None else None
    if meta.v in (0, 1, 2):
        return None
    raise ResponseDecodeError(
        DecodeErrorKind.UNION_SWITCH,
        f"unsupported TransactionMeta version {meta.v}",
        method="getTransaction",
        tx_hash=tx_hash,
        response_status=TxStatus.SUCCESS.value,
    )


def _result_code(payload: Any, *, method: str, tx_hash: Optional[str]) -> Optional[str]:
    """Best-effort TransactionResult code name (e.g. 'txBAD_SEQ') for error payloads."""
    if not payload:
        return None
    try:
        result = decode_xdr(stellar_xdr.TransactionResult, payload, method=method, tx_hash=tx_hash)
    except ResponseDecodeError as e:
        log.warning("ignoring undecodable result payload for tx=%s: %s", tx_hash, e)
        return None
    return result.result.code.name


def _int_or_none(v: Any) -> Optional[int]:
    try:
        return int(v) if v is not None else None
    except (TypeError, ValueError):
        return None


def _require_dict(res: Any, method: str) -> Dict[str, Any]:
    if not isinstance(res, dict):
        raise ResponseDecodeError(
            DecodeErrorKind.SHAPE, f"expected an object, got {type(res).__name__}", method=method
        )
    return res


# -----------------------------------------------------------------------------
# Endpoint
# -----------------------------------------------------------------------------


class SorobanEndpoint:
    """
    Stateless Soroban RPC endpoint handle.

    Parameters
    ----------
    rpc : an `RpcClient` (owns the HTTP connection pool).
    """

    def __init__(self, rpc: RpcClient) -> None:
        self._rpc = rpc

    @classmethod
    def from_config(cls, cfg: SDKConfig) -> "SorobanEndpoint":
        return cls(RpcClient.from_config(cfg))

    async def __aenter__(self) -> "SorobanEndpoint":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def aclose(self) -> None:
        await self._rpc.aclose()

    # ------------------------------------------------------------------ accounts

    async def get_account(self, account_id: str) -> AccountInfo:
        """
        Look up the current sequence number of `account_id`.

        Raises AccountNotFoundError when the ledger has no entry for it.
        """
        if not isinstance(account_id, str) or not StrKey.is_valid_ed25519_public_key(account_id):
            raise ArgumentError(f"invalid account id: {account_id!r}", parameter="account_id")
        key = stellar_xdr.LedgerKey(
            type=stellar_xdr.LedgerEntryType.ACCOUNT,
            account=stellar_xdr.LedgerKeyAccount(
                account_id=Keypair.from_public_key(account_id).xdr_account_id()
            ),
        )
        method = "getLedgerEntries"
        res = _require_dict(await self._rpc.request(method, {"keys": [key.to_xdr()]}), method)
        entries: List[Mapping[str, Any]] = res.get("entries") or []
        if not entries:
            raise AccountNotFoundError(account_id)
        data = decode_xdr(stellar_xdr.LedgerEntryData, entries[0].get("xdr"), method=method)
        if data.account is None:
            raise ResponseDecodeError(
                DecodeErrorKind.SHAPE, "ledger entry is not an account entry", method=method
            )
        sequence = int(data.account.seq_num.sequence_number.int64)
        return AccountInfo(account_id=account_id, sequence=sequence)

    # ------------------------------------------------------------------ simulate

    async def simulate_transaction(self, envelope_xdr: str) -> SimulateResponse:
        method = "simulateTransaction"
        res = _require_dict(await self._rpc.request(method, {"transaction": envelope_xdr}), method)
        latest = _int_or_none(res.get("latestLedger"))
        events = tuple(str(e) for e in (res.get("events") or []))

        if res.get("error"):
            return SimulateResponse(error=str(res["error"]), events=events, latest_ledger=latest)

        soroban_data = decode_xdr(
            stellar_xdr.SorobanTransactionData, res.get("transactionData"), method=method
        )
        results = res.get("results") or []
        auth: tuple = ()
        retval = None
        if results:
            first = _require_dict(results[0], method)
            auth = tuple(
                decode_xdr(stellar_xdr.SorobanAuthorizationEntry, a, method=method)
                for a in (first.get("auth") or [])
            )
            if first.get("xdr"):
                retval = decode_xdr(stellar_xdr.SCVal, first["xdr"], method=method)

        return SimulateResponse(
            events=events,
            transaction_data=soroban_data,
            min_resource_fee=int(res.get("minResourceFee") or 0),
            auth=auth,
            return_value=retval,
            latest_ledger=latest,
            restore_required=bool(res.get("restorePreamble")),
        )

    # ------------------------------------------------------------------ submit

    async def send_transaction(self, envelope_xdr: str) -> SendTransactionResponse:
        method = "sendTransaction"
        # At most one delivery attempt: a resend is the Builder's job.
        res = _require_dict(
            await self._rpc.request(method, {"transaction": envelope_xdr}, retries=0), method
        )
        try:
            status = SubmitStatus(str(res.get("status")))
        except ValueError as e:
            raise ResponseDecodeError(
                DecodeErrorKind.SHAPE,
                f"unknown sendTransaction status {res.get('status')!r}",
                method=method,
                tx_hash=res.get("hash"),
            ) from e
        tx_hash = str(res.get("hash") or "")
        return SendTransactionResponse(
            status=status,
            tx_hash=tx_hash,
            latest_ledger=_int_or_none(res.get("latestLedger")),
            error_result_code=_result_code(res.get("errorResultXdr"), method=method, tx_hash=tx_hash),
        )

    # ------------------------------------------------------------------ status

    async def get_transaction(self, tx_hash: str) -> TransactionStatusResponse:
        method = "getTransaction"
        res = _require_dict(await self._rpc.request(method, {"hash": tx_hash}), method)
        try:
            status = TxStatus(str(res.get("status")))
        except ValueError as e:
            raise ResponseDecodeError(
                DecodeErrorKind.SHAPE,
                f"unknown getTransaction status {res.get('status')!r}",
                method=method,
                tx_hash=tx_hash,
            ) from e

        ledger = _int_or_none(res.get("ledger"))
        latest = _int_or_none(res.get("latestLedger"))

        if status is TxStatus.SUCCESS:
            retval = None
            meta_payload = res.get("resultMetaXdr")
            if meta_payload:
                meta = decode_xdr(
                    stellar_xdr.TransactionMeta,
                    meta_payload,
                    method=method,
                    tx_hash=tx_hash,
                    response_status=status.value,
                )
                retval = meta_return_value(meta, tx_hash=tx_hash)
            return TransactionStatusResponse(
                status=status, tx_hash=tx_hash, ledger=ledger, latest_ledger=latest, return_value=retval
            )

        if status is TxStatus.FAILED:
            return TransactionStatusResponse(
                status=status,
                tx_hash=tx_hash,
                ledger=ledger,
                latest_ledger=latest,
                result_code=_result_code(res.get("resultXdr"), method=method, tx_hash=tx_hash),
            )

        return TransactionStatusResponse(status=status, tx_hash=tx_hash, latest_ledger=latest)

    # ------------------------------------------------------------------ diagnostics

    async def get_health(self) -> Dict[str, Any]:
        return _require_dict(await self._rpc.request("getHealth"), "getHealth")

    async def get_network(self) -> Dict[str, Any]:
        return _require_dict(await self._rpc.request("getNetwork"), "getNetwork")

    async def get_latest_ledger(self) -> Dict[str, Any]:
        return _require_dict(await self._rpc.request("getLatestLedger"), "getLatestLedger")


__all__ = [
    "EndpointClient",
    "SorobanEndpoint",
    "decode_xdr",
    "meta_return_value",
]
