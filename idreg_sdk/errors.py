"""
Typed error classes for the identity-registry SDK.

These are raised by rpc/http, rpc/endpoint, tx/*, wallet/signer and the
contract client so callers can catch specific failure modes while still being
able to catch the base `IdRegSdkError`.

Every error here means one of two things to a caller: the call *definitely
did not* reach the ledger (account, argument, simulation, signing and most
submission errors), or the transport itself broke (`RpcError`). Indeterminate
results (confirmation timeout, undecodable success payloads) are reported as
transaction outcomes, see `idreg_sdk.tx.outcome`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional

__all__ = [
    "IdRegSdkError",
    "RpcError",
    "ArgumentError",
    "AccountNotFoundError",
    "SimulationError",
    "SigningError",
    "SubmissionError",
    "DecodeErrorKind",
    "ResponseDecodeError",
    "AMBIGUOUS_DECODE_KINDS",
    "is_decode_ambiguity",
    "JsonRpcCode",
    "from_jsonrpc_error",
]


class IdRegSdkError(Exception):
    """Base class for all SDK errors."""


class JsonRpcCode(IntEnum):
    # JSON-RPC 2.0 spec
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Server errors (implementation-defined range: -32099 to -32000)
    SERVER_ERROR = -32000

    # Client-side pseudo codes
    TRANSPORT_FAILED = -32098


@dataclass(slots=True)
class RpcError(IdRegSdkError):
    """Raised when a JSON-RPC call returns an error object or the transport fails."""

    code: int
    message: str
    method: Optional[str] = None
    data: Optional[Any] = None
    request_id: Optional[Any] = None
    http_status: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts = [f"RPC[{self.method or '-'}] code={self.code} msg={self.message!r}"]
        if self.request_id is not None:
            parts.append(f"id={self.request_id}")
        if self.http_status is not None:
            parts.append(f"http={self.http_status}")
        if self.data is not None:
            parts.append(f"data={self.data!r}")
        return " ".join(parts)

    @property
    def code_enum(self) -> Optional[JsonRpcCode]:
        try:
            return JsonRpcCode(self.code)
        except ValueError:
            return None


@dataclass(slots=True)
class ArgumentError(IdRegSdkError):
    """
    Raised when a contract argument fails local validation before any
    invocation is built (bad hex document hash, out-of-range level, bad strkey).
    """

    message: str
    function: Optional[str] = None
    parameter: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = []
        if self.function:
            where.append(f"fn={self.function}")
        if self.parameter:
            where.append(f"param={self.parameter}")
        where_s = (" [" + ", ".join(where) + "]") if where else ""
        return f"ArgumentError{where_s}: {self.message}"


@dataclass(slots=True)
class AccountNotFoundError(IdRegSdkError):
    """
    The source account has no on-ledger presence.

    Not fatal to the process: the account simply needs funding (on testnet,
    via friendbot) before it can source transactions.
    """

    account_id: str

    def __str__(self) -> str:
        return (
            f"account {self.account_id} not found on the ledger; "
            "fund this account before submitting transactions"
        )


@dataclass(slots=True)
class SimulationError(IdRegSdkError):
    """
    The contract would reject the call (authorization, argument or business
    rule). `message` carries the endpoint's diagnostic verbatim.
    """

    message: str
    function: Optional[str] = None
    events: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        fn = f" fn={self.function}" if self.function else ""
        return f"SimulationError{fn}: {self.message}"


@dataclass(slots=True)
class SigningError(IdRegSdkError):
    """Malformed key material, or a key that does not match the source account."""

    message: str
    account_id: Optional[str] = None

    def __str__(self) -> str:
        acct = f" source={self.account_id}" if self.account_id else ""
        return f"SigningError{acct}: {self.message}"


@dataclass(slots=True)
class SubmissionError(IdRegSdkError):
    """
    Ledger-level rejection at submit time (bad sequence, insufficient fee,
    malformed envelope), or an attempt to submit a signed transaction twice.

    Retrying requires rebuilding the transaction with a fresh sequence number.
    """

    message: str
    tx_hash: Optional[str] = None
    status: Optional[str] = None
    result_code: Optional[str] = None
    retryable: bool = False

    def __str__(self) -> str:
        bits = [self.message]
        if self.tx_hash:
            bits.append(f"tx={self.tx_hash}")
        if self.status:
            bits.append(f"status={self.status}")
        if self.result_code:
            bits.append(f"code={self.result_code}")
        return "SubmissionError: " + " ".join(bits)


class DecodeErrorKind(str, Enum):
    UNION_SWITCH = "union_switch"  # unknown discriminant in an XDR union
    STRUCTURE = "structure"  # truncated / trailing / misaligned XDR
    ENCODING = "encoding"  # payload was not valid base64
    SHAPE = "shape"  # decoded fine but not a shape this client understands


# Kinds that may be reported by an endpoint whose wire format moved ahead of
# this client's decoder. Keep this set narrow.
AMBIGUOUS_DECODE_KINDS = frozenset({DecodeErrorKind.UNION_SWITCH, DecodeErrorKind.STRUCTURE})


@dataclass(slots=True)
class ResponseDecodeError(IdRegSdkError):
    """
    A response payload could not be decoded by this client.

    `response_status` is the status the endpoint reported alongside the
    undecodable payload, when it had one.
    """

    kind: DecodeErrorKind
    message: str
    method: Optional[str] = None
    tx_hash: Optional[str] = None
    response_status: Optional[str] = None

    def __str__(self) -> str:
        bits = [f"[{self.kind.value}] {self.message}"]
        if self.method:
            bits.append(f"method={self.method}")
        if self.tx_hash:
            bits.append(f"tx={self.tx_hash}")
        if self.response_status:
            bits.append(f"status={self.response_status}")
        return "ResponseDecodeError: " + " ".join(bits)


def is_decode_ambiguity(exc: BaseException) -> bool:
    """
    True when `exc` is a structural/union decode failure raised while parsing a
    response the endpoint itself reported as SUCCESS.

    Such a transaction most likely committed; only our decoding failed.
    """
    return (
        isinstance(exc, ResponseDecodeError)
        and exc.kind in AMBIGUOUS_DECODE_KINDS
        and exc.response_status == "SUCCESS"
    )


def from_jsonrpc_error(
    err_obj: Dict[str, Any],
    *,
    method: Optional[str] = None,
    request_id: Optional[Any] = None,
    http_status: Optional[int] = None,
) -> RpcError:
    """
    Convert a JSON-RPC error object into RpcError.

    `err_obj` should resemble: {"code": int, "message": str, "data": any?}
    """
    code = int(err_obj.get("code", JsonRpcCode.SERVER_ERROR))
    message = str(err_obj.get("message", "Unknown JSON-RPC error"))
    return RpcError(
        code=code,
        message=message,
        method=method,
        data=err_obj.get("data"),
        request_id=request_id,
        http_status=http_status,
    )
