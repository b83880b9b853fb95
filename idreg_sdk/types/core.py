from __future__ import annotations

"""
Core pipeline types for the identity-registry SDK.

Every object here except the account ids and the decoded contract records is
created and dropped within a single pipeline invocation; none of them is
meant to be cached or shared across calls.

Nothing here performs network I/O; these are just types and converters.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

from stellar_sdk import TransactionEnvelope
from stellar_sdk import xdr as stellar_xdr

from idreg_sdk.errors import SubmissionError
from idreg_sdk.utils.bytes import is_document_hash

# --- Common aliases ----------------------------------------------------------

AccountId = str  # G... strkey
ContractId = str  # C... strkey
TxHash = str  # 64 lowercase hex chars


# --- Invocation & account ----------------------------------------------------


@dataclass(slots=True, frozen=True)
class Invocation:
    """One call to a named entry point of a deployed contract."""

    contract_id: ContractId
    function: str
    args: Tuple[stellar_xdr.SCVal, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))


@dataclass(slots=True, frozen=True)
class AccountInfo:
    account_id: AccountId
    sequence: int


# --- Transaction stages ------------------------------------------------------


@dataclass(slots=True, frozen=True)
class UnsignedTransaction:
    """
    Envelope for a single invocation, before simulation.

    `sequence` is the sequence number the envelope carries (current + 1),
    `valid_until` the upper time bound (unix seconds) of its validity window.
    """

    envelope: TransactionEnvelope
    invocation: Invocation
    source: AccountId
    sequence: int
    fee: int
    valid_until: int

    def to_xdr(self) -> str:
        return self.envelope.to_xdr()


@dataclass(slots=True, frozen=True)
class PreparedTransaction:
    """Simulated envelope with footprint, resource fee and auth merged in; unsigned."""

    envelope: TransactionEnvelope
    invocation: Invocation
    source: AccountId
    fee: int

    @property
    def tx_hash(self) -> TxHash:
        return self.envelope.hash_hex()


@dataclass(slots=True)
class SignedTransaction:
    """
    A prepared envelope carrying one signature. Single-use: the Submitter
    claims it once, and a second claim raises SubmissionError.
    """

    envelope: TransactionEnvelope
    invocation: Invocation
    source: AccountId
    tx_hash: TxHash
    _submitted: bool = field(default=False, init=False, repr=False)

    @property
    def submitted(self) -> bool:
        return self._submitted

    def claim_for_submission(self) -> None:
        if self._submitted:
            raise SubmissionError(
                "signed transaction was already submitted; rebuild it to retry",
                tx_hash=self.tx_hash,
            )
        self._submitted = True

    def to_xdr(self) -> str:
        return self.envelope.to_xdr()


# --- Simulation --------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class SimulationSuccess:
    prepared: PreparedTransaction
    transaction_data: stellar_xdr.SorobanTransactionData
    min_resource_fee: int
    return_value: Optional[stellar_xdr.SCVal] = None
    latest_ledger: Optional[int] = None

    ok: ClassVar[bool] = True


@dataclass(slots=True, frozen=True)
class SimulationFailure:
    error: str
    events: Tuple[str, ...] = ()
    latest_ledger: Optional[int] = None

    ok: ClassVar[bool] = False


SimulationResult = Union[SimulationSuccess, SimulationFailure]


# --- Endpoint responses ------------------------------------------------------


@dataclass(slots=True, frozen=True)
class SimulateResponse:
    """Decoded `simulateTransaction` payload."""

    error: Optional[str] = None
    events: Tuple[str, ...] = ()
    transaction_data: Optional[stellar_xdr.SorobanTransactionData] = None
    min_resource_fee: int = 0
    auth: Tuple[stellar_xdr.SorobanAuthorizationEntry, ...] = ()
    return_value: Optional[stellar_xdr.SCVal] = None
    latest_ledger: Optional[int] = None
    restore_required: bool = False


class SubmitStatus(str, Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    DUPLICATE = "DUPLICATE"
    TRY_AGAIN_LATER = "TRY_AGAIN_LATER"


@dataclass(slots=True, frozen=True)
class SendTransactionResponse:
    """Decoded `sendTransaction` payload."""

    status: SubmitStatus
    tx_hash: TxHash
    latest_ledger: Optional[int] = None
    error_result_code: Optional[str] = None


@dataclass(slots=True, frozen=True)
class SubmissionHandle:
    """Correlation handle for a submitted transaction; `tx_hash` keys all polling."""

    tx_hash: TxHash
    initial_status: SubmitStatus


class TxStatus(str, Enum):
    SUCCESS = "SUCCESS"
    NOT_FOUND = "NOT_FOUND"
    FAILED = "FAILED"


@dataclass(slots=True, frozen=True)
class TransactionStatusResponse:
    """Decoded `getTransaction` payload."""

    status: TxStatus
    tx_hash: TxHash
    ledger: Optional[int] = None
    latest_ledger: Optional[int] = None
    return_value: Optional[stellar_xdr.SCVal] = None
    result_code: Optional[str] = None

    @property
    def terminal(self) -> bool:
        return self.status in (TxStatus.SUCCESS, TxStatus.FAILED)


class PollStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    TIMEOUT = "TIMEOUT"


@dataclass(slots=True, frozen=True)
class PollResult:
    tx_hash: TxHash
    status: PollStatus
    attempts: int
    response: Optional[TransactionStatusResponse] = None


# --- Outcomes ----------------------------------------------------------------


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"
    AMBIGUOUS_SUCCESS = "ambiguous_success"


class Certainty(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    UNKNOWN = "unknown"  # check the hash independently


@dataclass(slots=True, frozen=True)
class TxSuccess:
    tx_hash: TxHash
    return_value: Any = None

    kind: ClassVar[OutcomeKind] = OutcomeKind.SUCCESS
    certainty: ClassVar[Certainty] = Certainty.SUCCEEDED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "certainty": self.certainty.value,
            "txHash": self.tx_hash,
            "returnValue": self.return_value,
        }


@dataclass(slots=True, frozen=True)
class TxFailed:
    tx_hash: TxHash
    reason: str
    result_code: Optional[str] = None

    kind: ClassVar[OutcomeKind] = OutcomeKind.FAILED
    certainty: ClassVar[Certainty] = Certainty.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "certainty": self.certainty.value,
            "txHash": self.tx_hash,
            "reason": self.reason,
            "resultCode": self.result_code,
        }


@dataclass(slots=True, frozen=True)
class TxTimeout:
    tx_hash: TxHash
    attempts_made: int

    kind: ClassVar[OutcomeKind] = OutcomeKind.TIMEOUT
    certainty: ClassVar[Certainty] = Certainty.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "certainty": self.certainty.value,
            "txHash": self.tx_hash,
            "attemptsMade": self.attempts_made,
        }


@dataclass(slots=True, frozen=True)
class TxAmbiguousSuccess:
    tx_hash: Optional[TxHash]
    note: str

    kind: ClassVar[OutcomeKind] = OutcomeKind.AMBIGUOUS_SUCCESS
    certainty: ClassVar[Certainty] = Certainty.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "certainty": self.certainty.value,
            "txHash": self.tx_hash,
            "note": self.note,
        }


TransactionOutcome = Union[TxSuccess, TxFailed, TxTimeout, TxAmbiguousSuccess]


# --- Contract records --------------------------------------------------------


@dataclass(slots=True, frozen=True)
class IdentityRecord:
    """An identity as stored by the registry contract; `document_hash` is 64 hex chars."""

    owner: AccountId
    full_name: str
    email: str
    document_hash: str
    is_active: bool
    verification_level: int
    created_at: int
    updated_at: int

    def __post_init__(self) -> None:
        if not is_document_hash(self.document_hash):
            raise ValueError("document_hash must be exactly 64 hex characters")
        if not 0 <= self.verification_level <= 3:
            raise ValueError(f"verification_level out of range: {self.verification_level}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "full_name": self.full_name,
            "email": self.email,
            "document_hash": self.document_hash,
            "is_active": self.is_active,
            "verification_level": self.verification_level,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(slots=True, frozen=True)
class AccessPermission:
    granted_to: AccountId
    permission_type: int
    expires_at: int
    is_active: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "granted_to": self.granted_to,
            "permission_type": self.permission_type,
            "expires_at": self.expires_at,
            "is_active": self.is_active,
        }


__all__ = [
    "AccountId",
    "ContractId",
    "TxHash",
    "Invocation",
    "AccountInfo",
    "UnsignedTransaction",
    "PreparedTransaction",
    "SignedTransaction",
    "SimulationSuccess",
    "SimulationFailure",
    "SimulationResult",
    "SimulateResponse",
    "SubmitStatus",
    "SendTransactionResponse",
    "SubmissionHandle",
    "TxStatus",
    "TransactionStatusResponse",
    "PollStatus",
    "PollResult",
    "OutcomeKind",
    "Certainty",
    "TxSuccess",
    "TxFailed",
    "TxTimeout",
    "TxAmbiguousSuccess",
    "TransactionOutcome",
    "IdentityRecord",
    "AccessPermission",
]
