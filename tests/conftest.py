from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import pytest
from stellar_sdk import Keypair, SorobanDataBuilder, StrKey, TransactionEnvelope, scval
from stellar_sdk import xdr as stellar_xdr

from idreg_sdk.config import SDKConfig
from idreg_sdk.errors import AccountNotFoundError
from idreg_sdk.tx.build import build_unsigned_for
from idreg_sdk.tx.simulate import assemble
from idreg_sdk.types.core import (
    AccountInfo,
    Invocation,
    PreparedTransaction,
    SendTransactionResponse,
    SimulateResponse,
    SubmitStatus,
    TransactionStatusResponse,
    TxStatus,
)

PASSPHRASE = "Test SDF Network ; September 2015"

OWNER = Keypair.from_raw_ed25519_seed(bytes([1]) * 32)
ADMIN = Keypair.from_raw_ed25519_seed(bytes([2]) * 32)
STRANGER = Keypair.from_raw_ed25519_seed(bytes([3]) * 32)

CONTRACT_ID = StrKey.encode_contract(bytes([7]) * 32)

DOC_HASH = "11" * 32


def sc_struct(**fields: stellar_xdr.SCVal) -> stellar_xdr.SCVal:
    """Contract struct value: a symbol-keyed map, keys in sorted order."""
    entries = [
        stellar_xdr.SCMapEntry(key=scval.to_symbol(name), val=fields[name])
        for name in sorted(fields)
    ]
    return stellar_xdr.SCVal(
        type=stellar_xdr.SCValType.SCV_MAP, map=stellar_xdr.SCMap(sc_map=entries)
    )


def identity_value(
    *,
    owner: str = OWNER.public_key,
    level: int = 2,
    active: bool = True,
    doc: bytes = bytes([0x11]) * 32,
) -> stellar_xdr.SCVal:
    return sc_struct(
        owner=scval.to_address(owner),
        full_name=scval.to_string("Ada Lovelace"),
        email=scval.to_string("ada@example.org"),
        document_hash=scval.to_bytes(doc),
        is_active=scval.to_bool(active),
        verification_level=scval.to_uint32(level),
        created_at=scval.to_uint64(1_700_000_000),
        updated_at=scval.to_uint64(1_700_000_500),
    )


def sim_ok(
    *,
    return_value: Optional[stellar_xdr.SCVal] = None,
    min_resource_fee: int = 5_000,
    auth: Sequence[stellar_xdr.SorobanAuthorizationEntry] = (),
) -> SimulateResponse:
    return SimulateResponse(
        transaction_data=SorobanDataBuilder().set_resource_fee(min_resource_fee).build(),
        min_resource_fee=min_resource_fee,
        auth=tuple(auth),
        return_value=return_value,
        latest_ledger=1000,
    )


def invocation(function: str = "register_identity", *args: Any) -> Invocation:
    return Invocation(contract_id=CONTRACT_ID, function=function, args=args)


def make_prepared(
    source: Keypair = OWNER, *, sequence: int = 10, fn: str = "register_identity"
) -> PreparedTransaction:
    unsigned = build_unsigned_for(
        AccountInfo(source.public_key, sequence),
        invocation(fn, scval.to_string("DID001")),
        network_passphrase=PASSPHRASE,
    )
    return assemble(unsigned, sim_ok())


class FakeEndpoint:
    """
    In-memory endpoint recording every primitive call.

    `statuses` feeds successive getTransaction answers: a TxStatus, a dict of
    TransactionStatusResponse fields (must include "status"), or an exception
    to raise. Once exhausted, NOT_FOUND is returned.
    """

    def __init__(
        self,
        *,
        accounts: Optional[Dict[str, int]] = None,
        simulation: Optional[SimulateResponse] = None,
        send_status: SubmitStatus = SubmitStatus.PENDING,
        send_error_code: Optional[str] = None,
        statuses: Optional[List[Any]] = None,
    ) -> None:
        self.accounts = {OWNER.public_key: 100} if accounts is None else dict(accounts)
        self.simulation = simulation or sim_ok()
        self.send_status = send_status
        self.send_error_code = send_error_code
        self.statuses = list(statuses or [])
        self.calls: List[tuple] = []
        self.sent: List[TransactionEnvelope] = []
        self.closed = False

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    async def get_account(self, account_id: str) -> AccountInfo:
        self.calls.append(("get_account", account_id))
        if account_id not in self.accounts:
            raise AccountNotFoundError(account_id)
        return AccountInfo(account_id, self.accounts[account_id])

    async def simulate_transaction(self, envelope_xdr: str) -> SimulateResponse:
        self.calls.append(("simulate_transaction", envelope_xdr))
        return self.simulation

    async def send_transaction(self, envelope_xdr: str) -> SendTransactionResponse:
        self.calls.append(("send_transaction", envelope_xdr))
        envelope = TransactionEnvelope.from_xdr(envelope_xdr, PASSPHRASE)
        self.sent.append(envelope)
        return SendTransactionResponse(
            status=self.send_status,
            tx_hash=envelope.hash_hex(),
            latest_ledger=1001,
            error_result_code=self.send_error_code,
        )

    async def get_transaction(self, tx_hash: str) -> TransactionStatusResponse:
        self.calls.append(("get_transaction", tx_hash))
        item = self.statuses.pop(0) if self.statuses else TxStatus.NOT_FOUND
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, dict):
            return TransactionStatusResponse(tx_hash=tx_hash, **item)
        return TransactionStatusResponse(status=item, tx_hash=tx_hash)

    async def aclose(self) -> None:
        self.closed = True


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def endpoint() -> FakeEndpoint:
    return FakeEndpoint()


@pytest.fixture
def config() -> SDKConfig:
    return SDKConfig(contract_id=CONTRACT_ID, network_passphrase=PASSPHRASE)
