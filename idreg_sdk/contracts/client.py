"""
idreg_sdk.contracts.client
==========================

Client for the identity-registry contract.

- Validates and encodes arguments before anything is built
  (`ArgumentError` on bad input; nothing reaches the endpoint)
- Runs writes through the full pipeline and returns a `TransactionOutcome`
- Runs reads through simulation only and decodes the result into Python
  values / record dataclasses

Example
-------
    from idreg_sdk import IdentityRegistryClient, SDKConfig, SorobanEndpoint

    cfg = SDKConfig.from_env()
    async with SorobanEndpoint.from_config(cfg) as endpoint:
        registry = IdentityRegistryClient(endpoint, config=cfg)

        outcome = await registry.register_identity(
            "DID001",
            owner="GB...",
            full_name="Ada Lovelace",
            email="ada@example.org",
            document_hash="11" * 32,
            secret="SB...",
        )
        print(outcome.kind, outcome.certainty)

        record = await registry.get_identity("DID001", requester="GB...")

Writes are signed by the account controlled by `secret`; it is also the
transaction source. The contract itself decides who is authorized: the
owner for register/update/grant/revoke, the admin for verify, either for
deactivate/activate.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from idreg_sdk.config import SDKConfig
from idreg_sdk.errors import ArgumentError
from idreg_sdk.rpc.endpoint import EndpointClient
from idreg_sdk.tx.pipeline import Decoder, query, submit_invocation
from idreg_sdk.tx.send import Sleep
from idreg_sdk.types import scval
from idreg_sdk.types.core import (
    AccessPermission,
    ContractId,
    IdentityRecord,
    Invocation,
    TransactionOutcome,
)

log = logging.getLogger(__name__)

MIN_VERIFICATION_LEVEL = 0
MAX_VERIFICATION_LEVEL = 3

# 1 = read, 2 = write, 3 = admin
PERMISSION_READ = 1
PERMISSION_WRITE = 2
PERMISSION_ADMIN = 3


class IdentityRegistryClient:
    """
    Bound to one deployed registry contract.

    Parameters
    ----------
    endpoint : any `EndpointClient` (normally a `SorobanEndpoint`).
    contract_id : C... strkey; defaults to `config.contract_id`.
    config : `SDKConfig` supplying network passphrase, fees and polling knobs.
    sleep : optional awaitable sleep for the confirmation poller.
    """

    def __init__(
        self,
        endpoint: EndpointClient,
        contract_id: Optional[ContractId] = None,
        *,
        config: Optional[SDKConfig] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self._config = config or SDKConfig()
        self._endpoint = endpoint
        self._contract_id = contract_id or self._config.contract_id
        self._sleep = sleep

    @property
    def contract_id(self) -> ContractId:
        return self._contract_id

    @property
    def config(self) -> SDKConfig:
        return self._config

    # ------------------------------------------------------------------ plumbing

    def invocation(self, function: str, *args: Any) -> Invocation:
        return Invocation(contract_id=self._contract_id, function=function, args=args)

    async def _write(self, function: str, args: tuple, secret: str) -> TransactionOutcome:
        log.debug("write %s on %s", function, self._contract_id)
        return await submit_invocation(
            self._endpoint,
            self.invocation(function, *args),
            secret=secret,
            config=self._config,
            sleep=self._sleep,
        )

    async def _read(self, function: str, args: tuple, decode: Decoder) -> Any:
        log.debug("read %s on %s", function, self._contract_id)
        return await query(
            self._endpoint,
            self.invocation(function, *args),
            decode=decode,
            config=self._config,
        )

    @staticmethod
    def _id(identity_id: Any, function: str) -> Any:
        if not isinstance(identity_id, str) or not identity_id:
            raise ArgumentError(
                "identity id must be a non-empty string", function=function, parameter="identity_id"
            )
        return scval.string(identity_id, function=function, parameter="identity_id")

    # ------------------------------------------------------------------ writes

    async def initialize(self, admin: str, *, secret: str) -> TransactionOutcome:
        fn = "initialize"
        args = (scval.account(admin, function=fn, parameter="admin"),)
        return await self._write(fn, args, secret)

    async def register_identity(
        self,
        identity_id: str,
        *,
        owner: str,
        full_name: str,
        email: str,
        document_hash: str,
        secret: str,
    ) -> TransactionOutcome:
        fn = "register_identity"
        args = (
            self._id(identity_id, fn),
            scval.account(owner, function=fn, parameter="owner"),
            scval.string(full_name, function=fn, parameter="full_name"),
            scval.string(email, function=fn, parameter="email"),
            scval.document_hash(document_hash, function=fn),
        )
        return await self._write(fn, args, secret)

    async def update_identity(
        self,
        identity_id: str,
        *,
        full_name: str,
        email: str,
        document_hash: str,
        secret: str,
    ) -> TransactionOutcome:
        fn = "update_identity"
        args = (
            self._id(identity_id, fn),
            scval.string(full_name, function=fn, parameter="full_name"),
            scval.string(email, function=fn, parameter="email"),
            scval.document_hash(document_hash, function=fn),
        )
        return await self._write(fn, args, secret)

    async def verify_identity(
        self, identity_id: str, level: int, *, secret: str
    ) -> TransactionOutcome:
        fn = "verify_identity"
        args = (
            self._id(identity_id, fn),
            scval.u32(
                level,
                minimum=MIN_VERIFICATION_LEVEL,
                maximum=MAX_VERIFICATION_LEVEL,
                function=fn,
                parameter="verification_level",
            ),
        )
        return await self._write(fn, args, secret)

    async def grant_access(
        self,
        identity_id: str,
        grantee: str,
        *,
        permission: int,
        duration_seconds: int,
        secret: str,
    ) -> TransactionOutcome:
        fn = "grant_access"
        args = (
            self._id(identity_id, fn),
            scval.account(grantee, function=fn, parameter="granted_to"),
            scval.u32(
                permission,
                minimum=PERMISSION_READ,
                maximum=PERMISSION_ADMIN,
                function=fn,
                parameter="permission_type",
            ),
            scval.u64(duration_seconds, function=fn, parameter="duration_seconds"),
        )
        return await self._write(fn, args, secret)

    async def revoke_access(
        self, identity_id: str, grantee: str, *, secret: str
    ) -> TransactionOutcome:
        fn = "revoke_access"
        args = (
            self._id(identity_id, fn),
            scval.account(grantee, function=fn, parameter="revoked_from"),
        )
        return await self._write(fn, args, secret)

    async def deactivate_identity(self, identity_id: str, *, secret: str) -> TransactionOutcome:
        fn = "deactivate_identity"
        return await self._write(fn, (self._id(identity_id, fn),), secret)

    async def activate_identity(self, identity_id: str, *, secret: str) -> TransactionOutcome:
        fn = "activate_identity"
        return await self._write(fn, (self._id(identity_id, fn),), secret)

    # ------------------------------------------------------------------ reads

    async def get_identity(self, identity_id: str, *, requester: str) -> Optional[IdentityRecord]:
        """The record, or None when it does not exist or `requester` may not see it."""
        fn = "get_identity"
        args = (
            self._id(identity_id, fn),
            scval.account(requester, function=fn, parameter="requester"),
        )
        return await self._read(fn, args, scval.decode_identity_record)

    async def check_access(self, identity_id: str, *, requester: str) -> Optional[AccessPermission]:
        """Active, unexpired permission held by `requester`, or None."""
        fn = "check_access"
        args = (
            self._id(identity_id, fn),
            scval.account(requester, function=fn, parameter="requester"),
        )
        return await self._read(fn, args, scval.decode_access_permission)

    async def get_identities_by_owner(self, owner: str) -> List[str]:
        fn = "get_identities_by_owner"
        args = (scval.account(owner, function=fn, parameter="owner"),)
        return await self._read(fn, args, scval.decode_string_list)

    async def get_total_identities(self) -> int:
        return await self._read("get_total_identities", (), scval.decode_u32)

    async def get_admin(self) -> str:
        return await self._read("get_admin", (), scval.decode_address)


__all__ = [
    "IdentityRegistryClient",
    "MIN_VERIFICATION_LEVEL",
    "MAX_VERIFICATION_LEVEL",
    "PERMISSION_READ",
    "PERMISSION_WRITE",
    "PERMISSION_ADMIN",
]
