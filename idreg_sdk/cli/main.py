"""
idreg_sdk.cli.main
==================

`idreg`: command-line interface for the identity-registry contract.

Examples
--------
    $ idreg version
    $ idreg --rpc https://soroban-testnet.stellar.org health
    $ idreg identity get DID001 --requester GB...
    $ IDREG_SECRET=SB... idreg identity register DID001 \\
          --owner GB... --name "Ada Lovelace" --email ada@example.org \\
          --document-hash 1111...11
    $ idreg access check DID001 --requester GC...
    $ idreg total

Configuration
-------------
- RPC URL            : `--rpc` or env `IDREG_RPC_URL`
- Network passphrase : `--network-passphrase` or env `IDREG_NETWORK_PASSPHRASE`
- Contract id        : `--contract` or env `IDREG_CONTRACT_ID`
- Log level          : `--log-level` or env `IDREG_LOG_LEVEL` (default WARNING)
- Signing secret     : `--secret` or env `IDREG_SECRET` (write commands only)

Other `IDREG_*` settings (timeouts, fees, polling) are read from the
environment, see `idreg_sdk.config.SDKConfig.from_env`.

Output and exit codes
---------------------
Every command prints JSON. Write commands print the transaction outcome with
its `kind` and `certainty`:

    0  succeeded
    1  failed (or any error before/at submission)
    2  unknown: timed out or ambiguous; check the hash independently
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import typer

from ..config import SDKConfig
from ..contracts.client import IdentityRegistryClient
from ..errors import IdRegSdkError
from ..rpc.endpoint import SorobanEndpoint
from ..types.core import Certainty, TransactionOutcome
from ..version import __version__ as SDK_VERSION

log = logging.getLogger(__name__)

app = typer.Typer(
    name="idreg",
    help="Identity registry CLI: register, verify and query identities on Soroban.",
    no_args_is_help=True,
    add_completion=False,
)
identity_app = typer.Typer(no_args_is_help=True, help="Create, update and read identities.")
access_app = typer.Typer(no_args_is_help=True, help="Grant, revoke and check access permissions.")
app.add_typer(identity_app, name="identity")
app.add_typer(access_app, name="access")

__all__ = ["app", "main", "run"]

EXIT_CODES = {
    Certainty.SUCCEEDED: 0,
    Certainty.FAILED: 1,
    Certainty.UNKNOWN: 2,
}


@dataclass
class Ctx:
    config: SDKConfig
    log_level: str


def _print_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, ensure_ascii=False, default=str))


def _open_endpoint(cfg: SDKConfig) -> SorobanEndpoint:
    return SorobanEndpoint.from_config(cfg)


def _execute(ctx: typer.Context, fn: Callable[[IdentityRegistryClient], Awaitable[Any]]) -> Any:
    """Run `fn` against a fresh endpoint; SDK errors become exit code 1."""
    c: Ctx = ctx.obj

    async def _go() -> Any:
        endpoint = _open_endpoint(c.config)
        try:
            return await fn(IdentityRegistryClient(endpoint, config=c.config))
        finally:
            await endpoint.aclose()

    try:
        return asyncio.run(_go())
    except IdRegSdkError as e:
        log.debug("command failed", exc_info=True)
        typer.echo(json.dumps({"error": type(e).__name__, "message": str(e)}), err=True)
        raise typer.Exit(code=1)


def _emit_outcome(outcome: TransactionOutcome) -> None:
    _print_json(outcome.to_dict())
    code = EXIT_CODES[outcome.certainty]
    if code:
        raise typer.Exit(code=code)


SecretOption = typer.Option(
    ...,
    "--secret",
    envvar="IDREG_SECRET",
    help="Secret seed (S...) of the signing account.",
    show_default=False,
)


@app.callback()
def _root(
    ctx: typer.Context,
    rpc: Optional[str] = typer.Option(
        None, "--rpc", help="Soroban RPC URL.", envvar="IDREG_RPC_URL"
    ),
    network_passphrase: Optional[str] = typer.Option(
        None,
        "--network-passphrase",
        help="Network passphrase.",
        envvar="IDREG_NETWORK_PASSPHRASE",
    ),
    contract: Optional[str] = typer.Option(
        None, "--contract", help="Registry contract id (C...).", envvar="IDREG_CONTRACT_ID"
    ),
    log_level: str = typer.Option(
        "WARNING", "--log-level", help="Python logging level.", envvar="IDREG_LOG_LEVEL"
    ),
) -> None:
    """Resolve effective configuration for this CLI process."""
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise typer.BadParameter(f"unknown log level {log_level!r}", param_hint="--log-level")
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    try:
        cfg = SDKConfig.with_overrides(
            SDKConfig.from_env(),
            rpc_url=rpc,
            network_passphrase=network_passphrase,
            contract_id=contract,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    ctx.obj = Ctx(config=cfg, log_level=log_level.upper())


# --- Diagnostics --------------------------------------------------------------


@app.command("version")
def version() -> None:
    """Print the SDK CLI version."""
    typer.echo(f"idreg {SDK_VERSION}")


@app.command("env")
def env(ctx: typer.Context) -> None:
    """Show the effective configuration."""
    c: Ctx = ctx.obj
    _print_json({**c.config.to_dict(), "log_level": c.log_level, "sdk_version": SDK_VERSION})


@app.command("health")
def health(ctx: typer.Context) -> None:
    """Query endpoint health, network and latest ledger."""
    c: Ctx = ctx.obj

    async def _go() -> Any:
        endpoint = _open_endpoint(c.config)
        try:
            return {
                "health": await endpoint.get_health(),
                "network": await endpoint.get_network(),
                "latest_ledger": await endpoint.get_latest_ledger(),
            }
        finally:
            await endpoint.aclose()

    try:
        _print_json(asyncio.run(_go()))
    except IdRegSdkError as e:
        typer.echo(json.dumps({"error": type(e).__name__, "message": str(e)}), err=True)
        raise typer.Exit(code=1)


# --- Reads --------------------------------------------------------------------


@identity_app.command("get")
def identity_get(
    ctx: typer.Context,
    identity_id: str = typer.Argument(..., help="Identity id, e.g. DID001."),
    requester: str = typer.Option(..., "--requester", help="Requesting account (G...)."),
) -> None:
    """Read an identity record (null when absent or not visible to the requester)."""
    record = _execute(ctx, lambda c: c.get_identity(identity_id, requester=requester))
    _print_json(record.to_dict() if record is not None else None)


@access_app.command("check")
def access_check(
    ctx: typer.Context,
    identity_id: str = typer.Argument(...),
    requester: str = typer.Option(..., "--requester", help="Account whose access to check."),
) -> None:
    """Show the requester's active permission on an identity (null when none)."""
    perm = _execute(ctx, lambda c: c.check_access(identity_id, requester=requester))
    _print_json(perm.to_dict() if perm is not None else None)


@app.command("owned")
def owned(
    ctx: typer.Context,
    owner: str = typer.Argument(..., help="Owner account (G...)."),
) -> None:
    """List identity ids registered to an owner."""
    _print_json(_execute(ctx, lambda c: c.get_identities_by_owner(owner)))


@app.command("total")
def total(ctx: typer.Context) -> None:
    """Print the number of registered identities."""
    _print_json({"total_identities": _execute(ctx, lambda c: c.get_total_identities())})


@app.command("admin")
def admin(ctx: typer.Context) -> None:
    """Print the registry admin account."""
    _print_json({"admin": _execute(ctx, lambda c: c.get_admin())})


# --- Writes -------------------------------------------------------------------


@identity_app.command("register")
def identity_register(
    ctx: typer.Context,
    identity_id: str = typer.Argument(...),
    owner: str = typer.Option(..., "--owner", help="Owner account (G...)."),
    full_name: str = typer.Option(..., "--name", help="Full name."),
    email: str = typer.Option(..., "--email", help="Email address."),
    document_hash: str = typer.Option(
        ..., "--document-hash", help="SHA-256 of the identity document (64 hex chars)."
    ),
    secret: str = SecretOption,
) -> None:
    """Register a new identity (signed by the owner)."""
    _emit_outcome(
        _execute(
            ctx,
            lambda c: c.register_identity(
                identity_id,
                owner=owner,
                full_name=full_name,
                email=email,
                document_hash=document_hash,
                secret=secret,
            ),
        )
    )


@identity_app.command("update")
def identity_update(
    ctx: typer.Context,
    identity_id: str = typer.Argument(...),
    full_name: str = typer.Option(..., "--name"),
    email: str = typer.Option(..., "--email"),
    document_hash: str = typer.Option(..., "--document-hash"),
    secret: str = SecretOption,
) -> None:
    """Update an identity's details (signed by the owner)."""
    _emit_outcome(
        _execute(
            ctx,
            lambda c: c.update_identity(
                identity_id,
                full_name=full_name,
                email=email,
                document_hash=document_hash,
                secret=secret,
            ),
        )
    )


@identity_app.command("verify")
def identity_verify(
    ctx: typer.Context,
    identity_id: str = typer.Argument(...),
    level: int = typer.Option(..., "--level", help="Verification level 0-3."),
    secret: str = SecretOption,
) -> None:
    """Set an identity's verification level (signed by the admin)."""
    _emit_outcome(_execute(ctx, lambda c: c.verify_identity(identity_id, level, secret=secret)))


@identity_app.command("deactivate")
def identity_deactivate(
    ctx: typer.Context,
    identity_id: str = typer.Argument(...),
    secret: str = SecretOption,
) -> None:
    """Deactivate an identity (owner or admin)."""
    _emit_outcome(_execute(ctx, lambda c: c.deactivate_identity(identity_id, secret=secret)))


@identity_app.command("activate")
def identity_activate(
    ctx: typer.Context,
    identity_id: str = typer.Argument(...),
    secret: str = SecretOption,
) -> None:
    """Re-activate an identity (owner or admin)."""
    _emit_outcome(_execute(ctx, lambda c: c.activate_identity(identity_id, secret=secret)))


@access_app.command("grant")
def access_grant(
    ctx: typer.Context,
    identity_id: str = typer.Argument(...),
    grantee: str = typer.Argument(..., help="Account receiving access (G...)."),
    permission: int = typer.Option(1, "--permission", help="1=read, 2=write, 3=admin."),
    duration: int = typer.Option(86400, "--duration", help="Validity in seconds."),
    secret: str = SecretOption,
) -> None:
    """Grant an account access to an identity (signed by the owner)."""
    _emit_outcome(
        _execute(
            ctx,
            lambda c: c.grant_access(
                identity_id,
                grantee,
                permission=permission,
                duration_seconds=duration,
                secret=secret,
            ),
        )
    )


@access_app.command("revoke")
def access_revoke(
    ctx: typer.Context,
    identity_id: str = typer.Argument(...),
    grantee: str = typer.Argument(...),
    secret: str = SecretOption,
) -> None:
    """Revoke an account's access to an identity (signed by the owner)."""
    _emit_outcome(_execute(ctx, lambda c: c.revoke_access(identity_id, grantee, secret=secret)))


# --- Entrypoints --------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> int:
    """
    Run the CLI. Returns an integer exit code.
    """
    try:
        rv = app(prog_name="idreg", standalone_mode=False, args=argv)
    except typer.Exit as e:
        return int(e.exit_code)
    except Exception as e:
        typer.echo(f"error: {e}", err=True)
        return 1
    return rv if isinstance(rv, int) else 0


def run(argv: Optional[list[str]] = None) -> int:
    """Alias for :func:`main`."""
    return main(argv)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
