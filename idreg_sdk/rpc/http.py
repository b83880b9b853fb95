from __future__ import annotations

"""
HTTP JSON-RPC 2.0 client (async) over `httpx.AsyncClient`.

- One POST per call; no per-call state is kept on the client, so a single
  instance can be shared by concurrent pipeline invocations.
- Retries transient transport failures and HTTP 429/502/503/504 with
  exponential backoff + jitter. JSON-RPC error objects are never retried.

Example:
    from idreg_sdk.rpc.http import RpcClient
    async with RpcClient("https://soroban-testnet.stellar.org") as rpc:
        health = await rpc.request("getHealth")
        print(health["status"])
"""

import asyncio
import json
import logging
import random
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Union

import httpx

from ..config import SDKConfig
from ..errors import JsonRpcCode, RpcError, from_jsonrpc_error
from ..version import __version__ as SDK_VERSION

log = logging.getLogger(__name__)

JSON = Union[dict, list, str, int, float, bool, None]
Params = Union[Sequence[Any], Mapping[str, Any], None]


def _is_retriable_http(status: int) -> bool:
    # Typical transient HTTP statuses: 429/502/503/504
    return status in (429, 502, 503, 504)


class _TransientError(Exception):
    """Internal marker for failures worth another attempt."""


@dataclass
class RpcClient:
    """Asynchronous JSON-RPC 2.0 client over HTTP."""

    url: str
    timeout: float = 30.0
    max_retries: int = 3
    backoff_base: float = 0.25
    backoff_max: float = 3.0
    headers: Optional[Mapping[str, str]] = None
    _client: httpx.AsyncClient = field(init=False, repr=False)

    def __post_init__(self) -> None:
        merged_headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"idreg-sdk-python/{SDK_VERSION}",
        }
        if self.headers:
            merged_headers.update(dict(self.headers))
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers=merged_headers,
        )

    @classmethod
    def from_config(cls, cfg: SDKConfig) -> "RpcClient":
        return cls(
            cfg.rpc_url,
            timeout=cfg.request_timeout,
            max_retries=cfg.max_retries,
            backoff_base=cfg.backoff_factor,
            headers=cfg.http_headers(),
        )

    # --- context manager -------------------------------------------------

    async def __aenter__(self) -> "RpcClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # --- public API ------------------------------------------------------

    async def request(
        self, method: str, params: Params = None, *, retries: Optional[int] = None
    ) -> JSON:
        """
        Perform a single JSON-RPC request and return `result` or raise RpcError.

        `retries` overrides the client's transport retry budget for this call
        (pass 0 for calls that must reach the server at most once).
        """
        payload = self._make_payload(method, params)
        budget = self.max_retries if retries is None else max(0, retries)

        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._send_once(payload)
            except _TransientError as e:
                if attempt > budget:
                    raise RpcError(
                        code=JsonRpcCode.TRANSPORT_FAILED,
                        message="RPC transport failed",
                        method=method,
                        data=f"{e} (after {attempt} attempt(s))",
                    ) from e
                delay = self._backoff(attempt)
                log.warning(
                    "RPC %s failed (attempt %d/%d): %s; retrying in %.2fs",
                    method,
                    attempt,
                    budget + 1,
                    e,
                    delay,
                )
                await asyncio.sleep(delay)

    # --- internals -------------------------------------------------------

    def _backoff(self, attempt: int) -> float:
        # full jitter over a capped exponential
        cap = min(self.backoff_base * (2 ** (attempt - 1)), self.backoff_max)
        return random.uniform(0.0, cap) if cap > 0 else 0.0

    def _make_payload(self, method: str, params: Params) -> Dict[str, Any]:
        if params is None:
            body_params: Any = {}
        elif isinstance(params, Mapping):
            body_params = dict(params)
        elif isinstance(params, Sequence) and not isinstance(params, (str, bytes, bytearray)):
            body_params = list(params)
        else:
            # Coerce single param into positional list
            body_params = [params]
        return {"jsonrpc": "2.0", "id": uuid.uuid4().hex, "method": method, "params": body_params}

    async def _send_once(self, payload: Dict[str, Any]) -> JSON:
        method = payload["method"]
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        try:
            r = await self._client.post(self.url, content=body)
        except httpx.TransportError as e:
            raise _TransientError(f"{type(e).__name__}: {e}") from e
        if _is_retriable_http(r.status_code):
            raise _TransientError(f"HTTP {r.status_code}")

        try:
            resp = r.json()
        except ValueError as e:
            raise RpcError(
                code=JsonRpcCode.PARSE_ERROR,
                message="Non-JSON response from RPC",
                method=method,
                data=f"HTTP {r.status_code}: {r.text[:256]}",
                http_status=r.status_code,
            ) from e

        if not isinstance(resp, dict):
            raise RpcError(
                code=JsonRpcCode.INTERNAL_ERROR,
                message="Invalid JSON-RPC response type",
                method=method,
                data=type(resp).__name__,
                http_status=r.status_code,
            )
        err = resp.get("error")
        if err is not None:
            if not isinstance(err, dict):
                err = {"message": str(err)}
            raise from_jsonrpc_error(
                err, method=method, request_id=resp.get("id"), http_status=r.status_code
            )
        if "result" not in resp:
            raise RpcError(
                code=JsonRpcCode.INTERNAL_ERROR,
                message="Malformed JSON-RPC response",
                method=method,
                data=resp,
                http_status=r.status_code,
            )
        return resp["result"]


__all__ = ["RpcClient", "JSON", "Params"]
