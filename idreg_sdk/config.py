"""
SDK configuration: RPC endpoint, network passphrase, contract id, retry and
confirmation-polling knobs.

- Loads sane defaults (Stellar testnet) and supports overrides via
  environment variables (IDREG_*).
- Provides helpers for building HTTP headers and validating endpoints.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .version import __version__

_DEFAULT_RPC = "https://soroban-testnet.stellar.org"
_DEFAULT_PASSPHRASE = "Test SDF Network ; September 2015"
_DEFAULT_CONTRACT = "CA6WCALSJ4HHQW56G6AI55CAG76KF6SCPMH3DQURNPXQVWRY4TINTFBC"

# Stellar's minimum per-operation inclusion fee, in stroops
BASE_FEE = 100


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None and v != "" else default


def _ensure_scheme(url: Optional[str], allowed: tuple[str, ...]) -> Optional[str]:
    if not url:
        return url
    lower = url.lower()
    if not any(lower.startswith(f"{sch}://") for sch in allowed):
        raise ValueError(f"URL must start with {allowed}, got: {url!r}")
    return url


def _positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value!r}")


@dataclass(slots=True)
class SDKConfig:
    # Network
    rpc_url: str = field(default_factory=lambda: _DEFAULT_RPC)
    network_passphrase: str = _DEFAULT_PASSPHRASE
    contract_id: str = _DEFAULT_CONTRACT
    # HTTP behavior
    request_timeout: float = 30.0
    max_retries: int = 3
    backoff_factor: float = 0.25
    # Transaction building
    base_fee: int = BASE_FEE
    tx_timeout: int = 30
    # Confirmation polling
    poll_interval: float = 1.0
    poll_max_attempts: int = 30
    # Headers / identity
    user_agent: str = field(default_factory=lambda: f"idreg-sdk-py/{__version__}")

    def __post_init__(self) -> None:
        _ensure_scheme(self.rpc_url, ("http", "https"))
        _positive("poll_interval", self.poll_interval)
        _positive("poll_max_attempts", self.poll_max_attempts)
        _positive("tx_timeout", self.tx_timeout)
        _positive("base_fee", self.base_fee)
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")

    @classmethod
    def from_env(cls, prefix: str = "IDREG_") -> "SDKConfig":
        """
        Create config from environment variables:

        IDREG_RPC_URL             (http/https)
        IDREG_NETWORK_PASSPHRASE  (str)
        IDREG_CONTRACT_ID         (C... strkey)
        IDREG_TIMEOUT             (float seconds, HTTP)
        IDREG_MAX_RETRIES         (int, transport retries)
        IDREG_BACKOFF             (float seconds, first retry backoff)
        IDREG_BASE_FEE            (int stroops)
        IDREG_TX_TIMEOUT          (int seconds, tx validity window)
        IDREG_POLL_INTERVAL       (float seconds)
        IDREG_POLL_MAX_ATTEMPTS   (int)
        IDREG_USER_AGENT          (str)
        """
        return cls(
            rpc_url=_env(f"{prefix}RPC_URL", _DEFAULT_RPC) or _DEFAULT_RPC,
            network_passphrase=_env(f"{prefix}NETWORK_PASSPHRASE", _DEFAULT_PASSPHRASE)
            or _DEFAULT_PASSPHRASE,
            contract_id=_env(f"{prefix}CONTRACT_ID", _DEFAULT_CONTRACT) or _DEFAULT_CONTRACT,
            request_timeout=float(_env(f"{prefix}TIMEOUT", "30.0") or 30.0),
            max_retries=int(_env(f"{prefix}MAX_RETRIES", "3") or 3),
            backoff_factor=float(_env(f"{prefix}BACKOFF", "0.25") or 0.25),
            base_fee=int(_env(f"{prefix}BASE_FEE", str(BASE_FEE)) or BASE_FEE),
            tx_timeout=int(_env(f"{prefix}TX_TIMEOUT", "30") or 30),
            poll_interval=float(_env(f"{prefix}POLL_INTERVAL", "1.0") or 1.0),
            poll_max_attempts=int(_env(f"{prefix}POLL_MAX_ATTEMPTS", "30") or 30),
            user_agent=_env(f"{prefix}USER_AGENT", f"idreg-sdk-py/{__version__}")
            or f"idreg-sdk-py/{__version__}",
        )

    @classmethod
    def with_overrides(
        cls, base: Optional["SDKConfig"] = None, **overrides: Any
    ) -> "SDKConfig":
        """
        Build from an existing config plus keyword overrides.
        Unknown keys and None values are ignored.
        """
        base = base or cls.from_env()
        data = base.to_dict()
        data.update({k: v for k, v in overrides.items() if k in data and v is not None})
        return cls(**data)

    def http_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rpc_url": self.rpc_url,
            "network_passphrase": self.network_passphrase,
            "contract_id": self.contract_id,
            "request_timeout": float(self.request_timeout),
            "max_retries": int(self.max_retries),
            "backoff_factor": float(self.backoff_factor),
            "base_fee": int(self.base_fee),
            "tx_timeout": int(self.tx_timeout),
            "poll_interval": float(self.poll_interval),
            "poll_max_attempts": int(self.poll_max_attempts),
            "user_agent": self.user_agent,
        }


__all__ = ["SDKConfig", "BASE_FEE"]
