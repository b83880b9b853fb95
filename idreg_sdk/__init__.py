"""
Identity registry SDK for Soroban (Python)
Convenience exports for the most common client APIs.
"""

from .version import __version__  # noqa: F401

# Core config & errors
from .config import SDKConfig  # noqa: F401
from .errors import (  # noqa: F401
    IdRegSdkError,
    RpcError,
    ArgumentError,
    AccountNotFoundError,
    SimulationError,
    SigningError,
    SubmissionError,
    ResponseDecodeError,
    DecodeErrorKind,
    is_decode_ambiguity,
)

# RPC
from .rpc.http import RpcClient  # noqa: F401
from .rpc.endpoint import SorobanEndpoint  # noqa: F401

# Wallet
from .wallet.signer import sign_transaction  # noqa: F401

# Tx pipeline
from .tx.build import build_unsigned  # noqa: F401
from .tx.simulate import simulate  # noqa: F401
from .tx.send import ConfirmationPoller, submit  # noqa: F401
from .tx.outcome import classify_exception, classify_poll  # noqa: F401
from .tx.pipeline import query, submit_invocation  # noqa: F401

# Types
from .types.core import (  # noqa: F401
    AccessPermission,
    Certainty,
    IdentityRecord,
    Invocation,
    TransactionOutcome,
    TxAmbiguousSuccess,
    TxFailed,
    TxSuccess,
    TxTimeout,
)

# Contracts
from .contracts.client import IdentityRegistryClient  # noqa: F401

# Utilities
from .utils.bytes import bytes_to_hex, hex_to_bytes  # noqa: F401

__all__ = [
    "__version__",
    # Core
    "SDKConfig",
    "IdRegSdkError", "RpcError", "ArgumentError", "AccountNotFoundError",
    "SimulationError", "SigningError", "SubmissionError",
    "ResponseDecodeError", "DecodeErrorKind", "is_decode_ambiguity",
    # RPC
    "RpcClient", "SorobanEndpoint",
    # Wallet
    "sign_transaction",
    # Tx
    "build_unsigned", "simulate", "submit", "ConfirmationPoller",
    "classify_poll", "classify_exception", "query", "submit_invocation",
    # Types
    "AccessPermission", "Certainty", "IdentityRecord", "Invocation",
    "TransactionOutcome", "TxSuccess", "TxFailed", "TxTimeout", "TxAmbiguousSuccess",
    # Contracts
    "IdentityRegistryClient",
    # Utilities
    "bytes_to_hex", "hex_to_bytes",
]
