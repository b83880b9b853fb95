"""
idreg_sdk.rpc
-------------

- RpcClient      : async HTTP JSON-RPC 2.0 transport (see .http)
- SorobanEndpoint: typed Soroban RPC primitives (see .endpoint)

Import style:

    from idreg_sdk.rpc import SorobanEndpoint
    endpoint = SorobanEndpoint.from_config(SDKConfig.from_env())
"""

from __future__ import annotations

from .endpoint import EndpointClient, SorobanEndpoint, decode_xdr  # noqa: F401
from .http import RpcClient  # noqa: F401

__all__ = ["RpcClient", "SorobanEndpoint", "EndpointClient", "decode_xdr"]
