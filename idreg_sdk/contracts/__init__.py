"""
idreg_sdk.contracts
-------------------

- IdentityRegistryClient : typed async client for the identity-registry contract
"""

from .client import IdentityRegistryClient  # noqa: F401

__all__ = ["IdentityRegistryClient"]
