"""
idreg_sdk.wallet
----------------

- sign_transaction : sign a prepared transaction with an ed25519 secret seed
- public_key_of    : account id controlled by a secret seed
"""

from .signer import public_key_of, sign_transaction  # noqa: F401

__all__ = ["sign_transaction", "public_key_of"]
