"""
idreg_sdk.wallet.signer
=======================

Ed25519 signing of prepared transactions.

    signed = sign_transaction(prepared, "SB...")
    signed.tx_hash   # hex hash the Submitter and Poller key on

Notes
-----
- No I/O. The keypair derived from the secret seed lives only for the
  duration of the call; nothing here stores it, and the seed is never logged.
- The key must belong to the envelope's source account; a mismatch is a
  `SigningError` rather than a ledger rejection later on.
- The prepared envelope is not mutated; signing happens on a copy.
"""

from __future__ import annotations

import logging

from stellar_sdk import Keypair, TransactionEnvelope

from idreg_sdk.errors import SigningError
from idreg_sdk.types.core import PreparedTransaction, SignedTransaction

log = logging.getLogger(__name__)

__all__ = ["sign_transaction", "public_key_of"]


def _keypair(secret: str) -> Keypair:
    try:
        return Keypair.from_secret(secret)
    except (ValueError, TypeError):
        # do not chain: the original message may echo the seed
        raise SigningError("malformed secret seed") from None


def public_key_of(secret: str) -> str:
    """Account id (G...) controlled by `secret`."""
    return _keypair(secret).public_key


def sign_transaction(prepared: PreparedTransaction, secret: str) -> SignedTransaction:
    keypair = _keypair(secret)
    source = prepared.envelope.transaction.source.account_id
    if keypair.public_key != source:
        raise SigningError(
            f"key {keypair.public_key} does not match the transaction source",
            account_id=source,
        )

    envelope = TransactionEnvelope.from_xdr(
        prepared.envelope.to_xdr(), prepared.envelope.network_passphrase
    )
    envelope.sign(keypair)
    tx_hash = envelope.hash_hex()
    log.debug("signed %s source=%s tx=%s", prepared.invocation.function, source, tx_hash)
    return SignedTransaction(
        envelope=envelope,
        invocation=prepared.invocation,
        source=prepared.source,
        tx_hash=tx_hash,
    )
