"""
idreg_sdk.tx
------------

Transaction pipeline stages:

- build     : build_unsigned / build_unsigned_for
- simulate  : simulate (+ envelope assembly)
- send      : submit / ConfirmationPoller
- outcome   : classify_poll / classify_exception
- pipeline  : query (reads) / submit_invocation (writes)
"""

from .build import build_unsigned, build_unsigned_for  # noqa: F401
from .outcome import AMBIGUOUS_NOTE, classify_exception, classify_poll  # noqa: F401
from .pipeline import query, submit_invocation  # noqa: F401
from .send import ConfirmationPoller, submit  # noqa: F401
from .simulate import simulate  # noqa: F401

__all__ = [
    "build_unsigned",
    "build_unsigned_for",
    "simulate",
    "submit",
    "ConfirmationPoller",
    "classify_poll",
    "classify_exception",
    "AMBIGUOUS_NOTE",
    "query",
    "submit_invocation",
]
