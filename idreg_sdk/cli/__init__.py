"""
idreg_sdk.cli
=============

Typer-based command-line interface, installed as the `idreg` console script.

    $ idreg --help

From Python:

    >>> from idreg_sdk.cli import run
    >>> run(["version"])
"""

from .main import app, run  # noqa: F401

__all__ = ["app", "run"]
