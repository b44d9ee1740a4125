"""Typed client for the Perforce ``p4`` command-line tool."""

from __future__ import annotations

from p4cmd.config import P4Config, load_config
from p4cmd.p4 import CommandOutcome, P4Client

__version__ = "0.1.0"

__all__ = [
    "CommandOutcome",
    "P4Client",
    "P4Config",
    "load_config",
    "__version__",
]
