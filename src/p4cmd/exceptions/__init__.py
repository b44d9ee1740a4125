"""p4cmd exception hierarchy.

Exceptions are organized into domain-specific modules and re-exported
here, so they can all be imported from this package:
    from p4cmd.exceptions import CommandFailedError, ToolNotFoundError
"""

from __future__ import annotations

# Base exception
from p4cmd.exceptions.base import P4CmdError

# Configuration exceptions
from p4cmd.exceptions.config import ConfigError

# p4 command exceptions
from p4cmd.exceptions.p4 import (
    CommandFailedError,
    P4Error,
    SchemaViolationError,
    TaggedParseError,
)

# Runner-related exceptions
from p4cmd.exceptions.runner import (
    IOFailureError,
    RunnerError,
    ToolNotFoundError,
    WorkingDirectoryError,
)

__all__ = [
    # Base
    "P4CmdError",
    # Config
    "ConfigError",
    # p4
    "CommandFailedError",
    "P4Error",
    "SchemaViolationError",
    "TaggedParseError",
    # Runner
    "IOFailureError",
    "RunnerError",
    "ToolNotFoundError",
    "WorkingDirectoryError",
]
