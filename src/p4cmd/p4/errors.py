"""p4 error hierarchy, re-exported from :mod:`p4cmd.exceptions.p4`.

Import from here within the ``p4cmd.p4`` package for convenience.
Canonical definitions live in :mod:`p4cmd.exceptions.p4`.
"""

from __future__ import annotations

from p4cmd.exceptions.p4 import (
    CommandFailedError,
    P4Error,
    SchemaViolationError,
    TaggedParseError,
)

__all__ = [
    "CommandFailedError",
    "P4Error",
    "SchemaViolationError",
    "TaggedParseError",
]
