"""Perforce (p4) client package.

Provides :class:`P4Client` for p4 CLI operations, typed entities decoded
from tagged output, argument builders and a domain-specific error
hierarchy.
"""

from __future__ import annotations

from p4cmd.p4.classify import classify, diagnostic_lines
from p4cmd.p4.client import P4Client
from p4cmd.p4.errors import (
    CommandFailedError,
    P4Error,
    SchemaViolationError,
    TaggedParseError,
)
from p4cmd.p4.filetypes import (
    Action,
    BaseFileType,
    FileType,
    FileTypeModifiers,
    parse_action,
)
from p4cmd.p4.models import (
    Changelist,
    ChangelistFile,
    ChangelistStatus,
    ClientSpec,
    DepotDir,
    DepotFile,
    FileStat,
    PrintedFile,
    SubmitResult,
    SubmittedFile,
    SyncedFile,
    User,
    ViewMapping,
    WhereMapping,
)
from p4cmd.p4.outcome import CommandOutcome

__all__ = [
    # Client
    "P4Client",
    "CommandOutcome",
    "classify",
    "diagnostic_lines",
    # Errors
    "CommandFailedError",
    "P4Error",
    "SchemaViolationError",
    "TaggedParseError",
    # File types
    "Action",
    "BaseFileType",
    "FileType",
    "FileTypeModifiers",
    "parse_action",
    # Models
    "Changelist",
    "ChangelistFile",
    "ChangelistStatus",
    "ClientSpec",
    "DepotDir",
    "DepotFile",
    "FileStat",
    "PrintedFile",
    "SubmitResult",
    "SubmittedFile",
    "SyncedFile",
    "User",
    "ViewMapping",
    "WhereMapping",
]
