"""Perforce command exceptions.

Exceptions for ``p4`` invocations that launched but could not be turned
into typed results: rejected requests, malformed tagged output and records
that do not satisfy an entity schema.
"""

from __future__ import annotations

from collections.abc import Mapping

from p4cmd.exceptions.base import P4CmdError


class P4Error(P4CmdError):
    """Base exception for p4 command failures.

    Attributes:
        message: Human-readable error message.
        command: The p4 subcommand that failed (e.g. ``"changes"``).
        stderr: Raw stderr text from the p4 process, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str | None = None,
        stderr: str | None = None,
    ) -> None:
        self.command = command
        self.stderr = stderr
        super().__init__(message)


class CommandFailedError(P4Error):
    """``p4`` ran and exited non-zero.

    Not retryable without changing the request (bad changelist number,
    no such file, and so on).

    Attributes:
        code: The process exit code.
    """

    def __init__(
        self,
        message: str,
        *,
        code: int,
        command: str | None = None,
        stderr: str | None = None,
    ) -> None:
        self.code = code
        super().__init__(message, command=command, stderr=stderr)


class TaggedParseError(P4Error):
    """Output did not match the tagged record grammar.

    Usually a tool-version mismatch. Always surfaced, never swallowed.

    Attributes:
        context: Offending line (or a short description of the problem).
        line_number: 1-based line number within the parsed text.
    """

    def __init__(
        self,
        message: str,
        *,
        context: str | None = None,
        line_number: int | None = None,
        command: str | None = None,
    ) -> None:
        self.context = context
        self.line_number = line_number
        super().__init__(message, command=command)


class SchemaViolationError(P4Error):
    """A record is missing a required field or holds an unparseable value.

    Attributes:
        entity: Name of the entity kind being decoded (e.g. ``"Changelist"``).
        field: Tagged field name that failed.
        record: The offending record.
    """

    def __init__(
        self,
        message: str,
        *,
        entity: str | None = None,
        field: str | None = None,
        record: Mapping[str, str] | None = None,
        command: str | None = None,
    ) -> None:
        self.entity = entity
        self.field = field
        self.record = dict(record) if record is not None else None
        super().__init__(message, command=command)


__all__ = [
    "CommandFailedError",
    "P4Error",
    "SchemaViolationError",
    "TaggedParseError",
]
