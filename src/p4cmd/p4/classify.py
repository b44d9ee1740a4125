"""Classify a finished p4 process as success or failure.

Classification happens before any parsing: the stdout of a failed command
may be partial or absent and is never handed to the tokenizer.
"""

from __future__ import annotations

from p4cmd.exceptions import CommandFailedError
from p4cmd.runners.models import CommandResult

__all__ = ["classify", "diagnostic_lines"]


def classify(
    result: CommandResult,
    *,
    subcommand: str | None = None,
    encoding: str = "utf-8",
) -> CommandFailedError | None:
    """Return the failure described by ``result``, or None on success.

    Exit status 0 is success whatever stderr holds (p4 prints informational
    text there). Otherwise the message is taken from stderr, then stdout,
    then falls back to a generic text.

    Args:
        result: Raw output of the process.
        subcommand: p4 subcommand, recorded on the error.
        encoding: Encoding of the output streams.

    Example:
        >>> error = classify(CommandResult(1, b"No such file(s).\\n", b""))
        >>> error.code, error.message
        (1, 'No such file(s).')
    """
    if result.returncode == 0:
        return None

    stderr = result.stderr_text(encoding).strip()
    stdout = result.stdout_text(encoding).strip()
    message = stderr or stdout or f"command failed with code {result.returncode}"
    return CommandFailedError(
        message,
        code=result.returncode,
        command=subcommand,
        stderr=stderr or None,
    )


def diagnostic_lines(result: CommandResult, *, encoding: str = "utf-8") -> tuple[str, ...]:
    """Non-empty stderr lines, e.g. warnings printed by a successful run."""
    return tuple(
        line.strip()
        for line in result.stderr_text(encoding).splitlines()
        if line.strip()
    )
