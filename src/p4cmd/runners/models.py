"""Data models for subprocess invocation.

This module defines the immutable, frozen dataclasses exchanged with the
process runner:
- Invocation: what to run (subcommand, arguments, cwd, env, stdin)
- CommandResult: what came back (exit code, raw stdout/stderr, duration)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

__all__ = [
    "CommandResult",
    "Invocation",
]


@dataclass(frozen=True, slots=True)
class Invocation:
    """A single request to run the external tool.

    Attributes:
        subcommand: Tool subcommand (e.g. ``"changes"``).
        arguments: Ordered arguments following the subcommand.
        cwd: Working directory override for this invocation.
        env: Environment variable overrides for this invocation.
        input: Text written to the process's stdin (``-i`` spec forms).

    Raises:
        ValueError: If the subcommand is empty or any argument contains a
            NUL byte.

    Example:
        >>> inv = Invocation("changes", ("-m", "1"))
        >>> inv.argv()
        ('changes', '-m', '1')
    """

    subcommand: str
    arguments: tuple[str, ...] = ()
    cwd: Path | None = None
    env: Mapping[str, str] = field(default_factory=dict)
    input: str | None = None

    def __post_init__(self) -> None:
        """Validate and freeze the invocation."""
        if not self.subcommand or self.subcommand.isspace():
            raise ValueError("Subcommand cannot be empty")
        for part in (self.subcommand, *self.arguments):
            if "\x00" in part:
                raise ValueError(f"Argument contains a NUL byte: {part!r}")
        object.__setattr__(self, "arguments", tuple(self.arguments))
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    def argv(self) -> tuple[str, ...]:
        """Subcommand followed by its arguments."""
        return (self.subcommand, *self.arguments)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Raw output of one executed invocation.

    The runner never interprets the content; decoding is left to the
    caller.

    Attributes:
        returncode: Exit code from the command (0 = success).
        stdout: Standard output captured from the command.
        stderr: Standard error captured from the command.
        duration_ms: Execution time in milliseconds.
        command: The argv that was executed, with secrets masked.
    """

    returncode: int
    stdout: bytes
    stderr: bytes
    duration_ms: int = 0
    command: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        """True if the command exited with code 0."""
        return self.returncode == 0

    def stdout_text(self, encoding: str = "utf-8") -> str:
        """Decode stdout, replacing undecodable bytes."""
        return self.stdout.decode(encoding, errors="replace")

    def stderr_text(self, encoding: str = "utf-8") -> str:
        """Decode stderr, replacing undecodable bytes."""
        return self.stderr.decode(encoding, errors="replace")
