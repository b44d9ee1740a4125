from __future__ import annotations

from pathlib import Path

from p4cmd.exceptions.base import P4CmdError


class RunnerError(P4CmdError):
    """Base exception for process runner failures.

    Attributes:
        message: Human-readable error message.
    """

    pass


class WorkingDirectoryError(RunnerError):
    """Working directory does not exist or is not accessible.

    Attributes:
        message: Human-readable error message.
        path: The path that was not found.
    """

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        """Initialize the WorkingDirectoryError.

        Args:
            message: Human-readable error message.
            path: The path that was not found.
        """
        self.path = path
        super().__init__(message)


class ToolNotFoundError(RunnerError):
    """Executable could not be located or launched.

    Not retryable without fixing the environment (install ``p4`` or point
    the configuration at the right binary).

    Attributes:
        message: Human-readable error message.
        executable: The executable that could not be launched.
    """

    def __init__(self, message: str, executable: str | None = None) -> None:
        """Initialize the ToolNotFoundError.

        Args:
            message: Human-readable error message.
            executable: The executable that could not be launched.
        """
        self.executable = executable
        super().__init__(message)


class IOFailureError(RunnerError):
    """Capturing the output streams of a launched process failed.

    Transient; the caller may retry.

    Attributes:
        message: Human-readable error message.
        command: The argv that was running (password masked).
    """

    def __init__(
        self,
        message: str,
        command: tuple[str, ...] | list[str] | None = None,
    ) -> None:
        """Initialize the IOFailureError.

        Args:
            message: Human-readable error message.
            command: The argv that was running.
        """
        self.command = tuple(command) if command is not None else None
        super().__init__(message)
