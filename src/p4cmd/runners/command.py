"""Command runner for blocking subprocess execution.

This module provides the CommandRunner class, which launches the external
tool for one :class:`~p4cmd.runners.models.Invocation`, waits for it, and
returns the raw streams. It never interprets the output and never retries.
"""

from __future__ import annotations

import os
import subprocess
import time
from collections.abc import Mapping, Sequence
from pathlib import Path

from p4cmd.exceptions import IOFailureError, ToolNotFoundError, WorkingDirectoryError
from p4cmd.logging import get_logger
from p4cmd.runners.models import CommandResult, Invocation

__all__ = ["CommandRunner", "mask_secrets"]

logger = get_logger(__name__)

#: Global options whose following argument must never be logged.
SECRET_OPTIONS: frozenset[str] = frozenset({"-P"})

#: Replacement text for masked values.
MASK = "********"


def mask_secrets(argv: Sequence[str]) -> tuple[str, ...]:
    """Return argv with the values of secret-bearing options masked.

    Args:
        argv: Full command line.

    Returns:
        A copy of ``argv`` safe to log or attach to errors.

    Example:
        >>> mask_secrets(["p4", "-P", "hunter2", "info"])
        ('p4', '-P', '********', 'info')
    """
    masked: list[str] = []
    hide_next = False
    for part in argv:
        if hide_next:
            masked.append(MASK)
            hide_next = False
            continue
        masked.append(part)
        hide_next = part in SECRET_OPTIONS
    return tuple(masked)


class CommandRunner:
    """Execute the external tool synchronously with environment control.

    Each call spawns one process, blocks until it exits and captures both
    output streams fully into memory. The process is always reaped, also
    when capturing fails. There is no timeout: callers that need one must
    impose it on the process lifecycle themselves.

    Attributes:
        executable: Program to launch (resolved through ``PATH`` unless a
            path is given).
        global_args: Options inserted before every subcommand.
        cwd: Default working directory.

    Example:
        ```python
        runner = CommandRunner("p4", global_args=("-ztag",))
        result = runner.run(Invocation("changes", ("-m", "1")))
        if result.success:
            print(result.stdout_text())
        ```
    """

    def __init__(
        self,
        executable: str | Path = "p4",
        *,
        global_args: Sequence[str] = (),
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        encoding: str = "utf-8",
    ) -> None:
        """Initialize the CommandRunner.

        Args:
            executable: Program name or path.
            global_args: Options placed between the executable and the
                subcommand on every invocation.
            cwd: Working directory for commands. If None, uses the current
                directory.
            env: Additional environment variables to merge with os.environ.
            encoding: Encoding of the stdin payload.
        """
        self._executable = str(executable)
        self._global_args = tuple(global_args)
        self._cwd = cwd
        self._extra_env = dict(env or {})
        self._encoding = encoding

    @property
    def executable(self) -> str:
        """Program launched for every invocation."""
        return self._executable

    @property
    def global_args(self) -> tuple[str, ...]:
        """Options placed before every subcommand."""
        return self._global_args

    @property
    def encoding(self) -> str:
        """Encoding used for stdin payloads."""
        return self._encoding

    @property
    def cwd(self) -> Path | None:
        """Default working directory."""
        return self._cwd

    def _validate_cwd(self, cwd: Path | None) -> None:
        """Validate working directory exists.

        Raises:
            WorkingDirectoryError: If directory does not exist.
        """
        if cwd is not None and not cwd.is_dir():
            raise WorkingDirectoryError(
                f"Working directory does not exist: {cwd}",
                path=cwd,
            )

    def _build_env(
        self, extra_env: Mapping[str, str], cwd: Path | None
    ) -> dict[str, str]:
        """Merge parent env with runner and invocation overrides.

        p4 resolves P4CONFIG files and relative paths from PWD rather than
        the process working directory, so PWD follows ``cwd``.
        """
        env = os.environ.copy()
        env.update(self._extra_env)
        env.update(extra_env)
        if cwd is not None:
            env["PWD"] = str(cwd.resolve())
        return env

    def build_argv(self, invocation: Invocation) -> list[str]:
        """Full command line for an invocation."""
        return [self._executable, *self._global_args, *invocation.argv()]

    def run(self, invocation: Invocation) -> CommandResult:
        """Execute an invocation and return its raw output.

        A non-zero exit status is not an error at this level; it is
        reported through :attr:`CommandResult.returncode`.

        Args:
            invocation: What to run.

        Returns:
            CommandResult with returncode, stdout, stderr and duration_ms.

        Raises:
            WorkingDirectoryError: If the working directory does not exist.
            ToolNotFoundError: If the executable cannot be launched.
            IOFailureError: If the input cannot be encoded or capturing the
                output streams fails.
        """
        effective_cwd = invocation.cwd if invocation.cwd is not None else self._cwd
        self._validate_cwd(effective_cwd)
        env = self._build_env(invocation.env, effective_cwd)

        argv = self.build_argv(invocation)
        safe_argv = mask_secrets(argv)
        stdin_data = None
        if invocation.input is not None:
            try:
                stdin_data = invocation.input.encode(self._encoding)
            except UnicodeEncodeError as e:
                raise IOFailureError(
                    f"Cannot encode input for {self._executable} "
                    f"as {self._encoding}: {e.reason}",
                    command=safe_argv,
                ) from e

        logger.debug(
            "p4_command_started",
            command=list(safe_argv),
            cwd=str(effective_cwd) if effective_cwd else None,
        )
        start_time = time.monotonic()

        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE if stdin_data is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=effective_cwd,
                env=env,
            )
        except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
            logger.warning("p4_executable_not_found", executable=self._executable)
            raise ToolNotFoundError(
                f"Cannot launch {self._executable}: {e.strerror or e}",
                executable=self._executable,
            ) from e
        except OSError as e:
            raise IOFailureError(
                f"Failed to start {self._executable}: {e}", command=safe_argv
            ) from e

        # Popen.__exit__ waits for the child on every path.
        with process:
            try:
                stdout, stderr = process.communicate(input=stdin_data)
            except OSError as e:
                process.kill()
                raise IOFailureError(
                    f"Failed to capture output of {self._executable}: {e}",
                    command=safe_argv,
                ) from e

        duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.debug(
            "p4_command_finished",
            subcommand=invocation.subcommand,
            returncode=process.returncode,
            duration_ms=duration_ms,
        )
        return CommandResult(
            returncode=process.returncode,
            stdout=stdout or b"",
            stderr=stderr or b"",
            duration_ms=duration_ms,
            command=safe_argv,
        )
