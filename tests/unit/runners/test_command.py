"""Tests for CommandRunner.

Most tests launch the current Python interpreter as the external tool so
that stdin, working directory and environment handling are exercised
against a real child process.
"""

from __future__ import annotations

import errno
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from p4cmd.exceptions import IOFailureError, ToolNotFoundError, WorkingDirectoryError
from p4cmd.runners.command import MASK, CommandRunner, mask_secrets
from p4cmd.runners.models import CommandResult, Invocation


def python_script(code: str, **kwargs) -> Invocation:
    """Invocation running ``python -c code`` when the runner is python."""
    return Invocation("-c", (code,), **kwargs)


@pytest.fixture
def python_runner() -> CommandRunner:
    return CommandRunner(sys.executable)


@pytest.fixture
def mock_process() -> MagicMock:
    """Create a mock Popen process."""
    process = MagicMock()
    process.returncode = 0
    process.communicate.return_value = (b"stdout output", b"")
    return process


class TestMaskSecrets:
    """Tests for mask_secrets()."""

    def test_masks_password_value(self) -> None:
        argv = ["p4", "-ztag", "-u", "alice", "-P", "hunter2", "changes"]

        masked = mask_secrets(argv)

        assert masked == ("p4", "-ztag", "-u", "alice", "-P", MASK, "changes")

    def test_leaves_other_arguments(self) -> None:
        argv = ["p4", "-p", "perforce:1666", "info"]

        assert mask_secrets(argv) == tuple(argv)

    def test_trailing_option_without_value(self) -> None:
        assert mask_secrets(["p4", "-P"]) == ("p4", "-P")


class TestBuildArgv:
    """Tests for argv assembly."""

    def test_global_args_precede_subcommand(self) -> None:
        runner = CommandRunner("p4", global_args=("-ztag", "-c", "ws"))

        argv = runner.build_argv(Invocation("changes", ("-m", "1")))

        assert argv == ["p4", "-ztag", "-c", "ws", "changes", "-m", "1"]

    def test_executable_path(self, temp_dir: Path) -> None:
        runner = CommandRunner(temp_dir / "p4")

        assert runner.executable == str(temp_dir / "p4")


class TestRun:
    """Tests for CommandRunner.run() against a real child process."""

    def test_captures_stdout_stderr_and_exit_code(
        self, python_runner: CommandRunner
    ) -> None:
        code = (
            "import sys; sys.stdout.write('out'); "
            "sys.stderr.write('err'); sys.exit(3)"
        )

        result = python_runner.run(python_script(code))

        assert isinstance(result, CommandResult)
        assert result.returncode == 3
        assert result.stdout == b"out"
        assert result.stderr == b"err"
        assert result.success is False
        assert result.duration_ms >= 0

    def test_non_zero_exit_is_not_an_exception(
        self, python_runner: CommandRunner
    ) -> None:
        result = python_runner.run(python_script("raise SystemExit(1)"))

        assert result.returncode == 1

    def test_stdin_payload(self, python_runner: CommandRunner) -> None:
        code = "import sys; sys.stdout.write(sys.stdin.read().upper())"

        result = python_runner.run(python_script(code, input="Client:\tws\n"))

        assert result.stdout_text() == "CLIENT:\tWS\n"

    def test_stdin_closed_without_payload(self, python_runner: CommandRunner) -> None:
        code = "import sys; sys.stdout.write(repr(sys.stdin.read()))"

        result = python_runner.run(python_script(code))

        assert result.stdout_text() == "''"

    def test_stdin_uses_runner_encoding(self) -> None:
        runner = CommandRunner(sys.executable, encoding="latin-1")
        code = "import sys; sys.stdout.write(sys.stdin.buffer.read().hex())"

        result = runner.run(python_script(code, input="é"))

        assert result.stdout_text() == "e9"

    def test_working_directory_and_pwd(
        self, python_runner: CommandRunner, temp_dir: Path
    ) -> None:
        code = "import os; print(os.getcwd()); print(os.environ['PWD'])"

        result = python_runner.run(python_script(code, cwd=temp_dir))

        cwd_line, pwd_line = result.stdout_text().splitlines()
        assert Path(cwd_line).resolve() == temp_dir.resolve()
        assert pwd_line == str(temp_dir.resolve())

    def test_runner_cwd_is_default(self, temp_dir: Path) -> None:
        runner = CommandRunner(sys.executable, cwd=temp_dir)

        result = runner.run(python_script("import os; print(os.getcwd())"))

        assert Path(result.stdout_text().strip()).resolve() == temp_dir.resolve()

    def test_environment_layers(self, temp_dir: Path) -> None:
        runner = CommandRunner(
            sys.executable, env={"P4CMD_TEST_A": "runner", "P4CMD_TEST_B": "runner"}
        )
        code = (
            "import os; "
            "print(os.environ['P4CMD_TEST_A'], os.environ['P4CMD_TEST_B'])"
        )

        result = runner.run(python_script(code, env={"P4CMD_TEST_B": "invocation"}))

        assert result.stdout_text().strip() == "runner invocation"

    def test_inherits_parent_environment(
        self, python_runner: CommandRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("P4CMD_TEST_PARENT", "inherited")
        code = "import os; print(os.environ['P4CMD_TEST_PARENT'])"

        result = python_runner.run(python_script(code))

        assert result.stdout_text().strip() == "inherited"

    def test_result_command_masks_password(self) -> None:
        runner = CommandRunner(sys.executable, global_args=("-P", "hunter2"))

        # python treats "-P" as a harmless flag and "hunter2" as a script
        # path that does not exist, so only the recorded argv matters here.
        result = runner.run(Invocation("-c", ("pass",)))

        assert "hunter2" not in result.command
        assert MASK in result.command


class TestRunErrors:
    """Tests for runner failure modes."""

    def test_missing_working_directory(
        self, python_runner: CommandRunner, temp_dir: Path
    ) -> None:
        missing = temp_dir / "missing"

        with pytest.raises(WorkingDirectoryError) as exc_info:
            python_runner.run(python_script("pass", cwd=missing))

        assert exc_info.value.path == missing

    def test_missing_runner_default_cwd(self, temp_dir: Path) -> None:
        runner = CommandRunner(sys.executable, cwd=temp_dir / "missing")

        with pytest.raises(WorkingDirectoryError):
            runner.run(python_script("pass"))

    def test_executable_not_found(self, temp_dir: Path) -> None:
        runner = CommandRunner(temp_dir / "no-such-p4")

        with pytest.raises(ToolNotFoundError) as exc_info:
            runner.run(Invocation("info"))

        assert exc_info.value.executable == str(temp_dir / "no-such-p4")

    def test_executable_not_launchable(self, temp_dir: Path) -> None:
        not_executable = temp_dir / "p4"
        not_executable.write_text("not a program")
        not_executable.chmod(0o644)

        with pytest.raises(ToolNotFoundError):
            CommandRunner(not_executable).run(Invocation("info"))

    def test_other_spawn_error(self) -> None:
        with patch(
            "p4cmd.runners.command.subprocess.Popen",
            side_effect=OSError(errno.E2BIG, "Argument list too long"),
        ):
            with pytest.raises(IOFailureError) as exc_info:
                CommandRunner("p4", global_args=("-P", "secret")).run(
                    Invocation("info")
                )

        assert exc_info.value.command == ("p4", "-P", MASK, "info")

    def test_unencodable_input_is_io_failure(self) -> None:
        with patch("p4cmd.runners.command.subprocess.Popen") as popen:
            with pytest.raises(IOFailureError) as exc_info:
                CommandRunner("p4", encoding="latin-1").run(
                    Invocation("client", ("-i",), input="Description:\t日本")
                )

        assert "latin-1" in exc_info.value.message
        assert exc_info.value.command == ("p4", "client", "-i")
        popen.assert_not_called()

    def test_capture_failure_kills_process(self, mock_process: MagicMock) -> None:
        mock_process.communicate.side_effect = BrokenPipeError(
            errno.EPIPE, "Broken pipe"
        )

        with patch(
            "p4cmd.runners.command.subprocess.Popen", return_value=mock_process
        ):
            with pytest.raises(IOFailureError):
                CommandRunner("p4").run(Invocation("client", ("-i",), input="x"))

        mock_process.kill.assert_called_once()
        mock_process.__exit__.assert_called_once()


class TestRunWithMockProcess:
    """Tests for how run() drives Popen."""

    def test_popen_arguments(self, mock_process: MagicMock, temp_dir: Path) -> None:
        with patch(
            "p4cmd.runners.command.subprocess.Popen", return_value=mock_process
        ) as popen:
            result = CommandRunner("p4", global_args=("-ztag",)).run(
                Invocation("changes", ("-m", "1"), cwd=temp_dir)
            )

        args, kwargs = popen.call_args
        assert args[0] == ["p4", "-ztag", "changes", "-m", "1"]
        assert kwargs["cwd"] == temp_dir
        assert "shell" not in kwargs
        assert result.stdout == b"stdout output"
        mock_process.communicate.assert_called_once_with(input=None)

    def test_stdin_payload_is_encoded(self, mock_process: MagicMock) -> None:
        with patch(
            "p4cmd.runners.command.subprocess.Popen", return_value=mock_process
        ):
            CommandRunner("p4").run(Invocation("client", ("-i",), input="Client:\tws"))

        mock_process.communicate.assert_called_once_with(input=b"Client:\tws")
