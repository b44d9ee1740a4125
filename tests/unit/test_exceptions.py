"""Unit tests for the p4cmd exception hierarchy."""

from __future__ import annotations

from pathlib import Path

import pytest

from p4cmd.exceptions import (
    CommandFailedError,
    ConfigError,
    IOFailureError,
    P4CmdError,
    P4Error,
    RunnerError,
    SchemaViolationError,
    TaggedParseError,
    ToolNotFoundError,
    WorkingDirectoryError,
)
from p4cmd.p4 import errors as p4_errors


class TestHierarchy:
    """Every library error is catchable as P4CmdError."""

    @pytest.mark.parametrize(
        "error_cls",
        [RunnerError, WorkingDirectoryError, ToolNotFoundError, IOFailureError],
    )
    def test_runner_errors(self, error_cls: type[P4CmdError]) -> None:
        assert issubclass(error_cls, RunnerError)
        assert issubclass(error_cls, P4CmdError)

    @pytest.mark.parametrize(
        "error_cls",
        [CommandFailedError, TaggedParseError, SchemaViolationError],
    )
    def test_p4_errors(self, error_cls: type[P4CmdError]) -> None:
        assert issubclass(error_cls, P4Error)
        assert not issubclass(error_cls, RunnerError)

    def test_config_error_is_not_p4_error(self) -> None:
        assert issubclass(ConfigError, P4CmdError)
        assert not issubclass(ConfigError, P4Error)

    def test_domain_reexports(self) -> None:
        assert p4_errors.CommandFailedError is CommandFailedError
        assert p4_errors.TaggedParseError is TaggedParseError


class TestP4CmdError:
    """Tests for the base exception."""

    def test_message_attribute(self) -> None:
        error = P4CmdError("something broke")

        assert error.message == "something broke"
        assert str(error) == "something broke"


class TestRunnerErrors:
    """Tests for runner error context attributes."""

    def test_working_directory_error(self, temp_dir: Path) -> None:
        error = WorkingDirectoryError("missing", path=temp_dir / "nope")

        assert error.path == temp_dir / "nope"

    def test_tool_not_found(self) -> None:
        error = ToolNotFoundError("Cannot launch p4", executable="p4")

        assert error.executable == "p4"
        assert error.message == "Cannot launch p4"

    def test_io_failure_command_is_tuple(self) -> None:
        error = IOFailureError("broken pipe", command=["p4", "sync"])

        assert error.command == ("p4", "sync")

    def test_io_failure_command_defaults_to_none(self) -> None:
        assert IOFailureError("broken pipe").command is None


class TestP4Errors:
    """Tests for p4 command error context attributes."""

    def test_command_failed(self) -> None:
        error = CommandFailedError(
            "No such file(s).",
            code=1,
            command="files",
            stderr="No such file(s).",
        )

        assert error.code == 1
        assert error.command == "files"
        assert error.stderr == "No such file(s)."

    def test_tagged_parse_error(self) -> None:
        error = TaggedParseError(
            "Continuation line before any field",
            context="orphan",
            line_number=3,
        )

        assert error.line_number == 3
        assert error.context == "orphan"
        assert error.command is None
        assert error.stderr is None

    def test_schema_violation_copies_record(self) -> None:
        record = {"user": "alice"}
        error = SchemaViolationError(
            "Changelist: missing required field 'change'",
            entity="Changelist",
            field="change",
            record=record,
        )
        record["user"] = "bob"

        assert error.entity == "Changelist"
        assert error.field == "change"
        assert error.record == {"user": "alice"}

    def test_context_is_keyword_only(self) -> None:
        with pytest.raises(TypeError):
            CommandFailedError("failed", 1)  # type: ignore[misc]


class TestConfigError:
    """Tests for ConfigError."""

    def test_field_and_value(self) -> None:
        error = ConfigError("Invalid configuration", field="retries", value=-1)

        assert error.field == "retries"
        assert error.value == -1

    def test_defaults(self) -> None:
        error = ConfigError("Invalid YAML")

        assert error.field is None
        assert error.value is None
