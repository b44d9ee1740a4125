"""Tests for runner data models."""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from p4cmd.runners.models import CommandResult, Invocation


class TestInvocation:
    """Tests for Invocation."""

    def test_defaults(self) -> None:
        invocation = Invocation("info")

        assert invocation.arguments == ()
        assert invocation.cwd is None
        assert dict(invocation.env) == {}
        assert invocation.input is None
        assert invocation.argv() == ("info",)

    def test_argv(self) -> None:
        invocation = Invocation("changes", ("-m", "5", "//depot/..."))

        assert invocation.argv() == ("changes", "-m", "5", "//depot/...")

    def test_arguments_list_is_frozen_to_tuple(self) -> None:
        invocation = Invocation("files", ["//depot/..."])  # type: ignore[arg-type]

        assert invocation.arguments == ("//depot/...",)

    def test_env_is_read_only_copy(self) -> None:
        env = {"P4CONFIG": ".p4config"}
        invocation = Invocation("info", env=env)
        env["P4CONFIG"] = "changed"

        assert invocation.env["P4CONFIG"] == ".p4config"
        with pytest.raises(TypeError):
            invocation.env["P4USER"] = "alice"  # type: ignore[index]

    def test_is_immutable(self) -> None:
        invocation = Invocation("info")

        with pytest.raises(FrozenInstanceError):
            invocation.subcommand = "sync"  # type: ignore[misc]

    @pytest.mark.parametrize("subcommand", ["", "   "])
    def test_rejects_empty_subcommand(self, subcommand: str) -> None:
        with pytest.raises(ValueError, match="Subcommand cannot be empty"):
            Invocation(subcommand)

    def test_rejects_nul_in_argument(self) -> None:
        with pytest.raises(ValueError, match="NUL"):
            Invocation("files", ("//depot/a\x00b",))

    def test_rejects_nul_in_subcommand(self) -> None:
        with pytest.raises(ValueError, match="NUL"):
            Invocation("fi\x00les")

    def test_cwd(self, temp_dir: Path) -> None:
        assert Invocation("where", cwd=temp_dir).cwd == temp_dir


class TestCommandResult:
    """Tests for CommandResult."""

    def test_success(self) -> None:
        assert CommandResult(0, b"", b"").success is True
        assert CommandResult(1, b"", b"").success is False

    def test_text_accessors(self) -> None:
        result = CommandResult(0, "ünïcode".encode(), b"warn\n")

        assert result.stdout_text() == "ünïcode"
        assert result.stderr_text() == "warn\n"

    def test_undecodable_bytes_are_replaced(self) -> None:
        result = CommandResult(0, b"ok \xff", b"")

        assert result.stdout_text() == "ok �"

    def test_explicit_encoding(self) -> None:
        result = CommandResult(0, "é".encode("latin-1"), b"")

        assert result.stdout_text("latin-1") == "é"
