"""Shared fixtures for p4 tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from p4cmd.config import P4Config
from p4cmd.p4.client import P4Client
from p4cmd.runners.command import CommandRunner
from p4cmd.runners.models import CommandResult


def make_result(
    *,
    returncode: int = 0,
    stdout: str = "",
    stderr: str = "",
    duration_ms: int = 50,
) -> CommandResult:
    """Create a CommandResult with convenient defaults."""
    return CommandResult(
        returncode=returncode,
        stdout=stdout.encode("utf-8"),
        stderr=stderr.encode("utf-8"),
        duration_ms=duration_ms,
    )


def ztag(*records: dict[str, str]) -> str:
    """Render records the way ``p4 -ztag`` prints them."""
    return "".join(
        "".join(f"... {name} {value}\n" for name, value in record.items()) + "\n"
        for record in records
    )


@pytest.fixture
def p4_config(clean_env: None) -> P4Config:
    """Config isolated from P4CMD_ environment variables."""
    return P4Config(port="perforce:1666", user="alice", client="alice-ws")


@pytest.fixture
def mock_runner() -> MagicMock:
    """Create a mock CommandRunner that returns success by default."""
    runner = MagicMock(spec=CommandRunner)
    runner.run.return_value = make_result()
    return runner


@pytest.fixture
def p4_client(p4_config: P4Config, mock_runner: MagicMock) -> P4Client:
    """Create a P4Client with a mocked runner."""
    return P4Client(config=p4_config, runner=mock_runner)
