"""Subprocess runner for the external p4 tool."""

from __future__ import annotations

from p4cmd.runners.command import CommandRunner, mask_secrets
from p4cmd.runners.models import CommandResult, Invocation

__all__ = [
    "CommandResult",
    "CommandRunner",
    "Invocation",
    "mask_secrets",
]
