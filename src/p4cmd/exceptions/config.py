from __future__ import annotations

from typing import Any

from p4cmd.exceptions.base import P4CmdError


class ConfigError(P4CmdError):
    """Exception for configuration loading and validation errors.

    Raised when the p4cmd configuration cannot be built: invalid YAML in a
    ``p4cmd.yaml`` file, a Pydantic validation failure, or a malformed
    ``P4CMD_*`` environment variable.

    Attributes:
        message: Human-readable error message describing the configuration issue.
        field: Optional field name that caused the error (e.g., "retries").
        value: Optional value that failed validation (for debugging).

    Examples:
        ```python
        raise ConfigError("Invalid YAML in p4cmd.yaml: line 3")

        raise ConfigError(
            "Invalid configuration value",
            field="retries",
            value=-1,
        )
        ```
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ) -> None:
        """Initialize the ConfigError.

        Args:
            message: Human-readable error message.
            field: Optional field name that caused the error.
            value: Optional value that failed validation.
        """
        self.field = field
        self.value = value
        super().__init__(message)
