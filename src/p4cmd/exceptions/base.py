from __future__ import annotations


class P4CmdError(Exception):
    """Base exception class for all p4cmd errors.

    This is the root of the p4cmd exception hierarchy. Every failure the
    library reports derives from it, which lets callers catch library errors
    at their own boundary while letting unrelated exceptions propagate.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            changes = client.changes(max_results=5).unwrap()
        except P4CmdError as e:
            logger.error("p4_query_failed", error=e.message)
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the P4CmdError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
