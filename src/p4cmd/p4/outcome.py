"""Result type returned by every p4 client operation."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

from p4cmd.exceptions import P4CmdError

__all__ = ["CommandOutcome"]

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CommandOutcome(Generic[T]):
    """Either the decoded items of a command or the error that stopped it.

    An empty ``items`` with no error is a successful query that matched
    nothing, which callers must be able to tell apart from a failure.

    Attributes:
        items: Decoded entities, in output order.
        error: The failure, or None on success.
        messages: Diagnostic lines p4 printed on stderr during a successful
            run.

    Example:
        ```python
        outcome = client.changes(max_results=10)
        if not outcome.success:
            log.error("changes_failed", error=outcome.error.message)
        for change in outcome.unwrap():
            print(change.number, change.description)
        ```
    """

    items: tuple[T, ...] = ()
    error: P4CmdError | None = None
    messages: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.error is not None and self.items:
            raise ValueError("A failed outcome cannot carry items")

    @classmethod
    def ok(
        cls, items: Iterable[T] = (), messages: Iterable[str] = ()
    ) -> CommandOutcome[T]:
        return cls(items=tuple(items), messages=tuple(messages))

    @classmethod
    def failed(cls, error: P4CmdError) -> CommandOutcome[T]:
        return cls(error=error)

    @property
    def success(self) -> bool:
        """True if the command succeeded (possibly with no items)."""
        return self.error is None

    def unwrap(self) -> tuple[T, ...]:
        """Return the items, raising the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.items

    def first(self) -> T | None:
        """First item, or None for an empty success.

        Raises:
            P4CmdError: The stored error on failure.
        """
        items = self.unwrap()
        return items[0] if items else None
