"""Error-as-value wrapper for awaitables.

``capture`` lets a call site branch on failure without a try/except block,
so long-running loops can keep going after a single unit of work fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of an awaited operation: either a value or the exception it raised."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, re-raising the captured exception if there is one."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


async def capture(awaitable: Awaitable[T]) -> Outcome[T]:
    """Await *awaitable* and wrap its result or exception in an Outcome.

    Only ``Exception`` subclasses are captured; cancellation still propagates.
    """
    try:
        return Outcome(value=await awaitable)
    except Exception as exc:  # noqa: BLE001 - converted to a value for the caller
        return Outcome(error=exc)
