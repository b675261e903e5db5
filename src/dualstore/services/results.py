"""
Result envelope returned by entity services.

Entity services report store failures they handle themselves (e.g. a query
that errored) as ``Result.failure(...)`` rather than raising; exceptions are
reserved for failures the service could not handle. The shadow layer treats
both as the primary store's outcome and passes them through unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of an entity-service operation.

    Attributes:
        status: True if the operation succeeded.
        data: The payload (a list for queries, an entity for writes).
        context: Human-readable descriptions of the queries that ran.
        error: Error message when ``status`` is False.

    Example:
        >>> result = Result.of([booking], "MongoDB query for bookings by username: alice")
        >>> result.status
        True
        >>> Result.failure("Error finding bookings: timeout").error
        'Error finding bookings: timeout'
    """

    status: bool
    data: T | None = None
    context: tuple[str, ...] = field(default_factory=tuple)
    error: str | None = None

    @classmethod
    def of(cls, data: T, *context: str) -> Result[T]:
        """Create a successful result."""
        return cls(status=True, data=data, context=tuple(context))

    @classmethod
    def failure(cls, message: str) -> Result[T]:
        """Create a failed result carrying ``message``."""
        return cls(status=False, error=message)

    @property
    def is_list(self) -> bool:
        """Whether the payload is a list (countable for consistency checks)."""
        return isinstance(self.data, list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status,
            "data": self.data,
            "context": list(self.context),
            "error": self.error,
        }


__all__ = ["Result"]
