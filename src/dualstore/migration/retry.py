"""
Per-keyspace attempt state machine.

Each keyspace is migrated up to ``max_attempts`` times. The attempt state is
one of three tagged states:

    Attempting(n) --success--> Succeeded(n)
    Attempting(n) --failure--> Attempting(n + 1)      if n < max_attempts
    Attempting(n) --failure--> Failed(n, error)       if n == max_attempts

Succeeded and Failed are terminal; applying another transition raises
InvalidAttemptTransitionError.

Example:
    >>> state = start()
    >>> state = state.on_failure(ConnectionError("timeout"), max_attempts=3)
    >>> state
    Attempting(attempt=2)
    >>> state.on_success()
    Succeeded(attempts=2)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from dualstore.exceptions import InvalidAttemptTransitionError


@dataclass(frozen=True)
class Attempting:
    """An attempt is about to run (1-based)."""

    attempt: int

    @property
    def is_terminal(self) -> bool:
        return False

    def on_success(self) -> Succeeded:
        return Succeeded(self.attempt)

    def on_failure(self, error: Exception, *, max_attempts: int) -> Attempting | Failed:
        if self.attempt < max_attempts:
            return Attempting(self.attempt + 1)
        return Failed(self.attempt, str(error))


@dataclass(frozen=True)
class Succeeded:
    """The keyspace was migrated on attempt ``attempts``."""

    attempts: int

    @property
    def is_terminal(self) -> bool:
        return True

    def on_success(self) -> AttemptState:
        raise InvalidAttemptTransitionError(type(self).__name__)

    def on_failure(self, error: Exception, *, max_attempts: int) -> AttemptState:
        raise InvalidAttemptTransitionError(type(self).__name__)


@dataclass(frozen=True)
class Failed:
    """The keyspace failed ``attempts`` times; ``error`` is the last error message."""

    attempts: int
    error: str

    @property
    def is_terminal(self) -> bool:
        return True

    def on_success(self) -> AttemptState:
        raise InvalidAttemptTransitionError(type(self).__name__)

    def on_failure(self, error: Exception, *, max_attempts: int) -> AttemptState:
        raise InvalidAttemptTransitionError(type(self).__name__)


AttemptState: TypeAlias = Attempting | Succeeded | Failed


def start() -> Attempting:
    """Initial state: the first attempt."""
    return Attempting(1)


__all__ = [
    "AttemptState",
    "Attempting",
    "Failed",
    "Succeeded",
    "start",
]
