"""
ShadowWriteQueue - Bounded fire-and-forget execution of secondary writes.

Secondary (shadow) writes must never delay or fail the caller's request.
The queue starts each submitted write as its own asyncio task and lets at
most ``max_concurrency`` of them talk to the secondary store at a time.
Failures are logged with the operation name, counted, and kept in a
bounded history; they are never raised and never retried.

Example:
    >>> queue = ShadowWriteQueue(max_concurrency=4)
    >>> queue.submit("createBooking", lambda: mongo.create_booking("alice", booking))
    >>> # During shutdown or in tests:
    >>> completed = await queue.drain(timeout=5.0)
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from dualstore.observability import DualStoreMetrics

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 4


@dataclass(frozen=True)
class FailedShadowWrite:
    """
    Records a secondary write that raised.

    Attributes:
        timestamp: When the failure was observed.
        operation: Entity operation name (e.g., 'createBooking').
        error_type: Exception class name.
        error_message: The exception message.
    """

    timestamp: datetime
    operation: str
    error_type: str
    error_message: str


@dataclass
class ShadowWriteStats:
    """
    Statistics about secondary write failures.

    Attributes:
        total_failures: Failures recorded since the last clear.
        failures_by_operation: Failure count per operation name.
        first_failure_at: Timestamp of the oldest retained failure.
        last_failure_at: Timestamp of the most recent failure.
    """

    total_failures: int = 0
    failures_by_operation: dict[str, int] | None = None
    first_failure_at: datetime | None = None
    last_failure_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_failures": self.total_failures,
            "failures_by_operation": dict(self.failures_by_operation or {}),
            "first_failure_at": (
                self.first_failure_at.isoformat() if self.first_failure_at else None
            ),
            "last_failure_at": (self.last_failure_at.isoformat() if self.last_failure_at else None),
        }


class ShadowWriteQueue:
    """
    Bounded pool of background secondary writes.

    ``submit`` takes a zero-argument factory rather than a coroutine so no
    coroutine object is created until a concurrency slot is free.

    Example:
        >>> queue = ShadowWriteQueue()
        >>> queue.submit("createBooking", lambda: service.create_booking("alice", b))
        >>> queue.pending_count
        1
        >>> await queue.drain()
        1
    """

    def __init__(
        self,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        *,
        metrics: DualStoreMetrics | None = None,
        max_failure_history: int = 1000,
    ) -> None:
        """
        Initialize the queue.

        Args:
            max_concurrency: Maximum secondary writes in flight at once.
            metrics: Metrics container; failures are recorded against it.
            max_failure_history: Maximum number of failures to keep (older
                entries are discarded).

        Raises:
            ValueError: If max_concurrency or max_failure_history is below 1.
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        if max_failure_history < 1:
            raise ValueError(f"max_failure_history must be at least 1, got {max_failure_history}")

        self._max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._metrics = metrics
        self._max_failure_history = max_failure_history
        self._tasks: list[asyncio.Task[Any]] = []
        self._failures: list[FailedShadowWrite] = []
        self._failures_by_operation: dict[str, int] = {}

    @property
    def max_concurrency(self) -> int:
        """Maximum number of secondary writes in flight."""
        return self._max_concurrency

    def submit(
        self,
        operation: str,
        coro_factory: Callable[[], Awaitable[Any]],
    ) -> asyncio.Task[None]:
        """
        Schedule a secondary write and return immediately.

        Must be called from within a running event loop.

        Args:
            operation: Operation name used in logs and failure records.
            coro_factory: Callable producing the awaitable that performs the write.

        Returns:
            The created asyncio.Task (never raises the write's exception).
        """
        task = asyncio.create_task(self._run(operation, coro_factory))
        self._tasks.append(task)
        self._cleanup_completed()
        return task

    async def _run(self, operation: str, coro_factory: Callable[[], Awaitable[Any]]) -> None:
        async with self._semaphore:
            try:
                await coro_factory()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    "Shadow write failed for %s: %s",
                    operation,
                    e,
                    exc_info=e,
                    extra={"operation": operation},
                )
                self._record_failure(operation, e)
                return

        logger.debug("Shadow write succeeded for %s", operation, extra={"operation": operation})
        if self._metrics is not None:
            self._metrics.record_shadow_write(operation, "succeeded")

    def _record_failure(self, operation: str, error: Exception) -> None:
        if self._metrics is not None:
            self._metrics.record_shadow_write(operation, "failed", type(error).__name__)

        self._failures.append(
            FailedShadowWrite(
                timestamp=datetime.now(UTC),
                operation=operation,
                error_type=type(error).__name__,
                error_message=str(error),
            )
        )
        self._failures_by_operation[operation] = self._failures_by_operation.get(operation, 0) + 1

        if len(self._failures) > self._max_failure_history:
            self._failures = self._failures[-self._max_failure_history :]
            counts: dict[str, int] = {}
            for failure in self._failures:
                counts[failure.operation] = counts.get(failure.operation, 0) + 1
            self._failures_by_operation = counts

    def _cleanup_completed(self) -> None:
        self._tasks = [task for task in self._tasks if not task.done()]

    @property
    def pending_count(self) -> int:
        """Number of submitted writes that have not finished."""
        self._cleanup_completed()
        return len(self._tasks)

    async def drain(self, timeout: float | None = None) -> int:
        """
        Wait for every pending secondary write to finish.

        Args:
            timeout: Maximum time to wait in seconds. If None, waits indefinitely.

        Returns:
            Number of writes that were awaited.

        Note:
            Writes that don't finish within the timeout are cancelled.
        """
        pending = [task for task in self._tasks if not task.done()]
        if not pending:
            self._tasks.clear()
            return 0

        if timeout is None:
            await asyncio.gather(*pending, return_exceptions=True)
        else:
            _, remaining = await asyncio.wait(pending, timeout=timeout)
            if remaining:
                logger.warning(
                    "Shadow write queue: %d write(s) did not complete within timeout",
                    len(remaining),
                    extra={"remaining_tasks": len(remaining), "timeout": timeout},
                )
                for task in remaining:
                    task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await task

        self._tasks.clear()
        return len(pending)

    def cancel_all(self) -> int:
        """
        Cancel every pending secondary write.

        Returns:
            Number of writes that were cancelled.
        """
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        self._tasks.clear()
        return len(pending)

    def get_failed_writes(self) -> list[FailedShadowWrite]:
        """Retained failures in chronological order."""
        return list(self._failures)

    def get_failure_stats(self) -> ShadowWriteStats:
        """
        Get aggregate statistics about secondary write failures.

        Returns:
            ShadowWriteStats with summary values.
        """
        if not self._failures:
            return ShadowWriteStats(failures_by_operation={})
        return ShadowWriteStats(
            total_failures=len(self._failures),
            failures_by_operation=dict(self._failures_by_operation),
            first_failure_at=self._failures[0].timestamp,
            last_failure_at=self._failures[-1].timestamp,
        )

    def clear_failure_history(self) -> int:
        """
        Clear the failure history.

        Returns:
            Number of failure records cleared.
        """
        count = len(self._failures)
        self._failures.clear()
        self._failures_by_operation.clear()
        return count

    def __repr__(self) -> str:
        return (
            f"ShadowWriteQueue(pending={self.pending_count}, "
            f"max_concurrency={self._max_concurrency})"
        )


__all__ = [
    "DEFAULT_MAX_CONCURRENCY",
    "FailedShadowWrite",
    "ShadowWriteQueue",
    "ShadowWriteStats",
]
