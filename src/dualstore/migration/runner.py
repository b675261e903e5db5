"""
MigrationRunner - Start-up hook for index setup and background migration.

On application start-up the runner ensures the target indexes and, when
``feature.migration.enabled`` is set, starts the migration engine on a
single background task so start-up is not blocked by the grace period or
the copy itself.

Usage:
    >>> runner = MigrationRunner(engine, TargetIndexSetup(target_store))
    >>> await runner.start(config)
    >>> # During shutdown or in tests:
    >>> report = await runner.wait()
"""

from __future__ import annotations

import asyncio
import logging

from dualstore.config import FeatureConfig
from dualstore.migration.engine import MigrationEngine
from dualstore.migration.indexes import IndexSetupResult, TargetIndexSetup
from dualstore.migration.models import MigrationReport

logger = logging.getLogger(__name__)


class MigrationRunner:
    """
    Runs index setup and, if enabled, one migration in the background.

    Attributes:
        _engine: The migration engine.
        _index_setup: Index setup run before migration (optional).
        _cancel_event: Set by ``cancel()``; checked by the engine between keyspaces.
        _task: The background migration task, once started.
    """

    def __init__(
        self,
        engine: MigrationEngine,
        index_setup: TargetIndexSetup | None = None,
    ) -> None:
        self._engine = engine
        self._index_setup = index_setup
        self._cancel_event = asyncio.Event()
        self._task: asyncio.Task[MigrationReport] | None = None
        self._index_result: IndexSetupResult | None = None

    @property
    def is_running(self) -> bool:
        """Whether a migration task is in progress."""
        return self._task is not None and not self._task.done()

    @property
    def index_result(self) -> IndexSetupResult | None:
        """Outcome of the last index setup pass."""
        return self._index_result

    async def start(self, config: FeatureConfig) -> bool:
        """
        Ensure indexes and schedule migration if it is enabled.

        Args:
            config: Feature flag snapshot read at start-up.

        Returns:
            True if a migration task was scheduled.

        Raises:
            RuntimeError: If a migration was already started.
        """
        if self._task is not None:
            raise RuntimeError("Migration has already been started")

        if self._index_setup is not None:
            self._index_result = await self._index_setup.ensure_indexes()

        if not config.migration_enabled:
            logger.info("Migration is disabled")
            return False

        logger.info(
            "Migration is enabled; starting in %.1f seconds",
            self._engine.settings.grace_period_seconds,
        )
        self._task = asyncio.create_task(self._engine.run_migration(self._cancel_event))
        self._task.add_done_callback(self._on_task_done)
        return True

    def _on_task_done(self, task: asyncio.Task[MigrationReport]) -> None:
        if task.cancelled():
            logger.info("Migration task cancelled")
            return
        exc = task.exception()
        if exc:
            logger.error("Migration failed: %s", exc, exc_info=exc)

    async def wait(self, timeout: float | None = None) -> MigrationReport | None:
        """
        Wait for the migration task to finish.

        Args:
            timeout: Maximum time to wait in seconds. If None, waits indefinitely.

        Returns:
            The report, or None if no migration was started.

        Raises:
            TimeoutError: If the task does not finish within ``timeout``.
            MigrationError: If the run failed before processing keyspaces.
        """
        if self._task is None:
            return None
        return await asyncio.wait_for(asyncio.shield(self._task), timeout)

    def cancel(self) -> None:
        """
        Request cancellation.

        The keyspace in progress finishes; the remaining ones are skipped.
        """
        self._cancel_event.set()
        logger.info("Migration cancellation requested")

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation has been requested."""
        return self._cancel_event.is_set()


__all__ = ["MigrationRunner"]
