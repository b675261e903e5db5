"""
MigrationEngine - Copies every legacy keyspace into the target store.

The engine runs once per process start, after a grace period that lets
both stores finish starting. For each keyspace, in catalog order:

    1. Scan the collection with
       SELECT META().id AS _id, `<c>`.* FROM `<b>`.`<s>`.`<c>`
    2. An empty collection counts as migrated and is skipped
    3. Normalize every field name and keep the native id as ``_id``
    4. Insert into the target collection of the same name in chunks of
       ``chunk_size``, flushing the final partial chunk
    5. Any error retries the whole keyspace, up to ``max_attempts``;
       the final failure is recorded and the next keyspace proceeds

Keyspaces run sequentially. A cancellation event is checked between
keyspaces; keyspaces not reached are reported as skipped. Chunks written
by a failed attempt are not removed. A retry inserts them again; the
target keeps the stored copy of any ``_id`` it already holds and writes
the rest, so the retried keyspace ends with each document once.

Usage:
    >>> engine = MigrationEngine(legacy_store, target_store)
    >>> report = await engine.run_migration()
    >>> report.failed_keyspaces
    []
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from dualstore.config import MigrationSettings
from dualstore.documents import Document, transform_document
from dualstore.exceptions import KeyspaceMigrationError, MigrationError
from dualstore.migration.keyspaces import KeyspaceDescriptor, KeyspaceEnumerator
from dualstore.migration.models import KeyspaceOutcome, KeyspaceStatus, MigrationReport
from dualstore.migration.retry import Attempting, Failed, start
from dualstore.observability import (
    ATTR_ATTEMPT,
    ATTR_CHUNK_SIZE,
    ATTR_DB_COLLECTION,
    ATTR_DOCUMENT_COUNT,
    ATTR_KEYSPACE,
    DualStoreMetrics,
    Tracer,
    create_tracer,
)
from dualstore.stores.interface import LegacyStoreClient, TargetStoreClient

logger = logging.getLogger(__name__)

ID_FIELD = "_id"

SleepFunc = Callable[[float], Awaitable[object]]


def build_keyspace_query(keyspace: KeyspaceDescriptor) -> str:
    """
    Build the statement that scans a whole keyspace.

    Example:
        >>> build_keyspace_query(KeyspaceDescriptor("travel-sample", "inventory", "airline"))
        'SELECT META().id AS _id, `airline`.* FROM `travel-sample`.`inventory`.`airline`'
    """
    bucket = keyspace.container_name
    scope = keyspace.scope_name
    collection = keyspace.collection_name
    return f"SELECT META().id AS _id, `{collection}`.* FROM `{bucket}`.`{scope}`.`{collection}`"


def prepare_document(row: Document) -> Document:
    """
    Turn a scanned row into a target document.

    Field names are normalized; the native id is carried over unchanged as
    ``_id``.
    """
    document = transform_document({k: v for k, v in row.items() if k != ID_FIELD})
    if row.get(ID_FIELD) is not None:
        document[ID_FIELD] = row[ID_FIELD]
    return document


class MigrationEngine:
    """
    Bulk migration from the legacy store to the target store.

    Example:
        >>> engine = MigrationEngine(
        ...     legacy_store,
        ...     target_store,
        ...     settings=MigrationSettings(grace_period_seconds=0),
        ... )
        >>> report = await engine.run_migration()

    Attributes:
        _legacy: Legacy store client.
        _target: Target store client.
        _settings: Grace period, chunk size and attempt limit.
        _enumerator: Keyspace discovery.
        _sleep: Awaitable sleep used for the grace period.
    """

    def __init__(
        self,
        legacy_store: LegacyStoreClient,
        target_store: TargetStoreClient,
        *,
        settings: MigrationSettings | None = None,
        enumerator: KeyspaceEnumerator | None = None,
        sleep: SleepFunc | None = None,
        metrics: DualStoreMetrics | None = None,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the engine.

        Args:
            legacy_store: Client for the store data is read from.
            target_store: Client for the store data is written to.
            settings: Migration tunables (default: MigrationSettings()).
            enumerator: Keyspace discovery (default: one over ``legacy_store``).
            sleep: Sleep function for the grace period (default: asyncio.sleep).
            metrics: Metrics container.
            tracer: Optional custom Tracer instance.
            enable_tracing: Whether to enable OpenTelemetry tracing.
        """
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._legacy = legacy_store
        self._target = target_store
        self._settings = settings or MigrationSettings()
        self._enumerator = enumerator or KeyspaceEnumerator(legacy_store, tracer=self._tracer)
        self._sleep: SleepFunc = sleep or asyncio.sleep
        self._metrics = metrics or DualStoreMetrics()

    @property
    def settings(self) -> MigrationSettings:
        """The engine's settings."""
        return self._settings

    async def run_migration(self, cancel_event: asyncio.Event | None = None) -> MigrationReport:
        """
        Migrate every keyspace once.

        Args:
            cancel_event: When set, the run stops before the next keyspace.

        Returns:
            The run's report. Per-keyspace failures are recorded, not raised.

        Raises:
            MigrationError: If the keyspace catalog cannot be read.
        """
        with self._tracer.span(
            "dualstore.migration_engine.run",
            {ATTR_CHUNK_SIZE: self._settings.chunk_size},
        ):
            logger.info(
                "Waiting %.1f seconds before starting migration",
                self._settings.grace_period_seconds,
            )
            await self._sleep(self._settings.grace_period_seconds)

            report = MigrationReport(started_at=datetime.now(UTC))
            logger.info("Starting Couchbase to MongoDB migration")

            try:
                keyspaces = await self._enumerator.list_keyspaces()
            except Exception as e:
                logger.error("Failed to list keyspaces: %s", e, exc_info=True)
                raise MigrationError(f"Failed to list keyspaces: {e}") from e

            for index, keyspace in enumerate(keyspaces):
                if cancel_event is not None and cancel_event.is_set():
                    report.cancelled = True
                    report.outcomes.extend(
                        KeyspaceOutcome(remaining, KeyspaceStatus.SKIPPED)
                        for remaining in keyspaces[index:]
                    )
                    logger.info(
                        "Migration cancelled; skipping %d remaining keyspace(s)",
                        len(keyspaces) - index,
                    )
                    break

                report.outcomes.append(await self._migrate_with_retry(keyspace))

            report.finished_at = datetime.now(UTC)

        if report.failed_keyspaces:
            logger.warning(
                "Migration completed with %d failed keyspace(s): %s",
                len(report.failed_keyspaces),
                ", ".join(report.failed_keyspaces),
            )
        else:
            logger.info(
                "Migration completed: %d keyspace(s), %d document(s)",
                len(report.migrated_keyspaces),
                report.documents_migrated,
            )
        return report

    async def _migrate_with_retry(self, keyspace: KeyspaceDescriptor) -> KeyspaceOutcome:
        state: Attempting | Failed = start()
        while isinstance(state, Attempting):
            attempt = state.attempt
            try:
                documents = await self._migrate_keyspace(keyspace, attempt)
            except Exception as e:
                state = state.on_failure(e, max_attempts=self._settings.max_attempts)
                if isinstance(state, Attempting):
                    logger.warning(
                        "Attempt %d/%d for keyspace %s failed, retrying: %s",
                        attempt,
                        self._settings.max_attempts,
                        keyspace.identifier,
                        e,
                        extra={"keyspace": keyspace.identifier, "attempt": attempt},
                    )
                continue

            succeeded = state.on_success()
            self._metrics.record_keyspace_outcome(
                keyspace.identifier, KeyspaceStatus.SUCCEEDED.value
            )
            return KeyspaceOutcome(
                keyspace,
                KeyspaceStatus.SUCCEEDED,
                attempts=succeeded.attempts,
                documents=documents,
            )

        error = KeyspaceMigrationError(keyspace, state.attempts, state.error)
        logger.error(
            "%s",
            error,
            extra={"keyspace": keyspace.identifier, "attempt": state.attempts},
        )
        self._metrics.record_keyspace_outcome(keyspace.identifier, KeyspaceStatus.FAILED.value)
        return KeyspaceOutcome(
            keyspace,
            KeyspaceStatus.FAILED,
            attempts=state.attempts,
            error=state.error,
        )

    async def _migrate_keyspace(self, keyspace: KeyspaceDescriptor, attempt: int) -> int:
        with self._tracer.span(
            "dualstore.migration_engine.migrate_keyspace",
            {ATTR_KEYSPACE: keyspace.identifier, ATTR_ATTEMPT: attempt},
        ):
            rows = await self._legacy.query(build_keyspace_query(keyspace))
            if not rows:
                logger.info("No documents found in %s", keyspace.identifier)
                return 0

            documents = [prepare_document(row) for row in rows]
            collection = keyspace.collection_name
            chunk_size = self._settings.chunk_size

            for offset in range(0, len(documents), chunk_size):
                chunk = documents[offset : offset + chunk_size]
                with self._tracer.span(
                    "dualstore.migration_engine.insert_chunk",
                    {ATTR_DB_COLLECTION: collection, ATTR_DOCUMENT_COUNT: len(chunk)},
                ):
                    await self._target.bulk_insert(collection, chunk)
                self._metrics.record_documents_migrated(keyspace.identifier, len(chunk))

            logger.info(
                "Migrated %d documents from %s to %s",
                len(documents),
                keyspace.identifier,
                collection,
                extra={"keyspace": keyspace.identifier, "attempt": attempt},
            )
            return len(documents)


__all__ = [
    "ID_FIELD",
    "MigrationEngine",
    "SleepFunc",
    "build_keyspace_query",
    "prepare_document",
]
