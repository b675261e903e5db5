"""
Unit tests for MigrationEngine.

Tests cover:
- Grace period and keyspace scan statement
- Key normalization and native id carry-over
- Chunked inserts with the final partial chunk
- Per-keyspace retry, failure isolation and the failed list
- Cancellation between keyspaces
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from unittest.mock import AsyncMock

import pytest

from dualstore.config import MigrationSettings
from dualstore.documents import Document
from dualstore.exceptions import MigrationError
from dualstore.migration import (
    KeyspaceDescriptor,
    KeyspaceStatus,
    MigrationEngine,
    build_keyspace_query,
    prepare_document,
)
from dualstore.observability import DualStoreMetrics, MockTracer
from dualstore.stores import InMemoryLegacyStore, InMemoryTargetStore
from tests.fixtures import make_documents

BUCKET = "travel-sample"
SCOPE = "inventory"


@pytest.fixture
def engine(
    legacy_store: InMemoryLegacyStore,
    target_store: InMemoryTargetStore,
    no_sleep: AsyncMock,
    metrics: DualStoreMetrics,
    mock_tracer: MockTracer,
) -> MigrationEngine:
    return MigrationEngine(
        legacy_store,
        target_store,
        sleep=no_sleep,
        metrics=metrics,
        tracer=mock_tracer,
    )


# =============================================================================
# Helpers
# =============================================================================


class TestBuildKeyspaceQuery:
    """Tests for the scan statement."""

    def test_statement(self):
        """The scan selects the native id as _id and every field."""
        keyspace = KeyspaceDescriptor("travel-sample", "inventory", "airline")
        assert build_keyspace_query(keyspace) == (
            "SELECT META().id AS _id, `airline`.* FROM `travel-sample`.`inventory`.`airline`"
        )


class TestPrepareDocument:
    """Tests for row preparation."""

    def test_normalizes_fields_and_keeps_id(self):
        """Field names are normalized; _id is carried over untouched."""
        row = {"_id": "route_10000", "Flight Name": "AB123", "Source Airport": "SFO"}
        assert prepare_document(row) == {
            "flight_name": "AB123",
            "source_airport": "SFO",
            "_id": "route_10000",
        }

    def test_row_without_id(self):
        """Rows without _id produce documents without _id."""
        assert prepare_document({"A B": 1}) == {"a_b": 1}


# =============================================================================
# run_migration
# =============================================================================


class TestRunMigration:
    """Tests for a full migration run."""

    @pytest.mark.asyncio
    async def test_waits_grace_period_first(
        self,
        legacy_store: InMemoryLegacyStore,
        target_store: InMemoryTargetStore,
        no_sleep: AsyncMock,
    ):
        """The configured grace period is awaited before any keyspace is read."""
        engine = MigrationEngine(
            legacy_store,
            target_store,
            settings=MigrationSettings(grace_period_seconds=10.0),
            sleep=no_sleep,
            enable_tracing=False,
        )

        await engine.run_migration()

        no_sleep.assert_awaited_once_with(10.0)

    @pytest.mark.asyncio
    async def test_end_to_end_key_normalization(
        self,
        engine: MigrationEngine,
        legacy_store: InMemoryLegacyStore,
        target_store: InMemoryTargetStore,
    ):
        """Legacy field names arrive normalized in the same-named target collection."""
        legacy_store.add_collection(
            BUCKET, SCOPE, "route", {"route_1": {"Flight Name": "AB123", "Source Airport": "SFO"}}
        )

        report = await engine.run_migration()

        assert report.migrated_keyspaces == ["travel-sample_inventory_route"]
        assert target_store.documents("route") == [
            {"flight_name": "AB123", "source_airport": "SFO", "_id": "route_1"}
        ]
        assert legacy_store.statements == [
            "SELECT META().id AS _id, `route`.* FROM `travel-sample`.`inventory`.`route`"
        ]

    @pytest.mark.asyncio
    async def test_chunks_of_one_hundred(
        self,
        engine: MigrationEngine,
        legacy_store: InMemoryLegacyStore,
        target_store: InMemoryTargetStore,
        metrics: DualStoreMetrics,
    ):
        """250 records are inserted as 100, 100, 50."""
        legacy_store.add_collection(BUCKET, SCOPE, "airline", make_documents(250))

        report = await engine.run_migration()

        assert target_store.batch_sizes("airline") == [100, 100, 50]
        assert report.documents_migrated == 250
        assert metrics.get_snapshot().documents_migrated == 250

    @pytest.mark.asyncio
    async def test_exact_multiple_has_no_empty_chunk(
        self,
        engine: MigrationEngine,
        legacy_store: InMemoryLegacyStore,
        target_store: InMemoryTargetStore,
    ):
        """200 records are inserted as exactly two chunks."""
        legacy_store.add_collection(BUCKET, SCOPE, "airline", make_documents(200))

        await engine.run_migration()

        assert target_store.batch_sizes("airline") == [100, 100]

    @pytest.mark.asyncio
    async def test_custom_chunk_size(
        self,
        legacy_store: InMemoryLegacyStore,
        target_store: InMemoryTargetStore,
        no_sleep: AsyncMock,
    ):
        """Chunk size is configurable."""
        legacy_store.add_collection(BUCKET, SCOPE, "airline", make_documents(7))
        engine = MigrationEngine(
            legacy_store,
            target_store,
            settings=MigrationSettings(chunk_size=3),
            sleep=no_sleep,
            enable_tracing=False,
        )

        await engine.run_migration()

        assert target_store.batch_sizes("airline") == [3, 3, 1]

    @pytest.mark.asyncio
    async def test_empty_keyspace_succeeds_without_insert(
        self,
        engine: MigrationEngine,
        legacy_store: InMemoryLegacyStore,
        target_store: InMemoryTargetStore,
    ):
        """An empty keyspace counts as migrated and writes nothing."""
        legacy_store.add_collection(BUCKET, SCOPE, "empty")

        report = await engine.run_migration()

        assert report.migrated_keyspaces == ["travel-sample_inventory_empty"]
        assert report.failed_keyspaces == []
        assert target_store.inserts == []

    @pytest.mark.asyncio
    async def test_no_keyspaces(self, engine: MigrationEngine):
        """A run over an empty catalog produces an empty report."""
        report = await engine.run_migration()

        assert report.outcomes == []
        assert report.cancelled is False
        assert report.finished_at is not None

    @pytest.mark.asyncio
    async def test_traced(
        self,
        engine: MigrationEngine,
        legacy_store: InMemoryLegacyStore,
        mock_tracer: MockTracer,
    ):
        """The run, each keyspace attempt and each chunk are traced."""
        legacy_store.add_collection(BUCKET, SCOPE, "airline", make_documents(150))

        await engine.run_migration()

        assert mock_tracer.span_names == [
            "dualstore.migration_engine.run",
            "dualstore.keyspace_enumerator.list_keyspaces",
            "dualstore.migration_engine.migrate_keyspace",
            "dualstore.migration_engine.insert_chunk",
            "dualstore.migration_engine.insert_chunk",
        ]


# =============================================================================
# Retries and failures
# =============================================================================


class TestRetries:
    """Tests for per-keyspace retry behaviour."""

    @pytest.mark.asyncio
    async def test_two_failures_then_success(
        self,
        engine: MigrationEngine,
        legacy_store: InMemoryLegacyStore,
        target_store: InMemoryTargetStore,
        caplog: pytest.LogCaptureFixture,
    ):
        """A keyspace failing twice then succeeding is migrated and not listed."""
        legacy_store.add_collection(BUCKET, SCOPE, "airline", make_documents(5))
        legacy_store.fail_queries("airline", times=2)

        with caplog.at_level(logging.WARNING, logger="dualstore.migration.engine"):
            report = await engine.run_migration()

        assert report.failed_keyspaces == []
        assert report.migrated_keyspaces == ["travel-sample_inventory_airline"]
        assert report.outcomes[0].attempts == 3
        assert len(target_store.documents("airline")) == 5
        retries = [r for r in caplog.records if "retrying" in r.getMessage()]
        assert len(retries) == 2

    @pytest.mark.asyncio
    async def test_three_failures_listed_and_next_keyspace_continues(
        self,
        engine: MigrationEngine,
        legacy_store: InMemoryLegacyStore,
        target_store: InMemoryTargetStore,
        metrics: DualStoreMetrics,
        caplog: pytest.LogCaptureFixture,
    ):
        """A keyspace failing three times is listed and does not block the next."""
        legacy_store.add_collection(BUCKET, SCOPE, "broken", make_documents(3))
        legacy_store.add_collection(BUCKET, SCOPE, "airline", make_documents(3))
        legacy_store.fail_queries("broken", times=3)

        with caplog.at_level(logging.ERROR, logger="dualstore.migration.engine"):
            report = await engine.run_migration()

        assert report.failed_keyspaces == ["travel-sample_inventory_broken"]
        assert report.migrated_keyspaces == ["travel-sample_inventory_airline"]
        failed = report.outcomes[0]
        assert failed.status is KeyspaceStatus.FAILED
        assert failed.attempts == 3
        assert "query on broken failed" in failed.error
        assert len(target_store.documents("airline")) == 3
        assert "travel-sample_inventory_broken failed after 3 attempt(s)" in caplog.text

        snapshot = metrics.get_snapshot()
        assert snapshot.keyspaces_failed == 1
        assert snapshot.keyspaces_succeeded == 1

    @pytest.mark.asyncio
    async def test_insert_failure_retries_whole_keyspace(
        self,
        legacy_store: InMemoryLegacyStore,
        no_sleep: AsyncMock,
    ):
        """A failed chunk retries the keyspace; already stored ids do not fail the retry."""

        class FlakyTarget(InMemoryTargetStore):
            calls = 0

            async def bulk_insert(self, collection: str, documents: Sequence[Document]) -> None:
                type(self).calls += 1
                if type(self).calls == 2:
                    raise ConnectionError("insert failed")
                await super().bulk_insert(collection, documents)

        target = FlakyTarget()
        legacy_store.add_collection(BUCKET, SCOPE, "airline", make_documents(150))
        engine = MigrationEngine(legacy_store, target, sleep=no_sleep, enable_tracing=False)

        report = await engine.run_migration()

        outcome = report.outcomes[0]
        assert outcome.status is KeyspaceStatus.SUCCEEDED
        assert outcome.attempts == 2
        assert outcome.documents == 150
        assert report.failed_keyspaces == []
        # Chunk 1 of the first attempt stays; the retry re-sends it.
        assert target.batch_sizes("airline") == [100, 100, 50]
        stored_ids = [doc["_id"] for doc in target.documents("airline")]
        assert len(stored_ids) == 150
        assert len(set(stored_ids)) == 150
        assert target.duplicates_skipped["airline"] == 100

    @pytest.mark.asyncio
    async def test_retry_after_late_chunk_failure(
        self,
        legacy_store: InMemoryLegacyStore,
        no_sleep: AsyncMock,
    ):
        """A transient failure on the last chunk still ends with every document once."""

        class FlakyTarget(InMemoryTargetStore):
            calls = 0

            async def bulk_insert(self, collection: str, documents: Sequence[Document]) -> None:
                type(self).calls += 1
                if type(self).calls == 3:
                    raise ConnectionError("connection reset")
                await super().bulk_insert(collection, documents)

        target = FlakyTarget()
        legacy_store.add_collection(BUCKET, SCOPE, "airline", make_documents(250))
        engine = MigrationEngine(legacy_store, target, sleep=no_sleep, enable_tracing=False)

        report = await engine.run_migration()

        assert report.migrated_keyspaces == ["travel-sample_inventory_airline"]
        assert len({doc["_id"] for doc in target.documents("airline")}) == 250
        assert len(target.documents("airline")) == 250

    @pytest.mark.asyncio
    async def test_max_attempts_configurable(
        self,
        legacy_store: InMemoryLegacyStore,
        target_store: InMemoryTargetStore,
        no_sleep: AsyncMock,
    ):
        """max_attempts bounds the number of tries."""
        legacy_store.add_collection(BUCKET, SCOPE, "airline", make_documents(1))
        legacy_store.fail_queries("airline", times=5)
        engine = MigrationEngine(
            legacy_store,
            target_store,
            settings=MigrationSettings(max_attempts=5),
            sleep=no_sleep,
            enable_tracing=False,
        )

        report = await engine.run_migration()

        assert report.outcomes[0].status is KeyspaceStatus.FAILED
        assert report.outcomes[0].attempts == 5
        assert len(legacy_store.statements) == 5

    @pytest.mark.asyncio
    async def test_catalog_failure_raises(
        self,
        target_store: InMemoryTargetStore,
        no_sleep: AsyncMock,
    ):
        """If keyspaces cannot be listed the run fails with MigrationError."""
        legacy = InMemoryLegacyStore()
        legacy.list_catalog_keyspaces = AsyncMock(side_effect=ConnectionError("down"))
        engine = MigrationEngine(legacy, target_store, sleep=no_sleep, enable_tracing=False)

        with pytest.raises(MigrationError):
            await engine.run_migration()


# =============================================================================
# Cancellation
# =============================================================================


class TestCancellation:
    """Tests for cancellation between keyspaces."""

    @pytest.mark.asyncio
    async def test_cancel_before_start_skips_everything(
        self,
        engine: MigrationEngine,
        legacy_store: InMemoryLegacyStore,
        target_store: InMemoryTargetStore,
    ):
        """A set event skips every keyspace."""
        legacy_store.add_collection(BUCKET, SCOPE, "a", make_documents(1))
        legacy_store.add_collection(BUCKET, SCOPE, "b", make_documents(1))
        event = asyncio.Event()
        event.set()

        report = await engine.run_migration(event)

        assert report.cancelled is True
        assert report.skipped_keyspaces == [
            "travel-sample_inventory_a",
            "travel-sample_inventory_b",
        ]
        assert target_store.inserts == []

    @pytest.mark.asyncio
    async def test_cancel_mid_run_finishes_current_keyspace(
        self,
        legacy_store: InMemoryLegacyStore,
        no_sleep: AsyncMock,
    ):
        """The keyspace in progress completes; later ones are skipped."""
        event = asyncio.Event()

        class CancellingTarget(InMemoryTargetStore):
            async def bulk_insert(self, collection: str, documents: Sequence[Document]) -> None:
                await super().bulk_insert(collection, documents)
                event.set()

        target = CancellingTarget()
        legacy_store.add_collection(BUCKET, SCOPE, "a", make_documents(150))
        legacy_store.add_collection(BUCKET, SCOPE, "b", make_documents(1))
        engine = MigrationEngine(legacy_store, target, sleep=no_sleep, enable_tracing=False)

        report = await engine.run_migration(event)

        assert report.cancelled is True
        assert report.migrated_keyspaces == ["travel-sample_inventory_a"]
        assert report.skipped_keyspaces == ["travel-sample_inventory_b"]
        assert target.batch_sizes("a") == [100, 50]
