"""
Unit tests for KeyspaceOutcome and MigrationReport.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from dualstore.migration import KeyspaceDescriptor, KeyspaceOutcome, KeyspaceStatus, MigrationReport

AIRLINE = KeyspaceDescriptor("travel-sample", "inventory", "airline")
ROUTE = KeyspaceDescriptor("travel-sample", "inventory", "route")
HOTEL = KeyspaceDescriptor("travel-sample", "inventory", "hotel")


def make_report() -> MigrationReport:
    started = datetime(2024, 1, 1, tzinfo=UTC)
    return MigrationReport(
        outcomes=[
            KeyspaceOutcome(AIRLINE, KeyspaceStatus.SUCCEEDED, attempts=1, documents=187),
            KeyspaceOutcome(ROUTE, KeyspaceStatus.FAILED, attempts=3, error="timeout"),
            KeyspaceOutcome(HOTEL, KeyspaceStatus.SKIPPED),
        ],
        cancelled=True,
        started_at=started,
        finished_at=started + timedelta(seconds=12),
    )


class TestMigrationReport:
    """Tests for MigrationReport."""

    def test_lists_by_status(self):
        """Identifiers are grouped by outcome."""
        report = make_report()
        assert report.migrated_keyspaces == ["travel-sample_inventory_airline"]
        assert report.failed_keyspaces == ["travel-sample_inventory_route"]
        assert report.skipped_keyspaces == ["travel-sample_inventory_hotel"]

    def test_documents_and_duration(self):
        """Totals and duration are derived from the outcomes and timestamps."""
        report = make_report()
        assert report.documents_migrated == 187
        assert report.duration_seconds == 12.0

    def test_unfinished_has_no_duration(self):
        """A report without finished_at has no duration."""
        assert MigrationReport(started_at=datetime.now(UTC)).duration_seconds is None

    def test_to_dict(self):
        """to_dict is JSON friendly."""
        data = make_report().to_dict()

        assert data["failed_keyspaces"] == ["travel-sample_inventory_route"]
        assert data["cancelled"] is True
        assert data["started_at"] == "2024-01-01T00:00:00+00:00"
        assert data["outcomes"][1] == {
            "keyspace": "travel-sample_inventory_route",
            "status": "failed",
            "attempts": 3,
            "documents": 0,
            "error": "timeout",
        }
