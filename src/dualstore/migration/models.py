"""
Data models for migration runs.

This module provides:
- KeyspaceStatus: How a keyspace finished
- KeyspaceOutcome: Per-keyspace result
- MigrationReport: Result of one run, in memory only
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from dualstore.migration.keyspaces import KeyspaceDescriptor


class KeyspaceStatus(Enum):
    """
    How a keyspace finished.

    Attributes:
        SUCCEEDED: All documents were written (or the keyspace was empty).
        FAILED: Every attempt raised; the keyspace is in the failed list.
        SKIPPED: The run was cancelled before the keyspace was reached.
    """

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class KeyspaceOutcome:
    """
    Result of migrating one keyspace.

    Attributes:
        keyspace: The keyspace.
        status: How it finished.
        attempts: Attempts made (0 for skipped keyspaces).
        documents: Documents written by the successful attempt.
        error: Last error message for failed keyspaces.
    """

    keyspace: KeyspaceDescriptor
    status: KeyspaceStatus
    attempts: int = 0
    documents: int = 0
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "keyspace": self.keyspace.identifier,
            "status": self.status.value,
            "attempts": self.attempts,
            "documents": self.documents,
            "error": self.error,
        }


@dataclass
class MigrationReport:
    """
    Result of one migration run.

    Attributes:
        outcomes: One outcome per discovered keyspace, in processing order.
        cancelled: Whether the run stopped early on a cancellation request.
        started_at: When the run started (after the grace period).
        finished_at: When the run finished.
    """

    outcomes: list[KeyspaceOutcome] = field(default_factory=list)
    cancelled: bool = False
    started_at: datetime | None = None
    finished_at: datetime | None = None

    def _identifiers(self, status: KeyspaceStatus) -> list[str]:
        return [o.keyspace.identifier for o in self.outcomes if o.status is status]

    @property
    def failed_keyspaces(self) -> list[str]:
        """Identifiers of keyspaces that exhausted their attempts."""
        return self._identifiers(KeyspaceStatus.FAILED)

    @property
    def migrated_keyspaces(self) -> list[str]:
        """Identifiers of keyspaces that were migrated (including empty ones)."""
        return self._identifiers(KeyspaceStatus.SUCCEEDED)

    @property
    def skipped_keyspaces(self) -> list[str]:
        """Identifiers of keyspaces not reached before cancellation."""
        return self._identifiers(KeyspaceStatus.SKIPPED)

    @property
    def documents_migrated(self) -> int:
        """Total documents written across all keyspaces."""
        return sum(o.documents for o in self.outcomes)

    @property
    def duration_seconds(self) -> float | None:
        """Elapsed run time, once finished."""
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "outcomes": [o.to_dict() for o in self.outcomes],
            "failed_keyspaces": self.failed_keyspaces,
            "migrated_keyspaces": self.migrated_keyspaces,
            "skipped_keyspaces": self.skipped_keyspaces,
            "documents_migrated": self.documents_migrated,
            "cancelled": self.cancelled,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


__all__ = [
    "KeyspaceOutcome",
    "KeyspaceStatus",
    "MigrationReport",
]
