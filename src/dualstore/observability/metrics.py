"""
OpenTelemetry metrics for shadow routing and migration.

Metrics Exposed:
    - dualstore.shadow.reads (Counter): Reads served, by store
    - dualstore.shadow.writes (Counter): Secondary writes, by outcome
    - dualstore.consistency.checks (Counter): Validator results, by outcome
    - dualstore.migration.documents (Counter): Documents written to the target store
    - dualstore.migration.keyspaces (Counter): Finished keyspaces, by outcome

Instruments come from the globally configured meter provider; without an
SDK they are OpenTelemetry's own no-op instruments. Every recording also
updates an in-process tally, exposed through ``get_snapshot()``, so tests
can assert on emitted signals without an exporter.

Example:
    >>> metrics = DualStoreMetrics()
    >>> metrics.record_consistency_check("findBookingsByUser", "fail")
    >>> metrics.get_snapshot().consistency_failures
    1
"""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from opentelemetry import metrics

METER_NAME = "dualstore"


@dataclass(frozen=True)
class DualStoreMetricSnapshot:
    """
    Snapshot of the values recorded so far.

    Attributes:
        reads_by_store: Reads served per store name
        shadow_writes_scheduled: Secondary writes handed to the queue
        shadow_writes_failed: Secondary writes that raised
        consistency_passes: Validator comparisons with equal counts
        consistency_failures: Validator comparisons with differing counts
        documents_migrated: Documents bulk-inserted into the target store
        keyspaces_succeeded: Keyspaces migrated (including empty ones)
        keyspaces_failed: Keyspaces that exhausted their attempts
    """

    reads_by_store: dict[str, int] = field(default_factory=dict)
    shadow_writes_scheduled: int = 0
    shadow_writes_failed: int = 0
    consistency_passes: int = 0
    consistency_failures: int = 0
    documents_migrated: int = 0
    keyspaces_succeeded: int = 0
    keyspaces_failed: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "reads_by_store": dict(self.reads_by_store),
            "shadow_writes_scheduled": self.shadow_writes_scheduled,
            "shadow_writes_failed": self.shadow_writes_failed,
            "consistency_passes": self.consistency_passes,
            "consistency_failures": self.consistency_failures,
            "documents_migrated": self.documents_migrated,
            "keyspaces_succeeded": self.keyspaces_succeeded,
            "keyspaces_failed": self.keyspaces_failed,
        }


@dataclass
class DualStoreMetrics:
    """
    Container for dualstore metric instruments.

    Attributes:
        enable_metrics: Whether to create OpenTelemetry instruments (default True).
            The in-process snapshot is maintained either way.
        meter_provider: Provider to take the meter from (default: the global one).
    """

    enable_metrics: bool = True
    meter_provider: Any = None

    _reads_counter: Any = field(default=None, init=False, repr=False)
    _shadow_writes_counter: Any = field(default=None, init=False, repr=False)
    _consistency_counter: Any = field(default=None, init=False, repr=False)
    _documents_counter: Any = field(default=None, init=False, repr=False)
    _keyspaces_counter: Any = field(default=None, init=False, repr=False)

    _tally: Counter[str] = field(default_factory=Counter, init=False, repr=False)
    _reads_by_store: Counter[str] = field(default_factory=Counter, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        """Initialize metric instruments."""
        if self.enable_metrics:
            self._setup_metrics()

    def _setup_metrics(self) -> None:
        """Set up OpenTelemetry metric instruments."""
        if self.meter_provider is not None:
            meter = self.meter_provider.get_meter(METER_NAME)
        else:
            meter = metrics.get_meter(METER_NAME)

        self._reads_counter = meter.create_counter(
            name="dualstore.shadow.reads",
            unit="reads",
            description="Entity reads served, labelled by the store that served them",
        )
        self._shadow_writes_counter = meter.create_counter(
            name="dualstore.shadow.writes",
            unit="writes",
            description="Best-effort secondary writes, labelled by outcome",
        )
        self._consistency_counter = meter.create_counter(
            name="dualstore.consistency.checks",
            unit="checks",
            description="Cross-store result comparisons, labelled by outcome",
        )
        self._documents_counter = meter.create_counter(
            name="dualstore.migration.documents",
            unit="documents",
            description="Documents bulk-inserted into the target store by migration",
        )
        self._keyspaces_counter = meter.create_counter(
            name="dualstore.migration.keyspaces",
            unit="keyspaces",
            description="Keyspaces finished by migration, labelled by outcome",
        )

    def _add(self, instrument: Any, amount: int, attributes: dict[str, str]) -> None:
        if instrument is not None:
            instrument.add(amount, attributes)

    def record_read(self, store: str, operation: str) -> None:
        """Record a read served by ``store``."""
        self._add(self._reads_counter, 1, {"store": store, "operation": operation})
        with self._lock:
            self._reads_by_store[store] += 1

    def record_shadow_write(
        self,
        operation: str,
        outcome: str,
        error_type: str | None = None,
    ) -> None:
        """
        Record a secondary write event.

        Args:
            operation: Entity operation name
            outcome: 'scheduled', 'succeeded' or 'failed'
            error_type: Exception class name for failed writes
        """
        attrs = {"operation": operation, "outcome": outcome}
        if error_type:
            attrs["error_type"] = error_type
        self._add(self._shadow_writes_counter, 1, attrs)
        with self._lock:
            self._tally[f"shadow_write.{outcome}"] += 1

    def record_consistency_check(self, operation: str, outcome: str) -> None:
        """Record a validator comparison ('pass' or 'fail')."""
        self._add(self._consistency_counter, 1, {"operation": operation, "outcome": outcome})
        with self._lock:
            self._tally[f"consistency.{outcome}"] += 1

    def record_documents_migrated(self, keyspace: str, count: int) -> None:
        """Record ``count`` documents written for ``keyspace``."""
        self._add(self._documents_counter, count, {"keyspace": keyspace})
        with self._lock:
            self._tally["documents"] += count

    def record_keyspace_outcome(self, keyspace: str, outcome: str) -> None:
        """Record a finished keyspace ('succeeded' or 'failed')."""
        self._add(self._keyspaces_counter, 1, {"keyspace": keyspace, "outcome": outcome})
        with self._lock:
            self._tally[f"keyspace.{outcome}"] += 1

    def get_snapshot(self) -> DualStoreMetricSnapshot:
        """
        Get a snapshot of current metric values.

        Returns:
            DualStoreMetricSnapshot with accumulated values
        """
        with self._lock:
            return DualStoreMetricSnapshot(
                reads_by_store=dict(self._reads_by_store),
                shadow_writes_scheduled=self._tally["shadow_write.scheduled"],
                shadow_writes_failed=self._tally["shadow_write.failed"],
                consistency_passes=self._tally["consistency.pass"],
                consistency_failures=self._tally["consistency.fail"],
                documents_migrated=self._tally["documents"],
                keyspaces_succeeded=self._tally["keyspace.succeeded"],
                keyspaces_failed=self._tally["keyspace.failed"],
            )

    def reset(self) -> None:
        """Clear the in-process tally. Useful between tests."""
        with self._lock:
            self._tally.clear()
            self._reads_by_store.clear()


__all__ = [
    "DualStoreMetricSnapshot",
    "DualStoreMetrics",
    "METER_NAME",
]
