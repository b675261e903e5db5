"""
Shared pytest fixtures for the dualstore library tests.

This module provides:
- Observability fixtures (mock_tracer, metrics, metric_reader)
- Entity service fixtures (one fake per store)
- Store client fixtures (legacy_store, target_store)
- Migration fixtures (no_sleep, migration_settings)
"""

from __future__ import annotations

import random
from collections.abc import Generator
from unittest.mock import AsyncMock

import pytest
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from dualstore.config import MigrationSettings
from dualstore.observability import DualStoreMetrics, MockTracer
from dualstore.stores import InMemoryLegacyStore, InMemoryTargetStore
from tests.fixtures import FakeBookingService, FakeFlightPathService, FakeHotelService

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for tests."""
    config.addinivalue_line("markers", "slow: statistical tests with many iterations")


# ============================================================================
# Observability Fixtures
# ============================================================================


@pytest.fixture
def mock_tracer() -> MockTracer:
    """Provide a MockTracer that records span names and attributes."""
    return MockTracer()


@pytest.fixture
def metrics() -> DualStoreMetrics:
    """Provide a metrics container with only the in-process tally."""
    return DualStoreMetrics(enable_metrics=False)


@pytest.fixture
def metric_reader() -> Generator[tuple[InMemoryMetricReader, MeterProvider], None, None]:
    """
    Provide an InMemoryMetricReader and the MeterProvider it is attached to.

    The provider is passed to DualStoreMetrics explicitly, so the global
    meter provider is never touched.

    Yields:
        (reader, provider) tuple.
    """
    reader = InMemoryMetricReader()
    provider = MeterProvider(metric_readers=[reader])
    yield reader, provider
    provider.shutdown()


@pytest.fixture
def seeded_rng() -> random.Random:
    """Provide a deterministic random source."""
    return random.Random(1234)


# ============================================================================
# Entity Service Fixtures
# ============================================================================


@pytest.fixture
def couchbase_bookings() -> FakeBookingService:
    return FakeBookingService("Couchbase")


@pytest.fixture
def mongodb_bookings() -> FakeBookingService:
    return FakeBookingService("MongoDB")


@pytest.fixture
def couchbase_flights() -> FakeFlightPathService:
    return FakeFlightPathService("Couchbase")


@pytest.fixture
def mongodb_flights() -> FakeFlightPathService:
    return FakeFlightPathService("MongoDB")


@pytest.fixture
def couchbase_hotels() -> FakeHotelService:
    return FakeHotelService("Couchbase")


@pytest.fixture
def mongodb_hotels() -> FakeHotelService:
    return FakeHotelService("MongoDB")


# ============================================================================
# Store Client Fixtures
# ============================================================================


@pytest.fixture
def legacy_store() -> InMemoryLegacyStore:
    """Provide an empty in-memory legacy store."""
    return InMemoryLegacyStore()


@pytest.fixture
def target_store() -> InMemoryTargetStore:
    """Provide an empty in-memory target store."""
    return InMemoryTargetStore()


# ============================================================================
# Migration Fixtures
# ============================================================================


@pytest.fixture
def no_sleep() -> AsyncMock:
    """Provide a sleep replacement that returns immediately and records calls."""
    return AsyncMock(return_value=None)


@pytest.fixture
def migration_settings() -> MigrationSettings:
    """Default migration settings (grace period is skipped via no_sleep)."""
    return MigrationSettings()
