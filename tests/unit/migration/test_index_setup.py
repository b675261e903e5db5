"""
Unit tests for TargetIndexSetup.
"""

from __future__ import annotations

import logging

import pytest

from dualstore.migration import (
    DEFAULT_INDEXES,
    HOTEL_TEXT_WEIGHTS,
    CollectionIndex,
    IndexSetupResult,
    TargetIndexSetup,
)
from dualstore.observability import MockTracer
from dualstore.stores import ASCENDING, IndexSpec, InMemoryTargetStore


class TestDefaultIndexes:
    """Tests for the default index set."""

    def test_hotel_text_index(self):
        """The hotel collection gets one weighted text index over six fields."""
        hotel = [e for e in DEFAULT_INDEXES if e.collection == "hotel"]
        assert len(hotel) == 1
        spec = hotel[0].index
        assert spec.name == "hotels-index"
        assert spec.is_text
        assert spec.fields == ["name", "description", "city", "country", "state", "address"]
        assert spec.weights == HOTEL_TEXT_WEIGHTS
        assert HOTEL_TEXT_WEIGHTS["name"] == 3

    def test_users_username_is_unique(self):
        """users.username is unique; bookings.username is not."""
        by_collection = {
            e.collection: e.index for e in DEFAULT_INDEXES if e.index.name == "username_1"
        }
        assert by_collection["users"].unique is True
        assert by_collection["bookings"].unique is False

    def test_route_compound_index(self):
        """Routes are indexed on source then destination airport."""
        (route,) = [e.index for e in DEFAULT_INDEXES if e.collection == "route"]
        assert route.fields == ["sourceairport", "destinationairport"]


class TestEnsureIndexes:
    """Tests for ensure_indexes."""

    @pytest.mark.asyncio
    async def test_creates_all_defaults(
        self,
        target_store: InMemoryTargetStore,
        mock_tracer: MockTracer,
    ):
        """Every default index is created on its collection."""
        result = await TargetIndexSetup(target_store, tracer=mock_tracer).ensure_indexes()

        assert result.success
        assert len(result.created) == len(DEFAULT_INDEXES)
        assert [i.name for i in target_store.indexes["airport"]] == [
            "faa_1",
            "icao_1",
            "airportname_1",
        ]
        assert mock_tracer.span_names.count("dualstore.index_setup.ensure_index") == len(
            DEFAULT_INDEXES
        )

    @pytest.mark.asyncio
    async def test_rerun_is_idempotent(self, target_store: InMemoryTargetStore):
        """Running setup twice leaves one copy of each index."""
        setup = TargetIndexSetup(target_store, enable_tracing=False)
        await setup.ensure_indexes()
        await setup.ensure_indexes()

        assert len(target_store.indexes["airport"]) == 3

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_rest_continue(
        self,
        target_store: InMemoryTargetStore,
        caplog: pytest.LogCaptureFixture,
    ):
        """A failing index is reported; later indexes are still created."""
        target_store.fail_index("icao_1")

        with caplog.at_level(logging.ERROR, logger="dualstore.migration.indexes"):
            result = await TargetIndexSetup(target_store, enable_tracing=False).ensure_indexes()

        assert result.success is False
        assert result.failed == ("airport.icao_1",)
        assert "users.username_1" in result.created
        assert "Failed to create index icao_1 on airport" in caplog.text

    @pytest.mark.asyncio
    async def test_custom_index_set(self, target_store: InMemoryTargetStore):
        """A custom index list replaces the defaults."""
        custom = [CollectionIndex("airline", IndexSpec("iata_1", (("iata", ASCENDING),)))]
        setup = TargetIndexSetup(target_store, custom, enable_tracing=False)

        result = await setup.ensure_indexes()

        assert result == IndexSetupResult(created=("airline.iata_1",))
        assert setup.indexes == tuple(custom)
        assert "hotel" not in target_store.indexes
