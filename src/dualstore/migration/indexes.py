"""
TargetIndexSetup - Creates the indexes the MongoDB services rely on.

Indexes are created at start-up, before migration. Each index is ensured
independently: a failure is logged and the remaining indexes are still
attempted.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from dualstore.observability import ATTR_DB_COLLECTION, Tracer, create_tracer
from dualstore.stores.interface import ASCENDING, TEXT, IndexSpec, TargetStoreClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectionIndex:
    """An index and the collection it belongs to."""

    collection: str
    index: IndexSpec


HOTEL_TEXT_WEIGHTS = {
    "name": 3,
    "description": 2,
    "city": 2,
    "country": 2,
    "state": 1,
    "address": 1,
}

DEFAULT_INDEXES: tuple[CollectionIndex, ...] = (
    CollectionIndex(
        "hotel",
        IndexSpec(
            "hotels-index",
            tuple((name, TEXT) for name in HOTEL_TEXT_WEIGHTS),
            weights=HOTEL_TEXT_WEIGHTS,
        ),
    ),
    CollectionIndex("airport", IndexSpec("faa_1", (("faa", ASCENDING),))),
    CollectionIndex("airport", IndexSpec("icao_1", (("icao", ASCENDING),))),
    CollectionIndex("airport", IndexSpec("airportname_1", (("airportname", ASCENDING),))),
    CollectionIndex(
        "route",
        IndexSpec("route_idx", (("sourceairport", ASCENDING), ("destinationairport", ASCENDING))),
    ),
    CollectionIndex("bookings", IndexSpec("username_1", (("username", ASCENDING),))),
    CollectionIndex("users", IndexSpec("username_1", (("username", ASCENDING),), unique=True)),
)


@dataclass(frozen=True)
class IndexSetupResult:
    """
    Outcome of an index setup pass.

    Attributes:
        created: ``collection.index`` names that were ensured.
        failed: ``collection.index`` names whose creation raised.
    """

    created: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        return not self.failed


class TargetIndexSetup:
    """
    Ensures a fixed set of indexes on the target store.

    Example:
        >>> setup = TargetIndexSetup(target_store)
        >>> result = await setup.ensure_indexes()
        >>> result.failed
        ()
    """

    def __init__(
        self,
        target_store: TargetStoreClient,
        indexes: Sequence[CollectionIndex] = DEFAULT_INDEXES,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._target = target_store
        self._indexes = tuple(indexes)
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    @property
    def indexes(self) -> tuple[CollectionIndex, ...]:
        return self._indexes

    async def ensure_indexes(self) -> IndexSetupResult:
        """
        Ensure every configured index, continuing past failures.

        Returns:
            Which indexes were ensured and which failed.
        """
        created: list[str] = []
        failed: list[str] = []

        for entry in self._indexes:
            label = f"{entry.collection}.{entry.index.name}"
            with self._tracer.span(
                "dualstore.index_setup.ensure_index",
                {ATTR_DB_COLLECTION: entry.collection},
            ):
                try:
                    await self._target.ensure_index(entry.collection, entry.index)
                except Exception as e:
                    logger.error(
                        "Failed to create index %s on %s: %s",
                        entry.index.name,
                        entry.collection,
                        e,
                        exc_info=True,
                    )
                    failed.append(label)
                    continue
            created.append(label)

        logger.info(
            "Index setup finished: %d ensured, %d failed",
            len(created),
            len(failed),
        )
        return IndexSetupResult(created=tuple(created), failed=tuple(failed))


__all__ = [
    "CollectionIndex",
    "DEFAULT_INDEXES",
    "HOTEL_TEXT_WEIGHTS",
    "IndexSetupResult",
    "TargetIndexSetup",
]
