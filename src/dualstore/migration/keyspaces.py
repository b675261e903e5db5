"""
KeyspaceEnumerator - Lists the Couchbase keyspaces to migrate.

A keyspace is the (bucket, scope, collection) triple addressing one
Couchbase collection. The enumerator reads the ``system:keyspaces``
catalog through the legacy client and keeps only rows that name all three
parts, in catalog order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from dualstore.observability import ATTR_KEYSPACE_COUNT, Tracer, create_tracer
from dualstore.stores.interface import LegacyStoreClient

logger = logging.getLogger(__name__)

CATALOG_WRAPPER_KEY = "keyspaces"


@dataclass(frozen=True)
class KeyspaceDescriptor:
    """
    Address of one legacy collection.

    Attributes:
        container_name: Bucket name.
        scope_name: Scope name.
        collection_name: Collection name (also the target collection name).
    """

    container_name: str
    scope_name: str
    collection_name: str

    @property
    def identifier(self) -> str:
        """Identifier used in logs and the failed-keyspace list."""
        return f"{self.container_name}_{self.scope_name}_{self.collection_name}"

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {
            "container_name": self.container_name,
            "scope_name": self.scope_name,
            "collection_name": self.collection_name,
        }

    def __str__(self) -> str:
        return f"{self.container_name}.{self.scope_name}.{self.collection_name}"


class KeyspaceEnumerator:
    """
    Discovers keyspaces from the legacy store catalog.

    Example:
        >>> enumerator = KeyspaceEnumerator(legacy_store)
        >>> [k.identifier for k in await enumerator.list_keyspaces()]
        ['travel-sample_inventory_airline', 'travel-sample_inventory_route']
    """

    def __init__(
        self,
        legacy_store: LegacyStoreClient,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._legacy = legacy_store
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    async def list_keyspaces(self) -> list[KeyspaceDescriptor]:
        """
        List every well-formed keyspace in the catalog.

        Returns:
            Keyspaces in catalog order. Rows missing ``bucket``, ``scope`` or
            ``id`` are skipped.

        Raises:
            Exception: Whatever the legacy client raises for the catalog query.
        """
        with self._tracer.span("dualstore.keyspace_enumerator.list_keyspaces") as span:
            rows = await self._legacy.list_catalog_keyspaces()

            keyspaces: list[KeyspaceDescriptor] = []
            for row in rows:
                descriptor = self._parse_row(row)
                if descriptor is None:
                    logger.debug("Skipping incomplete keyspace catalog row: %r", row)
                    continue
                keyspaces.append(descriptor)

            if span is not None:
                span.set_attribute(ATTR_KEYSPACE_COUNT, len(keyspaces))

        logger.info("Found %d keyspaces to migrate", len(keyspaces))
        return keyspaces

    @staticmethod
    def _parse_row(row: Any) -> KeyspaceDescriptor | None:
        if not isinstance(row, dict):
            return None
        fields = row.get(CATALOG_WRAPPER_KEY, row)
        if not isinstance(fields, dict):
            return None

        bucket = fields.get("bucket")
        scope = fields.get("scope")
        collection = fields.get("id")
        if not (
            isinstance(bucket, str) and bucket
            and isinstance(scope, str) and scope
            and isinstance(collection, str) and collection
        ):
            return None
        return KeyspaceDescriptor(bucket, scope, collection)


__all__ = [
    "KeyspaceDescriptor",
    "KeyspaceEnumerator",
]
