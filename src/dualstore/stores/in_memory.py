"""
In-memory store clients.

Useful for testing and development. Both clients keep everything in
dictionaries and record every call so tests can assert on the exact
sequence of queries, bulk inserts and index creations. Failures can be
injected per collection to exercise retry paths.
"""

from __future__ import annotations

import asyncio
import copy
import re
from collections import defaultdict
from collections.abc import Mapping, Sequence
from typing import Any

from dualstore.documents import Document
from dualstore.stores.interface import IndexSpec, LegacyStoreClient, TargetStoreClient

_KEYSPACE_PATTERN = re.compile(r"FROM\s+`([^`]+)`\.`([^`]+)`\.`([^`]+)`", re.IGNORECASE)


class InMemoryLegacyStore(LegacyStoreClient):
    """
    In-memory stand-in for the legacy store.

    Collections are addressed by (bucket, scope, collection). ``query``
    understands the keyspace-scan statement the migration engine issues and
    returns each document with its id under ``_id``.

    Example:
        >>> store = InMemoryLegacyStore()
        >>> store.add_collection("travel-sample", "inventory", "airline", {
        ...     "airline_10": {"Name": "40-Mile Air"},
        ... })
        >>> await store.list_catalog_keyspaces()
        [{'keyspaces': {'bucket': 'travel-sample', 'scope': 'inventory', 'id': 'airline'}}]
    """

    def __init__(self) -> None:
        self._collections: dict[tuple[str, str, str], dict[str, Document]] = {}
        self._catalog: list[dict[str, Any]] = []
        self._failures: dict[str, list[Exception]] = defaultdict(list)
        self._lock = asyncio.Lock()
        self.statements: list[str] = []

    def add_collection(
        self,
        bucket: str,
        scope: str,
        collection: str,
        documents: Mapping[str, Document] | None = None,
    ) -> None:
        """
        Add a collection and its catalog row.

        Args:
            bucket: Bucket name.
            scope: Scope name.
            collection: Collection name.
            documents: Documents keyed by id.
        """
        self._collections[(bucket, scope, collection)] = dict(documents or {})
        self._catalog.append({"keyspaces": {"bucket": bucket, "scope": scope, "id": collection}})

    def add_catalog_row(self, row: dict[str, Any]) -> None:
        """Append a raw catalog row (e.g. a malformed one)."""
        self._catalog.append(row)

    def fail_queries(self, collection: str, times: int, error: Exception | None = None) -> None:
        """
        Make the next ``times`` scans of ``collection`` raise.

        Args:
            collection: Collection name.
            times: Number of consecutive failing queries.
            error: Exception to raise (default: ConnectionError).
        """
        for _ in range(times):
            self._failures[collection].append(
                error or ConnectionError(f"query on {collection} failed")
            )

    async def query(self, statement: str) -> list[Document]:
        async with self._lock:
            self.statements.append(statement)

            match = _KEYSPACE_PATTERN.search(statement)
            if match is None:
                raise ValueError(f"Unsupported statement: {statement}")
            bucket, scope, collection = match.groups()

            if self._failures[collection]:
                raise self._failures[collection].pop(0)

            documents = self._collections.get((bucket, scope, collection))
            if documents is None:
                raise LookupError(f"Keyspace not found: {bucket}.{scope}.{collection}")
            return [{"_id": doc_id, **copy.deepcopy(doc)} for doc_id, doc in documents.items()]

    async def list_catalog_keyspaces(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._catalog)

    def clear(self) -> None:
        """Remove all collections, catalog rows, injected failures and recorded statements."""
        self._collections.clear()
        self._catalog.clear()
        self._failures.clear()
        self.statements.clear()


class InMemoryTargetStore(TargetStoreClient):
    """
    In-memory stand-in for the target store.

    Attributes:
        inserts: Every bulk insert as (collection, documents), in call order.
        duplicates_skipped: Documents not written because their ``_id`` was
            already stored, per collection.
        indexes: Indexes created per collection.

    Example:
        >>> store = InMemoryTargetStore()
        >>> await store.bulk_insert("airline", [{"_id": "airline_10"}])
        >>> store.documents("airline")
        [{'_id': 'airline_10'}]
    """

    def __init__(self) -> None:
        self._collections: dict[str, list[Document]] = defaultdict(list)
        self._insert_failures: dict[str, list[Exception]] = defaultdict(list)
        self._index_failures: dict[str, Exception] = {}
        self._lock = asyncio.Lock()
        self.inserts: list[tuple[str, list[Document]]] = []
        self.indexes: dict[str, list[IndexSpec]] = defaultdict(list)
        self.duplicates_skipped: dict[str, int] = defaultdict(int)

    def fail_inserts(self, collection: str, times: int, error: Exception | None = None) -> None:
        """Make the next ``times`` bulk inserts into ``collection`` raise."""
        for _ in range(times):
            self._insert_failures[collection].append(
                error or ConnectionError(f"insert into {collection} failed")
            )

    def fail_index(self, name: str, error: Exception | None = None) -> None:
        """Make creation of the index named ``name`` raise."""
        self._index_failures[name] = error or RuntimeError(f"index {name} failed")

    async def bulk_insert(self, collection: str, documents: Sequence[Document]) -> None:
        async with self._lock:
            if self._insert_failures[collection]:
                raise self._insert_failures[collection].pop(0)
            batch = [copy.deepcopy(doc) for doc in documents]
            self.inserts.append((collection, batch))

            stored = self._collections[collection]
            ids = {doc["_id"] for doc in stored if "_id" in doc}
            for doc in batch:
                if "_id" in doc and doc["_id"] in ids:
                    self.duplicates_skipped[collection] += 1
                    continue
                if "_id" in doc:
                    ids.add(doc["_id"])
                stored.append(doc)

    async def ensure_index(self, collection: str, index: IndexSpec) -> None:
        async with self._lock:
            if index.name in self._index_failures:
                raise self._index_failures[index.name]
            existing = self.indexes[collection]
            if all(spec.name != index.name for spec in existing):
                existing.append(index)

    def documents(self, collection: str) -> list[Document]:
        """Get all documents inserted into ``collection``."""
        return list(self._collections.get(collection, []))

    def batch_sizes(self, collection: str) -> list[int]:
        """Get the size of each bulk insert into ``collection``, in call order."""
        return [len(docs) for name, docs in self.inserts if name == collection]

    def clear(self) -> None:
        """Remove all documents, indexes, injected failures and recorded calls."""
        self._collections.clear()
        self._insert_failures.clear()
        self._index_failures.clear()
        self.inserts.clear()
        self.indexes.clear()
        self.duplicates_skipped.clear()


__all__ = [
    "InMemoryLegacyStore",
    "InMemoryTargetStore",
]
