"""
MongoDB target store client.

Production target client built on PyMongo's native asyncio API
(``pymongo.AsyncMongoClient``). Bulk inserts are unordered so one bad
document does not stop the rest of a chunk. A ``BulkWriteError`` made
only of duplicate-key errors means those documents are already stored and
is not raised; any other error propagates so the migration engine can
retry the keyspace.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import BulkWriteError

from dualstore.documents import Document
from dualstore.observability import (
    ATTR_DB_COLLECTION,
    ATTR_DB_OPERATION,
    ATTR_DB_SYSTEM,
    ATTR_DOCUMENT_COUNT,
    Tracer,
    create_tracer,
)
from dualstore.stores.interface import IndexSpec, TargetStoreClient

logger = logging.getLogger(__name__)

DUPLICATE_KEY_ERROR = 11000
ID_FIELD = "_id"


class MongoTargetStore(TargetStoreClient):
    """
    TargetStoreClient backed by a MongoDB database.

    Example:
        >>> client = AsyncMongoClient("mongodb://localhost:27017")
        >>> store = MongoTargetStore(client["travel-sample"])
        >>> await store.bulk_insert("airline", documents)

    Attributes:
        _database: The database collections are created in.
        _tracer: Tracer for store operations.
    """

    def __init__(
        self,
        database: AsyncDatabase[Any],
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._database = database
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    @classmethod
    def from_uri(cls, uri: str, database: str, **kwargs: Any) -> MongoTargetStore:
        """
        Create a store from a connection string.

        Args:
            uri: MongoDB connection string.
            database: Database name.
            **kwargs: Passed to the MongoTargetStore constructor.
        """
        client: AsyncMongoClient[Any] = AsyncMongoClient(uri)
        return cls(client[database], **kwargs)

    @property
    def database(self) -> AsyncDatabase[Any]:
        """The underlying database."""
        return self._database

    async def bulk_insert(self, collection: str, documents: Sequence[Document]) -> None:
        if not documents:
            return

        with self._tracer.span(
            "dualstore.mongodb.bulk_insert",
            {
                ATTR_DB_SYSTEM: "mongodb",
                ATTR_DB_OPERATION: "insert_many",
                ATTR_DB_COLLECTION: collection,
                ATTR_DOCUMENT_COUNT: len(documents),
            },
        ):
            try:
                # insert_many adds _id to documents that lack one; give it copies.
                await self._database[collection].insert_many(
                    [dict(doc) for doc in documents],
                    ordered=False,
                )
            except BulkWriteError as e:
                if not _only_duplicate_keys(e):
                    raise
                logger.info(
                    "Skipped %d documents already present in %s",
                    len(e.details["writeErrors"]),
                    collection,
                )
                return
        logger.debug("Inserted %d documents into %s", len(documents), collection)

    async def ensure_index(self, collection: str, index: IndexSpec) -> None:
        options: dict[str, Any] = {"name": index.name}
        if index.unique:
            options["unique"] = True
        if index.weights:
            options["weights"] = dict(index.weights)

        with self._tracer.span(
            "dualstore.mongodb.ensure_index",
            {
                ATTR_DB_SYSTEM: "mongodb",
                ATTR_DB_OPERATION: "create_index",
                ATTR_DB_COLLECTION: collection,
            },
        ):
            await self._database[collection].create_index(list(index.keys), **options)
        logger.info("Ensured index %s on %s", index.name, collection)


def _only_duplicate_keys(error: BulkWriteError) -> bool:
    # Servers that omit keyPattern are taken to report the _id index.
    details = error.details or {}
    write_errors = details.get("writeErrors") or []
    if not write_errors or details.get("writeConcernErrors"):
        return False
    return all(
        err.get("code") == DUPLICATE_KEY_ERROR
        and set(err.get("keyPattern") or {ID_FIELD: 1}) == {ID_FIELD}
        for err in write_errors
    )


__all__ = ["DUPLICATE_KEY_ERROR", "MongoTargetStore"]
