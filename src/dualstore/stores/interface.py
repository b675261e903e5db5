"""
Store client interfaces used by migration and index setup.

The routing layer talks to the two stores only through entity services;
migration needs raw access, which these two small clients provide:

- LegacyStoreClient: runs N1QL statements and lists the keyspace catalog
- TargetStoreClient: bulk-inserts documents and creates indexes

Timeouts and connection handling belong to the concrete clients.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from dualstore.documents import Document

ASCENDING = 1
DESCENDING = -1
TEXT = "text"

IndexDirection = Literal[1, -1, "text"]


@dataclass(frozen=True)
class IndexSpec:
    """
    Description of an index on a target collection.

    Attributes:
        name: Index name.
        keys: (field, direction) pairs in index order; direction is
            ASCENDING, DESCENDING or TEXT.
        unique: Whether the index enforces uniqueness.
        weights: Per-field weights for text indexes.

    Example:
        >>> IndexSpec("faa_1", (("faa", ASCENDING),))
    """

    name: str
    keys: tuple[tuple[str, IndexDirection], ...]
    unique: bool = False
    weights: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.keys:
            raise ValueError(f"Index {self.name!r} must have at least one key")

    @property
    def is_text(self) -> bool:
        """Whether any key is a text key."""
        return any(direction == TEXT for _, direction in self.keys)

    @property
    def fields(self) -> list[str]:
        """Indexed field names in order."""
        return [name for name, _ in self.keys]


class LegacyStoreClient(ABC):
    """
    Read access to the legacy (Couchbase) store.
    """

    @abstractmethod
    async def query(self, statement: str) -> list[Document]:
        """
        Run a N1QL statement and return its rows.

        Args:
            statement: The statement to run.

        Returns:
            Rows as documents, in the order the store returned them.
        """
        pass

    @abstractmethod
    async def list_catalog_keyspaces(self) -> list[dict[str, Any]]:
        """
        List the rows of the keyspace catalog (``system:keyspaces``).

        Rows may be wrapped (``{"keyspaces": {...}}``) or flat; each carries
        ``bucket``, ``scope`` and ``id`` (the collection name).
        """
        pass


class TargetStoreClient(ABC):
    """
    Write access to the target (MongoDB) store.
    """

    @abstractmethod
    async def bulk_insert(self, collection: str, documents: Sequence[Document]) -> None:
        """
        Insert ``documents`` into ``collection`` in a single call.

        ``_id`` is unique. A document whose ``_id`` is already present is
        left as stored and does not fail the call; the rest of the batch is
        still written.

        Raises:
            Exception: Any other store error; the caller decides whether to retry.
        """
        pass

    @abstractmethod
    async def ensure_index(self, collection: str, index: IndexSpec) -> None:
        """
        Create ``index`` on ``collection`` if it does not exist.
        """
        pass


__all__ = [
    "ASCENDING",
    "DESCENDING",
    "IndexDirection",
    "IndexSpec",
    "LegacyStoreClient",
    "TEXT",
    "TargetStoreClient",
]
