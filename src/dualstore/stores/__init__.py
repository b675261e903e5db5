"""
Store clients for migration.

This package provides:
- LegacyStoreClient / TargetStoreClient: the interfaces migration depends on
- InMemoryLegacyStore / InMemoryTargetStore: in-memory clients for tests
- MongoTargetStore: PyMongo-backed target client (``dualstore.stores.mongodb``)
"""

from dualstore.stores.in_memory import InMemoryLegacyStore, InMemoryTargetStore
from dualstore.stores.interface import (
    ASCENDING,
    DESCENDING,
    TEXT,
    IndexDirection,
    IndexSpec,
    LegacyStoreClient,
    TargetStoreClient,
)

__all__ = [
    "ASCENDING",
    "DESCENDING",
    "IndexDirection",
    "IndexSpec",
    "InMemoryLegacyStore",
    "InMemoryTargetStore",
    "LegacyStoreClient",
    "TEXT",
    "TargetStoreClient",
]
