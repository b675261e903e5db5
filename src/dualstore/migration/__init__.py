"""
Couchbase to MongoDB bulk migration.

This package provides:
- KeyspaceEnumerator: discovers the keyspaces to copy
- MigrationEngine: copies each keyspace with key normalization, chunked
  inserts and bounded retries
- TargetIndexSetup: creates the indexes the MongoDB services rely on
- MigrationRunner: start-up hook running both in the background

Example:
    >>> from dualstore.migration import MigrationEngine, MigrationRunner, TargetIndexSetup
    >>>
    >>> engine = MigrationEngine(legacy_store, target_store)
    >>> runner = MigrationRunner(engine, TargetIndexSetup(target_store))
    >>> await runner.start(config)
"""

from dualstore.migration.engine import (
    ID_FIELD,
    MigrationEngine,
    SleepFunc,
    build_keyspace_query,
    prepare_document,
)
from dualstore.migration.indexes import (
    DEFAULT_INDEXES,
    HOTEL_TEXT_WEIGHTS,
    CollectionIndex,
    IndexSetupResult,
    TargetIndexSetup,
)
from dualstore.migration.keyspaces import KeyspaceDescriptor, KeyspaceEnumerator
from dualstore.migration.models import KeyspaceOutcome, KeyspaceStatus, MigrationReport
from dualstore.migration.retry import AttemptState, Attempting, Failed, Succeeded
from dualstore.migration.runner import MigrationRunner

__all__ = [
    # Engine
    "ID_FIELD",
    "MigrationEngine",
    "SleepFunc",
    "build_keyspace_query",
    "prepare_document",
    # Keyspaces
    "KeyspaceDescriptor",
    "KeyspaceEnumerator",
    # Models
    "KeyspaceOutcome",
    "KeyspaceStatus",
    "MigrationReport",
    # Retry states
    "AttemptState",
    "Attempting",
    "Failed",
    "Succeeded",
    # Indexes
    "CollectionIndex",
    "DEFAULT_INDEXES",
    "HOTEL_TEXT_WEIGHTS",
    "IndexSetupResult",
    "TargetIndexSetup",
    # Runner
    "MigrationRunner",
]
