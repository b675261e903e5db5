"""
dualstore - Shadow routing and migration between Couchbase and MongoDB.

This library provides:
- Feature-flag configuration for reads, writes, validation and migration
- Per-call routing of entity operations with a percentage-based read split
- Best-effort cross-store consistency validation and mirror writes
- Bulk migration of legacy keyspaces with key normalization, chunked
  inserts and bounded retries
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("dualstore")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

from dualstore.config import (
    FeatureConfig,
    MigrationSettings,
    ReadMode,
    Store,
    WriteMode,
)
from dualstore.documents import Document, DocumentValue, normalize_key, transform_document
from dualstore.exceptions import (
    ConfigurationError,
    DualStoreError,
    InvalidAttemptTransitionError,
    KeyspaceMigrationError,
    MigrationError,
    RoutingError,
)
from dualstore.migration import (
    KeyspaceDescriptor,
    KeyspaceEnumerator,
    MigrationEngine,
    MigrationReport,
    MigrationRunner,
    TargetIndexSetup,
)
from dualstore.routing import RoutingDecision, RoutingPolicy
from dualstore.services import Booking, FlightPath, Result
from dualstore.shadow import (
    ConsistencyValidator,
    OperationKind,
    ShadowBookingService,
    ShadowDispatcher,
    ShadowFlightPathService,
    ShadowHotelService,
    ShadowWriteQueue,
    ValidationOutcome,
)
from dualstore.stores import (
    InMemoryLegacyStore,
    InMemoryTargetStore,
    LegacyStoreClient,
    TargetStoreClient,
)

__all__ = [
    "__version__",
    # Configuration
    "FeatureConfig",
    "MigrationSettings",
    "ReadMode",
    "Store",
    "WriteMode",
    # Documents
    "Document",
    "DocumentValue",
    "normalize_key",
    "transform_document",
    # Exceptions
    "ConfigurationError",
    "DualStoreError",
    "InvalidAttemptTransitionError",
    "KeyspaceMigrationError",
    "MigrationError",
    "RoutingError",
    # Routing
    "RoutingDecision",
    "RoutingPolicy",
    # Shadow
    "ConsistencyValidator",
    "OperationKind",
    "ShadowBookingService",
    "ShadowDispatcher",
    "ShadowFlightPathService",
    "ShadowHotelService",
    "ShadowWriteQueue",
    "ValidationOutcome",
    # Services
    "Booking",
    "FlightPath",
    "Result",
    # Migration
    "KeyspaceDescriptor",
    "KeyspaceEnumerator",
    "MigrationEngine",
    "MigrationReport",
    "MigrationRunner",
    "TargetIndexSetup",
    # Stores
    "InMemoryLegacyStore",
    "InMemoryTargetStore",
    "LegacyStoreClient",
    "TargetStoreClient",
]
