"""
Standard span and metric attributes for dualstore.

This module defines attribute constants used across all dualstore components
for consistent span naming and metrics labeling. These follow OpenTelemetry
semantic conventions where applicable.

Example:
    >>> from dualstore.observability.attributes import (
    ...     ATTR_OPERATION,
    ...     ATTR_READ_TARGET,
    ... )
    >>>
    >>> with tracer.span(
    ...     "dualstore.shadow_dispatcher.read",
    ...     {ATTR_OPERATION: "findBookingsByUser", ATTR_READ_TARGET: "mongodb"},
    ... ):
    ...     pass
"""

# =============================================================================
# Routing Attributes
# =============================================================================

ATTR_OPERATION = "dualstore.operation"
"""Name of the routed entity operation (e.g., 'findBookingsByUser')."""

ATTR_READ_TARGET = "dualstore.read.target"
"""Store selected for a read ('couchbase' or 'mongodb')."""

ATTR_WRITE_TARGET = "dualstore.write.target"
"""Store selected as primary for a write ('couchbase' or 'mongodb')."""

ATTR_SHADOW_WRITE = "dualstore.write.shadow"
"""Whether a best-effort secondary write was scheduled (bool)."""

ATTR_VALIDATE = "dualstore.validate"
"""Whether cross-store consistency validation ran (bool)."""

# =============================================================================
# Database Attributes (OTEL semantic)
# =============================================================================

ATTR_DB_SYSTEM = "db.system"
"""Database system identifier (e.g., 'mongodb', 'couchbase')."""

ATTR_DB_OPERATION = "db.operation"
"""Database operation name (e.g., 'insert_many', 'query')."""

ATTR_DB_COLLECTION = "db.collection.name"
"""Collection the operation targets."""

# =============================================================================
# Migration Attributes
# =============================================================================

ATTR_KEYSPACE = "dualstore.migration.keyspace"
"""Keyspace identifier (container_scope_collection)."""

ATTR_ATTEMPT = "dualstore.migration.attempt"
"""Attempt number for the current keyspace (1-based)."""

ATTR_DOCUMENT_COUNT = "dualstore.migration.document_count"
"""Number of documents in an operation (integer)."""

ATTR_CHUNK_SIZE = "dualstore.migration.chunk_size"
"""Configured bulk insert chunk size (integer)."""

ATTR_KEYSPACE_COUNT = "dualstore.migration.keyspace_count"
"""Number of keyspaces discovered for a run (integer)."""

# =============================================================================
# Error Attributes
# =============================================================================

ATTR_ERROR_TYPE = "error.type"
"""Exception class name of a recorded failure."""

__all__ = [
    "ATTR_ATTEMPT",
    "ATTR_CHUNK_SIZE",
    "ATTR_DB_COLLECTION",
    "ATTR_DB_OPERATION",
    "ATTR_DB_SYSTEM",
    "ATTR_DOCUMENT_COUNT",
    "ATTR_ERROR_TYPE",
    "ATTR_KEYSPACE",
    "ATTR_KEYSPACE_COUNT",
    "ATTR_OPERATION",
    "ATTR_READ_TARGET",
    "ATTR_SHADOW_WRITE",
    "ATTR_VALIDATE",
    "ATTR_WRITE_TARGET",
]
