"""
Observability utilities for dualstore.

Tracing, metrics, and standard attribute definitions shared by the
routing and migration components.

Example:
    >>> from dualstore.observability import create_tracer, DualStoreMetrics
    >>>
    >>> class MyComponent:
    ...     def __init__(self, enable_tracing: bool = True):
    ...         self._tracer = create_tracer(__name__, enable_tracing)
    ...         self._metrics = DualStoreMetrics()
"""

from dualstore.observability.attributes import (
    ATTR_ATTEMPT,
    ATTR_CHUNK_SIZE,
    ATTR_DB_COLLECTION,
    ATTR_DB_OPERATION,
    ATTR_DB_SYSTEM,
    ATTR_DOCUMENT_COUNT,
    ATTR_ERROR_TYPE,
    ATTR_KEYSPACE,
    ATTR_KEYSPACE_COUNT,
    ATTR_OPERATION,
    ATTR_READ_TARGET,
    ATTR_SHADOW_WRITE,
    ATTR_VALIDATE,
    ATTR_WRITE_TARGET,
)
from dualstore.observability.metrics import DualStoreMetrics, DualStoreMetricSnapshot
from dualstore.observability.tracer import (
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    RecordedSpan,
    Tracer,
    create_tracer,
)

__all__ = [
    # Tracer
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "RecordedSpan",
    "create_tracer",
    # Metrics
    "DualStoreMetrics",
    "DualStoreMetricSnapshot",
    # Attributes - Routing
    "ATTR_OPERATION",
    "ATTR_READ_TARGET",
    "ATTR_WRITE_TARGET",
    "ATTR_SHADOW_WRITE",
    "ATTR_VALIDATE",
    # Attributes - Database
    "ATTR_DB_SYSTEM",
    "ATTR_DB_OPERATION",
    "ATTR_DB_COLLECTION",
    # Attributes - Migration
    "ATTR_KEYSPACE",
    "ATTR_ATTEMPT",
    "ATTR_DOCUMENT_COUNT",
    "ATTR_CHUNK_SIZE",
    "ATTR_KEYSPACE_COUNT",
    # Attributes - Error
    "ATTR_ERROR_TYPE",
]
