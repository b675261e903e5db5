"""
Shadow routing between the Couchbase and MongoDB entity services.

This package provides:
- ShadowDispatcher: per-call routing of reads and writes
- ConsistencyValidator: count comparison of primary and secondary reads
- ShadowWriteQueue: bounded background execution of mirror writes
- Shadow*Service: entity services that route through a dispatcher
"""

from dualstore.shadow.dispatcher import MirrorCall, OperationKind, ServiceCall, ShadowDispatcher
from dualstore.shadow.queue import (
    DEFAULT_MAX_CONCURRENCY,
    FailedShadowWrite,
    ShadowWriteQueue,
    ShadowWriteStats,
)
from dualstore.shadow.services import (
    ConfigProvider,
    ShadowBookingService,
    ShadowFlightPathService,
    ShadowHotelService,
)
from dualstore.shadow.validator import ConsistencyValidator, ValidationOutcome

__all__ = [
    "ConfigProvider",
    "ConsistencyValidator",
    "DEFAULT_MAX_CONCURRENCY",
    "FailedShadowWrite",
    "MirrorCall",
    "OperationKind",
    "ServiceCall",
    "ShadowBookingService",
    "ShadowDispatcher",
    "ShadowFlightPathService",
    "ShadowHotelService",
    "ShadowWriteQueue",
    "ShadowWriteStats",
    "ValidationOutcome",
]
