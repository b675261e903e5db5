"""
ShadowDispatcher - Routes entity operations to the Couchbase or MongoDB service.

The dispatcher holds one entity-service implementation per store and, for
every call, asks the RoutingPolicy where the call should go.

Read semantics:
    - The primary read runs on the caller's task; its result (or exception)
      is returned to the caller unchanged
    - With consistency validation enabled, the same read runs against the
      other store afterwards and both results are compared by count
    - A secondary read that raises is logged and ignored

Write semantics:
    - The primary write store comes from write-mode/profile resolution,
      never from the shadow percentage
    - The primary write runs on the caller's task; its result is returned
      unconditionally
    - If it succeeded and both stores accept writes, a mirror write is
      handed to the ShadowWriteQueue and the call returns without waiting
    - Mirror failures are logged and counted, never surfaced or retried

Usage:
    >>> dispatcher = ShadowDispatcher(couchbase_bookings, mongo_bookings)
    >>> result = await dispatcher.read(
    ...     "findBookingsByUser",
    ...     lambda service: service.find_bookings_by_user("alice"),
    ...     config=config,
    ... )
"""

from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from dualstore.config import FeatureConfig, Store
from dualstore.exceptions import RoutingError
from dualstore.observability import (
    ATTR_OPERATION,
    ATTR_READ_TARGET,
    ATTR_SHADOW_WRITE,
    ATTR_VALIDATE,
    ATTR_WRITE_TARGET,
    DualStoreMetrics,
    Tracer,
    create_tracer,
)
from dualstore.routing import RandomSource, RoutingPolicy
from dualstore.services.results import Result
from dualstore.shadow.queue import ShadowWriteQueue
from dualstore.shadow.validator import ConsistencyValidator

logger = logging.getLogger(__name__)

S = TypeVar("S")
T = TypeVar("T")

ServiceCall = Callable[[S], Awaitable[Result[T]]]
MirrorCall = Callable[[S, Result[T]], Awaitable[Any]]


class OperationKind(Enum):
    """Whether a routed operation reads or writes."""

    READ = "read"
    WRITE = "write"


class ShadowDispatcher(Generic[S]):
    """
    Routes calls on an entity service between the two stores.

    Example:
        >>> dispatcher = ShadowDispatcher(
        ...     couchbase_service,
        ...     mongodb_service,
        ...     rng=random.Random(42),
        ... )
        >>> await dispatcher.write(
        ...     "createBooking",
        ...     lambda service: service.create_booking("alice", booking),
        ...     config=config,
        ... )
        >>> await dispatcher.queue.drain()

    Attributes:
        _services: Entity service per store.
        _policy: Routing policy consulted on every call.
        _validator: Comparator for validation reads.
        _queue: Pool running mirror writes in the background.
        _rng: Default random source for the shadow split.
    """

    def __init__(
        self,
        couchbase_service: S,
        mongodb_service: S,
        *,
        policy: RoutingPolicy | None = None,
        validator: ConsistencyValidator | None = None,
        queue: ShadowWriteQueue | None = None,
        rng: RandomSource | None = None,
        metrics: DualStoreMetrics | None = None,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            couchbase_service: Entity service backed by Couchbase.
            mongodb_service: Entity service backed by MongoDB.
            policy: Routing policy (default: a new RoutingPolicy).
            validator: Consistency validator (default: one sharing ``metrics``).
            queue: Shadow write queue (default: one sharing ``metrics``).
            rng: Random source for the shadow split (default: ``random.Random()``).
            metrics: Metrics container (default: instruments from the global provider).
            tracer: Optional custom Tracer instance.
            enable_tracing: Whether to enable OpenTelemetry tracing.
        """
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._metrics = metrics or DualStoreMetrics()
        self._services: dict[Store, S] = {
            Store.COUCHBASE: couchbase_service,
            Store.MONGODB: mongodb_service,
        }
        self._policy = policy or RoutingPolicy()
        self._validator = validator or ConsistencyValidator(self._metrics, tracer=self._tracer)
        self._queue = queue or ShadowWriteQueue(metrics=self._metrics)
        self._rng: RandomSource = rng or random.Random()

    # =========================================================================
    # Public Properties
    # =========================================================================

    @property
    def queue(self) -> ShadowWriteQueue:
        """The queue running mirror writes."""
        return self._queue

    @property
    def metrics(self) -> DualStoreMetrics:
        """The metrics container calls are recorded against."""
        return self._metrics

    def service_for(self, store: Store) -> S:
        """Get the entity service backed by ``store``."""
        return self._services[store]

    # =========================================================================
    # Routing
    # =========================================================================

    async def read(
        self,
        operation: str,
        call: ServiceCall[S, T],
        *,
        config: FeatureConfig,
        rng: RandomSource | None = None,
    ) -> Result[T]:
        """
        Route a read.

        Args:
            operation: Operation name for logs, spans and metrics.
            call: Invokes the operation on a given entity service.
            config: Feature flag snapshot for this call.
            rng: Random source for this call (default: the dispatcher's).

        Returns:
            The primary store's result, unchanged.
        """
        decision = self._policy.decide(config, rng or self._rng)
        primary = decision.read_target

        with self._tracer.span(
            "dualstore.shadow_dispatcher.read",
            {
                ATTR_OPERATION: operation,
                ATTR_READ_TARGET: primary.value,
                ATTR_VALIDATE: decision.should_validate,
            },
        ):
            result = await call(self._services[primary])
            self._metrics.record_read(primary.value, operation)

            if decision.should_validate:
                secondary = primary.other
                try:
                    secondary_result = await call(self._services[secondary])
                except Exception as e:
                    logger.warning(
                        "Secondary read from %s failed for %s: %s",
                        secondary.value,
                        operation,
                        e,
                        exc_info=True,
                        extra={"operation": operation, "store": secondary.value},
                    )
                else:
                    self._validator.validate(operation, result, secondary_result)

            return result

    async def write(
        self,
        operation: str,
        call: ServiceCall[S, T],
        *,
        config: FeatureConfig,
        mirror: MirrorCall[S, T] | None = None,
    ) -> Result[T]:
        """
        Route a write.

        Args:
            operation: Operation name for logs, spans and metrics.
            call: Invokes the operation on a given entity service.
            config: Feature flag snapshot for this call.
            mirror: Builds the secondary write from the secondary service and
                the primary's result (default: ``call`` on the secondary service).

        Returns:
            The primary store's result, unchanged.

        Raises:
            RoutingError: If neither store accepts writes. Writes are not
                sent to the read store in that case; turning both write
                flags off rejects the write instead.
        """
        write_targets = self._policy.decide_write(config)
        primary = self._policy.decide_primary_write(config)
        if primary is None:
            raise RoutingError(operation, "writes are disabled for both stores")

        shadow = len(write_targets) == 2

        with self._tracer.span(
            "dualstore.shadow_dispatcher.write",
            {
                ATTR_OPERATION: operation,
                ATTR_WRITE_TARGET: primary.value,
                ATTR_SHADOW_WRITE: shadow,
            },
        ):
            result = await call(self._services[primary])

            if shadow and result.status:
                self._schedule_mirror(operation, primary.other, call, mirror, result)

            return result

    async def execute(
        self,
        operation: str,
        call: ServiceCall[S, T],
        *,
        kind: OperationKind,
        config: FeatureConfig,
        rng: RandomSource | None = None,
        mirror: MirrorCall[S, T] | None = None,
    ) -> Result[T]:
        """
        Route an operation by kind.

        Args:
            operation: Operation name.
            call: Invokes the operation on a given entity service.
            kind: Whether the operation reads or writes.
            config: Feature flag snapshot for this call.
            rng: Random source for reads.
            mirror: Secondary write builder for writes.

        Returns:
            The primary store's result.
        """
        if kind is OperationKind.READ:
            return await self.read(operation, call, config=config, rng=rng)
        return await self.write(operation, call, config=config, mirror=mirror)

    def _schedule_mirror(
        self,
        operation: str,
        secondary: Store,
        call: ServiceCall[S, T],
        mirror: MirrorCall[S, T] | None,
        primary_result: Result[T],
    ) -> None:
        service = self._services[secondary]

        def factory() -> Awaitable[Any]:
            if mirror is not None:
                return mirror(service, primary_result)
            return call(service)

        self._queue.submit(operation, factory)
        self._metrics.record_shadow_write(operation, "scheduled")
        logger.debug(
            "Scheduled shadow write to %s for %s",
            secondary.value,
            operation,
            extra={"operation": operation, "store": secondary.value},
        )


__all__ = [
    "MirrorCall",
    "OperationKind",
    "ServiceCall",
    "ShadowDispatcher",
]
