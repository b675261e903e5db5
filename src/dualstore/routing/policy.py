"""
RoutingPolicy - Decides which store serves each read and write.

The policy is a set of pure functions of a FeatureConfig snapshot and, for
the shadow split, a caller-supplied random source. Nothing is cached:
every call re-reads the config it is given and draws a fresh number.

Resolution rules:
    Reads:
        - feature.database.read=couchbase|mongodb wins outright
        - auto + mongodb profile -> MongoDB
        - auto + couchbase profile -> MongoDB for shadow_percentage% of
          calls, Couchbase otherwise
    Writes (per store):
        - feature.database.write.<store>=true|false wins outright
        - auto -> enabled only for the store matching the profile
    Primary write store:
        - the profile/explicit read store, if it accepts writes
        - otherwise the only store that accepts writes
    Shadow write:
        - both stores accept writes

Usage:
    >>> import random
    >>> policy = RoutingPolicy()
    >>> decision = policy.decide(config, random.Random())
    >>> decision.read_target
    <Store.COUCHBASE: 'couchbase'>
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from dualstore.config import FeatureConfig, ReadMode, Store, WriteMode

logger = logging.getLogger(__name__)

PERCENT_SCALE = 100


class RandomSource(Protocol):
    """
    Source of uniform integers for the shadow split.

    ``random.Random`` satisfies this protocol; tests pass a seeded instance.
    """

    def randrange(self, stop: int) -> int:
        """Return a uniform integer in ``[0, stop)``."""
        ...


@dataclass(frozen=True)
class RoutingDecision:
    """
    Stores selected for one operation.

    Attributes:
        read_target: Store that serves a read.
        write_targets: Stores that accept writes.
        should_validate: Whether reads are compared against the other store.
        primary_write: Store that takes a write synchronously, or None when
            no store accepts writes.
    """

    read_target: Store
    write_targets: frozenset[Store]
    should_validate: bool
    primary_write: Store | None

    @property
    def is_shadow_write(self) -> bool:
        """Whether writes are mirrored to the second store."""
        return len(self.write_targets) == 2

    @property
    def secondary_write(self) -> Store | None:
        """Store that receives the best-effort mirror write, if any."""
        if self.primary_write is None or not self.is_shadow_write:
            return None
        return self.primary_write.other


class RoutingPolicy:
    """
    Stateless routing decisions over a FeatureConfig.

    Example:
        >>> policy = RoutingPolicy()
        >>> config = FeatureConfig(profile_mongodb=True)
        >>> policy.decide_read(config)
        <Store.MONGODB: 'mongodb'>
        >>> policy.decide_write(config)
        frozenset({<Store.MONGODB: 'mongodb'>})
    """

    def decide_read(self, config: FeatureConfig) -> Store:
        """
        Resolve the read store without the shadow split.

        Args:
            config: Feature flag snapshot.

        Returns:
            The explicitly configured store, or the profile's store for ``auto``.
        """
        if config.read_mode is ReadMode.COUCHBASE:
            return Store.COUCHBASE
        if config.read_mode is ReadMode.MONGODB:
            return Store.MONGODB
        return Store.MONGODB if config.profile_mongodb else Store.COUCHBASE

    def decide_write(self, config: FeatureConfig) -> frozenset[Store]:
        """
        Resolve the set of stores that accept writes.

        Args:
            config: Feature flag snapshot.

        Returns:
            Zero, one or both stores.
        """
        targets = set()
        if self._write_enabled(config.write_couchbase, profile_match=not config.profile_mongodb):
            targets.add(Store.COUCHBASE)
        if self._write_enabled(config.write_mongodb, profile_match=config.profile_mongodb):
            targets.add(Store.MONGODB)
        return frozenset(targets)

    def should_shadow_to_mongo(self, config: FeatureConfig, rng: RandomSource) -> bool:
        """
        Draw whether this read is diverted to MongoDB by the shadow split.

        Only ``auto`` reads take part. The draw is a uniform integer in
        ``[0, 100)`` compared against the configured percentage, so 0 never
        diverts and 100 always does.

        Args:
            config: Feature flag snapshot.
            rng: Random source, sampled once per call for percentages 1-99.

        Returns:
            True if the read should go to MongoDB.
        """
        if config.read_mode is not ReadMode.AUTO:
            return False
        if config.shadow_percentage <= 0:
            return False
        if config.shadow_percentage >= PERCENT_SCALE:
            return True
        return rng.randrange(PERCENT_SCALE) < config.shadow_percentage

    def decide_primary_write(self, config: FeatureConfig) -> Store | None:
        """
        Resolve the store that takes writes synchronously.

        The shadow percentage never influences this choice.

        Args:
            config: Feature flag snapshot.

        Returns:
            The ``decide_read`` store if it accepts writes, else the other
            store if it does, else None.
        """
        return self._primary_write(self.decide_read(config), self.decide_write(config))

    def decide(self, config: FeatureConfig, rng: RandomSource) -> RoutingDecision:
        """
        Compute the full routing decision for one operation.

        Args:
            config: Feature flag snapshot.
            rng: Random source for the shadow split.

        Returns:
            A fresh RoutingDecision.
        """
        profile_read = self.decide_read(config)
        read_target = profile_read
        if profile_read is Store.COUCHBASE and self.should_shadow_to_mongo(config, rng):
            read_target = Store.MONGODB

        write_targets = self.decide_write(config)
        decision = RoutingDecision(
            read_target=read_target,
            write_targets=write_targets,
            should_validate=config.validate_consistency,
            primary_write=self._primary_write(profile_read, write_targets),
        )
        logger.debug(
            "Routing decision: read=%s writes=%s validate=%s",
            decision.read_target.value,
            sorted(s.value for s in decision.write_targets),
            decision.should_validate,
        )
        return decision

    @staticmethod
    def _write_enabled(mode: WriteMode, *, profile_match: bool) -> bool:
        if mode is WriteMode.ON:
            return True
        if mode is WriteMode.OFF:
            return False
        return profile_match

    @staticmethod
    def _primary_write(preferred: Store, write_targets: frozenset[Store]) -> Store | None:
        if preferred in write_targets:
            return preferred
        if preferred.other in write_targets:
            return preferred.other
        return None


__all__ = [
    "RandomSource",
    "RoutingDecision",
    "RoutingPolicy",
]
