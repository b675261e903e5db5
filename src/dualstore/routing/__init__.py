"""Routing decisions between the Couchbase and MongoDB stores."""

from dualstore.routing.policy import RandomSource, RoutingDecision, RoutingPolicy

__all__ = [
    "RandomSource",
    "RoutingDecision",
    "RoutingPolicy",
]
