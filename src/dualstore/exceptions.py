"""
Library exceptions for the dualstore package.

Exception Hierarchy:
    DualStoreError (base)
    +-- ConfigurationError
    +-- RoutingError
    +-- MigrationError
        +-- KeyspaceMigrationError
        +-- InvalidAttemptTransitionError

Failures of the primary store are never wrapped: whatever the store-specific
service raises reaches the caller unchanged. These exceptions only describe
failures that originate in the routing and migration layer itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dualstore.migration.keyspaces import KeyspaceDescriptor


class DualStoreError(Exception):
    """Base exception for dualstore library."""

    pass


class ConfigurationError(DualStoreError):
    """
    Raised when feature or migration configuration is invalid.

    Attributes:
        key: The configuration key that failed validation, if known.
    """

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        prefix = f"Invalid value for {key}: " if key else ""
        super().__init__(f"{prefix}{message}")


class RoutingError(DualStoreError):
    """
    Raised when no store can be selected for an operation.

    The only case today is a write issued while both stores have writes
    disabled (feature.database.write.couchbase=false and
    feature.database.write.mongodb=false).

    Attributes:
        operation: Name of the operation that could not be routed.
    """

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Cannot route {operation}: {reason}")


class MigrationError(DualStoreError):
    """Base exception for errors raised by the migration engine."""

    pass


class KeyspaceMigrationError(MigrationError):
    """
    Raised when a keyspace could not be migrated.

    The engine never lets this escape a run; it is used to carry the
    keyspace and attempt count into logs and the migration report.

    Attributes:
        keyspace: The keyspace that failed.
        attempts: Number of attempts made before giving up.
        original_error: The underlying error message.
    """

    def __init__(
        self,
        keyspace: KeyspaceDescriptor,
        attempts: int,
        error: str,
    ) -> None:
        self.keyspace = keyspace
        self.attempts = attempts
        self.original_error = error
        super().__init__(
            f"Migration of keyspace {keyspace.identifier} failed after "
            f"{attempts} attempt(s): {error}"
        )


class InvalidAttemptTransitionError(MigrationError):
    """
    Raised when a keyspace attempt state is advanced from a terminal state.

    Attributes:
        state_name: Name of the state the transition was attempted from.
    """

    def __init__(self, state_name: str) -> None:
        self.state_name = state_name
        super().__init__(f"Cannot transition from terminal attempt state {state_name}")


__all__ = [
    "ConfigurationError",
    "DualStoreError",
    "InvalidAttemptTransitionError",
    "KeyspaceMigrationError",
    "MigrationError",
    "RoutingError",
]
