"""
Configuration for shadow routing and migration.

This module provides:
- Store: The two document stores the layer routes between
- ReadMode / WriteMode: Values accepted by the feature flags
- FeatureConfig: Immutable snapshot of the feature flags plus deployment profile
- MigrationSettings: Tunables of the migration engine

Feature flags are read from dotted property keys (``feature.database.read``)
or from their environment-variable form (``FEATURE_DATABASE_READ``). A
FeatureConfig is a value: callers build one per decision (or hold one and
replace it) and pass it explicitly to the routing policy and dispatcher.

Example:
    >>> config = FeatureConfig.from_properties({
    ...     "feature.database.read": "auto",
    ...     "feature.shadow.percentage": "30",
    ...     "spring.profiles.active": "couchbase",
    ... })
    >>> config.shadow_percentage
    30
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dualstore.exceptions import ConfigurationError


class Store(Enum):
    """
    The two document stores.

    Attributes:
        COUCHBASE: Store A, the legacy store data is migrated from.
        MONGODB: Store B, the target store data is migrated to.
    """

    COUCHBASE = "couchbase"
    MONGODB = "mongodb"

    @property
    def other(self) -> Store:
        """The opposite store."""
        return Store.MONGODB if self is Store.COUCHBASE else Store.COUCHBASE


class ReadMode(Enum):
    """Values of ``feature.database.read``."""

    COUCHBASE = "couchbase"
    MONGODB = "mongodb"
    AUTO = "auto"


class WriteMode(Enum):
    """Values of ``feature.database.write.<store>``."""

    ON = "true"
    OFF = "false"
    AUTO = "auto"


# Property key -> FeatureConfig field name
PROPERTY_KEYS: dict[str, str] = {
    "feature.database.read": "read_mode",
    "feature.database.write.couchbase": "write_couchbase",
    "feature.database.write.mongodb": "write_mongodb",
    "feature.database.validate": "validate_consistency",
    "feature.migration.enabled": "migration_enabled",
    "feature.shadow.percentage": "shadow_percentage",
}

PROFILE_KEY = "spring.profiles.active"
MONGODB_PROFILE = "mongodb"


def env_var_name(key: str) -> str:
    """
    Convert a dotted property key to its environment-variable form.

    Example:
        >>> env_var_name("feature.database.write.mongodb")
        'FEATURE_DATABASE_WRITE_MONGODB'
    """
    return key.replace(".", "_").upper()


def _lowercase(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value.strip().lower()
    return value


class FeatureConfig(BaseModel):
    """
    Immutable snapshot of the routing feature flags.

    Attributes:
        read_mode: Which store serves reads; ``auto`` follows the profile
            and, for the couchbase profile, the shadow percentage.
        write_couchbase: Whether writes go to Couchbase; ``auto`` follows the profile.
        write_mongodb: Whether writes go to MongoDB; ``auto`` follows the profile.
        validate_consistency: Compare both stores' results on reads.
        migration_enabled: Run the Couchbase -> MongoDB migration at start-up.
        shadow_percentage: Share (0-100) of ``auto`` reads sent to MongoDB.
        profile_mongodb: Whether the active deployment profile is MongoDB.
    """

    model_config = ConfigDict(frozen=True)

    read_mode: ReadMode = Field(
        default=ReadMode.AUTO,
        description="feature.database.read",
    )
    write_couchbase: WriteMode = Field(
        default=WriteMode.AUTO,
        description="feature.database.write.couchbase",
    )
    write_mongodb: WriteMode = Field(
        default=WriteMode.AUTO,
        description="feature.database.write.mongodb",
    )
    validate_consistency: bool = Field(
        default=False,
        description="feature.database.validate",
    )
    migration_enabled: bool = Field(
        default=False,
        description="feature.migration.enabled",
    )
    shadow_percentage: int = Field(
        default=0,
        ge=0,
        le=100,
        description="feature.shadow.percentage",
    )
    profile_mongodb: bool = Field(
        default=False,
        description="Active profile list contains 'mongodb'",
    )

    @field_validator("read_mode", "write_couchbase", "write_mongodb", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> Any:
        return _lowercase(value)

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> FeatureConfig:
        """
        Build a config from dotted property keys.

        Unknown keys are ignored; missing keys take their defaults.

        Args:
            properties: Mapping such as a parsed application.properties file

        Returns:
            A validated FeatureConfig

        Raises:
            ConfigurationError: If a value is not accepted for its key
        """
        values: dict[str, Any] = {}
        for key, field_name in PROPERTY_KEYS.items():
            if key in properties and properties[key] is not None:
                values[field_name] = properties[key]

        profiles = properties.get(PROFILE_KEY)
        if profiles is not None:
            values["profile_mongodb"] = is_mongodb_profile(str(profiles))

        try:
            return cls(**values)
        except ValidationError as e:
            error = e.errors()[0]
            field_name = str(error["loc"][0]) if error["loc"] else None
            key = next((k for k, f in PROPERTY_KEYS.items() if f == field_name), field_name)
            raise ConfigurationError(error["msg"], key=key) from e

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> FeatureConfig:
        """
        Build a config from environment variables.

        Each property key is looked up in its upper-case underscore form,
        e.g. ``FEATURE_SHADOW_PERCENTAGE``.

        Args:
            environ: Environment mapping (defaults to ``os.environ``)

        Returns:
            A validated FeatureConfig
        """
        env = os.environ if environ is None else environ
        properties = {
            key: env[env_var_name(key)]
            for key in (*PROPERTY_KEYS, PROFILE_KEY)
            if env_var_name(key) in env
        }
        return cls.from_properties(properties)


def is_mongodb_profile(active_profiles: str) -> bool:
    """
    Check whether a comma-separated active-profile list selects MongoDB.

    Example:
        >>> is_mongodb_profile("shadow,mongodb")
        True
        >>> is_mongodb_profile("couchbase")
        False
    """
    return MONGODB_PROFILE in (p.strip().lower() for p in active_profiles.split(","))


@dataclass(frozen=True)
class MigrationSettings:
    """
    Tunables of the migration engine.

    Attributes:
        grace_period_seconds: Delay before the first keyspace is read, giving
            both stores time to finish starting.
        chunk_size: Documents per bulk insert call.
        max_attempts: Attempts per keyspace before it is recorded as failed.

    Example:
        >>> settings = MigrationSettings(grace_period_seconds=0.0)
        >>> settings.chunk_size
        100
    """

    grace_period_seconds: float = 10.0
    chunk_size: int = 100
    max_attempts: int = 3

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.grace_period_seconds < 0:
            raise ConfigurationError(
                f"grace_period_seconds must be >= 0, got {self.grace_period_seconds}."
            )

        if self.chunk_size < 1:
            raise ConfigurationError(
                f"chunk_size must be positive, got {self.chunk_size}. "
                "Use a value like 100 (default)."
            )

        if self.max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be >= 1, got {self.max_attempts}.")


__all__ = [
    "FeatureConfig",
    "MigrationSettings",
    "PROPERTY_KEYS",
    "ReadMode",
    "Store",
    "WriteMode",
    "env_var_name",
    "is_mongodb_profile",
]
