"""Configuration section models."""

from warden.config.models.jobs import JobsConfig
from warden.config.models.kms import KmsConfig
from warden.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from warden.config.models.storage import PostgresConfig, StorageConfig
from warden.config.models.vault import VaultConfig

__all__ = [
    "JobsConfig",
    "KmsConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "PostgresConfig",
    "StorageConfig",
    "VaultConfig",
]
