"""Storage backend configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

BackendType = Literal["inmemory", "postgres"]


class PostgresConfig(BaseModel):
    """PostgreSQL-specific configuration."""

    connection_url: str | None = Field(
        default=None,
        description="Connection URL (falls back to WARDEN_DATABASE_URL / DATABASE_URL)",
    )
    min_pool_size: int = Field(default=2, gt=0, description="Minimum connections to keep open")
    max_pool_size: int = Field(default=10, gt=0, description="Maximum connections in pool")
    max_inactive_connection_lifetime: float = Field(
        default=300.0,
        gt=0,
        description="Close connections idle longer than this (seconds)",
    )
    command_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Default timeout for queries (seconds)",
    )
    apply_schema: bool = Field(
        default=False,
        description="Create the Vault tables and views on startup",
    )


class StorageConfig(BaseModel):
    """Storage backend selection."""

    backend: BackendType = Field(default="inmemory", description="Vault store backend")
    postgres: PostgresConfig = Field(
        default_factory=PostgresConfig,
        description="PostgreSQL settings",
    )
