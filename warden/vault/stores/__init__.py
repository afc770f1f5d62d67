"""VaultStore implementations."""

from warden.vault.stores.inmemory import InMemoryVaultStore
from warden.vault.stores.postgres import PostgresVaultStore

__all__ = ["InMemoryVaultStore", "PostgresVaultStore"]
