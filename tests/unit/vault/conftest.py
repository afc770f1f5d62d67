"""Fixtures for Vault tests.

Jobs run against an InMemoryVaultStore and real VaultClients whose HTTP
traffic is served in-process by FakeVault.
"""

import httpx
import pytest

from tests.factories.vault import SCOPE_ID, STORE_ID, VAULT_ADDR, FakeVault, Seeder
from warden.kms import StaticKeyProvider, Wrapper
from warden.vault.client import VaultClientFactory
from warden.vault.models import CredentialStore
from warden.vault.stores import InMemoryVaultStore


@pytest.fixture
def key_provider() -> StaticKeyProvider:
    return StaticKeyProvider()


@pytest.fixture
def wrapper(key_provider: StaticKeyProvider) -> Wrapper:
    return key_provider.generate_key(SCOPE_ID)


@pytest.fixture
def store() -> InMemoryVaultStore:
    store = InMemoryVaultStore()
    store.add_store(
        CredentialStore(public_id=STORE_ID, scope_id=SCOPE_ID, vault_address=VAULT_ADDR)
    )
    return store


@pytest.fixture
def seed(store: InMemoryVaultStore, wrapper: Wrapper) -> Seeder:
    return Seeder(store, wrapper)


@pytest.fixture
def fake_vault() -> FakeVault:
    return FakeVault()


@pytest.fixture
def client_factory(fake_vault: FakeVault) -> VaultClientFactory:
    return VaultClientFactory(transport=httpx.MockTransport(fake_vault.handle))
