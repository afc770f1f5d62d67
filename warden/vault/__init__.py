"""Vault dynamic secret lifecycle.

Tokens held by credential stores and the credentials leased under them are
kept alive (renewed) while in use and revoked once no longer needed by four
recurring jobs.

``userpassword.extract`` pulls a username/password pair out of a secret read
from Vault.
"""

from warden.vault.client import (
    ClientConfig,
    ClientFactory,
    VaultClient,
    VaultClientError,
    VaultClientFactory,
    VaultResponseError,
)
from warden.vault.jobs import (
    CredentialRenewalJob,
    CredentialRevocationJob,
    TokenRenewalJob,
    TokenRevocationJob,
)
from warden.vault.models import (
    Credential,
    CredentialStatus,
    CredentialStore,
    PrivateCredential,
    PrivateStore,
    Token,
    TokenStatus,
)
from warden.vault import userpassword
from warden.vault.store import VaultStore

__all__ = [
    "ClientConfig",
    "ClientFactory",
    "Credential",
    "CredentialRenewalJob",
    "CredentialRevocationJob",
    "CredentialStatus",
    "CredentialStore",
    "PrivateCredential",
    "PrivateStore",
    "Token",
    "TokenRenewalJob",
    "TokenRevocationJob",
    "TokenStatus",
    "VaultClient",
    "VaultClientError",
    "VaultClientFactory",
    "VaultResponseError",
    "VaultStore",
    "userpassword",
]
