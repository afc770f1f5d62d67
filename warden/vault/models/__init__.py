"""Vault credential domain models."""

from warden.vault.models.credential import Credential
from warden.vault.models.credential_store import CredentialStore
from warden.vault.models.enums import CredentialStatus, TokenStatus
from warden.vault.models.private import PrivateCredential, PrivateStore, VaultConnection
from warden.vault.models.token import Token, utc_now

__all__ = [
    "Credential",
    "CredentialStatus",
    "CredentialStore",
    "PrivateCredential",
    "PrivateStore",
    "Token",
    "TokenStatus",
    "VaultConnection",
    "utc_now",
]
