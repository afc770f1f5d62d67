"""Enums for the Vault credential domain."""

from enum import Enum


class TokenStatus(str, Enum):
    """Lifecycle of a credential store's Vault token.

    A token only moves forward: current/maintaining -> expired when Vault
    refuses to renew it, maintaining -> revoked once it is revoked.
    """

    CURRENT = "current"
    MAINTAINING = "maintaining"
    REVOKED = "revoked"
    EXPIRED = "expired"


class CredentialStatus(str, Enum):
    """Lifecycle of a dynamic credential leased from Vault.

    Collaborators outside the jobs move a credential to REVOKE once no
    active or pending session needs it.
    """

    ACTIVE = "active"
    REVOKE = "revoke"
    REVOKED = "revoked"
    EXPIRED = "expired"
    UNKNOWN = "unknown"
