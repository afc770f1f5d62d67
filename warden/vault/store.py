"""VaultStore abstract interface."""

from abc import ABC, abstractmethod
from datetime import timedelta

from warden.vault.models import CredentialStatus, PrivateCredential, PrivateStore, TokenStatus


class VaultStore(ABC):
    """Abstract interface for the data the Vault jobs read and write.

    Selection methods return at most ``limit`` rows (``None`` means no limit)
    in the store's natural order. Update methods are single statements and
    return the number of rows they affected.

    Raises:
        StoreError: From any method when the backend fails
    """

    @abstractmethod
    async def list_renewable_tokens(
        self,
        window: timedelta,
        *,
        limit: int | None = None,
    ) -> list[PrivateStore]:
        """Current and maintaining tokens whose renewal time is before now + window."""
        pass

    @abstractmethod
    async def list_revocable_tokens(self, *, limit: int | None = None) -> list[PrivateStore]:
        """Maintaining tokens no active credential was issued under."""
        pass

    @abstractmethod
    async def list_renewable_credentials(
        self,
        window: timedelta,
        *,
        limit: int | None = None,
    ) -> list[PrivateCredential]:
        """Active credentials whose renewal time is before now + window."""
        pass

    @abstractmethod
    async def list_revocable_credentials(
        self,
        *,
        limit: int | None = None,
    ) -> list[PrivateCredential]:
        """Credentials in the revoke state."""
        pass

    @abstractmethod
    async def update_token_status(self, token_hmac: bytes, status: TokenStatus) -> int:
        """Set a token's status."""
        pass

    @abstractmethod
    async def update_token_expiration(self, token_hmac: bytes, ttl: timedelta) -> int:
        """Record a renewal: last renewal = now, expiration = now + ttl.

        Only applies to current or maintaining tokens.
        """
        pass

    @abstractmethod
    async def update_credential_status(self, public_id: str, status: CredentialStatus) -> int:
        """Set a credential's status."""
        pass

    @abstractmethod
    async def update_credential_expiration(self, public_id: str, ttl: timedelta) -> int:
        """Record a lease renewal: last renewal = now, expiration = now + ttl.

        Only applies to active credentials.
        """
        pass

    @abstractmethod
    async def next_token_renewal_in(self) -> timedelta | None:
        """Time until the earliest token renewal, negative when overdue.

        Returns None when no current or maintaining token exists.
        """
        pass

    @abstractmethod
    async def next_credential_renewal_in(self) -> timedelta | None:
        """Time until the earliest active credential renewal, negative when overdue.

        Returns None when no active credential exists.
        """
        pass
