"""In-memory implementation of VaultStore."""

from collections.abc import Callable
from datetime import datetime, timedelta

from warden.db.errors import NotFoundError
from warden.vault.models import (
    Credential,
    CredentialStatus,
    CredentialStore,
    PrivateCredential,
    PrivateStore,
    Token,
    TokenStatus,
    utc_now,
)
from warden.vault.store import VaultStore

_LIVE_TOKEN_STATUSES = (TokenStatus.CURRENT, TokenStatus.MAINTAINING)


class InMemoryVaultStore(VaultStore):
    """In-memory implementation of VaultStore for testing and development.

    Uses dict storage with linear scans; rows come back in insertion order.
    Not suitable for production use.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        """Initialize empty storage.

        Args:
            clock: Source of "now", overridable for tests
        """
        self._clock = clock
        self._stores: dict[str, CredentialStore] = {}
        self._tokens: dict[bytes, Token] = {}
        self._credentials: dict[str, Credential] = {}

    # Seeding and lookup

    def add_store(self, store: CredentialStore) -> None:
        self._stores[store.public_id] = store

    def add_token(self, token: Token) -> None:
        if token.store_id not in self._stores:
            raise NotFoundError(f"credential store {token.store_id} not found")
        self._tokens[token.token_hmac] = token

    def add_credential(self, credential: Credential) -> None:
        if credential.token_hmac not in self._tokens:
            raise NotFoundError("token for credential not found")
        self._credentials[credential.public_id] = credential

    def get_token(self, token_hmac: bytes) -> Token | None:
        return self._tokens.get(token_hmac)

    def get_credential(self, public_id: str) -> Credential | None:
        return self._credentials.get(public_id)

    # Private views

    def _private_store(self, token: Token) -> PrivateStore:
        store = self._stores[token.store_id]
        return PrivateStore(
            store_id=store.public_id,
            scope_id=store.scope_id,
            vault_address=store.vault_address,
            namespace=store.namespace,
            ca_cert=store.ca_cert,
            tls_server_name=store.tls_server_name,
            tls_skip_verify=store.tls_skip_verify,
            token_hmac=token.token_hmac,
            ct_token=token.ct_token,
            key_id=token.key_id,
            token_status=token.status,
            token_last_renewal_time=token.last_renewal_time,
            token_expiration_time=token.expiration_time,
        )

    def _private_credential(self, credential: Credential) -> PrivateCredential | None:
        token = self._tokens.get(credential.token_hmac)
        if token is None:
            return None
        store = self._stores[token.store_id]
        return PrivateCredential(
            store_id=store.public_id,
            scope_id=store.scope_id,
            vault_address=store.vault_address,
            namespace=store.namespace,
            ca_cert=store.ca_cert,
            tls_server_name=store.tls_server_name,
            tls_skip_verify=store.tls_skip_verify,
            token_hmac=token.token_hmac,
            ct_token=token.ct_token,
            key_id=token.key_id,
            public_id=credential.public_id,
            library_id=credential.library_id,
            session_id=credential.session_id,
            external_id=credential.external_id,
            status=credential.status,
            last_renewal_time=credential.last_renewal_time,
            expiration_time=credential.expiration_time,
        )

    @staticmethod
    def _limit(items: list, limit: int | None) -> list:
        if limit is None:
            return items
        return items[:limit]

    # Selection

    async def list_renewable_tokens(
        self,
        window: timedelta,
        *,
        limit: int | None = None,
    ) -> list[PrivateStore]:
        cutoff = self._clock() + window
        results = [
            self._private_store(token)
            for token in self._tokens.values()
            if token.status in _LIVE_TOKEN_STATUSES and token.renewal_time < cutoff
        ]
        return self._limit(results, limit)

    async def list_revocable_tokens(self, *, limit: int | None = None) -> list[PrivateStore]:
        in_use = {
            c.token_hmac
            for c in self._credentials.values()
            if c.status == CredentialStatus.ACTIVE
        }
        results = [
            self._private_store(token)
            for token in self._tokens.values()
            if token.status == TokenStatus.MAINTAINING and token.token_hmac not in in_use
        ]
        return self._limit(results, limit)

    async def list_renewable_credentials(
        self,
        window: timedelta,
        *,
        limit: int | None = None,
    ) -> list[PrivateCredential]:
        cutoff = self._clock() + window
        results = []
        for credential in self._credentials.values():
            if credential.status != CredentialStatus.ACTIVE or credential.renewal_time >= cutoff:
                continue
            private = self._private_credential(credential)
            if private is not None:
                results.append(private)
        return self._limit(results, limit)

    async def list_revocable_credentials(
        self,
        *,
        limit: int | None = None,
    ) -> list[PrivateCredential]:
        results = []
        for credential in self._credentials.values():
            if credential.status != CredentialStatus.REVOKE:
                continue
            private = self._private_credential(credential)
            if private is not None:
                results.append(private)
        return self._limit(results, limit)

    # Writes

    async def update_token_status(self, token_hmac: bytes, status: TokenStatus) -> int:
        token = self._tokens.get(token_hmac)
        if token is None:
            return 0
        token.status = status
        return 1

    async def update_token_expiration(self, token_hmac: bytes, ttl: timedelta) -> int:
        token = self._tokens.get(token_hmac)
        if token is None or token.status not in _LIVE_TOKEN_STATUSES:
            return 0
        now = self._clock()
        token.last_renewal_time = now
        token.expiration_time = now + ttl
        return 1

    async def update_credential_status(self, public_id: str, status: CredentialStatus) -> int:
        credential = self._credentials.get(public_id)
        if credential is None:
            return 0
        credential.status = status
        return 1

    async def update_credential_expiration(self, public_id: str, ttl: timedelta) -> int:
        credential = self._credentials.get(public_id)
        if credential is None or credential.status != CredentialStatus.ACTIVE:
            return 0
        now = self._clock()
        credential.last_renewal_time = now
        credential.expiration_time = now + ttl
        return 1

    # Scheduling

    async def next_token_renewal_in(self) -> timedelta | None:
        renewal_times = [
            t.renewal_time for t in self._tokens.values() if t.status in _LIVE_TOKEN_STATUSES
        ]
        if not renewal_times:
            return None
        return min(renewal_times) - self._clock()

    async def next_credential_renewal_in(self) -> timedelta | None:
        renewal_times = [
            c.renewal_time
            for c in self._credentials.values()
            if c.status == CredentialStatus.ACTIVE
        ]
        if not renewal_times:
            return None
        return min(renewal_times) - self._clock()
