"""PostgreSQL implementation of VaultStore.

Reads go through the ``credential_vault_token_private`` and
``credential_vault_credential_private`` views (see ``warden/db/schema.sql``);
writes are single UPDATE statements whose command tag gives the row count.
"""

from datetime import timedelta
from typing import Any

import asyncpg
from pydantic import ValidationError as PydanticValidationError

from warden.db.errors import ConnectionError, ValidationError
from warden.db.pool import PostgresPool
from warden.observability.logging import get_logger
from warden.vault.models import CredentialStatus, PrivateCredential, PrivateStore, TokenStatus
from warden.vault.store import VaultStore

logger = get_logger(__name__)

_TOKEN_COLUMNS = """
    token_hmac, ct_token, key_id, token_status,
    token_last_renewal_time, token_expiration_time,
    store_id, scope_id, vault_address, namespace,
    ca_cert, tls_server_name, tls_skip_verify
"""

_CREDENTIAL_COLUMNS = """
    public_id, library_id, session_id, external_id, status,
    last_renewal_time, expiration_time,
    token_hmac, ct_token, key_id,
    store_id, scope_id, vault_address, namespace,
    ca_cert, tls_server_name, tls_skip_verify
"""

RENEWABLE_TOKENS_QUERY = f"""
    SELECT {_TOKEN_COLUMNS}
      FROM credential_vault_token_private
     WHERE token_renewal_time < now() + make_interval(secs => $1)
     LIMIT $2
"""

REVOCABLE_TOKENS_QUERY = f"""
    SELECT {_TOKEN_COLUMNS}
      FROM credential_vault_token_private
     WHERE token_status = $1
       AND token_hmac NOT IN (
           SELECT token_hmac FROM credential_vault_credential
            WHERE status = $2
       )
     LIMIT $3
"""

RENEWABLE_CREDENTIALS_QUERY = f"""
    SELECT {_CREDENTIAL_COLUMNS}
      FROM credential_vault_credential_private
     WHERE renewal_time < now() + make_interval(secs => $1)
       AND status = $2
     LIMIT $3
"""

REVOCABLE_CREDENTIALS_QUERY = f"""
    SELECT {_CREDENTIAL_COLUMNS}
      FROM credential_vault_credential_private
     WHERE status = $1
     LIMIT $2
"""

UPDATE_TOKEN_STATUS = """
    UPDATE credential_vault_token
       SET status = $1
     WHERE token_hmac = $2
"""

UPDATE_TOKEN_EXPIRATION = """
    UPDATE credential_vault_token
       SET last_renewal_time = now(),
           expiration_time = now() + make_interval(secs => $1)
     WHERE token_hmac = $2
       AND status IN ('current', 'maintaining')
"""

UPDATE_CREDENTIAL_STATUS = """
    UPDATE credential_vault_credential
       SET status = $1
     WHERE public_id = $2
"""

UPDATE_CREDENTIAL_EXPIRATION = """
    UPDATE credential_vault_credential
       SET last_renewal_time = now(),
           expiration_time = now() + make_interval(secs => $1)
     WHERE public_id = $2
       AND status = 'active'
"""

TOKEN_NEXT_RENEWAL_QUERY = """
    SELECT extract(epoch FROM (token_renewal_time - now()))::float8 AS renewal_in
      FROM credential_vault_token_private
     ORDER BY token_renewal_time ASC
     LIMIT 1
"""

CREDENTIAL_NEXT_RENEWAL_QUERY = """
    SELECT extract(epoch FROM (renewal_time - now()))::float8 AS renewal_in
      FROM credential_vault_credential_private
     WHERE status = 'active'
     ORDER BY renewal_time ASC
     LIMIT 1
"""


def _rows_affected(command_tag: str) -> int:
    """Parse the row count out of an asyncpg command tag ("UPDATE 1")."""
    try:
        return int(command_tag.split()[-1])
    except (IndexError, ValueError):
        return 0


class PostgresVaultStore(VaultStore):
    """PostgreSQL implementation of VaultStore."""

    def __init__(self, pool: PostgresPool) -> None:
        """Initialize PostgreSQL vault store.

        Args:
            pool: Connection pool
        """
        self._pool = pool

    async def _fetch(self, op: str, query: str, *args: Any) -> list[dict[str, Any]]:
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(query, *args)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error("postgres_query_error", op=op, error=str(e))
            raise ConnectionError(f"{op} failed: {e}", cause=e) from e
        return [dict(row) for row in rows]

    async def _execute(self, op: str, query: str, *args: Any) -> int:
        try:
            async with self._pool.acquire() as conn:
                result = await conn.execute(query, *args)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error("postgres_update_error", op=op, error=str(e))
            raise ConnectionError(f"{op} failed: {e}", cause=e) from e
        return _rows_affected(result)

    async def _fetch_seconds(self, op: str, query: str) -> timedelta | None:
        try:
            async with self._pool.acquire() as conn:
                value = await conn.fetchval(query)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error("postgres_query_error", op=op, error=str(e))
            raise ConnectionError(f"{op} failed: {e}", cause=e) from e
        if value is None:
            return None
        return timedelta(seconds=float(value))

    @staticmethod
    def _to_private_stores(rows: list[dict[str, Any]]) -> list[PrivateStore]:
        try:
            return [PrivateStore.model_validate(row) for row in rows]
        except PydanticValidationError as e:
            raise ValidationError(f"invalid token row: {e}", cause=e) from e

    @staticmethod
    def _to_private_credentials(rows: list[dict[str, Any]]) -> list[PrivateCredential]:
        try:
            return [PrivateCredential.model_validate(row) for row in rows]
        except PydanticValidationError as e:
            raise ValidationError(f"invalid credential row: {e}", cause=e) from e

    async def list_renewable_tokens(
        self,
        window: timedelta,
        *,
        limit: int | None = None,
    ) -> list[PrivateStore]:
        rows = await self._fetch(
            "list_renewable_tokens",
            RENEWABLE_TOKENS_QUERY,
            window.total_seconds(),
            limit,
        )
        return self._to_private_stores(rows)

    async def list_revocable_tokens(self, *, limit: int | None = None) -> list[PrivateStore]:
        rows = await self._fetch(
            "list_revocable_tokens",
            REVOCABLE_TOKENS_QUERY,
            TokenStatus.MAINTAINING.value,
            CredentialStatus.ACTIVE.value,
            limit,
        )
        return self._to_private_stores(rows)

    async def list_renewable_credentials(
        self,
        window: timedelta,
        *,
        limit: int | None = None,
    ) -> list[PrivateCredential]:
        rows = await self._fetch(
            "list_renewable_credentials",
            RENEWABLE_CREDENTIALS_QUERY,
            window.total_seconds(),
            CredentialStatus.ACTIVE.value,
            limit,
        )
        return self._to_private_credentials(rows)

    async def list_revocable_credentials(
        self,
        *,
        limit: int | None = None,
    ) -> list[PrivateCredential]:
        rows = await self._fetch(
            "list_revocable_credentials",
            REVOCABLE_CREDENTIALS_QUERY,
            CredentialStatus.REVOKE.value,
            limit,
        )
        return self._to_private_credentials(rows)

    async def update_token_status(self, token_hmac: bytes, status: TokenStatus) -> int:
        return await self._execute(
            "update_token_status", UPDATE_TOKEN_STATUS, status.value, token_hmac
        )

    async def update_token_expiration(self, token_hmac: bytes, ttl: timedelta) -> int:
        return await self._execute(
            "update_token_expiration", UPDATE_TOKEN_EXPIRATION, ttl.total_seconds(), token_hmac
        )

    async def update_credential_status(self, public_id: str, status: CredentialStatus) -> int:
        return await self._execute(
            "update_credential_status", UPDATE_CREDENTIAL_STATUS, status.value, public_id
        )

    async def update_credential_expiration(self, public_id: str, ttl: timedelta) -> int:
        return await self._execute(
            "update_credential_expiration",
            UPDATE_CREDENTIAL_EXPIRATION,
            ttl.total_seconds(),
            public_id,
        )

    async def next_token_renewal_in(self) -> timedelta | None:
        return await self._fetch_seconds("next_token_renewal_in", TOKEN_NEXT_RENEWAL_QUERY)

    async def next_credential_renewal_in(self) -> timedelta | None:
        return await self._fetch_seconds(
            "next_credential_renewal_in", CREDENTIAL_NEXT_RENEWAL_QUERY
        )
