"""Integration tests for PostgresVaultStore.

Tests job selection, status and expiration updates, and a full renewal
run against a real PostgreSQL database with the Vault schema applied.
"""

from datetime import timedelta

import httpx
import pytest
import pytest_asyncio

from tests.factories.vault import RENEW_SELF, FakeVault
from warden.db.pool import PostgresPool
from warden.kms import StaticKeyProvider, Wrapper
from warden.scheduler import JobStatus
from warden.vault.client import VaultClientFactory
from warden.vault.jobs import TokenRenewalJob, TokenRevocationJob
from warden.vault.models import CredentialStatus, TokenStatus
from warden.vault.stores import PostgresVaultStore

pytestmark = pytest.mark.integration

SCOPE_ID = "o_integration"
STORE_ID = "csvlt_integration"
WINDOW = timedelta(minutes=10)


class Rows:
    """Inserts Vault rows directly, with times relative to the database clock."""

    def __init__(self, pool: PostgresPool, wrapper: Wrapper) -> None:
        self._pool = pool
        self._wrapper = wrapper

    async def store(self, public_id: str = STORE_ID) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO credential_vault_store (public_id, scope_id, vault_address)
                VALUES ($1, $2, 'https://vault.test:8200')
                """,
                public_id,
                SCOPE_ID,
            )

    async def token(
        self,
        plaintext: str,
        *,
        status: TokenStatus = TokenStatus.CURRENT,
        renewal_in: timedelta = timedelta(minutes=5),
        store_id: str = STORE_ID,
    ) -> bytes:
        """A token whose renewal point is ``renewal_in`` from now."""
        token_hmac = self._wrapper.hmac(plaintext.encode())
        half_ttl = timedelta(hours=1)
        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO credential_vault_token
                    (token_hmac, token, key_id, store_id, status,
                     last_renewal_time, expiration_time)
                VALUES ($1, $2, $3, $4, $5,
                        now() + make_interval(secs => $6),
                        now() + make_interval(secs => $7))
                """,
                token_hmac,
                self._wrapper.encrypt(plaintext.encode()),
                self._wrapper.key_id,
                store_id,
                status.value,
                (renewal_in - half_ttl).total_seconds(),
                (renewal_in + half_ttl).total_seconds(),
            )
        return token_hmac

    async def credential(
        self,
        public_id: str,
        token_hmac: bytes,
        *,
        status: CredentialStatus = CredentialStatus.ACTIVE,
        renewal_in: timedelta = timedelta(minutes=5),
    ) -> None:
        half_lease = timedelta(minutes=30)
        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO credential_vault_credential
                    (public_id, library_id, token_hmac, external_id, status,
                     last_renewal_time, expiration_time)
                VALUES ($1, 'clvlt_integration', $2, $3, $4,
                        now() + make_interval(secs => $5),
                        now() + make_interval(secs => $6))
                """,
                public_id,
                token_hmac,
                f"database/creds/app/{public_id}",
                status.value,
                (renewal_in - half_lease).total_seconds(),
                (renewal_in + half_lease).total_seconds(),
            )

    async def token_status(self, token_hmac: bytes) -> str:
        async with self._pool.acquire() as conn:
            return await conn.fetchval(
                "SELECT status FROM credential_vault_token WHERE token_hmac = $1",
                token_hmac,
            )


@pytest.fixture
def key_provider() -> StaticKeyProvider:
    return StaticKeyProvider()


@pytest.fixture
def wrapper(key_provider: StaticKeyProvider) -> Wrapper:
    return key_provider.generate_key(SCOPE_ID)


@pytest_asyncio.fixture
async def rows(clean_postgres: PostgresPool, wrapper: Wrapper) -> Rows:
    rows = Rows(clean_postgres, wrapper)
    await rows.store()
    return rows


@pytest.fixture
def vault_store(clean_postgres: PostgresPool) -> PostgresVaultStore:
    return PostgresVaultStore(clean_postgres)


class TestTokenSelection:
    """Tests for token queries."""

    @pytest.mark.asyncio
    async def test_renewable_tokens(self, vault_store: PostgresVaultStore, rows: Rows) -> None:
        due = await rows.token("hvs.due-token-000000000000")
        await rows.token(
            "hvs.later-token-00000000000",
            status=TokenStatus.MAINTAINING,
            renewal_in=timedelta(hours=1),
        )
        await rows.token("hvs.revoked-token-000000000", status=TokenStatus.REVOKED)

        selected = await vault_store.list_renewable_tokens(WINDOW)

        assert [s.token_hmac for s in selected] == [due]
        assert selected[0].scope_id == SCOPE_ID
        assert selected[0].token_status == TokenStatus.CURRENT

    @pytest.mark.asyncio
    async def test_unlimited_selection(
        self, vault_store: PostgresVaultStore, rows: Rows
    ) -> None:
        """A None limit binds as SQL NULL, which Postgres treats as no limit."""
        await rows.token("hvs.one-token-0000000000000")
        await rows.token("hvs.two-token-0000000000000", status=TokenStatus.MAINTAINING)

        assert len(await vault_store.list_renewable_tokens(WINDOW, limit=None)) == 2
        assert len(await vault_store.list_renewable_tokens(WINDOW, limit=1)) == 1

    @pytest.mark.asyncio
    async def test_revocable_tokens(self, vault_store: PostgresVaultStore, rows: Rows) -> None:
        """Maintaining tokens with active credentials are not revocable."""
        busy = await rows.token("hvs.busy-token-00000000000", status=TokenStatus.MAINTAINING)
        idle = await rows.token("hvs.idle-token-00000000000", status=TokenStatus.MAINTAINING)
        await rows.credential("cvl_busy", busy)

        selected = await vault_store.list_revocable_tokens()

        assert [s.token_hmac for s in selected] == [idle]


class TestCredentialSelection:
    """Tests for credential queries."""

    @pytest.mark.asyncio
    async def test_renewable_and_revocable(
        self, vault_store: PostgresVaultStore, rows: Rows
    ) -> None:
        token = await rows.token("hvs.cred-token-00000000000")
        await rows.credential("cvl_due", token)
        await rows.credential("cvl_later", token, renewal_in=timedelta(hours=2))
        await rows.credential("cvl_revoke", token, status=CredentialStatus.REVOKE)

        renewable = await vault_store.list_renewable_credentials(WINDOW)
        revocable = await vault_store.list_revocable_credentials()

        assert [c.public_id for c in renewable] == ["cvl_due"]
        assert renewable[0].lease_duration == timedelta(hours=1)
        assert [c.public_id for c in revocable] == ["cvl_revoke"]


class TestWrites:
    """Tests for update row counts."""

    @pytest.mark.asyncio
    async def test_token_updates(self, vault_store: PostgresVaultStore, rows: Rows) -> None:
        token = await rows.token("hvs.write-token-0000000000")

        assert await vault_store.update_token_expiration(token, timedelta(hours=2)) == 1
        assert await vault_store.update_token_status(token, TokenStatus.EXPIRED) == 1
        assert await vault_store.update_token_expiration(token, timedelta(hours=2)) == 0
        assert await rows.token_status(token) == "expired"

    @pytest.mark.asyncio
    async def test_missing_rows(self, vault_store: PostgresVaultStore, rows: Rows) -> None:
        assert await vault_store.update_token_status(b"missing", TokenStatus.REVOKED) == 0
        assert (
            await vault_store.update_credential_status("cvl_missing", CredentialStatus.REVOKED)
            == 0
        )

    @pytest.mark.asyncio
    async def test_credential_expiration(
        self, vault_store: PostgresVaultStore, rows: Rows
    ) -> None:
        token = await rows.token("hvs.lease-token-0000000000")
        await rows.credential("cvl_1", token)

        assert await vault_store.update_credential_expiration("cvl_1", timedelta(hours=1)) == 1
        assert await vault_store.next_credential_renewal_in() > timedelta(minutes=25)


class TestNextRenewal:
    """Tests for next renewal queries."""

    @pytest.mark.asyncio
    async def test_empty(self, vault_store: PostgresVaultStore, rows: Rows) -> None:
        assert await vault_store.next_token_renewal_in() is None
        assert await vault_store.next_credential_renewal_in() is None

    @pytest.mark.asyncio
    async def test_overdue_is_negative(
        self, vault_store: PostgresVaultStore, rows: Rows
    ) -> None:
        await rows.token("hvs.overdue-token-000000000", renewal_in=-timedelta(minutes=3))

        assert await vault_store.next_token_renewal_in() < timedelta(0)


class TestJobsAgainstPostgres:
    """Full job runs against the PostgreSQL store."""

    @pytest.mark.asyncio
    async def test_token_renewal(
        self,
        vault_store: PostgresVaultStore,
        rows: Rows,
        key_provider: StaticKeyProvider,
    ) -> None:
        fake_vault = FakeVault()
        factory = VaultClientFactory(transport=httpx.MockTransport(fake_vault.handle))
        forbidden = await rows.token(
            "hvs.forbidden-token-0000000", status=TokenStatus.MAINTAINING
        )
        await rows.token("hvs.renewed-token-000000000")
        fake_vault.token_status["hvs.forbidden-token-0000000"] = 403
        job = TokenRenewalJob(vault_store, key_provider, client_factory=factory)

        await job.run()

        assert job.status() == JobStatus(completed=2, total=2)
        assert len(fake_vault.calls(RENEW_SELF)) == 2
        assert await rows.token_status(forbidden) == "expired"
        assert await job.next_run_in() > timedelta(minutes=25)

    @pytest.mark.asyncio
    async def test_token_revocation(
        self,
        vault_store: PostgresVaultStore,
        rows: Rows,
        key_provider: StaticKeyProvider,
    ) -> None:
        fake_vault = FakeVault()
        factory = VaultClientFactory(transport=httpx.MockTransport(fake_vault.handle))
        idle = await rows.token("hvs.idle-token-00000000000", status=TokenStatus.MAINTAINING)
        job = TokenRevocationJob(vault_store, key_provider, client_factory=factory)

        await job.run()

        assert job.status() == JobStatus(completed=1, total=1)
        assert await rows.token_status(idle) == "revoked"
