"""Bootstrap module for wiring the Vault jobs from configuration.

Handles:
- Configuring logging and the Prometheus metrics endpoint
- Creating the Vault store (in-memory or PostgreSQL)
- Creating the key provider from configured scope keys
- Building the four Vault jobs and registering them with a Scheduler

Example usage:

    from warden.bootstrap import bootstrap

    ctx = await bootstrap()
    await ctx.scheduler.start()
    ...
    await ctx.close()
"""

from dataclasses import dataclass

from prometheus_client import start_http_server

from warden.config import Settings, get_settings
from warden.config.models.jobs import JobsConfig
from warden.config.models.kms import KmsConfig
from warden.db.pool import PostgresPool
from warden.kms import KeyProvider, StaticKeyProvider
from warden.observability.logging import get_logger, setup_logging
from warden.scheduler import Job, Scheduler
from warden.vault.client import ClientFactory, VaultClientFactory
from warden.vault.jobs import (
    CredentialRenewalJob,
    CredentialRevocationJob,
    TokenRenewalJob,
    TokenRevocationJob,
)
from warden.vault.store import VaultStore
from warden.vault.stores import InMemoryVaultStore, PostgresVaultStore

logger = get_logger(__name__)


@dataclass
class BootstrapContext:
    """Everything bootstrap created, for the caller to run and shut down."""

    settings: Settings
    store: VaultStore
    key_provider: KeyProvider
    scheduler: Scheduler
    pool: PostgresPool | None = None

    async def close(self) -> None:
        """Stop the scheduler and release the database pool."""
        await self.scheduler.stop()
        if self.pool is not None:
            await self.pool.close()


def build_key_provider(config: KmsConfig) -> StaticKeyProvider:
    """Create a key provider holding the configured scope keys."""
    keys = {scope_id: key.get_secret_value() for scope_id, key in config.keys.items()}
    return StaticKeyProvider(keys)


async def create_store(settings: Settings) -> tuple[VaultStore, PostgresPool | None]:
    """Create the configured Vault store.

    Returns:
        Tuple of (store, pool); pool is None for the in-memory backend
    """
    if settings.storage.backend == "postgres":
        pool = PostgresPool.from_config(settings.storage.postgres)
        await pool.connect()
        if settings.storage.postgres.apply_schema:
            await pool.apply_schema()
        return PostgresVaultStore(pool), pool
    return InMemoryVaultStore(), None


def build_jobs(
    config: JobsConfig,
    store: VaultStore,
    key_provider: KeyProvider,
    client_factory: ClientFactory | None = None,
) -> list[Job]:
    """Build the token and credential renewal/revocation jobs."""
    kwargs = {
        "client_factory": client_factory,
        "limit": config.batch_limit,
        "renewal_window": config.renewal_window,
        "default_next_run_in": config.default_next_run_in,
    }
    return [
        TokenRenewalJob(store, key_provider, **kwargs),
        TokenRevocationJob(store, key_provider, **kwargs),
        CredentialRenewalJob(store, key_provider, **kwargs),
        CredentialRevocationJob(store, key_provider, **kwargs),
    ]


async def bootstrap(
    settings: Settings | None = None,
    client_factory: ClientFactory | None = None,
) -> BootstrapContext:
    """Wire the store, key provider and jobs into a ready-to-start Scheduler.

    Args:
        settings: Configuration (default: get_settings())
        client_factory: Override how Vault clients are built

    Returns:
        BootstrapContext; the scheduler is not started
    """
    settings = settings or get_settings()
    log_config = settings.observability.logging
    setup_logging(
        level=log_config.level,
        format=log_config.format,
        redact_secrets=log_config.redact_secrets,
    )

    metrics = settings.observability.metrics
    if metrics.enabled:
        start_http_server(metrics.port)
        logger.info("metrics_server_started", port=metrics.port)

    store, pool = await create_store(settings)
    key_provider = build_key_provider(settings.kms)

    if client_factory is None:
        client_factory = VaultClientFactory(
            timeout=settings.vault.timeout,
            user_agent=settings.vault.user_agent,
        )

    scheduler = Scheduler(retry_in=settings.jobs.default_next_run_in)
    if settings.jobs.enabled:
        for job in build_jobs(settings.jobs, store, key_provider, client_factory):
            scheduler.register(job)
    else:
        logger.warning("vault_jobs_disabled")

    logger.info(
        "warden_bootstrapped",
        backend=settings.storage.backend,
        jobs=sorted(scheduler.jobs),
        scopes=len(settings.kms.keys),
    )

    return BootstrapContext(
        settings=settings,
        store=store,
        key_provider=key_provider,
        scheduler=scheduler,
        pool=pool,
    )
