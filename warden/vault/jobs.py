"""Vault renewal and revocation jobs.

Four recurring jobs keep Vault tokens and leased credentials in step with
Vault:

- TokenRenewalJob: renews current/maintaining credential store tokens
- TokenRevocationJob: revokes maintaining tokens with no active credentials
- CredentialRenewalJob: renews leases of active credentials
- CredentialRevocationJob: revokes leases of credentials set to revoke

A job instance never runs concurrently with itself; a second ``run`` while
one is in flight raises ``JobError(kind=ALREADY_RUNNING)``. Items are
processed one at a time in selection order. A failing item is logged and
left as it was so a later run retries it; only cancellation, selection
failures and write inconsistencies end a run early.

Usage:
    job = TokenRenewalJob(store, key_provider)
    await job.run(RunContext())
    delay = await job.next_run_in()
"""

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any, Generic, TypeVar

from warden.db.errors import StoreError
from warden.errors import ErrorKind, JobError, wrap
from warden.kms import KeyProvider, KeyPurpose, KmsError, Wrapper
from warden.observability.logging import get_logger
from warden.observability.metrics import (
    JOB_BATCH_SIZE,
    JOB_ITEMS,
    JOB_NEXT_RUN_SECONDS,
    JOB_RUN_DURATION,
    JOB_RUNS,
)
from warden.scheduler.context import RunContext
from warden.scheduler.job import JobStatus
from warden.vault.client import (
    ClientFactory,
    VaultClientError,
    VaultClientFactory,
    VaultResponseError,
)
from warden.vault.models import (
    CredentialStatus,
    PrivateCredential,
    PrivateStore,
    TokenStatus,
    VaultConnection,
)
from warden.vault.store import VaultStore

logger = get_logger(__name__)

TOKEN_RENEWAL_JOB_NAME = "vault_token_renewal"
TOKEN_REVOCATION_JOB_NAME = "vault_token_revocation"
CREDENTIAL_RENEWAL_JOB_NAME = "vault_credential_renewal"
CREDENTIAL_REVOCATION_JOB_NAME = "vault_credential_revocation"

DEFAULT_NEXT_RUN_IN = timedelta(minutes=5)
RENEWAL_WINDOW = timedelta(minutes=10)
DEFAULT_LIMIT = 10000

ItemT = TypeVar("ItemT", bound=VaultConnection)


class _VaultJob(ABC, Generic[ItemT]):
    """Shared run loop, concurrency guard and counters for the Vault jobs."""

    NAME = ""
    DESCRIPTION = ""
    FAILURE_EVENT = ""

    def __init__(
        self,
        store: VaultStore,
        key_provider: KeyProvider,
        *,
        client_factory: ClientFactory | None = None,
        limit: int = 0,
        renewal_window: timedelta = RENEWAL_WINDOW,
        default_next_run_in: timedelta = DEFAULT_NEXT_RUN_IN,
    ) -> None:
        """Create a job.

        Args:
            store: Vault credential store
            key_provider: Resolves scope keys used to decrypt store tokens
            client_factory: Builds Vault clients (defaults to VaultClientFactory())
            limit: Max items per run; 0 uses DEFAULT_LIMIT, negative means unlimited
            renewal_window: Look-ahead window for renewal selection
            default_next_run_in: Delay used when no data-derived schedule exists

        Raises:
            JobError: INVALID_PARAMETER when a dependency is missing
        """
        op = f"vault.{type(self).__name__}"
        if store is None:
            raise JobError("missing vault store", kind=ErrorKind.INVALID_PARAMETER, op=op)
        if key_provider is None:
            raise JobError("missing key provider", kind=ErrorKind.INVALID_PARAMETER, op=op)
        if renewal_window <= timedelta(0):
            raise JobError(
                "renewal window must be positive", kind=ErrorKind.INVALID_PARAMETER, op=op
            )
        if default_next_run_in < timedelta(0):
            raise JobError(
                "default next run must not be negative",
                kind=ErrorKind.INVALID_PARAMETER,
                op=op,
            )

        if limit == 0:
            limit = DEFAULT_LIMIT

        self._store = store
        self._kms = key_provider
        self._client_factory = client_factory or VaultClientFactory()
        self._limit: int | None = None if limit < 0 else limit
        self._renewal_window = renewal_window
        self._default_next_run_in = default_next_run_in

        self._running = threading.Lock()
        self._completed = 0
        self._total = 0
        self._logger = logger.bind(job=self.NAME)

    @property
    def name(self) -> str:
        """Unique name of the job."""
        return self.NAME

    @property
    def description(self) -> str:
        """Human readable description of the job."""
        return self.DESCRIPTION

    @property
    def limit(self) -> int | None:
        return self._limit

    @property
    def running(self) -> bool:
        return self._running.locked()

    def status(self) -> JobStatus:
        """Completed and total item counts of the latest run."""
        return JobStatus(completed=self._completed, total=self._total)

    async def run(self, ctx: RunContext | None = None) -> None:
        """Select the batch and process each item.

        Raises:
            JobError: ALREADY_RUNNING, CANCELED, SELECTION or WRITE_INCONSISTENCY
        """
        op = f"vault.{type(self).__name__}.run"
        if not self._running.acquire(blocking=False):
            raise JobError("job already running", kind=ErrorKind.ALREADY_RUNNING, op=op)

        ctx = ctx or RunContext()
        started = time.perf_counter()
        outcome = "aborted"
        try:
            ctx.raise_if_canceled(op)

            try:
                items = await self._select()
            except StoreError as e:
                raise JobError(
                    "unable to select items", kind=ErrorKind.SELECTION, op=op, cause=e
                ) from e

            self._completed, self._total = 0, len(items)
            JOB_BATCH_SIZE.labels(job=self.NAME).set(len(items))

            for item in items:
                ctx.raise_if_canceled(op)
                await self._process_isolated(item)
                self._completed += 1

            outcome = "success"
            if items:
                self._logger.info(
                    "vault_job_run_completed",
                    completed=self._completed,
                    total=self._total,
                )
        except JobError as e:
            outcome = e.kind.value
            raise
        finally:
            JOB_RUNS.labels(job=self.NAME, outcome=outcome).inc()
            JOB_RUN_DURATION.labels(job=self.NAME).observe(time.perf_counter() - started)
            self._running.release()

    async def _process_isolated(self, item: ItemT) -> None:
        try:
            await self._process(item)
        except JobError as e:
            if e.kind is not ErrorKind.ITEM:
                JOB_ITEMS.labels(job=self.NAME, outcome="fatal").inc()
                raise
            JOB_ITEMS.labels(job=self.NAME, outcome="failed").inc()
            self._logger.error(self.FAILURE_EVENT, **self._describe(item), error=str(e))
            return
        except Exception as e:
            JOB_ITEMS.labels(job=self.NAME, outcome="failed").inc()
            self._logger.error(
                self.FAILURE_EVENT,
                **self._describe(item),
                error=str(e),
                error_type=type(e).__name__,
            )
            return
        JOB_ITEMS.labels(job=self.NAME, outcome="processed").inc()

    async def next_run_in(self) -> timedelta:
        """When the job should run next."""
        JOB_NEXT_RUN_SECONDS.labels(job=self.NAME).set(
            self._default_next_run_in.total_seconds()
        )
        return self._default_next_run_in

    @abstractmethod
    async def _select(self) -> list[ItemT]:
        """Fetch the batch of items this run works on."""

    @abstractmethod
    async def _process(self, item: ItemT) -> None:
        """Process one item, raising JobError on failure."""

    @abstractmethod
    def _describe(self, item: ItemT) -> dict[str, Any]:
        """Identifying log context for an item."""

    async def _decrypt(self, op: str, item: ItemT) -> None:
        """Resolve the item's scope key and decrypt its store token.

        The key is looked up per item: items in one batch may belong to
        different scopes.
        """
        try:
            wrapper: Wrapper = await self._kms.get_wrapper(item.scope_id, KeyPurpose.DATABASE)
        except KmsError as e:
            raise wrap(e, op, "unable to get database wrapper") from e
        try:
            item.decrypt(wrapper)
        except KmsError as e:
            raise wrap(e, op, "unable to decrypt vault token") from e

    async def _write(
        self,
        op: str,
        message: str,
        update: Callable[..., Awaitable[int]],
        *args: Any,
    ) -> None:
        """Run a single-row update, failing the run if it did not touch exactly one row."""
        try:
            rows = await update(*args)
        except StoreError as e:
            raise wrap(e, op, "unable to update repository") from e
        if rows != 1:
            raise JobError(
                f"{message} ({rows} rows updated)",
                kind=ErrorKind.WRITE_INCONSISTENCY,
                op=op,
            )


class _RenewalJob(_VaultJob[ItemT]):
    """A job that schedules itself from the earliest pending renewal."""

    async def next_run_in(self) -> timedelta:
        """Time until the earliest renewal, 0 when overdue.

        Raises:
            JobError: SELECTION when the query fails; its ``next_run_in`` is
                the default delay and can be used to schedule anyway
        """
        op = f"vault.{type(self).__name__}.next_run_in"
        try:
            until = await self._time_until_next_renewal()
        except StoreError as e:
            raise JobError(
                "unable to determine next renewal",
                kind=ErrorKind.SELECTION,
                op=op,
                cause=e,
                next_run_in=self._default_next_run_in,
            ) from e

        if until is None:
            next_run = self._default_next_run_in
        elif until < timedelta(0):
            # Past the renewal point, run immediately
            next_run = timedelta(0)
        else:
            next_run = until

        JOB_NEXT_RUN_SECONDS.labels(job=self.NAME).set(next_run.total_seconds())
        return next_run

    @abstractmethod
    async def _time_until_next_renewal(self) -> timedelta | None:
        """Data source for ``next_run_in``."""


class TokenRenewalJob(_RenewalJob[PrivateStore]):
    """Renews credential store Vault tokens in the current and maintaining states."""

    NAME = TOKEN_RENEWAL_JOB_NAME
    DESCRIPTION = (
        "Periodically renews Vault credential store tokens that are in a "
        "maintaining or current state."
    )
    FAILURE_EVENT = "vault_token_renewal_failed"

    async def _select(self) -> list[PrivateStore]:
        # Everything due within the window is renewed in one pass instead of
        # scheduling a run per token.
        return await self._store.list_renewable_tokens(self._renewal_window, limit=self._limit)

    def _describe(self, item: PrivateStore) -> dict[str, Any]:
        status = item.token_status.value if item.token_status else None
        return {"store_id": item.store_id, "token_status": status}

    async def _time_until_next_renewal(self) -> timedelta | None:
        return await self._store.next_token_renewal_in()

    async def _process(self, item: PrivateStore) -> None:
        op = "vault.TokenRenewalJob.renew_token"
        await self._decrypt(op, item)

        token = item.to_token()
        if token is None:
            return

        try:
            async with item.client(self._client_factory) as vc:
                renewed = await vc.renew_token()
            ttl = renewed.token_ttl()
        except VaultResponseError as e:
            if not e.is_forbidden:
                raise wrap(e, op, "unable to renew vault token") from e
            # Vault refuses renew-self for an expired or malformed token. Mark
            # it expired so the credentials issued under it can be cleaned up.
            await self._write(
                op,
                "token expired but failed to update repository",
                self._store.update_token_status,
                token.token_hmac,
                TokenStatus.EXPIRED,
            )
            if token.status is TokenStatus.CURRENT:
                self._logger.info("vault_current_token_expired", store_id=item.store_id)
            return
        except VaultClientError as e:
            raise wrap(e, op, "unable to renew vault token") from e

        await self._write(
            op,
            "token renewed but failed to update repository",
            self._store.update_token_expiration,
            token.token_hmac,
            ttl,
        )


class TokenRevocationJob(_VaultJob[PrivateStore]):
    """Revokes maintaining tokens that no active credential depends on."""

    NAME = TOKEN_REVOCATION_JOB_NAME
    DESCRIPTION = (
        "Periodically revokes Vault credential store tokens that are in a "
        "maintaining state and have no active credentials associated."
    )
    FAILURE_EVENT = "vault_token_revocation_failed"

    async def _select(self) -> list[PrivateStore]:
        return await self._store.list_revocable_tokens(limit=self._limit)

    def _describe(self, item: PrivateStore) -> dict[str, Any]:
        return {"store_id": item.store_id}

    async def _process(self, item: PrivateStore) -> None:
        op = "vault.TokenRevocationJob.revoke_token"
        await self._decrypt(op, item)

        token = item.to_token()
        if token is None:
            return

        try:
            async with item.client(self._client_factory) as vc:
                await vc.revoke_token()
        except VaultResponseError as e:
            # A 403 on revoke-self means the token is already gone.
            if not e.is_forbidden:
                raise wrap(e, op, "unable to revoke vault token") from e
        except VaultClientError as e:
            raise wrap(e, op, "unable to revoke vault token") from e

        await self._write(
            op,
            "token revoked but failed to update repository",
            self._store.update_token_status,
            token.token_hmac,
            TokenStatus.REVOKED,
        )


class CredentialRenewalJob(_RenewalJob[PrivateCredential]):
    """Renews the leases of credentials attached to active or pending sessions."""

    NAME = CREDENTIAL_RENEWAL_JOB_NAME
    DESCRIPTION = (
        "Periodically renews Vault credentials that are attached to an "
        "active/pending session (in the active state)."
    )
    FAILURE_EVENT = "vault_credential_renewal_failed"

    async def _select(self) -> list[PrivateCredential]:
        return await self._store.list_renewable_credentials(
            self._renewal_window, limit=self._limit
        )

    def _describe(self, item: PrivateCredential) -> dict[str, Any]:
        return {"credential_id": item.public_id}

    async def _time_until_next_renewal(self) -> timedelta | None:
        return await self._store.next_credential_renewal_in()

    async def _process(self, item: PrivateCredential) -> None:
        op = "vault.CredentialRenewalJob.renew_credential"
        await self._decrypt(op, item)

        try:
            async with item.client(self._client_factory) as vc:
                renewed = await vc.renew_lease(item.external_id, item.lease_duration)
        except VaultResponseError as e:
            if not e.is_bad_request:
                raise wrap(e, op, "unable to renew credential") from e
            # A 400 on lease renew means the lease expired or the id is
            # malformed; either way it cannot be renewed.
            await self._write(
                op,
                "credential expired but failed to update repository",
                self._store.update_credential_status,
                item.public_id,
                CredentialStatus.EXPIRED,
            )
            return
        except VaultClientError as e:
            raise wrap(e, op, "unable to renew credential") from e

        # Vault may grant a different duration than requested
        await self._write(
            op,
            "credential renewed but failed to update repository",
            self._store.update_credential_expiration,
            item.public_id,
            renewed.duration,
        )


class CredentialRevocationJob(_VaultJob[PrivateCredential]):
    """Revokes the leases of credentials no longer used by any session."""

    NAME = CREDENTIAL_REVOCATION_JOB_NAME
    DESCRIPTION = (
        "Periodically revokes dynamic credentials that are no longer in use and "
        "have been set for revocation (in the revoke state)."
    )
    FAILURE_EVENT = "vault_credential_revocation_failed"

    async def _select(self) -> list[PrivateCredential]:
        return await self._store.list_revocable_credentials(limit=self._limit)

    def _describe(self, item: PrivateCredential) -> dict[str, Any]:
        return {"credential_id": item.public_id}

    async def _process(self, item: PrivateCredential) -> None:
        op = "vault.CredentialRevocationJob.revoke_credential"
        await self._decrypt(op, item)

        try:
            async with item.client(self._client_factory) as vc:
                await vc.revoke_lease(item.external_id)
        except VaultClientError as e:
            # TODO: a 403 from revoke-lease is retried on every run; decide
            # whether a permission denied response should end the credential.
            raise wrap(e, op, "unable to revoke credential") from e

        await self._write(
            op,
            "credential revoked but failed to update repository",
            self._store.update_credential_status,
            item.public_id,
            CredentialStatus.REVOKED,
        )
