"""Tests for job metrics."""

from unittest.mock import AsyncMock

import pytest
from prometheus_client import REGISTRY

from warden.db.errors import ConnectionError
from warden.errors import JobError
from warden.kms import StaticKeyProvider
from warden.vault.jobs import TOKEN_REVOCATION_JOB_NAME, TokenRevocationJob
from warden.vault.stores import InMemoryVaultStore


def sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestJobRunMetrics:
    """Tests for metrics recorded around a job run."""

    @pytest.mark.asyncio
    async def test_successful_run(self) -> None:
        job = TokenRevocationJob(InMemoryVaultStore(), StaticKeyProvider())
        before = sample(
            "warden_job_runs_total", job=TOKEN_REVOCATION_JOB_NAME, outcome="success"
        )

        await job.run()

        after = sample("warden_job_runs_total", job=TOKEN_REVOCATION_JOB_NAME, outcome="success")
        assert after == before + 1
        assert sample("warden_job_batch_size", job=TOKEN_REVOCATION_JOB_NAME) == 0
        assert sample(
            "warden_job_run_duration_seconds_count", job=TOKEN_REVOCATION_JOB_NAME
        ) >= 1

    @pytest.mark.asyncio
    async def test_failed_run_labelled_by_kind(self) -> None:
        """A run that fails records the error kind as its outcome."""
        store = InMemoryVaultStore()
        store.list_revocable_tokens = AsyncMock(side_effect=ConnectionError("down"))
        job = TokenRevocationJob(store, StaticKeyProvider())
        labels = {"job": TOKEN_REVOCATION_JOB_NAME, "outcome": "selection_failed"}
        before = sample("warden_job_runs_total", **labels)

        with pytest.raises(JobError):
            await job.run()

        assert sample("warden_job_runs_total", **labels) == before + 1

    @pytest.mark.asyncio
    async def test_next_run_gauge(self) -> None:
        job = TokenRevocationJob(InMemoryVaultStore(), StaticKeyProvider())

        next_run = await job.next_run_in()

        assert sample("warden_job_next_run_seconds", job=TOKEN_REVOCATION_JOB_NAME) == (
            next_run.total_seconds()
        )
