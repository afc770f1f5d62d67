"""Recurring job contract."""

from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol, runtime_checkable

from warden.scheduler.context import RunContext


@dataclass(frozen=True)
class JobStatus:
    """Progress of a job's most recent (or in-progress) run."""

    completed: int = 0
    total: int = 0


@runtime_checkable
class Job(Protocol):
    """A unit of recurring work driven by the scheduler.

    ``run`` raises ``JobError`` for run-level failures only. ``next_run_in``
    is advisory: when it raises a ``JobError`` the error's ``next_run_in``
    is still a usable delay.
    """

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    async def run(self, ctx: RunContext | None = None) -> None: ...

    def status(self) -> JobStatus: ...

    async def next_run_in(self) -> timedelta: ...
