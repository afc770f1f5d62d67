"""Recurring job contract and scheduler."""

from warden.scheduler.context import Canceled, DeadlineExceeded, RunContext
from warden.scheduler.job import Job, JobStatus
from warden.scheduler.scheduler import Scheduler

__all__ = [
    "Canceled",
    "DeadlineExceeded",
    "Job",
    "JobStatus",
    "RunContext",
    "Scheduler",
]
