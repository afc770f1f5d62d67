"""Recurring job scheduler.

The scheduler:
1. Runs every registered job in its own background loop
2. Asks the job when it wants to run next after each run
3. Stops all loops and cancels in-flight runs on shutdown
"""

import asyncio
from datetime import timedelta

from warden.errors import ErrorKind, JobError
from warden.observability.logging import get_logger
from warden.scheduler.context import RunContext
from warden.scheduler.job import Job, JobStatus

logger = get_logger(__name__)

DEFAULT_RETRY_IN = timedelta(minutes=5)
MIN_DELAY = timedelta(seconds=1)


class Scheduler:
    """Drives registered jobs on the schedule each job asks for.

    A job whose ``next_run_in`` fails is retried after the delay carried on
    the error, or ``retry_in`` when the error has none.
    """

    def __init__(
        self,
        retry_in: timedelta = DEFAULT_RETRY_IN,
        min_delay: timedelta = MIN_DELAY,
    ) -> None:
        """Initialize scheduler.

        Args:
            retry_in: Delay after a failed ``next_run_in`` with no hint
            min_delay: Floor on the delay between two runs of a job
        """
        self._retry_in = retry_in
        self._min_delay = min_delay
        self._jobs: dict[str, Job] = {}
        self._tasks: list[asyncio.Task] = []
        self._ctx = RunContext()
        self._stop = asyncio.Event()
        self._running = False

    @property
    def jobs(self) -> dict[str, Job]:
        return dict(self._jobs)

    @property
    def running(self) -> bool:
        return self._running

    def register(self, job: Job) -> None:
        """Register a job.

        Raises:
            ValueError: If a job with the same name is already registered
        """
        if job.name in self._jobs:
            raise ValueError(f"job {job.name} already registered")
        self._jobs[job.name] = job
        logger.info("job_registered", job=job.name, description=job.description)

    def status(self, name: str) -> JobStatus:
        """Progress of the named job's latest run."""
        return self._get(name).status()

    async def run_once(self, name: str) -> None:
        """Run the named job immediately in the caller's task."""
        await self._get(name).run(self._ctx)

    async def start(self) -> None:
        """Start one background loop per registered job."""
        if self._running:
            logger.warning("scheduler_already_running")
            return

        self._running = True
        self._ctx = RunContext()
        self._stop = asyncio.Event()
        self._tasks = [
            asyncio.create_task(self._run_loop(job), name=f"job:{job.name}")
            for job in self._jobs.values()
        ]

        logger.info("scheduler_started", jobs=sorted(self._jobs))

    async def stop(self) -> None:
        """Stop all job loops.

        Runs in progress see the cancellation before their next item.
        """
        if not self._running:
            return

        self._running = False
        self._ctx.cancel("scheduler stopped")
        self._stop.set()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        logger.info("scheduler_stopped")

    def _get(self, name: str) -> Job:
        try:
            return self._jobs[name]
        except KeyError:
            raise ValueError(f"job {name} not registered") from None

    async def _run_loop(self, job: Job) -> None:
        log = logger.bind(job=job.name)
        while not self._stop.is_set():
            try:
                await job.run(self._ctx)
            except JobError as e:
                if e.kind is ErrorKind.CANCELED:
                    break
                if e.kind is ErrorKind.ALREADY_RUNNING:
                    log.debug("job_run_skipped", reason=e.kind.value)
                else:
                    log.error("job_run_failed", kind=e.kind.value, error=str(e))
            except Exception as e:
                log.error("job_run_failed", kind=ErrorKind.UNKNOWN.value, error=str(e))

            delay = max(await self._next_delay(job, log), self._min_delay)
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=delay.total_seconds())
            except TimeoutError:
                continue

    async def _next_delay(self, job: Job, log) -> timedelta:
        try:
            return await job.next_run_in()
        except JobError as e:
            log.warning("job_next_run_failed", kind=e.kind.value, error=str(e))
            return e.next_run_in if e.next_run_in is not None else self._retry_in
        except Exception as e:
            log.error("job_next_run_failed", kind=ErrorKind.UNKNOWN.value, error=str(e))
            return self._retry_in
