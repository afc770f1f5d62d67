"""Cancellation context for job runs."""

from datetime import UTC, datetime

from warden.errors import ErrorKind, JobError


class Canceled(Exception):
    """The run context was canceled."""


class DeadlineExceeded(Canceled):
    """The run context's deadline passed."""


class RunContext:
    """Carries cancellation into a job run.

    Jobs call ``raise_if_canceled`` before the batch query and before each
    item. Cancellation never interrupts an item already in progress.
    """

    def __init__(self, deadline: datetime | None = None) -> None:
        self._deadline = deadline
        self._cause: Canceled | None = None

    def cancel(self, reason: str = "context canceled") -> None:
        if self._cause is None:
            self._cause = Canceled(reason)

    @property
    def deadline(self) -> datetime | None:
        return self._deadline

    @property
    def cause(self) -> Canceled | None:
        """Why the context is done, or None while it is live."""
        if (
            self._cause is None
            and self._deadline is not None
            and datetime.now(UTC) >= self._deadline
        ):
            self._cause = DeadlineExceeded("context deadline exceeded")
        return self._cause

    @property
    def canceled(self) -> bool:
        return self.cause is not None

    def raise_if_canceled(self, op: str) -> None:
        cause = self.cause
        if cause is not None:
            raise JobError(str(cause), kind=ErrorKind.CANCELED, op=op, cause=cause) from cause
