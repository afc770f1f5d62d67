"""Job error taxonomy.

Every error that leaves a job's ``run`` or ``next_run_in`` is a ``JobError``.
The ``kind`` identifies what went wrong; ``op`` names the component and
operation that raised it and is kept out of the message so that two errors of
the same kind compare the same way regardless of where they surfaced.
"""

from datetime import timedelta
from enum import Enum


class ErrorKind(str, Enum):
    """Classification of job failures."""

    INVALID_PARAMETER = "invalid_parameter"
    ALREADY_RUNNING = "job_already_running"
    CANCELED = "canceled"
    SELECTION = "selection_failed"
    ITEM = "item_failed"
    WRITE_INCONSISTENCY = "write_inconsistency"
    UNKNOWN = "unknown"


class JobError(Exception):
    """Structured error raised by recurring jobs.

    Attributes:
        message: Human readable description
        kind: Error classification
        op: ``component.operation`` that raised the error
        cause: Underlying exception, if any
        next_run_in: Usable scheduling hint when raised from ``next_run_in``
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        op: str | None = None,
        cause: BaseException | None = None,
        next_run_in: timedelta | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.op = op
        self.cause = cause
        self.next_run_in = next_run_in

    def __str__(self) -> str:
        text = self.message
        if self.op:
            text = f"{self.op}: {text}"
        if self.cause is not None:
            text = f"{text}: {self.cause}"
        return text

    def __repr__(self) -> str:
        return f"JobError(kind={self.kind.value!r}, op={self.op!r}, message={self.message!r})"


def wrap(
    err: BaseException,
    op: str,
    message: str,
    kind: ErrorKind = ErrorKind.ITEM,
) -> JobError:
    """Wrap an exception as a ``JobError`` raised from ``op``.

    A ``JobError`` whose kind is not ``ITEM`` keeps its kind so fatal
    classifications are not downgraded when they bubble through an item path.
    """
    if isinstance(err, JobError) and err.kind is not ErrorKind.ITEM:
        kind = err.kind
    return JobError(message, kind=kind, op=op, cause=err)


def is_kind(err: BaseException, kind: ErrorKind) -> bool:
    """Check whether ``err`` is a ``JobError`` of the given kind."""
    return isinstance(err, JobError) and err.kind is kind
