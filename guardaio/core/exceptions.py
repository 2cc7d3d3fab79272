"""
Application-level exceptions.

Only FileTooLargeError and AnalysisBackendError change the outcome of a job
and surface to the user; the others signal misuse of the lifecycle or queue.
"""

from __future__ import annotations

from typing import Any


class GuardaioError(Exception):
    """Base class for all Guardaio errors."""


class FileTooLargeError(GuardaioError):
    """A file exceeded the size ceiling and was rejected before any network call."""

    def __init__(self, file_name: str, size: int, limit: int) -> None:
        self.file_name = file_name
        self.size = size
        self.limit = limit
        super().__init__(
            f"{file_name} is too large ({size} bytes); the limit is {limit} bytes"
        )


class AnalysisBackendError(GuardaioError):
    """The analysis call failed or returned an embedded error field."""

    def __init__(self, message: str, *, status_code: int | None = None, payload: Any = None) -> None:
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)


class InvalidTransitionError(GuardaioError):
    """A lifecycle transition not allowed by the state table was requested."""

    def __init__(self, job_id: str, current: str, requested: str) -> None:
        self.job_id = job_id
        self.current = current
        self.requested = requested
        super().__init__(f"job {job_id}: cannot move from {current} to {requested}")


class QueueOperationError(GuardaioError):
    """A batch queue operation is not permitted in the current state."""


class JobNotFoundError(QueueOperationError):
    """No job with the given id is in the queue."""


class BatchAlreadyRunningError(QueueOperationError):
    """run() was called while a previous run is still in progress."""


class ShareRefusedError(GuardaioError):
    """Sharing was refused locally (no saved record or no signed-in user)."""
