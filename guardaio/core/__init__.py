"""
Core utilities: shared exceptions used across the analysis engine,
scheduler, dispatcher and sharing layers.
"""

from guardaio.core.exceptions import (
    AnalysisBackendError,
    BatchAlreadyRunningError,
    FileTooLargeError,
    GuardaioError,
    InvalidTransitionError,
    JobNotFoundError,
    QueueOperationError,
    ShareRefusedError,
)

__all__ = [
    "AnalysisBackendError",
    "BatchAlreadyRunningError",
    "FileTooLargeError",
    "GuardaioError",
    "InvalidTransitionError",
    "JobNotFoundError",
    "QueueOperationError",
    "ShareRefusedError",
]
