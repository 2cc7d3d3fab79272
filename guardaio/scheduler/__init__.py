# Batch scheduling: ordered queue, strictly sequential run, one announcement per run.

from guardaio.scheduler.engine import (
    BatchScheduler,
    BatchSummary,
    EnqueueReport,
    RejectedFile,
    aggregate_status,
)

__all__ = [
    "BatchScheduler",
    "BatchSummary",
    "EnqueueReport",
    "RejectedFile",
    "aggregate_status",
]
