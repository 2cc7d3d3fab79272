"""
Batch scheduler: an ordered queue of jobs analyzed strictly one at a time.

enqueue() filters oversized files and appends the rest as pending jobs;
remove() works only on pending jobs; clear() only while nothing is analyzing.
run() walks the queue in insertion order and runs each still-pending job
through the same JobExecution as single mode, starting job i+1 only after
job i is terminal. Each completed job is persisted as it finishes; the batch
announcement fires once per run at the end.
"""

from __future__ import annotations

import json
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from guardaio.analysis_engine.controller import (
    DEFAULT_MAX_FILE_SIZE_BYTES,
    DEFAULT_SENSITIVITY,
    JobCallback,
    JobExecution,
    check_file_size,
)
from guardaio.analysis_engine.models import (
    AnalysisJob,
    FileMeta,
    LifecycleState,
    ResultStatus,
    SourceFile,
    validate_sensitivity,
)
from guardaio.analysis_engine.progress import ProgressConfig
from guardaio.backend_client.client import AnalysisBackend, HttpAnalysisBackend
from guardaio.core.exceptions import (
    BatchAlreadyRunningError,
    FileTooLargeError,
    JobNotFoundError,
    QueueOperationError,
)
from guardaio.dispatch.engine import NullDispatcher, SideEffectDispatcher
from guardaio.guardaio_logging import get_logger

logger = get_logger(__name__)

# Errored jobs roll up as warning.
ERROR_AGGREGATE_STATUS = ResultStatus.WARNING


@dataclass(frozen=True)
class RejectedFile:
    meta: FileMeta
    reason: str


@dataclass
class EnqueueReport:
    accepted: list[AnalysisJob] = field(default_factory=list)
    rejected: list[RejectedFile] = field(default_factory=list)


@dataclass
class BatchSummary:
    """Outcome of one run() call."""

    total: int = 0
    completed: int = 0
    failed: int = 0
    aggregate_status: ResultStatus | None = None
    """None when the run had nothing to analyze."""
    job_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "completed": self.completed,
            "failed": self.failed,
            "aggregate_status": self.aggregate_status.value if self.aggregate_status else None,
            "job_ids": list(self.job_ids),
        }


def aggregate_status(jobs: Iterable[AnalysisJob]) -> ResultStatus:
    """
    Worst-of rollup: danger > warning > safe.

    A job that ended in error counts as warning; an empty input is safe.
    """
    worst = ResultStatus.SAFE
    for job in jobs:
        if job.state is LifecycleState.COMPLETE and job.result is not None:
            status = job.result.status
        elif job.state is LifecycleState.ERROR:
            status = ERROR_AGGREGATE_STATUS
        else:
            continue
        if status.severity > worst.severity:
            worst = status
    return worst


def batch_label(summary: BatchSummary) -> str:
    label = f"Batch of {summary.total} files: {summary.completed} analyzed"
    if summary.failed:
        label += f", {summary.failed} failed"
    return label


class BatchScheduler:
    """
    Holds the BatchQueue and runs it sequentially.

    Args:
        backend: Analysis backend shared by all jobs.
        dispatcher: Side effects; per-job record(), per-run announce().
        max_file_size: Byte ceiling applied in enqueue().
        progress_config: Simulator timing for every job.
        on_change: Callback(job) after every job state or progress change.
        rng: Random source for the simulators.
        default_sensitivity: Used when run() is called without one.
    """

    def __init__(
        self,
        backend: AnalysisBackend,
        dispatcher: SideEffectDispatcher | None = None,
        *,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE_BYTES,
        progress_config: ProgressConfig | None = None,
        on_change: JobCallback | None = None,
        rng: random.Random | None = None,
        default_sensitivity: int = DEFAULT_SENSITIVITY,
    ) -> None:
        self._backend = backend
        self._dispatcher = dispatcher or NullDispatcher()
        self._max_file_size = max_file_size
        self._default_sensitivity = validate_sensitivity(default_sensitivity)
        self._progress_config = progress_config
        self._on_change = on_change
        self._rng = rng
        self._jobs: dict[str, AnalysisJob] = {}
        self._running = False
        self._run_total = 0
        self._run_done = 0

    @classmethod
    def from_settings(
        cls,
        settings: Any,
        dispatcher: SideEffectDispatcher | None = None,
        *,
        backend: AnalysisBackend | None = None,
        **kwargs: Any,
    ) -> "BatchScheduler":
        """Scheduler with size ceiling and default sensitivity from Settings; HTTP backend unless given."""
        return cls(
            backend or HttpAnalysisBackend.from_settings(settings),
            dispatcher,
            max_file_size=settings.max_file_size_bytes,
            default_sensitivity=settings.default_sensitivity,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Queue inspection
    # ------------------------------------------------------------------

    @property
    def jobs(self) -> list[AnalysisJob]:
        """Queue snapshot in insertion order."""
        return list(self._jobs.values())

    @property
    def running(self) -> bool:
        return self._running

    def get(self, job_id: str) -> AnalysisJob:
        try:
            return self._jobs[job_id]
        except KeyError:
            raise JobNotFoundError(f"no job with id {job_id}") from None

    def count(self, state: LifecycleState) -> int:
        return sum(1 for job in self._jobs.values() if job.state is state)

    @property
    def analyzing_job(self) -> AnalysisJob | None:
        for job in self._jobs.values():
            if job.state is LifecycleState.ANALYZING:
                return job
        return None

    @property
    def overall_progress(self) -> float:
        """Completed share of the current (or last) run, 0-100."""
        if self._run_total == 0:
            return 0.0
        return self._run_done / self._run_total * 100.0

    @property
    def position(self) -> tuple[int, int]:
        """(N, M) for an "analyzing N of M" indicator."""
        if self._running and self._run_done < self._run_total:
            return self._run_done + 1, self._run_total
        return self._run_done, self._run_total

    # ------------------------------------------------------------------
    # Queue mutation
    # ------------------------------------------------------------------

    def enqueue(self, files: Iterable[SourceFile]) -> EnqueueReport:
        """Append files as pending jobs; oversized files are rejected and reported."""
        report = EnqueueReport()
        for source in files:
            try:
                check_file_size(source, self._max_file_size)
            except FileTooLargeError as e:
                rejected = RejectedFile(meta=source.meta(), reason=str(e))
                report.rejected.append(rejected)
                logger.warning("batch_file_rejected", file_name=source.name, size=source.size, limit=e.limit)
                try:
                    self._dispatcher.reject(rejected.meta, rejected.reason)
                except Exception as err:
                    logger.warning("dispatch_failed", hook="reject", error=str(err))
                continue
            job = AnalysisJob(source_file=source, state=LifecycleState.PENDING)
            self._jobs[job.id] = job
            report.accepted.append(job)
        logger.info(
            "batch_enqueued",
            accepted=len(report.accepted),
            rejected=len(report.rejected),
            queue_size=len(self._jobs),
        )
        return report

    def remove(self, job_id: str) -> AnalysisJob:
        """Remove a pending job. Jobs in any other state cannot be removed."""
        job = self.get(job_id)
        if job.state is not LifecycleState.PENDING:
            raise QueueOperationError(f"job {job_id} is {job.state.value}; only pending jobs can be removed")
        del self._jobs[job_id]
        logger.info("batch_job_removed", job_id=job_id)
        return job

    def clear(self) -> None:
        """Empty the queue; refused while a job is analyzing."""
        active = self.analyzing_job
        if active is not None:
            raise QueueOperationError(f"cannot clear the queue while job {active.id} is analyzing")
        removed = len(self._jobs)
        self._jobs.clear()
        self._run_total = 0
        self._run_done = 0
        logger.info("batch_cleared", removed=removed)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run(self, sensitivity: int | None = None) -> BatchSummary:
        """
        Analyze every pending job, one at a time, in insertion order.

        Jobs removed before they are reached are skipped. The aggregate is
        announced once, after the last job settles; a run with nothing pending
        announces nothing.
        """
        sensitivity = validate_sensitivity(self._default_sensitivity if sensitivity is None else sensitivity)
        if self._running:
            raise BatchAlreadyRunningError("a batch run is already in progress")
        pending = [job for job in self._jobs.values() if job.state is LifecycleState.PENDING]
        summary = BatchSummary(total=len(pending))
        if not pending:
            logger.info("batch_run_nothing_pending", queue_size=len(self._jobs))
            return summary

        self._running = True
        self._run_total = len(pending)
        self._run_done = 0
        logger.info("batch_run_started", total=summary.total, sensitivity=sensitivity)
        processed: list[AnalysisJob] = []
        try:
            for job in pending:
                if self._jobs.get(job.id) is not job or job.state is not LifecycleState.PENDING:
                    logger.debug("batch_job_skipped", job_id=job.id, state=job.state.value)
                    self._run_done += 1
                    continue
                await self._run_one(job, sensitivity)
                self._run_done += 1
                summary.job_ids.append(job.id)
                if job.state is LifecycleState.COMPLETE:
                    summary.completed += 1
                    processed.append(job)
                elif job.state is LifecycleState.ERROR:
                    summary.failed += 1
                    processed.append(job)
                logger.info(
                    "batch_progress",
                    done=self._run_done,
                    total=self._run_total,
                    overall_progress=round(self.overall_progress, 1),
                )
        finally:
            self._running = False

        if not processed:
            logger.info("batch_run_nothing_processed", total=summary.total)
            return summary
        summary.aggregate_status = aggregate_status(processed)
        logger.info(
            "batch_run_complete",
            completed=summary.completed,
            failed=summary.failed,
            aggregate_status=summary.aggregate_status.value,
        )
        try:
            self._dispatcher.announce(summary.aggregate_status, batch_label(summary))
        except Exception as e:
            logger.warning("dispatch_failed", hook="announce", error=str(e))
        return summary

    async def _run_one(self, job: AnalysisJob, sensitivity: int) -> None:
        execution = JobExecution(
            job,
            self._backend,
            self._dispatcher,
            progress_config=self._progress_config,
            rng=self._rng,
            announce=False,
            on_change=self._on_change,
            is_current=lambda: self._jobs.get(job.id) is job,
        )
        await execution.run(sensitivity)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_results(self) -> list[dict[str, Any]]:
        """Completed jobs as plain dicts, in queue order."""
        rows: list[dict[str, Any]] = []
        for job in self._jobs.values():
            if job.state is not LifecycleState.COMPLETE or job.result is None:
                continue
            rows.append(
                {
                    **job.file_meta.to_dict(),
                    "status": job.result.status.value,
                    "confidence": job.result.confidence,
                    "findings": list(job.result.findings),
                }
            )
        return rows

    def export_json(self, path: str | Path) -> Path:
        """Write export_results() as pretty-printed JSON; returns the path."""
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(self.export_results(), indent=2), encoding="utf-8")
        logger.info("batch_exported", path=str(out))
        return out
