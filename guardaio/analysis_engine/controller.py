"""
Single-item analysis controller.

Drives one file through idle -> previewing -> analyzing -> complete | error,
with "-> idle" reachable from any state via clear(). Two async signals race
while analyzing: the progress simulator and the real backend call. The real
result always wins: it stops the simulator and force-sets progress 100 and
the last stage. Every job mutation goes through AnalysisJob.transition(),
and side effects are dispatched only at terminal transitions, exactly once.

JobExecution is the lifecycle of one analyzing run; the batch scheduler
reuses it so single and batch mode share the same semantics.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Mapping
from typing import Any, Callable

from guardaio.analysis_engine.models import (
    AnalysisJob,
    LifecycleState,
    SourceFile,
    validate_sensitivity,
)
from guardaio.analysis_engine.normalizer import normalize
from guardaio.analysis_engine.preview import PreviewFactory, create_preview
from guardaio.analysis_engine.progress import COMPLETE_PROGRESS, ProgressConfig, ProgressSimulator
from guardaio.backend_client.client import AnalysisBackend, HttpAnalysisBackend, encode_for_upload
from guardaio.core.exceptions import AnalysisBackendError, FileTooLargeError, InvalidTransitionError
from guardaio.dispatch.engine import NullDispatcher, SideEffectDispatcher
from guardaio.guardaio_logging import bind_job, get_logger

logger = get_logger(__name__)

DEFAULT_MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024
DEFAULT_SENSITIVITY = 50
GENERIC_FAILURE_MESSAGE = "Analysis failed"

JobCallback = Callable[[AnalysisJob], None]


def check_file_size(source: SourceFile, max_file_size: int) -> None:
    """Raise FileTooLargeError when the file exceeds the ceiling."""
    if source.size > max_file_size:
        raise FileTooLargeError(source.name, source.size, max_file_size)


def failure_message(exc: BaseException) -> str:
    """User-facing text for a failed analysis."""
    if isinstance(exc, Exception):
        text = str(exc).strip()
        if text:
            return text
    return GENERIC_FAILURE_MESSAGE


def raise_for_embedded_error(raw: Any) -> None:
    """A response carrying a truthy "error" field counts as a backend failure."""
    if isinstance(raw, Mapping) and raw.get("error"):
        raise AnalysisBackendError(str(raw["error"]), payload=dict(raw))


def release_preview(job: AnalysisJob) -> None:
    """Release the job's preview handle, if any. Never raises."""
    preview = job.preview
    job.preview = None
    if preview is None:
        return
    try:
        preview.release()
    except Exception as e:
        logger.warning("preview_release_failed", job_id=job.id, error=str(e))


def _notify(on_change: JobCallback | None, job: AnalysisJob) -> None:
    if on_change is None:
        return
    try:
        on_change(job)
    except Exception as e:
        logger.warning("job_callback_failed", job_id=job.id, error=str(e))


def _dispatch(hook: str, fn: Callable[..., Any], *args: Any) -> Any:
    try:
        return fn(*args)
    except Exception as e:
        logger.warning("dispatch_failed", hook=hook, error=str(e))
        return None


class JobExecution:
    """
    One analyzing run of a job: simulator + backend call + settle.

    is_current is consulted after the backend call and on every tick; when it
    returns False the job was cleared or replaced and the late result is
    dropped with no side effects.
    """

    def __init__(
        self,
        job: AnalysisJob,
        backend: AnalysisBackend,
        dispatcher: SideEffectDispatcher,
        *,
        progress_config: ProgressConfig | None = None,
        rng: random.Random | None = None,
        announce: bool = True,
        on_change: JobCallback | None = None,
        is_current: Callable[[], bool] | None = None,
    ) -> None:
        self.job = job
        self._backend = backend
        self._dispatcher = dispatcher
        self._announce = announce
        self._on_change = on_change
        self._is_current = is_current or (lambda: True)
        self.simulator = ProgressSimulator(progress_config, on_update=self._on_tick, rng=rng)

    def _live(self) -> bool:
        return self.job.state is LifecycleState.ANALYZING and self._is_current()

    def _on_tick(self, progress: float, stage_index: int) -> None:
        if not self._live():
            return
        self.job.progress = progress
        self.job.stage_index = stage_index
        _notify(self._on_change, self.job)

    def abandon(self) -> None:
        """Stop ticking; an in-flight backend call finishes and is then dropped."""
        self.simulator.stop()

    async def run(self, sensitivity: int) -> AnalysisJob:
        job = self.job
        level = validate_sensitivity(sensitivity)
        log = bind_job(job.id)
        job.transition(LifecycleState.ANALYZING)
        job.progress = 0.0
        job.stage_index = 0
        job.result = None
        job.error = None
        _notify(self._on_change, job)
        log.info(
            "analysis_started",
            file_name=job.source_file.name,
            file_type=job.source_file.mime_type,
            file_size=job.source_file.size,
            sensitivity=level,
        )
        self.simulator.start()
        try:
            try:
                file_base64 = await asyncio.to_thread(encode_for_upload, job.source_file)
                raw = await self._backend.analyze(
                    job.source_file.name,
                    job.source_file.mime_type,
                    file_base64,
                    level,
                )
                raise_for_embedded_error(raw)
            finally:
                self.simulator.stop()
        except asyncio.CancelledError:
            # Cancelled mid-flight: settle to error without side effects.
            if self._live():
                self._settle_error(GENERIC_FAILURE_MESSAGE, dispatch=False)
                log.warning("analysis_cancelled")
            raise
        except Exception as exc:
            if not self._live():
                log.info("analysis_failure_dropped", error=str(exc))
                return job
            self._settle_error(failure_message(exc))
            log.warning("analysis_failed", error=job.error, exc_type=type(exc).__name__)
            return job

        if not self._live():
            log.info("analysis_result_dropped", state=job.state.value)
            return job
        self._settle_complete(raw)
        return job

    def _settle_complete(self, raw: Any) -> None:
        job = self.job
        result = normalize(raw)
        self.simulator.complete()
        job.result = result
        job.progress = COMPLETE_PROGRESS
        job.stage_index = self.simulator.config.last_stage_index
        job.transition(LifecycleState.COMPLETE)
        bind_job(job.id).info(
            "analysis_complete",
            status=result.status.value,
            confidence=result.confidence,
            findings=len(result.findings),
        )
        _notify(self._on_change, job)
        job.record_id = _dispatch("record", self._dispatcher.record, job)
        if self._announce:
            _dispatch("announce", self._dispatcher.announce, result.status, job.source_file.name)

    def _settle_error(self, message: str, *, dispatch: bool = True) -> None:
        job = self.job
        self.simulator.reset()
        job.error = message
        job.progress = 0.0
        job.stage_index = 0
        release_preview(job)
        job.transition(LifecycleState.ERROR)
        _notify(self._on_change, job)
        if dispatch:
            _dispatch("fail", self._dispatcher.fail, job, message)


class AnalysisController:
    """
    Owns the single active job in single-file mode.

    Args:
        backend: Analysis backend (see backend_client.AnalysisBackend).
        dispatcher: Side effects at terminal transitions; NullDispatcher if None.
        max_file_size: Byte ceiling; larger files are rejected before a job exists.
        progress_config: Simulator timing; defaults to 0.4 s ticks / 2 s stages.
        preview_factory: Creates preview handles; failures are swallowed.
        announce: Fire sound/notification/confetti on completion.
        on_change: Callback(job) after every state or progress change.
        rng: Random source for the simulator.
        default_sensitivity: Used when analyze() is called without one.
    """

    def __init__(
        self,
        backend: AnalysisBackend,
        dispatcher: SideEffectDispatcher | None = None,
        *,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE_BYTES,
        progress_config: ProgressConfig | None = None,
        preview_factory: PreviewFactory | None = create_preview,
        announce: bool = True,
        on_change: JobCallback | None = None,
        rng: random.Random | None = None,
        default_sensitivity: int = DEFAULT_SENSITIVITY,
    ) -> None:
        self._backend = backend
        self._dispatcher = dispatcher or NullDispatcher()
        self._max_file_size = max_file_size
        self._default_sensitivity = validate_sensitivity(default_sensitivity)
        self._progress_config = progress_config
        self._preview_factory = preview_factory
        self._announce = announce
        self._on_change = on_change
        self._rng = rng
        self._job: AnalysisJob | None = None
        self._execution: JobExecution | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Any,
        dispatcher: SideEffectDispatcher | None = None,
        *,
        backend: AnalysisBackend | None = None,
        **kwargs: Any,
    ) -> "AnalysisController":
        """Controller with size ceiling and default sensitivity from Settings; HTTP backend unless given."""
        return cls(
            backend or HttpAnalysisBackend.from_settings(settings),
            dispatcher,
            max_file_size=settings.max_file_size_bytes,
            default_sensitivity=settings.default_sensitivity,
            **kwargs,
        )

    @property
    def job(self) -> AnalysisJob | None:
        return self._job

    @property
    def state(self) -> LifecycleState:
        return self._job.state if self._job is not None else LifecycleState.IDLE

    def select(self, source: SourceFile) -> AnalysisJob:
        """
        Accept a file: idle -> previewing. Replaces (clears) any current job.

        Raises FileTooLargeError, after reporting it, when the file is over the
        ceiling; the current job is left untouched in that case.
        """
        try:
            check_file_size(source, self._max_file_size)
        except FileTooLargeError as e:
            logger.warning("file_rejected_too_large", file_name=source.name, size=source.size, limit=e.limit)
            _dispatch("reject", self._dispatcher.reject, source.meta(), str(e))
            raise
        self.clear()
        job = AnalysisJob(source_file=source)
        job.transition(LifecycleState.PREVIEWING)
        job.preview = self._make_preview(job)
        self._job = job
        logger.info("file_selected", job_id=job.id, file_name=source.name, has_preview=job.preview is not None)
        _notify(self._on_change, job)
        return job

    @property
    def default_sensitivity(self) -> int:
        return self._default_sensitivity

    async def analyze(self, sensitivity: int | None = None) -> AnalysisJob:
        """previewing -> analyzing -> complete | error. Returns the job."""
        if sensitivity is None:
            sensitivity = self._default_sensitivity
        job = self._job
        if job is None:
            raise InvalidTransitionError("-", LifecycleState.IDLE.value, LifecycleState.ANALYZING.value)
        execution = JobExecution(
            job,
            self._backend,
            self._dispatcher,
            progress_config=self._progress_config,
            rng=self._rng,
            announce=self._announce,
            on_change=self._on_change,
            is_current=lambda: self._job is job,
        )
        self._execution = execution
        try:
            return await execution.run(sensitivity)
        finally:
            if self._execution is execution:
                self._execution = None

    async def submit(self, source: SourceFile, sensitivity: int | None = None) -> AnalysisJob:
        """select() then analyze()."""
        self.select(source)
        return await self.analyze(sensitivity)

    def clear(self) -> None:
        """Any state -> idle: stop ticks, release preview, reset progress, forget the job."""
        job = self._job
        if self._execution is not None:
            self._execution.abandon()
            self._execution = None
        if job is None:
            return
        release_preview(job)
        job.progress = 0.0
        job.stage_index = 0
        job.transition(LifecycleState.IDLE)
        self._job = None
        logger.info("job_cleared", job_id=job.id)
        _notify(self._on_change, job)

    def _make_preview(self, job: AnalysisJob) -> Any:
        if self._preview_factory is None:
            return None
        try:
            return self._preview_factory(job.source_file)
        except Exception as e:
            logger.warning("preview_create_failed", job_id=job.id, error=str(e))
            return None
