"""
Side-effect dispatcher: the narrow interface the lifecycle calls at terminal transitions.

The controller and batch scheduler only know SideEffectDispatcher. They call
record() once per completed job, announce() once per single completion or
once per batch run, fail() once per failed job and reject() once per
oversized file. DefaultDispatcher wires those to the history store, sound,
notification, celebration and toast hooks; every hook is best-effort and a
failure is logged, never raised. NullDispatcher makes all of them no-ops.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from guardaio.analysis_engine.models import AnalysisJob, AnalysisResult, FileMeta, ResultStatus
from guardaio.dispatch.effects import (
    Celebration,
    ConfettiBurst,
    Notification,
    Notifier,
    SoundEffects,
    Tone,
)
from guardaio.guardaio_logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class UserMessage:
    """Toast shown to the user."""

    title: str
    description: str | None = None
    variant: str = "default"
    """"default" or "destructive"."""


class AnalysisRecorder(Protocol):
    """Persistence interface: append a finished analysis, return its record id or None."""

    def record_analysis(
        self,
        meta: FileMeta,
        result: AnalysisResult,
        user_id: str | None = None,
    ) -> str | None: ...


class SideEffectDispatcher(ABC):
    """Side effects fired by the lifecycle at terminal transitions."""

    @abstractmethod
    def record(self, job: AnalysisJob) -> str | None:
        """Persist a completed job; return the record id or None."""
        ...

    @abstractmethod
    def announce(self, status: ResultStatus, label: str | None = None) -> None:
        """Outcome sound, confetti when safe, local notification."""
        ...

    @abstractmethod
    def fail(self, job: AnalysisJob, message: str) -> None:
        """Report a failed analysis to the user."""
        ...

    @abstractmethod
    def reject(self, meta: FileMeta, message: str) -> None:
        """Report a file rejected before analysis (e.g. too large)."""
        ...


class NullDispatcher(SideEffectDispatcher):
    """No side effects at all."""

    def record(self, job: AnalysisJob) -> str | None:
        return None

    def announce(self, status: ResultStatus, label: str | None = None) -> None:
        return None

    def fail(self, job: AnalysisJob, message: str) -> None:
        return None

    def reject(self, meta: FileMeta, message: str) -> None:
        return None


def _best_effort(hook: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call fn; log and return None on any exception."""
    try:
        return fn(*args, **kwargs)
    except Exception as e:
        logger.warning("side_effect_failed", hook=hook, error=str(e))
        return None


class DefaultDispatcher(SideEffectDispatcher):
    """
    Dispatcher backed by concrete hooks.

    Args:
        recorder: History store; results are persisted only when user_id is set.
        user_id: Signed-in user, or None for anonymous use (nothing persisted).
        sounds / notifier / celebration: Outcome hooks; None disables that hook.
        toast: Callable receiving UserMessage for completions, failures and rejections.
    """

    def __init__(
        self,
        *,
        recorder: AnalysisRecorder | None = None,
        user_id: str | None = None,
        sounds: SoundEffects | None = None,
        notifier: Notifier | None = None,
        celebration: Celebration | None = None,
        toast: Callable[[UserMessage], None] | None = None,
    ) -> None:
        self.recorder = recorder
        self.user_id = user_id
        self.sounds = sounds
        self.notifier = notifier
        self.celebration = celebration
        self.toast = toast

    @classmethod
    def from_settings(
        cls,
        settings: Any,
        *,
        recorder: AnalysisRecorder | None = None,
        user_id: str | None = None,
        player: Callable[[tuple[Tone, ...]], None] | None = None,
        sender: Callable[[Notification], None] | None = None,
        renderer: Callable[[ConfettiBurst], Any] | None = None,
        toast: Callable[[UserMessage], None] | None = None,
    ) -> "DefaultDispatcher":
        """Hooks enabled per Settings.sounds_enabled / notifications_enabled."""
        return cls(
            recorder=recorder,
            user_id=user_id,
            sounds=SoundEffects(player, enabled=settings.sounds_enabled),
            notifier=Notifier(sender, enabled=settings.notifications_enabled),
            celebration=Celebration(renderer),
            toast=toast,
        )

    def record(self, job: AnalysisJob) -> str | None:
        if job.result is None:
            return None
        if self.recorder is None or not self.user_id:
            logger.debug("history_skip_anonymous", job_id=job.id)
            return None
        record_id = _best_effort(
            "persist", self.recorder.record_analysis, job.file_meta, job.result, self.user_id
        )
        if record_id:
            logger.info("history_recorded", job_id=job.id, record_id=record_id)
        return record_id

    def announce(self, status: ResultStatus, label: str | None = None) -> None:
        if self.sounds is not None:
            _best_effort("sound", self.sounds.play_for_outcome, status)
        if status is ResultStatus.SAFE and self.celebration is not None:
            _best_effort("celebration", self.celebration.fire)
        if self.notifier is not None:
            _best_effort("notification", self.notifier.notify_analysis_complete, status, label)
        self._toast(UserMessage(title="Analysis complete", description=label))

    def fail(self, job: AnalysisJob, message: str) -> None:
        self._toast(UserMessage(title="Analysis failed", description=message, variant="destructive"))

    def reject(self, meta: FileMeta, message: str) -> None:
        self._toast(UserMessage(title="File too large", description=message, variant="destructive"))

    def _toast(self, message: UserMessage) -> None:
        if self.toast is not None:
            _best_effort("toast", self.toast, message)
