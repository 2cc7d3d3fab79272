"""
Outcome hooks: sound, local notification, celebration.

Each hook builds what should happen for a status and hands it to a pluggable
output callable (audio player, notification sender, confetti renderer). The
defaults only log, so the core runs headless; a UI process plugs in real
outputs. Failures are contained by the dispatcher, not here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from guardaio.analysis_engine.models import ResultStatus
from guardaio.guardaio_logging import get_logger

logger = get_logger(__name__)

NOTIFICATION_TITLE = "Guardaio Analysis Complete"
NOTIFICATION_TAG = "analysis-complete"

STATUS_MESSAGES = {
    ResultStatus.SAFE: "✅ Authentic - No manipulation detected",
    ResultStatus.WARNING: "⚠️ Suspicious - Potential manipulation found",
    ResultStatus.DANGER: "🚨 Likely Fake - AI manipulation detected",
}


# -----------------------------------------------------------------------------
# Sound
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Tone:
    """One oscillator tone; delay_sec is the offset from the start of the sequence."""

    frequency: float
    duration_sec: float
    waveform: str = "sine"
    volume: float = 0.3
    delay_sec: float = 0.0


# C major arpeggio then the octave: pleasant ascending chime.
SAFE_TONES = (
    Tone(523.25, 0.3, "sine", 0.25, 0.0),
    Tone(659.25, 0.3, "sine", 0.25, 0.05),
    Tone(783.99, 0.3, "sine", 0.25, 0.10),
    Tone(1046.5, 0.4, "sine", 0.2, 0.15),
)
WARNING_TONES = (
    Tone(440.0, 0.15, "triangle", 0.3, 0.0),
    Tone(349.23, 0.15, "triangle", 0.3, 0.18),
    Tone(440.0, 0.15, "triangle", 0.3, 0.36),
)
DANGER_TONES = (
    Tone(880.0, 0.12, "sawtooth", 0.2, 0.0),
    Tone(659.25, 0.12, "sawtooth", 0.2, 0.12),
    Tone(440.0, 0.12, "sawtooth", 0.2, 0.24),
    Tone(329.63, 0.25, "sawtooth", 0.25, 0.36),
)

OUTCOME_TONES: dict[ResultStatus, tuple[Tone, ...]] = {
    ResultStatus.SAFE: SAFE_TONES,
    ResultStatus.WARNING: WARNING_TONES,
    ResultStatus.DANGER: DANGER_TONES,
}


def _log_tones(tones: tuple[Tone, ...]) -> None:
    logger.debug("sound_played", tones=len(tones), first_hz=tones[0].frequency if tones else None)


class SoundEffects:
    """Plays the outcome sound variant for a status."""

    def __init__(
        self,
        player: Callable[[tuple[Tone, ...]], None] | None = None,
        *,
        enabled: bool = True,
    ) -> None:
        self._player = player or _log_tones
        self.enabled = enabled

    def play_for_outcome(self, status: ResultStatus) -> bool:
        """Return True if a sequence was handed to the player."""
        if not self.enabled:
            return False
        self._player(OUTCOME_TONES[status])
        return True


# -----------------------------------------------------------------------------
# Notification
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Notification:
    title: str
    body: str
    tag: str = NOTIFICATION_TAG


def _log_notification(notification: Notification) -> None:
    logger.info("notification_sent", title=notification.title, body=notification.body)


class Notifier:
    """
    Local "analysis complete" notification.

    permission mirrors a platform permission model: "default", "granted" or
    "denied". Nothing is sent unless enabled and granted.
    """

    def __init__(
        self,
        sender: Callable[[Notification], None] | None = None,
        *,
        enabled: bool = True,
        permission: str = "granted",
    ) -> None:
        self._sender = sender or _log_notification
        self.enabled = enabled
        self.permission = permission

    def build(self, status: ResultStatus, label: str | None = None) -> Notification:
        message = STATUS_MESSAGES[status]
        body = f"{label}: {message}" if label else message
        return Notification(title=NOTIFICATION_TITLE, body=body)

    def notify_analysis_complete(self, status: ResultStatus, label: str | None = None) -> Notification | None:
        if not self.enabled or self.permission != "granted":
            return None
        notification = self.build(status, label)
        self._sender(notification)
        return notification


# -----------------------------------------------------------------------------
# Celebration (positive reinforcement, safe outcomes only)
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ConfettiBurst:
    particle_count: int = 100
    spread: int = 70
    origin_y: float = 0.6
    colors: tuple[str, ...] = field(
        default=("#22c55e", "#10b981", "#34d399", "#6ee7b7", "#a7f3d0")
    )


def _log_confetti(burst: ConfettiBurst) -> None:
    logger.debug("confetti_fired", particle_count=burst.particle_count)


class Celebration:
    """Fires a confetti burst through a renderer."""

    def __init__(
        self,
        renderer: Callable[[ConfettiBurst], Any] | None = None,
        *,
        burst: ConfettiBurst | None = None,
    ) -> None:
        self._renderer = renderer or _log_confetti
        self._burst = burst or ConfettiBurst()

    def fire(self) -> None:
        self._renderer(self._burst)
