"""
Side-effect dispatch: persistence, sound, notification, celebration, toasts.

Invoked by the analysis lifecycle only at terminal transitions; all hooks are
best-effort and never change a job's outcome.
"""

from guardaio.dispatch.effects import (
    Celebration,
    ConfettiBurst,
    Notification,
    Notifier,
    SoundEffects,
    Tone,
)
from guardaio.dispatch.engine import (
    AnalysisRecorder,
    DefaultDispatcher,
    NullDispatcher,
    SideEffectDispatcher,
    UserMessage,
)

__all__ = [
    "AnalysisRecorder",
    "Celebration",
    "ConfettiBurst",
    "DefaultDispatcher",
    "Notification",
    "Notifier",
    "NullDispatcher",
    "SideEffectDispatcher",
    "SoundEffects",
    "Tone",
    "UserMessage",
]
