"""
Domain models for the analysis engine.

Source files, normalized results, and the analysis job with its lifecycle
state table. Jobs change state only through AnalysisJob.transition().
"""

from __future__ import annotations

import mimetypes
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from guardaio.core.exceptions import InvalidTransitionError

MIN_SENSITIVITY = 0
MAX_SENSITIVITY = 100


class ResultStatus(str, Enum):
    """Verdict of one analysis."""

    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"

    @property
    def severity(self) -> int:
        return _STATUS_SEVERITY[self]

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_SEVERITY = {
    ResultStatus.SAFE: 0,
    ResultStatus.WARNING: 1,
    ResultStatus.DANGER: 2,
}

_STATUS_LABELS = {
    ResultStatus.SAFE: "Authentic",
    ResultStatus.WARNING: "Suspicious",
    ResultStatus.DANGER: "Likely Fake",
}


class LifecycleState(str, Enum):
    """Lifecycle of an analysis job (single mode uses previewing, batch mode pending)."""

    IDLE = "idle"
    PREVIEWING = "previewing"
    PENDING = "pending"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({LifecycleState.COMPLETE, LifecycleState.ERROR})

# Moves other than "-> idle" (explicit clear, always allowed).
ALLOWED_TRANSITIONS: dict[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.IDLE: frozenset({LifecycleState.PREVIEWING}),
    LifecycleState.PREVIEWING: frozenset({LifecycleState.ANALYZING}),
    LifecycleState.PENDING: frozenset({LifecycleState.ANALYZING}),
    LifecycleState.ANALYZING: frozenset({LifecycleState.COMPLETE, LifecycleState.ERROR}),
    LifecycleState.COMPLETE: frozenset(),
    LifecycleState.ERROR: frozenset(),
}


def validate_sensitivity(value: Any) -> int:
    """
    Return value as a sensitivity level, or raise ValueError.

    Accepts integers (and integral floats) in [0, 100]; bools are rejected.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"sensitivity must be an integer, got {type(value).__name__}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"sensitivity must be an integer, got {value}")
    level = int(value)
    if not MIN_SENSITIVITY <= level <= MAX_SENSITIVITY:
        raise ValueError(f"sensitivity must be between {MIN_SENSITIVITY} and {MAX_SENSITIVITY}, got {level}")
    return level


@dataclass(frozen=True)
class FileMeta:
    """Name, mime type and size of a source file (what gets persisted)."""

    name: str
    mime_type: str
    size: int

    def to_dict(self) -> dict[str, Any]:
        return {"file_name": self.name, "file_type": self.mime_type, "file_size": self.size}


@dataclass(frozen=True)
class SourceFile:
    """A user-selected file: raw bytes plus metadata."""

    name: str
    mime_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def is_video(self) -> bool:
        return self.mime_type.startswith("video/")

    @property
    def is_audio(self) -> bool:
        return self.mime_type.startswith("audio/")

    def meta(self) -> FileMeta:
        return FileMeta(name=self.name, mime_type=self.mime_type, size=self.size)

    @classmethod
    def from_path(cls, path: str | Path, mime_type: str | None = None) -> "SourceFile":
        """Read a file from disk; mime type is guessed from the extension when not given."""
        p = Path(path)
        guessed, _ = mimetypes.guess_type(p.name)
        return cls(
            name=p.name,
            mime_type=mime_type or guessed or "application/octet-stream",
            data=p.read_bytes(),
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Canonical, bounded analysis result (always produced by normalizer.normalize)."""

    status: ResultStatus
    confidence: int
    """Integer in [0, 100]."""
    findings: list[str]
    """Non-empty list of human-readable findings."""
    heatmap_regions: list[Any] | None = None
    """Region descriptors passed through from the backend, if any."""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "status": self.status.value,
            "confidence": self.confidence,
            "findings": list(self.findings),
        }
        if self.heatmap_regions is not None:
            out["heatmap_regions"] = list(self.heatmap_regions)
        return out


@dataclass
class AnalysisJob:
    """
    One file's analysis lifecycle.

    Owned and mutated by exactly one controller or scheduler. progress is a
    float in [0, 100]; stage_index indexes the simulator's stage list.
    """

    source_file: SourceFile
    state: LifecycleState = LifecycleState.IDLE
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    progress: float = 0.0
    stage_index: int = 0
    result: AnalysisResult | None = None
    error: str | None = None
    preview: Any = None
    """PreviewHandle for image/video files; None when absent or released."""
    record_id: str | None = None
    """History record id once persisted; required for sharing."""

    @property
    def file_meta(self) -> FileMeta:
        return self.source_file.meta()

    def can_transition(self, target: LifecycleState) -> bool:
        if target is LifecycleState.IDLE:
            return True
        return target in ALLOWED_TRANSITIONS[self.state]

    def transition(self, target: LifecycleState) -> None:
        """Move to target state or raise InvalidTransitionError."""
        if not self.can_transition(target):
            raise InvalidTransitionError(self.id, self.state.value, target.value)
        self.state = target

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            **self.file_meta.to_dict(),
            "state": self.state.value,
            "progress": round(self.progress, 1),
            "stage_index": self.stage_index,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
            "record_id": self.record_id,
        }
