"""
Local preview handles for image and video files.

A preview is a temporary file holding the media bytes so a UI can display it
without touching the original. Creation is best-effort (the controller
swallows failures); release() deletes the file and is idempotent.
"""

from __future__ import annotations

import mimetypes
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from guardaio.analysis_engine.models import SourceFile

PREVIEW_PREFIX = "guardaio-preview-"


@dataclass
class PreviewHandle:
    """Temporary on-disk copy of a source file for display."""

    path: Path
    mime_type: str
    released: bool = False

    @property
    def uri(self) -> str:
        return self.path.as_uri()

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        self.path.unlink(missing_ok=True)


PreviewFactory = Callable[[SourceFile], "PreviewHandle | None"]


def supports_preview(source: SourceFile) -> bool:
    """Previews exist for image and video types only."""
    return source.is_image or source.is_video


def create_preview(source: SourceFile, directory: str | Path | None = None) -> PreviewHandle | None:
    """Write the file to a temporary location; None for types without preview."""
    if not supports_preview(source):
        return None
    suffix = Path(source.name).suffix or (mimetypes.guess_extension(source.mime_type) or "")
    fd, name = tempfile.mkstemp(prefix=PREVIEW_PREFIX, suffix=suffix, dir=directory)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(source.data)
    except Exception:
        Path(name).unlink(missing_ok=True)
        raise
    return PreviewHandle(path=Path(name), mime_type=source.mime_type)
