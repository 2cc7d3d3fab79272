"""
Pytest fixtures for Guardaio tests. Fake backends, a recording dispatcher,
fast progress timing and a temporary SQLite history store.
"""

from __future__ import annotations

import asyncio
import random
from typing import Any

import pytest

from guardaio.analysis_engine.models import AnalysisJob, FileMeta, ResultStatus, SourceFile
from guardaio.analysis_engine.progress import ProgressConfig
from guardaio.dispatch.engine import SideEffectDispatcher

SAFE_RESPONSE = {"status": "safe", "confidence": 97, "findings": ["No manipulation detected"]}
DANGER_RESPONSE = {"status": "danger", "confidence": 88.6, "findings": ["Face swap artifacts"]}


class FakeBackend:
    """
    Scripted analysis backend.

    responses: one item per call (cycled on the last); an Exception instance is raised.
    gate: optional asyncio.Event the call waits on before answering.
    """

    def __init__(self, *responses: Any, delay: float = 0.0) -> None:
        self.responses = list(responses) or [SAFE_RESPONSE]
        self.delay = delay
        self.calls: list[dict[str, Any]] = []
        self.gate: asyncio.Event | None = None
        self.in_flight = 0
        self.max_in_flight = 0

    async def analyze(self, file_name: str, file_type: str, file_base64: str | None, sensitivity: int) -> Any:
        self.calls.append(
            {
                "file_name": file_name,
                "file_type": file_type,
                "file_base64": file_base64,
                "sensitivity": sensitivity,
            }
        )
        index = min(len(self.calls) - 1, len(self.responses) - 1)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.gate is not None:
                await self.gate.wait()
        finally:
            self.in_flight -= 1
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        return response


class RecordingDispatcher(SideEffectDispatcher):
    """Records every side-effect call in order; record() returns rec-<n> ids."""

    def __init__(self, *, persist: bool = True) -> None:
        self.persist = persist
        self.calls: list[tuple[str, Any]] = []

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def of(self, name: str) -> list[Any]:
        return [payload for n, payload in self.calls if n == name]

    def record(self, job: AnalysisJob) -> str | None:
        self.calls.append(("record", job.id))
        if not self.persist:
            return None
        return f"rec-{len(self.of('record'))}"

    def announce(self, status: ResultStatus, label: str | None = None) -> None:
        self.calls.append(("announce", (status, label)))

    def fail(self, job: AnalysisJob, message: str) -> None:
        self.calls.append(("fail", (job.id, message)))

    def reject(self, meta: FileMeta, message: str) -> None:
        self.calls.append(("reject", (meta.name, message)))


def make_file(name: str = "photo.jpg", mime_type: str = "image/jpeg", size: int = 64) -> SourceFile:
    return SourceFile(name=name, mime_type=mime_type, data=b"\x00" * size)


@pytest.fixture
def fast_progress() -> ProgressConfig:
    return ProgressConfig(tick_interval_sec=0.001, stage_interval_sec=0.004)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def history_store(tmp_path, monkeypatch):
    """HistoryStore on a temporary SQLite file with tables created."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("GUARDAIO_DB_URL", raising=False)
    from guardaio.database import HistoryStore

    store = HistoryStore(f"sqlite:///{tmp_path / 'history.db'}")
    store.init_db()
    yield store
    store.dispose()


@pytest.fixture
def client(history_store):
    """FastAPI TestClient with the history store dependency pointed at the temp DB."""
    from fastapi.testclient import TestClient

    from guardaio.api_server.server import app, get_store

    app.dependency_overrides[get_store] = lambda: history_store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def settings(tmp_path):
    """Settings with a small size ceiling and non-default sensitivity/origin."""
    from guardaio.config import Settings

    return Settings(
        functions_url="https://proj.supabase.co/functions/v1",
        api_key="anon-key",
        request_timeout_sec=5.0,
        max_file_size_bytes=100,
        default_sensitivity=65,
        share_origin="https://guardaio.app",
        database_url=f"sqlite:///{tmp_path / 'settings.db'}",
        notifications_enabled=False,
        sounds_enabled=True,
    )
