"""
Tests for the shared-analysis API (FastAPI TestClient, temp SQLite store).
"""

from __future__ import annotations

from guardaio.analysis_engine.normalizer import normalize

from conftest import make_file


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_shared_requires_token(client):
    r = client.get("/shared")
    assert r.status_code == 400
    assert r.json() == {"detail": "Share token is required"}


def test_shared_unknown_token(client):
    r = client.get("/shared", params={"token": "nope"})
    assert r.status_code == 404


def test_shared_analysis_returned_without_owner(client, history_store):
    record_id = history_store.record_analysis(
        make_file("face.png", "image/png", size=20).meta(),
        normalize({"status": "warning", "confidence": 64.4, "findings": ["Odd shadows"]}),
        "user-1",
    )
    history_store.assign_share_token(record_id, "public-token", "user-1")

    r = client.get("/shared", params={"token": "public-token"})
    assert r.status_code == 200
    data = r.json()
    assert data["id"] == record_id
    assert data["file_name"] == "face.png"
    assert data["file_type"] == "image/png"
    assert data["file_size"] == 20
    assert data["status"] == "warning"
    assert data["confidence"] == 64
    assert data["findings"] == ["Odd shadows"]
    assert "user_id" not in data
    assert "share_token" not in data
