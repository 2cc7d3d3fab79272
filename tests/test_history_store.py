"""
Tests for the SQLAlchemy history store (temporary SQLite DB via conftest).
"""

from __future__ import annotations

from guardaio.analysis_engine.normalizer import normalize

from conftest import make_file


def _result(status="danger"):
    return normalize({"status": status, "confidence": 81, "findings": ["Blending edges", "Warped background"]})


def test_record_and_get(history_store):
    record_id = history_store.record_analysis(make_file("a.jpg", size=5).meta(), _result(), "user-1")
    assert record_id
    row = history_store.get_record(record_id)
    assert row["user_id"] == "user-1"
    assert row["file_name"] == "a.jpg"
    assert row["file_size"] == 5
    assert row["status"] == "danger"
    assert row["confidence"] == 81
    assert row["findings"] == ["Blending edges", "Warped background"]
    assert row["share_token"] is None


def test_anonymous_not_recorded(history_store):
    assert history_store.record_analysis(make_file().meta(), _result(), None) is None
    assert history_store.record_analysis(make_file().meta(), _result(), "  ") is None


def test_record_failure_returns_none(history_store):
    history_store.dispose()
    from sqlalchemy import text

    with history_store._engine.begin() as conn:
        conn.execute(text("DROP TABLE analysis_history"))
    assert history_store.record_analysis(make_file().meta(), _result(), "user-1") is None


def test_share_token_assigned_once(history_store):
    record_id = history_store.record_analysis(make_file().meta(), _result(), "user-1")
    assert history_store.assign_share_token(record_id, "tok-1", "user-1") == "tok-1"
    assert history_store.assign_share_token(record_id, "tok-2", "user-1") == "tok-1"
    shared = history_store.get_shared("tok-1")
    assert shared["id"] == record_id
    assert history_store.get_shared("tok-2") is None


def test_share_token_other_user_or_unknown_record(history_store):
    record_id = history_store.record_analysis(make_file().meta(), _result(), "user-1")
    assert history_store.assign_share_token(record_id, "tok", "user-2") is None
    assert history_store.assign_share_token("missing", "tok", "user-1") is None
    assert history_store.get_shared("") is None


def test_list_history_per_user_with_limit(history_store):
    for i in range(3):
        history_store.record_analysis(make_file(f"{i}.jpg").meta(), _result("safe"), "user-1")
    history_store.record_analysis(make_file("other.jpg").meta(), _result(), "user-2")
    rows = history_store.list_history("user-1")
    assert len(rows) == 3
    assert {r["file_name"] for r in rows} == {"0.jpg", "1.jpg", "2.jpg"}
    assert len(history_store.list_history("user-1", limit=2)) == 2
    assert [r["file_name"] for r in history_store.list_history("user-2")] == ["other.jpg"]


def test_get_history_store_uses_env_path(tmp_path, monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("GUARDAIO_DB_URL", raising=False)
    monkeypatch.setenv("GUARDAIO_DB_PATH", str(tmp_path / "env.db"))
    from guardaio.database import get_history_store, reset_history_store_for_test

    reset_history_store_for_test()
    try:
        store = get_history_store()
        assert store is get_history_store()
        assert store.url == f"sqlite:///{tmp_path / 'env.db'}"
        store.init_db()
        assert (tmp_path / "env.db").exists()
    finally:
        reset_history_store_for_test()
