"""
Analysis history: SQLAlchemy-backed store of finished analyses.

Uses GUARDAIO_DB_URL / DATABASE_URL when set; otherwise falls back to SQLite
(GUARDAIO_DB_PATH or guardaio.db). Rows are written only for signed-in users
and carry an optional share token that the shared-analysis API looks up.
"""

from __future__ import annotations

import json
import time
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import Column, Integer, String, Text, create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from guardaio.analysis_engine.models import AnalysisResult, FileMeta
from guardaio.config.env import get_database_url
from guardaio.guardaio_logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()

DEFAULT_HISTORY_LIMIT = 50


class AnalysisRecord(Base):
    """One finished analysis. Append-only apart from share_token."""

    __tablename__ = "analysis_history"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), nullable=False, index=True)
    file_name = Column(String(512), nullable=False)
    file_type = Column(String(128), nullable=False)
    file_size = Column(Integer, nullable=False)
    status = Column(String(16), nullable=False, index=True)
    confidence = Column(Integer, nullable=False)
    findings = Column(Text, nullable=False)  # JSON array of strings
    share_token = Column(String(128), unique=True, nullable=True, index=True)
    created_at = Column(Integer, nullable=False, index=True)  # Unix seconds

    def findings_list(self) -> list[str]:
        try:
            data = json.loads(self.findings or "[]")
        except (TypeError, ValueError):
            return []
        return [f for f in data if isinstance(f, str)] if isinstance(data, list) else []

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "file_name": self.file_name,
            "file_type": self.file_type,
            "file_size": self.file_size,
            "status": self.status,
            "confidence": self.confidence,
            "findings": self.findings_list(),
            "share_token": self.share_token,
            "created_at": self.created_at,
        }


def _redact_url(url: str) -> str:
    return url.split("?")[0].split("//")[-1].split("@")[-1]


class HistoryStore:
    """
    Engine + session factory for one database URL.

    record_analysis() is best-effort (errors logged, None returned); the other
    methods propagate database errors to the caller.
    """

    def __init__(self, url: str | None = None) -> None:
        self.url = url or get_database_url()
        connect_args: dict[str, Any] = {}
        if self.url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self._engine = create_engine(self.url, connect_args=connect_args, pool_pre_ping=True)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        logger.info("history_engine", url=_redact_url(self.url))

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_db(self) -> None:
        """Create the analysis_history table if it does not exist. Safe on every startup."""
        try:
            Base.metadata.create_all(bind=self._engine)
            logger.info("history_init_db", url=_redact_url(self.url))
        except Exception as e:
            logger.exception("history_init_db_failed", error=str(e))
            raise

    def dispose(self) -> None:
        self._engine.dispose()

    def record_analysis(
        self,
        meta: FileMeta,
        result: AnalysisResult,
        user_id: str | None = None,
    ) -> str | None:
        """Append one analysis; returns the new record id, or None when skipped or failed."""
        user_id = (user_id or "").strip()
        if not user_id:
            logger.debug("history_record_skipped_anonymous", file_name=meta.name)
            return None
        try:
            with self._session_scope() as session:
                row = AnalysisRecord(
                    id=str(uuid.uuid4()),
                    user_id=user_id,
                    file_name=meta.name,
                    file_type=meta.mime_type,
                    file_size=meta.size,
                    status=result.status.value,
                    confidence=result.confidence,
                    findings=json.dumps(list(result.findings)),
                    created_at=int(time.time()),
                )
                session.add(row)
                session.flush()
                record_id = row.id
            logger.info("history_record_saved", record_id=record_id, status=result.status.value)
            return record_id
        except Exception as e:
            logger.warning("history_record_failed", file_name=meta.name, error=str(e))
            return None

    def get_record(self, record_id: str) -> dict[str, Any] | None:
        with self._session_scope() as session:
            row = session.get(AnalysisRecord, record_id)
            return row.to_dict() if row else None

    def assign_share_token(self, record_id: str, token: str, user_id: str | None = None) -> str | None:
        """
        Attach token to the record and return the record's token.

        An existing token is kept and returned instead. Returns None when the
        record does not exist or belongs to another user.
        """
        try:
            with self._session_scope() as session:
                row = session.get(AnalysisRecord, record_id)
                if row is None or (user_id is not None and row.user_id != user_id):
                    logger.info("history_share_record_not_found", record_id=record_id)
                    return None
                if row.share_token:
                    return row.share_token
                row.share_token = token
                session.flush()
                assigned = row.share_token
            logger.info("history_share_token_assigned", record_id=record_id)
            return assigned
        except IntegrityError:
            logger.warning("history_share_token_collision", record_id=record_id)
            raise

    def get_shared(self, token: str) -> dict[str, Any] | None:
        """Record dict for a share token, or None."""
        token = (token or "").strip()
        if not token:
            return None
        with self._session_scope() as session:
            row = session.query(AnalysisRecord).filter(AnalysisRecord.share_token == token).first()
            return row.to_dict() if row else None

    def list_history(self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> list[dict[str, Any]]:
        """A user's records, newest first."""
        with self._session_scope() as session:
            rows = (
                session.query(AnalysisRecord)
                .filter(AnalysisRecord.user_id == user_id)
                .order_by(AnalysisRecord.created_at.desc(), AnalysisRecord.id)
                .limit(max(0, int(limit)))
                .all()
            )
            return [r.to_dict() for r in rows]


_store: HistoryStore | None = None


def get_history_store() -> HistoryStore:
    """Process-wide store for the configured URL, created on first use."""
    global _store
    if _store is None:
        _store = HistoryStore()
    return _store


def reset_history_store_for_test() -> None:
    """Drop the cached store. For tests only; set GUARDAIO_DB_PATH first."""
    global _store
    if _store is not None:
        _store.dispose()
    _store = None
