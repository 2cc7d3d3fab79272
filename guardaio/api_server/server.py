"""
FastAPI server — read-only API over the analysis history.

Exposes GET /shared?token=... returning a shared analysis, and GET /health.
Reads from the history store only; never runs analyses.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from guardaio import __version__
from guardaio.database import HistoryStore, get_history_store
from guardaio.guardaio_logging import get_logger

logger = get_logger(__name__)


def get_store() -> HistoryStore:
    """Dependency: process-wide history store."""
    return get_history_store()


# -----------------------------------------------------------------------------
# Response models
# -----------------------------------------------------------------------------


class SharedAnalysisResponse(BaseModel):
    """GET /shared response: one shared analysis, without owner details."""

    id: str = Field(..., description="Analysis record id")
    file_name: str = Field(..., description="Original file name")
    file_type: str = Field(..., description="MIME type")
    file_size: int = Field(..., ge=0, description="Size in bytes")
    status: str = Field(..., description="safe, warning or danger")
    confidence: int = Field(..., ge=0, le=100, description="Confidence (0–100)")
    findings: list[str] = Field(default_factory=list, description="Human-readable findings")
    created_at: int = Field(..., description="Unix timestamp when the analysis was saved")


# -----------------------------------------------------------------------------
# Lifespan: create tables on startup
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        get_history_store().init_db()
    except Exception as e:
        logger.warning("history_init_skip", error=str(e))
    yield


# -----------------------------------------------------------------------------
# App and routes
# -----------------------------------------------------------------------------

app = FastAPI(
    title="Guardaio API",
    description="Read-only API for shared media analyses.",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/shared", response_model=SharedAnalysisResponse)
def get_shared_analysis(token: str | None = None, store: HistoryStore = Depends(get_store)) -> SharedAnalysisResponse:
    """
    Return the analysis behind a share token.

    400 when the token is missing, 404 when no analysis carries it.
    """
    token = (token or "").strip()
    if not token:
        raise HTTPException(status_code=400, detail="Share token is required")
    try:
        record = store.get_shared(token)
    except Exception as e:
        logger.exception("shared_lookup_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load shared analysis") from e
    if record is None:
        logger.info("shared_not_found", token_prefix=token[:6])
        raise HTTPException(status_code=404, detail="Shared analysis not found")
    logger.info("shared_served", record_id=record["id"], status=record["status"])
    return SharedAnalysisResponse(**{k: v for k, v in record.items() if k in SharedAnalysisResponse.model_fields})


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe: API is up."""
    return {"status": "ok"}


@app.exception_handler(HTTPException)
def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
    """Consistent JSON error response for HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )
