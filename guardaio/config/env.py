"""
Environment variable loading for Guardaio.

- GUARDAIO_FUNCTIONS_URL: base URL of the edge functions (falls back to SUPABASE_URL + /functions/v1)
- GUARDAIO_API_KEY / SUPABASE_ANON_KEY: key sent as bearer token and apikey header
- GUARDAIO_MAX_FILE_SIZE_MB: per-file size ceiling (default 10)
- GUARDAIO_DEFAULT_SENSITIVITY: detection sensitivity 0-100 (default 50)
- GUARDAIO_SHARE_ORIGIN: origin used to build share links
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

# Project root: config is guardaio/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_MAX_FILE_SIZE_MB = 10.0
DEFAULT_SENSITIVITY = 50
DEFAULT_REQUEST_TIMEOUT_SEC = 60.0
DEFAULT_SHARE_ORIGIN = "http://localhost:8080"
DEFAULT_DB_PATH = "guardaio.db"

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


def load_guardaio_env() -> None:
    """Load .env from project root. Safe to call multiple times."""
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH)


def _env_str(*names: str) -> str:
    for name in names:
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return ""


def env_flag(name: str, default: bool) -> bool:
    """Return a boolean env flag; unrecognized values fall back to default."""
    raw = (os.getenv(name) or "").strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    return default


def get_functions_url() -> str:
    """
    Resolve the analysis functions base URL.
    Order: GUARDAIO_FUNCTIONS_URL > SUPABASE_URL/functions/v1 > empty string.
    """
    load_guardaio_env()
    url = _env_str("GUARDAIO_FUNCTIONS_URL")
    if url:
        return url.rstrip("/")
    supabase = _env_str("SUPABASE_URL", "VITE_SUPABASE_URL")
    if supabase:
        return supabase.rstrip("/") + "/functions/v1"
    return ""


def get_api_key() -> str:
    load_guardaio_env()
    return _env_str("GUARDAIO_API_KEY", "SUPABASE_ANON_KEY", "VITE_SUPABASE_PUBLISHABLE_KEY")


def get_max_file_size_bytes() -> int:
    """Per-file ceiling in bytes from GUARDAIO_MAX_FILE_SIZE_MB (default 10 MB)."""
    load_guardaio_env()
    raw = _env_str("GUARDAIO_MAX_FILE_SIZE_MB")
    try:
        mb = float(raw) if raw else DEFAULT_MAX_FILE_SIZE_MB
    except ValueError:
        mb = DEFAULT_MAX_FILE_SIZE_MB
    if mb <= 0:
        mb = DEFAULT_MAX_FILE_SIZE_MB
    return int(mb * 1024 * 1024)


def get_default_sensitivity() -> int:
    load_guardaio_env()
    raw = _env_str("GUARDAIO_DEFAULT_SENSITIVITY")
    try:
        value = int(raw) if raw else DEFAULT_SENSITIVITY
    except ValueError:
        return DEFAULT_SENSITIVITY
    return max(0, min(100, value))


def get_request_timeout_sec() -> float:
    load_guardaio_env()
    raw = _env_str("GUARDAIO_REQUEST_TIMEOUT_SEC")
    try:
        return float(raw) if raw else DEFAULT_REQUEST_TIMEOUT_SEC
    except ValueError:
        return DEFAULT_REQUEST_TIMEOUT_SEC


def get_share_origin() -> str:
    load_guardaio_env()
    return (_env_str("GUARDAIO_SHARE_ORIGIN") or DEFAULT_SHARE_ORIGIN).rstrip("/")


def get_database_url() -> str:
    """Return GUARDAIO_DB_URL or DATABASE_URL if set; else SQLite from GUARDAIO_DB_PATH or default."""
    load_guardaio_env()
    url = _env_str("GUARDAIO_DB_URL", "DATABASE_URL")
    if url:
        return url
    path = _env_str("GUARDAIO_DB_PATH") or DEFAULT_DB_PATH
    return f"sqlite:///{path}"
