"""
Application settings.

Typed, immutable snapshot of the environment (see config.env) used by the
backend client, controllers, dispatcher, history store and API server.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from guardaio.config import env


@dataclass(frozen=True)
class Settings:
    """Resolved configuration; build with get_settings()."""

    functions_url: str
    api_key: str
    request_timeout_sec: float
    max_file_size_bytes: int
    default_sensitivity: int
    share_origin: str
    database_url: str
    notifications_enabled: bool = True
    sounds_enabled: bool = True
    api_host: str = "0.0.0.0"
    api_port: int = 8000


def get_settings() -> Settings:
    """Return settings resolved from environment variables and .env."""
    env.load_guardaio_env()
    return Settings(
        functions_url=env.get_functions_url(),
        api_key=env.get_api_key(),
        request_timeout_sec=env.get_request_timeout_sec(),
        max_file_size_bytes=env.get_max_file_size_bytes(),
        default_sensitivity=env.get_default_sensitivity(),
        share_origin=env.get_share_origin(),
        database_url=env.get_database_url(),
        notifications_enabled=env.env_flag("GUARDAIO_NOTIFICATIONS", True),
        sounds_enabled=env.env_flag("GUARDAIO_SOUNDS", True),
        api_host=os.getenv("API_HOST", "0.0.0.0").strip(),
        api_port=int(os.getenv("API_PORT", "8000").strip() or "8000"),
    )
