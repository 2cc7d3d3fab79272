"""
Configuration management for Guardaio.

Loads settings from environment variables and an optional .env file.
"""

from guardaio.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
