"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class ImportSettings:
    """
    Runtime settings for KPI and catalog imports.
    """

    batch_size: int = 1000
    preview_rows: int = 20
    log_rejections: bool = True


@dataclass(frozen=True)
class ServerSettings:
    """
    Bind address for the uvicorn server.
    """

    host: str = "0.0.0.0"
    port: int = 8000


@dataclass(frozen=True)
class DescentSettings:
    """
    Runtime settings for descent recording.
    """

    default_pen_color: str = "Blue"


@lru_cache(maxsize=1)
def get_import_settings() -> ImportSettings:
    """
    Return cached import settings from environment variables.
    """

    return ImportSettings(
        batch_size=max(1, _get_int_env("IMPORT_BATCH_SIZE", 1000)),
        preview_rows=max(0, _get_int_env("IMPORT_PREVIEW_ROWS", 20)),
        log_rejections=_get_bool_env("IMPORT_LOG_REJECTIONS", True),
    )


@lru_cache(maxsize=1)
def get_descent_settings() -> DescentSettings:
    """
    Return cached descent settings from environment variables.
    """

    return DescentSettings(
        default_pen_color=_get_str_env("DESCENT_DEFAULT_PEN_COLOR", "Blue"),
    )


@lru_cache(maxsize=1)
def get_server_settings() -> ServerSettings:
    """
    Return cached server settings from HOST and PORT.
    """

    return ServerSettings(
        host=_get_str_env("HOST", "0.0.0.0"),
        port=_get_int_env("PORT", 8000),
    )
