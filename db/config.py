"""
db/config.py

Environment-driven database settings shared by the API and Alembic.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES: tuple[str, ...] = (".env", ".env.local")
CLOUD_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})

_SSLMODE_PARAM = re.compile(r"([?&])sslmode=[^&]*&?", re.IGNORECASE)


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip()
    if not key:
        return None
    return key, value.strip().strip('"').strip("'")


def load_env_files(root: Path | None = None) -> None:
    """
    Load KEY=VALUE pairs from `.env` then `.env.local` under ``root``.
    Variables already present in the process environment always win.
    """

    base = root or PROJECT_ROOT
    for filename in ENV_FILES:
        env_path = base / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


def normalize_postgres_url(url: str) -> str:
    """
    Rewrite postgres URLs to the psycopg (v3) driver form.

    >>> normalize_postgres_url("postgres://u@h/db")
    'postgresql+psycopg://u@h/db'
    """

    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


def strip_sslmode_param(url: str) -> str:
    """
    Drop any `sslmode` query parameter; SSL is configured through DB_SSLMODE.
    """

    return _SSLMODE_PARAM.sub(r"\1", url).rstrip("?&")


def clean_database_url(url: str) -> str:
    return strip_sslmode_param(normalize_postgres_url(url.strip()))


def resolve_database_url() -> str:
    """
    Pick the database URL: DATABASE_URL, then CLOUD_DATABASE_URL when
    ENVIRONMENT is cloud-like, then LOCAL_DATABASE_URL.
    """

    load_env_files()

    candidates = [os.getenv("DATABASE_URL")]
    if os.getenv("ENVIRONMENT", "local").strip().lower() in CLOUD_ENVIRONMENTS:
        candidates.append(os.getenv("CLOUD_DATABASE_URL"))
    candidates.append(os.getenv("LOCAL_DATABASE_URL"))

    for candidate in candidates:
        if candidate and candidate.strip():
            return clean_database_url(candidate)

    raise RuntimeError(
        "No database URL configured. Set DATABASE_URL, or configure "
        "LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
    )


def _env_int(name: str, default: int) -> int:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


@dataclass(frozen=True)
class DatabaseSettings:
    """
    Connection settings for the PostgreSQL engine.
    """

    url: str
    sslmode: str | None = None
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_recycle: int = 1800

    @property
    def connect_args(self) -> dict[str, str]:
        return {"sslmode": self.sslmode} if self.sslmode else {}


def get_database_settings(database_url: str | None = None) -> DatabaseSettings:
    """
    Build settings from the environment; ``database_url`` overrides the
    resolved URL.
    """

    url = clean_database_url(database_url) if database_url else resolve_database_url()
    if not url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")

    return DatabaseSettings(
        url=url,
        sslmode=os.getenv("DB_SSLMODE", "").strip() or None,
        echo=os.getenv("SQL_ECHO", "").strip().lower() in {"1", "true", "yes", "on"},
        pool_size=_env_int("DB_POOL_SIZE", 5),
        max_overflow=_env_int("DB_MAX_OVERFLOW", 10),
        pool_recycle=_env_int("DB_POOL_RECYCLE", 1800),
    )
