"""
db/session.py

SQLAlchemy engine and session factory.

The engine is built once by the application lifespan and stored on
``app.state``; nothing here creates a connection pool at import time.
"""

from __future__ import annotations

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import get_database_settings


def create_db_engine(database_url: str | None = None) -> Engine:
    settings = get_database_settings(database_url)
    return create_engine(
        settings.url,
        echo=settings.echo,
        pool_pre_ping=True,
        pool_recycle=settings.pool_recycle,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        connect_args=settings.connect_args,
    )


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        class_=Session,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def get_session_factory(request: Request) -> sessionmaker[Session]:
    """FastAPI dependency returning the factory owned by the running app."""
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        raise RuntimeError("Database session factory is not initialised.")
    return factory


def get_db(request: Request) -> Generator[Session, None, None]:
    db = get_session_factory(request)()
    try:
        yield db
    finally:
        db.close()
