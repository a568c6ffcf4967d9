"""
app/api/dependencies.py

Shared FastAPI dependencies for uploads, caller identity, and services.
"""

from __future__ import annotations

from fastapi import Depends, File, Header, HTTPException, UploadFile, status
from sqlalchemy.orm import Session, sessionmaker

from app.domain.imports import Actor
from app.readers.tabular_reader import CSV_EXTENSIONS, SPREADSHEET_EXTENSIONS
from app.services.descent_service import DescentService, build_descent_service
from app.services.import_service import ImportService, build_import_service
from db.session import get_session_factory

TABULAR_EXTENSIONS = CSV_EXTENSIONS + SPREADSHEET_EXTENSIONS


def get_tabular_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that an upload carries a file name and a tabular extension.
    """

    filename = (file.filename or "").strip().lower()
    if not filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A file is required.",
        )
    if not filename.endswith(TABULAR_EXTENSIONS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported file format. Upload a CSV or XLSX file.",
        )
    return file


def get_current_actor(
    x_user_id: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
    x_user_pen_color: str | None = Header(default=None),
) -> Actor:
    """
    Read the caller identity forwarded by the authentication layer.
    """

    return Actor(
        user_id=(x_user_id or "").strip() or None,
        name=(x_user_name or "").strip() or None,
        pen_color=(x_user_pen_color or "").strip() or None,
    )


def require_actor(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.user_id is None and actor.name is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated.",
        )
    return actor


def get_import_service(
    session_factory: sessionmaker[Session] = Depends(get_session_factory),
) -> ImportService:
    return build_import_service(session_factory)


def get_descent_service(
    session_factory: sessionmaker[Session] = Depends(get_session_factory),
) -> DescentService:
    return build_descent_service(session_factory)
