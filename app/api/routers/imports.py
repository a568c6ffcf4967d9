"""
app/api/routers/imports.py

KPI and Base (order catalog) import HTTP endpoints.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_current_actor, get_import_service, get_tabular_upload
from app.domain.imports import Actor, CatalogImportResult
from app.readers.tabular_reader import TabularFormatError
from app.schemas.imports import (
    CatalogImportResponse,
    CatalogImportSummaryResponse,
    ImportBatchResponse,
    KpiImportResponse,
    KpiImportSummaryResponse,
)
from app.services.import_service import ImportPersistenceError, ImportService
from db.session import get_db

router = APIRouter(prefix="/imports", tags=["imports"])


@router.post("/kpi", response_model=KpiImportResponse, status_code=status.HTTP_201_CREATED)
def import_kpi(
    file: UploadFile = Depends(get_tabular_upload),
    sheet_name: str | None = Form(default=None, description="Optional explicit sheet name"),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    import_service: ImportService = Depends(get_import_service),
) -> KpiImportResponse:
    """
    Import one KPI feed (CSV or XLSX).
    """

    try:
        result = import_service.import_kpi(
            db=db,
            filename=file.filename or "",
            content=file.file.read(),
            sheet_name=sheet_name or None,
            actor=actor,
        )
    except TabularFormatError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ImportPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to persist the KPI import.",
        ) from exc
    finally:
        file.file.close()

    return KpiImportResponse(
        import_id=result.import_id,
        summary=KpiImportSummaryResponse(
            processed_rows=result.summary.processed_rows,
            inserted_rows=result.summary.inserted_rows,
            updated_rows=result.summary.updated_rows,
            rejected_rows=result.summary.rejected_rows,
        ),
        preview=result.preview,
        rejections=result.rejections,
    )


@router.post("/base", response_model=CatalogImportResponse, status_code=status.HTTP_201_CREATED)
def import_base(
    file: UploadFile = Depends(get_tabular_upload),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    import_service: ImportService = Depends(get_import_service),
) -> CatalogImportResponse:
    """
    Import the order catalog without overwriting stored entries, then
    backfill descents that are missing catalog attributes.
    """

    return _run_base_import(file=file, actor=actor, db=db, import_service=import_service, overwrite=False)


@router.post("/base/refresh", response_model=CatalogImportResponse, status_code=status.HTTP_201_CREATED)
def refresh_base(
    file: UploadFile = Depends(get_tabular_upload),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    import_service: ImportService = Depends(get_import_service),
) -> CatalogImportResponse:
    """
    Import the order catalog overwriting stored entries, then backfill.
    """

    return _run_base_import(file=file, actor=actor, db=db, import_service=import_service, overwrite=True)


@router.get("", response_model=list[ImportBatchResponse])
def list_imports(
    limit: int = Query(default=20, ge=1, le=100),
    import_type: str | None = Query(default=None, pattern="^(kpi|base)$"),
    db: Session = Depends(get_db),
    import_service: ImportService = Depends(get_import_service),
) -> list[ImportBatchResponse]:
    batches = import_service.list_batches(db=db, limit=limit, import_type=import_type)
    return [ImportBatchResponse.model_validate(batch) for batch in batches]


@router.get("/{import_id}", response_model=ImportBatchResponse)
def get_import(
    import_id: uuid.UUID,
    db: Session = Depends(get_db),
    import_service: ImportService = Depends(get_import_service),
) -> ImportBatchResponse:
    batch = import_service.get_batch(db=db, import_id=import_id)
    if batch is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Import not found.")
    return ImportBatchResponse.model_validate(batch)


def _run_base_import(
    *,
    file: UploadFile,
    actor: Actor,
    db: Session,
    import_service: ImportService,
    overwrite: bool,
) -> CatalogImportResponse:
    try:
        result: CatalogImportResult = import_service.import_base(
            db=db,
            filename=file.filename or "",
            content=file.file.read(),
            actor=actor,
            overwrite=overwrite,
        )
    except TabularFormatError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ImportPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to persist the Base import.",
        ) from exc
    finally:
        file.file.close()

    summary = result.summary
    return CatalogImportResponse(
        import_id=result.import_id,
        summary=CatalogImportSummaryResponse(
            processed_rows=summary.processed_rows,
            inserted_rows=summary.inserted_rows,
            updated_rows=summary.updated_rows,
            rejected_rows=summary.rejected_rows,
            skipped_rows=summary.skipped_rows,
            consolidated_descents=summary.consolidated_descents,
        ),
    )
