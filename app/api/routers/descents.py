"""
app/api/routers/descents.py

Descent recording and order lookup endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_descent_service, require_actor
from app.domain.imports import Actor
from app.schemas.descents import CatalogEntryResponse, DescentCreateRequest, DescentResponse
from app.services.descent_service import DescentError, DescentService
from db.session import get_db

router = APIRouter(prefix="/descents", tags=["descents"])


@router.post("", response_model=DescentResponse, status_code=status.HTTP_201_CREATED)
def create_descent(
    payload: DescentCreateRequest,
    actor: Actor = Depends(require_actor),
    db: Session = Depends(get_db),
    descent_service: DescentService = Depends(get_descent_service),
) -> DescentResponse:
    """
    Record a descent for an order with a complete Base entry.
    """

    try:
        descent = descent_service.create_descent(
            db=db,
            order_number=payload.order_number,
            actor=actor,
            work_date=payload.work_date,
            product_image_path=payload.product_image_path,
        )
    except DescentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return DescentResponse.model_validate(descent)


@router.get("/lookup/{order_number}", response_model=DescentResponse)
def lookup_descent(
    order_number: str,
    db: Session = Depends(get_db),
    descent_service: DescentService = Depends(get_descent_service),
) -> DescentResponse:
    descent = descent_service.find_latest_descent(db=db, order_number=order_number)
    if descent is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found in descents.")
    return DescentResponse.model_validate(descent)


@router.get("/catalog/{order_number}", response_model=CatalogEntryResponse)
def lookup_catalog_entry(
    order_number: str,
    db: Session = Depends(get_db),
    descent_service: DescentService = Depends(get_descent_service),
) -> CatalogEntryResponse:
    entry = descent_service.find_catalog_entry(db=db, order_number=order_number)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found in the Base.")
    return CatalogEntryResponse.model_validate(entry)
