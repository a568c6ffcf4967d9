"""
app/schemas/descents.py

Request/response schemas for descent endpoints.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class DescentCreateRequest(BaseModel):
    order_number: str = Field(..., min_length=1)
    work_date: date | None = None
    product_image_path: str | None = None


class DescentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_number: str
    descended_by_user_id: str | None = None
    descended_by_name: str
    pen_color: str
    product_image_path: str | None = None
    work_date: date
    lot: str | None = None
    volume: int | None = None
    weight_kg: Decimal | None = None
    route: str | None = None
    created_at: datetime | None = None


class CatalogEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    order_number: str
    lot: str | None = None
    volume: int | None = None
    weight_kg: Decimal | None = None
    route: str | None = None
    description: str | None = None
    base_date: date | None = None
