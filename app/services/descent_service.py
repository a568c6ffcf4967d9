"""
app/services/descent_service.py

Descent recording and lookups.

A descent can only be recorded for an order whose catalog entry is
complete (lot, volume, weight, route and description all present); the
catalog attributes are copied onto the descent at creation time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from sqlalchemy.orm import Session

from app.config import get_descent_settings
from app.domain.imports import Actor
from app.services.audit_service import AuditLogger
from app.validators.coercers import normalize_order_number
from db.models.audit_log import AuditAction
from db.models.descent import Descent
from db.models.order_catalog import OrderCatalog
from db.repositories.descent_repository import DescentRepository
from db.repositories.order_catalog_repository import OrderCatalogRepository

logger = logging.getLogger(__name__)


class DescentError(ValueError):
    """Base class for refused descent operations."""


class CatalogEntryNotFoundError(DescentError):
    def __init__(self, order_number: str) -> None:
        super().__init__(
            f"Order {order_number} was not found in the Base. Import the Base before recording it."
        )
        self.order_number = order_number


class IncompleteCatalogEntryError(DescentError):
    def __init__(self, order_number: str, missing: list[str]) -> None:
        super().__init__(
            f"Base entry for order {order_number} is incomplete "
            f"(missing: {', '.join(missing)})."
        )
        self.order_number = order_number
        self.missing = tuple(missing)


def missing_catalog_fields(entry: OrderCatalog) -> list[str]:
    missing: list[str] = []
    if not entry.lot:
        missing.append("lot")
    if entry.volume is None:
        missing.append("volume")
    if entry.weight_kg is None:
        missing.append("weight_kg")
    if not entry.route:
        missing.append("route")
    if not entry.description:
        missing.append("description")
    return missing


class DescentService:
    def __init__(
        self,
        *,
        audit_logger: AuditLogger | None = None,
        default_pen_color: str = "Blue",
        catalog_repository_factory: Callable[[Session], OrderCatalogRepository] = OrderCatalogRepository,
        descent_repository_factory: Callable[[Session], DescentRepository] = DescentRepository,
    ) -> None:
        self._audit = audit_logger
        self._default_pen_color = default_pen_color
        self._catalog_repository_factory = catalog_repository_factory
        self._descent_repository_factory = descent_repository_factory

    def create_descent(
        self,
        *,
        db: Session,
        order_number: str,
        actor: Actor,
        work_date: date | None = None,
        product_image_path: str | None = None,
    ) -> Descent:
        normalized = normalize_order_number(order_number)
        entry = self._catalog_repository_factory(db).get(normalized)
        if entry is None:
            raise CatalogEntryNotFoundError(normalized)
        missing = missing_catalog_fields(entry)
        if missing:
            raise IncompleteCatalogEntryError(normalized, missing)

        descent = Descent(
            order_number=normalized,
            descended_by_user_id=actor.user_id,
            descended_by_name=actor.name or actor.user_id or "unknown",
            pen_color=actor.pen_color or self._default_pen_color,
            product_image_path=product_image_path,
            work_date=work_date or date.today(),
            lot=entry.lot,
            volume=entry.volume,
            weight_kg=entry.weight_kg,
            route=entry.route,
        )
        self._descent_repository_factory(db).add(descent)
        db.commit()
        logger.info("Descent recorded id=%s order_number=%s", descent.id, normalized)

        if self._audit is not None:
            self._audit.log(
                action=AuditAction.DESCENT_CREATE,
                user_id=actor.user_id,
                meta={
                    "id": str(descent.id),
                    "orderNumber": normalized,
                    "userPenColor": descent.pen_color,
                },
            )
        return descent

    def find_latest_descent(self, *, db: Session, order_number: str) -> Descent | None:
        return self._descent_repository_factory(db).latest_for_order(normalize_order_number(order_number))

    def find_catalog_entry(self, *, db: Session, order_number: str) -> OrderCatalog | None:
        return self._catalog_repository_factory(db).get(normalize_order_number(order_number))


def build_descent_service(session_factory: Callable[[], Session]) -> DescentService:
    settings = get_descent_settings()
    return DescentService(
        audit_logger=AuditLogger(session_factory),
        default_pen_color=settings.default_pen_color,
    )
