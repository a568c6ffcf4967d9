"""
app/services/audit_service.py

Fire-and-forget audit trail writer.

Each event is written on its own short-lived session so it neither joins
nor depends on the caller's transaction. Write failures are logged and
swallowed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.orm import Session

from db.repositories.audit_log_repository import AuditLogRepository

logger = logging.getLogger(__name__)


class AuditLogger:
    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def log(
        self,
        *,
        action: str,
        user_id: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> None:
        try:
            with self._session_factory() as db:
                AuditLogRepository(db).add(action=action, user_id=user_id, meta=meta)
                db.commit()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Audit log write failed action=%s user_id=%s: %s", action, user_id, exc)
