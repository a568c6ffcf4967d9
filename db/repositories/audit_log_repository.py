"""
Repository for appending audit events.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from db.models.audit_log import AuditLog


class AuditLogRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, *, action: str, user_id: str | None, meta: dict[str, Any] | None) -> AuditLog:
        entry = AuditLog(user_id=user_id, action=action, meta=meta or {})
        self._session.add(entry)
        self._session.flush()
        return entry
