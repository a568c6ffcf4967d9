"""
Repository for import batch lifecycle persistence and lookup.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.import_batch import ImportBatch, ImportStatus
from db.repositories.errors import ImportBatchStateError


class ImportBatchRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_batch(
        self,
        *,
        filename: str,
        file_hash: str,
        import_type: str,
        rejection_report: Any,
        imported_by_user_id: str | None = None,
    ) -> ImportBatch:
        batch = ImportBatch(
            id=uuid.uuid4(),
            filename=filename,
            file_hash=file_hash,
            import_type=import_type,
            status=ImportStatus.PROCESSING,
            processed_rows=0,
            inserted_rows=0,
            updated_rows=0,
            rejected_rows=0,
            skipped_rows=0,
            consolidated_descents=0,
            rejection_report=rejection_report,
            imported_by_user_id=imported_by_user_id,
        )
        self._session.add(batch)
        self._session.flush()
        return batch

    def get_batch(self, batch_id: uuid.UUID) -> ImportBatch | None:
        return self._session.get(ImportBatch, batch_id)

    def list_batches(
        self,
        *,
        limit: int = 50,
        import_type: str | None = None,
    ) -> list[ImportBatch]:
        stmt: Select[tuple[ImportBatch]] = select(ImportBatch)
        if import_type:
            stmt = stmt.where(ImportBatch.import_type == import_type)
        stmt = stmt.order_by(ImportBatch.imported_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def mark_success(
        self,
        *,
        batch_id: uuid.UUID,
        processed_rows: int,
        inserted_rows: int,
        updated_rows: int,
        rejected_rows: int,
        rejection_report: Any,
        skipped_rows: int = 0,
        consolidated_descents: int = 0,
    ) -> ImportBatch | None:
        batch = self._get_open_batch(batch_id)
        if batch is None:
            return None
        batch.status = ImportStatus.SUCCESS
        batch.processed_rows = processed_rows
        batch.inserted_rows = inserted_rows
        batch.updated_rows = updated_rows
        batch.rejected_rows = rejected_rows
        batch.skipped_rows = skipped_rows
        batch.consolidated_descents = consolidated_descents
        batch.rejection_report = rejection_report
        batch.error_message = None
        return batch

    def mark_failed(self, *, batch_id: uuid.UUID, error_message: str) -> ImportBatch | None:
        batch = self._get_open_batch(batch_id)
        if batch is None:
            return None
        batch.status = ImportStatus.FAILED
        batch.error_message = error_message
        return batch

    def _get_open_batch(self, batch_id: uuid.UUID) -> ImportBatch | None:
        batch = self.get_batch(batch_id)
        if batch is not None and batch.is_finalized:
            raise ImportBatchStateError(
                f"Import batch {batch_id} is already finalized as '{batch.status}'."
            )
        return batch
