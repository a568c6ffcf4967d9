"""
app/services/import_service.py

Import batch orchestration for KPI and catalog ("Base") uploads.

Lifecycle per upload:

    1. Parse the file (pure). Format errors surface here, before any
       batch row exists.
    2. Create the ImportBatch as ``processing`` and commit it.
    3. Reconcile every row inside one transaction and finalize the batch as
       ``success`` in that same transaction.
    4. On any error: roll the transaction back, mark the batch ``failed``
       in a fresh transaction, emit IMPORT_FAIL, and re-raise.

Audit events are best-effort and never affect the outcome.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_import_settings
from app.domain.imports import (
    Actor,
    CatalogImportResult,
    CatalogImportSummary,
    KpiImportResult,
    KpiImportSummary,
    UpsertCounts,
)
from app.readers.tabular_reader import SPREADSHEET_EXTENSIONS, TabularFormatError, UnsupportedFormatError
from app.services.audit_service import AuditLogger
from app.services.import_parser import (
    KPIImportParser,
    OrderCatalogParser,
    get_kpi_import_parser,
    get_order_catalog_parser,
)
from app.services.reconciliation_service import ReconciliationEngine
from db.models.audit_log import AuditAction
from db.models.import_batch import ImportBatch, ImportType
from db.repositories.import_batch_repository import ImportBatchRepository

logger = logging.getLogger(__name__)

BASE_FILE_HASH = "base-import"
BASE_REJECTION_REPORT: dict[str, str] = {"type": "BASE"}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class EmptyCatalogError(TabularFormatError):
    """
    Raised when a catalog upload yields no usable rows.
    """


class ImportPersistenceError(RuntimeError):
    """
    Raised when parsed rows cannot be persisted; the batch is marked failed.
    """

    def __init__(self, message: str, *, import_id: uuid.UUID | None = None) -> None:
        super().__init__(message)
        self.import_id = import_id


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ImportService:
    """
    Coordinates parsing, batch lifecycle, reconciliation, and auditing.
    """

    def __init__(
        self,
        *,
        audit_logger: AuditLogger,
        batch_size: int = 1000,
        kpi_parser: KPIImportParser | None = None,
        catalog_parser: OrderCatalogParser | None = None,
        engine_factory: Callable[..., ReconciliationEngine] = ReconciliationEngine.for_session,
        batch_repository_factory: Callable[[Session], ImportBatchRepository] = ImportBatchRepository,
    ) -> None:
        self._audit = audit_logger
        self._batch_size = max(1, batch_size)
        self._kpi_parser = kpi_parser or get_kpi_import_parser()
        self._catalog_parser = catalog_parser or get_order_catalog_parser()
        self._engine_factory = engine_factory
        self._batch_repository_factory = batch_repository_factory

    def import_kpi(
        self,
        *,
        db: Session,
        filename: str,
        content: bytes,
        sheet_name: str | None = None,
        actor: Actor | None = None,
    ) -> KpiImportResult:
        """
        Import one KPI feed with per-row upsert on (user_name, work_date).
        """

        actor = actor or Actor()
        parsed = self._kpi_parser.parse(filename=filename, content=content, sheet_name=sheet_name)

        batches = self._batch_repository_factory(db)
        batch_id = self._open_batch(
            db=db,
            batches=batches,
            filename=filename,
            file_hash=parsed.file_hash,
            import_type=ImportType.KPI,
            rejection_report=list(parsed.rejection_reasons),
            actor=actor,
        )
        self._audit.log(
            action=AuditAction.IMPORT_CREATE,
            user_id=actor.user_id,
            meta={"importId": str(batch_id), "filename": filename},
        )

        processed = parsed.processed_rows
        rejected = len(parsed.rejection_reasons)
        try:
            engine = self._engine_factory(db, batch_size=self._batch_size)
            counts = engine.persist_kpi_rows(parsed.rows, import_id=batch_id)
            batches.mark_success(
                batch_id=batch_id,
                processed_rows=processed,
                inserted_rows=counts.inserted,
                updated_rows=counts.updated,
                rejected_rows=rejected,
                rejection_report=list(parsed.rejection_reasons),
            )
            db.commit()
        except Exception as exc:
            self._fail_batch(db=db, batches=batches, batch_id=batch_id, exc=exc, actor=actor, meta={})
            if isinstance(exc, SQLAlchemyError):
                raise ImportPersistenceError("Failed to persist KPI rows.", import_id=batch_id) from exc
            raise

        logger.info(
            "KPI import succeeded import_id=%s processed=%s inserted=%s updated=%s rejected=%s",
            batch_id,
            processed,
            counts.inserted,
            counts.updated,
            rejected,
        )
        self._audit.log(
            action=AuditAction.IMPORT_SUCCESS,
            user_id=actor.user_id,
            meta={
                "importId": str(batch_id),
                "inserted": counts.inserted,
                "updated": counts.updated,
                "rejected": rejected,
            },
        )

        return KpiImportResult(
            import_id=str(batch_id),
            summary=KpiImportSummary(
                processed_rows=processed,
                inserted_rows=counts.inserted,
                updated_rows=counts.updated,
                rejected_rows=rejected,
            ),
            preview=parsed.preview,
            rejections=list(parsed.rejection_reasons),
        )

    def import_base(
        self,
        *,
        db: Session,
        filename: str,
        content: bytes,
        actor: Actor | None = None,
        overwrite: bool = False,
    ) -> CatalogImportResult:
        """
        Import one catalog workbook, then backfill descents from the catalog.

        The default insert-only mode never overwrites stored catalog rows;
        ``overwrite=True`` switches to upsert-and-count.
        """

        actor = actor or Actor()
        if not filename.lower().endswith(SPREADSHEET_EXTENSIONS):
            raise UnsupportedFormatError("Use an XLSX/XLS file for the base import.")

        rows = self._catalog_parser.parse(filename=filename, content=content)
        if not rows:
            raise EmptyCatalogError("No valid rows were found in the Base sheet.")

        batches = self._batch_repository_factory(db)
        batch_id = self._open_batch(
            db=db,
            batches=batches,
            filename=filename,
            file_hash=BASE_FILE_HASH,
            import_type=ImportType.BASE,
            rejection_report=dict(BASE_REJECTION_REPORT),
            actor=actor,
        )
        self._audit.log(
            action=AuditAction.IMPORT_CREATE,
            user_id=actor.user_id,
            meta={"importId": str(batch_id), "filename": filename, "type": "BASE"},
        )

        try:
            engine = self._engine_factory(db, batch_size=self._batch_size)
            counts: UpsertCounts
            if overwrite:
                counts = engine.upsert_catalog_rows(rows, import_id=batch_id)
            else:
                counts = engine.insert_only_catalog_rows(rows, import_id=batch_id)
            consolidated = engine.backfill_descents()
            batches.mark_success(
                batch_id=batch_id,
                processed_rows=len(rows),
                inserted_rows=counts.inserted,
                updated_rows=counts.updated,
                rejected_rows=0,
                skipped_rows=counts.skipped,
                consolidated_descents=consolidated,
                rejection_report=dict(BASE_REJECTION_REPORT),
            )
            db.commit()
        except Exception as exc:
            self._fail_batch(
                db=db,
                batches=batches,
                batch_id=batch_id,
                exc=exc,
                actor=actor,
                meta={"type": "BASE"},
            )
            if isinstance(exc, SQLAlchemyError):
                raise ImportPersistenceError("Failed to persist catalog rows.", import_id=batch_id) from exc
            raise

        summary = CatalogImportSummary(
            processed_rows=len(rows),
            inserted_rows=counts.inserted,
            updated_rows=counts.updated,
            skipped_rows=counts.skipped,
            consolidated_descents=consolidated,
        )
        logger.info(
            "Base import succeeded import_id=%s processed=%s inserted=%s updated=%s skipped=%s consolidated=%s",
            batch_id,
            summary.processed_rows,
            summary.inserted_rows,
            summary.updated_rows,
            summary.skipped_rows,
            summary.consolidated_descents,
        )
        self._audit.log(
            action=AuditAction.IMPORT_SUCCESS,
            user_id=actor.user_id,
            meta={
                "importId": str(batch_id),
                "type": "BASE",
                "processed": summary.processed_rows,
                "inserted": summary.inserted_rows,
                "updated": summary.updated_rows,
                "skipped": summary.skipped_rows,
                "consolidatedDescents": summary.consolidated_descents,
            },
        )
        return CatalogImportResult(import_id=str(batch_id), summary=summary)

    def get_batch(self, *, db: Session, import_id: uuid.UUID) -> ImportBatch | None:
        return self._batch_repository_factory(db).get_batch(import_id)

    def list_batches(
        self,
        *,
        db: Session,
        limit: int = 50,
        import_type: str | None = None,
    ) -> list[ImportBatch]:
        return self._batch_repository_factory(db).list_batches(limit=limit, import_type=import_type)

    # ------------------------------------------------------------------
    # Batch lifecycle internals
    # ------------------------------------------------------------------

    def _open_batch(
        self,
        *,
        db: Session,
        batches: ImportBatchRepository,
        filename: str,
        file_hash: str,
        import_type: str,
        rejection_report: Any,
        actor: Actor,
    ) -> uuid.UUID:
        try:
            batch = batches.create_batch(
                filename=filename,
                file_hash=file_hash,
                import_type=import_type,
                rejection_report=rejection_report,
                imported_by_user_id=actor.user_id,
            )
            batch_id = batch.id
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise ImportPersistenceError("Failed to create import batch.") from exc

        logger.info("Import batch created import_id=%s type=%s filename=%r", batch_id, import_type, filename)
        return batch_id

    def _fail_batch(
        self,
        *,
        db: Session,
        batches: ImportBatchRepository,
        batch_id: uuid.UUID,
        exc: Exception,
        actor: Actor,
        meta: dict[str, Any],
    ) -> None:
        logger.exception("Import failed import_id=%s; rolling back", batch_id)
        db.rollback()
        try:
            batches.mark_failed(batch_id=batch_id, error_message=str(exc) or type(exc).__name__)
            db.commit()
        except Exception:  # noqa: BLE001
            db.rollback()
            logger.exception("Could not mark import batch failed import_id=%s", batch_id)

        self._audit.log(
            action=AuditAction.IMPORT_FAIL,
            user_id=actor.user_id,
            meta={"importId": str(batch_id), **meta, "error": str(exc) or "unknown"},
        )


def build_import_service(session_factory: Callable[[], Session]) -> ImportService:
    """
    Build the import service with env-driven settings.
    """

    settings = get_import_settings()
    return ImportService(
        audit_logger=AuditLogger(session_factory),
        batch_size=settings.batch_size,
    )
