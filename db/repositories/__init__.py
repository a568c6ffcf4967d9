"""
Repository layer exports.
"""

from db.repositories.audit_log_repository import AuditLogRepository
from db.repositories.descent_repository import DescentRepository
from db.repositories.errors import ImportBatchStateError, RepositoryError
from db.repositories.import_batch_repository import ImportBatchRepository
from db.repositories.kpi_repository import KpiDailyRepository
from db.repositories.order_catalog_repository import OrderCatalogRepository

__all__ = [
    "AuditLogRepository",
    "DescentRepository",
    "ImportBatchRepository",
    "ImportBatchStateError",
    "KpiDailyRepository",
    "OrderCatalogRepository",
    "RepositoryError",
]
