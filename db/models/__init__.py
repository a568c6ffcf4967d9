"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.audit_log import AuditLog
from db.models.descent import Descent
from db.models.import_batch import ImportBatch
from db.models.kpi_daily import KpiDaily
from db.models.order_catalog import OrderCatalog

__all__ = [
    "AuditLog",
    "Descent",
    "ImportBatch",
    "KpiDaily",
    "OrderCatalog",
]
