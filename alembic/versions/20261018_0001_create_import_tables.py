"""create import, kpi, catalog, descent and audit tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "imports",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("filename", sa.Text(), nullable=False),
        sa.Column(
            "file_hash",
            sa.String(length=128),
            nullable=False,
            comment="SHA-256 of the raw KPI file; 'base-import' for catalog imports",
        ),
        sa.Column("import_type", sa.String(length=16), nullable=False, comment="kpi, base"),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("processed_rows", sa.Integer(), nullable=False),
        sa.Column("inserted_rows", sa.Integer(), nullable=False),
        sa.Column("updated_rows", sa.Integer(), nullable=False),
        sa.Column("rejected_rows", sa.Integer(), nullable=False),
        sa.Column("skipped_rows", sa.Integer(), nullable=False),
        sa.Column("consolidated_descents", sa.Integer(), nullable=False),
        sa.Column(
            "rejection_report",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment="Per-row rejection strings (KPI) or a type marker object (catalog)",
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("imported_by_user_id", sa.Text(), nullable=True),
        sa.Column("imported_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_imports_imported_at", "imports", ["imported_at"], unique=False)
    op.create_index("ix_imports_status", "imports", ["status"], unique=False)

    op.create_table(
        "kpi_daily",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_name", sa.Text(), nullable=False),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("orders_count", sa.Integer(), nullable=False),
        sa.Column("boxes_count", sa.Integer(), nullable=False),
        sa.Column("weight_kg", sa.Numeric(), nullable=False),
        sa.Column("source_import_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["source_import_id"], ["imports.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_name", "work_date", name="uq_kpi_daily_user_work_date"),
    )
    op.create_index("ix_kpi_daily_work_date", "kpi_daily", ["work_date"], unique=False)

    op.create_table(
        "order_catalog",
        sa.Column("order_number", sa.Text(), nullable=False),
        sa.Column("lot", sa.Text(), nullable=True),
        sa.Column("volume", sa.Integer(), nullable=True),
        sa.Column("weight_kg", sa.Numeric(), nullable=True),
        sa.Column("route", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("base_date", sa.Date(), nullable=True),
        sa.Column("source_import_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["source_import_id"], ["imports.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("order_number"),
    )

    op.create_table(
        "descents",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("order_number", sa.Text(), nullable=False),
        sa.Column("descended_by_user_id", sa.Text(), nullable=True),
        sa.Column("descended_by_name", sa.Text(), nullable=False),
        sa.Column("pen_color", sa.Text(), nullable=False),
        sa.Column("product_image_path", sa.Text(), nullable=True),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("lot", sa.Text(), nullable=True),
        sa.Column("volume", sa.Integer(), nullable=True),
        sa.Column("weight_kg", sa.Numeric(), nullable=True),
        sa.Column("route", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_descents_order_number", "descents", ["order_number"], unique=False)
    op.create_index("ix_descents_work_date", "descents", ["work_date"], unique=False)

    op.create_table(
        "audit_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=True),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("meta", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_log_action", "audit_log", ["action"], unique=False)
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_audit_log_created_at", table_name="audit_log")
    op.drop_index("ix_audit_log_action", table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_index("ix_descents_work_date", table_name="descents")
    op.drop_index("ix_descents_order_number", table_name="descents")
    op.drop_table("descents")
    op.drop_table("order_catalog")
    op.drop_index("ix_kpi_daily_work_date", table_name="kpi_daily")
    op.drop_table("kpi_daily")
    op.drop_index("ix_imports_status", table_name="imports")
    op.drop_index("ix_imports_imported_at", table_name="imports")
    op.drop_table("imports")
