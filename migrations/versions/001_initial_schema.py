"""Initial schema: audit events and the retention lifecycle

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "audit_events",
        sa.Column("event_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("actor", sa.String(255), nullable=False),
        sa.Column("module", sa.String(100), nullable=True),
        sa.Column("action", sa.String(100), nullable=True),
        sa.Column("severity", sa.String(32), nullable=True),
        sa.Column("subject_id", sa.String(255), nullable=True),
        sa.Column("subject_type", sa.String(100), nullable=True),
        sa.Column("subject_name", sa.String(255), nullable=True),
        sa.Column("details", postgresql.JSONB, nullable=True),
        sa.Column("before_data", postgresql.JSONB, nullable=True),
        sa.Column("after_data", postgresql.JSONB, nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="active"),
        sa.Column("retention_date", sa.Date, nullable=True),
        sa.Column("exported_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_event_created", "audit_events", ["created_at"])
    op.create_index("idx_event_category", "audit_events", ["category"])
    op.create_index("idx_event_actor", "audit_events", ["actor"])
    op.create_index("idx_event_lifecycle", "audit_events", ["status", "retention_date"])
    op.create_index("idx_event_subject", "audit_events", ["subject_type", "subject_id"])

    op.create_table(
        "event_relations",
        sa.Column("relation_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("audit_events.event_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "related_event_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("audit_events.event_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("relation_type", sa.String(32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_relation_event", "event_relations", ["event_id"])
    op.create_index("idx_relation_related", "event_relations", ["related_event_id"])

    op.create_table(
        "retention_config",
        sa.Column("config_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("retention_months", sa.Integer, nullable=False),
        sa.Column("alert_days_before", sa.Integer, nullable=False),
        sa.Column("auto_delete_enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("updated_by", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "retention_alerts",
        sa.Column("alert_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("alert_type", sa.String(32), nullable=False),
        sa.Column("event_count", sa.Integer, nullable=False),
        sa.Column("date_range_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("date_range_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="pending"),
        sa.Column("export_filename", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("acknowledged_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("exported_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_alert_user_status", "retention_alerts", ["user_id", "status"])
    op.create_index("idx_alert_created", "retention_alerts", ["created_at"])

    op.create_table(
        "export_records",
        sa.Column("export_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("exported_by", sa.String(255), nullable=False),
        sa.Column("export_format", sa.String(32), nullable=False),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("event_count", sa.Integer, nullable=False),
        sa.Column("date_range_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("date_range_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("file_size_bytes", sa.BigInteger, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_export_created", "export_records", ["created_at"])

    op.create_table(
        "deletion_receipts",
        sa.Column("receipt_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("deleted_by", sa.String(255), nullable=False),
        sa.Column("deleted_count", sa.Integer, nullable=False),
        sa.Column("date_range_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("date_range_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "alert_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("retention_alerts.alert_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("verification_checksum", sa.String(16), nullable=True),
    )
    op.create_index("idx_receipt_deleted_at", "deletion_receipts", ["deleted_at"])


def downgrade() -> None:
    op.drop_table("deletion_receipts")
    op.drop_table("export_records")
    op.drop_table("retention_alerts")
    op.drop_table("retention_config")
    op.drop_table("event_relations")
    op.drop_table("audit_events")
