"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_STATUSES = (
    "pending_verification",
    "pending_respective_supervisor_confirmation",
    "respective_supervisor_confirmed",
    "pending_supervisor_verification",
    "supervisor_confirmed",
    "supervisor_verified",
    "hr_certified",
    "management_approved",
    "rejected",
)


def _stage_at(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=True)


def upgrade() -> None:
    op.create_table(
        "ot_request",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("ticket_number", sa.String(length=32), nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("supervisor_id", sa.Uuid(), nullable=True),
        sa.Column("respective_supervisor_id", sa.Uuid(), nullable=True),
        sa.Column("status", sa.String(length=50), server_default="pending_verification", nullable=False),
        sa.Column("ot_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("total_hours", sa.Float(), nullable=False),
        sa.Column("day_type", sa.String(length=20), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        _stage_at("supervisor_confirmation_at"),
        sa.Column("supervisor_confirmation_remarks", sa.String(), nullable=True),
        _stage_at("respective_supervisor_confirmed_at"),
        sa.Column("respective_supervisor_remarks", sa.String(), nullable=True),
        _stage_at("respective_supervisor_denied_at"),
        sa.Column("respective_supervisor_denial_remarks", sa.String(), nullable=True),
        _stage_at("supervisor_verified_at"),
        sa.Column("supervisor_remarks", sa.String(), nullable=True),
        sa.Column("hr_id", sa.Uuid(), nullable=True),
        _stage_at("hr_approved_at"),
        sa.Column("hr_remarks", sa.String(), nullable=True),
        _stage_at("management_reviewed_at"),
        sa.Column("management_remarks", sa.String(), nullable=True),
        sa.Column("rejection_stage", sa.String(length=50), nullable=True),
        sa.Column("parent_request_id", sa.Uuid(), nullable=True),
        sa.Column("resubmission_count", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in _STATUSES) + ")",
            name="check_valid_status",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("ticket_number"),
    )
    op.create_index("ix_ot_request_status_created", "ot_request", ["status", "created_at"])
    op.create_index(op.f("ix_ot_request_status"), "ot_request", ["status"])
    op.create_index(op.f("ix_ot_request_employee_id"), "ot_request", ["employee_id"])
    op.create_index(op.f("ix_ot_request_supervisor_id"), "ot_request", ["supervisor_id"])
    op.create_index(op.f("ix_ot_request_respective_supervisor_id"), "ot_request", ["respective_supervisor_id"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("remarks", sa.String(), nullable=True),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])
    op.create_index(op.f("ix_audit_log_created_at"), "audit_log", ["created_at"])

    op.create_table(
        "public_holiday",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_public_holiday_date"), "public_holiday", ["date"], unique=True)


def downgrade() -> None:
    op.drop_index(op.f("ix_public_holiday_date"), table_name="public_holiday")
    op.drop_table("public_holiday")
    op.drop_index(op.f("ix_audit_log_created_at"), table_name="audit_log")
    op.drop_index("ix_audit_entity", table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_index(op.f("ix_ot_request_respective_supervisor_id"), table_name="ot_request")
    op.drop_index(op.f("ix_ot_request_supervisor_id"), table_name="ot_request")
    op.drop_index(op.f("ix_ot_request_employee_id"), table_name="ot_request")
    op.drop_index(op.f("ix_ot_request_status"), table_name="ot_request")
    op.drop_index("ix_ot_request_status_created", table_name="ot_request")
    op.drop_table("ot_request")
