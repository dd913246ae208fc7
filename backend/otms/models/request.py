# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field

from otms.models.base import TimestampMixin, UUIDBase
from otms.models.enums import OTStatus

_VALID_STATUSES = ", ".join(f"'{s.value}'" for s in OTStatus)


class OTRequest(UUIDBase, TimestampMixin, table=True):
    """An overtime claim and the audit trail of its approval workflow.

    Each workflow stage owns an ``<stage>_at`` timestamp and a remarks
    column. A timestamp is set when its stage completes and cleared again
    when a rejection rewinds the workflow past that stage.
    """

    __tablename__ = "ot_request"
    __table_args__ = (
        sa.Index("ix_ot_request_status_created", "status", "created_at"),
        sa.CheckConstraint(f"status IN ({_VALID_STATUSES})", name="check_valid_status"),
    )

    ticket_number: str = Field(max_length=32, unique=True)
    employee_id: uuid.UUID = Field(index=True)
    supervisor_id: uuid.UUID | None = Field(default=None, index=True)
    respective_supervisor_id: uuid.UUID | None = Field(default=None, index=True)
    status: str = Field(
        default=OTStatus.PENDING_VERIFICATION,
        max_length=50,
        index=True,
        sa_column_kwargs={"server_default": OTStatus.PENDING_VERIFICATION.value},
    )

    ot_date: datetime.date
    start_time: datetime.time
    end_time: datetime.time
    total_hours: float
    day_type: str = Field(max_length=20)
    reason: str | None = None

    # Route A confirmation
    supervisor_confirmation_at: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    supervisor_confirmation_remarks: str | None = None
    # Route B confirmation / denial
    respective_supervisor_confirmed_at: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    respective_supervisor_remarks: str | None = None
    respective_supervisor_denied_at: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    respective_supervisor_denial_remarks: str | None = None
    # Route B verification
    supervisor_verified_at: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    supervisor_remarks: str | None = None
    # HR
    hr_id: uuid.UUID | None = None
    hr_approved_at: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    hr_remarks: str | None = None
    # Management
    management_reviewed_at: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    management_remarks: str | None = None

    rejection_stage: str | None = Field(default=None, max_length=50)
    parent_request_id: uuid.UUID | None = None
    resubmission_count: int = 0
