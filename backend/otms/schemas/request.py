# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import Self

from pydantic import BaseModel, Field, model_validator

from otms.models.enums import DayType, OTStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitOTRequestPayload(BaseModel):
    """Request body for submitting a new OT claim."""

    ot_date: date
    start_time: time
    end_time: time
    reason: str | None = Field(default=None, max_length=1000)
    respective_supervisor_id: uuid.UUID | None = None

    @model_validator(mode="after")
    def _validate_times(self) -> Self:
        if self.end_time <= self.start_time:
            msg = "end_time must be after start_time"
            raise ValueError(msg)
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class OTRequestResponse(BaseModel):
    """Response schema for a single OT request."""

    id: uuid.UUID
    ticket_number: str
    employee_id: uuid.UUID
    supervisor_id: uuid.UUID | None
    respective_supervisor_id: uuid.UUID | None
    route: str
    status: OTStatus
    status_label: str
    ot_date: date
    start_time: time
    end_time: time
    total_hours: float
    day_type: DayType
    reason: str | None
    supervisor_confirmation_at: datetime | None
    supervisor_confirmation_remarks: str | None
    respective_supervisor_confirmed_at: datetime | None
    respective_supervisor_remarks: str | None
    respective_supervisor_denied_at: datetime | None
    respective_supervisor_denial_remarks: str | None
    supervisor_verified_at: datetime | None
    supervisor_remarks: str | None
    hr_id: uuid.UUID | None
    hr_approved_at: datetime | None
    hr_remarks: str | None
    management_reviewed_at: datetime | None
    management_remarks: str | None
    rejection_stage: str | None
    parent_request_id: uuid.UUID | None
    resubmission_count: int
    created_at: datetime
    updated_at: datetime


class OTRequestListResponse(BaseModel):
    """Paginated list of OT requests."""

    items: list[OTRequestResponse]
    total: int
