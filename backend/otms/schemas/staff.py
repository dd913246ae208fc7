# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel, Field

from otms.models.enums import Role


class UpsertStaffRequest(BaseModel):
    """Request body for creating or updating a staff directory entry."""

    full_name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    roles: list[Role] = Field(default_factory=lambda: [Role.EMPLOYEE], min_length=1)
    supervisor_id: uuid.UUID | None = None
    is_ot_eligible: bool = True


class StaffResponse(BaseModel):
    """Response schema for a staff directory entry."""

    id: uuid.UUID
    full_name: str
    email: str
    roles: list[Role]
    supervisor_id: uuid.UUID | None
    is_ot_eligible: bool
