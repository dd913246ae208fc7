# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field


class CreateHolidayRequest(BaseModel):
    """Request body for registering a public holiday."""

    date: date
    name: str = Field(min_length=1, max_length=255)


class HolidayResponse(BaseModel):
    """Response schema for a public holiday."""

    id: uuid.UUID
    date: date
    name: str


class HolidayListResponse(BaseModel):
    """Paginated list of public holidays."""

    items: list[HolidayResponse]
    total: int
