# ruff: noqa: TC003
from __future__ import annotations

import datetime

from sqlmodel import Field

from otms.models.base import UUIDBase


class PublicHoliday(UUIDBase, table=True):
    """A public holiday. Overtime worked on this date is classed as public_holiday."""

    __tablename__ = "public_holiday"

    date: datetime.date = Field(unique=True, index=True)
    name: str = Field(max_length=255)
