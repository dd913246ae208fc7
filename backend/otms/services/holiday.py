from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import extract, func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from otms.exceptions import ConflictError, NotFoundError
from otms.models.enums import AuditAction, AuditEntityType, DayType
from otms.models.holiday import PublicHoliday
from otms.schemas.holiday import HolidayListResponse, HolidayResponse
from otms.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    import uuid
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from otms.schemas.auth import AuthContext
    from otms.schemas.holiday import CreateHolidayRequest

_SATURDAY = 5
_SUNDAY = 6


def _build_holiday_response(holiday: PublicHoliday) -> HolidayResponse:
    return HolidayResponse(
        id=holiday.id,
        date=holiday.date,
        name=holiday.name,
    )


def day_type_for(ot_date: date, is_holiday: bool) -> DayType:
    """Classify a date. A holiday wins over the weekend."""
    if is_holiday:
        return DayType.PUBLIC_HOLIDAY
    weekday = ot_date.weekday()
    if weekday == _SATURDAY:
        return DayType.SATURDAY
    if weekday == _SUNDAY:
        return DayType.SUNDAY
    return DayType.WEEKDAY


async def resolve_day_type(session: AsyncSession, ot_date: date) -> DayType:
    """Day type of ``ot_date`` using the registered public holidays."""
    result = await session.execute(select(PublicHoliday.id).where(col(PublicHoliday.date) == ot_date))
    return day_type_for(ot_date, result.first() is not None)


async def create_holiday(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateHolidayRequest,
) -> HolidayResponse:
    """Register a public holiday."""
    holiday = PublicHoliday(date=payload.date, name=payload.name)
    session.add(holiday)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Holiday already exists for this date") from None

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(holiday),
    )

    await session.commit()
    await session.refresh(holiday)
    return _build_holiday_response(holiday)


async def list_holidays(
    session: AsyncSession,
    year: int | None = None,
    offset: int = 0,
    limit: int = 50,
) -> HolidayListResponse:
    """List public holidays with optional year filter."""
    base_filter = []
    if year is not None:
        base_filter.append(extract("year", col(PublicHoliday.date)) == year)

    count_result = await session.execute(select(func.count()).select_from(PublicHoliday).where(*base_filter))
    total = count_result.scalar_one()

    result = await session.execute(
        select(PublicHoliday).where(*base_filter).order_by(col(PublicHoliday.date)).offset(offset).limit(limit)
    )
    holidays = list(result.scalars().all())

    return HolidayListResponse(
        items=[_build_holiday_response(h) for h in holidays],
        total=total,
    )


async def delete_holiday(
    session: AsyncSession,
    auth: AuthContext,
    holiday_id: uuid.UUID,
) -> None:
    """Delete a public holiday."""
    holiday = await session.get(PublicHoliday, holiday_id)
    if holiday is None:
        raise NotFoundError("Holiday not found")

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        action=AuditAction.DELETE,
        before_json=model_to_audit_dict(holiday),
    )

    await session.delete(holiday)
    await session.commit()
