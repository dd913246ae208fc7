# ruff: noqa: TC003
from __future__ import annotations

import logging
import secrets
import string
import uuid
from datetime import date, datetime, time
from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from otms.exceptions import AppError, ConflictError, ForbiddenError, NotFoundError
from otms.models.enums import (
    AuditAction,
    AuditEntityType,
    Capability,
    DayType,
    NotificationTemplate,
    OTStatus,
    Role,
)
from otms.models.request import OTRequest
from otms.schemas.request import OTRequestListResponse, OTRequestResponse
from otms.services.audit import model_to_audit_dict, write_audit_log
from otms.services.holiday import resolve_day_type
from otms.services.notifier import NotificationMessage, deliver
from otms.services.routing import Route, classify_route, initial_status
from otms.services.status import STATUS_LABELS, statuses_for_filter, statuses_for_queue

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

    from otms.schemas.auth import AuthContext
    from otms.schemas.request import SubmitOTRequestPayload
    from otms.services.directory import StaffDirectory, StaffInfo
    from otms.services.notifier import Notifier

logger = logging.getLogger(__name__)

_TICKET_ALPHABET = string.ascii_uppercase + string.digits


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def generate_ticket_number(ot_date: date) -> str:
    """Human-readable reference: OT-<yyyymmdd>-<4 random base-36 chars>."""
    suffix = "".join(secrets.choice(_TICKET_ALPHABET) for _ in range(4))
    return f"OT-{ot_date.strftime('%Y%m%d')}-{suffix}"


def compute_total_hours(ot_date: date, start_time: time, end_time: time) -> float:
    """Hours between start and end on the same day, rounded to 2 decimals."""
    delta = datetime.combine(ot_date, end_time) - datetime.combine(ot_date, start_time)
    return round(delta.total_seconds() / 3600, 2)


def build_request_response(request: OTRequest) -> OTRequestResponse:
    """Map an OT request model to its response schema."""
    status = OTStatus(request.status)
    return OTRequestResponse(
        id=request.id,
        ticket_number=request.ticket_number,
        employee_id=request.employee_id,
        supervisor_id=request.supervisor_id,
        respective_supervisor_id=request.respective_supervisor_id,
        route=classify_route(request).value,
        status=status,
        status_label=STATUS_LABELS[status],
        ot_date=request.ot_date,
        start_time=request.start_time,
        end_time=request.end_time,
        total_hours=request.total_hours,
        day_type=DayType(request.day_type),
        reason=request.reason,
        supervisor_confirmation_at=request.supervisor_confirmation_at,
        supervisor_confirmation_remarks=request.supervisor_confirmation_remarks,
        respective_supervisor_confirmed_at=request.respective_supervisor_confirmed_at,
        respective_supervisor_remarks=request.respective_supervisor_remarks,
        respective_supervisor_denied_at=request.respective_supervisor_denied_at,
        respective_supervisor_denial_remarks=request.respective_supervisor_denial_remarks,
        supervisor_verified_at=request.supervisor_verified_at,
        supervisor_remarks=request.supervisor_remarks,
        hr_id=request.hr_id,
        hr_approved_at=request.hr_approved_at,
        hr_remarks=request.hr_remarks,
        management_reviewed_at=request.management_reviewed_at,
        management_remarks=request.management_remarks,
        rejection_stage=request.rejection_stage,
        parent_request_id=request.parent_request_id,
        resubmission_count=request.resubmission_count,
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


async def _get_request_or_404(session: AsyncSession, request_id: uuid.UUID) -> OTRequest:
    """Fetch a request by ID. Raises 404 if not found."""
    request = await session.get(OTRequest, request_id, populate_existing=True)
    if request is None:
        raise NotFoundError("Request not found")
    return request


def _can_view_all(auth: AuthContext) -> bool:
    return auth.can(Capability.VIEW_ALL_REQUESTS)


def is_visible_to(request: OTRequest, auth: AuthContext) -> bool:
    """Employees see their own claims, supervisors also the ones assigned to them."""
    if _can_view_all(auth):
        return True
    if request.employee_id == auth.user_id:
        return True
    return auth.has_role(Role.SUPERVISOR) and auth.user_id in (
        request.supervisor_id,
        request.respective_supervisor_id,
    )


def _visibility_clause(auth: AuthContext) -> ColumnElement[bool] | None:
    """SQL counterpart of is_visible_to. None means no restriction."""
    if _can_view_all(auth):
        return None
    own = col(OTRequest.employee_id) == auth.user_id
    if not auth.has_role(Role.SUPERVISOR):
        return own
    return or_(
        own,
        col(OTRequest.supervisor_id) == auth.user_id,
        col(OTRequest.respective_supervisor_id) == auth.user_id,
    )


async def _check_respective_supervisor(
    directory: StaffDirectory, staff: StaffInfo, respective_supervisor_id: uuid.UUID
) -> None:
    """Respective supervisor must be another supervisor, not the direct one."""
    if respective_supervisor_id == staff.id:
        raise AppError("You cannot be your own respective supervisor", status_code=422)
    if respective_supervisor_id == staff.supervisor_id:
        raise AppError("Your direct supervisor cannot be your respective supervisor", status_code=422)
    candidate = await directory.get_staff(respective_supervisor_id)
    if candidate is None or Role.SUPERVISOR not in candidate.roles:
        raise AppError("Respective supervisor must be a supervisor", status_code=422)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def submit_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: SubmitOTRequestPayload,
    directory: StaffDirectory,
    notifier: Notifier,
    notification_timeout: float = 5.0,
) -> OTRequestResponse:
    """Submit an OT claim on behalf of the acting employee.

    Flow:
    1. Look up the employee in the staff directory and check OT eligibility.
       A named respective supervisor must hold the supervisor role and be
       neither the employee nor their direct supervisor.
    2. Resolve the day type from the holiday calendar.
    3. Build the request; the route classifier picks the initial status.
    4. Insert, audit, commit.
    5. Notify the first approver best-effort.
    """
    # 1.
    staff = await directory.get_staff(auth.user_id)
    if staff is None:
        raise NotFoundError("Employee profile not found")
    if not staff.is_ot_eligible:
        raise ForbiddenError("You are not eligible to submit OT requests")
    if payload.respective_supervisor_id is not None:
        await _check_respective_supervisor(directory, staff, payload.respective_supervisor_id)

    # 2.
    day_type = await resolve_day_type(session, payload.ot_date)

    # 3.
    ot_request = OTRequest(
        ticket_number=generate_ticket_number(payload.ot_date),
        employee_id=auth.user_id,
        supervisor_id=staff.supervisor_id,
        respective_supervisor_id=payload.respective_supervisor_id,
        ot_date=payload.ot_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        total_hours=compute_total_hours(payload.ot_date, payload.start_time, payload.end_time),
        day_type=day_type.value,
        reason=payload.reason,
    )
    route = classify_route(ot_request)
    ot_request.status = initial_status(route).value

    # 4.
    session.add(ot_request)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Ticket number collision, please resubmit") from None

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.OT_REQUEST,
        entity_id=ot_request.id,
        action=AuditAction.SUBMIT,
        after_json=model_to_audit_dict(ot_request),
    )

    await session.commit()
    await session.refresh(ot_request)
    logger.info("OT request %s submitted on route %s", ot_request.ticket_number, route.value)

    # 5.
    if route == Route.B:
        target, template = ot_request.respective_supervisor_id, NotificationTemplate.PENDING_CONFIRMATION
    else:
        target, template = ot_request.supervisor_id, NotificationTemplate.NEW_REQUEST
    if target is not None:
        message = NotificationMessage(target_user_id=target, template_kind=template, request_id=ot_request.id)
        await deliver(notifier, [message], notification_timeout)

    return build_request_response(ot_request)


async def get_request(session: AsyncSession, auth: AuthContext, request_id: uuid.UUID) -> OTRequestResponse:
    """Get a single request by ID. Requests outside the caller's scope are reported as not found."""
    ot_request = await _get_request_or_404(session, request_id)
    if not is_visible_to(ot_request, auth):
        raise NotFoundError("Request not found")
    return build_request_response(ot_request)


async def list_requests(
    session: AsyncSession,
    auth: AuthContext,
    status_filter: str | None = None,
    queue_role: Role | None = None,
    employee_id: uuid.UUID | None = None,
    assigned_to: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> OTRequestListResponse:
    """List requests with optional filters, ordered by created_at DESC.

    ``status_filter`` accepts a status or a named filter ("completed",
    "pending_certification"). ``queue_role`` narrows to that role's work
    queue. ``assigned_to`` keeps requests where the user is the direct or
    respective supervisor. Results never leave the caller's read scope.
    """
    base_filters = []
    if (visibility := _visibility_clause(auth)) is not None:
        base_filters.append(visibility)

    if status_filter is not None:
        try:
            statuses = statuses_for_filter(status_filter)
        except ValueError as exc:
            raise AppError(str(exc), status_code=422) from None
        base_filters.append(col(OTRequest.status).in_([s.value for s in statuses]))
    if queue_role is not None:
        base_filters.append(col(OTRequest.status).in_([s.value for s in statuses_for_queue(queue_role)]))
    if employee_id is not None:
        base_filters.append(col(OTRequest.employee_id) == employee_id)
    if assigned_to is not None:
        base_filters.append(
            or_(col(OTRequest.supervisor_id) == assigned_to, col(OTRequest.respective_supervisor_id) == assigned_to)
        )

    count_result = await session.execute(select(func.count()).select_from(OTRequest).where(*base_filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(OTRequest)
        .where(*base_filters)
        .order_by(col(OTRequest.created_at).desc())
        .offset(offset)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    requests = list(result.scalars().all())

    return OTRequestListResponse(
        items=[build_request_response(r) for r in requests],
        total=total,
    )


async def list_respective_supervisors(auth: AuthContext, directory: StaffDirectory) -> list[StaffInfo]:
    """Supervisors the caller may name as respective supervisor on a claim."""
    staff = await directory.get_staff(auth.user_id)
    excluded = {auth.user_id}
    if staff is not None and staff.supervisor_id is not None:
        excluded.add(staff.supervisor_id)
    supervisors = await directory.list_by_role(Role.SUPERVISOR)
    return sorted((s for s in supervisors if s.id not in excluded), key=lambda s: s.full_name)
