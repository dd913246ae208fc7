# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, Response, status

from otms.api.deps import AuthDep, DirectoryDep, NotifierDep, StoreDep
from otms.config import get_settings
from otms.db import SessionDep
from otms.exceptions import ForbiddenError
from otms.models.enums import ActionKind, Role
from otms.schemas.request import OTRequestListResponse, OTRequestResponse, SubmitOTRequestPayload
from otms.schemas.workflow import TransitionPayload, TransitionResult
from otms.services import request as request_service
from otms.services.workflow import apply_transition

requests_router = APIRouter(prefix="/ot-requests", tags=["ot-requests"])


@requests_router.post("", response_model=OTRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_request(
    payload: SubmitOTRequestPayload,
    session: SessionDep,
    auth: AuthDep,
    directory: DirectoryDep,
    notifier: NotifierDep,
) -> OTRequestResponse:
    """Submit a new OT claim as the acting employee."""
    return await request_service.submit_request(
        session, auth, payload, directory, notifier, get_settings().notification_timeout_seconds
    )


@requests_router.get("", response_model=OTRequestListResponse)
async def list_requests(
    session: SessionDep,
    auth: AuthDep,
    status_filter: str | None = Query(default=None, alias="status"),
    employee_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> OTRequestListResponse:
    """List OT requests visible to the caller, with optional filters."""
    return await request_service.list_requests(
        session, auth, status_filter=status_filter, employee_id=employee_id, offset=offset, limit=limit
    )


@requests_router.get("/queue", response_model=OTRequestListResponse)
async def work_queue(
    session: SessionDep,
    auth: AuthDep,
    role: Role = Query(),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> OTRequestListResponse:
    """Requests awaiting action from the caller in the given role."""
    if not auth.has_role(role) and not auth.has_role(Role.ADMIN):
        raise ForbiddenError(f"You do not hold the {role.value} role")
    assigned_to = auth.user_id if role == Role.SUPERVISOR else None
    return await request_service.list_requests(
        session, auth, queue_role=role, assigned_to=assigned_to, offset=offset, limit=limit
    )


@requests_router.get("/{request_id}", response_model=OTRequestResponse)
async def get_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> OTRequestResponse:
    """Get a single OT request."""
    return await request_service.get_request(session, auth, request_id)


@requests_router.post("/actions/{action}", response_model=TransitionResult)
async def apply_action(
    action: ActionKind,
    payload: TransitionPayload,
    response: Response,
    auth: AuthDep,
    store: StoreDep,
    notifier: NotifierDep,
    directory: DirectoryDep,
) -> TransitionResult:
    """Apply a workflow action to a batch of OT requests. 409 if any request is refused."""
    result = await apply_transition(
        store,
        notifier,
        directory,
        auth,
        action,
        payload.request_ids,
        remarks=payload.remarks,
        denial_remarks=payload.denial_remarks,
        notification_timeout=get_settings().notification_timeout_seconds,
    )
    if not result.success:
        response.status_code = status.HTTP_409_CONFLICT
    return result
