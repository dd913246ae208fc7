# ruff: noqa: TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter

from otms.api.deps import AuthDep, DirectoryDep, StaffManagerDep
from otms.exceptions import AppError, NotFoundError
from otms.schemas.staff import StaffResponse, UpsertStaffRequest
from otms.services.directory import InMemoryStaffDirectory, StaffInfo
from otms.services.request import list_respective_supervisors

staff_router = APIRouter(prefix="/staff", tags=["staff"])


def _build_staff_response(staff: StaffInfo) -> StaffResponse:
    return StaffResponse(
        id=staff.id,
        full_name=staff.full_name,
        email=staff.email,
        roles=staff.roles,
        supervisor_id=staff.supervisor_id,
        is_ot_eligible=staff.is_ot_eligible,
    )


@staff_router.get(
    "/supervisors",
    response_model=list[StaffResponse],
)
async def list_supervisors(
    auth: AuthDep,
    directory: DirectoryDep,
) -> list[StaffResponse]:
    """Supervisors the caller may pick as respective supervisor."""
    supervisors = await list_respective_supervisors(auth, directory)
    return [_build_staff_response(s) for s in supervisors]


@staff_router.put(
    "/{staff_id}",
    response_model=StaffResponse,
)
async def upsert_staff(
    staff_id: uuid.UUID,
    payload: UpsertStaffRequest,
    auth: StaffManagerDep,
    directory: DirectoryDep,
) -> StaffResponse:
    """Create or update a staff entry in the stub directory (admin only)."""
    if not isinstance(directory, InMemoryStaffDirectory):
        raise AppError("The configured staff directory is read-only", status_code=405)
    staff = StaffInfo(
        id=staff_id,
        full_name=payload.full_name,
        email=payload.email,
        roles=payload.roles,
        supervisor_id=payload.supervisor_id,
        is_ot_eligible=payload.is_ot_eligible,
    )
    directory.seed(staff)
    return _build_staff_response(staff)


@staff_router.get(
    "/{staff_id}",
    response_model=StaffResponse,
)
async def get_staff(
    staff_id: uuid.UUID,
    auth: AuthDep,
    directory: DirectoryDep,
) -> StaffResponse:
    """Get a staff entry from the directory."""
    staff = await directory.get_staff(staff_id)
    if staff is None:
        raise NotFoundError("Staff member not found")
    return _build_staff_response(staff)
