# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Header, status

from otms.db import SessionDep
from otms.exceptions import AppError, ForbiddenError
from otms.models.enums import Capability, Role
from otms.schemas.auth import AuthContext
from otms.services.directory import StaffDirectory, get_staff_directory
from otms.services.notifier import Notifier, get_notifier
from otms.services.store import OTRequestStore, SqlOTRequestStore


def _parse_roles(raw: str) -> list[Role]:
    roles: list[Role] = []
    for part in raw.split(","):
        name = part.strip().lower()
        if not name:
            continue
        try:
            roles.append(Role(name))
        except ValueError:
            raise AppError(f"Unknown role: {name}", status_code=status.HTTP_422_UNPROCESSABLE_ENTITY) from None
    return roles or [Role.EMPLOYEE]


async def get_auth_context(
    x_user_id: uuid.UUID = Header(),
    x_roles: str = Header(default="employee"),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(user_id=x_user_id, roles=_parse_roles(x_roles))


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


def require_capability(capability: Capability) -> Callable[[AuthContext], Awaitable[AuthContext]]:
    """Build a dependency that rejects callers whose roles lack ``capability``."""

    async def _dependency(auth: AuthDep) -> AuthContext:
        if not auth.can(capability):
            raise ForbiddenError(f"Missing permission: {capability.value}")
        return auth

    return _dependency


HolidayManagerDep = Annotated[AuthContext, Depends(require_capability(Capability.MANAGE_HOLIDAYS))]
StaffManagerDep = Annotated[AuthContext, Depends(require_capability(Capability.MANAGE_STAFF))]


def get_store(session: SessionDep) -> OTRequestStore:
    """FastAPI dependency for the SQL-backed OT request store."""
    return SqlOTRequestStore(session)


StoreDep = Annotated[OTRequestStore, Depends(get_store)]
NotifierDep = Annotated[Notifier, Depends(get_notifier)]
DirectoryDep = Annotated[StaffDirectory, Depends(get_staff_directory)]
