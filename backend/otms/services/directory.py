# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from otms.models.enums import Role


class StaffInfo(BaseModel):
    """Staff metadata from the HR directory."""

    id: uuid.UUID
    full_name: str
    email: str
    roles: list[Role] = Field(default_factory=lambda: [Role.EMPLOYEE])
    supervisor_id: uuid.UUID | None = None
    is_ot_eligible: bool = True


@runtime_checkable
class StaffDirectory(Protocol):
    """Interface for the staff directory."""

    async def get_staff(self, staff_id: uuid.UUID) -> StaffInfo | None:
        """Fetch staff metadata. Returns None if not found."""
        ...

    async def list_by_role(self, role: Role) -> list[StaffInfo]:
        """List every staff member holding ``role``."""
        ...


class InMemoryStaffDirectory:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._staff: dict[uuid.UUID, StaffInfo] = {}

    def seed(self, staff: StaffInfo) -> None:
        """Seed a staff member for testing."""
        self._staff[staff.id] = staff

    async def get_staff(self, staff_id: uuid.UUID) -> StaffInfo | None:
        return self._staff.get(staff_id)

    async def list_by_role(self, role: Role) -> list[StaffInfo]:
        return [s for s in self._staff.values() if role in s.roles]


_staff_directory: StaffDirectory = InMemoryStaffDirectory()


def get_staff_directory() -> StaffDirectory:
    """FastAPI dependency for the staff directory."""
    return _staff_directory


def set_staff_directory(directory: StaffDirectory) -> None:
    """Override the directory (for testing or production wiring)."""
    global _staff_directory
    _staff_directory = directory
