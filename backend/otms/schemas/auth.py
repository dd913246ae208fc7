# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel, Field

from otms.models.enums import Capability, Role
from otms.services.permissions import CapabilityCheck, capability_check_for


class AuthContext(BaseModel):
    """Dev auth context extracted from request headers."""

    user_id: uuid.UUID
    roles: list[Role] = Field(default_factory=lambda: [Role.EMPLOYEE])

    def has_role(self, role: Role) -> bool:
        return role in self.roles

    def capability_check(self) -> CapabilityCheck:
        """CapabilityCheck for this user's roles."""
        return capability_check_for(self.roles)

    def can(self, capability: Capability) -> bool:
        return self.capability_check()(capability)
