"""Central role -> capability table.

Role-gated workflow steps (HR and management) ask a CapabilityCheck rather
than comparing role strings, so the role sets live here only.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from otms.models.enums import Capability, Role

CapabilityCheck = Callable[[Capability], bool]

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.EMPLOYEE: frozenset(),
    Role.SUPERVISOR: frozenset(),
    Role.HR: frozenset(
        {
            Capability.HR_CERTIFY,
            Capability.HR_REJECT,
            Capability.MANAGE_HOLIDAYS,
            Capability.VIEW_ALL_REQUESTS,
        }
    ),
    Role.MANAGEMENT: frozenset(
        {Capability.MANAGEMENT_APPROVE, Capability.MANAGEMENT_REJECT, Capability.VIEW_ALL_REQUESTS}
    ),
    Role.ADMIN: frozenset(Capability),
}


def capabilities_for(roles: Iterable[Role]) -> frozenset[Capability]:
    """Union of the capabilities granted by each role."""
    granted: set[Capability] = set()
    for role in roles:
        granted |= ROLE_CAPABILITIES.get(role, frozenset())
    return frozenset(granted)


def capability_check_for(roles: Iterable[Role]) -> CapabilityCheck:
    """Build a CapabilityCheck bound to a fixed set of roles."""
    granted = capabilities_for(roles)
    return granted.__contains__


def deny_all(capability: Capability) -> bool:
    """CapabilityCheck that grants nothing."""
    return False
