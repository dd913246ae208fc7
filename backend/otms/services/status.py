"""Declarative status model for the OT approval workflow.

Route A:  pending_verification -> supervisor_confirmed
Route B:  pending_respective_supervisor_confirmation -> respective_supervisor_confirmed
          -> pending_supervisor_verification -> supervisor_verified
Shared:   {supervisor_confirmed | supervisor_verified} -> hr_certified -> management_approved

Rejections rewind to an upstream pending state (HR) or back to hr_certified
(management). A respective supervisor's denial moves the request to rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from otms.models.enums import OTStatus, Role, TransitionRole

if TYPE_CHECKING:
    from otms.models.request import OTRequest


@dataclass(frozen=True)
class Transition:
    """A legal edge of the workflow graph."""

    from_status: OTStatus
    to_status: OTStatus
    role: TransitionRole


TRANSITIONS: tuple[Transition, ...] = (
    Transition(OTStatus.PENDING_VERIFICATION, OTStatus.SUPERVISOR_CONFIRMED, TransitionRole.SUPERVISOR),
    Transition(
        OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION,
        OTStatus.RESPECTIVE_SUPERVISOR_CONFIRMED,
        TransitionRole.SUPERVISOR,
    ),
    Transition(OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION, OTStatus.REJECTED, TransitionRole.SUPERVISOR),
    Transition(
        OTStatus.RESPECTIVE_SUPERVISOR_CONFIRMED,
        OTStatus.PENDING_SUPERVISOR_VERIFICATION,
        TransitionRole.SYSTEM,
    ),
    Transition(OTStatus.PENDING_SUPERVISOR_VERIFICATION, OTStatus.SUPERVISOR_VERIFIED, TransitionRole.SUPERVISOR),
    Transition(OTStatus.SUPERVISOR_CONFIRMED, OTStatus.HR_CERTIFIED, TransitionRole.HR),
    Transition(OTStatus.SUPERVISOR_VERIFIED, OTStatus.HR_CERTIFIED, TransitionRole.HR),
    Transition(OTStatus.HR_CERTIFIED, OTStatus.PENDING_VERIFICATION, TransitionRole.HR),
    Transition(OTStatus.HR_CERTIFIED, OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION, TransitionRole.HR),
    Transition(OTStatus.HR_CERTIFIED, OTStatus.MANAGEMENT_APPROVED, TransitionRole.MANAGEMENT),
    Transition(OTStatus.MANAGEMENT_APPROVED, OTStatus.HR_CERTIFIED, TransitionRole.MANAGEMENT),
)

_STATUS_VALUES = frozenset(s.value for s in OTStatus)
_TRANSITION_SET = frozenset((t.from_status, t.to_status, t.role) for t in TRANSITIONS)

INITIAL_STATUSES = frozenset({OTStatus.PENDING_VERIFICATION, OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION})
TERMINAL_STATUSES = frozenset({OTStatus.MANAGEMENT_APPROVED, OTStatus.REJECTED})

# Waypoints the orchestrator moves past in the same transaction that reached them.
AUTO_ADVANCE: dict[OTStatus, OTStatus] = {
    OTStatus.RESPECTIVE_SUPERVISOR_CONFIRMED: OTStatus.PENDING_SUPERVISOR_VERIFICATION,
}

STATUS_LABELS: dict[OTStatus, str] = {
    OTStatus.PENDING_VERIFICATION: "Awaiting Verification",
    OTStatus.SUPERVISOR_CONFIRMED: "Confirmed",
    OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION: "Awaiting Confirmation",
    OTStatus.RESPECTIVE_SUPERVISOR_CONFIRMED: "Confirmed",
    OTStatus.PENDING_SUPERVISOR_VERIFICATION: "Awaiting Verification",
    OTStatus.SUPERVISOR_VERIFIED: "Verified",
    OTStatus.HR_CERTIFIED: "Certified",
    OTStatus.MANAGEMENT_APPROVED: "Approved",
    OTStatus.REJECTED: "Rejected",
}

QUEUE_STATUSES: dict[Role, frozenset[OTStatus]] = {
    Role.SUPERVISOR: frozenset(
        {
            OTStatus.PENDING_VERIFICATION,
            OTStatus.PENDING_SUPERVISOR_VERIFICATION,
            OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION,
        }
    ),
    Role.HR: frozenset({OTStatus.SUPERVISOR_CONFIRMED, OTStatus.SUPERVISOR_VERIFIED}),
    Role.MANAGEMENT: frozenset({OTStatus.HR_CERTIFIED}),
}

NAMED_FILTERS: dict[str, frozenset[OTStatus]] = {
    "completed": frozenset(
        {
            OTStatus.SUPERVISOR_CONFIRMED,
            OTStatus.SUPERVISOR_VERIFIED,
            OTStatus.HR_CERTIFIED,
            OTStatus.MANAGEMENT_APPROVED,
        }
    ),
    "pending_certification": frozenset({OTStatus.SUPERVISOR_CONFIRMED, OTStatus.SUPERVISOR_VERIFIED}),
}


def is_valid_status(value: str) -> bool:
    """Return True if ``value`` is one of the enumerated statuses."""
    return value in _STATUS_VALUES


def can_transition(from_status: str, to_status: str, role: TransitionRole) -> bool:
    """Return True if the transition table contains (from, to, role)."""
    if not (is_valid_status(from_status) and is_valid_status(to_status)):
        return False
    return (OTStatus(from_status), OTStatus(to_status), role) in _TRANSITION_SET


def statuses_for_queue(role: Role) -> frozenset[OTStatus]:
    """Default work queue for a role. Roles without a queue get an empty set."""
    return QUEUE_STATUSES.get(role, frozenset())


def statuses_for_filter(name: str) -> frozenset[OTStatus]:
    """Resolve a named filter or a literal status to a set of statuses.

    Raises ValueError for anything else.
    """
    if name in NAMED_FILTERS:
        return NAMED_FILTERS[name]
    if is_valid_status(name):
        return frozenset({OTStatus(name)})
    msg = f"Unknown status filter: {name}"
    raise ValueError(msg)


def can_edit(request: OTRequest, role: Role) -> bool:
    """Whether ``role`` may act on ``request`` in its current status."""
    return request.status in statuses_for_queue(role)
