# ruff: noqa: TC003
"""Validation rules for OT workflow transitions.

Every validator is a pure function of the request, the acting user, the
optional remarks and a capability check. A refusal is returned as a value
carrying a human-readable reason; nothing here raises for a business-rule
violation and nothing here mutates the request.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from otms.models.enums import ActionKind, Capability, OTStatus, TransitionRole
from otms.services.permissions import deny_all
from otms.services.routing import rejection_reset_status
from otms.services.status import can_transition

if TYPE_CHECKING:
    from otms.models.request import OTRequest
    from otms.services.permissions import CapabilityCheck

REMARKS_MAX_LENGTH = 500
DENIAL_REMARKS_MIN_LENGTH = 10


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validator: permission to proceed, or the reason it was refused."""

    allowed: bool
    reason: str | None = None
    next_status: OTStatus | None = None

    @classmethod
    def allow(cls, next_status: OTStatus | None = None) -> ValidationResult:
        return cls(allowed=True, next_status=next_status)

    @classmethod
    def refuse(cls, reason: str) -> ValidationResult:
        return cls(allowed=False, reason=reason)


Validator = Callable[..., ValidationResult]


# ---------------------------------------------------------------------------
# Shared checks
# ---------------------------------------------------------------------------


def _require_status(request: OTRequest, *expected: OTStatus) -> ValidationResult | None:
    if request.status in expected:
        return None
    names = " or ".join(f"'{status.value}'" for status in expected)
    return ValidationResult.refuse(f"Request must be in {names} status. Current status: {request.status}")


def _require_capability(can: CapabilityCheck, capability: Capability, message: str) -> ValidationResult | None:
    if can(capability):
        return None
    return ValidationResult.refuse(message)


def _require_edge(request: OTRequest, to_status: OTStatus, role: TransitionRole) -> ValidationResult | None:
    if can_transition(request.status, to_status, role):
        return None
    return ValidationResult.refuse("This action is not allowed at this time.")


def validate_remarks(
    remarks: str | None,
    max_length: int = REMARKS_MAX_LENGTH,
    required: bool = False,
) -> ValidationResult:
    """Check free-text remarks: optional unless ``required``, never longer than ``max_length``."""
    if not remarks:
        if required:
            return ValidationResult.refuse("Remarks are required for this action.")
        return ValidationResult.allow()

    trimmed = remarks.strip()
    if not trimmed and required:
        return ValidationResult.refuse("Remarks cannot be empty.")

    if len(trimmed) > max_length:
        return ValidationResult.refuse(
            f"Remarks cannot exceed {max_length} characters. Current length: {len(trimmed)}"
        )

    return ValidationResult.allow()


def validate_status_transition(from_status: str, to_status: str, role: TransitionRole) -> ValidationResult:
    """Check an arbitrary (from, to, role) triple against the transition table."""
    if not can_transition(from_status, to_status, role):
        return ValidationResult.refuse(
            f"Invalid status transition from '{from_status}' to '{to_status}' for role '{role.value}'"
        )
    return ValidationResult.allow(OTStatus(to_status))


def _first_refusal(*checks: ValidationResult | None) -> ValidationResult | None:
    for check in checks:
        if check is not None and not check.allowed:
            return check
    return None


# ---------------------------------------------------------------------------
# Supervisor actions (identity-gated)
# ---------------------------------------------------------------------------


def validate_supervisor_approval(
    request: OTRequest,
    acting_user_id: uuid.UUID,
    remarks: str | None = None,
    *,
    can: CapabilityCheck = deny_all,
) -> ValidationResult:
    """Route A: pending_verification -> supervisor_confirmed, by the direct supervisor."""
    if refusal := _require_status(request, OTStatus.PENDING_VERIFICATION):
        return refusal

    if request.supervisor_id is None or request.supervisor_id != acting_user_id:
        return ValidationResult.refuse(
            "You are not authorized to approve this request. Only the assigned supervisor can approve."
        )

    if refusal := _first_refusal(
        validate_remarks(remarks),
        _require_edge(request, OTStatus.SUPERVISOR_CONFIRMED, TransitionRole.SUPERVISOR),
    ):
        return refusal

    return ValidationResult.allow(OTStatus.SUPERVISOR_CONFIRMED)


def validate_respective_supervisor_confirmation(
    request: OTRequest,
    acting_user_id: uuid.UUID,
    remarks: str | None = None,
    *,
    can: CapabilityCheck = deny_all,
) -> ValidationResult:
    """Route B: pending_respective_supervisor_confirmation -> respective_supervisor_confirmed."""
    if refusal := _require_status(request, OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION):
        return refusal

    if request.respective_supervisor_id is None or request.respective_supervisor_id != acting_user_id:
        return ValidationResult.refuse(
            "You are not authorized to confirm this request. Only the assigned respective supervisor can confirm."
        )

    if request.respective_supervisor_confirmed_at is not None:
        return ValidationResult.refuse("This request has already been confirmed by the respective supervisor.")

    if refusal := _first_refusal(
        validate_remarks(remarks),
        _require_edge(request, OTStatus.RESPECTIVE_SUPERVISOR_CONFIRMED, TransitionRole.SUPERVISOR),
    ):
        return refusal

    return ValidationResult.allow(OTStatus.RESPECTIVE_SUPERVISOR_CONFIRMED)


def validate_respective_supervisor_denial(
    request: OTRequest,
    acting_user_id: uuid.UUID,
    remarks: str | None = None,
    *,
    can: CapabilityCheck = deny_all,
) -> ValidationResult:
    """Route B: pending_respective_supervisor_confirmation -> rejected.

    ``remarks`` are the denial remarks and are mandatory: at least
    DENIAL_REMARKS_MIN_LENGTH characters once trimmed.
    """
    if refusal := _require_status(request, OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION):
        return refusal

    if request.respective_supervisor_id is None or request.respective_supervisor_id != acting_user_id:
        return ValidationResult.refuse("You are not authorized to deny this request.")

    if not remarks or len(remarks.strip()) < DENIAL_REMARKS_MIN_LENGTH:
        return ValidationResult.refuse(
            f"Denial remarks are required and must be at least {DENIAL_REMARKS_MIN_LENGTH} characters."
        )

    if refusal := _first_refusal(
        validate_remarks(remarks, required=True),
        _require_edge(request, OTStatus.REJECTED, TransitionRole.SUPERVISOR),
    ):
        return refusal

    return ValidationResult.allow(OTStatus.REJECTED)


def validate_supervisor_verification(
    request: OTRequest,
    acting_user_id: uuid.UUID,
    remarks: str | None = None,
    *,
    can: CapabilityCheck = deny_all,
) -> ValidationResult:
    """Route B: pending_supervisor_verification -> supervisor_verified, by the direct supervisor."""
    if refusal := _require_status(request, OTStatus.PENDING_SUPERVISOR_VERIFICATION):
        return refusal

    if request.supervisor_id is None or request.supervisor_id != acting_user_id:
        return ValidationResult.refuse("You are not authorized to verify this request.")

    if request.respective_supervisor_confirmed_at is None:
        return ValidationResult.refuse("The respective supervisor must confirm before supervisor verification.")

    if refusal := _first_refusal(
        validate_remarks(remarks),
        _require_edge(request, OTStatus.SUPERVISOR_VERIFIED, TransitionRole.SUPERVISOR),
    ):
        return refusal

    return ValidationResult.allow(OTStatus.SUPERVISOR_VERIFIED)


# ---------------------------------------------------------------------------
# HR and management actions (role-gated)
# ---------------------------------------------------------------------------


def validate_hr_certification(
    request: OTRequest,
    acting_user_id: uuid.UUID,
    remarks: str | None = None,
    *,
    can: CapabilityCheck = deny_all,
) -> ValidationResult:
    """supervisor_confirmed | supervisor_verified -> hr_certified."""
    if request.hr_approved_at is not None:
        return ValidationResult.refuse(
            f"This request has already been certified by HR. Current status: {request.status}"
        )

    if refusal := _require_status(request, OTStatus.SUPERVISOR_CONFIRMED, OTStatus.SUPERVISOR_VERIFIED):
        return refusal

    if refusal := _require_capability(can, Capability.HR_CERTIFY, "Only HR can certify OT requests."):
        return refusal

    if refusal := _first_refusal(
        validate_remarks(remarks),
        _require_edge(request, OTStatus.HR_CERTIFIED, TransitionRole.HR),
    ):
        return refusal

    return ValidationResult.allow(OTStatus.HR_CERTIFIED)


def validate_hr_rejection(
    request: OTRequest,
    acting_user_id: uuid.UUID,
    remarks: str | None = None,
    *,
    can: CapabilityCheck = deny_all,
) -> ValidationResult:
    """hr_certified -> the route's initial pending status."""
    if refusal := _require_status(request, OTStatus.HR_CERTIFIED):
        return refusal

    if refusal := _require_capability(can, Capability.HR_REJECT, "Only HR can reject certified OT requests."):
        return refusal

    reset_status = rejection_reset_status(request)
    if refusal := _first_refusal(
        validate_remarks(remarks),
        _require_edge(request, reset_status, TransitionRole.HR),
    ):
        return refusal

    return ValidationResult.allow(reset_status)


def validate_management_approval(
    request: OTRequest,
    acting_user_id: uuid.UUID,
    remarks: str | None = None,
    *,
    can: CapabilityCheck = deny_all,
) -> ValidationResult:
    """hr_certified -> management_approved."""
    if refusal := _require_status(request, OTStatus.HR_CERTIFIED):
        return refusal

    if refusal := _require_capability(
        can, Capability.MANAGEMENT_APPROVE, "Only management can approve certified OT requests."
    ):
        return refusal

    if refusal := _first_refusal(
        validate_remarks(remarks),
        _require_edge(request, OTStatus.MANAGEMENT_APPROVED, TransitionRole.MANAGEMENT),
    ):
        return refusal

    return ValidationResult.allow(OTStatus.MANAGEMENT_APPROVED)


def validate_management_rejection(
    request: OTRequest,
    acting_user_id: uuid.UUID,
    remarks: str | None = None,
    *,
    can: CapabilityCheck = deny_all,
) -> ValidationResult:
    """management_approved -> hr_certified, sending the request back for recertification."""
    if refusal := _require_status(request, OTStatus.MANAGEMENT_APPROVED):
        return refusal

    if refusal := _require_capability(
        can, Capability.MANAGEMENT_REJECT, "Only management can send approved OT requests back to HR."
    ):
        return refusal

    if refusal := _first_refusal(
        validate_remarks(remarks),
        _require_edge(request, OTStatus.HR_CERTIFIED, TransitionRole.MANAGEMENT),
    ):
        return refusal

    return ValidationResult.allow(OTStatus.HR_CERTIFIED)


VALIDATORS: dict[ActionKind, Validator] = {
    ActionKind.SUPERVISOR_APPROVE: validate_supervisor_approval,
    ActionKind.RESPECTIVE_CONFIRM: validate_respective_supervisor_confirmation,
    ActionKind.RESPECTIVE_DENY: validate_respective_supervisor_denial,
    ActionKind.SUPERVISOR_VERIFY: validate_supervisor_verification,
    ActionKind.HR_CERTIFY: validate_hr_certification,
    ActionKind.HR_REJECT: validate_hr_rejection,
    ActionKind.MANAGEMENT_APPROVE: validate_management_approval,
    ActionKind.MANAGEMENT_REJECT: validate_management_rejection,
}


def validate_action(
    action: ActionKind,
    request: OTRequest,
    acting_user_id: uuid.UUID,
    remarks: str | None = None,
    *,
    can: CapabilityCheck = deny_all,
) -> ValidationResult:
    """Dispatch to the validator for ``action``."""
    return VALIDATORS[action](request, acting_user_id, remarks, can=can)
