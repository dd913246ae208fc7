from __future__ import annotations

import enum


class OTStatus(enum.StrEnum):
    """Closed set of states an overtime request can occupy."""

    # Route A
    PENDING_VERIFICATION = "pending_verification"
    SUPERVISOR_CONFIRMED = "supervisor_confirmed"
    # Route B
    PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION = "pending_respective_supervisor_confirmation"
    RESPECTIVE_SUPERVISOR_CONFIRMED = "respective_supervisor_confirmed"
    PENDING_SUPERVISOR_VERIFICATION = "pending_supervisor_verification"
    SUPERVISOR_VERIFIED = "supervisor_verified"
    # Shared downstream
    HR_CERTIFIED = "hr_certified"
    MANAGEMENT_APPROVED = "management_approved"
    REJECTED = "rejected"


class ActionKind(enum.StrEnum):
    """Workflow actions an actor can apply to one or more OT requests."""

    SUPERVISOR_APPROVE = "supervisor-approve"
    RESPECTIVE_CONFIRM = "respective-confirm"
    RESPECTIVE_DENY = "respective-deny"
    SUPERVISOR_VERIFY = "supervisor-verify"
    HR_CERTIFY = "hr-certify"
    HR_REJECT = "hr-reject"
    MANAGEMENT_APPROVE = "management-approve"
    MANAGEMENT_REJECT = "management-reject"


class TransitionRole(enum.StrEnum):
    """Role column of the transition table."""

    SUPERVISOR = "supervisor"
    HR = "hr"
    MANAGEMENT = "management"
    SYSTEM = "system"


class Role(enum.StrEnum):
    """Roles a user can hold."""

    EMPLOYEE = "employee"
    SUPERVISOR = "supervisor"
    HR = "hr"
    MANAGEMENT = "management"
    ADMIN = "admin"


class Capability(enum.StrEnum):
    """Permissions granted to roles. See services.permissions."""

    HR_CERTIFY = "hr_certify"
    HR_REJECT = "hr_reject"
    MANAGEMENT_APPROVE = "management_approve"
    MANAGEMENT_REJECT = "management_reject"
    MANAGE_HOLIDAYS = "manage_holidays"
    MANAGE_STAFF = "manage_staff"
    VIEW_ALL_REQUESTS = "view_all_requests"


class DayType(enum.StrEnum):
    """Kind of day the overtime was worked on."""

    WEEKDAY = "weekday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"
    PUBLIC_HOLIDAY = "public_holiday"


class RejectionStage(enum.StrEnum):
    """Stage that sent a request back."""

    RESPECTIVE_SUPERVISOR = "respective_supervisor"
    HR = "hr"
    MANAGEMENT = "management"


class NotificationTemplate(enum.StrEnum):
    """Push notification templates understood by the notification gateway."""

    NEW_REQUEST = "ot_requests_new"
    PENDING_CONFIRMATION = "ot_pending_confirmation"
    PENDING_VERIFICATION = "ot_pending_verification"
    SUPERVISOR_CONFIRMED = "ot_supervisor_confirmed"
    HR_CERTIFIED = "ot_hr_certified"
    HR_RECERTIFICATION = "ot_hr_recertification"
    AMENDMENT_NEEDED = "ot_amendment_needed"
    APPROVED = "ot_requests_approved"
    REJECTED = "ot_requests_rejected"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    OT_REQUEST = "OT_REQUEST"
    HOLIDAY = "HOLIDAY"


class AuditAction(enum.StrEnum):
    """Non-workflow actions recorded in the audit log.

    Workflow transitions are recorded under their ActionKind value.
    """

    CREATE = "CREATE"
    DELETE = "DELETE"
    SUBMIT = "SUBMIT"
