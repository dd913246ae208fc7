from sqlmodel import SQLModel

from otms.models.audit import AuditLog
from otms.models.base import TimestampMixin, UUIDBase
from otms.models.enums import (
    ActionKind,
    AuditAction,
    AuditEntityType,
    Capability,
    DayType,
    NotificationTemplate,
    OTStatus,
    RejectionStage,
    Role,
    TransitionRole,
)
from otms.models.holiday import PublicHoliday
from otms.models.request import OTRequest

__all__ = [
    "ActionKind",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "Capability",
    "DayType",
    "NotificationTemplate",
    "OTRequest",
    "OTStatus",
    "PublicHoliday",
    "RejectionStage",
    "Role",
    "SQLModel",
    "TimestampMixin",
    "TransitionRole",
    "UUIDBase",
]
