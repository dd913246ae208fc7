from __future__ import annotations

import enum
import uuid
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any

from otms.models.audit import AuditLog

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel

    from otms.models.enums import ActionKind, AuditAction, AuditEntityType


def _to_json_safe(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    return value


def model_to_audit_dict(model: SQLModel) -> dict[str, Any]:
    """Serialize a SQLModel instance to a JSON-safe dict for audit logging."""
    return {key: _to_json_safe(value) for key, value in model.model_dump().items()}


def patch_to_audit_dict(before: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """Apply a column patch to an audit image, keeping it JSON-safe."""
    after = dict(before)
    after.update({key: _to_json_safe(value) for key, value in patch.items()})
    return after


def build_audit_entry(
    *,
    actor_id: uuid.UUID,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID,
    action: AuditAction | ActionKind,
    remarks: str | None = None,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
) -> AuditLog:
    """Build an immutable audit log entry. The caller adds it to its transaction."""
    return AuditLog(
        actor_id=actor_id,
        entity_type=entity_type.value,
        entity_id=entity_id,
        action=action.value,
        remarks=remarks,
        before_json=before_json,
        after_json=after_json,
    )


async def write_audit_log(
    session: AsyncSession,
    *,
    actor_id: uuid.UUID,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID,
    action: AuditAction | ActionKind,
    remarks: str | None = None,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
) -> AuditLog:
    """Write an immutable audit log entry within the caller's transaction."""
    entry = build_audit_entry(
        actor_id=actor_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        remarks=remarks,
        before_json=before_json,
        after_json=after_json,
    )
    session.add(entry)
    return entry
