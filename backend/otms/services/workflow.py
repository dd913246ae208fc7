"""Apply validated workflow transitions to OT requests.

An action runs in two phases:

1. Validate every requested id, then persist all of them in one transaction
   with a compare-and-swap on status. If any id is missing, fails validation
   or loses a race, nothing is committed.
2. After commit, notify the recipients of the transition. Notification
   failures are logged and never undo the transition.
"""

# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any, cast

from otms.models.base import now_utc
from otms.models.enums import ActionKind, AuditEntityType, NotificationTemplate, OTStatus, RejectionStage, Role
from otms.schemas.workflow import TransitionError, TransitionResult
from otms.services.audit import build_audit_entry, model_to_audit_dict, patch_to_audit_dict
from otms.services.notifier import NotificationMessage, deliver
from otms.services.status import AUTO_ADVANCE
from otms.services.validators import validate_action

if TYPE_CHECKING:
    from otms.models.request import OTRequest
    from otms.schemas.auth import AuthContext
    from otms.services.directory import StaffDirectory
    from otms.services.notifier import Notifier
    from otms.services.store import OTRequestStore

logger = logging.getLogger(__name__)

CONCURRENT_CHANGE_PREFIX = "Status changed concurrently"

# Stage timestamps a rejection clears when it rewinds the workflow.
_HR_REJECT_CLEARS = (
    "supervisor_confirmation_at",
    "respective_supervisor_confirmed_at",
    "supervisor_verified_at",
    "hr_approved_at",
    "hr_id",
)
_MANAGEMENT_REJECT_CLEARS = ("management_reviewed_at",)

_TEMPLATES: dict[ActionKind, NotificationTemplate] = {
    ActionKind.SUPERVISOR_APPROVE: NotificationTemplate.SUPERVISOR_CONFIRMED,
    ActionKind.RESPECTIVE_CONFIRM: NotificationTemplate.PENDING_VERIFICATION,
    ActionKind.RESPECTIVE_DENY: NotificationTemplate.REJECTED,
    ActionKind.SUPERVISOR_VERIFY: NotificationTemplate.SUPERVISOR_CONFIRMED,
    ActionKind.HR_CERTIFY: NotificationTemplate.HR_CERTIFIED,
    ActionKind.HR_REJECT: NotificationTemplate.AMENDMENT_NEEDED,
    ActionKind.MANAGEMENT_APPROVE: NotificationTemplate.APPROVED,
    ActionKind.MANAGEMENT_REJECT: NotificationTemplate.HR_RECERTIFICATION,
}

_POOL_RECIPIENTS: dict[ActionKind, Role] = {
    ActionKind.SUPERVISOR_APPROVE: Role.HR,
    ActionKind.SUPERVISOR_VERIFY: Role.HR,
    ActionKind.HR_CERTIFY: Role.MANAGEMENT,
    ActionKind.MANAGEMENT_REJECT: Role.HR,
}


# ---------------------------------------------------------------------------
# Stage patches
# ---------------------------------------------------------------------------


def build_stage_patch(
    action: ActionKind,
    next_status: OTStatus,
    actor_id: uuid.UUID,
    remarks: str | None,
    now: datetime,
) -> dict[str, Any]:
    """Columns written by ``action``: the new status plus its stage audit fields."""
    patch: dict[str, Any] = {"status": next_status.value, "updated_at": now}

    match action:
        case ActionKind.SUPERVISOR_APPROVE:
            patch |= {"supervisor_confirmation_at": now, "supervisor_confirmation_remarks": remarks}
        case ActionKind.RESPECTIVE_CONFIRM:
            patch |= {"respective_supervisor_confirmed_at": now, "respective_supervisor_remarks": remarks}
        case ActionKind.RESPECTIVE_DENY:
            patch |= {
                "respective_supervisor_denied_at": now,
                "respective_supervisor_denial_remarks": remarks.strip() if remarks else remarks,
                "rejection_stage": RejectionStage.RESPECTIVE_SUPERVISOR.value,
            }
        case ActionKind.SUPERVISOR_VERIFY:
            patch |= {"supervisor_verified_at": now, "supervisor_remarks": remarks}
        case ActionKind.HR_CERTIFY:
            patch |= {"hr_id": actor_id, "hr_approved_at": now, "hr_remarks": remarks}
        case ActionKind.HR_REJECT:
            patch |= dict.fromkeys(_HR_REJECT_CLEARS)
            patch |= {"hr_remarks": remarks, "rejection_stage": RejectionStage.HR.value}
        case ActionKind.MANAGEMENT_APPROVE:
            patch |= {"management_reviewed_at": now, "management_remarks": remarks}
        case ActionKind.MANAGEMENT_REJECT:
            patch |= dict.fromkeys(_MANAGEMENT_REJECT_CLEARS)
            patch |= {"management_remarks": remarks, "rejection_stage": RejectionStage.MANAGEMENT.value}

    return patch


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


async def build_notifications(
    action: ActionKind,
    requests: Sequence[OTRequest],
    directory: StaffDirectory,
    remarks: str | None = None,
) -> list[NotificationMessage]:
    """One message per (request, recipient) for a committed transition."""
    template = _TEMPLATES[action]
    pool: list[uuid.UUID] = []
    if (pool_role := _POOL_RECIPIENTS.get(action)) is not None:
        pool = [staff.id for staff in await directory.list_by_role(pool_role)]

    messages: list[NotificationMessage] = []
    for request in requests:
        if pool_role is not None:
            targets = pool
        elif action == ActionKind.RESPECTIVE_CONFIRM:
            targets = [request.supervisor_id] if request.supervisor_id is not None else []
        else:
            targets = [request.employee_id]

        messages.extend(
            NotificationMessage(target_user_id=target, template_kind=template, request_id=request.id, remarks=remarks)
            for target in targets
        )
    return messages


async def _notify_after_commit(
    action: ActionKind,
    requests: Sequence[OTRequest],
    directory: StaffDirectory,
    notifier: Notifier,
    remarks: str | None,
    timeout: float,
) -> None:
    try:
        messages = await build_notifications(action, requests, directory, remarks)
    except Exception:
        logger.warning("Could not resolve notification recipients for %s", action.value, exc_info=True)
        return
    delivered = await deliver(notifier, messages, timeout)
    if delivered < len(messages):
        logger.warning("Delivered %d of %d notifications for %s", delivered, len(messages), action.value)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def _concurrent_change_error(
    store: OTRequestStore,
    action: ActionKind,
    request_id: uuid.UUID,
    auth: AuthContext,
    remarks: str | None,
) -> TransitionError:
    """Re-read a request that lost a compare-and-swap and explain why it no longer validates."""
    fresh = await store.fetch_by_ids([request_id])
    if not fresh:
        return TransitionError(request_id=request_id, reason=f"{CONCURRENT_CHANGE_PREFIX}: Request not found")
    result = validate_action(action, fresh[0], auth.user_id, remarks, can=auth.capability_check())
    detail = result.reason if not result.allowed else "please retry"
    return TransitionError(request_id=request_id, reason=f"{CONCURRENT_CHANGE_PREFIX}: {detail}")


async def apply_transition(
    store: OTRequestStore,
    notifier: Notifier,
    directory: StaffDirectory,
    auth: AuthContext,
    action: ActionKind,
    request_ids: Sequence[uuid.UUID],
    remarks: str | None = None,
    denial_remarks: str | None = None,
    notification_timeout: float = 5.0,
) -> TransitionResult:
    """Validate and apply ``action`` to every id in ``request_ids``, all or nothing.

    Flow:
    1. Fetch all requests; a missing id is a refusal.
    2. Run the action's validator on every request.
    3. If anything was refused, return every refusal and change nothing.
    4. Compare-and-swap each request from its validated status to the new one,
       following auto-advance waypoints, and stage an audit entry.
    5. If a swap loses a race, roll back the whole batch and report the
       re-validated reason for the losing id. Ids swapped earlier in the batch
       are undone too and are not listed; a failed result means no id moved.
    6. Commit, then notify recipients best-effort.
    """
    ids = list(dict.fromkeys(request_ids))
    action_remarks = denial_remarks if action == ActionKind.RESPECTIVE_DENY else remarks
    can = auth.capability_check()

    # 1-2. Validate everything before touching the store.
    requests = {r.id: r for r in await store.fetch_by_ids(ids)}
    errors: list[TransitionError] = []
    next_statuses: dict[uuid.UUID, OTStatus] = {}
    for request_id in ids:
        request = requests.get(request_id)
        if request is None:
            errors.append(TransitionError(request_id=request_id, reason="Request not found"))
            continue
        result = validate_action(action, request, auth.user_id, action_remarks, can=can)
        if not result.allowed:
            errors.append(TransitionError(request_id=request_id, reason=result.reason or "Refused"))
            continue
        next_statuses[request_id] = cast("OTStatus", result.next_status)

    # 3.
    if errors:
        logger.info("Refused %s on %d of %d OT request(s)", action.value, len(errors), len(ids))
        return TransitionResult(success=False, errors=errors)

    # 4-5.
    now = now_utc()
    before_images = {request_id: model_to_audit_dict(requests[request_id]) for request_id in ids}
    try:
        for request_id in ids:
            request = requests[request_id]
            next_status = next_statuses[request_id]
            patch = build_stage_patch(action, next_status, auth.user_id, action_remarks, now)

            swapped = await store.conditional_update(request_id, request.status, patch)
            while swapped and next_status in AUTO_ADVANCE:
                advanced = AUTO_ADVANCE[next_status]
                swapped = await store.conditional_update(
                    request_id, next_status.value, {"status": advanced.value, "updated_at": now}
                )
                patch["status"] = advanced.value
                next_status = advanced

            if not swapped:
                await store.rollback()
                error = await _concurrent_change_error(store, action, request_id, auth, action_remarks)
                logger.info("Lost status race applying %s to OT request %s", action.value, request_id)
                return TransitionResult(success=False, errors=[error])

            await store.add_audit(
                build_audit_entry(
                    actor_id=auth.user_id,
                    entity_type=AuditEntityType.OT_REQUEST,
                    entity_id=request_id,
                    action=action,
                    remarks=action_remarks,
                    before_json=before_images[request_id],
                    after_json=patch_to_audit_dict(before_images[request_id], patch),
                )
            )
        # 6.
        await store.commit()
    except Exception:
        await store.rollback()
        raise

    logger.info("Applied %s to %d OT request(s) by user %s", action.value, len(ids), auth.user_id)

    await _notify_after_commit(
        action,
        [requests[request_id] for request_id in ids],
        directory,
        notifier,
        action_remarks,
        notification_timeout,
    )
    return TransitionResult(success=True, updated_ids=ids)
