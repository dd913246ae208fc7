"""Tests for the transition orchestrator: batches, persistence, audit,
notifications and concurrent actors.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import UTC, date, datetime, time
from typing import TYPE_CHECKING, Any

import pytest

from otms.models.enums import ActionKind, NotificationTemplate, OTStatus, RejectionStage, Role
from otms.models.request import OTRequest
from otms.schemas.auth import AuthContext
from otms.services.directory import InMemoryStaffDirectory, StaffInfo
from otms.services.notifier import InMemoryNotifier, NotificationMessage
from otms.services.store import InMemoryOTRequestStore
from otms.services.validators import validate_action
from otms.services.workflow import CONCURRENT_CHANGE_PREFIX, apply_transition, build_stage_patch

if TYPE_CHECKING:
    from collections.abc import Sequence

EMPLOYEE_ID = uuid.uuid4()
SUPERVISOR_ID = uuid.uuid4()
RESPECTIVE_ID = uuid.uuid4()
HR_ID = uuid.uuid4()
HR_OTHER_ID = uuid.uuid4()
MANAGER_ID = uuid.uuid4()

SUPERVISOR = AuthContext(user_id=SUPERVISOR_ID, roles=[Role.SUPERVISOR])
RESPECTIVE = AuthContext(user_id=RESPECTIVE_ID, roles=[Role.SUPERVISOR])
HR = AuthContext(user_id=HR_ID, roles=[Role.HR])
HR_OTHER = AuthContext(user_id=HR_OTHER_ID, roles=[Role.HR])
MANAGER = AuthContext(user_id=MANAGER_ID, roles=[Role.MANAGEMENT])


# ---------------------------------------------------------------------------
# Fixtures and helpers
# ---------------------------------------------------------------------------


def _make_request(status: OTStatus, **overrides: Any) -> OTRequest:
    fields: dict[str, Any] = {
        "ticket_number": f"OT-20250101-{uuid.uuid4().hex[:4].upper()}",
        "employee_id": EMPLOYEE_ID,
        "supervisor_id": SUPERVISOR_ID,
        "status": status.value,
        "ot_date": date(2025, 1, 1),
        "start_time": time(18, 0),
        "end_time": time(20, 0),
        "total_hours": 2.0,
        "day_type": "weekday",
    }
    fields.update(overrides)
    return OTRequest(**fields)


def _route_b(status: OTStatus, **overrides: Any) -> OTRequest:
    return _make_request(status, respective_supervisor_id=RESPECTIVE_ID, **overrides)


@pytest.fixture
def store() -> InMemoryOTRequestStore:
    return InMemoryOTRequestStore()


@pytest.fixture
def staff(directory: InMemoryStaffDirectory) -> InMemoryStaffDirectory:
    directory.seed(StaffInfo(id=HR_ID, full_name="Hana HR", email="hana@example.com", roles=[Role.HR]))
    directory.seed(StaffInfo(id=HR_OTHER_ID, full_name="Ravi HR", email="ravi@example.com", roles=[Role.HR]))
    directory.seed(
        StaffInfo(id=MANAGER_ID, full_name="Mia Manager", email="mia@example.com", roles=[Role.MANAGEMENT])
    )
    return directory


async def _apply(
    store: InMemoryOTRequestStore,
    notifier: Any,
    directory: InMemoryStaffDirectory,
    auth: AuthContext,
    action: ActionKind,
    ids: Sequence[uuid.UUID],
    **kwargs: Any,
) -> Any:
    return await apply_transition(store, notifier, directory, auth, action, ids, **kwargs)


def _status(store: InMemoryOTRequestStore, request_id: uuid.UUID) -> str:
    request = store.get(request_id)
    assert request is not None
    return request.status


# ---------------------------------------------------------------------------
# Route A
# ---------------------------------------------------------------------------


async def test_route_a_happy_path(
    store: InMemoryOTRequestStore, notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    request = _make_request(OTStatus.PENDING_VERIFICATION)
    store.seed(request)

    result = await _apply(store, notifier, staff, SUPERVISOR, ActionKind.SUPERVISOR_APPROVE, [request.id])
    assert result.success is True
    assert result.updated_ids == [request.id]
    assert _status(store, request.id) == OTStatus.SUPERVISOR_CONFIRMED

    result = await _apply(store, notifier, staff, HR, ActionKind.HR_CERTIFY, [request.id])
    assert result.success is True
    certified = store.get(request.id)
    assert certified is not None
    assert certified.status == OTStatus.HR_CERTIFIED
    assert certified.hr_id == HR_ID
    assert certified.hr_approved_at is not None

    result = await _apply(store, notifier, staff, MANAGER, ActionKind.MANAGEMENT_APPROVE, [request.id], remarks="OK")
    assert result.success is True
    approved = store.get(request.id)
    assert approved is not None
    assert approved.status == OTStatus.MANAGEMENT_APPROVED
    assert approved.management_remarks == "OK"


async def test_supervisor_approval_records_stage(
    store: InMemoryOTRequestStore, notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    request = _make_request(OTStatus.PENDING_VERIFICATION)
    store.seed(request)

    await _apply(store, notifier, staff, SUPERVISOR, ActionKind.SUPERVISOR_APPROVE, [request.id], remarks="Good")

    updated = store.get(request.id)
    assert updated is not None
    assert updated.supervisor_confirmation_at is not None
    assert updated.supervisor_confirmation_remarks == "Good"


async def test_supervisor_approval_notifies_hr_pool(
    store: InMemoryOTRequestStore, notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    request = _make_request(OTStatus.PENDING_VERIFICATION)
    store.seed(request)

    await _apply(store, notifier, staff, SUPERVISOR, ActionKind.SUPERVISOR_APPROVE, [request.id])

    assert {m.target_user_id for m in notifier.messages} == {HR_ID, HR_OTHER_ID}
    assert {m.template_kind for m in notifier.messages} == {NotificationTemplate.SUPERVISOR_CONFIRMED}


# ---------------------------------------------------------------------------
# Route B
# ---------------------------------------------------------------------------


async def test_respective_confirmation_auto_advances(
    store: InMemoryOTRequestStore, notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    request = _route_b(OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION)
    store.seed(request)

    result = await _apply(store, notifier, staff, RESPECTIVE, ActionKind.RESPECTIVE_CONFIRM, [request.id])

    assert result.success is True
    updated = store.get(request.id)
    assert updated is not None
    assert updated.status == OTStatus.PENDING_SUPERVISOR_VERIFICATION
    assert updated.respective_supervisor_confirmed_at is not None
    assert [m.target_user_id for m in notifier.messages] == [SUPERVISOR_ID]
    assert notifier.messages[0].template_kind == NotificationTemplate.PENDING_VERIFICATION


async def test_route_b_full_path(
    store: InMemoryOTRequestStore, notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    request = _route_b(OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION)
    store.seed(request)

    steps = [
        (RESPECTIVE, ActionKind.RESPECTIVE_CONFIRM, OTStatus.PENDING_SUPERVISOR_VERIFICATION),
        (SUPERVISOR, ActionKind.SUPERVISOR_VERIFY, OTStatus.SUPERVISOR_VERIFIED),
        (HR, ActionKind.HR_CERTIFY, OTStatus.HR_CERTIFIED),
        (MANAGER, ActionKind.MANAGEMENT_APPROVE, OTStatus.MANAGEMENT_APPROVED),
    ]
    for auth, action, expected in steps:
        result = await _apply(store, notifier, staff, auth, action, [request.id])
        assert result.success is True, result.errors
        assert _status(store, request.id) == expected


async def test_respective_denial_uses_denial_remarks(
    store: InMemoryOTRequestStore, notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    request = _route_b(OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION)
    store.seed(request)

    result = await _apply(
        store,
        notifier,
        staff,
        RESPECTIVE,
        ActionKind.RESPECTIVE_DENY,
        [request.id],
        remarks="ignored",
        denial_remarks="  Employee was not on site that day  ",
    )

    assert result.success is True
    denied = store.get(request.id)
    assert denied is not None
    assert denied.status == OTStatus.REJECTED
    assert denied.respective_supervisor_denied_at is not None
    assert denied.respective_supervisor_denial_remarks == "Employee was not on site that day"
    assert denied.rejection_stage == RejectionStage.RESPECTIVE_SUPERVISOR
    assert [(m.target_user_id, m.template_kind) for m in notifier.messages] == [
        (EMPLOYEE_ID, NotificationTemplate.REJECTED)
    ]


async def test_respective_denial_short_remarks_refused(
    store: InMemoryOTRequestStore, notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    request = _route_b(OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION)
    store.seed(request)

    result = await _apply(
        store, notifier, staff, RESPECTIVE, ActionKind.RESPECTIVE_DENY, [request.id], denial_remarks="too short"
    )

    assert result.success is False
    assert result.errors[0].reason == "Denial remarks are required and must be at least 10 characters."
    assert _status(store, request.id) == OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION
    assert notifier.messages == []


# ---------------------------------------------------------------------------
# Rejections rewind the workflow
# ---------------------------------------------------------------------------


async def test_hr_rejection_rewinds_route_b(
    store: InMemoryOTRequestStore, notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    stamped = datetime(2025, 1, 2, tzinfo=UTC)
    request = _route_b(
        OTStatus.HR_CERTIFIED,
        respective_supervisor_confirmed_at=stamped,
        supervisor_verified_at=stamped,
        hr_id=HR_ID,
        hr_approved_at=stamped,
    )
    store.seed(request)

    result = await _apply(store, notifier, staff, HR, ActionKind.HR_REJECT, [request.id], remarks="Wrong hours")

    assert result.success is True
    rewound = store.get(request.id)
    assert rewound is not None
    assert rewound.status == OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION
    assert rewound.respective_supervisor_confirmed_at is None
    assert rewound.supervisor_verified_at is None
    assert rewound.hr_approved_at is None
    assert rewound.hr_remarks == "Wrong hours"
    assert rewound.rejection_stage == RejectionStage.HR
    assert notifier.messages[0].template_kind == NotificationTemplate.AMENDMENT_NEEDED

    # The respective supervisor can confirm again.
    again = await _apply(store, notifier, staff, RESPECTIVE, ActionKind.RESPECTIVE_CONFIRM, [request.id])
    assert again.success is True


async def test_hr_rejection_rewinds_route_a(
    store: InMemoryOTRequestStore, notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    request = _make_request(OTStatus.HR_CERTIFIED, hr_approved_at=datetime(2025, 1, 2, tzinfo=UTC))
    store.seed(request)

    await _apply(store, notifier, staff, HR, ActionKind.HR_REJECT, [request.id])

    assert _status(store, request.id) == OTStatus.PENDING_VERIFICATION


async def test_management_rejection_returns_to_hr(
    store: InMemoryOTRequestStore, notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    stamped = datetime(2025, 1, 2, tzinfo=UTC)
    request = _make_request(OTStatus.MANAGEMENT_APPROVED, hr_approved_at=stamped, management_reviewed_at=stamped)
    store.seed(request)

    result = await _apply(
        store, notifier, staff, MANAGER, ActionKind.MANAGEMENT_REJECT, [request.id], remarks="Over budget"
    )

    assert result.success is True
    returned = store.get(request.id)
    assert returned is not None
    assert returned.status == OTStatus.HR_CERTIFIED
    assert returned.management_reviewed_at is None
    assert returned.hr_approved_at == stamped
    assert returned.rejection_stage == RejectionStage.MANAGEMENT
    assert {m.target_user_id for m in notifier.messages} == {HR_ID, HR_OTHER_ID}
    assert {m.template_kind for m in notifier.messages} == {NotificationTemplate.HR_RECERTIFICATION}


# ---------------------------------------------------------------------------
# Batches
# ---------------------------------------------------------------------------


async def test_batch_applies_every_request(
    store: InMemoryOTRequestStore, notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    first = _make_request(OTStatus.SUPERVISOR_CONFIRMED)
    second = _route_b(OTStatus.SUPERVISOR_VERIFIED, respective_supervisor_confirmed_at=datetime(2025, 1, 2, tzinfo=UTC))
    store.seed(first)
    store.seed(second)

    result = await _apply(store, notifier, staff, HR, ActionKind.HR_CERTIFY, [first.id, second.id])

    assert result.success is True
    assert result.updated_ids == [first.id, second.id]
    assert _status(store, first.id) == OTStatus.HR_CERTIFIED
    assert _status(store, second.id) == OTStatus.HR_CERTIFIED
    assert len(store.audit_entries) == 2


async def test_batch_is_all_or_nothing(
    store: InMemoryOTRequestStore, notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    valid = _make_request(OTStatus.SUPERVISOR_CONFIRMED)
    wrong_status = _make_request(OTStatus.PENDING_VERIFICATION)
    missing_id = uuid.uuid4()
    store.seed(valid)
    store.seed(wrong_status)

    result = await _apply(store, notifier, staff, HR, ActionKind.HR_CERTIFY, [valid.id, wrong_status.id, missing_id])

    assert result.success is False
    assert result.updated_ids == []
    reasons = {e.request_id: e.reason for e in result.errors}
    assert set(reasons) == {wrong_status.id, missing_id}
    assert reasons[missing_id] == "Request not found"
    assert "Current status: pending_verification" in reasons[wrong_status.id]
    assert _status(store, valid.id) == OTStatus.SUPERVISOR_CONFIRMED
    assert store.audit_entries == []
    assert notifier.messages == []


async def test_duplicate_ids_are_applied_once(
    store: InMemoryOTRequestStore, notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    request = _make_request(OTStatus.SUPERVISOR_CONFIRMED)
    store.seed(request)

    result = await _apply(store, notifier, staff, HR, ActionKind.HR_CERTIFY, [request.id, request.id])

    assert result.success is True
    assert result.updated_ids == [request.id]
    assert len(store.audit_entries) == 1


# ---------------------------------------------------------------------------
# Audit trail
# ---------------------------------------------------------------------------


async def test_transition_writes_audit_entry(
    store: InMemoryOTRequestStore, notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    request = _route_b(OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION)
    store.seed(request)

    await _apply(store, notifier, staff, RESPECTIVE, ActionKind.RESPECTIVE_CONFIRM, [request.id], remarks="Seen")

    [entry] = store.audit_entries
    assert entry.actor_id == RESPECTIVE_ID
    assert entry.entity_id == request.id
    assert entry.entity_type == "OT_REQUEST"
    assert entry.action == "respective-confirm"
    assert entry.remarks == "Seen"
    assert entry.before_json is not None
    assert entry.after_json is not None
    assert entry.before_json["status"] == "pending_respective_supervisor_confirmation"
    assert entry.after_json["status"] == "pending_supervisor_verification"
    assert entry.after_json["respective_supervisor_remarks"] == "Seen"


# ---------------------------------------------------------------------------
# Notifications are best-effort
# ---------------------------------------------------------------------------


class _FailingNotifier:
    async def notify(self, message: NotificationMessage) -> None:
        msg = "gateway down"
        raise RuntimeError(msg)


class _SlowNotifier:
    async def notify(self, message: NotificationMessage) -> None:
        await asyncio.sleep(1)


async def test_notifier_failure_does_not_undo_transition(
    store: InMemoryOTRequestStore, staff: InMemoryStaffDirectory
) -> None:
    request = _make_request(OTStatus.HR_CERTIFIED)
    store.seed(request)

    result = await _apply(store, _FailingNotifier(), staff, MANAGER, ActionKind.MANAGEMENT_APPROVE, [request.id])

    assert result.success is True
    assert _status(store, request.id) == OTStatus.MANAGEMENT_APPROVED


async def test_slow_notifier_is_time_boxed(store: InMemoryOTRequestStore, staff: InMemoryStaffDirectory) -> None:
    request = _make_request(OTStatus.HR_CERTIFIED)
    store.seed(request)

    result = await _apply(
        store,
        _SlowNotifier(),
        staff,
        MANAGER,
        ActionKind.MANAGEMENT_APPROVE,
        [request.id],
        notification_timeout=0.01,
    )

    assert result.success is True
    assert _status(store, request.id) == OTStatus.MANAGEMENT_APPROVED


# ---------------------------------------------------------------------------
# Store failures and concurrent actors
# ---------------------------------------------------------------------------


class _BrokenStore(InMemoryOTRequestStore):
    """Fails on the second conditional update, after the first has been applied."""

    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    async def conditional_update(self, request_id: uuid.UUID, expected_status: str, patch: dict[str, Any]) -> bool:
        self.calls += 1
        if self.calls > 1:
            msg = "connection lost"
            raise ConnectionError(msg)
        return await super().conditional_update(request_id, expected_status, patch)


async def test_store_failure_rolls_back_and_propagates(
    notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    store = _BrokenStore()
    first = _make_request(OTStatus.SUPERVISOR_CONFIRMED)
    second = _make_request(OTStatus.SUPERVISOR_CONFIRMED)
    store.seed(first)
    store.seed(second)

    with pytest.raises(ConnectionError):
        await _apply(store, notifier, staff, HR, ActionKind.HR_CERTIFY, [first.id, second.id])

    assert _status(store, first.id) == OTStatus.SUPERVISOR_CONFIRMED
    assert store.audit_entries == []
    assert notifier.messages == []


class _OvertakenStore(InMemoryOTRequestStore):
    """Another actor rejects the second request just before its swap."""

    def __init__(self, overtaken_id: uuid.UUID) -> None:
        super().__init__()
        self.overtaken_id = overtaken_id

    async def conditional_update(self, request_id: uuid.UUID, expected_status: str, patch: dict[str, Any]) -> bool:
        if request_id == self.overtaken_id:
            self.rows[request_id]["status"] = OTStatus.REJECTED.value
        return await super().conditional_update(request_id, expected_status, patch)


async def test_lost_race_mid_batch_undoes_earlier_swaps(
    notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    first = _make_request(OTStatus.SUPERVISOR_CONFIRMED)
    second = _make_request(OTStatus.SUPERVISOR_CONFIRMED)
    store = _OvertakenStore(second.id)
    store.seed(first)
    store.seed(second)

    result = await _apply(store, notifier, staff, HR, ActionKind.HR_CERTIFY, [first.id, second.id])

    assert result.success is False
    assert result.updated_ids == []
    assert [e.request_id for e in result.errors] == [second.id]
    assert result.errors[0].reason.startswith(f"{CONCURRENT_CHANGE_PREFIX}: ")
    assert _status(store, first.id) == OTStatus.SUPERVISOR_CONFIRMED
    assert store.audit_entries == []
    assert notifier.messages == []


class _RacingStore(InMemoryOTRequestStore):
    """Holds its first read until the other actor has read too."""

    def __init__(self, rows: dict[uuid.UUID, dict[str, Any]], barrier: asyncio.Barrier) -> None:
        super().__init__(rows)
        self._barrier = barrier
        self._waited = False

    async def fetch_by_ids(self, ids: Sequence[uuid.UUID]) -> list[OTRequest]:
        requests = await super().fetch_by_ids(ids)
        if not self._waited:
            self._waited = True
            await self._barrier.wait()
        return requests


async def test_concurrent_certification_has_one_winner(
    notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    rows: dict[uuid.UUID, dict[str, Any]] = {}
    barrier = asyncio.Barrier(2)
    first_store = _RacingStore(rows, barrier)
    second_store = _RacingStore(rows, barrier)
    request = _make_request(OTStatus.SUPERVISOR_CONFIRMED)
    first_store.seed(request)

    results = await asyncio.gather(
        _apply(first_store, notifier, staff, HR, ActionKind.HR_CERTIFY, [request.id]),
        _apply(second_store, notifier, staff, HR_OTHER, ActionKind.HR_CERTIFY, [request.id]),
    )

    winners = [r for r in results if r.success]
    losers = [r for r in results if not r.success]
    assert len(winners) == 1
    assert len(losers) == 1
    reason = losers[0].errors[0].reason
    assert reason.startswith(f"{CONCURRENT_CHANGE_PREFIX}: ")
    assert reason.endswith("This request has already been certified by HR. Current status: hr_certified")
    assert rows[request.id]["status"] == OTStatus.HR_CERTIFIED
    assert len(first_store.audit_entries) + len(second_store.audit_entries) == 1


async def test_concurrent_supervisor_approval_has_one_winner(
    notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    rows: dict[uuid.UUID, dict[str, Any]] = {}
    barrier = asyncio.Barrier(2)
    first_store = _RacingStore(rows, barrier)
    second_store = _RacingStore(rows, barrier)
    request = _make_request(OTStatus.PENDING_VERIFICATION)
    first_store.seed(request)

    results = await asyncio.gather(
        _apply(first_store, notifier, staff, SUPERVISOR, ActionKind.SUPERVISOR_APPROVE, [request.id]),
        _apply(second_store, notifier, staff, SUPERVISOR, ActionKind.SUPERVISOR_APPROVE, [request.id]),
    )

    assert sorted(r.success for r in results) == [False, True]
    [loser] = [r for r in results if not r.success]
    assert loser.errors[0].reason == (
        f"{CONCURRENT_CHANGE_PREFIX}: Request must be in 'pending_verification' status. "
        "Current status: supervisor_confirmed"
    )
    assert rows[request.id]["status"] == OTStatus.SUPERVISOR_CONFIRMED


async def test_hr_certify_twice_reports_already_certified(
    store: InMemoryOTRequestStore, notifier: InMemoryNotifier, staff: InMemoryStaffDirectory
) -> None:
    request = _make_request(OTStatus.SUPERVISOR_CONFIRMED)
    store.seed(request)

    first = await _apply(store, notifier, staff, HR, ActionKind.HR_CERTIFY, [request.id])
    second = await _apply(store, notifier, staff, HR, ActionKind.HR_CERTIFY, [request.id])

    assert first.success is True
    assert second.success is False
    assert second.errors[0].reason == (
        "This request has already been certified by HR. Current status: hr_certified"
    )


# ---------------------------------------------------------------------------
# Validators and orchestrator agree
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("status", list(OTStatus))
@pytest.mark.parametrize(
    ("action", "auth"),
    [
        (ActionKind.SUPERVISOR_APPROVE, SUPERVISOR),
        (ActionKind.RESPECTIVE_CONFIRM, RESPECTIVE),
        (ActionKind.SUPERVISOR_VERIFY, SUPERVISOR),
        (ActionKind.HR_CERTIFY, HR),
        (ActionKind.HR_REJECT, HR),
        (ActionKind.MANAGEMENT_APPROVE, MANAGER),
        (ActionKind.MANAGEMENT_REJECT, MANAGER),
    ],
)
async def test_orchestrator_agrees_with_validator(
    status: OTStatus,
    action: ActionKind,
    auth: AuthContext,
    store: InMemoryOTRequestStore,
    notifier: InMemoryNotifier,
    staff: InMemoryStaffDirectory,
) -> None:
    request = _route_b(status, respective_supervisor_confirmed_at=datetime(2025, 1, 2, tzinfo=UTC))
    if status == OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION:
        request.respective_supervisor_confirmed_at = None
    store.seed(request)

    expected = validate_action(action, request, auth.user_id, can=auth.capability_check())
    result = await _apply(store, notifier, staff, auth, action, [request.id])

    assert result.success is expected.allowed
    if expected.allowed:
        assert expected.next_status is not None
        assert _status(store, request.id) in {expected.next_status, OTStatus.PENDING_SUPERVISOR_VERIFICATION}
    else:
        assert result.errors[0].reason == expected.reason
        assert _status(store, request.id) == status


def test_stage_patch_sets_status_and_updated_at() -> None:
    now = datetime(2025, 1, 2, tzinfo=UTC)
    patch = build_stage_patch(ActionKind.SUPERVISOR_VERIFY, OTStatus.SUPERVISOR_VERIFIED, SUPERVISOR_ID, "ok", now)
    assert patch == {
        "status": "supervisor_verified",
        "updated_at": now,
        "supervisor_verified_at": now,
        "supervisor_remarks": "ok",
    }
