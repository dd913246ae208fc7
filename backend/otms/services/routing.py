from __future__ import annotations

import enum
from typing import TYPE_CHECKING

from otms.models.enums import OTStatus

if TYPE_CHECKING:
    from otms.models.request import OTRequest


class Route(enum.StrEnum):
    """Approval path an OT request follows."""

    A = "A"  # direct supervisor only
    B = "B"  # respective supervisor confirms, then direct supervisor verifies
    LEGACY = "legacy"  # predates the confirmation stage


_INITIAL_STATUS: dict[Route, OTStatus] = {
    Route.A: OTStatus.PENDING_VERIFICATION,
    Route.B: OTStatus.PENDING_RESPECTIVE_SUPERVISOR_CONFIRMATION,
    Route.LEGACY: OTStatus.PENDING_VERIFICATION,
}


def is_legacy_bypass(request: OTRequest) -> bool:
    """True for requests that reached supervisor_verified without any confirmation stage."""
    return (
        request.status == OTStatus.SUPERVISOR_VERIFIED
        and request.respective_supervisor_id is None
        and request.respective_supervisor_confirmed_at is None
    )


def classify_route(request: OTRequest) -> Route:
    """Route B iff a respective supervisor is set; legacy bypass records are their own route."""
    if request.respective_supervisor_id is not None:
        return Route.B
    if is_legacy_bypass(request):
        return Route.LEGACY
    return Route.A


def initial_status(route: Route) -> OTStatus:
    """Status a newly submitted request on ``route`` starts in."""
    return _INITIAL_STATUS[route]


def rejection_reset_status(request: OTRequest) -> OTStatus:
    """Pending state an HR rejection rewinds the request to."""
    return initial_status(classify_route(request))
