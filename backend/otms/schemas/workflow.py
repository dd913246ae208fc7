# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel, Field


class TransitionPayload(BaseModel):
    """Request body for a batch workflow action."""

    request_ids: list[uuid.UUID] = Field(min_length=1)
    # Length rules are enforced per request by the validators.
    remarks: str | None = None
    # Only read by respective-deny.
    denial_remarks: str | None = None


class TransitionError(BaseModel):
    """Why one request in a batch was refused."""

    request_id: uuid.UUID
    reason: str


class TransitionResult(BaseModel):
    """Outcome of a batch workflow action.

    On success every requested id was moved; on failure none were, even
    when ``errors`` names only the id that lost a concurrent status race.
    """

    success: bool
    updated_ids: list[uuid.UUID] = Field(default_factory=list)
    errors: list[TransitionError] = Field(default_factory=list)
