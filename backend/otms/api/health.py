import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from otms.config import get_settings
from otms.db import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Service health. ``degraded`` means the record store is unreachable."""

    status: Literal["ok", "degraded"]
    version: str
    environment: str
    record_store: Literal["ok", "unreachable"]
    notifier: Literal["http", "log"]


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Ping the record store and report which notifier delivery is configured."""
    settings = get_settings()

    try:
        await session.execute(text("SELECT 1"))
        record_store: Literal["ok", "unreachable"] = "ok"
    except Exception:
        logger.exception("Health check: record store connectivity failed")
        record_store = "unreachable"

    return HealthResponse(
        status="ok" if record_store == "ok" else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        record_store=record_store,
        notifier="http" if settings.notifier_url else "log",
    )
