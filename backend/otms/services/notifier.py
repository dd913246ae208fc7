"""Best-effort push notifications for workflow events.

Delivery never affects a committed transition: ``deliver`` time-boxes each
send and logs and drops any failure.
"""

# ruff: noqa: TC003
from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

import httpx
from pydantic import BaseModel

from otms.config import get_settings
from otms.models.enums import NotificationTemplate

logger = logging.getLogger(__name__)


class NotificationMessage(BaseModel):
    """One notification for one recipient."""

    target_user_id: uuid.UUID
    template_kind: NotificationTemplate
    request_id: uuid.UUID
    remarks: str | None = None


@runtime_checkable
class Notifier(Protocol):
    """Interface for the push notification gateway."""

    async def notify(self, message: NotificationMessage) -> None:
        """Send one message. May raise; callers treat failures as non-fatal."""
        ...


class InMemoryNotifier:
    """Records messages instead of sending them. Used in development and tests."""

    def __init__(self) -> None:
        self.messages: list[NotificationMessage] = []

    async def notify(self, message: NotificationMessage) -> None:
        self.messages.append(message)


class LoggingNotifier:
    """Writes each message to the log. Default when no gateway is configured."""

    async def notify(self, message: NotificationMessage) -> None:
        logger.info(
            "Notification %s for request %s -> user %s",
            message.template_kind.value,
            message.request_id,
            message.target_user_id,
        )


class HttpNotifier:
    """Posts messages as JSON to the push notification gateway."""

    def __init__(self, url: str, client: httpx.AsyncClient | None = None, timeout: float = 5.0) -> None:
        self._url = url
        self._client = client
        self._timeout = timeout

    async def notify(self, message: NotificationMessage) -> None:
        payload = message.model_dump(mode="json")
        if self._client is not None:
            response = await self._client.post(self._url, json=payload)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._url, json=payload)
        response.raise_for_status()


async def deliver(notifier: Notifier, messages: Iterable[NotificationMessage], timeout: float) -> int:
    """Send each message, swallowing failures. Returns the number delivered."""
    delivered = 0
    for message in messages:
        try:
            await asyncio.wait_for(notifier.notify(message), timeout=timeout)
        except Exception:
            logger.warning(
                "Failed to send %s notification for request %s to user %s",
                message.template_kind.value,
                message.request_id,
                message.target_user_id,
                exc_info=True,
            )
        else:
            delivered += 1
    return delivered


def _default_notifier() -> Notifier:
    settings = get_settings()
    if settings.notifier_url:
        return HttpNotifier(settings.notifier_url, timeout=settings.notification_timeout_seconds)
    return LoggingNotifier()


_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    """FastAPI dependency for the notifier."""
    global _notifier
    if _notifier is None:
        _notifier = _default_notifier()
    return _notifier


def set_notifier(notifier: Notifier | None) -> None:
    """Override the notifier (for testing or production wiring). None restores the default."""
    global _notifier
    _notifier = notifier
