"""Record store for OT requests.

The workflow reads requests in bulk and writes them only through a
compare-and-swap on ``status``: a row is updated only if its status still
equals the status the validator checked. Writes are staged until
``commit``; ``rollback`` discards everything staged since the last commit.
"""

# ruff: noqa: TC003
from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from sqlalchemy import select, update
from sqlmodel import col

from otms.models.request import OTRequest

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from otms.models.audit import AuditLog


@runtime_checkable
class OTRequestStore(Protocol):
    """Interface the workflow orchestrator persists through."""

    async def fetch_by_ids(self, ids: Sequence[uuid.UUID]) -> list[OTRequest]:
        """Return the requests that exist among ``ids``. Missing ids are omitted."""
        ...

    async def conditional_update(self, request_id: uuid.UUID, expected_status: str, patch: dict[str, Any]) -> bool:
        """Apply ``patch`` only if the stored status equals ``expected_status``."""
        ...

    async def add_audit(self, entry: AuditLog) -> None:
        """Stage an audit entry in the current transaction."""
        ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class SqlOTRequestStore:
    """OTRequestStore backed by an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def fetch_by_ids(self, ids: Sequence[uuid.UUID]) -> list[OTRequest]:
        if not ids:
            return []
        result = await self._session.execute(
            select(OTRequest).where(col(OTRequest.id).in_(list(ids))).execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def conditional_update(self, request_id: uuid.UUID, expected_status: str, patch: dict[str, Any]) -> bool:
        result = await self._session.execute(
            update(OTRequest)
            .where(col(OTRequest.id) == request_id, col(OTRequest.status) == expected_status)
            .values(**patch)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # ty: ignore[unresolved-attribute]

    async def add_audit(self, entry: AuditLog) -> None:
        self._session.add(entry)

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()


class InMemoryOTRequestStore:
    """In-memory stub implementation for development and tests.

    Several stores may share one ``rows`` mapping to model independent
    sessions against the same database.
    """

    def __init__(self, rows: dict[uuid.UUID, dict[str, Any]] | None = None) -> None:
        self.rows: dict[uuid.UUID, dict[str, Any]] = rows if rows is not None else {}
        self.audit_entries: list[AuditLog] = []
        self._undo: list[tuple[uuid.UUID, dict[str, Any]]] = []
        self._staged_audit: list[AuditLog] = []

    def seed(self, request: OTRequest) -> None:
        """Seed a request for testing."""
        self.rows[request.id] = request.model_dump()

    def get(self, request_id: uuid.UUID) -> OTRequest | None:
        """Committed-or-staged view of one request, outside any workflow call."""
        row = self.rows.get(request_id)
        return OTRequest(**row) if row is not None else None

    async def fetch_by_ids(self, ids: Sequence[uuid.UUID]) -> list[OTRequest]:
        return [OTRequest(**self.rows[i]) for i in ids if i in self.rows]

    async def conditional_update(self, request_id: uuid.UUID, expected_status: str, patch: dict[str, Any]) -> bool:
        row = self.rows.get(request_id)
        if row is None or row["status"] != expected_status:
            return False
        self._undo.append((request_id, dict(row)))
        row.update(patch)
        return True

    async def add_audit(self, entry: AuditLog) -> None:
        self._staged_audit.append(entry)

    async def commit(self) -> None:
        self.audit_entries.extend(self._staged_audit)
        self._staged_audit.clear()
        self._undo.clear()

    async def rollback(self) -> None:
        for request_id, previous in reversed(self._undo):
            self.rows[request_id] = previous
        self._undo.clear()
        self._staged_audit.clear()
