"""Supabase-backed work session repository.

The single-active-session rule is held by the partial unique index
``work_sessions_one_active`` on ``(user_id, manual_id) WHERE status =
'IN_PROGRESS'``; a unique violation on insert becomes ``Conflict``.
Cancellation runs the ``cancel_work_session`` SQL function so the child rows
and the session are deleted in one transaction.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from manual_ops.domain.errors import Conflict
from manual_ops.domain.work_sessions import WorkSessionRecord, WorkSessionStatus
from manual_ops.services.work_sessions import WorkSessionRepository

_logger = logging.getLogger(__name__)

_COLUMNS = "id, user_id, manual_id, status, started_at, completed_at"
_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseWorkSessionRepository(WorkSessionRepository):
    """Supabase implementation for work sessions."""

    client: Client

    def create_session(
        self, user_id: UUID, manual_id: UUID, started_at: datetime
    ) -> WorkSessionRecord:
        """Insert an IN_PROGRESS row, mapping the unique guard to ``Conflict``."""
        try:
            response = (
                self.client.table("work_sessions")
                .insert(
                    {
                        "user_id": str(user_id),
                        "manual_id": str(manual_id),
                        "status": WorkSessionStatus.IN_PROGRESS.value,
                        "started_at": started_at.isoformat(),
                    }
                )
                .execute()
            )
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                _logger.info(
                    "Concurrent session start rejected: user=%s manual=%s",
                    user_id,
                    manual_id,
                )
                raise Conflict("A work session is already in progress") from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create work session")
        return _to_session(response.data[0])

    def get_session(self, session_id: UUID) -> WorkSessionRecord | None:
        """Return a session by id, if present."""
        response = (
            self.client.table("work_sessions")
            .select(_COLUMNS)
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_session(response.data[0])

    def get_active_session(
        self, user_id: UUID, manual_id: UUID
    ) -> WorkSessionRecord | None:
        """Return the IN_PROGRESS session for (user, manual), if present."""
        response = (
            self.client.table("work_sessions")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .eq("manual_id", str(manual_id))
            .eq("status", WorkSessionStatus.IN_PROGRESS.value)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_session(response.data[0])

    def list_active_sessions(self, user_id: UUID) -> list[WorkSessionRecord]:
        """Return the user's IN_PROGRESS sessions, newest first."""
        response = (
            self.client.table("work_sessions")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .eq("status", WorkSessionStatus.IN_PROGRESS.value)
            .order("started_at", desc=True)
            .execute()
        )
        return [_to_session(row) for row in response.data or []]

    def list_sessions_for_manual(self, manual_id: UUID) -> list[WorkSessionRecord]:
        """Return every session on a manual, newest first."""
        response = (
            self.client.table("work_sessions")
            .select(_COLUMNS)
            .eq("manual_id", str(manual_id))
            .order("started_at", desc=True)
            .execute()
        )
        return [_to_session(row) for row in response.data or []]

    def list_sessions_for_businesses(
        self,
        business_ids: list[UUID] | None,
        status: WorkSessionStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[WorkSessionRecord]:
        """Return sessions joined to their manual's business, newest first."""
        query = self.client.table("work_sessions").select(
            f"{_COLUMNS}, manuals!inner(business_id)"
        )
        if business_ids is not None:
            query = query.in_(
                "manuals.business_id", [str(item) for item in business_ids]
            )
        if status is not None:
            query = query.eq("status", status.value)
        query = query.order("started_at", desc=True)
        if limit is not None:
            query = query.range(offset, offset + limit - 1)
        response = query.execute()
        return [_to_session(row) for row in response.data or []]

    def complete_session(
        self, session_id: UUID, completed_at: datetime
    ) -> WorkSessionRecord | None:
        """Complete the row only while it is still IN_PROGRESS."""
        response = (
            self.client.table("work_sessions")
            .update(
                {
                    "status": WorkSessionStatus.COMPLETED.value,
                    "completed_at": completed_at.isoformat(),
                }
            )
            .eq("id", str(session_id))
            .eq("status", WorkSessionStatus.IN_PROGRESS.value)
            .execute()
        )
        if not response.data:
            return None
        return _to_session(response.data[0])

    def cancel_session(self, session_id: UUID) -> bool:
        """Delete an IN_PROGRESS session and its children in one transaction."""
        response = self.client.rpc(
            "cancel_work_session", {"p_session_id": str(session_id)}
        ).execute()
        return response.data is True


def _to_session(row: dict[str, object]) -> WorkSessionRecord:
    completed = row.get("completed_at")
    return WorkSessionRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        manual_id=UUID(str(row["manual_id"])),
        status=WorkSessionStatus(str(row["status"])),
        started_at=datetime.fromisoformat(str(row["started_at"])),
        completed_at=datetime.fromisoformat(completed)
        if isinstance(completed, str) and completed
        else None,
    )
