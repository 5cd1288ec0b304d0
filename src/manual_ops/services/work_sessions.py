"""Work-session state machine.

A session moves ``NONE -> IN_PROGRESS -> COMPLETED``; cancelling an
in-progress session deletes it together with its notes and photos, so no
completion record is left behind. The repository enforces the transitions:
creation fails with ``Conflict`` while another ``IN_PROGRESS`` row exists for
the same (user, manual), and completion/cancellation only touch rows that are
still ``IN_PROGRESS``.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from manual_ops.domain.access import PermissionLevel, Role
from manual_ops.domain.blocks import PhotoRecordBlock
from manual_ops.domain.errors import Conflict, Forbidden, InvalidState, NotFound
from manual_ops.domain.models import ManualRecord
from manual_ops.domain.work_sessions import (
    CompletionReport,
    NotePhotoRecord,
    PhotoRecord,
    SessionStat,
    SessionStatistics,
    WorkSessionDetail,
    WorkSessionNoteRecord,
    WorkSessionRecord,
    WorkSessionStatus,
)
from manual_ops.services.access import (
    AccessResolver,
    BusinessAccessRepository,
    UserRepository,
)
from manual_ops.services.capabilities import can_edit_manual
from manual_ops.services.manuals import ManualRepository
from manual_ops.services.notifications import NotificationService

_logger = logging.getLogger(__name__)

_SESSION_LEVELS = frozenset(
    {PermissionLevel.WORKER, PermissionLevel.ADMIN, PermissionLevel.SUPERADMIN}
)


class WorkSessionRepository(Protocol):
    """Persistence interface for work sessions."""

    def create_session(
        self, user_id: UUID, manual_id: UUID, started_at: datetime
    ) -> WorkSessionRecord:
        """Atomically create an IN_PROGRESS session.

        Raises ``Conflict`` when one already exists for (user, manual).
        """

    def get_session(self, session_id: UUID) -> WorkSessionRecord | None:
        """Return a session by id, if present."""

    def get_active_session(
        self, user_id: UUID, manual_id: UUID
    ) -> WorkSessionRecord | None:
        """Return the IN_PROGRESS session for (user, manual), if present."""

    def list_active_sessions(self, user_id: UUID) -> list[WorkSessionRecord]:
        """Return the user's IN_PROGRESS sessions, newest first."""

    def list_sessions_for_manual(self, manual_id: UUID) -> list[WorkSessionRecord]:
        """Return every session on a manual, newest first."""

    def list_sessions_for_businesses(
        self,
        business_ids: list[UUID] | None,
        status: WorkSessionStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[WorkSessionRecord]:
        """Return sessions on manuals of the given businesses, newest first.

        ``None`` for ``business_ids`` means every business; ``None`` for
        ``limit`` means no paging.
        """

    def complete_session(
        self, session_id: UUID, completed_at: datetime
    ) -> WorkSessionRecord | None:
        """Mark an IN_PROGRESS session COMPLETED.

        Returns ``None`` when no IN_PROGRESS row matched.
        """

    def cancel_session(self, session_id: UUID) -> bool:
        """Delete an IN_PROGRESS session and its children in one transaction.

        Returns False when no IN_PROGRESS row matched.
        """


class ArtifactRepository(Protocol):
    """Persistence interface for notes and photos of a work session."""

    def list_notes(
        self, session_id: UUID, block_id: UUID | None = None
    ) -> list[WorkSessionNoteRecord]:
        """Return notes with their photos, oldest first."""

    def get_note(self, note_id: UUID) -> WorkSessionNoteRecord | None:
        """Return a note by id, if present."""

    def upsert_note(
        self, session_id: UUID, block_id: UUID, content: str
    ) -> tuple[WorkSessionNoteRecord, bool]:
        """Create or update the note for (session, block); flag creation."""

    def delete_note(self, note_id: UUID) -> bool:
        """Delete a note and its photos; return True when a row was deleted."""

    def create_note_photo(self, note_id: UUID, image: bytes) -> NotePhotoRecord:
        """Append an image to a note."""

    def get_note_photo(self, photo_id: UUID) -> NotePhotoRecord | None:
        """Return a note photo by id, if present."""

    def delete_note_photo(self, photo_id: UUID) -> bool:
        """Delete a note photo; return True when a row was deleted."""

    def list_photo_records(
        self, session_id: UUID, block_id: UUID | None = None
    ) -> list[PhotoRecord]:
        """Return photo captures of a session, oldest first."""

    def create_photo_record(
        self, session_id: UUID, block_id: UUID, image: bytes
    ) -> PhotoRecord:
        """Append a capture for a photo-record block."""

    def get_photo_record(self, photo_id: UUID) -> PhotoRecord | None:
        """Return a photo capture by id, if present."""

    def delete_photo_record(self, photo_id: UUID) -> bool:
        """Delete a photo capture; return True when a row was deleted."""


@dataclass
class SessionManager:
    """Starts, completes and cancels work sessions."""

    session_repository: WorkSessionRepository
    manual_repository: ManualRepository
    artifact_repository: ArtifactRepository
    access_resolver: AccessResolver
    user_repository: UserRepository
    access_repository: BusinessAccessRepository
    notification_service: NotificationService

    def start_session(self, user_id: UUID, manual_id: UUID) -> WorkSessionRecord:
        """Start executing a manual.

        Not idempotent: a second start while one is in progress raises
        ``Conflict`` carrying the existing session.
        """
        manual = self._require_manual(manual_id)
        level = self.access_resolver.resolve(user_id, manual.business_id)
        if level not in _SESSION_LEVELS:
            _logger.warning(
                "Session start denied: user=%s manual=%s", user_id, manual_id
            )
            raise Forbidden("Access denied")

        existing = self.session_repository.get_active_session(user_id, manual_id)
        if existing is not None:
            raise Conflict("A work session is already in progress", existing)

        try:
            session = self.session_repository.create_session(
                user_id=user_id,
                manual_id=manual_id,
                started_at=datetime.now(tz=UTC),
            )
        except Conflict as exc:
            if exc.existing is None:
                exc.existing = self.session_repository.get_active_session(
                    user_id, manual_id
                )
            raise
        _logger.info(
            "Work session started: session=%s user=%s manual=%s",
            session.id,
            user_id,
            manual_id,
        )
        return session

    def complete_session(
        self, session_id: UUID, acting_user_id: UUID
    ) -> CompletionReport:
        """Complete the caller's own in-progress session.

        Ownership is absolute: superadmins cannot complete someone else's
        session here. A second completion raises ``InvalidState``.
        """
        session = self._require_owned_active(session_id, acting_user_id)
        completed = self.session_repository.complete_session(
            session_id, completed_at=datetime.now(tz=UTC)
        )
        if completed is None:
            raise InvalidState("Work session is no longer in progress")
        _logger.info("Work session completed: session=%s", session_id)

        manual = self._require_manual(session.manual_id)
        blocks = self.manual_repository.list_blocks(manual.id)
        captured = {
            photo.block_id
            for photo in self.artifact_repository.list_photo_records(session_id)
        }
        missing = [
            block
            for block in blocks
            if isinstance(block, PhotoRecordBlock) and block.id not in captured
        ]
        recipients = self.access_repository.list_admin_user_ids(
            manual.business_id
        )
        self.notification_service.notify_session_completed(
            recipient_ids=recipients,
            worker=self.user_repository.get_user(acting_user_id),
            manual=manual,
            session=completed,
        )
        return CompletionReport(
            session=completed,
            notes=self.artifact_repository.list_notes(session_id),
            missing_photo_blocks=missing,
        )

    def cancel_session(self, session_id: UUID, acting_user_id: UUID) -> None:
        """Discard the caller's own in-progress session and its artifacts."""
        self._require_owned_active(session_id, acting_user_id)
        if not self.session_repository.cancel_session(session_id):
            raise InvalidState("Work session is no longer in progress")
        _logger.info("Work session cancelled: session=%s", session_id)

    def get_session(
        self, session_id: UUID, acting_user_id: UUID
    ) -> WorkSessionDetail:
        """Return a session with its artifacts to the owner or a manual editor."""
        session = self._require_session(session_id)
        manual = self._require_manual(session.manual_id)
        if session.user_id != acting_user_id:
            level = self.access_resolver.resolve(acting_user_id, manual.business_id)
            if not can_edit_manual(level):
                raise Forbidden("Access denied")
        return WorkSessionDetail(
            session=session,
            manual=manual,
            blocks=self.manual_repository.list_blocks(manual.id),
            notes=self.artifact_repository.list_notes(session_id),
            photo_records=self.artifact_repository.list_photo_records(session_id),
        )

    def get_current_session(
        self, user_id: UUID, manual_id: UUID
    ) -> WorkSessionRecord | None:
        """Return the caller's in-progress session on a manual, if any."""
        manual = self._require_manual(manual_id)
        level = self.access_resolver.resolve(user_id, manual.business_id)
        if level is PermissionLevel.NONE:
            raise Forbidden("Access denied")
        return self.session_repository.get_active_session(user_id, manual_id)

    def list_active_sessions(self, user_id: UUID) -> list[WorkSessionRecord]:
        """Return the caller's in-progress sessions."""
        return self.session_repository.list_active_sessions(user_id)

    def list_manual_sessions(
        self, manual_id: UUID, acting_user_id: UUID
    ) -> list[WorkSessionRecord]:
        """Return sessions on a manual: all for editors, own ones otherwise."""
        manual = self._require_manual(manual_id)
        level = self.access_resolver.resolve(acting_user_id, manual.business_id)
        if level is PermissionLevel.NONE:
            raise Forbidden("Access denied")
        sessions = self.session_repository.list_sessions_for_manual(manual_id)
        if can_edit_manual(level):
            return sessions
        return [session for session in sessions if session.user_id == acting_user_id]

    def list_business_sessions(
        self,
        acting_user_id: UUID,
        status: WorkSessionStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[WorkSessionRecord]:
        """Return session history across the businesses the caller administers.

        Superadmins see every business. Callers without an admin role anywhere
        get an empty list rather than an error.
        """
        if limit < 1 or offset < 0:
            raise ValueError("limit must be positive and offset non-negative")
        scope = self._admin_scope(acting_user_id)
        if scope is not None and not scope:
            return []
        return self.session_repository.list_sessions_for_businesses(
            scope, status=status, limit=limit, offset=offset
        )

    def session_statistics(
        self, acting_user_id: UUID, business_id: UUID | None = None
    ) -> SessionStatistics:
        """Summarize sessions per user and per manual for an admin."""
        scope = self._admin_scope(acting_user_id)
        if business_id is not None:
            if scope is not None and business_id not in scope:
                raise Forbidden("Access denied")
            scope = [business_id]
        if scope is not None and not scope:
            _logger.warning("Session statistics denied: user=%s", acting_user_id)
            raise Forbidden("Access denied")
        sessions = self.session_repository.list_sessions_for_businesses(scope)
        return SessionStatistics(
            by_user=_summarize(sessions, lambda session: session.user_id),
            by_manual=_summarize(sessions, lambda session: session.manual_id),
        )

    def find_session(self, session_id: UUID) -> WorkSessionRecord | None:
        """Return the current stored state of a session."""
        return self.session_repository.get_session(session_id)

    def _admin_scope(self, user_id: UUID) -> list[UUID] | None:
        """Business ids the user administers; ``None`` means all of them."""
        user = self.user_repository.get_user(user_id)
        if user is None:
            return []
        if user.is_super_admin:
            return None
        return [
            access.business_id
            for access in self.access_repository.list_access_for_user(user_id)
            if access.role is Role.ADMIN
        ]

    def _require_manual(self, manual_id: UUID) -> ManualRecord:
        manual = self.manual_repository.get_manual(manual_id)
        if manual is None:
            raise NotFound("Manual not found")
        return manual

    def _require_session(self, session_id: UUID) -> WorkSessionRecord:
        session = self.find_session(session_id)
        if session is None:
            raise NotFound("Work session not found")
        return session

    def _require_owned_active(
        self, session_id: UUID, acting_user_id: UUID
    ) -> WorkSessionRecord:
        session = self._require_session(session_id)
        if session.user_id != acting_user_id:
            _logger.warning(
                "Session transition denied: session=%s user=%s",
                session_id,
                acting_user_id,
            )
            raise Forbidden("Access denied")
        if not session.is_active:
            raise InvalidState("Work session is not in progress")
        return session


def _summarize(
    sessions: list[WorkSessionRecord],
    key: Callable[[WorkSessionRecord], UUID],
) -> list[SessionStat]:
    grouped: dict[UUID, list[WorkSessionRecord]] = {}
    for session in sessions:
        grouped.setdefault(key(session), []).append(session)
    stats = []
    for subject_id, items in grouped.items():
        durations = [
            (session.completed_at - session.started_at).total_seconds()
            for session in items
            if session.completed_at is not None
        ]
        average = round(sum(durations) / len(durations) / 60) if durations else 0
        stats.append(
            SessionStat(
                subject_id=subject_id,
                total_sessions=len(items),
                completed_sessions=len(durations),
                average_duration_minutes=average,
            )
        )
    return stats
