"""Domain models for work sessions and their artifacts."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from manual_ops.domain.blocks import Block, PhotoRecordBlock
from manual_ops.domain.models import ManualRecord


class WorkSessionStatus(StrEnum):
    """Recorded status of a work session.

    Cancelled sessions are deleted, so there is no status for them.
    """

    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class WorkSessionRecord:
    """One user actively executing (or having executed) one manual."""

    id: UUID
    user_id: UUID
    manual_id: UUID
    status: WorkSessionStatus
    started_at: datetime
    completed_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status is WorkSessionStatus.IN_PROGRESS


@dataclass(frozen=True)
class NotePhotoRecord:
    """Image attached to a work-session note."""

    id: UUID
    note_id: UUID
    image_data: str
    created_at: datetime


@dataclass(frozen=True)
class WorkSessionNoteRecord:
    """Free-text note a worker left on a block during a session."""

    id: UUID
    work_session_id: UUID
    block_id: UUID
    content: str
    created_at: datetime
    updated_at: datetime
    photos: tuple[NotePhotoRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PhotoRecord:
    """Capture recorded against a photo-record block."""

    id: UUID
    work_session_id: UUID
    block_id: UUID
    image_data: str
    created_at: datetime


@dataclass(frozen=True)
class WorkSessionDetail:
    """Session with the manual, its blocks and every artifact."""

    session: WorkSessionRecord
    manual: ManualRecord
    blocks: list[Block]
    notes: list[WorkSessionNoteRecord]
    photo_records: list[PhotoRecord]


@dataclass(frozen=True)
class CompletionReport:
    """Outcome of completing a session."""

    session: WorkSessionRecord
    notes: list[WorkSessionNoteRecord]
    missing_photo_blocks: list[PhotoRecordBlock]

    @property
    def has_missing_photos(self) -> bool:
        return bool(self.missing_photo_blocks)


@dataclass(frozen=True)
class SessionStat:
    """Session totals for one user or one manual."""

    subject_id: UUID
    total_sessions: int
    completed_sessions: int
    average_duration_minutes: int


@dataclass(frozen=True)
class SessionStatistics:
    """Per-user and per-manual totals over the admin's businesses."""

    by_user: list[SessionStat]
    by_manual: list[SessionStat]
