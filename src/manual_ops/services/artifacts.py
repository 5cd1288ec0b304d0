"""Write gate for notes and photos attached to a work session.

Every mutation checks, in order: the session exists (``NotFound``), it is
still ``IN_PROGRESS`` (``InvalidState``), and the caller owns it
(``Forbidden``). Superadmins are not exempt. Reads stay available after
completion to the owner and to callers whose fresh permission level for the
manual's business allows editing it.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from manual_ops.domain.blocks import Block, accepts_notes, accepts_photo_records
from manual_ops.domain.errors import Forbidden, InvalidState, NotFound
from manual_ops.domain.work_sessions import (
    NotePhotoRecord,
    PhotoRecord,
    WorkSessionNoteRecord,
    WorkSessionRecord,
)
from manual_ops.services.capabilities import can_edit_manual
from manual_ops.services.work_sessions import ArtifactRepository, SessionManager

_logger = logging.getLogger(__name__)


@dataclass
class ArtifactGuard:
    """Accepts or rejects note and photo mutations for a session."""

    session_manager: SessionManager
    repository: ArtifactRepository

    def guard_write(self, session_id: UUID, acting_user_id: UUID) -> WorkSessionRecord:
        """Return the session when the caller may write artifacts to it."""
        session = self.session_manager.find_session(session_id)
        if session is None:
            raise NotFound("Work session not found")
        if not session.is_active:
            raise InvalidState("Work session is not in progress")
        if session.user_id != acting_user_id:
            _logger.warning(
                "Artifact write denied: session=%s user=%s",
                session_id,
                acting_user_id,
            )
            raise Forbidden("Access denied")
        return session

    def record_note(
        self, session_id: UUID, block_id: UUID, content: str, acting_user_id: UUID
    ) -> tuple[WorkSessionNoteRecord, bool]:
        """Create or replace the caller's note on a block.

        Returns the note and whether it was newly created.
        """
        session = self.guard_write(session_id, acting_user_id)
        if not content.strip():
            raise ValueError("Note content must not be empty")
        block = self._require_block(session, block_id)
        if not accepts_notes(block):
            raise InvalidState("Block does not accept notes")
        return self.repository.upsert_note(session_id, block_id, content)

    def delete_note(
        self, session_id: UUID, note_id: UUID, acting_user_id: UUID
    ) -> None:
        self.guard_write(session_id, acting_user_id)
        self._require_note(session_id, note_id)
        if not self.repository.delete_note(note_id):
            raise NotFound("Note not found")

    def attach_photo(
        self, session_id: UUID, block_id: UUID, image: bytes, acting_user_id: UUID
    ) -> PhotoRecord:
        """Append a capture to a photo-record block.

        ``image`` is already decoded and optimized by the upload collaborator.
        """
        session = self.guard_write(session_id, acting_user_id)
        if not image:
            raise ValueError("Image data must not be empty")
        block = self._require_block(session, block_id)
        if not accepts_photo_records(block):
            raise InvalidState("Block does not accept photo records")
        return self.repository.create_photo_record(session_id, block_id, image)

    def attach_note_photo(
        self, session_id: UUID, note_id: UUID, image: bytes, acting_user_id: UUID
    ) -> NotePhotoRecord:
        """Append an image to one of the session's notes."""
        self.guard_write(session_id, acting_user_id)
        if not image:
            raise ValueError("Image data must not be empty")
        self._require_note(session_id, note_id)
        return self.repository.create_note_photo(note_id, image)

    def delete_photo(
        self, session_id: UUID, photo_id: UUID, acting_user_id: UUID
    ) -> None:
        self.guard_write(session_id, acting_user_id)
        photo = self.repository.get_photo_record(photo_id)
        if photo is None or photo.work_session_id != session_id:
            raise NotFound("Photo not found")
        if not self.repository.delete_photo_record(photo_id):
            raise NotFound("Photo not found")

    def delete_note_photo(
        self, session_id: UUID, note_id: UUID, photo_id: UUID, acting_user_id: UUID
    ) -> None:
        self.guard_write(session_id, acting_user_id)
        self._require_note(session_id, note_id)
        photo = self.repository.get_note_photo(photo_id)
        if photo is None or photo.note_id != note_id:
            raise NotFound("Photo not found")
        if not self.repository.delete_note_photo(photo_id):
            raise NotFound("Photo not found")

    def list_notes(
        self, session_id: UUID, acting_user_id: UUID, block_id: UUID | None = None
    ) -> list[WorkSessionNoteRecord]:
        self._guard_read(session_id, acting_user_id)
        return self.repository.list_notes(session_id, block_id)

    def list_photos(
        self, session_id: UUID, acting_user_id: UUID, block_id: UUID | None = None
    ) -> list[PhotoRecord]:
        self._guard_read(session_id, acting_user_id)
        return self.repository.list_photo_records(session_id, block_id)

    def _guard_read(self, session_id: UUID, acting_user_id: UUID) -> WorkSessionRecord:
        session = self.session_manager.find_session(session_id)
        if session is None:
            raise NotFound("Work session not found")
        if session.user_id == acting_user_id:
            return session
        manual = self.session_manager.manual_repository.get_manual(session.manual_id)
        if manual is None:
            raise NotFound("Manual not found")
        level = self.session_manager.access_resolver.resolve(
            acting_user_id, manual.business_id
        )
        if not can_edit_manual(level):
            _logger.warning(
                "Artifact read denied: session=%s user=%s", session_id, acting_user_id
            )
            raise Forbidden("Access denied")
        return session

    def _require_block(self, session: WorkSessionRecord, block_id: UUID) -> Block:
        block = self.session_manager.manual_repository.get_block(block_id)
        if block is None or block.manual_id != session.manual_id:
            raise NotFound("Block not found")
        return block

    def _require_note(self, session_id: UUID, note_id: UUID) -> WorkSessionNoteRecord:
        note = self.repository.get_note(note_id)
        if note is None or note.work_session_id != session_id:
            raise NotFound("Note not found")
        return note
