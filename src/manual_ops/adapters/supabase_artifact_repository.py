"""Supabase-backed notes and photos of work sessions."""

import base64
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from manual_ops.domain.work_sessions import (
    NotePhotoRecord,
    PhotoRecord,
    WorkSessionNoteRecord,
)
from manual_ops.services.work_sessions import ArtifactRepository

_logger = logging.getLogger(__name__)

_NOTE_COLUMNS = "id, work_session_id, block_id, content, created_at, updated_at"
_NOTE_PHOTO_COLUMNS = "id, note_id, image_data, created_at"
_PHOTO_COLUMNS = "id, work_session_id, block_id, image_data, created_at"
_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseArtifactRepository(ArtifactRepository):
    """Supabase implementation for session notes, note photos and captures."""

    client: Client

    def list_notes(
        self, session_id: UUID, block_id: UUID | None = None
    ) -> list[WorkSessionNoteRecord]:
        """Return notes with their photos, oldest first."""
        query = (
            self.client.table("work_session_notes")
            .select(_NOTE_COLUMNS)
            .eq("work_session_id", str(session_id))
        )
        if block_id is not None:
            query = query.eq("block_id", str(block_id))
        response = query.order("created_at").execute()
        rows = response.data or []
        if not rows:
            return []
        photos_response = (
            self.client.table("work_session_note_photos")
            .select(_NOTE_PHOTO_COLUMNS)
            .in_("note_id", [row["id"] for row in rows])
            .order("created_at")
            .execute()
        )
        photos: dict[UUID, list[NotePhotoRecord]] = {}
        for photo_row in photos_response.data or []:
            photo = _to_note_photo(photo_row)
            photos.setdefault(photo.note_id, []).append(photo)
        return [_to_note(row, photos.get(UUID(str(row["id"])), [])) for row in rows]

    def get_note(self, note_id: UUID) -> WorkSessionNoteRecord | None:
        """Return a note by id, without photos."""
        response = (
            self.client.table("work_session_notes")
            .select(_NOTE_COLUMNS)
            .eq("id", str(note_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_note(response.data[0], [])

    def upsert_note(
        self, session_id: UUID, block_id: UUID, content: str
    ) -> tuple[WorkSessionNoteRecord, bool]:
        """Update the note for (session, block) or create it.

        A concurrent insert for the same pair trips the
        ``(work_session_id, block_id)`` unique constraint; the loser then
        updates the row the winner created.
        """
        existing_id = self._find_note_id(session_id, block_id)
        if existing_id is not None:
            return self._update_note(existing_id, content), False
        try:
            response = (
                self.client.table("work_session_notes")
                .insert(
                    {
                        "work_session_id": str(session_id),
                        "block_id": str(block_id),
                        "content": content,
                    }
                )
                .execute()
            )
        except APIError as exc:
            if exc.code != _UNIQUE_VIOLATION:
                raise
            existing_id = self._find_note_id(session_id, block_id)
            if existing_id is None:
                raise
            _logger.info(
                "Concurrent note insert resolved as update: session=%s block=%s",
                session_id,
                block_id,
            )
            return self._update_note(existing_id, content), False
        if not response.data:
            raise RuntimeError("Failed to save work session note")
        return _to_note(response.data[0], []), True

    def delete_note(self, note_id: UUID) -> bool:
        """Delete a note after its photos."""
        self.client.table("work_session_note_photos").delete().eq(
            "note_id", str(note_id)
        ).execute()
        response = (
            self.client.table("work_session_notes")
            .delete()
            .eq("id", str(note_id))
            .execute()
        )
        return bool(response.data)

    def create_note_photo(self, note_id: UUID, image: bytes) -> NotePhotoRecord:
        """Append an image to a note."""
        response = (
            self.client.table("work_session_note_photos")
            .insert({"note_id": str(note_id), "image_data": _encode(image)})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save note photo")
        return _to_note_photo(response.data[0])

    def get_note_photo(self, photo_id: UUID) -> NotePhotoRecord | None:
        """Return a note photo by id, if present."""
        response = (
            self.client.table("work_session_note_photos")
            .select(_NOTE_PHOTO_COLUMNS)
            .eq("id", str(photo_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_note_photo(response.data[0])

    def delete_note_photo(self, photo_id: UUID) -> bool:
        """Delete a note photo."""
        response = (
            self.client.table("work_session_note_photos")
            .delete()
            .eq("id", str(photo_id))
            .execute()
        )
        return bool(response.data)

    def list_photo_records(
        self, session_id: UUID, block_id: UUID | None = None
    ) -> list[PhotoRecord]:
        """Return photo captures of a session, oldest first."""
        query = (
            self.client.table("photo_records")
            .select(_PHOTO_COLUMNS)
            .eq("work_session_id", str(session_id))
        )
        if block_id is not None:
            query = query.eq("block_id", str(block_id))
        response = query.order("created_at").execute()
        return [_to_photo(row) for row in response.data or []]

    def create_photo_record(
        self, session_id: UUID, block_id: UUID, image: bytes
    ) -> PhotoRecord:
        """Append a capture for a photo-record block."""
        response = (
            self.client.table("photo_records")
            .insert(
                {
                    "work_session_id": str(session_id),
                    "block_id": str(block_id),
                    "image_data": _encode(image),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save photo record")
        return _to_photo(response.data[0])

    def get_photo_record(self, photo_id: UUID) -> PhotoRecord | None:
        """Return a photo capture by id, if present."""
        response = (
            self.client.table("photo_records")
            .select(_PHOTO_COLUMNS)
            .eq("id", str(photo_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_photo(response.data[0])

    def delete_photo_record(self, photo_id: UUID) -> bool:
        """Delete a photo capture."""
        response = (
            self.client.table("photo_records")
            .delete()
            .eq("id", str(photo_id))
            .execute()
        )
        return bool(response.data)

    def _find_note_id(self, session_id: UUID, block_id: UUID) -> str | None:
        response = (
            self.client.table("work_session_notes")
            .select("id")
            .eq("work_session_id", str(session_id))
            .eq("block_id", str(block_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return str(response.data[0]["id"])

    def _update_note(self, note_id: str, content: str) -> WorkSessionNoteRecord:
        response = (
            self.client.table("work_session_notes")
            .update(
                {"content": content, "updated_at": datetime.now(tz=UTC).isoformat()}
            )
            .eq("id", note_id)
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save work session note")
        return _to_note(response.data[0], [])


def _encode(image: bytes) -> str:
    return base64.b64encode(image).decode("ascii")


def _timestamp(value: object) -> datetime:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return datetime.now(tz=UTC)


def _to_note(
    row: dict[str, object], photos: list[NotePhotoRecord]
) -> WorkSessionNoteRecord:
    return WorkSessionNoteRecord(
        id=UUID(str(row["id"])),
        work_session_id=UUID(str(row["work_session_id"])),
        block_id=UUID(str(row["block_id"])),
        content=str(row.get("content") or ""),
        created_at=_timestamp(row.get("created_at")),
        updated_at=_timestamp(row.get("updated_at")),
        photos=tuple(photos),
    )


def _to_note_photo(row: dict[str, object]) -> NotePhotoRecord:
    return NotePhotoRecord(
        id=UUID(str(row["id"])),
        note_id=UUID(str(row["note_id"])),
        image_data=str(row.get("image_data") or ""),
        created_at=_timestamp(row.get("created_at")),
    )


def _to_photo(row: dict[str, object]) -> PhotoRecord:
    return PhotoRecord(
        id=UUID(str(row["id"])),
        work_session_id=UUID(str(row["work_session_id"])),
        block_id=UUID(str(row["block_id"])),
        image_data=str(row.get("image_data") or ""),
        created_at=_timestamp(row.get("created_at")),
    )
