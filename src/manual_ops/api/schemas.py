"""Pydantic request models and response serializers."""

import base64
import binascii
from dataclasses import asdict
from uuid import UUID

from pydantic import BaseModel, Field

from manual_ops.domain.access import (
    AccessDescriptor,
    AccessibleBusiness,
    BusinessAccessRecord,
    PermissionLevel,
    Role,
)
from manual_ops.domain.blocks import Block, block_type
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
)
from manual_ops.services.capabilities import capabilities


class NoteRequest(BaseModel):
    """Body for recording a note on a block."""

    block_id: UUID
    content: str = Field(min_length=1)


class PhotoRequest(BaseModel):
    """Body for a photo capture on a photo-record block."""

    block_id: UUID
    image_data: str = Field(min_length=1)


class NotePhotoRequest(BaseModel):
    """Body for an image attached to a note."""

    image_data: str = Field(min_length=1)


class MemberRequest(BaseModel):
    """Body for granting or changing a business role."""

    role: Role


def decode_image(image_data: str) -> bytes:
    """Decode base64 image data, accepting an optional data-URL prefix."""
    payload = image_data
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise ValueError("image_data must be base64 encoded") from exc


def serialize_session(session: WorkSessionRecord) -> dict[str, object]:
    return {
        "id": str(session.id),
        "user_id": str(session.user_id),
        "manual_id": str(session.manual_id),
        "status": session.status.value,
        "started_at": session.started_at.isoformat(),
        "completed_at": session.completed_at.isoformat()
        if session.completed_at
        else None,
    }


def serialize_note_photo(photo: NotePhotoRecord) -> dict[str, object]:
    return {
        "id": str(photo.id),
        "note_id": str(photo.note_id),
        "image_data": photo.image_data,
        "created_at": photo.created_at.isoformat(),
    }


def serialize_note(note: WorkSessionNoteRecord) -> dict[str, object]:
    return {
        "id": str(note.id),
        "work_session_id": str(note.work_session_id),
        "block_id": str(note.block_id),
        "content": note.content,
        "created_at": note.created_at.isoformat(),
        "updated_at": note.updated_at.isoformat(),
        "photos": [serialize_note_photo(photo) for photo in note.photos],
    }


def serialize_photo(photo: PhotoRecord) -> dict[str, object]:
    return {
        "id": str(photo.id),
        "work_session_id": str(photo.work_session_id),
        "block_id": str(photo.block_id),
        "image_data": photo.image_data,
        "created_at": photo.created_at.isoformat(),
    }


def serialize_block(block: Block) -> dict[str, object]:
    """Serialize a block with its discriminator; nested ids become strings."""
    payload = asdict(block)
    payload["id"] = str(block.id)
    payload["manual_id"] = str(block.manual_id)
    payload["type"] = block_type(block).value
    return payload


def serialize_manual(manual: ManualRecord) -> dict[str, object]:
    return {
        "id": str(manual.id),
        "business_id": str(manual.business_id),
        "title": manual.title,
        "status": manual.status.value,
        "admin_only": manual.admin_only,
        "updated_at": manual.updated_at.isoformat() if manual.updated_at else None,
    }


def serialize_detail(detail: WorkSessionDetail) -> dict[str, object]:
    return {
        **serialize_session(detail.session),
        "manual": {
            **serialize_manual(detail.manual),
            "blocks": [serialize_block(block) for block in detail.blocks],
        },
        "notes": [serialize_note(note) for note in detail.notes],
        "photo_records": [serialize_photo(photo) for photo in detail.photo_records],
    }


def serialize_completion(report: CompletionReport) -> dict[str, object]:
    return {
        **serialize_session(report.session),
        "notes": [serialize_note(note) for note in report.notes],
        "has_missing_photos": report.has_missing_photos,
        "missing_photo_blocks": [
            serialize_block(block) for block in report.missing_photo_blocks
        ],
    }


def serialize_access(
    descriptor: AccessDescriptor, level: PermissionLevel
) -> dict[str, object]:
    return {
        "has_access": descriptor.has_access,
        "role": descriptor.role.value if descriptor.role else None,
        "is_super_admin": descriptor.is_super_admin,
        "permission_level": level.value,
        **capabilities(level),
    }


def serialize_business(entry: AccessibleBusiness) -> dict[str, object]:
    return {
        "id": str(entry.business.id),
        "name": entry.business.name,
        "sort_order": entry.business.sort_order,
        "role": entry.role.value if entry.role else None,
        "permission_level": entry.level.value,
        "manuals": [serialize_manual(manual) for manual in entry.manuals],
    }


def serialize_member(access: BusinessAccessRecord) -> dict[str, object]:
    return {
        "id": str(access.id),
        "user_id": str(access.user_id),
        "business_id": str(access.business_id),
        "role": access.role.value,
    }


def _serialize_stat(stat: SessionStat) -> dict[str, object]:
    return {
        "id": str(stat.subject_id),
        "total_sessions": stat.total_sessions,
        "completed_sessions": stat.completed_sessions,
        "average_duration_minutes": stat.average_duration_minutes,
    }


def serialize_statistics(statistics: SessionStatistics) -> dict[str, object]:
    return {
        "by_user": [_serialize_stat(stat) for stat in statistics.by_user],
        "by_manual": [_serialize_stat(stat) for stat in statistics.by_manual],
    }
