"""Work-session endpoints: lifecycle, notes and photo records."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from manual_ops.api.dependencies import require_user
from manual_ops.api.schemas import (
    NotePhotoRequest,
    NoteRequest,
    PhotoRequest,
    decode_image,
    serialize_completion,
    serialize_detail,
    serialize_note,
    serialize_note_photo,
    serialize_photo,
    serialize_session,
    serialize_statistics,
)
from manual_ops.domain.models import UserRecord  # noqa: TC001
from manual_ops.domain.work_sessions import WorkSessionStatus  # noqa: TC001

if TYPE_CHECKING:
    from manual_ops.containers import AppContainer

router = APIRouter(tags=["work-sessions"])


@router.post("/manuals/{manual_id}/work-sessions", status_code=status.HTTP_201_CREATED)
def start_session(
    manual_id: UUID, request: Request, user: UserRecord = Depends(require_user)
) -> dict[str, object]:
    """Start executing a manual."""
    container: AppContainer = request.app.state.container
    session = container.session_manager.start_session(user.id, manual_id)
    return {"work_session": serialize_session(session)}


@router.get("/manuals/{manual_id}/work-sessions")
def list_manual_sessions(
    manual_id: UUID, request: Request, user: UserRecord = Depends(require_user)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    sessions = container.session_manager.list_manual_sessions(manual_id, user.id)
    return {"work_sessions": [serialize_session(session) for session in sessions]}


@router.get("/manuals/{manual_id}/work-sessions/current")
def current_session(
    manual_id: UUID, request: Request, user: UserRecord = Depends(require_user)
) -> dict[str, object]:
    """Return the caller's in-progress session on a manual, or null."""
    container: AppContainer = request.app.state.container
    session = container.session_manager.get_current_session(user.id, manual_id)
    return {"work_session": serialize_session(session) if session else None}


@router.get("/work-sessions")
def list_business_sessions(
    request: Request,
    status: WorkSessionStatus | None = None,
    limit: int = 50,
    offset: int = 0,
    user: UserRecord = Depends(require_user),
) -> dict[str, object]:
    """Return session history for the businesses the caller administers."""
    container: AppContainer = request.app.state.container
    sessions = container.session_manager.list_business_sessions(
        user.id, status=status, limit=limit, offset=offset
    )
    return {"work_sessions": [serialize_session(session) for session in sessions]}


@router.get("/analytics/work-sessions")
def session_statistics(
    request: Request,
    business_id: UUID | None = None,
    user: UserRecord = Depends(require_user),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    statistics = container.session_manager.session_statistics(user.id, business_id)
    return serialize_statistics(statistics)


@router.get("/work-sessions/active")
def list_active_sessions(
    request: Request, user: UserRecord = Depends(require_user)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    sessions = container.session_manager.list_active_sessions(user.id)
    return {"work_sessions": [serialize_session(session) for session in sessions]}


@router.get("/work-sessions/{session_id}")
def session_detail(
    session_id: UUID, request: Request, user: UserRecord = Depends(require_user)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    detail = container.session_manager.get_session(session_id, user.id)
    return {"work_session": serialize_detail(detail)}


@router.post("/work-sessions/{session_id}/complete")
def complete_session(
    session_id: UUID, request: Request, user: UserRecord = Depends(require_user)
) -> dict[str, object]:
    """Complete the caller's session and report missing photo captures."""
    container: AppContainer = request.app.state.container
    report = container.session_manager.complete_session(session_id, user.id)
    return {"work_session": serialize_completion(report)}


@router.delete("/work-sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_session(
    session_id: UUID, request: Request, user: UserRecord = Depends(require_user)
) -> Response:
    """Discard the caller's session together with its notes and photos."""
    container: AppContainer = request.app.state.container
    container.session_manager.cancel_session(session_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/work-sessions/{session_id}/notes")
def list_notes(
    session_id: UUID,
    request: Request,
    block_id: UUID | None = None,
    user: UserRecord = Depends(require_user),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    notes = container.artifact_guard.list_notes(session_id, user.id, block_id)
    return {"notes": [serialize_note(note) for note in notes]}


@router.post("/work-sessions/{session_id}/notes")
def record_note(
    session_id: UUID,
    payload: NoteRequest,
    request: Request,
    user: UserRecord = Depends(require_user),
) -> JSONResponse:
    """Create or replace the caller's note on a block (201 when created)."""
    container: AppContainer = request.app.state.container
    note, created = container.artifact_guard.record_note(
        session_id, payload.block_id, payload.content, user.id
    )
    return JSONResponse(
        {"note": serialize_note(note)},
        status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


@router.delete(
    "/work-sessions/{session_id}/notes/{note_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_note(
    session_id: UUID,
    note_id: UUID,
    request: Request,
    user: UserRecord = Depends(require_user),
) -> Response:
    container: AppContainer = request.app.state.container
    container.artifact_guard.delete_note(session_id, note_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/work-sessions/{session_id}/notes/{note_id}/photos",
    status_code=status.HTTP_201_CREATED,
)
def attach_note_photo(
    session_id: UUID,
    note_id: UUID,
    payload: NotePhotoRequest,
    request: Request,
    user: UserRecord = Depends(require_user),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    photo = container.artifact_guard.attach_note_photo(
        session_id, note_id, decode_image(payload.image_data), user.id
    )
    return {"photo": serialize_note_photo(photo)}


@router.delete(
    "/work-sessions/{session_id}/notes/{note_id}/photos/{photo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_note_photo(
    session_id: UUID,
    note_id: UUID,
    photo_id: UUID,
    request: Request,
    user: UserRecord = Depends(require_user),
) -> Response:
    container: AppContainer = request.app.state.container
    container.artifact_guard.delete_note_photo(session_id, note_id, photo_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/work-sessions/{session_id}/photos")
def list_photos(
    session_id: UUID,
    request: Request,
    block_id: UUID | None = None,
    user: UserRecord = Depends(require_user),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    photos = container.artifact_guard.list_photos(session_id, user.id, block_id)
    return {"photos": [serialize_photo(photo) for photo in photos]}


@router.post("/work-sessions/{session_id}/photos", status_code=status.HTTP_201_CREATED)
def attach_photo(
    session_id: UUID,
    payload: PhotoRequest,
    request: Request,
    user: UserRecord = Depends(require_user),
) -> dict[str, object]:
    """Append a capture to a photo-record block."""
    container: AppContainer = request.app.state.container
    photo = container.artifact_guard.attach_photo(
        session_id, payload.block_id, decode_image(payload.image_data), user.id
    )
    return {"photo": serialize_photo(photo)}


@router.delete(
    "/work-sessions/{session_id}/photos/{photo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_photo(
    session_id: UUID,
    photo_id: UUID,
    request: Request,
    user: UserRecord = Depends(require_user),
) -> Response:
    container: AppContainer = request.app.state.container
    container.artifact_guard.delete_photo(session_id, photo_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
