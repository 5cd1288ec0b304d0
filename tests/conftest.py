"""Shared test fixtures."""

import base64
import threading
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from manual_ops.config import Settings
from manual_ops.containers import AppContainer
from manual_ops.domain.access import BusinessAccessRecord, Role
from manual_ops.domain.blocks import Block, PhotoRecordBlock, TextBlock
from manual_ops.domain.errors import Conflict
from manual_ops.domain.models import (
    AuthSessionRecord,
    BusinessRecord,
    ManualRecord,
    ManualStatus,
    UserRecord,
)
from manual_ops.domain.work_sessions import (
    NotePhotoRecord,
    PhotoRecord,
    WorkSessionNoteRecord,
    WorkSessionRecord,
    WorkSessionStatus,
)
from manual_ops.services.access import (
    AccessResolver,
    BusinessAccessRepository,
    UserRepository,
)
from manual_ops.services.artifacts import ArtifactGuard
from manual_ops.services.auth import AuthService, AuthSessionRepository
from manual_ops.services.manuals import CatalogService, ManualRepository
from manual_ops.services.membership import MembershipService
from manual_ops.services.notifications import (
    NotificationRepository,
    NotificationService,
)
from manual_ops.services.work_sessions import (
    ArtifactRepository,
    SessionManager,
    WorkSessionRepository,
)


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user repository for tests."""

    users: dict[UUID, UserRecord] = field(default_factory=dict)

    def get_user(self, user_id: UUID) -> UserRecord | None:
        return self.users.get(user_id)

    def add_user(
        self, name: str = "Worker", *, super_admin: bool = False, active: bool = True
    ) -> UserRecord:
        user = UserRecord(
            id=uuid4(),
            email=f"{name.lower().replace(' ', '.')}@example.com",
            name=name,
            is_super_admin=super_admin,
            is_active=active,
        )
        self.users[user.id] = user
        return user


@dataclass
class InMemoryAuthSessionRepository(AuthSessionRepository):
    """In-memory login session store for tests."""

    sessions: dict[str, AuthSessionRecord] = field(default_factory=dict)

    def get_auth_session(self, token: str) -> AuthSessionRecord | None:
        return self.sessions.get(token)

    def issue(self, user_id: UUID, ttl: timedelta = timedelta(hours=1)) -> str:
        token = uuid4().hex
        self.sessions[token] = AuthSessionRecord(
            token=token, user_id=user_id, expires_at=datetime.now(tz=UTC) + ttl
        )
        return token


@dataclass
class InMemoryBusinessAccessRepository(BusinessAccessRepository):
    """In-memory business access store that counts lookups."""

    user_repository: InMemoryUserRepository
    grants: dict[tuple[UUID, UUID], BusinessAccessRecord] = field(
        default_factory=dict
    )
    lookups: int = 0

    def get_access(
        self, user_id: UUID, business_id: UUID
    ) -> BusinessAccessRecord | None:
        self.lookups += 1
        return self.grants.get((user_id, business_id))

    def list_access_for_user(self, user_id: UUID) -> list[BusinessAccessRecord]:
        return [grant for grant in self.grants.values() if grant.user_id == user_id]

    def list_access_for_business(
        self, business_id: UUID
    ) -> list[BusinessAccessRecord]:
        return [
            grant for grant in self.grants.values() if grant.business_id == business_id
        ]

    def upsert_access(
        self, user_id: UUID, business_id: UUID, role: Role
    ) -> BusinessAccessRecord:
        existing = self.grants.get((user_id, business_id))
        access = BusinessAccessRecord(
            id=existing.id if existing else uuid4(),
            user_id=user_id,
            business_id=business_id,
            role=role,
        )
        self.grants[(user_id, business_id)] = access
        return access

    def delete_access(self, user_id: UUID, business_id: UUID) -> bool:
        return self.grants.pop((user_id, business_id), None) is not None

    def list_admin_user_ids(self, business_id: UUID) -> list[UUID]:
        ids = [
            user.id
            for user in self.user_repository.users.values()
            if user.is_super_admin
        ]
        for grant in self.list_access_for_business(business_id):
            if grant.role is Role.ADMIN and grant.user_id not in ids:
                ids.append(grant.user_id)
        return ids


@dataclass
class InMemoryManualRepository(ManualRepository):
    """In-memory catalog of businesses, manuals and blocks."""

    businesses: dict[UUID, BusinessRecord] = field(default_factory=dict)
    manuals: dict[UUID, ManualRecord] = field(default_factory=dict)
    blocks: dict[UUID, Block] = field(default_factory=dict)

    def get_business(self, business_id: UUID) -> BusinessRecord | None:
        return self.businesses.get(business_id)

    def list_businesses(self) -> list[BusinessRecord]:
        return sorted(self.businesses.values(), key=lambda item: item.sort_order)

    def get_manual(self, manual_id: UUID) -> ManualRecord | None:
        return self.manuals.get(manual_id)

    def list_manuals(self, business_id: UUID) -> list[ManualRecord]:
        return [
            manual
            for manual in self.manuals.values()
            if manual.business_id == business_id
        ]

    def list_blocks(self, manual_id: UUID) -> list[Block]:
        return sorted(
            (block for block in self.blocks.values() if block.manual_id == manual_id),
            key=lambda block: block.sort_order,
        )

    def get_block(self, block_id: UUID) -> Block | None:
        return self.blocks.get(block_id)

    def add_business(self, name: str = "Bakery") -> BusinessRecord:
        business = BusinessRecord(
            id=uuid4(), name=name, sort_order=len(self.businesses)
        )
        self.businesses[business.id] = business
        return business

    def add_manual(
        self,
        business_id: UUID,
        title: str = "Opening checklist",
        *,
        status: ManualStatus = ManualStatus.PUBLISHED,
        admin_only: bool = False,
    ) -> ManualRecord:
        manual = ManualRecord(
            id=uuid4(),
            business_id=business_id,
            title=title,
            status=status,
            admin_only=admin_only,
        )
        self.manuals[manual.id] = manual
        return manual

    def add_text_block(self, manual_id: UUID, text: str = "Step") -> TextBlock:
        block = TextBlock(
            id=uuid4(),
            manual_id=manual_id,
            sort_order=len(self.blocks),
            text=text,
        )
        self.blocks[block.id] = block
        return block

    def add_photo_block(
        self, manual_id: UUID, title: str = "Photo of the counter"
    ) -> PhotoRecordBlock:
        block = PhotoRecordBlock(
            id=uuid4(),
            manual_id=manual_id,
            sort_order=len(self.blocks),
            title=title,
            required=True,
        )
        self.blocks[block.id] = block
        return block


@dataclass
class InMemoryArtifactRepository(ArtifactRepository):
    """In-memory notes and photos for tests."""

    notes: dict[UUID, WorkSessionNoteRecord] = field(default_factory=dict)
    note_photos: dict[UUID, NotePhotoRecord] = field(default_factory=dict)
    photo_records: dict[UUID, PhotoRecord] = field(default_factory=dict)

    def list_notes(
        self, session_id: UUID, block_id: UUID | None = None
    ) -> list[WorkSessionNoteRecord]:
        return [
            self._with_photos(note)
            for note in self.notes.values()
            if note.work_session_id == session_id
            and (block_id is None or note.block_id == block_id)
        ]

    def get_note(self, note_id: UUID) -> WorkSessionNoteRecord | None:
        note = self.notes.get(note_id)
        return self._with_photos(note) if note else None

    def upsert_note(
        self, session_id: UUID, block_id: UUID, content: str
    ) -> tuple[WorkSessionNoteRecord, bool]:
        now = datetime.now(tz=UTC)
        for note in self.notes.values():
            if note.work_session_id == session_id and note.block_id == block_id:
                updated = replace(note, content=content, updated_at=now)
                self.notes[note.id] = updated
                return self._with_photos(updated), False
        note = WorkSessionNoteRecord(
            id=uuid4(),
            work_session_id=session_id,
            block_id=block_id,
            content=content,
            created_at=now,
            updated_at=now,
        )
        self.notes[note.id] = note
        return note, True

    def delete_note(self, note_id: UUID) -> bool:
        for photo in list(self.note_photos.values()):
            if photo.note_id == note_id:
                del self.note_photos[photo.id]
        return self.notes.pop(note_id, None) is not None

    def create_note_photo(self, note_id: UUID, image: bytes) -> NotePhotoRecord:
        photo = NotePhotoRecord(
            id=uuid4(),
            note_id=note_id,
            image_data=base64.b64encode(image).decode("ascii"),
            created_at=datetime.now(tz=UTC),
        )
        self.note_photos[photo.id] = photo
        return photo

    def get_note_photo(self, photo_id: UUID) -> NotePhotoRecord | None:
        return self.note_photos.get(photo_id)

    def delete_note_photo(self, photo_id: UUID) -> bool:
        return self.note_photos.pop(photo_id, None) is not None

    def list_photo_records(
        self, session_id: UUID, block_id: UUID | None = None
    ) -> list[PhotoRecord]:
        return [
            photo
            for photo in self.photo_records.values()
            if photo.work_session_id == session_id
            and (block_id is None or photo.block_id == block_id)
        ]

    def create_photo_record(
        self, session_id: UUID, block_id: UUID, image: bytes
    ) -> PhotoRecord:
        photo = PhotoRecord(
            id=uuid4(),
            work_session_id=session_id,
            block_id=block_id,
            image_data=base64.b64encode(image).decode("ascii"),
            created_at=datetime.now(tz=UTC),
        )
        self.photo_records[photo.id] = photo
        return photo

    def get_photo_record(self, photo_id: UUID) -> PhotoRecord | None:
        return self.photo_records.get(photo_id)

    def delete_photo_record(self, photo_id: UUID) -> bool:
        return self.photo_records.pop(photo_id, None) is not None

    def purge_session(self, session_id: UUID) -> None:
        for note in self.list_notes(session_id):
            self.delete_note(note.id)
        for photo in self.list_photo_records(session_id):
            del self.photo_records[photo.id]

    def _with_photos(self, note: WorkSessionNoteRecord) -> WorkSessionNoteRecord:
        photos = tuple(
            photo for photo in self.note_photos.values() if photo.note_id == note.id
        )
        return replace(note, photos=photos)


@dataclass
class InMemoryWorkSessionRepository(WorkSessionRepository):
    """In-memory session store; a lock stands in for the database guards."""

    artifact_repository: InMemoryArtifactRepository
    manual_repository: InMemoryManualRepository
    sessions: dict[UUID, WorkSessionRecord] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def create_session(
        self, user_id: UUID, manual_id: UUID, started_at: datetime
    ) -> WorkSessionRecord:
        with self.lock:
            existing = self._active(user_id, manual_id)
            if existing is not None:
                raise Conflict("A work session is already in progress", existing)
            session = WorkSessionRecord(
                id=uuid4(),
                user_id=user_id,
                manual_id=manual_id,
                status=WorkSessionStatus.IN_PROGRESS,
                started_at=started_at,
            )
            self.sessions[session.id] = session
            return session

    def get_session(self, session_id: UUID) -> WorkSessionRecord | None:
        return self.sessions.get(session_id)

    def get_active_session(
        self, user_id: UUID, manual_id: UUID
    ) -> WorkSessionRecord | None:
        with self.lock:
            return self._active(user_id, manual_id)

    def list_active_sessions(self, user_id: UUID) -> list[WorkSessionRecord]:
        return [
            session
            for session in self.sessions.values()
            if session.user_id == user_id and session.is_active
        ]

    def list_sessions_for_manual(self, manual_id: UUID) -> list[WorkSessionRecord]:
        return [
            session
            for session in self.sessions.values()
            if session.manual_id == manual_id
        ]

    def list_sessions_for_businesses(
        self,
        business_ids: list[UUID] | None,
        status: WorkSessionStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[WorkSessionRecord]:
        matches = []
        for session in self.sessions.values():
            manual = self.manual_repository.get_manual(session.manual_id)
            if manual is None:
                continue
            if business_ids is not None and manual.business_id not in business_ids:
                continue
            if status is not None and session.status is not status:
                continue
            matches.append(session)
        matches.sort(key=lambda session: session.started_at, reverse=True)
        end = None if limit is None else offset + limit
        return matches[offset:end]

    def complete_session(
        self, session_id: UUID, completed_at: datetime
    ) -> WorkSessionRecord | None:
        with self.lock:
            session = self.sessions.get(session_id)
            if session is None or not session.is_active:
                return None
            completed = replace(
                session, status=WorkSessionStatus.COMPLETED, completed_at=completed_at
            )
            self.sessions[session_id] = completed
            return completed

    def cancel_session(self, session_id: UUID) -> bool:
        with self.lock:
            session = self.sessions.get(session_id)
            if session is None or not session.is_active:
                return False
            self.artifact_repository.purge_session(session_id)
            del self.sessions[session_id]
            return True

    def _active(self, user_id: UUID, manual_id: UUID) -> WorkSessionRecord | None:
        for session in self.sessions.values():
            if (
                session.user_id == user_id
                and session.manual_id == manual_id
                and session.is_active
            ):
                return session
        return None


@dataclass
class InMemoryNotificationRepository(NotificationRepository):
    """Collects created notifications."""

    notifications: list[dict[str, object]] = field(default_factory=list)

    def create_notification(  # noqa: PLR0913
        self,
        user_id: UUID,
        type: str,  # noqa: A002
        title: str,
        message: str,
        link_url: str | None,
        related_work_session_id: UUID | None,
    ) -> None:
        self.notifications.append(
            {
                "user_id": user_id,
                "type": type,
                "title": title,
                "message": message,
                "link_url": link_url,
                "related_work_session_id": related_work_session_id,
            }
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
    )


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def access_repository(
    user_repository: InMemoryUserRepository,
) -> InMemoryBusinessAccessRepository:
    return InMemoryBusinessAccessRepository(user_repository)


@pytest.fixture
def manual_repository() -> InMemoryManualRepository:
    return InMemoryManualRepository()


@pytest.fixture
def artifact_repository() -> InMemoryArtifactRepository:
    return InMemoryArtifactRepository()


@pytest.fixture
def session_repository(
    artifact_repository: InMemoryArtifactRepository,
    manual_repository: InMemoryManualRepository,
) -> InMemoryWorkSessionRepository:
    return InMemoryWorkSessionRepository(artifact_repository, manual_repository)


@pytest.fixture
def notification_repository() -> InMemoryNotificationRepository:
    return InMemoryNotificationRepository()


@pytest.fixture
def auth_repository() -> InMemoryAuthSessionRepository:
    return InMemoryAuthSessionRepository()


@pytest.fixture
def resolver(
    user_repository: InMemoryUserRepository,
    access_repository: InMemoryBusinessAccessRepository,
) -> AccessResolver:
    return AccessResolver(user_repository, access_repository)


@pytest.fixture
def session_manager(  # noqa: PLR0913
    session_repository: InMemoryWorkSessionRepository,
    manual_repository: InMemoryManualRepository,
    artifact_repository: InMemoryArtifactRepository,
    resolver: AccessResolver,
    user_repository: InMemoryUserRepository,
    access_repository: InMemoryBusinessAccessRepository,
    notification_repository: InMemoryNotificationRepository,
) -> SessionManager:
    return SessionManager(
        session_repository=session_repository,
        manual_repository=manual_repository,
        artifact_repository=artifact_repository,
        access_resolver=resolver,
        user_repository=user_repository,
        access_repository=access_repository,
        notification_service=NotificationService(notification_repository),
    )


@pytest.fixture
def artifact_guard(
    session_manager: SessionManager,
    artifact_repository: InMemoryArtifactRepository,
) -> ArtifactGuard:
    return ArtifactGuard(session_manager, artifact_repository)


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    user_repository: InMemoryUserRepository,
    access_repository: InMemoryBusinessAccessRepository,
    manual_repository: InMemoryManualRepository,
    auth_repository: InMemoryAuthSessionRepository,
    resolver: AccessResolver,
    session_manager: SessionManager,
    artifact_guard: ArtifactGuard,
) -> AppContainer:
    return AppContainer(
        settings=settings,
        auth_service=AuthService(auth_repository, user_repository),
        access_resolver=resolver,
        catalog_service=CatalogService(
            manual_repository=manual_repository,
            user_repository=user_repository,
            access_repository=access_repository,
        ),
        membership_service=MembershipService(resolver, manual_repository),
        session_manager=session_manager,
        artifact_guard=artifact_guard,
    )
