"""Domain models for users, businesses and manuals."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class ManualStatus(StrEnum):
    """Publication status of a manual."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


@dataclass(frozen=True)
class UserRecord:
    """Represents a user stored in the database."""

    id: UUID
    email: str
    name: str
    is_super_admin: bool
    is_active: bool


@dataclass(frozen=True)
class BusinessRecord:
    """A tenant that owns manuals."""

    id: UUID
    name: str
    is_active: bool = True
    sort_order: int = 0


@dataclass(frozen=True)
class ManualRecord:
    """A manual belonging to exactly one business."""

    id: UUID
    business_id: UUID
    title: str
    status: ManualStatus
    admin_only: bool
    updated_at: datetime | None = None


@dataclass(frozen=True)
class AuthSessionRecord:
    """Login session backing a bearer token."""

    token: str
    user_id: UUID
    expires_at: datetime
