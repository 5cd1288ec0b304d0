"""Domain models for business-scoped access control."""

from dataclasses import dataclass, field
from enum import StrEnum
from uuid import UUID

from manual_ops.domain.models import BusinessRecord, ManualRecord


class Role(StrEnum):
    """Role granted to a user within one business."""

    ADMIN = "ADMIN"
    WORKER = "WORKER"


class PermissionLevel(StrEnum):
    """Derived authorization tier for a (user, business) pair."""

    NONE = "none"
    WORKER = "worker"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


def parse_permission_level(value: object) -> PermissionLevel:
    """Map an untrusted value to a permission level.

    Anything outside the defined set maps to ``PermissionLevel.NONE``.
    """
    if isinstance(value, PermissionLevel):
        return value
    if isinstance(value, str):
        try:
            return PermissionLevel(value.strip().lower())
        except ValueError:
            return PermissionLevel.NONE
    return PermissionLevel.NONE


def parse_role(value: object) -> Role | None:
    """Map a stored role value to ``Role``, or ``None`` when unrecognized."""
    if isinstance(value, Role):
        return value
    if isinstance(value, str):
        try:
            return Role(value.strip().upper())
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class BusinessAccessRecord:
    """Persisted grant of a role to a user within one business."""

    id: UUID
    user_id: UUID
    business_id: UUID
    role: Role


@dataclass(frozen=True)
class AccessDescriptor:
    """Read-shaped projection of access resolution for UI badges."""

    has_access: bool
    role: Role | None
    is_super_admin: bool


@dataclass(frozen=True)
class AccessibleBusiness:
    """A business the user can open, with the manuals visible to them."""

    business: BusinessRecord
    level: PermissionLevel
    role: Role | None
    manuals: list[ManualRecord] = field(default_factory=list)
