"""Business-scoped permission resolution."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from manual_ops.domain.access import (
    AccessDescriptor,
    BusinessAccessRecord,
    PermissionLevel,
    Role,
)
from manual_ops.domain.models import UserRecord


class UserRepository(Protocol):
    """Persistence interface for user lookups."""

    def get_user(self, user_id: UUID) -> UserRecord | None:
        """Return the user for an id, if present."""


class BusinessAccessRepository(Protocol):
    """Persistence interface for business access grants."""

    def get_access(
        self, user_id: UUID, business_id: UUID
    ) -> BusinessAccessRecord | None:
        """Return the grant for a (user, business) pair, if present."""

    def list_access_for_user(self, user_id: UUID) -> list[BusinessAccessRecord]:
        """Return every grant held by a user."""

    def list_access_for_business(
        self, business_id: UUID
    ) -> list[BusinessAccessRecord]:
        """Return every grant within a business."""

    def upsert_access(
        self, user_id: UUID, business_id: UUID, role: Role
    ) -> BusinessAccessRecord:
        """Create or update the grant for a (user, business) pair."""

    def delete_access(self, user_id: UUID, business_id: UUID) -> bool:
        """Remove a grant; return True when a row was deleted."""

    def list_admin_user_ids(self, business_id: UUID) -> list[UUID]:
        """Return business admins and superadmins, without duplicates."""


@dataclass
class AccessResolver:
    """Computes permission levels fresh from storage on every call."""

    user_repository: UserRepository
    access_repository: BusinessAccessRepository

    def resolve(self, user_id: UUID, business_id: UUID) -> PermissionLevel:
        """Return the caller's permission level for a business.

        Unknown users resolve to ``NONE``; ``is_active`` is not consulted
        here. Superadmins short-circuit before any access lookup.
        """
        user = self.user_repository.get_user(user_id)
        if user is None:
            return PermissionLevel.NONE
        if user.is_super_admin:
            return PermissionLevel.SUPERADMIN
        access = self.access_repository.get_access(user_id, business_id)
        return level_for_access(access)

    def describe_access(self, user_id: UUID, business_id: UUID) -> AccessDescriptor:
        """Return the access projection used for role badges."""
        user = self.user_repository.get_user(user_id)
        if user is None:
            return AccessDescriptor(has_access=False, role=None, is_super_admin=False)
        if user.is_super_admin:
            return AccessDescriptor(
                has_access=True, role=Role.ADMIN, is_super_admin=True
            )
        access = self.access_repository.get_access(user_id, business_id)
        return AccessDescriptor(
            has_access=access is not None,
            role=access.role if access else None,
            is_super_admin=False,
        )


def level_for_access(access: BusinessAccessRecord | None) -> PermissionLevel:
    if access is None:
        return PermissionLevel.NONE
    if access.role is Role.ADMIN:
        return PermissionLevel.ADMIN
    if access.role is Role.WORKER:
        return PermissionLevel.WORKER
    return PermissionLevel.NONE
