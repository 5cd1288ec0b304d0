"""Business membership administration (superadmin only)."""

import logging
from dataclasses import dataclass
from uuid import UUID

from manual_ops.domain.access import BusinessAccessRecord, Role
from manual_ops.domain.errors import Forbidden, NotFound
from manual_ops.services.access import AccessResolver
from manual_ops.services.capabilities import can_manage_businesses
from manual_ops.services.manuals import ManualRepository

_logger = logging.getLogger(__name__)


@dataclass
class MembershipService:
    """Grants, changes and revokes business roles."""

    access_resolver: AccessResolver
    manual_repository: ManualRepository

    def list_members(
        self, acting_user_id: UUID, business_id: UUID
    ) -> list[BusinessAccessRecord]:
        self._authorize(acting_user_id, business_id)
        return self.access_resolver.access_repository.list_access_for_business(
            business_id
        )

    def grant_access(
        self, acting_user_id: UUID, user_id: UUID, business_id: UUID, role: Role
    ) -> BusinessAccessRecord:
        """Create or update the single role a user holds in a business."""
        self._authorize(acting_user_id, business_id)
        if self.access_resolver.user_repository.get_user(user_id) is None:
            raise NotFound("User not found")
        access = self.access_resolver.access_repository.upsert_access(
            user_id, business_id, role
        )
        _logger.info(
            "Business access granted: user=%s business=%s role=%s",
            user_id,
            business_id,
            role,
        )
        return access

    def revoke_access(
        self, acting_user_id: UUID, user_id: UUID, business_id: UUID
    ) -> None:
        self._authorize(acting_user_id, business_id)
        if not self.access_resolver.access_repository.delete_access(
            user_id, business_id
        ):
            raise NotFound("Access grant not found")
        _logger.info(
            "Business access revoked: user=%s business=%s", user_id, business_id
        )

    def _authorize(self, acting_user_id: UUID, business_id: UUID) -> None:
        level = self.access_resolver.resolve(acting_user_id, business_id)
        if not can_manage_businesses(level):
            raise Forbidden("Access denied")
        if self.manual_repository.get_business(business_id) is None:
            raise NotFound("Business not found")
