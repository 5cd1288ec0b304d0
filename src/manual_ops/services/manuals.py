"""Read access to businesses, manuals and blocks."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from manual_ops.domain.access import AccessibleBusiness, PermissionLevel, Role
from manual_ops.domain.blocks import Block
from manual_ops.domain.models import BusinessRecord, ManualRecord
from manual_ops.services.access import (
    BusinessAccessRepository,
    UserRepository,
    level_for_access,
)
from manual_ops.services.capabilities import is_manual_visible

_logger = logging.getLogger(__name__)


class ManualRepository(Protocol):
    """Persistence interface for the manual catalog.

    Manual and block authoring live outside this service; only reads are
    needed here.
    """

    def get_business(self, business_id: UUID) -> BusinessRecord | None:
        """Return a business by id, if present."""

    def list_businesses(self) -> list[BusinessRecord]:
        """Return active businesses ordered by sort order."""

    def get_manual(self, manual_id: UUID) -> ManualRecord | None:
        """Return a manual by id, if present."""

    def list_manuals(self, business_id: UUID) -> list[ManualRecord]:
        """Return non-archived manuals of a business."""

    def list_blocks(self, manual_id: UUID) -> list[Block]:
        """Return the manual's blocks ordered by sort order."""

    def get_block(self, block_id: UUID) -> Block | None:
        """Return a block by id, if present."""


@dataclass
class CatalogService:
    """Lists the businesses and manuals a user can open."""

    manual_repository: ManualRepository
    user_repository: UserRepository
    access_repository: BusinessAccessRepository

    def list_accessible_businesses(self, user_id: UUID) -> list[AccessibleBusiness]:
        """Return businesses the user holds access to, with visible manuals.

        Superadmins get every business and every manual; admins every manual
        of their business; workers only published, non admin-only manuals.
        """
        user = self.user_repository.get_user(user_id)
        if user is None:
            return []
        if user.is_super_admin:
            return [
                AccessibleBusiness(
                    business=business,
                    level=PermissionLevel.SUPERADMIN,
                    role=Role.ADMIN,
                    manuals=self.manual_repository.list_manuals(business.id),
                )
                for business in self.manual_repository.list_businesses()
            ]

        results = []
        for access in self.access_repository.list_access_for_user(user_id):
            business = self.manual_repository.get_business(access.business_id)
            if business is None:
                _logger.warning(
                    "Access grant references missing business: %s",
                    access.business_id,
                )
                continue
            level = level_for_access(access)
            manuals = [
                manual
                for manual in self.manual_repository.list_manuals(business.id)
                if is_manual_visible(level, manual)
            ]
            results.append(
                AccessibleBusiness(
                    business=business, level=level, role=access.role, manuals=manuals
                )
            )
        return results
