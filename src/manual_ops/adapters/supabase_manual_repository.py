"""Supabase-backed manual catalog reads."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from manual_ops.domain.blocks import Block, parse_block
from manual_ops.domain.models import BusinessRecord, ManualRecord, ManualStatus
from manual_ops.services.manuals import ManualRepository

_MANUAL_COLUMNS = "id, business_id, title, status, admin_only, updated_at"
_BLOCK_COLUMNS = "id, manual_id, type, content, sort_order"


@dataclass
class SupabaseManualRepository(ManualRepository):
    """Supabase implementation for businesses, manuals and blocks."""

    client: Client

    def get_business(self, business_id: UUID) -> BusinessRecord | None:
        """Return a business by id, if present."""
        response = (
            self.client.table("businesses")
            .select("id, name, is_active, sort_order")
            .eq("id", str(business_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_business(response.data[0])

    def list_businesses(self) -> list[BusinessRecord]:
        """Return active businesses ordered by sort order."""
        response = (
            self.client.table("businesses")
            .select("id, name, is_active, sort_order")
            .eq("is_active", True)
            .order("sort_order")
            .execute()
        )
        return [_to_business(row) for row in response.data or []]

    def get_manual(self, manual_id: UUID) -> ManualRecord | None:
        """Return a manual by id, if present."""
        response = (
            self.client.table("manuals")
            .select(_MANUAL_COLUMNS)
            .eq("id", str(manual_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_manual(response.data[0])

    def list_manuals(self, business_id: UUID) -> list[ManualRecord]:
        """Return non-archived manuals of a business."""
        response = (
            self.client.table("manuals")
            .select(_MANUAL_COLUMNS)
            .eq("business_id", str(business_id))
            .eq("is_archived", False)
            .order("sort_order")
            .execute()
        )
        return [_to_manual(row) for row in response.data or []]

    def list_blocks(self, manual_id: UUID) -> list[Block]:
        """Return the manual's blocks ordered by sort order."""
        response = (
            self.client.table("blocks")
            .select(_BLOCK_COLUMNS)
            .eq("manual_id", str(manual_id))
            .order("sort_order")
            .execute()
        )
        return [parse_block(row) for row in response.data or []]

    def get_block(self, block_id: UUID) -> Block | None:
        """Return a block by id, if present."""
        response = (
            self.client.table("blocks")
            .select(_BLOCK_COLUMNS)
            .eq("id", str(block_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_block(response.data[0])


def _to_business(row: dict[str, object]) -> BusinessRecord:
    return BusinessRecord(
        id=UUID(str(row["id"])),
        name=str(row.get("name") or ""),
        is_active=bool(row.get("is_active", True)),
        sort_order=int(row.get("sort_order") or 0),
    )


def _to_manual(row: dict[str, object]) -> ManualRecord:
    updated = row.get("updated_at")
    try:
        status = ManualStatus(str(row.get("status")))
    except ValueError:
        status = ManualStatus.DRAFT
    return ManualRecord(
        id=UUID(str(row["id"])),
        business_id=UUID(str(row["business_id"])),
        title=str(row.get("title") or ""),
        status=status,
        admin_only=bool(row.get("admin_only")),
        updated_at=datetime.fromisoformat(updated)
        if isinstance(updated, str) and updated
        else None,
    )
