"""Supabase-backed business access repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from manual_ops.domain.access import BusinessAccessRecord, Role, parse_role
from manual_ops.services.access import BusinessAccessRepository

_COLUMNS = "id, user_id, business_id, role"


@dataclass
class SupabaseBusinessAccessRepository(BusinessAccessRepository):
    """Supabase implementation for business access grants."""

    client: Client

    def get_access(
        self, user_id: UUID, business_id: UUID
    ) -> BusinessAccessRecord | None:
        """Return the grant for a (user, business) pair, if present."""
        response = (
            self.client.table("business_access")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .eq("business_id", str(business_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_access(response.data[0])

    def list_access_for_user(self, user_id: UUID) -> list[BusinessAccessRecord]:
        """Return every grant held by a user."""
        response = (
            self.client.table("business_access")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .execute()
        )
        return _to_access_list(response.data)

    def list_access_for_business(
        self, business_id: UUID
    ) -> list[BusinessAccessRecord]:
        """Return every grant within a business."""
        response = (
            self.client.table("business_access")
            .select(_COLUMNS)
            .eq("business_id", str(business_id))
            .order("created_at")
            .execute()
        )
        return _to_access_list(response.data)

    def upsert_access(
        self, user_id: UUID, business_id: UUID, role: Role
    ) -> BusinessAccessRecord:
        """Create or update the grant, relying on the (user, business) key."""
        response = (
            self.client.table("business_access")
            .upsert(
                {
                    "user_id": str(user_id),
                    "business_id": str(business_id),
                    "role": role.value,
                },
                on_conflict="user_id,business_id",
            )
            .execute()
        )
        record = _to_access(response.data[0]) if response.data else None
        if record is None:
            raise RuntimeError("Failed to save business access")
        return record

    def delete_access(self, user_id: UUID, business_id: UUID) -> bool:
        """Remove a grant; return True when a row was deleted."""
        response = (
            self.client.table("business_access")
            .delete()
            .eq("user_id", str(user_id))
            .eq("business_id", str(business_id))
            .execute()
        )
        return bool(response.data)

    def list_admin_user_ids(self, business_id: UUID) -> list[UUID]:
        """Return superadmins followed by business admins, without duplicates."""
        superadmins = (
            self.client.table("users")
            .select("id")
            .eq("is_super_admin", True)
            .execute()
        )
        admins = (
            self.client.table("business_access")
            .select("user_id")
            .eq("business_id", str(business_id))
            .eq("role", Role.ADMIN.value)
            .execute()
        )
        ids: list[UUID] = []
        for raw in [row["id"] for row in superadmins.data or []] + [
            row["user_id"] for row in admins.data or []
        ]:
            user_id = UUID(raw)
            if user_id not in ids:
                ids.append(user_id)
        return ids


def _to_access_list(rows: list[dict[str, object]] | None) -> list[BusinessAccessRecord]:
    records = []
    for row in rows or []:
        record = _to_access(row)
        if record is not None:
            records.append(record)
    return records


def _to_access(row: dict[str, object]) -> BusinessAccessRecord | None:
    role = parse_role(row.get("role"))
    if role is None:
        # Unrecognized roles grant nothing.
        return None
    return BusinessAccessRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        business_id=UUID(str(row["business_id"])),
        role=role,
    )
