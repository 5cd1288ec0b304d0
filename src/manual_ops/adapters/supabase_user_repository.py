"""Supabase-backed user and login-session repositories."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from manual_ops.domain.models import AuthSessionRecord, UserRecord
from manual_ops.services.access import UserRepository
from manual_ops.services.auth import AuthSessionRepository


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user lookups."""

    client: Client

    def get_user(self, user_id: UUID) -> UserRecord | None:
        """Return the user for an id, if present."""
        response = (
            self.client.table("users")
            .select("id, email, name, is_super_admin, is_active")
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return UserRecord(
            id=UUID(row["id"]),
            email=row.get("email") or "",
            name=row.get("name") or "",
            is_super_admin=bool(row.get("is_super_admin")),
            is_active=bool(row.get("is_active", True)),
        )


@dataclass
class SupabaseAuthSessionRepository(AuthSessionRepository):
    """Supabase implementation for login-session lookups."""

    client: Client

    def get_auth_session(self, token: str) -> AuthSessionRecord | None:
        """Return the login session for a token, if present."""
        response = (
            self.client.table("auth_sessions")
            .select("token, user_id, expires_at")
            .eq("token", token)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return AuthSessionRecord(
            token=row["token"],
            user_id=UUID(row["user_id"]),
            expires_at=datetime.fromisoformat(row["expires_at"]),
        )
