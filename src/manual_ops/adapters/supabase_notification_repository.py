"""Supabase repository for queued notifications."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from manual_ops.services.notifications import NotificationRepository


@dataclass
class SupabaseNotificationRepository(NotificationRepository):
    """Supabase-backed notification queue."""

    client: Client

    def create_notification(  # noqa: PLR0913
        self,
        user_id: UUID,
        type: str,  # noqa: A002
        title: str,
        message: str,
        link_url: str | None,
        related_work_session_id: UUID | None,
    ) -> None:
        """Create a notification row."""
        self.client.table("notifications").insert(
            {
                "user_id": str(user_id),
                "type": type,
                "title": title,
                "message": message,
                "link_url": link_url,
                "related_work_session_id": str(related_work_session_id)
                if related_work_session_id
                else None,
            }
        ).execute()
