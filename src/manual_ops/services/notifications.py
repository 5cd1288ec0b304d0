"""Notification hand-off for session events.

Delivery (push, email, in-app rendering) belongs to the notification
collaborator; this module only records what should be delivered.
"""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from manual_ops.domain.models import ManualRecord, UserRecord
from manual_ops.domain.work_sessions import WorkSessionRecord

_logger = logging.getLogger(__name__)

WORK_SESSION_COMPLETED = "WORK_SESSION_COMPLETED"


class NotificationRepository(Protocol):
    """Persistence interface for queued notifications."""

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


@dataclass
class NotificationService:
    """Builds notifications for work-session events."""

    repository: NotificationRepository

    def notify_session_completed(
        self,
        recipient_ids: list[UUID],
        worker: UserRecord | None,
        manual: ManualRecord,
        session: WorkSessionRecord,
    ) -> int:
        """Queue a completion report for every recipient; return the count."""
        worker_name = worker.name if worker else "A worker"
        message = f"{worker_name} completed the work for \"{manual.title}\""
        for recipient_id in recipient_ids:
            self.repository.create_notification(
                user_id=recipient_id,
                type=WORK_SESSION_COMPLETED,
                title="Work completed",
                message=message,
                link_url=f"/work-sessions/{session.id}",
                related_work_session_id=session.id,
            )
        _logger.info(
            "Queued completion notifications: session=%s recipients=%s",
            session.id,
            len(recipient_ids),
        )
        return len(recipient_ids)
