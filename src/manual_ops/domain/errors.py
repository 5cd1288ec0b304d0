"""Error taxonomy for access and work-session operations."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from manual_ops.domain.work_sessions import WorkSessionRecord


class ManualOpsError(Exception):
    """Base class for domain errors surfaced to callers."""


class Unauthenticated(ManualOpsError):
    """No resolvable, active user for the request."""


class Forbidden(ManualOpsError):
    """Resolvable user lacking the level or ownership for the action."""


class NotFound(ManualOpsError):
    """Referenced session, note, photo, block, manual or business is absent."""


class InvalidState(ManualOpsError):
    """Operation is illegal for the current state of the target."""


class Conflict(ManualOpsError):
    """Uniqueness or state race, e.g. starting a second active session."""

    def __init__(
        self, message: str, existing: WorkSessionRecord | None = None
    ) -> None:
        super().__init__(message)
        self.existing = existing
