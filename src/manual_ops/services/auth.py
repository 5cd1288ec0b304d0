"""Bearer-token authentication."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from manual_ops.domain.errors import Unauthenticated
from manual_ops.domain.models import AuthSessionRecord, UserRecord
from manual_ops.services.access import UserRepository

_logger = logging.getLogger(__name__)


class AuthSessionRepository(Protocol):
    """Persistence interface for login sessions."""

    def get_auth_session(self, token: str) -> AuthSessionRecord | None:
        """Return the login session for a token, if present."""


@dataclass
class AuthService:
    """Turns a bearer token into the acting user.

    Deactivated users are rejected here. Permission resolution does not look
    at ``is_active``.
    """

    auth_repository: AuthSessionRepository
    user_repository: UserRepository

    def authenticate(self, token: str | None) -> UserRecord:
        """Return the active user behind a token or raise ``Unauthenticated``."""
        if not token:
            raise Unauthenticated("Missing credentials")
        auth_session = self.auth_repository.get_auth_session(token)
        if auth_session is None:
            raise Unauthenticated("Unknown session")
        if auth_session.expires_at <= datetime.now(tz=UTC):
            raise Unauthenticated("Session expired")
        user = self.user_repository.get_user(auth_session.user_id)
        if user is None or not user.is_active:
            _logger.warning("Rejected login session for user %s", auth_session.user_id)
            raise Unauthenticated("Inactive or unknown user")
        return user
