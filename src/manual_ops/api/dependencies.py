"""Request dependencies shared by the API routers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Header, Request

from manual_ops.domain.models import UserRecord  # noqa: TC001

if TYPE_CHECKING:
    from manual_ops.containers import AppContainer

_BEARER_PREFIX = "bearer "


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer`` header."""
    if not authorization:
        return None
    if not authorization.lower().startswith(_BEARER_PREFIX):
        return None
    token = authorization[len(_BEARER_PREFIX) :].strip()
    return token or None


def require_user(
    request: Request, authorization: str | None = Header(default=None)
) -> UserRecord:
    """Resolve the acting user for this request from its bearer token."""
    container: AppContainer = request.app.state.container
    return container.auth_service.authenticate(bearer_token(authorization))
