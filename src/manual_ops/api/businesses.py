"""Business endpoints: accessible catalog, access descriptors and members."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Request, Response, status

from manual_ops.api.dependencies import require_user
from manual_ops.api.schemas import (
    MemberRequest,
    serialize_access,
    serialize_business,
    serialize_member,
)
from manual_ops.domain.models import UserRecord  # noqa: TC001

if TYPE_CHECKING:
    from manual_ops.containers import AppContainer

router = APIRouter(prefix="/businesses", tags=["businesses"])


@router.get("")
def list_businesses(
    request: Request, user: UserRecord = Depends(require_user)
) -> dict[str, object]:
    """Return businesses the caller can see, with their visible manuals."""
    container: AppContainer = request.app.state.container
    entries = container.catalog_service.list_accessible_businesses(user.id)
    return {"businesses": [serialize_business(entry) for entry in entries]}


@router.get("/{business_id}/access")
def describe_access(
    business_id: UUID, request: Request, user: UserRecord = Depends(require_user)
) -> dict[str, object]:
    """Return the caller's role and capabilities for one business."""
    container: AppContainer = request.app.state.container
    resolver = container.access_resolver
    descriptor = resolver.describe_access(user.id, business_id)
    level = resolver.resolve(user.id, business_id)
    return serialize_access(descriptor, level)


@router.get("/{business_id}/members")
def list_members(
    business_id: UUID, request: Request, user: UserRecord = Depends(require_user)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    members = container.membership_service.list_members(user.id, business_id)
    return {"members": [serialize_member(member) for member in members]}


@router.put("/{business_id}/members/{user_id}")
def grant_access(
    business_id: UUID,
    user_id: UUID,
    payload: MemberRequest,
    request: Request,
    user: UserRecord = Depends(require_user),
) -> dict[str, object]:
    """Create or change a user's role in the business."""
    container: AppContainer = request.app.state.container
    access = container.membership_service.grant_access(
        user.id, user_id, business_id, payload.role
    )
    return {"member": serialize_member(access)}


@router.delete(
    "/{business_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT
)
def revoke_access(
    business_id: UUID,
    user_id: UUID,
    request: Request,
    user: UserRecord = Depends(require_user),
) -> Response:
    container: AppContainer = request.app.state.container
    container.membership_service.revoke_access(user.id, user_id, business_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
