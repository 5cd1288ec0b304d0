"""Tests for permission resolution."""

from uuid import uuid4

from manual_ops.domain.access import (
    PermissionLevel,
    Role,
    parse_permission_level,
    parse_role,
)
from manual_ops.domain.models import ManualStatus
from manual_ops.services.access import AccessResolver
from manual_ops.services.manuals import CatalogService
from tests.conftest import (
    InMemoryBusinessAccessRepository,
    InMemoryManualRepository,
    InMemoryUserRepository,
)


def test_superadmin_resolves_without_access_lookup(
    resolver: AccessResolver,
    user_repository: InMemoryUserRepository,
    access_repository: InMemoryBusinessAccessRepository,
) -> None:
    admin = user_repository.add_user("Root", super_admin=True)

    for _ in range(3):
        assert resolver.resolve(admin.id, uuid4()) is PermissionLevel.SUPERADMIN

    assert access_repository.lookups == 0


def test_unknown_user_resolves_to_none(resolver: AccessResolver) -> None:
    assert resolver.resolve(uuid4(), uuid4()) is PermissionLevel.NONE


def test_role_is_scoped_to_one_business(
    resolver: AccessResolver,
    user_repository: InMemoryUserRepository,
    access_repository: InMemoryBusinessAccessRepository,
) -> None:
    user = user_repository.add_user()
    business_a, business_b = uuid4(), uuid4()
    access_repository.upsert_access(user.id, business_a, Role.ADMIN)

    assert resolver.resolve(user.id, business_a) is PermissionLevel.ADMIN
    assert resolver.resolve(user.id, business_b) is PermissionLevel.NONE


def test_inactive_user_still_resolves_by_role(
    resolver: AccessResolver,
    user_repository: InMemoryUserRepository,
    access_repository: InMemoryBusinessAccessRepository,
) -> None:
    user = user_repository.add_user(active=False)
    business_id = uuid4()
    access_repository.upsert_access(user.id, business_id, Role.WORKER)

    assert resolver.resolve(user.id, business_id) is PermissionLevel.WORKER


def test_grant_change_is_visible_on_next_resolve(
    resolver: AccessResolver,
    user_repository: InMemoryUserRepository,
    access_repository: InMemoryBusinessAccessRepository,
) -> None:
    user = user_repository.add_user()
    business_id = uuid4()
    access_repository.upsert_access(user.id, business_id, Role.WORKER)
    assert resolver.resolve(user.id, business_id) is PermissionLevel.WORKER

    access_repository.upsert_access(user.id, business_id, Role.ADMIN)
    assert resolver.resolve(user.id, business_id) is PermissionLevel.ADMIN

    access_repository.delete_access(user.id, business_id)
    assert resolver.resolve(user.id, business_id) is PermissionLevel.NONE


def test_describe_access_for_superadmin_and_members(
    resolver: AccessResolver,
    user_repository: InMemoryUserRepository,
    access_repository: InMemoryBusinessAccessRepository,
) -> None:
    root = user_repository.add_user("Root", super_admin=True)
    worker = user_repository.add_user()
    business_id = uuid4()
    access_repository.upsert_access(worker.id, business_id, Role.WORKER)

    root_access = resolver.describe_access(root.id, business_id)
    worker_access = resolver.describe_access(worker.id, business_id)
    stranger_access = resolver.describe_access(worker.id, uuid4())

    assert (root_access.has_access, root_access.role, root_access.is_super_admin) == (
        True,
        Role.ADMIN,
        True,
    )
    assert worker_access.has_access is True
    assert worker_access.role is Role.WORKER
    assert stranger_access.has_access is False
    assert stranger_access.role is None


def test_parse_helpers_reject_unknown_values() -> None:
    assert parse_permission_level("ADMIN") is PermissionLevel.ADMIN
    assert parse_permission_level("owner") is PermissionLevel.NONE
    assert parse_permission_level(None) is PermissionLevel.NONE
    assert parse_role("WORKER") is Role.WORKER
    assert parse_role("OWNER") is None


def test_accessible_businesses_filter_manuals_by_level(
    user_repository: InMemoryUserRepository,
    access_repository: InMemoryBusinessAccessRepository,
    manual_repository: InMemoryManualRepository,
) -> None:
    worker = user_repository.add_user()
    root = user_repository.add_user("Root", super_admin=True)
    business = manual_repository.add_business()
    other = manual_repository.add_business("Cafe")
    published = manual_repository.add_manual(business.id, "Open")
    manual_repository.add_manual(business.id, "Draft", status=ManualStatus.DRAFT)
    manual_repository.add_manual(business.id, "Payroll", admin_only=True)
    access_repository.upsert_access(worker.id, business.id, Role.WORKER)
    catalog = CatalogService(manual_repository, user_repository, access_repository)

    worker_view = catalog.list_accessible_businesses(worker.id)
    root_view = catalog.list_accessible_businesses(root.id)

    assert [entry.business.id for entry in worker_view] == [business.id]
    assert worker_view[0].level is PermissionLevel.WORKER
    assert [manual.id for manual in worker_view[0].manuals] == [published.id]
    assert {entry.business.id for entry in root_view} == {business.id, other.id}
    assert len(root_view[0].manuals) == 3
    assert catalog.list_accessible_businesses(uuid4()) == []
