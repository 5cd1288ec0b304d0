"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from manual_ops.adapters.supabase_access_repository import (
    SupabaseBusinessAccessRepository,
)
from manual_ops.adapters.supabase_artifact_repository import (
    SupabaseArtifactRepository,
)
from manual_ops.adapters.supabase_manual_repository import SupabaseManualRepository
from manual_ops.adapters.supabase_notification_repository import (
    SupabaseNotificationRepository,
)
from manual_ops.adapters.supabase_user_repository import (
    SupabaseAuthSessionRepository,
    SupabaseUserRepository,
)
from manual_ops.adapters.supabase_work_session_repository import (
    SupabaseWorkSessionRepository,
)
from manual_ops.config import Settings
from manual_ops.services.access import AccessResolver
from manual_ops.services.artifacts import ArtifactGuard
from manual_ops.services.auth import AuthService
from manual_ops.services.manuals import CatalogService
from manual_ops.services.membership import MembershipService
from manual_ops.services.notifications import NotificationService
from manual_ops.services.work_sessions import SessionManager


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    auth_service: AuthService
    access_resolver: AccessResolver
    catalog_service: CatalogService
    membership_service: MembershipService
    session_manager: SessionManager
    artifact_guard: ArtifactGuard


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    user_repository = SupabaseUserRepository(supabase_client)
    access_repository = SupabaseBusinessAccessRepository(supabase_client)
    manual_repository = SupabaseManualRepository(supabase_client)
    artifact_repository = SupabaseArtifactRepository(supabase_client)
    access_resolver = AccessResolver(user_repository, access_repository)
    session_manager = SessionManager(
        session_repository=SupabaseWorkSessionRepository(supabase_client),
        manual_repository=manual_repository,
        artifact_repository=artifact_repository,
        access_resolver=access_resolver,
        user_repository=user_repository,
        access_repository=access_repository,
        notification_service=NotificationService(
            SupabaseNotificationRepository(supabase_client)
        ),
    )

    return AppContainer(
        settings=resolved_settings,
        auth_service=AuthService(
            auth_repository=SupabaseAuthSessionRepository(supabase_client),
            user_repository=user_repository,
        ),
        access_resolver=access_resolver,
        catalog_service=CatalogService(
            manual_repository=manual_repository,
            user_repository=user_repository,
            access_repository=access_repository,
        ),
        membership_service=MembershipService(access_resolver, manual_repository),
        session_manager=session_manager,
        artifact_guard=ArtifactGuard(session_manager, artifact_repository),
    )
