"""Pure mapping from permission level to capabilities.

Every function accepts anything a caller might hand over (an enum member, a
raw string from a deserialized payload, ``None``) and never raises.
``can_view_manual`` is true for everything except exactly ``none`` and is a
UI hint only; returning protected data always requires a fresh
``AccessResolver.resolve`` call.
"""

from manual_ops.domain.access import PermissionLevel
from manual_ops.domain.models import ManualRecord, ManualStatus

_EDITORS = frozenset({PermissionLevel.ADMIN, PermissionLevel.SUPERADMIN})


def _normalize(level: object) -> PermissionLevel | None:
    if isinstance(level, PermissionLevel):
        return level
    if isinstance(level, str):
        try:
            return PermissionLevel(level)
        except ValueError:
            return None
    return None


def can_view_manual(level: object) -> bool:
    """Return False only for exactly ``none``."""
    return _normalize(level) is not PermissionLevel.NONE


def can_edit_manual(level: object) -> bool:
    return _normalize(level) in _EDITORS


def can_manage_businesses(level: object) -> bool:
    return _normalize(level) is PermissionLevel.SUPERADMIN


def can_manage_users(level: object) -> bool:
    return _normalize(level) is PermissionLevel.SUPERADMIN


def capabilities(level: object) -> dict[str, bool]:
    """Return every capability flag for a level."""
    return {
        "can_view_manual": can_view_manual(level),
        "can_edit_manual": can_edit_manual(level),
        "can_manage_businesses": can_manage_businesses(level),
        "can_manage_users": can_manage_users(level),
    }


def is_manual_visible(level: object, manual: ManualRecord) -> bool:
    """Return True when a manual appears in listings for the level.

    Workers only see published manuals that are not admin-only.
    """
    normalized = _normalize(level)
    if normalized in _EDITORS:
        return True
    if normalized is PermissionLevel.WORKER:
        return manual.status is ManualStatus.PUBLISHED and not manual.admin_only
    return False
