# core/enterprise_roles.py
"""Enterprise-scoped team roles: viewer < editor < admin < owner."""
from typing import Any, Optional

from core.roles import is_admin
from models.models import MemberStatus, TeamRole


TEAM_ROLE_LEVELS = {
    TeamRole.VIEWER: 1,
    TeamRole.EDITOR: 2,
    TeamRole.ADMIN: 3,
    TeamRole.OWNER: 4,
}


def team_role_level(role: Any) -> int:
    if role is None:
        return 0
    try:
        return TEAM_ROLE_LEVELS[TeamRole(role)]
    except ValueError:
        return 0


def has_team_role_or_higher(role: Any, minimum: Any) -> bool:
    return team_role_level(role) >= team_role_level(minimum)


def can_view_enterprise(role: Any) -> bool:
    return has_team_role_or_higher(role, TeamRole.VIEWER)


def can_edit_enterprise(role: Any) -> bool:
    return has_team_role_or_higher(role, TeamRole.EDITOR)


def can_manage_team(role: Any) -> bool:
    return has_team_role_or_higher(role, TeamRole.ADMIN)


def can_invite_members(role: Any) -> bool:
    return has_team_role_or_higher(role, TeamRole.ADMIN)


def can_remove_members(role: Any) -> bool:
    return has_team_role_or_higher(role, TeamRole.ADMIN)


def can_change_role(actor_role: Any, target_role: Any) -> bool:
    """An actor may only grant, revoke or touch roles up to their own level."""
    return team_role_level(actor_role) >= team_role_level(target_role)


def effective_team_role(user: Any, membership: Any) -> Optional[TeamRole]:
    """
    Role the user acts with inside one enterprise.

    A global admin acts as owner everywhere. Otherwise only an active
    membership counts.
    """
    if is_admin(user):
        return TeamRole.OWNER
    if membership is None or membership.status != MemberStatus.ACTIVE.value:
        return None
    try:
        return TeamRole(membership.role)
    except ValueError:
        return None
