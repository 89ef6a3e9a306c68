import pytest

from core.enterprise_roles import (
    can_change_role,
    can_edit_enterprise,
    can_manage_team,
    can_remove_members,
    can_view_enterprise,
    effective_team_role,
    has_team_role_or_higher,
    team_role_level,
)
from models.models import EnterpriseTeamMember, MemberStatus, TeamRole


def test_levels():
    assert [team_role_level(r) for r in ("viewer", "editor", "admin", "owner")] == [1, 2, 3, 4]
    assert team_role_level(None) == 0


@pytest.mark.parametrize(
    "role, view, edit, manage",
    [
        (TeamRole.VIEWER, True, False, False),
        (TeamRole.EDITOR, True, True, False),
        (TeamRole.ADMIN, True, True, True),
        (TeamRole.OWNER, True, True, True),
    ],
)
def test_capabilities(role, view, edit, manage):
    assert can_view_enterprise(role) is view
    assert can_edit_enterprise(role) is edit
    assert can_manage_team(role) is manage
    assert can_remove_members(role) is manage


def test_cannot_grant_above_own_role():
    assert can_change_role(TeamRole.ADMIN, TeamRole.EDITOR)
    assert can_change_role(TeamRole.ADMIN, TeamRole.ADMIN)
    assert not can_change_role(TeamRole.ADMIN, TeamRole.OWNER)
    assert can_change_role(TeamRole.OWNER, TeamRole.OWNER)


def test_global_admin_acts_as_owner_everywhere():
    assert effective_team_role({"role": "admin"}, None) == TeamRole.OWNER
    viewer = EnterpriseTeamMember(enterprise_id=1, user_id=1, role="viewer")
    assert effective_team_role({"role": "admin"}, viewer) == TeamRole.OWNER


def test_inactive_membership_grants_nothing():
    member = EnterpriseTeamMember(enterprise_id=1, user_id=1, role="editor", status=MemberStatus.INACTIVE.value)
    assert effective_team_role({"role": "crm_pro"}, member) is None
    assert effective_team_role({"role": "crm_pro"}, None) is None


def test_has_team_role_or_higher():
    assert has_team_role_or_higher("owner", TeamRole.ADMIN)
    assert not has_team_role_or_higher("viewer", TeamRole.EDITOR)
