import pytest

from models.models import TeamRole


@pytest.fixture
def team(make_user, make_enterprise):
    owner = make_user(email="owner@example.org")
    admin = make_user(email="teamadmin@example.org")
    editor = make_user(email="editor@example.org")
    enterprise = make_enterprise(
        name="Pollinator Alliance",
        members=[(owner, TeamRole.OWNER), (admin, TeamRole.ADMIN), (editor, TeamRole.EDITOR)],
    )
    return {"enterprise": enterprise, "owner": owner, "admin": admin, "editor": editor}


def _members(client, team, headers):
    response = client.get(f"/api/crm/{team['enterprise'].id}/team", headers=headers(team["editor"]))
    assert response.status_code == 200
    return {m["email"]: m for m in response.json()}


def test_list_team(client, team, headers):
    members = _members(client, team, headers)
    assert members["owner@example.org"]["role"] == "owner"
    assert len(members) == 3


def test_admin_adds_member_by_email(client, team, make_user, headers):
    newcomer = make_user(email="new@example.org")
    response = client.post(
        f"/api/crm/{team['enterprise'].id}/team",
        json={"email": "NEW@example.org", "role": "editor"},
        headers=headers(team["admin"]),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["user_id"] == newcomer.id
    assert body["invited_by"] == team["admin"].id

    duplicate = client.post(
        f"/api/crm/{team['enterprise'].id}/team",
        json={"email": newcomer.email},
        headers=headers(team["admin"]),
    )
    assert duplicate.status_code == 400


def test_add_unknown_email(client, team, headers):
    response = client.post(
        f"/api/crm/{team['enterprise'].id}/team",
        json={"email": "ghost@example.org"},
        headers=headers(team["owner"]),
    )
    assert response.status_code == 404


def test_editor_cannot_manage_team(client, team, make_user, headers):
    make_user(email="new@example.org")
    response = client.post(
        f"/api/crm/{team['enterprise'].id}/team",
        json={"email": "new@example.org"},
        headers=headers(team["editor"]),
    )
    assert response.status_code == 403


def test_admin_cannot_grant_owner(client, team, make_user, headers):
    make_user(email="new@example.org")
    response = client.post(
        f"/api/crm/{team['enterprise'].id}/team",
        json={"email": "new@example.org", "role": "owner"},
        headers=headers(team["admin"]),
    )
    assert response.status_code == 403


def test_change_role(client, team, headers):
    editor_id = _members(client, team, headers)["editor@example.org"]["id"]
    response = client.patch(
        f"/api/crm/{team['enterprise'].id}/team/{editor_id}",
        json={"role": "viewer"},
        headers=headers(team["admin"]),
    )
    assert response.status_code == 200
    assert response.json()["role"] == "viewer"


def test_last_owner_is_protected(client, team, headers):
    owner_id = _members(client, team, headers)["owner@example.org"]["id"]
    enterprise_id = team["enterprise"].id

    demote = client.patch(
        f"/api/crm/{enterprise_id}/team/{owner_id}", json={"role": "admin"}, headers=headers(team["owner"])
    )
    assert demote.status_code == 400

    remove = client.delete(f"/api/crm/{enterprise_id}/team/{owner_id}", headers=headers(team["owner"]))
    assert remove.status_code == 400


def test_admin_cannot_touch_owner(client, team, headers):
    owner_id = _members(client, team, headers)["owner@example.org"]["id"]
    response = client.delete(f"/api/crm/{team['enterprise'].id}/team/{owner_id}", headers=headers(team["admin"]))
    assert response.status_code == 403


def test_removed_member_loses_access(client, team, headers):
    enterprise_id = team["enterprise"].id
    editor_id = _members(client, team, headers)["editor@example.org"]["id"]

    response = client.delete(f"/api/crm/{enterprise_id}/team/{editor_id}", headers=headers(team["owner"]))
    assert response.status_code == 204

    assert client.get(f"/api/crm/{enterprise_id}/dashboard", headers=headers(team["editor"])).status_code == 404
    assert client.get("/api/crm/user/enterprises", headers=headers(team["editor"])).json() == []


def test_member_from_other_enterprise_is_not_found(client, team, make_user, make_enterprise, headers):
    stranger = make_user(email="stranger@example.org")
    other = make_enterprise(name="Other", members=[(stranger, TeamRole.OWNER)])
    foreign_member_id = client.get(f"/api/crm/{other.id}/team", headers=headers(stranger)).json()[0]["id"]

    response = client.patch(
        f"/api/crm/{team['enterprise'].id}/team/{foreign_member_id}",
        json={"role": "viewer"},
        headers=headers(team["owner"]),
    )
    assert response.status_code == 404
