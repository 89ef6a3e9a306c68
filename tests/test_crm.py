import pytest

from models.models import TeamRole, UserRole


@pytest.fixture
def workspace(make_user, make_enterprise):
    owner = make_user(email="owner@example.org", role=UserRole.CRM_PRO)
    editor = make_user(email="editor@example.org")
    viewer = make_user(email="viewer@example.org")
    enterprise = make_enterprise(
        name="Watershed Partners",
        members=[(owner, TeamRole.OWNER), (editor, TeamRole.EDITOR), (viewer, TeamRole.VIEWER)],
    )
    return {"enterprise": enterprise, "owner": owner, "editor": editor, "viewer": viewer}


def test_no_memberships_means_activation(client, member, headers):
    response = client.get("/api/crm/user/enterprises", headers=headers(member))
    assert response.status_code == 200
    assert response.json() == []


def test_create_enterprise_makes_creator_owner(client, member, headers):
    response = client.post(
        "/api/crm/enterprises",
        json={"name": "Compost Co", "category": "land_projects", "tags": ["soil"]},
        headers=headers(member),
    )
    assert response.status_code == 201
    enterprise_id = response.json()["id"]

    memberships = client.get("/api/crm/user/enterprises", headers=headers(member)).json()
    assert memberships == [
        {**memberships[0], "enterprise_id": enterprise_id, "role": "owner", "status": "active"}
    ]


def test_non_member_gets_404(client, workspace, member, headers):
    enterprise_id = workspace["enterprise"].id
    assert client.get(f"/api/crm/{enterprise_id}/dashboard", headers=headers(member)).status_code == 404
    assert client.get("/api/crm/9999/dashboard", headers=headers(member)).status_code == 404


def test_global_admin_can_open_any_workspace(client, workspace, admin_user, headers):
    enterprise_id = workspace["enterprise"].id
    response = client.get(f"/api/crm/{enterprise_id}/dashboard", headers=headers(admin_user))
    assert response.status_code == 200
    assert response.json()["role"] == "owner"


def test_viewer_reads_editor_writes(client, workspace, headers):
    enterprise_id = workspace["enterprise"].id
    person = {"first_name": "Ada", "last_name": "Green", "email": "ada@example.org"}

    denied = client.post(f"/api/crm/{enterprise_id}/people", json=person, headers=headers(workspace["viewer"]))
    assert denied.status_code == 403

    created = client.post(f"/api/crm/{enterprise_id}/people", json=person, headers=headers(workspace["editor"]))
    assert created.status_code == 201

    listed = client.get(f"/api/crm/{enterprise_id}/people", headers=headers(workspace["viewer"]))
    assert [p["first_name"] for p in listed.json()] == ["Ada"]

    searched = client.get(
        f"/api/crm/{enterprise_id}/people", params={"search": "nobody"}, headers=headers(workspace["viewer"])
    )
    assert searched.json() == []


def test_dashboard_counts(client, workspace, headers):
    enterprise_id = workspace["enterprise"].id
    auth = headers(workspace["owner"])
    client.post(f"/api/crm/{enterprise_id}/opportunities", json={"title": "Grant", "value": 5000}, headers=auth)
    client.post(
        f"/api/crm/{enterprise_id}/opportunities",
        json={"title": "Done deal", "value": 100, "status": "closed_won"},
        headers=auth,
    )
    client.post(f"/api/crm/{enterprise_id}/tasks", json={"title": "Call back"}, headers=auth)

    dashboard = client.get(f"/api/crm/{enterprise_id}/dashboard", headers=auth).json()
    assert dashboard["opportunity_count"] == 2
    assert dashboard["open_task_count"] == 1
    assert dashboard["pipeline_value"] == 5000


def test_cross_enterprise_references_are_rejected(client, workspace, make_enterprise, headers):
    owner = workspace["owner"]
    other = make_enterprise(name="Elsewhere", members=[(owner, TeamRole.OWNER)])
    auth = headers(owner)

    foreign_person = client.post(
        f"/api/crm/{other.id}/people", json={"first_name": "Bo", "last_name": "Tree"}, headers=auth
    ).json()

    response = client.post(
        f"/api/crm/{workspace['enterprise'].id}/opportunities",
        json={"title": "Mixed up", "primary_contact_id": foreign_person["id"]},
        headers=auth,
    )
    assert response.status_code == 400


def test_task_assignee_must_be_member(client, workspace, member, headers):
    enterprise_id = workspace["enterprise"].id
    auth = headers(workspace["owner"])

    bad = client.post(
        f"/api/crm/{enterprise_id}/tasks", json={"title": "Nope", "assigned_to_id": member.id}, headers=auth
    )
    assert bad.status_code == 400

    good = client.post(
        f"/api/crm/{enterprise_id}/tasks",
        json={"title": "Follow up", "assigned_to_id": workspace["editor"].id},
        headers=auth,
    )
    assert good.status_code == 201

    mine = client.get(
        f"/api/crm/{enterprise_id}/tasks", params={"assigned_to_me": "true"}, headers=headers(workspace["editor"])
    ).json()
    assert [t["title"] for t in mine] == ["Follow up"]


def test_opportunity_status_filter(client, workspace, headers):
    enterprise_id = workspace["enterprise"].id
    auth = headers(workspace["owner"])
    client.post(f"/api/crm/{enterprise_id}/opportunities", json={"title": "A"}, headers=auth)
    client.post(f"/api/crm/{enterprise_id}/opportunities", json={"title": "B", "status": "proposal"}, headers=auth)

    proposals = client.get(
        f"/api/crm/{enterprise_id}/opportunities", params={"status": "proposal"}, headers=auth
    ).json()
    assert [o["title"] for o in proposals] == ["B"]
