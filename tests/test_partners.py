from models.models import UserRole

APPLICATION = {
    "organization_name": "Watershed Trust",
    "contact_person": "Dana Reyes",
    "email": "dana@watershed.org",
    "areas_of_focus": ["water", "land"],
}


def test_anyone_can_apply(client):
    response = client.post("/api/partner-applications", json=APPLICATION)
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["areas_of_focus"] == ["water", "land"]

    assert client.post("/api/partner-applications", json={**APPLICATION, "email": "nope"}).status_code == 400


def test_listing_needs_crm_pro_role(client, make_user, member, headers):
    client.post("/api/partner-applications", json=APPLICATION)
    pro = make_user(email="pro@example.org", role=UserRole.CRM_PRO)

    assert client.get("/api/crm/partner-applications").status_code == 401
    denied = client.get("/api/crm/partner-applications", headers=headers(member))
    assert denied.status_code == 403
    assert denied.json()["detail"] == "Requires crm_pro role or higher"

    listed = client.get("/api/crm/partner-applications", headers=headers(pro)).json()
    assert [a["organization_name"] for a in listed] == ["Watershed Trust"]


def test_detail(client, admin_user, headers):
    application_id = client.post("/api/partner-applications", json=APPLICATION).json()["id"]
    assert client.get(f"/api/crm/partner-applications/{application_id}", headers=headers(admin_user)).status_code == 200

    missing = client.get("/api/crm/partner-applications/9999", headers=headers(admin_user))
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Partner application not found"


def test_only_admins_review(client, make_user, admin_user, headers):
    application_id = client.post("/api/partner-applications", json=APPLICATION).json()["id"]
    pro = make_user(email="pro@example.org", role=UserRole.CRM_PRO)
    url = f"/api/admin/partner-applications/{application_id}"

    denied = client.patch(url, json={"status": "approved"}, headers=headers(pro))
    assert denied.status_code == 403
    assert denied.json()["detail"] == "Insufficient role for this action"

    reviewed = client.patch(url, json={"status": "approved", "notes": "Great fit"}, headers=headers(admin_user))
    assert reviewed.status_code == 200
    assert reviewed.json()["status"] == "approved"
    assert reviewed.json()["notes"] == "Great fit"

    assert client.patch(url, json={"status": "maybe"}, headers=headers(admin_user)).status_code == 400

    approved = client.get(
        "/api/crm/partner-applications", params={"status": "approved"}, headers=headers(admin_user)
    ).json()
    assert [a["id"] for a in approved] == [application_id]
