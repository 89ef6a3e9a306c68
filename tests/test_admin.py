import pytest
from sqlmodel import select

from models.models import Enterprise, EnterpriseCategory
from services.seeding_service import SeedingError, enterprise_from_url, normalize_urls


def test_admin_routes_need_admin(client, member, headers):
    assert client.get("/api/admin/users", headers=headers(member)).status_code == 403
    assert client.get("/api/admin/users").status_code == 401


def test_list_users_by_role(client, admin_user, member, make_user, headers):
    make_user(email="pro@example.org", role="crm_pro")
    everyone = client.get("/api/admin/users", headers=headers(admin_user)).json()
    assert len(everyone) == 3
    pros = client.get("/api/admin/users", params={"role": "crm_pro"}, headers=headers(admin_user)).json()
    assert [u["email"] for u in pros] == ["pro@example.org"]


def test_change_role(client, admin_user, member, headers):
    response = client.patch(
        f"/api/admin/users/{member.id}/role", json={"role": "crm_pro"}, headers=headers(admin_user)
    )
    assert response.status_code == 200
    assert response.json()["role"] == "crm_pro"


def test_admin_cannot_demote_self(client, admin_user, headers):
    response = client.patch(
        f"/api/admin/users/{admin_user.id}/role", json={"role": "free"}, headers=headers(admin_user)
    )
    assert response.status_code == 400


def test_deactivate_user(client, admin_user, member, headers):
    response = client.patch(
        f"/api/admin/users/{member.id}/status", json={"is_active": False}, headers=headers(admin_user)
    )
    assert response.json()["is_active"] is False
    assert client.get("/api/auth/me", headers=headers(member)).status_code == 403


def test_stats(client, admin_user, member, make_enterprise, headers):
    make_enterprise(name="Verified", is_verified=True)
    make_enterprise(name="Unverified")
    stats = client.get("/api/admin/stats", headers=headers(admin_user)).json()
    assert stats["users_by_role"] == {"free": 1, "crm_pro": 0, "admin": 1}
    assert stats["enterprises"] == 2
    assert stats["verified_enterprises"] == 1
    assert stats["active_subscriptions"] == 0


# ----------------------------------------------------------------------
# Seeding
# ----------------------------------------------------------------------
def test_normalize_urls():
    assert normalize_urls([" https://a.org ", "", "https://a.org", "https://b.org"]) == [
        "https://a.org",
        "https://b.org",
    ]


def test_enterprise_from_url():
    assert enterprise_from_url("https://www.green-roots.org/about") == ("Green Roots", "https://www.green-roots.org")
    with pytest.raises(SeedingError):
        enterprise_from_url("ftp://files.example.org")
    with pytest.raises(SeedingError):
        enterprise_from_url("not a url")


def test_empty_seed_job_is_400(client, admin_user, headers):
    response = client.post("/api/admin/enterprises/seed", json={"urls": ["  ", ""]}, headers=headers(admin_user))
    assert response.status_code == 400


def test_seed_job_runs_to_completion(client, session, admin_user, make_enterprise, headers):
    make_enterprise(name="Existing", source_url="https://existing.org")
    urls = ["https://solar-commons.org", "not a url", "https://existing.org", "https://solar-commons.org"]

    started = client.post("/api/admin/enterprises/seed", json={"urls": urls}, headers=headers(admin_user))
    assert started.status_code == 201
    body = started.json()
    assert body["totalUrls"] == 3

    # The background task has finished once the test client returns
    job = client.get(f"/api/admin/enterprises/seed/{body['jobId']}", headers=headers(admin_user)).json()
    assert job["status"] == "completed"
    assert job["processed_urls"] == 3
    assert job["success_count"] == 1
    assert job["failure_count"] == 2
    assert {e["error"] for e in job["errors"]} == {"Invalid URL", "Already imported"}

    created = session.exec(select(Enterprise).where(Enterprise.name == "Solar Commons")).all()
    assert len(created) == 1


def test_seed_job_with_only_failures_fails(client, admin_user, headers):
    started = client.post("/api/admin/enterprises/seed", json={"urls": ["nope"]}, headers=headers(admin_user))
    job = client.get(f"/api/admin/enterprises/seed/{started.json()['jobId']}", headers=headers(admin_user)).json()
    assert job["status"] == "failed"


def test_unknown_job_is_404(client, admin_user, headers):
    assert client.get("/api/admin/enterprises/seed/missing", headers=headers(admin_user)).status_code == 404


def test_seeded_enterprises_are_unverified(client, admin_user, headers):
    client.post("/api/admin/enterprises/seed", json={"urls": ["https://tree-bank.net"]}, headers=headers(admin_user))
    listing = client.get("/api/enterprises/", params={"category": EnterpriseCategory.NETWORK_ORGANIZERS.value}).json()
    assert [(e["name"], e["is_verified"]) for e in listing["items"]] == [("Tree Bank", False)]
