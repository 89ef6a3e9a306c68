from models.models import EnterpriseCategory


def test_favorites_need_login(client):
    assert client.get("/api/favorites/").status_code == 401
    assert client.post("/api/favorites/", json={"enterpriseId": 1}).status_code == 401


def test_add_list_and_remove(client, make_enterprise, member, headers):
    farm = make_enterprise(name="River Farm")
    auth = headers(member)

    created = client.post("/api/favorites/", json={"enterpriseId": farm.id, "notes": "visit in spring"}, headers=auth)
    assert created.status_code == 201
    assert created.json()["enterprise"]["name"] == "River Farm"

    favorites = client.get("/api/favorites/", headers=auth).json()
    assert [(f["enterprise_id"], f["notes"]) for f in favorites] == [(farm.id, "visit in spring")]
    assert client.get(f"/api/enterprises/{farm.id}/favorite-status", headers=auth).json() == {"isFavorited": True}

    assert client.delete(f"/api/favorites/{farm.id}", headers=auth).status_code == 204
    assert client.get("/api/favorites/", headers=auth).json() == []
    assert client.get(f"/api/enterprises/{farm.id}/favorite-status", headers=auth).json() == {"isFavorited": False}

    # Removing again is still fine
    assert client.delete(f"/api/favorites/{farm.id}", headers=auth).status_code == 204


def test_duplicate_and_unknown_enterprise(client, make_enterprise, member, headers):
    farm = make_enterprise(name="River Farm")
    auth = headers(member)
    assert client.post("/api/favorites/", json={"enterpriseId": farm.id}, headers=auth).status_code == 201
    assert client.post("/api/favorites/", json={"enterpriseId": farm.id}, headers=auth).status_code == 409
    assert client.post("/api/favorites/", json={"enterpriseId": 9999}, headers=auth).status_code == 404


def test_favorites_are_per_member(client, make_enterprise, make_user, headers):
    farm = make_enterprise(name="River Farm")
    alice = make_user(email="alice@example.org")
    bob = make_user(email="bob@example.org")
    client.post("/api/favorites/", json={"enterpriseId": farm.id}, headers=headers(alice))

    assert client.get("/api/favorites/", headers=headers(bob)).json() == []
    assert client.get(f"/api/enterprises/{farm.id}/favorite-status", headers=headers(bob)).json()["isFavorited"] is False


def test_stats_by_category(client, make_enterprise, member, headers):
    auth = headers(member)
    for name, category in [
        ("Farm A", EnterpriseCategory.LAND_PROJECTS),
        ("Farm B", EnterpriseCategory.LAND_PROJECTS),
        ("Fund", EnterpriseCategory.CAPITAL_SOURCES),
    ]:
        enterprise = make_enterprise(name=name, category=category)
        client.post("/api/favorites/", json={"enterpriseId": enterprise.id}, headers=auth)

    stats = client.get("/api/favorites/stats", headers=auth).json()
    assert stats == {"total": 3, "byCategory": {"land_projects": 2, "capital_sources": 1}}
