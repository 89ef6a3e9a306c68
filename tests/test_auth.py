from conftest import DEFAULT_PASSWORD


def test_signup_creates_free_member(client, plans):
    response = client.post(
        "/api/auth/signup",
        json={"email": "New.User@Example.org", "password": "longpassword", "first_name": "New"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "new.user@example.org"
    assert body["user"]["role"] == "free"
    assert body["user"]["current_plan_type"] == "free"
    assert body["user"]["token_quota_limit"] == 10000


def test_signup_duplicate_email(client, member):
    response = client.post("/api/auth/signup", json={"email": member.email, "password": "longpassword"})
    assert response.status_code == 400


def test_signup_validation_errors_are_400(client):
    response = client.post("/api/auth/signup", json={"email": "not-an-email", "password": "short"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Validation error"


def test_login_and_me(client, member):
    response = client.post("/api/auth/login", json={"email": member.email, "password": DEFAULT_PASSWORD})
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["id"] == member.id


def test_login_wrong_password(client, member):
    response = client.post("/api/auth/login", json={"email": member.email, "password": "wrong-password"})
    assert response.status_code == 401


def test_inactive_account_cannot_log_in(client, make_user):
    user = make_user(email="gone@example.org", is_active=False)
    response = client.post("/api/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD})
    assert response.status_code == 403


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
    bad = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert bad.status_code == 401


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
