import pytest

from models.models import PlanType, TeamRole
from services.subscription_service import SubscriptionService


@pytest.fixture
def subscriber(session, make_user, plans):
    user = make_user(email="subscriber@example.org")
    SubscriptionService.activate_subscription(session, user, plans[PlanType.CRM_BASIC])
    return user


def test_copilot_needs_login(client, make_enterprise):
    enterprise = make_enterprise()
    assert client.get(f"/api/crm/{enterprise.id}/ai/conversations").status_code == 401


def test_free_plan_gets_403(client, make_enterprise, member, headers):
    enterprise = make_enterprise(members=[(member, TeamRole.OWNER)])
    response = client.get(f"/api/crm/{enterprise.id}/ai/conversations", headers=headers(member))
    assert response.status_code == 403
    assert "crm_basic" in response.json()["detail"]


def test_plan_without_seat_gets_404(client, make_enterprise, subscriber, headers):
    enterprise = make_enterprise()
    assert client.get(f"/api/crm/{enterprise.id}/ai/conversations", headers=headers(subscriber)).status_code == 404


def test_conversation_flow(client, make_enterprise, subscriber, headers):
    enterprise = make_enterprise(members=[(subscriber, TeamRole.VIEWER)])
    auth = headers(subscriber)
    base = f"/api/crm/{enterprise.id}/ai/conversations"

    created = client.post(base, json={"title": "Grant ideas"}, headers=auth)
    assert created.status_code == 201
    conversation_id = created.json()["id"]

    message = client.post(f"{base}/{conversation_id}/messages", json={"content": "Which funds fit us?"}, headers=auth)
    assert message.status_code == 201
    assert message.json()["role"] == "user"

    messages = client.get(f"{base}/{conversation_id}/messages", headers=auth).json()
    assert [m["content"] for m in messages] == ["Which funds fit us?"]
    assert [c["title"] for c in client.get(base, headers=auth).json()] == ["Grant ideas"]

    assert client.post(f"{base}/{conversation_id}/messages", json={"content": ""}, headers=auth).status_code == 400


def test_conversations_are_private_to_their_author(client, session, make_enterprise, make_user, subscriber, plans, headers):
    colleague = make_user(email="colleague@example.org")
    SubscriptionService.activate_subscription(session, colleague, plans[PlanType.CRM_PRO])
    enterprise = make_enterprise(members=[(subscriber, TeamRole.OWNER), (colleague, TeamRole.EDITOR)])
    base = f"/api/crm/{enterprise.id}/ai/conversations"

    conversation_id = client.post(base, json={}, headers=headers(subscriber)).json()["id"]

    assert client.get(base, headers=headers(colleague)).json() == []
    assert client.get(f"{base}/{conversation_id}/messages", headers=headers(colleague)).status_code == 404
