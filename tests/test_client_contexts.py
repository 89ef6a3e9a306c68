import pytest

from conftest import DEFAULT_PASSWORD
from earthcare_client import EarthCareClient, MemoryStore, NotFoundError
from earthcare_client.workspace import STORAGE_KEY
from models.models import PlanType, TeamRole, UserRole
from services.subscription_service import SubscriptionService
from services.workspace_service import WorkspaceStatus

pytestmark = pytest.mark.client


@pytest.fixture
def api(client):
    return EarthCareClient(base_url="http://testserver", session=client, store=MemoryStore())


# ----------------------------------------------------------------------
# Session + guard
# ----------------------------------------------------------------------
def test_anonymous_session(api):
    assert api.auth.current_user() is None
    assert api.auth.default_redirect_path() == "/"
    assert api.guard.resolve("/crm/1/dashboard") == "/member-benefits"
    assert api.guard.resolve("/enterprises") == "/enterprises"


def test_login_drives_guard(api, make_user):
    make_user(email="pro@example.org", role=UserRole.CRM_PRO)
    user = api.auth.login("pro@example.org", DEFAULT_PASSWORD)
    assert user["role"] == "crm_pro"
    assert api.auth.role == UserRole.CRM_PRO
    assert api.guard.check("/crm").is_authorized
    assert api.guard.resolve("/admin") == "/crm"


def test_failed_session_lookup_counts_as_visitor(client):
    api = EarthCareClient(base_url="http://testserver", session=client, token="garbage")
    assert api.auth.current_user() is None
    assert not api.auth.is_authenticated
    assert api.guard.resolve("/member/dashboard") == "/member-benefits"


def test_logout_clears_cached_state(api, member):
    api.auth.login(member.email, DEFAULT_PASSWORD)
    assert api.auth.is_authenticated
    api.auth.logout()
    assert api.auth.current_user() is None
    assert api.cache.keys() == []


def test_copilot_needs_role_and_plan(api, session, plans, make_user):
    user = make_user(email="pro@example.org", role=UserRole.CRM_PRO)
    api.auth.login(user.email, DEFAULT_PASSWORD)
    assert api.guard.resolve("/copilot") == "/pricing"

    SubscriptionService.activate_subscription(session, user, plans[PlanType.CRM_BASIC])
    api.subscription.refresh()
    assert api.guard.check("/copilot").is_authorized


# ----------------------------------------------------------------------
# Subscription gate
# ----------------------------------------------------------------------
def test_subscription_gate(api, session, plans, member):
    api.auth.login(member.email, DEFAULT_PASSWORD)
    assert api.subscription.current_plan == "free"
    assert api.subscription.has_plan_access(PlanType.FREE)
    assert not api.subscription.can_access(PlanType.CRM_PRO)

    api.subscription.record_usage("chat", 2500)
    assert api.subscription.tokens_remaining() == member.token_quota_limit - 2500
    assert api.subscription.usage_percentage() == 25.0

    SubscriptionService.activate_subscription(session, member, plans[PlanType.CRM_PRO])
    # Still cached until refreshed
    assert api.subscription.current_plan == "free"
    api.subscription.refresh()
    assert api.subscription.can_access(PlanType.CRM_PRO)
    assert api.subscription.is_active


def test_gate_without_login(api):
    assert api.subscription.snapshot() is None
    assert api.subscription.has_plan_access(PlanType.FREE)
    assert not api.subscription.has_plan_access(PlanType.CRM_BASIC)


# ----------------------------------------------------------------------
# Workspace
# ----------------------------------------------------------------------
def test_no_memberships_requires_activation(api, member):
    api.auth.login(member.email, DEFAULT_PASSWORD)
    assert api.workspace.load() == WorkspaceStatus.ACTIVATION_REQUIRED
    assert api.workspace.landing_path() == "/crm/activate"


def test_stored_workspace_is_reused_while_still_a_member(client, member, make_enterprise):
    first = make_enterprise(name="First", members=[(member, TeamRole.OWNER)])
    second = make_enterprise(name="Second", members=[(member, TeamRole.VIEWER)])

    api = EarthCareClient(base_url="http://testserver", session=client, store=MemoryStore({STORAGE_KEY: second.id}))
    api.auth.login(member.email, DEFAULT_PASSWORD)
    assert api.workspace.load() == WorkspaceStatus.ACTIVE
    assert api.workspace.current_enterprise_id == second.id

    stale = EarthCareClient(base_url="http://testserver", session=client, store=MemoryStore({STORAGE_KEY: 9999}))
    stale.auth.login(member.email, DEFAULT_PASSWORD)
    stale.workspace.load()
    assert stale.workspace.current_enterprise_id == first.id
    assert stale.store.get(STORAGE_KEY) == first.id


def test_switch_workspace_drops_crm_queries(api, member, make_enterprise):
    first = make_enterprise(name="First", members=[(member, TeamRole.OWNER)])
    second = make_enterprise(name="Second", members=[(member, TeamRole.OWNER)])
    api.auth.login(member.email, DEFAULT_PASSWORD)
    api.workspace.load()

    api.workspace.crm_mutation("people", {"first_name": "Ada", "last_name": "Green"})
    assert [p["first_name"] for p in api.workspace.crm_query("people")] == ["Ada"]
    assert f"/api/crm/{first.id}/people" in api.cache

    path = api.workspace.switch_workspace(second.id)
    assert path == f"/crm/{second.id}/dashboard"
    assert f"/api/crm/{first.id}/people" not in api.cache
    assert api.store.get(STORAGE_KEY) == second.id
    assert api.workspace.crm_query("people") == []


def test_switch_to_foreign_workspace(api, member, make_enterprise):
    make_enterprise(name="Mine", members=[(member, TeamRole.OWNER)])
    other = make_enterprise(name="Not mine")
    api.auth.login(member.email, DEFAULT_PASSWORD)
    with pytest.raises(NotFoundError):
        api.workspace.switch_workspace(other.id)


def test_create_enterprise_switches_into_it(api, member):
    api.auth.login(member.email, DEFAULT_PASSWORD)
    assert api.workspace.load() == WorkspaceStatus.ACTIVATION_REQUIRED

    enterprise = api.workspace.create_enterprise("Seed Savers", "land_projects")
    assert api.workspace.status == WorkspaceStatus.ACTIVE
    assert api.workspace.current_enterprise_id == enterprise["id"]
    assert api.workspace.current["role"] == "owner"
    assert api.workspace.crm_query("dashboard")["enterprise_name"] == "Seed Savers"


# ----------------------------------------------------------------------
# Directory + errors
# ----------------------------------------------------------------------
def test_directory_and_error_mapping(api, make_enterprise):
    make_enterprise(name="Forest Garden")
    assert api.enterprises(search="forest")["total"] == 1
    assert {c["category"] for c in api.categories()} >= {"land_projects"}
    with pytest.raises(NotFoundError) as exc:
        api._http.get("/api/enterprises/9999")
    assert exc.value.message == "Enterprise not found"
