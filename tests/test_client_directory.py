import pytest

from conftest import DEFAULT_PASSWORD
from earthcare_client import ApiError, EarthCareClient, MemoryStore, PermissionDenied
from earthcare_client.workspace import STORAGE_KEY
from services.workspace_service import WorkspaceStatus

pytestmark = pytest.mark.client


@pytest.fixture
def api(client, member):
    api = EarthCareClient(base_url="http://testserver", session=client, store=MemoryStore())
    api.auth.login(member.email, DEFAULT_PASSWORD)
    return api


def test_favorites_toggle_and_cache(api, make_enterprise):
    farm = make_enterprise(name="River Farm")

    assert api.favorites.list() == []
    assert api.favorites.toggle(farm.id) is True
    # Adding dropped the cached empty list
    assert [f["enterprise"]["name"] for f in api.favorites.list()] == ["River Farm"]
    assert api.favorites.stats()["total"] == 1

    with pytest.raises(ApiError) as exc:
        api.favorites.add(farm.id)
    assert exc.value.status_code == 409

    assert api.favorites.toggle(farm.id) is False
    assert api.favorites.list() == []
    assert api.favorites.is_favorited(farm.id) is False


def test_claim_switches_into_the_new_workspace(api, member, make_enterprise):
    enterprise = make_enterprise(name="Seed Bank", contact_email=member.email)
    assert api.workspace.load() == WorkspaceStatus.ACTIVATION_REQUIRED

    result = api.workspace.claim_enterprise(enterprise.id)
    assert result["role"] == "owner"
    assert api.workspace.status == WorkspaceStatus.ACTIVE
    assert api.workspace.current_enterprise_id == enterprise.id
    assert api.store.get(STORAGE_KEY) == enterprise.id


def test_claim_of_someone_elses_listing_is_denied(api, make_enterprise):
    enterprise = make_enterprise(name="Seed Bank", contact_email="hello@seedbank.org")
    with pytest.raises(PermissionDenied):
        api.workspace.claim_enterprise(enterprise.id)
    assert api.workspace.load() == WorkspaceStatus.ACTIVATION_REQUIRED


def test_search(api, make_enterprise):
    make_enterprise(name="Compost Collective")
    result = api.search("compost")
    assert [e["name"] for e in result["enterprises"]] == ["Compost Collective"]
