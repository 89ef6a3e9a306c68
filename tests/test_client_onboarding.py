import pytest

from conftest import DEFAULT_PASSWORD
from earthcare_client import EarthCareClient, MemoryStore, OnboardingRepository
from earthcare_client.errors import TransportError
from earthcare_client.onboarding import LOCAL_KEY
from schemas.onboarding_schema import ProgressData
from services.onboarding_service import OnboardingError

pytestmark = pytest.mark.client


class SwitchableHTTP:
    """Wraps the real transport; when offline every call fails like a dropped connection."""

    def __init__(self, http):
        self._http = http
        self.online = True
        self.calls = 0

    @property
    def token(self):
        return self._http.token

    def _call(self, name, *args):
        if not self.online:
            raise TransportError("offline")
        self.calls += 1
        return getattr(self._http, name)(*args)

    def get(self, path, params=None):
        return self._call("get", path, params)

    def put(self, path, json_data=None):
        return self._call("put", path, json_data)


@pytest.fixture
def api(client, member):
    api = EarthCareClient(base_url="http://testserver", session=client, store=MemoryStore())
    api.auth.login(member.email, DEFAULT_PASSWORD)
    return api


@pytest.fixture
def net(api):
    return SwitchableHTTP(api._http)


@pytest.fixture
def repo(api, net):
    return OnboardingRepository(net, api.store)


def _server_progress(client, member, headers, flow):
    return client.get(f"/api/onboarding/progress/{flow}", headers=headers(member)).json()["progress"]


def test_visitor_flow_never_hits_the_server(repo, net, api):
    progress = repo.complete_step("visitor", "welcome")
    assert progress.steps == {"welcome": True}
    assert net.calls == 0
    assert api.store.get(LOCAL_KEY.format(flow="visitor"))["steps"] == {"welcome": True}


def test_online_step_is_written_through(repo, api, client, member, headers):
    progress = repo.complete_step("crm_pro", "crm_setup")
    assert progress.steps == {"crm_setup": True}
    assert _server_progress(client, member, headers, "crm_pro")["steps"] == {"crm_setup": True}
    assert repo.pending_flows() == []


def test_completing_a_done_step_writes_nothing(repo, net):
    repo.complete_step("crm_pro", "crm_setup")
    calls = net.calls
    first = repo.get("crm_pro")
    second = repo.complete_step("crm_pro", "crm_setup")
    assert second == first
    # One read for the step check, no write
    assert net.calls == calls + 2


def test_offline_write_is_pushed_on_next_sync(repo, net, client, member, headers):
    net.online = False
    progress = repo.complete_step("free_member", "profile_setup")
    assert progress.steps == {"profile_setup": True}
    assert repo.pending_flows() == ["free_member"]
    assert _server_progress(client, member, headers, "free_member")["steps"] == {}

    net.online = True
    assert repo.sync() == ["free_member"]
    assert repo.pending_flows() == []
    assert _server_progress(client, member, headers, "free_member")["steps"] == {"profile_setup": True}


def test_offline_write_is_pushed_by_next_read(repo, net, client, member, headers):
    net.online = False
    repo.complete_step("free_member", "first_claim")

    net.online = True
    assert repo.get("free_member").steps == {"first_claim": True}
    assert _server_progress(client, member, headers, "free_member")["steps"] == {"first_claim": True}


def test_newer_server_copy_beats_pending_local_write(repo, net, client, member, headers):
    net.online = False
    repo.complete_step("admin", "moderation")

    # Another device wrote later
    client.put(
        "/api/onboarding/progress/admin",
        json={"steps": {"platform_overview": True}, "updatedAt": "2099-01-01T00:00:00"},
        headers=headers(member),
    )

    net.online = True
    assert repo.get("admin").steps == {"platform_overview": True}
    assert repo.pending_flows() == []


def test_reads_fall_back_to_local_copy_when_offline(repo, net):
    repo.complete_step("build_pro", "team_setup")
    net.online = False
    assert repo.get("build_pro").steps == {"team_setup": True}


def test_complete_flow_and_reset(repo, client, member, headers):
    done = repo.complete_flow("build_pro")
    assert done.completed
    assert repo.is_complete("build_pro")

    reset = repo.reset("build_pro")
    assert not reset.completed
    assert _server_progress(client, member, headers, "build_pro")["steps"] == {}


def test_signed_out_progress_stays_local(client):
    api = EarthCareClient(base_url="http://testserver", session=client)
    progress = api.onboarding.complete_step("free_member", "profile_setup")
    assert progress.steps == {"profile_setup": True}
    assert api.onboarding.pending_flows() == []


def test_unknown_flow(repo):
    with pytest.raises(OnboardingError):
        repo.get("nope")


def test_save_with_unknown_step_writes_nothing(repo, net, api):
    with pytest.raises(OnboardingError):
        repo.save("free_member", ProgressData(steps={"not_a_step": True}))
    assert net.calls == 0
    assert api.store.get(LOCAL_KEY.format(flow="free_member")) is None
    assert repo.pending_flows() == []
