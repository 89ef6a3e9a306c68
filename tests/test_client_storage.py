import json

import pytest

from earthcare_client import JsonFileStore, MemoryStore

pytestmark = pytest.mark.client


@pytest.mark.parametrize("factory", [lambda p: MemoryStore(), lambda p: JsonFileStore(str(p / "state.json"))])
def test_store_roundtrip(tmp_path, factory):
    store = factory(tmp_path)
    assert store.get("currentEnterpriseId") is None
    store.set("currentEnterpriseId", 7)
    assert store.get("currentEnterpriseId") == 7
    store.delete("currentEnterpriseId")
    assert store.get("currentEnterpriseId", "none") == "none"


def test_json_store_survives_restart(tmp_path):
    path = tmp_path / "nested" / "state.json"
    JsonFileStore(str(path)).set("onboarding_progress_visitor", {"completed": True})
    assert JsonFileStore(str(path)).get("onboarding_progress_visitor") == {"completed": True}
    assert json.loads(path.read_text()) == {"onboarding_progress_visitor": {"completed": True}}


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json")
    store = JsonFileStore(str(path))
    assert store.get("anything") is None
    store.set("k", 1)
    assert store.get("k") == 1
