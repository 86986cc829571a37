import json
import os

import pytest

from femo_client.infrastructure.key_value_store import InMemoryKeyValueStore, JsonFileKeyValueStore


def test_get_returns_none_when_file_missing(tmp_path):
    store = JsonFileKeyValueStore(tmp_path / "session.json")

    assert store.get("access_token") is None
    assert store.get_many(["access_token", "user"]) == {}


def test_set_many_persists_and_survives_reopen(tmp_path):
    path = tmp_path / "nested" / "session.json"
    store = JsonFileKeyValueStore(path)

    store.set_many({"access_token": "A1", "user": {"id": "u1"}})

    with path.open("r", encoding="utf-8") as handle:
        assert json.load(handle) == {"access_token": "A1", "user": {"id": "u1"}}

    reopened = JsonFileKeyValueStore(path)
    assert reopened.get_many(["access_token", "user", "missing"]) == {
        "access_token": "A1",
        "user": {"id": "u1"},
    }


def test_set_many_can_drop_stale_keys_in_the_same_write(tmp_path):
    store = JsonFileKeyValueStore(tmp_path / "session.json")
    store.set_many({"access_token": "A1", "refresh_token": "R1"})

    store.set_many({"access_token": "A2"}, remove=["refresh_token"])

    assert store.get_many(["access_token", "refresh_token"]) == {"access_token": "A2"}


def test_remove_many_keeps_other_keys(tmp_path):
    store = JsonFileKeyValueStore(tmp_path / "session.json")
    store.set_many({"access_token": "A1", "refresh_token": "R1", "deviceId": "web-1-abc"})

    store.remove_many(["access_token", "refresh_token", "user"])

    assert json.loads(store.path.read_text(encoding="utf-8")) == {"deviceId": "web-1-abc"}


@pytest.mark.skipif(os.name == "nt", reason="POSIX file permissions only")
def test_writes_use_restrictive_permissions(tmp_path):
    path = tmp_path / "session.json"
    store = JsonFileKeyValueStore(path)

    store.set_many({"access_token": "A1"})

    mode = path.stat().st_mode & 0o777
    assert mode == 0o600


@pytest.mark.parametrize("contents", ["{not json", "[1, 2, 3]"])
def test_unreadable_file_is_treated_as_empty(tmp_path, contents):
    path = tmp_path / "session.json"
    path.write_text(contents, encoding="utf-8")
    store = JsonFileKeyValueStore(path)

    assert store.get("access_token") is None

    store.set_many({"access_token": "A1"})
    assert json.loads(path.read_text(encoding="utf-8")) == {"access_token": "A1"}


def test_in_memory_store_behaves_like_the_file_store():
    store = InMemoryKeyValueStore({"deviceId": "web-1-abc"})

    store.set_many({"access_token": "A1", "refresh_token": "R1"})
    store.set_many({"access_token": "A2"}, remove=["refresh_token"])
    store.remove_many(["user"])

    assert store.snapshot() == {"deviceId": "web-1-abc", "access_token": "A2"}
    assert store.get("refresh_token") is None
