"""
Tests for the session store backends.
"""
import json

from vimeo_tus.store import FileStore, MemoryStore, S3Store


def test_memory_store_set_get_remove():
    store = MemoryStore()
    assert store.get("fp") is None

    store.set("fp", "https://files/1")
    assert store.get("fp") == "https://files/1"

    store.remove("fp")
    assert store.get("fp") is None


def test_memory_store_remove_unknown_is_noop():
    store = MemoryStore()
    store.remove("missing")
    assert store.items() == {}


def test_file_store_persists_sessions(tmp_path):
    state_file = tmp_path / "sessions.json"
    store = FileStore(state_file)
    store.set("fp", "https://files/1")

    with open(state_file) as f:
        data = json.load(f)
    assert data['sessions'] == {"fp": "https://files/1"}

    restored = FileStore(state_file)
    assert restored.get("fp") == "https://files/1"


def test_file_store_remove_rewrites_file(tmp_path):
    state_file = tmp_path / "sessions.json"
    store = FileStore(state_file)
    store.set("a", "https://files/a")
    store.set("b", "https://files/b")

    store.remove("a")

    assert FileStore(state_file).items() == {"b": "https://files/b"}


def test_file_store_handles_corrupt_state_file(tmp_path):
    """A corrupt file is logged and treated as an empty store."""
    state_file = tmp_path / "sessions.json"
    state_file.write_text("invalid json{")

    store = FileStore(state_file)
    assert store.items() == {}


def test_s3_store_round_trip(mock_aws):
    store = S3Store("test-bucket", s3_client=mock_aws)
    assert store.get("fp") is None

    store.set("fp", "https://files/1")
    assert store.get("fp") == "https://files/1"

    obj = mock_aws.get_object(Bucket="test-bucket", Key="tus-sessions/fp")
    assert obj['Body'].read() == b"https://files/1"

    store.remove("fp")
    assert store.get("fp") is None


def test_s3_store_lists_sessions(mock_aws):
    store = S3Store("test-bucket", prefix="uploads/", s3_client=mock_aws)
    store.set("one", "https://files/1")
    store.set("two", "https://files/2")

    assert store.items() == {"one": "https://files/1", "two": "https://files/2"}
