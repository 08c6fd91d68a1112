"""Tests for the persistence boundary."""

import json

import pytest

from mindflow.errors import ValidationError
from mindflow.models import CategoryGroup, Thought, thought_set_from_list, thought_set_to_list
from mindflow.services.storage import JsonFileStore, MemoryStore

from conftest import audio_thought, text_thought


@pytest.fixture
def sample():
    return [
        CategoryGroup("Errands", [text_thought("t1", "Buy milk")]),
        CategoryGroup("Family", [audio_thought("v1", "Call mom", label="Call")]),
    ]


class TestSerialization:
    def test_wire_shape(self, sample):
        data = thought_set_to_list(sample)
        assert data[0] == {"category": "Errands", "thoughts": [{"id": "t1", "type": "text", "content": "Buy milk"}]}
        assert data[1]["thoughts"][0]["transcription"] == "Call mom"
        assert data[1]["thoughts"][0]["label"] == "Call"

    def test_round_trip_preserves_thoughts(self, sample):
        assert thought_set_from_list(thought_set_to_list(sample)) == sample

    def test_empty_means_absent(self):
        assert thought_set_from_list([]) is None
        assert thought_set_from_list(None) is None

    def test_missing_id_is_assigned(self):
        restored = thought_set_from_list([{"category": "A", "thoughts": [{"type": "text", "content": "x"}]}])
        assert restored[0].members[0].id

    def test_empty_groups_dropped(self):
        assert thought_set_from_list([{"category": "A", "thoughts": []}]) is None
        restored = thought_set_from_list([
            {"category": "A", "thoughts": []},
            {"category": "B", "thoughts": [{"id": "b1", "type": "text", "content": "x"}]},
        ])
        assert [group.name for group in restored] == ["B"]

    @pytest.mark.parametrize("data", [
        {"category": "A"},
        [{"category": None, "thoughts": []}],
        [{"category": "A", "thoughts": [{"type": "video", "content": "x"}]}],
        [{"category": "A", "thoughts": ["x"]}],
        [{"category": "A", "thoughts": "x"}],
        [{"category": "A", "thoughts": [{"type": "text", "content": 5}]}],
        [{"category": "A", "thoughts": [{"type": "audio", "content": "d", "transcription": ["x"]}]}],
        [{"category": "A", "thoughts": [{"type": "text", "content": "x", "label": 3}]}],
        [{"category": "A", "thoughts": [{"id": 7, "type": "text", "content": "x"}]}],
    ])
    def test_invalid_data(self, data):
        with pytest.raises(ValidationError):
            thought_set_from_list(data)


class TestJsonFileStore:
    def test_load_missing(self, tmp_path):
        assert JsonFileStore("s", tmp_path / "s.json").load() is None

    def test_save_and_load(self, tmp_path, sample):
        path = tmp_path / "nested" / "s.json"
        store = JsonFileStore("s", path)
        assert store.save(sample) is True
        assert json.loads(path.read_text(encoding="utf-8"))[0]["category"] == "Errands"
        assert store.load() == sample
        assert [p.name for p in path.parent.iterdir()] == ["s.json"]

    def test_save_replaces_whole_set(self, tmp_path, sample):
        store = JsonFileStore("s", tmp_path / "s.json")
        store.save(sample)
        store.save(sample[:1])
        assert store.load() == sample[:1]

    def test_clear(self, tmp_path, sample):
        path = tmp_path / "s.json"
        store = JsonFileStore("s", path)
        store.save(sample)
        assert store.save(None) is True
        assert not path.exists()
        assert store.load() is None

    def test_clear_when_absent(self, tmp_path):
        assert JsonFileStore("s", tmp_path / "s.json").save([]) is True

    def test_corrupt_file_loads_as_absent(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text("{not json", encoding="utf-8")
        assert JsonFileStore("s", path).load() is None

    def test_wrong_content_type_loads_as_absent(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text(json.dumps([{"category": "A", "thoughts": [{"type": "text", "content": 5}]}]), encoding="utf-8")
        assert JsonFileStore("s", path).load() is None

    def test_assigned_ids_are_written_back(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text(json.dumps([{"category": "A", "thoughts": [{"type": "text", "content": "x"}]}]), encoding="utf-8")
        store = JsonFileStore("s", path)
        first = store.load()[0].members[0].id
        assert store.load()[0].members[0].id == first
        assert json.loads(path.read_text(encoding="utf-8"))[0]["thoughts"][0]["id"] == first

    def test_write_failure_reported(self, tmp_path, sample):
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        store = JsonFileStore("s", blocker / "s.json")
        assert store.save(sample) is False

    def test_default_path_uses_session_slug(self):
        store = JsonFileStore("My Session!")
        assert store.path.name == "my-session.json"


class TestMemoryStore:
    def test_sessions_are_isolated(self, sample):
        backing = {}
        first = MemoryStore("one", backing)
        second = MemoryStore("two", backing)
        first.save(sample)
        assert second.load() is None
        assert MemoryStore("one", backing).load() == sample

    def test_clear(self, sample):
        store = MemoryStore("one")
        store.save(sample)
        store.save(None)
        assert store.load() is None

    def test_assigned_ids_are_stable(self):
        backing = {"one": [{"category": "A", "thoughts": [{"type": "text", "content": "x"}]}]}
        store = MemoryStore("one", backing)
        first = store.load()[0].members[0].id
        assert store.load()[0].members[0].id == first
        assert backing["one"][0]["thoughts"][0]["id"] == first

    def test_returns_copies(self, sample):
        store = MemoryStore("one")
        store.save(sample)
        loaded = store.load()
        loaded[0].members.append(Thought.text("sneaky"))
        assert len(store.load()[0].members) == 1
