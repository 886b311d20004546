"""Tests for index synchronizers."""

import json
import tempfile
from pathlib import Path

import pytest

from settingsrepo.repository import JsonFileIndex, NoOpIndex, RepositoryManager


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def json_index(temp_dir):
    return JsonFileIndex(temp_dir / ".repository-index.json")


class TestNoOpIndex:
    """Test that NoOpIndex does nothing."""

    def test_hooks_return_none(self):
        index = NoOpIndex()
        assert index.record_write("a.xml", b"x", 1) is None
        assert index.record_delete("a.xml", True) is None


class TestJsonFileIndex:
    """Tests for JsonFileIndex."""

    def test_load_empty(self, json_index):
        assert json_index.load() == {}
        assert json_index._loaded

    def test_record_write_persists(self, json_index):
        json_index.record_write("options/a.xml", b"hello world", 5)

        data = json.loads(json_index.index_file.read_text())
        entry = data["files"]["options/a.xml"]
        assert entry["size"] == 5
        # md5 of b"hello"
        assert entry["md5"] == "5d41402abc4b2a76b9719d911017c592"

    def test_record_delete_file(self, json_index):
        json_index.record_write("a.xml", b"x", 1)
        json_index.record_write("b.xml", b"y", 1)

        json_index.record_delete("a.xml", True)

        assert set(json_index.entries()) == {"b.xml"}

    def test_record_delete_directory_removes_children(self, json_index):
        json_index.record_write("colors/dark.icls", b"1", 1)
        json_index.record_write("colors/light.icls", b"2", 1)
        json_index.record_write("colorsettings.xml", b"3", 1)

        json_index.record_delete("colors", False)

        assert set(json_index.entries()) == {"colorsettings.xml"}

    def test_reload_from_disk(self, json_index):
        json_index.record_write("a.xml", b"x", 1)

        reloaded = JsonFileIndex(json_index.index_file)

        assert set(reloaded.entries()) == {"a.xml"}

    def test_corrupt_index_loads_empty(self, json_index):
        json_index.index_file.write_text("{not json")

        assert json_index.load() == {}

    def test_tracks_manager_state(self, temp_dir, json_index):
        manager = RepositoryManager(json_index, root=temp_dir / "repository")

        manager.write("options/a.xml", b"1")
        manager.write("options/b.xml", b"2")
        manager.delete("options/a.xml")

        assert set(json_index.entries()) == {"options/b.xml"}
        assert manager.list_children("options") == ["b.xml"]
