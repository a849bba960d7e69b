"""Tests for the JSON settings layer."""
import json

import pytest

from tagclose.settings_manager import SettingsManager, normalize_batch_size, normalize_languages
from tagclose.settings_models import DEFAULT_BATCH_SIZE, MAX_BATCH_SIZE, default_tag_close_settings
from tagclose.settings_store import JsonSettingsStore, SettingsStoreError, deep_merge_defaults, dot_get, dot_set


def _manager(tmp_path):
    project_root = tmp_path / "project"
    project_root.mkdir(exist_ok=True)
    return SettingsManager(project_root=project_root, ide_app_dir=tmp_path / "app")


class TestDotHelpers:
    def test_get_and_set_nested(self) -> None:
        data: dict = {}
        dot_set(data, "tag_close.batch_size", 4)
        assert data == {"tag_close": {"batch_size": 4}}
        assert dot_get(data, "tag_close.batch_size") == 4
        assert dot_get(data, "tag_close.missing", "x") == "x"

    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ValueError):
            dot_set({}, "", 1)

    def test_merge_keeps_explicit_values(self) -> None:
        merged = deep_merge_defaults({"a": {"b": 1}}, {"a": {"b": 2, "c": 3}, "d": 4})
        assert merged == {"a": {"b": 1, "c": 3}, "d": 4}


class TestJsonSettingsStore:
    def test_missing_file_loads_defaults_and_is_dirty(self, tmp_path) -> None:
        store = JsonSettingsStore(tmp_path / "s.json", {"x": 1})
        assert store.load() == {"x": 1}
        assert store.dirty
        store.save()
        assert json.loads((tmp_path / "s.json").read_text(encoding="utf-8")) == {"x": 1}
        assert not store.dirty

    def test_non_object_root_reported(self, tmp_path) -> None:
        path = tmp_path / "s.json"
        path.write_text("[1, 2]", encoding="utf-8")
        store = JsonSettingsStore(path, {"x": 1})
        assert store.load() == {"x": 1}
        assert "must be a JSON object" in store.last_error

    def test_save_failure_raises(self, tmp_path) -> None:
        store = JsonSettingsStore(tmp_path, {"x": 1})
        store.load()
        with pytest.raises(SettingsStoreError):
            store.save()

    def test_set_reports_change(self, tmp_path) -> None:
        store = JsonSettingsStore(tmp_path / "s.json", {"x": 1}, persistent=False)
        store.load()
        assert not store.set("x", 1)
        assert store.set("x", 2)
        assert store.dirty


class TestNormalizers:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(5, 5), ("7", 7), (0, 1), (-3, 1), (10**9, MAX_BATCH_SIZE), ("abc", DEFAULT_BATCH_SIZE), (None, DEFAULT_BATCH_SIZE), (True, DEFAULT_BATCH_SIZE)],
    )
    def test_batch_size(self, raw, expected) -> None:
        assert normalize_batch_size(raw) == expected

    def test_languages(self) -> None:
        assert normalize_languages([" HTML ", "xml", "html", ""]) == ["html", "xml"]
        assert normalize_languages("html") == default_tag_close_settings()["languages"]


class TestSettingsManager:
    def test_first_load_writes_ide_defaults_only(self, tmp_path) -> None:
        manager = _manager(tmp_path)
        manager.load_all()
        assert manager.ide_path.is_file()
        assert not manager.project_path.exists()
        assert manager.tag_close_settings() == default_tag_close_settings()

    def test_project_override(self, tmp_path) -> None:
        manager = _manager(tmp_path)
        manager.project_path.parent.mkdir(parents=True)
        manager.project_path.write_text(json.dumps({"tag_close": {"batch_size": 3}}), encoding="utf-8")
        manager.load_all()
        assert manager.tag_close_settings()["batch_size"] == 3
        assert manager.get("tag_close.batch_size", scope_preference="ide") == DEFAULT_BATCH_SIZE

    def test_invalid_values_normalized_and_saved(self, tmp_path) -> None:
        manager = _manager(tmp_path)
        manager.ide_path.parent.mkdir(parents=True)
        manager.ide_path.write_text(
            json.dumps({"tag_close": {"batch_size": 0, "languages": "nope"}}),
            encoding="utf-8",
        )
        manager.load_all()
        saved = json.loads(manager.ide_path.read_text(encoding="utf-8"))
        assert saved["tag_close"]["batch_size"] == 1
        assert saved["tag_close"]["languages"] == default_tag_close_settings()["languages"]

    def test_unknown_project_keys_dropped(self, tmp_path) -> None:
        manager = _manager(tmp_path)
        manager.project_path.parent.mkdir(parents=True)
        manager.project_path.write_text(
            json.dumps({"tag_close": {"enabled": 0, "colour": "red"}}),
            encoding="utf-8",
        )
        manager.load_all()
        saved = json.loads(manager.project_path.read_text(encoding="utf-8"))
        assert saved == {"tag_close": {"enabled": False}}
        assert manager.tag_close_settings()["enabled"] is False

    def test_malformed_file_left_untouched(self, tmp_path) -> None:
        manager = _manager(tmp_path)
        manager.ide_path.parent.mkdir(parents=True)
        manager.ide_path.write_text("{not json", encoding="utf-8")
        manager.load_all()
        assert "ide" in manager.load_errors()
        assert manager.ide_path.read_text(encoding="utf-8") == "{not json"
        assert manager.tag_close_settings()["batch_size"] == DEFAULT_BATCH_SIZE

    def test_project_scope_rejects_ide_only_keys(self, tmp_path) -> None:
        manager = _manager(tmp_path)
        manager.load_all()
        with pytest.raises(ValueError):
            manager.set("editor.font_size", 14, "project")

    def test_set_and_save(self, tmp_path) -> None:
        manager = _manager(tmp_path)
        manager.load_all()
        manager.set("tag_close.batch_size", 25, "project")
        assert manager.save_all(only_dirty=True) == {"project"}
        reloaded = _manager(tmp_path)
        reloaded.load_all()
        assert reloaded.tag_close_settings()["batch_size"] == 25
