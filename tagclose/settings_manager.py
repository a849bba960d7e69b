from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any

from tagclose.settings_models import (
    DEFAULT_BATCH_SIZE,
    MAX_BATCH_SIZE,
    SettingsPaths,
    SettingsScope,
    TagCloseSettings,
    default_ide_settings,
    default_project_settings,
    default_tag_close_settings,
)
from tagclose.settings_store import JsonSettingsStore, ScopedSettingsStores, deep_merge_defaults

# Keys a project file may override; everything else is IDE-wide.
PROJECT_OVERRIDE_KEYS: set[str] = {
    "tag_close.enabled",
    "tag_close.batch_size",
    "tag_close.languages",
}


def normalize_batch_size(value: object, default: int = DEFAULT_BATCH_SIZE) -> int:
    if isinstance(value, bool):
        return default
    try:
        return max(1, min(MAX_BATCH_SIZE, int(value)))
    except (TypeError, ValueError):
        return default


def normalize_languages(value: object) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return list(default_tag_close_settings()["languages"])
    out: list[str] = []
    for item in value:
        lang = str(item or "").strip().lower()
        if lang and lang not in out:
            out.append(lang)
    return out


class SettingsManager:
    def __init__(
        self,
        project_root: str | Path,
        ide_app_dir: str | Path,
        *,
        project_filename: str = ".tagclose/project.json",
        ide_filename: str = "settings.json",
        project_persistent: bool = True,
    ) -> None:
        self.paths = SettingsPaths(
            project_root=Path(project_root),
            ide_app_dir=Path(ide_app_dir),
            project_filename=project_filename,
            ide_filename=ide_filename,
        )
        self.project_store = JsonSettingsStore(
            self.paths.project_file,
            default_project_settings(),
            persistent=project_persistent,
        )
        self.ide_store = JsonSettingsStore(self.paths.ide_file, default_ide_settings())
        self.scoped_stores = ScopedSettingsStores(
            {
                "project": self.project_store,
                "ide": self.ide_store,
            }
        )

    @property
    def project_path(self) -> Path:
        return self.paths.project_file

    @property
    def ide_path(self) -> Path:
        return self.paths.ide_file

    def load_all(self) -> None:
        self.scoped_stores.load_all()
        self._normalize_ide_settings()
        self._normalize_project_settings()
        if self.scoped_stores.dirty_scopes():
            self.save_all(only_dirty=True)

    def save_all(
        self,
        scopes: set[SettingsScope] | None = None,
        *,
        only_dirty: bool = False,
    ) -> set[SettingsScope]:
        target_scopes = set(scopes) if scopes is not None else {"project", "ide"}
        # Never overwrite a malformed file with regenerated defaults.
        for scope in ("project", "ide"):
            if self.scoped_stores.store_for(scope).last_error:
                target_scopes.discard(scope)
        # An empty project file is not worth creating.
        if not self.project_store.data and not self.project_path.exists():
            target_scopes.discard("project")
        if not target_scopes:
            return set()
        return self.scoped_stores.save_all(scopes=target_scopes, only_dirty=only_dirty)

    def load_errors(self) -> dict[SettingsScope, str]:
        errors: dict[SettingsScope, str] = {}
        for scope in ("project", "ide"):
            error = self.scoped_stores.store_for(scope).last_error
            if isinstance(error, str) and error.strip():
                errors[scope] = error.strip()
        return errors

    def get(
        self,
        key: str,
        scope_preference: SettingsScope | None = None,
        *,
        default: Any = None,
    ) -> Any:
        if scope_preference is not None:
            return self.scoped_stores.store_for(scope_preference).get(key, default)
        if key in PROJECT_OVERRIDE_KEYS:
            project_val = self.project_store.get(key, None)
            if project_val is not None:
                return project_val
        return self.ide_store.get(key, default)

    def set(self, key: str, value: Any, scope: SettingsScope) -> None:
        if scope == "project" and key not in PROJECT_OVERRIDE_KEYS:
            raise ValueError(f"'{key}' cannot be overridden per project.")
        self.scoped_stores.store_for(scope).set(key, value)

    def tag_close_settings(self) -> TagCloseSettings:
        """Effective ``tag_close`` settings with project overrides applied."""
        return {
            "enabled": bool(self.get("tag_close.enabled", default=True)),
            "batch_size": normalize_batch_size(self.get("tag_close.batch_size")),
            "languages": normalize_languages(self.get("tag_close.languages")),
        }

    def _normalize_ide_settings(self) -> bool:
        data = self.ide_store.data
        before = deepcopy(data)

        tag_close = data.get("tag_close")
        if not isinstance(tag_close, dict):
            tag_close = {}
        tag_close = deep_merge_defaults(tag_close, default_tag_close_settings())
        tag_close["enabled"] = bool(tag_close.get("enabled", True))
        tag_close["batch_size"] = normalize_batch_size(tag_close.get("batch_size"))
        tag_close["languages"] = normalize_languages(tag_close.get("languages"))
        data["tag_close"] = tag_close

        editor = data.get("editor")
        if not isinstance(editor, dict):
            editor = {}
        editor = deep_merge_defaults(editor, default_ide_settings()["editor"])
        editor["font_family"] = str(editor.get("font_family") or "").strip() or "Monospace"
        try:
            editor["font_size"] = max(6, min(48, int(editor.get("font_size", 10))))
        except (TypeError, ValueError):
            editor["font_size"] = 10
        try:
            editor["indent_width"] = max(1, min(16, int(editor.get("indent_width", 4))))
        except (TypeError, ValueError):
            editor["indent_width"] = 4
        data["editor"] = editor

        changed = data != before
        if changed:
            self.ide_store.dirty = True
        return changed

    def _normalize_project_settings(self) -> bool:
        data = self.project_store.data
        before = deepcopy(data)

        tag_close = data.get("tag_close")
        if tag_close is not None and not isinstance(tag_close, dict):
            data.pop("tag_close", None)
        elif isinstance(tag_close, dict):
            if "enabled" in tag_close:
                tag_close["enabled"] = bool(tag_close["enabled"])
            if "batch_size" in tag_close:
                tag_close["batch_size"] = normalize_batch_size(tag_close["batch_size"])
            if "languages" in tag_close:
                tag_close["languages"] = normalize_languages(tag_close["languages"])
            for key in list(tag_close):
                if f"tag_close.{key}" not in PROJECT_OVERRIDE_KEYS:
                    del tag_close[key]

        changed = data != before
        if changed:
            self.project_store.dirty = True
        return changed
