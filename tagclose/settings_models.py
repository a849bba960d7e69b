from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, TypedDict

SettingsScope = Literal["project", "ide"]

DEFAULT_BATCH_SIZE = 10
MAX_BATCH_SIZE = 10000
DEFAULT_TAG_CLOSE_LANGUAGES = (
    "html",
    "xml",
    "php",
    "javascriptreact",
    "typescriptreact",
    "vue",
    "svelte",
)


class TagCloseSettings(TypedDict, total=False):
    enabled: bool
    batch_size: int  # rows added to the backward scan per classifier pass
    languages: list[str]


class IdeEditorSettings(TypedDict, total=False):
    font_family: str
    font_size: int
    indent_width: int


class IdeSettings(TypedDict, total=False):
    tag_close: TagCloseSettings
    editor: IdeEditorSettings


class ProjectSettings(TypedDict, total=False):
    tag_close: TagCloseSettings


@dataclass(slots=True, frozen=True)
class SettingsPaths:
    project_root: Path
    ide_app_dir: Path
    project_filename: str = ".tagclose/project.json"
    ide_filename: str = "settings.json"
    project_file: Path = field(init=False)
    ide_file: Path = field(init=False)

    def __post_init__(self) -> None:
        project_root = Path(self.project_root).expanduser().resolve()
        ide_app_dir = Path(self.ide_app_dir).expanduser().resolve()
        object.__setattr__(self, "project_root", project_root)
        object.__setattr__(self, "ide_app_dir", ide_app_dir)
        object.__setattr__(self, "project_file", project_root / self.project_filename)
        object.__setattr__(self, "ide_file", ide_app_dir / self.ide_filename)


def default_tag_close_settings() -> TagCloseSettings:
    return {
        "enabled": True,
        "batch_size": DEFAULT_BATCH_SIZE,
        "languages": list(DEFAULT_TAG_CLOSE_LANGUAGES),
    }


def default_ide_settings() -> IdeSettings:
    return {
        "tag_close": default_tag_close_settings(),
        "editor": {
            "font_family": "Monospace",
            "font_size": 10,
            "indent_width": 4,
        },
    }


def default_project_settings() -> ProjectSettings:
    # Project files only carry overrides.
    return {}
