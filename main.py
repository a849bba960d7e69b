import logging
import os
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

from tagclose.settings_manager import SettingsManager
from tagclose.ui.editor_window import TagCloseWindow

APP_DIR_ENV = "TAGCLOSE_APP_DIR"
LOG_LEVEL_ENV = "TAGCLOSE_LOG_LEVEL"
SETTINGS_DIRNAME = ".tagclose"


def _default_app_dir() -> Path:
    override = os.environ.get(APP_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / SETTINGS_DIRNAME


def _configure_logging() -> None:
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").strip().upper() or "WARNING"
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _split_startup_args(argv: list[str]) -> tuple[Path | None, list[str]]:
    file_arg: Path | None = None
    qt_args: list[str] = []
    for arg in argv:
        if file_arg is None and not arg.startswith("-"):
            file_arg = Path(arg).expanduser()
            continue
        qt_args.append(arg)
    return file_arg, qt_args


def _load_settings_manager(project_root: Path) -> SettingsManager:
    manager = SettingsManager(project_root=project_root, ide_app_dir=_default_app_dir())
    manager.load_all()
    for scope, error in manager.load_errors().items():
        logging.getLogger(__name__).warning("Using defaults for %s settings: %s", scope, error)
    return manager


if __name__ == "__main__":
    _configure_logging()
    file_arg, qt_args = _split_startup_args(sys.argv[1:])
    project_root = file_arg.parent if file_arg is not None and file_arg.parent.is_dir() else Path.cwd()

    app = QApplication([sys.argv[0], *qt_args])
    app.setStyle("Fusion")
    app.setApplicationName(TagCloseWindow.APP_NAME)

    window = TagCloseWindow(_load_settings_manager(project_root))
    if file_arg is not None and file_arg.is_file():
        window.open_file(file_arg)
    window.show()
    sys.exit(app.exec())
