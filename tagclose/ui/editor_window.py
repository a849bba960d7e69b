from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import QFileDialog, QMainWindow, QMessageBox

from TagClosePyside.widgets import CodeEditor
from tagclose.settings_manager import SettingsManager
from tagclose.settings_store import SettingsStoreError
from tagclose.ui.tag_completion_manager import TagCompletionManager

logger = logging.getLogger(__name__)


class TagCloseWindow(QMainWindow):
    APP_NAME = "TagClose"
    STATUS_TIMEOUT_MS = 2500

    def __init__(self, settings: SettingsManager, parent=None):
        super().__init__(parent)
        self.settings = settings
        self.editor = CodeEditor(self)
        self.setCentralWidget(self.editor)
        self.resize(900, 640)

        self.tag_completion = TagCompletionManager(parent=self)
        self.tag_completion.statusMessage.connect(
            lambda text: self.statusBar().showMessage(text, self.STATUS_TIMEOUT_MS)
        )
        self.tag_completion.attach_editor(self.editor)
        self.editor.extraCursorsChanged.connect(self._on_extra_cursors_changed)

        self._build_menus()
        self.apply_settings()
        self._update_title()

    def apply_settings(self) -> None:
        self.tag_completion.update_settings(self.settings.tag_close_settings())
        editor_cfg = self.settings.get("editor", scope_preference="ide", default={}) or {}
        self.editor.set_editor_font_preferences(
            family=editor_cfg.get("font_family"),
            point_size=editor_cfg.get("font_size"),
        )
        self.editor.indent_width = int(editor_cfg.get("indent_width", 4))

    def open_file(self, path: str | Path) -> bool:
        file_path = Path(path).expanduser()
        try:
            text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not open %s: %s", file_path, exc)
            QMessageBox.warning(self, self.APP_NAME, f"Could not open '{file_path}':\n{exc}")
            return False
        self.editor.set_file_path(file_path)
        self.editor.setPlainText(text)
        self.editor.document().setModified(False)
        self._update_title()
        return True

    def save_file(self) -> bool:
        path = self.editor.file_path()
        if not path:
            chosen, _ = QFileDialog.getSaveFileName(self, "Save As")
            if not chosen:
                return False
            path = chosen
            self.editor.set_file_path(path)
        try:
            Path(path).write_text(self.editor.toPlainText(), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not save %s: %s", path, exc)
            QMessageBox.warning(self, self.APP_NAME, f"Could not save '{path}':\n{exc}")
            return False
        self.editor.document().setModified(False)
        self._update_title()
        return True

    def closeEvent(self, event):
        self.tag_completion.shutdown()
        try:
            self.settings.save_all(only_dirty=True)
        except SettingsStoreError as exc:
            logger.warning("%s", exc)
        super().closeEvent(event)

    def _build_menus(self) -> None:
        file_menu = self.menuBar().addMenu("&File")

        open_action = QAction("&Open...", self)
        open_action.setShortcut(QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self._prompt_open)
        file_menu.addAction(open_action)

        save_action = QAction("&Save", self)
        save_action.setShortcut(QKeySequence.StandardKey.Save)
        save_action.triggered.connect(self.save_file)
        file_menu.addAction(save_action)

        file_menu.addSeparator()
        quit_action = QAction("&Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

        edit_menu = self.menuBar().addMenu("&Edit")
        toggle_action = QAction("Close Tags After '</'", self)
        toggle_action.setCheckable(True)
        toggle_action.setChecked(bool(self.settings.tag_close_settings().get("enabled", True)))
        toggle_action.toggled.connect(self._set_tag_close_enabled)
        edit_menu.addAction(toggle_action)

    def _prompt_open(self) -> None:
        chosen, _ = QFileDialog.getOpenFileName(self, "Open File")
        if chosen:
            self.open_file(chosen)

    def _set_tag_close_enabled(self, enabled: bool) -> None:
        self.settings.set("tag_close.enabled", bool(enabled), "ide")
        self.apply_settings()

    def _on_extra_cursors_changed(self, count: int) -> None:
        if count:
            self.statusBar().showMessage(f"{count + 1} cursors")
        else:
            self.statusBar().clearMessage()

    def _update_title(self) -> None:
        path = self.editor.file_path()
        name = Path(path).name if path else "untitled"
        self.setWindowTitle(f"{self.APP_NAME} [{name}] ({self.editor.language_id()})")
