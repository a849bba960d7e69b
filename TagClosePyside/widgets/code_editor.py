from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QRect, Qt, Signal
from PySide6.QtGui import QColor, QFont, QKeyEvent, QPainter, QTextCursor
from PySide6.QtWidgets import QPlainTextEdit

from TagClosePyside.widgets.keypress_handlers import dispatch_key_release, get_language_id

logger = logging.getLogger(__name__)

_EXTRA_CURSOR_COLOR = QColor("#D6A853")
_EXTRA_CURSOR_WIDTH = 2


class CodeEditor(QPlainTextEdit):
    """Plain-text editor with secondary cursors and per-language key dispatch.

    The primary cursor is the widget's own text cursor. Secondary cursors are
    ``QTextCursor`` objects on the same document, so Qt keeps their offsets in
    step with every edit. Ctrl+Alt+Click adds one, Escape drops them all.
    """

    closingTagRequested = Signal()
    extraCursorsChanged = Signal(int)  # secondary cursor count

    def __init__(self, parent=None):
        super().__init__(parent)
        self._file_path: str | None = None
        self._language_override: str | None = None
        self._extra_cursors: list[QTextCursor] = []
        self.use_tabs = False
        self.indent_width = 4
        self.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)
        self.document().contentsChanged.connect(self.viewport().update)

    # ---------- File / language ----------

    def set_file_path(self, file_path: str | Path | None) -> None:
        self._file_path = str(file_path) if file_path else None

    def file_path(self) -> str | None:
        return self._file_path

    def set_language_id(self, language_id: str | None) -> None:
        text = str(language_id or "").strip().lower()
        self._language_override = text or None

    def language_id(self) -> str:
        if self._language_override:
            return self._language_override
        return get_language_id(self._file_path, fallback="plaintext")

    def set_editor_font_preferences(self, *, family: str | None = None, point_size: int | None = None) -> None:
        font = self.font()
        if isinstance(family, str) and family.strip():
            font.setFamily(family.strip())
        font.setStyleHint(QFont.StyleHint.Monospace)
        if point_size is not None:
            try:
                size = max(1, int(point_size))
            except (TypeError, ValueError):
                size = int(font.pointSize()) if int(font.pointSize()) > 0 else 10
            font.setPointSize(size)
        self.setFont(font)

    # ---------- Cursors ----------

    def all_cursors(self) -> list[QTextCursor]:
        """Primary cursor first, then secondary cursors; duplicates dropped."""
        cursors = [self.textCursor()]
        seen = {cursors[0].position()}
        for cursor in self._extra_cursors:
            if cursor.position() in seen:
                continue
            seen.add(cursor.position())
            cursors.append(cursor)
        return cursors

    def cursor_offsets(self) -> list[int]:
        return [int(cursor.position()) for cursor in self.all_cursors()]

    def set_cursor_offsets(self, offsets: list[int]) -> None:
        if not offsets:
            return
        limit = max(0, int(self.document().characterCount()) - 1)
        clamped = [max(0, min(limit, int(offset))) for offset in offsets]
        main = self.textCursor()
        main.setPosition(clamped[0])
        self.setTextCursor(main)
        self._extra_cursors = []
        for offset in clamped[1:]:
            self._append_extra_cursor(offset)
        self._extra_cursors_updated()

    def add_cursor_at_offset(self, offset: int) -> None:
        limit = max(0, int(self.document().characterCount()) - 1)
        self._append_extra_cursor(max(0, min(limit, int(offset))))
        self._extra_cursors_updated()

    def clear_extra_cursors(self) -> None:
        if not self._extra_cursors:
            return
        self._extra_cursors = []
        self._extra_cursors_updated()

    def _append_extra_cursor(self, offset: int) -> None:
        if offset == self.textCursor().position():
            return
        if any(cursor.position() == offset for cursor in self._extra_cursors):
            return
        cursor = QTextCursor(self.document())
        cursor.setPosition(offset)
        self._extra_cursors.append(cursor)

    def _extra_cursors_updated(self) -> None:
        self.extraCursorsChanged.emit(len(self._extra_cursors))
        self.viewport().update()

    def insert_at_all_cursors(self, text: str) -> None:
        cursors = self.all_cursors()
        main = cursors[0]
        main.beginEditBlock()
        try:
            for cursor in cursors:
                if cursor.hasSelection():
                    cursor.removeSelectedText()
                cursor.insertText(text)
        finally:
            main.endEditBlock()
        self.setTextCursor(main)
        self.ensureCursorVisible()

    def delete_previous_at_all_cursors(self) -> None:
        cursors = self.all_cursors()
        main = cursors[0]
        main.beginEditBlock()
        try:
            for cursor in cursors:
                cursor.deletePreviousChar()
        finally:
            main.endEditBlock()
        self.setTextCursor(main)

    # ---------- Events ----------

    def mousePressEvent(self, event):
        mods = event.modifiers()
        if (
            event.button() == Qt.LeftButton
            and bool(mods & Qt.ControlModifier)
            and bool(mods & Qt.AltModifier)
        ):
            pos = event.position().toPoint() if hasattr(event, "position") else event.pos()
            self.add_cursor_at_offset(self.cursorForPosition(pos).position())
            event.accept()
            return
        self.clear_extra_cursors()
        super().mousePressEvent(event)

    def indent_text(self) -> str:
        return "\t" if self.use_tabs else " " * max(1, int(self.indent_width))

    def keyPressEvent(self, event: QKeyEvent):
        if event.key() == Qt.Key_Tab and event.modifiers() == Qt.NoModifier:
            self.insert_at_all_cursors(self.indent_text())
            event.accept()
            return

        if not self._extra_cursors:
            super().keyPressEvent(event)
            return

        key = event.key()
        text = event.text()
        mods = event.modifiers()

        if key == Qt.Key_Escape:
            self.clear_extra_cursors()
            event.accept()
            return

        if key == Qt.Key_Backspace and not (mods & (Qt.ControlModifier | Qt.AltModifier | Qt.MetaModifier)):
            self.delete_previous_at_all_cursors()
            event.accept()
            return

        if key in (Qt.Key_Return, Qt.Key_Enter):
            self.insert_at_all_cursors("\n")
            event.accept()
            return

        if text and text.isprintable() and not (mods & (Qt.ControlModifier | Qt.AltModifier | Qt.MetaModifier)):
            self.insert_at_all_cursors(text)
            event.accept()
            return

        # Navigation and shortcuts act on the primary cursor only.
        self.clear_extra_cursors()
        super().keyPressEvent(event)

    def keyReleaseEvent(self, event: QKeyEvent):
        super().keyReleaseEvent(event)
        self._dispatch_language_key_release(event)

    def _dispatch_language_key_release(self, event: QKeyEvent) -> bool:
        try:
            return bool(dispatch_key_release(self, event))
        except Exception:
            logger.exception("Key release handler failed for %s", self.language_id())
            return False

    def paintEvent(self, event):
        super().paintEvent(event)
        if not self._extra_cursors:
            return
        painter = QPainter(self.viewport())
        try:
            for cursor in self._extra_cursors:
                rect = self.cursorRect(cursor)
                painter.fillRect(
                    QRect(rect.left(), rect.top(), _EXTRA_CURSOR_WIDTH, rect.height()),
                    _EXTRA_CURSOR_COLOR,
                )
        finally:
            painter.end()


__all__ = ["CodeEditor"]
