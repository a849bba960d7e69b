"""``TextSource`` adapter over a ``CodeEditor`` document."""

from __future__ import annotations

from PySide6.QtGui import QTextCursor, QTextDocument

from tagclose.core import CursorPosition

_PARAGRAPH_SEPARATOR = "\u2029"


class EditorTextSource:
    """Row/column view of an editor's ``QTextDocument``.

    Insertions made within one completion batch share an undo step as long
    as nothing else edited the document in between.
    """

    def __init__(self, editor) -> None:
        self.editor = editor
        self._joinable_revision: int | None = None

    @property
    def document(self) -> QTextDocument:
        return self.editor.document()

    def offset_for(self, position: CursorPosition) -> int:
        doc = self.document
        block = doc.findBlockByNumber(position.row)
        if not block.isValid():
            return max(0, int(doc.characterCount()) - 1)
        line_length = max(0, int(block.length()) - 1)
        return int(block.position()) + min(position.column, line_length)

    def position_for(self, offset: int) -> CursorPosition:
        doc = self.document
        limit = max(0, int(doc.characterCount()) - 1)
        offset = max(0, min(limit, int(offset)))
        block = doc.findBlock(offset)
        return CursorPosition(block.blockNumber(), offset - int(block.position()))

    def text_in_range(self, start: CursorPosition, end: CursorPosition) -> str:
        start_offset = self.offset_for(start)
        end_offset = self.offset_for(end)
        if end_offset <= start_offset:
            return ""
        cursor = QTextCursor(self.document)
        cursor.setPosition(start_offset)
        cursor.setPosition(end_offset, QTextCursor.KeepAnchor)
        return cursor.selectedText().replace(_PARAGRAPH_SEPARATOR, "\n")

    def insert_text(self, position: CursorPosition, text: str) -> None:
        if not text:
            return
        doc = self.document
        cursor = QTextCursor(doc)
        cursor.setPosition(self.offset_for(position))
        if self._joinable_revision is not None and self._joinable_revision == doc.revision():
            cursor.joinPreviousEditBlock()
        else:
            cursor.beginEditBlock()
        try:
            cursor.insertText(text)
        finally:
            cursor.endEditBlock()
        self._joinable_revision = doc.revision()

    def untouched_since_last_insert(self) -> bool:
        return self._joinable_revision is not None and self._joinable_revision == self.document.revision()

    def cursor_positions(self) -> list[CursorPosition]:
        return [self.position_for(offset) for offset in self.editor.cursor_offsets()]

    def set_cursor_positions(self, positions: list[CursorPosition]) -> None:
        self.editor.set_cursor_offsets([self.offset_for(position) for position in positions])


__all__ = ["EditorTextSource"]
