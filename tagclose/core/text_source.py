"""Host text-surface contract and a plain in-memory implementation."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .positions import CursorPosition


@runtime_checkable
class TextSource(Protocol):
    def text_in_range(self, start: CursorPosition, end: CursorPosition) -> str: ...

    def insert_text(self, position: CursorPosition, text: str) -> None: ...


class TextBuffer:
    """Line-based text buffer implementing :class:`TextSource`.

    Positions past the end of a line or of the buffer are clamped, matching
    how editor surfaces treat out-of-range points.
    """

    def __init__(self, text: str = "", cursors: list[CursorPosition] | None = None) -> None:
        self._lines: list[str] = str(text or "").split("\n")
        self._cursors: list[CursorPosition] = list(cursors or [])

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    def line_count(self) -> int:
        return len(self._lines)

    def line(self, row: int) -> str:
        if 0 <= row < len(self._lines):
            return self._lines[row]
        return ""

    def cursor_positions(self) -> list[CursorPosition]:
        return list(self._cursors)

    def set_cursor_positions(self, cursors: list[CursorPosition]) -> None:
        self._cursors = [self.clamp(c) for c in cursors]

    def clamp(self, position: CursorPosition) -> CursorPosition:
        last_row = len(self._lines) - 1
        if position.row > last_row:
            return CursorPosition(last_row, len(self._lines[last_row]))
        return CursorPosition(position.row, min(position.column, len(self._lines[position.row])))

    def text_in_range(self, start: CursorPosition, end: CursorPosition) -> str:
        start = self.clamp(start)
        end = self.clamp(end)
        if end < start:
            start, end = end, start
        if start.row == end.row:
            return self._lines[start.row][start.column:end.column]
        parts = [self._lines[start.row][start.column:]]
        parts.extend(self._lines[start.row + 1:end.row])
        parts.append(self._lines[end.row][:end.column])
        return "\n".join(parts)

    def insert_text(self, position: CursorPosition, text: str) -> None:
        if not text:
            return
        position = self.clamp(position)
        line = self._lines[position.row]
        merged = line[:position.column] + text + line[position.column:]
        self._lines[position.row:position.row + 1] = merged.split("\n")


__all__ = ["TextBuffer", "TextSource"]
