from __future__ import annotations

from typing import Iterable

from .positions import CursorPosition
from .text_source import TextSource

TRIGGER = "</"


def is_trigger_cursor(source: TextSource, cursor: CursorPosition) -> bool:
    if cursor.column < len(TRIGGER):
        return False
    start = CursorPosition(cursor.row, cursor.column - len(TRIGGER))
    return source.text_in_range(start, cursor) == TRIGGER


def eligible_cursors(source: TextSource, positions: Iterable[CursorPosition]) -> list[CursorPosition]:
    """Cursors that just completed ``</``, top of buffer first.

    Rows are processed in ascending order so an insertion never shifts a
    cursor that is still waiting on an earlier row.
    """
    eligible = {cursor for cursor in positions if is_trigger_cursor(source, cursor)}
    return sorted(eligible)


__all__ = ["TRIGGER", "eligible_cursors", "is_trigger_cursor"]
