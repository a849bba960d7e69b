"""Buffer coordinates, scan windows and insertion drift."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable


@dataclass(frozen=True, order=True)
class CursorPosition:
    row: int
    column: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "row", max(0, int(self.row)))
        object.__setattr__(self, "column", max(0, int(self.column)))

    def moved(self, columns: int) -> CursorPosition:
        return replace(self, column=self.column + int(columns))


@dataclass(frozen=True)
class ScanWindow:
    """Half-open buffer range ``[(start_row, 0), end)``."""

    start_row: int
    end: CursorPosition

    @property
    def start(self) -> CursorPosition:
        return CursorPosition(self.start_row, 0)

    @property
    def reaches_buffer_start(self) -> bool:
        return self.start_row == 0


def shift_pending_cursors(
    pending: Iterable[CursorPosition],
    insert_at: CursorPosition,
    length: int,
) -> list[CursorPosition]:
    """Return ``pending`` adjusted for ``length`` characters inserted at ``insert_at``.

    Only cursors on the insertion row at or after the insertion column move;
    a single-line insertion never changes another cursor's row.
    """
    if length <= 0:
        return list(pending)
    out: list[CursorPosition] = []
    for cursor in pending:
        if cursor.row == insert_at.row and cursor.column >= insert_at.column:
            out.append(cursor.moved(length))
        else:
            out.append(cursor)
    return out


__all__ = [
    "CursorPosition",
    "ScanWindow",
    "shift_pending_cursors",
]
