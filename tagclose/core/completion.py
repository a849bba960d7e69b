from __future__ import annotations

import logging
from typing import Iterable

from .cursor_gate import eligible_cursors
from .markup_check import MarkupClassifier, check_markup
from .positions import CursorPosition, shift_pending_cursors
from .tag_closer import closing_tag
from .tag_resolver import resolve_opening_tag, validate_batch_size
from .text_source import TextSource

logger = logging.getLogger(__name__)


def complete_closing_tags(
    source: TextSource,
    positions: Iterable[CursorPosition],
    *,
    batch_size: int,
    classify: MarkupClassifier = check_markup,
) -> list[CursorPosition]:
    """Close the nearest open tag at every cursor that just typed ``</``.

    Cursors are handled one at a time, top of buffer first; each insertion is
    applied to the cursors still waiting before the next search starts.
    Returns where each handled cursor ends up.
    """
    validate_batch_size(batch_size)
    pending = eligible_cursors(source, positions)
    finished: list[CursorPosition] = []
    while pending:
        cursor = pending.pop(0)
        tag = closing_tag(resolve_opening_tag(source, cursor, batch_size, classify))
        if tag:
            source.insert_text(cursor, tag)
            pending = shift_pending_cursors(pending, cursor, len(tag))
            cursor = cursor.moved(len(tag))
            logger.debug("Inserted %r at row %d", tag, cursor.row)
        finished.append(cursor)
    return finished


__all__ = ["complete_closing_tags"]
