"""Closing-tag resolution engine, free of any UI toolkit."""

from .completion import complete_closing_tags
from .cursor_gate import TRIGGER, eligible_cursors, is_trigger_cursor
from .markup_check import BALANCED, MarkupClassifier, MarkupReport, TagRecord, check_markup
from .positions import CursorPosition, ScanWindow, shift_pending_cursors
from .tag_closer import closing_tag
from .tag_resolver import NO_TAG, BackwardTagScan, resolve_opening_tag, validate_batch_size
from .text_source import TextBuffer, TextSource

__all__ = [
    "BALANCED",
    "NO_TAG",
    "TRIGGER",
    "BackwardTagScan",
    "CursorPosition",
    "MarkupClassifier",
    "MarkupReport",
    "ScanWindow",
    "TagRecord",
    "TextBuffer",
    "TextSource",
    "check_markup",
    "closing_tag",
    "complete_closing_tags",
    "eligible_cursors",
    "is_trigger_cursor",
    "resolve_opening_tag",
    "shift_pending_cursors",
    "validate_batch_size",
]
