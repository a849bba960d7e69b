"""Markup balance classifier.

``check_markup`` reports every tag in a chunk of text that has no partner
inside that same chunk: opening tags never closed, and closing tags whose
opener lies outside the chunk. Records keep document order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Callable


@dataclass(frozen=True)
class TagRecord:
    code: str
    position: int

    @property
    def is_closing(self) -> bool:
        return self.code.startswith("</")


@dataclass(frozen=True)
class MarkupReport:
    unclosed: tuple[TagRecord, ...] = field(default_factory=tuple)

    @property
    def balanced(self) -> bool:
        return not self.unclosed


BALANCED = MarkupReport()

MarkupClassifier = Callable[[str], MarkupReport]


class _UnclosedTagCollector(HTMLParser):
    def __init__(self, text: str) -> None:
        super().__init__(convert_charrefs=False)
        self._text = text
        self._line_starts: list[int] = [0]
        for index, ch in enumerate(text):
            if ch == "\n":
                self._line_starts.append(index + 1)
        self.open_tags: list[tuple[str, TagRecord]] = []
        self.stray_closers: list[TagRecord] = []

    def _offset(self) -> int:
        lineno, column = self.getpos()
        row = max(0, min(len(self._line_starts) - 1, lineno - 1))
        return self._line_starts[row] + column

    def parse_marked_section(self, i, report=1):
        try:
            return super().parse_marked_section(i, report)
        except AssertionError:
            # Unknown "<![name[" keyword: skip the whole section.
            end = self.rawdata.find("]]>", i + 3)
            if end < 0:
                return -1
            return end + 3

    def handle_starttag(self, tag, attrs):
        code = self.get_starttag_text() or f"<{tag}>"
        self.open_tags.append((tag, TagRecord(code=code, position=self._offset())))

    def handle_startendtag(self, tag, attrs):
        # <tag/> closes itself.
        return

    def handle_endtag(self, tag):
        for index in range(len(self.open_tags) - 1, -1, -1):
            if self.open_tags[index][0] == tag:
                del self.open_tags[index]
                return
        offset = self._offset()
        end = self._text.find(">", offset)
        code = self._text[offset:end + 1] if end >= 0 else f"</{tag}>"
        self.stray_closers.append(TagRecord(code=code, position=offset))


def check_markup(text: str) -> MarkupReport:
    """Classify ``text`` as balanced or list the tags left open within it."""
    if not text:
        return BALANCED
    collector = _UnclosedTagCollector(text)
    # No close(): a dangling "<tag" at the end of the chunk stays unparsed.
    collector.feed(text)
    records = [record for _, record in collector.open_tags]
    records.extend(collector.stray_closers)
    if not records:
        return BALANCED
    records.sort(key=lambda record: record.position)
    return MarkupReport(unclosed=tuple(records))


__all__ = [
    "BALANCED",
    "MarkupClassifier",
    "MarkupReport",
    "TagRecord",
    "check_markup",
]
