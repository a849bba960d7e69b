"""Backward search for the nearest unclosed opening tag.

The search is a small state machine: :class:`BackwardTagScan` hands out the
window to classify next and consumes the classifier's report, either
finishing with a result or growing the window by one batch of rows. Drivers
decide how the report is obtained (inline here, on a worker pool in the UI).
"""

from __future__ import annotations

import logging

from .markup_check import MarkupClassifier, MarkupReport, check_markup
from .positions import CursorPosition, ScanWindow
from .text_source import TextSource

logger = logging.getLogger(__name__)

NO_TAG = ""


def validate_batch_size(batch_size: object) -> int:
    if isinstance(batch_size, bool) or not isinstance(batch_size, int):
        raise ValueError(f"Batch size must be a positive integer, got {batch_size!r}.")
    if batch_size <= 0:
        raise ValueError(f"Batch size must be a positive integer, got {batch_size}.")
    return batch_size


class BackwardTagScan:
    def __init__(self, cursor: CursorPosition, batch_size: int) -> None:
        self.cursor = cursor
        self.batch_size = validate_batch_size(batch_size)
        self.total_rows = self.batch_size
        self.classifier_calls = 0
        self.result: str | None = None
        # Leave out the "</" the user just typed.
        self._end = CursorPosition(cursor.row, max(0, cursor.column - 2))

    @property
    def finished(self) -> bool:
        return self.result is not None

    def window(self) -> ScanWindow:
        return ScanWindow(start_row=max(0, self.cursor.row - self.total_rows), end=self._end)

    def finish(self, result: str) -> str:
        self.result = result
        return result

    def window_text(self, source: TextSource) -> str:
        window = self.window()
        return source.text_in_range(window.start, window.end)

    def feed(self, report: MarkupReport) -> str | None:
        """Consume the report for the current window.

        Returns the final result, or ``None`` when the window grew and must be
        classified again.
        """
        if self.finished:
            return self.result
        self.classifier_calls += 1
        window = self.window()

        candidates = [record for record in report.unclosed if not record.is_closing]
        if candidates:
            logger.debug(
                "Scan at %s found %r after %d call(s)",
                self.cursor,
                candidates[-1].code,
                self.classifier_calls,
            )
            return self.finish(candidates[-1].code)

        if window.reaches_buffer_start:
            return self.finish(NO_TAG)

        self.total_rows += self.batch_size
        logger.debug("Scan at %s growing to %d rows", self.cursor, self.total_rows)
        return None


def resolve_opening_tag(
    source: TextSource,
    cursor: CursorPosition,
    batch_size: int,
    classify: MarkupClassifier = check_markup,
) -> str:
    """Source text of the nearest opening tag left open before ``cursor``, or ``""``."""
    scan = BackwardTagScan(cursor, batch_size)
    while not scan.finished:
        text = scan.window_text(source)
        if not text:
            return scan.finish(NO_TAG)
        scan.feed(classify(text))
    return scan.result or NO_TAG


__all__ = ["NO_TAG", "BackwardTagScan", "resolve_opening_tag", "validate_batch_size"]
