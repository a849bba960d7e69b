from __future__ import annotations

import concurrent.futures
import logging
import queue
from collections import deque
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any

from PySide6.QtCore import QObject, QTimer, Signal

from tagclose.core import (
    NO_TAG,
    BackwardTagScan,
    CursorPosition,
    MarkupClassifier,
    MarkupReport,
    check_markup,
    closing_tag,
    eligible_cursors,
    is_trigger_cursor,
    shift_pending_cursors,
)
from tagclose.settings_manager import normalize_batch_size, normalize_languages
from tagclose.settings_models import default_tag_close_settings
from tagclose.ui.editor_text_source import EditorTextSource

logger = logging.getLogger(__name__)


@dataclass
class _CompletionBatch:
    editor_key: int
    source: EditorTextSource
    pending: list[CursorPosition]
    batch_size: int
    finished: list[CursorPosition] = field(default_factory=list)
    inserted: int = 0
    cursor: CursorPosition | None = None
    scan: BackwardTagScan | None = None


@dataclass
class _ScanResult:
    batch: _CompletionBatch
    scan: BackwardTagScan
    report: MarkupReport | None


class TagCompletionManager(QObject):
    """Closes the nearest open tag after ``</`` in every attached editor.

    Classifier passes run on a worker pool; their reports are pumped back to
    the UI thread, where the scan either grows or finishes and the closing
    tag is inserted. One batch (one keystroke) per editor runs at a time,
    later keystrokes wait in line behind it.
    """

    tagsCompleted = Signal(object, object)  # editor, list[CursorPosition]
    statusMessage = Signal(str)

    DEFAULTS = default_tag_close_settings()

    def __init__(
        self,
        classify: MarkupClassifier = check_markup,
        executor: Any | None = None,
        parent=None,
    ):
        super().__init__(parent)
        self._classify = classify
        self._owns_executor = executor is None
        self._executor = executor or concurrent.futures.ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="tagclose-scan",
        )
        self._active_futures: set[concurrent.futures.Future] = set()
        self._result_queue: queue.Queue[_ScanResult] = queue.Queue()
        self._result_pump = QTimer(self)
        self._result_pump.setInterval(15)
        self._result_pump.timeout.connect(self.process_pending_results)
        self._result_pump.start()

        self._cfg: dict = deepcopy(self.DEFAULTS)
        self._editors: dict[int, object] = {}
        self._active: dict[int, _CompletionBatch] = {}
        self._waiting: dict[int, deque[object]] = {}

    # ---------- Public API ----------

    def update_settings(self, tag_close_cfg: dict | None):
        merged = deepcopy(self.DEFAULTS)
        if isinstance(tag_close_cfg, dict):
            merged.update(tag_close_cfg)
        merged["enabled"] = bool(merged.get("enabled", True))
        merged["batch_size"] = normalize_batch_size(merged.get("batch_size"))
        merged["languages"] = normalize_languages(merged.get("languages"))
        self._cfg = merged

    def settings(self) -> dict:
        return deepcopy(self._cfg)

    def attach_editor(self, editor) -> None:
        key = id(editor)
        if key in self._editors:
            return
        self._editors[key] = editor
        editor.closingTagRequested.connect(lambda e=editor: self.request_completion(e))
        editor.destroyed.connect(lambda *_args, k=key: self._forget_editor(k))

    def detach_editor(self, editor) -> None:
        key = id(editor)
        if self._editors.pop(key, None) is None:
            return
        try:
            editor.closingTagRequested.disconnect()
        except (RuntimeError, TypeError):
            pass
        self._forget_editor(key)

    def request_completion(self, editor) -> bool:
        """Queue a completion batch for the cursors that just typed ``</``.

        Returns False when nothing was queued.
        """
        if not self._cfg.get("enabled", True):
            return False
        if editor.language_id() not in self._cfg.get("languages", []):
            return False

        key = id(editor)
        if key in self._active:
            # Cursors are read when the batch starts, after the running
            # batch's insertions have landed.
            self._waiting.setdefault(key, deque()).append(editor)
            return True
        return self._start_batch(editor)

    def is_busy(self, editor) -> bool:
        return id(editor) in self._active

    def process_pending_results(self):
        while True:
            try:
                result = self._result_queue.get_nowait()
            except queue.Empty:
                return
            self._on_scan_result(result)

    def shutdown(self):
        try:
            self._result_pump.stop()
        except RuntimeError:
            pass
        for fut in list(self._active_futures):
            fut.cancel()
        self._active.clear()
        self._waiting.clear()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    # ---------- Scheduling ----------

    def _start_batch(self, editor) -> bool:
        source = EditorTextSource(editor)
        cursors = eligible_cursors(source, source.cursor_positions())
        if not cursors:
            return False
        batch = _CompletionBatch(
            editor_key=id(editor),
            source=source,
            pending=cursors,
            batch_size=int(self._cfg["batch_size"]),
        )
        self._active[batch.editor_key] = batch
        self._start_next_cursor(batch)
        return True

    def _start_next_cursor(self, batch: _CompletionBatch):
        if not batch.pending:
            self._finish_batch(batch)
            return
        batch.cursor = batch.pending.pop(0)
        batch.scan = BackwardTagScan(batch.cursor, batch.batch_size)
        self._submit_scan(batch)

    def _submit_scan(self, batch: _CompletionBatch):
        scan = batch.scan
        text = scan.window_text(batch.source)
        if not text:
            self._finish_cursor(batch, scan.finish(NO_TAG))
            return
        future = self._executor.submit(self._classify, text)
        self._active_futures.add(future)
        future.add_done_callback(lambda f, b=batch, s=scan: self._queue_future_result(b, s, f))

    def _queue_future_result(
        self,
        batch: _CompletionBatch,
        scan: BackwardTagScan,
        future: concurrent.futures.Future,
    ):
        report: MarkupReport | None
        try:
            report = future.result()
        except Exception:
            logger.warning("Markup classifier failed for cursor %s", scan.cursor, exc_info=True)
            report = None
        self._active_futures.discard(future)
        self._result_queue.put(_ScanResult(batch=batch, scan=scan, report=report))

    def _on_scan_result(self, result: _ScanResult):
        batch = result.batch
        # Editor closed or manager reset while the classifier was running.
        if self._active.get(batch.editor_key) is not batch or batch.scan is not result.scan:
            return
        if result.report is None:
            self._finish_cursor(batch, result.scan.finish(NO_TAG))
            return
        opening_tag = result.scan.feed(result.report)
        if opening_tag is None:
            self._submit_scan(batch)
            return
        self._finish_cursor(batch, opening_tag)

    def _finish_cursor(self, batch: _CompletionBatch, opening_tag: str):
        cursor = batch.cursor
        batch.scan = None
        batch.cursor = None
        tag = closing_tag(opening_tag)
        if tag and cursor is not None:
            if is_trigger_cursor(batch.source, cursor):
                batch.source.insert_text(cursor, tag)
                batch.pending = shift_pending_cursors(batch.pending, cursor, len(tag))
                cursor = cursor.moved(len(tag))
                batch.inserted += 1
            else:
                logger.debug("Skipping %s: '</' no longer precedes the cursor", cursor)
                cursor = None
        if cursor is not None:
            batch.finished.append(cursor)
        self._start_next_cursor(batch)

    def _finish_batch(self, batch: _CompletionBatch):
        self._active.pop(batch.editor_key, None)
        editor = self._editors.get(batch.editor_key, batch.source.editor)
        if batch.inserted:
            if batch.source.untouched_since_last_insert():
                batch.source.set_cursor_positions(batch.finished)
            self.statusMessage.emit(f"Closed {batch.inserted} tag(s).")
            self.tagsCompleted.emit(editor, list(batch.finished))

        waiting = self._waiting.get(batch.editor_key)
        while waiting and batch.editor_key not in self._active:
            next_editor = waiting.popleft()
            if not waiting:
                self._waiting.pop(batch.editor_key, None)
            self._start_batch(next_editor)

    def _forget_editor(self, key: int):
        self._editors.pop(key, None)
        self._active.pop(key, None)
        self._waiting.pop(key, None)
