"""Tests for the Qt-side completion manager and editor adapter."""
import pytest
from PySide6.QtCore import QEvent, Qt
from PySide6.QtGui import QKeyEvent

from tagclose.core import CursorPosition
from tagclose.ui import EditorTextSource, TagCompletionManager
from TagClosePyside.widgets import CodeEditor


def _editor(text: str, offsets: list[int], path: str = "page.html") -> CodeEditor:
    editor = CodeEditor()
    editor.set_file_path(path)
    editor.setPlainText(text)
    editor.set_cursor_offsets(offsets)
    return editor


@pytest.fixture
def manager(qapp, inline_executor):
    mgr = TagCompletionManager(executor=inline_executor)
    yield mgr
    mgr.shutdown()


class TestEditorTextSource:
    def test_rows_and_columns(self, qapp) -> None:
        editor = _editor("<ul>\n  <li>", [0])
        source = EditorTextSource(editor)
        assert source.text_in_range(CursorPosition(0, 1), CursorPosition(1, 4)) == "ul>\n  <l"
        assert source.offset_for(CursorPosition(1, 99)) == 11
        assert source.position_for(7) == CursorPosition(1, 2)

    def test_cursor_positions_include_extra_cursors(self, qapp) -> None:
        editor = _editor("ab\ncd", [1])
        editor.add_cursor_at_offset(4)
        assert EditorTextSource(editor).cursor_positions() == [CursorPosition(0, 1), CursorPosition(1, 1)]

    def test_batch_insertions_share_one_undo_step(self, qapp) -> None:
        editor = _editor("ab\ncd", [0])
        source = EditorTextSource(editor)
        source.insert_text(CursorPosition(0, 1), "X")
        source.insert_text(CursorPosition(1, 1), "Y")
        assert editor.toPlainText() == "aXb\ncYd"
        assert source.untouched_since_last_insert()
        editor.document().undo()
        assert editor.toPlainText() == "ab\ncd"


class TestTagCompletionManager:
    def test_single_cursor(self, manager) -> None:
        editor = _editor('<div class="x">\n  text </', [25])
        assert manager.request_completion(editor)
        manager.process_pending_results()
        assert editor.toPlainText() == '<div class="x">\n  text </div>'
        assert editor.textCursor().position() == 29
        assert not manager.is_busy(editor)

    def test_key_release_triggers_attached_editor(self, manager) -> None:
        editor = _editor("<p>hello </", [11])
        manager.attach_editor(editor)
        editor.keyReleaseEvent(QKeyEvent(QEvent.KeyRelease, Qt.Key_Slash, Qt.NoModifier, "/"))
        manager.process_pending_results()
        assert editor.toPlainText() == "<p>hello </p>"

    def test_multi_cursor_rows(self, manager) -> None:
        text = "<body>\n<span>hello\nworld</\n<p>\npara\nmore</"
        editor = _editor(text, [text.index("world</") + 7])
        editor.add_cursor_at_offset(len(text))
        completed: list[list[CursorPosition]] = []
        manager.tagsCompleted.connect(lambda _editor, cursors: completed.append(cursors))
        assert manager.request_completion(editor)
        manager.process_pending_results()
        assert editor.toPlainText() == "<body>\n<span>hello\nworld</span>\n<p>\npara\nmore</p>"
        assert completed == [[CursorPosition(2, 12), CursorPosition(5, 8)]]
        assert EditorTextSource(editor).cursor_positions() == [CursorPosition(2, 12), CursorPosition(5, 8)]

    def test_scan_grows_in_batches(self, manager, inline_executor) -> None:
        manager.update_settings({"batch_size": 2})
        text = "<table>\n" + "row\n" * 5 + "</"
        editor = _editor(text, [len(text)])
        manager.request_completion(editor)
        manager.process_pending_results()
        assert editor.toPlainText().endswith("</table>")
        assert inline_executor.submitted == 3

    def test_disabled_or_other_language_does_nothing(self, manager) -> None:
        editor = _editor("<p></", [5], path="notes.txt")
        assert not manager.request_completion(editor)
        editor.set_file_path("page.html")
        manager.update_settings({"enabled": False})
        assert not manager.request_completion(editor)
        assert editor.toPlainText() == "<p></"

    def test_settings_not_shared_between_managers(self, manager, inline_executor) -> None:
        manager.settings()["languages"].append("markdown")
        other = TagCompletionManager(executor=inline_executor)
        try:
            assert "markdown" not in manager.settings()["languages"]
            assert "markdown" not in other.settings()["languages"]
            assert "markdown" not in TagCompletionManager.DEFAULTS["languages"]
        finally:
            other.shutdown()

    def test_no_trigger_before_cursor(self, manager, inline_executor) -> None:
        editor = _editor("<p>a/", [5])
        assert not manager.request_completion(editor)
        assert inline_executor.submitted == 0

    def test_classifier_failure_inserts_nothing(self, qapp, inline_executor) -> None:
        def broken(text):
            raise RuntimeError("boom")

        mgr = TagCompletionManager(classify=broken, executor=inline_executor)
        try:
            editor = _editor("<p></", [5])
            assert mgr.request_completion(editor)
            mgr.process_pending_results()
            assert editor.toPlainText() == "<p></"
            assert not mgr.is_busy(editor)
        finally:
            mgr.shutdown()

    def test_edit_during_scan_skips_insertion(self, manager) -> None:
        editor = _editor("<p></", [5])
        assert manager.request_completion(editor)
        editor.setPlainText("<p>changed")
        manager.process_pending_results()
        assert editor.toPlainText() == "<p>changed"

    def test_second_keystroke_waits_for_running_batch(self, manager) -> None:
        editor = _editor("<em></", [6])
        assert manager.request_completion(editor)
        assert manager.is_busy(editor)
        assert manager.request_completion(editor)
        manager.process_pending_results()
        assert editor.toPlainText() == "<em></em>"
        assert not manager.is_busy(editor)

    def test_detached_editor_results_dropped(self, manager) -> None:
        editor = _editor("<p></", [5])
        manager.attach_editor(editor)
        manager.request_completion(editor)
        manager.detach_editor(editor)
        manager.process_pending_results()
        assert editor.toPlainText() == "<p></"
