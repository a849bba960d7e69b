"""Language id resolution and language-specific key handler dispatch."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Callable

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeyEvent

if TYPE_CHECKING:
    from .code_editor import CodeEditor

# Language-id registry used by language-specific dispatch.
# Add entries here to enable language-level behavior without changing event code.
EXT_TO_LANG: dict[str, str] = {
    ".html": "html",
    ".htm": "html",
    ".xhtml": "html",
    ".shtml": "html",
    ".xml": "xml",
    ".svg": "xml",
    ".xsl": "xml",
    ".xslt": "xml",
    ".xsd": "xml",
    ".xaml": "xml",
    ".plist": "xml",
    ".rss": "xml",
    ".php": "php",
    ".phtml": "php",
    ".jsx": "javascriptreact",
    ".tsx": "typescriptreact",
    ".vue": "vue",
    ".svelte": "svelte",
    ".js": "javascript",
    ".mjs": "javascript",
    ".ts": "typescript",
    ".css": "css",
    ".json": "json",
    ".md": "markdown",
    ".py": "python",
}

NAME_TO_LANG: dict[str, str] = {
    "web.config": "xml",
    "pom.xml": "xml",
}

MARKUP_LANGUAGES: frozenset[str] = frozenset(
    {"html", "xml", "php", "javascriptreact", "typescriptreact", "vue", "svelte"}
)


def get_language_id(file_path: str | Path | None, fallback: str = "plaintext") -> str:
    text = str(file_path or "").strip()
    if not text:
        return str(fallback or "plaintext").strip().lower() or "plaintext"
    name = Path(text).name.lower()
    if name in NAME_TO_LANG:
        return NAME_TO_LANG[name]
    ext = Path(text).suffix.lower()
    if ext in EXT_TO_LANG:
        return EXT_TO_LANG[ext]
    return str(fallback or "plaintext").strip().lower() or "plaintext"


def is_slash_keystroke(event: QKeyEvent) -> bool:
    if bool(event.modifiers() & (Qt.ControlModifier | Qt.AltModifier | Qt.MetaModifier)):
        return False
    if event.isAutoRepeat():
        return False
    return event.text() == "/" or (event.key() == Qt.Key_Slash and not event.text())


def _markup_key_release_handler(editor: "CodeEditor", event: QKeyEvent) -> bool:
    # Key release rather than document change: a "</" produced by paste,
    # undo or backspace must not trigger completion.
    if not is_slash_keystroke(event):
        return False
    editor.closingTagRequested.emit()
    return True


# Dispatch contract:
# - Return True when the language handler acted on the event.
# - Return False to continue generic editor behavior.
KEY_RELEASE_HANDLERS: dict[str, Callable[["CodeEditor", QKeyEvent], bool]] = {
    lang: _markup_key_release_handler for lang in sorted(MARKUP_LANGUAGES)
}


def register_key_release_handler(
    language_id: str,
    handler: Callable[["CodeEditor", QKeyEvent], bool] | None = None,
) -> None:
    lang = str(language_id or "").strip().lower()
    if not lang:
        return
    if handler is None:
        handler = _markup_key_release_handler
    KEY_RELEASE_HANDLERS[lang] = handler


def dispatch_key_release(editor: "CodeEditor", event: QKeyEvent) -> bool:
    handler = KEY_RELEASE_HANDLERS.get(editor.language_id())
    if not callable(handler):
        return False
    return bool(handler(editor, event))


__all__ = [
    "EXT_TO_LANG",
    "KEY_RELEASE_HANDLERS",
    "MARKUP_LANGUAGES",
    "NAME_TO_LANG",
    "dispatch_key_release",
    "get_language_id",
    "is_slash_keystroke",
    "register_key_release_handler",
]
