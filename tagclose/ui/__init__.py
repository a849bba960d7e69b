from .editor_text_source import EditorTextSource
from .tag_completion_manager import TagCompletionManager

__all__ = ["EditorTextSource", "TagCompletionManager"]
