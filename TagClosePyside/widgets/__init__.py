"""Reusable PySide widgets shared across projects."""

from .code_editor import CodeEditor

__all__ = ["CodeEditor"]
