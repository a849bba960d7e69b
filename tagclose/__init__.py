"""Closing-tag completion for markup editors."""

__version__ = "0.1.0"
