from __future__ import annotations

import re

_BRACKETS_RE = re.compile(r"[<>]")


def closing_tag(opening_tag: str) -> str:
    """Turn ``<div class="x">`` into ``div>``.

    The leading ``</`` is already in the buffer, so only the name and the
    trailing bracket are returned. Empty input yields an empty string.
    The name ends at the first space only, so an opening tag that wraps
    right after its name keeps the line break: ``<div\\n  a>`` gives
    ``div\\n>``.
    """
    if not opening_tag:
        return ""
    name = opening_tag.split(" ", 1)[0]
    return _BRACKETS_RE.sub("", name) + ">"


__all__ = ["closing_tag"]
