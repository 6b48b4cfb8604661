from __future__ import annotations

import re

_ENTITIES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#039;",
}
_PATTERN = re.compile(r"[&<>\"']")


def escape_html(text: object) -> str:
    """Replace the five markup-significant characters with named entities.

    Everything else passes through untouched. ``None`` renders as an empty
    string so optional fields can be interpolated directly.
    """
    if text is None:
        return ""
    return _PATTERN.sub(lambda m: _ENTITIES[m.group(0)], str(text))
