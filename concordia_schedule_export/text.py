"""
Text cleanup for values coming from the portal page and the open-data API.

- sanitize_text: field cleaner used by the course normalizer
- sanitize_display: same, plus HTML-entity escaping for display contexts
- sanitize_csv_field: single-line, bounded text for CSV export
"""
from __future__ import annotations

import re
from typing import Any

MAX_TEXT_LENGTH = 500
MAX_CSV_FIELD_LENGTH = 255

_CONTROL_CHARS = re.compile(r"[\u0000-\u001f\u007f-\u009f]")
_WHITESPACE_RUN = re.compile(r"\s+")
_HTML_SPECIALS = re.compile(r"[\"'<>&]")

HTML_ENTITIES = {
    '"': "&quot;",
    "'": "&#39;",
    "<": "&lt;",
    ">": "&gt;",
    "&": "&amp;",
}


def sanitize_text(text: Any) -> str:
    """Trim, drop C0/C1 control characters and cap at 500 characters."""
    if not text or not isinstance(text, str):
        return ""
    cleaned = _CONTROL_CHARS.sub("", text.strip())
    return cleaned[:MAX_TEXT_LENGTH]


def sanitize_display(text: Any) -> str:
    """
    Like sanitize_text, but also escape '"', "'", '<', '>' and '&' so the
    value can be dropped into HTML. Truncation happens after escaping.
    """
    if not text or not isinstance(text, str):
        return ""
    cleaned = _CONTROL_CHARS.sub("", text.strip())
    escaped = _HTML_SPECIALS.sub(lambda m: HTML_ENTITIES[m.group(0)], cleaned)
    return escaped[:MAX_TEXT_LENGTH]


def sanitize_csv_field(text: Any) -> str:
    """Collapse CR/LF/tab and whitespace runs to single spaces, cap at 255."""
    if not text or not isinstance(text, str):
        return ""
    return _WHITESPACE_RUN.sub(" ", text.strip())[:MAX_CSV_FIELD_LENGTH]
