from __future__ import annotations

import re
from datetime import datetime

_FORBIDDEN_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_RESERVED_NAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"]
    + [f"COM{i}" for i in range(1, 10)]
    + [f"LPT{i}" for i in range(1, 10)]
)


def sanitize_filename(value: str | None) -> str:
    """Return a name that is safe on common filesystems, or '' when there is none."""
    if not value:
        return ""
    cleaned = _FORBIDDEN_CHARS.sub("_", value)
    # trailing dots and spaces are dropped silently on Windows
    cleaned = cleaned.rstrip(" .")
    if not cleaned or cleaned in {".", ".."}:
        return ""
    if cleaned.split(".", 1)[0].upper() in _RESERVED_NAMES:
        return ""
    return cleaned


def millis_to_seconds(value: int | float) -> int:
    return int(value) // 1000


def local_datetime(millis: int | float) -> datetime:
    return datetime.fromtimestamp(millis_to_seconds(millis))
