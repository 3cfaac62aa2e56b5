from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(slots=True, frozen=True)
class ParsedDate:
    millis: int
    # set for inputs with day or second precision, the end bound then covers the whole second
    needs_rounding: bool


def _to_millis(value: datetime) -> int:
    return int(value.timestamp()) * 1000


def parse_date(value: str, *, end_of_range: bool = False) -> ParsedDate | None:
    """Parse epoch milliseconds, 'YYYY-MM-DD HH:MM:SS' or 'YYYY-MM-DD' (local time).

    A bare day used as the end of a range is taken as 23:59:59 of that day.
    Returns None when the value cannot be parsed.
    """
    text = (value or "").strip()
    if not text:
        return None
    if text.isdigit():
        return ParsedDate(millis=int(text), needs_rounding=False)
    for fmt in (DATETIME_FORMAT, DATE_FORMAT):
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if fmt == DATE_FORMAT and end_of_range:
            parsed = datetime.combine(parsed.date(), time(23, 59, 59))
        try:
            return ParsedDate(millis=_to_millis(parsed), needs_rounding=True)
        except (OverflowError, OSError, ValueError):
            return None
    return None
