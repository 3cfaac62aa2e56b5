from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Sequence, Tuple

from .dates import parse_date

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class DateRange:
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Inverted date range: {self.start} - {self.end}")


@dataclass(slots=True, frozen=True)
class CompiledFilter:
    clause: str = ""
    params: Tuple[Any, ...] = ()

    @property
    def active(self) -> bool:
        return bool(self.clause)


NO_FILTER = CompiledFilter()


def parse_date_ranges(pairs: Iterable[Sequence[str]]) -> list[DateRange]:
    ranges: list[DateRange] = []
    for pair in pairs:
        if len(pair) != 2:
            logger.warning(f"Skipping range: {pair!r}. Expected a start and an end.")
            continue
        start_text, end_text = pair
        start = parse_date(start_text)
        end = parse_date(end_text, end_of_range=True)
        if start is None or end is None or end.millis < start.millis:
            logger.warning(f"Skipping range: '{start_text} - {end_text}'. Failed to parse or invalid range.")
            continue
        end_millis = end.millis + 999 if end.needs_rounding else end.millis
        logger.debug(f"Using range: {start_text} - {end_text} ({start.millis} - {end_millis})")
        ranges.append(DateRange(start.millis, end_millis))
    return ranges


def compile_filter(
    thread_ids: Iterable[int] | None = None,
    date_ranges: Iterable[Sequence[str]] | None = None,
    *,
    thread_column: str = "thread._id",
    date_column: str = "date_received",
) -> CompiledFilter:
    """Turn requested threads and date ranges into a WHERE fragment with bound parameters.

    The fragment starts with " AND " so it can be appended to a query that
    already has a WHERE clause. Threads are matched by membership, date
    ranges are OR-ed, and both groups are AND-ed together.
    """
    threads = tuple(dict.fromkeys(int(tid) for tid in (thread_ids or ())))
    ranges = tuple(parse_date_ranges(date_ranges or ()))

    clauses: list[str] = []
    params: list[Any] = []
    if threads:
        placeholders = ", ".join("?" for _ in threads)
        clauses.append(f"{thread_column} IN ({placeholders})")
        params.extend(threads)
    if ranges:
        clauses.append("(" + " OR ".join(f"{date_column} BETWEEN ? AND ?" for _ in ranges) + ")")
        for date_range in ranges:
            params.extend((date_range.start, date_range.end))

    clause = "".join(f" AND {part}" for part in clauses)
    return CompiledFilter(clause=clause, params=tuple(params))
