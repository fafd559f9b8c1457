"""
Semester date windows and break weeks.

A term code is 'YYYY' + session digit: 1 = Fall, 2 = Winter, 4 = Summer.
When the caller gives explicit dates they win over the term code.
"""
from __future__ import annotations

import re
from datetime import date
from typing import Any, Iterable, Mapping, Optional, Tuple

from .model import BreakRange, SemesterWindow

TERM_PATTERN = re.compile(r"^\d{4}(1|2|4)$")

# session digit -> ((start month, start day), (end month, end day))
TERM_MONTH_RANGES = {
    "1": ((9, 1), (12, 31)),   # Fall
    "2": ((1, 1), (4, 30)),    # Winter
    "4": ((5, 1), (8, 31)),    # Summer
}

# Reading weeks and holidays of 2024-25 / 2025-26. Used only when the
# caller supplies no breaks of their own.
DEFAULT_BREAKS: Tuple[BreakRange, ...] = (
    BreakRange(date(2024, 11, 25), date(2024, 11, 29)),
    BreakRange(date(2024, 12, 23), date(2024, 12, 31)),
    BreakRange(date(2025, 3, 1), date(2025, 3, 7)),
    BreakRange(date(2025, 10, 14), date(2025, 10, 18)),
)


def is_valid_term(term: Any) -> bool:
    return isinstance(term, str) and bool(TERM_PATTERN.match(term))


def current_term(today: date | None = None) -> str:
    """Term code for the session `today` falls in."""
    today = today or date.today()
    if today.month >= 9:
        return f"{today.year}1"
    if today.month >= 5:
        return f"{today.year}4"
    return f"{today.year}2"


def semester_window_for_term(
    term: str,
    breaks: Iterable[BreakRange] | None = None,
    today: date | None = None,
) -> SemesterWindow:
    """
    Date range of a term: Fall Sep 1-Dec 31, Winter Jan 1-Apr 30,
    Summer May 1-Aug 31. Any other session digit covers the whole year.
    """
    head = (term or "")[:4]
    year = int(head) if head.isdigit() and int(head) > 0 else (today or date.today()).year
    session = (term or "")[4:5]

    (sm, sd), (em, ed) = TERM_MONTH_RANGES.get(session, ((1, 1), (12, 31)))
    return SemesterWindow(
        start_date=date(year, sm, sd),
        end_date=date(year, em, ed),
        breaks=DEFAULT_BREAKS if breaks is None else tuple(breaks),
    )


def _to_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        return date.fromisoformat(value.strip()[:10])
    return None


def parse_breaks(raw: Any) -> Tuple[BreakRange, ...]:
    """
    Break ranges from [{"start": "2025-10-14", "end": "2025-10-18"}, ...].
    Raises ValueError for entries that are not start/end date pairs.
    """
    if not isinstance(raw, (list, tuple)):
        raise ValueError("breaks must be a list of {start, end} ranges")
    out = []
    for item in raw:
        if isinstance(item, BreakRange):
            out.append(item)
            continue
        if not isinstance(item, Mapping):
            raise ValueError(f"break range must be an object, got {item!r}")
        start = _to_date(item.get("start"))
        end = _to_date(item.get("end"))
        if start is None or end is None:
            raise ValueError(f"break range needs start and end dates: {item!r}")
        out.append(BreakRange(start, end))
    return tuple(out)


def resolve_semester_window(
    semester_info: Mapping[str, Any] | None = None,
    today: date | None = None,
) -> SemesterWindow:
    """
    Build the window for one export request.

    Keys of `semester_info`: startDate / endDate (ISO dates), term, breaks.
    Explicit dates win; otherwise the term code (or the current term).
    """
    info = semester_info or {}
    raw_breaks = info.get("breaks")
    breaks = DEFAULT_BREAKS if raw_breaks is None else parse_breaks(raw_breaks)

    start = _to_date(info.get("startDate"))
    end = _to_date(info.get("endDate"))
    if start and end:
        return SemesterWindow(start_date=start, end_date=end, breaks=breaks)

    term = info.get("term") or current_term(today)
    return semester_window_for_term(str(term), breaks=breaks, today=today)


def is_break_date(day: date, breaks: Iterable[BreakRange]) -> bool:
    return any(b.contains(day) for b in breaks)
