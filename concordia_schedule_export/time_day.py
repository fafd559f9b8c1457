"""
Time, weekday and class-type parsing.

Source data encodes the same things in several ways:
- times as "1345", "13:45", "1:45 PM", "13:45:00" or "13.45.00"
- days as "MoWeFr", "TuTh", "MWF", "TR", "Monday Wednesday"
- class types as "LEC", "Lab", "TUTORIAL", ...

Everything here returns canonical values (24-hour "HH:MM", weekday index
0=Monday..6=Sunday, one of CLASS_TYPES' values) or None / [] when the input
is unusable. Nothing here raises on bad input.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

# ──────────────────────────────────────────────────────────────────
#  Tables
# ──────────────────────────────────────────────────────────────────

WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

# Full names are matched case-insensitively and looked up lowercased.
# Two-letter and one-letter codes are case-sensitive: R is Thursday and
# U is Sunday so they do not clash with T (Tuesday) and S (Saturday).
DAY_TOKENS: Dict[str, int] = {
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
    "Mo": 0, "Tu": 1, "We": 2, "Th": 3, "Fr": 4, "Sa": 5, "Su": 6,
    "M": 0, "T": 1, "W": 2, "R": 3, "F": 4, "S": 5, "U": 6,
}

# Longest alternatives first so "Thursday" is not read as "Th" + junk.
DAY_PATTERN = re.compile(
    r"(?i:monday|tuesday|wednesday|thursday|friday|saturday|sunday)"
    r"|Mo|Tu|We|Th|Fr|Sa|Su"
    r"|[MTWRFSU]"
)

# Open-data schedule feed: one "Y"/"N" flag per weekday, Monday first.
FEED_DAY_FLAGS = (
    "modays",
    "tuesdays",
    "wednesdays",
    "thursdays",
    "fridays",
    "saturdays",
    "sundays",
)

DEFAULT_CLASS_TYPE = "Lecture"

CLASS_TYPES: Dict[str, str] = {
    "LEC": "Lecture",
    "LECTURE": "Lecture",
    "LAB": "Laboratory",
    "LABORATORY": "Laboratory",
    "TUT": "Tutorial",
    "TUTORIAL": "Tutorial",
    "SEM": "Seminar",
    "SEMINAR": "Seminar",
    "WOR": "Workshop",
    "WORKSHOP": "Workshop",
}

_TIME_HHMM = re.compile(r"^(\d{2})(\d{2})$")
_TIME_CLOCK = re.compile(
    r"^(\d{1,2})([:.])(\d{2})(?:\2(\d{2}))?\s*(AM|PM)?$",
    re.IGNORECASE,
)


# ──────────────────────────────────────────────────────────────────
#  Time
# ──────────────────────────────────────────────────────────────────

def _to_24(hour: int, period: str | None) -> int | None:
    if not period:
        return hour if 0 <= hour <= 23 else None
    if not 1 <= hour <= 12:
        return None
    if period.upper() == "AM":
        return 0 if hour == 12 else hour
    return hour if hour == 12 else hour + 12


def parse_time(raw: Any) -> Optional[str]:
    """
    Parse a time of day into 24-hour 'HH:MM'.

    Accepted: '1345', '9:05', '09:05', '1:45 pm', '12:00AM', '13:45:00',
    '13.45.00'. Seconds are dropped. Returns None for anything else.
    """
    if not raw or not isinstance(raw, str):
        return None
    text = raw.strip()

    m = _TIME_HHMM.match(text)
    if m:
        hour, minute = int(m.group(1)), int(m.group(2))
        if hour > 23 or minute > 59:
            return None
        return f"{hour:02d}:{minute:02d}"

    m = _TIME_CLOCK.match(text)
    if not m:
        return None
    h, _sep, mm, ss, period = m.groups()
    minute = int(mm)
    if minute > 59 or (ss is not None and int(ss) > 59):
        return None
    hour = _to_24(int(h), period)
    if hour is None:
        return None
    return f"{hour:02d}:{minute:02d}"


# ──────────────────────────────────────────────────────────────────
#  Days
# ──────────────────────────────────────────────────────────────────

def _day_index(token: str) -> int | None:
    if token in DAY_TOKENS:
        return DAY_TOKENS[token]
    return DAY_TOKENS.get(token.lower())


def parse_days(raw: Any) -> List[int]:
    """
    Parse a day pattern into sorted, de-duplicated weekday indices.

    'MoWeFr' -> [0, 2, 4], 'TR' -> [1, 3], 'Monday, Friday' -> [0, 4].
    A list such as [0, 2] or ['Mo', 'We'] is accepted as well.
    """
    if isinstance(raw, (list, tuple)):
        found: set[int] = set()
        for item in raw:
            if isinstance(item, bool):
                continue
            if isinstance(item, int):
                if 0 <= item <= 6:
                    found.add(item)
            else:
                found.update(parse_days(item))
        return sorted(found)

    if not raw or not isinstance(raw, str):
        return []

    days: List[int] = []
    for m in DAY_PATTERN.finditer(raw):
        idx = _day_index(m.group(0))
        if idx is not None and idx not in days:
            days.append(idx)
    return sorted(days)


def _flag_set(value: Any) -> bool:
    if value is True:
        return True
    if isinstance(value, str):
        return value.strip().upper() in ("Y", "YES", "TRUE", "1")
    return False


def days_from_flags(row: Mapping[str, Any]) -> List[int]:
    """Weekday indices whose feed flag ('modays', 'tuesdays', ...) is set."""
    return [i for i, key in enumerate(FEED_DAY_FLAGS) if _flag_set(row.get(key))]


def has_day_flags(row: Mapping[str, Any]) -> bool:
    return any(key in row for key in FEED_DAY_FLAGS)


# ──────────────────────────────────────────────────────────────────
#  Class type
# ──────────────────────────────────────────────────────────────────

def normalize_class_type(raw: Any) -> str:
    """Map a component code like 'LEC' or 'tut' to its display name."""
    if not raw or not isinstance(raw, str):
        return DEFAULT_CLASS_TYPE
    return CLASS_TYPES.get(raw.strip().upper(), DEFAULT_CLASS_TYPE)
