"""
Turn normalized courses into calendar events.

Two steps:
1. build_schedule_events: one template event per meeting and weekday
   (what the schedule lookup returns to a client as JSON).
2. expand_occurrences: one event per actual class date in a semester
   window, stepping weekly from the first matching weekday and leaving
   out dates inside break ranges.

generate_schedule and generate_csv are the two entry points used by the
command line (and by any other front end): they validate their inputs,
run the pipeline and return plain results.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any, Iterator, List, Mapping, Optional, Protocol, Sequence, Tuple

from .export import encode_csv
from .model import CalendarEvent, Course, Section, SemesterWindow
from .semester import current_term, is_break_date, resolve_semester_window
from .time_day import parse_time

LOG = logging.getLogger(__name__)

MAX_CODE_LENGTH = 20
MAX_SECTION_LENGTH = 10


class ScheduleInputError(ValueError):
    """Raised when an entry point gets input of the wrong shape."""


class CourseCatalog(Protocol):
    def get_course_details(self, course_code: str, term: str) -> Optional[Course]:
        ...


@dataclass
class ScheduleResult:
    events: List[CalendarEvent] = field(default_factory=list)
    # (course code, reason) for every course that contributed no events
    failures: List[Tuple[str, str]] = field(default_factory=list)


# ──────────────────────────────────────────────────────────────────
#  Templates
# ──────────────────────────────────────────────────────────────────

def _format_credits(credits: float) -> str:
    return f"{credits:g}"


def build_schedule_events(course: Course, section: Section) -> List[CalendarEvent]:
    """One template event per (meeting, weekday), weekdays ascending."""
    instructor = section.instructor or "TBD"
    subject = f"{course.code} - {course.title}"
    description = (
        f"{course.code} | {section.type} | {_format_credits(course.credits)} Credits"
        f" | Instructor: {instructor}"
    )

    events: List[CalendarEvent] = []
    for meeting in section.schedule:
        for day in sorted(meeting.days):
            events.append(CalendarEvent(
                subject=subject,
                description=description,
                location=meeting.location or section.location or "TBD",
                day=day,
                start_time=meeting.start_time,
                end_time=meeting.end_time,
                type=section.type,
                instructor=instructor,
                section=section.section,
                credits=course.credits,
                department=course.department,
            ))
    return events


# ──────────────────────────────────────────────────────────────────
#  Occurrences
# ──────────────────────────────────────────────────────────────────

def _first_date_for_weekday(start: date, weekday: int) -> date:
    """First date on/after start falling on weekday (0=Monday)."""
    offset = (weekday - start.weekday()) % 7
    return start + timedelta(days=offset)


def occurrence_dates(weekday: int, window: SemesterWindow) -> Iterator[date]:
    """Weekly dates for weekday inside the window, minus break dates."""
    current = _first_date_for_weekday(window.start_date, weekday)
    while current <= window.end_date:
        if not is_break_date(current, window.breaks):
            yield current
        current += timedelta(days=7)


def expand_occurrences(
    events: Sequence[CalendarEvent], window: SemesterWindow
) -> List[CalendarEvent]:
    """Dated copy of each template for every class day; input order kept."""
    out: List[CalendarEvent] = []
    for event in events:
        for day in occurrence_dates(event.day, window):
            out.append(replace(event, date=day))
    return out


def materialize(course: Course, section: Section, window: SemesterWindow) -> List[CalendarEvent]:
    """All dated events of one section over one semester window."""
    return expand_occurrences(build_schedule_events(course, section), window)


# ──────────────────────────────────────────────────────────────────
#  Input validation
# ──────────────────────────────────────────────────────────────────

def _validate_course_infos(course_infos: Any) -> List[Mapping[str, Any]]:
    if not isinstance(course_infos, list):
        raise ScheduleInputError("Course data must be an array")
    for i, info in enumerate(course_infos):
        if not isinstance(info, Mapping):
            raise ScheduleInputError(f"Course data item {i} must be an object")
        code = info.get("code")
        if not isinstance(code, str) or not 1 <= len(code) <= MAX_CODE_LENGTH:
            raise ScheduleInputError(
                f"Course data item {i}: code must be a string of 1-{MAX_CODE_LENGTH} characters"
            )
        section = info.get("section")
        if section is not None and (not isinstance(section, str) or len(section) > MAX_SECTION_LENGTH):
            raise ScheduleInputError(
                f"Course data item {i}: section must be a string of at most {MAX_SECTION_LENGTH} characters"
            )
        term = info.get("term")
        if term is not None and not isinstance(term, str):
            raise ScheduleInputError(f"Course data item {i}: term must be a string")
    return course_infos


def _coerce_event(index: int, item: Any) -> CalendarEvent:
    if isinstance(item, CalendarEvent):
        event = item
    elif isinstance(item, Mapping):
        for key in ("day", "startTime", "endTime"):
            if key not in item:
                raise ScheduleInputError(f"Schedule item {index}: missing '{key}'")
        try:
            event = CalendarEvent.from_dict(dict(item))
        except (ValueError, TypeError) as e:
            raise ScheduleInputError(f"Schedule item {index}: {e}") from e
    else:
        raise ScheduleInputError(f"Schedule item {index} must be an object")

    day = event.day
    if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
        raise ScheduleInputError(f"Schedule item {index}: day must be an integer 0-6")
    start = parse_time(event.start_time)
    end = parse_time(event.end_time)
    if start is None or end is None:
        raise ScheduleInputError(f"Schedule item {index}: startTime/endTime must be HH:MM")
    if (start, end) != (event.start_time, event.end_time):
        event = replace(event, start_time=start, end_time=end)
    return event


# ──────────────────────────────────────────────────────────────────
#  Entry points
# ──────────────────────────────────────────────────────────────────

def _schedule_for_course(
    info: Mapping[str, Any], catalog: CourseCatalog, term: str
) -> List[CalendarEvent]:
    code = info["code"].strip()
    section_label = (info.get("section") or "").strip()
    course_term = info.get("term") or term

    course = catalog.get_course_details(code, course_term)
    if course is None:
        raise LookupError(f"Course {code} not found for term {course_term}")

    section = course.find_section(section_label)
    if section is None:
        raise LookupError(f"Section {section_label or 'default'} not found for course {code}")

    return build_schedule_events(course, section)


def _safe_schedule_for_course(
    info: Mapping[str, Any], catalog: CourseCatalog, term: str
) -> Tuple[List[CalendarEvent], Optional[str]]:
    try:
        return _schedule_for_course(info, catalog, term), None
    except Exception as e:
        LOG.warning("Failed to get schedule for %s: %s", info.get("code"), e)
        return [], str(e)


def generate_schedule(
    course_infos: Any,
    catalog: CourseCatalog,
    term: str | None = None,
    max_workers: int = 1,
) -> ScheduleResult:
    """
    Look up every {code, section, term} entry and collect template events.

    A course that cannot be found (or fails in any other way) is recorded in
    `failures` and skipped; the rest still go through. With max_workers > 1
    the lookups run in a thread pool, but events stay in input order.
    """
    infos = _validate_course_infos(course_infos)
    term = term or current_term()

    if max_workers > 1 and len(infos) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            outcomes = list(executor.map(lambda i: _safe_schedule_for_course(i, catalog, term), infos))
    else:
        outcomes = [_safe_schedule_for_course(i, catalog, term) for i in infos]

    result = ScheduleResult()
    for info, (events, error) in zip(infos, outcomes):
        result.events.extend(events)
        if error is not None:
            result.failures.append((info["code"], error))
    return result


def generate_csv(
    events: Any,
    semester_info: Mapping[str, Any] | None = None,
    today: date | None = None,
) -> str:
    """
    Expand template events over the semester and return calendar CSV text.

    `events` is a list of CalendarEvent objects or their dict form.
    `semester_info` may hold startDate/endDate, term and breaks.
    """
    if not isinstance(events, list):
        raise ScheduleInputError("Schedule data must be an array")
    if semester_info is not None and not isinstance(semester_info, Mapping):
        raise ScheduleInputError("Semester must be an object")

    templates = [_coerce_event(i, item) for i, item in enumerate(events)]
    try:
        window = resolve_semester_window(semester_info, today=today)
    except ValueError as e:
        raise ScheduleInputError(f"Invalid semester: {e}") from e

    return encode_csv(expand_occurrences(templates, window))
