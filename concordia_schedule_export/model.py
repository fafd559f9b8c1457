"""
Canonical data model shared by the normalizer, the materializer and the
exporters.

All values are frozen and hold tuples instead of lists, so a Course that
has been built is never changed afterwards and two Courses built from the
same raw data compare equal.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Meeting:
    """One weekly time slot of a section (e.g. MoWe 11:45-13:00)."""

    days: Tuple[int, ...]
    start_time: str
    end_time: str
    location: str = ""
    type: str = "Lecture"


@dataclass(frozen=True)
class Section:
    """One offering of a course, e.g. lecture group 'AA' or lab 'AI-X'."""

    section: str
    type: str = "Lecture"
    instructor: str = ""
    location: str = ""
    schedule: Tuple[Meeting, ...] = ()
    capacity: int = 0
    enrolled: int = 0
    waitlist: int = 0


@dataclass(frozen=True)
class Course:
    """One catalog course for one term."""

    code: str
    title: str = ""
    credits: float = 0.0
    sections: Tuple[Section, ...] = ()
    description: str = ""
    prerequisites: str = ""
    department: str = ""

    def find_section(self, label: str | None) -> Optional[Section]:
        """Section with this label, or the first section when label is empty."""
        if not label:
            return self.sections[0] if self.sections else None
        for section in self.sections:
            if section.section == label:
                return section
        return None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CalendarEvent:
    """
    A snapshot of one meeting day of a course section.

    Template events (date=None) are what a schedule lookup returns: one per
    meeting and weekday. Expanding a template over a semester produces one
    event per occurrence with `date` set.
    """

    subject: str
    description: str
    location: str
    day: int
    start_time: str
    end_time: str
    type: str = "Lecture"
    instructor: str = "TBD"
    section: str = ""
    credits: float = 0.0
    department: str = ""
    date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        """camelCase dict, the shape used for JSON transport."""
        out: Dict[str, Any] = {
            "subject": self.subject,
            "day": self.day,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "location": self.location,
            "description": self.description,
            "type": self.type,
            "instructor": self.instructor,
            "section": self.section,
            "credits": self.credits,
            "department": self.department,
        }
        if self.date is not None:
            out["date"] = self.date.isoformat()
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalendarEvent":
        """Inverse of to_dict. Values are taken as given; callers validate."""
        raw_date = data.get("date")
        return cls(
            subject=str(data.get("subject") or ""),
            description=str(data.get("description") or ""),
            location=str(data.get("location") or ""),
            day=data["day"],
            start_time=data["startTime"],
            end_time=data["endTime"],
            type=str(data.get("type") or "Lecture"),
            instructor=str(data.get("instructor") or "TBD"),
            section=str(data.get("section") or ""),
            credits=data.get("credits") or 0.0,
            department=str(data.get("department") or ""),
            date=date.fromisoformat(raw_date) if raw_date else None,
        )


@dataclass(frozen=True)
class BreakRange:
    """Inclusive range of dates with no classes."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class SemesterWindow:
    start_date: date
    end_date: date
    breaks: Tuple[BreakRange, ...] = ()
