"""
Central data model definitions used across the project.

This module defines the canonical structure of Course records and the
override keys so that:
- all modules share the same field names and status values
- records are validated once, when they enter the application
- the stored document shape (camelCase keys) stays in one place
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, NamedTuple, Optional

LOG = logging.getLogger(__name__)


# Delivery status values
ONLINE = "online"
ONSITE = "onsite"
UNKNOWN = "unknown"

# Week parity values
ODD = "odd"
EVEN = "even"

# Recurrence modes
ODD_ONSITE = "odd-onsite"
EVEN_ONSITE = "even-onsite"
ONLINE_ALWAYS = "online-always"
ONSITE_ALWAYS = "onsite-always"

SCHEDULE_TYPES = (ODD_ONSITE, EVEN_ONSITE, ONLINE_ALWAYS, ONSITE_ALWAYS)
FORCED_STATUSES = (ONLINE, ONSITE)

# Course keys this model reads; anything else is carried in Course.extra
COURSE_KEYS = (
    "id",
    "name",
    "code",
    "room",
    "pRoom",
    "teacher",
    "dayOfWeek",
    "startTime",
    "endTime",
    "scheduleType",
    "color",
)


def parse_hhmm(hhmm: str) -> int:
    """
    Convert 'HH:MM' to minutes since midnight.
    Raises ValueError for invalid formats.
    """
    parts = str(hhmm).strip().split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid time format: {hhmm!r}")
    h = int(parts[0])
    m = int(parts[1])
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValueError(f"Invalid time value: {hhmm!r}")
    return h * 60 + m


@dataclass
class Course:
    """
    Represents one weekly course slot as stored in the planner document.

    day_of_week follows the stored convention: 0 = Sunday ... 6 = Saturday.
    """

    id: str
    day_of_week: int
    start_time: str
    end_time: str
    schedule_type: Optional[str]
    name: str = ""
    code: str = ""
    room: str = ""
    p_room: str = ""
    teacher: str = ""
    color: str = ""
    # other stored keys (createdAt, updatedAt, ...), written back as they were read
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not str(self.id or "").strip():
            raise ValueError("Course id must not be empty")
        if not isinstance(self.day_of_week, int) or not 0 <= self.day_of_week <= 6:
            raise ValueError(f"day_of_week must be 0-6 (Sun-Sat), got {self.day_of_week!r}")
        start = parse_hhmm(self.start_time)
        end = parse_hhmm(self.end_time)
        if end <= start:
            raise ValueError(f"Course {self.id}: end time {self.end_time} is not after start time {self.start_time}")

    @property
    def has_known_schedule_type(self) -> bool:
        return self.schedule_type in SCHEDULE_TYPES

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Course":
        """
        Build a Course from the stored document shape.

        Malformed ids, days and times raise ValueError. A missing or
        unrecognized scheduleType is kept and reported with a warning so
        data-entry errors are visible without breaking the whole load.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Course record must be an object, got {type(data).__name__}")

        try:
            day = int(data.get("dayOfWeek"))
        except (TypeError, ValueError):
            raise ValueError(f"Invalid dayOfWeek: {data.get('dayOfWeek')!r}") from None

        course = cls(
            id=str(data.get("id") or "").strip(),
            day_of_week=day,
            start_time=str(data.get("startTime") or "").strip(),
            end_time=str(data.get("endTime") or "").strip(),
            schedule_type=data.get("scheduleType"),
            name=str(data.get("name") or ""),
            code=str(data.get("code") or ""),
            room=str(data.get("room") or ""),
            p_room=str(data.get("pRoom") or ""),
            teacher=str(data.get("teacher") or ""),
            color=str(data.get("color") or ""),
            extra={k: v for k, v in data.items() if k not in COURSE_KEYS},
        )
        if not course.has_known_schedule_type:
            LOG.warning("Course %s has unrecognized scheduleType %r", course.id, course.schedule_type)
        return course

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.extra)
        out.update(
            {
                "id": self.id,
                "name": self.name,
                "code": self.code,
                "room": self.room,
                "pRoom": self.p_room,
                "teacher": self.teacher,
                "dayOfWeek": self.day_of_week,
                "startTime": self.start_time,
                "endTime": self.end_time,
                "scheduleType": self.schedule_type,
                "color": self.color,
            }
        )
        return out


class OverrideKey(NamedTuple):
    """
    Identifies one course in one Monday-anchored week.

    Kept as a tuple in memory; the string form only exists for storage.
    """

    course_id: str
    week_start: date

    def to_storage(self) -> str:
        return f"{self.course_id}_{self.week_start.isoformat()}"

    @classmethod
    def from_storage(cls, raw: str) -> "OverrideKey":
        # Split on the last underscore: the date part never contains one.
        course_id, sep, day = str(raw).rpartition("_")
        if not sep or not course_id:
            raise ValueError(f"Invalid override key: {raw!r}")
        return cls(course_id, date.fromisoformat(day))


@dataclass(frozen=True)
class Resolution:
    """Resolved delivery status of one course on one date."""

    status: str
    is_overridden: bool
