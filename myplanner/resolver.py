"""
Schedule status resolution.

Given a course, a calendar date and the user's weekly overrides, decide
whether the course meets online or onsite that day.

Rules:
- Weeks start on Monday, regardless of locale.
- The week containing REFERENCE_DATE is week 1 (odd); parity alternates
  from there in both directions.
- A stored override for (course, week) always wins over the computed default.
- The override set never holds an entry equal to the computed default.

Everything here is pure: inputs are never mutated.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, Mapping, Union

from myplanner.model import (
    EVEN,
    EVEN_ONSITE,
    ODD,
    ODD_ONSITE,
    ONLINE,
    ONLINE_ALWAYS,
    ONSITE,
    ONSITE_ALWAYS,
    UNKNOWN,
    Course,
    OverrideKey,
    Resolution,
    parse_hhmm,
)

DateLike = Union[date, datetime, str]

# Week 1 (odd) of the rotation is the week containing this date.
REFERENCE_DATE = date(2025, 12, 2)


# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------


def as_date(value: DateLike) -> date:
    """
    Normalize a date input. Time-of-day is dropped.

    Raises TypeError for unsupported types and ValueError for strings
    that are not ISO dates (YYYY-MM-DD).
    """
    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), "%Y-%m-%d").date()
        except ValueError:
            raise ValueError(f"Invalid date: {value!r}. Expected YYYY-MM-DD.") from None
    raise TypeError(f"Expected a date, got {type(value).__name__}")


def week_start(value: DateLike) -> date:
    """Return the Monday beginning the week that contains value."""
    d = as_date(value)
    return d - timedelta(days=d.weekday())


def week_days(value: DateLike) -> list[date]:
    """Monday to Friday of the week that contains value."""
    monday = week_start(value)
    return [monday + timedelta(days=i) for i in range(5)]


# ---------------------------------------------------------------------------
# Core rules
# ---------------------------------------------------------------------------


def compute_week_parity(value: DateLike) -> str:
    """
    Return 'odd' or 'even' for the week containing value.
    """
    days = (week_start(value) - week_start(REFERENCE_DATE)).days
    # floor division rounds toward -inf, so weeks before the reference work too
    weeks_diff = days // 7
    return ODD if weeks_diff % 2 == 0 else EVEN


def derive_default_status(schedule_type: object, parity: str) -> str:
    if schedule_type == ONLINE_ALWAYS:
        return ONLINE
    if schedule_type == ONSITE_ALWAYS:
        return ONSITE
    if schedule_type == ODD_ONSITE:
        return ONSITE if parity == ODD else ONLINE
    if schedule_type == EVEN_ONSITE:
        return ONSITE if parity == EVEN else ONLINE
    return UNKNOWN


def override_key(course: Course, value: DateLike) -> OverrideKey:
    return OverrideKey(course.id, week_start(value))


def resolve_status(
    course: Course,
    value: DateLike,
    overrides: Mapping[OverrideKey, str] | None = None,
) -> Resolution:
    """
    Resolve the delivery status of course on the given date.

    An override for the course's week wins; otherwise the default is derived
    from the course's schedule type and the week's parity.
    """
    key = override_key(course, value)
    if overrides and key in overrides:
        return Resolution(overrides[key], True)

    status = derive_default_status(course.schedule_type, compute_week_parity(value))
    return Resolution(status, False)


def toggle_override(
    course: Course,
    value: DateLike,
    overrides: Mapping[OverrideKey, str],
) -> dict[OverrideKey, str]:
    """
    Flip the course's status for the week containing value.

    Returns a new override mapping. Flipping back to the computed default
    removes the key instead of storing a redundant entry.
    Raises ValueError if the current status is unknown.
    """
    current = resolve_status(course, value, overrides)
    if current.status not in (ONLINE, ONSITE):
        raise ValueError(
            f"Cannot toggle course {course.id}: status is {current.status!r} "
            f"(schedule type {course.schedule_type!r})"
        )

    default = resolve_status(course, value, {})
    candidate = ONSITE if current.status == ONLINE else ONLINE

    key = override_key(course, value)
    out = dict(overrides)
    if candidate == default.status:
        out.pop(key, None)
    else:
        out[key] = candidate
    return out


def courses_for_day(courses: Iterable[Course], value: DateLike) -> list[Course]:
    """
    Courses that meet on the weekday of value, ordered by start time.
    """
    d = as_date(value)
    # stored convention is 0 = Sunday, date.weekday() is 0 = Monday
    day_of_week = (d.weekday() + 1) % 7
    todays = [c for c in courses if c.day_of_week == day_of_week]
    return sorted(todays, key=lambda c: parse_hhmm(c.start_time))
