"""
Weekly grid (Monday to Friday) with resolved statuses.

build_week() is the personal view and honours overrides.
build_public_week() is the read-only share view: it only shows the
computed rotation and never reads personal overrides.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping

from myplanner.model import Course, OverrideKey
from myplanner.resolver import (
    DateLike,
    compute_week_parity,
    courses_for_day,
    resolve_status,
    week_days,
    week_start,
)


@dataclass
class ScheduledCourse:
    course: Course
    date: date
    status: str
    is_overridden: bool


@dataclass
class DaySchedule:
    date: date
    courses: list[ScheduledCourse] = field(default_factory=list)


@dataclass
class WeekView:
    week_start: date
    parity: str
    days: list[DaySchedule] = field(default_factory=list)

    def entries(self) -> list[ScheduledCourse]:
        out: list[ScheduledCourse] = []
        for day in self.days:
            out.extend(day.courses)
        return out


def build_week(
    courses: Iterable[Course],
    value: DateLike,
    overrides: Mapping[OverrideKey, str] | None = None,
) -> WeekView:
    course_list = list(courses)
    view = WeekView(week_start=week_start(value), parity=compute_week_parity(value))
    for day in week_days(value):
        schedule = DaySchedule(date=day)
        for course in courses_for_day(course_list, day):
            res = resolve_status(course, day, overrides)
            schedule.courses.append(ScheduledCourse(course, day, res.status, res.is_overridden))
        view.days.append(schedule)
    return view


def build_public_week(courses: Iterable[Course], value: DateLike) -> WeekView:
    return build_week(courses, value, overrides=None)
