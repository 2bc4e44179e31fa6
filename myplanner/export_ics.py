"""
iCalendar (.ics) export of one resolved week.

Each scheduled course becomes one event; the location shows where the
class actually takes place that week (room, or "Online"), so the file can
be imported into:
- Google Calendar
- Outlook
- Apple Calendar
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from myplanner.model import ONLINE, ONSITE
from myplanner.week import ScheduledCourse, WeekView


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (very small subset, sufficient for our use).
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _dt_local(entry: ScheduledCourse, time_hh_mm: str) -> str:
    """
    Convert the entry's date + time to ICS local datetime 'YYYYMMDDTHHMM00'.
    """
    dt = datetime.strptime(f"{entry.date.isoformat()} {time_hh_mm}", "%Y-%m-%d %H:%M")
    return dt.strftime("%Y%m%dT%H%M00")


def _location(entry: ScheduledCourse) -> str:
    if entry.status == ONLINE:
        return "Online"
    if entry.status == ONSITE:
        return entry.course.room or entry.course.p_room
    return ""


def _description(entry: ScheduledCourse) -> str:
    text = f"Status: {entry.status}"
    if entry.is_overridden:
        text += " (changed manually for this week)"
    if entry.course.teacher:
        text += f"\nTeacher: {entry.course.teacher}"
    return text


def export_week_to_ics(view: WeekView, out_path: str | Path) -> int:
    """
    Export all courses of a week to an .ics file. Returns number of exported events.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append("PRODID:-//MyPlanner//EN")
    lines.append("CALSCALE:GREGORIAN")

    dtstamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    count = 0
    for entry in view.entries():
        course = entry.course
        dtstart = _dt_local(entry, course.start_time)
        dtend = _dt_local(entry, course.end_time)

        summary = f"{course.code} {course.name}".strip() or course.id
        uid = f"{course.id}-{dtstart}@myplanner"

        lines.append("BEGIN:VEVENT")
        lines.append(f"UID:{_ics_escape(uid)}")
        lines.append(f"DTSTAMP:{dtstamp}")
        lines.append(f"DTSTART:{dtstart}")
        lines.append(f"DTEND:{dtend}")
        lines.append(f"SUMMARY:{_ics_escape(summary)}")
        location = _location(entry)
        if location:
            lines.append(f"LOCATION:{_ics_escape(location)}")
        lines.append(f"DESCRIPTION:{_ics_escape(_description(entry))}")
        lines.append("END:VEVENT")
        count += 1

    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    out.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8")
    return count
