import tempfile
import unittest
from datetime import date
from pathlib import Path

from myplanner.export_ics import export_week_to_ics
from myplanner.model import Course, OverrideKey
from myplanner.week import build_week


class TestExportICS(unittest.TestCase):
    def test_export_week_contains_resolved_locations(self) -> None:
        courses = [
            Course(
                id="db1",
                day_of_week=3,
                start_time="09:00",
                end_time="12:00",
                schedule_type="odd-onsite",
                name="Databases",
                code="CS301",
                room="B-204",
            ),
            Course(id="ai1", day_of_week=4, start_time="13:00", end_time="16:00", schedule_type="onsite-always",
                   name="AI", code="CS410", room="A, 101"),
        ]
        overrides = {OverrideKey("ai1", date(2025, 12, 8)): "online"}
        view = build_week(courses, date(2025, 12, 10), overrides)

        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "week.ics"
            n = export_week_to_ics(view, out)
            self.assertEqual(n, 2)
            raw = out.read_bytes()
            text = raw.decode("utf-8")

        self.assertIn("BEGIN:VCALENDAR", text)
        self.assertIn("SUMMARY:CS301 Databases", text)
        self.assertIn("DTSTART:20251210T090000", text)
        self.assertIn("DTEND:20251210T120000", text)
        # even week -> odd-onsite course is online, overridden course is online too
        self.assertEqual(text.count("LOCATION:Online"), 2)
        self.assertIn("changed manually for this week", text)
        self.assertIn(b"END:VEVENT\r\n", raw)

    def test_onsite_location_is_escaped(self) -> None:
        courses = [
            Course(id="x", day_of_week=1, start_time="08:00", end_time="09:00", schedule_type="onsite-always",
                   room="A, 101"),
        ]
        view = build_week(courses, date(2025, 12, 1))
        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "week.ics"
            export_week_to_ics(view, out)
            text = out.read_text(encoding="utf-8")
        self.assertIn("LOCATION:A\\, 101", text)
        self.assertIn("SUMMARY:x", text)


if __name__ == "__main__":
    unittest.main()
