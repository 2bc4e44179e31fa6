import unittest
from datetime import date

from myplanner.model import Course, OverrideKey
from myplanner.week import build_public_week, build_week


class TestWeekView(unittest.TestCase):
    def setUp(self) -> None:
        self.courses = [
            Course(id="DB", day_of_week=1, start_time="13:00", end_time="15:00", schedule_type="odd-onsite"),
            Course(id="AI", day_of_week=1, start_time="09:00", end_time="11:00", schedule_type="online-always"),
            Course(id="OS", day_of_week=5, start_time="10:00", end_time="12:00", schedule_type="even-onsite"),
            Course(id="SAT", day_of_week=6, start_time="10:00", end_time="12:00", schedule_type="onsite-always"),
        ]
        self.overrides = {OverrideKey("DB", date(2025, 12, 8)): "onsite"}

    def test_grid_monday_to_friday(self) -> None:
        view = build_week(self.courses, date(2025, 12, 10), self.overrides)
        self.assertEqual(view.week_start, date(2025, 12, 8))
        self.assertEqual(view.parity, "even")
        self.assertEqual([d.date for d in view.days][0], date(2025, 12, 8))
        self.assertEqual(len(view.days), 5)

        monday = view.days[0]
        self.assertEqual([e.course.id for e in monday.courses], ["AI", "DB"])
        db = monday.courses[1]
        self.assertEqual((db.status, db.is_overridden), ("onsite", True))

        friday = view.days[4]
        self.assertEqual([(e.course.id, e.status) for e in friday.courses], [("OS", "onsite")])

        # Saturday courses are not part of the Monday-Friday grid
        self.assertNotIn("SAT", [e.course.id for e in view.entries()])

    def test_public_view_ignores_overrides(self) -> None:
        view = build_public_week(self.courses, date(2025, 12, 10))
        db = [e for e in view.entries() if e.course.id == "DB"][0]
        self.assertEqual((db.status, db.is_overridden), ("online", False))


if __name__ == "__main__":
    unittest.main()
