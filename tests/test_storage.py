"""
Unit tests for the local planner storage.

Storage contract:
- Missing/corrupted file -> empty state
- Unknown top-level fields (tasks, subjects, ...) survive a save
- Override keys are stored as "<courseId>_<yyyy-MM-dd>"
- Removing a course also removes its overrides
- A file that failed to parse is never overwritten
"""

import json
import tempfile
import unittest
from datetime import date
from pathlib import Path

from myplanner.model import Course, OverrideKey
from myplanner.storage import JsonFileRepository, PlannerFileError, PlannerState

DOC = {
    "courses": [
        {
            "id": "db1",
            "name": "Databases",
            "dayOfWeek": 3,
            "startTime": "09:00",
            "endTime": "12:00",
            "scheduleType": "odd-onsite",
        },
        "garbage",
    ],
    "scheduleOverrides": {
        "db1_2025-12-08": "onsite",
        "broken-key": "online",
        "db1_2025-12-15": "maybe",
    },
    "tasks": [{"id": "t1", "title": "Homework 1"}],
    "loginStreak": 3,
}


class TestPlannerState(unittest.TestCase):
    def test_from_document_is_tolerant(self) -> None:
        with self.assertLogs("myplanner.storage", level="WARNING"):
            state = PlannerState.from_document(DOC)
        self.assertEqual([c.id for c in state.courses], ["db1"])
        self.assertEqual(state.overrides, {OverrideKey("db1", date(2025, 12, 8)): "onsite"})
        self.assertEqual(state.extra["loginStreak"], 3)

    def test_non_object_document(self) -> None:
        for doc in (None, [], "x"):
            state = PlannerState.from_document(doc)
            self.assertEqual(state.courses, [])
            self.assertEqual(state.overrides, {})

    def test_non_object_overrides(self) -> None:
        state = PlannerState.from_document({"courses": [], "scheduleOverrides": None})
        self.assertEqual(state.overrides, {})

    def test_invalid_course_record_raises(self) -> None:
        with self.assertRaises(ValueError):
            PlannerState.from_document({"courses": [{"id": "x", "dayOfWeek": 1, "startTime": "9", "endTime": "10:00"}]})

    def test_remove_course_cleans_overrides(self) -> None:
        state = PlannerState(
            courses=[
                Course(id="a", day_of_week=1, start_time="09:00", end_time="10:00", schedule_type="odd-onsite"),
                Course(id="b", day_of_week=2, start_time="09:00", end_time="10:00", schedule_type="odd-onsite"),
            ],
            overrides={
                OverrideKey("a", date(2025, 12, 8)): "onsite",
                OverrideKey("b", date(2025, 12, 8)): "onsite",
            },
        )
        self.assertTrue(state.remove_course("a"))
        self.assertEqual([c.id for c in state.courses], ["b"])
        self.assertEqual(list(state.overrides), [OverrideKey("b", date(2025, 12, 8))])
        self.assertFalse(state.remove_course("a"))

    def test_update_course_validates_and_stamps(self) -> None:
        state = PlannerState.from_document(
            {"courses": [dict(DOC["courses"][0], createdAt=1733000000000)]}
        )
        updated = state.update_course("db1", room="B-101", schedule_type="even-onsite")
        self.assertEqual(updated.room, "B-101")
        self.assertEqual(state.courses[0].schedule_type, "even-onsite")
        self.assertEqual(state.courses[0].extra["createdAt"], 1733000000000)
        self.assertIn("updatedAt", state.courses[0].extra)

        with self.assertRaises(ValueError):
            state.update_course("db1", end_time="08:00")
        # failed edit leaves the course untouched
        self.assertEqual(state.courses[0].end_time, "12:00")
        self.assertIsNone(state.update_course("missing", room="x"))


class TestJsonFileRepository(unittest.TestCase):
    def test_load_missing_file_returns_empty(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            repo = JsonFileRepository(Path(d) / "missing.json")
            state = repo.load()
            self.assertEqual(state.courses, [])
            self.assertEqual(state.overrides, {})

    def test_load_corrupted_file_returns_empty(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "planner.json"
            p.write_text("{not json", encoding="utf-8")
            with self.assertLogs("myplanner.storage", level="WARNING"):
                state = JsonFileRepository(p).load()
            self.assertEqual(state.courses, [])

    def test_corrupted_file_is_not_overwritten(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "planner.json"
            p.write_text("{\"tasks\": [", encoding="utf-8")
            repo = JsonFileRepository(p)
            with self.assertLogs("myplanner.storage", level="WARNING"):
                state = repo.load()
            with self.assertRaises(PlannerFileError):
                repo.save(state)
            self.assertEqual(p.read_text(encoding="utf-8"), "{\"tasks\": [")

    def test_non_object_file_is_not_overwritten(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "planner.json"
            p.write_text("[1, 2]", encoding="utf-8")
            repo = JsonFileRepository(p)
            with self.assertLogs("myplanner.storage", level="WARNING"):
                state = repo.load()
            with self.assertRaises(PlannerFileError):
                repo.save(state)

    def test_save_leaves_no_temp_files(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "planner.json"
            repo = JsonFileRepository(p)
            repo.save(PlannerState())
            repo.save(PlannerState())
            self.assertEqual([x.name for x in Path(d).iterdir()], ["planner.json"])

    def test_save_and_load_roundtrip(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "nested" / "planner.json"
            repo = JsonFileRepository(p)
            state = PlannerState.from_document({k: v for k, v in DOC.items() if k != "scheduleOverrides"})
            state.overrides[OverrideKey("db1", date(2025, 12, 8))] = "onsite"
            repo.save(state)

            data = json.loads(p.read_text(encoding="utf-8"))
            self.assertEqual(data["scheduleOverrides"], {"db1_2025-12-08": "onsite"})
            self.assertEqual(data["tasks"], [{"id": "t1", "title": "Homework 1"}])
            self.assertEqual(data["courses"][0]["scheduleType"], "odd-onsite")

            loaded = repo.load()
            self.assertEqual(loaded.courses, state.courses)
            self.assertEqual(loaded.overrides, state.overrides)


if __name__ == "__main__":
    unittest.main()
