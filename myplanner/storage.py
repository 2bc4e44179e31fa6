"""
Persistent storage for the user's planner document.

The planner is stored as one document per user:

    {
        "courses": [ {...}, ... ],
        "scheduleOverrides": {"<courseId>_<yyyy-MM-dd>": "online" | "onsite"},
        ... other fields (tasks, subjects, ...) kept untouched
    }

Callers depend on the PlannerRepository interface only. Two backends exist:
- JsonFileRepository (this module): a local JSON file
- FirestoreRepository (myplanner.firestore): the cloud document store

Loading is tolerant: a missing or corrupted document gives an empty state
instead of crashing the application. A corrupted file is never overwritten
though; saving over it raises PlannerFileError until it is fixed or removed.
"""

from __future__ import annotations

import abc
import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from myplanner.config import default_data_path
from myplanner.model import FORCED_STATUSES, Course, OverrideKey

LOG = logging.getLogger(__name__)

COURSES_FIELD = "courses"
OVERRIDES_FIELD = "scheduleOverrides"


class PlannerFileError(RuntimeError):
    """Raised when saving would overwrite a planner file that could not be read."""


@dataclass
class PlannerState:
    courses: list[Course] = field(default_factory=list)
    overrides: dict[OverrideKey, str] = field(default_factory=dict)
    # other top-level document fields, written back as they were read
    extra: dict[str, Any] = field(default_factory=dict)

    def course_by_id(self, course_id: str) -> Course | None:
        for c in self.courses:
            if c.id == course_id:
                return c
        return None

    def remove_course(self, course_id: str) -> bool:
        """
        Remove a course and every override that belongs to it.
        Returns False if the course does not exist.
        """
        before = len(self.courses)
        self.courses = [c for c in self.courses if c.id != course_id]
        if len(self.courses) == before:
            return False
        self.overrides = {k: v for k, v in self.overrides.items() if k.course_id != course_id}
        return True

    def update_course(self, course_id: str, **changes: Any) -> Course | None:
        """
        Replace fields of an existing course, e.g. update_course("db1", room="B-101").

        The edited course is validated again (ValueError on bad values) and
        stamped with updatedAt in epoch milliseconds. Returns None if the
        course does not exist. Overrides are left as they are.
        """
        for i, course in enumerate(self.courses):
            if course.id != course_id:
                continue
            extra = dict(course.extra)
            extra["updatedAt"] = int(time.time() * 1000)
            updated = replace(course, **changes, extra=extra)
            self.courses[i] = updated
            return updated
        return None

    @classmethod
    def from_document(cls, doc: Any) -> "PlannerState":
        if not isinstance(doc, dict):
            return cls()

        courses_raw = doc.get(COURSES_FIELD)
        courses: list[Course] = []
        if isinstance(courses_raw, list):
            for item in courses_raw:
                # skip non-object entries, but invalid course records still raise
                if isinstance(item, dict):
                    courses.append(Course.from_dict(item))

        overrides: dict[OverrideKey, str] = {}
        overrides_raw = doc.get(OVERRIDES_FIELD)
        if isinstance(overrides_raw, dict):
            for raw_key, status in overrides_raw.items():
                try:
                    key = OverrideKey.from_storage(raw_key)
                except ValueError:
                    LOG.warning("Dropping override with invalid key %r", raw_key)
                    continue
                if status not in FORCED_STATUSES:
                    LOG.warning("Dropping override %r with invalid status %r", raw_key, status)
                    continue
                overrides[key] = status

        extra = {k: v for k, v in doc.items() if k not in (COURSES_FIELD, OVERRIDES_FIELD)}
        return cls(courses=courses, overrides=overrides, extra=extra)

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = dict(self.extra)
        doc[COURSES_FIELD] = [c.to_dict() for c in self.courses]
        doc[OVERRIDES_FIELD] = {k.to_storage(): v for k, v in sorted(self.overrides.items())}
        return doc


class PlannerRepository(abc.ABC):
    """Loads and saves the planner state of one user."""

    @abc.abstractmethod
    def load(self) -> PlannerState:
        raise NotImplementedError

    @abc.abstractmethod
    def save(self, state: PlannerState) -> None:
        raise NotImplementedError


class JsonFileRepository(PlannerRepository):
    def __init__(self, path: str | Path | None = None) -> None:
        # Use custom path if provided (mainly for tests),
        # otherwise fall back to the configured default location
        self.path = Path(path) if path is not None else default_data_path()
        # set when the last load() found a file it could not parse
        self._unreadable = False

    def load(self) -> PlannerState:
        self._unreadable = False

        # First run: file does not exist yet -> empty planner
        if not self.path.exists():
            LOG.debug("No planner file at %s, starting empty", self.path)
            return PlannerState()

        try:
            doc = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            LOG.warning("Could not read planner file %s: %s", self.path, exc)
            self._unreadable = True
            return PlannerState()

        if not isinstance(doc, dict):
            LOG.warning("Planner file %s does not hold a JSON object", self.path)
            self._unreadable = True
        return PlannerState.from_document(doc)

    def save(self, state: PlannerState) -> None:
        """
        Write the planner document. Creates parent directories if needed.

        The document is written to a temporary file first and then moved
        over the old one, so an interrupted save leaves the old file intact.
        """
        if self._unreadable:
            raise PlannerFileError(
                f"Refusing to overwrite unreadable planner file {self.path}; fix or remove it first"
            )

        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(state.to_document(), indent=2, ensure_ascii=False)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=self.path.parent, suffix=".tmp", delete=False
        ) as tmp:
            tmp.write(payload)
        os.replace(tmp.name, self.path)
        LOG.debug("Saved planner to %s", self.path)
