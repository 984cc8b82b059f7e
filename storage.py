"""
🧠 STORAGE - File-based row store
=================================
One JSON file per table under the data directory. Refresh -> everything
still there. Rows are plain dicts; the helpers at the bottom turn them
into model objects and back.
"""

import json
import logging
import uuid
from dataclasses import asdict, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from assignments import coerce_periods
from config import DEFAULT_DATA_DIR
from models import (
    Assignment,
    CalendarEvent,
    Class,
    Room,
    SchoolInfo,
    SetupData,
    SetupProgress,
    Student,
    Subject,
    Teacher,
    TimeSlot,
)


logger = logging.getLogger(__name__)

SCHOOLS = "schools"
STUDENTS = "students"
TEACHERS = "teachers"
SUBJECTS = "subjects"
CLASSES = "classes"
TIME_SLOTS = "time_slots"
ACADEMIC_CALENDAR = "academic_calendar"
INFRASTRUCTURE = "infrastructure"
ASSIGNMENTS = "teacher_subject_assignments"
SETUP_PROGRESS = "setup_progress"

TABLES = (
    SCHOOLS,
    STUDENTS,
    TEACHERS,
    SUBJECTS,
    CLASSES,
    TIME_SLOTS,
    ACADEMIC_CALENDAR,
    INFRASTRUCTURE,
    ASSIGNMENTS,
    SETUP_PROGRESS,
)

HISTORY_FILE_NAME = "history.json"
HISTORY_LIMIT = 500


class StorageError(Exception):
    """A table could not be read or written."""


def _matches(row: dict, filters: Dict[str, Any]) -> bool:
    for column, expected in filters.items():
        value = row.get(column)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


class RowStore:
    """
    Tiny table store: select / insert / delete / upsert.
    Filters are keyword arguments. A list value means "column is one of these".
    """

    def __init__(self, data_dir: Path = DEFAULT_DATA_DIR):
        self.data_dir = Path(data_dir)

    def _ensure_data_dir(self) -> None:
        """Create data directory if it doesn't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _table_file(self, table: str) -> Path:
        if table not in TABLES:
            raise StorageError(f"Unknown table: {table}")
        return self.data_dir / f"{table}.json"

    def _read(self, table: str) -> List[dict]:
        path = self._table_file(table)
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not read table {table}: {e}") from e
        if not isinstance(data, list):
            raise StorageError(f"Table {table} is not a list of rows")
        return data

    def _write(self, table: str, rows: List[dict]) -> None:
        path = self._table_file(table)
        try:
            self._ensure_data_dir()
            with open(path, "w", encoding="utf-8") as f:
                json.dump(rows, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise StorageError(f"Could not write table {table}: {e}") from e

    def select(self, table: str, **filters: Any) -> List[dict]:
        """Rows matching every filter, in insertion order."""
        return [row for row in self._read(table) if _matches(row, filters)]

    def insert(self, table: str, rows: Iterable[dict]) -> List[dict]:
        """Append rows. Rows without an id get one. Returns the stored rows."""
        existing = self._read(table)
        now = datetime.now().isoformat()
        stored = []
        for row in rows:
            new_row = dict(row)
            if not new_row.get("id"):
                new_row["id"] = str(uuid.uuid4())
            new_row.setdefault("created_at", now)
            stored.append(new_row)
        self._write(table, existing + stored)
        logger.debug("Inserted %d row(s) into %s", len(stored), table)
        return stored

    def delete(self, table: str, **filters: Any) -> int:
        """Remove matching rows. Refuses to run without a filter."""
        if not filters:
            raise StorageError(f"Refusing to delete from {table} without a filter")
        existing = self._read(table)
        kept = [row for row in existing if not _matches(row, filters)]
        removed = len(existing) - len(kept)
        if removed:
            self._write(table, kept)
        logger.debug("Deleted %d row(s) from %s", removed, table)
        return removed

    def update(self, table: str, row_id: str, changes: Dict[str, Any]) -> Optional[dict]:
        """Patch one row by id. Returns the new row or None if it's gone."""
        rows = self._read(table)
        for i, row in enumerate(rows):
            if row.get("id") == row_id:
                rows[i] = {**row, **changes, "id": row_id, "updated_at": datetime.now().isoformat()}
                self._write(table, rows)
                return rows[i]
        return None

    def upsert(self, table: str, row: dict, key: str) -> dict:
        """Replace the row whose `key` column matches, or insert a new one."""
        rows = self._read(table)
        for i, existing in enumerate(rows):
            if existing.get(key) == row.get(key):
                merged = {**existing, **row, "id": existing["id"], "updated_at": datetime.now().isoformat()}
                rows[i] = merged
                self._write(table, rows)
                return merged
        return self.insert(table, [row])[0]

    # -- Activity history (newest first) -------------------------------------

    def load_history(self) -> List[dict]:
        """Load activity history. Newest first."""
        path = self.data_dir / HISTORY_FILE_NAME
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("History file unreadable, starting fresh: %s", e)
            return []

    def append_history(self, action: str, target: str, summary: str, details: str = "") -> None:
        """Append one history entry. Keeps last 500 entries."""
        history = self.load_history()
        entry = {
            "ts": datetime.now().isoformat(),
            "action": action,
            "target": target,
            "summary": summary,
            "details": details,
        }
        history.insert(0, entry)
        history = history[:HISTORY_LIMIT]
        try:
            self._ensure_data_dir()
            with open(self.data_dir / HISTORY_FILE_NAME, "w", encoding="utf-8") as f:
                json.dump(history, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.warning("Could not write history entry %r: %s", summary, e)


# ---------------------------------------------------------------------------
# ROW <-> MODEL
# ---------------------------------------------------------------------------


def _row_to_model(model_cls, row: dict):
    """Build a dataclass from a row, ignoring storage-only columns."""
    names = {f.name for f in fields(model_cls)}
    return model_cls(**{k: v for k, v in row.items() if k in names})


def model_to_row(obj, school_id: Optional[str] = None) -> dict:
    """Convert a model to a row. Drops an unset id so the store assigns one."""
    row = asdict(obj)
    if row.get("id") is None:
        row.pop("id", None)
    if school_id is not None:
        row["school_id"] = school_id
    return row


def _row_to_teacher(row: dict) -> Teacher:
    return Teacher(
        id=row["id"],
        first_name=row.get("first_name", ""),
        last_name=row.get("last_name", ""),
        department=row.get("department"),
        max_periods_per_day=row.get("max_periods_per_day") or 6,
        teacher_code=row.get("teacher_code"),
        email=row.get("email"),
        phone=row.get("phone"),
        qualification=row.get("qualification"),
    )


def _row_to_assignment(row: dict) -> Assignment:
    return Assignment(
        teacher_id=row["teacher_id"],
        subject_id=row["subject_id"],
        class_id=row["class_id"],
        periods_per_week=coerce_periods(row.get("periods_per_week")),
        id=row.get("id"),
    )


def assignment_to_row(a: Assignment) -> dict:
    """Assignment rows carry no school_id; they are scoped through teacher_id."""
    return {
        "teacher_id": a.teacher_id,
        "subject_id": a.subject_id,
        "class_id": a.class_id,
        "periods_per_week": a.periods_per_week,
    }


# ---------------------------------------------------------------------------
# LOAD / SAVE
# ---------------------------------------------------------------------------


def load_teachers(store: RowStore, school_id: str) -> List[Teacher]:
    return [_row_to_teacher(r) for r in store.select(TEACHERS, school_id=school_id)]


def load_subjects(store: RowStore, school_id: str) -> List[Subject]:
    return [_row_to_model(Subject, r) for r in store.select(SUBJECTS, school_id=school_id)]


def load_classes(store: RowStore, school_id: str) -> List[Class]:
    return [_row_to_model(Class, r) for r in store.select(CLASSES, school_id=school_id)]


def load_assignments(store: RowStore, class_ids: Iterable[str]) -> List[Assignment]:
    """Saved assignments for the given classes, in saved order."""
    ids = list(class_ids)
    if not ids:
        return []
    return [_row_to_assignment(r) for r in store.select(ASSIGNMENTS, class_id=ids)]


def save_assignments(store: RowStore, teacher_ids: Iterable[str], assignments: List[Assignment]) -> List[Assignment]:
    """
    Full replace: delete every saved assignment of these teachers, then
    insert the current set.

    A failed delete is logged and the insert still runs. A failed insert
    raises StorageError. Not atomic: if the insert fails after the delete,
    the saved set for these teachers is empty until the next good save.
    """
    ids = list(teacher_ids)
    if ids:
        try:
            removed = store.delete(ASSIGNMENTS, teacher_id=ids)
            logger.info("Cleared %d saved assignment(s) for %d teacher(s)", removed, len(ids))
        except StorageError as e:
            logger.error("Error clearing old assignments: %s", e)

    if not assignments:
        return []
    stored = store.insert(ASSIGNMENTS, [assignment_to_row(a) for a in assignments])
    logger.info("Saved %d assignment(s)", len(stored))
    return [_row_to_assignment(r) for r in stored]


# Deleting one of these also deletes the assignment rows that point at it.
ASSIGNMENT_REFERENCES = {
    TEACHERS: "teacher_id",
    SUBJECTS: "subject_id",
    CLASSES: "class_id",
}


def delete_record(store: RowStore, table: str, row_id: str) -> int:
    """Delete one row by id, cascading to its assignments. Returns rows removed from `table`."""
    column = ASSIGNMENT_REFERENCES.get(table)
    if column is not None:
        removed = store.delete(ASSIGNMENTS, **{column: row_id})
        if removed:
            logger.info("Deleted %d assignment(s) referencing %s %s", removed, table, row_id)
    return store.delete(table, id=row_id)


def load_school_data(store: RowStore, school_id: str) -> SetupData:
    """Everything saved for one school, as a SetupData."""
    school_rows = store.select(SCHOOLS, id=school_id)
    school = _row_to_model(SchoolInfo, school_rows[0]) if school_rows else None
    classes = load_classes(store, school_id)
    return SetupData(
        school_id=school_id,
        school=school,
        students=[_row_to_model(Student, r) for r in store.select(STUDENTS, school_id=school_id)],
        teachers=load_teachers(store, school_id),
        subjects=load_subjects(store, school_id),
        classes=classes,
        time_slots=[_row_to_model(TimeSlot, r) for r in store.select(TIME_SLOTS, school_id=school_id)],
        academic_calendar=[
            _row_to_model(CalendarEvent, r) for r in store.select(ACADEMIC_CALENDAR, school_id=school_id)
        ],
        infrastructure=[_row_to_model(Room, r) for r in store.select(INFRASTRUCTURE, school_id=school_id)],
        assignments=load_assignments(store, [c.id for c in classes]),
    )


def save_school(store: RowStore, school: SchoolInfo) -> SchoolInfo:
    """Insert a new school or update the saved one. Returns it with its id."""
    if school.id:
        row = store.update(SCHOOLS, school.id, model_to_row(school))
        if row is not None:
            return _row_to_model(SchoolInfo, row)
    row = store.insert(SCHOOLS, [model_to_row(school)])[0]
    return _row_to_model(SchoolInfo, row)


def add_record(store: RowStore, table: str, obj, school_id: str):
    """Save one new teacher/subject/class/... and return it with its id."""
    row = store.insert(table, [model_to_row(obj, school_id)])[0]
    if table == TEACHERS:
        return _row_to_teacher(row)
    return _row_to_model(type(obj), row)


def load_progress(store: RowStore, user_id: str) -> SetupProgress:
    """Saved wizard progress for a user. Defaults if none or unreadable."""
    try:
        rows = store.select(SETUP_PROGRESS, user_id=user_id)
    except StorageError as e:
        logger.warning("Progress load error, using defaults: %s", e)
        return SetupProgress()
    if not rows:
        return SetupProgress()
    row = rows[0]
    return SetupProgress(
        current_step=row.get("current_step") or 1,
        step_data=row.get("step_data") or {},
        completed_steps=row.get("completed_steps") or [],
        school_id=row.get("school_id"),
    )


def save_progress(store: RowStore, user_id: str, progress: SetupProgress) -> bool:
    """Upsert wizard progress. Returns False (and logs) if the store failed."""
    row = {
        "user_id": user_id,
        "current_step": progress.current_step,
        "step_data": progress.step_data,
        "completed_steps": progress.completed_steps,
        "school_id": progress.school_id,
    }
    try:
        store.upsert(SETUP_PROGRESS, row, key="user_id")
    except StorageError as e:
        logger.warning("Progress save error: %s", e)
        return False
    return True
