"""
🧠 ASSIGNMENT ENGINE - Baby-level explanation
=============================================
Keeps the list of "who teaches what to whom" and checks it after every change.

Two things are worked out again after every add / edit / remove:
1. Workload: how many periods each teacher has per week.
2. Conflicts: teachers over their weekly limit, and classes that got
   the same subject from more than one assignment.

Nothing is cached, so what you read is always the latest.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from models import (
    Assignment,
    AssignmentKey,
    Class,
    Subject,
    Teacher,
)


logger = logging.getLogger(__name__)

SAMPLE_MIN_TEACHERS = 2
SAMPLE_MIN_SUBJECTS = 3
SAMPLE_MIN_CLASSES = 2
SAMPLE_SUBJECTS_PER_CLASS = 5
MAX_PERIODS_PER_WEEK = 40

AssignmentRef = Union[Assignment, AssignmentKey]


class AssignmentError(ValueError):
    """An assignment change was rejected. Nothing was modified."""


class DuplicateAssignmentError(AssignmentError):
    pass


class UnknownReferenceError(AssignmentError):
    pass


class AssignmentNotFoundError(AssignmentError):
    pass


class InsufficientDataError(AssignmentError):
    pass


def coerce_periods(value) -> int:
    """
    Turn user input into a period count between 1 and MAX_PERIODS_PER_WEEK.
    Anything unusable becomes 1.
    """
    try:
        periods = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 1
    if periods < 1:
        return 1
    return min(periods, MAX_PERIODS_PER_WEEK)


# ---------------------------------------------------------------------------
# WORKLOAD & CONFLICTS (pure functions)
# ---------------------------------------------------------------------------


def compute_workload(assignments: Iterable[Assignment]) -> Dict[str, int]:
    """
    teacher_id -> total periods per week.
    Teachers with no assignments are simply not in the dict.
    """
    workload: Dict[str, int] = {}
    for a in assignments:
        workload[a.teacher_id] = workload.get(a.teacher_id, 0) + a.periods_per_week
    return workload


def workload_percentage(workload: int, capacity: int) -> float:
    """Share of capacity used, capped at 100 for progress bars."""
    if capacity <= 0:
        return 100.0 if workload > 0 else 0.0
    return min(workload / capacity * 100, 100.0)


def workload_tier(percentage: float) -> str:
    if percentage >= 90:
        return "red"
    if percentage >= 70:
        return "yellow"
    return "green"


def detect_conflicts(
    assignments: Sequence[Assignment],
    teachers: Sequence[Teacher],
    subjects: Sequence[Subject],
    classes: Sequence[Class],
    workload: Optional[Dict[str, int]] = None,
) -> List[str]:
    """
    Human-readable problems, overloads first, then repeated subjects.

    The repeated-subject check looks at (class, subject) only, so even the
    same teacher twice in one cell is reported.
    """
    if workload is None:
        workload = compute_workload(assignments)
    conflicts: List[str] = []

    for t in teachers:
        current = workload.get(t.id)
        if current is not None and current > t.weekly_capacity:
            conflicts.append(
                f"Teacher {t.first_name} {t.last_name} is overloaded "
                f"({current} > {t.weekly_capacity} periods/week)"
            )

    subject_names = {s.id: s.name for s in subjects}
    class_names = {c.id: c.name for c in classes}
    seen: Dict[str, set] = {}
    for a in assignments:
        seen_for_class = seen.setdefault(a.class_id, set())
        if a.subject_id in seen_for_class:
            conflicts.append(
                f"Multiple teachers assigned to {subject_names.get(a.subject_id, 'Unknown')} "
                f"for class {class_names.get(a.class_id, 'Unknown')}"
            )
        else:
            seen_for_class.add(a.subject_id)

    return conflicts


def generate_sample_assignments(
    teachers: Sequence[Teacher],
    subjects: Sequence[Subject],
    classes: Sequence[Class],
) -> List[Assignment]:
    """
    Quick demo mapping: every class gets the first five subjects, and the
    subjects are dealt out to teachers round-robin (subject 0 -> teacher 0,
    subject 1 -> teacher 1, ...).
    """
    if (
        len(teachers) < SAMPLE_MIN_TEACHERS
        or len(subjects) < SAMPLE_MIN_SUBJECTS
        or len(classes) < SAMPLE_MIN_CLASSES
    ):
        raise InsufficientDataError(
            f"Need at least {SAMPLE_MIN_TEACHERS} teachers, {SAMPLE_MIN_SUBJECTS} subjects "
            f"and {SAMPLE_MIN_CLASSES} classes to generate sample assignments"
        )

    result = []
    for cls in classes:
        for idx, subject in enumerate(subjects[:SAMPLE_SUBJECTS_PER_CLASS]):
            teacher = teachers[idx % len(teachers)]
            result.append(
                Assignment(
                    teacher_id=teacher.id,
                    subject_id=subject.id,
                    class_id=cls.id,
                    periods_per_week=subject.default_periods,
                )
            )
    return result


# ---------------------------------------------------------------------------
# ENGINE
# ---------------------------------------------------------------------------


@dataclass
class TeacherWorkload:
    teacher: Teacher
    current: int
    capacity: int
    percentage: float
    tier: str


class AssignmentEngine:
    """
    Owns the working list of assignments for one school.
    Teachers, subjects and classes are read-only here.
    """

    def __init__(
        self,
        teachers: Sequence[Teacher],
        subjects: Sequence[Subject],
        classes: Sequence[Class],
        assignments: Optional[Iterable[Assignment]] = None,
    ):
        self.teachers = list(teachers)
        self.subjects = list(subjects)
        self.classes = list(classes)
        self._teachers_by_id = {t.id: t for t in self.teachers}
        self._subjects_by_id = {s.id: s for s in self.subjects}
        self._classes_by_id = {c.id: c for c in self.classes}
        self.assignments: List[Assignment] = []
        self.workload: Dict[str, int] = {}
        self.conflicts: List[str] = []
        self.replace_all(assignments or [])

    def _recompute(self) -> None:
        self.workload = compute_workload(self.assignments)
        self.conflicts = detect_conflicts(
            self.assignments, self.teachers, self.subjects, self.classes, self.workload
        )

    def _find(self, ref: AssignmentRef) -> Tuple[int, Optional[Assignment]]:
        key = ref.key if isinstance(ref, Assignment) else tuple(ref)
        for i, a in enumerate(self.assignments):
            if a.key == key:
                return i, a
        return -1, None

    def replace_all(self, assignments: Iterable[Assignment]) -> None:
        """Swap in a whole new set (e.g. loaded from storage)."""
        self.assignments = list(assignments)
        self._recompute()

    def add_assignment(
        self,
        teacher_id: str,
        subject_id: str,
        class_id: str,
        periods_per_week=None,
    ) -> Assignment:
        if teacher_id not in self._teachers_by_id:
            raise UnknownReferenceError(f"Unknown teacher: {teacher_id}")
        if subject_id not in self._subjects_by_id:
            raise UnknownReferenceError(f"Unknown subject: {subject_id}")
        if class_id not in self._classes_by_id:
            raise UnknownReferenceError(f"Unknown class: {class_id}")
        if self._find((teacher_id, subject_id, class_id))[1] is not None:
            raise DuplicateAssignmentError("This mapping already exists")

        if periods_per_week is None:
            periods = self._subjects_by_id[subject_id].default_periods
        else:
            periods = coerce_periods(periods_per_week)
        assignment = Assignment(teacher_id, subject_id, class_id, periods)
        self.assignments.append(assignment)
        self._recompute()
        logger.debug("Added assignment %s (%d periods)", assignment.key, periods)
        return assignment

    def update_assignment(self, ref: AssignmentRef, field: str, value) -> Assignment:
        """Only periods_per_week can be edited; the triple is the identity."""
        if field != "periods_per_week":
            raise AssignmentError(f"Field {field!r} cannot be edited")
        _, assignment = self._find(ref)
        if assignment is None:
            raise AssignmentNotFoundError(f"No assignment for {ref}")
        assignment.periods_per_week = coerce_periods(value)
        self._recompute()
        return assignment

    def remove_assignment(self, ref: AssignmentRef) -> None:
        idx, _ = self._find(ref)
        if idx >= 0:
            self.assignments.pop(idx)
            self._recompute()

    def drop_orphans(self) -> List[Assignment]:
        """Remove assignments whose teacher, subject or class is gone. Returns what was removed."""
        kept: List[Assignment] = []
        dropped: List[Assignment] = []
        for a in self.assignments:
            known = (
                a.teacher_id in self._teachers_by_id
                and a.subject_id in self._subjects_by_id
                and a.class_id in self._classes_by_id
            )
            (kept if known else dropped).append(a)
        if dropped:
            self.replace_all(kept)
            logger.info("Dropped %d assignment(s) with a deleted teacher, subject or class", len(dropped))
        return dropped

    def generate_sample_assignments(self) -> List[Assignment]:
        """Replace everything with the round-robin demo mapping."""
        sample = generate_sample_assignments(self.teachers, self.subjects, self.classes)
        self.replace_all(sample)
        logger.info("Generated %d sample assignment(s)", len(sample))
        return list(self.assignments)

    # -- Read helpers for the UI ----------------------------------------------

    def total_periods(self) -> int:
        return sum(a.periods_per_week for a in self.assignments)

    def workload_summary(self) -> List[TeacherWorkload]:
        summary = []
        for t in self.teachers:
            current = self.workload.get(t.id, 0)
            pct = workload_percentage(current, t.weekly_capacity)
            summary.append(TeacherWorkload(t, current, t.weekly_capacity, pct, workload_tier(pct)))
        return summary

    def class_subject_coverage(self, class_id: str) -> Tuple[int, int]:
        """(subjects covered for this class, subjects in the school)."""
        covered = {a.subject_id for a in self.assignments if a.class_id == class_id}
        return len(covered), len(self.subjects)

    def teacher_name(self, teacher_id: str) -> str:
        t = self._teachers_by_id.get(teacher_id)
        return t.full_name if t else "Unknown"

    def subject_name(self, subject_id: str) -> str:
        s = self._subjects_by_id.get(subject_id)
        return s.name if s else "Unknown"

    def class_name(self, class_id: str) -> str:
        c = self._classes_by_id.get(class_id)
        return c.name if c else "Unknown"
