"""
🧠 DATA MODELS - Baby-level explanation
========================================
These are little boxes that hold what the setup wizard collects:
the school itself, its students, teachers, subjects, classes, time slots,
calendar events and rooms. Plus the assignment boxes that say
"this teacher teaches this subject to this class, N times a week".
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple


WORKING_DAYS_PER_WEEK = 5
DEFAULT_PERIODS_PER_WEEK = 5

AssignmentKey = Tuple[str, str, str]  # (teacher_id, subject_id, class_id)


@dataclass
class SchoolInfo:
    """
    The school itself.
    - name, principal_name and email are the fields that make the
      "School Info" section count as complete.
    """

    name: str
    id: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    principal_name: Optional[str] = None
    academic_year: Optional[str] = None
    timezone: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.name and self.principal_name and self.email)


@dataclass
class Teacher:
    """
    One teacher in the school.
    - id: Unique row id (set by storage)
    - max_periods_per_day: How many periods they can work per day (e.g. 6)
    """

    id: str
    first_name: str
    last_name: str
    department: Optional[str] = None
    max_periods_per_day: int = 6
    teacher_code: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    qualification: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def weekly_capacity(self) -> int:
        """Most periods this teacher can take in one week."""
        return self.max_periods_per_day * WORKING_DAYS_PER_WEEK


@dataclass
class Subject:
    """
    One subject (e.g. Mathematics).
    - periods_per_week: Suggested weekly periods for new assignments.
      None means "use the default of 5".
    """

    id: str
    name: str
    code: Optional[str] = None
    department: Optional[str] = None
    periods_per_week: Optional[int] = None
    description: Optional[str] = None

    @property
    def default_periods(self) -> int:
        return self.periods_per_week or DEFAULT_PERIODS_PER_WEEK


@dataclass
class Class:
    """
    One class in the school (e.g. Grade 5 - A).
    - capacity / actual_enrollment: Used to warn about overfull rooms.
    """

    id: str
    name: str
    grade: Optional[str] = None
    section: Optional[str] = None
    capacity: Optional[int] = None
    actual_enrollment: Optional[int] = None
    room_number: Optional[str] = None


@dataclass
class Student:
    id: str
    first_name: str
    last_name: str
    student_code: Optional[str] = None
    grade: Optional[str] = None
    section: Optional[str] = None
    email: Optional[str] = None


@dataclass
class TimeSlot:
    """A named part of the school day, e.g. Period 1 08:00-08:45."""

    id: str
    name: str
    start_time: str
    end_time: str
    slot_type: str = "class"


@dataclass
class CalendarEvent:
    id: str
    event_name: str
    event_type: str
    start_date: str
    end_date: str
    description: Optional[str] = None


@dataclass
class Room:
    id: str
    room_name: str
    room_type: str
    capacity: Optional[int] = None
    is_available: bool = True


@dataclass
class Assignment:
    """
    One teacher teaching one subject to one class.
    Like a line in the staff room book: "Ms. Rao, Physics, 11A, 6 a week".
    id stays None until the assignment is saved.
    """

    teacher_id: str
    subject_id: str
    class_id: str
    periods_per_week: int = DEFAULT_PERIODS_PER_WEEK
    id: Optional[str] = None

    @property
    def key(self) -> AssignmentKey:
        return (self.teacher_id, self.subject_id, self.class_id)


@dataclass
class Finding:
    """
    One line of the validation report.
    - kind: "error", "warning" or "success"
    - category: Short label (Workload, Capacity, Completeness, Validation)
    """

    kind: str
    message: str
    category: str


@dataclass
class CompletenessSection:
    name: str
    weight: int
    score: int

    @property
    def percentage(self) -> float:
        return (self.score / self.weight) * 100 if self.weight else 0.0


@dataclass
class CompletenessReport:
    sections: List[CompletenessSection]
    total: int

    @property
    def percentage(self) -> float:
        # Weights add up to 100, so the total already is a percentage.
        return float(self.total)


@dataclass
class SetupProgress:
    """Where the user is in the wizard, and what each finished step handed over."""

    current_step: int = 1
    step_data: Dict[str, Any] = field(default_factory=dict)
    completed_steps: List[int] = field(default_factory=list)
    school_id: Optional[str] = None


@dataclass
class SetupData:
    """
    Everything the wizard has collected for one school.
    Passed around explicitly: the UI, the validators and the scheduler
    handoff all read from the same object.
    """

    school_id: Optional[str] = None
    school: Optional[SchoolInfo] = None
    students: List[Student] = field(default_factory=list)
    teachers: List[Teacher] = field(default_factory=list)
    subjects: List[Subject] = field(default_factory=list)
    classes: List[Class] = field(default_factory=list)
    time_slots: List[TimeSlot] = field(default_factory=list)
    academic_calendar: List[CalendarEvent] = field(default_factory=list)
    infrastructure: List[Room] = field(default_factory=list)
    assignments: List[Assignment] = field(default_factory=list)

    def to_dict(self) -> dict:
        """JSON-friendly view, keyed the way the scheduler app reads it."""
        return {
            "schoolId": self.school_id,
            "school": asdict(self.school) if self.school else None,
            "students": [asdict(s) for s in self.students],
            "teachers": [asdict(t) for t in self.teachers],
            "subjects": [asdict(s) for s in self.subjects],
            "classes": [asdict(c) for c in self.classes],
            "timeSlots": [asdict(ts) for ts in self.time_slots],
            "academicCalendar": [asdict(e) for e in self.academic_calendar],
            "infrastructure": [asdict(r) for r in self.infrastructure],
            "teacherSubjectMappings": [asdict(a) for a in self.assignments],
        }
