"""
✅ VALIDATION - Is this school ready for the scheduler?
======================================================
Scores how much of the setup is filled in, then lists what looks wrong:
overloaded teachers, overfull classes, and a thin setup.
"""

from typing import Dict, List, Optional

from assignments import compute_workload
from models import CompletenessReport, CompletenessSection, Finding, SetupData


COMPLETENESS_THRESHOLD = 80
NEAR_CAPACITY_RATIO = 0.8

# (section name, weight). Weights add up to 100.
COMPLETENESS_SECTIONS = [
    ("School Info", 15),
    ("Academic Calendar", 10),
    ("Infrastructure", 15),
    ("Students", 20),
    ("Teachers", 20),
    ("Subjects", 10),
    ("Classes", 5),
    ("Time Slots", 5),
]


def _section_filled(name: str, data: SetupData) -> bool:
    if name == "School Info":
        return data.school is not None and data.school.is_complete
    collections = {
        "Academic Calendar": data.academic_calendar,
        "Infrastructure": data.infrastructure,
        "Students": data.students,
        "Teachers": data.teachers,
        "Subjects": data.subjects,
        "Classes": data.classes,
        "Time Slots": data.time_slots,
    }
    return len(collections[name]) > 0


def compute_completeness(data: SetupData) -> CompletenessReport:
    """Full weight for every section that has data, zero otherwise."""
    sections = []
    for name, weight in COMPLETENESS_SECTIONS:
        score = weight if _section_filled(name, data) else 0
        sections.append(CompletenessSection(name=name, weight=weight, score=score))
    return CompletenessReport(sections=sections, total=sum(s.score for s in sections))


def run_validation_checks(
    data: SetupData,
    workload: Optional[Dict[str, int]] = None,
) -> List[Finding]:
    """
    Findings in a fixed order: teachers, classes, completeness.
    If nothing is wrong, a single success finding.

    workload: teacher_id -> periods/week, as kept by the AssignmentEngine.
    Worked out from data.assignments when not given.
    """
    if workload is None:
        workload = compute_workload(data.assignments)
    results: List[Finding] = []

    for teacher in data.teachers:
        total = workload.get(teacher.id, 0)
        max_periods = teacher.weekly_capacity
        name = f"{teacher.first_name} {teacher.last_name}"
        if total > max_periods:
            results.append(Finding(
                kind="error",
                message=f"{name} is overloaded ({total}/{max_periods} periods)",
                category="Workload",
            ))
        elif total > max_periods * NEAR_CAPACITY_RATIO:
            results.append(Finding(
                kind="warning",
                message=f"{name} is near capacity ({total}/{max_periods} periods)",
                category="Workload",
            ))

    for cls in data.classes:
        if cls.actual_enrollment and cls.capacity and cls.actual_enrollment > cls.capacity:
            results.append(Finding(
                kind="warning",
                message=f"{cls.name} is over capacity ({cls.actual_enrollment}/{cls.capacity} students)",
                category="Capacity",
            ))

    completeness = compute_completeness(data)
    if completeness.percentage < COMPLETENESS_THRESHOLD:
        results.append(Finding(
            kind="warning",
            message=f"Setup is {completeness.percentage:.1f}% complete. Consider adding more data.",
            category="Completeness",
        ))

    if not results:
        results.append(Finding(
            kind="success",
            message="All validation checks passed successfully!",
            category="Validation",
        ))

    return results
