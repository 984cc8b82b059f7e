import pytest

from assignments import (
    AssignmentEngine,
    AssignmentError,
    AssignmentNotFoundError,
    DuplicateAssignmentError,
    InsufficientDataError,
    MAX_PERIODS_PER_WEEK,
    UnknownReferenceError,
    coerce_periods,
    compute_workload,
    detect_conflicts,
    generate_sample_assignments,
    workload_percentage,
    workload_tier,
)
from models import Assignment, Class, Subject, Teacher


@pytest.fixture
def engine(teachers, subjects, classes):
    return AssignmentEngine(teachers, subjects, classes)


def test_add_uses_subject_default_periods(engine) -> None:
    a = engine.add_assignment("t1", "s1", "c1")
    assert len(engine.assignments) == 1
    assert a.periods_per_week == 4


def test_add_falls_back_to_five_periods(engine) -> None:
    a = engine.add_assignment("t1", "s2", "c1")
    assert a.periods_per_week == 5


def test_add_duplicate_is_rejected_without_changes(engine) -> None:
    engine.add_assignment("t1", "s1", "c1")
    engine.update_assignment(("t1", "s1", "c1"), "periods_per_week", 3)
    with pytest.raises(DuplicateAssignmentError):
        engine.add_assignment("t1", "s1", "c1")
    assert len(engine.assignments) == 1
    assert engine.assignments[0].periods_per_week == 3


@pytest.mark.parametrize("ids", [("tx", "s1", "c1"), ("t1", "sx", "c1"), ("t1", "s1", "cx")])
def test_add_unknown_reference_is_rejected(engine, ids) -> None:
    with pytest.raises(UnknownReferenceError):
        engine.add_assignment(*ids)
    assert engine.assignments == []


def test_add_with_explicit_periods_is_coerced(engine) -> None:
    assert engine.add_assignment("t1", "s1", "c1", "7").periods_per_week == 7
    assert engine.add_assignment("t1", "s2", "c1", "lots").periods_per_week == 1


def test_large_period_counts_are_capped(engine) -> None:
    a = engine.add_assignment("t1", "s1", "c1", "100")
    assert a.periods_per_week == MAX_PERIODS_PER_WEEK
    engine.update_assignment(a, "periods_per_week", 75)
    assert a.periods_per_week == MAX_PERIODS_PER_WEEK
    assert engine.workload == {"t1": MAX_PERIODS_PER_WEEK}


def test_rejections_share_a_base_class() -> None:
    for exc in (DuplicateAssignmentError, UnknownReferenceError, InsufficientDataError, AssignmentNotFoundError):
        assert issubclass(exc, AssignmentError)


@pytest.mark.parametrize(
    "raw, expected",
    [("7", 7), (7, 7), ("4.9", 4), ("abc", 1), ("", 1), (None, 1), (0, 1), (-3, 1), ("nan", 1), ("inf", 1), (40, 40), (41, 40), ("100", 40)],
)
def test_coerce_periods(raw, expected) -> None:
    assert coerce_periods(raw) == expected


def test_update_periods_recomputes_workload(engine) -> None:
    a = engine.add_assignment("t1", "s1", "c1")
    engine.update_assignment(a, "periods_per_week", "9")
    assert engine.workload == {"t1": 9}
    engine.update_assignment(a, "periods_per_week", "not a number")
    assert a.periods_per_week == 1
    assert engine.workload == {"t1": 1}


def test_update_unknown_assignment(engine) -> None:
    with pytest.raises(AssignmentNotFoundError):
        engine.update_assignment(("t1", "s1", "c1"), "periods_per_week", 3)


def test_update_only_periods_field(engine) -> None:
    a = engine.add_assignment("t1", "s1", "c1")
    with pytest.raises(AssignmentError):
        engine.update_assignment(a, "teacher_id", "t2")


def test_remove_is_idempotent(engine) -> None:
    engine.add_assignment("t1", "s1", "c1")
    engine.add_assignment("t2", "s2", "c1")
    engine.remove_assignment(("t1", "s1", "c1"))
    once = [a.key for a in engine.assignments]
    engine.remove_assignment(("t1", "s1", "c1"))
    assert [a.key for a in engine.assignments] == once == [("t2", "s2", "c1")]
    assert engine.workload == {"t2": 5}


def test_workload_sum_matches_assignments(engine) -> None:
    engine.add_assignment("t1", "s1", "c1")
    engine.add_assignment("t1", "s3", "c2")
    engine.add_assignment("t2", "s2", "c1", 2)
    assert sum(engine.workload.values()) == sum(a.periods_per_week for a in engine.assignments) == 12
    assert engine.total_periods() == 12


def test_unassigned_teachers_are_absent_from_workload(engine) -> None:
    engine.add_assignment("t1", "s1", "c1")
    assert "t2" not in engine.workload


def test_overload_conflict_names_teacher(engine) -> None:
    engine.add_assignment("t1", "s1", "c1", 16)
    engine.add_assignment("t1", "s2", "c1", 15)
    assert engine.conflicts == ["Teacher Ann Lee is overloaded (31 > 30 periods/week)"]


def test_at_capacity_is_not_a_conflict(engine) -> None:
    engine.add_assignment("t1", "s1", "c1", 30)
    assert engine.conflicts == []


def test_duplicate_subject_in_class_conflict(teachers, subjects) -> None:
    classes = [Class(id="c", name="7C")]
    assignments = [Assignment("t1", "s1", "c", 5), Assignment("t2", "s1", "c", 4)]
    conflicts = detect_conflicts(assignments, teachers, subjects, classes)
    assert conflicts == ["Multiple teachers assigned to Maths for class 7C"]


def test_same_teacher_same_cell_is_still_flagged(engine) -> None:
    engine.replace_all([Assignment("t1", "s1", "c1", 2), Assignment("t1", "s1", "c1", 3)])
    assert engine.conflicts == ["Multiple teachers assigned to Maths for class 5A"]


def test_overloads_listed_before_duplicates(engine) -> None:
    engine.add_assignment("t1", "s1", "c1", 20)
    engine.add_assignment("t2", "s1", "c1", 4)
    engine.add_assignment("t1", "s2", "c2", 11)
    assert engine.conflicts == [
        "Teacher Ann Lee is overloaded (31 > 30 periods/week)",
        "Multiple teachers assigned to Maths for class 5A",
    ]


def test_drop_orphans_after_teacher_removed(teachers, subjects, classes) -> None:
    saved = [Assignment("t1", "s1", "c1", 5), Assignment("t2", "s1", "c1", 4), Assignment("t1", "s2", "cx", 3)]
    engine = AssignmentEngine(teachers[:1], subjects, classes, saved)
    assert "Multiple teachers assigned to Maths for class 5A" in engine.conflicts

    dropped = engine.drop_orphans()
    assert [a.key for a in dropped] == [("t2", "s1", "c1"), ("t1", "s2", "cx")]
    assert [a.key for a in engine.assignments] == [("t1", "s1", "c1")]
    assert engine.conflicts == []
    assert engine.drop_orphans() == []


def test_conflicts_clear_after_removal(engine) -> None:
    engine.add_assignment("t1", "s1", "c1")
    engine.add_assignment("t2", "s1", "c1")
    assert len(engine.conflicts) == 1
    engine.remove_assignment(("t2", "s1", "c1"))
    assert engine.conflicts == []


def test_sample_round_robin(engine) -> None:
    result = engine.generate_sample_assignments()
    assert len(result) == 6
    for class_id in ("c1", "c2"):
        rows = [a for a in result if a.class_id == class_id]
        assert [a.subject_id for a in rows] == ["s1", "s2", "s3"]
        assert [a.teacher_id for a in rows] == ["t1", "t2", "t1"]
        assert [a.periods_per_week for a in rows] == [4, 5, 6]


def test_sample_replaces_existing_set(engine) -> None:
    engine.add_assignment("t2", "s3", "c1", 9)
    engine.generate_sample_assignments()
    assert len(engine.assignments) == 6
    assert Assignment("t2", "s3", "c1", 9) not in engine.assignments
    assert engine.workload == {"t1": 20, "t2": 10}


def test_sample_uses_at_most_five_subjects(teachers, classes) -> None:
    subjects = [Subject(id=f"s{i}", name=f"Subject {i}") for i in range(7)]
    result = generate_sample_assignments(teachers, subjects, classes)
    assert len(result) == 10
    assert {a.subject_id for a in result} == {"s0", "s1", "s2", "s3", "s4"}


def test_sample_needs_enough_data(teachers, subjects, classes) -> None:
    engine = AssignmentEngine(teachers[:1], subjects, classes)
    engine.replace_all([Assignment("t1", "s1", "c1", 3)])
    with pytest.raises(InsufficientDataError):
        engine.generate_sample_assignments()
    assert engine.assignments == [Assignment("t1", "s1", "c1", 3)]

    with pytest.raises(InsufficientDataError):
        generate_sample_assignments(teachers, subjects[:2], classes)
    with pytest.raises(InsufficientDataError):
        generate_sample_assignments(teachers, subjects, classes[:1])


def test_compute_workload() -> None:
    assignments = [Assignment("a", "x", "1", 3), Assignment("b", "x", "2", 2), Assignment("a", "y", "1", 4)]
    assert compute_workload(assignments) == {"a": 7, "b": 2}
    assert compute_workload([]) == {}


@pytest.mark.parametrize(
    "workload, capacity, pct, tier",
    [(35, 30, 100.0, "red"), (27, 30, 90.0, "red"), (21, 30, 70.0, "yellow"), (15, 30, 50.0, "green"), (0, 30, 0.0, "green")],
)
def test_workload_percentage_and_tier(workload, capacity, pct, tier) -> None:
    assert workload_percentage(workload, capacity) == pytest.approx(pct)
    assert workload_tier(workload_percentage(workload, capacity)) == tier


def test_workload_summary_covers_every_teacher(engine) -> None:
    engine.add_assignment("t1", "s3", "c1", 24)
    summary = {w.teacher.id: w for w in engine.workload_summary()}
    assert summary["t1"].current == 24
    assert summary["t1"].capacity == 30
    assert summary["t1"].tier == "yellow"
    assert summary["t2"].current == 0
    assert summary["t2"].tier == "green"


def test_class_subject_coverage(engine) -> None:
    engine.add_assignment("t1", "s1", "c1")
    engine.add_assignment("t2", "s1", "c1")
    engine.add_assignment("t2", "s2", "c1")
    assert engine.class_subject_coverage("c1") == (2, 3)
    assert engine.class_subject_coverage("c2") == (0, 3)


def test_names_for_unknown_ids(engine) -> None:
    assert engine.teacher_name("t1") == "Ann Lee"
    assert engine.teacher_name("nope") == "Unknown"
    assert engine.subject_name("nope") == "Unknown"
    assert engine.class_name("c2") == "5B"


def test_weekly_capacity_uses_five_days() -> None:
    assert Teacher(id="x", first_name="A", last_name="B", max_periods_per_day=7).weekly_capacity == 35
