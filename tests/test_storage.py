import json

import pytest

from models import Assignment, Class, SchoolInfo, SetupProgress, Subject, Teacher
from storage import (
    ASSIGNMENTS,
    CLASSES,
    SUBJECTS,
    TEACHERS,
    StorageError,
    add_record,
    delete_record,
    load_progress,
    load_school_data,
    save_assignments,
    save_progress,
    save_school,
)


def test_insert_assigns_id_and_timestamp(store) -> None:
    rows = store.insert(TEACHERS, [{"first_name": "Ann", "school_id": "sch1"}])
    assert rows[0]["id"]
    assert "created_at" in rows[0]
    assert store.select(TEACHERS) == rows


def test_missing_table_file_reads_empty(store) -> None:
    assert store.select(SUBJECTS) == []


def test_select_filters_with_lists(store) -> None:
    store.insert(CLASSES, [{"name": "5A", "grade": "5"}, {"name": "6A", "grade": "6"}, {"name": "7A", "grade": "7"}])
    assert [r["name"] for r in store.select(CLASSES, grade="6")] == ["6A"]
    assert [r["name"] for r in store.select(CLASSES, grade=["5", "7"])] == ["5A", "7A"]


def test_delete_needs_a_filter(store) -> None:
    store.insert(CLASSES, [{"name": "5A"}])
    with pytest.raises(StorageError):
        store.delete(CLASSES)
    assert len(store.select(CLASSES)) == 1


def test_delete_returns_count(store) -> None:
    store.insert(CLASSES, [{"name": "5A", "grade": "5"}, {"name": "5B", "grade": "5"}, {"name": "6A", "grade": "6"}])
    assert store.delete(CLASSES, grade="5") == 2
    assert [r["name"] for r in store.select(CLASSES)] == ["6A"]


def test_unknown_table(store) -> None:
    with pytest.raises(StorageError):
        store.select("grades")


def test_corrupt_table_raises(store) -> None:
    store.data_dir.mkdir(parents=True)
    (store.data_dir / f"{TEACHERS}.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError):
        store.select(TEACHERS)


def test_update_and_upsert(store) -> None:
    row = store.insert(SUBJECTS, [{"name": "Maths"}])[0]
    updated = store.update(SUBJECTS, row["id"], {"name": "Mathematics"})
    assert updated["name"] == "Mathematics"
    assert store.update(SUBJECTS, "missing", {"name": "x"}) is None

    store.upsert(SUBJECTS, {"code": "ENG", "name": "English"}, key="code")
    store.upsert(SUBJECTS, {"code": "ENG", "name": "English Lit"}, key="code")
    english = store.select(SUBJECTS, code="ENG")
    assert len(english) == 1
    assert english[0]["name"] == "English Lit"


def test_save_assignments_replaces_previous_set(store) -> None:
    first = save_assignments(store, ["t1", "t2"], [Assignment("t1", "s1", "c1", 4), Assignment("t2", "s2", "c1", 5)])
    assert all(a.id for a in first)
    assert len(store.select(ASSIGNMENTS)) == 2

    second = save_assignments(store, ["t1", "t2"], [Assignment("t2", "s1", "c2", 3)])
    rows = store.select(ASSIGNMENTS)
    assert len(rows) == 1
    assert rows[0]["teacher_id"] == "t2"
    assert "school_id" not in rows[0]
    assert second[0].periods_per_week == 3


def test_save_assignments_keeps_other_teachers(store) -> None:
    save_assignments(store, ["t9"], [Assignment("t9", "s1", "c1", 2)])
    save_assignments(store, ["t1"], [Assignment("t1", "s1", "c2", 4)])
    assert {r["teacher_id"] for r in store.select(ASSIGNMENTS)} == {"t1", "t9"}


def test_save_assignments_empty_clears(store) -> None:
    save_assignments(store, ["t1"], [Assignment("t1", "s1", "c1", 4)])
    assert save_assignments(store, ["t1"], []) == []
    assert store.select(ASSIGNMENTS) == []


def test_failed_delete_still_inserts(store, monkeypatch) -> None:
    def broken_delete(table, **filters):
        raise StorageError("disk says no")

    monkeypatch.setattr(store, "delete", broken_delete)
    saved = save_assignments(store, ["t1"], [Assignment("t1", "s1", "c1", 4)])
    assert len(saved) == 1
    assert len(store.select(ASSIGNMENTS)) == 1


def test_failed_insert_raises(store, monkeypatch) -> None:
    def broken_insert(table, rows):
        raise StorageError("disk full")

    monkeypatch.setattr(store, "insert", broken_insert)
    with pytest.raises(StorageError):
        save_assignments(store, ["t1"], [Assignment("t1", "s1", "c1", 4)])


def test_load_school_data_round_trip(store) -> None:
    school = save_school(store, SchoolInfo(name="Hill School", principal_name="P. Das", email="hi@hill.edu"))
    assert school.id

    teacher = add_record(store, TEACHERS, Teacher(id=None, first_name="Ann", last_name="Lee"), school.id)
    subject = add_record(store, SUBJECTS, Subject(id=None, name="Maths", periods_per_week=4), school.id)
    cls = add_record(store, CLASSES, Class(id=None, name="5A", capacity=30), school.id)
    add_record(store, TEACHERS, Teacher(id=None, first_name="Other", last_name="School"), "elsewhere")
    save_assignments(store, [teacher.id], [Assignment(teacher.id, subject.id, cls.id, 4)])

    data = load_school_data(store, school.id)
    assert data.school.name == "Hill School"
    assert [t.full_name for t in data.teachers] == ["Ann Lee"]
    assert data.subjects[0].default_periods == 4
    assert data.classes[0].capacity == 30
    assert [a.key for a in data.assignments] == [(teacher.id, subject.id, cls.id)]


def test_deleting_a_teacher_removes_their_assignments(store) -> None:
    t1 = add_record(store, TEACHERS, Teacher(id=None, first_name="Ann", last_name="Lee"), "sch1")
    t2 = add_record(store, TEACHERS, Teacher(id=None, first_name="Ben", last_name="Ray"), "sch1")
    subject = add_record(store, SUBJECTS, Subject(id=None, name="Maths"), "sch1")
    cls = add_record(store, CLASSES, Class(id=None, name="5A"), "sch1")
    save_assignments(
        store, [t1.id, t2.id],
        [Assignment(t1.id, subject.id, cls.id, 5), Assignment(t2.id, subject.id, cls.id, 4)],
    )

    assert delete_record(store, TEACHERS, t2.id) == 1

    data = load_school_data(store, "sch1")
    assert [t.id for t in data.teachers] == [t1.id]
    assert [a.teacher_id for a in data.assignments] == [t1.id]

    save_assignments(store, [t.id for t in data.teachers], data.assignments)
    assert [r["teacher_id"] for r in store.select(ASSIGNMENTS)] == [t1.id]


def test_deleting_a_class_or_subject_removes_its_assignments(store) -> None:
    save_assignments(store, ["t1"], [Assignment("t1", "s1", "c1", 5), Assignment("t1", "s2", "c2", 3)])
    store.insert(CLASSES, [{"id": "c1", "name": "5A"}])
    store.insert(SUBJECTS, [{"id": "s2", "name": "English"}])

    delete_record(store, CLASSES, "c1")
    assert [r["class_id"] for r in store.select(ASSIGNMENTS)] == ["c2"]
    delete_record(store, SUBJECTS, "s2")
    assert store.select(ASSIGNMENTS) == []
    assert store.select(CLASSES) == []


def test_deleting_other_records_leaves_assignments(store) -> None:
    save_assignments(store, ["t1"], [Assignment("t1", "s1", "c1", 5)])
    room = store.insert("infrastructure", [{"room_name": "101", "room_type": "classroom"}])[0]
    assert delete_record(store, "infrastructure", room["id"]) == 1
    assert len(store.select(ASSIGNMENTS)) == 1


def test_oversized_saved_periods_are_capped_on_load(store) -> None:
    store.insert(ASSIGNMENTS, [{"teacher_id": "t1", "subject_id": "s1", "class_id": "c1", "periods_per_week": 100}])
    store.insert(CLASSES, [{"id": "c1", "name": "5A", "school_id": "sch1"}])
    data = load_school_data(store, "sch1")
    assert data.assignments[0].periods_per_week == 40


def test_teacher_without_max_periods_gets_six_per_day(store) -> None:
    store.insert(TEACHERS, [{"first_name": "Ann", "last_name": "Lee", "school_id": "sch1"}])
    data = load_school_data(store, "sch1")
    assert data.teachers[0].max_periods_per_day == 6
    assert data.teachers[0].weekly_capacity == 30


def test_save_school_updates_existing(store) -> None:
    school = save_school(store, SchoolInfo(name="Hill School"))
    school.email = "new@hill.edu"
    again = save_school(store, school)
    assert again.id == school.id
    assert again.email == "new@hill.edu"
    assert len(store.select("schools")) == 1


def test_progress_round_trip(store) -> None:
    assert load_progress(store, "u1") == SetupProgress()

    progress = SetupProgress(current_step=4, step_data={"schoolId": "sch1"}, completed_steps=[1, 2, 3], school_id="sch1")
    assert save_progress(store, "u1", progress) is True
    progress.current_step = 5
    assert save_progress(store, "u1", progress) is True

    assert load_progress(store, "u1") == progress
    assert len(store.select("setup_progress")) == 1


def test_progress_falls_back_on_corrupt_file(store) -> None:
    store.data_dir.mkdir(parents=True)
    (store.data_dir / "setup_progress.json").write_text("oops", encoding="utf-8")
    assert load_progress(store, "u1") == SetupProgress()
    assert save_progress(store, "u1", SetupProgress()) is False


def test_history_newest_first(store) -> None:
    store.append_history("add", "teacher", "Added Ann Lee")
    store.append_history("delete", "teacher", "Removed Ann Lee")
    history = store.load_history()
    assert [h["summary"] for h in history] == ["Removed Ann Lee", "Added Ann Lee"]


def test_history_is_capped(store, monkeypatch) -> None:
    monkeypatch.setattr("storage.HISTORY_LIMIT", 3)
    for i in range(5):
        store.append_history("add", "class", f"Added {i}")
    history = store.load_history()
    assert [h["summary"] for h in history] == ["Added 4", "Added 3", "Added 2"]
    on_disk = json.loads((store.data_dir / "history.json").read_text(encoding="utf-8"))
    assert len(on_disk) == 3
