"""
🧠 UI FORMS - st.form() to prevent screen jump while typing
==========================================================
Forms batch inputs: no rerun until Submit. Layout stays fixed.
Each form hands plain values to an on_save callback; the page decides
what to do with them. Bulk text parsers live here too.
"""

import streamlit as st
from typing import Callable, List, Optional

from models import SchoolInfo


def _form_key(kind: str, field: str, prefix: str = "main") -> str:
    """Unique widget key per form kind + tab."""
    return f"{kind}_{prefix}_{field}"


def _to_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# BULK PARSERS (pure, no streamlit)
# ---------------------------------------------------------------------------


def parse_bulk_teachers(text: str) -> List[dict]:
    """
    One teacher per line: first, last[, department[, max_periods_per_day]].
    Lines with fewer than two names are skipped. Bad max -> 6.
    """
    teachers = []
    for line in (text or "").strip().split("\n"):
        parts = [p.strip() for p in line.split(",")]
        if len(parts) < 2 or not parts[0] or not parts[1]:
            continue
        max_periods = _to_int(parts[3]) if len(parts) >= 4 else None
        teachers.append({
            "first_name": parts[0],
            "last_name": parts[1],
            "department": parts[2] if len(parts) >= 3 and parts[2] else None,
            "max_periods_per_day": max_periods if max_periods and max_periods > 0 else 6,
        })
    return teachers


def parse_bulk_students(text: str) -> List[dict]:
    """One student per line: student_code, first, last[, grade[, section]]."""
    students = []
    for line in (text or "").strip().split("\n"):
        parts = [p.strip() for p in line.split(",")]
        if len(parts) < 3 or not all(parts[:3]):
            continue
        students.append({
            "student_code": parts[0],
            "first_name": parts[1],
            "last_name": parts[2],
            "grade": parts[3] if len(parts) >= 4 and parts[3] else None,
            "section": parts[4] if len(parts) >= 5 and parts[4] else None,
        })
    return students


# ---------------------------------------------------------------------------
# FORMS
# ---------------------------------------------------------------------------


def render_school_form(
    school: Optional[SchoolInfo],
    on_save: Callable[[SchoolInfo], None],
    name_suggestions: Optional[List[str]] = None,
) -> None:
    """School details. Name, principal and email make the section complete."""
    s = school or SchoolInfo(name="")
    k = lambda f: _form_key("school", f)
    with st.form("school_form", clear_on_submit=False):
        if name_suggestions:
            st.caption("Suggestions: " + ", ".join(name_suggestions))
        name = st.text_input("School name", value=s.name, key=k("name"))
        principal = st.text_input("Principal name", value=s.principal_name or "", key=k("principal"))
        email = st.text_input("Email", value=s.email or "", key=k("email"))
        phone = st.text_input("Phone", value=s.phone or "", key=k("phone"))
        address = st.text_area("Address", value=s.address or "", key=k("address"), height=80)
        c1, c2 = st.columns(2)
        with c1:
            year = st.text_input("Academic year", value=s.academic_year or "", key=k("year"), placeholder="2025-2026")
        with c2:
            tz = st.text_input("Timezone", value=s.timezone or "", key=k("tz"), placeholder="Asia/Kolkata")
        submitted = st.form_submit_button("Save School")

    if submitted and name.strip():
        on_save(SchoolInfo(
            id=s.id,
            name=name.strip(),
            principal_name=principal.strip() or None,
            email=email.strip() or None,
            phone=phone.strip() or None,
            address=address.strip() or None,
            academic_year=year.strip() or None,
            timezone=tz.strip() or None,
        ))


def render_teacher_form(on_save: Callable[[dict], None], prefix: str = "main") -> None:
    """Single teacher form inside st.form(). No reruns while typing."""
    k = lambda f: _form_key("teacher", f, prefix)
    with st.form(f"teacher_form_{prefix}", clear_on_submit=True):
        c1, c2 = st.columns(2)
        with c1:
            first = st.text_input("First name", key=k("first"))
            department = st.text_input("Department", key=k("dept"), placeholder="Science")
            email = st.text_input("Email", key=k("email"))
        with c2:
            last = st.text_input("Last name", key=k("last"))
            code = st.text_input("Employee code", key=k("code"), placeholder="T001")
            t_max = st.number_input("Max periods per day", min_value=1, max_value=10, value=6, key=k("max"))
        submitted = st.form_submit_button("Add Teacher")

    if submitted and first.strip() and last.strip():
        on_save({
            "first_name": first.strip(),
            "last_name": last.strip(),
            "department": department.strip() or None,
            "teacher_code": code.strip() or None,
            "email": email.strip() or None,
            "max_periods_per_day": int(t_max),
        })


def render_bulk_form(
    kind: str,
    placeholder: str,
    parser: Callable[[str], List[dict]],
    on_save: Callable[[List[dict]], None],
) -> None:
    """Paste many rows at once. Only well-formed lines are kept."""
    with st.form(f"bulk_{kind}_form", clear_on_submit=True):
        text = st.text_area(f"Bulk add {kind} (one per line)", placeholder=placeholder, height=120, key=f"bulk_{kind}")
        submitted = st.form_submit_button(f"Add {kind}")
    if submitted and text.strip():
        rows = parser(text)
        if rows:
            on_save(rows)


def render_subject_form(on_save: Callable[[dict], None], suggestions: Optional[List[str]] = None) -> None:
    k = lambda f: _form_key("subject", f)
    with st.form("subject_form", clear_on_submit=True):
        if suggestions:
            st.caption("Suggestions: " + ", ".join(suggestions))
        c1, c2 = st.columns(2)
        with c1:
            name = st.text_input("Subject name", key=k("name"), placeholder="Mathematics")
            department = st.text_input("Department", key=k("dept"))
        with c2:
            code = st.text_input("Code", key=k("code"), placeholder="MATH")
            periods = st.number_input("Periods per week", min_value=1, max_value=15, value=5, key=k("periods"))
        submitted = st.form_submit_button("Add Subject")

    if submitted and name.strip():
        on_save({
            "name": name.strip(),
            "code": code.strip() or None,
            "department": department.strip() or None,
            "periods_per_week": int(periods),
        })


def render_class_form(on_save: Callable[[dict], None]) -> None:
    k = lambda f: _form_key("class", f)
    with st.form("class_form", clear_on_submit=True):
        c1, c2, c3 = st.columns(3)
        with c1:
            name = st.text_input("Class name", key=k("name"), placeholder="Grade 5 - A")
            capacity = st.number_input("Capacity", min_value=0, max_value=200, value=40, key=k("cap"))
        with c2:
            grade = st.text_input("Grade", key=k("grade"), placeholder="5")
            enrolled = st.number_input("Enrolled", min_value=0, max_value=200, value=0, key=k("enrolled"))
        with c3:
            section = st.text_input("Section", key=k("section"), placeholder="A")
            room = st.text_input("Room number", key=k("room"))
        submitted = st.form_submit_button("Add Class")

    if submitted and name.strip():
        on_save({
            "name": name.strip(),
            "grade": grade.strip() or None,
            "section": section.strip() or None,
            "capacity": int(capacity) or None,
            "actual_enrollment": int(enrolled) or None,
            "room_number": room.strip() or None,
        })


def render_time_slot_form(on_save: Callable[[dict], None]) -> None:
    k = lambda f: _form_key("slot", f)
    with st.form("time_slot_form", clear_on_submit=True):
        c1, c2, c3, c4 = st.columns(4)
        with c1:
            name = st.text_input("Name", key=k("name"), placeholder="Period 1")
        with c2:
            start = st.text_input("Start", key=k("start"), placeholder="08:00")
        with c3:
            end = st.text_input("End", key=k("end"), placeholder="08:45")
        with c4:
            slot_type = st.selectbox("Type", ["class", "break", "lunch", "assembly"], key=k("type"))
        submitted = st.form_submit_button("Add Time Slot")

    if submitted and name.strip() and start.strip() and end.strip():
        on_save({"name": name.strip(), "start_time": start.strip(), "end_time": end.strip(), "slot_type": slot_type})


def render_event_form(on_save: Callable[[dict], None], suggestions: Optional[List[str]] = None) -> None:
    k = lambda f: _form_key("event", f)
    with st.form("event_form", clear_on_submit=True):
        if suggestions:
            st.caption("Suggestions: " + ", ".join(suggestions))
        c1, c2 = st.columns(2)
        with c1:
            name = st.text_input("Event name", key=k("name"), placeholder="Mid-term exams")
            start = st.date_input("Start date", key=k("start"))
        with c2:
            event_type = st.selectbox("Type", ["holiday", "exam", "activity", "term"], key=k("type"))
            end = st.date_input("End date", key=k("end"))
        description = st.text_input("Description", key=k("desc"))
        submitted = st.form_submit_button("Add Event")

    if submitted and name.strip():
        if end < start:
            st.error("End date must not be before start date.")
            return
        on_save({
            "event_name": name.strip(),
            "event_type": event_type,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "description": description.strip() or None,
        })


def render_room_form(on_save: Callable[[dict], None], suggestions: Optional[List[str]] = None) -> None:
    k = lambda f: _form_key("room", f)
    with st.form("room_form", clear_on_submit=True):
        if suggestions:
            st.caption("Suggestions: " + ", ".join(suggestions))
        c1, c2, c3 = st.columns(3)
        with c1:
            name = st.text_input("Room name", key=k("name"), placeholder="Room 101")
        with c2:
            room_type = st.text_input("Room type", key=k("type"), placeholder="Classroom")
        with c3:
            capacity = st.number_input("Capacity", min_value=0, max_value=500, value=40, key=k("cap"))
        submitted = st.form_submit_button("Add Room")

    if submitted and name.strip() and room_type.strip():
        on_save({"room_name": name.strip(), "room_type": room_type.strip(), "capacity": int(capacity) or None})
