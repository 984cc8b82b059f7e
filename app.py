"""
🏫 SCHOOL SETUP WIZARD - Step by step, saved as you go
======================================================
- One step at a time: school, calendar, rooms, people, subjects, classes
- Teacher-subject mapping with live workload and conflict checks
- Notifications count down smoothly (fragment run_every)
- History log of every change
- Final step validates, exports, and hands off to the scheduler
"""

import streamlit as st
import time
from datetime import datetime, timedelta
from typing import List

from assignments import MAX_PERIODS_PER_WEEK, AssignmentEngine, AssignmentError
from config import Settings, configure_logging
from handoff import (
    LOCAL_STATE_FILE_NAME, LocalState, check_for_setup_data, clear_scheduler_data,
    export_school_data, pass_data_to_scheduler,
)
from heatmaps import render_completeness_table, render_workload_table
from models import CalendarEvent, Class, Room, SetupData, Student, Subject, Teacher, TimeSlot
from pdf_export import export_setup_report_pdf
from storage import (
    ACADEMIC_CALENDAR, CLASSES, INFRASTRUCTURE, STUDENTS, SUBJECTS, TEACHERS, TIME_SLOTS,
    RowStore, StorageError, add_record, delete_record, load_school_data, save_assignments, save_school,
)
from suggestions import SuggestionClient
from ui_forms import (
    parse_bulk_students, parse_bulk_teachers, render_bulk_form, render_class_form,
    render_event_form, render_room_form, render_school_form, render_subject_form,
    render_teacher_form, render_time_slot_form,
)
from validation import compute_completeness, run_validation_checks
from wizard import STEPS, SetupWizard


# No sign-in in this app: one local user owns the saved progress.
USER_ID = "local-user"

# ---------------------------------------------------------------------------
# PAGE CONFIG
# ---------------------------------------------------------------------------

st.set_page_config(page_title="School Setup Wizard", page_icon="🏫", layout="wide")

ANIMATION_CSS = """
<style>
    .main .block-container { padding-top: 2rem; }

    /* Notification slot */
    #notification-slot {
        min-height: 52px;
        margin-bottom: 8px;
    }

    /* Toast */
    .toast-item {
        padding: 10px 14px;
        background: #18181b;
        border-radius: 8px;
        box-shadow: 0 4px 12px rgba(0,0,0,0.4);
        font-size: 13px;
        color: #e4e4e7;
        max-width: 320px;
        margin-bottom: 6px;
        display: flex;
        align-items: center;
        justify-content: space-between;
        gap: 10px;
        animation: toastFadeIn 0.3s ease;
    }
    @keyframes toastFadeIn {
        from { opacity: 0; transform: translateY(-10px); }
        to { opacity: 1; transform: translateY(0); }
    }
    .toast-msg { flex: 1; }
    .toast-countdown { font-size: 11px; color: #71717a; min-width: 24px; }

    /* Workload bars */
    .load-bar { width: 100%; background: #e5e7eb; border-radius: 9999px; height: 8px; }
    .load-fill { height: 8px; border-radius: 9999px; }
    .load-green { background: #22c55e; }
    .load-yellow { background: #eab308; }
    .load-red { background: #ef4444; }

    /* Findings */
    .finding { padding: 10px 14px; border-radius: 8px; margin-bottom: 6px; border-left: 4px solid; }
    .finding-error { border-color: #ef4444; background: #fef2f2; color: #111827; }
    .finding-warning { border-color: #eab308; background: #fefce8; color: #111827; }
    .finding-success { border-color: #22c55e; background: #f0fdf4; color: #111827; }
</style>
"""

st.markdown(ANIMATION_CSS, unsafe_allow_html=True)


# ---------------------------------------------------------------------------
# SESSION STATE - Load from disk
# ---------------------------------------------------------------------------

def _init_session():
    if "initialized" not in st.session_state:
        settings = Settings.from_env()
        configure_logging(settings.log_level)
        store = RowStore(settings.data_dir)
        local = LocalState(settings.data_dir / LOCAL_STATE_FILE_NAME)
        wizard = SetupWizard.load(store, USER_ID)
        school_id = wizard.progress.school_id or check_for_setup_data(local)

        st.session_state.settings = settings
        st.session_state.store = store
        st.session_state.local = local
        st.session_state.suggester = SuggestionClient(settings)
        st.session_state.wizard = wizard
        st.session_state.data = load_school_data(store, school_id) if school_id else SetupData()
        st.session_state.engine = None
        st.session_state.initialized = True

    if "notifications" not in st.session_state:
        st.session_state.notifications = []  # List of {msg, until, id}
    if "suggestions" not in st.session_state:
        st.session_state.suggestions = {}
    if st.session_state.engine is None:
        _rebuild_engine()


def _rebuild_engine() -> None:
    """Fresh engine over the current reference lists, keeping the working assignments that still fit."""
    data: SetupData = st.session_state.data
    engine = AssignmentEngine(data.teachers, data.subjects, data.classes, data.assignments)
    engine.drop_orphans()
    data.assignments = engine.assignments
    st.session_state.engine = engine


def _reload_data() -> None:
    """Re-read saved records. Unsaved assignments in the engine are kept."""
    data: SetupData = st.session_state.data
    engine = st.session_state.engine
    working = engine.assignments if engine is not None else data.assignments
    if data.school_id:
        try:
            data = load_school_data(st.session_state.store, data.school_id)
        except StorageError as e:
            st.error(f"Could not load school data: {e}")
            return
    data.assignments = working
    st.session_state.data = data
    _rebuild_engine()


# ---------------------------------------------------------------------------
# NOTIFICATIONS - Stackable, smooth countdown via fragment
# ---------------------------------------------------------------------------

def show_toast(msg: str, duration_sec: int = 3) -> None:
    """Add a notification. Stackable: new ones don't replace old."""
    uid = f"n_{time.time()}_{id(msg)}"
    st.session_state.notifications.append({
        "msg": msg,
        "until": time.time() + duration_sec,
        "id": uid,
    })


@st.fragment(run_every=timedelta(seconds=1))
def _notification_ticker():
    """
    Runs every second. Removes expired toasts, countdown ticks smoothly.
    Fragment reruns only this block, no full-page refresh.
    """
    now = time.time()
    notifications = st.session_state.get("notifications", [])
    active = [n for n in notifications if n["until"] > now]
    if len(active) != len(notifications):
        st.session_state.notifications = active

    for n in active:
        remaining = max(0, int(n["until"] - now))
        st.markdown(
            f'<div class="toast-item">'
            f'<span class="toast-msg">{n["msg"]}</span>'
            f'<span class="toast-countdown">{remaining}s</span>'
            f'</div>',
            unsafe_allow_html=True,
        )


# ---------------------------------------------------------------------------
# HELPERS
# ---------------------------------------------------------------------------

def _add_records(table: str, model_cls, rows: List[dict], label: str) -> None:
    """Save new rows for the current school, then reload."""
    data: SetupData = st.session_state.data
    store: RowStore = st.session_state.store
    try:
        for values in rows:
            add_record(store, table, model_cls(id=None, **values), data.school_id)
    except StorageError as e:
        st.error(f"Failed to save {label}: {e}")
        return
    store.append_history("add", label, f"Added {len(rows)} {label}", "")
    show_toast(f"Added {len(rows)} {label}")
    _reload_data()
    st.rerun()


def _delete_record(table: str, row_id: str, label: str) -> None:
    store: RowStore = st.session_state.store
    try:
        delete_record(store, table, row_id)
    except StorageError as e:
        st.error(f"Failed to delete {label}: {e}")
        return
    store.append_history("delete", label, f"Removed {label}", "")
    show_toast(f"Removed {label}")
    _reload_data()
    st.rerun()


def _suggest_button(kind: str, fetch) -> List[str]:
    """'✨ Suggest' button. Keeps the last suggestions for this kind."""
    if st.button("✨ Suggest", key=f"suggest_{kind}"):
        with st.spinner("Asking for suggestions..."):
            found = fetch()
        if not found:
            show_toast("AI suggestions unavailable")
        st.session_state.suggestions[kind] = found
    return st.session_state.suggestions.get(kind, [])


def _list_with_remove(items, table: str, describe, label: str) -> None:
    for item in items:
        c1, c2 = st.columns([5, 1])
        with c1:
            st.markdown(describe(item))
        with c2:
            if st.button("Remove", key=f"rm_{table}_{item.id}"):
                _delete_record(table, item.id, label)


def _require_school() -> bool:
    if not st.session_state.data.school_id:
        st.warning("Save the school information first (step 1).")
        return False
    return True


# ---------------------------------------------------------------------------
# STEPS
# ---------------------------------------------------------------------------

def step_school_info():
    st.header("🏫 School Information")
    data: SetupData = st.session_state.data
    suggester: SuggestionClient = st.session_state.suggester
    names = _suggest_button("school_names", lambda: suggester.school_names())

    def on_save(school):
        store: RowStore = st.session_state.store
        try:
            saved = save_school(store, school)
        except StorageError as e:
            st.error(f"Failed to save school: {e}")
            return
        data.school = saved
        data.school_id = saved.id
        st.session_state.wizard.set_school(saved.id)
        st.session_state.wizard.complete_step({"schoolId": saved.id})
        st.session_state.wizard.save(store, USER_ID)
        st.session_state.local.set_item("schoolId", saved.id)
        store.append_history("edit", "School", f"Saved school {saved.name}", "")
        show_toast(f"School {saved.name} saved")
        st.rerun()

    render_school_form(data.school, on_save, names)


def step_calendar():
    st.header("📆 Academic Calendar")
    if not _require_school():
        return
    suggester: SuggestionClient = st.session_state.suggester
    events = _suggest_button("events", lambda: suggester.events())
    render_event_form(lambda v: _add_records(ACADEMIC_CALENDAR, CalendarEvent, [v], "event(s)"), events)
    _list_with_remove(
        st.session_state.data.academic_calendar, ACADEMIC_CALENDAR,
        lambda e: f"**{e.event_name}** · {e.event_type} · {e.start_date} → {e.end_date}",
        "event",
    )


def step_infrastructure():
    st.header("🏢 Infrastructure")
    if not _require_school():
        return
    suggester: SuggestionClient = st.session_state.suggester
    room_types = _suggest_button("room_types", lambda: suggester.room_types())
    render_room_form(lambda v: _add_records(INFRASTRUCTURE, Room, [v], "room(s)"), room_types)
    _list_with_remove(
        st.session_state.data.infrastructure, INFRASTRUCTURE,
        lambda r: f"**{r.room_name}** · {r.room_type} · capacity {r.capacity or '-'}",
        "room",
    )


def step_students():
    st.header("🎒 Students")
    if not _require_school():
        return
    render_bulk_form(
        "students",
        "S001, Asha, Verma, 5, A\nS002, Rohan, Das, 5, B",
        parse_bulk_students,
        lambda rows: _add_records(STUDENTS, Student, rows, "student(s)"),
    )
    _list_with_remove(
        st.session_state.data.students, STUDENTS,
        lambda s: f"**{s.first_name} {s.last_name}** · {s.student_code or ''} · Grade {s.grade or '-'} {s.section or ''}",
        "student",
    )


def step_teachers():
    st.header("👥 Teachers")
    if not _require_school():
        return
    with st.expander("➕ Add a teacher", expanded=True):
        render_teacher_form(lambda v: _add_records(TEACHERS, Teacher, [v], "teacher(s)"))
    with st.expander("📋 Bulk add teachers"):
        render_bulk_form(
            "teachers",
            "Eric, Simon, Science, 5\nAisha, Khan, Science, 6",
            parse_bulk_teachers,
            lambda rows: _add_records(TEACHERS, Teacher, rows, "teacher(s)"),
        )
    _list_with_remove(
        st.session_state.data.teachers, TEACHERS,
        lambda t: f"**{t.full_name}** · {t.department or '-'} · Max {t.max_periods_per_day}/day",
        "teacher",
    )


def step_subjects():
    st.header("📚 Subjects")
    if not _require_school():
        return
    suggester: SuggestionClient = st.session_state.suggester
    found = _suggest_button("subjects", lambda: suggester.subjects())
    render_subject_form(lambda v: _add_records(SUBJECTS, Subject, [v], "subject(s)"), found)
    _list_with_remove(
        st.session_state.data.subjects, SUBJECTS,
        lambda s: f"**{s.name}** ({s.code or '-'}) · {s.default_periods} periods/week",
        "subject",
    )


def step_classes():
    st.header("🏷️ Classes")
    if not _require_school():
        return
    render_class_form(lambda v: _add_records(CLASSES, Class, [v], "class(es)"))
    _list_with_remove(
        st.session_state.data.classes, CLASSES,
        lambda c: f"**{c.name}** · Grade {c.grade or '-'} {c.section or ''} · "
                  f"{c.actual_enrollment or 0}/{c.capacity or '-'} students",
        "class",
    )


def step_mapping():
    st.header("🔗 Teacher-Subject-Class Mapping")
    if not _require_school():
        return
    data: SetupData = st.session_state.data
    engine: AssignmentEngine = st.session_state.engine
    if not (engine.teachers and engine.subjects and engine.classes):
        st.info("Add teachers, subjects and classes first.")
        return

    with st.form("mapping_form", clear_on_submit=True):
        c1, c2, c3, c4 = st.columns(4)
        with c1:
            teacher = st.selectbox(
                "Teacher", engine.workload_summary(),
                format_func=lambda w: f"{w.teacher.full_name} ({w.current}/{w.capacity} periods)",
            )
        with c2:
            subject = st.selectbox("Subject", engine.subjects, format_func=lambda s: f"{s.name} ({s.code or '-'})")
        with c3:
            cls = st.selectbox(
                "Class", engine.classes,
                format_func=lambda c: "{} ({}/{} subjects)".format(c.name, *engine.class_subject_coverage(c.id)),
            )
        with c4:
            periods = st.text_input("Periods/Week", placeholder="subject default")
        submitted = st.form_submit_button("Add Assignment")

    if submitted:
        try:
            a = engine.add_assignment(teacher.teacher.id, subject.id, cls.id, periods.strip() or None)
        except AssignmentError as e:
            st.error(str(e))
        else:
            data.assignments = engine.assignments
            show_toast(f"Assigned {engine.teacher_name(a.teacher_id)} to {engine.subject_name(a.subject_id)}")
            st.rerun()

    if st.button("🎲 Generate sample assignments"):
        try:
            engine.generate_sample_assignments()
        except AssignmentError as e:
            st.error(str(e))
        else:
            data.assignments = engine.assignments
            st.session_state.store.append_history("generate", "Assignments", "Generated sample assignments", "")
            show_toast(f"Generated {len(engine.assignments)} sample assignments")
            st.rerun()

    st.subheader("Teacher Workload")
    for w in engine.workload_summary():
        c1, c2 = st.columns([2, 3])
        with c1:
            st.markdown(f"**{w.teacher.full_name}** · {w.current}/{w.capacity}")
        with c2:
            st.markdown(
                f'<div class="load-bar"><div class="load-fill load-{w.tier}" '
                f'style="width: {w.percentage:.0f}%"></div></div>',
                unsafe_allow_html=True,
            )

    if engine.conflicts:
        st.subheader("⚠️ Conflicts")
        for c in engine.conflicts:
            st.warning(c)

    if engine.assignments:
        st.subheader(f"Current Assignments ({len(engine.assignments)}) · {engine.total_periods()} periods/week")
        for i, a in enumerate(list(engine.assignments)):
            c1, c2, c3 = st.columns([4, 1, 1])
            with c1:
                st.markdown(
                    f"**{engine.teacher_name(a.teacher_id)}** · "
                    f"{engine.subject_name(a.subject_id)} → {engine.class_name(a.class_id)}"
                )
            with c2:
                new_val = st.number_input(
                    "Periods", min_value=1, value=a.periods_per_week,
                    max_value=max(MAX_PERIODS_PER_WEEK, a.periods_per_week),
                    key=f"periods_{i}_{'_'.join(a.key)}", label_visibility="collapsed",
                )
                if new_val != a.periods_per_week:
                    engine.update_assignment(a, "periods_per_week", new_val)
                    st.rerun()
            with c3:
                if st.button("Remove", key=f"rm_assign_{i}_{'_'.join(a.key)}"):
                    engine.remove_assignment(a)
                    data.assignments = engine.assignments
                    st.rerun()

    if st.button("💾 Save assignments", type="primary"):
        store: RowStore = st.session_state.store
        try:
            saved = save_assignments(store, [t.id for t in engine.teachers], engine.assignments)
        except StorageError as e:
            st.error(f"Failed to save teacher-subject mappings: {e}")
        else:
            engine.replace_all(saved)
            data.assignments = engine.assignments
            store.append_history("edit", "Assignments", f"Saved {len(saved)} assignments", "")
            show_toast("Teacher-subject mappings saved successfully!")
            st.rerun()


def step_time_slots():
    st.header("🕓 Time Slots")
    if not _require_school():
        return
    render_time_slot_form(lambda v: _add_records(TIME_SLOTS, TimeSlot, [v], "time slot(s)"))
    _list_with_remove(
        st.session_state.data.time_slots, TIME_SLOTS,
        lambda ts: f"**{ts.name}** · {ts.start_time}-{ts.end_time} · {ts.slot_type}",
        "time slot",
    )


def step_complete():
    st.header("🎉 Setup Complete")
    data: SetupData = st.session_state.data
    engine: AssignmentEngine = st.session_state.engine
    settings: Settings = st.session_state.settings
    data.assignments = engine.assignments

    completeness = compute_completeness(data)
    findings = run_validation_checks(data, engine.workload)
    st.markdown(f"Your school setup is **{completeness.percentage:.1f}%** complete.")
    st.dataframe(render_completeness_table(completeness), use_container_width=True, hide_index=True)

    st.subheader("Validation & Quality Checks")
    for f in findings:
        st.markdown(
            f'<div class="finding finding-{f.kind}"><b>{f.category}</b> · {f.message}</div>',
            unsafe_allow_html=True,
        )

    if engine.teachers:
        st.subheader("Teacher Workload")
        st.dataframe(render_workload_table(engine.workload_summary()), use_container_width=True, hide_index=True)

    st.subheader("Export & Scheduler")
    col1, col2, col3 = st.columns(3)
    with col1:
        if data.school_id:
            try:
                file_name, payload = export_school_data(st.session_state.store, data.school_id)
            except StorageError as e:
                st.error(f"Failed to export school data: {e}")
            else:
                if st.download_button("📥 Export Data (JSON)", data=payload, file_name=file_name, mime="application/json"):
                    st.session_state.store.append_history("export", "JSON", "Exported school data", "")
                    show_toast("School data has been exported successfully!")
    with col2:
        pdf = export_setup_report_pdf(data, completeness, findings, engine)
        if st.download_button("📄 Download Summary PDF", data=pdf, file_name="setup_summary.pdf", mime="application/pdf"):
            st.session_state.store.append_history("export", "PDF", "Exported setup summary PDF", "")
            show_toast("Summary PDF downloaded")
    with col3:
        if st.button("🚀 Prepare scheduler handoff", type="primary", disabled=not data.school_id):
            pass_data_to_scheduler(st.session_state.local, data)
            st.session_state.store.append_history("export", "Scheduler", "Passed data to scheduler", "")
            show_toast("Data passed to scheduler")
        st.link_button("Open Scheduler ↗", settings.scheduler_url)


STEP_RENDERERS = [
    step_school_info,
    step_calendar,
    step_infrastructure,
    step_students,
    step_teachers,
    step_subjects,
    step_classes,
    step_mapping,
    step_time_slots,
    step_complete,
]


# ---------------------------------------------------------------------------
# SIDEBAR - Steps, history, start over
# ---------------------------------------------------------------------------

_init_session()
wizard: SetupWizard = st.session_state.wizard
store: RowStore = st.session_state.store

st.sidebar.title("⚙️ School Setup")
st.sidebar.progress(int(wizard.percent))
for i, name in enumerate(STEPS, start=1):
    done = "✅" if i in wizard.progress.completed_steps else ("👉" if i == wizard.current_step else "▫️")
    if st.sidebar.button(f"{done} {i}. {name}", key=f"nav_{i}"):
        wizard.go_to(i)
        wizard.save(store, USER_ID)
        _reload_data()
        st.rerun()

st.sidebar.markdown("---")
with st.sidebar.expander("🕓 History"):
    history = store.load_history()
    if not history:
        st.caption("No history yet. Actions will appear here.")
    for entry in history[:50]:
        try:
            ts_fmt = datetime.fromisoformat(entry.get("ts", "")).strftime("%Y-%m-%d %H:%M")
        except (ValueError, TypeError):
            ts_fmt = entry.get("ts", "")
        icon = {"add": "➕", "edit": "✏️", "delete": "🗑️", "generate": "🚀", "export": "📥", "clear": "🗑️"}.get(
            entry.get("action", ""), "•"
        )
        st.caption(f"{icon} {ts_fmt} · {entry.get('summary', '')}")

st.sidebar.markdown("---")
if st.sidebar.button("🗑️ Start over"):
    clear_scheduler_data(st.session_state.local)
    st.session_state.wizard = SetupWizard()
    st.session_state.wizard.save(store, USER_ID)
    st.session_state.data = SetupData()
    st.session_state.engine = None
    store.append_history("clear", "Wizard", "Started a new setup", "")
    show_toast("Started over")
    st.rerun()


# ---------------------------------------------------------------------------
# MAIN
# ---------------------------------------------------------------------------

st.title("🏫 School Setup Wizard")
st.caption(f"Step {wizard.current_step} of {len(STEPS)}: {wizard.title}")

st.markdown('<div id="notification-slot"></div>', unsafe_allow_html=True)
_notification_ticker()

STEP_RENDERERS[wizard.current_step - 1]()

st.markdown("---")
nav_prev, nav_next = st.columns(2)
with nav_prev:
    if wizard.current_step > 1 and st.button("← Previous"):
        wizard.previous_step()
        wizard.save(store, USER_ID)
        st.rerun()
with nav_next:
    if not wizard.is_last_step and st.button("Next →", type="primary"):
        wizard.complete_step()
        wizard.next_step()
        wizard.save(store, USER_ID)
        _reload_data()
        st.rerun()
