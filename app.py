import pandas as pd
import streamlit as st

from grade_analyser.analysis import (
    analyze,
    distribution,
    highest_percentage,
    lowest_percentage,
    ranked_results,
)
from grade_analyser.config import get_settings
from grade_analyser.io_csv import (
    ENROLLMENT_COL,
    NAME_COL,
    frame_to_roster,
    parse_roster,
    read_csv_upload,
    report_csv,
    report_filename,
    roster_frame,
    rows_missing_id,
    validate_roster_csv,
)
from grade_analyser.logger import configure_logging, get_logger
from grade_analyser.models import PASS, Configuration, Phase, Snapshot
from grade_analyser.roster import add_student, initial_roster
from grade_analyser.storage import SnapshotStore
from grade_analyser.summary import build_report_generator, generate_class_report
from grade_analyser.validation import (
    MAX_CLASS_SIZE,
    MIN_CLASS_SIZE,
    InvalidConfigurationError,
    add_subject,
    conflicting_rows,
    out_of_range_marks,
    validate_configuration,
    validate_roster,
    validate_submission,
)

settings = get_settings()
configure_logging(settings.LOG_LEVEL)
logger = get_logger("app")
store = SnapshotStore(settings.STORAGE_PATH)

st.set_page_config(
    page_title="Student Grade Analyser",
    page_icon="🎓",
    layout="wide",
)


# ------------------------
# Session state
# ------------------------
def _init_state():
    if "phase" in st.session_state:
        return

    snapshot = store.load() or Snapshot(
        subjects=list(settings.DEFAULT_SUBJECTS),
        max_marks=settings.DEFAULT_MAX_MARKS,
        student_count=settings.DEFAULT_CLASS_SIZE,
    )
    st.session_state["phase"] = snapshot.phase
    st.session_state["subjects"] = list(snapshot.subjects)
    st.session_state["max_marks"] = snapshot.max_marks
    st.session_state["class_size"] = snapshot.student_count
    st.session_state["students"] = list(snapshot.students)
    st.session_state["editor_version"] = 0
    st.session_state["report"] = None


def _persist():
    store.save(
        Snapshot(
            phase=st.session_state["phase"],
            subjects=list(st.session_state["subjects"]),
            max_marks=st.session_state["max_marks"],
            student_count=st.session_state["class_size"],
            students=list(st.session_state["students"]),
        )
    )


def _go(phase: Phase):
    logger.info("Phase %s -> %s", st.session_state["phase"].value, phase.value)
    st.session_state["phase"] = phase
    _persist()
    st.rerun()


def _config() -> Configuration:
    return Configuration(
        subjects=tuple(st.session_state["subjects"]),
        max_marks=st.session_state["max_marks"],
        class_size=st.session_state["class_size"],
    )


def _rebase_editor(roster):
    """Start the marks table over from `roster` (drops pending editor deltas)."""
    st.session_state["students"] = roster
    st.session_state["entry_frame"] = roster_frame(roster, st.session_state["subjects"])
    st.session_state["editor_version"] += 1


_init_state()

st.title("🎓 Student Grade Analyser")
steps = ["1. Setup", "2. Enter marks", "3. Results"]
st.caption("  →  ".join(
    f"**{label}**" if i == list(Phase).index(st.session_state["phase"]) else label
    for i, label in enumerate(steps)
))


# ------------------------
# Phase 1: setup
# ------------------------
def render_setup():
    st.subheader("Class configuration")

    col1, col2 = st.columns(2)
    with col1:
        class_size = st.number_input(
            "Number of students",
            min_value=MIN_CLASS_SIZE,
            max_value=MAX_CLASS_SIZE,
            value=int(min(max(st.session_state["class_size"], MIN_CLASS_SIZE), MAX_CLASS_SIZE)),
            step=1,
        )
    with col2:
        max_marks = st.number_input(
            "Max marks per subject",
            min_value=10,
            max_value=1000,
            value=int(min(max(st.session_state["max_marks"], 10), 1000)),
            step=10,
        )

    st.markdown("**Subjects**")
    add_col, btn_col = st.columns([4, 1])
    with add_col:
        new_subject = st.text_input("New subject", placeholder="E.g. History", label_visibility="collapsed")
    with btn_col:
        if st.button("Add", use_container_width=True):
            st.session_state["subjects"] = add_subject(st.session_state["subjects"], new_subject)
            st.rerun()

    subjects = st.session_state["subjects"]
    if not subjects:
        st.info("No subjects added yet.")
    for idx, subject in enumerate(subjects):
        c1, c2 = st.columns([6, 1])
        c1.write(subject)
        if c2.button("Remove", key=f"remove_subject_{idx}"):
            st.session_state["subjects"] = [s for i, s in enumerate(subjects) if i != idx]
            st.rerun()

    if st.button("Start Data Entry", type="primary", disabled=not subjects):
        try:
            config = validate_configuration(subjects, class_size, max_marks)
        except InvalidConfigurationError as e:
            st.error(str(e))
            return

        st.session_state["subjects"] = list(config.subjects)
        st.session_state["class_size"] = config.class_size
        st.session_state["max_marks"] = config.max_marks
        roster = st.session_state["students"] or initial_roster(config.class_size, config.subjects)
        _rebase_editor(roster)
        _go(Phase.SETUP.next())


# ------------------------
# Phase 2: marks entry
# ------------------------
def render_entry():
    config = _config()
    subjects = list(config.subjects)

    if "entry_frame" not in st.session_state:
        _rebase_editor(st.session_state["students"] or initial_roster(config.class_size, subjects))

    st.subheader("Enter student marks")
    st.caption(f"Max marks per subject: {config.max_marks:g}")

    with st.expander("Import roster from CSV"):
        uploaded = st.file_uploader(
            f"CSV with columns: {ENROLLMENT_COL}, {NAME_COL}, {', '.join(subjects)}",
            type=["csv"],
            key="roster_csv",
        )
        if uploaded is not None and st.button("Replace roster with upload"):
            try:
                df = validate_roster_csv(read_csv_upload(uploaded), subjects)
                _rebase_editor(parse_roster(df, subjects, config.max_marks))
                _persist()
                st.rerun()
            except ValueError as e:
                logger.warning("Rejected roster upload: %s", e)
                st.error(f"Roster CSV error: {e}")

    column_config = {
        ENROLLMENT_COL: st.column_config.TextColumn(ENROLLMENT_COL, required=True),
        NAME_COL: st.column_config.TextColumn(NAME_COL),
    }
    for subject in subjects:
        column_config[subject] = st.column_config.NumberColumn(subject, min_value=0, step=1)

    edited = st.data_editor(
        st.session_state["entry_frame"],
        key=f"marks_editor_{st.session_state['editor_version']}",
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        column_order=[ENROLLMENT_COL, NAME_COL, *subjects],
        column_config=column_config,
    )
    # ID stays hidden; rows added in the editor get one in frame_to_roster
    roster = frame_to_roster(edited, subjects, config.max_marks)
    if rows_missing_id(edited):
        # write the new ids back so they stay fixed across reruns
        _rebase_editor(roster)
        _persist()
        st.rerun()
    if roster != st.session_state["students"]:
        st.session_state["students"] = roster
        _persist()

    # Live checks, reported while typing
    errors = []
    duplicates = validate_roster(roster)
    if not duplicates.ok:
        errors.append(duplicates.message)
        rows = ", ".join(s.name or s.enrollment_no for s in conflicting_rows(roster))
        errors.append(f"Rows sharing an enrollment number: {rows}")
    for student, subject, mark in out_of_range_marks(roster, config):
        errors.append(
            f"Marks cannot exceed maximum ({config.max_marks:g}): "
            f"{student.name or student.enrollment_no} has {mark:g} in {subject}."
        )
    for message in errors:
        st.error(message)

    col1, col2, col3 = st.columns([1, 1, 2])
    with col1:
        if st.button("← Back"):
            _go(Phase.ENTRY.previous())
    with col2:
        if st.button("Add Student"):
            _rebase_editor(add_student(roster, subjects))
            _persist()
            st.rerun()
    with col3:
        if st.button("Analyze Results", type="primary", disabled=bool(errors)):
            # edits may have reintroduced a problem since the live check
            check = validate_submission(st.session_state["students"], config)
            if not check.ok:
                st.error(check.message)
            else:
                st.session_state["report"] = None
                _go(Phase.ENTRY.next())


# ------------------------
# Phase 3: results
# ------------------------
def render_results():
    config = _config()
    roster = st.session_state["students"]
    analysis = analyze(roster, config)

    st.subheader("Performance Analysis")
    st.caption(f"Comprehensive report for {len(roster)} students (Max Marks: {config.max_marks:g}).")

    b1, b2, b3 = st.columns(3)
    with b1:
        if st.button("← Edit Data"):
            _go(Phase.RESULTS.previous())
    with b2:
        st.download_button(
            "Download CSV Report",
            data=report_csv(analysis, config.subjects),
            file_name=report_filename(),
            mime="text/csv",
            type="primary",
        )
    with b3:
        if st.button("New Class"):
            st.session_state["confirm_reset"] = True

    if st.session_state.get("confirm_reset"):
        st.warning("Are you sure? This will clear all current class data.")
        y, n = st.columns(2)
        if y.button("Yes, clear everything"):
            store.clear()
            for key in list(st.session_state.keys()):
                del st.session_state[key]
            st.rerun()
        if n.button("Cancel"):
            st.session_state["confirm_reset"] = False
            st.rerun()

    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Class Average", f"{analysis.class_average:.1f}%")
    k2.metric("Pass Rate", f"{analysis.pass_percentage:.1f}%")
    k3.metric("Highest Score", f"{highest_percentage(analysis):.1f}%")
    k4.metric("Lowest Score", f"{lowest_percentage(analysis):.1f}%")

    left, right = st.columns([2, 1])
    with left:
        st.markdown("**Subject Performance (Average %)**")
        st.bar_chart(
            pd.DataFrame(
                {"Avg %": [s.average for s in analysis.subject_stats]},
                index=[s.subject for s in analysis.subject_stats],
            )
        )

        st.markdown("**Student Grade Distribution**")
        spread = distribution(analysis)
        st.line_chart(pd.DataFrame({"Percentage": [r.percentage for r in spread]}))
        st.caption("Students sorted by performance (Low to High)")

        st.markdown("**Subject Statistics**")
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "Subject": s.subject,
                        "Average %": round(s.average, 1),
                        "Highest": s.highest,
                        "Lowest": s.lowest,
                    }
                    for s in analysis.subject_stats
                ]
            ),
            hide_index=True,
            use_container_width=True,
        )

        st.markdown("**Detailed Student Results**")
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "Enrollment": r.student.enrollment_no,
                        "Name": r.student.name,
                        "Percentage": f"{r.percentage:.1f}%",
                        "Status": ("✅ " if r.status == PASS else "⚠️ ") + r.status,
                    }
                    for r in ranked_results(analysis)
                ]
            ),
            hide_index=True,
            use_container_width=True,
        )

    with right:
        st.markdown("### 🏆 Top Performers")
        for rank, r in enumerate(analysis.top_performers, start=1):
            st.markdown(
                f"**{rank}. {r.student.name}**  \n"
                f"{r.student.enrollment_no} · **{r.percentage:.1f}%**"
            )

        st.markdown("### 🤖 AI Class Report")
        if st.button("Generate report"):
            with st.spinner("Analysing class performance..."):
                st.session_state["report"] = generate_class_report(
                    analysis, build_report_generator(settings)
                )
        if st.session_state.get("report"):
            st.markdown(st.session_state["report"])


phase = st.session_state["phase"]
if phase == Phase.SETUP:
    render_setup()
elif phase == Phase.ENTRY:
    render_entry()
else:
    render_results()
