from datetime import date
from typing import Dict, List, Optional, Sequence

import pandas as pd

from grade_analyser.models import AnalysisData, Student
from grade_analyser.roster import new_student_id, next_enrollment
from grade_analyser.validation import parse_mark

ID_COL = "ID"
ENROLLMENT_COL = "Enrollment No"
NAME_COL = "Name"

# accepted spellings after _normalise_cols
_ENROLLMENT_ALIASES = ("enrollment no", "enrollment_no", "enrollment", "enrolment no", "roll no", "roll_number")
_NAME_ALIASES = ("name", "student name", "student_name")


def _number(x: float):
    """80.0 -> 80, 80.5 -> 80.5"""
    x = float(x)
    return int(x) if x.is_integer() else x


# ------------------------
# Report export
# ------------------------
def report_frame(analysis: AnalysisData, subjects: Sequence[str]) -> pd.DataFrame:
    rows = []
    for r in analysis.results:
        row = {ENROLLMENT_COL: r.student.enrollment_no, NAME_COL: r.student.name}
        for subject in subjects:
            row[subject] = _number(r.student.mark(subject))
        row["Total Score"] = _number(r.total)
        row["Percentage"] = f"{r.percentage:.2f}"
        row["Status"] = r.status
        rows.append(row)

    columns = [ENROLLMENT_COL, NAME_COL, *subjects, "Total Score", "Percentage", "Status"]
    # object dtype keeps 80 as 80 next to 45.5 in the same column
    return pd.DataFrame(rows, columns=columns, dtype=object)


def report_csv(analysis: AnalysisData, subjects: Sequence[str]) -> str:
    return report_frame(analysis, subjects).to_csv(index=False, lineterminator="\n")


def report_filename(day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"grade_report_{day.isoformat()}.csv"


# ------------------------
# Marks table (entry screen)
# ------------------------
def roster_frame(roster: Sequence[Student], subjects: Sequence[str]) -> pd.DataFrame:
    rows = []
    for s in roster:
        row = {ID_COL: s.id, ENROLLMENT_COL: s.enrollment_no, NAME_COL: s.name}
        for subject in subjects:
            row[subject] = float(s.mark(subject))
        rows.append(row)
    return pd.DataFrame(rows, columns=[ID_COL, ENROLLMENT_COL, NAME_COL, *subjects])


def _text(value) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value)


def frame_to_roster(df: pd.DataFrame, subjects: Sequence[str], max_marks: float) -> List[Student]:
    """
    Rebuild students from an edited marks table.
    Rows without an ID get a fresh one on every call, so callers write the
    result back (see rows_missing_id). Blank enrollment numbers continue
    after the highest one in use. Marks above max_marks are kept so the
    entry screen can flag them.
    """
    used = [_text(v) for v in df[ENROLLMENT_COL]] if ENROLLMENT_COL in df.columns else []
    students = []
    for _, row in df.iterrows():
        student_id = _text(row.get(ID_COL)) or new_student_id()
        enrollment_no = _text(row.get(ENROLLMENT_COL))
        if not enrollment_no.strip():
            enrollment_no = next_enrollment(used)
            used.append(enrollment_no)
        marks = {subject: parse_mark(row.get(subject), max_marks).value for subject in subjects}
        students.append(
            Student(
                id=student_id,
                enrollment_no=enrollment_no,
                name=_text(row.get(NAME_COL)),
                marks=marks,
            )
        )
    return students


def rows_missing_id(df: pd.DataFrame) -> bool:
    """True when the editor added rows that have no ID yet."""
    if ID_COL not in df.columns:
        return len(df) > 0
    return any(not _text(v) for v in df[ID_COL])


# ------------------------
# Roster upload
# ------------------------
def _normalise_cols(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


def read_csv_upload(uploaded_file) -> pd.DataFrame:
    # as text, so enrollment numbers keep leading zeros
    df = pd.read_csv(uploaded_file, dtype=str)
    return _normalise_cols(df)


def _find_column(columns, aliases) -> Optional[str]:
    for alias in aliases:
        if alias in columns:
            return alias
    return None


def validate_roster_csv(df: pd.DataFrame, subjects: Sequence[str]) -> pd.DataFrame:
    """Map an uploaded (normalised) sheet onto the marks table columns."""
    enrollment = _find_column(df.columns, _ENROLLMENT_ALIASES)
    name = _find_column(df.columns, _NAME_ALIASES)
    missing = []
    if enrollment is None:
        missing.append("enrollment no")
    if name is None:
        missing.append("name")
    if missing:
        expected = ", ".join([ENROLLMENT_COL, NAME_COL, *subjects])
        raise ValueError(f"Missing columns: {missing}. Expected: {expected}.")

    renames: Dict[str, str] = {enrollment: ENROLLMENT_COL, name: NAME_COL}
    for subject in subjects:
        key = subject.strip().lower()
        if key in df.columns:
            renames[key] = subject

    out = df[list(renames)].copy()
    out = out.rename(columns=renames)
    for subject in subjects:
        if subject not in out.columns:
            out[subject] = 0.0
    return out[[ENROLLMENT_COL, NAME_COL, *subjects]]


def parse_roster(df: pd.DataFrame, subjects: Sequence[str], max_marks: float) -> List[Student]:
    # blank lines at the end of a sheet are common
    keep = [
        bool(_text(row.get(ENROLLMENT_COL)).strip() or _text(row.get(NAME_COL)).strip())
        for _, row in df.iterrows()
    ]
    return frame_to_roster(df.loc[keep], subjects, max_marks)
