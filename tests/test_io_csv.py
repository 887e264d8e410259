import io
from datetime import date

import pandas as pd
import pytest

from grade_analyser.analysis import analyze
from grade_analyser.io_csv import (
    ENROLLMENT_COL,
    ID_COL,
    NAME_COL,
    frame_to_roster,
    parse_roster,
    read_csv_upload,
    report_csv,
    report_filename,
    report_frame,
    roster_frame,
    rows_missing_id,
    validate_roster_csv,
)

from conftest import make_student


def test_report_frame_columns_and_order(two_students, config):
    df = report_frame(analyze(two_students, config), config.subjects)

    assert list(df.columns) == [
        "Enrollment No", "Name", "Math", "Sci", "Total Score", "Percentage", "Status",
    ]
    assert df["Name"].tolist() == ["A", "B"]
    assert df["Total Score"].tolist() == [140, 80]
    assert df["Percentage"].tolist() == ["70.00", "40.00"]
    assert df["Status"].tolist() == ["Pass", "Pass"]


def test_report_csv_text_quotes_commas(config):
    roster = [make_student("Doe, Jane", {"Math": 45.5, "Sci": 30}, "2024-001")]
    text = report_csv(analyze(roster, config), config.subjects)

    lines = text.strip().split("\n")
    assert lines[0] == "Enrollment No,Name,Math,Sci,Total Score,Percentage,Status"
    assert lines[1] == '2024-001,"Doe, Jane",45.5,30,75.5,37.75,Fail'


def test_report_missing_mark_is_zero(config):
    roster = [make_student("A", {"Math": 90}, "2024-001")]
    df = report_frame(analyze(roster, config), config.subjects)
    assert df.loc[0, "Sci"] == 0


def test_report_filename():
    assert report_filename(date(2026, 3, 9)) == "grade_report_2026-03-09.csv"


def test_roster_frame_round_trip_keeps_ids(two_students, config):
    df = roster_frame(two_students, config.subjects)
    assert list(df.columns) == [ID_COL, ENROLLMENT_COL, NAME_COL, "Math", "Sci"]

    rebuilt = frame_to_roster(df, config.subjects, config.max_marks)
    assert [s.id for s in rebuilt] == [s.id for s in two_students]
    assert rebuilt[0].marks == {"Math": 80.0, "Sci": 60.0}


def test_frame_to_roster_handles_new_and_odd_rows(config):
    df = pd.DataFrame(
        [
            {ID_COL: None, ENROLLMENT_COL: None, NAME_COL: "New", "Math": None, "Sci": -3},
            {ID_COL: "keep", ENROLLMENT_COL: "X", NAME_COL: None, "Math": 150, "Sci": 20},
        ]
    )
    new, kept = frame_to_roster(df, config.subjects, config.max_marks)

    assert new.id.startswith("st-")
    assert new.enrollment_no.endswith("-001")
    assert new.marks == {"Math": 0.0, "Sci": 0.0}
    assert kept.id == "keep"
    assert kept.name == ""
    # kept so the entry screen can flag it
    assert kept.marks["Math"] == 150


def test_added_rows_keep_their_id_once_written_back(two_students, config):
    df = roster_frame(two_students, config.subjects)
    assert not rows_missing_id(df)

    added = {ID_COL: None, ENROLLMENT_COL: "2024-003", NAME_COL: "C", "Math": 10, "Sci": 10}
    df = pd.concat([df, pd.DataFrame([added])], ignore_index=True)
    assert rows_missing_id(df)

    # each pass hands an unsaved row a new id until the table is rebuilt
    first = frame_to_roster(df, config.subjects, config.max_marks)
    second = frame_to_roster(df, config.subjects, config.max_marks)
    assert first[-1].id != second[-1].id

    rebased = roster_frame(first, config.subjects)
    assert not rows_missing_id(rebased)
    again = frame_to_roster(rebased, config.subjects, config.max_marks)
    assert [s.id for s in again] == [s.id for s in first]
    assert frame_to_roster(rebased, config.subjects, config.max_marks) == again


def test_blank_enrollment_continues_after_highest(config):
    year = date.today().year
    df = pd.DataFrame(
        [
            {ID_COL: "a", ENROLLMENT_COL: f"{year}-001", NAME_COL: "A", "Math": 1, "Sci": 1},
            {ID_COL: "b", ENROLLMENT_COL: f"{year}-005", NAME_COL: "B", "Math": 1, "Sci": 1},
            {ID_COL: "c", ENROLLMENT_COL: None, NAME_COL: "C", "Math": 1, "Sci": 1},
            {ID_COL: "d", ENROLLMENT_COL: "  ", NAME_COL: "D", "Math": 1, "Sci": 1},
        ]
    )
    roster = frame_to_roster(df, config.subjects, config.max_marks)
    assert [s.enrollment_no for s in roster] == [
        f"{year}-001", f"{year}-005", f"{year}-006", f"{year}-007",
    ]


def test_upload_round_trip(config):
    upload = io.StringIO(
        " Enrollment No ,NAME,math,Art\n"
        "007,Bond,55,90\n"
        ",,,\n"
        "008,Moneypenny,,\n"
    )
    df = validate_roster_csv(read_csv_upload(upload), config.subjects)
    assert list(df.columns) == [ENROLLMENT_COL, NAME_COL, "Math", "Sci"]

    roster = parse_roster(df, config.subjects, config.max_marks)
    assert [s.enrollment_no for s in roster] == ["007", "008"]
    assert roster[0].marks == {"Math": 55.0, "Sci": 0.0}
    assert roster[1].marks == {"Math": 0.0, "Sci": 0.0}


def test_upload_missing_columns(config):
    df = read_csv_upload(io.StringIO("student,math\nA,1\n"))
    with pytest.raises(ValueError, match="Missing columns"):
        validate_roster_csv(df, config.subjects)
