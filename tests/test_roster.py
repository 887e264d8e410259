from grade_analyser.roster import (
    add_student,
    generate_enrollment,
    initial_roster,
    new_student,
    next_enrollment,
)


def test_generate_enrollment():
    assert generate_enrollment(0, 2026) == "2026-001"
    assert generate_enrollment(41, 2026) == "2026-042"
    assert generate_enrollment(999, 2026) == "2026-1000"


def test_new_student_defaults():
    s = new_student(3, ["Math", "Sci"], year=2025)
    assert s.name == "Student 3"
    assert s.enrollment_no == "2025-003"
    assert s.marks == {"Math": 0, "Sci": 0}
    assert s.id


def test_initial_roster_count_and_unique_ids():
    roster = initial_roster(4, ["Math"], year=2025)
    assert [s.enrollment_no for s in roster] == ["2025-001", "2025-002", "2025-003", "2025-004"]
    assert len({s.id for s in roster}) == 4


def test_initial_roster_falls_back_to_five():
    assert len(initial_roster(0, ["Math"])) == 5


def test_add_student_returns_new_list():
    roster = initial_roster(2, ["Math"], year=2025)
    grown = add_student(roster, ["Math"], year=2025)
    assert len(roster) == 2
    assert grown[-1].name == "Student 3"
    assert grown[-1].enrollment_no == "2025-003"
    assert grown[-1].marks == {"Math": 0}


def test_next_enrollment_continues_after_highest():
    assert next_enrollment(["2026-001", "2026-005", "2026-003"], 2026) == "2026-006"


def test_next_enrollment_ignores_other_years_and_free_text():
    used = ["2025-009", "A-17", "", None, " 2026-002 "]
    assert next_enrollment(used, 2026) == "2026-003"
    assert next_enrollment([], 2026) == "2026-001"


def test_add_student_after_deleted_row_does_not_repeat():
    roster = initial_roster(3, ["Math"], year=2026)
    # drop the middle row; the roster is now 2026-001 and 2026-003
    roster = [roster[0], roster[2]]
    grown = add_student(roster, ["Math"], year=2026)

    numbers = [s.enrollment_no for s in grown]
    assert numbers[-1] == "2026-004"
    assert len(set(numbers)) == len(numbers)
