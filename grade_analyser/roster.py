import re
import uuid
from datetime import date
from typing import Iterable, List, Optional, Sequence

from grade_analyser.models import Student

DEFAULT_CLASS_SIZE = 5


def generate_enrollment(index: int, year: Optional[int] = None) -> str:
    """0-based row index -> '<year>-<NNN>' (e.g. 2026-001)."""
    if year is None:
        year = date.today().year
    return f"{year}-{index + 1:03d}"


def next_enrollment(existing: Iterable[str], year: Optional[int] = None) -> str:
    """
    Default number for a new row: one past the highest '<year>-<NNN>'
    already in use, so deleting a row above never leads to a repeat.
    """
    if year is None:
        year = date.today().year
    pattern = re.compile(rf"^{year}-(\d+)$")
    highest = 0
    for value in existing:
        match = pattern.match((value or "").strip())
        if match:
            highest = max(highest, int(match.group(1)))
    return generate_enrollment(highest, year)


def new_student_id() -> str:
    return f"st-{uuid.uuid4().hex}"


def new_student(seq: int, subjects: Sequence[str], year: Optional[int] = None) -> Student:
    """Blank row numbered `seq` (1-based) with every subject at 0."""
    return Student(
        id=new_student_id(),
        enrollment_no=generate_enrollment(seq - 1, year),
        name=f"Student {seq}",
        marks={subject: 0 for subject in subjects},
    )


def initial_roster(count: int, subjects: Sequence[str], year: Optional[int] = None) -> List[Student]:
    count = count if count > 0 else DEFAULT_CLASS_SIZE
    return [new_student(i + 1, subjects, year) for i in range(count)]


def add_student(roster: Sequence[Student], subjects: Sequence[str], year: Optional[int] = None) -> List[Student]:
    student = new_student(len(roster) + 1, subjects, year)
    enrollment_no = next_enrollment((s.enrollment_no for s in roster), year)
    return [*roster, Student(student.id, enrollment_no, student.name, student.marks)]
