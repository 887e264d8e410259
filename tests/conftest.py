import pytest

from grade_analyser.models import Configuration, Student


def make_student(name, marks, enrollment_no=None, student_id=None):
    return Student(
        id=student_id or f"id-{name}",
        enrollment_no=enrollment_no or f"2024-{name}",
        name=name,
        marks=dict(marks),
    )


@pytest.fixture
def two_students():
    return [
        make_student("A", {"Math": 80, "Sci": 60}, "2024-001"),
        make_student("B", {"Math": 40, "Sci": 40}, "2024-002"),
    ]


@pytest.fixture
def config():
    return Configuration(subjects=("Math", "Sci"), max_marks=100)
