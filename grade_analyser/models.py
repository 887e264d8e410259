from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

PASS = "Pass"
FAIL = "Fail"


@dataclass(frozen=True)
class Student:
    """One roster row. Marks are keyed by subject name."""

    id: str
    enrollment_no: str
    name: str
    marks: Dict[str, float] = field(default_factory=dict)

    def mark(self, subject: str) -> float:
        value = self.marks.get(subject)
        # missing or NaN counts as zero
        if value is None or value != value:
            return 0
        return value


@dataclass(frozen=True)
class Configuration:
    subjects: Tuple[str, ...]
    max_marks: float
    class_size: int = 5

    @property
    def possible_total(self) -> float:
        return len(self.subjects) * self.max_marks


@dataclass(frozen=True)
class StudentResult:
    student: Student
    total: float
    percentage: float
    status: str


@dataclass(frozen=True)
class SubjectStats:
    subject: str
    average: float  # percentage of max marks
    highest: float
    lowest: float


@dataclass(frozen=True)
class AnalysisData:
    results: Tuple[StudentResult, ...]
    subject_stats: Tuple[SubjectStats, ...]
    top_performers: Tuple[StudentResult, ...]
    class_average: float
    pass_percentage: float
    max_marks: float


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    duplicate: Optional[str] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class MarkEntry:
    """A parsed marks cell: the value to store, or an error blocking submission."""

    value: float
    error: Optional[str] = None


class Phase(str, Enum):
    SETUP = "SETUP"
    ENTRY = "ENTRY"
    RESULTS = "RESULTS"

    def next(self) -> "Phase":
        order = list(Phase)
        return order[min(order.index(self) + 1, len(order) - 1)]

    def previous(self) -> "Phase":
        order = list(Phase)
        return order[max(order.index(self) - 1, 0)]


@dataclass(frozen=True)
class Snapshot:
    """Working state kept between sessions."""

    phase: Phase = Phase.SETUP
    subjects: List[str] = field(default_factory=list)
    max_marks: float = 100
    student_count: int = 5
    students: List[Student] = field(default_factory=list)
