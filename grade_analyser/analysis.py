import numbers
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Sequence

import numpy as np

from grade_analyser.logger import get_logger
from grade_analyser.models import (
    FAIL,
    PASS,
    AnalysisData,
    Configuration,
    Student,
    StudentResult,
    SubjectStats,
)
from grade_analyser.validation import InvalidConfigurationError

logger = get_logger("analysis")

PASS_PERCENTAGE = 40
TOP_PERFORMERS = 3


# ------------------------
# Core logic
# ------------------------
def round_half_up(x: float, places: int = 1) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(x)).quantize(quantum, rounding=ROUND_HALF_UP))


def marks_matrix(roster: Sequence[Student], subjects: Sequence[str]) -> np.ndarray:
    """
    roster x subjects array of raw marks; a missing mark is 0.
    Marks for subjects outside `subjects` never enter the matrix.
    """
    matrix = np.zeros((len(roster), len(subjects)), dtype=float)
    for i, student in enumerate(roster):
        for j, subject in enumerate(subjects):
            matrix[i, j] = float(student.mark(subject))
    return matrix


def student_status(percentage: float) -> str:
    return PASS if percentage >= PASS_PERCENTAGE else FAIL


def analyze(roster: Sequence[Student], config: Configuration) -> AnalysisData:
    max_marks = config.max_marks
    if not isinstance(max_marks, numbers.Real) or isinstance(max_marks, bool) or not max_marks > 0:
        raise InvalidConfigurationError(
            f"Max marks must be a positive number (got {max_marks!r})."
        )

    subjects = list(config.subjects)
    matrix = marks_matrix(roster, subjects)
    possible_total = config.possible_total

    # ---- Student results ----
    totals = matrix.sum(axis=1)
    results: List[StudentResult] = []
    for student, total in zip(roster, totals):
        total = float(total)
        # total * 100 / possible keeps exact boundaries for integral marks
        percentage = total * 100 / possible_total if possible_total > 0 else 0.0
        results.append(
            StudentResult(
                student=student,
                total=total,
                percentage=percentage,
                status=student_status(percentage),
            )
        )

    # ---- Subject stats ----
    n_students = len(roster)
    subject_stats: List[SubjectStats] = []
    for j, subject in enumerate(subjects):
        column = matrix[:, j]
        if n_students > 0:
            average = float(column.sum()) * 100 / (n_students * max_marks)
            highest = float(column.max())
            lowest = float(column.min())
        else:
            average, highest, lowest = 0.0, 0.0, 0.0
        subject_stats.append(
            SubjectStats(subject=subject, average=average, highest=highest, lowest=lowest)
        )

    # ---- Overall stats ----
    if results:
        class_average = sum(r.percentage for r in results) / len(results)
        passed = sum(1 for r in results if r.status == PASS)
        pass_percentage = passed * 100 / len(results)
    else:
        class_average = 0.0
        pass_percentage = 0.0

    # sorted() copies; reverse=True keeps roster order among equal percentages
    top_performers = sorted(results, key=lambda r: r.percentage, reverse=True)[:TOP_PERFORMERS]

    logger.debug(
        "Analysed %d students over %d subjects (class average %.2f)",
        n_students, len(subjects), class_average,
    )

    return AnalysisData(
        results=tuple(results),
        subject_stats=tuple(subject_stats),
        top_performers=tuple(top_performers),
        class_average=class_average,
        pass_percentage=pass_percentage,
        max_marks=max_marks,
    )


# ------------------------
# Results view helpers
# ------------------------
def highest_percentage(analysis: AnalysisData) -> float:
    if not analysis.results:
        return 0.0
    return max(r.percentage for r in analysis.results)


def lowest_percentage(analysis: AnalysisData) -> float:
    if not analysis.results:
        return 0.0
    return min(r.percentage for r in analysis.results)


def ranked_results(analysis: AnalysisData) -> List[StudentResult]:
    return sorted(analysis.results, key=lambda r: r.percentage, reverse=True)


def distribution(analysis: AnalysisData) -> List[StudentResult]:
    """Results from lowest to highest percentage, for the distribution chart."""
    return sorted(analysis.results, key=lambda r: r.percentage)
