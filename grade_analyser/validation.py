import math
from typing import List, Optional, Sequence, Tuple

from grade_analyser.models import Configuration, MarkEntry, Student, ValidationResult

MIN_CLASS_SIZE = 1
MAX_CLASS_SIZE = 100


class InvalidConfigurationError(ValueError):
    """Subjects, class size or max marks cannot be used for an analysis."""


def _enrollment_key(enrollment_no: str) -> str:
    return (enrollment_no or "").strip().casefold()


# ------------------------
# Enrollment numbers
# ------------------------
def validate_roster(roster: Sequence[Student]) -> ValidationResult:
    """
    Enrollment numbers must be unique after trimming and case-folding.
    Reports the first repeated value in roster order.
    """
    seen = set()
    for student in roster:
        key = _enrollment_key(student.enrollment_no)
        if key in seen:
            return ValidationResult(
                ok=False,
                duplicate=student.enrollment_no,
                message=f'Enrollment number "{student.enrollment_no}" must be unique.',
            )
        seen.add(key)
    return ValidationResult(ok=True)


def enrollment_conflicts(roster: Sequence[Student], student_id: str, enrollment_no: str) -> bool:
    """True if another row already uses `enrollment_no`."""
    key = _enrollment_key(enrollment_no)
    return any(
        s.id != student_id and _enrollment_key(s.enrollment_no) == key
        for s in roster
    )


def conflicting_rows(roster: Sequence[Student]) -> List[Student]:
    """Every row whose enrollment number is also used by another row."""
    return [s for s in roster if enrollment_conflicts(roster, s.id, s.enrollment_no)]


# ------------------------
# Marks
# ------------------------
def parse_mark(raw, max_marks: float) -> MarkEntry:
    """
    Blank, non-numeric and negative entries become 0.
    Values above max_marks are flagged, not clamped.
    """
    try:
        mark = float(raw)
    except (TypeError, ValueError):
        return MarkEntry(value=0.0)

    if math.isnan(mark):
        return MarkEntry(value=0.0)
    if mark > max_marks:
        return MarkEntry(value=mark, error=f"Marks cannot exceed maximum ({max_marks:g})")
    return MarkEntry(value=max(0.0, mark))


def out_of_range_marks(
    roster: Sequence[Student], config: Configuration
) -> List[Tuple[Student, str, float]]:
    flagged = []
    for student in roster:
        for subject in config.subjects:
            mark = student.mark(subject)
            if mark > config.max_marks:
                flagged.append((student, subject, mark))
    return flagged


def validate_submission(roster: Sequence[Student], config: Configuration) -> ValidationResult:
    """Re-check run right before the roster moves on to analysis."""
    duplicates = validate_roster(roster)
    if not duplicates.ok:
        return ValidationResult(
            ok=False,
            duplicate=duplicates.duplicate,
            message="Cannot proceed: Duplicate enrollment numbers detected.",
        )

    flagged = out_of_range_marks(roster, config)
    if flagged:
        student, subject, mark = flagged[0]
        return ValidationResult(
            ok=False,
            message=(
                f"Cannot proceed: {student.name or student.enrollment_no} has {mark:g} "
                f"in {subject}, above the maximum of {config.max_marks:g}."
            ),
        )
    return ValidationResult(ok=True)


# ------------------------
# Setup
# ------------------------
def add_subject(subjects: Sequence[str], name: Optional[str]) -> List[str]:
    name = (name or "").strip()
    if not name or name in subjects:
        return list(subjects)
    return [*subjects, name]


def validate_configuration(subjects: Sequence[str], class_size, max_marks) -> Configuration:
    cleaned = [str(s).strip() for s in subjects]
    if not cleaned or any(not s for s in cleaned):
        raise InvalidConfigurationError("Add at least one subject.")
    if len(set(cleaned)) != len(cleaned):
        raise InvalidConfigurationError("Subject names must be unique.")

    try:
        size = float(class_size)
    except (TypeError, ValueError):
        size = math.nan
    if not size.is_integer():
        raise InvalidConfigurationError(f"Class size must be a whole number (got {class_size!r}).")
    class_size = int(size)
    if not MIN_CLASS_SIZE <= class_size <= MAX_CLASS_SIZE:
        raise InvalidConfigurationError(
            f"Class size must be between {MIN_CLASS_SIZE} and {MAX_CLASS_SIZE} (got {class_size})."
        )

    try:
        max_marks = float(max_marks)
    except (TypeError, ValueError):
        raise InvalidConfigurationError(f"Max marks must be a number (got {max_marks!r}).") from None
    if math.isnan(max_marks) or max_marks <= 0:
        raise InvalidConfigurationError(f"Max marks must be positive (got {max_marks:g}).")
    if max_marks.is_integer():
        max_marks = int(max_marks)

    return Configuration(subjects=tuple(cleaned), max_marks=max_marks, class_size=class_size)
