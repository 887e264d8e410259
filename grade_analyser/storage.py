import json
from pathlib import Path
from typing import Any, Dict, Optional

from grade_analyser.logger import get_logger
from grade_analyser.models import Phase, Snapshot, Student

logger = get_logger("storage")


def student_to_dict(student: Student) -> Dict[str, Any]:
    return {
        "id": student.id,
        "enrollmentNo": student.enrollment_no,
        "name": student.name,
        "marks": dict(student.marks),
    }


def student_from_dict(data: Dict[str, Any]) -> Student:
    return Student(
        id=str(data["id"]),
        enrollment_no=str(data.get("enrollmentNo", "")),
        name=str(data.get("name", "")),
        marks={str(k): float(v) for k, v in (data.get("marks") or {}).items()},
    )


def snapshot_to_dict(snapshot: Snapshot) -> Dict[str, Any]:
    return {
        "phase": snapshot.phase.value,
        "subjects": list(snapshot.subjects),
        "maxMarks": snapshot.max_marks,
        "studentCount": snapshot.student_count,
        "students": [student_to_dict(s) for s in snapshot.students],
    }


def snapshot_from_dict(data: Dict[str, Any]) -> Snapshot:
    # falsy or absent fields fall back to the setup defaults
    phase = data.get("phase") or Phase.SETUP.value
    return Snapshot(
        phase=Phase(phase),
        subjects=list(data.get("subjects") or []),
        max_marks=data.get("maxMarks") or 100,
        student_count=data.get("studentCount") or 5,
        students=[student_from_dict(s) for s in data.get("students") or []],
    )


class SnapshotStore:
    """Keeps the working class in a JSON file between sessions."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> Optional[Snapshot]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return snapshot_from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("Snapshot load error (%s): %s", self.path, e)
            return None

    def save(self, snapshot: Snapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(snapshot_to_dict(snapshot), f, indent=2)
        tmp.replace(self.path)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info("Cleared stored class data at %s", self.path)
