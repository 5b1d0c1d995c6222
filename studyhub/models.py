"""Row types for courses, categories, questions and selected courses."""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Optional


class QuestionStatus(Enum):
    """Tri-state completion marker stored in questions.done (true / false / null)."""

    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNANSWERED = "unanswered"

    @classmethod
    def from_done(cls, done: Optional[bool]) -> "QuestionStatus":
        if done is True:
            return cls.CORRECT
        if done is False:
            return cls.INCORRECT
        return cls.UNANSWERED

    @property
    def done(self) -> Optional[bool]:
        return {"correct": True, "incorrect": False, "unanswered": None}[self.value]

    @property
    def label(self) -> str:
        return {"correct": "correct", "incorrect": "incorrect/partial", "unanswered": "unanswered"}[self.value]


def _parse_year(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_date(value) -> Optional[date]:
    """Accept a date, 'YYYY-MM-DD' or an ISO timestamp; None for blanks."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass
class Course:
    course_name: str

    @classmethod
    def from_row(cls, row: Dict) -> "Course":
        return cls(course_name=row["course_name"])


@dataclass
class Category:
    category: str
    course: str

    @classmethod
    def from_row(cls, row: Dict) -> "Category":
        return cls(category=row["category"], course=row.get("course") or "")


@dataclass
class Question:
    id: str
    question: str
    answer: Optional[str] = None
    category: Optional[str] = None
    year: Optional[int] = None
    professor: Optional[str] = None
    status: QuestionStatus = QuestionStatus.UNANSWERED

    @classmethod
    def from_row(cls, row: Dict) -> "Question":
        return cls(
            id=str(row["id"]),
            question=row.get("question") or "",
            answer=row.get("answer"),
            category=row.get("category"),
            year=_parse_year(row.get("year")),
            professor=row.get("professor"),
            status=QuestionStatus.from_done(row.get("done")),
        )

    def to_row(self) -> Dict:
        return {
            "id": self.id,
            "question": self.question,
            "answer": self.answer,
            "category": self.category,
            "year": self.year,
            "professor": self.professor,
            "done": self.status.done,
        }


@dataclass
class SelectedCourse:
    course_name: str
    user_id: Optional[str] = None
    exam_date: Optional[date] = None
    after_exam: bool = False

    @classmethod
    def from_row(cls, row: Dict) -> "SelectedCourse":
        return cls(
            course_name=row["course_name"],
            user_id=row.get("user_id"),
            exam_date=parse_date(row.get("exam_date")),
            after_exam=bool(row.get("after_exam")),
        )

    def days_to_exam(self, today: date) -> Optional[int]:
        if self.exam_date is None:
            return None
        return (self.exam_date - today).days


@dataclass(frozen=True)
class CourseColor:
    name: str
    hex: str
    background: str = field(default="")


COURSE_COLORS = [
    CourseColor("blue", "#3b82f6", "rgba(59, 130, 246, 0.1)"),
    CourseColor("green", "#22c55e", "rgba(34, 197, 94, 0.1)"),
    CourseColor("purple", "#a855f7", "rgba(168, 85, 247, 0.1)"),
    CourseColor("orange", "#f97316", "rgba(249, 115, 22, 0.1)"),
    CourseColor("pink", "#ec4899", "rgba(236, 72, 153, 0.1)"),
    CourseColor("cyan", "#06b6d4", "rgba(6, 182, 212, 0.1)"),
    CourseColor("red", "#ef4444", "rgba(239, 68, 68, 0.1)"),
    CourseColor("yellow", "#eab308", "rgba(234, 179, 8, 0.1)"),
]


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def course_hash(course_name: str) -> int:
    """Rolling 31x hash; the shift wraps to 32 bits, the running sum does not."""
    h = 0
    for ch in course_name:
        h = ord(ch) + (_to_int32(_to_int32(h) << 5) - h)
    return h


def course_color(course_name: str) -> CourseColor:
    """Same course name, same colour, on every page."""
    return COURSE_COLORS[abs(course_hash(course_name)) % len(COURSE_COLORS)]
