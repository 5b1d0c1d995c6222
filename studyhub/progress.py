"""Completion progress per course and category, and dashboard stats."""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from studyhub.models import Category, Question, QuestionStatus, SelectedCourse


def percent(part: int, whole: int) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def round_percent(part: int, whole: int) -> int:
    """Whole-number percentage, halves rounded up."""
    return int(percent(part, whole) + 0.5)


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


@dataclass
class CategoryProgress:
    category: str
    total_questions: int
    completed_questions: int

    @property
    def progress(self) -> float:
        return percent(self.completed_questions, self.total_questions)

    @property
    def name(self) -> str:
        return self.category


@dataclass
class CourseProgress:
    course_name: str
    categories: List[CategoryProgress] = field(default_factory=list)

    @property
    def total_questions(self) -> int:
        return sum(c.total_questions for c in self.categories)

    @property
    def completed_questions(self) -> int:
        return sum(c.completed_questions for c in self.categories)

    @property
    def progress(self) -> float:
        return percent(self.completed_questions, self.total_questions)

    @property
    def name(self) -> str:
        return self.course_name


def category_progress(category: str, questions: Iterable[Question]) -> CategoryProgress:
    in_category = [q for q in questions if q.category == category]
    completed = sum(1 for q in in_category if q.status is QuestionStatus.CORRECT)
    return CategoryProgress(category=category, total_questions=len(in_category), completed_questions=completed)


def course_progress(course_name: str, categories: Sequence[Category], questions: Sequence[Question]) -> CourseProgress:
    """Progress for every category of the course, including empty ones."""
    names = [c.category for c in categories if c.course == course_name]
    return CourseProgress(
        course_name=course_name,
        categories=[category_progress(name, questions) for name in dict.fromkeys(names)],
    )


def build_progress(
    selected_courses: Sequence[SelectedCourse], categories: Sequence[Category], questions: Sequence[Question]
) -> List[CourseProgress]:
    return [course_progress(sc.course_name, categories, questions) for sc in selected_courses]


def filter_progress(items: Sequence, term: str) -> list:
    """Case-insensitive name search over CourseProgress or CategoryProgress items."""
    needle = term.lower()
    return [item for item in items if needle in item.name.lower()]


# ============= Dashboard =============


def active_courses(selected_courses: Iterable[SelectedCourse]) -> List[SelectedCourse]:
    return [c for c in selected_courses if not c.after_exam]


def upcoming_exams(selected_courses: Iterable[SelectedCourse], today: date) -> List[SelectedCourse]:
    """Active courses with an exam today or later, soonest first."""
    upcoming = [c for c in active_courses(selected_courses) if c.exam_date is not None and c.exam_date >= today]
    return sorted(upcoming, key=lambda c: c.exam_date)


def days_label(days: Optional[int]) -> str:
    if days is None:
        return ""
    return "Today!" if days == 0 else f"{days} days"


def dashboard_stats(
    selected_courses: Sequence[SelectedCourse], completed_exams: int, questions_answered: int, today: date
) -> Dict[str, int]:
    # done = true means answered correctly, so answered and correct coincide
    correct = questions_answered
    return {
        "tests_completed": completed_exams,
        "questions_answered": questions_answered,
        "correct_answers": correct,
        "upcoming_tests": len(upcoming_exams(selected_courses, today)),
        "accuracy": round_percent(correct, questions_answered),
    }
