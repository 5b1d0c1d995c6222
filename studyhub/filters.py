"""Client-side filtering of a course's question list."""
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from studyhub.models import Question, QuestionStatus


@dataclass
class QuestionFilter:
    """Search text plus multi-select facets. Empty selections match everything."""

    search: str = ""
    categories: List[str] = field(default_factory=list)
    professors: List[str] = field(default_factory=list)
    years: List[int] = field(default_factory=list)
    show_answered: bool = False


def _matches_search(question: Question, search: str) -> bool:
    needle = search.lower()
    if needle in question.question.lower():
        return True
    return bool(question.answer) and needle in question.answer.lower()


def matches(question: Question, flt: QuestionFilter) -> bool:
    if not flt.show_answered and question.status is QuestionStatus.CORRECT:
        return False
    if not _matches_search(question, flt.search):
        return False
    if flt.categories and question.category not in flt.categories:
        return False
    if flt.professors and question.professor not in flt.professors:
        return False
    if flt.years and question.year not in flt.years:
        return False
    return True


def filter_questions(questions: Sequence[Question], flt: QuestionFilter) -> List[Question]:
    return [q for q in questions if matches(q, flt)]


def facet_values(questions: Sequence[Question]) -> Dict[str, list]:
    """Unique categories and professors in first-seen order; years newest first."""
    categories = list(dict.fromkeys(q.category for q in questions if q.category))
    professors = list(dict.fromkeys(q.professor for q in questions if q.professor))
    years = sorted({q.year for q in questions if q.year}, reverse=True)
    return {"categories": categories, "professors": professors, "years": years}


def count_label(n: int) -> str:
    if n == 0:
        return "No questions match the filters"
    return f"{n} question{'' if n == 1 else 's'}"
