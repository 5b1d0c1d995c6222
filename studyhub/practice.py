"""
Practice test engine: randomized test assembly, answer tracking and results.
Tests and results live in a session store (Streamlit session_state in the app).
"""
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, MutableMapping, Optional, Sequence, Tuple
from uuid import uuid4

from engine import CATEGORY_SAMPLE_SIZES, DEFAULT_TEST_SIZE
from studyhub.errors import NoQuestionsError, SessionMismatchError
from studyhub.models import Question
from studyhub.progress import round_percent

logger = logging.getLogger(__name__)

CURRENT_TEST_KEY = "current_test"
RESULTS_KEY = "last_test_results"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _criteria_label(category: Optional[str], year: Optional[int], professor: Optional[str]) -> str:
    parts = []
    if category:
        parts.append(f"Category: {category}")
    if year:
        parts.append(f"Year: {year}")
    if professor:
        parts.append(f"Professor: {professor}")
    return " • ".join(parts)


@dataclass
class PracticeResults:
    course_name: str
    started_at: datetime
    ended_at: datetime
    answers: List[Tuple[str, bool]] = field(default_factory=list)
    category: Optional[str] = None
    year: Optional[int] = None
    professor: Optional[str] = None

    @property
    def total(self) -> int:
        return len(self.answers)

    @property
    def correct_count(self) -> int:
        return sum(1 for _, is_correct in self.answers if is_correct)

    @property
    def score(self) -> int:
        return round_percent(self.correct_count, self.total)

    @property
    def duration(self) -> Tuple[int, int]:
        """(minutes, seconds) between start and end."""
        elapsed = max(0, int((self.ended_at - self.started_at).total_seconds()))
        return divmod(elapsed, 60)

    @property
    def criteria_label(self) -> str:
        return _criteria_label(self.category, self.year, self.professor)

    def to_dict(self) -> Dict:
        return {
            "course_name": self.course_name,
            "category": self.category,
            "year": self.year,
            "professor": self.professor,
            "start_time": self.started_at.isoformat(),
            "end_time": self.ended_at.isoformat(),
            "answers": [{"question_id": qid, "is_correct": ok} for qid, ok in self.answers],
            "score": self.score,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "PracticeResults":
        return cls(
            course_name=data["course_name"],
            category=data.get("category"),
            year=data.get("year"),
            professor=data.get("professor"),
            started_at=datetime.fromisoformat(data["start_time"]),
            ended_at=datetime.fromisoformat(data["end_time"]),
            answers=[(a["question_id"], bool(a["is_correct"])) for a in data.get("answers", [])],
        )


@dataclass
class PracticeTest:
    """A short self-graded test: reveal the answer, then mark it correct or incorrect."""

    course_name: str
    questions: List[Question]
    started_at: datetime = field(default_factory=_now)
    category: Optional[str] = None
    year: Optional[int] = None
    professor: Optional[str] = None
    test_id: str = field(default_factory=lambda: str(uuid4()))
    current_index: int = 0
    answer_revealed: bool = False
    answers: Dict[str, bool] = field(default_factory=dict)

    @property
    def is_finished(self) -> bool:
        return self.current_index >= len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if self.is_finished:
            return None
        return self.questions[self.current_index]

    @property
    def progress(self) -> float:
        """Fraction of the test reached, counting the current question."""
        if not self.questions:
            return 0.0
        return min(self.current_index + 1, len(self.questions)) / len(self.questions)

    @property
    def running_accuracy(self) -> int:
        correct = sum(1 for ok in self.answers.values() if ok)
        return round_percent(correct, len(self.answers))

    @property
    def criteria_label(self) -> str:
        return _criteria_label(self.category, self.year, self.professor)

    def reveal(self) -> None:
        self.answer_revealed = True

    def record_answer(self, is_correct: bool) -> Question:
        """Record the self-assessment for the current question and move on."""
        question = self.current_question
        if question is None:
            raise IndexError("Test already finished")
        self.answers[question.id] = is_correct
        self.current_index += 1
        self.answer_revealed = False
        logger.debug("Test %s: Q=%s correct=%s", self.test_id, question.id, is_correct)
        return question

    def finish(self, now: Optional[datetime] = None) -> PracticeResults:
        answers = [(q.id, self.answers[q.id]) for q in self.questions if q.id in self.answers]
        results = PracticeResults(
            course_name=self.course_name,
            category=self.category,
            year=self.year,
            professor=self.professor,
            started_at=self.started_at,
            ended_at=now or _now(),
            answers=answers,
        )
        logger.info(
            "Test %s for %s completed: %d/%d (%d%%)",
            self.test_id, self.course_name, results.correct_count, results.total, results.score,
        )
        return results

    def to_dict(self) -> Dict:
        return {
            "test_id": self.test_id,
            "course_name": self.course_name,
            "questions": [q.to_row() for q in self.questions],
            "category": self.category,
            "year": self.year,
            "professor": self.professor,
            "start_time": self.started_at.isoformat(),
            "current_index": self.current_index,
            "answer_revealed": self.answer_revealed,
            "answers": dict(self.answers),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "PracticeTest":
        return cls(
            test_id=data.get("test_id") or str(uuid4()),
            course_name=data["course_name"],
            questions=[Question.from_row(r) for r in data.get("questions", [])],
            category=data.get("category"),
            year=data.get("year"),
            professor=data.get("professor"),
            started_at=datetime.fromisoformat(data["start_time"]),
            current_index=data.get("current_index", 0),
            answer_revealed=data.get("answer_revealed", False),
            answers=dict(data.get("answers", {})),
        )


def build_practice_test(
    questions: Sequence[Question],
    course_name: str,
    category: Optional[str] = None,
    year: Optional[int] = None,
    professor: Optional[str] = None,
    size: int = DEFAULT_TEST_SIZE,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> PracticeTest:
    """Filter the course's questions by the optional criteria, shuffle, keep up to `size`."""
    rng = rng or random.Random()
    year = int(year) if year else None
    pool = [
        q for q in questions
        if (not category or q.category == category)
        and (year is None or q.year == year)
        and (not professor or q.professor == professor)
    ]
    if not pool:
        raise NoQuestionsError("No questions match your selected criteria")
    picked = list(pool)
    rng.shuffle(picked)
    picked = picked[:size]
    logger.info("Built practice test for %s: %d of %d matching questions", course_name, len(picked), len(pool))
    return PracticeTest(
        course_name=course_name,
        questions=picked,
        category=category or None,
        year=year,
        professor=professor or None,
        started_at=now or _now(),
    )


def build_category_sample_test(
    questions: Sequence[Question],
    course_name: str,
    count: int = CATEGORY_SAMPLE_SIZES[0],
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> PracticeTest:
    """One random question from each of `count` randomly chosen categories."""
    rng = rng or random.Random()
    by_category: Dict[str, List[Question]] = {}
    for q in questions:
        if q.category:
            by_category.setdefault(q.category, []).append(q)
    if count > len(by_category):
        raise NoQuestionsError(
            f"Not enough categories available. Only {len(by_category)} categories exist."
        )
    picked_categories = rng.sample(sorted(by_category), count)
    picked = [rng.choice(by_category[name]) for name in picked_categories]
    logger.info("Built category sample test for %s: %d categories", course_name, count)
    return PracticeTest(course_name=course_name, questions=picked, started_at=now or _now())


# ============= Session store =============


def save_current_test(store: MutableMapping, test: PracticeTest) -> None:
    store[CURRENT_TEST_KEY] = test.to_dict()


def load_current_test(store: MutableMapping, course_name: str) -> Optional[PracticeTest]:
    data = store.get(CURRENT_TEST_KEY)
    if not data:
        return None
    if data.get("course_name") != course_name:
        raise SessionMismatchError("Test is for a different course")
    return PracticeTest.from_dict(data)


def clear_current_test(store: MutableMapping) -> None:
    store.pop(CURRENT_TEST_KEY, None)


def save_results(store: MutableMapping, results: PracticeResults) -> None:
    store[RESULTS_KEY] = results.to_dict()


def load_results(store: MutableMapping, course_name: str) -> Optional[PracticeResults]:
    data = store.get(RESULTS_KEY)
    if not data:
        return None
    if data.get("course_name") != course_name:
        raise SessionMismatchError("Results are for a different course")
    return PracticeResults.from_dict(data)
