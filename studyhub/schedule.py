"""
Study schedule: category performance, exam-week recommendations and a weekly slot plan.
The week before the nearest exam is filled from fixed slot templates on an 08:00-19:00 grid,
moving a slot once when it collides with time the user has blocked.
"""
import logging
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence
from uuid import uuid4

from engine import (
    EXAM_WEEK_DAYS,
    MAX_PRACTICE_RECOMMENDATIONS,
    MINUTES_PER_MISSING_PERCENT,
    MINUTES_PER_QUESTION,
    NEEDS_WORK_THRESHOLD,
    SCHEDULE_FIRST_HOUR,
    SCHEDULE_HOURS,
)
from studyhub.models import Question, QuestionStatus, SelectedCourse

logger = logging.getLogger(__name__)

HOURS = [SCHEDULE_FIRST_HOUR + i for i in range(SCHEDULE_HOURS)]

GENERAL = "general"
SPECIFIC = "specific"
BLOCKED = "blocked"

GENERAL_FALLBACK = ("14:00", "17:00")
SPECIFIC_FALLBACKS = [
    ("10:30", "12:00"),
    ("13:30", "15:00"),
    ("15:30", "17:00"),
    ("17:00", "18:30"),
]


def _hour(hhmm: str) -> int:
    return int(hhmm.split(":")[0])


def _questions_for(minutes: float) -> int:
    return int(minutes // MINUTES_PER_QUESTION)


@dataclass
class CategoryPerformance:
    course_name: str
    category: str
    total: int = 0
    incorrect: int = 0

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.total - self.incorrect) / self.total * 100


@dataclass
class ExamDate:
    course_name: str
    exam_date: date


@dataclass
class CategoryRecommendation:
    name: str
    performance: float
    recommended_minutes: int


@dataclass
class StudyRecommendation:
    course_name: str
    exam_date: date
    categories: List[CategoryRecommendation] = field(default_factory=list)


@dataclass
class TimeSlot:
    start_time: str
    end_time: str
    type: str = GENERAL
    subject: Optional[str] = None
    category: Optional[str] = None
    question_count: Optional[int] = None
    block_reason: Optional[str] = None

    @property
    def start_hour(self) -> int:
        return _hour(self.start_time)

    @property
    def end_hour(self) -> int:
        return _hour(self.end_time)

    def covers(self, hour: int) -> bool:
        return self.start_hour <= hour < self.end_hour


@dataclass
class BlockedTime:
    day: date
    start_time: str
    end_time: str
    reason: str = ""

    def to_slot(self) -> TimeSlot:
        return TimeSlot(self.start_time, self.end_time, type=BLOCKED, block_reason=self.reason)


@dataclass
class DaySchedule:
    day: date
    slots: List[TimeSlot] = field(default_factory=list)


# ============= Performance & recommendations =============


def category_performance(questions_by_course: Dict[str, Sequence[Question]]) -> List[CategoryPerformance]:
    """Per (course, category): total questions and how many are marked incorrect/partial."""
    acc: Dict[tuple, CategoryPerformance] = {}
    for course_name, questions in questions_by_course.items():
        for q in questions:
            if not q.category:
                continue
            key = (course_name, q.category)
            if key not in acc:
                acc[key] = CategoryPerformance(course_name=course_name, category=q.category)
            acc[key].total += 1
            if q.status is QuestionStatus.INCORRECT:
                acc[key].incorrect += 1
    return list(acc.values())


def upcoming_exam_dates(selected_courses: Iterable[SelectedCourse], today: date) -> List[ExamDate]:
    exams = [
        ExamDate(course_name=c.course_name, exam_date=c.exam_date)
        for c in selected_courses
        if c.exam_date is not None and not c.after_exam and c.exam_date >= today
    ]
    return sorted(exams, key=lambda e: e.exam_date)


def exams_on(exams: Iterable[ExamDate], day: date) -> List[ExamDate]:
    return [e for e in exams if e.exam_date == day]


def _needing_work(performance: Iterable[CategoryPerformance], course_name: Optional[str] = None) -> List[CategoryPerformance]:
    weak = [
        p for p in performance
        if p.percentage < NEEDS_WORK_THRESHOLD and (course_name is None or p.course_name == course_name)
    ]
    return sorted(weak, key=lambda p: p.percentage)


def practice_recommendations(performance: Iterable[CategoryPerformance]) -> List[CategoryPerformance]:
    """Categories under the threshold, worst first."""
    return _needing_work(performance)[:MAX_PRACTICE_RECOMMENDATIONS]


def study_recommendations(
    exams: Iterable[ExamDate], performance: Sequence[CategoryPerformance], today: date
) -> List[StudyRecommendation]:
    """For exams less than a week away: every category of the course, worst first, with study minutes."""
    recommendations = []
    for exam in exams:
        week_before = exam.exam_date - timedelta(days=EXAM_WEEK_DAYS)
        if not week_before <= today <= exam.exam_date:
            continue
        course_categories = sorted(
            (p for p in performance if p.course_name == exam.course_name), key=lambda p: p.percentage
        )
        if not course_categories:
            continue
        recommendations.append(
            StudyRecommendation(
                course_name=exam.course_name,
                exam_date=exam.exam_date,
                categories=[
                    CategoryRecommendation(
                        name=p.category,
                        performance=p.percentage,
                        recommended_minutes=int((100 - p.percentage) * MINUTES_PER_MISSING_PERCENT + 0.5),
                    )
                    for p in course_categories
                ],
            )
        )
    return recommendations


# ============= Weekly schedule =============


def _conflicts(slot: TimeSlot, blocked: TimeSlot) -> bool:
    ss, se = slot.start_hour, slot.end_hour
    bs, be = blocked.start_hour, blocked.end_hour
    return (bs <= ss and be > ss) or (bs < se and be >= se) or (bs >= ss and be <= se)


def _overlaps(start: str, end: str, blocked: Iterable[TimeSlot]) -> bool:
    s, e = _hour(start), _hour(end)
    return any(b.start_hour < e and b.end_hour > s for b in blocked)


def _default_slots(course_name: str, weak: Sequence[CategoryPerformance]) -> List[TimeSlot]:
    slots = [
        TimeSlot("09:00", "12:00", type=GENERAL, subject=course_name, question_count=_questions_for(3 * 60)),
    ]
    for (start, end), perf in zip([("13:30", "15:00"), ("15:30", "17:00")], weak):
        slots.append(
            TimeSlot(
                start, end, type=SPECIFIC, subject=course_name, category=perf.category,
                question_count=_questions_for(1.5 * 60),
            )
        )
    return slots


def _place(slot: TimeSlot, blocks: Sequence[TimeSlot]) -> Optional[TimeSlot]:
    """Slot as-is when free, else one fallback position, else None."""
    if not any(_conflicts(slot, b) for b in blocks):
        return slot
    if slot.type == GENERAL and slot.start_time == "09:00":
        start, end = GENERAL_FALLBACK
        if not _overlaps(start, end, blocks):
            return TimeSlot(start, end, type=GENERAL, subject=slot.subject, question_count=slot.question_count)
        return None
    if slot.type == SPECIFIC:
        for start, end in SPECIFIC_FALLBACKS:
            if not _overlaps(start, end, blocks):
                return TimeSlot(
                    start, end, type=SPECIFIC, subject=slot.subject, category=slot.category,
                    question_count=slot.question_count,
                )
    return None


def generate_weekly_schedule(
    exams: Sequence[ExamDate],
    performance: Sequence[CategoryPerformance],
    blocked: Sequence[BlockedTime],
    today: date,
) -> List[DaySchedule]:
    """Plan the seven days before the nearest exam whose week has not yet ended."""
    weeks = []
    for exam in sorted(exams, key=lambda e: e.exam_date):
        week_start = exam.exam_date - timedelta(days=EXAM_WEEK_DAYS)
        week_end = exam.exam_date - timedelta(days=1)
        if week_end >= today:
            weeks.append((exam, week_start, week_end))
    if not weeks:
        return [DaySchedule(day=today)]

    exam, week_start, week_end = weeks[0]
    weak = _needing_work(performance, exam.course_name)
    logger.info("Scheduling week %s..%s for %s (%d weak categories)", week_start, week_end, exam.course_name, len(weak))

    schedule = []
    day = week_start
    while day <= week_end:
        blocks = [b.to_slot() for b in blocked if b.day == day]
        slots = []
        if weak:
            for slot in _default_slots(exam.course_name, weak):
                placed = _place(slot, blocks)
                if placed is not None:
                    slots.append(placed)
        slots.extend(blocks)
        schedule.append(DaySchedule(day=day, slots=slots))
        day += timedelta(days=1)
    return schedule


def block_time_slot(blocked: Sequence[BlockedTime], day: date, start_time: str, end_time: str, reason: str = "") -> List[BlockedTime]:
    """Add a block, replacing any block with the same day and times."""
    if end_time <= start_time:
        raise ValueError("End time must be after start time")
    if _hour(end_time) <= _hour(start_time):
        raise ValueError("Blocked time must reach into the next hour of the grid")
    kept = [b for b in blocked if not (b.day == day and b.start_time == start_time and b.end_time == end_time)]
    return kept + [BlockedTime(day=day, start_time=start_time, end_time=end_time, reason=reason)]


def slot_label(slot: TimeSlot) -> str:
    span = f"{slot.start_time} - {slot.end_time}"
    if slot.type == BLOCKED:
        return f"Blocked: {slot.block_reason} ({span})" if slot.block_reason else f"Blocked ({span})"
    kind = "Full Exam Practice" if slot.type == GENERAL else f"Category Focus: {slot.category}"
    return f"{kind} · {slot.question_count} questions ({span})"


def schedule_grid(schedule: Sequence[DaySchedule]) -> List[Dict[str, str]]:
    """One row per grid hour; a slot is labelled on its start hour and marked on the hours it covers."""
    rows = []
    for hour in HOURS:
        row = {"Time": f"{hour:02d}:00"}
        for day_schedule in schedule:
            slot = next((s for s in day_schedule.slots if s.covers(hour)), None)
            if slot is None:
                cell = ""
            elif slot.start_hour == hour:
                cell = slot_label(slot)
            else:
                cell = "┆"
            row[day_schedule.day.strftime("%a %d %b")] = cell
        rows.append(row)
    return rows


# ============= Study sessions =============


@dataclass
class StudySession:
    day: date
    subject: str
    duration: int = 60
    focus_area: str = ""
    completed: bool = False
    id: str = field(default_factory=lambda: f"session-{uuid4().hex[:8]}")


def add_study_session(sessions: Sequence[StudySession], day: date, subject: str, duration: int = 60, focus_area: str = "") -> List[StudySession]:
    return list(sessions) + [StudySession(day=day, subject=subject, duration=duration, focus_area=focus_area)]


def toggle_session(sessions: Sequence[StudySession], session_id: str) -> List[StudySession]:
    return [replace(s, completed=not s.completed) if s.id == session_id else s for s in sessions]


def sessions_for_date(sessions: Iterable[StudySession], day: date) -> List[StudySession]:
    return [s for s in sessions if s.day == day]


def upcoming_sessions(sessions: Iterable[StudySession], today: date, limit: int = 5) -> List[StudySession]:
    pending = [s for s in sessions if not s.completed and s.day >= today]
    return sorted(pending, key=lambda s: s.day)[:limit]


def booked_dates(sessions: Iterable[StudySession]) -> set:
    return {s.day for s in sessions}
