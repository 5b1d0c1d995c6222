"""
Database operations for Study Hub.
Handles Supabase auth, courses, categories, selected courses and question status.
"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from supabase import Client

from db import fetch_all, get_supabase
from studyhub.models import Category, Course, Question, QuestionStatus, SelectedCourse

logger = logging.getLogger(__name__)

QUESTION_COLUMNS = "id, question, answer, category, year, professor, done"


class DatabaseClient:
    """Wrapper around Supabase client with Study Hub-specific operations.

    Reads raise on backend failure so the page can show an inline error.
    Writes log the failure and return False so the page can show a toast.
    """

    def __init__(self, client: Optional[Client] = None):
        self.client: Client = client if client is not None else get_supabase()

    # ============= Auth =============

    def sign_in(self, email: str, password: str) -> Optional[Dict]:
        """Sign in with Supabase Auth. Returns {id, email} or None."""
        response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        user = getattr(response, "user", None)
        if user is None:
            return None
        logger.info("Signed in user %s", user.id)
        return {"id": str(user.id), "email": user.email}

    def sign_out(self) -> None:
        self.client.auth.sign_out()

    def current_user(self) -> Optional[Dict]:
        try:
            response = self.client.auth.get_user()
        except Exception as e:
            logger.warning(f"No authenticated user: {e}")
            return None
        user = getattr(response, "user", None) if response else None
        if user is None:
            return None
        return {"id": str(user.id), "email": user.email}

    # ============= Courses =============

    def list_courses(self) -> List[Course]:
        """All courses ordered by name."""
        response = self.client.table("courses").select("course_name").order("course_name").execute()
        return [Course.from_row(r) for r in response.data or []]

    def get_course(self, course_name: str) -> Optional[Course]:
        response = self.client.table("courses").select("*").eq("course_name", course_name).limit(1).execute()
        rows = response.data or []
        return Course.from_row(rows[0]) if rows else None

    def get_selected_courses(self, user_id: str) -> List[SelectedCourse]:
        response = (
            self.client.table("selected_courses")
            .select("user_id, course_name, exam_date, after_exam")
            .eq("user_id", user_id)
            .execute()
        )
        return [SelectedCourse.from_row(r) for r in response.data or []]

    def is_course_selected(self, user_id: str, course_name: str) -> bool:
        response = (
            self.client.table("selected_courses")
            .select("course_name")
            .eq("user_id", user_id)
            .eq("course_name", course_name)
            .limit(1)
            .execute()
        )
        return bool(response.data)

    def select_course(self, user_id: str, course_name: str, exam_date: Optional[date] = None) -> bool:
        """Add a course to the user's selection, with an optional exam date."""
        try:
            row = {
                "user_id": user_id,
                "course_name": course_name,
                "exam_date": exam_date.isoformat() if exam_date else None,
            }
            self.client.table("selected_courses").insert(row).execute()
            logger.info("User %s selected course %s (exam %s)", user_id, course_name, row["exam_date"])
            return True
        except Exception as e:
            logger.error(f"Error selecting course {course_name}: {e}")
            return False

    def remove_course(self, user_id: str, course_name: str) -> bool:
        try:
            (
                self.client.table("selected_courses")
                .delete()
                .eq("user_id", user_id)
                .eq("course_name", course_name)
                .execute()
            )
            logger.info("User %s removed course %s", user_id, course_name)
            return True
        except Exception as e:
            logger.error(f"Error removing course {course_name}: {e}")
            return False

    def mark_past_exams(self, user_id: str, today: date) -> bool:
        """Flag selected courses whose exam date has passed as after_exam."""
        try:
            (
                self.client.table("selected_courses")
                .update({"after_exam": True})
                .eq("user_id", user_id)
                .eq("after_exam", False)
                .lt("exam_date", today.isoformat())
                .execute()
            )
            return True
        except Exception as e:
            logger.error(f"Error updating past exams: {e}")
            return False

    def count_completed_exams(self, user_id: str) -> int:
        response = (
            self.client.table("selected_courses")
            .select("course_name", count="exact")
            .eq("user_id", user_id)
            .eq("after_exam", True)
            .execute()
        )
        count = getattr(response, "count", None)
        return count if count is not None else len(response.data or [])

    # ============= Categories =============

    def get_categories(self, course_names: Iterable[str]) -> List[Category]:
        names = list(course_names)
        if not names:
            return []
        response = self.client.table("categories").select("category, course").in_("course", names).execute()
        return [Category.from_row(r) for r in response.data or []]

    # ============= Questions =============

    def get_questions_for_categories(self, categories: Iterable[str]) -> List[Question]:
        names = sorted(set(categories))
        if not names:
            return []
        rows = fetch_all(lambda: self.client.table("questions").select(QUESTION_COLUMNS).in_("category", names).order("id"))
        return [Question.from_row(r) for r in rows]

    def get_course_questions(self, course_name: str) -> List[Question]:
        """All questions whose category belongs to the course."""
        categories = self.get_categories([course_name])
        if not categories:
            return []
        return self.get_questions_for_categories(c.category for c in categories)

    def get_questions_by_course(self, course_names: Iterable[str]) -> Dict[str, List[Question]]:
        """{course_name: questions} for several courses, joined through categories."""
        names = list(course_names)
        categories = self.get_categories(names)
        by_course: Dict[str, List[Question]] = {name: [] for name in names}
        if not categories:
            return by_course
        course_of = {}
        for c in categories:
            course_of.setdefault(c.category, []).append(c.course)
        for q in self.get_questions_for_categories(course_of):
            for course in course_of.get(q.category, []):
                by_course.setdefault(course, []).append(q)
        return by_course

    def count_questions_answered(self) -> int:
        """Questions marked correct (done = true)."""
        response = self.client.table("questions").select("id", count="exact").eq("done", True).execute()
        count = getattr(response, "count", None)
        return count if count is not None else len(response.data or [])

    def set_question_status(self, question_id: str, status: QuestionStatus) -> bool:
        try:
            self.client.table("questions").update({"done": status.done}).eq("id", question_id).execute()
            logger.info("Question %s marked as %s", question_id, status.label)
            return True
        except Exception as e:
            logger.error(f"Error updating question {question_id}: {e}")
            return False

