"""Tests for DatabaseClient against a mocked Supabase client."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from studyhub.database import DatabaseClient
from studyhub.models import QuestionStatus
from supabase_mock import make_client, make_query


class TestAuth:
    def test_sign_in(self):
        client = MagicMock()
        client.auth.sign_in_with_password.return_value = MagicMock(user=MagicMock(id="u1", email="a@b.co"))
        assert DatabaseClient(client).sign_in("a@b.co", "secret") == {"id": "u1", "email": "a@b.co"}
        client.auth.sign_in_with_password.assert_called_once_with({"email": "a@b.co", "password": "secret"})

    def test_sign_in_without_user(self):
        client = MagicMock()
        client.auth.sign_in_with_password.return_value = MagicMock(user=None)
        assert DatabaseClient(client).sign_in("a@b.co", "wrong") is None

    def test_current_user_none_on_error(self):
        client = MagicMock()
        client.auth.get_user.side_effect = RuntimeError("no session")
        assert DatabaseClient(client).current_user() is None


class TestCourses:
    def test_list_courses(self):
        courses = make_query([{"course_name": "Algebra"}, {"course_name": "Calculus"}])
        db = DatabaseClient(make_client({"courses": courses}))
        assert [c.course_name for c in db.list_courses()] == ["Algebra", "Calculus"]
        courses.order.assert_called_once_with("course_name")

    def test_get_course_missing(self):
        db = DatabaseClient(make_client({"courses": make_query([])}))
        assert db.get_course("Nope") is None

    def test_get_selected_courses(self):
        selected = make_query([{"user_id": "u1", "course_name": "Algebra", "exam_date": "2025-06-05", "after_exam": False}])
        db = DatabaseClient(make_client({"selected_courses": selected}))
        (course,) = db.get_selected_courses("u1")
        assert course.exam_date == date(2025, 6, 5)
        selected.eq.assert_called_once_with("user_id", "u1")

    def test_reads_raise(self):
        selected = make_query()
        selected.execute.side_effect = RuntimeError("backend down")
        db = DatabaseClient(make_client({"selected_courses": selected}))
        with pytest.raises(RuntimeError):
            db.get_selected_courses("u1")

    def test_is_course_selected(self):
        db = DatabaseClient(make_client({"selected_courses": make_query([{"course_name": "Algebra"}])}))
        assert db.is_course_selected("u1", "Algebra")

    def test_select_course(self):
        selected = make_query()
        db = DatabaseClient(make_client({"selected_courses": selected}))
        assert db.select_course("u1", "Algebra", date(2025, 6, 5))
        selected.insert.assert_called_once_with(
            {"user_id": "u1", "course_name": "Algebra", "exam_date": "2025-06-05"}
        )

    def test_select_course_failure(self):
        selected = make_query()
        selected.execute.side_effect = RuntimeError("duplicate key")
        db = DatabaseClient(make_client({"selected_courses": selected}))
        assert db.select_course("u1", "Algebra") is False

    def test_remove_course(self):
        selected = make_query()
        db = DatabaseClient(make_client({"selected_courses": selected}))
        assert db.remove_course("u1", "Algebra")
        selected.delete.assert_called_once_with()
        selected.execute.side_effect = RuntimeError("boom")
        assert db.remove_course("u1", "Algebra") is False

    def test_mark_past_exams(self):
        selected = make_query()
        db = DatabaseClient(make_client({"selected_courses": selected}))
        assert db.mark_past_exams("u1", date(2025, 6, 2))
        selected.update.assert_called_once_with({"after_exam": True})
        selected.lt.assert_called_once_with("exam_date", "2025-06-02")

    def test_count_completed_exams(self):
        db = DatabaseClient(make_client({"selected_courses": make_query([{"course_name": "A"}], count=3)}))
        assert db.count_completed_exams("u1") == 3


class TestQuestions:
    def test_get_categories_empty(self):
        client = make_client()
        assert DatabaseClient(client).get_categories([]) == []
        client.table.assert_not_called()

    def test_get_course_questions(self, question_rows):
        categories = make_query([{"category": "Matrices", "course": "Algebra"}, {"category": "Eigen", "course": "Algebra"}])
        questions = make_query(question_rows)
        db = DatabaseClient(make_client({"categories": categories, "questions": questions}))
        result = db.get_course_questions("Algebra")
        assert [q.id for q in result] == ["q1", "q2", "q3"]
        assert [q.status for q in result] == [
            QuestionStatus.UNANSWERED, QuestionStatus.CORRECT, QuestionStatus.INCORRECT,
        ]
        questions.in_.assert_called_once_with("category", ["Eigen", "Matrices"])
        questions.order.assert_called_once_with("id")

    def test_course_without_categories(self):
        client = make_client({"categories": make_query([])})
        assert DatabaseClient(client).get_course_questions("Algebra") == []
        assert [c.args[0] for c in client.table.call_args_list] == ["categories"]

    def test_get_questions_by_course(self, question_rows):
        categories = make_query([
            {"category": "Matrices", "course": "Algebra"},
            {"category": "Eigen", "course": "Spectral"},
        ])
        db = DatabaseClient(make_client({"categories": categories, "questions": make_query(question_rows)}))
        by_course = db.get_questions_by_course(["Algebra", "Spectral", "Empty"])
        assert [q.id for q in by_course["Algebra"]] == ["q1", "q3"]
        assert [q.id for q in by_course["Spectral"]] == ["q2"]
        assert by_course["Empty"] == []

    def test_count_questions_answered(self):
        questions = make_query([], count=42)
        db = DatabaseClient(make_client({"questions": questions}))
        assert db.count_questions_answered() == 42
        questions.eq.assert_called_once_with("done", True)

    @pytest.mark.parametrize("status", list(QuestionStatus))
    def test_set_question_status(self, status):
        questions = make_query()
        db = DatabaseClient(make_client({"questions": questions}))
        assert db.set_question_status("q1", status)
        questions.update.assert_called_once_with({"done": status.done})
        questions.eq.assert_called_once_with("id", "q1")

    def test_set_question_status_failure(self):
        questions = make_query()
        questions.execute.side_effect = RuntimeError("boom")
        db = DatabaseClient(make_client({"questions": questions}))
        assert db.set_question_status("q1", QuestionStatus.CORRECT) is False
