"""Shared fixtures: sample questions, categories and selected courses."""

from datetime import date

import pytest

from studyhub.models import Category, Question, QuestionStatus, SelectedCourse


@pytest.fixture
def today() -> date:
    return date(2025, 6, 2)


@pytest.fixture
def questions() -> list[Question]:
    return [
        Question(
            id="q1", question="What is a matrix?", answer="A rectangular array of numbers",
            category="Matrices", year=2022, professor="Smith",
        ),
        Question(
            id="q2", question="Define eigenvalue", answer="Scalar lambda with Av = lambda v",
            category="Eigen", year=2021, professor="Jones", status=QuestionStatus.CORRECT,
        ),
        Question(
            id="q3", question="Compute the determinant of A", answer=None,
            category="Matrices", year=2021, professor=None, status=QuestionStatus.INCORRECT,
        ),
        Question(
            id="q4", question="Explain vector spaces", answer="A set closed under addition and scaling",
            category="Spaces", year=None, professor="Smith",
        ),
    ]


@pytest.fixture
def question_rows() -> list[dict]:
    return [
        {"id": "q1", "question": "What is a matrix?", "answer": "An array", "category": "Matrices",
         "year": 2022, "professor": "Smith", "done": None},
        {"id": "q2", "question": "Define eigenvalue", "answer": "A scalar", "category": "Eigen",
         "year": "2021", "professor": "Jones", "done": True},
        {"id": "q3", "question": "Compute the determinant", "answer": None, "category": "Matrices",
         "year": None, "professor": None, "done": False},
    ]


@pytest.fixture
def categories() -> list[Category]:
    return [
        Category("Matrices", "Linear Algebra"),
        Category("Eigen", "Linear Algebra"),
        Category("Spaces", "Linear Algebra"),
        Category("Empty", "Linear Algebra"),
        Category("Limits", "Calculus"),
    ]


@pytest.fixture
def selected_courses(today) -> list[SelectedCourse]:
    return [
        SelectedCourse("Linear Algebra", user_id="u1", exam_date=date(2025, 6, 5)),
        SelectedCourse("Calculus", user_id="u1", exam_date=date(2025, 6, 1), after_exam=True),
        SelectedCourse("Statistics", user_id="u1"),
        SelectedCourse("Physics", user_id="u1", exam_date=today),
    ]
