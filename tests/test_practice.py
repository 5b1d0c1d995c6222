"""Tests for practice test assembly, answering and the session store."""

import random
from datetime import datetime, timedelta, timezone

import pytest

from studyhub.errors import NoQuestionsError, SessionMismatchError
from studyhub.models import Question
from studyhub.practice import (
    CURRENT_TEST_KEY,
    PracticeResults,
    build_category_sample_test,
    build_practice_test,
    clear_current_test,
    load_current_test,
    load_results,
    save_current_test,
    save_results,
)

START = datetime(2025, 6, 2, 10, 0, 0, tzinfo=timezone.utc)


class TestBuildPracticeTest:
    def test_takes_at_most_size(self, questions):
        test = build_practice_test(questions, "Linear Algebra", size=2, rng=random.Random(0), now=START)
        assert len(test.questions) == 2
        assert {q.id for q in test.questions} <= {"q1", "q2", "q3", "q4"}
        assert test.started_at == START

    def test_default_size_caps_small_pool(self, questions):
        test = build_practice_test(questions, "Linear Algebra", rng=random.Random(1))
        assert len(test.questions) == 4

    def test_filters_by_criteria(self, questions):
        test = build_practice_test(questions, "Linear Algebra", category="Matrices", year="2021")
        assert [q.id for q in test.questions] == ["q3"]
        assert test.year == 2021
        assert test.criteria_label == "Category: Matrices • Year: 2021"

    def test_professor(self, questions):
        test = build_practice_test(questions, "Linear Algebra", professor="Smith", rng=random.Random(3))
        assert sorted(q.id for q in test.questions) == ["q1", "q4"]

    def test_no_match_raises(self, questions):
        with pytest.raises(NoQuestionsError):
            build_practice_test(questions, "Linear Algebra", category="Topology")


class TestCategorySampleTest:
    def test_one_question_per_distinct_category(self, questions):
        for seed in range(5):
            test = build_category_sample_test(questions, "Linear Algebra", 3, rng=random.Random(seed), now=START)
            categories = [q.category for q in test.questions]
            assert len(categories) == 3
            assert sorted(categories) == ["Eigen", "Matrices", "Spaces"]
            assert test.started_at == START

    def test_picks_subset_of_categories(self, questions):
        test = build_category_sample_test(questions, "Linear Algebra", 2, rng=random.Random(7))
        categories = [q.category for q in test.questions]
        assert len(set(categories)) == 2
        assert set(categories) <= {"Eigen", "Matrices", "Spaces"}

    def test_uncategorized_questions_are_ignored(self, questions):
        extra = questions + [Question(id="q5", question="Loose question")]
        with pytest.raises(NoQuestionsError):
            build_category_sample_test(extra, "Linear Algebra", 4)

    def test_too_few_categories(self, questions):
        with pytest.raises(NoQuestionsError, match="Only 3 categories exist"):
            build_category_sample_test(questions, "Linear Algebra", 4)


class TestTakingATest:
    def make_test(self, questions):
        return build_practice_test(questions[:3], "Linear Algebra", rng=random.Random(0), now=START)

    def test_reveal_and_record(self, questions):
        test = self.make_test(questions)
        first = test.current_question
        test.reveal()
        assert test.answer_revealed
        assert test.record_answer(True) is first
        assert test.current_index == 1
        assert not test.answer_revealed

    def test_progress_and_running_accuracy(self, questions):
        test = self.make_test(questions)
        assert test.progress == pytest.approx(1 / 3)
        assert test.running_accuracy == 0
        test.record_answer(True)
        test.record_answer(False)
        assert test.running_accuracy == 50
        assert test.progress == 1.0

    def test_score_includes_final_answer(self, questions):
        test = self.make_test(questions)
        for answer in (True, False, True):
            test.record_answer(answer)
        assert test.is_finished
        assert test.current_question is None
        results = test.finish(now=START + timedelta(minutes=2, seconds=5))
        assert results.total == 3
        assert results.correct_count == 2
        assert results.score == 67
        assert results.duration == (2, 5)

    def test_record_after_finish_raises(self, questions):
        test = build_practice_test(questions[:1], "Linear Algebra")
        test.record_answer(False)
        with pytest.raises(IndexError):
            test.record_answer(True)


class TestSessionStore:
    def test_round_trip(self, questions):
        store = {}
        test = build_practice_test(questions, "Linear Algebra", rng=random.Random(0), now=START)
        test.record_answer(True)
        save_current_test(store, test)
        loaded = load_current_test(store, "Linear Algebra")
        assert loaded.test_id == test.test_id
        assert loaded.current_index == 1
        assert [q.id for q in loaded.questions] == [q.id for q in test.questions]
        assert [q.status for q in loaded.questions] == [q.status for q in test.questions]
        assert loaded.started_at == START

    def test_missing_returns_none(self):
        assert load_current_test({}, "Linear Algebra") is None
        assert load_results({}, "Linear Algebra") is None

    def test_other_course_raises(self, questions):
        store = {}
        save_current_test(store, build_practice_test(questions, "Linear Algebra"))
        with pytest.raises(SessionMismatchError):
            load_current_test(store, "Calculus")

    def test_clear(self, questions):
        store = {}
        save_current_test(store, build_practice_test(questions, "Linear Algebra"))
        clear_current_test(store)
        assert CURRENT_TEST_KEY not in store
        clear_current_test(store)

    def test_results_round_trip(self):
        store = {}
        results = PracticeResults(
            course_name="Linear Algebra", started_at=START, ended_at=START + timedelta(seconds=59),
            answers=[("q1", True), ("q2", False)], category="Matrices",
        )
        save_results(store, results)
        loaded = load_results(store, "Linear Algebra")
        assert loaded == results
        assert loaded.score == 50
        assert loaded.duration == (0, 59)
        with pytest.raises(SessionMismatchError):
            load_results(store, "Calculus")
