"""Tests for quiz grading."""

from datetime import datetime

import pytest

from kidreads.domain.entities import QuizQuestion, Story
from kidreads.domain.services.quiz import grade_quiz, record_quiz_result


@pytest.fixture
def questions():
    return [
        QuizQuestion(question="What color was the ball?", options=["Red", "Blue"], answer="Red"),
        QuizQuestion(question="Where did Pip go?", options=["Park", "Beach"], answer="Park"),
    ]


def test_grade_all_correct(questions):
    result = grade_quiz(questions, ["Red", "Park"])
    assert result.score == 2
    assert [a.selected == a.correct for a in result.answers] == [True, True]


def test_grade_partial(questions):
    taken_at = datetime(2026, 1, 1, 12, 0, 0)
    result = grade_quiz(questions, ["Blue", "Park"], taken_at=taken_at)
    assert result.score == 1
    assert result.date == taken_at
    assert result.answers[0].correct == "Red"


def test_answer_count_must_match(questions):
    with pytest.raises(ValueError, match="Expected 2 answers, got 1"):
        grade_quiz(questions, ["Red"])


def test_record_quiz_result_returns_updated_copy(questions):
    story = Story(id=7, title="Pip", text="Pip ran.", quiz=questions)
    updated = record_quiz_result(story, ["Red", "Beach"])
    assert updated.quiz_results.score == 1
    assert story.quiz_results is None
    assert updated.id == story.id
