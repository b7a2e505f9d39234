"""Comprehension quiz grading."""

import logging
from datetime import datetime
from typing import Optional

from ..entities.story import QuizAnswer, QuizQuestion, QuizResult, Story

logger = logging.getLogger(__name__)


def grade_quiz(
    questions: list[QuizQuestion],
    selections: list[str],
    taken_at: Optional[datetime] = None,
) -> QuizResult:
    """Grade the learner's selections against the quiz.

    Args:
        questions: The story's quiz, in order.
        selections: One selected option per question, in the same order.
        taken_at: When the quiz was taken (defaults to now).

    Returns:
        QuizResult: Number of correct answers plus the per-question record.

    Raises:
        ValueError: If the number of selections does not match the quiz.
    """
    if len(selections) != len(questions):
        raise ValueError(
            f"Expected {len(questions)} answers, got {len(selections)}"
        )

    answers = [
        QuizAnswer(question=q.question, selected=selected, correct=q.answer)
        for q, selected in zip(questions, selections)
    ]
    score = sum(1 for a in answers if a.selected == a.correct)

    return QuizResult(
        score=score,
        date=taken_at or datetime.utcnow(),
        answers=answers,
    )


def record_quiz_result(story: Story, selections: list[str]) -> Story:
    """Return a copy of the story carrying the graded quiz result."""
    result = grade_quiz(story.quiz, selections)
    logger.info(f"Story {story.id} quiz scored {result.score}/{len(story.quiz)}")
    return story.model_copy(update={"quiz_results": result})
