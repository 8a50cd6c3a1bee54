"""
Answer Evaluator: question definition + submitted answer -> verdict.

Total by construction: a missing answer, an unknown option id or an answer of
the wrong shape is scored as incorrect and never raises, so one bad answer
cannot abort grading of the rest of the attempt.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from quiz_engine.questions import get_handler
from quiz_engine.questions.base import EvaluationResult

INCORRECT = EvaluationResult(is_correct=False, points_earned=0.0)


def evaluate(question: Any, submitted_answer: Any) -> EvaluationResult:
    """
    Grade one answer against its question.

    Args:
        question: A question definition (any variant of ``Question``)
        submitted_answer: Raw answer value; None means unanswered

    Returns:
        EvaluationResult with the full question points when correct, else 0
    """
    if submitted_answer is None:
        return INCORRECT

    handler = get_handler(question.type)
    if handler is None:
        logger.warning(f"No handler for question type {question.type!r} (question {question.id})")
        return INCORRECT

    try:
        is_correct = handler.check(question, submitted_answer)
    except (TypeError, ValueError, AttributeError, KeyError) as e:
        logger.warning(f"Malformed answer for question {question.id} ({question.type}): {e}")
        return INCORRECT

    if not is_correct:
        return INCORRECT
    return EvaluationResult(is_correct=True, points_earned=question.points)
