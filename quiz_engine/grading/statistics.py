"""
Statistics Updater: O(1) running averages for quizzes and learners.

The averages are never recomputed from attempt history. ``running_average``
is plain arithmetic, so the SQL store passes column expressions through it
and performs each update as one ``UPDATE`` statement; the in-memory store
applies it to floats under a lock.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from quiz_engine.schemas import QuizDefinition
    from quiz_engine.store import StatsTransaction


def running_average(old_average, old_count, value):
    """Fold one value into an average over ``old_count`` values."""
    return (old_average * old_count + value) / (old_count + 1)


class StatisticsUpdater:
    """Applies a graded attempt to quiz and learner aggregates."""

    def record_attempt(
        self,
        tx: "StatsTransaction",
        quiz: "QuizDefinition",
        user_id: str,
        percentage: int,
        score: float,
    ) -> None:
        """
        Update both aggregates inside the attempt's transaction.

        Quiz: averageScore folded with the pre-increment attemptCount.
        Learner: averageScore folded with quizzesTaken; totalPoints += score.
        """
        tx.apply_quiz_result(quiz.id, percentage)
        tx.apply_learner_result(user_id, percentage, score)
        logger.debug(f"Statistics updated: quiz={quiz.id} user={user_id} pct={percentage} score={score}")
