"""
Attempt Grader: scores a submission and persists the attempt.

Grading always walks the stored question order of the definition, never the
order a learner was shown. The attempt cap is not checked here; that happens
at presentation time, and grading works the same without a prior
presentation.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from loguru import logger

from quiz_engine.core.errors import PersistenceFailure
from quiz_engine.grading.evaluator import evaluate
from quiz_engine.grading.statistics import StatisticsUpdater
from quiz_engine.questions import get_handler
from quiz_engine.schemas import (
    AnswerRecord,
    Attempt,
    GradingResult,
    PerformanceTally,
    QuizDefinition,
    ReviewedAnswer,
    Submission,
)
from quiz_engine.store import AttemptStore


def compute_percentage(score: float, total_points: float) -> int:
    """Score as a whole percentage, halves rounded up; 0 for an empty quiz."""
    if total_points <= 0:
        return 0
    return int(math.floor(score / total_points * 100 + 0.5))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ScoreSheet:
    """Aggregated outcome of a submission before it is persisted."""

    answers: list[AnswerRecord]
    score: float = 0.0
    correct_answers: int = 0
    incorrect_answers: int = 0
    skipped_questions: int = 0
    performance_by_type: dict[str, PerformanceTally] = field(default_factory=dict)
    performance_by_difficulty: dict[str, PerformanceTally] = field(default_factory=dict)


def score_submission(quiz: QuizDefinition, submission: Submission) -> ScoreSheet:
    """
    Evaluate every question of the quiz against the submission.

    Entries for question ids the quiz does not contain are ignored. When a
    question id appears more than once, the first entry counts.
    """
    known_ids = {q.id for q in quiz.questions}
    for extra in (a.question_id for a in submission.answers if a.question_id not in known_ids):
        logger.warning(f"Ignoring answer for unknown question {extra} in quiz {quiz.id}")

    sheet = ScoreSheet(answers=[])
    for question in quiz.questions:
        submitted = submission.answer_for(question.id)
        handler = get_handler(question.type)

        if submitted is None:
            verdict = evaluate(question, None)
            sheet.skipped_questions += 1
        else:
            verdict = evaluate(question, submitted.answer)
            if verdict.is_correct:
                sheet.correct_answers += 1
            else:
                sheet.incorrect_answers += 1
        sheet.score += verdict.points_earned

        by_type = sheet.performance_by_type.setdefault(question.type, PerformanceTally())
        by_difficulty = sheet.performance_by_difficulty.setdefault(question.difficulty, PerformanceTally())
        for tally in (by_type, by_difficulty):
            tally.total += 1
            tally.correct += int(verdict.is_correct)

        sheet.answers.append(
            AnswerRecord(
                question_id=question.id,
                question_type=question.type,
                user_answer=submitted.answer if submitted else None,
                correct_answer=handler.correct_answer(question),
                is_correct=verdict.is_correct,
                points_earned=verdict.points_earned,
                time_taken=submitted.time_taken if submitted else 0,
            )
        )
    return sheet


def build_result(quiz: QuizDefinition, attempt: Attempt) -> GradingResult:
    """Learner-facing result; answers and explanations only if the quiz reveals them."""
    answers = None
    if quiz.show_answers_after:
        answers = []
        for record in attempt.answers:
            question = quiz.question(record.question_id)
            answers.append(
                ReviewedAnswer(
                    **record.model_dump(exclude={"correct_answer"}),
                    correct_answer=get_handler(question.type).reveal(question),
                    explanation=question.explanation,
                )
            )

    return GradingResult(
        id=attempt.id,
        attempt_number=attempt.attempt_number,
        score=attempt.score,
        total_points=attempt.total_points,
        percentage=attempt.percentage,
        passed=attempt.passed,
        correct_answers=attempt.correct_answers,
        incorrect_answers=attempt.incorrect_answers,
        skipped_questions=attempt.skipped_questions,
        time_taken=attempt.time_taken,
        answers=answers,
    )


class AttemptGrader:
    """Grades submissions and records them with their statistics."""

    def __init__(
        self,
        attempts: AttemptStore,
        statistics: StatisticsUpdater | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.attempts = attempts
        self.statistics = statistics or StatisticsUpdater()
        self._clock = clock

    def grade(self, quiz: QuizDefinition, user_id: str, submission: Submission) -> GradingResult:
        """
        Score a submission, persist the attempt and update statistics.

        The attempt and both statistics updates share one transaction.

        Raises:
            PersistenceFailure: storage rejected the write; nothing was applied
        """
        sheet = score_submission(quiz, submission)
        total_points = quiz.total_points
        percentage = compute_percentage(sheet.score, total_points)
        passed = percentage >= quiz.passing_score
        completed_at = self._clock()
        attempt_id = uuid.uuid4().hex

        attempt = None
        try:
            with self.attempts.transaction() as tx:
                attempt = Attempt(
                    id=attempt_id,
                    user_id=user_id,
                    quiz_id=quiz.id,
                    attempt_number=tx.count_attempts(user_id, quiz.id) + 1,
                    answers=sheet.answers,
                    score=sheet.score,
                    total_points=total_points,
                    percentage=percentage,
                    passed=passed,
                    correct_answers=sheet.correct_answers,
                    incorrect_answers=sheet.incorrect_answers,
                    skipped_questions=sheet.skipped_questions,
                    started_at=submission.started_at or completed_at,
                    completed_at=completed_at,
                    time_taken=submission.time_taken,
                    performance_by_type=sheet.performance_by_type,
                    performance_by_difficulty=sheet.performance_by_difficulty,
                )
                tx.add_attempt(attempt)
                self.statistics.record_attempt(tx, quiz, user_id, percentage, sheet.score)
        except PersistenceFailure as e:
            logger.error(f"Attempt {attempt_id} for quiz {quiz.id} by {user_id} not saved: {e.message}")
            if attempt is not None:
                e.result = build_result(quiz, attempt)
            raise

        logger.info(
            f"Graded quiz {quiz.id} for {user_id}: {sheet.score}/{total_points} "
            f"({percentage}%, {'passed' if passed else 'failed'}), attempt #{attempt.attempt_number}"
        )
        return build_result(quiz, attempt)
