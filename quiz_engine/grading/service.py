"""
Assessment service: the single entry point used by the API and the CLI.

Wires the quiz catalog and attempt store to the assembler and grader.
Structural failures (unknown quiz, malformed submission) are raised before
any grading starts.
"""

from __future__ import annotations

import random
from typing import Any

from loguru import logger
from pydantic import ValidationError

from quiz_engine.core.errors import MalformedSubmission, NotAuthorized
from quiz_engine.grading.assembler import QuizAssembler
from quiz_engine.grading.grader import AttemptGrader
from quiz_engine.schemas import (
    Attempt,
    AttemptSummary,
    GradingResult,
    LearnerStats,
    PresentedQuiz,
    QuizStats,
    Submission,
)
from quiz_engine.store import AttemptStore, QuizCatalog


def parse_submission(payload: Submission | dict[str, Any]) -> Submission:
    """Validate a raw submission body. Raises MalformedSubmission."""
    if isinstance(payload, Submission):
        return payload
    try:
        return Submission.model_validate(payload)
    except ValidationError as e:
        raise MalformedSubmission(
            "Submission does not match the expected shape",
            errors=e.errors(include_url=False, include_context=False),
        ) from e


class AssessmentService:
    """Present quizzes, grade submissions and report history and statistics."""

    def __init__(
        self,
        catalog: QuizCatalog,
        attempts: AttemptStore,
        rng: random.Random | None = None,
    ):
        self.catalog = catalog
        self.attempts = attempts
        self.assembler = QuizAssembler(attempts, rng=rng)
        self.grader = AttemptGrader(attempts)

    def present_quiz(self, slug: str, user_id: str) -> PresentedQuiz:
        """Redacted view of the active quiz with this slug."""
        quiz = self.catalog.get_quiz_by_slug(slug)
        return self.assembler.present(quiz, user_id)

    def submit(self, quiz_id: str, user_id: str, payload: Submission | dict[str, Any]) -> GradingResult:
        """Grade and record a submission."""
        quiz = self.catalog.get_quiz(quiz_id)
        submission = parse_submission(payload)
        logger.info(f"Submission for quiz {quiz_id} by {user_id}: {len(submission.answers)} answers")
        return self.grader.grade(quiz, user_id, submission)

    def attempt_history(self, quiz_id: str, user_id: str) -> list[AttemptSummary]:
        return [
            AttemptSummary.model_validate(a.model_dump())
            for a in self.attempts.list_attempts(user_id, quiz_id)
        ]

    def get_attempt(self, attempt_id: str, user_id: str, is_admin: bool = False) -> Attempt:
        """Full attempt record, visible to its owner and to admins."""
        attempt = self.attempts.get_attempt(attempt_id)
        if attempt.user_id != user_id and not is_admin:
            raise NotAuthorized()
        return attempt

    def learner_stats(self, user_id: str) -> LearnerStats:
        return self.attempts.get_learner_stats(user_id)

    def quiz_stats(self, quiz_id: str) -> QuizStats:
        self.catalog.get_quiz(quiz_id)
        return self.attempts.get_quiz_stats(quiz_id)
