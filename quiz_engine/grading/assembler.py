"""
Quiz Assembler: the presentation view of a quiz.

Works on dumped copies of the stored definition. The stored question order
and option order are what grading uses; shuffling only ever touches the copy.
"""

from __future__ import annotations

import random

from loguru import logger

from quiz_engine.core.errors import AttemptLimitExceeded, QuizNotFound
from quiz_engine.questions import get_handler
from quiz_engine.schemas import PresentedQuiz, QuizDefinition
from quiz_engine.store import AttemptStore


def check_attempt_limit(quiz: QuizDefinition, attempt_count: int) -> None:
    """Raise AttemptLimitExceeded when the learner has no attempts left."""
    cap = quiz.attempt_cap
    if cap > 0 and attempt_count >= cap:
        raise AttemptLimitExceeded(quiz.id, cap, attempt_count)


class QuizAssembler:
    """Builds redacted, optionally shuffled quiz views."""

    def __init__(self, attempts: AttemptStore, rng: random.Random | None = None):
        self.attempts = attempts
        self._rng = rng or random.SystemRandom()

    def present(self, quiz: QuizDefinition, user_id: str) -> PresentedQuiz:
        """
        Prepare a quiz for a learner.

        Raises:
            QuizNotFound: quiz is inactive
            AttemptLimitExceeded: no attempts left
        """
        if not quiz.is_active:
            raise QuizNotFound(quiz.id)

        attempt_count = self.attempts.count_attempts(user_id, quiz.id)
        check_attempt_limit(quiz, attempt_count)

        questions = []
        for question in quiz.questions:
            handler = get_handler(question.type)
            presented = handler.redact(question)
            if not quiz.show_answers_after:
                # explanations are part of the reveal
                presented.pop("explanation", None)
            if quiz.shuffle_options:
                handler.shuffle(presented, self._rng)
            questions.append(presented)

        if quiz.shuffle_questions:
            self._rng.shuffle(questions)

        logger.info(
            f"Presenting quiz {quiz.slug} to {user_id} "
            f"({len(questions)} questions, prior attempts: {attempt_count})"
        )

        return PresentedQuiz(
            id=quiz.id,
            slug=quiz.slug,
            title=quiz.title,
            description=quiz.description,
            instructions=quiz.instructions,
            system=quiz.system,
            difficulty=quiz.difficulty,
            time_limit=quiz.time_limit,
            total_points=quiz.total_points,
            passing_score=quiz.passing_score,
            max_attempts=quiz.max_attempts,
            show_answers_after=quiz.show_answers_after,
            questions=questions,
            user_attempt_count=attempt_count,
        )
