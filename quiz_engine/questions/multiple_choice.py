"""
Multiple choice question handler.

Single-best-answer: the submitted value is the id of the chosen option and
is correct only when it matches the option flagged ``isCorrect``.
"""

import random
from typing import Any

from quiz_engine.schemas import MultipleChoiceQuestion, Option

from . import QuestionType, register
from .base import BaseHandler


def _correct_option(question: MultipleChoiceQuestion) -> Option | None:
    """First option flagged correct, or None when the author flagged none."""
    return next((o for o in question.options if o.is_correct), None)


@register(QuestionType.MULTIPLE_CHOICE)
class MultipleChoiceHandler(BaseHandler):
    """Handler for multiple-choice questions."""

    hidden_fields = {"options": {"__all__": {"is_correct"}}}

    def validate(self, question: MultipleChoiceQuestion) -> list[str]:
        problems = []
        if len(question.options) < 2:
            problems.append("needs at least two options")
        flagged = sum(1 for o in question.options if o.is_correct)
        if flagged != 1:
            problems.append(f"exactly one option must be correct, found {flagged}")
        ids = [o.id for o in question.options]
        if len(ids) != len(set(ids)):
            problems.append("option ids must be unique")
        return problems

    def check(self, question: MultipleChoiceQuestion, answer: Any) -> bool:
        correct = _correct_option(question)
        return correct is not None and answer == correct.id

    def shuffle(self, presented: dict[str, Any], rng: random.Random) -> None:
        options = presented.get("options")
        if options:
            rng.shuffle(options)

    def correct_answer(self, question: MultipleChoiceQuestion) -> str | None:
        correct = _correct_option(question)
        return correct.id if correct else None

    def reveal(self, question: MultipleChoiceQuestion) -> dict[str, str] | None:
        """The full correct option, so the result screen can show its text."""
        correct = _correct_option(question)
        if correct is None:
            return None
        return {"id": correct.id, "text": correct.text}
