"""
Fill-in-the-blank question handler.

Case-insensitive match after trimming surrounding whitespace on both sides.
"""

from typing import Any

from quiz_engine.schemas import FillBlankQuestion

from . import QuestionType, register
from .base import BaseHandler


def _normalize(value: str) -> str:
    return value.strip().lower()


@register(QuestionType.FILL_BLANK)
class FillBlankHandler(BaseHandler):
    """Handler for fill-blank questions."""

    hidden_fields = {"correct_answer"}

    def validate(self, question: FillBlankQuestion) -> list[str]:
        if not question.correct_answer.strip():
            return ["correctAnswer is blank"]
        return []

    def check(self, question: FillBlankQuestion, answer: Any) -> bool:
        if not isinstance(answer, str):
            return False
        return _normalize(answer) == _normalize(question.correct_answer)

    def correct_answer(self, question: FillBlankQuestion) -> str:
        return question.correct_answer
