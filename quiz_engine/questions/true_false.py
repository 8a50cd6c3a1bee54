"""
True/False question handler.

The submitted value must equal ``correctAnswer`` exactly; no case folding
or trimming is applied.
"""

from typing import Any

from quiz_engine.schemas import TrueFalseQuestion

from . import QuestionType, register
from .base import BaseHandler


@register(QuestionType.TRUE_FALSE)
class TrueFalseHandler(BaseHandler):
    """Handler for true/false questions."""

    hidden_fields = {"correct_answer"}

    def validate(self, question: TrueFalseQuestion) -> list[str]:
        if question.correct_answer not in ("true", "false"):
            return [f"correctAnswer should be 'true' or 'false', got {question.correct_answer!r}"]
        return []

    def check(self, question: TrueFalseQuestion, answer: Any) -> bool:
        return answer == question.correct_answer

    def correct_answer(self, question: TrueFalseQuestion) -> str:
        return question.correct_answer
