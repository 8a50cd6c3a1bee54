"""
Base protocol and types for question handlers.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, ClassVar, Protocol


@dataclass(frozen=True)
class EvaluationResult:
    """Verdict for one question. No partial credit."""
    is_correct: bool
    points_earned: float


class QuestionHandler(Protocol):
    """Protocol for question type handlers."""

    def validate(self, question: Any) -> list[str]:
        """Return authoring problems for the definition (empty if valid)."""
        ...

    def check(self, question: Any, answer: Any) -> bool:
        """True when the submitted answer is correct."""
        ...

    def redact(self, question: Any) -> dict[str, Any]:
        """Presentation form of the question, without answer keys."""
        ...

    def shuffle(self, presented: dict[str, Any], rng: random.Random) -> None:
        """Shuffle the presented choices in place, if the type has any."""
        ...

    def correct_answer(self, question: Any) -> Any:
        """Answer key as stored with the attempt."""
        ...

    def reveal(self, question: Any) -> Any:
        """Answer key as shown to the learner after submission."""
        ...


class BaseHandler:
    """
    Shared behaviour for handlers.

    Subclasses list their answer-revealing fields in ``hidden_fields`` using
    pydantic's nested exclude syntax.
    """

    hidden_fields: ClassVar[Any] = set()

    def validate(self, question: Any) -> list[str]:
        return []

    def redact(self, question: Any) -> dict[str, Any]:
        return question.model_dump(mode="json", by_alias=True, exclude=self.hidden_fields)

    def shuffle(self, presented: dict[str, Any], rng: random.Random) -> None:
        return None

    def reveal(self, question: Any) -> Any:
        return self.correct_answer(question)
