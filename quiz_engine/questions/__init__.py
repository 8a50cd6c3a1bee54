"""
Question type handlers for quiz grading and presentation.

Each question type has its own module with:
- validate(): Report authoring problems in a definition
- check(): Decide whether a submitted answer is correct
- redact(): Produce the presentation form without answer-revealing fields
- correct_answer() / reveal(): Stored and learner-facing answer keys
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import QuestionHandler


class QuestionType(str, Enum):
    """Supported question types."""
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    FILL_BLANK = "fill-blank"
    ORGAN_IDENTIFICATION = "organ-identification"
    DRAG_DROP = "drag-drop"


# Handler registry - populated by @register decorator
HANDLERS: dict[QuestionType, "QuestionHandler"] = {}


def register(question_type: QuestionType):
    """Decorator to register a question handler."""
    def decorator(cls):
        HANDLERS[question_type] = cls()
        return cls
    return decorator


def get_handler(question_type: "str | QuestionType") -> "QuestionHandler | None":
    """Get the handler for a question type."""
    if isinstance(question_type, str) and not isinstance(question_type, QuestionType):
        try:
            question_type = QuestionType(question_type.lower())
        except ValueError:
            return None
    return HANDLERS.get(question_type)


# Import handlers to trigger registration
from . import multiple_choice
from . import true_false
from . import fill_blank
from . import organ_identification
from . import drag_drop

__all__ = [
    "QuestionType",
    "HANDLERS",
    "get_handler",
    "register",
]
