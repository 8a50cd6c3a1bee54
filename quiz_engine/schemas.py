"""
Domain schemas for quizzes, submissions and graded attempts.

Questions are a tagged union keyed on ``type``; each variant only carries the
fields its grading rule needs, and unknown fields are rejected, so a
true-false question can never hold drag-drop labels.

Wire format is camelCase (``questionId``, ``correctAnswer``); Python code
uses snake_case attributes. Dump with ``by_alias=True`` at the boundary.
"""
from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Annotated, Any, Literal, Union

from loguru import logger
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

Difficulty = Literal["easy", "medium", "hard"]
QuizDifficulty = Literal["beginner", "intermediate", "advanced"]

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Lower-case the title and collapse non-alphanumeric runs into dashes."""
    return _SLUG_PATTERN.sub("-", title.lower()).strip("-")


class EngineModel(BaseModel):
    """Base model: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DefinitionModel(EngineModel):
    """Immutable authored content; unknown fields are an error."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


# ========================================
# Question definitions
# ========================================


class Option(DefinitionModel):
    """A selectable option of a multiple-choice question."""

    id: str
    text: str = ""
    is_correct: bool = False


class Position(DefinitionModel):
    x: float
    y: float


class Label(DefinitionModel):
    """A draggable label and where it belongs on the diagram."""

    id: str
    text: str = ""
    correct_position: Position


class QuestionBase(DefinitionModel):
    """Fields shared by every question type."""

    id: str
    question: str = ""
    explanation: str = ""
    points: float = Field(default=1, gt=0)
    hint: str | None = None
    image: str | None = None
    difficulty: Difficulty = "medium"
    time_limit: int = Field(default=60, ge=0, description="Seconds")


class MultipleChoiceQuestion(QuestionBase):
    type: Literal["multiple-choice"] = "multiple-choice"
    options: list[Option] = Field(default_factory=list)


class TrueFalseQuestion(QuestionBase):
    type: Literal["true-false"] = "true-false"
    correct_answer: str


class FillBlankQuestion(QuestionBase):
    type: Literal["fill-blank"] = "fill-blank"
    correct_answer: str


class OrganIdentificationQuestion(QuestionBase):
    type: Literal["organ-identification"] = "organ-identification"
    hotspot_id: str
    target_organ: str | None = None
    model_reference: str | None = None


class DragDropQuestion(QuestionBase):
    type: Literal["drag-drop"] = "drag-drop"
    labels: list[Label] = Field(default_factory=list)


Question = Annotated[
    Union[
        MultipleChoiceQuestion,
        TrueFalseQuestion,
        FillBlankQuestion,
        OrganIdentificationQuestion,
        DragDropQuestion,
    ],
    Field(discriminator="type"),
]


# ========================================
# Quiz definition
# ========================================


class QuizDefinition(EngineModel):
    """
    Authored quiz: ordered questions, scoring rules and delivery policy.

    ``total_points`` is always derived from the questions. ``attempt_count``
    and ``average_score`` are a read-only snapshot of the running statistics
    held by the store.
    """

    id: str
    title: str
    slug: str = ""
    description: str = ""
    instructions: str | None = None
    system: str | None = None
    difficulty: QuizDifficulty = "intermediate"
    tags: list[str] = Field(default_factory=list)
    thumbnail: str | None = None

    questions: list[Question] = Field(default_factory=list)

    passing_score: float = Field(default=60, ge=0, le=100)
    time_limit: int = Field(default=0, ge=0, description="Minutes, 0 = unlimited")
    shuffle_questions: bool = True
    shuffle_options: bool = True
    show_answers_after: bool = True
    allow_retake: bool = True
    max_attempts: int = Field(default=0, ge=0, description="0 = unlimited")
    is_published: bool = False
    is_active: bool = True

    attempt_count: int = 0
    average_score: float = 0.0

    @computed_field(alias="totalPoints")
    @property
    def total_points(self) -> float:
        return sum(q.points for q in self.questions)

    @property
    def attempt_cap(self) -> int:
        """Effective attempt limit; 0 means unlimited."""
        if not self.allow_retake:
            return 1
        return self.max_attempts

    @field_validator("questions")
    @classmethod
    def _unique_question_ids(cls, questions: list) -> list:
        seen: set[str] = set()
        for q in questions:
            if q.id in seen:
                raise ValueError(f"duplicate question id: {q.id}")
            seen.add(q.id)
        return questions

    @model_validator(mode="after")
    def _derive_slug(self) -> "QuizDefinition":
        if not self.slug:
            self.slug = slugify(self.title)
        return self

    def question(self, question_id: str):
        """Look up a question by id, or None."""
        return next((q for q in self.questions if q.id == question_id), None)

    def definition_dump(self) -> dict[str, Any]:
        """Authored content only, without running statistics."""
        data = self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"attempt_count", "average_score"},
        )
        data.pop("totalPoints", None)
        return data


# ========================================
# Submission
# ========================================


class SubmittedAnswer(EngineModel):
    """
    One answer entry of a submission.

    Numeric question ids are read as strings, and a missing, negative or
    non-numeric ``timeTaken`` counts as 0 seconds.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)

    question_id: str
    answer: Any = None
    time_taken: float = 0

    @field_validator("time_taken", mode="before")
    @classmethod
    def _usable_seconds(cls, value: Any) -> float:
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            return 0
        if not math.isfinite(seconds) or seconds < 0:
            return 0
        return seconds


class Submission(EngineModel):
    """
    Request body of a quiz submission.

    The envelope is strict: ``answers`` must be a list and the top-level
    timing must be valid. Entries inside the list that still cannot be read
    (no usable question id, not an object) are dropped with a warning, so
    their questions are graded as skipped.
    """

    answers: list[SubmittedAnswer] = Field(default_factory=list)
    started_at: datetime | None = None
    time_taken: float = Field(default=0, ge=0, description="Seconds")

    @field_validator("answers", mode="before")
    @classmethod
    def _drop_unusable_entries(cls, entries: Any) -> Any:
        if not isinstance(entries, list):
            return entries
        usable = []
        for position, entry in enumerate(entries):
            try:
                usable.append(SubmittedAnswer.model_validate(entry))
            except ValidationError as e:
                logger.warning(f"Dropping unreadable answer entry #{position}: {e.error_count()} error(s)")
        return usable

    def answer_for(self, question_id: str) -> SubmittedAnswer | None:
        """First submitted entry for the question, or None when skipped."""
        return next((a for a in self.answers if a.question_id == question_id), None)


# ========================================
# Attempts and results
# ========================================


class AnswerRecord(EngineModel):
    """Graded answer for one question, stored with the attempt."""

    question_id: str
    question_type: str
    user_answer: Any = None
    correct_answer: Any = None
    is_correct: bool
    points_earned: float = 0
    time_taken: float = 0


class PerformanceTally(EngineModel):
    correct: int = 0
    total: int = 0


class Attempt(EngineModel):
    """One graded submission. Never updated after creation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    user_id: str
    quiz_id: str
    attempt_number: int
    answers: list[AnswerRecord]
    score: float
    total_points: float
    percentage: int
    passed: bool
    correct_answers: int
    incorrect_answers: int
    skipped_questions: int
    started_at: datetime
    completed_at: datetime
    time_taken: float = 0
    is_completed: bool = True
    performance_by_type: dict[str, PerformanceTally] = Field(default_factory=dict)
    performance_by_difficulty: dict[str, PerformanceTally] = Field(default_factory=dict)


class AttemptSummary(EngineModel):
    """Row of a learner's attempt history."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str
    attempt_number: int
    score: float
    total_points: float
    percentage: int
    passed: bool
    correct_answers: int
    time_taken: float
    completed_at: datetime


class ReviewedAnswer(AnswerRecord):
    """Answer returned to the learner when the quiz reveals answers."""

    explanation: str = ""


class GradingResult(EngineModel):
    """Response to a submission. ``answers`` is None unless answers are revealed."""

    id: str
    attempt_number: int
    score: float
    total_points: float
    percentage: int
    passed: bool
    correct_answers: int
    incorrect_answers: int
    skipped_questions: int
    time_taken: float
    answers: list[ReviewedAnswer] | None = None


class PresentedQuiz(EngineModel):
    """Redacted, possibly shuffled view of a quiz sent before submission."""

    id: str
    slug: str
    title: str
    description: str = ""
    instructions: str | None = None
    system: str | None = None
    difficulty: QuizDifficulty = "intermediate"
    time_limit: int = 0
    total_points: float
    passing_score: float
    max_attempts: int
    show_answers_after: bool
    questions: list[dict[str, Any]]
    user_attempt_count: int


# ========================================
# Statistics
# ========================================


class QuizStats(EngineModel):
    quiz_id: str
    attempt_count: int = 0
    average_score: float = 0.0


class LearnerStats(EngineModel):
    user_id: str
    quizzes_taken: int = 0
    average_score: float = 0.0
    total_points: float = 0.0
