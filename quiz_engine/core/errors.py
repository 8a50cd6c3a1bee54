"""
Typed failures raised by the assessment engine.

Structural errors (missing quiz, attempt cap) abort before any grading.
Answer-level anomalies never reach this module; the evaluator scores them
as incorrect. Delivery layers map these classes to user-facing responses.
"""

from __future__ import annotations

from typing import Any


class AssessmentError(Exception):
    """Base class for all engine failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(AssessmentError):
    """A referenced quiz or attempt does not exist."""
    pass


class QuizNotFound(NotFound):
    """Raised when a quiz id or slug has no active definition."""

    def __init__(self, reference: str):
        super().__init__("Quiz not found")
        self.reference = reference


class AttemptNotFound(NotFound):
    """Raised when an attempt id is unknown."""

    def __init__(self, attempt_id: str):
        super().__init__("Attempt not found")
        self.attempt_id = attempt_id


class AttemptLimitExceeded(AssessmentError):
    """Raised when a learner already used every allowed attempt."""

    def __init__(self, quiz_id: str, max_attempts: int, attempt_count: int):
        super().__init__("Maximum attempts reached for this quiz")
        self.quiz_id = quiz_id
        self.max_attempts = max_attempts
        self.attempt_count = attempt_count


class MalformedSubmission(AssessmentError):
    """The submission envelope could not be parsed."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


class NotAuthorized(AssessmentError):
    """The caller may not view the requested record."""

    def __init__(self, message: str = "Not authorized to view this attempt"):
        super().__init__(message)


class PersistenceFailure(AssessmentError):
    """
    Storage write failed after scoring was computed.

    The transaction is rolled back, so neither the attempt nor the statistics
    were applied. ``result`` holds the computed grading so the caller can
    report it or retry the whole submission.
    """

    def __init__(self, message: str, result: Any = None):
        super().__init__(message)
        self.result = result
