"""Core plumbing shared by the engine: typed failures and logging setup."""

from .errors import (
    AssessmentError,
    AttemptLimitExceeded,
    AttemptNotFound,
    MalformedSubmission,
    NotAuthorized,
    NotFound,
    PersistenceFailure,
    QuizNotFound,
)

__all__ = [
    "AssessmentError",
    "AttemptLimitExceeded",
    "AttemptNotFound",
    "MalformedSubmission",
    "NotAuthorized",
    "NotFound",
    "PersistenceFailure",
    "QuizNotFound",
]
