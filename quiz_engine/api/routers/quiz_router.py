"""
Quiz router for taking quizzes and reviewing results.

Endpoints for:
- Presenting a quiz (redacted, shuffled per request)
- Submitting answers for grading
- Attempt history and attempt details
- Quiz and learner statistics

Identity is passed in by the caller as ``user_id``; token handling belongs
to the gateway in front of this service.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel

from quiz_engine.db.repository import SqlStore
from quiz_engine.grading.service import AssessmentService

router = APIRouter()


@lru_cache
def _default_service() -> AssessmentService:
    store = SqlStore()
    return AssessmentService(catalog=store, attempts=store)


def get_service() -> AssessmentService:
    """FastAPI dependency for the assessment service."""
    return _default_service()


# ========================================
# Response Envelope
# ========================================


class Envelope(BaseModel):
    """Response envelope used by every endpoint."""

    success: bool = True
    data: Any = None


def _ok(data: Any) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True, exclude_none=True)
    elif isinstance(data, list):
        data = [d.model_dump(mode="json", by_alias=True, exclude_none=True) for d in data]
    return {"success": True, "data": data}


# ========================================
# Quiz Taking Endpoints
# ========================================


@router.get("/stats/users/{user_id}", response_model=Envelope, summary="Learner statistics")
def learner_stats(
    user_id: str,
    service: AssessmentService = Depends(get_service),
) -> Dict[str, Any]:
    """Quizzes taken, running average percentage and lifetime points."""
    return _ok(service.learner_stats(user_id))


@router.get("/stats/quizzes/{quiz_id}", response_model=Envelope, summary="Quiz statistics")
def quiz_stats(
    quiz_id: str,
    service: AssessmentService = Depends(get_service),
) -> Dict[str, Any]:
    """Attempt count and running average percentage of a quiz."""
    return _ok(service.quiz_stats(quiz_id))


@router.get("/attempt/{attempt_id}", response_model=Envelope, summary="Attempt details")
def get_attempt(
    attempt_id: str,
    user_id: str = Query(..., description="Requesting user"),
    is_admin: bool = Query(False, description="Requesting user is an admin"),
    service: AssessmentService = Depends(get_service),
) -> Dict[str, Any]:
    """Full stored attempt, including answer keys. Owner or admin only."""
    return _ok(service.get_attempt(attempt_id, user_id, is_admin=is_admin))


@router.get("/{slug}", response_model=Envelope, summary="Get quiz for taking")
def present_quiz(
    slug: str,
    user_id: str = Query(..., description="Learner taking the quiz"),
    service: AssessmentService = Depends(get_service),
) -> Dict[str, Any]:
    """
    Quiz with answer keys removed.

    Questions and options are reshuffled on every request when the quiz
    enables shuffling. Responds 403 once the learner used all attempts.
    """
    return _ok(service.present_quiz(slug, user_id))


@router.post("/{quiz_id}/submit", response_model=Envelope, summary="Submit quiz answers")
def submit_quiz(
    quiz_id: str,
    user_id: str = Query(..., description="Learner submitting"),
    payload: Dict[str, Any] = Body(..., examples=[{"answers": [{"questionId": "q1", "answer": "a"}]}]),
    service: AssessmentService = Depends(get_service),
) -> Dict[str, Any]:
    """
    Grade a submission.

    Body: ``{answers: [{questionId, answer, timeTaken}], startedAt, timeTaken}``.
    Per-answer explanations are included only when the quiz reveals answers.
    """
    return _ok(service.submit(quiz_id, user_id, payload))


@router.get("/{quiz_id}/attempts", response_model=Envelope, summary="Attempt history")
def list_attempts(
    quiz_id: str,
    user_id: str = Query(..., description="Learner"),
    service: AssessmentService = Depends(get_service),
) -> Dict[str, Any]:
    """Learner's attempts on the quiz, newest first."""
    summaries: List = service.attempt_history(quiz_id, user_id)
    return _ok(summaries)
