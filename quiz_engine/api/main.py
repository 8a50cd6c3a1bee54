"""
FastAPI application for the quiz assessment engine.

Provides REST API for:
- Presenting quizzes to learners
- Grading submissions and recording attempts
- Attempt history and quiz/learner statistics
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from quiz_engine import __version__
from quiz_engine.api.routers.quiz_router import router as quiz_router
from quiz_engine.core.errors import (
    AssessmentError,
    AttemptLimitExceeded,
    MalformedSubmission,
    NotAuthorized,
    NotFound,
    PersistenceFailure,
)
from quiz_engine.core.logs import configure_logging
from quiz_engine.db.database import check_database, init_db

STATUS_CODES: dict[type[AssessmentError], int] = {
    NotFound: 404,
    AttemptLimitExceeded: 403,
    NotAuthorized: 403,
    MalformedSubmission: 422,
    PersistenceFailure: 503,
}


def status_for(error: AssessmentError) -> int:
    """HTTP status for an engine failure."""
    for error_type, status in STATUS_CODES.items():
        if isinstance(error, error_type):
            return status
    return 500


async def assessment_error_handler(request: Request, exc: AssessmentError) -> JSONResponse:
    """Render engine failures in the standard error envelope."""
    status = status_for(exc)
    body: dict[str, Any] = {"success": False, "message": exc.message}
    if isinstance(exc, MalformedSubmission) and exc.errors:
        body["errors"] = exc.errors
    if status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status, content=body)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging()
    logger.info("Starting quiz assessment service...")
    init_db()
    logger.info(f"Service started on {settings.api_host}:{settings.api_port}")

    yield

    logger.info("Shutting down quiz assessment service...")


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Build the application; tests skip the lifespan to avoid touching a database."""
    settings = get_settings()
    app = FastAPI(
        title="Anatomy Quiz Assessment",
        description="Quiz delivery, grading and running statistics.",
        version=__version__,
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AssessmentError, assessment_error_handler)
    app.include_router(quiz_router, prefix="/api/quiz", tags=["Quiz"])

    @app.get("/health", tags=["Health"])
    def health_check() -> dict[str, Any]:
        """Health check with an actual database round-trip."""
        try:
            check_database()
            db_status, db_error = "ok", None
        except SQLAlchemyError as e:
            db_status, db_error = "error", str(e)

        result: dict[str, Any] = {
            "status": "healthy" if db_status == "ok" else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "components": {"database": db_status},
        }
        if db_error:
            result["errors"] = {"database": db_error}
        return result

    return app


app = create_app()
