"""
SQLAlchemy-backed quiz catalog and attempt store.

Statistics are folded in with single ``UPDATE`` statements. Every
right-hand side of a SET clause reads the pre-update row (SQLite and
PostgreSQL semantics), so the average uses the pre-increment count and
concurrent submissions cannot lose an update.
"""
from __future__ import annotations

from collections.abc import Generator, Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from quiz_engine.core.errors import AttemptNotFound, PersistenceFailure, QuizNotFound
from quiz_engine.db.database import get_session_factory, session_scope
from quiz_engine.db.models import AttemptRecord, LearnerStatsRecord, QuizRecord
from quiz_engine.grading.statistics import running_average
from quiz_engine.schemas import Attempt, LearnerStats, QuizDefinition, QuizStats


def _to_quiz(record: QuizRecord) -> QuizDefinition:
    return QuizDefinition.model_validate(
        {
            **record.definition,
            "attemptCount": record.attempt_count,
            "averageScore": record.average_score,
        }
    )


def _to_attempt(record: AttemptRecord) -> Attempt:
    return Attempt(
        id=record.id,
        user_id=record.user_id,
        quiz_id=record.quiz_id,
        attempt_number=record.attempt_number,
        answers=record.answers,
        score=record.score,
        total_points=record.total_points,
        percentage=record.percentage,
        passed=record.passed,
        correct_answers=record.correct_answers,
        incorrect_answers=record.incorrect_answers,
        skipped_questions=record.skipped_questions,
        started_at=record.started_at,
        completed_at=record.completed_at,
        time_taken=record.time_taken,
        is_completed=record.is_completed,
        performance_by_type=record.performance_by_type or {},
        performance_by_difficulty=record.performance_by_difficulty or {},
    )


def _to_record(attempt: Attempt) -> AttemptRecord:
    data = attempt.model_dump(mode="json", by_alias=True)
    return AttemptRecord(
        id=attempt.id,
        user_id=attempt.user_id,
        quiz_id=attempt.quiz_id,
        attempt_number=attempt.attempt_number,
        answers=data["answers"],
        score=attempt.score,
        total_points=attempt.total_points,
        percentage=attempt.percentage,
        passed=attempt.passed,
        correct_answers=attempt.correct_answers,
        incorrect_answers=attempt.incorrect_answers,
        skipped_questions=attempt.skipped_questions,
        performance_by_type=data["performanceByType"],
        performance_by_difficulty=data["performanceByDifficulty"],
        started_at=attempt.started_at,
        completed_at=attempt.completed_at,
        time_taken=attempt.time_taken,
        is_completed=attempt.is_completed,
    )


def _count(session: Session, user_id: str, quiz_id: str) -> int:
    stmt = (
        select(func.count())
        .select_from(AttemptRecord)
        .where(AttemptRecord.user_id == user_id, AttemptRecord.quiz_id == quiz_id)
    )
    return session.execute(stmt).scalar_one()


class SqlStatsTransaction:
    """StatsTransaction bound to one open session."""

    def __init__(self, session: Session):
        self.session = session

    def count_attempts(self, user_id: str, quiz_id: str) -> int:
        return _count(self.session, user_id, quiz_id)

    def add_attempt(self, attempt: Attempt) -> None:
        self.session.add(_to_record(attempt))
        self.session.flush()

    def apply_quiz_result(self, quiz_id: str, percentage: int) -> None:
        stmt = (
            update(QuizRecord)
            .where(QuizRecord.id == quiz_id)
            .values(
                average_score=running_average(
                    QuizRecord.average_score, QuizRecord.attempt_count, float(percentage)
                ),
                attempt_count=QuizRecord.attempt_count + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if result.rowcount == 0:
            logger.warning(f"Quiz {quiz_id} has no catalog row; quiz statistics not updated")

    def apply_learner_result(self, user_id: str, percentage: int, score: float) -> None:
        stmt = (
            update(LearnerStatsRecord)
            .where(LearnerStatsRecord.user_id == user_id)
            .values(
                average_score=running_average(
                    LearnerStatsRecord.average_score, LearnerStatsRecord.quizzes_taken, float(percentage)
                ),
                quizzes_taken=LearnerStatsRecord.quizzes_taken + 1,
                total_points=LearnerStatsRecord.total_points + score,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if result.rowcount == 0:
            self.session.add(
                LearnerStatsRecord(
                    user_id=user_id,
                    quizzes_taken=1,
                    average_score=float(percentage),
                    total_points=score,
                )
            )
            self.session.flush()


class SqlStore:
    """QuizCatalog and AttemptStore over a relational database."""

    def __init__(self, session_factory: sessionmaker | None = None):
        self._session_factory = session_factory or get_session_factory()

    @contextmanager
    def _scope(self, action: str) -> Generator[Session, None, None]:
        """Session scope that reports storage errors as PersistenceFailure."""
        try:
            with session_scope(self._session_factory) as session:
                yield session
        except SQLAlchemyError as e:
            logger.exception(f"Database error while trying to {action}")
            raise PersistenceFailure(f"Could not {action}") from e

    # ========================================
    # Catalog
    # ========================================

    def add_quiz(self, quiz: QuizDefinition) -> QuizDefinition:
        with self._scope("save quiz") as session:
            record = session.get(QuizRecord, quiz.id)
            if record is None:
                record = QuizRecord(
                    id=quiz.id,
                    attempt_count=quiz.attempt_count,
                    average_score=quiz.average_score,
                )
                session.add(record)
            record.slug = quiz.slug
            record.title = quiz.title
            record.is_active = quiz.is_active
            record.is_published = quiz.is_published
            record.definition = quiz.definition_dump()
            session.flush()
            saved = _to_quiz(record)
        logger.info(f"Saved quiz {saved.slug} ({len(saved.questions)} questions)")
        return saved

    def get_quiz(self, quiz_id: str) -> QuizDefinition:
        with self._scope("load quiz") as session:
            record = session.get(QuizRecord, quiz_id)
            if record is None:
                raise QuizNotFound(quiz_id)
            return _to_quiz(record)

    def get_quiz_by_slug(self, slug: str) -> QuizDefinition:
        with self._scope("load quiz") as session:
            stmt = select(QuizRecord).where(QuizRecord.slug == slug, QuizRecord.is_active.is_(True))
            record = session.execute(stmt).scalar_one_or_none()
            if record is None:
                raise QuizNotFound(slug)
            return _to_quiz(record)

    # ========================================
    # Attempts & statistics
    # ========================================

    def count_attempts(self, user_id: str, quiz_id: str) -> int:
        with self._scope("count attempts") as session:
            return _count(session, user_id, quiz_id)

    def list_attempts(self, user_id: str, quiz_id: str) -> list[Attempt]:
        with self._scope("list attempts") as session:
            stmt = (
                select(AttemptRecord)
                .where(AttemptRecord.user_id == user_id, AttemptRecord.quiz_id == quiz_id)
                .order_by(AttemptRecord.completed_at.desc(), AttemptRecord.attempt_number.desc())
            )
            return [_to_attempt(r) for r in session.execute(stmt).scalars()]

    def get_attempt(self, attempt_id: str) -> Attempt:
        with self._scope("load attempt") as session:
            record = session.get(AttemptRecord, attempt_id)
            if record is None:
                raise AttemptNotFound(attempt_id)
            return _to_attempt(record)

    def get_quiz_stats(self, quiz_id: str) -> QuizStats:
        with self._scope("load quiz statistics") as session:
            record = session.get(QuizRecord, quiz_id)
            if record is None:
                return QuizStats(quiz_id=quiz_id)
            return QuizStats(
                quiz_id=quiz_id,
                attempt_count=record.attempt_count,
                average_score=record.average_score,
            )

    def get_learner_stats(self, user_id: str) -> LearnerStats:
        with self._scope("load learner statistics") as session:
            record = session.get(LearnerStatsRecord, user_id)
            if record is None:
                return LearnerStats(user_id=user_id)
            return LearnerStats(
                user_id=user_id,
                quizzes_taken=record.quizzes_taken,
                average_score=record.average_score,
                total_points=record.total_points,
            )

    @contextmanager
    def transaction(self) -> Iterator[SqlStatsTransaction]:
        with self._scope("save quiz attempt") as session:
            yield SqlStatsTransaction(session)
