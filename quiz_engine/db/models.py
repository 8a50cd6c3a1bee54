"""
SQLAlchemy models for quizzes, attempts and learner statistics.

Implements:
- QuizRecord: Authored definition as JSON plus running statistics columns
- AttemptRecord: One graded submission; no foreign key to quizzes so that
  attempt history survives quiz deletion
- LearnerStatsRecord: Per-learner running aggregates
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class QuizRecord(Base):
    """
    Quiz definition row.

    ``definition`` holds the camelCase dump of QuizDefinition without
    statistics. ``attempt_count`` and ``average_score`` are only written by
    single-statement increments.
    """

    __tablename__ = "quizzes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    slug: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    title: Mapped[str] = mapped_column(String(200))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False)
    definition: Mapped[dict] = mapped_column(JSON, nullable=False)

    attempt_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    average_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<QuizRecord(slug={self.slug}, attempts={self.attempt_count})>"


class AttemptRecord(Base):
    """Graded submission. Rows are inserted once and never updated."""

    __tablename__ = "quiz_attempts"
    __table_args__ = (
        Index("ix_quiz_attempts_user_quiz", "user_id", "quiz_id"),
        Index("ix_quiz_attempts_user_completed", "user_id", "completed_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    quiz_id: Mapped[str] = mapped_column(String(64), nullable=False)
    attempt_number: Mapped[int] = mapped_column(Integer, default=1)

    answers: Mapped[list] = mapped_column(JSON, nullable=False)
    score: Mapped[float] = mapped_column(Float, default=0.0)
    total_points: Mapped[float] = mapped_column(Float, nullable=False)
    percentage: Mapped[int] = mapped_column(Integer, default=0)
    passed: Mapped[bool] = mapped_column(Boolean, default=False)

    correct_answers: Mapped[int] = mapped_column(Integer, default=0)
    incorrect_answers: Mapped[int] = mapped_column(Integer, default=0)
    skipped_questions: Mapped[int] = mapped_column(Integer, default=0)
    performance_by_type: Mapped[dict] = mapped_column(JSON, default=dict)
    performance_by_difficulty: Mapped[dict] = mapped_column(JSON, default=dict)

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    time_taken: Mapped[float] = mapped_column(Float, default=0.0)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<AttemptRecord(user={self.user_id}, quiz={self.quiz_id}, #{self.attempt_number})>"


class LearnerStatsRecord(Base):
    """Running quiz statistics of one learner."""

    __tablename__ = "learner_stats"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    quizzes_taken: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    average_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_points: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
