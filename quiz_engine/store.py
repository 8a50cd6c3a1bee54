"""
Collaborator contracts for the engine, plus an in-memory implementation.

- QuizCatalog: quiz definitions by id or slug
- AttemptStore: attempt history, learner/quiz statistics, and the
  transaction in which an attempt and its statistics are written together

The SQLAlchemy implementation lives in ``quiz_engine.db.repository``.
"""

from __future__ import annotations

import threading
from contextlib import AbstractContextManager, contextmanager
from typing import Iterator, Protocol

from quiz_engine.core.errors import AttemptNotFound, QuizNotFound
from quiz_engine.grading.statistics import running_average
from quiz_engine.schemas import Attempt, LearnerStats, QuizDefinition, QuizStats


class QuizCatalog(Protocol):
    """Read access to quiz definitions."""

    def get_quiz(self, quiz_id: str) -> QuizDefinition:
        """Quiz by id, active or not. Raises QuizNotFound."""
        ...

    def get_quiz_by_slug(self, slug: str) -> QuizDefinition:
        """Active quiz by slug. Raises QuizNotFound."""
        ...

    def add_quiz(self, quiz: QuizDefinition) -> QuizDefinition:
        """Insert or replace a definition, keeping existing statistics."""
        ...


class StatsTransaction(Protocol):
    """Writes that must land together with a new attempt."""

    def count_attempts(self, user_id: str, quiz_id: str) -> int:
        ...

    def add_attempt(self, attempt: Attempt) -> None:
        ...

    def apply_quiz_result(self, quiz_id: str, percentage: int) -> None:
        ...

    def apply_learner_result(self, user_id: str, percentage: int, score: float) -> None:
        ...


class AttemptStore(Protocol):
    """Attempt history and running statistics."""

    def count_attempts(self, user_id: str, quiz_id: str) -> int:
        ...

    def list_attempts(self, user_id: str, quiz_id: str) -> list[Attempt]:
        """Attempts of a learner on a quiz, newest first."""
        ...

    def get_attempt(self, attempt_id: str) -> Attempt:
        """Raises AttemptNotFound."""
        ...

    def get_quiz_stats(self, quiz_id: str) -> QuizStats:
        ...

    def get_learner_stats(self, user_id: str) -> LearnerStats:
        ...

    def transaction(self) -> AbstractContextManager[StatsTransaction]:
        """All-or-nothing scope; raises PersistenceFailure on storage errors."""
        ...


class _MemoryTransaction:
    """Stages writes and applies them only when the scope exits cleanly."""

    def __init__(self, store: "InMemoryStore"):
        self._store = store
        self._attempts: list[Attempt] = []
        self._quiz_results: list[tuple[str, int]] = []
        self._learner_results: list[tuple[str, int, float]] = []

    def count_attempts(self, user_id: str, quiz_id: str) -> int:
        staged = sum(1 for a in self._attempts if a.user_id == user_id and a.quiz_id == quiz_id)
        return self._store.count_attempts(user_id, quiz_id) + staged

    def add_attempt(self, attempt: Attempt) -> None:
        self._attempts.append(attempt)

    def apply_quiz_result(self, quiz_id: str, percentage: int) -> None:
        self._quiz_results.append((quiz_id, percentage))

    def apply_learner_result(self, user_id: str, percentage: int, score: float) -> None:
        self._learner_results.append((user_id, percentage, score))

    def commit(self) -> None:
        store = self._store
        for attempt in self._attempts:
            store._attempts[attempt.id] = attempt

        for quiz_id, percentage in self._quiz_results:
            stats = store._quiz_stats.setdefault(quiz_id, QuizStats(quiz_id=quiz_id))
            stats.average_score = running_average(stats.average_score, stats.attempt_count, percentage)
            stats.attempt_count += 1

        for user_id, percentage, score in self._learner_results:
            stats = store._learner_stats.setdefault(user_id, LearnerStats(user_id=user_id))
            stats.average_score = running_average(stats.average_score, stats.quizzes_taken, percentage)
            stats.quizzes_taken += 1
            stats.total_points += score


class InMemoryStore:
    """
    Catalog and attempt store kept in process memory.

    Used by the tests and for trying quizzes without a database. Transactions
    are serialized by a lock, so counters never race.
    """

    def __init__(self, quizzes: list[QuizDefinition] | None = None):
        self._lock = threading.RLock()
        self._quizzes: dict[str, QuizDefinition] = {}
        self._attempts: dict[str, Attempt] = {}
        self._quiz_stats: dict[str, QuizStats] = {}
        self._learner_stats: dict[str, LearnerStats] = {}
        for quiz in quizzes or []:
            self.add_quiz(quiz)

    # ----- catalog -----

    def add_quiz(self, quiz: QuizDefinition) -> QuizDefinition:
        with self._lock:
            self._quizzes[quiz.id] = quiz.model_copy(deep=True)
            self._quiz_stats.setdefault(
                quiz.id,
                QuizStats(quiz_id=quiz.id, attempt_count=quiz.attempt_count, average_score=quiz.average_score),
            )
            return self.get_quiz(quiz.id)

    def get_quiz(self, quiz_id: str) -> QuizDefinition:
        with self._lock:
            quiz = self._quizzes.get(quiz_id)
            if quiz is None:
                raise QuizNotFound(quiz_id)
            stats = self._quiz_stats.get(quiz_id) or QuizStats(quiz_id=quiz_id)
            return quiz.model_copy(
                update={"attempt_count": stats.attempt_count, "average_score": stats.average_score},
                deep=True,
            )

    def get_quiz_by_slug(self, slug: str) -> QuizDefinition:
        with self._lock:
            for quiz in self._quizzes.values():
                if quiz.slug == slug and quiz.is_active:
                    return self.get_quiz(quiz.id)
        raise QuizNotFound(slug)

    # ----- attempts -----

    def count_attempts(self, user_id: str, quiz_id: str) -> int:
        with self._lock:
            return sum(1 for a in self._attempts.values() if a.user_id == user_id and a.quiz_id == quiz_id)

    def list_attempts(self, user_id: str, quiz_id: str) -> list[Attempt]:
        with self._lock:
            attempts = [a for a in self._attempts.values() if a.user_id == user_id and a.quiz_id == quiz_id]
        return sorted(attempts, key=lambda a: (a.completed_at, a.attempt_number), reverse=True)

    def get_attempt(self, attempt_id: str) -> Attempt:
        with self._lock:
            attempt = self._attempts.get(attempt_id)
        if attempt is None:
            raise AttemptNotFound(attempt_id)
        return attempt

    def get_quiz_stats(self, quiz_id: str) -> QuizStats:
        with self._lock:
            stats = self._quiz_stats.get(quiz_id)
            return stats.model_copy() if stats else QuizStats(quiz_id=quiz_id)

    def get_learner_stats(self, user_id: str) -> LearnerStats:
        with self._lock:
            stats = self._learner_stats.get(user_id)
            return stats.model_copy() if stats else LearnerStats(user_id=user_id)

    @contextmanager
    def transaction(self) -> Iterator[_MemoryTransaction]:
        with self._lock:
            tx = _MemoryTransaction(self)
            yield tx
            tx.commit()
