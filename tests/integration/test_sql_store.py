"""
Integration tests for the SQLAlchemy store against in-memory SQLite.
"""

import random

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from quiz_engine.core.errors import AttemptNotFound, PersistenceFailure, QuizNotFound
from quiz_engine.db.database import init_db
from quiz_engine.db.models import AttemptRecord, QuizRecord
from quiz_engine.db.repository import SqlStore
from quiz_engine.grading.service import AssessmentService
from quiz_engine.schemas import QuizDefinition


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine, basic_quiz, all_types_quiz):
    store = SqlStore(sessionmaker(bind=engine, autocommit=False, autoflush=False))
    store.add_quiz(basic_quiz)
    store.add_quiz(all_types_quiz)
    return store


@pytest.fixture
def sql_service(store):
    return AssessmentService(catalog=store, attempts=store, rng=random.Random(3))


class TestCatalog:

    def test_round_trip(self, store, all_types_quiz):
        loaded = store.get_quiz(all_types_quiz.id)

        assert loaded == all_types_quiz
        assert loaded.total_points == 6

    def test_by_slug(self, store):
        assert store.get_quiz_by_slug("skeletal-basics").id == "quiz-skeleton"

    def test_missing(self, store):
        with pytest.raises(QuizNotFound):
            store.get_quiz("missing")
        with pytest.raises(QuizNotFound):
            store.get_quiz_by_slug("missing")

    def test_inactive_hidden_from_slug_lookup(self, store, basic_quiz_data):
        store.add_quiz(QuizDefinition.model_validate({**basic_quiz_data, "isActive": False}))

        with pytest.raises(QuizNotFound):
            store.get_quiz_by_slug("skeletal-basics")
        assert store.get_quiz("quiz-skeleton").is_active is False

    def test_reload_keeps_statistics(self, store, sql_service, basic_quiz):
        sql_service.submit(basic_quiz.id, "u", {"answers": [{"questionId": "q1", "answer": "b"}]})
        store.add_quiz(basic_quiz)

        reloaded = store.get_quiz(basic_quiz.id)
        assert reloaded.attempt_count == 1
        assert reloaded.average_score == 33


class TestAttempts:

    def test_submit_persists_attempt(self, store, sql_service, engine):
        result = sql_service.submit(
            "quiz-skeleton",
            "u",
            {"answers": [{"questionId": "q1", "answer": "b"}, {"questionId": "q2", "answer": "true"}]},
        )
        attempt = store.get_attempt(result.id)

        assert attempt.percentage == 67
        assert attempt.passed is True
        assert [a.question_id for a in attempt.answers] == ["q1", "q2", "q3"]
        assert attempt.performance_by_type["true-false"].correct == 1

    def test_attempt_numbers_and_order(self, store, sql_service):
        for _ in range(3):
            sql_service.submit("quiz-skeleton", "u", {"answers": []})

        history = store.list_attempts("u", "quiz-skeleton")
        assert [a.attempt_number for a in history] == [3, 2, 1]
        assert store.count_attempts("u", "quiz-skeleton") == 3
        assert store.count_attempts("other", "quiz-skeleton") == 0

    def test_unknown_attempt(self, store):
        with pytest.raises(AttemptNotFound):
            store.get_attempt("nope")


class TestStatistics:

    def test_running_averages(self, store, sql_service):
        sql_service.submit("quiz-skeleton", "u", {"answers": [
            {"questionId": "q1", "answer": "b"},
            {"questionId": "q2", "answer": "true"},
            {"questionId": "q3", "answer": "patella"},
        ]})
        sql_service.submit("quiz-skeleton", "v", {"answers": []})
        sql_service.submit("quiz-mixed", "u", {"answers": [{"questionId": "tf", "answer": "true"}]})

        quiz_stats = store.get_quiz_stats("quiz-skeleton")
        assert quiz_stats.attempt_count == 2
        assert quiz_stats.average_score == pytest.approx(50)

        learner = store.get_learner_stats("u")
        assert learner.quizzes_taken == 2
        assert learner.average_score == pytest.approx((100 + 17) / 2)
        assert learner.total_points == 31

        assert store.get_learner_stats("v").quizzes_taken == 1

    def test_unknown_learner(self, store):
        assert store.get_learner_stats("ghost").quizzes_taken == 0


class TestFailures:

    def test_failed_write_rolls_back_everything(self, store, sql_service, engine, monkeypatch):
        from quiz_engine.db import repository

        def broken(self, user_id, percentage, score):
            raise OperationalError("UPDATE learner_stats", {}, Exception("database is locked"))

        monkeypatch.setattr(repository.SqlStatsTransaction, "apply_learner_result", broken)

        with pytest.raises(PersistenceFailure) as exc:
            sql_service.submit("quiz-skeleton", "u", {"answers": [{"questionId": "q1", "answer": "b"}]})

        assert exc.value.result.score == 10
        assert store.count_attempts("u", "quiz-skeleton") == 0
        assert store.get_quiz_stats("quiz-skeleton").attempt_count == 0

        with sessionmaker(bind=engine)() as session:
            assert session.query(AttemptRecord).count() == 0
            assert session.get(QuizRecord, "quiz-skeleton").attempt_count == 0

    def test_unreachable_database(self):
        engine = create_engine("sqlite:////nonexistent-dir/quiz.db")
        store = SqlStore(sessionmaker(bind=engine))

        with pytest.raises(PersistenceFailure):
            store.get_quiz("quiz-skeleton")
