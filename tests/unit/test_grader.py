"""
Unit tests for the attempt grader.

Covers scoring, percentage rounding, skipped answers, result shape and the
all-or-nothing persistence of an attempt with its statistics.
"""

from contextlib import contextmanager
from datetime import datetime, timezone

import pytest

from quiz_engine.core.errors import PersistenceFailure
from quiz_engine.grading.grader import AttemptGrader, compute_percentage, score_submission
from quiz_engine.schemas import QuizDefinition, Submission
from quiz_engine.store import InMemoryStore

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _submission(**answers) -> Submission:
    return Submission.model_validate(
        {"answers": [{"questionId": qid, "answer": value} for qid, value in answers.items()]}
    )


class TestComputePercentage:
    """compute_percentage() rounding."""

    @pytest.mark.parametrize(
        "score,total,expected",
        [
            (20, 30, 67),
            (10, 30, 33),
            (1, 8, 13),  # 12.5 rounds up
            (5, 8, 63),  # 62.5 rounds up
            (30, 30, 100),
            (0, 30, 0),
        ],
    )
    def test_rounding(self, score, total, expected):
        assert compute_percentage(score, total) == expected

    def test_empty_quiz(self):
        assert compute_percentage(0, 0) == 0

    @pytest.mark.parametrize("total", [1, 3, 7, 30, 45.5])
    def test_passed_is_monotonic_in_score(self, total):
        passing_score = 60
        steps = [total * i / 20 for i in range(21)]
        verdicts = [compute_percentage(score, total) >= passing_score for score in steps]

        assert verdicts == sorted(verdicts)


class TestScoreSubmission:
    """score_submission() aggregation."""

    def test_mixed_answers(self, basic_quiz):
        sheet = score_submission(basic_quiz, _submission(q1="b", q2="false", q3=" patella "))

        assert sheet.score == 20
        assert sheet.correct_answers == 2
        assert sheet.incorrect_answers == 1
        assert sheet.skipped_questions == 0
        assert [a.question_id for a in sheet.answers] == ["q1", "q2", "q3"]

    def test_skipped_questions_counted_apart(self, basic_quiz):
        sheet = score_submission(basic_quiz, _submission(q1="b"))

        assert sheet.correct_answers == 1
        assert sheet.incorrect_answers == 0
        assert sheet.skipped_questions == 2
        assert sheet.answers[1].user_answer is None
        assert sheet.answers[1].is_correct is False

    def test_null_answer_is_incorrect_not_skipped(self, basic_quiz):
        sheet = score_submission(basic_quiz, _submission(q1=None))

        assert sheet.incorrect_answers == 1
        assert sheet.skipped_questions == 2

    def test_canonical_order_regardless_of_submission_order(self, basic_quiz):
        sheet = score_submission(basic_quiz, _submission(q3="patella", q1="b", q2="true"))
        assert [a.question_id for a in sheet.answers] == ["q1", "q2", "q3"]

    def test_unknown_question_ids_ignored(self, basic_quiz):
        sheet = score_submission(basic_quiz, _submission(q1="b", ghost="anything"))

        assert sheet.score == 10
        assert "ghost" not in {a.question_id for a in sheet.answers}

    def test_first_duplicate_wins(self, basic_quiz):
        submission = Submission.model_validate(
            {"answers": [{"questionId": "q1", "answer": "a"}, {"questionId": "q1", "answer": "b"}]}
        )
        sheet = score_submission(basic_quiz, submission)

        assert sheet.answers[0].user_answer == "a"
        assert sheet.answers[0].is_correct is False

    def test_stored_answer_keys(self, basic_quiz):
        sheet = score_submission(basic_quiz, _submission())
        assert [a.correct_answer for a in sheet.answers] == ["b", "true", "Patella"]

    def test_performance_tallies(self, basic_quiz):
        sheet = score_submission(basic_quiz, _submission(q1="b", q2="true"))

        assert sheet.performance_by_type["multiple-choice"].model_dump() == {"correct": 1, "total": 1}
        assert sheet.performance_by_type["fill-blank"].model_dump() == {"correct": 0, "total": 1}
        assert sheet.performance_by_difficulty["medium"].model_dump() == {"correct": 1, "total": 1}
        assert sheet.performance_by_difficulty["hard"].model_dump() == {"correct": 0, "total": 1}

    def test_all_types_perfect_score(self, all_types_quiz):
        sheet = score_submission(
            all_types_quiz,
            _submission(
                mc="lv",
                tf="true",
                fb="Alveoli",
                organ="lung-left",
                dd=[{"id": "aorta", "x": 95, "y": 55}, {"id": "apex", "x": 150, "y": 210}],
            ),
        )
        assert sheet.score == all_types_quiz.total_points == 6


class TestAttemptGrader:
    """AttemptGrader.grade()."""

    @pytest.fixture
    def store(self, basic_quiz):
        return InMemoryStore([basic_quiz])

    @pytest.fixture
    def grader(self, store):
        return AttemptGrader(store, clock=lambda: FIXED_NOW)

    def test_two_of_three_passes(self, grader, basic_quiz):
        result = grader.grade(basic_quiz, "learner-1", _submission(q1="b", q2="false", q3="patella"))

        assert result.score == 20
        assert result.total_points == 30
        assert result.percentage == 67
        assert result.passed is True
        assert result.attempt_number == 1

    def test_one_of_three_fails(self, grader, basic_quiz):
        result = grader.grade(basic_quiz, "learner-1", _submission(q1="b"))

        assert result.percentage == 33
        assert result.passed is False

    def test_pass_threshold_is_inclusive(self, grader, basic_quiz_data):
        quiz = QuizDefinition.model_validate({**basic_quiz_data, "passingScore": 67})
        assert grader.grade(quiz, "u", _submission(q1="b", q3="patella")).passed is True

    def test_empty_quiz(self, grader):
        quiz = QuizDefinition(id="empty", title="Empty")
        result = grader.grade(quiz, "u", Submission())

        assert result.percentage == 0
        assert result.score == 0

    def test_attempt_numbers_increase(self, grader, basic_quiz, store):
        numbers = [grader.grade(basic_quiz, "u", _submission()).attempt_number for _ in range(3)]

        assert numbers == [1, 2, 3]
        assert store.count_attempts("u", basic_quiz.id) == 3

    def test_answers_revealed_with_explanations(self, grader, basic_quiz):
        result = grader.grade(basic_quiz, "u", _submission(q1="a"))

        first = result.answers[0]
        assert first.correct_answer == {"id": "b", "text": "Femur"}
        assert first.explanation == "The femur is the longest and strongest bone."
        assert first.user_answer == "a"

    def test_answers_withheld(self, grader, basic_quiz_data):
        quiz = QuizDefinition.model_validate({**basic_quiz_data, "showAnswersAfter": False})
        result = grader.grade(quiz, "u", _submission(q1="b"))

        assert result.answers is None
        assert "answers" not in result.model_dump(by_alias=True, exclude_none=True)

    def test_stored_attempt(self, grader, basic_quiz, store):
        result = grader.grade(basic_quiz, "u", _submission(q1="b"))
        attempt = store.get_attempt(result.id)

        assert attempt.completed_at == FIXED_NOW
        assert attempt.started_at == FIXED_NOW
        assert attempt.is_completed is True
        assert len(attempt.answers) == 3

    def test_statistics_updated(self, grader, basic_quiz, store):
        grader.grade(basic_quiz, "u", _submission(q1="b", q2="true", q3="patella"))
        grader.grade(basic_quiz, "u", _submission())

        quiz_stats = store.get_quiz_stats(basic_quiz.id)
        assert quiz_stats.attempt_count == 2
        assert quiz_stats.average_score == 50.0

        learner = store.get_learner_stats("u")
        assert learner.quizzes_taken == 2
        assert learner.total_points == 30


class _FailingStore(InMemoryStore):
    """Store whose statistics write fails after the attempt was staged."""

    @contextmanager
    def transaction(self):
        with super().transaction() as tx:
            def boom(*args, **kwargs):
                raise PersistenceFailure("Could not save quiz attempt")

            tx.apply_learner_result = boom
            yield tx


class TestPersistenceFailure:
    """Nothing is applied when any write of the attempt fails."""

    def test_rolls_back_and_reports_result(self, basic_quiz):
        store = _FailingStore([basic_quiz])
        grader = AttemptGrader(store)

        with pytest.raises(PersistenceFailure) as exc:
            grader.grade(basic_quiz, "u", _submission(q1="b"))

        assert exc.value.result is not None
        assert exc.value.result.score == 10
        assert store.count_attempts("u", basic_quiz.id) == 0
        assert store.get_quiz_stats(basic_quiz.id).attempt_count == 0
        assert store.get_learner_stats("u").quizzes_taken == 0
