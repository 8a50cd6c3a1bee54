"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from quiz_engine.grading.service import AssessmentService  # noqa: E402
from quiz_engine.schemas import QuizDefinition  # noqa: E402
from quiz_engine.store import InMemoryStore  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite database, ASGI client)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def basic_quiz_data():
    """Three 10-point questions, passing at 60%, answers revealed, no shuffling."""
    return {
        "id": "quiz-skeleton",
        "title": "Skeletal System Basics",
        "slug": "skeletal-basics",
        "description": "Bones of the human body",
        "system": "skeletal",
        "passingScore": 60,
        "shuffleQuestions": False,
        "shuffleOptions": False,
        "showAnswersAfter": True,
        "questions": [
            {
                "id": "q1",
                "type": "multiple-choice",
                "question": "Which is the longest bone in the human body?",
                "explanation": "The femur is the longest and strongest bone.",
                "points": 10,
                "difficulty": "easy",
                "options": [
                    {"id": "a", "text": "Humerus", "isCorrect": False},
                    {"id": "b", "text": "Femur", "isCorrect": True},
                    {"id": "c", "text": "Tibia", "isCorrect": False},
                ],
            },
            {
                "id": "q2",
                "type": "true-false",
                "question": "An adult human has 206 bones.",
                "explanation": "Most adults have 206 bones.",
                "points": 10,
                "correctAnswer": "true",
            },
            {
                "id": "q3",
                "type": "fill-blank",
                "question": "The kneecap is also called the ____.",
                "explanation": "The patella protects the knee joint.",
                "points": 10,
                "difficulty": "hard",
                "correctAnswer": "Patella",
            },
        ],
    }


@pytest.fixture
def basic_quiz(basic_quiz_data):
    return QuizDefinition.model_validate(basic_quiz_data)


@pytest.fixture
def all_types_quiz_data():
    """One question of every type."""
    return {
        "id": "quiz-mixed",
        "title": "Thorax: Mixed Review",
        "questions": [
            {
                "id": "mc",
                "type": "multiple-choice",
                "question": "Which chamber pumps blood to the body?",
                "options": [
                    {"id": "ra", "text": "Right atrium"},
                    {"id": "lv", "text": "Left ventricle", "isCorrect": True},
                ],
            },
            {"id": "tf", "type": "true-false", "question": "The heart has four chambers.", "correctAnswer": "true"},
            {"id": "fb", "type": "fill-blank", "question": "Gas exchange happens in the ____.", "correctAnswer": "alveoli"},
            {
                "id": "organ",
                "type": "organ-identification",
                "question": "Click the left lung.",
                "hotspotId": "lung-left",
                "targetOrgan": "Left lung",
                "modelReference": "thorax-v2",
            },
            {
                "id": "dd",
                "type": "drag-drop",
                "question": "Label the heart.",
                "points": 2,
                "labels": [
                    {"id": "aorta", "text": "Aorta", "correctPosition": {"x": 100, "y": 50}},
                    {"id": "apex", "text": "Apex", "correctPosition": {"x": 140, "y": 220}},
                ],
            },
        ],
    }


@pytest.fixture
def all_types_quiz(all_types_quiz_data):
    return QuizDefinition.model_validate(all_types_quiz_data)


@pytest.fixture
def memory_store(basic_quiz, all_types_quiz):
    """In-memory catalog and attempt store seeded with the sample quizzes."""
    return InMemoryStore([basic_quiz, all_types_quiz])


@pytest.fixture
def service(memory_store):
    """Assessment service over the in-memory store with a seeded RNG."""
    return AssessmentService(catalog=memory_store, attempts=memory_store, rng=random.Random(7))
