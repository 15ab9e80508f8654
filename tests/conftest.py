"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests:
a temporary SQLite store, a controllable clock, scripted text generators,
and sample diagnostic data.
"""
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from learner_analytics.analytics.service import AnalyticsService  # noqa: E402
from learner_analytics.db.database import create_engine_for, init_db, make_session_factory  # noqa: E402
from learner_analytics.db.store import SqlStore  # noqa: E402
from learner_analytics.errors import GenerationError  # noqa: E402
from learner_analytics.schemas import BankQuestion, DiagnosticOutcome, QuestionAttempt  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite database, API, CLI)")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


# ========================================
# Test doubles
# ========================================


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class ScriptedGenerator:
    """Returns queued replies in order (the last one repeats) and records prompts."""

    def __init__(self, *replies: str):
        self.replies = list(replies)
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]


class FailingGenerator:
    """Always unavailable."""

    def __init__(self):
        self.calls = 0

    def generate(self, prompt: str) -> str:
        self.calls += 1
        raise GenerationError("service unavailable")


# ========================================
# Fixtures
# ========================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def engine(tmp_path):
    """Fresh SQLite database file with all tables (one connection per thread)."""
    engine = create_engine_for(f"sqlite:///{tmp_path / 'analytics.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return SqlStore(make_session_factory(engine))


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 15, 12, 0, 0))


@pytest.fixture
def service(store, clock):
    """Service with no text generator: every advisory output uses its fallback."""
    return AnalyticsService(store, None, clock=clock)


@pytest.fixture
def make_attempt():
    """Factory for valid question attempts."""

    def _make(**overrides) -> QuestionAttempt:
        values = {
            "user_id": "student-1",
            "question_id": "q-1",
            "question_text": "Solve 2x + 3 = 7",
            "question_type": "practice",
            "chapter_id": "algebra-1",
            "topic": "Linear Equations",
            "concept": "solving for x",
            "difficulty": "medium",
            "user_answer": "2",
            "correct_answer": "2",
            "is_correct": True,
            "time_taken_seconds": 90,
        }
        values.update(overrides)
        return QuestionAttempt(**values)

    return _make


@pytest.fixture
def sample_bank():
    """Ten-question diagnostic bank over three topics."""
    questions = [
        ("q1", "Linear Equations", "one-step equations"),
        ("q2", "Linear Equations", "two-step equations"),
        ("q3", "Linear Equations", "two-step equations"),
        ("q4", "Linear Equations", "one-step equations"),
        ("q5", "Fractions", "adding fractions"),
        ("q6", "Fractions", "common denominators"),
        ("q7", "Fractions", "adding fractions"),
        ("q8", "Exponents", "power rules"),
        ("q9", "Exponents", "negative exponents"),
        ("q10", "Exponents", "power rules"),
    ]
    return [BankQuestion(id=qid, topic=topic, concept=concept) for qid, topic, concept in questions]


@pytest.fixture
def sample_outcomes():
    """
    Linear Equations 4/4 (strength), Fractions 1/3 (weakness),
    Exponents 0/3 (weakness and gap). Score 5/10.
    """
    correct = {"q1", "q2", "q3", "q4", "q5"}
    return [
        DiagnosticOutcome(question_id=f"q{i}", answer="x", correct=f"q{i}" in correct)
        for i in range(1, 11)
    ]
