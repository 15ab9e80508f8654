"""
Unit tests for learning path sequencing and day estimates.
"""

import pytest

from learner_analytics.analytics.learning_path import (
    LearningPathPlanner,
    estimate_days,
    learning_sequence,
)
from learner_analytics.db.store import LEARNING_PATHS
from learner_analytics.schemas import ChapterDiagnostic


def _diagnostic(**overrides):
    values = {
        "user_id": "student-1",
        "chapter_id": "algebra-1",
        "total_questions": 10,
        "correct_answers": 5,
        "score_percentage": 50.0,
        "strengths": ["Linear Equations"],
        "weaknesses": ["Exponents", "Fractions"],
        "knowledge_gaps": ["Exponents"],
        "prerequisite_concepts": ["power rules", "negative exponents"],
    }
    values.update(overrides)
    return ChapterDiagnostic(**values)


class TestLearningSequence:
    def test_gaps_weaknesses_then_closing_steps(self):
        assert learning_sequence(_diagnostic()) == [
            "Review Prerequisites",
            "Master: power rules",
            "Master: negative exponents",
            "Focus on: Exponents",
            "Practice: Exponents Problems",
            "Focus on: Fractions",
            "Practice: Fractions Problems",
            "Core Chapter Concepts",
            "Advanced Applications",
            "Chapter Assessment",
        ]

    def test_no_gaps_skips_prerequisite_review(self):
        sequence = learning_sequence(
            _diagnostic(weaknesses=["Fractions"], knowledge_gaps=[], prerequisite_concepts=[])
        )
        assert sequence[0] == "Focus on: Fractions"
        assert "Review Prerequisites" not in sequence

    def test_clean_diagnostic_has_only_closing_steps(self):
        sequence = learning_sequence(_diagnostic(weaknesses=[], knowledge_gaps=[], prerequisite_concepts=[]))
        assert sequence == ["Core Chapter Concepts", "Advanced Applications", "Chapter Assessment"]


class TestEstimateDays:
    def test_base_case(self):
        assert estimate_days(0, 0, 90.0) == 7

    def test_mid_score_adds_three(self):
        # 7 + 2*2 + 3*1 + 3
        assert estimate_days(2, 1, 50.0) == 17

    def test_low_score_adds_five(self):
        assert estimate_days(0, 0, 29.9) == 12

    def test_score_boundaries(self):
        assert estimate_days(0, 0, 30.0) == 10
        assert estimate_days(0, 0, 60.0) == 7

    def test_capped(self):
        assert estimate_days(5, 5, 10.0) == 21

    def test_custom_cap(self):
        assert estimate_days(5, 5, 10.0, max_days=14) == 14


class TestLearningPathPlanner:
    def test_plan(self, store, clock):
        plan = LearningPathPlanner(store, clock=clock).plan(_diagnostic())
        assert plan.focus_areas == ["Exponents", "Fractions"]
        assert plan.prerequisite_review == ["power rules", "negative exponents"]
        assert plan.estimated_days == 17

    def test_save_replaces_existing_path(self, store, clock):
        planner = LearningPathPlanner(store, clock=clock)
        first = planner.save(_diagnostic())
        store.update(LEARNING_PATHS, first.id, {"current_step": 4, "completion_percentage": 40.0})

        clock.advance(days=3)
        second = planner.save(_diagnostic(weaknesses=[], knowledge_gaps=[], prerequisite_concepts=[], score_percentage=90.0))

        assert second.id == first.id
        assert second.current_step == 0
        assert second.completion_percentage == 0.0
        assert second.estimated_completion_days == 7
        assert second.recommended_sequence == ["Core Chapter Concepts", "Advanced Applications", "Chapter Assessment"]
        assert second.path_data.diagnostic_results.score_percentage == pytest.approx(90.0)
        assert len(store.select(LEARNING_PATHS, {"user_id": "student-1"})) == 1
