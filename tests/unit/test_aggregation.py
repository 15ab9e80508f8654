"""
Unit tests for the pure aggregation helpers.
"""

from datetime import datetime

import pytest

from learner_analytics.analytics.aggregation import (
    accuracy_percentage,
    concept_performance,
    difficulty_progression,
    mastered_concepts,
    overall_progress,
    percentage,
    rank_by_accuracy,
    session_breakdown,
    total_session_minutes,
)
from learner_analytics.schemas import ConceptMastery, StudySession


def _session(session_type, started_at, minutes):
    return StudySession(
        user_id="student-1",
        session_type=session_type,
        started_at=started_at,
        duration_minutes=minutes,
    )


def _mastery(concept, level):
    return ConceptMastery(user_id="student-1", chapter_id="algebra-1", concept=concept, mastery_level=level)


class TestPercentages:
    def test_percentage_of_zero_is_zero(self):
        assert percentage(3, 0) == 0.0

    def test_percentage(self):
        assert percentage(1, 4) == pytest.approx(25.0)

    def test_accuracy_with_no_attempts(self):
        assert accuracy_percentage([]) == 0.0

    def test_accuracy(self, make_attempt):
        attempts = [make_attempt(is_correct=True), make_attempt(is_correct=False), make_attempt(is_correct=True)]
        assert accuracy_percentage(attempts) == pytest.approx(200 / 3)


class TestConceptPerformance:
    def test_totals_accuracy_and_average_time(self, make_attempt):
        attempts = [
            make_attempt(concept="fractions", is_correct=True, time_taken_seconds=30),
            make_attempt(concept="fractions", is_correct=False, time_taken_seconds=90),
            make_attempt(concept="exponents", is_correct=False, time_taken_seconds=60),
        ]
        stats = concept_performance(attempts)

        assert stats["fractions"].total == 2
        assert stats["fractions"].correct == 1
        assert stats["fractions"].total_time == 120
        assert stats["fractions"].accuracy == pytest.approx(50.0)
        assert stats["fractions"].avg_time == pytest.approx(60.0)
        assert stats["exponents"].accuracy == 0.0

    def test_attempts_without_concept_are_ignored(self, make_attempt):
        stats = concept_performance([make_attempt(concept=None)])
        assert stats == {}


class TestRanking:
    def test_weakest_first(self):
        accuracy = {"a": 50.0, "b": 10.0, "c": 30.0}
        assert rank_by_accuracy(["a", "b", "c"], accuracy) == ["b", "c", "a"]

    def test_ties_keep_order(self):
        accuracy = {"a": 20.0, "b": 20.0}
        assert rank_by_accuracy(["b", "a"], accuracy) == ["b", "a"]


class TestSessionBreakdown:
    def test_groups_by_type_and_day(self):
        sessions = [
            _session("study", datetime(2026, 3, 14, 9, 0), 30),
            _session("study", datetime(2026, 3, 14, 18, 0), 20),
            _session("quiz", datetime(2026, 3, 15, 8, 0), 10),
        ]
        breakdown = session_breakdown(sessions)

        assert breakdown.by_type["study"].count == 2
        assert breakdown.by_type["study"].total_time == 50
        assert breakdown.by_type["quiz"].count == 1
        assert breakdown.by_day["2026-03-14"].sessions == 2
        assert breakdown.by_day["2026-03-14"].total_time == 50
        assert breakdown.by_day["2026-03-15"].sessions == 1
        assert breakdown.avg_duration == pytest.approx(20.0)
        assert total_session_minutes(sessions) == 60

    def test_empty(self):
        breakdown = session_breakdown([])
        assert breakdown.by_type == {}
        assert breakdown.avg_duration == 0.0


class TestDifficultyProgression:
    def test_all_levels_present(self, make_attempt):
        progression = difficulty_progression([make_attempt(difficulty="hard", is_correct=True)])
        assert set(progression) == {"easy", "medium", "hard"}
        assert progression["hard"].total == 1
        assert progression["hard"].accuracy == pytest.approx(100.0)
        assert progression["easy"].total == 0
        assert progression["easy"].accuracy == 0.0


class TestMastery:
    def test_overall_progress_is_mean_level_in_percent(self):
        assert overall_progress([_mastery("a", 1.0), _mastery("b", 0.5)]) == pytest.approx(75.0)

    def test_overall_progress_empty(self):
        assert overall_progress([]) == 0.0

    def test_mastered_threshold_is_inclusive(self):
        mastery = [_mastery("a", 0.8), _mastery("b", 0.79), _mastery("c", 1.0)]
        assert mastered_concepts(mastery, 0.8) == ["a", "c"]
