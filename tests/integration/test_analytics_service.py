"""
Integration tests for AnalyticsService over a temporary SQLite database.

Covers the end-to-end flows: attempt -> mastery, session lifecycle,
diagnostic -> recommendations + learning path, analytics and reports.
"""

import pytest
from conftest import ScriptedGenerator
from pydantic import ValidationError

from learner_analytics.analytics.service import AnalyticsService
from learner_analytics.db.store import (
    AI_RECOMMENDATIONS,
    CHAPTER_DIAGNOSTICS,
    CONCEPT_MASTERY,
    LEARNING_PATHS,
    STUDY_SESSIONS,
)
from learner_analytics.errors import SessionAlreadyClosedError, SessionNotFoundError
from learner_analytics.schemas import (
    BankQuestion,
    DiagnosticOutcome,
    SessionData,
    SessionSummary,
    StudySession,
)


class StaleReadStore:
    """Delegates to a real store but serves one session row as last seen."""

    def __init__(self, store, row):
        self._store = store
        self._row = row

    def get(self, collection, **filters):
        if collection == STUDY_SESSIONS and filters.get("id") == self._row["id"]:
            return dict(self._row)
        return self._store.get(collection, **filters)

    def __getattr__(self, name):
        return getattr(self._store, name)


class TestAttempts:
    def test_attempt_updates_mastery(self, service, store, make_attempt):
        service.record_attempt(make_attempt(is_correct=True, time_taken_seconds=120))
        service.record_attempt(make_attempt(is_correct=False, time_taken_seconds=30))

        row = store.get(CONCEPT_MASTERY, user_id="student-1", chapter_id="algebra-1", concept="solving for x")
        assert row["attempts_count"] == 2
        assert row["correct_attempts"] == 1
        assert row["mastery_level"] == pytest.approx(0.5)
        assert row["time_to_master_minutes"] == 2
        assert row["difficulty_progression"] == ["medium", "medium"]

    def test_interleaved_keys_track_their_own_outcomes(self, service, store, make_attempt):
        script = [
            ("algebra-1", "solving for x", True),
            ("algebra-1", "factoring", False),
            ("geometry-1", "solving for x", False),
            ("algebra-1", "solving for x", True),
            ("geometry-1", "angles", True),
            ("algebra-1", "factoring", True),
            ("algebra-1", "solving for x", False),
            ("geometry-1", "solving for x", False),
            ("algebra-1", "factoring", False),
        ]
        for chapter_id, concept, correct in script:
            service.record_attempt(make_attempt(chapter_id=chapter_id, concept=concept, is_correct=correct))

        rows = store.select(CONCEPT_MASTERY, {"user_id": "student-1"})
        assert len(rows) == 4
        for row in rows:
            key = (row["chapter_id"], row["concept"])
            outcomes = [correct for chapter_id, concept, correct in script if (chapter_id, concept) == key]
            assert row["attempts_count"] == len(outcomes)
            assert row["correct_attempts"] == sum(outcomes)
            assert row["mastery_level"] == pytest.approx(min(1.0, sum(outcomes) / len(outcomes)))

    def test_attempt_gets_timestamp(self, service, clock, make_attempt):
        stored = service.record_attempt(make_attempt())
        assert stored.id
        assert stored.attempted_at == clock.now

    def test_attempt_without_concept_skips_mastery(self, service, store, make_attempt):
        service.record_attempt(make_attempt(concept=None))
        assert store.select(CONCEPT_MASTERY) == []

    def test_invalid_attempts_are_rejected(self, make_attempt):
        with pytest.raises(ValidationError):
            make_attempt(time_taken_seconds=-1)
        with pytest.raises(ValidationError):
            make_attempt(attempts_count=0)
        with pytest.raises(ValidationError):
            make_attempt(confidence_level=6)


class TestSessions:
    def test_start_and_end(self, service, clock):
        session_id = service.start_session(StudySession(user_id="student-1", chapter_id="algebra-1"))
        clock.advance(minutes=25, seconds=40)

        closed = service.end_session(
            session_id,
            SessionSummary(
                questions_attempted=8,
                questions_correct=6,
                concepts_covered=["fractions"],
                session_data=SessionData(coins_earned=12),
            ),
        )

        assert closed.duration_minutes == 25
        assert closed.ended_at == clock.now
        assert closed.questions_correct == 6
        assert closed.session_data.coins_earned == 12

    def test_end_twice_raises(self, service):
        session_id = service.start_session(StudySession(user_id="student-1"))
        service.end_session(session_id)
        with pytest.raises(SessionAlreadyClosedError):
            service.end_session(session_id)

    def test_end_unknown_raises(self, service):
        with pytest.raises(SessionNotFoundError):
            service.end_session("missing")

    def test_close_after_stale_read_raises(self, service, store):
        session_id = service.start_session(StudySession(user_id="student-1"))
        open_row = store.get(STUDY_SESSIONS, id=session_id)
        service.end_session(session_id)

        # Second closer read the row before the first close committed
        service.sessions.store = StaleReadStore(store, open_row)
        with pytest.raises(SessionAlreadyClosedError):
            service.end_session(session_id)
        assert len([r for r in store.select(STUDY_SESSIONS) if r["ended_at"] is not None]) == 1


class TestDiagnostics:
    def test_submit_creates_diagnostic_recommendations_and_path(
        self, service, store, sample_outcomes, sample_bank
    ):
        submission = service.submit_diagnostic("student-1", "algebra-1", sample_outcomes, sample_bank, 14)

        assert submission.diagnostic.id
        assert submission.diagnostic.weaknesses == ["Exponents", "Fractions"]
        assert submission.recommendations[0] == "You scored 5/10! Every step forward is progress."
        assert [r.recommendation_type for r in submission.remediation] == [
            "concept_review",
            "weakness_fix",
            "practice_suggestion",
        ]
        assert submission.learning_path.estimated_completion_days == 17
        assert submission.learning_path.recommended_sequence[0] == "Review Prerequisites"

        assert len(store.select(CHAPTER_DIAGNOSTICS)) == 1
        assert len(store.select(AI_RECOMMENDATIONS)) == 3
        assert len(store.select(LEARNING_PATHS)) == 1

    def test_has_taken_and_latest(self, service, clock, sample_outcomes, sample_bank):
        assert service.has_taken_diagnostic("student-1", "algebra-1") is False
        assert service.get_chapter_diagnostic("student-1", "algebra-1") is None

        service.submit_diagnostic("student-1", "algebra-1", sample_outcomes, sample_bank)
        clock.advance(days=7)
        retake = [o.model_copy(update={"correct": True}) for o in sample_outcomes]
        service.submit_diagnostic("student-1", "algebra-1", retake, sample_bank)

        assert service.has_taken_diagnostic("student-1", "algebra-1") is True
        latest = service.get_chapter_diagnostic("student-1", "algebra-1")
        assert latest.correct_answers == 10
        assert latest.score_percentage == pytest.approx(100.0)
        assert latest.strengths == ["Linear Equations", "Fractions", "Exponents"]
        assert latest.weaknesses == []
        assert latest.knowledge_gaps == []
        assert latest.difficulty_level == "advanced"

        path = service.get_learning_path("student-1", "algebra-1")
        assert path.estimated_completion_days == 7

    def test_diagnostic_reads_back_as_submitted(self, service, sample_outcomes, sample_bank):
        submitted = service.submit_diagnostic("student-1", "algebra-1", sample_outcomes, sample_bank, 14).diagnostic

        stored = service.get_chapter_diagnostic("student-1", "algebra-1")

        assert stored.id == submitted.id
        assert stored.score_percentage == pytest.approx(50.0)
        assert stored.correct_answers == submitted.correct_answers == 5
        assert stored.strengths == submitted.strengths == ["Linear Equations"]
        assert stored.weaknesses == submitted.weaknesses == ["Exponents", "Fractions"]
        assert stored.knowledge_gaps == submitted.knowledge_gaps == ["Exponents"]
        assert stored.prerequisite_concepts == submitted.prerequisite_concepts
        assert stored.time_taken_minutes == 14

    def test_repeated_answers_are_scored_once(self, service):
        bank = [BankQuestion(id="q1", topic="Fractions", concept="adding fractions")]
        outcomes = [DiagnosticOutcome(question_id="q1", correct=True)] * 2

        submission = service.submit_diagnostic("student-1", "algebra-1", outcomes, bank)

        assert submission.diagnostic.correct_answers == 1
        assert submission.diagnostic.score_percentage == pytest.approx(100.0)

    def test_generate_diagnostic_test_without_generator(self, service):
        bank = service.generate_diagnostic_test(9, 12)
        assert len(bank) == 12
        assert len({q.id for q in bank}) == 12

    def test_generated_content_flows_through(self, store, clock, sample_outcomes, sample_bank):
        generator = ScriptedGenerator(
            '["Nice work on equations!"]',
            '[{"type": "concept_review", "recommendation": "Review exponent rules.", "priority": 5}]',
        )
        service = AnalyticsService(store, generator, clock=clock)

        submission = service.submit_diagnostic("student-1", "algebra-1", sample_outcomes, sample_bank)

        assert submission.recommendations == ["Nice work on equations!"]
        assert [r.recommendation_text for r in submission.remediation] == ["Review exponent rules."]


class TestRecommendationStatus:
    def test_update_status(self, service, sample_outcomes, sample_bank):
        submission = service.submit_diagnostic("student-1", "algebra-1", sample_outcomes, sample_bank)
        target = submission.remediation[0]

        updated = service.update_recommendation_status(target.id, "completed")

        assert updated.status == "completed"
        pending = service.get_user_analytics("student-1").recommendations
        assert target.id not in [r.id for r in pending]

    def test_unknown_id(self, service):
        assert service.update_recommendation_status("missing", "dismissed") is None

    def test_invalid_status(self, service):
        with pytest.raises(ValueError):
            service.update_recommendation_status("missing", "archived")


class TestUserAnalytics:
    def test_summary(self, service, clock, make_attempt, sample_outcomes, sample_bank):
        for correct in (True, True, True, True, False):
            service.record_attempt(make_attempt(is_correct=correct))
        service.record_attempt(make_attempt(chapter_id="geometry-1", concept="angles", is_correct=False))
        session_id = service.start_session(StudySession(user_id="student-1"))
        clock.advance(minutes=40)
        service.end_session(session_id)
        service.submit_diagnostic("student-1", "algebra-1", sample_outcomes, sample_bank)

        analytics = service.get_user_analytics("student-1")

        assert analytics.analytics.total_questions == 6
        assert analytics.analytics.correct_answers == 4
        assert analytics.analytics.accuracy == pytest.approx(400 / 6)
        assert analytics.analytics.total_study_time == 40
        assert analytics.analytics.concepts_mastered == 1
        priorities = [r.priority_level for r in analytics.recommendations]
        assert priorities == sorted(priorities, reverse=True)

        scoped = service.get_user_analytics("student-1", "geometry-1")
        assert scoped.analytics.total_questions == 1
        assert len(scoped.mastery) == 2

    def test_empty(self, service):
        analytics = service.get_user_analytics("nobody")
        assert analytics.analytics.total_questions == 0
        assert analytics.analytics.accuracy == 0.0


class TestReports:
    def test_report_via_service(self, service, make_attempt):
        service.record_attempt(make_attempt())
        report = service.generate_progress_report("student-1", "daily")
        assert report.questions_attempted == 1
        assert report.strengths_identified == ["solving for x"]

    def test_unknown_report_type(self, service):
        with pytest.raises(ValueError):
            service.generate_progress_report("student-1", "hourly")
