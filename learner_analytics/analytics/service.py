"""
Analytics Service.

Single entry point for the API and CLI. Wires the recorders, analyzers and
planners to one Store and one text generator:

- Tracking: record_attempt, start_session, end_session
- Diagnostics: generate_diagnostic_test, submit_diagnostic, save_diagnostic,
  has_taken_diagnostic, get_chapter_diagnostic
- Remediation: get_learning_path, update_recommendation_status
- Reporting: get_user_analytics, generate_progress_report
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from config import Settings, get_settings
from learner_analytics.analytics.aggregation import accuracy_percentage, total_session_minutes
from learner_analytics.analytics.attempts import AttemptRecorder
from learner_analytics.analytics.diagnostic import DiagnosticAnalyzer
from learner_analytics.analytics.learning_path import LearningPathPlanner
from learner_analytics.analytics.mastery import MasteryUpdater
from learner_analytics.analytics.progress_report import ProgressReportBuilder
from learner_analytics.analytics.question_bank import DEFAULT_QUESTION_COUNT, DiagnosticTestGenerator
from learner_analytics.analytics.recommendations import RecommendationGenerator
from learner_analytics.analytics.sessions import SessionTracker
from learner_analytics.db.store import (
    AI_RECOMMENDATIONS,
    CHAPTER_DIAGNOSTICS,
    CONCEPT_MASTERY,
    LEARNING_PATHS,
    QUESTION_ATTEMPTS,
    STUDY_SESSIONS,
    SqlStore,
    Store,
)
from learner_analytics.generation.text_generator import (
    ResilientGenerator,
    TextGenerator,
    build_text_generator,
)
from learner_analytics.schemas import (
    AIRecommendation,
    AnalyticsSummary,
    BankQuestion,
    ChapterDiagnostic,
    ConceptMastery,
    DiagnosticOutcome,
    LearningPath,
    ProgressReport,
    QuestionAttempt,
    RecommendationStatus,
    ReportType,
    SessionSummary,
    StudySession,
    UserAnalytics,
)
from learner_analytics.thresholds import ClassificationThresholds
from learner_analytics.timeutil import utcnow


@dataclass
class SavedDiagnostic:
    """A stored diagnostic with the remediation derived from it."""

    diagnostic: ChapterDiagnostic
    remediation: list[AIRecommendation] = field(default_factory=list)
    learning_path: LearningPath | None = None


@dataclass
class DiagnosticSubmission(SavedDiagnostic):
    """Result of submitting answers: the saved diagnostic plus learner-facing advice."""

    recommendations: list[str] = field(default_factory=list)


class AnalyticsService:
    """Learner analytics operations over a Store."""

    def __init__(
        self,
        store: Store,
        generator: TextGenerator | ResilientGenerator | None = None,
        thresholds: ClassificationThresholds | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the service.

        Args:
            store: Persistence collaborator
            generator: Text generator for advisory content; None means always fall back
            thresholds: Classification thresholds (defaults to the module constants)
            clock: Source of "now" (naive UTC)
        """
        self.store = store
        self.generator = generator if isinstance(generator, ResilientGenerator) else ResilientGenerator(generator)
        self.thresholds = thresholds or ClassificationThresholds()
        self.clock = clock

        self.mastery = MasteryUpdater(store, clock=clock)
        self.attempts = AttemptRecorder(store, self.mastery, clock=clock)
        self.sessions = SessionTracker(store, clock=clock)
        self.question_bank = DiagnosticTestGenerator(self.generator)
        self.analyzer = DiagnosticAnalyzer(self.generator, self.thresholds)
        self.recommender = RecommendationGenerator(store, self.generator, clock=clock)
        self.planner = LearningPathPlanner(store, max_days=self.thresholds.max_path_days, clock=clock)
        self.reports = ProgressReportBuilder(store, self.generator, self.thresholds, clock=clock)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> AnalyticsService:
        """Service backed by the configured database and text generator."""
        settings = settings or get_settings()
        return cls(
            SqlStore(),
            build_text_generator(settings),
            ClassificationThresholds.from_settings(settings),
        )

    # =========================================================================
    # Tracking
    # =========================================================================

    def record_attempt(self, attempt: QuestionAttempt) -> QuestionAttempt:
        return self.attempts.record(attempt)

    def start_session(self, session: StudySession) -> str:
        """Open a study session and return its id."""
        return self.sessions.start(session).id

    def end_session(self, session_id: str, summary: SessionSummary | None = None) -> StudySession:
        return self.sessions.end(session_id, summary)

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def generate_diagnostic_test(self, class_level: int, count: int = DEFAULT_QUESTION_COUNT) -> list[BankQuestion]:
        """Question bank for a diagnostic; the fixed bank when generation is unavailable."""
        return self.question_bank.generate(class_level, count)

    def save_diagnostic(self, diagnostic: ChapterDiagnostic) -> SavedDiagnostic:
        """
        Persist a diagnostic, then generate its recommendations and learning path.

        All three writes are ground truth; a failure in any of them propagates.
        """
        payload = diagnostic.model_dump(exclude={"id"})
        if payload["created_at"] is None:
            payload["created_at"] = self.clock()
        stored = ChapterDiagnostic.model_validate(self.store.insert(CHAPTER_DIAGNOSTICS, payload))
        logger.info(
            f"Saved diagnostic {stored.id} for {stored.user_id}/{stored.chapter_id} "
            f"({stored.score_percentage:.0f}%)"
        )

        remediation = self.recommender.generate(stored)
        path = self.planner.save(stored)
        return SavedDiagnostic(diagnostic=stored, remediation=remediation, learning_path=path)

    def submit_diagnostic(
        self,
        user_id: str,
        chapter_id: str,
        outcomes: Sequence[DiagnosticOutcome],
        question_bank: Sequence[BankQuestion],
        time_taken_minutes: int = 0,
    ) -> DiagnosticSubmission:
        """Analyze answers against the question bank and save the resulting diagnostic."""
        classification = self.analyzer.analyze(outcomes, question_bank)
        diagnostic = self.analyzer.to_diagnostic(classification, user_id, chapter_id, time_taken_minutes)
        saved = self.save_diagnostic(diagnostic)
        return DiagnosticSubmission(
            diagnostic=saved.diagnostic,
            remediation=saved.remediation,
            learning_path=saved.learning_path,
            recommendations=classification.recommendations,
        )

    def has_taken_diagnostic(self, user_id: str, chapter_id: str) -> bool:
        return self.store.get(CHAPTER_DIAGNOSTICS, user_id=user_id, chapter_id=chapter_id) is not None

    def get_chapter_diagnostic(self, user_id: str, chapter_id: str) -> ChapterDiagnostic | None:
        """Latest diagnostic for the chapter, or None."""
        rows = self.store.select(
            CHAPTER_DIAGNOSTICS,
            {"user_id": user_id, "chapter_id": chapter_id},
            order_by="created_at",
        )
        return ChapterDiagnostic.model_validate(rows[0]) if rows else None

    # =========================================================================
    # Remediation
    # =========================================================================

    def get_learning_path(self, user_id: str, chapter_id: str) -> LearningPath | None:
        row = self.store.get(LEARNING_PATHS, user_id=user_id, chapter_id=chapter_id)
        return LearningPath.model_validate(row) if row is not None else None

    def update_recommendation_status(
        self,
        recommendation_id: str,
        status: RecommendationStatus | str,
    ) -> AIRecommendation | None:
        """Store a new status verbatim. Returns None for an unknown id."""
        status = RecommendationStatus(status)
        row = self.store.update(AI_RECOMMENDATIONS, recommendation_id, {"status": status.value})
        if row is None:
            logger.warning(f"Recommendation {recommendation_id} not found")
            return None
        return AIRecommendation.model_validate(row)

    # =========================================================================
    # Reporting
    # =========================================================================

    def get_user_analytics(self, user_id: str, chapter_id: str | None = None) -> UserAnalytics:
        """
        Everything known about a learner, with summary figures.

        ``chapter_id`` narrows the attempt history only; sessions, mastery and
        pending recommendations always cover every chapter.
        """
        attempt_filters = {"user_id": user_id}
        if chapter_id is not None:
            attempt_filters["chapter_id"] = chapter_id

        attempts = [
            QuestionAttempt.model_validate(row)
            for row in self.store.select(QUESTION_ATTEMPTS, attempt_filters, order_by="attempted_at")
        ]
        sessions = [
            StudySession.model_validate(row)
            for row in self.store.select(STUDY_SESSIONS, {"user_id": user_id}, order_by="started_at")
        ]
        mastery = [
            ConceptMastery.model_validate(row)
            for row in self.store.select(CONCEPT_MASTERY, {"user_id": user_id})
        ]
        recommendations = [
            AIRecommendation.model_validate(row)
            for row in self.store.select(
                AI_RECOMMENDATIONS,
                {"user_id": user_id, "status": RecommendationStatus.PENDING.value},
                order_by="priority_level",
            )
        ]

        return UserAnalytics(
            attempts=attempts,
            sessions=sessions,
            mastery=mastery,
            recommendations=recommendations,
            analytics=AnalyticsSummary(
                total_questions=len(attempts),
                correct_answers=sum(1 for a in attempts if a.is_correct),
                accuracy=accuracy_percentage(attempts),
                total_study_time=total_session_minutes(sessions),
                concepts_mastered=sum(1 for m in mastery if m.mastery_level >= self.thresholds.mastery),
            ),
        )

    def generate_progress_report(
        self,
        user_id: str,
        report_type: ReportType | str,
        chapter_id: str | None = None,
    ) -> ProgressReport:
        return self.reports.build(user_id, report_type, chapter_id)
