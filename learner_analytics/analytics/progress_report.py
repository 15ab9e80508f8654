"""
Progress Reports.

Snapshots a learner's activity over a reporting window:

    daily    last 24 hours
    weekly   last 7 days
    monthly  last calendar month
    chapter  last 3 calendar months

Attempts and sessions are limited to the window; mastery covers the full
history. Everything except the narrative insight is computed
deterministically, and the finished report is persisted.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

from loguru import logger

from learner_analytics.analytics.aggregation import (
    accuracy_percentage,
    concept_performance,
    difficulty_progression,
    mastered_concepts,
    overall_progress,
    rank_by_accuracy,
    session_breakdown,
    total_session_minutes,
)
from learner_analytics.db.store import (
    CONCEPT_MASTERY,
    PROGRESS_REPORTS,
    QUESTION_ATTEMPTS,
    STUDY_SESSIONS,
    Store,
    TimeRange,
)
from learner_analytics.generation.prompts import progress_insight_prompt
from learner_analytics.generation.text_generator import ResilientGenerator
from learner_analytics.schemas import (
    ConceptMastery,
    ProgressReport,
    QuestionAttempt,
    ReportData,
    ReportType,
    StudySession,
)
from learner_analytics.thresholds import ClassificationThresholds
from learner_analytics.timeutil import months_before, utcnow

FALLBACK_INSIGHT = (
    "You're making great progress! Keep up the consistent effort "
    "and focus on your areas for improvement."
)


def resolve_window(report_type: ReportType | str, now: datetime) -> tuple[datetime, datetime]:
    """
    Start and end of the reporting window ending at ``now``.

    Raises:
        ValueError: Unknown report type
    """
    try:
        kind = ReportType(report_type)
    except ValueError:
        raise ValueError(f"Unknown report type: {report_type!r}") from None

    if kind is ReportType.DAILY:
        return now - timedelta(days=1), now
    if kind is ReportType.WEEKLY:
        return now - timedelta(days=7), now
    if kind is ReportType.MONTHLY:
        return months_before(now, 1), now
    return months_before(now, 3), now


def progress_recommendations(weaknesses: list[str]) -> list[str]:
    recommendations = [
        "Continue your daily practice routine - consistency is key!",
        "Great job on maintaining focus during study sessions!",
    ]
    if weaknesses:
        focus = weaknesses[0]
        recommendations.append(f"Focus extra attention on {focus} - you're getting there!")
        recommendations.append(f"Try breaking down {focus} into smaller concepts for better understanding")
    return recommendations


class ProgressReportBuilder:
    """Builds and stores progress reports."""

    def __init__(
        self,
        store: Store,
        generator: ResilientGenerator | None = None,
        thresholds: ClassificationThresholds | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.generator = generator or ResilientGenerator(None)
        self.thresholds = thresholds or ClassificationThresholds()
        self.clock = clock

    def _fetch(
        self,
        user_id: str,
        chapter_id: str | None,
        start: datetime,
        end: datetime,
    ) -> tuple[list[QuestionAttempt], list[StudySession], list[ConceptMastery]]:
        """Load window attempts, window sessions and all mastery rows concurrently."""
        filters = {"user_id": user_id}
        if chapter_id is not None:
            filters["chapter_id"] = chapter_id

        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="report-fetch") as pool:
            attempts = pool.submit(
                self.store.select,
                QUESTION_ATTEMPTS,
                filters,
                time_range=TimeRange("attempted_at", start, end),
            )
            sessions = pool.submit(
                self.store.select,
                STUDY_SESSIONS,
                filters,
                time_range=TimeRange("started_at", start, end),
            )
            mastery = pool.submit(self.store.select, CONCEPT_MASTERY, filters)

            return (
                [QuestionAttempt.model_validate(row) for row in attempts.result()],
                [StudySession.model_validate(row) for row in sessions.result()],
                [ConceptMastery.model_validate(row) for row in mastery.result()],
            )

    def build(
        self,
        user_id: str,
        report_type: ReportType | str,
        chapter_id: str | None = None,
    ) -> ProgressReport:
        """
        Build, persist and return a progress report.

        Raises:
            ValueError: Unknown report type (nothing is fetched or stored)
        """
        now = self.clock()
        start, end = resolve_window(report_type, now)
        attempts, sessions, mastery = self._fetch(user_id, chapter_id, start, end)

        concept_stats = concept_performance(attempts)
        accuracy = {concept: stat.accuracy for concept, stat in concept_stats.items()}
        strengths = [c for c, acc in accuracy.items() if acc > self.thresholds.strength]
        weaknesses = rank_by_accuracy(
            [c for c, acc in accuracy.items() if acc < self.thresholds.weakness], accuracy
        )
        mastered = mastered_concepts(mastery, self.thresholds.mastery)
        time_spent = total_session_minutes(sessions)
        overall_accuracy = accuracy_percentage(attempts)

        insight = self.generator.text_or(
            progress_insight_prompt(
                len(attempts), overall_accuracy, time_spent, strengths, weaknesses, mastered
            ),
            FALLBACK_INSIGHT,
            purpose="progress insight",
        )

        report = ProgressReport(
            user_id=user_id,
            report_type=ReportType(report_type),
            report_period_start=start,
            report_period_end=end,
            chapter_id=chapter_id,
            overall_progress=overall_progress(mastery),
            strengths_identified=strengths,
            areas_for_improvement=weaknesses,
            time_spent_minutes=time_spent,
            questions_attempted=len(attempts),
            accuracy_percentage=overall_accuracy,
            concepts_mastered=mastered,
            ai_insights=insight,
            recommendations=progress_recommendations(weaknesses),
            report_data=ReportData(
                concept_stats=concept_stats,
                session_breakdown=session_breakdown(sessions),
                difficulty_progression=difficulty_progression(attempts),
            ),
            created_at=now,
        )
        row = self.store.insert(PROGRESS_REPORTS, report.model_dump(exclude={"id"}))
        logger.info(
            f"{report.report_type} report for {user_id}: {len(attempts)} attempts, "
            f"{overall_accuracy:.1f}% accuracy, {time_spent} min"
        )
        return ProgressReport.model_validate(row)
