"""
Aggregation helpers shared by the diagnostic analyzer and report builder.

All functions are pure: they take validated records and return the typed
report payloads from ``learner_analytics.schemas``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from learner_analytics.schemas import (
    ConceptMastery,
    ConceptStat,
    Difficulty,
    DifficultyStat,
    QuestionAttempt,
    SessionBreakdown,
    SessionDayStat,
    SessionTypeStat,
    StudySession,
)


def percentage(part: int | float, whole: int | float) -> float:
    """100 * part / whole, or 0 when whole is 0."""
    return (part / whole) * 100 if whole else 0.0


def accuracy_percentage(attempts: Sequence[QuestionAttempt]) -> float:
    return percentage(sum(1 for a in attempts if a.is_correct), len(attempts))


def total_session_minutes(sessions: Iterable[StudySession]) -> int:
    return sum(s.duration_minutes or 0 for s in sessions)


def concept_performance(attempts: Iterable[QuestionAttempt]) -> dict[str, ConceptStat]:
    """Per-concept totals, accuracy (%) and average time (seconds)."""
    stats: dict[str, ConceptStat] = {}
    for attempt in attempts:
        if not attempt.concept:
            continue
        stat = stats.setdefault(attempt.concept, ConceptStat())
        stat.total += 1
        if attempt.is_correct:
            stat.correct += 1
        stat.total_time += attempt.time_taken_seconds

    for stat in stats.values():
        stat.accuracy = percentage(stat.correct, stat.total)
        stat.avg_time = stat.total_time / stat.total
    return stats


def rank_by_accuracy(labels: Iterable[str], accuracy: dict[str, float]) -> list[str]:
    """Labels ordered weakest first; ties keep insertion order."""
    return sorted(labels, key=lambda label: accuracy[label])


def session_breakdown(sessions: Sequence[StudySession]) -> SessionBreakdown:
    """Group sessions by type and by calendar day (ISO date of start)."""
    breakdown = SessionBreakdown()
    for session in sessions:
        minutes = session.duration_minutes or 0

        by_type = breakdown.by_type.setdefault(session.session_type, SessionTypeStat())
        by_type.count += 1
        by_type.total_time += minutes

        if session.started_at is not None:
            day = breakdown.by_day.setdefault(session.started_at.date().isoformat(), SessionDayStat())
            day.sessions += 1
            day.total_time += minutes

    if sessions:
        breakdown.avg_duration = total_session_minutes(sessions) / len(sessions)
    return breakdown


def difficulty_progression(attempts: Iterable[QuestionAttempt]) -> dict[str, DifficultyStat]:
    """Attempts and accuracy at each difficulty level."""
    progression = {level.value: DifficultyStat() for level in Difficulty}
    for attempt in attempts:
        stat = progression.get(attempt.difficulty)
        if stat is None:
            continue
        stat.total += 1
        if attempt.is_correct:
            stat.correct += 1

    for stat in progression.values():
        stat.accuracy = percentage(stat.correct, stat.total)
    return progression


def overall_progress(mastery: Sequence[ConceptMastery]) -> float:
    """Mean mastery level scaled to percent (0 with no records)."""
    if not mastery:
        return 0.0
    return sum(m.mastery_level for m in mastery) / len(mastery) * 100


def mastered_concepts(mastery: Iterable[ConceptMastery], threshold: float) -> list[str]:
    return [m.concept for m in mastery if m.mastery_level >= threshold]
