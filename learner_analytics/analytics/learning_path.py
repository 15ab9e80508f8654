"""
Learning Path Planning.

Builds the ordered study sequence for a chapter from its diagnostic and
estimates how many days it will take. One path is kept per
(user, chapter); planning again replaces it and resets progress.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from learner_analytics.db.store import LEARNING_PATHS, Store
from learner_analytics.schemas import ChapterDiagnostic, LearningPath, PathData
from learner_analytics.thresholds import (
    BASE_PATH_DAYS,
    DAYS_PER_GAP,
    DAYS_PER_WEAKNESS,
    LOW_SCORE_EXTRA_DAYS,
    LOW_SCORE_PERCENT,
    MAX_PATH_DAYS,
    MID_SCORE_EXTRA_DAYS,
    MID_SCORE_PERCENT,
)
from learner_analytics.timeutil import utcnow

REVIEW_PREREQUISITES = "Review Prerequisites"
CLOSING_STEPS = ("Core Chapter Concepts", "Advanced Applications", "Chapter Assessment")

PATH_KEY = ("user_id", "chapter_id")


@dataclass
class LearningPlan:
    sequence: list[str] = field(default_factory=list)
    focus_areas: list[str] = field(default_factory=list)
    prerequisite_review: list[str] = field(default_factory=list)
    estimated_days: int = BASE_PATH_DAYS


def learning_sequence(diagnostic: ChapterDiagnostic) -> list[str]:
    steps = []
    if diagnostic.knowledge_gaps:
        steps.append(REVIEW_PREREQUISITES)
        steps.extend(f"Master: {concept}" for concept in diagnostic.prerequisite_concepts)
    for weakness in diagnostic.weaknesses:
        steps.append(f"Focus on: {weakness}")
        steps.append(f"Practice: {weakness} Problems")
    steps.extend(CLOSING_STEPS)
    return steps


def estimate_days(
    weakness_count: int,
    gap_count: int,
    score_percentage: float,
    max_days: int = MAX_PATH_DAYS,
) -> int:
    """Base days plus per-weakness and per-gap days, extra for low scores, capped."""
    days = BASE_PATH_DAYS + DAYS_PER_WEAKNESS * weakness_count + DAYS_PER_GAP * gap_count
    if score_percentage < LOW_SCORE_PERCENT:
        days += LOW_SCORE_EXTRA_DAYS
    elif score_percentage < MID_SCORE_PERCENT:
        days += MID_SCORE_EXTRA_DAYS
    return min(days, max_days)


class LearningPathPlanner:
    """Plans and stores the learning path for a diagnosed chapter."""

    def __init__(
        self,
        store: Store,
        max_days: int = MAX_PATH_DAYS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.max_days = max_days
        self.clock = clock

    def plan(self, diagnostic: ChapterDiagnostic) -> LearningPlan:
        return LearningPlan(
            sequence=learning_sequence(diagnostic),
            focus_areas=list(diagnostic.weaknesses),
            prerequisite_review=list(diagnostic.prerequisite_concepts),
            estimated_days=estimate_days(
                len(diagnostic.weaknesses),
                len(diagnostic.knowledge_gaps),
                diagnostic.score_percentage,
                self.max_days,
            ),
        )

    def save(self, diagnostic: ChapterDiagnostic) -> LearningPath:
        """Plan and upsert the path for (user, chapter). Store errors propagate."""
        plan = self.plan(diagnostic)
        path = LearningPath(
            user_id=diagnostic.user_id,
            chapter_id=diagnostic.chapter_id,
            path_data=PathData(
                diagnostic_results=diagnostic,
                recommended_sequence=plan.sequence,
                focus_areas=plan.focus_areas,
                prerequisite_review=plan.prerequisite_review,
            ),
            prerequisites=plan.prerequisite_review,
            recommended_sequence=plan.sequence,
            estimated_completion_days=plan.estimated_days,
            current_step=0,
            completion_percentage=0.0,
            updated_at=self.clock(),
        )
        row = self.store.upsert(LEARNING_PATHS, path.model_dump(exclude={"id"}), conflict_keys=PATH_KEY)
        logger.info(
            f"Learning path for {diagnostic.user_id}/{diagnostic.chapter_id}: "
            f"{len(plan.sequence)} steps, ~{plan.estimated_days} days"
        )
        return LearningPath.model_validate(row)
