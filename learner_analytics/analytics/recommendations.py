"""
Remediation Recommendations.

Turns a saved diagnostic into stored AIRecommendation rows. The generator is
asked for structured items; each item is validated and clamped, and when
nothing usable comes back a deterministic plan is built from the gaps and
weaknesses instead.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from learner_analytics.db.store import AI_RECOMMENDATIONS, Store
from learner_analytics.generation.prompts import remediation_plan_prompt
from learner_analytics.generation.text_generator import ResilientGenerator
from learner_analytics.schemas import (
    AIRecommendation,
    ChapterDiagnostic,
    PracticeQuestions,
    RecommendationStatus,
    RecommendationType,
    StudyMaterials,
)
from learner_analytics.timeutil import utcnow


class GeneratedRecommendation(BaseModel):
    """One item of a generated remediation plan, after coercion."""

    type: RecommendationType = RecommendationType.WEAKNESS_FIX
    concept: str | None = None
    weakness_area: str | None = None
    recommendation: str = Field(min_length=1)
    study_materials: StudyMaterials = Field(default_factory=StudyMaterials)
    practice_questions: PracticeQuestions = Field(default_factory=PracticeQuestions)
    estimated_time: int = 0
    priority: int = 3

    @field_validator("type", mode="before")
    @classmethod
    def known_type(cls, value: Any) -> RecommendationType:
        try:
            return RecommendationType(value)
        except ValueError:
            return RecommendationType.WEAKNESS_FIX

    @field_validator("recommendation", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("estimated_time", mode="before")
    @classmethod
    def non_negative_time(cls, value: Any) -> int:
        try:
            return max(0, int(value))
        except (TypeError, ValueError):
            return 0

    @field_validator("priority", mode="before")
    @classmethod
    def clamp_priority(cls, value: Any) -> int:
        try:
            return min(5, max(1, int(value)))
        except (TypeError, ValueError):
            return 3

    @field_validator("study_materials", "practice_questions", mode="before")
    @classmethod
    def empty_when_malformed(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}


def coerce_generated(item: Any) -> GeneratedRecommendation | None:
    """Validate one generated item; None drops it."""
    if not isinstance(item, dict):
        return None
    try:
        return GeneratedRecommendation.model_validate(item)
    except ValidationError as e:
        logger.debug(f"Dropping generated recommendation: {e.error_count()} validation errors")
        return None


def fallback_plan(diagnostic: ChapterDiagnostic) -> list[GeneratedRecommendation]:
    """Deterministic plan: review each gap, fix each remaining weakness, keep practicing."""
    plan = [
        GeneratedRecommendation(
            type=RecommendationType.CONCEPT_REVIEW,
            concept=gap,
            weakness_area=gap,
            recommendation=f"Review the fundamentals of {gap} before moving on in this chapter.",
            estimated_time=45,
            priority=5,
        )
        for gap in diagnostic.knowledge_gaps
    ]
    plan.extend(
        GeneratedRecommendation(
            type=RecommendationType.WEAKNESS_FIX,
            concept=weakness,
            weakness_area=weakness,
            recommendation=f"Work through guided examples on {weakness}, then try a short practice set.",
            estimated_time=30,
            priority=4,
        )
        for weakness in diagnostic.weaknesses
        if weakness not in diagnostic.knowledge_gaps
    )
    plan.append(
        GeneratedRecommendation(
            type=RecommendationType.PRACTICE_SUGGESTION,
            recommendation="Keep a short daily practice routine across the chapter's topics.",
            estimated_time=15,
            priority=2,
        )
    )
    return plan


class RecommendationGenerator:
    """Builds and stores remediation recommendations for a diagnostic."""

    def __init__(
        self,
        store: Store,
        generator: ResilientGenerator | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.generator = generator or ResilientGenerator(None)
        self.clock = clock

    def plan(self, diagnostic: ChapterDiagnostic) -> list[GeneratedRecommendation]:
        prompt = remediation_plan_prompt(
            diagnostic.chapter_id,
            diagnostic.score_percentage,
            diagnostic.strengths,
            diagnostic.weaknesses,
            diagnostic.knowledge_gaps,
        )
        return self.generator.json_list_or(
            prompt,
            fallback_plan(diagnostic),
            purpose="remediation plan",
            coerce=coerce_generated,
        )

    def generate(self, diagnostic: ChapterDiagnostic) -> list[AIRecommendation]:
        """Plan and insert recommendations with status pending. Store errors propagate."""
        now = self.clock()
        stored = []
        for item in self.plan(diagnostic):
            record = AIRecommendation(
                user_id=diagnostic.user_id,
                recommendation_type=item.type,
                chapter_id=diagnostic.chapter_id,
                concept=item.concept,
                weakness_area=item.weakness_area,
                recommendation_text=item.recommendation,
                study_materials=item.study_materials,
                practice_questions=item.practice_questions,
                estimated_time_minutes=item.estimated_time,
                priority_level=item.priority,
                status=RecommendationStatus.PENDING,
                created_at=now,
            )
            row = self.store.insert(AI_RECOMMENDATIONS, record.model_dump(exclude={"id"}))
            stored.append(AIRecommendation.model_validate(row))

        logger.info(f"Stored {len(stored)} recommendations for {diagnostic.user_id}/{diagnostic.chapter_id}")
        return stored
