"""
Diagnostic Test Analysis.

Classifies a completed diagnostic by topic accuracy:
- accuracy >= strength threshold (80%)   -> strength
- accuracy <  weakness threshold (60%)   -> weakness
- accuracy <  gap threshold (30%)        -> knowledge gap (also a weakness)

Topics between the weakness and strength thresholds are moderate and not
surfaced. Classification is deterministic; only the recommendation prose
comes from the text generator, with a fixed fallback.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from loguru import logger

from learner_analytics.analytics.aggregation import percentage, rank_by_accuracy
from learner_analytics.generation.prompts import diagnostic_recommendations_prompt
from learner_analytics.generation.text_generator import ResilientGenerator
from learner_analytics.schemas import (
    BankQuestion,
    ChapterDiagnostic,
    DiagnosticOutcome,
    DifficultyTier,
    RawResponse,
)
from learner_analytics.thresholds import (
    BEGINNER_SCORE_MAX,
    INTERMEDIATE_SCORE_MAX,
    ClassificationThresholds,
)


@dataclass
class TopicScore:
    """Correct/total tally for one topic."""

    correct: int = 0
    total: int = 0

    @property
    def accuracy(self) -> float:
        return percentage(self.correct, self.total)


@dataclass
class DiagnosticClassification:
    """Deterministic result of classifying a diagnostic."""

    score: int
    total_questions: int
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    gaps: list[str] = field(default_factory=list)
    prerequisite_concepts: list[str] = field(default_factory=list)
    topic_scores: dict[str, TopicScore] = field(default_factory=dict)
    responses: list[RawResponse] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @property
    def score_percentage(self) -> float:
        return percentage(self.score, self.total_questions)

    @property
    def difficulty_level(self) -> DifficultyTier:
        return difficulty_tier(self.score_percentage)


def difficulty_tier(score_percentage: float) -> DifficultyTier:
    """Place a learner on the beginner / intermediate / advanced tier."""
    if score_percentage < BEGINNER_SCORE_MAX:
        return DifficultyTier.BEGINNER
    if score_percentage < INTERMEDIATE_SCORE_MAX:
        return DifficultyTier.INTERMEDIATE
    return DifficultyTier.ADVANCED


def fallback_recommendations(score: int, total: int, weaknesses: Sequence[str]) -> list[str]:
    """Fixed recommendations used whenever generated ones are unavailable."""
    recommendations = [
        f"You scored {score}/{total}! Every step forward is progress.",
        "Focus on daily practice - even 15 minutes makes a difference!",
    ]
    if weaknesses:
        recommendations.append(f"Let's work on {weaknesses[0]} together - you've got this!")
    return recommendations


def _as_recommendation(item: object) -> str | None:
    if isinstance(item, str) and item.strip():
        return item.strip()
    return None


class DiagnosticAnalyzer:
    """Turns diagnostic outcomes into strengths, weaknesses, gaps and recommendations."""

    def __init__(
        self,
        generator: ResilientGenerator | None = None,
        thresholds: ClassificationThresholds | None = None,
    ):
        self.generator = generator or ResilientGenerator(None)
        self.thresholds = thresholds or ClassificationThresholds()

    def _match(
        self,
        outcomes: Sequence[DiagnosticOutcome],
        question_bank: Sequence[BankQuestion],
    ) -> list[tuple[DiagnosticOutcome, BankQuestion]]:
        """
        Pair outcomes with questions by id; outcomes without an id pair by position.

        Each question counts once. A repeated answer replaces the earlier one.
        """
        by_id = {q.id: q for q in question_bank}
        pairs: dict[str, tuple[DiagnosticOutcome, BankQuestion]] = {}
        for index, outcome in enumerate(outcomes):
            if outcome.question_id is not None:
                question = by_id.get(outcome.question_id)
                if question is None:
                    logger.warning(f"Diagnostic outcome for unknown question {outcome.question_id}; skipped")
                    continue
            elif index < len(question_bank):
                question = question_bank[index]
            else:
                logger.warning(f"Diagnostic outcome #{index} has no id and no matching question; skipped")
                continue
            if question.id in pairs:
                logger.warning(f"Duplicate diagnostic outcome for question {question.id}; keeping the last one")
            pairs[question.id] = (outcome, question)
        return list(pairs.values())

    def classify(
        self,
        outcomes: Sequence[DiagnosticOutcome],
        question_bank: Sequence[BankQuestion],
    ) -> DiagnosticClassification:
        """
        Classify topics without consulting the text generator.

        Weaknesses and gaps are ordered weakest first, so the first entry is
        the highest-impact one.
        """
        pairs = self._match(outcomes, question_bank)

        topic_scores: dict[str, TopicScore] = {}
        responses = []
        for outcome, question in pairs:
            tally = topic_scores.setdefault(question.topic, TopicScore())
            tally.total += 1
            if outcome.correct:
                tally.correct += 1
            responses.append(
                RawResponse(
                    question_id=question.id,
                    answer=outcome.answer,
                    correct=outcome.correct,
                    topic=question.topic,
                    concept=question.concept,
                    difficulty=question.difficulty,
                )
            )

        accuracy = {topic: tally.accuracy for topic, tally in topic_scores.items()}
        strengths = [t for t, acc in accuracy.items() if acc >= self.thresholds.strength]
        weaknesses = [t for t, acc in accuracy.items() if acc < self.thresholds.weakness and t not in strengths]
        gaps = [t for t, acc in accuracy.items() if acc < self.thresholds.gap]

        gap_concepts: list[str] = []
        for outcome, question in pairs:
            if question.topic in gaps and question.concept not in gap_concepts:
                gap_concepts.append(question.concept)

        return DiagnosticClassification(
            score=sum(1 for outcome, _ in pairs if outcome.correct),
            total_questions=len(question_bank),
            strengths=strengths,
            weaknesses=rank_by_accuracy(weaknesses, accuracy),
            gaps=rank_by_accuracy(gaps, accuracy),
            prerequisite_concepts=gap_concepts,
            topic_scores=topic_scores,
            responses=responses,
        )

    def recommend(self, classification: DiagnosticClassification) -> list[str]:
        """Generated recommendation strings, or the fixed fallback list."""
        fallback = fallback_recommendations(
            classification.score, classification.total_questions, classification.weaknesses
        )
        prompt = diagnostic_recommendations_prompt(
            classification.score,
            classification.total_questions,
            classification.strengths,
            classification.weaknesses,
            classification.gaps,
        )
        return self.generator.json_list_or(
            prompt, fallback, purpose="diagnostic recommendations", coerce=_as_recommendation
        )

    def analyze(
        self,
        outcomes: Sequence[DiagnosticOutcome],
        question_bank: Sequence[BankQuestion],
    ) -> DiagnosticClassification:
        """Classify, then attach recommendations. Never raises on generator failure."""
        classification = self.classify(outcomes, question_bank)
        classification.recommendations = self.recommend(classification)
        logger.info(
            f"Diagnostic analyzed: {classification.score}/{classification.total_questions}, "
            f"{len(classification.strengths)} strengths, {len(classification.weaknesses)} weaknesses, "
            f"{len(classification.gaps)} gaps"
        )
        return classification

    @staticmethod
    def to_diagnostic(
        classification: DiagnosticClassification,
        user_id: str,
        chapter_id: str,
        time_taken_minutes: int = 0,
    ) -> ChapterDiagnostic:
        """Build the ChapterDiagnostic record for a classified test."""
        return ChapterDiagnostic(
            user_id=user_id,
            chapter_id=chapter_id,
            total_questions=classification.total_questions,
            correct_answers=classification.score,
            score_percentage=classification.score_percentage,
            time_taken_minutes=time_taken_minutes,
            strengths=classification.strengths,
            weaknesses=classification.weaknesses,
            knowledge_gaps=classification.gaps,
            prerequisite_concepts=classification.prerequisite_concepts,
            difficulty_level=classification.difficulty_level,
            raw_responses=classification.responses,
        )
