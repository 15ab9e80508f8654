"""
Domain Records and Typed Payloads.

Pydantic models for every record the engine reads or writes. Structured
payloads (session data, raw diagnostic responses, study materials, report
data) are explicit models rather than open dicts so they can be validated
and tested on their own.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from learner_analytics.timeutil import as_naive_utc

# ============================================================================
# Enumerations
# ============================================================================


class AttemptKind(str, Enum):
    DIAGNOSTIC = "diagnostic"
    QUIZ = "quiz"
    PRACTICE = "practice"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class SessionKind(str, Enum):
    STUDY = "study"
    QUIZ = "quiz"
    DIAGNOSTIC = "diagnostic"
    PRACTICE = "practice"


class DifficultyTier(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class RecommendationType(str, Enum):
    WEAKNESS_FIX = "weakness_fix"
    CONCEPT_REVIEW = "concept_review"
    PRACTICE_SUGGESTION = "practice_suggestion"


class RecommendationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DISMISSED = "dismissed"


class ReportType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CHAPTER = "chapter"


class Record(BaseModel):
    """Base for stored records: enum fields are kept as plain strings."""

    model_config = ConfigDict(use_enum_values=True, validate_default=True, from_attributes=True)


UtcTimestamp = Annotated[datetime, AfterValidator(as_naive_utc)]


# ============================================================================
# Attempts & Sessions
# ============================================================================


class QuestionAttempt(Record):
    """One evaluated answer. Insert-only."""

    id: str | None = None
    user_id: str
    question_id: str
    question_text: str
    question_type: AttemptKind
    chapter_id: str | None = None
    topic: str | None = None
    concept: str | None = None
    difficulty: Difficulty = Difficulty.MEDIUM
    user_answer: str = ""
    correct_answer: str
    is_correct: bool
    time_taken_seconds: int = Field(default=0, ge=0)
    hints_used: int = Field(default=0, ge=0)
    attempts_count: int = Field(default=1, ge=1)
    # 0 = not reported, otherwise 1-5
    confidence_level: int = Field(default=0, ge=0, le=5)
    session_id: str | None = None
    attempted_at: UtcTimestamp | None = None


class SessionData(BaseModel):
    """Structured payload attached to a study session."""

    question_ids: list[str] = Field(default_factory=list)
    hints_used: int = Field(default=0, ge=0)
    coins_earned: int = Field(default=0, ge=0)
    notes: str | None = None


class StudySession(Record):
    """A bounded window of study activity."""

    id: str | None = None
    user_id: str
    session_type: SessionKind = SessionKind.STUDY
    chapter_id: str | None = None
    topic: str | None = None
    started_at: UtcTimestamp | None = None
    ended_at: UtcTimestamp | None = None
    duration_minutes: int = Field(default=0, ge=0)
    questions_attempted: int = Field(default=0, ge=0)
    questions_correct: int = Field(default=0, ge=0)
    concepts_covered: list[str] = Field(default_factory=list)
    session_data: SessionData = Field(default_factory=SessionData)

    @property
    def is_closed(self) -> bool:
        return self.ended_at is not None


class SessionSummary(BaseModel):
    """Counters supplied when a session is closed."""

    questions_attempted: int = Field(default=0, ge=0)
    questions_correct: int = Field(default=0, ge=0)
    concepts_covered: list[str] = Field(default_factory=list)
    session_data: SessionData | None = None


# ============================================================================
# Mastery
# ============================================================================


class ConceptMastery(Record):
    """Running accuracy for one (user, chapter, concept)."""

    id: str | None = None
    user_id: str
    chapter_id: str
    concept: str
    mastery_level: float = Field(default=0.0, ge=0.0, le=1.0)
    attempts_count: int = Field(default=0, ge=0)
    correct_attempts: int = Field(default=0, ge=0)
    last_practiced_at: datetime | None = None
    time_to_master_minutes: int = Field(default=0, ge=0)
    difficulty_progression: list[str] = Field(default_factory=list)


# ============================================================================
# Diagnostics
# ============================================================================


class DiagnosticOutcome(BaseModel):
    """Pass/fail result for one diagnostic question."""

    question_id: str | None = None
    answer: str = ""
    correct: bool


class BankQuestion(Record):
    """Diagnostic question; only id, topic and concept matter for classification."""

    id: str
    topic: str
    concept: str
    difficulty: Difficulty = Difficulty.MEDIUM
    question: str = ""
    options: list[str] = Field(default_factory=list)
    correct_answer: str = ""
    explanation: str = ""


class RawResponse(BaseModel):
    """Per-question response retained on a diagnostic for audit."""

    question_id: str
    answer: str = ""
    correct: bool
    topic: str | None = None
    concept: str | None = None
    difficulty: str | None = None


class ChapterDiagnostic(Record):
    """Result of one completed diagnostic test for a chapter."""

    id: str | None = None
    user_id: str
    chapter_id: str
    total_questions: int = Field(ge=0)
    correct_answers: int = Field(ge=0)
    score_percentage: float = Field(ge=0.0, le=100.0)
    time_taken_minutes: int = Field(default=0, ge=0)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    knowledge_gaps: list[str] = Field(default_factory=list)
    prerequisite_concepts: list[str] = Field(default_factory=list)
    difficulty_level: DifficultyTier = DifficultyTier.INTERMEDIATE
    raw_responses: list[RawResponse] = Field(default_factory=list)
    created_at: datetime | None = None


# ============================================================================
# Recommendations & Learning Paths
# ============================================================================


class StudyMaterials(BaseModel):
    videos: list[str] = Field(default_factory=list)
    exercises: list[str] = Field(default_factory=list)
    explanations: list[str] = Field(default_factory=list)


class PracticeQuestions(BaseModel):
    easy: list[str] = Field(default_factory=list)
    medium: list[str] = Field(default_factory=list)
    hard: list[str] = Field(default_factory=list)


class AIRecommendation(Record):
    """A remediation suggestion derived from a diagnostic."""

    id: str | None = None
    user_id: str
    recommendation_type: RecommendationType
    chapter_id: str | None = None
    concept: str | None = None
    weakness_area: str | None = None
    recommendation_text: str
    study_materials: StudyMaterials = Field(default_factory=StudyMaterials)
    practice_questions: PracticeQuestions = Field(default_factory=PracticeQuestions)
    estimated_time_minutes: int = Field(default=0, ge=0)
    priority_level: int = Field(default=3, ge=1, le=5)
    status: RecommendationStatus = RecommendationStatus.PENDING
    created_at: datetime | None = None


class PathData(BaseModel):
    """Full payload stored on a learning path."""

    diagnostic_results: ChapterDiagnostic
    recommended_sequence: list[str] = Field(default_factory=list)
    focus_areas: list[str] = Field(default_factory=list)
    prerequisite_review: list[str] = Field(default_factory=list)


class LearningPath(Record):
    """Replaceable remediation plan for one (user, chapter)."""

    id: str | None = None
    user_id: str
    chapter_id: str
    path_data: PathData
    prerequisites: list[str] = Field(default_factory=list)
    recommended_sequence: list[str] = Field(default_factory=list)
    estimated_completion_days: int = Field(ge=0)
    current_step: int = Field(default=0, ge=0)
    completion_percentage: float = Field(default=0.0, ge=0.0, le=100.0)
    updated_at: datetime | None = None


# ============================================================================
# Progress Reports
# ============================================================================


class ConceptStat(BaseModel):
    total: int = 0
    correct: int = 0
    total_time: int = 0
    accuracy: float = 0.0
    avg_time: float = 0.0


class SessionTypeStat(BaseModel):
    count: int = 0
    total_time: int = 0


class SessionDayStat(BaseModel):
    sessions: int = 0
    total_time: int = 0


class SessionBreakdown(BaseModel):
    by_type: dict[str, SessionTypeStat] = Field(default_factory=dict)
    by_day: dict[str, SessionDayStat] = Field(default_factory=dict)
    avg_duration: float = 0.0


class DifficultyStat(BaseModel):
    total: int = 0
    correct: int = 0
    accuracy: float = 0.0


class ReportData(BaseModel):
    concept_stats: dict[str, ConceptStat] = Field(default_factory=dict)
    session_breakdown: SessionBreakdown = Field(default_factory=SessionBreakdown)
    difficulty_progression: dict[str, DifficultyStat] = Field(default_factory=dict)


class ProgressReport(Record):
    """Point-in-time progress snapshot over a window. Never mutated."""

    id: str | None = None
    user_id: str
    report_type: ReportType
    report_period_start: datetime
    report_period_end: datetime
    chapter_id: str | None = None
    overall_progress: float = 0.0
    strengths_identified: list[str] = Field(default_factory=list)
    areas_for_improvement: list[str] = Field(default_factory=list)
    time_spent_minutes: int = 0
    questions_attempted: int = 0
    accuracy_percentage: float = 0.0
    concepts_mastered: list[str] = Field(default_factory=list)
    ai_insights: str = ""
    recommendations: list[str] = Field(default_factory=list)
    report_data: ReportData = Field(default_factory=ReportData)
    created_at: datetime | None = None


# ============================================================================
# Analytics Overview
# ============================================================================


class AnalyticsSummary(BaseModel):
    total_questions: int = 0
    correct_answers: int = 0
    accuracy: float = 0.0
    total_study_time: int = 0
    concepts_mastered: int = 0


class UserAnalytics(BaseModel):
    attempts: list[QuestionAttempt] = Field(default_factory=list)
    sessions: list[StudySession] = Field(default_factory=list)
    mastery: list[ConceptMastery] = Field(default_factory=list)
    recommendations: list[AIRecommendation] = Field(default_factory=list)
    analytics: AnalyticsSummary = Field(default_factory=AnalyticsSummary)
