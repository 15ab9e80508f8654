"""
Learner Tracking Models.

SQLAlchemy models for the analytics engine:
- Question attempts and study sessions (ground truth)
- Concept mastery (one row per learner/chapter/concept)
- Chapter diagnostics and the recommendations / learning paths derived from them
- Progress report snapshots

Structured payloads use the generic JSON type so the same schema runs on
PostgreSQL and SQLite.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from learner_analytics.timeutil import utcnow

from .base import Base, new_id


class QuestionAttemptRow(Base):
    """One evaluated answer. Rows are inserted, never updated."""

    __tablename__ = "question_attempts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    question_id: Mapped[str] = mapped_column(Text, nullable=False)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(String(16), nullable=False)  # diagnostic, quiz, practice
    chapter_id: Mapped[str | None] = mapped_column(String(64))
    topic: Mapped[str | None] = mapped_column(Text)
    concept: Mapped[str | None] = mapped_column(Text)
    difficulty: Mapped[str] = mapped_column(String(8), default="medium")
    user_answer: Mapped[str] = mapped_column(Text, default="")
    correct_answer: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    time_taken_seconds: Mapped[int] = mapped_column(Integer, default=0)
    hints_used: Mapped[int] = mapped_column(Integer, default=0)
    attempts_count: Mapped[int] = mapped_column(Integer, default=1)
    confidence_level: Mapped[int] = mapped_column(Integer, default=0)  # 1-5 scale, 0 = not reported
    session_id: Mapped[str | None] = mapped_column(String(36))
    attempted_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint("time_taken_seconds >= 0", name="ck_attempt_time_nonnegative"),
        CheckConstraint("attempts_count >= 1", name="ck_attempt_count_positive"),
        Index("idx_attempts_user_time", "user_id", "attempted_at"),
        Index("idx_attempts_user_chapter", "user_id", "chapter_id"),
    )

    def __repr__(self) -> str:
        return f"<QuestionAttemptRow user={self.user_id} question={self.question_id} correct={self.is_correct}>"


class StudySessionRow(Base):
    """A study session: inserted open, closed exactly once."""

    __tablename__ = "study_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    session_type: Mapped[str] = mapped_column(String(16), default="study")  # study, quiz, diagnostic, practice
    chapter_id: Mapped[str | None] = mapped_column(String(64))
    topic: Mapped[str | None] = mapped_column(Text)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=0)
    questions_attempted: Mapped[int] = mapped_column(Integer, default=0)
    questions_correct: Mapped[int] = mapped_column(Integer, default=0)
    concepts_covered: Mapped[list[str]] = mapped_column(JSON, default=list)
    session_data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    __table_args__ = (Index("idx_sessions_user_time", "user_id", "started_at"),)

    def __repr__(self) -> str:
        return f"<StudySessionRow id={self.id} user={self.user_id} type={self.session_type}>"


class ConceptMasteryRow(Base):
    """
    Running accuracy per learner per chapter concept.

    mastery_level = min(1.0, correct_attempts / attempts_count)
    """

    __tablename__ = "concept_mastery"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    chapter_id: Mapped[str] = mapped_column(String(64), nullable=False)
    concept: Mapped[str] = mapped_column(Text, nullable=False)
    mastery_level: Mapped[float] = mapped_column(Float, default=0.0)  # 0.0 to 1.0
    attempts_count: Mapped[int] = mapped_column(Integer, default=0)
    correct_attempts: Mapped[int] = mapped_column(Integer, default=0)
    last_practiced_at: Mapped[datetime | None] = mapped_column(DateTime)
    time_to_master_minutes: Mapped[int] = mapped_column(Integer, default=0)
    difficulty_progression: Mapped[list[str]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "chapter_id", "concept", name="uq_mastery_user_chapter_concept"),
        CheckConstraint("mastery_level >= 0 AND mastery_level <= 1", name="ck_mastery_level_range"),
        CheckConstraint("correct_attempts <= attempts_count", name="ck_mastery_correct_le_attempts"),
    )

    def __repr__(self) -> str:
        return f"<ConceptMasteryRow user={self.user_id} concept={self.concept} mastery={self.mastery_level}>"


class ChapterDiagnosticRow(Base):
    """Completed diagnostic test for a chapter. Immutable after insert."""

    __tablename__ = "chapter_diagnostics"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    chapter_id: Mapped[str] = mapped_column(String(64), nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    correct_answers: Mapped[int] = mapped_column(Integer, nullable=False)
    score_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    time_taken_minutes: Mapped[int] = mapped_column(Integer, default=0)
    strengths: Mapped[list[str]] = mapped_column(JSON, default=list)
    weaknesses: Mapped[list[str]] = mapped_column(JSON, default=list)
    knowledge_gaps: Mapped[list[str]] = mapped_column(JSON, default=list)
    prerequisite_concepts: Mapped[list[str]] = mapped_column(JSON, default=list)
    difficulty_level: Mapped[str] = mapped_column(String(16), default="intermediate")
    raw_responses: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    __table_args__ = (Index("idx_diagnostics_user_chapter", "user_id", "chapter_id"),)


class AIRecommendationRow(Base):
    """Remediation suggestion; status changes with learner interaction."""

    __tablename__ = "ai_recommendations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    recommendation_type: Mapped[str] = mapped_column(String(32), nullable=False)
    chapter_id: Mapped[str | None] = mapped_column(String(64))
    concept: Mapped[str | None] = mapped_column(Text)
    weakness_area: Mapped[str | None] = mapped_column(Text)
    recommendation_text: Mapped[str] = mapped_column(Text, nullable=False)
    study_materials: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    practice_questions: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    estimated_time_minutes: Mapped[int] = mapped_column(Integer, default=0)
    priority_level: Mapped[int] = mapped_column(Integer, default=3)  # 1-5, 5 highest
    status: Mapped[str] = mapped_column(String(16), default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint("priority_level >= 1 AND priority_level <= 5", name="ck_recommendation_priority"),
        Index("idx_recommendations_user_status", "user_id", "status"),
    )


class LearningPathRow(Base):
    """Remediation plan for a learner and chapter; replaced on each diagnostic."""

    __tablename__ = "learning_paths"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    chapter_id: Mapped[str] = mapped_column(String(64), nullable=False)
    path_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    prerequisites: Mapped[list[str]] = mapped_column(JSON, default=list)
    recommended_sequence: Mapped[list[str]] = mapped_column(JSON, default=list)
    estimated_completion_days: Mapped[int] = mapped_column(Integer, default=0)
    current_step: Mapped[int] = mapped_column(Integer, default=0)
    completion_percentage: Mapped[float] = mapped_column(Float, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (UniqueConstraint("user_id", "chapter_id", name="uq_learning_path_user_chapter"),)


class ProgressReportRow(Base):
    """Progress snapshot over a reporting window."""

    __tablename__ = "progress_reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    report_type: Mapped[str] = mapped_column(String(16), nullable=False)  # daily, weekly, monthly, chapter
    report_period_start: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    report_period_end: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    chapter_id: Mapped[str | None] = mapped_column(String(64))
    overall_progress: Mapped[float] = mapped_column(Float, default=0.0)
    strengths_identified: Mapped[list[str]] = mapped_column(JSON, default=list)
    areas_for_improvement: Mapped[list[str]] = mapped_column(JSON, default=list)
    time_spent_minutes: Mapped[int] = mapped_column(Integer, default=0)
    questions_attempted: Mapped[int] = mapped_column(Integer, default=0)
    accuracy_percentage: Mapped[float] = mapped_column(Float, default=0.0)
    concepts_mastered: Mapped[list[str]] = mapped_column(JSON, default=list)
    ai_insights: Mapped[str] = mapped_column(Text, default="")
    recommendations: Mapped[list[str]] = mapped_column(JSON, default=list)
    report_data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    __table_args__ = (Index("idx_reports_user_created", "user_id", "created_at"),)
