# SQLAlchemy models
from .base import Base, new_id
from .tracking import (
    AIRecommendationRow,
    ChapterDiagnosticRow,
    ConceptMasteryRow,
    LearningPathRow,
    ProgressReportRow,
    QuestionAttemptRow,
    StudySessionRow,
)

__all__ = [
    "AIRecommendationRow",
    "Base",
    "ChapterDiagnosticRow",
    "ConceptMasteryRow",
    "LearningPathRow",
    "ProgressReportRow",
    "QuestionAttemptRow",
    "StudySessionRow",
    "new_id",
]
