"""
Learner Analytics API Router.

Endpoints:
- Tracking: record attempts, open and close study sessions
- Diagnostics: generate a test, submit answers, fetch the latest result, check completion
- Remediation: learning paths, recommendation status
- Reporting: learner analytics, progress reports
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from learner_analytics.analytics.service import AnalyticsService
from learner_analytics.errors import SessionAlreadyClosedError, SessionNotFoundError
from learner_analytics.schemas import (
    AIRecommendation,
    BankQuestion,
    ChapterDiagnostic,
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

router = APIRouter()


def get_service(request: Request) -> AnalyticsService:
    return request.app.state.service


# ========================================
# Request/Response Models
# ========================================


class SessionStartResponse(BaseModel):
    session_id: str


class DiagnosticTestRequest(BaseModel):
    class_level: int = Field(..., ge=1, le=12)
    question_count: int = Field(30, ge=1, le=60)


class DiagnosticSubmitRequest(BaseModel):
    """Answers to a chapter diagnostic plus the questions they answer."""

    user_id: str
    chapter_id: str
    outcomes: list[DiagnosticOutcome]
    question_bank: list[BankQuestion] = Field(..., min_length=1)
    time_taken_minutes: int = Field(0, ge=0)


class DiagnosticSubmitResponse(BaseModel):
    diagnostic: ChapterDiagnostic
    recommendations: list[str]
    remediation: list[AIRecommendation]
    learning_path: LearningPath | None


class DiagnosticExistsResponse(BaseModel):
    user_id: str
    chapter_id: str
    taken: bool


class ReportRequest(BaseModel):
    report_type: ReportType
    chapter_id: str | None = None


class RecommendationStatusRequest(BaseModel):
    status: RecommendationStatus


# ========================================
# Tracking
# ========================================


@router.post("/attempts", response_model=QuestionAttempt, status_code=201, summary="Record question attempt")
def record_attempt(
    attempt: QuestionAttempt,
    service: AnalyticsService = Depends(get_service),
) -> QuestionAttempt:
    return service.record_attempt(attempt)


@router.post("/sessions", response_model=SessionStartResponse, status_code=201, summary="Start study session")
def start_session(
    session: StudySession,
    service: AnalyticsService = Depends(get_service),
) -> SessionStartResponse:
    return SessionStartResponse(session_id=service.start_session(session))


@router.post("/sessions/{session_id}/end", response_model=StudySession, summary="End study session")
def end_session(
    session_id: str,
    summary: SessionSummary | None = None,
    service: AnalyticsService = Depends(get_service),
) -> StudySession:
    try:
        return service.end_session(session_id, summary)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except SessionAlreadyClosedError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


# ========================================
# Diagnostics
# ========================================


@router.post(
    "/diagnostics/tests",
    response_model=list[BankQuestion],
    summary="Generate diagnostic test",
)
def generate_diagnostic_test(
    request: DiagnosticTestRequest,
    service: AnalyticsService = Depends(get_service),
) -> list[BankQuestion]:
    """Question bank for a class level. Falls back to a fixed bank, never fails on generation."""
    return service.generate_diagnostic_test(request.class_level, request.question_count)


@router.post(
    "/diagnostics",
    response_model=DiagnosticSubmitResponse,
    status_code=201,
    summary="Submit chapter diagnostic",
)
def submit_diagnostic(
    request: DiagnosticSubmitRequest,
    service: AnalyticsService = Depends(get_service),
) -> DiagnosticSubmitResponse:
    """
    Classify the answers, store the diagnostic, and derive recommendations
    and a learning path from it.
    """
    logger.info(f"Diagnostic submitted by {request.user_id} for chapter {request.chapter_id}")
    submission = service.submit_diagnostic(
        request.user_id,
        request.chapter_id,
        request.outcomes,
        request.question_bank,
        request.time_taken_minutes,
    )
    return DiagnosticSubmitResponse(
        diagnostic=submission.diagnostic,
        recommendations=submission.recommendations,
        remediation=submission.remediation,
        learning_path=submission.learning_path,
    )


@router.get(
    "/users/{user_id}/diagnostics/{chapter_id}",
    response_model=ChapterDiagnostic,
    summary="Latest chapter diagnostic",
)
def get_chapter_diagnostic(
    user_id: str,
    chapter_id: str,
    service: AnalyticsService = Depends(get_service),
) -> ChapterDiagnostic:
    diagnostic = service.get_chapter_diagnostic(user_id, chapter_id)
    if diagnostic is None:
        raise HTTPException(status_code=404, detail="Diagnostic not found")
    return diagnostic


@router.get(
    "/users/{user_id}/diagnostics/{chapter_id}/exists",
    response_model=DiagnosticExistsResponse,
    summary="Has the learner taken this diagnostic",
)
def diagnostic_exists(
    user_id: str,
    chapter_id: str,
    service: AnalyticsService = Depends(get_service),
) -> DiagnosticExistsResponse:
    return DiagnosticExistsResponse(
        user_id=user_id,
        chapter_id=chapter_id,
        taken=service.has_taken_diagnostic(user_id, chapter_id),
    )


# ========================================
# Remediation
# ========================================


@router.get(
    "/users/{user_id}/learning-paths/{chapter_id}",
    response_model=LearningPath,
    summary="Learning path for a chapter",
)
def get_learning_path(
    user_id: str,
    chapter_id: str,
    service: AnalyticsService = Depends(get_service),
) -> LearningPath:
    path = service.get_learning_path(user_id, chapter_id)
    if path is None:
        raise HTTPException(status_code=404, detail="Learning path not found")
    return path


@router.patch(
    "/recommendations/{recommendation_id}",
    response_model=AIRecommendation,
    summary="Update recommendation status",
)
def update_recommendation_status(
    recommendation_id: str,
    request: RecommendationStatusRequest,
    service: AnalyticsService = Depends(get_service),
) -> AIRecommendation:
    recommendation = service.update_recommendation_status(recommendation_id, request.status)
    if recommendation is None:
        raise HTTPException(status_code=404, detail="Recommendation not found")
    return recommendation


# ========================================
# Reporting
# ========================================


@router.get("/users/{user_id}/analytics", response_model=UserAnalytics, summary="Learner analytics")
def get_user_analytics(
    user_id: str,
    chapter_id: str | None = None,
    service: AnalyticsService = Depends(get_service),
) -> UserAnalytics:
    return service.get_user_analytics(user_id, chapter_id)


@router.post(
    "/users/{user_id}/reports",
    response_model=ProgressReport,
    status_code=201,
    summary="Generate progress report",
)
def generate_report(
    user_id: str,
    request: ReportRequest,
    service: AnalyticsService = Depends(get_service),
) -> ProgressReport:
    try:
        return service.generate_progress_report(user_id, request.report_type, request.chapter_id)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
