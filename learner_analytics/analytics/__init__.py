"""Learner analytics: attempt tracking, mastery, diagnostics, learning paths and reports."""

from learner_analytics.analytics.diagnostic import DiagnosticAnalyzer, DiagnosticClassification
from learner_analytics.analytics.learning_path import LearningPathPlanner, LearningPlan, estimate_days
from learner_analytics.analytics.mastery import MasteryUpdater
from learner_analytics.analytics.progress_report import ProgressReportBuilder, resolve_window
from learner_analytics.analytics.question_bank import DiagnosticTestGenerator, fallback_bank
from learner_analytics.analytics.recommendations import RecommendationGenerator
from learner_analytics.analytics.service import AnalyticsService, DiagnosticSubmission, SavedDiagnostic

__all__ = [
    "AnalyticsService",
    "DiagnosticAnalyzer",
    "DiagnosticClassification",
    "DiagnosticSubmission",
    "DiagnosticTestGenerator",
    "LearningPathPlanner",
    "LearningPlan",
    "MasteryUpdater",
    "ProgressReportBuilder",
    "RecommendationGenerator",
    "SavedDiagnostic",
    "estimate_days",
    "fallback_bank",
    "resolve_window",
]
