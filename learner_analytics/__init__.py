"""
Learner Analytics Engine.

Turns question attempts and study sessions into mastery scores, diagnostic
classifications, remediation paths, and periodic progress reports.

Components:
- analytics.mastery: MasteryUpdater (running accuracy per concept)
- analytics.diagnostic: DiagnosticAnalyzer (strengths / weaknesses / gaps)
- analytics.learning_path: LearningPathPlanner (remediation sequence)
- analytics.progress_report: ProgressReportBuilder (windowed reports)
- analytics.service: AnalyticsService (public operations)
"""

__version__ = "1.0.0"
