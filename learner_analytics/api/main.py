"""
FastAPI application for the learner analytics engine.

Provides REST API for:
- Question attempt and study session tracking
- Chapter diagnostics with remediation and learning paths
- Learner analytics and progress reports
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from config import get_settings
from learner_analytics import __version__
from learner_analytics.analytics.service import AnalyticsService
from learner_analytics.api import router as analytics_router
from learner_analytics.db.database import check_database, init_db
from learner_analytics.timeutil import utcnow


def create_app(service: AnalyticsService | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        service: Pre-built service (tests pass one over an in-memory store).
            When omitted, the configured database is initialized at startup.
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting learner analytics service...")
        if service is None:
            init_db()
            app.state.service = AnalyticsService.from_settings(settings)
        else:
            app.state.service = service
        logger.info(f"Service started on {settings.api_host}:{settings.api_port}")

        yield

        logger.info("Shutting down learner analytics service...")

    app = FastAPI(
        title="Learner Analytics",
        description="Attempt tracking, concept mastery, diagnostics and progress reports for learners.",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", tags=["Health"])
    def root() -> dict[str, str]:
        return {"service": "learner-analytics", "version": __version__, "status": "ok"}

    @app.get("/health", tags=["Health"])
    def health_check() -> dict[str, Any]:
        """Health check with a live database probe (skipped for injected services)."""
        if service is None:
            db_status, db_error = check_database()
        else:
            db_status, db_error = "ok", None

        result: dict[str, Any] = {
            "status": "healthy" if db_status == "ok" else "unhealthy",
            "timestamp": utcnow().isoformat(),
            "components": {
                "database": db_status,
                "ai": "configured" if settings.has_ai_configured() else "not_configured",
            },
        }
        if db_error:
            result["errors"] = {"database": db_error}
        return result

    app.include_router(analytics_router.router, prefix="/api", tags=["Analytics"])
    return app


app = create_app()
