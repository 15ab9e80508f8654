"""
Configuration settings for the learner-analytics service.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///learner_analytics.db",
        description="SQLAlchemy connection string (PostgreSQL or SQLite)",
    )

    # ========================================
    # Text Generation (advisory content only)
    # ========================================
    generation_provider: Literal["gemini", "chat", "static"] = Field(
        default="gemini",
        description="Which text generator backs recommendations and insights",
    )
    gemini_api_key: str | None = Field(
        default=None,
        description="Google Generative AI (Gemini) API key",
    )
    ai_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used for recommendations and insights",
    )
    chat_completions_url: str = Field(
        default="http://localhost:3001/api/groq-chat",
        description="OpenAI-compatible chat completions endpoint (e.g. a Groq proxy)",
    )
    chat_api_key: str | None = Field(
        default=None,
        description="Bearer token for the chat completions endpoint, if required",
    )
    chat_model: str = Field(
        default="llama-3.1-70b-versatile",
        description="Model name sent to the chat completions endpoint",
    )
    static_generation_reply: str | None = Field(
        default=None,
        description="Fixed reply for the static generator (None = always unavailable)",
    )
    generation_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for a single text generation call",
    )

    # ========================================
    # Classification Thresholds (percent / ratio)
    # ========================================
    strength_threshold: float = Field(
        default=80.0,
        description="Accuracy (%) at or above which a topic is a strength",
    )
    weakness_threshold: float = Field(
        default=60.0,
        description="Accuracy (%) below which a topic is a weakness",
    )
    gap_threshold: float = Field(
        default=30.0,
        description="Accuracy (%) below which a topic is a knowledge gap",
    )
    mastery_threshold: float = Field(
        default=0.8,
        description="Mastery level (0-1) at which a concept counts as mastered",
    )
    max_path_days: int = Field(
        default=21,
        description="Upper bound for learning path completion estimates",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default="logs/learner_analytics.log",
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # API Server
    # ========================================
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=8100,
        description="API server port",
    )

    def has_ai_configured(self) -> bool:
        """Check if a live text generator is configured."""
        if self.generation_provider == "gemini":
            return bool(self.gemini_api_key)
        if self.generation_provider == "chat":
            return bool(self.chat_completions_url)
        return self.static_generation_reply is not None

    def get_classification_thresholds(self) -> dict[str, float]:
        """Get thresholds used by diagnostic and progress classification."""
        return {
            "strength": self.strength_threshold,
            "weakness": self.weakness_threshold,
            "gap": self.gap_threshold,
            "mastery": self.mastery_threshold,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
