"""
Classification and Scheduling Policy Constants.

Accuracy values are percentages (0-100); mastery values are ratios (0-1).
These are tuning knobs, not derived values. Settings may override the
classification thresholds (see config.Settings).
"""

from __future__ import annotations

from dataclasses import dataclass

from config import Settings

# ============================================================================
# Diagnostic / report classification (accuracy %)
# ============================================================================
STRENGTH_ACCURACY = 80.0  # diagnostic: >= is a strength; report: > is a strength
WEAKNESS_ACCURACY = 60.0  # < is a weakness
GAP_ACCURACY = 30.0  # < is a knowledge gap (independent of weakness)

# ============================================================================
# Mastery
# ============================================================================
MASTERED_LEVEL = 0.8  # mastery_level >= counts as mastered

# ============================================================================
# Diagnostic difficulty tier (score %)
# ============================================================================
BEGINNER_SCORE_MAX = 40.0  # score < 40 -> beginner
INTERMEDIATE_SCORE_MAX = 75.0  # score < 75 -> intermediate, else advanced

# ============================================================================
# Learning path completion estimate (days)
# ============================================================================
BASE_PATH_DAYS = 7
DAYS_PER_WEAKNESS = 2
DAYS_PER_GAP = 3
LOW_SCORE_PERCENT = 30.0
LOW_SCORE_EXTRA_DAYS = 5
MID_SCORE_PERCENT = 60.0
MID_SCORE_EXTRA_DAYS = 3
MAX_PATH_DAYS = 21


@dataclass(frozen=True)
class ClassificationThresholds:
    """Threshold bundle passed to the analyzers."""

    strength: float = STRENGTH_ACCURACY
    weakness: float = WEAKNESS_ACCURACY
    gap: float = GAP_ACCURACY
    mastery: float = MASTERED_LEVEL
    max_path_days: int = MAX_PATH_DAYS

    @classmethod
    def from_settings(cls, settings: Settings) -> ClassificationThresholds:
        values = settings.get_classification_thresholds()
        return cls(
            strength=values["strength"],
            weakness=values["weakness"],
            gap=values["gap"],
            mastery=values["mastery"],
            max_path_days=settings.max_path_days,
        )
