"""
Configuration settings for the fluency progress engine.

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
        default="sqlite+aiosqlite:///./fluency.db",
        description="Store connection string (postgresql:// URLs run on asyncpg)",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements to the log",
    )

    # ========================================
    # Answer scoring
    # ========================================
    translation_threshold: float = Field(
        default=0.8,
        description="Minimum edit similarity for a translation answer to pass",
    )
    pronunciation_threshold: float = Field(
        default=0.7,
        description="Minimum token overlap for a pronunciation transcript to pass",
    )
    mcq_distractor_count: int = Field(
        default=3,
        description="Number of distractors sampled for multiple-choice options",
    )

    # ========================================
    # Points & goals
    # ========================================
    points_correct: int = Field(
        default=10,
        description="Points for a correct answer",
    )
    points_mastery_bonus: int = Field(
        default=25,
        description="Additional points when an answer masters an item",
    )
    default_daily_goal: int = Field(
        default=5,
        description="Daily practice goal used when the profile has none",
    )
    award_badge_points: bool = Field(
        default=True,
        description="Credit a badge's points reward to the profile on unlock",
    )

    # ========================================
    # Lesson gating
    # ========================================
    beginner_required_mastery: int = Field(
        default=15,
        description="Mastered items that complete the beginner level",
    )
    intermediate_required_mastery: int = Field(
        default=35,
        description="Mastered items that complete the intermediate level",
    )
    advanced_required_mastery: int = Field(
        default=60,
        description="Mastered items that complete the advanced level",
    )
    level_unlock_percentage: float = Field(
        default=80.0,
        description="Completion of the prior level that unlocks the next one",
    )
    lesson_mastery_step: int = Field(
        default=2,
        description="Mastered items per lesson index for the fallback unlock heuristic",
    )
    eager_next_lesson_unlock: bool = Field(
        default=True,
        description="Write 'unlocked' for the next lesson when a lesson is completed",
    )

    # ========================================
    # Plan limits
    # ========================================
    enforce_plan_limits: bool = Field(
        default=False,
        description="Refuse practice when the learner's plan limit is reached",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    def level_requirements(self) -> dict[str, int]:
        """Mastered-item thresholds per course level."""
        return {
            "beginner": self.beginner_required_mastery,
            "intermediate": self.intermediate_required_mastery,
            "advanced": self.advanced_required_mastery,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
