"""
Wire schemas for the engine's collaborator contracts.

Pydantic models exchanged with the client and the surrounding services:
practice events in, verdicts/outcomes/celebrations out, profile stats and
plan usage views.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fluency.core.badges import BadgeDefinition
from fluency.core.levels import CourseLevel


class PracticeEvent(BaseModel):
    """One submitted answer."""

    learner_id: str = Field(min_length=1)
    exercise: dict[str, Any]
    answer: Any
    lesson_id: str | None = None


class VerdictView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    correct: bool
    score: float = Field(ge=0.0, le=1.0)
    feedback: str
    user_answer: str
    expected: str
    exercise_type: str
    tier: str | None = None


class BadgeView(BaseModel):
    id: str
    name: str
    description: str
    requirement_type: str
    requirement: int
    points_reward: int
    rarity: str
    category: str
    unlocked_at: datetime | None = None
    is_new: bool = False
    progress: float = 0.0

    @classmethod
    def from_definition(
        cls,
        badge: BadgeDefinition,
        unlocked_at: datetime | None = None,
        is_new: bool = False,
        progress: float = 0.0,
    ) -> BadgeView:
        return cls(
            id=badge.id,
            name=badge.name,
            description=badge.description,
            requirement_type=badge.requirement_type.value,
            requirement=badge.requirement,
            points_reward=badge.points_reward,
            rarity=badge.rarity.value,
            category=badge.category,
            unlocked_at=unlocked_at,
            is_new=is_new,
            progress=progress,
        )


class CelebrationEvent(BaseModel):
    """Badges unlocked by one evaluation pass, for the client to celebrate."""

    learner_id: str
    badges: list[BadgeView] = Field(default_factory=list)
    points_awarded: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.badges


class AcknowledgeRequest(BaseModel):
    learner_id: str = Field(min_length=1)
    badge_ids: list[str] | None = None  # None acknowledges everything


class PracticeOutcome(BaseModel):
    """Result of submit_answer: always carries the verdict."""

    learner_id: str
    item_id: str | None = None
    verdict: VerdictView
    status: str | None = None
    mastered_now: bool = False
    points_awarded: int = 0
    daily_practiced: int | None = None
    daily_goal_met: bool | None = None
    lesson_completed: bool = False
    celebration: CelebrationEvent | None = None
    saved: bool = True
    errors: list[str] = Field(default_factory=list)


class ProfileStats(BaseModel):
    """Learner stats as owned by the profile service."""

    model_config = ConfigDict(from_attributes=True)

    learner_id: str
    points: int = 0
    streak_count: int = 0
    level: CourseLevel = CourseLevel.BEGINNER
    daily_goal: int = 5
    last_activity_date: date | None = None
    total_phrases_learned: int = 0
    subscription_tier: str | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> CourseLevel:
        return CourseLevel.parse(value) or CourseLevel.BEGINNER


class UsageView(BaseModel):
    """Plan quota usage for one counted feature."""

    feature: str
    used: int | None
    limit: int
    remaining: int
    percentage: float
    limited: bool
