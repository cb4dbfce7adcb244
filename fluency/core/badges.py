"""
Static badge catalog.

Badges are a fixed table keyed by id, built once at import. Each badge has a
single numeric requirement checked against a learner's stat snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class RequirementType(str, Enum):
    """Stat a badge threshold is compared against."""

    STREAK_DAYS = "streak_days"
    SENTENCES_MASTERED = "sentences_mastered"
    DAILY_GOAL_DAYS = "daily_goal_days"


class Rarity(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"


@dataclass(frozen=True)
class BadgeDefinition:
    """One unlockable badge."""

    id: str
    name: str
    description: str
    requirement_type: RequirementType
    requirement: int
    points_reward: int
    rarity: Rarity
    category: str


@dataclass(frozen=True)
class StatSnapshot:
    """Learner stats a badge evaluation pass is run against."""

    streak_days: int = 0  # profile any-activity streak
    sentences_mastered: int = 0
    daily_goal_days: int = 0  # consecutive days with the daily goal met
    points: int = 0

    def value_for(self, requirement_type: RequirementType) -> int:
        if requirement_type is RequirementType.STREAK_DAYS:
            return self.streak_days
        if requirement_type is RequirementType.SENTENCES_MASTERED:
            return self.sentences_mastered
        if requirement_type is RequirementType.DAILY_GOAL_DAYS:
            return self.daily_goal_days
        return 0


_CATALOG = (
    BadgeDefinition(
        id="first_lesson",
        name="First Lesson",
        description="Master your first sentence",
        requirement_type=RequirementType.SENTENCES_MASTERED,
        requirement=1,
        points_reward=50,
        rarity=Rarity.BRONZE,
        category="milestone",
    ),
    BadgeDefinition(
        id="streak_3",
        name="Consistency",
        description="Keep a 3-day streak",
        requirement_type=RequirementType.STREAK_DAYS,
        requirement=3,
        points_reward=100,
        rarity=Rarity.SILVER,
        category="consistency",
    ),
    BadgeDefinition(
        id="master_10",
        name="Dedicated Student",
        description="Master 10 sentences",
        requirement_type=RequirementType.SENTENCES_MASTERED,
        requirement=10,
        points_reward=200,
        rarity=Rarity.GOLD,
        category="mastery",
    ),
    BadgeDefinition(
        id="daily_goal_7",
        name="Daily Goal",
        description="Reach your daily goal 7 days in a row",
        requirement_type=RequirementType.DAILY_GOAL_DAYS,
        requirement=7,
        points_reward=150,
        rarity=Rarity.SILVER,
        category="engagement",
    ),
)

BADGES: MappingProxyType[str, BadgeDefinition] = MappingProxyType(
    {badge.id: badge for badge in _CATALOG}
)


def get_badge(badge_id: str) -> BadgeDefinition | None:
    """Look up a badge by id."""
    return BADGES.get(badge_id)


def is_requirement_met(badge: BadgeDefinition, stats: StatSnapshot) -> bool:
    return stats.value_for(badge.requirement_type) >= badge.requirement


def badge_progress(badge: BadgeDefinition, stats: StatSnapshot) -> float:
    """Percent progress toward a badge, capped at 100."""
    if badge.requirement <= 0:
        return 100.0
    current = stats.value_for(badge.requirement_type)
    return min(current / badge.requirement * 100, 100.0)
