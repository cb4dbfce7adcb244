"""
Core Module - Shared domain tables and rules.

Components:
- badges: Static badge catalog and requirement checks
- levels: Course levels, level completion, XP levels
- plans: Subscription plan limits (pure predicates)
- quiz: Quiz modes, difficulty tiers and tallies
- errors: Engine error taxonomy
"""

from fluency.core.badges import (
    BADGES,
    BadgeDefinition,
    Rarity,
    RequirementType,
    StatSnapshot,
    get_badge,
)
from fluency.core.errors import (
    FluencyError,
    LimitReachedError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from fluency.core.levels import CourseLevel, XpLevel, level_completion_percentage, xp_level_for
from fluency.core.plans import (
    PLAN_LIMITS,
    Feature,
    PlanLimitGate,
    PlanTier,
    UsageCounters,
    UsageKind,
)
from fluency.core.quiz import (
    QUIZ_PLANS,
    Difficulty,
    Quiz,
    QuizMode,
    QuizQuestion,
    QuizTally,
    difficulty_for,
)

__all__ = [
    # Badges
    "BADGES",
    "BadgeDefinition",
    "Rarity",
    "RequirementType",
    "StatSnapshot",
    "get_badge",
    # Errors
    "FluencyError",
    "LimitReachedError",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
    # Levels
    "CourseLevel",
    "XpLevel",
    "level_completion_percentage",
    "xp_level_for",
    # Plans
    "PLAN_LIMITS",
    "Feature",
    "PlanLimitGate",
    "PlanTier",
    "UsageCounters",
    "UsageKind",
    # Quiz
    "QUIZ_PLANS",
    "Difficulty",
    "Quiz",
    "QuizMode",
    "QuizQuestion",
    "QuizTally",
    "difficulty_for",
]
