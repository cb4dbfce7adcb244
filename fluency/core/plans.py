"""
Subscription plan limits.

Pure predicates over a plan tier and the learner's usage counters. A limit
of -1 means unlimited. Missing counters are treated as "limit reached" so a
failed read never opens a paid feature.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

UNLIMITED = -1


class PlanTier(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    PRO = "pro"


class Feature(str, Enum):
    """Features a plan can restrict."""

    LESSONS = "lessons"
    CHAT = "chat"
    AUDIO = "audio"
    SPACED_REPETITION = "spaced_repetition"
    ADVANCED_QUIZZES = "advanced_quizzes"


class UsageKind(str, Enum):
    """Counted usage with a numeric quota."""

    LESSONS = "lessons"
    CHAT = "chat"
    SENTENCES = "sentences"


@dataclass(frozen=True)
class PlanLimits:
    daily_lessons: int
    total_sentences: int
    chat_messages: int
    has_audio: bool
    has_spaced_repetition: bool
    has_advanced_quizzes: bool


PLAN_LIMITS: dict[PlanTier, PlanLimits] = {
    PlanTier.FREE: PlanLimits(
        daily_lessons=3,
        total_sentences=50,
        chat_messages=10,
        has_audio=False,
        has_spaced_repetition=False,
        has_advanced_quizzes=False,
    ),
    PlanTier.PREMIUM: PlanLimits(
        daily_lessons=UNLIMITED,
        total_sentences=500,
        chat_messages=100,
        has_audio=True,
        has_spaced_repetition=True,
        has_advanced_quizzes=True,
    ),
    PlanTier.PRO: PlanLimits(
        daily_lessons=UNLIMITED,
        total_sentences=UNLIMITED,
        chat_messages=UNLIMITED,
        has_audio=True,
        has_spaced_repetition=True,
        has_advanced_quizzes=True,
    ),
}


def resolve_tier(tier: str | PlanTier | None, subscribed: bool = True) -> PlanTier:
    """Map a subscription tier name to a plan; anything unknown is free."""
    if not subscribed or tier is None:
        return PlanTier.FREE
    if isinstance(tier, PlanTier):
        return tier
    try:
        return PlanTier(tier.strip().lower())
    except ValueError:
        return PlanTier.FREE


@dataclass(frozen=True)
class UsageCounters:
    """
    Usage read from the progress store.

    lessons_today is today's practiced count, chat_messages_today the
    persisted chat counter for today, sentences_mastered the learner's
    total mastered items. None means the counter could not be read.
    """

    lessons_today: int | None = None
    chat_messages_today: int | None = None
    sentences_mastered: int | None = None


class PlanLimitGate:
    """Quota predicates for one learner's plan and usage."""

    def __init__(self, tier: PlanTier | str | None, usage: UsageCounters):
        self.tier = resolve_tier(tier)
        self.limits = PLAN_LIMITS[self.tier]
        self.usage = usage

    @staticmethod
    def _reached(limit: int, used: int | None) -> bool:
        if limit == UNLIMITED:
            return False
        if used is None:
            return True
        return used >= limit

    def has_reached_daily_lesson_limit(self) -> bool:
        return self._reached(self.limits.daily_lessons, self.usage.lessons_today)

    def has_reached_sentence_limit(self) -> bool:
        return self._reached(self.limits.total_sentences, self.usage.sentences_mastered)

    def has_reached_chat_limit(self) -> bool:
        return self._reached(self.limits.chat_messages, self.usage.chat_messages_today)

    def is_feature_limited(self, feature: Feature | str) -> bool:
        """True when the plan blocks the feature or its quota is used up."""
        feature = Feature(feature)
        if feature is Feature.LESSONS:
            return self.has_reached_daily_lesson_limit() or self.has_reached_sentence_limit()
        if feature is Feature.CHAT:
            return self.has_reached_chat_limit()
        if feature is Feature.AUDIO:
            return not self.limits.has_audio
        if feature is Feature.SPACED_REPETITION:
            return not self.limits.has_spaced_repetition
        if feature is Feature.ADVANCED_QUIZZES:
            return not self.limits.has_advanced_quizzes
        return True

    def quota(self, kind: UsageKind | str) -> tuple[int, int | None]:
        """(limit, used) for a counted usage kind."""
        kind = UsageKind(kind)
        if kind is UsageKind.LESSONS:
            return self.limits.daily_lessons, self.usage.lessons_today
        if kind is UsageKind.CHAT:
            return self.limits.chat_messages, self.usage.chat_messages_today
        return self.limits.total_sentences, self.usage.sentences_mastered

    def has_reached(self, kind: UsageKind | str) -> bool:
        return self._reached(*self.quota(kind))

    def remaining(self, kind: UsageKind | str) -> int:
        """Units left today (or in total for sentences); -1 when unlimited."""
        limit, used = self.quota(UsageKind(kind))
        if limit == UNLIMITED:
            return UNLIMITED
        if used is None:
            return 0
        return max(0, limit - used)

    def usage_percentage(self, kind: UsageKind | str) -> float:
        """Percent of the quota used; 0 when unlimited."""
        limit, used = self.quota(UsageKind(kind))
        if limit == UNLIMITED:
            return 0.0
        if used is None:
            return 100.0
        return used / limit * 100
