"""
Course levels and XP levels.

Design:
- CourseLevel: the content tier a lesson belongs to (beginner → advanced).
  Levels unlock in order, gated on completion of the previous tier.
- XpLevel: cosmetic level derived from accumulated points, shown next to
  the learner's stats.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CourseLevel(str, Enum):
    """Content tier, ordered from easiest to hardest."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @classmethod
    def parse(cls, value: str | CourseLevel | None) -> CourseLevel | None:
        """Parse a level name; returns None for unknown values."""
        if value is None:
            return None
        if isinstance(value, CourseLevel):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

    @classmethod
    def ordered(cls) -> list[CourseLevel]:
        return [cls.BEGINNER, cls.INTERMEDIATE, cls.ADVANCED]

    @property
    def rank(self) -> int:
        return CourseLevel.ordered().index(self)

    @property
    def previous(self) -> CourseLevel | None:
        """The tier that must be completed before this one."""
        if self.rank == 0:
            return None
        return CourseLevel.ordered()[self.rank - 1]

    @property
    def display_name(self) -> str:
        return self.value.title()


def level_completion_percentage(mastered_in_level: int, required: int) -> float:
    """
    Completion of a level as a percentage, capped at 100.

    Computed as mastered * 100 / required so that boundary values such as
    12 of 15 land exactly on 80.0.
    """
    if required <= 0:
        return 100.0
    return min(100.0, mastered_in_level * 100 / required)


@dataclass(frozen=True)
class XpLevel:
    level: int
    name: str
    min_xp: int
    max_xp: int

    def progress(self, points: int) -> float:
        """Percent of the way from this level to the next."""
        span = self.max_xp - self.min_xp
        if span <= 0:
            return 100.0
        return max(0.0, min(100.0, (points - self.min_xp) / span * 100))


XP_LEVELS: tuple[XpLevel, ...] = (
    XpLevel(1, "Beginner", 0, 100),
    XpLevel(2, "Explorer", 100, 250),
    XpLevel(3, "Student", 250, 500),
    XpLevel(4, "Dedicated", 500, 1000),
    XpLevel(5, "Experienced", 1000, 2000),
    XpLevel(6, "Master", 2000, 5000),
)


def xp_level_for(points: int) -> XpLevel:
    """Highest XP level whose minimum the points have reached."""
    current = XP_LEVELS[0]
    for xp_level in XP_LEVELS:
        if points >= xp_level.min_xp:
            current = xp_level
    return current
