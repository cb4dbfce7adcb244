"""
Profile service adapter.

The profile (points, streak, level, daily goal) belongs to the account
service. The engine reads it as ProfileStats and writes back only through
atomic increments and the any-activity streak update.
"""

from __future__ import annotations

from datetime import date, timedelta

from loguru import logger
from sqlalchemy import case, update
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from fluency.core.levels import XpLevel, xp_level_for
from fluency.db.models import LearnerProfile
from fluency.db.utils import dialect_insert, store_operation, today
from fluency.schemas import ProfileStats


class ProfileService:
    """Read and update learner profile stats."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.settings = get_settings()

    async def get_stats(self, learner_id: str) -> ProfileStats:
        """Profile stats, or defaults when the learner has no profile yet."""
        async with store_operation(self.session, "get_profile", commit=False):
            profile = await self.session.get(LearnerProfile, learner_id, populate_existing=True)
        if profile is None:
            return ProfileStats(learner_id=learner_id, daily_goal=self.settings.default_daily_goal)
        return ProfileStats.model_validate(profile)

    async def ensure_profile(self, learner_id: str, commit: bool = True, **fields) -> bool:
        """Create the profile row if missing. Returns True when created."""
        values = {
            "learner_id": learner_id,
            "points": 0,
            "streak_count": 0,
            "level": "beginner",
            "daily_goal": self.settings.default_daily_goal,
            "total_phrases_learned": 0,
        }
        values.update(fields)
        stmt = dialect_insert(self.session, LearnerProfile).values(**values)
        async with store_operation(self.session, "ensure_profile", commit=commit):
            result = await self.session.execute(
                stmt.on_conflict_do_nothing(index_elements=["learner_id"])
            )
        created = result.rowcount == 1
        if created:
            logger.debug(f"Created profile for {learner_id}")
        return created

    async def add_points(
        self, learner_id: str, points: int, phrases_learned: int = 0, commit: bool = True
    ) -> None:
        """
        Atomically add points (and learned phrases) to the profile.

        With commit=False the increment joins the caller's transaction.
        """
        if points == 0 and phrases_learned == 0:
            return
        await self.ensure_profile(learner_id, commit=commit)
        async with store_operation(self.session, "add_points", commit=commit):
            await self.session.execute(
                update(LearnerProfile)
                .where(LearnerProfile.learner_id == learner_id)
                .values(
                    points=LearnerProfile.points + points,
                    total_phrases_learned=LearnerProfile.total_phrases_learned + phrases_learned,
                )
                .execution_options(synchronize_session=False)
            )
        logger.debug(f"{learner_id}: +{points} points")

    async def record_activity(self, learner_id: str, on: date | None = None) -> int:
        """
        Update the any-activity streak for a practice on `on` (default today).

        Yesterday's activity extends the streak, activity earlier than that
        restarts it at 1, and a second practice the same day leaves it as is.
        """
        day = on or today()
        await self.ensure_profile(learner_id)
        async with store_operation(self.session, "record_activity"):
            await self.session.execute(
                update(LearnerProfile)
                .where(LearnerProfile.learner_id == learner_id)
                .values(
                    streak_count=case(
                        (LearnerProfile.last_activity_date == day, LearnerProfile.streak_count),
                        (
                            LearnerProfile.last_activity_date == day - timedelta(days=1),
                            LearnerProfile.streak_count + 1,
                        ),
                        else_=1,
                    ),
                    last_activity_date=day,
                )
                .execution_options(synchronize_session=False)
            )
        stats = await self.get_stats(learner_id)
        return stats.streak_count

    async def xp_level(self, learner_id: str) -> XpLevel:
        stats = await self.get_stats(learner_id)
        return xp_level_for(stats.points)
