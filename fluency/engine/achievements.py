"""
Achievement Evaluator.

Re-checks every badge in the static catalog against a learner's current
stats after each practice event. A badge is unlocked by inserting its
achievement row with ON CONFLICT DO NOTHING, so the row count of that
insert is the only source of truth for "newly unlocked": two concurrent
evaluation passes can both see a badge as earned, but only one of them
inserts it and only that one celebrates it and credits its points.
"""

from __future__ import annotations

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from fluency.core.badges import (
    BADGES,
    BadgeDefinition,
    StatSnapshot,
    badge_progress,
    get_badge,
    is_requirement_met,
)
from fluency.core.errors import NotFoundError
from fluency.db.models import AchievementRecord
from fluency.db.utils import dialect_insert, store_operation, utcnow
from fluency.engine.daily_activity import DailyActivityAggregator
from fluency.engine.mastery_tracker import MasteryTracker
from fluency.engine.profile import ProfileService
from fluency.schemas import BadgeView, CelebrationEvent


class AchievementEvaluator:
    """Unlock, list and acknowledge badges for learners."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.settings = get_settings()
        self.profiles = ProfileService(session)
        self.tracker = MasteryTracker(session)
        self.activity = DailyActivityAggregator(session)

    async def snapshot(self, learner_id: str) -> StatSnapshot:
        """Current stats the badge requirements are checked against."""
        stats = await self.profiles.get_stats(learner_id)
        return StatSnapshot(
            streak_days=stats.streak_count,
            sentences_mastered=await self.tracker.mastered_count(learner_id),
            daily_goal_days=await self.activity.goal_streak(learner_id, stats.daily_goal),
            points=stats.points,
        )

    async def _records(self, learner_id: str) -> dict[str, AchievementRecord]:
        async with store_operation(self.session, "list_achievements", commit=False):
            result = await self.session.execute(
                select(AchievementRecord)
                .where(AchievementRecord.learner_id == learner_id)
                .order_by(AchievementRecord.unlocked_at)
                .execution_options(populate_existing=True)
            )
            return {record.badge_id: record for record in result.scalars().all()}

    async def _unlock(
        self, learner_id: str, badges: list[BadgeDefinition]
    ) -> CelebrationEvent:
        """Insert achievement rows; report only the ones this call inserted."""
        celebration = CelebrationEvent(learner_id=learner_id)
        if not badges:
            return celebration

        now = utcnow()
        async with store_operation(self.session, "unlock_achievements"):
            for badge in badges:
                stmt = dialect_insert(self.session, AchievementRecord).values(
                    learner_id=learner_id,
                    badge_id=badge.id,
                    unlocked_at=now,
                    is_new=True,
                )
                result = await self.session.execute(
                    stmt.on_conflict_do_nothing(index_elements=["learner_id", "badge_id"])
                )
                if result.rowcount == 1:
                    celebration.badges.append(
                        BadgeView.from_definition(badge, unlocked_at=now, is_new=True, progress=100.0)
                    )
                    if self.settings.award_badge_points:
                        celebration.points_awarded += badge.points_reward

            if celebration.points_awarded:
                await self.profiles.add_points(
                    learner_id, celebration.points_awarded, commit=False
                )

        for view in celebration.badges:
            logger.info(f"{learner_id} unlocked badge '{view.id}' ({view.rarity})")
        return celebration

    async def evaluate(self, learner_id: str) -> CelebrationEvent:
        """
        Check every badge not yet unlocked and unlock the ones now earned.

        Returns:
            CelebrationEvent listing only badges unlocked by this pass
        """
        unlocked = await self._records(learner_id)
        stats = await self.snapshot(learner_id)
        earned = [
            badge
            for badge in BADGES.values()
            if badge.id not in unlocked and is_requirement_met(badge, stats)
        ]
        return await self._unlock(learner_id, earned)

    async def trigger(self, learner_id: str, badge_id: str) -> CelebrationEvent:
        """Unlock a badge regardless of its requirement."""
        badge = get_badge(badge_id)
        if badge is None:
            raise NotFoundError("badge", badge_id)
        return await self._unlock(learner_id, [badge])

    async def acknowledge(self, learner_id: str, badge_ids: list[str] | None = None) -> int:
        """
        Clear the "new" flag in one batch update.

        Args:
            learner_id: Learner id
            badge_ids: Badges the client has celebrated; None clears all

        Returns:
            Number of records acknowledged
        """
        stmt = update(AchievementRecord).where(
            AchievementRecord.learner_id == learner_id,
            AchievementRecord.is_new.is_(True),
        )
        if badge_ids is not None:
            if not badge_ids:
                return 0
            stmt = stmt.where(AchievementRecord.badge_id.in_(badge_ids))

        async with store_operation(self.session, "acknowledge_achievements"):
            result = await self.session.execute(
                stmt.values(is_new=False).execution_options(synchronize_session=False)
            )
        logger.debug(f"{learner_id}: acknowledged {result.rowcount} achievements")
        return result.rowcount

    async def unlocked_badges(self, learner_id: str) -> list[BadgeView]:
        views = []
        for badge_id, record in (await self._records(learner_id)).items():
            badge = get_badge(badge_id)
            if badge is None:
                logger.warning(f"Achievement row for retired badge '{badge_id}'")
                continue
            views.append(
                BadgeView.from_definition(
                    badge, unlocked_at=record.unlocked_at, is_new=record.is_new, progress=100.0
                )
            )
        return views

    async def locked_badges(self, learner_id: str) -> list[BadgeView]:
        """Badges not yet unlocked, with progress toward each."""
        unlocked = await self._records(learner_id)
        stats = await self.snapshot(learner_id)
        return [
            BadgeView.from_definition(badge, progress=badge_progress(badge, stats))
            for badge in BADGES.values()
            if badge.id not in unlocked
        ]

    async def pending_celebrations(self, learner_id: str) -> list[BadgeView]:
        """Unlocked badges the client has not acknowledged yet."""
        return [view for view in await self.unlocked_badges(learner_id) if view.is_new]
