"""
Daily Activity Aggregator.

Keeps one rollup row per learner per calendar day (practiced, mastered,
points, goal met) and derives the daily-goal streak from those rows.

The goal streak counts consecutive calendar days on which the learner met
the daily goal. It is separate from the profile's streak_count, which
counts days with any activity at all.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fluency.db.models import DailyActivityRecord
from fluency.db.utils import dialect_insert, store_operation, today


def compute_goal_streak(records: Iterable[DailyActivityRecord], daily_goal: int) -> int:
    """
    Consecutive goal-met days, counting back from the most recent record.

    Stops at the first day below the goal or at a gap in the calendar.
    """
    streak = 0
    expected: date | None = None
    for record in sorted(records, key=lambda r: r.activity_date, reverse=True):
        if expected is not None and record.activity_date != expected:
            break
        if record.practiced_count < daily_goal:
            break
        streak += 1
        expected = record.activity_date - timedelta(days=1)
    return streak


class DailyActivityAggregator:
    """Per-day practice rollups for learners."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record_practice(
        self,
        learner_id: str,
        mastered: bool,
        points: int,
        daily_goal: int,
        on: date | None = None,
    ) -> DailyActivityRecord:
        """
        Count one answer in the day's rollup.

        The row is created or incremented in a single upsert. goal_met is
        recomputed from the incremented practiced_count.

        Args:
            learner_id: Learner id
            mastered: True only when this answer caused a mastery transition
            points: Points earned by this answer
            daily_goal: Learner's daily practice goal
            on: Calendar day, defaults to today (UTC)
        """
        day = on or today()
        mastered_inc = 1 if mastered else 0
        table = DailyActivityRecord.__table__

        stmt = dialect_insert(self.session, DailyActivityRecord).values(
            learner_id=learner_id,
            activity_date=day,
            practiced_count=1,
            mastered_count=mastered_inc,
            points_earned=points,
            goal_met=1 >= daily_goal,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["learner_id", "activity_date"],
            set_={
                "practiced_count": table.c.practiced_count + 1,
                "mastered_count": table.c.mastered_count + mastered_inc,
                "points_earned": table.c.points_earned + points,
                "goal_met": table.c.practiced_count + 1 >= daily_goal,
            },
        )

        async with store_operation(self.session, "record_daily_activity"):
            await self.session.execute(stmt)
            record = await self._get(learner_id, day)

        logger.debug(
            f"{learner_id} {day}: practiced={record.practiced_count}/{daily_goal} "
            f"mastered={record.mastered_count} points={record.points_earned}"
        )
        return record

    async def _get(self, learner_id: str, day: date) -> DailyActivityRecord | None:
        result = await self.session.execute(
            select(DailyActivityRecord)
            .where(
                DailyActivityRecord.learner_id == learner_id,
                DailyActivityRecord.activity_date == day,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def today(self, learner_id: str, on: date | None = None) -> DailyActivityRecord | None:
        """Today's rollup, or None if the learner has not practiced today."""
        async with store_operation(self.session, "daily_activity_today", commit=False):
            return await self._get(learner_id, on or today())

    async def recent(self, learner_id: str, limit: int = 30) -> list[DailyActivityRecord]:
        """Most recent rollups, newest first."""
        async with store_operation(self.session, "recent_daily_activity", commit=False):
            result = await self.session.execute(
                select(DailyActivityRecord)
                .where(DailyActivityRecord.learner_id == learner_id)
                .order_by(DailyActivityRecord.activity_date.desc())
                .limit(limit)
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

    async def goal_streak(self, learner_id: str, daily_goal: int, limit: int = 365) -> int:
        return compute_goal_streak(await self.recent(learner_id, limit=limit), daily_goal)

    async def daily_goal_progress(self, learner_id: str, on: date | None = None) -> int:
        """Answers practiced today."""
        record = await self.today(learner_id, on=on)
        return record.practiced_count if record else 0
