"""
Plan usage counters.

Assembles the usage the plan gate checks against from persisted state:
lessons practiced today (daily rollup), total mastered items (progress)
and chat messages sent today (per-day chat_usage row). Counters reset by
calendar day.
"""

from __future__ import annotations

from datetime import date

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fluency.core.errors import PersistenceError
from fluency.core.plans import PlanLimitGate, UsageCounters, UsageKind
from fluency.db.models import ChatUsageRecord
from fluency.db.utils import dialect_insert, store_operation, today
from fluency.engine.daily_activity import DailyActivityAggregator
from fluency.engine.mastery_tracker import MasteryTracker
from fluency.engine.profile import ProfileService
from fluency.schemas import UsageView


class PlanUsageService:
    """Persisted usage counters and the plan gate built on them."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.activity = DailyActivityAggregator(session)
        self.tracker = MasteryTracker(session)
        self.profiles = ProfileService(session)

    async def chat_messages_today(self, learner_id: str, on: date | None = None) -> int:
        async with store_operation(self.session, "chat_usage_today", commit=False):
            result = await self.session.execute(
                select(ChatUsageRecord.message_count).where(
                    ChatUsageRecord.learner_id == learner_id,
                    ChatUsageRecord.usage_date == (on or today()),
                )
            )
            return result.scalar_one_or_none() or 0

    async def increment_chat_messages(self, learner_id: str, on: date | None = None) -> int:
        """Count one chat message for the day and return the new total."""
        day = on or today()
        table = ChatUsageRecord.__table__
        stmt = dialect_insert(self.session, ChatUsageRecord).values(
            learner_id=learner_id, usage_date=day, message_count=1
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["learner_id", "usage_date"],
            set_={"message_count": table.c.message_count + 1},
        )
        async with store_operation(self.session, "increment_chat_messages"):
            await self.session.execute(stmt)
        return await self.chat_messages_today(learner_id, on=day)

    async def usage(self, learner_id: str, on: date | None = None) -> UsageCounters:
        """
        Read the usage counters.

        A counter that cannot be read is left as None, which the gate treats
        as limit reached.
        """
        counters = {}
        readers = {
            "lessons_today": lambda: self.activity.daily_goal_progress(learner_id, on=on),
            "chat_messages_today": lambda: self.chat_messages_today(learner_id, on=on),
            "sentences_mastered": lambda: self.tracker.mastered_count(learner_id),
        }
        for name, read in readers.items():
            try:
                counters[name] = await read()
            except PersistenceError as e:
                logger.warning(f"Usage counter '{name}' unavailable for {learner_id}: {e}")
                counters[name] = None
        return UsageCounters(**counters)

    async def gate(self, learner_id: str, on: date | None = None) -> PlanLimitGate:
        """Plan gate for the learner's subscription tier and current usage."""
        try:
            stats = await self.profiles.get_stats(learner_id)
            tier = stats.subscription_tier
        except PersistenceError as e:
            logger.warning(f"Profile unavailable for {learner_id}, using free plan: {e}")
            tier = None
        return PlanLimitGate(tier, await self.usage(learner_id, on=on))

    async def usage_views(self, learner_id: str, on: date | None = None) -> list[UsageView]:
        gate = await self.gate(learner_id, on=on)
        views = []
        for kind in UsageKind:
            limit, used = gate.quota(kind)
            views.append(
                UsageView(
                    feature=kind.value,
                    used=used,
                    limit=limit,
                    remaining=gate.remaining(kind),
                    percentage=gate.usage_percentage(kind),
                    limited=gate.has_reached(kind),
                )
            )
        return views
