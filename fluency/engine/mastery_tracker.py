"""
Mastery Tracker.

Per-item mastery state machine for one learner:

    not_started --first answer--> learning --correct answer--> mastered

A correct answer in review_needed also lands on mastered. Mastered never
regresses, and mastered_at is written once, on the transition.

Every write is a single atomic statement so concurrent answers for the
same (learner, item) cannot lose increments:
- INSERT ... ON CONFLICT DO NOTHING creates the row
- UPDATE ... SET attempts = attempts + 1 counts the answer
- UPDATE ... WHERE status != 'mastered' performs the transition; its
  rowcount tells whether *this* answer mastered the item
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from loguru import logger
from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from fluency.core.levels import CourseLevel
from fluency.db.models import ProgressRecord, ProgressStatus, Sentence
from fluency.db.utils import dialect_insert, store_operation, utcnow


@dataclass
class MasteryUpdate:
    """Result of recording one answer."""

    record: ProgressRecord
    mastered_now: bool
    points: int

    @property
    def status(self) -> str:
        return self.record.status


def points_for(correct: bool, mastered_now: bool) -> int:
    """Points earned by one answer."""
    if not correct:
        return 0
    settings = get_settings()
    points = settings.points_correct
    if mastered_now:
        points += settings.points_mastery_bonus
    return points


class MasteryTracker:
    """Track per-item mastery for learners."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record_answer(
        self,
        learner_id: str,
        item_id: str,
        correct: bool,
        now: datetime | None = None,
    ) -> MasteryUpdate:
        """
        Apply one answer to the learner's progress on an item.

        Args:
            learner_id: Learner id
            item_id: Practice item (sentence) id
            correct: Verdict of the exercise evaluator
            now: Practice time (naive UTC), defaults to now

        Returns:
            MasteryUpdate with the stored record, whether this answer caused
            the transition into mastered, and the points it earned
        """
        now = now or utcnow()
        key = (ProgressRecord.learner_id == learner_id) & (ProgressRecord.item_id == item_id)

        async with store_operation(self.session, "record_answer"):
            insert_stmt = dialect_insert(self.session, ProgressRecord).values(
                learner_id=learner_id,
                item_id=item_id,
                status=ProgressStatus.NOT_STARTED.value,
                attempts=0,
                correct_attempts=0,
            )
            await self.session.execute(
                insert_stmt.on_conflict_do_nothing(index_elements=["learner_id", "item_id"])
            )

            await self.session.execute(
                update(ProgressRecord)
                .where(key)
                .values(
                    attempts=ProgressRecord.attempts + 1,
                    correct_attempts=ProgressRecord.correct_attempts + (1 if correct else 0),
                    last_practiced_at=now,
                    status=case(
                        (
                            ProgressRecord.status == ProgressStatus.NOT_STARTED.value,
                            ProgressStatus.LEARNING.value,
                        ),
                        else_=ProgressRecord.status,
                    ),
                )
                .execution_options(synchronize_session=False)
            )

            mastered_now = False
            if correct:
                result = await self.session.execute(
                    update(ProgressRecord)
                    .where(key, ProgressRecord.status != ProgressStatus.MASTERED.value)
                    .values(status=ProgressStatus.MASTERED.value, mastered_at=now)
                    .execution_options(synchronize_session=False)
                )
                mastered_now = result.rowcount == 1

            record = (
                await self.session.execute(
                    select(ProgressRecord)
                    .where(key)
                    .execution_options(populate_existing=True)
                )
            ).scalar_one()

        points = points_for(correct, mastered_now)
        if mastered_now:
            logger.info(f"{learner_id} mastered item {item_id} after {record.attempts} attempts")
        else:
            logger.debug(
                f"{learner_id} answered {item_id}: correct={correct} status={record.status} "
                f"attempts={record.attempts}"
            )
        return MasteryUpdate(record=record, mastered_now=mastered_now, points=points)

    async def get_progress(self, learner_id: str, item_id: str) -> ProgressRecord | None:
        async with store_operation(self.session, "get_progress", commit=False):
            result = await self.session.execute(
                select(ProgressRecord)
                .where(ProgressRecord.learner_id == learner_id, ProgressRecord.item_id == item_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def list_progress(
        self, learner_id: str, status: ProgressStatus | str | None = None
    ) -> list[ProgressRecord]:
        """All progress records of a learner, most recently practiced first."""
        stmt = select(ProgressRecord).where(ProgressRecord.learner_id == learner_id)
        if status is not None:
            stmt = stmt.where(ProgressRecord.status == ProgressStatus(status).value)
        stmt = stmt.order_by(ProgressRecord.last_practiced_at.desc(), ProgressRecord.item_id)
        async with store_operation(self.session, "list_progress", commit=False):
            result = await self.session.execute(stmt.execution_options(populate_existing=True))
            return list(result.scalars().all())

    async def mastered_count(self, learner_id: str) -> int:
        async with store_operation(self.session, "mastered_count", commit=False):
            result = await self.session.execute(
                select(func.count())
                .select_from(ProgressRecord)
                .where(
                    ProgressRecord.learner_id == learner_id,
                    ProgressRecord.status == ProgressStatus.MASTERED.value,
                )
            )
            return result.scalar_one()

    async def mastered_count_by_level(self, learner_id: str) -> dict[CourseLevel, int]:
        """Mastered items per course level, via the catalog."""
        counts = {level: 0 for level in CourseLevel.ordered()}
        async with store_operation(self.session, "mastered_count_by_level", commit=False):
            result = await self.session.execute(
                select(Sentence.level, func.count())
                .join(ProgressRecord, ProgressRecord.item_id == Sentence.id)
                .where(
                    ProgressRecord.learner_id == learner_id,
                    ProgressRecord.status == ProgressStatus.MASTERED.value,
                )
                .group_by(Sentence.level)
            )
            rows = result.all()
        for level_name, count in rows:
            level = CourseLevel.parse(level_name)
            if level is not None:
                counts[level] += count
        return counts
