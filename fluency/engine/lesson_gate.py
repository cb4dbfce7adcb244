"""
Lesson Unlock Gate.

Decides which course levels and lessons a learner may open:

- The lowest level is always open. A higher level opens once the level
  before it is at least 80% complete, or when the learner's profile level
  is already at that tier or above.
- Within an open level, the first lesson is open. Lesson i > 0 opens when
  its lesson-progress row says unlocked/completed, or when the learner has
  mastered at least 2 * i items overall.

Missing data reads as locked. Store failures while answering "is it
unlocked?" are logged and also read as locked.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from fluency.core.errors import PersistenceError
from fluency.core.levels import CourseLevel, level_completion_percentage
from fluency.db.models import Lesson, LessonProgressRecord, LessonStatus
from fluency.db.utils import dialect_insert, store_operation, utcnow
from fluency.engine.catalog import ContentCatalog
from fluency.engine.mastery_tracker import MasteryTracker
from fluency.engine.profile import ProfileService


@dataclass
class LessonState:
    lesson_id: str
    title: str
    index: int
    status: LessonStatus
    unlocked: bool


@dataclass
class LevelSummary:
    level: CourseLevel
    mastered: int
    required: int
    completion: float
    unlocked: bool
    lessons: list[LessonState] = field(default_factory=list)


class LessonGate:
    """Level and lesson unlock rules for learners."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.settings = get_settings()
        self.catalog = ContentCatalog(session)
        self.tracker = MasteryTracker(session)
        self.profiles = ProfileService(session)

    # ------------------------------------------------------------------
    # Levels
    # ------------------------------------------------------------------

    async def level_completion(self, learner_id: str) -> dict[CourseLevel, float]:
        """Completion percentage per level from mastered items in that level."""
        mastered = await self.tracker.mastered_count_by_level(learner_id)
        required = self.settings.level_requirements()
        return {
            level: level_completion_percentage(mastered[level], required[level.value])
            for level in CourseLevel.ordered()
        }

    def _level_open(
        self,
        level: CourseLevel,
        completion: dict[CourseLevel, float],
        profile_level: CourseLevel,
    ) -> bool:
        previous = level.previous
        if previous is None:
            return True
        if profile_level.rank >= level.rank:
            return True
        return completion[previous] >= self.settings.level_unlock_percentage

    async def is_level_unlocked(self, learner_id: str, level: CourseLevel | str) -> bool:
        parsed = CourseLevel.parse(level)
        if parsed is None:
            return False
        if parsed.previous is None:
            return True
        try:
            completion = await self.level_completion(learner_id)
            stats = await self.profiles.get_stats(learner_id)
        except PersistenceError as e:
            logger.warning(f"Treating level {parsed.value} as locked for {learner_id}: {e}")
            return False
        return self._level_open(parsed, completion, stats.level)

    # ------------------------------------------------------------------
    # Lessons
    # ------------------------------------------------------------------

    async def get_lesson_status(self, learner_id: str, lesson_id: str) -> LessonStatus:
        record = await self._get_record(learner_id, lesson_id)
        return LessonStatus(record.status) if record else LessonStatus.LOCKED

    async def _get_record(self, learner_id: str, lesson_id: str) -> LessonProgressRecord | None:
        async with store_operation(self.session, "get_lesson_progress", commit=False):
            result = await self.session.execute(
                select(LessonProgressRecord)
                .where(
                    LessonProgressRecord.learner_id == learner_id,
                    LessonProgressRecord.lesson_id == lesson_id,
                )
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def _lesson_index(self, lesson: Lesson) -> int:
        lessons = await self.catalog.lessons_for_level(lesson.level)
        ids = [candidate.id for candidate in lessons]
        return ids.index(lesson.id) if lesson.id in ids else -1

    async def is_lesson_unlocked(self, learner_id: str, lesson_id: str) -> bool:
        """
        Whether the learner may open a lesson.

        Raises:
            NotFoundError: lesson_id is not in the catalog
        """
        try:
            lesson = await self.catalog.get_lesson(lesson_id)
            if not await self.is_level_unlocked(learner_id, lesson.level):
                return False

            index = await self._lesson_index(lesson)
            if index < 0:
                # inactive lesson
                return False
            if index == 0:
                return True

            record = await self._get_record(learner_id, lesson_id)
            if record is not None and record.is_open:
                return True

            mastered = await self.tracker.mastered_count(learner_id)
        except PersistenceError as e:
            logger.warning(f"Treating lesson {lesson_id} as locked for {learner_id}: {e}")
            return False
        return mastered >= self.settings.lesson_mastery_step * index

    async def initialize_lesson_progress(self, learner_id: str) -> int:
        """
        Create lesson-progress rows for every active lesson.

        The first lesson of the lowest level starts unlocked, all others
        locked. Existing rows are kept. Returns the number of rows created.
        """
        lessons = await self.catalog.all_lessons()
        lowest = CourseLevel.ordered()[0]
        created = 0
        async with store_operation(self.session, "initialize_lesson_progress"):
            for level, level_lessons in lessons.items():
                for index, lesson in enumerate(level_lessons):
                    status = (
                        LessonStatus.UNLOCKED
                        if level is lowest and index == 0
                        else LessonStatus.LOCKED
                    )
                    stmt = dialect_insert(self.session, LessonProgressRecord).values(
                        learner_id=learner_id,
                        lesson_id=lesson.id,
                        status=status.value,
                    )
                    result = await self.session.execute(
                        stmt.on_conflict_do_nothing(index_elements=["learner_id", "lesson_id"])
                    )
                    created += result.rowcount
        if created:
            logger.info(f"Initialized {created} lesson progress rows for {learner_id}")
        return created

    async def ensure_learner(self, learner_id: str) -> int:
        """
        Initialize lesson progress the first time a learner is seen.

        A learner with any lesson-progress row is left alone. Returns the
        number of rows created.
        """
        async with store_operation(self.session, "has_lesson_progress", commit=False):
            result = await self.session.execute(
                select(LessonProgressRecord.id)
                .where(LessonProgressRecord.learner_id == learner_id)
                .limit(1)
            )
            seen = result.first() is not None
        if seen:
            return 0
        return await self.initialize_lesson_progress(learner_id)

    async def unlock_lesson(self, learner_id: str, lesson_id: str) -> LessonStatus:
        """Mark a lesson unlocked. A completed lesson stays completed."""
        await self.catalog.get_lesson(lesson_id)
        async with store_operation(self.session, "unlock_lesson"):
            await self._write_unlocked(learner_id, lesson_id)
        return await self.get_lesson_status(learner_id, lesson_id)

    async def _write_unlocked(self, learner_id: str, lesson_id: str) -> None:
        table = LessonProgressRecord.__table__
        stmt = dialect_insert(self.session, LessonProgressRecord).values(
            learner_id=learner_id,
            lesson_id=lesson_id,
            status=LessonStatus.UNLOCKED.value,
        )
        await self.session.execute(
            stmt.on_conflict_do_update(
                index_elements=["learner_id", "lesson_id"],
                set_={"status": LessonStatus.UNLOCKED.value},
                where=table.c.status == LessonStatus.LOCKED.value,
            )
        )

    async def complete_lesson(self, learner_id: str, lesson_id: str) -> str | None:
        """
        Mark a lesson completed; completed_at is kept from the first time.

        When eager unlocking is enabled the next lesson of the same level is
        written unlocked in the same transaction.

        Returns:
            Id of the lesson unlocked alongside, if any
        """
        lesson = await self.catalog.get_lesson(lesson_id)
        next_lesson_id = None
        if self.settings.eager_next_lesson_unlock:
            lessons = await self.catalog.lessons_for_level(lesson.level)
            ids = [candidate.id for candidate in lessons]
            if lesson.id in ids and ids.index(lesson.id) + 1 < len(ids):
                next_lesson_id = ids[ids.index(lesson.id) + 1]

        table = LessonProgressRecord.__table__
        stmt = dialect_insert(self.session, LessonProgressRecord).values(
            learner_id=learner_id,
            lesson_id=lesson_id,
            status=LessonStatus.COMPLETED.value,
            completed_at=utcnow(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["learner_id", "lesson_id"],
            set_={
                "status": LessonStatus.COMPLETED.value,
                "completed_at": func.coalesce(table.c.completed_at, stmt.excluded.completed_at),
            },
        )
        async with store_operation(self.session, "complete_lesson"):
            await self.session.execute(stmt)
            if next_lesson_id is not None:
                await self._write_unlocked(learner_id, next_lesson_id)

        logger.info(f"{learner_id} completed lesson {lesson_id}")
        return next_lesson_id

    async def summary(self, learner_id: str) -> list[LevelSummary]:
        """Per-level completion and per-lesson state, in course order."""
        await self.ensure_learner(learner_id)
        mastered_by_level = await self.tracker.mastered_count_by_level(learner_id)
        total_mastered = sum(mastered_by_level.values())
        required = self.settings.level_requirements()
        completion = {
            level: level_completion_percentage(mastered_by_level[level], required[level.value])
            for level in CourseLevel.ordered()
        }
        stats = await self.profiles.get_stats(learner_id)

        async with store_operation(self.session, "lesson_summary", commit=False):
            result = await self.session.execute(
                select(LessonProgressRecord)
                .where(LessonProgressRecord.learner_id == learner_id)
                .execution_options(populate_existing=True)
            )
            records = {record.lesson_id: record for record in result.scalars().all()}

        summaries = []
        for level, lessons in (await self.catalog.all_lessons()).items():
            level_open = self._level_open(level, completion, stats.level)
            summary = LevelSummary(
                level=level,
                mastered=mastered_by_level[level],
                required=required[level.value],
                completion=completion[level],
                unlocked=level_open,
            )
            for index, lesson in enumerate(lessons):
                record = records.get(lesson.id)
                status = LessonStatus(record.status) if record else LessonStatus.LOCKED
                unlocked = level_open and (
                    index == 0
                    or (record is not None and record.is_open)
                    or total_mastered >= self.settings.lesson_mastery_step * index
                )
                summary.lessons.append(
                    LessonState(lesson.id, lesson.title, index, status, unlocked)
                )
            summaries.append(summary)
        return summaries
