"""
Content catalog adapter.

Read-only access to lessons and sentences: lessons per level in order,
items per lesson in order, item lookup and same-level distractor pools.
Also loads a catalog JSON file for local use and tests.
"""

from __future__ import annotations

import json
import random
from pathlib import Path
from typing import Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fluency.core.errors import NotFoundError, ValidationError
from fluency.core.levels import CourseLevel
from fluency.db.models import Lesson, LessonSentence, Sentence
from fluency.db.utils import dialect_insert, store_operation
from fluency.exercises import ExerciseType, get_evaluator, random_exercise_type


class ContentCatalog:
    """Lessons and practice items as authored by the content team."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_lesson(self, lesson_id: str) -> Lesson:
        async with store_operation(self.session, "get_lesson", commit=False):
            lesson = await self.session.get(Lesson, lesson_id)
        if lesson is None:
            raise NotFoundError("lesson", lesson_id)
        return lesson

    async def get_item(self, item_id: str) -> Sentence:
        async with store_operation(self.session, "get_item", commit=False):
            item = await self.session.get(Sentence, item_id)
        if item is None:
            raise NotFoundError("item", item_id)
        return item

    async def lessons_for_level(self, level: CourseLevel | str) -> list[Lesson]:
        """Active lessons of a level ordered by position."""
        level = CourseLevel.parse(level)
        if level is None:
            return []
        async with store_operation(self.session, "lessons_for_level", commit=False):
            result = await self.session.execute(
                select(Lesson)
                .where(Lesson.level == level.value, Lesson.is_active.is_(True))
                .order_by(Lesson.order_index, Lesson.id)
            )
            return list(result.scalars().all())

    async def all_lessons(self) -> dict[CourseLevel, list[Lesson]]:
        """Active lessons grouped by level, levels in course order."""
        return {level: await self.lessons_for_level(level) for level in CourseLevel.ordered()}

    async def lesson_items(self, lesson_id: str) -> list[Sentence]:
        """Items of a lesson in presentation order."""
        await self.get_lesson(lesson_id)
        async with store_operation(self.session, "lesson_items", commit=False):
            result = await self.session.execute(
                select(Sentence)
                .join(LessonSentence, LessonSentence.sentence_id == Sentence.id)
                .where(LessonSentence.lesson_id == lesson_id)
                .order_by(LessonSentence.order_index, Sentence.id)
            )
            return list(result.scalars().all())

    async def items_for_level(self, level: CourseLevel | str) -> list[Sentence]:
        """All items of a level, ordered by id."""
        level = CourseLevel.parse(level)
        if level is None:
            return []
        async with store_operation(self.session, "items_for_level", commit=False):
            result = await self.session.execute(
                select(Sentence).where(Sentence.level == level.value).order_by(Sentence.id)
            )
            return list(result.scalars().all())

    async def distractor_pool(self, item: Sentence, same_level: bool = True) -> list[str]:
        """Texts of the other items, by default only those in the item's level."""
        stmt = select(Sentence.english_text).where(Sentence.id != item.id)
        if same_level:
            stmt = stmt.where(Sentence.level == item.level)
        async with store_operation(self.session, "distractor_pool", commit=False):
            result = await self.session.execute(stmt)
            return [text for text in result.scalars().all() if text != item.english_text]

    async def build_exercise(
        self,
        item_id: str,
        exercise_type: ExerciseType | str | None = None,
        rng: random.Random | None = None,
    ) -> dict[str, Any]:
        """
        Assemble an exercise for an item, ready to present and to check.

        Multiple choice draws distractors from the item's level, then from
        the whole catalog when the level has no other items. With no other
        item anywhere a translation exercise is built instead.

        Args:
            item_id: Sentence id
            exercise_type: Variant to build; picked at random when omitted
            rng: Random source for variant choice, options and blanks

        Returns:
            Exercise dict with the item fields plus the variant's
            presentation payload (options, pool, blank word)
        """
        rng = rng or random.Random()
        item = await self.get_item(item_id)
        kind = exercise_type or random_exercise_type(rng)
        if isinstance(kind, str):
            try:
                kind = ExerciseType(kind.lower().replace("-", "_"))
            except ValueError:
                raise ValidationError(f"Unknown exercise type: {kind}") from None

        pool: list[str] = []
        if kind is ExerciseType.MULTIPLE_CHOICE:
            pool = await self.distractor_pool(item) or await self.distractor_pool(
                item, same_level=False
            )
            if not pool:
                logger.debug(f"No distractors for item {item.id}, building a translation")
                kind = ExerciseType.TRANSLATION

        exercise: dict[str, Any] = {
            "exercise_type": kind.value,
            "item_id": item.id,
            "target": item.english_text,
            "prompt": item.portuguese_text,
            "level": item.level,
        }
        if pool:
            exercise["distractor_pool"] = pool

        exercise.update(get_evaluator(kind).prepare(exercise, rng))
        return exercise

    async def load(self, data: dict[str, Any]) -> dict[str, int]:
        """
        Insert lessons, sentences and lesson membership from a catalog dict.

        Existing ids are left untouched, so loading the same file twice is
        harmless.
        """
        sentences = data.get("sentences", [])
        lessons = data.get("lessons", [])
        counts = {"sentences": 0, "lessons": 0, "lesson_items": 0}

        async with store_operation(self.session, "load_catalog"):
            for raw in sentences:
                stmt = dialect_insert(self.session, Sentence).values(
                    id=str(raw["id"]),
                    english_text=raw["english_text"],
                    portuguese_text=raw["portuguese_text"],
                    level=raw.get("level", CourseLevel.BEGINNER.value),
                    category=raw.get("category"),
                    difficulty_score=raw.get("difficulty_score", 1.0),
                )
                result = await self.session.execute(stmt.on_conflict_do_nothing(index_elements=["id"]))
                counts["sentences"] += result.rowcount

            for position, raw in enumerate(lessons):
                stmt = dialect_insert(self.session, Lesson).values(
                    id=str(raw["id"]),
                    title=raw["title"],
                    description=raw.get("description"),
                    level=raw.get("level", CourseLevel.BEGINNER.value),
                    order_index=raw.get("order_index", position),
                    is_active=raw.get("is_active", True),
                )
                result = await self.session.execute(stmt.on_conflict_do_nothing(index_elements=["id"]))
                counts["lessons"] += result.rowcount

                for order, sentence_id in enumerate(raw.get("sentence_ids", [])):
                    stmt = dialect_insert(self.session, LessonSentence).values(
                        lesson_id=str(raw["id"]),
                        sentence_id=str(sentence_id),
                        order_index=order,
                    )
                    result = await self.session.execute(
                        stmt.on_conflict_do_nothing(index_elements=["lesson_id", "sentence_id"])
                    )
                    counts["lesson_items"] += result.rowcount

        logger.info(
            f"Catalog loaded: {counts['sentences']} sentences, {counts['lessons']} lessons, "
            f"{counts['lesson_items']} lesson items"
        )
        return counts


async def load_catalog(session: AsyncSession, path: Path) -> dict[str, int]:
    """Load a catalog JSON file ({"lessons": [...], "sentences": [...]})."""
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    return await ContentCatalog(session).load(data)
