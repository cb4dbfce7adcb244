"""
Practice Service.

Entry point for one submitted answer. Runs the pipeline in order:

    evaluate -> lesson rows (first sight) -> mastery -> daily rollup
             -> profile points/streak -> lesson completion -> achievements

Scoring is pure and always happens first; an empty or malformed answer
raises ValidationError before anything is written. Each store step commits
on its own, so a PersistenceError stops the remaining steps but leaves the
earlier ones saved. The verdict is returned either way, with saved=False
and the error listed when persistence failed.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from fluency.core.errors import LimitReachedError, PersistenceError, ValidationError
from fluency.core.plans import Feature
from fluency.engine.achievements import AchievementEvaluator
from fluency.engine.catalog import ContentCatalog
from fluency.engine.daily_activity import DailyActivityAggregator
from fluency.engine.lesson_gate import LessonGate
from fluency.engine.mastery_tracker import MasteryTracker
from fluency.engine.plan_usage import PlanUsageService
from fluency.engine.profile import ProfileService
from fluency.exercises import get_evaluator
from fluency.exercises.base import Verdict
from fluency.schemas import PracticeEvent, PracticeOutcome, VerdictView


def evaluate_answer(exercise: dict[str, Any], answer: Any) -> Verdict:
    """Score an answer with the evaluator registered for the exercise type."""
    exercise_type = exercise.get("exercise_type")
    evaluator = get_evaluator(exercise_type) if exercise_type else None
    if evaluator is None:
        raise ValidationError(f"Unknown exercise type: {exercise_type}")
    if not evaluator.validate(exercise):
        raise ValidationError(f"Exercise is missing fields required for {exercise_type}")
    return evaluator.check(exercise, answer)


class PracticeService:
    """Score answers and fold them into the learner's durable progress."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.settings = get_settings()
        self.catalog = ContentCatalog(session)
        self.tracker = MasteryTracker(session)
        self.activity = DailyActivityAggregator(session)
        self.profiles = ProfileService(session)
        self.lessons = LessonGate(session)
        self.achievements = AchievementEvaluator(session)
        self.usage = PlanUsageService(session)

    async def submit(self, event: PracticeEvent, now: datetime | None = None) -> PracticeOutcome:
        return await self.submit_answer(
            event.learner_id, event.exercise, event.answer, lesson_id=event.lesson_id, now=now
        )

    async def submit_answer(
        self,
        learner_id: str,
        exercise: dict[str, Any],
        answer: Any,
        lesson_id: str | None = None,
        now: datetime | None = None,
    ) -> PracticeOutcome:
        """
        Score one answer and persist its effects.

        Args:
            learner_id: Learner id
            exercise: Exercise as presented (exercise_type, item_id, target,
                and the variant's payload such as options or blank_word)
            answer: Raw candidate answer from the client
            lesson_id: Lesson the item was practiced in, if any
            now: Practice time (naive UTC), defaults to now

        Returns:
            PracticeOutcome with the verdict and whatever was saved

        Raises:
            ValidationError: answer or exercise is empty or malformed
            LimitReachedError: plan enforcement is on and lessons are limited
            NotFoundError: lesson_id is not in the catalog
        """
        item_id = exercise.get("item_id")
        if not item_id:
            raise ValidationError("Exercise has no item_id")

        verdict = evaluate_answer(exercise, answer)
        outcome = PracticeOutcome(
            learner_id=learner_id,
            item_id=str(item_id),
            verdict=VerdictView.model_validate(verdict),
        )

        if self.settings.enforce_plan_limits:
            gate = await self.usage.gate(learner_id)
            if gate.is_feature_limited(Feature.LESSONS):
                raise LimitReachedError(Feature.LESSONS.value, gate.tier.value)

        try:
            await self._persist(outcome, verdict, lesson_id, now)
        except PersistenceError as e:
            logger.warning(f"Answer by {learner_id} on {item_id} scored but not saved: {e}")
            outcome.saved = False
            outcome.errors.append(str(e))
        return outcome

    async def _persist(
        self,
        outcome: PracticeOutcome,
        verdict: Verdict,
        lesson_id: str | None,
        now: datetime | None,
    ) -> None:
        learner_id = outcome.learner_id
        item_id = outcome.item_id

        lesson_items = await self.catalog.lesson_items(lesson_id) if lesson_id else []
        await self.lessons.ensure_learner(learner_id)

        update = await self.tracker.record_answer(learner_id, item_id, verdict.correct, now=now)
        outcome.status = update.status
        outcome.mastered_now = update.mastered_now
        outcome.points_awarded = update.points

        stats = await self.profiles.get_stats(learner_id)
        day = now.date() if now else None
        rollup = await self.activity.record_practice(
            learner_id, update.mastered_now, update.points, stats.daily_goal, on=day
        )
        outcome.daily_practiced = rollup.practiced_count
        outcome.daily_goal_met = rollup.goal_met

        await self.profiles.add_points(
            learner_id, update.points, phrases_learned=1 if update.mastered_now else 0
        )
        await self.profiles.record_activity(learner_id, on=rollup.activity_date)

        if lesson_items and lesson_items[-1].id == item_id:
            await self.lessons.complete_lesson(learner_id, lesson_id)
            outcome.lesson_completed = True

        outcome.celebration = await self.achievements.evaluate(learner_id)
