"""
Quiz Service.

Builds practice / timed / challenge quizzes from the catalog and scores
their answers. Every quiz answer goes through PracticeService, so it
updates mastery, daily activity, points and badges like any other
practice; the quiz itself only adds its difficulty-weighted tally.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from fluency.core.errors import ValidationError
from fluency.core.quiz import QUIZ_PLANS, Quiz, QuizMode, QuizQuestion, QuizTally, difficulty_for
from fluency.engine.catalog import ContentCatalog
from fluency.engine.practice import PracticeService
from fluency.exercises import ExerciseType
from fluency.schemas import PracticeOutcome

QUESTION_TYPES = (ExerciseType.MULTIPLE_CHOICE, ExerciseType.TRANSLATION)


@dataclass
class QuizAnswer:
    outcome: PracticeOutcome
    quiz_points: int


class QuizService:
    """Build quizzes and run their answers through practice."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.catalog = ContentCatalog(session)
        self.practice = PracticeService(session)

    async def build(self, mode: QuizMode | str, rng: random.Random | None = None) -> Quiz:
        """
        Draw a quiz for the mode.

        Raises:
            ValidationError: unknown mode, or no items in the mode's levels
        """
        try:
            mode = QuizMode(mode)
        except ValueError:
            raise ValidationError(f"Unknown quiz mode: {mode}") from None
        rng = rng or random.Random()
        plan = QUIZ_PLANS[mode]

        questions = []
        for level, count in plan.draws:
            items = await self.catalog.items_for_level(level)
            for item in rng.sample(items, min(count, len(items))):
                exercise = await self.catalog.build_exercise(
                    item.id, rng.choice(QUESTION_TYPES), rng=rng
                )
                questions.append(QuizQuestion(exercise, difficulty_for(item.difficulty_score)))

        if not questions:
            raise ValidationError(f"No questions available for a {mode.value} quiz")
        if plan.shuffle:
            rng.shuffle(questions)

        logger.debug(f"Built {mode.value} quiz with {len(questions)} questions")
        return Quiz(mode=mode, questions=questions, time_limit=plan.time_limit)

    async def answer(
        self,
        learner_id: str,
        question: QuizQuestion,
        answer: Any,
        tally: QuizTally | None = None,
        now: datetime | None = None,
    ) -> QuizAnswer:
        """Submit one quiz answer; the tally (if given) counts it after scoring."""
        outcome = await self.practice.submit_answer(learner_id, question.exercise, answer, now=now)
        correct = outcome.verdict.correct
        if tally is not None:
            tally.record(question, correct)
        return QuizAnswer(outcome=outcome, quiz_points=question.points if correct else 0)
