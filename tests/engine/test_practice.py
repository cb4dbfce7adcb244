"""
End-to-end tests for PracticeService.submit_answer.

Tests:
- The full pipeline for a correct first answer
- Validation failures write nothing
- Lesson completion from the last item of a lesson
- Lesson progress created the first time a learner answers
- Persistence failures keep the verdict
- Plan limit enforcement
"""

from datetime import datetime

import pytest
from sqlalchemy import text

from fluency.core.errors import LimitReachedError, NotFoundError, ValidationError
from fluency.db.models import LessonStatus, ProgressStatus
from fluency.engine import (
    ContentCatalog,
    DailyActivityAggregator,
    LessonGate,
    MasteryTracker,
    PracticeService,
    ProfileService,
)
from fluency.schemas import PracticeEvent

NOW = datetime(2024, 3, 10, 9, 0, 0)


@pytest.fixture
def practice(session, catalog):
    return PracticeService(session)


class TestCorrectAnswer:
    """A first correct answer runs every step of the pipeline."""

    @pytest.mark.asyncio
    async def test_pipeline(self, practice, session, sample_translation):
        outcome = await practice.submit_answer(
            "alice", sample_translation, "I am happy", lesson_id="greetings", now=NOW
        )

        assert outcome.saved is True
        assert outcome.errors == []
        assert outcome.verdict.correct is True
        assert outcome.verdict.score == 1.0
        assert outcome.status == ProgressStatus.MASTERED.value
        assert outcome.mastered_now is True
        assert outcome.points_awarded == 35
        assert outcome.daily_practiced == 1
        assert outcome.daily_goal_met is False
        assert outcome.lesson_completed is False
        assert [badge.id for badge in outcome.celebration.badges] == ["first_lesson"]

        stats = await ProfileService(session).get_stats("alice")
        assert stats.points == 85  # 35 for the answer + 50 for first_lesson
        assert stats.total_phrases_learned == 1
        assert stats.streak_count == 1
        assert stats.last_activity_date == NOW.date()

        rollup = await DailyActivityAggregator(session).today("alice", on=NOW.date())
        assert rollup.mastered_count == 1
        assert rollup.points_earned == 35

    @pytest.mark.asyncio
    async def test_submit_event(self, practice, sample_multiple_choice):
        event = PracticeEvent(
            learner_id="alice", exercise=sample_multiple_choice, answer="Good morning"
        )
        outcome = await practice.submit(event, now=NOW)
        assert outcome.verdict.correct is True
        assert outcome.item_id == "b2"

    @pytest.mark.asyncio
    async def test_built_exercise(self, practice, session):
        exercise = await ContentCatalog(session).build_exercise("b4", "translation")
        outcome = await practice.submit_answer("alice", exercise, "See you later!", now=NOW)
        assert outcome.verdict.correct is True
        assert outcome.mastered_now is True


class TestIncorrectAnswer:
    @pytest.mark.asyncio
    async def test_wrong_answer_is_learning(self, practice, session, sample_translation):
        outcome = await practice.submit_answer("alice", sample_translation, "I am sad today", now=NOW)

        assert outcome.saved is True
        assert outcome.verdict.correct is False
        assert outcome.status == ProgressStatus.LEARNING.value
        assert outcome.points_awarded == 0
        assert outcome.celebration.badges == []
        assert (await ProfileService(session).get_stats("alice")).streak_count == 1


class TestValidation:
    """Malformed input is rejected before anything is written."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answer", ["", "   ", None, {"answer": None}])
    async def test_empty_answer(self, practice, session, sample_translation, answer):
        with pytest.raises(ValidationError):
            await practice.submit_answer("alice", sample_translation, answer, now=NOW)

        assert await MasteryTracker(session).get_progress("alice", "b1") is None
        assert await DailyActivityAggregator(session).today("alice", on=NOW.date()) is None

    @pytest.mark.asyncio
    async def test_unknown_exercise_type(self, practice):
        exercise = {"exercise_type": "essay", "item_id": "b1", "target": "I am happy"}
        with pytest.raises(ValidationError):
            await practice.submit_answer("alice", exercise, "I am happy")

    @pytest.mark.asyncio
    async def test_missing_item_id(self, practice, sample_translation):
        del sample_translation["item_id"]
        with pytest.raises(ValidationError):
            await practice.submit_answer("alice", sample_translation, "I am happy")

    @pytest.mark.asyncio
    async def test_unknown_lesson(self, practice, session, sample_translation):
        with pytest.raises(NotFoundError):
            await practice.submit_answer(
                "alice", sample_translation, "I am happy", lesson_id="no-such-lesson"
            )
        assert await MasteryTracker(session).get_progress("alice", "b1") is None


class TestLessonCompletion:
    @pytest.mark.asyncio
    async def test_last_item_completes_lesson(self, practice, session):
        exercise = {
            "exercise_type": "translation",
            "item_id": "b3",
            "target": "Thank you",
            "prompt": "Obrigado",
        }

        outcome = await practice.submit_answer(
            "alice", exercise, "thank you", lesson_id="greetings", now=NOW
        )

        assert outcome.lesson_completed is True
        gate = LessonGate(session)
        assert await gate.get_lesson_status("alice", "greetings") is LessonStatus.COMPLETED
        assert await gate.get_lesson_status("alice", "travel") is LessonStatus.UNLOCKED

    @pytest.mark.asyncio
    async def test_other_item_does_not_complete(self, practice, session, sample_translation):
        outcome = await practice.submit_answer(
            "alice", sample_translation, "I am happy", lesson_id="greetings", now=NOW
        )
        assert outcome.lesson_completed is False
        assert await LessonGate(session).get_lesson_status("alice", "greetings") is LessonStatus.UNLOCKED


class TestNewLearner:
    """The first answer from a learner sets up their lesson progress."""

    @pytest.mark.asyncio
    async def test_first_answer_unlocks_first_lesson(self, practice, session, sample_translation):
        outcome = await practice.submit_answer("carol", sample_translation, "I am happy", now=NOW)
        assert outcome.saved is True

        gate = LessonGate(session)
        assert await gate.get_lesson_status("carol", "greetings") is LessonStatus.UNLOCKED
        assert await gate.get_lesson_status("carol", "travel") is LessonStatus.LOCKED

        beginner = (await gate.summary("carol"))[0]
        assert beginner.lessons[0].status is LessonStatus.UNLOCKED
        assert beginner.lessons[0].unlocked is True

    @pytest.mark.asyncio
    async def test_later_answers_keep_progress(self, practice, session):
        last = {
            "exercise_type": "translation",
            "item_id": "b3",
            "target": "Thank you",
            "prompt": "Obrigado",
        }
        await practice.submit_answer("carol", last, "thank you", lesson_id="greetings", now=NOW)
        await practice.submit_answer("carol", last, "thank you", now=NOW)

        gate = LessonGate(session)
        assert await gate.get_lesson_status("carol", "greetings") is LessonStatus.COMPLETED
        assert await gate.get_lesson_status("carol", "travel") is LessonStatus.UNLOCKED


class TestPersistenceFailure:
    @pytest.mark.asyncio
    async def test_verdict_survives_store_failure(self, practice, session, sample_translation):
        await session.execute(text("DROP TABLE user_progress"))
        await session.commit()

        outcome = await practice.submit_answer("alice", sample_translation, "I am happy", now=NOW)

        assert outcome.saved is False
        assert len(outcome.errors) == 1
        assert "record_answer" in outcome.errors[0]
        assert outcome.verdict.correct is True
        assert outcome.mastered_now is False
        assert outcome.celebration is None


class TestPlanLimits:
    @pytest.mark.asyncio
    async def test_free_plan_daily_lessons(self, practice, session, sample_translation, settings):
        settings.set(enforce_plan_limits=True)

        for _ in range(3):
            outcome = await practice.submit_answer("alice", sample_translation, "I am happy")
            assert outcome.saved is True

        with pytest.raises(LimitReachedError) as exc_info:
            await practice.submit_answer("alice", sample_translation, "I am happy")
        assert exc_info.value.feature == "lessons"
        assert exc_info.value.tier == "free"

        record = await MasteryTracker(session).get_progress("alice", "b1")
        assert record.attempts == 3

    @pytest.mark.asyncio
    async def test_not_enforced_by_default(self, practice, sample_translation):
        for _ in range(4):
            outcome = await practice.submit_answer("alice", sample_translation, "I am happy")
        assert outcome.saved is True
