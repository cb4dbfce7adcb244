"""
Tests for LessonGate.

Tests:
- Level unlock at the 80% boundary and via profile level
- Lesson unlock: first lesson, progress rows, mastery heuristic
- Lesson completion, eager next-lesson unlock, no downgrades
- First-sight initialization and store failures reading as locked
"""

import pytest
from sqlalchemy import text

from fluency.core.errors import NotFoundError
from fluency.core.levels import CourseLevel
from fluency.db.models import LessonStatus
from fluency.engine import LessonGate, MasteryTracker, ProfileService


async def master(session, learner_id, item_ids):
    tracker = MasteryTracker(session)
    for item_id in item_ids:
        await tracker.record_answer(learner_id, item_id, correct=True)


@pytest.fixture
def gate(session, catalog):
    return LessonGate(session)


class TestLevelUnlock:
    """Tests for level gating."""

    @pytest.mark.asyncio
    async def test_beginner_always_open(self, gate):
        assert await gate.is_level_unlocked("alice", "beginner") is True
        assert await gate.is_level_unlocked("alice", "intermediate") is False
        assert await gate.is_level_unlocked("alice", "advanced") is False

    @pytest.mark.asyncio
    async def test_intermediate_opens_at_exactly_eighty_percent(self, gate, session):
        """12 of 15 beginner items mastered is 80%, which unlocks intermediate."""
        await master(session, "alice", [f"b{n}" for n in range(1, 12)])
        assert await gate.is_level_unlocked("alice", "intermediate") is False

        await master(session, "alice", ["b12"])
        completion = await gate.level_completion("alice")
        assert completion[CourseLevel.BEGINNER] == 80.0
        assert await gate.is_level_unlocked("alice", "intermediate") is True
        assert await gate.is_level_unlocked("alice", "advanced") is False

    @pytest.mark.asyncio
    async def test_profile_level_opens_tiers(self, gate, session):
        await ProfileService(session).ensure_profile("alice", level="advanced")
        assert await gate.is_level_unlocked("alice", "intermediate") is True
        assert await gate.is_level_unlocked("alice", "advanced") is True

    @pytest.mark.asyncio
    async def test_unknown_level_locked(self, gate):
        assert await gate.is_level_unlocked("alice", "expert") is False


class TestLessonUnlock:
    """Tests for lesson gating."""

    @pytest.mark.asyncio
    async def test_first_lesson_open(self, gate):
        assert await gate.is_lesson_unlocked("alice", "greetings") is True
        assert await gate.is_lesson_unlocked("alice", "travel") is False

    @pytest.mark.asyncio
    async def test_mastery_heuristic(self, gate, session):
        """Lesson i opens once 2 * i items are mastered."""
        await master(session, "alice", ["b1"])
        assert await gate.is_lesson_unlocked("alice", "travel") is False

        await master(session, "alice", ["b2"])
        assert await gate.is_lesson_unlocked("alice", "travel") is True
        assert await gate.is_lesson_unlocked("alice", "introductions") is False

    @pytest.mark.asyncio
    async def test_lesson_in_locked_level(self, gate):
        assert await gate.is_lesson_unlocked("alice", "habits") is False

    @pytest.mark.asyncio
    async def test_explicit_unlock(self, gate):
        status = await gate.unlock_lesson("alice", "introductions")
        assert status is LessonStatus.UNLOCKED
        assert await gate.is_lesson_unlocked("alice", "introductions") is True

    @pytest.mark.asyncio
    async def test_unknown_lesson(self, gate):
        with pytest.raises(NotFoundError):
            await gate.is_lesson_unlocked("alice", "no-such-lesson")

    @pytest.mark.asyncio
    async def test_store_failure_reads_locked(self, gate, session):
        await session.execute(text("DROP TABLE lessons"))
        await session.commit()

        assert await gate.is_lesson_unlocked("alice", "greetings") is False


class TestLessonProgress:
    """Tests for initialization and completion."""

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, gate):
        assert await gate.initialize_lesson_progress("alice") == 5
        assert await gate.initialize_lesson_progress("alice") == 0

        assert await gate.get_lesson_status("alice", "greetings") is LessonStatus.UNLOCKED
        assert await gate.get_lesson_status("alice", "travel") is LessonStatus.LOCKED
        assert await gate.get_lesson_status("alice", "habits") is LessonStatus.LOCKED

    @pytest.mark.asyncio
    async def test_ensure_learner_first_sight_only(self, gate):
        assert await gate.ensure_learner("alice") == 5
        assert await gate.ensure_learner("alice") == 0
        assert await gate.get_lesson_status("alice", "greetings") is LessonStatus.UNLOCKED

    @pytest.mark.asyncio
    async def test_ensure_learner_keeps_existing_rows(self, gate):
        """A learner with any progress row is not re-initialized."""
        await gate.complete_lesson("alice", "travel")

        assert await gate.ensure_learner("alice") == 0
        assert await gate.get_lesson_status("alice", "greetings") is LessonStatus.LOCKED
        assert await gate.get_lesson_status("alice", "travel") is LessonStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_complete_unlocks_next_lesson(self, gate):
        await gate.initialize_lesson_progress("alice")

        unlocked = await gate.complete_lesson("alice", "greetings")

        assert unlocked == "travel"
        assert await gate.get_lesson_status("alice", "greetings") is LessonStatus.COMPLETED
        assert await gate.get_lesson_status("alice", "travel") is LessonStatus.UNLOCKED
        assert await gate.is_lesson_unlocked("alice", "travel") is True

    @pytest.mark.asyncio
    async def test_completion_never_downgraded(self, gate):
        await gate.complete_lesson("alice", "travel")
        await gate.complete_lesson("alice", "greetings")  # would unlock travel

        assert await gate.get_lesson_status("alice", "travel") is LessonStatus.COMPLETED
        assert await gate.unlock_lesson("alice", "travel") is LessonStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_completed_at_written_once(self, gate):
        await gate.complete_lesson("alice", "greetings")
        first = (await gate._get_record("alice", "greetings")).completed_at
        assert first is not None

        await gate.complete_lesson("alice", "greetings")
        assert (await gate._get_record("alice", "greetings")).completed_at == first

    @pytest.mark.asyncio
    async def test_last_lesson_of_level(self, gate):
        assert await gate.complete_lesson("alice", "introductions") is None

    @pytest.mark.asyncio
    async def test_eager_unlock_disabled(self, gate, settings):
        settings.set(eager_next_lesson_unlock=False)

        assert await gate.complete_lesson("alice", "greetings") is None
        assert await gate.get_lesson_status("alice", "travel") is LessonStatus.LOCKED


class TestSummary:
    @pytest.mark.asyncio
    async def test_summary(self, gate, session):
        await master(session, "alice", ["b1", "b2"])
        levels = await gate.summary("alice")

        assert [level.level.value for level in levels] == ["beginner", "intermediate", "advanced"]
        beginner = levels[0]
        assert beginner.mastered == 2
        assert beginner.required == 15
        assert beginner.unlocked is True
        assert [lesson.unlocked for lesson in beginner.lessons] == [True, True, False]
        assert levels[1].unlocked is False
        assert levels[2].lessons == []

    @pytest.mark.asyncio
    async def test_summary_initializes_new_learner(self, gate):
        levels = await gate.summary("bob")

        statuses = [lesson.status for lesson in levels[0].lessons]
        assert statuses == [LessonStatus.UNLOCKED, LessonStatus.LOCKED, LessonStatus.LOCKED]
        assert [lesson.status for lesson in levels[1].lessons] == [LessonStatus.LOCKED] * 2
