"""
Learner progress models.

SQLAlchemy models for durable learner state:
- Per-item mastery progress
- Per-day activity rollups
- Per-lesson unlock/completion state
- Unlocked achievements
- Per-day chat usage (plan quota)

Every "one row per ..." rule is backed by a unique constraint so that
upserts and unlock inserts stay atomic under concurrent submissions.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ProgressStatus(str, Enum):
    """Mastery state of one item for one learner."""

    NOT_STARTED = "not_started"
    LEARNING = "learning"
    MASTERED = "mastered"
    REVIEW_NEEDED = "review_needed"  # never set by this engine


class LessonStatus(str, Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    COMPLETED = "completed"


class ProgressRecord(Base):
    """
    Mastery progress per learner per item.

    attempts only grows; correct_attempts never exceeds attempts;
    mastered_at is written once, on the transition into mastered.
    """

    __tablename__ = "user_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    item_id: Mapped[str] = mapped_column(String(64), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ProgressStatus.NOT_STARTED.value
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    correct_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_practiced_at: Mapped[datetime | None] = mapped_column(DateTime)
    mastered_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("learner_id", "item_id", name="uq_progress_learner_item"),
        CheckConstraint("correct_attempts <= attempts", name="ck_progress_correct_le_attempts"),
        Index("idx_progress_learner_status", "learner_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<ProgressRecord learner={self.learner_id} item={self.item_id} status={self.status}>"

    @property
    def is_mastered(self) -> bool:
        return self.status == ProgressStatus.MASTERED.value


class DailyActivityRecord(Base):
    """Practice rollup for one learner on one calendar day."""

    __tablename__ = "daily_activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    activity_date: Mapped[date] = mapped_column(Date, nullable=False)

    practiced_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    mastered_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    goal_met: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("learner_id", "activity_date", name="uq_daily_learner_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<DailyActivityRecord learner={self.learner_id} date={self.activity_date} "
            f"practiced={self.practiced_count}>"
        )


class LessonProgressRecord(Base):
    """Unlock/completion state of a lesson for a learner."""

    __tablename__ = "lesson_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    lesson_id: Mapped[str] = mapped_column(String(64), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=LessonStatus.LOCKED.value
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("learner_id", "lesson_id", name="uq_lesson_progress_learner_lesson"),
    )

    @property
    def is_open(self) -> bool:
        return self.status in (LessonStatus.UNLOCKED.value, LessonStatus.COMPLETED.value)


class AchievementRecord(Base):
    """A badge unlocked by a learner. At most one row per (learner, badge)."""

    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    badge_id: Mapped[str] = mapped_column(String(64), nullable=False)

    unlocked_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_new: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("learner_id", "badge_id", name="uq_achievement_learner_badge"),
    )

    def __repr__(self) -> str:
        return f"<AchievementRecord learner={self.learner_id} badge={self.badge_id} new={self.is_new}>"


class ChatUsageRecord(Base):
    """Chat messages sent by a learner on one calendar day."""

    __tablename__ = "chat_usage"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    usage_date: Mapped[date] = mapped_column(Date, nullable=False)
    message_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("learner_id", "usage_date", name="uq_chat_usage_learner_date"),
    )
