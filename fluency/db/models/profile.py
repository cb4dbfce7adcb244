"""
Learner profile model.

Owned by the profile service; the engine reads the stats fields and only
ever writes points (as an atomic increment) and the any-activity streak.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class LearnerProfile(Base):
    __tablename__ = "profiles"

    learner_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    streak_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    level: Mapped[str] = mapped_column(String(20), nullable=False, default="beginner")
    daily_goal: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    last_activity_date: Mapped[date | None] = mapped_column(Date)
    total_phrases_learned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    subscription_tier: Mapped[str | None] = mapped_column(String(20))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<LearnerProfile {self.learner_id} points={self.points} streak={self.streak_count}>"
