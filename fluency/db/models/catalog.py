"""
Content catalog models.

Lessons and sentences are authored elsewhere; the engine only reads them
to order items within lessons, group them by level and sample
multiple-choice distractors.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Lesson(Base):
    __tablename__ = "lessons"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    level: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Lesson {self.id} level={self.level} order={self.order_index}>"


class Sentence(Base):
    """A practice item."""

    __tablename__ = "sentences"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    english_text: Mapped[str] = mapped_column(Text, nullable=False)
    portuguese_text: Mapped[str] = mapped_column(Text, nullable=False)
    level: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    category: Mapped[str | None] = mapped_column(String(64))
    difficulty_score: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)


class LessonSentence(Base):
    """Ordered membership of a sentence in a lesson."""

    __tablename__ = "lesson_sentences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lesson_id: Mapped[str] = mapped_column(
        ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sentence_id: Mapped[str] = mapped_column(
        ForeignKey("sentences.id", ondelete="CASCADE"), nullable=False
    )
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("lesson_id", "sentence_id", name="uq_lesson_sentence"),
    )
