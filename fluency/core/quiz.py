"""
Quiz modes and difficulty tiers.

A quiz is a fixed batch of multiple-choice or translation questions:

- practice: 10 beginner questions, untimed
- timed: 15 intermediate questions, 30 seconds each
- challenge: 5 questions from each level, shuffled together, 20 seconds each

Each question's difficulty tier comes from its item's difficulty_score and
sets the quiz points a correct answer is worth (10 / 20 / 30).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from fluency.core.levels import CourseLevel


class QuizMode(str, Enum):
    PRACTICE = "practice"
    TIMED = "timed"
    CHALLENGE = "challenge"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


DIFFICULTY_POINTS: dict[Difficulty, int] = {
    Difficulty.EASY: 10,
    Difficulty.MEDIUM: 20,
    Difficulty.HARD: 30,
}


@dataclass(frozen=True)
class QuizPlan:
    """Questions to draw per level, and the per-question time limit."""

    draws: tuple[tuple[CourseLevel, int], ...]
    time_limit: int | None = None  # seconds per question, None = untimed
    shuffle: bool = False


QUIZ_PLANS: dict[QuizMode, QuizPlan] = {
    QuizMode.PRACTICE: QuizPlan(draws=((CourseLevel.BEGINNER, 10),)),
    QuizMode.TIMED: QuizPlan(draws=((CourseLevel.INTERMEDIATE, 15),), time_limit=30),
    QuizMode.CHALLENGE: QuizPlan(
        draws=(
            (CourseLevel.BEGINNER, 5),
            (CourseLevel.INTERMEDIATE, 5),
            (CourseLevel.ADVANCED, 5),
        ),
        time_limit=20,
        shuffle=True,
    ),
}


def difficulty_for(score: float | None) -> Difficulty:
    """Tier for a difficulty score: <=3 easy, <=6 medium, otherwise hard."""
    if score is None or score <= 3:
        return Difficulty.EASY
    if score <= 6:
        return Difficulty.MEDIUM
    return Difficulty.HARD


@dataclass
class QuizQuestion:
    exercise: dict[str, Any]
    difficulty: Difficulty

    @property
    def item_id(self) -> str:
        return self.exercise["item_id"]

    @property
    def points(self) -> int:
        return DIFFICULTY_POINTS[self.difficulty]


@dataclass
class Quiz:
    mode: QuizMode
    questions: list[QuizQuestion]
    time_limit: int | None = None


@dataclass
class QuizTally:
    """Running result of a quiz: answers given, correct ones, quiz points."""

    answered: int = 0
    correct: int = 0
    points: int = 0
    item_ids: list[str] = field(default_factory=list)

    def record(self, question: QuizQuestion, correct: bool) -> int:
        """Count one answer and return the quiz points it earned."""
        earned = question.points if correct else 0
        self.answered += 1
        self.correct += 1 if correct else 0
        self.points += earned
        self.item_ids.append(question.item_id)
        return earned

    @property
    def percentage(self) -> float:
        return self.correct / self.answered * 100 if self.answered else 0.0
