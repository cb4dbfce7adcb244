"""
Base protocol and types for exercise evaluators.
"""

import random
from dataclasses import dataclass
from typing import Any, Protocol

from fluency.core.errors import ValidationError


@dataclass
class Verdict:
    """Result of checking an answer."""
    correct: bool
    score: float  # 0.0-1.0 confidence, reported even when the verdict is binary
    feedback: str
    user_answer: str
    expected: str
    exercise_type: str
    tier: str | None = None  # graded feedback label (pronunciation)


def answer_text(answer: Any, *keys: str) -> str:
    """
    Pull the candidate text out of a raw answer.

    Answers arrive either as plain strings or as dicts from the client
    ({"answer": ...}, {"transcript": ...}). Blank answers are rejected.
    """
    if isinstance(answer, dict):
        for key in keys or ("answer",):
            if answer.get(key) is not None:
                answer = answer[key]
                break
        else:
            raise ValidationError("Answer is empty")

    if answer is None:
        raise ValidationError("Answer is empty")
    if not isinstance(answer, str):
        raise ValidationError(f"Answer must be text, got {type(answer).__name__}")

    text = answer.strip()
    if not text:
        raise ValidationError("Answer is empty")
    return text


def exercise_target(exercise: dict) -> str:
    """The sentence the learner is expected to produce."""
    target = exercise.get("target") or exercise.get("english_text") or ""
    if not target.strip():
        raise ValidationError("Exercise has no target sentence")
    return target


class ExerciseEvaluator(Protocol):
    """Protocol for exercise variant evaluators."""

    def validate(self, exercise: dict) -> bool:
        """Check if exercise has required fields for this type. Returns True if valid."""
        ...

    def prepare(self, exercise: dict, rng: random.Random | None = None) -> dict:
        """Build the presentation payload for the exercise."""
        ...

    def check(self, exercise: dict, answer: Any) -> Verdict:
        """Score the answer and return the verdict."""
        ...
