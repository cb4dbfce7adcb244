"""
Word order exercise evaluator.

The target sentence is split on whitespace and shuffled into a pool; the
learner moves words from the pool into an ordered selection. The joined
selection must equal the target case-insensitively. There is no fuzzy
tolerance: one misplaced word fails the exercise. The share of words in
the right position is still reported as the score for feedback.
"""

import random
from typing import Any

from fluency.core.errors import ValidationError

from . import ExerciseType, register
from .base import Verdict, exercise_target


def shuffled_pool(target: str, rng: random.Random | None = None) -> list[str]:
    """Target words in a uniformly random order."""
    rng = rng or random.Random()
    words = target.split()
    rng.shuffle(words)
    return words


@register(ExerciseType.WORD_ORDER)
class WordOrderEvaluator:
    """Evaluator for word ordering exercises."""

    def validate(self, exercise: dict) -> bool:
        target = exercise.get("target") or exercise.get("english_text") or ""
        return len(target.split()) >= 2

    def prepare(self, exercise: dict, rng: random.Random | None = None) -> dict:
        return {
            "prompt": exercise.get("prompt") or exercise.get("portuguese_text", ""),
            "pool": shuffled_pool(exercise_target(exercise), rng),
        }

    def check(self, exercise: dict, answer: Any) -> Verdict:
        target = exercise_target(exercise)
        correct_words = target.split()

        if isinstance(answer, dict):
            answer = answer.get("selection")
        if isinstance(answer, str):
            answer = answer.split()
        if not answer:
            raise ValidationError("No words selected")

        selection = [str(word).strip() for word in answer]
        if len(selection) != len(correct_words):
            raise ValidationError(
                f"Selection has {len(selection)} words, expected {len(correct_words)}"
            )

        user_sentence = " ".join(selection)
        is_correct = user_sentence.lower() == " ".join(correct_words).lower()

        in_place = sum(
            1 for chosen, expected in zip(selection, correct_words)
            if chosen.lower() == expected.lower()
        )
        score = in_place / len(correct_words)

        return Verdict(
            correct=is_correct,
            score=1.0 if is_correct else score,
            feedback="Correct!" if is_correct else f"Correct order: {target}",
            user_answer=user_sentence,
            expected=target,
            exercise_type=ExerciseType.WORD_ORDER.value,
        )
