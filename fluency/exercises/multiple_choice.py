"""
Multiple choice exercise evaluator.

Options are the correct sentence plus distractors sampled from other items
of the same level (or of any level when it has no others), shuffled into a
uniform random permutation. Grading is exact string equality with the
correct option.
"""

import random
from typing import Any, Sequence

from config import get_settings
from fluency.core.errors import ValidationError

from . import ExerciseType, register
from .base import Verdict, answer_text, exercise_target


def build_options(
    correct: str,
    pool: Sequence[str],
    rng: random.Random | None = None,
    distractors: int = 3,
) -> list[str]:
    """
    Sample distractors from the pool and shuffle them with the correct answer.

    Distractors are distinct and never equal to the correct answer. A pool
    smaller than the requested count yields fewer options.
    """
    rng = rng or random.Random()
    candidates = list(dict.fromkeys(text for text in pool if text and text != correct))
    sampled = rng.sample(candidates, min(distractors, len(candidates)))

    options = [correct, *sampled]
    rng.shuffle(options)
    return options


@register(ExerciseType.MULTIPLE_CHOICE)
class MultipleChoiceEvaluator:
    """Evaluator for multiple choice exercises."""

    def validate(self, exercise: dict) -> bool:
        correct = exercise.get("correct_answer") or exercise.get("target")
        options = exercise.get("options")
        if not correct:
            return False
        if options is not None:
            return correct in options and len(options) >= 2
        return bool(exercise.get("distractor_pool"))

    def prepare(self, exercise: dict, rng: random.Random | None = None) -> dict:
        correct = exercise.get("correct_answer") or exercise_target(exercise)
        options = build_options(
            correct,
            exercise.get("distractor_pool", []),
            rng=rng,
            distractors=get_settings().mcq_distractor_count,
        )
        return {
            "prompt": exercise.get("prompt") or exercise.get("portuguese_text", ""),
            "options": options,
        }

    def check(self, exercise: dict, answer: Any) -> Verdict:
        correct = exercise.get("correct_answer") or exercise_target(exercise)
        selected = answer_text(answer, "selected", "answer")

        options = exercise.get("options")
        if options and selected not in options:
            raise ValidationError(f"'{selected}' is not one of the offered options")

        is_correct = selected == correct
        return Verdict(
            correct=is_correct,
            score=1.0 if is_correct else 0.0,
            feedback="Correct!" if is_correct else f"Expected: {correct}",
            user_answer=selected,
            expected=correct,
            exercise_type=ExerciseType.MULTIPLE_CHOICE.value,
        )
