"""
Translation exercise evaluator.

The learner translates the prompt into the target language as free text.
Both strings are normalized (punctuation stripped, whitespace collapsed,
lowercased) and the answer passes when its edit similarity to the target
reaches the configured threshold (0.8 by default).
"""

import random
from typing import Any

from config import get_settings
from fluency.scoring import edit_similarity, normalize_text

from . import ExerciseType, register
from .base import Verdict, answer_text, exercise_target


@register(ExerciseType.TRANSLATION)
class TranslationEvaluator:
    """Evaluator for free-text translation exercises."""

    def validate(self, exercise: dict) -> bool:
        target = exercise.get("target") or exercise.get("english_text")
        return bool(target and target.strip())

    def prepare(self, exercise: dict, rng: random.Random | None = None) -> dict:
        return {"prompt": exercise.get("prompt") or exercise.get("portuguese_text", "")}

    def check(self, exercise: dict, answer: Any) -> Verdict:
        target = exercise_target(exercise)
        user_answer = answer_text(answer)
        threshold = get_settings().translation_threshold

        similarity = edit_similarity(normalize_text(user_answer), normalize_text(target))
        is_correct = similarity >= threshold

        if is_correct:
            feedback = "Correct!" if similarity == 1.0 else f"Correct! Exact answer: {target}"
        else:
            feedback = f"Expected: {target}"

        return Verdict(
            correct=is_correct,
            score=similarity,
            feedback=feedback,
            user_answer=user_answer,
            expected=target,
            exercise_type=ExerciseType.TRANSLATION.value,
        )
