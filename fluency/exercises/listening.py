"""
Listening (dictation) exercise evaluator.

The learner types what they hear. The answer must match the literal target
after basic normalization: trimmed, inner whitespace collapsed, case folded.
Punctuation is significant. Edit similarity is reported as the score.
"""

import random
import re
from typing import Any

from fluency.scoring import edit_similarity

from . import ExerciseType, register
from .base import Verdict, answer_text, exercise_target

_WHITESPACE = re.compile(r"\s+")


def basic_normalize(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip().casefold()


@register(ExerciseType.LISTENING)
class ListeningEvaluator:
    """Evaluator for dictation exercises."""

    def validate(self, exercise: dict) -> bool:
        target = exercise.get("target") or exercise.get("english_text")
        return bool(target and target.strip())

    def prepare(self, exercise: dict, rng: random.Random | None = None) -> dict:
        return {"audio_text": exercise_target(exercise)}

    def check(self, exercise: dict, answer: Any) -> Verdict:
        target = exercise_target(exercise)
        user_answer = answer_text(answer)

        normalized_user = basic_normalize(user_answer)
        normalized_target = basic_normalize(target)
        is_correct = normalized_user == normalized_target

        return Verdict(
            correct=is_correct,
            score=edit_similarity(normalized_user, normalized_target),
            feedback="Correct!" if is_correct else f"You heard: {target}",
            user_answer=user_answer,
            expected=target,
            exercise_type=ExerciseType.LISTENING.value,
        )
