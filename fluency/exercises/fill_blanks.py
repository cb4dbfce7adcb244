"""
Fill-in-the-blank exercise evaluator.

One word of the target sentence is hidden. Common function words are
preferred as blanks since they are what learners most need to drill.
Grading is a case-insensitive exact match against the hidden word with its
punctuation removed.
"""

import random
import re
from typing import Any

from fluency.core.errors import ValidationError

from . import ExerciseType, register
from .base import Verdict, answer_text, exercise_target

COMMON_WORDS = {
    "am", "is", "are", "was", "were", "not", "and", "the",
    "a", "an", "to", "in", "on", "at", "for", "with",
}
BLANK = "_____"


def _clean(word: str) -> str:
    return re.sub(r"[^\w]", "", word)


def pick_blank_word(sentence: str, rng: random.Random | None = None) -> str:
    """Choose the word to hide: a common word longer than two letters if any."""
    rng = rng or random.Random()
    words = [w for w in re.sub(r"[^\w\s]", "", sentence).split() if len(w) > 2]
    common = [w for w in words if w.lower() in COMMON_WORDS]
    candidates = common or words
    if not candidates:
        return sentence.split()[0]
    return rng.choice(candidates)


def blank_out(sentence: str, word: str) -> str:
    cleaned = _clean(word)
    if not cleaned:
        return sentence
    return re.sub(rf"\b{re.escape(cleaned)}\b", BLANK, sentence, flags=re.IGNORECASE)


@register(ExerciseType.FILL_BLANKS)
class FillBlanksEvaluator:
    """Evaluator for fill-in-the-blank exercises."""

    def validate(self, exercise: dict) -> bool:
        target = exercise.get("target") or exercise.get("english_text") or ""
        return bool(target.split())

    def prepare(self, exercise: dict, rng: random.Random | None = None) -> dict:
        target = exercise_target(exercise)
        word = exercise.get("blank_word") or pick_blank_word(target, rng)
        return {"blank_word": word, "display": blank_out(target, word)}

    def check(self, exercise: dict, answer: Any) -> Verdict:
        word = _clean(exercise.get("blank_word") or "")
        if not word:
            raise ValidationError("Exercise has no blank word")
        user_answer = answer_text(answer)

        is_correct = user_answer.lower() == word.lower()
        return Verdict(
            correct=is_correct,
            score=1.0 if is_correct else 0.0,
            feedback="Correct!" if is_correct else f"Missing word: {word}",
            user_answer=user_answer,
            expected=word,
            exercise_type=ExerciseType.FILL_BLANKS.value,
        )
