"""
Pronunciation exercise evaluator.

The candidate is the transcript produced by an external speech-to-text
service for the learner's recording. Words are compared with token overlap;
the recognizer's own confidence is ignored.

Feedback tiers:
- >= 0.9 excellent
- >= 0.7 good (passing)
- >= 0.5 keep practicing
- otherwise retry
"""

import random
from typing import Any

from config import get_settings
from fluency.scoring import token_overlap

from . import ExerciseType, register
from .base import Verdict, answer_text, exercise_target

FEEDBACK_TIERS = (
    (0.9, "excellent", "Excellent pronunciation!"),
    (0.7, "good", "Good pronunciation!"),
    (0.5, "keep practicing", "Keep practicing, you're on the right track."),
)


def feedback_tier(score: float) -> tuple[str, str]:
    """Tier label and message for an overlap score."""
    for floor, tier, message in FEEDBACK_TIERS:
        if score >= floor:
            return tier, message
    return "retry", "Try again. Listen carefully and repeat."


@register(ExerciseType.PRONUNCIATION)
class PronunciationEvaluator:
    """Evaluator for spoken answers (transcript vs. target)."""

    def validate(self, exercise: dict) -> bool:
        target = exercise.get("target") or exercise.get("english_text")
        return bool(target and target.strip())

    def prepare(self, exercise: dict, rng: random.Random | None = None) -> dict:
        return {"expected_text": exercise_target(exercise)}

    def check(self, exercise: dict, answer: Any) -> Verdict:
        target = exercise_target(exercise)
        transcript = answer_text(answer, "transcript", "answer")

        score = token_overlap(transcript, target)
        tier, message = feedback_tier(score)

        return Verdict(
            correct=score >= get_settings().pronunciation_threshold,
            score=score,
            feedback=message,
            user_answer=transcript,
            expected=target,
            exercise_type=ExerciseType.PRONUNCIATION.value,
            tier=tier,
        )
