"""
Exercise evaluators.

Each exercise variant (translation, multiple choice, word order, ...) has its
own module with:
- validate(): Check the exercise carries the fields the variant needs
- prepare(): Build the presentation payload (options, shuffled pool, blank)
- check(): Score a candidate answer and return a Verdict
"""

import random
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import ExerciseEvaluator


class ExerciseType(str, Enum):
    """Supported exercise variants."""
    TRANSLATION = "translation"
    MULTIPLE_CHOICE = "multiple_choice"
    WORD_ORDER = "word_order"
    LISTENING = "listening"
    PRONUNCIATION = "pronunciation"
    FILL_BLANKS = "fill_blanks"


# Evaluator registry - populated by @register decorator
EVALUATORS: dict[ExerciseType, "ExerciseEvaluator"] = {}


def register(exercise_type: ExerciseType):
    """Decorator to register an exercise evaluator."""
    def decorator(cls):
        EVALUATORS[exercise_type] = cls()
        return cls
    return decorator


def get_evaluator(exercise_type: str | ExerciseType) -> "ExerciseEvaluator | None":
    """Get the evaluator for an exercise type."""
    if isinstance(exercise_type, str):
        try:
            exercise_type = ExerciseType(exercise_type.lower().replace("-", "_"))
        except ValueError:
            return None
    return EVALUATORS.get(exercise_type)


def random_exercise_type(rng: random.Random | None = None) -> ExerciseType:
    """Pick an exercise variant uniformly at random."""
    rng = rng or random.Random()
    return rng.choice(list(ExerciseType))


# Import evaluators to trigger registration
from . import translation
from . import multiple_choice
from . import word_order
from . import listening
from . import pronunciation
from . import fill_blanks

__all__ = [
    "EVALUATORS",
    "ExerciseType",
    "get_evaluator",
    "random_exercise_type",
    "register",
]
