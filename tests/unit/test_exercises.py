"""
Unit tests for exercise evaluators.

Tests the registry and the check()/prepare() methods of each variant.
"""

import random

import pytest

from fluency.core.errors import ValidationError
from fluency.exercises import EVALUATORS, ExerciseType, get_evaluator, random_exercise_type
from fluency.exercises.fill_blanks import blank_out, pick_blank_word
from fluency.exercises.multiple_choice import build_options
from fluency.exercises.pronunciation import feedback_tier
from fluency.scoring import edit_similarity, normalize_text


class TestEvaluatorRegistry:
    """Test the evaluator registry."""

    def test_all_variants_registered(self):
        assert set(EVALUATORS) == set(ExerciseType)

    def test_get_evaluator_by_string(self):
        assert get_evaluator("translation") is EVALUATORS[ExerciseType.TRANSLATION]

    def test_get_evaluator_accepts_hyphens(self):
        assert get_evaluator("word-order") is EVALUATORS[ExerciseType.WORD_ORDER]

    def test_get_evaluator_invalid_type(self):
        assert get_evaluator("essay") is None

    def test_random_exercise_type(self):
        rng = random.Random(7)
        picks = {random_exercise_type(rng) for _ in range(200)}
        assert picks == set(ExerciseType)


class TestAnswerValidation:
    """Empty or malformed answers are rejected before scoring."""

    @pytest.fixture
    def evaluator(self):
        return get_evaluator(ExerciseType.TRANSLATION)

    @pytest.mark.parametrize("answer", ["", "   ", None, 42, {"answer": "  "}, {}])
    def test_rejects_blank_and_non_text(self, evaluator, sample_translation, answer):
        with pytest.raises(ValidationError):
            evaluator.check(sample_translation, answer)

    def test_accepts_answer_dict(self, evaluator, sample_translation):
        verdict = evaluator.check(sample_translation, {"answer": "I am happy"})
        assert verdict.correct is True

    def test_missing_target(self, evaluator):
        with pytest.raises(ValidationError):
            evaluator.check({"exercise_type": "translation"}, "hello")


class TestTranslationEvaluator:
    """Test the translation evaluator."""

    @pytest.fixture
    def evaluator(self):
        return get_evaluator(ExerciseType.TRANSLATION)

    def test_exact_answer(self, evaluator, sample_translation):
        verdict = evaluator.check(sample_translation, "I am happy")
        assert verdict.correct is True
        assert verdict.score == 1.0
        assert verdict.exercise_type == "translation"

    def test_ignores_case_and_punctuation(self, evaluator, sample_translation):
        verdict = evaluator.check(sample_translation, "i am HAPPY!!")
        assert verdict.correct is True
        assert verdict.score == 1.0

    def test_small_typo_passes(self, evaluator, sample_translation):
        """One missing letter out of ten is within the 0.8 threshold."""
        verdict = evaluator.check(sample_translation, "I am hapy")
        assert verdict.correct is True
        assert verdict.score == pytest.approx(0.9)
        assert "I am happy" in verdict.feedback

    def test_different_sentence_fails(self, evaluator, sample_translation):
        verdict = evaluator.check(sample_translation, "I am sad")
        assert verdict.correct is False
        assert verdict.score < 0.8

    @pytest.mark.parametrize(
        "answer",
        ["I am happy", "I am hapy", "I'm happy", "I am hungry", "You are happy", "happy", "I am so happy"],
    )
    def test_verdict_matches_similarity_threshold(self, evaluator, sample_translation, answer):
        """Correct exactly when normalized edit similarity reaches 0.8."""
        similarity = edit_similarity(normalize_text(answer), normalize_text("I am happy"))
        verdict = evaluator.check(sample_translation, answer)
        assert verdict.correct is (similarity >= 0.8)
        assert verdict.score == pytest.approx(similarity)


class TestMultipleChoiceEvaluator:
    """Test the multiple choice evaluator."""

    @pytest.fixture
    def evaluator(self):
        return get_evaluator(ExerciseType.MULTIPLE_CHOICE)

    def test_check_correct_answer(self, evaluator, sample_multiple_choice):
        verdict = evaluator.check(sample_multiple_choice, "Good morning")
        assert verdict.correct is True
        assert verdict.score == 1.0

    def test_check_wrong_option(self, evaluator, sample_multiple_choice):
        verdict = evaluator.check(sample_multiple_choice, "Good night")
        assert verdict.correct is False
        assert verdict.expected == "Good morning"

    def test_selection_outside_options(self, evaluator, sample_multiple_choice):
        with pytest.raises(ValidationError):
            evaluator.check(sample_multiple_choice, "Hello")

    def test_exact_match_required(self, evaluator):
        exercise = {"target": "Good morning", "options": ["Good morning", "good morning"]}
        assert evaluator.check(exercise, "good morning").correct is False

    def test_build_options_contains_answer_and_distinct_distractors(self):
        pool = ["Thank you", "Good night", "See you later", "Good morning", "Thank you", "Please"]
        options = build_options("Good morning", pool, rng=random.Random(3))

        assert len(options) == 4
        assert options.count("Good morning") == 1
        assert len(set(options)) == 4

    def test_build_options_small_pool(self):
        options = build_options("Yes", ["No"], rng=random.Random(1))
        assert sorted(options) == ["No", "Yes"]

    def test_build_options_shuffles(self):
        """Across seeds the correct answer lands in every position."""
        pool = ["a", "b", "c"]
        positions = {
            build_options("x", pool, rng=random.Random(seed)).index("x") for seed in range(100)
        }
        assert positions == {0, 1, 2, 3}

    def test_prepare_uses_distractor_pool(self, evaluator):
        exercise = {
            "target": "Good morning",
            "prompt": "Bom dia",
            "distractor_pool": ["Good night", "Thank you", "Please", "Sorry"],
        }
        payload = evaluator.prepare(exercise, random.Random(0))
        assert payload["prompt"] == "Bom dia"
        assert "Good morning" in payload["options"]
        assert len(payload["options"]) == 4


class TestWordOrderEvaluator:
    """Test the word order evaluator."""

    @pytest.fixture
    def evaluator(self):
        return get_evaluator(ExerciseType.WORD_ORDER)

    @pytest.fixture
    def exercise(self):
        return {"exercise_type": "word_order", "item_id": "b1", "target": "I am happy"}

    def test_correct_order(self, evaluator, exercise):
        verdict = evaluator.check(exercise, ["I", "am", "happy"])
        assert verdict.correct is True
        assert verdict.score == 1.0

    def test_swapped_words_fail(self, evaluator, exercise):
        """Exact order is required; no fuzzy tolerance."""
        verdict = evaluator.check(exercise, ["am", "I", "happy"])
        assert verdict.correct is False
        assert verdict.score == pytest.approx(1 / 3)

    def test_case_insensitive(self, evaluator, exercise):
        assert evaluator.check(exercise, ["i", "AM", "Happy"]).correct is True

    def test_selection_dict_and_string(self, evaluator, exercise):
        assert evaluator.check(exercise, {"selection": ["I", "am", "happy"]}).correct is True
        assert evaluator.check(exercise, "I am happy").correct is True

    @pytest.mark.parametrize("selection", [[], ["I", "am"], ["I", "am", "happy", "today"]])
    def test_malformed_selection(self, evaluator, exercise, selection):
        with pytest.raises(ValidationError):
            evaluator.check(exercise, selection)

    def test_prepare_pool_is_permutation(self, evaluator, exercise):
        payload = evaluator.prepare(exercise, random.Random(5))
        assert sorted(payload["pool"]) == sorted(["I", "am", "happy"])


class TestListeningEvaluator:
    """Test the listening evaluator."""

    @pytest.fixture
    def evaluator(self):
        return get_evaluator(ExerciseType.LISTENING)

    @pytest.fixture
    def exercise(self):
        return {"target": "I am happy"}

    def test_whitespace_and_case_ignored(self, evaluator, exercise):
        verdict = evaluator.check(exercise, "  i am   HAPPY ")
        assert verdict.correct is True
        assert verdict.score == 1.0

    def test_punctuation_is_significant(self, evaluator, exercise):
        verdict = evaluator.check(exercise, "I am happy.")
        assert verdict.correct is False
        assert verdict.score == pytest.approx(1 - 1 / 11)


class TestPronunciationEvaluator:
    """Test the pronunciation evaluator."""

    @pytest.fixture
    def evaluator(self):
        return get_evaluator(ExerciseType.PRONUNCIATION)

    @pytest.fixture
    def exercise(self):
        return {"target": "I am happy"}

    def test_exact_transcript(self, evaluator, exercise):
        verdict = evaluator.check(exercise, {"transcript": "i am happy", "confidence": 0.2})
        assert verdict.correct is True
        assert verdict.tier == "excellent"

    def test_passing_with_extra_word(self, evaluator, exercise):
        verdict = evaluator.check(exercise, "I am happy today")
        assert verdict.score == pytest.approx(0.75)
        assert verdict.correct is True
        assert verdict.tier == "good"

    def test_missing_word_fails(self, evaluator, exercise):
        verdict = evaluator.check(exercise, "I am")
        assert verdict.correct is False
        assert verdict.tier == "keep practicing"

    @pytest.mark.parametrize(
        "score,tier",
        [(1.0, "excellent"), (0.9, "excellent"), (0.7, "good"), (0.5, "keep practicing"), (0.49, "retry")],
    )
    def test_feedback_tiers(self, score, tier):
        assert feedback_tier(score)[0] == tier


class TestFillBlanksEvaluator:
    """Test the fill-in-the-blank evaluator."""

    @pytest.fixture
    def evaluator(self):
        return get_evaluator(ExerciseType.FILL_BLANKS)

    def test_prefers_common_words(self):
        picks = {pick_blank_word("The cat is not here", random.Random(seed)) for seed in range(50)}
        assert picks == {"The", "not"}

    def test_falls_back_to_long_words(self):
        assert pick_blank_word("I am happy", random.Random(0)) == "happy"

    def test_falls_back_to_first_word(self):
        assert pick_blank_word("I am", random.Random(0)) == "I"

    def test_blank_out(self):
        assert blank_out("The cat is not here", "not") == "The cat is _____ here"

    def test_check_case_insensitive(self, evaluator):
        exercise = {"target": "The cat is not here", "blank_word": "not"}
        assert evaluator.check(exercise, " NOT ").correct is True
        assert evaluator.check(exercise, "now").correct is False

    def test_blank_word_punctuation_stripped(self, evaluator):
        exercise = {"target": "Wait here.", "blank_word": "here."}
        verdict = evaluator.check(exercise, "here")
        assert verdict.correct is True
        assert verdict.expected == "here"

    def test_prepare(self, evaluator):
        payload = evaluator.prepare({"target": "I am happy"}, random.Random(0))
        assert payload == {"blank_word": "happy", "display": "I am _____"}
