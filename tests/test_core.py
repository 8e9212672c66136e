"""Unit tests for drill models and answer checking."""

import unittest

from drill.config import (
    DEFAULT_CARDS_PER_SET, DEFAULT_STREAK_LENGTH, METHOD_MANUAL, METHOD_SELF_REVIEW,
    MAX_CARDS_PER_SET, MAX_STREAK_LENGTH
)
from drill.errors import (
    DrillError, InvalidCard, InvalidSettings, InvalidEvaluationInput,
    IllegalTransition, CardsCheckedOut, InvalidProfile
)
from drill.evaluator import accepted_answers, check_answer, evaluate, match_answer, normalize_answer
from drill.models import (
    Card, CardSettings, CardType, MasteryTransition, Meaning, TestResult, Word, check_profile_name
)

from tests.mocks import make_card


# ============================================================================
# Models
# ============================================================================

class TestWord(unittest.TestCase):
    """Tests for Word."""

    def test_initialization(self):
        word = Word("hola", ["OH-la"])
        self.assertEqual(word.name, "hola")
        self.assertEqual(word.readings, ["OH-la"])

    def test_empty_name_rejected(self):
        with self.assertRaises(InvalidCard):
            Word("")
        with self.assertRaises(InvalidCard):
            Word("   ")

    def test_long_name_rejected(self):
        with self.assertRaises(InvalidCard):
            Word("a" * 201)
        self.assertEqual(len(Word("a" * 200).name), 200)


class TestCard(unittest.TestCase):
    """Tests for Card."""

    def test_initialization(self):
        card = Card(Word("gato"), [Meaning("a small feline", "un felino", ["cat"])], created_at=10)
        self.assertEqual(card.word_name, "gato")
        self.assertEqual(card.card_type, CardType.STRAIGHT)
        self.assertEqual(card.streak, 0)
        self.assertEqual(card.created_at, 10)
        self.assertIsNone(card.id)

    def test_requires_a_meaning(self):
        with self.assertRaises(InvalidCard):
            Card(Word("gato"), [])

    def test_negative_streak_rejected(self):
        with self.assertRaises(InvalidCard):
            make_card("gato", streak=-1)

    def test_card_type_parsing(self):
        card = Card(Word("gato"), [Meaning("cat")], card_type="REVERSE")
        self.assertEqual(card.card_type, CardType.REVERSE)
        self.assertEqual(CardType.parse(CardType.STRAIGHT), CardType.STRAIGHT)
        with self.assertRaises(InvalidCard):
            CardType.parse("sideways")

    def test_is_learned(self):
        card = make_card("gato", streak=2)
        self.assertFalse(card.is_learned(3))
        self.assertTrue(card.is_learned(2))
        self.assertTrue(card.is_learned(1))

    def test_to_dict(self):
        card = make_card("gato", ["cat", "kitty"], streak=1, created_at=5, card_type=CardType.REVERSE)
        data = card.to_dict()
        self.assertEqual(data['word'], {'name': 'gato', 'readings': []})
        self.assertEqual(data['card_type'], 'reverse')
        self.assertEqual(data['meanings'][0]['word_translations'], ["cat", "kitty"])
        self.assertEqual(data['streak'], 1)
        self.assertEqual(data['created_at'], 5)

    def test_from_dict(self):
        data = {
            'id': 7,
            'card_type': 'straight',
            'word': {'name': 'perro', 'readings': ['PEH-rro']},
            'meanings': [{'definition': 'a dog', 'word_translations': ['dog']}],
            'streak': 3,
            'created_at': 99
        }
        card = Card.from_dict(data)
        self.assertEqual(card.id, 7)
        self.assertEqual(card.word.readings, ['PEH-rro'])
        self.assertEqual(card.meanings[0].translated_definition, '')
        self.assertEqual(card.streak, 3)

    def test_copy_is_independent(self):
        card = make_card("gato", streak=1)
        copy = card.copy()
        copy.record_result(True, 5)
        copy.meanings[0].word_translations.append("kitty")
        self.assertEqual(card.streak, 1)
        self.assertEqual(card.meanings[0].word_translations, ["gato-en"])


class TestRecordResult(unittest.TestCase):
    """Tests for the mastery streak rule."""

    def test_correct_advances(self):
        card = make_card("gato", streak=1)
        self.assertEqual(card.record_result(True, 3), MasteryTransition.ADVANCED)
        self.assertEqual(card.streak, 2)

    def test_correct_reaching_length_learns(self):
        card = make_card("gato", streak=2)
        card.record_result(True, 3)
        self.assertTrue(card.is_learned(3))

    def test_incorrect_resets(self):
        card = make_card("gato", streak=2)
        self.assertEqual(card.record_result(False, 3), MasteryTransition.RESET)
        self.assertEqual(card.streak, 0)

    def test_incorrect_resets_learned_card(self):
        card = make_card("gato", streak=3)
        self.assertEqual(card.record_result(False, 3), MasteryTransition.RESET)
        self.assertEqual(card.streak, 0)
        self.assertFalse(card.is_learned(3))

    def test_correct_on_learned_card_keeps_streak(self):
        card = make_card("gato", streak=3)
        self.assertEqual(card.record_result(True, 3), MasteryTransition.ALREADY_LEARNED)
        self.assertEqual(card.streak, 3)

    def test_streak_capped_at_length(self):
        card = make_card("gato", streak=4)
        # Learned under the old length of 4, still counts as learned at 3
        self.assertEqual(card.record_result(True, 3), MasteryTransition.ALREADY_LEARNED)
        card = make_card("perro", streak=2)
        card.record_result(True, 3)
        card.record_result(True, 3)
        self.assertEqual(card.streak, 3)


class TestCardSettings(unittest.TestCase):
    """Tests for CardSettings."""

    def test_defaults(self):
        settings = CardSettings()
        self.assertEqual(settings.cards_per_set, DEFAULT_CARDS_PER_SET)
        self.assertEqual(settings.streak_length, DEFAULT_STREAK_LENGTH)
        self.assertEqual(settings.test_answer_method, METHOD_MANUAL)

    def test_bounds_accepted(self):
        settings = CardSettings(1, METHOD_SELF_REVIEW, 1)
        self.assertEqual(settings.cards_per_set, 1)
        settings = CardSettings(MAX_CARDS_PER_SET, METHOD_MANUAL, MAX_STREAK_LENGTH)
        self.assertEqual(settings.streak_length, MAX_STREAK_LENGTH)

    def test_out_of_range_rejected(self):
        for args in [(0, METHOD_MANUAL, 5), (101, METHOD_MANUAL, 5),
                     (10, METHOD_MANUAL, 0), (10, METHOD_MANUAL, 51)]:
            with self.subTest(args=args):
                with self.assertRaises(InvalidSettings):
                    CardSettings(*args)

    def test_non_integer_rejected(self):
        with self.assertRaises(InvalidSettings):
            CardSettings("10", METHOD_MANUAL, 5)
        with self.assertRaises(InvalidSettings):
            CardSettings(True, METHOD_MANUAL, 5)

    def test_unknown_method_rejected(self):
        with self.assertRaises(InvalidSettings):
            CardSettings(10, "multiple_choice", 5)

    def test_invalid_settings_is_value_error(self):
        with self.assertRaises(ValueError):
            CardSettings(0)

    def test_from_dict_fills_defaults(self):
        settings = CardSettings.from_dict({'cards_per_set': 3})
        self.assertEqual(settings, CardSettings(3, METHOD_MANUAL, DEFAULT_STREAK_LENGTH))

    def test_from_dict_validates(self):
        with self.assertRaises(InvalidSettings):
            CardSettings.from_dict({'streak_length': 0})


class TestTestResult(unittest.TestCase):
    """Tests for TestResult."""

    def test_written(self):
        result = TestResult.written("gato", True, "Cat", "cat")
        self.assertEqual(result.to_dict(), {
            'word_name': 'gato', 'is_correct': True, 'user_answer': 'Cat', 'expected_answer': 'cat'
        })

    def test_self_review_has_no_answers(self):
        result = TestResult.self_review("gato", False)
        self.assertIsNone(result.user_answer)
        self.assertIsNone(result.expected_answer)


# ============================================================================
# Errors
# ============================================================================

class TestErrors(unittest.TestCase):
    """Tests for the error types."""

    def test_illegal_transition_message(self):
        error = IllegalTransition('study', 'submit_answer', 'start the test first')
        self.assertEqual(error.phase, 'study')
        self.assertEqual(error.event, 'submit_answer')
        self.assertEqual(str(error), "submit_answer is not allowed in phase study: start the test first")

    def test_cards_checked_out(self):
        error = CardsCheckedOut('maria', ['perro', 'gato'])
        self.assertEqual(error.word_names, ['gato', 'perro'])
        self.assertIn('maria', str(error))
        self.assertIsInstance(error, DrillError)


class TestProfileName(unittest.TestCase):
    """Tests for check_profile_name."""

    def test_accepted(self):
        for profile in ('maria', 'user_2', 'a-b', 'x' * 64):
            self.assertEqual(check_profile_name(profile), profile)

    def test_rejected(self):
        for profile in ('', 'bad.name', '../etc', 'a b', 'maria\n', 'x' * 65, None):
            with self.subTest(profile=profile):
                with self.assertRaises(InvalidProfile) as ctx:
                    check_profile_name(profile)
                self.assertIsInstance(ctx.exception, ValueError)
                self.assertIsInstance(ctx.exception, DrillError)


# ============================================================================
# Answer checking
# ============================================================================

class TestNormalizeAnswer(unittest.TestCase):
    """Tests for normalize_answer."""

    def test_trims_and_folds_case(self):
        self.assertEqual(normalize_answer("  Hola \n"), "hola")

    def test_casefold(self):
        self.assertEqual(normalize_answer("STRASSE"), normalize_answer("straße"))


class TestAcceptedAnswers(unittest.TestCase):
    """Tests for accepted_answers."""

    def test_straight_uses_all_translations(self):
        card = Card(Word("banco"), [Meaning("seat", "", ["bench"]), Meaning("money", "", ["bank"])])
        self.assertEqual(accepted_answers(card), ["bench", "bank"])

    def test_reverse_uses_word_and_readings(self):
        card = make_card("猫", ["cat"], card_type=CardType.REVERSE, readings=["ねこ", "neko"])
        self.assertEqual(accepted_answers(card), ["猫", "ねこ", "neko"])


class TestEvaluate(unittest.TestCase):
    """Tests for evaluate and check_answer."""

    def setUp(self):
        self.card = make_card("hello", ["hola", "buenos días"])

    def test_manual_trim_and_case(self):
        self.assertTrue(evaluate(METHOD_MANUAL, self.card, submitted=" Hola "))

    def test_manual_any_translation(self):
        self.assertTrue(evaluate(METHOD_MANUAL, self.card, submitted="Buenos Días"))

    def test_manual_wrong(self):
        self.assertFalse(evaluate(METHOD_MANUAL, self.card, submitted="adiós"))

    def test_manual_empty_is_wrong(self):
        self.assertFalse(evaluate(METHOD_MANUAL, self.card, submitted="   "))
        self.assertIsNone(match_answer("", ["", "hola"]))

    def test_no_fuzzy_matching(self):
        self.assertFalse(evaluate(METHOD_MANUAL, self.card, submitted="hol"))

    def test_self_review(self):
        self.assertTrue(evaluate(METHOD_SELF_REVIEW, self.card, self_marked=True))
        self.assertFalse(evaluate(METHOD_SELF_REVIEW, self.card, self_marked=False))

    def test_mismatched_payload_rejected(self):
        with self.assertRaises(InvalidEvaluationInput):
            evaluate(METHOD_MANUAL, self.card, self_marked=True)
        with self.assertRaises(InvalidEvaluationInput):
            evaluate(METHOD_MANUAL, self.card)
        with self.assertRaises(InvalidEvaluationInput):
            evaluate(METHOD_SELF_REVIEW, self.card, submitted="hola")
        with self.assertRaises(InvalidEvaluationInput):
            evaluate(METHOD_SELF_REVIEW, self.card)

    def test_unknown_method_rejected(self):
        with self.assertRaises(InvalidEvaluationInput):
            evaluate("telepathy", self.card, submitted="hola")

    def test_check_answer_reports_matched_answer(self):
        result = check_answer(METHOD_MANUAL, self.card, submitted="BUENOS DÍAS")
        self.assertTrue(result.is_correct)
        self.assertEqual(result.user_answer, "BUENOS DÍAS")
        self.assertEqual(result.expected_answer, "buenos días")

    def test_check_answer_wrong_reports_first_answer(self):
        result = check_answer(METHOD_MANUAL, self.card, submitted="adiós")
        self.assertFalse(result.is_correct)
        self.assertEqual(result.expected_answer, "hola")

    def test_check_answer_self_review(self):
        result = check_answer(METHOD_SELF_REVIEW, self.card, self_marked=True)
        self.assertEqual(result, TestResult("hello", True))


if __name__ == '__main__':
    unittest.main()
