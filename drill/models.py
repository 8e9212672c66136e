"""Domain models for flashdrill."""

import re
import time
from dataclasses import dataclass
from enum import Enum

from .config import (
    MIN_CARDS_PER_SET, MAX_CARDS_PER_SET,
    MIN_STREAK_LENGTH, MAX_STREAK_LENGTH,
    DEFAULT_CARDS_PER_SET, DEFAULT_STREAK_LENGTH, DEFAULT_ANSWER_METHOD,
    ANSWER_METHODS, MAX_WORD_NAME_LENGTH, PROFILE_NAME_PATTERN
)
from .errors import InvalidCard, InvalidProfile, InvalidSettings


def check_profile_name(profile: str) -> str:
    """Return the profile name, or raise InvalidProfile if storage cannot use it."""
    if not isinstance(profile, str) or not re.fullmatch(PROFILE_NAME_PATTERN, profile):
        raise InvalidProfile(f"Invalid profile name: {profile!r}")
    return profile


class CardType(str, Enum):
    """Learning direction of a card."""

    STRAIGHT = 'straight'  # prompt is the word, answer is a translation
    REVERSE = 'reverse'    # prompt is the meaning, answer is the word

    @classmethod
    def parse(cls, value: str) -> 'CardType':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidCard(f"Invalid card type: {value}. Must be 'straight' or 'reverse'")


class MasteryTransition(str, Enum):
    """What a single answer did to a card's streak."""

    ADVANCED = 'advanced'
    RESET = 'reset'
    ALREADY_LEARNED = 'already_learned'


class Word:
    """The word being learned and its pronunciation readings."""

    def __init__(self, name: str, readings: list[str] = None):
        if not name or not name.strip():
            raise InvalidCard("Word name cannot be empty")
        if len(name) > MAX_WORD_NAME_LENGTH:
            raise InvalidCard(f"Word name cannot exceed {MAX_WORD_NAME_LENGTH} characters")
        self.name = name
        self.readings = list(readings or [])

    def to_dict(self) -> dict:
        return {'name': self.name, 'readings': list(self.readings)}

    @classmethod
    def from_dict(cls, data: dict) -> 'Word':
        return cls(data['name'], data.get('readings', []))


class Meaning:
    """One meaning of a word with its translations."""

    def __init__(self, definition: str, translated_definition: str = '', word_translations: list[str] = None):
        self.definition = definition
        self.translated_definition = translated_definition
        self.word_translations = list(word_translations or [])

    def to_dict(self) -> dict:
        return {
            'definition': self.definition,
            'translated_definition': self.translated_definition,
            'word_translations': list(self.word_translations)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Meaning':
        return cls(
            data.get('definition', ''),
            data.get('translated_definition', ''),
            data.get('word_translations', [])
        )


class Card:
    """A vocabulary flashcard and its mastery streak."""

    def __init__(self, word: Word, meanings: list[Meaning], card_type: CardType = CardType.STRAIGHT,
                 streak: int = 0, created_at: int = None, id: int = None):
        if not meanings:
            raise InvalidCard("Card must have at least one meaning")
        if streak < 0:
            raise InvalidCard("Streak cannot be negative")
        self.id = id
        self.word = word
        self.meanings = list(meanings)
        self.card_type = CardType.parse(card_type)
        self.streak = streak
        self.created_at = int(time.time()) if created_at is None else created_at

    @property
    def word_name(self) -> str:
        return self.word.name

    def is_learned(self, streak_length: int) -> bool:
        return self.streak >= streak_length

    def record_result(self, is_correct: bool, streak_length: int) -> MasteryTransition:
        """Apply one answer to the streak.

        A wrong answer always resets the streak to 0, learned or not. A right
        answer on a learned card leaves the streak where it is; otherwise the
        streak grows by one and stops at streak_length.
        """
        if not is_correct:
            self.streak = 0
            return MasteryTransition.RESET
        if self.is_learned(streak_length):
            return MasteryTransition.ALREADY_LEARNED
        self.streak = min(self.streak + 1, streak_length)
        return MasteryTransition.ADVANCED

    def copy(self) -> 'Card':
        """Independent working copy, so a session never touches the caller's cards."""
        return Card.from_dict(self.to_dict())

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'card_type': self.card_type.value,
            'word': self.word.to_dict(),
            'meanings': [m.to_dict() for m in self.meanings],
            'streak': self.streak,
            'created_at': self.created_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Card':
        return cls(
            Word.from_dict(data['word']),
            [Meaning.from_dict(m) for m in data.get('meanings', [])],
            card_type=data.get('card_type', CardType.STRAIGHT.value),
            streak=data.get('streak', 0),
            created_at=data.get('created_at'),
            id=data.get('id')
        )

    def __repr__(self) -> str:
        return f"Card({self.word.name!r}, {self.card_type.value}, streak={self.streak})"


class CardSettings:
    """Per-profile learning settings.

    Bounds are checked here and never clamped: a bad value raises
    InvalidSettings.
    """

    def __init__(self, cards_per_set: int = DEFAULT_CARDS_PER_SET,
                 test_answer_method: str = DEFAULT_ANSWER_METHOD,
                 streak_length: int = DEFAULT_STREAK_LENGTH):
        self.cards_per_set = self._check_range('cards_per_set', cards_per_set,
                                               MIN_CARDS_PER_SET, MAX_CARDS_PER_SET)
        if test_answer_method not in ANSWER_METHODS:
            raise InvalidSettings(
                f"test_answer_method must be one of {', '.join(ANSWER_METHODS)}, got {test_answer_method!r}"
            )
        self.test_answer_method = test_answer_method
        self.streak_length = self._check_range('streak_length', streak_length,
                                               MIN_STREAK_LENGTH, MAX_STREAK_LENGTH)

    @staticmethod
    def _check_range(name: str, value, low: int, high: int) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidSettings(f"{name} must be an integer, got {value!r}")
        if not low <= value <= high:
            raise InvalidSettings(f"{name} must be between {low} and {high}, got {value}")
        return value

    def to_dict(self) -> dict:
        return {
            'cards_per_set': self.cards_per_set,
            'test_answer_method': self.test_answer_method,
            'streak_length': self.streak_length
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'CardSettings':
        return cls(
            data.get('cards_per_set', DEFAULT_CARDS_PER_SET),
            data.get('test_answer_method', DEFAULT_ANSWER_METHOD),
            data.get('streak_length', DEFAULT_STREAK_LENGTH)
        )

    def __eq__(self, other) -> bool:
        return isinstance(other, CardSettings) and self.to_dict() == other.to_dict()


@dataclass(frozen=True)
class TestResult:
    """Outcome of testing one card once."""

    __test__ = False  # not a pytest test class

    word_name: str
    is_correct: bool
    user_answer: str | None = None
    expected_answer: str | None = None

    @classmethod
    def written(cls, word_name: str, is_correct: bool, user_answer: str, expected_answer: str) -> 'TestResult':
        return cls(word_name, is_correct, user_answer, expected_answer)

    @classmethod
    def self_review(cls, word_name: str, is_correct: bool) -> 'TestResult':
        return cls(word_name, is_correct)

    def to_dict(self) -> dict:
        return {
            'word_name': self.word_name,
            'is_correct': self.is_correct,
            'user_answer': self.user_answer,
            'expected_answer': self.expected_answer
        }
