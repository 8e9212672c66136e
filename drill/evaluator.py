"""Answer checking for test phases."""

from .config import METHOD_MANUAL, METHOD_SELF_REVIEW
from .errors import InvalidEvaluationInput
from .models import Card, CardType, TestResult


def normalize_answer(text: str) -> str:
    """Trim surrounding whitespace and case-fold."""
    return text.strip().casefold()


def accepted_answers(card: Card) -> list[str]:
    """Answers accepted for a card, in display order.

    Straight cards ask for a translation of the word, reverse cards ask for
    the word itself (or one of its readings).
    """
    if card.card_type == CardType.REVERSE:
        return [card.word.name] + list(card.word.readings)
    answers = []
    for meaning in card.meanings:
        answers.extend(meaning.word_translations)
    return answers


def match_answer(submitted: str, answers: list[str]) -> str | None:
    """Return the accepted answer the submission matches, or None."""
    normalized = normalize_answer(submitted)
    if not normalized:
        return None
    for answer in answers:
        if normalize_answer(answer) == normalized:
            return answer
    return None


def _check_payload(method: str, submitted, self_marked) -> None:
    if method == METHOD_MANUAL:
        if self_marked is not None:
            raise InvalidEvaluationInput("manual answers are typed, not self-marked")
        if not isinstance(submitted, str):
            raise InvalidEvaluationInput("manual answers require a submitted text")
    elif method == METHOD_SELF_REVIEW:
        if submitted is not None:
            raise InvalidEvaluationInput("self_review answers are self-marked, not typed")
        if not isinstance(self_marked, bool):
            raise InvalidEvaluationInput("self_review answers require a correct/incorrect mark")
    else:
        raise InvalidEvaluationInput(f"Unknown answer method: {method!r}")


def evaluate(method: str, card: Card, submitted: str = None, self_marked: bool = None) -> bool:
    """Decide whether an answer is correct."""
    _check_payload(method, submitted, self_marked)
    if method == METHOD_SELF_REVIEW:
        return self_marked
    return match_answer(submitted, accepted_answers(card)) is not None


def check_answer(method: str, card: Card, submitted: str = None, self_marked: bool = None) -> TestResult:
    """Evaluate an answer and build its TestResult.

    For typed answers the expected answer is the accepted answer that was
    matched, or the first accepted answer when nothing matched.
    """
    _check_payload(method, submitted, self_marked)
    if method == METHOD_SELF_REVIEW:
        return TestResult.self_review(card.word_name, self_marked)

    answers = accepted_answers(card)
    matched = match_answer(submitted, answers)
    if matched is not None:
        return TestResult.written(card.word_name, True, submitted, matched)
    expected = answers[0] if answers else ''
    return TestResult.written(card.word_name, False, submitted, expected)
