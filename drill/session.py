"""Learning session state machine.

A session walks a pool of cards set by set. Each set is studied, then
tested; a test attempt passes only if every card in it was answered
correctly. A failed set is retried, a passed set makes room for the next
one, and the session finishes when the pool has no unlearned cards left.

The engine works on private copies of the cards it was given. Streak
changes are reported through pending_changes() and it is up to the caller
to persist them.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from .config import METHOD_SELF_REVIEW
from .errors import EmptyCardPool, IllegalTransition, InvalidCard, InvalidSessionStart
from .evaluator import check_answer
from .models import Card, CardSettings, MasteryTransition, TestResult

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    STUDY = 'study'
    TEST = 'test'
    COMPLETE = 'complete'


class EventKind(str, Enum):
    START_SESSION = 'start_session'
    NEXT_CARD_IN_STUDY = 'next_card_in_study'
    START_TEST = 'start_test'
    SUBMIT_ANSWER = 'submit_answer'
    SHOW_ANSWER = 'show_answer'
    ANSWER_CORRECT = 'answer_correct'
    ANSWER_INCORRECT = 'answer_incorrect'
    CONTINUE = 'continue'
    RETRY_SET = 'retry_set'
    NEXT_SET = 'next_set'


@dataclass(frozen=True)
class Event:
    """One input to the engine. Only SUBMIT_ANSWER carries text."""

    kind: EventKind
    text: str | None = None


@dataclass(frozen=True)
class SetOutcome:
    """Verdict of a finished test attempt."""

    passed: bool
    results: tuple[TestResult, ...]
    changed_streaks: tuple[tuple[str, int], ...]
    can_retry: bool
    can_advance: bool
    session_completed: bool = False

    def to_dict(self) -> dict:
        return {
            'passed': self.passed,
            'results': [r.to_dict() for r in self.results],
            'changed_streaks': [list(change) for change in self.changed_streaks],
            'can_retry': self.can_retry,
            'can_advance': self.can_advance,
            'session_completed': self.session_completed
        }


@dataclass(frozen=True)
class SessionStep:
    """What the driver needs to render after an event."""

    phase: Phase
    card: Card | None
    position: int           # 0-based index of the card within the set
    set_size: int
    set_number: int
    remaining_cards: int    # unlearned cards left in the pool
    answer_shown: bool
    answered: bool
    last_result: TestResult | None
    last_transition: MasteryTransition | None
    outcome: SetOutcome | None
    available_actions: tuple[EventKind, ...]
    finished: bool

    def to_dict(self) -> dict:
        return {
            'phase': self.phase.value,
            'card': self.card.to_dict() if self.card else None,
            'position': self.position,
            'set_size': self.set_size,
            'set_number': self.set_number,
            'remaining_cards': self.remaining_cards,
            'answer_shown': self.answer_shown,
            'answered': self.answered,
            'last_result': self.last_result.to_dict() if self.last_result else None,
            'last_transition': self.last_transition.value if self.last_transition else None,
            'outcome': self.outcome.to_dict() if self.outcome else None,
            'available_actions': [a.value for a in self.available_actions],
            'finished': self.finished
        }


class SessionEngine:
    """Study/test state machine over the unlearned cards of a pool."""

    empty_pool_message = "No unlearned cards to study"

    def __init__(self, cards: list[Card], settings: CardSettings,
                 start_card_number: int = 1, always_study: bool = True):
        self.settings = settings
        self.always_study = always_study
        self.pool = self._build_pool(cards)
        if not self.pool:
            raise EmptyCardPool(self.empty_pool_message)

        names = [card.word_name for card in self.pool]
        if len(set(names)) != len(names):
            raise InvalidCard("Card pool contains duplicate words")
        if not 1 <= start_card_number <= len(self.pool):
            raise InvalidSessionStart(
                f"Start card number must be between 1 and {len(self.pool)}, got {start_card_number}"
            )

        # Streaks as last persisted; pending_changes() diffs against this
        self._baseline = {card.word_name: card.streak for card in self.pool}
        self.set_number = 0
        self._started = False
        self._finished = False
        self._enter_set(self._initial_set(start_card_number - 1))

    # ------------------------------------------------------------------
    # Pool and set construction
    # ------------------------------------------------------------------

    def _build_pool(self, cards: list[Card]) -> list[Card]:
        unlearned = [card.copy() for card in cards if not card.is_learned(self.settings.streak_length)]
        return sorted(unlearned, key=lambda card: card.created_at)

    def _initial_set(self, start_index: int) -> list[int]:
        end = min(start_index + self.settings.cards_per_set, len(self.pool))
        return list(range(start_index, end))

    def _next_set(self) -> list[int]:
        """Next unlearned cards after the current set, wrapping around the pool."""
        size = len(self.pool)
        first = (self._set[-1] + 1) % size
        indices = []
        for offset in range(size):
            index = (first + offset) % size
            if not self.pool[index].is_learned(self.settings.streak_length):
                indices.append(index)
                if len(indices) == self.settings.cards_per_set:
                    break
        return indices

    def _should_study(self) -> bool:
        if self.always_study:
            return True
        return any(self.pool[i].streak == 0 for i in self._set)

    def _enter_set(self, indices: list[int]) -> None:
        self._set = indices
        self.set_number += 1
        if self._should_study():
            self.phase = Phase.STUDY
            self._reset_cursor()
            self._results = []
            self._outcome = None
        else:
            self._begin_attempt()

    def _reset_cursor(self) -> None:
        self._cursor = 0
        self._answer_shown = False
        self._answered = False
        self._last_result = None
        self._last_transition = None

    def _begin_attempt(self) -> None:
        self.phase = Phase.TEST
        self._reset_cursor()
        self._results = []
        self._outcome = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def current_set(self) -> list[Card]:
        return [self.pool[i] for i in self._set]

    @property
    def current_card(self) -> Card | None:
        if self._finished or self.phase == Phase.COMPLETE:
            return None
        return self.pool[self._set[self._cursor]]

    @property
    def results(self) -> list[TestResult]:
        return list(self._results)

    @property
    def word_names(self) -> list[str]:
        return [card.word_name for card in self.pool]

    def remaining_cards(self) -> int:
        return sum(1 for card in self.pool if not card.is_learned(self.settings.streak_length))

    def available_actions(self) -> tuple[EventKind, ...]:
        if self._finished:
            return ()
        if self.phase == Phase.STUDY:
            if self._cursor + 1 < len(self._set):
                return (EventKind.NEXT_CARD_IN_STUDY, EventKind.START_TEST)
            return (EventKind.START_TEST,)
        if self.phase == Phase.TEST:
            if self._answered:
                return (EventKind.CONTINUE,)
            if self.settings.test_answer_method != METHOD_SELF_REVIEW:
                return (EventKind.SUBMIT_ANSWER,)
            if self._answer_shown:
                return (EventKind.ANSWER_CORRECT, EventKind.ANSWER_INCORRECT)
            return (EventKind.SHOW_ANSWER,)
        actions = []
        if self._outcome.can_retry:
            actions.append(EventKind.RETRY_SET)
        if self._outcome.can_advance:
            actions.append(EventKind.NEXT_SET)
        return tuple(actions)

    def step(self) -> SessionStep:
        return SessionStep(
            phase=self.phase,
            card=self.current_card,
            position=self._cursor,
            set_size=len(self._set),
            set_number=self.set_number,
            remaining_cards=self.remaining_cards(),
            answer_shown=self._answer_shown,
            answered=self._answered,
            last_result=self._last_result,
            last_transition=self._last_transition,
            outcome=self._outcome,
            available_actions=self.available_actions(),
            finished=self._finished
        )

    # ------------------------------------------------------------------
    # Persistence hooks
    # ------------------------------------------------------------------

    def pending_changes(self) -> list[tuple[str, int]]:
        """(word_name, new_streak) for every card that differs from the persisted streak."""
        return [
            (card.word_name, card.streak)
            for card in self.pool
            if card.streak != self._baseline[card.word_name]
        ]

    def acknowledge_persisted(self, changes: list[tuple[str, int]]) -> None:
        """Record that the given streaks were written successfully."""
        for word_name, streak in changes:
            if word_name in self._baseline:
                self._baseline[word_name] = streak

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def handle(self, event: Event) -> SessionStep:
        """Apply one event and return the resulting step."""
        kind = EventKind(event.kind)
        if kind == EventKind.SUBMIT_ANSWER:
            return self.submit_answer(event.text)
        handlers = {
            EventKind.START_SESSION: self.start_session,
            EventKind.NEXT_CARD_IN_STUDY: self.next_card_in_study,
            EventKind.START_TEST: self.start_test,
            EventKind.SHOW_ANSWER: self.show_answer,
            EventKind.ANSWER_CORRECT: lambda: self.mark_answer(True),
            EventKind.ANSWER_INCORRECT: lambda: self.mark_answer(False),
            EventKind.CONTINUE: self.continue_,
            EventKind.RETRY_SET: self.retry_set,
            EventKind.NEXT_SET: self.next_set,
        }
        return handlers[kind]()

    def _require(self, phase: Phase, event: EventKind, reason: str = None) -> None:
        if self._finished:
            raise IllegalTransition(self.phase.value, event.value, "session is finished")
        if self.phase != phase:
            raise IllegalTransition(self.phase.value, event.value, reason)
        self._started = True

    def start_session(self) -> SessionStep:
        if self._started or self._finished:
            raise IllegalTransition(self.phase.value, EventKind.START_SESSION.value, "session already started")
        self._started = True
        return self.step()

    def next_card_in_study(self) -> SessionStep:
        self._require(Phase.STUDY, EventKind.NEXT_CARD_IN_STUDY)
        if self._cursor + 1 >= len(self._set):
            raise IllegalTransition(self.phase.value, EventKind.NEXT_CARD_IN_STUDY.value,
                                    "last card of the set, start the test")
        self._cursor += 1
        return self.step()

    def start_test(self) -> SessionStep:
        self._require(Phase.STUDY, EventKind.START_TEST)
        self._begin_attempt()
        return self.step()

    def submit_answer(self, text: str) -> SessionStep:
        self._require(Phase.TEST, EventKind.SUBMIT_ANSWER)
        self._check_unanswered(EventKind.SUBMIT_ANSWER)
        card = self.current_card
        self._record(card, check_answer(self.settings.test_answer_method, card, submitted=text))
        return self.step()

    def show_answer(self) -> SessionStep:
        self._require(Phase.TEST, EventKind.SHOW_ANSWER)
        if self.settings.test_answer_method != METHOD_SELF_REVIEW:
            raise IllegalTransition(self.phase.value, EventKind.SHOW_ANSWER.value,
                                    "only available with self_review answers")
        self._check_unanswered(EventKind.SHOW_ANSWER)
        self._answer_shown = True
        return self.step()

    def mark_answer(self, is_correct: bool) -> SessionStep:
        event = EventKind.ANSWER_CORRECT if is_correct else EventKind.ANSWER_INCORRECT
        self._require(Phase.TEST, event)
        self._check_unanswered(event)
        if self.settings.test_answer_method == METHOD_SELF_REVIEW and not self._answer_shown:
            raise IllegalTransition(self.phase.value, event.value, "show the answer first")
        card = self.current_card
        self._record(card, check_answer(self.settings.test_answer_method, card, self_marked=is_correct))
        return self.step()

    def continue_(self) -> SessionStep:
        self._require(Phase.TEST, EventKind.CONTINUE)
        if not self._answered:
            raise IllegalTransition(self.phase.value, EventKind.CONTINUE.value, "current card not answered yet")
        if self._cursor + 1 < len(self._set):
            self._cursor += 1
            self._answer_shown = False
            self._answered = False
            self._last_result = None
            self._last_transition = None
        else:
            self._complete_attempt()
        return self.step()

    def retry_set(self) -> SessionStep:
        self._require(Phase.COMPLETE, EventKind.RETRY_SET)
        if not self._outcome.can_retry:
            raise IllegalTransition(self.phase.value, EventKind.RETRY_SET.value, "nothing to retry")
        logger.info(f"Retrying set {self.set_number} ({len(self._set)} cards)")
        self._begin_attempt()
        return self.step()

    def next_set(self) -> SessionStep:
        self._require(Phase.COMPLETE, EventKind.NEXT_SET)
        if not self._outcome.can_advance:
            raise IllegalTransition(self.phase.value, EventKind.NEXT_SET.value, "the set must be passed first")
        indices = self._next_set()
        if not indices:
            logger.info(f"Session finished after {self.set_number} set(s), no unlearned cards left")
            self._finished = True
            self._outcome = None
            return self.step()
        self._enter_set(indices)
        return self.step()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_unanswered(self, event: EventKind) -> None:
        if self._answered:
            raise IllegalTransition(self.phase.value, event.value, "card already answered, continue")

    def _record(self, card: Card, result: TestResult) -> None:
        transition = card.record_result(result.is_correct, self.settings.streak_length)
        self._results.append(result)
        self._answered = True
        self._last_result = result
        self._last_transition = transition
        logger.debug(f"{card.word_name}: correct={result.is_correct} -> {transition.value}, streak={card.streak}")

    def _complete_attempt(self) -> None:
        passed = len(self._results) == len(self._set) and all(r.is_correct for r in self._results)
        self.phase = Phase.COMPLETE
        self._outcome = self._make_outcome(passed)
        correct = sum(1 for r in self._results if r.is_correct)
        logger.info(f"Set {self.set_number} {'passed' if passed else 'failed'}: {correct}/{len(self._results)} correct")

    def _make_outcome(self, passed: bool) -> SetOutcome:
        return SetOutcome(
            passed=passed,
            results=tuple(self._results),
            changed_streaks=tuple(self.pending_changes()),
            can_retry=not passed,
            can_advance=passed
        )
