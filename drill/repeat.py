"""Repeat drills over already learned cards."""

import logging
import random

from .config import REPEAT_BATCH_SIZE
from .errors import InvalidSessionStart
from .models import Card, CardSettings
from .session import SessionEngine, SetOutcome

logger = logging.getLogger(__name__)


class RepeatEngine(SessionEngine):
    """Test-only session over learned cards.

    Every card is tested once, in shuffled order, with no study phase and no
    retry. A wrong answer still resets the card's streak, so a repeat run
    can send a card back to the unlearned pool.
    """

    empty_pool_message = "No learned cards to repeat"

    def __init__(self, cards: list[Card], settings: CardSettings,
                 limit: int | None = REPEAT_BATCH_SIZE, rng: random.Random = None):
        if limit is not None and limit < 1:
            raise InvalidSessionStart(f"Repeat limit must be at least 1, got {limit}")
        self.limit = limit
        self.rng = rng or random.Random()
        super().__init__(cards, settings, start_card_number=1, always_study=False)

    def _build_pool(self, cards: list[Card]) -> list[Card]:
        learned = [card.copy() for card in cards if card.is_learned(self.settings.streak_length)]
        self.rng.shuffle(learned)
        if self.limit is not None:
            learned = learned[:self.limit]
        return learned

    def _initial_set(self, start_index: int) -> list[int]:
        return list(range(len(self.pool)))

    def _should_study(self) -> bool:
        return False

    def _make_outcome(self, passed: bool) -> SetOutcome:
        self._finished = True
        logger.info(f"Repeat run finished: {len(self.pool)} cards, passed={passed}")
        return SetOutcome(
            passed=passed,
            results=tuple(self._results),
            changed_streaks=tuple(self.pending_changes()),
            can_retry=False,
            can_advance=False,
            session_completed=True
        )
