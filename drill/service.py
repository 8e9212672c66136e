"""Session orchestration: card check-out and streak persistence."""

import logging
import threading

from .errors import CardsCheckedOut
from .interfaces import CardRepository, SettingsRepository
from .repeat import RepeatEngine
from .session import SessionEngine

logger = logging.getLogger(__name__)


class DrillService:
    """Builds engines from storage and keeps two sessions off the same cards.

    A started engine holds its cards until release() is called, either when
    the session finishes or when the caller abandons it.
    """

    def __init__(self, cards: CardRepository, settings: SettingsRepository):
        self.cards = cards
        self.settings = settings
        self._checked_out: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def start_learning(self, profile: str, start_card_number: int = 1,
                       always_study: bool = True) -> SessionEngine:
        settings = self.settings.load(profile)
        pool = self.cards.load_pool(profile)
        engine = SessionEngine(pool, settings, start_card_number=start_card_number,
                               always_study=always_study)
        self._check_out(profile, engine)
        logger.info(f"Learning session for '{profile}': {len(engine.pool)} unlearned cards, "
                    f"{settings.cards_per_set} per set")
        return engine

    def start_repeat(self, profile: str, limit: int | None = None) -> RepeatEngine:
        settings = self.settings.load(profile)
        pool = self.cards.load_pool(profile)
        engine = RepeatEngine(pool, settings, limit=limit)
        self._check_out(profile, engine)
        logger.info(f"Repeat session for '{profile}': {len(engine.pool)} learned cards")
        return engine

    def flush(self, profile: str, engine: SessionEngine) -> list[tuple[str, int]]:
        """Persist the engine's pending streak changes.

        Repository errors propagate unchanged and the engine keeps its
        pending changes, so the same call can be made again.
        """
        changes = engine.pending_changes()
        if not changes:
            return []
        self.cards.persist_streaks(profile, changes)
        engine.acknowledge_persisted(changes)
        logger.info(f"Persisted {len(changes)} streak change(s) for '{profile}'")
        return changes

    def release(self, profile: str, engine: SessionEngine) -> None:
        """Return the engine's cards. Unflushed changes are dropped with the engine."""
        with self._lock:
            held = self._checked_out.get(profile)
            if not held:
                return
            held.difference_update(engine.word_names)
            if not held:
                del self._checked_out[profile]
        if engine.pending_changes() and not engine.finished:
            logger.warning(f"Abandoned session for '{profile}' with "
                           f"{len(engine.pending_changes())} unsaved streak change(s)")

    def checked_out(self, profile: str) -> set[str]:
        with self._lock:
            return set(self._checked_out.get(profile, set()))

    def _check_out(self, profile: str, engine: SessionEngine) -> None:
        with self._lock:
            held = self._checked_out.setdefault(profile, set())
            conflict = held.intersection(engine.word_names)
            if conflict:
                raise CardsCheckedOut(profile, list(conflict))
            held.update(engine.word_names)
