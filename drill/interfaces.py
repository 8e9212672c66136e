"""Abstract base classes for dependency injection."""

from abc import ABC, abstractmethod

from .models import Card, CardSettings


class CardRepository(ABC):
    """Abstract base class for a profile's card store."""

    @abstractmethod
    def load_pool(self, profile: str) -> list[Card]:
        """Load every card of a profile with its current streak."""
        pass

    @abstractmethod
    def persist_streaks(self, profile: str, changes: list[tuple[str, int]]) -> None:
        """Write new streaks as (word_name, streak) pairs. Raises on failure."""
        pass

    @abstractmethod
    def save_cards(self, profile: str, cards: list[Card]) -> None:
        """Insert or replace cards, keyed by word name."""
        pass

    @abstractmethod
    def delete_card(self, profile: str, word_name: str) -> bool:
        """Remove a card. Returns False if the profile has no such card."""
        pass


class SettingsRepository(ABC):
    """Abstract base class for per-profile card settings."""

    @abstractmethod
    def load(self, profile: str) -> CardSettings:
        """Load settings for a profile. Returns defaults if none are stored."""
        pass

    @abstractmethod
    def save(self, profile: str, settings: CardSettings) -> None:
        """Save settings for a profile."""
        pass
