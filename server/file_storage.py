"""File-based storage implementation."""

import json
import logging
import os

from drill.interfaces import CardRepository, SettingsRepository
from drill.models import Card, CardSettings, check_profile_name

logger = logging.getLogger(__name__)


class FileStorage(CardRepository, SettingsRepository):
    """Stores each profile's cards and settings in one JSON file."""

    def __init__(self, state_dir: str = None):
        self.state_dir = state_dir or os.path.expanduser('~/.local/share/flashdrill')
        os.makedirs(self.state_dir, exist_ok=True)

    def _get_state_file(self, profile: str) -> str:
        """Get state file path for a profile."""
        check_profile_name(profile)
        return os.path.join(self.state_dir, f'flashdrill_{profile}.json')

    def _load_state(self, profile: str) -> dict:
        state_file = self._get_state_file(profile)
        if not os.path.exists(state_file):
            return {}
        with open(state_file, 'r', encoding='utf-8') as f:
            return json.load(f)

    def _save_state(self, profile: str, state: dict) -> None:
        state_file = self._get_state_file(profile)
        tmp_file = state_file + '.tmp'
        with open(tmp_file, 'w', encoding='utf-8') as f:
            json.dump(state, f, indent=2, ensure_ascii=False)
        os.replace(tmp_file, state_file)

    def list_profiles(self) -> list[str]:
        """List all profiles with a state file."""
        profiles = []
        for filename in sorted(os.listdir(self.state_dir)):
            if filename.startswith('flashdrill_') and filename.endswith('.json'):
                profiles.append(filename[len('flashdrill_'):-len('.json')])
        return profiles

    def load_pool(self, profile: str) -> list[Card]:
        state = self._load_state(profile)
        return [Card.from_dict(c) for c in state.get('cards', [])]

    def persist_streaks(self, profile: str, changes: list[tuple[str, int]]) -> None:
        try:
            state = self._load_state(profile)
            streaks = dict(changes)
            for card in state.get('cards', []):
                name = card['word']['name']
                if name in streaks:
                    card['streak'] = streaks[name]
            self._save_state(profile, state)
        except Exception as e:
            logger.error(f"Error saving streaks for {profile}: {e}")
            raise

    def save_cards(self, profile: str, cards: list[Card]) -> None:
        state = self._load_state(profile)
        by_name = {c['word']['name']: c for c in state.get('cards', [])}
        for card in cards:
            by_name[card.word_name] = card.to_dict()
        state['cards'] = list(by_name.values())
        self._save_state(profile, state)

    def load(self, profile: str) -> CardSettings:
        state = self._load_state(profile)
        return CardSettings.from_dict(state.get('settings', {}))

    def save(self, profile: str, settings: CardSettings) -> None:
        state = self._load_state(profile)
        state['settings'] = settings.to_dict()
        self._save_state(profile, state)

    def delete_card(self, profile: str, word_name: str) -> bool:
        state = self._load_state(profile)
        cards = state.get('cards', [])
        kept = [c for c in cards if c['word']['name'] != word_name]
        if len(kept) == len(cards):
            return False
        state['cards'] = kept
        self._save_state(profile, state)
        return True
