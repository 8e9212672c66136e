"""REST API client for the flashdrill server."""

import requests
from typing import Optional


class FlashdrillAPIClient:
    """Client for communicating with the flashdrill REST API."""

    def __init__(self, base_url: str = "http://localhost:8000", profile: str = "default"):
        self.base_url = base_url.rstrip('/')
        self.profile = profile
        self.session = requests.Session()

    def _get(self, endpoint: str, params: dict = None) -> dict:
        """Make a GET request."""
        response = self.session.get(f"{self.base_url}{endpoint}", params=params)
        response.raise_for_status()
        return response.json()

    def _post(self, endpoint: str, data: dict = None) -> dict:
        """Make a POST request."""
        response = self.session.post(f"{self.base_url}{endpoint}", json=data or {})
        response.raise_for_status()
        return response.json()

    def health_check(self) -> dict:
        """Check if the server is running."""
        return self._get("/")

    def get_settings(self) -> dict:
        """Get card settings for the profile."""
        return self._get(f"/api/profiles/{self.profile}/settings")

    def get_cards(self) -> dict:
        """Get the profile's cards and learned counts."""
        return self._get(f"/api/profiles/{self.profile}/cards")

    def start_session(self, repeat: bool = False, start_card_number: int = 1,
                      limit: Optional[int] = None) -> dict:
        """Start a learning session, or a repeat run over learned cards."""
        data = {'profile': self.profile, 'mode': 'repeat' if repeat else 'learn'}
        if repeat:
            data['limit'] = limit
        else:
            data['start_card_number'] = start_card_number
        return self._post("/api/sessions", data)

    def send_event(self, session_id: str, event_type: str, text: str = None) -> dict:
        """Send one event to a session and get the new state."""
        data = {'type': event_type}
        if text is not None:
            data['text'] = text
        return self._post(f"/api/sessions/{session_id}/events", data)

    def flush(self, session_id: str) -> dict:
        """Retry saving a session's pending streaks."""
        return self._post(f"/api/sessions/{session_id}/flush")

    def abandon(self, session_id: str) -> dict:
        """Drop a session."""
        response = self.session.delete(f"{self.base_url}/api/sessions/{session_id}")
        response.raise_for_status()
        return response.json()
