"""PostgreSQL storage implementation."""

import json
import logging
import os

import psycopg2
from psycopg2.extras import RealDictCursor, execute_batch

from drill.interfaces import CardRepository, SettingsRepository
from drill.models import Card, CardSettings, check_profile_name

logger = logging.getLogger(__name__)


class PostgresStorage(CardRepository, SettingsRepository):
    """PostgreSQL-based storage implementation."""

    def __init__(self, db_url: str = None):
        self.db_url = db_url or os.environ.get(
            'DATABASE_URL',
            'postgresql://localhost:5432/flashdrill'
        )
        self._conn = None
        self._initialized = False

    @property
    def conn(self):
        """Lazy connection initialization."""
        if self._conn is None or self._conn.closed:
            self._conn = psycopg2.connect(self.db_url)
            if not self._initialized:
                self._init_db()
                self._initialized = True
        return self._conn

    def _init_db(self):
        """Create tables if they don't exist."""
        with self._conn.cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS card_settings (
                    profile VARCHAR(64) PRIMARY KEY,
                    settings JSONB NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cur.execute("""
                CREATE TABLE IF NOT EXISTS cards (
                    profile VARCHAR(64) NOT NULL,
                    word_name VARCHAR(200) NOT NULL,
                    card JSONB NOT NULL,
                    streak INTEGER NOT NULL DEFAULT 0,
                    created_at BIGINT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (profile, word_name)
                )
            """)
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_cards_profile_created
                ON cards(profile, created_at)
            """)
            # Events log table
            cur.execute("""
                CREATE TABLE IF NOT EXISTS events (
                    id SERIAL PRIMARY KEY,
                    timestamp TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    event VARCHAR(50) NOT NULL,
                    profile VARCHAR(64) NOT NULL,
                    session_id VARCHAR(64),
                    data JSONB
                )
            """)
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_events_profile ON events(profile)
            """)
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_events_session ON events(session_id)
            """)
        self._conn.commit()

    def close(self):
        """Close the database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()

    def load_pool(self, profile: str) -> list[Card]:
        check_profile_name(profile)
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute("""
                SELECT card, streak FROM cards
                WHERE profile = %s
                ORDER BY created_at, word_name
            """, (profile,))
            rows = cur.fetchall()
        cards = []
        for row in rows:
            # The streak column is authoritative, the JSON copy may be stale
            data = dict(row['card'])
            data['streak'] = row['streak']
            cards.append(Card.from_dict(data))
        return cards

    def persist_streaks(self, profile: str, changes: list[tuple[str, int]]) -> None:
        check_profile_name(profile)
        try:
            with self.conn.cursor() as cur:
                execute_batch(cur, """
                    UPDATE cards SET streak = %s, updated_at = CURRENT_TIMESTAMP
                    WHERE profile = %s AND word_name = %s
                """, [(streak, profile, word_name) for word_name, streak in changes])
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error saving streaks for {profile}: {e}")
            self.conn.rollback()
            raise

    def save_cards(self, profile: str, cards: list[Card]) -> None:
        check_profile_name(profile)
        try:
            with self.conn.cursor() as cur:
                execute_batch(cur, """
                    INSERT INTO cards (profile, word_name, card, streak, created_at, updated_at)
                    VALUES (%s, %s, %s, %s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (profile, word_name)
                    DO UPDATE SET card = EXCLUDED.card, streak = EXCLUDED.streak,
                                  updated_at = CURRENT_TIMESTAMP
                """, [(profile, c.word_name, json.dumps(c.to_dict()), c.streak, c.created_at) for c in cards])
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error saving cards for {profile}: {e}")
            self.conn.rollback()
            raise

    def delete_card(self, profile: str, word_name: str) -> bool:
        check_profile_name(profile)
        try:
            with self.conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM cards WHERE profile = %s AND word_name = %s",
                    (profile, word_name)
                )
                deleted = cur.rowcount > 0
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error deleting card {word_name!r} for {profile}: {e}")
            self.conn.rollback()
            raise
        return deleted

    def load(self, profile: str) -> CardSettings:
        check_profile_name(profile)
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                "SELECT settings FROM card_settings WHERE profile = %s",
                (profile,)
            )
            row = cur.fetchone()
        if row:
            return CardSettings.from_dict(row['settings'])
        return CardSettings()

    def save(self, profile: str, settings: CardSettings) -> None:
        check_profile_name(profile)
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO card_settings (profile, settings, updated_at)
                    VALUES (%s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (profile)
                    DO UPDATE SET settings = EXCLUDED.settings, updated_at = CURRENT_TIMESTAMP
                """, (profile, json.dumps(settings.to_dict())))
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error saving settings for {profile}: {e}")
            self.conn.rollback()
            raise

    def list_profiles(self) -> list[str]:
        """List all profiles that own cards or settings."""
        with self.conn.cursor() as cur:
            cur.execute("""
                SELECT profile FROM cards
                UNION
                SELECT profile FROM card_settings
                ORDER BY profile
            """)
            return [row[0] for row in cur.fetchall()]

    def log_event(self, event: str, profile: str, session_id: str = None, **data) -> None:
        """Log an event to the database."""
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO events (event, profile, session_id, data)
                    VALUES (%s, %s, %s, %s)
                """, (event, profile, session_id, json.dumps(data) if data else None))
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error logging event: {e}")
            self.conn.rollback()

    def get_profile_events(self, profile: str, event_type: str = None,
                           limit: int = 100) -> list[dict]:
        """Get recent events for a profile."""
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            if event_type:
                cur.execute("""
                    SELECT * FROM events
                    WHERE profile = %s AND event = %s
                    ORDER BY timestamp DESC LIMIT %s
                """, (profile, event_type, limit))
            else:
                cur.execute("""
                    SELECT * FROM events
                    WHERE profile = %s
                    ORDER BY timestamp DESC LIMIT %s
                """, (profile, limit))
            return [dict(row) for row in cur.fetchall()]
