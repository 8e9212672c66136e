"""Tests for the file and PostgreSQL storage backends."""

import json
import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from drill.config import METHOD_SELF_REVIEW
from drill.errors import InvalidProfile
from drill.models import CardSettings, CardType
from server.file_storage import FileStorage
from server.postgres_storage import PostgresStorage

from tests.mocks import make_card, make_pool


class TestFileStorage(unittest.TestCase):
    """Tests for FileStorage."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.storage = FileStorage(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_empty_profile(self):
        self.assertEqual(self.storage.load_pool('maria'), [])
        self.assertEqual(self.storage.load('maria'), CardSettings())
        self.assertEqual(self.storage.list_profiles(), [])

    def test_save_and_load_cards(self):
        cards = make_pool("gato", "perro")
        cards[1].card_type = CardType.REVERSE
        self.storage.save_cards('maria', cards)
        loaded = self.storage.load_pool('maria')
        self.assertEqual([c.word_name for c in loaded], ["gato", "perro"])
        self.assertEqual(loaded[1].card_type, CardType.REVERSE)
        self.assertEqual(self.storage.list_profiles(), ['maria'])

    def test_save_cards_replaces_by_word(self):
        self.storage.save_cards('maria', make_pool("gato", "perro"))
        self.storage.save_cards('maria', [make_card("gato", ["cat", "kitty"], streak=2)])
        loaded = {c.word_name: c for c in self.storage.load_pool('maria')}
        self.assertEqual(len(loaded), 2)
        self.assertEqual(loaded["gato"].streak, 2)
        self.assertEqual(loaded["gato"].meanings[0].word_translations, ["cat", "kitty"])

    def test_persist_streaks(self):
        self.storage.save_cards('maria', make_pool("gato", "perro"))
        self.storage.persist_streaks('maria', [("perro", 3), ("unknown", 1)])
        loaded = {c.word_name: c.streak for c in self.storage.load_pool('maria')}
        self.assertEqual(loaded, {"gato": 0, "perro": 3})

    def test_persist_failure_propagates(self):
        self.storage.save_cards('maria', make_pool("gato"))
        with patch('server.file_storage.os.replace', side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                self.storage.persist_streaks('maria', [("gato", 1)])
        self.assertEqual(self.storage.load_pool('maria')[0].streak, 0)

    def test_settings(self):
        settings = CardSettings(3, METHOD_SELF_REVIEW, 2)
        self.storage.save('maria', settings)
        self.storage.save_cards('maria', make_pool("gato"))
        self.assertEqual(self.storage.load('maria'), settings)
        self.assertEqual(self.storage.load('pedro'), CardSettings())

    def test_file_layout(self):
        self.storage.save('maria', CardSettings(cards_per_set=4))
        path = os.path.join(self.tmp.name, 'flashdrill_maria.json')
        with open(path, encoding='utf-8') as f:
            state = json.load(f)
        self.assertEqual(state['settings']['cards_per_set'], 4)

    def test_invalid_profile_name(self):
        for profile in ('', '../etc', 'a b', 'x' * 65):
            with self.subTest(profile=profile):
                with self.assertRaises(ValueError):
                    self.storage.load_pool(profile)

    def test_invalid_profile_raises_invalid_profile(self):
        for profile in ('bad.name', 'a\n', None):
            with self.subTest(profile=profile):
                with self.assertRaises(InvalidProfile):
                    self.storage.load(profile)
        with self.assertRaises(InvalidProfile):
            self.storage.delete_card('bad.name', "gato")
        self.assertEqual(os.listdir(self.tmp.name), [])

    def test_delete_card(self):
        self.storage.save_cards('maria', make_pool("gato", "perro"))
        self.assertTrue(self.storage.delete_card('maria', "gato"))
        self.assertEqual([c.word_name for c in self.storage.load_pool('maria')], ["perro"])
        self.assertFalse(self.storage.delete_card('maria', "gato"))
        self.assertFalse(self.storage.delete_card('nobody', "gato"))


class TestPostgresStorage(unittest.TestCase):
    """Tests for PostgresStorage against a mocked connection."""

    def setUp(self):
        self.storage = PostgresStorage('postgresql://test/flashdrill')
        self.conn = MagicMock()
        self.conn.closed = False
        self.cursor = self.conn.cursor.return_value.__enter__.return_value
        self.storage._conn = self.conn
        self.storage._initialized = True

    def test_default_url_from_env(self):
        with patch.dict(os.environ, {'DATABASE_URL': 'postgresql://env/db'}):
            self.assertEqual(PostgresStorage().db_url, 'postgresql://env/db')

    def test_lazy_connect_creates_tables(self):
        storage = PostgresStorage('postgresql://test/flashdrill')
        with patch('server.postgres_storage.psycopg2.connect') as connect:
            conn = connect.return_value
            self.assertIs(storage.conn, conn)
            connect.assert_called_once_with('postgresql://test/flashdrill')
            statements = [c.args[0] for c in conn.cursor.return_value.__enter__.return_value.execute.call_args_list]
            self.assertTrue(any('CREATE TABLE IF NOT EXISTS cards' in s for s in statements))
            conn.commit.assert_called()

    def test_load_pool_uses_streak_column(self):
        card = make_card("gato", streak=0).to_dict()
        self.cursor.fetchall.return_value = [{'card': card, 'streak': 4}]
        cards = self.storage.load_pool('maria')
        self.assertEqual(cards[0].word_name, "gato")
        self.assertEqual(cards[0].streak, 4)

    def test_persist_streaks(self):
        with patch('server.postgres_storage.execute_batch') as batch:
            self.storage.persist_streaks('maria', [("gato", 2)])
            rows = batch.call_args.args[2]
        self.assertEqual(rows, [(2, 'maria', 'gato')])
        self.conn.commit.assert_called_once()

    def test_persist_failure_rolls_back(self):
        with patch('server.postgres_storage.execute_batch', side_effect=RuntimeError("connection lost")):
            with self.assertRaises(RuntimeError):
                self.storage.persist_streaks('maria', [("gato", 2)])
        self.conn.rollback.assert_called_once()
        self.conn.commit.assert_not_called()

    def test_load_settings_default(self):
        self.cursor.fetchone.return_value = None
        self.assertEqual(self.storage.load('maria'), CardSettings())

    def test_load_settings(self):
        self.cursor.fetchone.return_value = {'settings': {'cards_per_set': 3, 'streak_length': 2}}
        settings = self.storage.load('maria')
        self.assertEqual(settings.cards_per_set, 3)
        self.assertEqual(settings.streak_length, 2)

    def test_log_event_does_not_raise(self):
        self.cursor.execute.side_effect = RuntimeError("table missing")
        self.storage.log_event('session.start', 'maria', 'abc', mode='learn')
        self.conn.rollback.assert_called_once()

    def test_delete_card(self):
        self.cursor.rowcount = 1
        self.assertTrue(self.storage.delete_card('maria', "gato"))
        sql, params = self.cursor.execute.call_args.args
        self.assertIn('DELETE FROM cards', sql)
        self.assertEqual(params, ('maria', 'gato'))
        self.conn.commit.assert_called_once()

    def test_delete_missing_card(self):
        self.cursor.rowcount = 0
        self.assertFalse(self.storage.delete_card('maria', "gato"))

    def test_delete_failure_rolls_back(self):
        self.cursor.execute.side_effect = RuntimeError("connection lost")
        with self.assertRaises(RuntimeError):
            self.storage.delete_card('maria', "gato")
        self.conn.rollback.assert_called_once()

    def test_invalid_profile_rejected_before_query(self):
        with self.assertRaises(InvalidProfile):
            self.storage.load_pool('bad.name')
        with self.assertRaises(InvalidProfile):
            self.storage.save('bad.name', CardSettings())
        self.cursor.execute.assert_not_called()


if __name__ == '__main__':
    unittest.main()
