"""Tests for storage backends, the Gemini provider and the HTTP API."""

import json
import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient
from google.api_core import exceptions as google_exceptions

import server.app as server_app
from core.generation import GenerationRequest
from core.interfaces import RateLimitError, SLOT_HISTORY, SLOT_SRS
from core.models import VocabularyItem
from core.session import NO_WORDS_MESSAGE
from server.file_storage import FileStorage
from server.gemini_provider import GeminiProvider
from server.postgres_storage import PostgresStorage

from test_core import MockAIProvider, MockStorage


class TestFileStorage(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.storage = FileStorage(
            config_file=os.path.join(self.tmp.name, 'config.json'),
            state_dir=self.tmp.name
        )

    def test_missing_slot_is_none(self):
        self.assertIsNone(self.storage.load(SLOT_HISTORY))

    def test_save_and_load(self):
        value = {'あい': {'level': 1}}
        self.storage.save(SLOT_SRS, value)
        self.assertEqual(self.storage.load(SLOT_SRS), value)
        with open(os.path.join(self.tmp.name, 'nihongo_srs.json'), encoding='utf-8') as f:
            self.assertIn('あい', f.read())

    def test_corrupt_file_is_none(self):
        with open(os.path.join(self.tmp.name, 'nihongo_history.json'), 'w') as f:
            f.write('{not json')
        self.assertIsNone(self.storage.load(SLOT_HISTORY))

    def test_unknown_slot_rejected(self):
        with self.assertRaises(ValueError):
            self.storage.save('passwords', [])

    def test_missing_config_raises(self):
        with self.assertRaises(FileNotFoundError):
            self.storage.load_config()

    def test_load_config(self):
        with open(self.storage.config_file, 'w') as f:
            json.dump({'gemini_api_key': 'abc'}, f)
        self.assertEqual(self.storage.load_config(), {'gemini_api_key': 'abc'})


class TestPostgresStorage(unittest.TestCase):

    def setUp(self):
        self.conn = MagicMock()
        self.conn.closed = False
        self.cursor = self.conn.cursor.return_value.__enter__.return_value
        patcher = patch('server.postgres_storage.psycopg2.connect', return_value=self.conn)
        self.connect = patcher.start()
        self.addCleanup(patcher.stop)
        self.storage = PostgresStorage(db_url='postgresql://test/nihongo')

    def test_connects_lazily_and_creates_table(self):
        self.connect.assert_not_called()
        self.cursor.fetchone.return_value = None
        self.assertIsNone(self.storage.load(SLOT_HISTORY))
        self.connect.assert_called_once_with('postgresql://test/nihongo')
        statements = [call.args[0] for call in self.cursor.execute.call_args_list]
        self.assertIn('CREATE TABLE IF NOT EXISTS learner_slots', statements[0])

    def test_load_returns_value(self):
        self.cursor.fetchone.return_value = {'value': ['srs_novice']}
        self.assertEqual(self.storage.load('achievements'), ['srs_novice'])

    def test_save_upserts_json(self):
        self.storage.save(SLOT_HISTORY, [{'score': 1}])
        sql, params = self.cursor.execute.call_args.args
        self.assertIn('ON CONFLICT (slot)', sql)
        self.assertEqual(params, (SLOT_HISTORY, '[{"score": 1}]'))
        self.conn.commit.assert_called()

    def test_save_failure_rolls_back_and_raises(self):
        self.storage.conn
        self.cursor.execute.side_effect = RuntimeError('connection lost')
        with self.assertRaises(RuntimeError):
            self.storage.save(SLOT_HISTORY, [])
        self.conn.rollback.assert_called_once()

    def test_unknown_slot_rejected(self):
        with self.assertRaises(ValueError):
            self.storage.load('passwords')


class TestGeminiProvider(unittest.TestCase):
    """Prompt building and response handling without touching the network."""

    def setUp(self):
        self.provider = GeminiProvider.__new__(GeminiProvider)
        self.provider.model_name = 'test-model'
        self.provider.words_model = MagicMock()
        self.provider.sensei_model = MagicMock()

    def test_prompt_for_closed_set(self):
        request = GenerationRequest('Hiragana', {'あ', 'い'}, 'Easy', priority_characters=['い'])
        prompt = self.provider.build_words_prompt(request)
        self.assertIn('exactly 10', prompt)
        self.assertIn('[あ, い]', prompt)
        self.assertIn('2-3 characters', prompt)
        self.assertIn('struggles with these characters', prompt)

    def test_prompt_for_open_category(self):
        request = GenerationRequest('Custom', None, 'Hard', topic='food')
        prompt = self.provider.build_words_prompt(request)
        self.assertIn('about: food', prompt)
        self.assertNotIn('ONLY characters', prompt)
        self.assertNotIn('struggles', prompt)

    def test_kanji_prompt_asks_for_n5(self):
        prompt = self.provider.build_words_prompt(GenerationRequest('Kanji', None, 'Medium', topic='N5 Kanji'))
        self.assertIn('JLPT N5', prompt)

    def test_generate_words_parses_json(self):
        words = [{'japanese': 'あい', 'romaji': 'ai', 'meaning': 'love'}]
        with patch.object(self.provider, '_execute', return_value=(json.dumps(words), 12)) as execute:
            result = self.provider.generate_words(GenerationRequest('Hiragana', {'あ', 'い'}, 'Medium'))
        self.assertEqual(result, words)
        config = execute.call_args.kwargs['generation_config']
        self.assertEqual(config['response_mime_type'], 'application/json')

    def test_generate_words_invalid_json(self):
        with patch.object(self.provider, '_execute', return_value=('not json', 5)):
            self.assertEqual(self.provider.generate_words(GenerationRequest('Kanji', None, 'Easy')), [])

    def test_generate_words_non_list(self):
        with patch.object(self.provider, '_execute', return_value=('{"japanese": "あ"}', 5)):
            self.assertEqual(self.provider.generate_words(GenerationRequest('Kanji', None, 'Easy')), [])

    def test_quota_errors_become_rate_limit(self):
        self.provider.words_model.generate_content.side_effect = google_exceptions.ResourceExhausted('quota')
        with self.assertRaises(RateLimitError):
            self.provider.generate_words(GenerationRequest('Kanji', None, 'Easy'))

    def test_encouragement_strips_text(self):
        self.provider.sensei_model.generate_content.return_value = MagicMock(text='  Sugoi!\n')
        self.assertEqual(self.provider.get_encouragement(True, 'Aki', 1000), 'Sugoi!')
        prompt = self.provider.sensei_model.generate_content.call_args.args[0]
        self.assertIn('Aki', prompt)
        self.assertIn('1000', prompt)


class TestAPI(unittest.TestCase):
    """HTTP endpoints against mock storage and provider.

    The client is used without its context manager, so startup does not run
    and feedback timers never fire; tests advance the orchestrator directly.
    """

    def setUp(self):
        self.storage = MockStorage()
        self.provider = MockAIProvider()
        self.client = TestClient(server_app.app)

    def _init(self):
        server_app.init_state(self.storage, self.provider, sleep=lambda s: None)

    def _start(self, **overrides):
        body = {'category': 'Hiragana', 'rows': ['vowels'], 'difficulty': 'Medium'}
        body.update(overrides)
        return self.client.post('/api/session/start', json=body)

    def test_health(self):
        self._init()
        self.assertEqual(self.client.get('/').json()['status'], 'ok')

    def test_profile(self):
        self._init()
        self.assertEqual(self.client.get('/api/profile').json(), {'display_name': ''})
        response = self.client.post('/api/profile', json={'display_name': ' Aki '})
        self.assertEqual(response.json(), {'display_name': 'Aki'})
        self.assertEqual(self.storage.slots['display_name'], 'Aki')
        self.assertEqual(self.client.post('/api/profile', json={'display_name': '  '}).status_code, 422)

    def test_rows(self):
        self._init()
        rows = self.client.get('/api/rows/Hiragana').json()['rows']
        self.assertEqual(len(rows), 10)
        self.assertEqual(rows[0]['id'], 'vowels')
        self.assertEqual(self.client.get('/api/rows/Kanji').json()['rows'], [])
        self.assertEqual(self.client.get('/api/rows/Klingon').status_code, 422)

    def test_idle_snapshot(self):
        self._init()
        snap = self.client.get('/api/session').json()
        self.assertEqual(snap['state'], 'idle')
        self.assertIsNone(snap['current_item'])

    def test_start_session(self):
        self._init()
        response = self._start()
        self.assertEqual(response.status_code, 200)
        snap = response.json()
        self.assertEqual(snap['state'], 'active')
        self.assertEqual(snap['queue_length'], 3)
        self.assertEqual(snap['current_item'], {'japanese': 'あい'})
        request = self.provider.generate_words_calls[0]
        self.assertEqual(request.allowed_characters, set('あいうえお'))

    def test_start_without_rows_conflicts(self):
        self._init()
        self.assertEqual(self._start(rows=[]).status_code, 409)

    def test_start_with_no_usable_words(self):
        self._init()
        self.provider.set_words_response([{'japanese': 'かき', 'romaji': 'kaki', 'meaning': 'persimmon'}])
        response = self._start()
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()['detail'], NO_WORDS_MESSAGE)
        snap = self.client.get('/api/session').json()
        self.assertEqual(snap['state'], 'configuring')
        self.assertEqual(snap['error'], NO_WORDS_MESSAGE)

    def test_answer_flow(self):
        self._init()
        self._start()
        response = self.client.post('/api/session/answer', json={'answer': 'AI'})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data['correct'])
        self.assertGreaterEqual(data['points'], 500)
        self.assertLessEqual(data['points'], 1000)
        self.assertEqual(data['srs_level'], 1)
        self.assertEqual(data['streak'], 1)

        # Feedback is showing, so a second answer is refused
        self.assertEqual(self.client.post('/api/session/answer', json={'answer': 'ai'}).status_code, 409)
        snap = self.client.get('/api/session').json()
        self.assertEqual(snap['feedback'], 'correct')
        self.assertEqual(snap['answer'], 'ai')

        server_app.orchestrator.advance()
        data = self.client.post('/api/session/answer', json={'answer': 'nope'}).json()
        self.assertFalse(data['correct'])
        self.assertEqual(data['points'], 0)
        self.assertEqual(data['expected'], 'ie')
        self.assertIn('いえ', self.storage.slots[SLOT_SRS])

    def test_fixed_session_completes(self):
        self._init()
        self._start()
        for answer in ('ai', 'ie', 'ue'):
            self.client.post('/api/session/answer', json={'answer': answer})
            server_app.orchestrator.advance()
        snap = self.client.get('/api/session').json()
        self.assertEqual(snap['state'], 'finished')
        self.assertEqual(snap['last_result']['accuracy'], 100)
        history = self.client.get('/api/history').json()['history']
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0]['total_answered'], 3)

    def test_exit(self):
        self._init()
        self._start()
        self.client.post('/api/session/answer', json={'answer': 'ai'})
        snap = self.client.post('/api/session/exit').json()
        self.assertEqual(snap['state'], 'idle')
        self.assertEqual(self.client.get('/api/history').json()['history'], [])

    def test_finish_endless(self):
        self._init()
        self._start(is_endless=True)
        self.client.post('/api/session/answer', json={'answer': 'ai'})
        data = self.client.post('/api/session/finish').json()
        self.assertEqual(data['result']['total_answered'], 1)
        self.assertEqual(self.client.get('/api/session').json()['state'], 'finished')

    def test_finish_fixed_session_conflicts(self):
        self._init()
        self._start()
        self.assertEqual(self.client.post('/api/session/finish').status_code, 409)

    def test_review_with_nothing_due(self):
        self._init()
        self.assertEqual(self.client.get('/api/srs/due').json()['count'], 0)
        self.assertEqual(self.client.post('/api/session/review', json={}).status_code, 409)

    def test_review_due_items(self):
        self.storage.slots[SLOT_SRS] = {
            'ねこ': {
                'word': {'japanese': 'ねこ', 'romaji': 'neko', 'meaning': 'cat'},
                'level': 2, 'interval': 86400, 'next_review': 1000.0
            }
        }
        self._init()
        self.assertEqual(self.client.get('/api/srs/due').json()['count'], 1)
        snap = self.client.post('/api/session/review', json={'difficulty': 'Hard'}).json()
        self.assertEqual(snap['state'], 'review_active')
        self.assertEqual(snap['queue_length'], 1)
        self.assertEqual(snap['difficulty'], 'Hard')
        data = self.client.post('/api/session/answer', json={'answer': 'neko'}).json()
        self.assertEqual(data['srs_level'], 3)
        self.assertEqual(self.provider.generate_words_calls, [])

    def test_insights(self):
        self.storage.slots[SLOT_HISTORY] = [{
            'id': 'a1', 'date': 1767225600.0, 'type': 'Hiragana', 'difficulty': 'Easy',
            'score': 700, 'accuracy': 50, 'total_answered': 2, 'max_streak': 1,
            'struggled_words': [{'japanese': 'かき', 'romaji': 'kaki', 'meaning': 'persimmon'}]
        }]
        self._init()
        data = self.client.get('/api/insights').json()
        self.assertEqual(data['summary']['sessions'], 1)
        self.assertEqual(data['weaknesses']['struggled_words'][0]['count'], 1)
        group = data['weaknesses']['weak_groups'][0]
        self.assertEqual(group['group'], 'hiragana:k_row')
        self.assertIn('K-Row', group['label'])
        self.assertEqual(data['mastery']['total'], 0)

    def test_achievements(self):
        self.storage.slots['achievements'] = ['streak_10']
        self._init()
        data = self.client.get('/api/achievements').json()
        self.assertEqual(data['unlocked_count'], 1)
        unlocked = [a['id'] for a in data['achievements'] if a['unlocked']]
        self.assertEqual(unlocked, ['streak_10'])
        self.assertEqual(data['new'], [])

    def test_reading_achievements_keeps_new_unlocks(self):
        self._init()
        for i in range(5):
            server_app.progress.srs.record_answer(VocabularyItem(f'w{i}', f'w{i}', ''), True)
        self.assertEqual(self.client.get('/api/achievements').json()['new'], ['srs_novice'])
        self.assertEqual(self.client.get('/api/achievements').json()['new'], ['srs_novice'])
        self.assertEqual(self.client.post('/api/achievements/seen').json()['new'], ['srs_novice'])
        self.assertEqual(self.client.get('/api/achievements').json()['new'], [])

    def test_history_limit(self):
        self._init()
        self._start()
        for answer in ('ai', 'ie', 'ue'):
            self.client.post('/api/session/answer', json={'answer': answer})
            server_app.orchestrator.advance()
        self.assertEqual(len(self.client.get('/api/history', params={'limit': 0}).json()['history']), 0)
        self.assertEqual(len(self.client.get('/api/history', params={'limit': 1}).json()['history']), 1)
        self.assertEqual(self.client.get('/api/history', params={'limit': -1}).status_code, 422)


if __name__ == '__main__':
    unittest.main()
