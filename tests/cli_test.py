"""Unit tests for the command-line entry point."""

import io
import json
import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from tvbingefriend_tmdb_client import cli
from tvbingefriend_tmdb_client.models import FetchResult, ShowQuery

CLI_MODULE_PATH = 'tvbingefriend_tmdb_client.cli'
ENV = {'API_URL': 'https://api.test', 'API_VERSION': '3', 'API_KEY': 'k', 'CONCURRENCY_LIMIT': '2'}


class TestCli(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.state_path = os.path.join(self.tmp.name, 'state.json')
        with open(self.state_path, 'w', encoding='utf-8') as state_file:
            json.dump({'shows': [{'name': 'Foo'}, {'id': 42, 'season': 1}]}, state_file)

    def test_load_shows(self):
        shows = cli.load_shows(self.state_path)
        self.assertEqual(shows, [ShowQuery(name='Foo'), ShowQuery(id=42, season=1)])

    def test_load_shows_requires_list(self):
        with open(self.state_path, 'w', encoding='utf-8') as state_file:
            json.dump({'series': []}, state_file)
        with self.assertRaises(ValueError):
            cli.load_shows(self.state_path)

    @patch(f'{CLI_MODULE_PATH}.load_dotenv')
    @patch(f'{CLI_MODULE_PATH}.ShowTracker')
    @patch(f'{CLI_MODULE_PATH}.TMDBAPI')
    def test_main_writes_results(self, mock_api_cls, mock_tracker_cls, mock_load_dotenv):
        mock_tracker_cls.return_value.fetch_all.return_value = [
            FetchResult(show=ShowQuery(name='Foo'), error=LookupError('not found')),
            FetchResult(show=ShowQuery(id=42, season=1), data={'id': 42}),
        ]
        stdout = io.StringIO()
        with patch.dict(os.environ, ENV, clear=True), patch(f'{CLI_MODULE_PATH}.sys.stdout', stdout), \
                self.assertLogs(CLI_MODULE_PATH, level='WARNING') as logs:
            exit_code = cli.main([self.state_path])

        self.assertEqual(exit_code, 0)
        mock_load_dotenv.assert_called_once()
        mock_api_cls.return_value.__enter__.assert_called_once()
        shows = mock_tracker_cls.return_value.fetch_all.call_args.args[0]
        self.assertEqual(shows, [ShowQuery(name='Foo'), ShowQuery(id=42, season=1)])
        self.assertEqual(json.loads(stdout.getvalue()), [
            {'show': {'name': 'Foo'}, 'data': None, 'error': 'not found'},
            {'show': {'id': 42, 'season': 1}, 'data': {'id': 42}, 'error': None},
        ])
        self.assertIn("unable to fetch data for {'name': 'Foo'}", logs.output[0])

    @patch(f'{CLI_MODULE_PATH}.load_dotenv')
    @patch(f'{CLI_MODULE_PATH}.TMDBAPI')
    def test_main_reports_missing_configuration(self, mock_api_cls, mock_load_dotenv):
        with patch.dict(os.environ, {}, clear=True), \
                self.assertLogs(CLI_MODULE_PATH, level='ERROR') as logs:
            exit_code = cli.main([self.state_path])
        self.assertEqual(exit_code, 2)
        mock_api_cls.assert_not_called()
        self.assertIn('Missing required settings', logs.output[0])

    @patch(f'{CLI_MODULE_PATH}.load_dotenv', MagicMock())
    def test_main_reports_missing_state_file(self):
        with patch.dict(os.environ, ENV, clear=True), \
                self.assertLogs(CLI_MODULE_PATH, level='ERROR'):
            exit_code = cli.main([os.path.join(self.tmp.name, 'absent.json')])
        self.assertEqual(exit_code, 2)


if __name__ == '__main__':
    unittest.main()
