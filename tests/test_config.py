"""
Unit tests for orgsync.config module
"""
import unittest
import tempfile
import os
import shutil
import json
from pathlib import Path
from unittest.mock import patch

from orgsync.config import (
    load_config,
    get_default_config,
    get_github_token,
    merge_configs,
)
from orgsync.domain.repository import Author
from orgsync.exit_codes import ConfigError
from orgsync.render import is_robot_only
from orgsync.services.sync_service import SyncOptions


class TestConfigManagement(unittest.TestCase):
    """Test configuration management functionality"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.env = patch.dict(os.environ, {'HOME': self.temp_dir}, clear=False)
        self.env.start()
        for key in list(os.environ):
            if key.startswith('ORGSYNC_') or key == 'GITHUB_TOKEN':
                os.environ.pop(key)

    def tearDown(self):
        self.env.stop()
        shutil.rmtree(self.temp_dir)

    def write_config(self, name, content):
        config_dir = Path(self.temp_dir) / '.orgsync'
        config_dir.mkdir(exist_ok=True)
        path = config_dir / name
        path.write_text(content)
        return path

    def test_defaults(self):
        config = load_config()
        self.assertEqual(config['general']['max_concurrent_operations'], 30)
        self.assertEqual(config['general']['main_branch'], 'master')
        self.assertEqual(config['general']['manifest_file'], '.orgsync.yaml')
        self.assertEqual(config['prompts']['clone_timeout_seconds'], 60)
        self.assertIn('renovate', config['report']['bot_patterns'])

    def test_json_file_merges_over_defaults(self):
        self.write_config('config.json', json.dumps({'general': {'main_branch': 'main'}}))
        config = load_config()
        self.assertEqual(config['general']['main_branch'], 'main')
        self.assertEqual(config['general']['log_file'], '.orgsync.log')

    def test_yaml_file(self):
        self.write_config('config.yaml', "github:\n  host: github.example.com\n")
        self.assertEqual(load_config()['github']['host'], 'github.example.com')

    def test_toml_file(self):
        self.write_config('config.toml', "[prompts]\nclone_timeout_seconds = 5\n")
        self.assertEqual(load_config()['prompts']['clone_timeout_seconds'], 5)

    def test_explicit_config_path(self):
        path = Path(self.temp_dir) / 'custom.json'
        path.write_text(json.dumps({'general': {'max_concurrent_operations': 8}}))
        os.environ['ORGSYNC_CONFIG'] = str(path)
        self.assertEqual(load_config()['general']['max_concurrent_operations'], 8)

    def test_invalid_file_raises(self):
        self.write_config('config.json', '{not json')
        with self.assertRaises(ConfigError):
            load_config()

    def test_non_mapping_raises(self):
        self.write_config('config.yaml', "- a\n- b\n")
        with self.assertRaises(ConfigError):
            load_config()

    def test_env_overrides(self):
        os.environ['ORGSYNC_GENERAL_MAIN_BRANCH'] = 'trunk'
        os.environ['ORGSYNC_GENERAL_MAX_CONCURRENT_OPERATIONS'] = '5'
        os.environ['ORGSYNC_PROMPTS_CLONE_TIMEOUT_SECONDS'] = '0'
        config = load_config()
        self.assertEqual(config['general']['main_branch'], 'trunk')
        self.assertEqual(config['general']['max_concurrent_operations'], 5)
        self.assertEqual(config['prompts']['clone_timeout_seconds'], 0)

    def test_env_numeric_branch_stays_string(self):
        os.environ['ORGSYNC_GENERAL_MAIN_BRANCH'] = '2024'
        config = load_config()
        self.assertEqual(config['general']['main_branch'], '2024')
        self.assertEqual(SyncOptions.from_config(config).main_branch, '2024')

    def test_env_single_bot_pattern(self):
        os.environ['ORGSYNC_REPORT_BOT_PATTERNS'] = 'renovate'
        config = load_config()
        self.assertEqual(config['report']['bot_patterns'], ['renovate'])

        patterns = SyncOptions.from_config(config).bot_patterns
        self.assertEqual(patterns, ('renovate',))
        self.assertFalse(is_robot_only([Author("Jane Doe", 1)], patterns))
        self.assertTrue(is_robot_only([Author("Renovate Bot", 3)], patterns))

    def test_env_bot_pattern_list(self):
        os.environ['ORGSYNC_REPORT_BOT_PATTERNS'] = 'renovate, jenkins,'
        config = load_config()
        self.assertEqual(config['report']['bot_patterns'], ['renovate', 'jenkins'])

    def test_env_invalid_integer_raises(self):
        os.environ['ORGSYNC_GENERAL_MAX_CONCURRENT_OPERATIONS'] = 'abc'
        with self.assertRaises(ConfigError):
            load_config()

    def test_github_token_fallback(self):
        config = get_default_config()
        self.assertIsNone(get_github_token(config))
        os.environ['GITHUB_TOKEN'] = 'from-env'
        self.assertEqual(get_github_token(config), 'from-env')
        config['github']['token'] = 'from-config'
        self.assertEqual(get_github_token(config), 'from-config')


class TestMergeConfigs(unittest.TestCase):

    def test_nested_merge_keeps_base(self):
        merged = merge_configs({'a': {'x': 1, 'y': 2}, 'b': 1}, {'a': {'y': 3}})
        self.assertEqual(merged, {'a': {'x': 1, 'y': 3}, 'b': 1})


class TestSyncOptionsFromConfig(unittest.TestCase):

    def test_from_config(self):
        config = get_default_config()
        config['general']['max_concurrent_operations'] = 4
        config['general']['main_branch'] = 'main'
        config['prompts']['clone_timeout_seconds'] = 0

        options = SyncOptions.from_config(config, ask_clone=True)

        self.assertEqual(options.concurrency, 4)
        self.assertEqual(options.main_branch, 'main')
        self.assertIsNone(options.clone_timeout)
        self.assertTrue(options.ask_clone)
        self.assertFalse(options.ask_move)

    def test_scalar_bot_pattern_is_wrapped(self):
        config = get_default_config()
        config['report']['bot_patterns'] = 'renovate'
        self.assertEqual(SyncOptions.from_config(config).bot_patterns, ('renovate',))
