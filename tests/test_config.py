"""
Unit tests for reposervice.config module
"""
import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import yaml

from reposervice.config import (
    ServiceConfig,
    apply_env_overrides,
    get_default_config,
    load_config,
    load_config_dict,
    merge_configs,
    with_defaults,
)
from reposervice.domain import CredentialsOptions, RepoOptions, ShowOptions
from reposervice.exit_codes import ConfigError
from reposervice.normalizers import IdentityNormalizer, LogNormalizer


class TestConfigLoading(unittest.TestCase):
    """Test configuration loading"""

    def setUp(self):
        """Set up test environment"""
        self.temp_dir = tempfile.mkdtemp()
        self.env = patch.dict(os.environ, {'HOME': self.temp_dir}, clear=False)
        self.env.start()
        for key in list(os.environ):
            if key.startswith('REPOSERVICE_'):
                del os.environ[key]

    def tearDown(self):
        """Clean up test environment"""
        self.env.stop()
        shutil.rmtree(self.temp_dir)

    def _config_dir(self):
        config_dir = Path(self.temp_dir) / '.reposervice'
        config_dir.mkdir(exist_ok=True)
        return config_dir

    def test_load_config_no_file(self):
        """Defaults when no file exists"""
        config = load_config()
        self.assertEqual(config, ServiceConfig.from_dict(get_default_config()))
        self.assertEqual(config.branch, 'master')
        self.assertEqual(config.commit, 'HEAD')
        self.assertTrue(config.silent)
        self.assertFalse(config.blocking)
        self.assertFalse(config.remove_missing_ok)

    def test_load_config_json_file(self):
        with open(self._config_dir() / 'config.json', 'w') as f:
            json.dump({'defaults': {'branch': 'main'}, 'execution': {'timeout': 60}}, f)

        config = load_config()

        self.assertEqual(config.branch, 'main')
        self.assertEqual(config.timeout, 60.0)
        self.assertEqual(config.commit, 'HEAD')

    def test_load_config_yaml_file(self):
        with open(self._config_dir() / 'config.yaml', 'w') as f:
            yaml.safe_dump({'directories': {'remove_missing_ok': True}}, f)

        self.assertTrue(load_config().remove_missing_ok)

    def test_load_config_toml_file(self):
        (self._config_dir() / 'config.toml').write_text('[diff]\nextension = ".json"\n')

        self.assertEqual(load_config().diff_extension, '.json')

    def test_explicit_env_path(self):
        path = Path(self.temp_dir) / 'custom.json'
        path.write_text(json.dumps({'credentials': {'ssh_host': 'git@gitlab.com'}}))

        with patch.dict(os.environ, {'REPOSERVICE_CONFIG': str(path)}):
            self.assertEqual(load_config().ssh_host, 'git@gitlab.com')

    def test_invalid_file(self):
        (self._config_dir() / 'config.json').write_text('{not json')

        with self.assertRaises(ConfigError):
            load_config()

    def test_env_override(self):
        with patch.dict(os.environ, {
            'REPOSERVICE_DEFAULTS_BRANCH': 'main',
            'REPOSERVICE_DIRECTORIES_REMOVE_MISSING_OK': 'true',
            'REPOSERVICE_EXECUTION_MAX_WORKERS': '8',
        }):
            config = load_config()

        self.assertEqual(config.branch, 'main')
        self.assertTrue(config.remove_missing_ok)
        self.assertEqual(config.max_workers, 8)

    def test_load_config_dict_keeps_logging(self):
        self.assertEqual(load_config_dict()['logging']['level'], 'INFO')


class TestConfigHelpers(unittest.TestCase):

    def test_merge_configs(self):
        merged = merge_configs({'a': {'b': 1, 'c': 2}, 'd': 3}, {'a': {'b': 10}, 'e': 4})
        self.assertEqual(merged, {'a': {'b': 10, 'c': 2}, 'd': 3, 'e': 4})

    def test_apply_env_overrides_unknown_key(self):
        config = get_default_config()
        apply_env_overrides(config, {'REPOSERVICE_NOPE_KEY': 'x'})
        self.assertEqual(config, get_default_config())

    def test_allowed_patterns_from_config(self):
        config = ServiceConfig.from_dict({'errors': {'allowed_patterns': [
            {'label': 'up-to-date', 'pattern': 'Already up to date'},
        ]}})
        self.assertEqual([rule.label for rule in config.allowed_errors], ['up-to-date'])

    def test_invalid_allowed_pattern(self):
        with self.assertRaises(ConfigError):
            ServiceConfig.from_dict({'errors': {'allowed_patterns': [{'label': 'x'}]}})

    def test_invalid_max_workers(self):
        with self.assertRaises(ConfigError):
            ServiceConfig.from_dict({'execution': {'max_workers': 'many'}})

    def test_equal_settings_compare_equal(self):
        data = {'errors': {'allowed_patterns': [{'label': 'up-to-date', 'pattern': 'Already up to date'}]}}
        self.assertEqual(ServiceConfig.from_dict(data), ServiceConfig.from_dict(data))
        self.assertEqual(ServiceConfig(), ServiceConfig.from_dict({}))

    def test_to_dict(self):
        data = ServiceConfig().to_dict()
        self.assertEqual(data['allowed_errors'], ['destination-exists'])
        json.dumps(data)


class TestWithDefaults(unittest.TestCase):

    def test_fills_unset_fields(self):
        options = with_defaults(RepoOptions(), ServiceConfig(branch='main'))
        self.assertEqual(options.branch, 'main')
        self.assertEqual(options.commit, 'HEAD')
        self.assertTrue(options.silent)
        self.assertFalse(options.blocking)
        self.assertIsInstance(options.normalizer, IdentityNormalizer)

    def test_keeps_given_fields(self):
        normalizer = LogNormalizer()
        options = with_defaults(
            ShowOptions(branch='dev', commit='abc', blocking=True, silent=False, normalizer=normalizer),
            ServiceConfig(),
        )
        self.assertEqual(options.branch, 'dev')
        self.assertEqual(options.commit, 'abc')
        self.assertTrue(options.blocking)
        self.assertFalse(options.silent)
        self.assertIs(options.normalizer, normalizer)

    def test_does_not_mutate_input(self):
        original = RepoOptions()
        with_defaults(original, ServiceConfig())
        self.assertIsNone(original.branch)

    def test_credentials_host(self):
        options = with_defaults(CredentialsOptions(), ServiceConfig(ssh_host='git@example.com'))
        self.assertEqual(options.host, 'git@example.com')


if __name__ == '__main__':
    unittest.main()
