"""
Unit tests for ConfigManager functionality.
"""
import json
import tempfile
import unittest
from pathlib import Path

from minebot.config_manager import (
    PLACEHOLDER_ADMIN_ROLE_ID,
    PLACEHOLDER_TOKEN,
    PLACEHOLDER_UPDATE_CHANNEL_ID,
    ConfigManager,
)


class TestConfigManager(unittest.TestCase):
    """Test cases for ConfigManager class."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_path = Path(self.temp_dir.name) / 'config.json'

    def tearDown(self):
        self.temp_dir.cleanup()

    def load(self, environ=None):
        manager = ConfigManager(str(self.config_path), environ=environ or {})
        return manager, manager.load(use_dotenv=False)

    def test_missing_values_fall_back_to_placeholders(self):
        manager, config = self.load()
        self.assertEqual(config.token, PLACEHOLDER_TOKEN)
        self.assertEqual(config.update_channel_id, PLACEHOLDER_UPDATE_CHANNEL_ID)
        self.assertEqual(config.admin_role_id, PLACEHOLDER_ADMIN_ROLE_ID)
        self.assertIsNone(config.admin_password)
        self.assertEqual(config.port, 3000)
        self.assertEqual(config.prefix, '!')
        self.assertIsNone(manager.get_update_channel_id())

    def test_environment_values(self):
        manager, config = self.load({
            'BOT_TOKEN': 'abc',
            'ADMIN_PASSWORD': 'secret',
            'UPDATE_CHANNEL_ID': '1234',
            'ADMIN_ROLE_ID': '5678',
            'PORT': '8080',
            'BOT_PREFIX': '?',
        })
        self.assertEqual(config.token, 'abc')
        self.assertEqual(config.admin_password, 'secret')
        self.assertEqual(manager.get_update_channel_id(), 1234)
        self.assertEqual(config.admin_role_id, '5678')
        self.assertEqual(config.port, 8080)
        self.assertEqual(config.prefix, '?')

    def test_alternate_token_variable(self):
        _, config = self.load({'DISCORD_TOKEN': 'from-discord-token'})
        self.assertEqual(config.token, 'from-discord-token')

    def test_environment_overrides_config_file(self):
        self.config_path.write_text(json.dumps({'token': 'file-token', 'port': 4000}), encoding='utf-8')
        _, config = self.load({'BOT_TOKEN': 'env-token'})
        self.assertEqual(config.token, 'env-token')
        self.assertEqual(config.port, 4000)

    def test_invalid_config_file_is_ignored(self):
        self.config_path.write_text('{ not json', encoding='utf-8')
        _, config = self.load()
        self.assertEqual(config.token, PLACEHOLDER_TOKEN)

    def test_invalid_port_falls_back(self):
        for value in ('abc', '0', '70000'):
            with self.subTest(port=value):
                _, config = self.load({'PORT': value})
                self.assertEqual(config.port, 3000)

    def test_unknown_timezone_falls_back(self):
        _, config = self.load({'AUTO_UPDATE_TIMEZONE': 'Mars/Olympus_Mons'})
        self.assertEqual(config.auto_update_timezone, 'Asia/Dhaka')

    def test_health_check_reports_placeholders(self):
        manager, _ = self.load()
        health_check = manager.get_configuration_health_check()
        self.assertFalse(health_check['healthy'])
        self.assertEqual(len(health_check['errors']), 1)
        self.assertEqual(len(health_check['warnings']), 3)

    def test_health_check_passes_with_full_configuration(self):
        manager, _ = self.load({
            'BOT_TOKEN': 'abc',
            'ADMIN_PASSWORD': 'secret',
            'UPDATE_CHANNEL_ID': '1234',
            'ADMIN_ROLE_ID': '5678',
        })
        health_check = manager.get_configuration_health_check()
        self.assertTrue(health_check['healthy'])
        self.assertEqual(health_check['warnings'], [])

    def test_settings_summary(self):
        manager, _ = self.load({'UPDATE_CHANNEL_ID': '1234'})
        summary = manager.get_settings_summary()
        self.assertIn('Update channel: 1234', summary)
        self.assertIn('15:00-15:05 Asia/Dhaka', summary)


if __name__ == '__main__':
    unittest.main()
