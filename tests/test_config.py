"""
Tests for configuration loading
"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from bitey.config import Config, DEFAULT_STORE_ROOT, load_config
from bitey.errors import ConfigError


class TestLoadConfig(unittest.TestCase):
    """Test config file and environment handling"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def _write(self, data) -> Path:
        path = self.temp_dir / "config.json"
        path.write_text(json.dumps(data) if not isinstance(data, str) else data)
        return path

    def test_defaults_when_no_file(self):
        with patch("bitey.config.default_config_paths", return_value=[self.temp_dir / "missing"]):
            config = load_config(environ={})

        self.assertEqual(config, Config())
        self.assertEqual(config.store_root, DEFAULT_STORE_ROOT)
        self.assertEqual(config.timeout, (10.0, 60.0))

    def test_load_file(self):
        path = self._write({
            "storeRoot": str(self.temp_dir / "store"),
            "remotesRoot": str(self.temp_dir / "remotes"),
            "insecure": True,
            "timeout": {"connect": 3, "read": 30},
            "scriptTimeout": 600
        })

        config = load_config(path, environ={})

        self.assertEqual(config.store_root, self.temp_dir / "store")
        self.assertTrue(config.insecure)
        self.assertEqual(config.timeout, (3.0, 30.0))
        self.assertEqual(config.script_timeout, 600.0)
        self.assertEqual(Config.from_dict(config.to_dict()), config)

    def test_config_from_environment(self):
        path = self._write({"insecure": False})
        env = {
            "BITEY_CONFIG": str(path),
            "BITEY_STORE": str(self.temp_dir / "env-store")
        }

        config = load_config(environ=env)

        self.assertEqual(config.store_root, self.temp_dir / "env-store")
        self.assertFalse(config.insecure)

    def test_invalid_json(self):
        path = self._write("{not json")

        with self.assertRaises(ConfigError):
            load_config(path, environ={})

    def test_wrong_types(self):
        for data in [[], {"insecure": "yes"}, {"timeout": 5}, {"timeout": {"read": "slow"}}]:
            with self.subTest(data=data):
                with self.assertRaises(ConfigError):
                    load_config(self._write(data), environ={})

    def test_missing_explicit_file(self):
        with self.assertRaises(ConfigError):
            load_config(self.temp_dir / "nope.json", environ={})


if __name__ == "__main__":
    unittest.main()
