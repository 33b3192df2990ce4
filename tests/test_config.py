"""Tests for pulse.config -- configuration persistence."""

import os
import tempfile
import unittest
from unittest import mock

from pulse.config import (
    DEFAULTS,
    get_config_value,
    load_config,
    parse_config_value,
    parse_sizes,
    save_config,
    set_config_value,
    validate_config,
)


class TestConfigDefaults(unittest.TestCase):
    def test_defaults_have_required_keys(self):
        for key in ("download_url", "upload_url", "latency_url", "info_url",
                    "server_label", "ping_count", "ping_timeout_ms", "ping_delay_ms",
                    "download_sizes", "upload_sizes", "save_history", "log_level"):
            self.assertIn(key, DEFAULTS)

    def test_default_sizes_ascending(self):
        for key in ("download_sizes", "upload_sizes"):
            self.assertEqual(DEFAULTS[key], sorted(DEFAULTS[key]))


class TestLoadSaveConfig(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        path = os.path.join(self._tmp.name, "config.json")
        patcher = mock.patch("pulse.config._config_path", return_value=path)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.path = path

    def test_load_defaults_when_missing(self):
        cfg = load_config()
        self.assertEqual(cfg["ping_count"], 10)
        self.assertEqual(cfg["server_label"], "Cloudflare")

    def test_save_and_load(self):
        save_config({"ping_count": 20, "server_label": "Lab"})
        cfg = load_config()
        self.assertEqual(cfg["ping_count"], 20)
        self.assertEqual(cfg["server_label"], "Lab")
        # Defaults still present
        self.assertEqual(cfg["ping_timeout_ms"], 5000)

    def test_corrupt_file_returns_defaults(self):
        with open(self.path, "w") as f:
            f.write("NOT JSON")
        self.assertEqual(load_config()["ping_count"], 10)

    def test_get_set_value(self):
        set_config_value("ping_delay_ms", 250)
        self.assertEqual(get_config_value("ping_delay_ms"), 250)

    def test_set_unknown_key(self):
        with self.assertRaises(ValueError):
            set_config_value("plan", 100)


class TestParseConfigValue(unittest.TestCase):
    def test_int(self):
        self.assertEqual(parse_config_value("ping_count", "15"), 15)

    def test_bad_int(self):
        with self.assertRaises(ValueError):
            parse_config_value("ping_count", "many")

    def test_bool(self):
        self.assertFalse(parse_config_value("save_history", "off"))
        self.assertTrue(parse_config_value("save_history", "Yes"))
        with self.assertRaises(ValueError):
            parse_config_value("save_history", "maybe")

    def test_sizes(self):
        self.assertEqual(parse_config_value("upload_sizes", "1000, 2000"), [1000, 2000])

    def test_string(self):
        self.assertEqual(parse_config_value("server_label", "Home"), "Home")

    def test_unknown_key(self):
        with self.assertRaises(ValueError):
            parse_config_value("nope", "1")


class TestValidateConfig(unittest.TestCase):
    def test_defaults_are_valid(self):
        validate_config(dict(DEFAULTS))

    def test_unknown_keys_ignored(self):
        validate_config({"legacy_option": object()})

    def test_wrong_types(self):
        for key, value in (
            ("ping_count", "20"),
            ("ping_count", True),
            ("save_history", 1),
            ("download_sizes", "1000,2000"),
            ("upload_sizes", [1000, "2000"]),
            ("log_level", 10),
        ):
            with self.subTest(key=key, value=value):
                with self.assertRaises(ValueError):
                    validate_config({key: value})


class TestParseSizes(unittest.TestCase):
    def test_basic(self):
        self.assertEqual(parse_sizes("1000000,10000000"), [1_000_000, 10_000_000])

    def test_trailing_comma(self):
        self.assertEqual(parse_sizes("5,"), [5])

    def test_garbage(self):
        with self.assertRaises(ValueError):
            parse_sizes("1MB,2MB")


if __name__ == "__main__":
    unittest.main()
