"""Tests for layered config parsing and validation."""

import os
import sys
import tempfile
import unittest
from copy import deepcopy
from pathlib import Path
from unittest.mock import patch

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from ContentKit.config import load_config, load_config_with_defaults, parse_config_dict
from ContentKit.config.app import merge_config_dicts


def _base_raw_config() -> dict:
    return {
        "log": {"level": "INFO", "to_file": False, "dir": "log"},
        "delivery": {
            "space_id": "cfexampleapi",
            "environment": "master",
            "access_token_env": "CONTENT_DELIVERY_TOKEN",
            "use_preview": False,
            "base_url": "https://cdn.contentful.com",
            "preview_url": "https://preview.contentful.com",
            "timeout": 30,
            "max_retries": 3,
            "retry_base_delay": 1.0,
            "retry_max_delay": 16.0,
        },
    }


class TestParseConfigDict(unittest.TestCase):
    def test_valid_config(self) -> None:
        with patch.dict(os.environ, {"CONTENT_DELIVERY_TOKEN": " token-123 "}):
            cfg = parse_config_dict(_base_raw_config())

        self.assertEqual(cfg.runtime.level, "INFO")
        self.assertEqual(cfg.delivery.space_id, "cfexampleapi")
        self.assertEqual(cfg.delivery.access_token, "token-123")
        self.assertEqual(cfg.delivery.timeout, 30.0)
        self.assertEqual(cfg.delivery.api_url, "https://cdn.contentful.com")
        self.assertIsNone(cfg.delivery.default_locale)

    def test_missing_token_is_allowed(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            cfg = parse_config_dict(_base_raw_config())
        self.assertEqual(cfg.delivery.access_token, "")

    def test_preview_switches_api_url(self) -> None:
        raw = _base_raw_config()
        raw["delivery"]["use_preview"] = True
        self.assertEqual(parse_config_dict(raw).delivery.api_url, "https://preview.contentful.com")

    def test_log_section_is_optional(self) -> None:
        raw = _base_raw_config()
        del raw["log"]
        cfg = parse_config_dict(raw)
        self.assertEqual(cfg.runtime.level, "INFO")
        self.assertFalse(cfg.runtime.to_file)

    def test_missing_delivery_section(self) -> None:
        raw = _base_raw_config()
        del raw["delivery"]
        with self.assertRaisesRegex(ValueError, "delivery"):
            parse_config_dict(raw)

    def test_missing_space_id(self) -> None:
        raw = _base_raw_config()
        del raw["delivery"]["space_id"]
        with self.assertRaisesRegex(ValueError, "delivery.space_id"):
            parse_config_dict(raw)

    def test_type_errors_name_the_key(self) -> None:
        cases = [
            ("timeout", "fast", "delivery.timeout"),
            ("max_retries", 1.5, "delivery.max_retries"),
            ("use_preview", "yes", "delivery.use_preview"),
            ("space_id", 42, "delivery.space_id"),
        ]
        for key, value, message in cases:
            with self.subTest(key=key):
                raw = _base_raw_config()
                raw["delivery"][key] = value
                with self.assertRaisesRegex(TypeError, message):
                    parse_config_dict(raw)

    def test_value_constraints(self) -> None:
        cases = [
            ("timeout", 0, "delivery.timeout"),
            ("max_retries", -1, "delivery.max_retries"),
            ("base_url", "cdn.contentful.com", "delivery.base_url"),
            ("retry_max_delay", 0.5, "delivery.retry_max_delay"),
            ("space_id", "  ", "delivery.space_id"),
        ]
        for key, value, message in cases:
            with self.subTest(key=key):
                raw = _base_raw_config()
                raw["delivery"][key] = value
                with self.assertRaisesRegex(ValueError, message):
                    parse_config_dict(raw)

    def test_invalid_log_level(self) -> None:
        raw = _base_raw_config()
        raw["log"]["level"] = "loud"
        with self.assertRaisesRegex(ValueError, "log.level"):
            parse_config_dict(raw)

    def test_log_level_is_case_insensitive(self) -> None:
        raw = _base_raw_config()
        raw["log"]["level"] = "debug"
        self.assertEqual(parse_config_dict(raw).runtime.level, "DEBUG")


class TestConfigFiles(unittest.TestCase):
    def test_override_is_merged_onto_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            default_path = Path(tmp) / "default.yml"
            override_path = Path(tmp) / "custom.yml"
            default_path.write_text(
                "log:\n  level: INFO\n"
                "delivery:\n  space_id: cfexampleapi\n  access_token_env: CONTENT_DELIVERY_TOKEN\n  timeout: 30\n",
                encoding="utf-8",
            )
            override_path.write_text("delivery:\n  space_id: myspace\n  default_locale: de-DE\n", encoding="utf-8")

            cfg = load_config_with_defaults(override_path, default_path=default_path)

        self.assertEqual(cfg.delivery.space_id, "myspace")
        self.assertEqual(cfg.delivery.access_token_env, "CONTENT_DELIVERY_TOKEN")
        self.assertEqual(cfg.delivery.default_locale, "de-DE")

    def test_load_config_without_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "only.yml"
            path.write_text("delivery:\n  space_id: solo\n  access_token_env: TOKEN\n", encoding="utf-8")
            cfg = load_config(path)
        self.assertEqual(cfg.delivery.space_id, "solo")
        self.assertEqual(cfg.delivery.environment, "master")

    def test_root_must_be_mapping(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "list.yml"
            path.write_text("- a\n- b\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_config(path)

    def test_shipped_default_config_parses(self) -> None:
        cfg = load_config(REPO_ROOT / "config" / "default.yml")
        self.assertEqual(cfg.delivery.space_id, "cfexampleapi")


class TestMergeConfigDicts(unittest.TestCase):
    def test_deep_merge_keeps_base(self) -> None:
        base = _base_raw_config()
        snapshot = deepcopy(base)

        merged = merge_config_dicts(base, {"delivery": {"timeout": 5}, "log": {"level": "DEBUG"}})

        self.assertEqual(merged["delivery"]["timeout"], 5)
        self.assertEqual(merged["delivery"]["space_id"], "cfexampleapi")
        self.assertEqual(merged["log"]["level"], "DEBUG")
        self.assertEqual(base, snapshot)


if __name__ == "__main__":
    unittest.main()
