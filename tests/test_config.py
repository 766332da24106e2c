"""Tests for the settings module."""

import os
import tempfile
import unittest
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

import yaml
from pydantic import ValidationError

from threadrank.config.settings import Settings


class TestSettings(unittest.TestCase):
    """Test cases for the Settings class."""

    def setUp(self):
        """Set up test environment."""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_path = Path(self.temp_dir.name) / "app_config.yaml"

        self.sample_config = {
            "rank_gravity": 1.5,
            "stories_per_page": 25,
            "front_page_order": "rank",
            "log_level": "debug",
        }
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(self.sample_config, f)

        # Keep the caller's environment out of the way.
        self.env = patch.dict(os.environ, {}, clear=False)
        self.env.start()
        for name in ("RANK_GRAVITY", "STORIES_PER_PAGE", "FRONT_PAGE_ORDER", "LOG_LEVEL"):
            os.environ.pop(name, None)
            os.environ.pop(name.lower(), None)

    def tearDown(self):
        """Clean up test environment."""
        self.env.stop()
        self.temp_dir.cleanup()

    def test_defaults(self):
        settings = Settings(_env_file=None)

        self.assertEqual(settings.RANK_GRAVITY, 1.8)
        self.assertEqual(settings.RANK_TIMEBASE_HOURS, 96)
        self.assertEqual(settings.STORIES_PER_PAGE, 10)
        self.assertEqual(settings.EDIT_WINDOW_MINUTES, 60)
        self.assertEqual(settings.MAX_TITLE_LENGTH, 64)
        self.assertEqual(settings.MAX_THREAD_DEPTH, 64)
        self.assertEqual(settings.FRONT_PAGE_ORDER, "created")
        self.assertEqual(settings.COMMENT_ORDER, "input")
        self.assertEqual(settings.edit_window, timedelta(hours=1))

    def test_load_from_yaml(self):
        settings = Settings.load_from_yaml(self.config_path)

        self.assertEqual(settings.RANK_GRAVITY, 1.5)
        self.assertEqual(settings.STORIES_PER_PAGE, 25)
        self.assertEqual(settings.FRONT_PAGE_ORDER, "rank")
        self.assertEqual(settings.LOG_LEVEL, "DEBUG")

    def test_environment_beats_yaml(self):
        os.environ["STORIES_PER_PAGE"] = "5"

        settings = Settings.load_from_yaml(self.config_path)

        self.assertEqual(settings.STORIES_PER_PAGE, 5)
        self.assertEqual(settings.RANK_GRAVITY, 1.5)

    def test_lower_case_environment_beats_yaml(self):
        os.environ["stories_per_page"] = "5"

        settings = Settings.load_from_yaml(self.config_path)

        self.assertEqual(settings.STORIES_PER_PAGE, 5)

    def test_overrides_beat_everything(self):
        os.environ["STORIES_PER_PAGE"] = "5"

        settings = Settings.load_from_yaml(self.config_path, STORIES_PER_PAGE=3)

        self.assertEqual(settings.STORIES_PER_PAGE, 3)

    def test_missing_yaml_uses_defaults(self):
        settings = Settings.load_from_yaml(Path(self.temp_dir.name) / "missing.yaml")
        self.assertEqual(settings.STORIES_PER_PAGE, 10)

    def test_validation(self):
        for field, value in [
            ("STORIES_PER_PAGE", 0),
            ("EDIT_WINDOW_MINUTES", -1),
            ("RANK_TIMEBASE_HOURS", 0),
            ("RANK_GRAVITY", -0.1),
            ("FRONT_PAGE_ORDER", "hot"),
            ("COMMENT_ORDER", "score"),
            ("LOG_FORMAT", "xml"),
        ]:
            with self.subTest(field=field):
                with self.assertRaises(ValidationError):
                    Settings(_env_file=None, **{field: value})


if __name__ == "__main__":
    unittest.main()
