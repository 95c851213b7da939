import json
import logging
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from lynx_tui import config
from lynx_tui.datamodels import AuthSession


class TestConfigFiles(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp(prefix="lynx_config_")
        self.config_path = os.path.join(self.test_dir, "lynx", "config.json")
        self.session_path = os.path.join(self.test_dir, "lynx", "session.json")
        self.patches = [
            patch("lynx_tui.config.CONFIG_PATH", self.config_path),
            patch("lynx_tui.config.SESSION_FILE", self.session_path),
        ]
        for p in self.patches:
            p.start()

    def tearDown(self):
        for p in self.patches:
            p.stop()
        shutil.rmtree(self.test_dir)

    def test_default_config_is_created(self):
        loaded = config.load_config()
        self.assertTrue(os.path.exists(self.config_path))
        self.assertEqual(loaded["server_url"], config.DEFAULT_SERVER_URL)
        self.assertEqual(loaded["page_size"], config.PAGE_SIZE)

    def test_user_values_override_defaults(self):
        os.makedirs(os.path.dirname(self.config_path))
        with open(self.config_path, "w") as f:
            json.dump({"server_url": "https://lynx.example", "page_size": 25}, f)
        loaded = config.load_config()
        self.assertEqual(loaded["server_url"], "https://lynx.example")
        self.assertEqual(loaded["page_size"], 25)
        self.assertEqual(loaded["read_threshold"], config.READ_THRESHOLD)

    def test_corrupt_config_falls_back_to_defaults(self):
        os.makedirs(os.path.dirname(self.config_path))
        with open(self.config_path, "w") as f:
            f.write("{not json")
        self.assertEqual(config.load_config()["server_url"], config.DEFAULT_SERVER_URL)

    def test_session_round_trip(self):
        self.assertIsNone(config.load_session())
        config.save_session(AuthSession(token="tok", user_id="u1"))
        self.assertEqual(config.load_session(), AuthSession(token="tok", user_id="u1"))
        config.clear_session()
        self.assertIsNone(config.load_session())

    def test_unreadable_session_is_ignored(self):
        os.makedirs(os.path.dirname(self.session_path))
        with open(self.session_path, "w") as f:
            json.dump({"token": "only"}, f)
        self.assertIsNone(config.load_session())


if __name__ == "__main__":
    unittest.main()


class TestSetupLogging(unittest.TestCase):
    def setUp(self):
        self.log_dir = tempfile.mkdtemp(prefix="lynx_log_")
        self.saved = (
            list(config.logger.handlers),
            config.logger.level,
            config.logger.propagate,
        )

    def tearDown(self):
        for handler in list(config.logger.handlers):
            config.logger.removeHandler(handler)
            handler.close()
        handlers, level, propagate = self.saved
        for handler in handlers:
            config.logger.addHandler(handler)
        config.logger.setLevel(level)
        config.logger.propagate = propagate
        shutil.rmtree(self.log_dir)

    def test_debug_writes_to_a_file_in_the_log_dir(self):
        path = config.setup_logging(True, log_dir=self.log_dir)
        self.assertEqual(os.path.dirname(path), self.log_dir)
        config.logger.info("hello from the test")
        for handler in config.logger.handlers:
            handler.flush()
        with open(path) as f:
            self.assertIn("hello from the test", f.read())

    def test_without_debug_nothing_is_logged(self):
        self.assertIsNone(config.setup_logging(False, log_dir=self.log_dir))
        self.assertFalse(config.logger.isEnabledFor(logging.ERROR))
        self.assertEqual(os.listdir(self.log_dir), [])

    def test_repeated_setup_does_not_stack_handlers(self):
        config.setup_logging(True, log_dir=self.log_dir)
        config.setup_logging(True, log_dir=self.log_dir)
        self.assertEqual(len(config.logger.handlers), 1)
