"""Tests for pulse.logging_setup."""

import io
import logging
import unittest

from rich.console import Console
from rich.logging import RichHandler

from pulse.logging_setup import configure_logging


class TestConfigureLogging(unittest.TestCase):
    def setUp(self):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level

        def restore():
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

        self.addCleanup(restore)

    def test_installs_single_rich_handler(self):
        configure_logging("DEBUG", Console(file=io.StringIO()))
        configure_logging("DEBUG", Console(file=io.StringIO()))

        root = logging.getLogger()
        self.assertEqual(len(root.handlers), 1)
        self.assertIsInstance(root.handlers[0], RichHandler)
        self.assertEqual(root.level, logging.DEBUG)

    def test_unknown_level_falls_back_to_warning(self):
        configure_logging("chatty", Console(file=io.StringIO()))
        self.assertEqual(logging.getLogger().level, logging.WARNING)

    def test_records_reach_console(self):
        out = io.StringIO()
        configure_logging("INFO", Console(file=out, width=200))
        logging.getLogger("pulse.test").info("hello from probe")
        self.assertIn("hello from probe", out.getvalue())


if __name__ == "__main__":
    unittest.main()
