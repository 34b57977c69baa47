#!/usr/bin/env python3
"""Tests for jjstack.utils.logging module."""

import io
import logging
import unittest
from unittest.mock import patch

from jjstack.utils.logging import (
    LOGGER, ExitException, color_stderr, color_stdout, cout, die, info, set_color_mode, setup_logging
)


class TestDie(unittest.TestCase):
    """Tests for die function."""

    @patch("jjstack.git.remote.stop_muxed_ssh")
    def test_die_only_raises(self, mock_stop):
        with self.assertRaises(ExitException) as cm:
            die("Failed on {}", "ka")
        self.assertEqual(cm.exception.args[0], "Failed on ka")
        mock_stop.assert_not_called()


class TestColorMode(unittest.TestCase):
    """Tests for set_color_mode and cout."""

    def tearDown(self):
        set_color_mode("auto")

    def test_never(self):
        set_color_mode("never")
        self.assertFalse(color_stdout())
        self.assertFalse(color_stderr())
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            cout("{} done\n", "ka", fg="green")
        self.assertEqual(out.getvalue(), "ka done\n")

    def test_always(self):
        set_color_mode("always")
        self.assertTrue(color_stdout())
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            cout("done\n", fg="green")
        self.assertIn("\033[", out.getvalue())


class TestSetupLogging(unittest.TestCase):
    """Tests for setup_logging function."""

    def tearDown(self):
        set_color_mode("auto")

    def test_repeated_setup_keeps_one_handler(self):
        setup_logging(logging.INFO, "never")
        setup_logging(logging.DEBUG, "never")
        self.assertEqual(len(LOGGER.handlers), 1)
        self.assertEqual(LOGGER.level, logging.DEBUG)

    def test_messages_go_to_handler(self):
        stream = io.StringIO()
        with patch("sys.stderr", stream):
            setup_logging(logging.INFO, "never")
            info("Pushed {}", "u/abc")
        self.assertIn("INFO: Pushed u/abc", stream.getvalue())

    def test_level_filters(self):
        stream = io.StringIO()
        with patch("sys.stderr", stream):
            setup_logging(logging.WARNING, "never")
            info("hidden")
        self.assertEqual(stream.getvalue(), "")


if __name__ == "__main__":
    unittest.main()
