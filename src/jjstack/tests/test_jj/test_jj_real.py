#!/usr/bin/env python3
"""Tests for jjstack.jj.real module."""

import unittest
from unittest.mock import patch

from jjstack.jj.real import JujutsuBackend, parse_change_line
from jjstack.utils.errors import CommandError


class TestParseChangeLine(unittest.TestCase):
    """Tests for parse_change_line function."""

    def test_parse_single_parent(self):
        change = parse_change_line("c1|kxyz|kpar|Add feature\n\nDetails here", "t1")
        self.assertEqual(change.commit_id, "c1")
        self.assertEqual(change.change_id, "kxyz")
        self.assertEqual(change.parent_change_ids, ("kpar",))
        self.assertEqual(change.tree_id, "t1")
        self.assertEqual(change.title, "Add feature")
        self.assertEqual(change.body, "Details here")

    def test_parse_description_with_separator(self):
        """Test a description containing the separator is kept whole."""
        change = parse_change_line("c1|kxyz|kpar|Fix a|b parsing", "t1")
        self.assertEqual(change.description, "Fix a|b parsing")

    def test_parse_merge_and_root(self):
        self.assertEqual(parse_change_line("c1|k|p1,p2|m", "t").parent_change_ids, ("p1", "p2"))
        self.assertEqual(parse_change_line("c1|k||", "t").parent_change_ids, ())

    def test_parse_empty_description(self):
        change = parse_change_line("c1|k|p|", "t")
        self.assertTrue(change.is_empty_description)

    def test_parse_bad_format(self):
        with self.assertRaises(CommandError):
            parse_change_line("garbage", "t")


class TestJujutsuBackend(unittest.TestCase):
    """Tests for JujutsuBackend class."""

    @patch("jjstack.jj.real.run_always_return")
    def test_change_info_reads_tree_from_git(self, mock_run):
        mock_run.side_effect = ["c1|kxyz|kpar|Title", "tree1"]
        change = JujutsuBackend(timeout=3).change_info("kxyz")
        self.assertEqual(change.tree_id, "tree1")
        jj_cmd = mock_run.call_args_list[0].args[0]
        self.assertEqual(jj_cmd[:2], ["jj", "log"])
        self.assertIn("kxyz", jj_cmd)
        self.assertEqual(mock_run.call_args_list[1].args[0], ["git", "rev-parse", "c1^{tree}"])
        self.assertEqual(mock_run.call_args_list[1].kwargs["timeout"], 3)

    @patch("jjstack.jj.real.run_always_return", return_value="kwork")
    def test_resolve_working_change_default(self, mock_run):
        self.assertEqual(JujutsuBackend().resolve_working_change(), "kwork")
        self.assertIn("@", mock_run.call_args.args[0])

    @patch("jjstack.jj.real.run_always_return", return_value="kother")
    def test_resolve_working_change_revision(self, mock_run):
        self.assertEqual(JujutsuBackend().resolve_working_change("feature"), "kother")
        self.assertIn("feature", mock_run.call_args.args[0])

    @patch("jjstack.jj.real.run_always_return")
    def test_in_trunk(self, mock_run):
        mock_run.return_value = "kxyz"
        self.assertTrue(JujutsuBackend().in_trunk("kxyz"))
        self.assertIn("kxyz & ::trunk()", mock_run.call_args.args[0])
        mock_run.return_value = ""
        self.assertFalse(JujutsuBackend().in_trunk("kxyz"))

    @patch("jjstack.jj.real.run_always_return")
    def test_parent_of(self, mock_run):
        mock_run.side_effect = ["c1|kxyz|kpar|Title", "tree1"]
        self.assertEqual(JujutsuBackend().parent_of("kxyz"), "kpar")


if __name__ == "__main__":
    unittest.main()
