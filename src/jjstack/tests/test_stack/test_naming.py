#!/usr/bin/env python3
"""Tests for jjstack.stack.naming module."""

import unittest

from jjstack.stack.naming import branch_name, change_digest, short_change_id


class TestBranchName(unittest.TestCase):
    """Tests for branch_name function."""

    def test_deterministic(self):
        """Test the same change id always maps to the same name."""
        self.assertEqual(branch_name("kxyzabc", "u/"), branch_name("kxyzabc", "u/"))

    def test_format(self):
        name = branch_name("kxyzabc", "alice/")
        self.assertTrue(name.startswith("alice/"))
        digest = name[len("alice/"):]
        self.assertEqual(len(digest), 12)
        self.assertEqual(digest, change_digest("kxyzabc"))
        int(digest, 16)

    def test_distinct_change_ids(self):
        self.assertNotEqual(branch_name("kaaaaaaa", "u/"), branch_name("kaaaaaab", "u/"))

    def test_epochs(self):
        """Test epochs yield fresh names that cannot collide with a base name."""
        base = branch_name("kxyz", "u/")
        self.assertEqual(branch_name("kxyz", "u/", 0), base)
        self.assertEqual(branch_name("kxyz", "u/", 1), base + "-1")
        self.assertEqual(branch_name("kxyz", "u/", 12), base + "-12")
        self.assertNotIn("-", base[len("u/"):])

    def test_negative_epoch(self):
        with self.assertRaises(ValueError):
            branch_name("kxyz", "u/", -1)


class TestShortChangeId(unittest.TestCase):
    def test_short_change_id(self):
        self.assertEqual(short_change_id("kxyzabcdefgh"), "kxyzabcd")
        self.assertEqual(short_change_id("kx"), "kx")


if __name__ == "__main__":
    unittest.main()
