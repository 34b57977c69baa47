#!/usr/bin/env python3
"""Tests for jjstack.stack.pusher module."""

import unittest

from jjstack.git.fake import FakeGit
from jjstack.stack.pusher import Pusher
from jjstack.utils.errors import NonFastForwardOrRace


class TestPusher(unittest.TestCase):
    """Tests for Pusher class."""

    def setUp(self):
        self.git = FakeGit()
        self.old = self.git.add_commit("T0", message="old")
        self.new = self.git.add_commit("T1", [self.old], "new")
        self.pusher = Pusher(self.git)

    def test_push_new_branch(self):
        self.assertEqual(self.pusher.push("u/a", None, self.old), self.old)
        self.assertEqual(self.git.remote_refs["u/a"], self.old)

    def test_push_existing_branch(self):
        self.git.remote_refs["u/a"] = self.old
        self.git.read_ref("u/a")
        self.pusher.push("u/a", self.old, self.new)
        self.assertEqual(self.git.remote_refs["u/a"], self.new)
        self.assertEqual(self.git.pushes, [("u/a", self.new)])

    def test_push_race(self):
        """Test a branch moved by someone else since probing is not overwritten."""
        self.git.remote_refs["u/a"] = self.old
        self.git.read_ref("u/a")
        theirs = self.git.add_commit("T9", [self.old], "theirs")
        self.git.remote_refs["u/a"] = theirs
        with self.assertRaises(NonFastForwardOrRace):
            self.pusher.push("u/a", self.old, self.new)
        self.assertEqual(self.git.remote_refs["u/a"], theirs)

    def test_push_new_branch_already_created(self):
        self.git.remote_refs["u/a"] = self.old
        with self.assertRaises(NonFastForwardOrRace):
            self.pusher.push("u/a", None, self.new)
        self.assertEqual(self.git.remote_refs["u/a"], self.old)


if __name__ == "__main__":
    unittest.main()
