#!/usr/bin/env python3
"""Tests for jjstack.pr.sync module."""

import unittest

from jjstack.jj.fake import make_change
from jjstack.pr.fake import FakeForge
from jjstack.pr.github import STACK_COMMENT_START
from jjstack.pr.sync import PRSynchronizer
from jjstack.stack.models import Action, ActionKind, PRState
from jjstack.utils.config import JjStackConfig


def _config(**kwargs):
    return JjStackConfig(branch_prefix="u/", **kwargs)


class TestCreate(unittest.TestCase):
    """Tests for PRSynchronizer.create."""

    def test_create_uses_description(self):
        forge = FakeForge()
        change = make_change("ka", "root", "t1", "Add thing\n\nLonger text\nReviewers: bob, carol")
        pr = PRSynchronizer(forge, _config()).create(change, "u/a", "main")
        self.assertEqual(pr.title, "Add thing")
        self.assertEqual(pr.body, "Longer text\nReviewers: bob, carol")
        self.assertEqual(pr.base_branch, "main")
        self.assertEqual(forge.reviewers[pr.number], ("bob", "carol"))
        self.assertNotIn(pr.number, forge.drafts)

    def test_create_draft(self):
        forge = FakeForge()
        change = make_change("ka", "root", "t1", "Add thing")
        pr = PRSynchronizer(forge, _config(draft_prs=True)).create(change, "u/a", "main")
        self.assertIn(pr.number, forge.drafts)


class TestSyncExisting(unittest.TestCase):
    """Tests for PRSynchronizer.sync_existing."""

    def setUp(self):
        self.forge = FakeForge()
        self.change = make_change("kb", "ka", "t2", "Second")
        self.sync = PRSynchronizer(self.forge, _config())

    def _action(self, **kwargs):
        return Action(kind=ActionKind.NOOP, change=self.change, branch="u/b", base_branch="u/a", **kwargs)

    def test_missing_pr_is_created(self):
        pr = self.sync.sync_existing(self._action())
        self.assertEqual(pr.head_branch, "u/b")
        self.assertEqual(pr.base_branch, "u/a")
        self.assertEqual(len(self.forge.created), 1)

    def test_retarget_edits_only_base(self):
        existing = self.forge.add_pr("u/b", "main", title="Edited on GitHub", body="Custom")
        pr = self.sync.sync_existing(self._action(pr=existing, retarget_base=True))
        self.assertEqual(pr.base_branch, "u/a")
        self.assertEqual(self.forge.edits, [(existing.number, {"base_branch": "u/a"})])
        self.assertEqual(self.forge.prs[existing.number].title, "Edited on GitHub")
        self.assertEqual(self.forge.prs[existing.number].body, "Custom")

    def test_up_to_date_pr_untouched(self):
        existing = self.forge.add_pr("u/b", "u/a")
        pr = self.sync.sync_existing(self._action(pr=existing))
        self.assertEqual(pr, existing)
        self.assertEqual(self.forge.edits, [])
        self.assertEqual(self.forge.created, [])


class TestUpdateStackComments(unittest.TestCase):
    """Tests for PRSynchronizer.update_stack_comments."""

    def test_adds_then_leaves_alone(self):
        forge = FakeForge()
        prs = [forge.add_pr("u/a", "main", body="A"), forge.add_pr("u/b", "u/a")]
        sync = PRSynchronizer(forge, _config())
        updated = sync.update_stack_comments(prs)
        self.assertEqual(len(forge.edits), 2)
        self.assertTrue(updated[0].body.startswith("A\n\n" + STACK_COMMENT_START))
        self.assertIn("#1 ← (CURRENT PR)", updated[0].body)
        self.assertIn("#2 ← (CURRENT PR)", updated[1].body)

        sync.update_stack_comments(updated)
        self.assertEqual(len(forge.edits), 2)

    def test_skips_closed_and_disabled(self):
        forge = FakeForge()
        prs = [forge.add_pr("u/a", "main", state=PRState.MERGED), forge.add_pr("u/b", "main")]
        PRSynchronizer(forge, _config()).update_stack_comments(prs)
        self.assertEqual([number for number, _ in forge.edits], [2])

        forge = FakeForge()
        prs = [forge.add_pr("u/a", "main")]
        PRSynchronizer(forge, _config(enable_stack_comment=False)).update_stack_comments(prs)
        self.assertEqual(forge.edits, [])


if __name__ == "__main__":
    unittest.main()
