#!/usr/bin/env python3
"""Tests for jjstack.stack.models module."""

import unittest

from jjstack.jj.fake import make_change
from jjstack.stack.models import (
    Action,
    ActionKind,
    ActionOutcome,
    ApplyResult,
    Plan,
    PRState,
    ProbeResult,
    PullRequest,
    RemoteEntry,
    Stack,
)


class TestChange(unittest.TestCase):
    """Tests for Change dataclass."""

    def test_title_and_body(self):
        change = make_change("k", "p", "t", "\n  Title line  \n\nBody one\nBody two\n")
        self.assertEqual(change.title, "Title line")
        self.assertEqual(change.body, "Body one\nBody two")
        self.assertFalse(change.is_empty_description)

    def test_empty_description(self):
        self.assertTrue(make_change("k", "p", "t", "  \n").is_empty_description)

    def test_parent_change_id(self):
        self.assertEqual(make_change("k", "p", "t").parent_change_id, "p")
        self.assertIsNone(make_change("k", None, "t").parent_change_id)


class TestStack(unittest.TestCase):
    def test_sequence_protocol(self):
        trunk = make_change("kt", None, "t0")
        a = make_change("ka", "kt", "t1")
        b = make_change("kb", "ka", "t2")
        stack = Stack(trunk=trunk, changes=(a, b))
        self.assertEqual(len(stack), 2)
        self.assertEqual(stack[1], b)
        self.assertEqual(list(stack), [a, b])


class TestPullRequest(unittest.TestCase):
    def test_is_stale(self):
        self.assertTrue(PullRequest(1, "h", "main", PRState.CLOSED).is_stale)
        self.assertFalse(PullRequest(1, "h", "main", PRState.MERGED).is_stale)
        self.assertFalse(PullRequest(1, "h", "main", PRState.OPEN).is_stale)


class TestProbeResult(unittest.TestCase):
    def test_current_and_unknown(self):
        result = ProbeResult("k")
        self.assertIsNone(result.current)
        self.assertFalse(result.unknown)
        result.candidates.append(RemoteEntry(0, "u/x", None, None))
        result.candidates.append(RemoteEntry(1, "u/x-1", None, None))
        self.assertEqual(result.current.epoch, 1)
        result.error = "boom"
        self.assertTrue(result.unknown)


class TestAction(unittest.TestCase):
    """Tests for Action and Plan helpers."""

    def setUp(self):
        self.change = make_change("ka", "kt", "t1", "A")
        self.pr = PullRequest(1, "u/a", "main", PRState.OPEN)

    def _action(self, kind, **kwargs):
        return Action(kind=kind, change=self.change, branch="u/a", base_branch="main", **kwargs)

    def test_needs_pr(self):
        self.assertTrue(self._action(ActionKind.CREATE_BRANCH_AND_PR).needs_pr)
        self.assertTrue(self._action(ActionKind.REPLACE_STALE_PR, pr=self.pr).needs_pr)
        self.assertTrue(self._action(ActionKind.APPEND_COMMIT).needs_pr)
        self.assertFalse(self._action(ActionKind.APPEND_COMMIT, pr=self.pr).needs_pr)
        self.assertFalse(self._action(ActionKind.SKIP_MERGED).needs_pr)

    def test_is_noop(self):
        self.assertTrue(self._action(ActionKind.NOOP, pr=self.pr).is_noop)
        self.assertTrue(self._action(ActionKind.SKIP_MERGED).is_noop)
        self.assertFalse(self._action(ActionKind.NOOP).is_noop)
        self.assertFalse(self._action(ActionKind.NOOP, pr=self.pr, retarget_base=True).is_noop)
        self.assertFalse(self._action(ActionKind.APPEND_COMMIT, pr=self.pr).is_noop)

    def test_plan_convergence(self):
        stack = Stack(trunk=make_change("kt", None, "t0"), changes=(self.change,))
        converged = Plan(stack, (self._action(ActionKind.NOOP, pr=self.pr),))
        pending = Plan(stack, (self._action(ActionKind.APPEND_COMMIT, pr=self.pr),))
        self.assertTrue(converged.is_converged)
        self.assertFalse(pending.is_converged)
        self.assertEqual(pending.kinds, [ActionKind.APPEND_COMMIT])

    def test_outcomes(self):
        action = self._action(ActionKind.APPEND_COMMIT, pr=self.pr)
        stack = Stack(trunk=make_change("kt", None, "t0"), changes=(self.change,))
        plan = Plan(stack, (action,))
        skipped = ActionOutcome(action, skipped=True)
        self.assertFalse(skipped.ok)
        self.assertFalse(ActionOutcome(action).ok)
        failed = ActionOutcome(action, error=RuntimeError("x"))
        self.assertFalse(failed.skipped)
        result = ApplyResult(plan, [failed])
        self.assertFalse(result.ok)
        self.assertIs(result.failure, failed)
        self.assertTrue(ApplyResult(plan, [ActionOutcome(action, applied=True)]).ok)


if __name__ == "__main__":
    unittest.main()
