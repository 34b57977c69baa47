"""Read-only probing of the remote state of every change of a stack.

Each change is probed independently on a bounded thread pool. A failed read
marks that change's result as unknown instead of aborting the whole probe,
so the planner can still act on the changes below it.
"""

import concurrent.futures
from typing import Dict, Optional

from jjstack.git.abc import GitBackend
from jjstack.pr.abc import Forge
from jjstack.stack.models import Change, ProbeReport, ProbeResult, RemoteBranch, RemoteEntry, Stack
from jjstack.stack.naming import branch_name, short_change_id
from jjstack.stack.planner import base_chain
from jjstack.utils.config import JjStackConfig
from jjstack.utils.errors import JjStackError
from jjstack.utils.logging import debug, warning
from jjstack.utils.shell import retry_read
from jjstack.utils.types import BranchName, ChangeId, CommitId


class Prober:
    def __init__(self, git: GitBackend, forge: Forge, config: JjStackConfig):
        self.git = git
        self.forge = forge
        self.config = config

    def _read(self, fn, what: str):
        return retry_read(fn, attempts=self.config.read_retries, what=what)

    def _probe_entry(self, change_id: ChangeId, epoch: int) -> RemoteEntry:
        name = branch_name(change_id, self.config.branch_prefix, epoch)
        head: Optional[CommitId] = self._read(lambda: self.git.read_ref(name), "read of {}".format(name))
        pr = self._read(lambda: self.forge.find_pr(name), "PR lookup for {}".format(name))
        branch = None
        head_tree = None
        if head is not None:
            branch = RemoteBranch(name, head, pr.base_branch if pr is not None else None)
            head_tree = self._read(lambda: self.git.read_tree(head), "tree of {}".format(head))
        return RemoteEntry(epoch=epoch, name=name, branch=branch, pr=pr, head_tree=head_tree)

    def probe_change(self, change: Change) -> ProbeResult:
        """Collect every branch/PR pair a change ever had, oldest epoch first."""
        result = ProbeResult(change_id=change.change_id)
        try:
            for epoch in range(self.config.max_epochs + 1):
                entry = self._probe_entry(change.change_id, epoch)
                if entry.branch is None and entry.pr is None:
                    result.next_epoch = epoch
                    break
                result.candidates.append(entry)
            else:
                result.error = "more than {} epochs in use".format(self.config.max_epochs)
        except JjStackError as e:
            result.error = str(e)
        if result.error is not None:
            warning("Could not probe {}: {}", short_change_id(change.change_id), result.error)
        else:
            debug("Probed {}: {} candidate(s), next epoch {}",
                  short_change_id(change.change_id), len(result.candidates), result.next_epoch)
        return result

    def _probe_trunk(self, report: ProbeReport) -> None:
        trunk = self.config.trunk_branch
        try:
            report.trunk_tip = self._read(lambda: self.git.read_ref(trunk), "read of {}".format(trunk))
            if report.trunk_tip is None:
                report.trunk_error = "trunk branch {} does not exist on the remote".format(trunk)
        except JjStackError as e:
            report.trunk_error = str(e)

    def _check_bases(self, stack: Stack, report: ProbeReport) -> None:
        """Second pass, once base names are known: does each head contain its base tip?"""
        for change, base in zip(stack, base_chain(stack, report, self.config.branch_prefix)):
            result = report.results[change.change_id]
            entry = result.current
            if base is None or result.unknown or entry is None or entry.branch is None:
                continue
            if base.tip is None:
                result.contains_base = False
                continue
            head = entry.branch.head
            tip = base.tip
            try:
                result.contains_base = self._read(
                    lambda: self.git.is_ancestor(tip, head), "ancestry check of {}".format(entry.name)
                )
            except JjStackError as e:
                result.error = str(e)

    def probe(self, stack: Stack) -> ProbeReport:
        report = ProbeReport(trunk_branch=BranchName(self.config.trunk_branch), trunk_tip=None, results={})
        self._probe_trunk(report)
        if report.trunk_error is not None:
            warning("Could not read trunk: {}", report.trunk_error)
            for change in stack:
                report.results[change.change_id] = ProbeResult(change.change_id, error=report.trunk_error)
            return report

        results: Dict[ChangeId, ProbeResult] = {}
        with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, self.config.probe_concurrency)) as pool:
            futures = {pool.submit(self.probe_change, change): change for change in stack}
            for future in concurrent.futures.as_completed(futures):
                change = futures[future]
                results[change.change_id] = future.result()
        # Keep stack order regardless of completion order
        report.results = {change.change_id: results[change.change_id] for change in stack}
        self._check_bases(stack, report)
        return report


def probe_stack(stack: Stack, git: GitBackend, forge: Forge, config: JjStackConfig) -> ProbeReport:
    """Probe the remote state of every change of ``stack``."""
    return Prober(git, forge, config).probe(stack)
