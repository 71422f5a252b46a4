#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Branch Synchronizer for release-flow

After a version is committed and tagged on a branch, propagates that state
to the downstream branches of the pipeline:

    main  --rebase-->  beta  --merge-->  alpha

- release branch -> first pre-release branch: rebase first, falling back to
  the merge ladder when the rebase conflicts;
- pre-release -> next pre-release: merge ladder.

The merge ladder is an ordered list of rungs, tried until one succeeds:

1. plain merge (--no-ff)
2. merge favouring the incoming side (-X theirs)
3. merge without commit; when the version file is the only path left in
   conflict, it is rewritten with the new version and the merge committed
4. terminal: abort, open an issue for manual intervention, mark the edge failed

The chain stops at the first failed edge: a failed main -> beta sync never
attempts beta -> alpha.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from git.exc import GitCommandError

from release_flow.constants import AUTOMATION_MARKERS, MERGE_CONFLICT_LABELS, sync_message
from release_flow.exceptions import CodeHostError, MergeConflictError, ReleaseFlowError
from release_flow.pipeline import StageRole
from release_flow.run_context import ResolutionRun
from release_flow.version_file import VersionFile

logger = logging.getLogger(__name__)

AUTO_RESOLVED_SUFFIX = '(auto-resolved conflicts)'
VERSION_RESOLVED_SUFFIX = '(resolved version conflicts)'


@dataclass
class BranchSyncResult:
    """
    Outcome of one synchronization edge.

    Attributes:
        success (bool): True if the downstream branch was updated and pushed
        version (Optional[str]): Version propagated
        conflicts (List[str]): [source, target] of a failed edge
        error (Optional[str]): Error message of a failed edge
    """
    success: bool
    version: Optional[str] = None
    conflicts: List[str] = field(default_factory=list)
    error: Optional[str] = None


def is_automation_commit(message: Optional[str]) -> bool:
    "True if ``message`` was produced by the automation itself."
    message = message or ''
    return any(marker in message for marker in AUTOMATION_MARKERS)


class BranchSynchronizer:
    """
    Propagates a tagged version to the downstream branches.

    Args:
        run (ResolutionRun): Context of the current run (git executor, pipeline, parser)
        version_file (VersionFile): Version identifier file, rewritten by the version rung
        issue_creator: Code host collaborator providing ``create_issue(title, body, labels)``.
            Optional: without it the terminal rung only logs.
    """

    def __init__(self, run: ResolutionRun, version_file: VersionFile, issue_creator=None):
        self._run = run
        self._hgit = run.hgit
        self._pipeline = run.pipeline
        self._version_file = version_file
        self._issue_creator = issue_creator
        self._rungs = [
            self._plain_merge,
            self._merge_favouring_source,
            self._merge_rewriting_version_file,
        ]

    def sync(self, target_branch: str, version: str, event_name: str = 'pull_request',
             head_commit_message: Optional[str] = None) -> List[BranchSyncResult]:
        """
        Synchronize every branch downstream of ``target_branch``.

        Args:
            target_branch: Branch that was just tagged
            version: Version tag created on it (e.g., "v1.1.0")
            event_name: Triggering event, the automation guard only applies to "push"
            head_commit_message: Message of the commit that triggered a push event

        Returns:
            List[BranchSyncResult]: One result per attempted edge. Empty when
            the branch has no downstream. A failed edge is always the last
            entry.
        """
        if event_name == 'push' and is_automation_commit(head_commit_message):
            logger.info("Automation commit detected on push (%s), skipping synchronization",
                        (head_commit_message or '').strip())
            return [BranchSyncResult(success=True)]

        chain = self._pipeline.downstream_chain(target_branch)
        if not chain:
            logger.info("%s has no downstream branch, nothing to synchronize", target_branch)
            return []

        results = []
        source = target_branch
        for target in chain:
            rebase_first = self._pipeline.role(source) is StageRole.RELEASE
            result = self._sync_edge(source, target, version, rebase_first)
            results.append(result)
            if not result.success:
                skipped = chain[chain.index(target) + 1:]
                if skipped:
                    logger.warning("%s -> %s failed, skipping downstream synchronization of %s",
                                   source, target, ', '.join(skipped))
                break
            source = target
        return results

    def _sync_edge(self, source: str, target: str, version: str,
                   rebase_first: bool) -> BranchSyncResult:
        mode = 'rebase' if rebase_first else 'merge'
        logger.info("Synchronizing %s -> %s (%s)", source, target, mode)
        try:
            self._hgit.fetch(target)
            self._hgit.switch(target)
            if not (rebase_first and self._rebase(source, target)):
                self._climb_ladder(source, target, version)
            self._hgit.push_synced_branch(target)
        except (GitCommandError, ReleaseFlowError) as err:
            message = f"{source} -> {target} {mode} synchronization failed: {err}"
            logger.error(message)
            return BranchSyncResult(success=False, conflicts=[source, target], error=message)
        logger.info("%s synchronized with %s", target, source)
        return BranchSyncResult(success=True, version=version)

    def _rebase(self, source: str, target: str) -> bool:
        try:
            self._hgit.rebase(source)
        except GitCommandError as err:
            logger.warning("Rebase of %s onto %s conflicted, falling back to merge: %s",
                           target, source, err)
            self._hgit.rebase_abort()
            return False
        logger.info("%s rebased onto %s", target, source)
        return True

    def _climb_ladder(self, source: str, target: str, version: str) -> None:
        """
        Try each rung in order until one succeeds.

        Raises:
            MergeConflictError: If every rung failed (after the issue was filed)
        """
        last_error = None
        for rung in self._rungs:
            try:
                rung(source, target, version)
            except (GitCommandError, ReleaseFlowError) as err:
                logger.warning("%s -> %s: %s failed: %s",
                               source, target, rung.__name__.strip('_').replace('_', ' '), err)
                last_error = err
                continue
            return
        self._give_up(source, target, version, last_error)

    def _plain_merge(self, source, target, version):
        self._hgit.merge(source, '--no-edit', '--no-ff', message=sync_message(source, target, version))

    def _merge_favouring_source(self, source, target, version):
        self._hgit.merge_abort()
        self._hgit.merge(source, '-X', 'theirs', '--no-edit',
                         message=f"{sync_message(source, target, version)} {AUTO_RESOLVED_SUFFIX}")
        logger.info("%s -> %s conflicts resolved in favour of %s", source, target, source)

    def _merge_rewriting_version_file(self, source, target, version):
        """
        Merge without committing. When the version file is the only path
        left in conflict, resolve it by writing the propagated version.

        Raises:
            ReleaseFlowError: If other paths are still in conflict or the
                version file cannot be rewritten
        """
        path = self._version_file.relative_path
        self._hgit.merge_abort()
        try:
            self._hgit.merge(source, '--no-commit', '--no-ff')
        except GitCommandError as err:
            conflicted = self._hgit.unmerged_paths()
            if [os.path.normpath(item) for item in conflicted] != [os.path.normpath(path)]:
                raise ReleaseFlowError(
                    f"Conflicts beyond {path} remain: {', '.join(conflicted) or 'none listed'}",
                    "handleMergeConflict", err)
            logger.info("%s -> %s: only %s conflicts, rewriting it", source, target, path)
        try:
            self._version_file.write(self._run.parser.clean(version))
        except (OSError, ValueError) as err:
            raise ReleaseFlowError(f"Cannot rewrite {path}: {err}", "handleMergeConflict", err)
        self._hgit.add(path)
        self._hgit.commit(f"{sync_message(source, target, version)} {VERSION_RESOLVED_SUFFIX}")
        logger.info("%s -> %s version conflicts resolved", source, target)

    def _give_up(self, source, target, version, last_error):
        try:
            self._hgit.merge_abort()
        except GitCommandError as err:
            logger.warning("No merge to abort on %s: %s", target, err)
        self._report_conflict(source, target, version)
        raise MergeConflictError(source, target, last_error)

    def _report_conflict(self, source, target, version):
        if self._issue_creator is None:
            logger.error("Merge conflict %s -> %s needs manual intervention (no issue tracker configured)",
                         source, target)
            return
        title = f"Automatic merge conflict: {source} -> {target}"
        body = (
            "## Merge conflict report\n\n"
            f"**Source branch**: {source}\n"
            f"**Target branch**: {target}\n"
            f"**Version**: {version}\n\n"
            "## Problem\n"
            "The automatic synchronization hit conflicts it could not resolve.\n\n"
            "## Steps\n"
            f"1. Check the local changes of {target}\n"
            f"2. Merge {source} into {target} manually\n"
            "3. Resolve the version conflicts\n"
            "4. Test the result\n"
            "5. Push the changes\n"
        )
        try:
            self._issue_creator.create_issue(title, body, list(MERGE_CONFLICT_LABELS))
            logger.info("Created merge conflict issue: %s", title)
        except CodeHostError as err:
            logger.error("Failed to create merge conflict issue: %s", err)
