#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Version upgrade strategies for release-flow

Computes the next version of a target branch from its base version, the
pull request labels and the source branch. One strategy exists per stage
role of the branch pipeline:

- EntryStrategy (last pre-release stage, e.g. beta): label driven
- PromotionStrategy (intermediate stage, e.g. beta when alpha exists)
- ReleaseStrategy (release branch, e.g. main): strips the pre-release suffix

Workflow of UpgradeManager.calculate_new_version():
1. Resolve the base version of the target branch (validates the source branch)
2. Build the UpgradeContext
3. Run the branch state gate
4. Execute the strategy of the target branch's role
5. Return the prefixed new version, or None when no upgrade is needed

Examples (pipeline main,beta; main at v1.0.0, beta at v1.1.0-beta.2):
    label "minor" into beta -> v1.1.0-beta.3 (same line, counter + 1)
    label "major" into beta -> v2.0.0-beta.0 (new line)
    beta into main          -> v1.1.0
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

from release_flow.constants import BUMP_LABELS, RELEASE_KIND
from release_flow.exceptions import BaseVersionError
from release_flow.pipeline import StageRole
from release_flow.run_context import ResolutionRun
from release_flow.version_parser import DEFAULT_VERSION, ReleaseType, SemanticVersion

logger = logging.getLogger(__name__)


def release_type_from_labels(labels: Sequence[str]) -> Optional[ReleaseType]:
    """
    Map pull request labels to a release type.

    ``major`` wins over ``minor`` which wins over ``patch``. Returns None when
    no recognised label is present.

    Examples:
        >>> release_type_from_labels(['bug', 'minor'])
        <ReleaseType.MINOR: 'minor'>
        >>> release_type_from_labels(['documentation']) is None
        True
    """
    for label in BUMP_LABELS:
        if label in labels:
            logger.info("Found %s label", label)
            return ReleaseType(label)
    return None


@dataclass(frozen=True)
class UpgradeContext:
    """
    Input of one strategy execution.

    Attributes:
        base_version (SemanticVersion): Resolved base version of the target branch
        target_branch (str): Branch the pull request targets
        source_branch (str): Branch the pull request comes from
        current_branch_kind (str): Kind of base_version ("release" or a pre-release kind)
        labels (Tuple[str, ...]): Pull request label names
        pr_number (Optional[int]): Pull request number, for log messages
    """
    base_version: SemanticVersion
    target_branch: str
    source_branch: str
    current_branch_kind: str
    labels: Tuple[str, ...] = field(default_factory=tuple)
    pr_number: Optional[int] = None


class UpgradeStrategy:
    """Base class of the strategies.

    Args:
        run (ResolutionRun): Context of the current run
    """
    role: StageRole = None
    description = ''

    def __init__(self, run: ResolutionRun):
        self._run = run

    def can_handle(self, context: UpgradeContext) -> bool:
        return self._run.pipeline.role(context.target_branch) is self.role

    def execute(self, context: UpgradeContext) -> Optional[SemanticVersion]:
        raise NotImplementedError


class EntryStrategy(UpgradeStrategy):
    """
    Label driven strategy of the entry pre-release stage.

    The target base version is the highest release base bumped by the label.
    If it is strictly greater than the current pre-release base version a
    new line starts at ``<target>-<kind>.0``; otherwise (equal or lower) the
    pull request belongs to the line already in pre-release and only the
    counter is incremented. Equality never starts a duplicate line.
    """
    role = StageRole.ENTRY
    description = 'Entry stage: version driven by pull request labels'

    def execute(self, context: UpgradeContext) -> Optional[SemanticVersion]:
        if not context.labels:
            logger.info("No label on pull request for %s, skipping version upgrade",
                        context.target_branch)
            return None

        release_type = release_type_from_labels(context.labels)
        if release_type is None:
            logger.info("Pull request #%s has labels but no version label: [%s], "
                        "skipping version upgrade", context.pr_number, ', '.join(context.labels))
            return None

        logger.info("Using label %s (pull request #%s)", release_type.value, context.pr_number)
        return self._calculate(context.target_branch, release_type)

    def _calculate(self, branch: str, release_type: ReleaseType) -> SemanticVersion:
        inventory = self._run.inventory
        release_base = inventory.highest_base_version(RELEASE_KIND)
        if release_base is None:
            release_base = DEFAULT_VERSION
        target_base = release_base.bump(release_type)
        logger.info("Target base version from %s (%s): %s -> %s",
                    RELEASE_KIND, release_type.value, release_base, target_base)

        current = inventory.latest_version(branch)
        current_base = current.base if current is not None else DEFAULT_VERSION

        if target_base > current_base:
            new_version = target_base.with_prerelease(branch, 0)
            logger.info("Target %s above current %s base %s, starting new line: %s",
                        target_base, branch, current_base, new_version)
            return new_version

        if current is None:
            raise BaseVersionError(
                f"Cannot increment the {branch} counter: no {branch} version exists", branch)
        new_version = current.next_prerelease(branch)
        logger.info("Target %s not above current %s base %s, incrementing counter: %s",
                    target_base, branch, current_base, new_version)
        return new_version


class PromotionStrategy(UpgradeStrategy):
    """
    Intermediate pre-release stage.

    A merge from the stage feeding this one restarts the counter on the
    incoming base version; any other merge increments the counter.
    """
    role = StageRole.PROMOTION
    description = 'Promotion stage: version driven by the source branch'

    def execute(self, context: UpgradeContext) -> Optional[SemanticVersion]:
        branch = context.target_branch
        if context.source_branch == self._run.pipeline.promotion_source(branch):
            new_version = context.base_version.with_prerelease(branch, 0)
            logger.info("Promoting %s into %s: %s -> %s",
                        context.source_branch, branch, context.base_version, new_version)
            return new_version
        new_version = context.base_version.next_prerelease(branch)
        logger.info("Incrementing %s counter: %s -> %s (source: %s)",
                    branch, context.base_version, new_version, context.source_branch)
        return new_version


class ReleaseStrategy(UpgradeStrategy):
    """
    Release branch: the merge of the qualifying pre-release branch is itself
    the signal, no label is required. The pre-release suffix is dropped.
    """
    role = StageRole.RELEASE
    description = 'Release branch: pre-release promoted to a release version'

    def execute(self, context: UpgradeContext) -> Optional[SemanticVersion]:
        new_version = context.base_version.base
        logger.info("Promoting %s to release: %s -> %s",
                    context.source_branch, context.base_version, new_version)
        return new_version


STRATEGIES = {
    StageRole.RELEASE: ReleaseStrategy,
    StageRole.PROMOTION: PromotionStrategy,
    StageRole.ENTRY: EntryStrategy,
}

_unclaimed = set(StageRole) - set(STRATEGIES)
if _unclaimed:
    raise RuntimeError(f"No upgrade strategy for roles: {_unclaimed}")


class UpgradeManager:
    """
    Resolves base versions and runs the strategy of the target branch.

    Args:
        run (ResolutionRun): Context of the current run

    Examples:
        manager = UpgradeManager(run)
        manager.calculate_new_version('beta', 'feature/login', ['minor'], pr_number=12)
        # 'v1.1.0-beta.3'
    """

    def __init__(self, run: ResolutionRun):
        self._run = run
        self._strategies = {role: strategy(run) for role, strategy in STRATEGIES.items()}

    def strategy_for(self, target_branch: str) -> UpgradeStrategy:
        return self._strategies[self._run.pipeline.role(target_branch)]

    def resolve_base_version(self, target_branch: str, source_branch: str) -> SemanticVersion:
        """
        Base version of ``target_branch`` for a merge from ``source_branch``.

        Raises:
            UnsupportedBranchError: If target_branch is not supported
            BaseVersionError: If the merge direction is not allowed or the
                required upstream version does not exist
        """
        role = self._run.pipeline.role(target_branch)
        if role is StageRole.RELEASE:
            base = self._release_base_version(target_branch, source_branch)
        elif role is StageRole.PROMOTION:
            base = self._promotion_base_version(target_branch, source_branch)
        else:
            base = self._entry_base_version(target_branch, source_branch)
        logger.info("%s base version: %s", target_branch, self._run.tag(base))
        return base

    def _release_base_version(self, target_branch, source_branch):
        qualifying = self._run.pipeline.promotion_source(target_branch)
        if source_branch != qualifying:
            raise BaseVersionError(
                f"{target_branch} only accepts merges from {qualifying}, "
                f"current source branch: {source_branch}", target_branch)
        version = self._run.inventory.latest_version(qualifying)
        if version is None:
            raise BaseVersionError(
                f"{target_branch} release failed: no {qualifying} version available. "
                f"{target_branch} only releases versions that went through {qualifying}",
                target_branch)
        return version

    def _promotion_base_version(self, target_branch, source_branch):
        inventory = self._run.inventory
        feeding = self._run.pipeline.promotion_source(target_branch)
        current = inventory.latest_version(target_branch)
        feeding_version = inventory.latest_version(feeding)

        if source_branch == feeding:
            if feeding_version is None:
                raise BaseVersionError(
                    f"Merge from {feeding} into {target_branch} failed: no {feeding} version available",
                    target_branch)
            return feeding_version

        if current is None:
            raise BaseVersionError(
                f"Merge into {target_branch} failed: no {target_branch} version exists, "
                f"new work must go through {feeding} first (source branch: {source_branch})",
                target_branch)
        if feeding_version is not None and current.base != feeding_version.base:
            raise BaseVersionError(
                f"{target_branch} base version ({current.base}) does not match "
                f"{feeding} base version ({feeding_version.base}): "
                f"the change did not go through the full {feeding} flow", target_branch)
        return current

    def _entry_base_version(self, target_branch, source_branch):
        pipeline = self._run.pipeline
        if source_branch in pipeline and source_branch != target_branch:
            raise BaseVersionError(
                f"{target_branch} does not accept merges from {source_branch}, "
                f"{target_branch} only takes new feature work", target_branch)

        inventory = self._run.inventory
        current = inventory.latest_version(target_branch)
        release = inventory.highest_base_version(RELEASE_KIND)
        fallback = release if release is not None else inventory.global_highest_base_version()

        if current is None or (release is not None and current.base == release):
            return fallback
        return current

    def build_context(self, base_version: SemanticVersion, target_branch: str, source_branch: str,
                      labels: Sequence[str] = (), pr_number: Optional[int] = None) -> UpgradeContext:
        kind = self._run.inventory.classify(base_version)
        return UpgradeContext(
            base_version=base_version,
            target_branch=target_branch,
            source_branch=source_branch,
            current_branch_kind=kind,
            labels=tuple(labels),
            pr_number=pr_number,
        )

    def upgrade(self, context: UpgradeContext) -> Optional[SemanticVersion]:
        """
        Run the branch state gate, then the strategy of the target branch.

        The gate always runs first: a rejected promotion never reaches the
        strategy.

        Raises:
            BranchStateError: If the gate rejects the promotion
        """
        strategy = self.strategy_for(context.target_branch)
        logger.info("Using strategy: %s", strategy.description)
        self._run.validator.validate(context.target_branch, self._run.inventory.latest_tag_overall())
        return strategy.execute(context)

    def calculate_new_version(self, target_branch: str, source_branch: str,
                              labels: Sequence[str] = (),
                              pr_number: Optional[int] = None,
                              base_version: Optional[SemanticVersion] = None) -> Optional[str]:
        """
        Compute the prefixed new version of ``target_branch``.

        ``base_version`` is resolved when not given; callers that already
        resolved it pass it through.

        Returns:
            Optional[str]: New version tag (e.g., "v1.1.0-beta.3"), or None
            when no upgrade is needed (no version label on the entry stage)
        """
        if base_version is None:
            base_version = self.resolve_base_version(target_branch, source_branch)
        context = self.build_context(base_version, target_branch, source_branch, labels, pr_number)
        new_version = self.upgrade(context)
        if new_version is None:
            logger.info("No version upgrade needed")
            return None
        result = self._run.tag(new_version)
        logger.info("New version: %s", result)
        return result
