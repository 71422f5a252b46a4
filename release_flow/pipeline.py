"""
Branch pipeline for release-flow.

The supported branches form an ordered promotion pipeline. The first branch
is the release branch, every following branch is a pre-release stage whose
name is also its tag kind:

    main <- beta <- alpha

Work enters at the last stage (ENTRY), is promoted stage by stage
(PROMOTION) and finally released on the first branch (RELEASE). Downstream
synchronization runs in the opposite direction.
"""

from enum import Enum
from typing import List, Optional, Sequence

from release_flow.constants import RELEASE_KIND
from release_flow.exceptions import ConfigurationError, UnsupportedBranchError


class StageRole(Enum):
    """Role of a branch in the promotion pipeline."""
    RELEASE = "release"      # main: strips the pre-release suffix
    PROMOTION = "promotion"  # beta when alpha exists: promoted from the next stage
    ENTRY = "entry"          # last stage: label driven


class BranchPipeline:
    """
    Closed, ordered set of supported branches.

    Args:
        branches: Branch names, release branch first (e.g., ["main", "beta"])

    Raises:
        ConfigurationError: If fewer than two branches or duplicates are given

    Examples:
        >>> pipeline = BranchPipeline(["main", "beta", "alpha"])
        >>> pipeline.role("beta")
        <StageRole.PROMOTION: 'promotion'>
        >>> pipeline.promotion_source("beta")  # where promotions into beta come from
        'alpha'
        >>> pipeline.downstream("main")    # where main is synchronized to
        'beta'
    """

    def __init__(self, branches: Sequence[str]):
        branches = [branch.strip() for branch in branches if branch and branch.strip()]
        if len(branches) < 2:
            raise ConfigurationError(
                f"At least a release branch and one pre-release branch are required, got: {branches}")
        if len(set(branches)) != len(branches):
            raise ConfigurationError(f"Duplicate branch in supported branches: {branches}")
        self._branches = tuple(branches)

    def __iter__(self):
        return iter(self._branches)

    def __contains__(self, branch) -> bool:
        return branch in self._branches

    def __len__(self) -> int:
        return len(self._branches)

    def __repr__(self) -> str:
        return f"BranchPipeline({list(self._branches)})"

    @property
    def branches(self) -> tuple:
        return self._branches

    @property
    def release_branch(self) -> str:
        return self._branches[0]

    @property
    def prerelease_branches(self) -> tuple:
        return self._branches[1:]

    @property
    def entry_branch(self) -> str:
        return self._branches[-1]

    @property
    def tracked_kinds(self) -> List[str]:
        "Tag kinds tracked by the inventory: release plus every pre-release kind."
        return [RELEASE_KIND] + list(self.prerelease_branches)

    def check(self, branch: str) -> str:
        "Returns branch if supported, raises UnsupportedBranchError otherwise."
        if branch not in self._branches:
            raise UnsupportedBranchError(branch, self._branches)
        return branch

    def index(self, branch: str) -> int:
        return self._branches.index(self.check(branch))

    def role(self, branch: str) -> StageRole:
        position = self.index(branch)
        if position == 0:
            return StageRole.RELEASE
        if position == len(self._branches) - 1:
            return StageRole.ENTRY
        return StageRole.PROMOTION

    def kind(self, branch: str) -> str:
        "Tag kind produced on ``branch``."
        return RELEASE_KIND if self.role(branch) is StageRole.RELEASE else branch

    def promotion_source(self, branch: str) -> Optional[str]:
        "Branch whose merges promote into ``branch`` (None for the entry stage)."
        position = self.index(branch)
        if position + 1 < len(self._branches):
            return self._branches[position + 1]
        return None

    def downstream(self, branch: str) -> Optional[str]:
        "Branch that must be synchronized after ``branch`` is tagged."
        return self.promotion_source(branch)

    def downstream_chain(self, branch: str) -> List[str]:
        "All branches synchronized, in order, after ``branch`` is tagged."
        return list(self._branches[self.index(branch) + 1:])

    def allowed_latest_kinds(self, branch: str) -> List[str]:
        """
        Kinds the most recent tag may have for a promotion into ``branch``.

        - RELEASE: only the first pre-release kind (no stage skipping)
        - PROMOTION: the next stage's kind or its own kind
        - ENTRY: a release or its own kind
        """
        role = self.role(branch)
        if role is StageRole.RELEASE:
            return [self._branches[1]]
        if role is StageRole.ENTRY:
            return [RELEASE_KIND, branch]
        return [self.promotion_source(branch), branch]
