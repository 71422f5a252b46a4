"""
Branch state gate for release-flow.

Decides, from the most recent version tag, whether a target branch may
accept a promotion right now. It runs before any upgrade strategy and
prevents skipping stages (e.g. releasing on main while the latest tag is
already a release, without an intervening beta).
"""

import logging
from typing import Optional

from release_flow.exceptions import BranchStateError
from release_flow.pipeline import BranchPipeline, StageRole
from release_flow.tag_inventory import TagRecord

logger = logging.getLogger(__name__)

_ROLE_MESSAGES = {
    StageRole.RELEASE: "{branch} can only be released after {allowed} testing is complete",
    StageRole.PROMOTION: "{branch} can only continue after a {allowed} version",
    StageRole.ENTRY: "{branch} can only continue after a {allowed} version",
}


class BranchStateValidator:
    """Branch state gate.

    Args:
        pipeline (BranchPipeline): Supported branches and their roles
    """

    def __init__(self, pipeline: BranchPipeline):
        self._pipeline = pipeline

    def validate(self, target_branch: str, latest_tag: Optional[TagRecord]) -> None:
        """
        Check that ``target_branch`` may accept a promotion.

        Args:
            target_branch: Branch the pull request targets
            latest_tag: Most recent tag overall, None when the repository has no tag

        Raises:
            BranchStateError: If the kind of the latest tag is not allowed
                before a promotion into ``target_branch``. The message names
                the offending tag and its kind.

        Examples:
            # main,beta pipeline, latest tag v1.0.0 (release)
            validator.validate('beta', latest)   # ok
            validator.validate('main', latest)   # BranchStateError
        """
        if latest_tag is None:
            logger.info("No version tag yet, %s may start", target_branch)
            return

        logger.info("Latest version tag: %s (kind: %s)", latest_tag.raw_tag, latest_tag.branch_kind)
        allowed = self._pipeline.allowed_latest_kinds(target_branch)
        if latest_tag.branch_kind not in allowed:
            rule = _ROLE_MESSAGES[self._pipeline.role(target_branch)].format(
                branch=target_branch, allowed=' or '.join(allowed))
            message = f"{rule}, latest version: {latest_tag.raw_tag} ({latest_tag.branch_kind})"
            logger.error(message)
            raise BranchStateError(message, target_branch, latest_tag.raw_tag, latest_tag.branch_kind)

        logger.info("%s accepts a promotion in the current state (%s)",
                    target_branch, latest_tag.branch_kind)
