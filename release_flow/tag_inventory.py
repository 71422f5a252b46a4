#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Tag Inventory for release-flow

Reads every version tag once per run and answers the questions the engine
asks about them:

- latest version of a branch kind (release, beta, alpha...)
- most recent tag overall (input of the branch state gate)
- highest base version reached anywhere

Tags are listed newest first by creation date; "latest" therefore means
"most recently created", not "highest". The inventory is a snapshot: it is
rebuilt by the next run, never updated in place.

Usage:
    inventory = TagInventory(hgit, parser, pipeline.tracked_kinds)
    inventory.initialize()
    inventory.latest_version('beta')     # SemanticVersion(1, 1, 0, 'beta', 2)
    inventory.latest_tag_overall()       # TagRecord('v1.1.0-beta.2', ...)
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from git.exc import GitCommandError

from release_flow.constants import RELEASE_KIND, UNKNOWN_KIND
from release_flow.exceptions import TagInventoryError
from release_flow.version_parser import DEFAULT_VERSION, SemanticVersion, VersionParser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TagRecord:
    """
    One version tag and its classification.

    Attributes:
        raw_tag (str): Tag name as listed by git (e.g., "v1.1.0-beta.2")
        version (SemanticVersion): Parsed version
        branch_kind (str): "release", a known pre-release kind, or "unknown"
    """
    raw_tag: str
    version: SemanticVersion
    branch_kind: str

    def __str__(self) -> str:
        return f"{self.raw_tag} ({self.branch_kind})"


class TagInventory:
    """
    Snapshot of the repository's version tags for one resolution run.

    Args:
        hgit: Git executor providing ``list_tags(pattern)``
        parser (VersionParser): Parser of the current run
        kinds (Sequence[str]): Tracked kinds, "release" plus pre-release kinds
    """

    def __init__(self, hgit, parser: VersionParser, kinds: Sequence[str]):
        self._hgit = hgit
        self._parser = parser
        self._kinds = list(kinds)
        self._prerelease_kinds = [kind for kind in self._kinds if kind != RELEASE_KIND]
        self._records: List[TagRecord] = []
        self._latest: Dict[str, Optional[SemanticVersion]] = {}
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def records(self) -> List[TagRecord]:
        self.initialize()
        return list(self._records)

    def classify(self, version: SemanticVersion) -> str:
        """
        Classify a version by branch lineage.

        - no pre-release segment: "release"
        - pre-release starting with a tracked kind token: that kind
        - anything else: "unknown"
        """
        if not version.is_prerelease:
            return RELEASE_KIND
        if version.prerelease_kind in self._prerelease_kinds:
            return version.prerelease_kind
        return UNKNOWN_KIND

    def initialize(self) -> None:
        """
        List and classify all version tags, once.

        Repeated calls are no-ops. Zero tags is a valid state.

        Raises:
            TagInventoryError: If git cannot list the tags
        """
        if self._initialized:
            return

        logger.info("Initializing version information...")
        pattern = f"{self._parser.prefix}*"
        try:
            tags = self._hgit.list_tags(pattern)
        except GitCommandError as err:
            raise TagInventoryError(f"Failed to list tags matching {pattern}: {err}", err)

        records = []
        for tag in tags:
            version = self._parser.parse(tag)
            if version is None:
                logger.warning("Ignoring tag %s: not a semantic version", tag)
                continue
            records.append(TagRecord(tag, version, self.classify(version)))
        self._records = records

        if not records:
            logger.info("No version tag found, default versions will be used")
        else:
            logger.info("Found %d version tags", len(records))

        for kind in self._kinds:
            self._latest[kind] = next(
                (record.version for record in records if record.branch_kind == kind), None)

        self._initialized = True
        logger.info("Version overview: %s", ', '.join(
            f"{kind}={self._format(version)}" for kind, version in self.overview().items()))

    def _format(self, version: Optional[SemanticVersion]) -> str:
        return self._parser.add_prefix(version) if version is not None else 'none'

    def latest_version(self, kind: str) -> Optional[SemanticVersion]:
        "Latest version of ``kind`` in creation order, None if the kind has no tag."
        self.initialize()
        return self._latest.get(kind)

    def latest_tag(self, kind: str) -> Optional[str]:
        "Prefixed, normalized form of latest_version(kind)."
        version = self.latest_version(kind)
        return self._parser.add_prefix(version) if version is not None else None

    def latest_tag_overall(self) -> Optional[TagRecord]:
        "Most recently created version tag, whatever its kind."
        self.initialize()
        return self._records[0] if self._records else None

    def highest_base_version(self, kind: str) -> Optional[SemanticVersion]:
        """
        Highest base version among the tags of ``kind``, None if the kind has no tag.

        Unlike latest_version() this ignores creation order: a hotfix tag
        created after a higher release does not hide that release.
        """
        self.initialize()
        bases = [record.version.base for record in self._records if record.branch_kind == kind]
        return max(bases) if bases else None

    def global_highest_base_version(self) -> SemanticVersion:
        """
        Highest base version across all tracked kinds.

        Defaults to 0.0.0 when no tag exists, so a new pre-release line never
        starts below a version already reached elsewhere.
        """
        self.initialize()
        bases = [version.base for version in self._latest.values() if version is not None]
        if not bases:
            return DEFAULT_VERSION
        highest = max(bases)
        logger.info("Global highest base version: %s", self._parser.add_prefix(highest))
        return highest

    def overview(self) -> Dict[str, Optional[SemanticVersion]]:
        "Latest version per tracked kind."
        self.initialize()
        return {kind: self._latest.get(kind) for kind in self._kinds}
