#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Version Parser for release-flow

This module turns version tags into structured semantic versions and back.
It is the leaf dependency of the whole engine: the tag inventory, the branch
state validator and the upgrade strategies only ever see ``SemanticVersion``
values produced here.

Key Features:
- Prefix handling for the supported tag prefixes (version-, ver-, rel-, v),
  longest match first so that "v" never shadows "version-"
- Normalization that always re-adds the configured prefix
- Repair of the known malformed pre-release pattern ``1.0.0-0-beta.0``
- Ordering: base version first, release above any pre-release, then the
  pre-release counter
- Parse results memoized per parser instance

Tag Convention:
- Release tags: vX.Y.Z (e.g., v1.3.0)
- Pre-release tags: vX.Y.Z-<kind>.N (e.g., v1.3.0-beta.2)

Examples:
    >>> parser = VersionParser("v")
    >>> parser.parse("v1.3.0-beta.2")
    SemanticVersion(major=1, minor=3, patch=0, prerelease_kind='beta', prerelease_number=2)
    >>> parser.normalize("version-1.3.0")
    'v1.3.0'
"""

import logging
import re
from enum import Enum
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

import semantic_version

from release_flow.constants import DEFAULT_BASE_VERSION, DEFAULT_PREFIX, SUPPORTED_PREFIXES

logger = logging.getLogger(__name__)

# 1.0.0-0-beta.0 was produced by an old bump path; it means 1.0.0-beta.0.
_MALFORMED_PRERELEASE = re.compile(r'-0-([A-Za-z][0-9A-Za-z]*)\.')


class ReleaseType(Enum):
    """
    Enumeration of semantic versioning release types.

    Used to categorize version changes according to semantic versioning principles:
    - MAJOR: Incompatible API changes (X.y.z)
    - MINOR: Backward-compatible functionality additions (x.Y.z)
    - PATCH: Backward-compatible bug fixes (x.y.Z)
    """
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"


@dataclass(frozen=True)
class SemanticVersion:
    """
    Immutable semantic version with optional pre-release information.

    Attributes:
        major (int): Major version number
        minor (int): Minor version number
        patch (int): Patch version number
        prerelease_kind (Optional[str]): Pre-release token (e.g., "beta"), None for a release
        prerelease_number (Optional[int]): Pre-release counter, None for a release

    Ordering:
        Base versions (major, minor, patch) are compared first. For equal base
        versions a release sorts above any pre-release, and among pre-releases
        the higher counter sorts higher.
    """
    major: int
    minor: int
    patch: int
    prerelease_kind: Optional[str] = None
    prerelease_number: Optional[int] = None

    def __post_init__(self):
        if self.prerelease_kind is not None:
            if self.prerelease_number is None:
                object.__setattr__(self, 'prerelease_number', 0)
            elif self.prerelease_number < 0:
                raise ValueError(
                    f"Pre-release number must be >= 0, got {self.prerelease_number}")
        elif self.prerelease_number is not None:
            raise ValueError("Pre-release number given without a pre-release kind")

    @classmethod
    def from_semver(cls, version: semantic_version.Version) -> 'SemanticVersion':
        """Build from a ``semantic_version.Version``."""
        prerelease = tuple(version.prerelease or ())
        if not prerelease:
            return cls(version.major, version.minor, version.patch)
        number = 0
        if len(prerelease) > 1 and prerelease[1].isdigit():
            number = int(prerelease[1])
        return cls(version.major, version.minor, version.patch, prerelease[0], number)

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease_kind is not None:
            return f"{base}-{self.prerelease_kind}.{self.prerelease_number}"
        return base

    def _sort_key(self) -> Tuple:
        # Releases sort above pre-releases of the same base version.
        if self.prerelease_kind is None:
            return (self.major, self.minor, self.patch, 1, '', 0)
        return (self.major, self.minor, self.patch, 0,
                self.prerelease_kind, self.prerelease_number)

    def __lt__(self, other: 'SemanticVersion') -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __gt__(self, other: 'SemanticVersion') -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._sort_key() > other._sort_key()

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease_kind is not None

    @property
    def base(self) -> 'SemanticVersion':
        """Copy without the pre-release suffix."""
        return SemanticVersion(self.major, self.minor, self.patch)

    @property
    def base_string(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def to_semver(self) -> semantic_version.Version:
        return semantic_version.Version(str(self))

    def bump(self, release_type: ReleaseType) -> 'SemanticVersion':
        """
        Increment the base version.

        Args:
            release_type: MAJOR, MINOR or PATCH

        Returns:
            SemanticVersion: New release version (pre-release suffix dropped)

        Examples:
            >>> SemanticVersion(1, 3, 5).bump(ReleaseType.MINOR)  # 1.4.0
            >>> SemanticVersion(1, 3, 5).bump(ReleaseType.MAJOR)  # 2.0.0
        """
        base = semantic_version.Version(self.base_string)
        if release_type is ReleaseType.MAJOR:
            bumped = base.next_major()
        elif release_type is ReleaseType.MINOR:
            bumped = base.next_minor()
        else:
            bumped = base.next_patch()
        return SemanticVersion.from_semver(bumped)

    def next_prerelease(self, kind: str) -> 'SemanticVersion':
        """
        Increment the pre-release counter for ``kind``.

        Follows the semver "prerelease" increment:
        - same kind: counter + 1 (1.1.0-beta.2 -> 1.1.0-beta.3)
        - other kind: counter restarts on the same base (1.1.0-alpha.3 -> 1.1.0-beta.0)
        - release: next patch enters pre-release (1.1.0 -> 1.1.1-beta.0)
        """
        if self.prerelease_kind == kind:
            return replace(self, prerelease_number=self.prerelease_number + 1)
        if self.is_prerelease:
            return SemanticVersion(self.major, self.minor, self.patch, kind, 0)
        return SemanticVersion(self.major, self.minor, self.patch + 1, kind, 0)

    def with_prerelease(self, kind: str, number: int = 0) -> 'SemanticVersion':
        """Base version of self carrying ``<kind>.<number>``."""
        return SemanticVersion(self.major, self.minor, self.patch, kind, number)


DEFAULT_VERSION = SemanticVersion(0, 0, 0)


@dataclass(frozen=True)
class VersionSummary:
    """Everything known about one version string, for debug logging."""
    original: str
    normalized: str
    clean: str
    prefix: str
    has_prefix: bool
    has_current_prefix: bool
    is_valid: bool


class VersionParser:
    """
    Parses and normalizes version tags for one resolution run.

    The parser owns a small memo of parse results. It is created by the run
    context and discarded with it, so two runs never share state.

    Args:
        prefix (str): Currently configured tag prefix (e.g., "v")
        supported_prefixes (tuple): All prefixes recognised when cleaning

    Example:
        >>> parser = VersionParser("v")
        >>> parser.clean("version-1.2.3")
        '1.2.3'
        >>> parser.add_prefix("1.2.3")
        'v1.2.3'
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX, supported_prefixes=SUPPORTED_PREFIXES):
        self._prefix = prefix
        # Longest first regardless of how the caller ordered them.
        self._supported = tuple(sorted(set(supported_prefixes) | {prefix}, key=len, reverse=True))
        self._cache: Dict[str, Optional[SemanticVersion]] = {}

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def supported_prefixes(self) -> Tuple[str, ...]:
        return self._supported

    def split_prefix(self, version: str) -> Tuple[str, str]:
        """
        Split a version string into (prefix, clean version).

        The longest matching supported prefix wins. When no prefix matches,
        the returned prefix is an empty string.

        Examples:
            >>> parser.split_prefix("version-1.2.3")  # ("version-", "1.2.3")
            >>> parser.split_prefix("1.2.3")          # ("", "1.2.3")
        """
        version = version.strip()
        for supported in self._supported:
            if supported and version.startswith(supported):
                return supported, version[len(supported):]
        return '', version

    def clean(self, version: str) -> str:
        "Returns the version without any supported prefix."
        return self.split_prefix(version)[1]

    def add_prefix(self, version) -> str:
        "Returns the version carrying the configured prefix."
        return f"{self._prefix}{self.clean(str(version))}"

    def normalize(self, version) -> str:
        """Clean then re-add the configured prefix.

        Version strings are prefix-stable: a tag written as ``version-1.2.3``
        normalizes to ``v1.2.3`` when the configured prefix is ``v``.

        A parsable version takes its canonical form: the malformed pattern is
        repaired, a missing pre-release counter becomes ``.0`` and build
        metadata is dropped, so ``normalize(str(parse(t))) == normalize(t)``.
        Anything else is only repaired and re-prefixed.
        """
        parsed = self.parse(str(version))
        if parsed is None:
            return self.add_prefix(self.repair(self.clean(str(version))))
        return self.add_prefix(parsed)

    def has_current_prefix(self, version: str) -> bool:
        return self.split_prefix(version)[0] == self._prefix

    @staticmethod
    def repair(clean_version: str) -> str:
        "Collapses 1.0.0-0-beta.0 into 1.0.0-beta.0."
        return _MALFORMED_PRERELEASE.sub(r'-\1.', clean_version)

    def parse(self, version: Optional[str]) -> Optional[SemanticVersion]:
        """
        Parse a version tag.

        Args:
            version: Tag or version string, with or without prefix

        Returns:
            Optional[SemanticVersion]: Parsed version, or None when the input
            is not a usable semantic version. Callers substitute
            ``DEFAULT_VERSION`` themselves.
        """
        if not version:
            return None
        if version in self._cache:
            return self._cache[version]

        cleaned = self.repair(self.clean(version))
        try:
            parsed = SemanticVersion.from_semver(semantic_version.Version(cleaned))
        except ValueError:
            logger.debug("Not a semantic version: %r", version)
            parsed = None
        self._cache[version] = parsed
        return parsed

    def parse_or_default(self, version: Optional[str]) -> SemanticVersion:
        "Parse, falling back to 0.0.0 for missing or unparsable input."
        parsed = self.parse(version)
        return parsed if parsed is not None else DEFAULT_VERSION

    def base_version(self, version: Optional[str]) -> SemanticVersion:
        "Base version of ``version``, 0.0.0 when unparsable."
        return self.parse_or_default(version).base

    def compare_base(self, version1: Optional[str], version2: Optional[str]) -> int:
        """Compare base versions: 1 if version1 is higher, -1 if lower, 0 if equal."""
        base1 = self.base_version(version1)
        base2 = self.base_version(version2)
        if base1 > base2:
            return 1
        if base1 < base2:
            return -1
        return 0

    def is_valid(self, version: str) -> bool:
        return self.parse(version) is not None

    def default_version(self) -> str:
        "The prefixed default base version (e.g., v0.0.0)."
        return self.add_prefix(DEFAULT_BASE_VERSION)

    def summary(self, version: str) -> VersionSummary:
        found_prefix, clean = self.split_prefix(version)
        return VersionSummary(
            original=version,
            normalized=self.normalize(version),
            clean=clean,
            prefix=self._prefix,
            has_prefix=found_prefix != '',
            has_current_prefix=found_prefix == self._prefix,
            is_valid=self.is_valid(version),
        )
