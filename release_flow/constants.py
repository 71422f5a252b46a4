"""
Constants shared by the release-flow engine.
"""

# Longest first, so that "v" never shadows "version-".
SUPPORTED_PREFIXES = ('version-', 'ver-', 'rel-', 'v')
DEFAULT_PREFIX = 'v'

DEFAULT_BRANCHES = ('main', 'beta')

DEFAULT_BASE_VERSION = '0.0.0'

RELEASE_KIND = 'release'
UNKNOWN_KIND = 'unknown'

# Recognised pull request labels, highest priority first.
BUMP_LABELS = ('major', 'minor', 'patch')

DEFAULT_GIT_USER_NAME = 'GitHub Action'
DEFAULT_GIT_USER_EMAIL = 'action@github.com'
DEFAULT_COMMENT_TITLE = 'Version management'
DEFAULT_VERSION_FILE = 'package.json'

CONFIG_DIR = '.release-flow'
CONFIG_FILE = 'config'
CONFIG_SECTION = 'release-flow'

# Markers identifying commits created by the automation itself.
SKIP_CI_MARKER = '[skip ci]'
AUTOMATION_MARKERS = (SKIP_CI_MARKER, 'chore: sync', 'chore: bump version')

RETRY_MAX_ATTEMPTS = 3
RETRY_DELAY_MIN = 1.0
RETRY_DELAY_MAX = 3.0

MERGE_CONFLICT_LABELS = ('merge-conflict', 'automated', 'priority-high')

GITHUB_API_URL = 'https://api.github.com'
REQUEST_TIMEOUT = 30
COMMENTS_PER_PAGE = 100


def version_bump_message(version: str, branch: str) -> str:
    "Commit message of the version bump commit."
    return f"chore: bump version to {version} for {branch}"


def sync_message(source: str, target: str, version: str) -> str:
    "Commit message of a downstream synchronization commit."
    return f"chore: sync {source} {version} to {target} {SKIP_CI_MARKER}"
