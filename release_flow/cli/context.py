"""
Builds the objects a command works with from the environment.
"""

import logging

from release_flow.config import Config
from release_flow.github import GitHubClient
from release_flow.hgit import HGit
from release_flow.release_manager import ReleaseManager

logger = logging.getLogger(__name__)


def build_code_host(config: Config):
    "GitHub client when a token and a repository are available, None otherwise."
    if not config.token or not config.repository:
        logger.info("No GitHub token or repository, pull request comments and issues disabled")
        return None
    return GitHubClient(config.token, config.repository, config.api_url, config.comment_title)


def build_manager(base_dir: str = '.') -> ReleaseManager:
    config = Config(base_dir)
    return ReleaseManager(config, HGit(base_dir), build_code_host(config))
