"""
Shared pytest fixtures for release_flow tests.
"""

import subprocess

import pytest
from unittest.mock import Mock

from release_flow.pipeline import BranchPipeline
from release_flow.run_context import ResolutionRun


@pytest.fixture
def mock_hgit():
    """
    Mock HGit whose tag listing is driven by ``mock_hgit.tags``.

    Tags are given newest first, as ``git tag -l --sort=-creatordate`` lists
    them.
    """
    hgit = Mock()
    hgit.tags = []
    hgit.unmerged_paths.return_value = []
    hgit.list_tags.side_effect = lambda pattern, sort='-creatordate': list(hgit.tags)
    return hgit


@pytest.fixture
def make_run(mock_hgit):
    """
    Factory building a ResolutionRun over ``mock_hgit``.

    Usage:
        run = make_run(['v1.1.0-beta.2', 'v1.0.0'])
        run = make_run([], branches=['main', 'beta', 'alpha'], prefix='rel-')
    """
    def _make_run(tags, branches=('main', 'beta'), prefix='v'):
        mock_hgit.tags = list(tags)
        return ResolutionRun(mock_hgit, BranchPipeline(branches), prefix)
    return _make_run


def git(cwd, *args):
    "Runs a git command in ``cwd`` and returns its output."
    return subprocess.run(['git', *args], cwd=cwd, check=True, capture_output=True,
                          text=True).stdout.strip()


@pytest.fixture
def run_git():
    "The git helper, for tests preparing real repositories."
    return git


@pytest.fixture
def git_repo(tmp_path):
    """
    Real git repository with a bare ``origin`` and a first commit on main.

    Returns:
        Path: Working tree of the clone
    """
    origin = tmp_path / 'origin.git'
    work = tmp_path / 'work'
    git(tmp_path, 'init', '--bare', '-b', 'main', str(origin))
    git(tmp_path, 'init', '-b', 'main', str(work))
    git(work, 'config', 'user.name', 'Test')
    git(work, 'config', 'user.email', 'test@example.com')
    git(work, 'remote', 'add', 'origin', str(origin))
    (work / 'package.json').write_text('{\n  "name": "app",\n  "version": "1.0.0"\n}\n')
    git(work, 'add', '.')
    git(work, 'commit', '-m', 'initial')
    git(work, 'push', 'origin', 'main')
    return work
