"Provides the HGit class"

import logging
from typing import List, Optional

import git
from git.exc import GitCommandError

from release_flow.decorators import retry_with_backoff

logger = logging.getLogger(__name__)


def _refresh_from_origin(hgit, branch, tag):
    """
    Before retrying a push: fetch the remote branch and rebase onto it.

    The rebase rewrites the version commit, so the tag is moved onto the
    new HEAD.
    """
    hgit.fetch(branch)
    hgit.rebase(f"origin/{branch}")
    hgit.move_tag(tag)


class HGit:
    """Manages the git operations on the repo.

    Every primitive goes through ``run`` and raises ``GitCommandError`` on
    failure. Nothing is swallowed here: the callers decide which failures
    open a fallback path (merge conflict escalation, rebase fallback).
    """
    def __init__(self, base_dir='.', remote='origin'):
        self.__base_dir = base_dir
        self.__remote = remote
        self.__git_repo: git.Repo = git.Repo(base_dir, search_parent_directories=True)

    def __str__(self):
        return f'[Git] {self.__git_repo.working_tree_dir} ({self.branch})'

    @property
    def remote(self):
        "Name of the remote branches and tags are pushed to"
        return self.__remote

    @property
    def working_dir(self):
        "Returns the root of the working tree"
        return self.__git_repo.working_tree_dir

    @property
    def branch(self):
        "Returns the active branch"
        return str(self.__git_repo.active_branch)

    def run(self, *args) -> str:
        """
        Execute ``git <args>`` and return its stripped standard output.

        Args:
            *args: git arguments (e.g., "tag", "-l", "v*")

        Returns:
            str: Command output

        Raises:
            GitCommandError: If git exits with a non-zero status

        Examples:
            hgit.run("rev-parse", "HEAD")
            hgit.run("merge", "main", "--no-edit", "--no-ff", "-m", "sync")
        """
        logger.debug("git %s", ' '.join(args))
        return self.__git_repo.git.execute(['git', *args]).strip()

    def configure_user(self, name: str, email: str) -> None:
        "Sets the git actor identity used for commits"
        logger.info("Configuring git user %s <%s>", name, email)
        self.run('config', 'user.name', name)
        self.run('config', 'user.email', email)

    def repos_is_clean(self):
        "Returns True if the git repository is clean, False otherwise."
        return not self.__git_repo.is_dirty(untracked_files=True)

    def head_commit_message(self) -> str:
        "Returns the message of the HEAD commit"
        return self.__git_repo.head.commit.message

    def rev_parse(self, ref: str = 'HEAD') -> str:
        "Proxy to git rev-parse"
        return self.run('rev-parse', ref)

    def list_tags(self, pattern: str, sort: str = '-creatordate') -> List[str]:
        """
        List tags matching ``pattern``, newest first by default.

        Args:
            pattern: Glob pattern (e.g., "v*")
            sort: git sort key (default: "-creatordate")

        Returns:
            List[str]: Tag names, empty list when none match

        Raises:
            GitCommandError: If listing fails
        """
        output = self.run('tag', '-l', pattern, f'--sort={sort}')
        return [tag.strip() for tag in output.split('\n') if tag.strip()]

    def fetch(self, branch: Optional[str] = None) -> None:
        "Fetch one branch (or everything) from the remote"
        if branch:
            self.run('fetch', self.__remote, branch)
        else:
            self.run('fetch', self.__remote, '--tags')

    def switch(self, branch: str) -> None:
        "Proxy to git switch"
        self.run('switch', branch)

    def add(self, *paths) -> None:
        "Proxy to git add"
        self.run('add', *(paths or ('.',)))

    def commit(self, message: str) -> None:
        "Proxy to git commit -m"
        self.run('commit', '-m', message)

    def merge(self, branch: str, *options, message: Optional[str] = None) -> None:
        """
        Merge ``branch`` into the current branch.

        Args:
            branch: Branch to merge
            *options: Extra git merge options (e.g., "--no-ff", "-X", "theirs")
            message: Explicit commit message (adds -m)
        """
        args = ['merge', branch, *options]
        if message is not None:
            args += ['-m', message]
        self.run(*args)

    def unmerged_paths(self) -> List[str]:
        "Paths left in conflict by the merge in progress, relative to the repository root"
        output = self.run('diff', '--name-only', '--diff-filter=U')
        return [path.strip() for path in output.split('\n') if path.strip()]

    def merge_abort(self) -> None:
        "Proxy to git merge --abort"
        self.run('merge', '--abort')

    def rebase(self, onto: str) -> None:
        "Proxy to git rebase"
        self.run('rebase', onto)

    def rebase_abort(self) -> None:
        "Proxy to git rebase --abort"
        self.run('rebase', '--abort')

    def create_tag(self, tag_name: str) -> None:
        "Creates a lightweight tag on HEAD"
        self.run('tag', tag_name)
        logger.info("Created tag %s", tag_name)

    def move_tag(self, tag_name: str, ref: str = 'HEAD') -> None:
        "Points an existing local tag at ref"
        self.run('tag', '-f', tag_name, ref)
        logger.info("Moved tag %s to %s", tag_name, ref)

    def push_branch(self, branch: str, lease: bool = True) -> None:
        """
        Push ``branch`` to the remote.

        With ``lease`` (the default) the push uses --force-with-lease: it is
        refused if the remote branch moved since we last fetched it.
        """
        if lease:
            self.run('push', self.__remote, branch, '--force-with-lease')
        else:
            self.run('push', self.__remote, branch)

    def push_tag(self, tag_name: str) -> None:
        "Push one tag to the remote"
        self.run('push', self.__remote, tag_name)

    @retry_with_backoff(_refresh_from_origin)
    def push_version(self, branch: str, tag_name: str) -> None:
        """
        Push the version commit and its tag, retrying on concurrent updates.

        Before each retry the remote branch is fetched and the local branch
        rebased onto it. Raises the last GitCommandError when every attempt
        failed.
        """
        self.push_branch(branch, lease=False)
        self.push_tag(tag_name)
        logger.info("Pushed %s and %s", branch, tag_name)

    @retry_with_backoff()
    def push_synced_branch(self, branch: str) -> None:
        "Push a synchronized downstream branch, retrying on concurrent updates."
        self.push_branch(branch)

    def delete_tag(self, tag_name: str) -> None:
        """
        Delete a tag locally and on the remote.

        A missing local tag is only logged; failing to delete the remote tag
        raises.
        """
        try:
            self.run('tag', '-d', tag_name)
            logger.info("Deleted local tag %s", tag_name)
        except GitCommandError as err:
            logger.warning("Local tag %s could not be deleted: %s", tag_name, err)
        self.run('push', self.__remote, f':refs/tags/{tag_name}')
        logger.info("Deleted remote tag %s", tag_name)
