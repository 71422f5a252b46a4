"""
ReleaseManager module for release-flow

Drives one run of the version automation for a pull request event:

- preview mode (pull request open): compute and publish the next version
- execution mode (pull request merged): write the version file, commit,
  tag, push, then synchronize the downstream branches

It is also the error boundary of the run: failures are logged, reported on
the pull request and re-raised.
"""

import logging
from typing import List, Optional

from git.exc import GitCommandError

from release_flow import utils
from release_flow.branch_sync import BranchSynchronizer, BranchSyncResult
from release_flow.config import Config
from release_flow.constants import version_bump_message
from release_flow.exceptions import CodeHostError, ReleaseFlowError, VersionUpdateError
from release_flow.pull_request import PullRequestEvent
from release_flow.run_context import ResolutionRun
from release_flow.upgrade_strategies import UpgradeManager
from release_flow.version_file import VersionFile

logger = logging.getLogger(__name__)


def error_report(error: BaseException) -> str:
    "Text reported for ``error``: ``context: message`` for engine errors."
    if isinstance(error, ReleaseFlowError):
        return f"{error.context}: {error.message}"
    return str(error)


class ReleaseManager:
    """
    Orchestrates version resolution, tagging and synchronization.

    Args:
        config (Config): Settings of the run
        hgit: Git executor (HGit)
        code_host: Optional code host client (GitHubClient) used for error
            comments and merge conflict issues

    Examples:
        manager = ReleaseManager(Config('.'), HGit('.'), GitHubClient(token, 'acme/app'))
        result = manager.run('pull_request', payload)
        # {'base_version': 'v1.0.0', 'new_version': 'v1.1.0-beta.0',
        #  'preview': True, 'sync_results': []}
    """

    def __init__(self, config: Config, hgit, code_host=None):
        self._config = config
        self._hgit = hgit
        self._code_host = code_host
        self._version_file = VersionFile(config.version_file, config.base_dir)

    @property
    def version_file(self) -> VersionFile:
        return self._version_file

    def new_run(self) -> ResolutionRun:
        "Fresh context: nothing is shared between two runs."
        return ResolutionRun(self._hgit, self._config.pipeline, self._config.version_prefix)

    def resolve(self, event: PullRequestEvent, run: Optional[ResolutionRun] = None) -> dict:
        """
        Compute the base version and the next version for ``event``.

        Returns:
            dict: ``base_version`` and ``new_version`` (prefixed, None when
            no upgrade is needed)

        Raises:
            UnsupportedBranchError: If the target branch is not supported
            BaseVersionError, BranchStateError: If the promotion is rejected
        """
        run = run or self.new_run()
        run.pipeline.check(event.target_branch)
        logger.info("Merge direction: %s (pull request #%s)", event.describe(), event.number)

        upgrade_manager = UpgradeManager(run)
        base_version = upgrade_manager.resolve_base_version(event.target_branch, event.source_branch)
        new_version = upgrade_manager.calculate_new_version(
            event.target_branch, event.source_branch, event.labels, event.number,
            base_version=base_version)

        if new_version:
            logger.info("%s version: %s", 'Preview' if event.is_dry_run else 'New', new_version)
        else:
            logger.warning("No new version for %s, base version: %s",
                           event.describe(), run.tag(base_version))
        return {'base_version': run.tag(base_version), 'new_version': new_version}

    def update_version_and_tag(self, run: ResolutionRun, new_version: str, target_branch: str) -> None:
        """
        Record ``new_version`` on ``target_branch``: version file, commit, tag and push.

        Raises:
            VersionUpdateError: If a git operation failed, including a push
                still rejected after every retry
        """
        clean_version = run.parser.clean(new_version)
        try:
            self._hgit.switch(target_branch)
            self._version_file.write(clean_version)
            self._hgit.add(self._version_file.relative_path)
            self._hgit.commit(version_bump_message(clean_version, target_branch))
            self._hgit.create_tag(new_version)
            self._hgit.push_version(target_branch, new_version)
        except (GitCommandError, OSError) as err:
            raise VersionUpdateError(f"Version update to {new_version} on {target_branch} failed: {err}", err)
        logger.info("Version %s recorded on %s", new_version, target_branch)

    def sync(self, target_branch: str, version: str, event_name: str = 'pull_request',
             head_commit_message: Optional[str] = None,
             run: Optional[ResolutionRun] = None) -> List[BranchSyncResult]:
        "Synchronize the branches downstream of ``target_branch``."
        if run is None:
            run = self.new_run()
            run.pipeline.check(target_branch)
        synchronizer = BranchSynchronizer(run, self._version_file, self._code_host)
        results = synchronizer.sync(target_branch, version, event_name, head_commit_message)
        failed = [result for result in results if not result.success]
        if failed:
            logger.warning("Partial synchronization failure: %s",
                           '; '.join(result.error or '' for result in failed))
        return results

    def process(self, event: PullRequestEvent) -> dict:
        """
        Full run for a parsed pull request event, without the error boundary.

        Returns:
            dict: ``base_version``, ``new_version``, ``preview`` and
            ``sync_results``
        """
        run = self.new_run()
        result = self.resolve(event, run)
        self._hgit.configure_user(self._config.git_user_name, self._config.git_user_email)
        result['preview'] = event.is_dry_run
        result['sync_results'] = []
        new_version = result['new_version']

        if event.is_dry_run:
            logger.info("Preview mode, nothing is written")
            utils.set_output('preview-version', new_version or '')
            utils.set_output('is-preview', 'true')
            return result

        logger.info("Execution mode")
        if new_version:
            self.update_version_and_tag(run, new_version, event.target_branch)
            result['sync_results'] = self.sync(event.target_branch, new_version, run=run)
            logger.info("Version update done: %s", new_version)
        else:
            logger.info("No version upgrade needed for %s, current version: %s",
                        event.describe(), result['base_version'])
        utils.set_output('next-version', new_version or '')
        utils.set_output('is-preview', 'false')
        return result

    def run(self, event_name: str, payload: dict) -> dict:
        """
        Error boundary of a run.

        Parses the event, processes it, and on failure logs the error,
        comments it on the pull request when there is one, then re-raises.
        """
        try:
            event = PullRequestEvent.from_payload(event_name, payload)
            return self.process(event)
        except Exception as err:
            report = error_report(err)
            if isinstance(err, ReleaseFlowError):
                logger.error("Run failed: %s (%s)", err.message, err.context)
            else:
                logger.exception("Unexpected error: %s", err)
            self.report_error(report, (payload.get('pull_request') or {}).get('number'))
            raise

    def report_error(self, report: str, pr_number: Optional[int]) -> None:
        "Comment ``report`` on the pull request; failing to comment is only a warning."
        if not pr_number or self._code_host is None:
            return
        try:
            self._code_host.create_error_comment(pr_number, report)
            logger.info("Error reported on pull request #%s", pr_number)
        except CodeHostError as err:
            logger.warning("Failed to comment the error on pull request #%s: %s", pr_number, err)
