"""
Tests for ReleaseManager - preview mode, execution mode and error boundary.
"""

import pytest
from unittest.mock import Mock, patch
from git.exc import GitCommandError

from release_flow.branch_sync import BranchSyncResult
from release_flow.config import Config
from release_flow.exceptions import BranchStateError, UnsupportedBranchError, UnsupportedEventError
from release_flow.release_manager import ReleaseManager, error_report
from release_flow.upgrade_strategies import UpgradeManager


def payload(target='beta', source='feature/login', labels=('minor',), merged=False, number=42):
    return {
        'pull_request': {
            'number': number,
            'state': 'closed' if merged else 'open',
            'merged': merged,
            'head': {'ref': source},
            'base': {'ref': target},
            'labels': [{'name': name} for name in labels],
        },
    }


@pytest.fixture
def outputs(tmp_path, monkeypatch):
    "Collects the step outputs written to GITHUB_OUTPUT."
    output_file = tmp_path / 'github_output'
    monkeypatch.setenv('GITHUB_OUTPUT', str(output_file))

    def _outputs():
        if not output_file.exists():
            return {}
        return dict(line.split('=', 1) for line in output_file.read_text().splitlines())
    return _outputs


@pytest.fixture
def manager(tmp_path, mock_hgit):
    """ReleaseManager over a mocked HGit and code host, main,beta pipeline."""
    config = Config(str(tmp_path), environ={})
    code_host = Mock()
    mock_hgit.tags = ['v1.1.0-beta.2', 'v1.0.0']
    return ReleaseManager(config, mock_hgit, code_host), mock_hgit, code_host


class TestPreviewMode:

    def test_preview_computes_without_writing(self, manager, outputs):
        release_manager, hgit, code_host = manager
        result = release_manager.run('pull_request', payload(labels=['major']))
        assert result['preview']
        assert result['base_version'] == 'v1.1.0-beta.2'
        assert result['new_version'] == 'v2.0.0-beta.0'
        assert outputs() == {'preview-version': 'v2.0.0-beta.0', 'is-preview': 'true'}
        hgit.configure_user.assert_called_once_with('GitHub Action', 'action@github.com')
        hgit.commit.assert_not_called()
        hgit.create_tag.assert_not_called()

    def test_preview_without_label(self, manager, outputs):
        release_manager, hgit, code_host = manager
        result = release_manager.run('pull_request', payload(labels=[]))
        assert result['new_version'] is None
        assert outputs()['preview-version'] == ''

    def test_base_version_resolved_once(self, manager, outputs):
        release_manager, hgit, code_host = manager
        with patch.object(UpgradeManager, 'resolve_base_version', autospec=True,
                          side_effect=UpgradeManager.resolve_base_version) as resolve_base:
            result = release_manager.run('pull_request', payload())
        assert resolve_base.call_count == 1
        assert result['base_version'] == 'v1.1.0-beta.2'
        assert result['new_version'] == 'v1.1.0-beta.3'

    def test_each_run_rereads_tags(self, manager, outputs):
        release_manager, hgit, code_host = manager
        release_manager.run('pull_request', payload())
        hgit.tags = ['v2.0.0-beta.0', 'v1.1.0-beta.2', 'v1.0.0']
        result = release_manager.run('pull_request', payload())
        assert result['new_version'] == 'v2.0.0-beta.1'
        assert hgit.list_tags.call_count == 2


class TestExecutionMode:

    def test_merge_into_beta_records_version(self, manager, outputs, tmp_path):
        release_manager, hgit, code_host = manager
        result = release_manager.run('pull_request', payload(merged=True))

        assert result['new_version'] == 'v1.1.0-beta.3'
        hgit.switch.assert_called_once_with('beta')
        hgit.add.assert_called_once_with('package.json')
        hgit.commit.assert_called_once_with('chore: bump version to 1.1.0-beta.3 for beta')
        hgit.create_tag.assert_called_once_with('v1.1.0-beta.3')
        hgit.push_version.assert_called_once_with('beta', 'v1.1.0-beta.3')
        assert '"version": "1.1.0-beta.3"' in (tmp_path / 'package.json').read_text()
        # beta is the entry stage: nothing downstream
        assert result['sync_results'] == []
        assert outputs() == {'next-version': 'v1.1.0-beta.3', 'is-preview': 'false'}

    def test_release_synchronizes_downstream(self, manager, outputs):
        release_manager, hgit, code_host = manager
        result = release_manager.run('pull_request', payload(target='main', source='beta',
                                                             labels=[], merged=True))
        assert result['new_version'] == 'v1.1.0'
        hgit.push_version.assert_called_once_with('main', 'v1.1.0')
        assert [sync.success for sync in result['sync_results']] == [True]
        assert hgit.switch.call_args_list[-1].args == ('beta',)

    def test_partial_sync_failure_does_not_fail_run(self, manager, outputs):
        release_manager, hgit, code_host = manager
        hgit.push_synced_branch.side_effect = GitCommandError('git push', 1)
        result = release_manager.run('pull_request', payload(target='main', source='beta',
                                                             labels=[], merged=True))
        assert [sync.success for sync in result['sync_results']] == [False]
        assert outputs()['next-version'] == 'v1.1.0'

    def test_no_label_on_merge(self, manager, outputs):
        release_manager, hgit, code_host = manager
        result = release_manager.run('pull_request', payload(labels=[], merged=True))
        assert result['new_version'] is None
        hgit.commit.assert_not_called()
        assert outputs() == {'next-version': '', 'is-preview': 'false'}

    def test_push_exhaustion_is_fatal(self, manager, outputs):
        release_manager, hgit, code_host = manager
        hgit.push_version.side_effect = GitCommandError('git push', 1)
        with pytest.raises(Exception) as excinfo:
            release_manager.run('pull_request', payload(merged=True))
        assert excinfo.value.context == 'updateVersionAndCreateTag'
        message = code_host.create_error_comment.call_args.args[1]
        assert message.startswith('updateVersionAndCreateTag: ')


class TestErrorBoundary:

    def test_branch_state_error_commented_and_reraised(self, manager, outputs):
        release_manager, hgit, code_host = manager
        hgit.tags = ['v1.0.0', 'v1.0.0-beta.1']
        with pytest.raises(BranchStateError):
            release_manager.run('pull_request', payload(target='main', source='beta', labels=[]))
        number, message = code_host.create_error_comment.call_args.args
        assert number == 42
        assert message.startswith('validateBranchVersionState: ')
        assert 'v1.0.0' in message

    def test_unsupported_branch(self, manager):
        release_manager, hgit, code_host = manager
        with pytest.raises(UnsupportedBranchError):
            release_manager.run('pull_request', payload(target='develop'))
        assert code_host.create_error_comment.call_args.args[1].startswith('validateBranch: ')
        hgit.configure_user.assert_not_called()

    def test_rejected_promotion_never_configures_git(self, manager, outputs):
        release_manager, hgit, code_host = manager
        hgit.tags = ['v1.0.0', 'v1.0.0-beta.1']
        with pytest.raises(BranchStateError):
            release_manager.run('pull_request', payload(target='main', source='beta', labels=[]))
        hgit.configure_user.assert_not_called()

    def test_standalone_sync_rejects_unsupported_branch(self, manager):
        release_manager, hgit, code_host = manager
        with pytest.raises(UnsupportedBranchError):
            release_manager.sync('develop', 'v1.1.0', event_name='push',
                                 head_commit_message='chore: bump version to 1.1.0 for main')
        hgit.fetch.assert_not_called()

    def test_unsupported_event_without_pull_request(self, manager):
        release_manager, hgit, code_host = manager
        with pytest.raises(UnsupportedEventError):
            release_manager.run('push', {'ref': 'refs/heads/main'})
        code_host.create_error_comment.assert_not_called()

    def test_comment_failure_is_only_a_warning(self, manager):
        release_manager, hgit, code_host = manager
        from release_flow.exceptions import CodeHostError
        code_host.create_error_comment.side_effect = CodeHostError('GitHub POST failed')
        with pytest.raises(UnsupportedBranchError):
            release_manager.run('pull_request', payload(target='develop'))

    def test_unknown_error_reported_as_string(self, manager):
        release_manager, hgit, code_host = manager
        hgit.configure_user.side_effect = RuntimeError('disk full')
        with pytest.raises(RuntimeError):
            release_manager.run('pull_request', payload())
        assert code_host.create_error_comment.call_args.args == (42, 'disk full')

    def test_without_code_host(self, tmp_path, mock_hgit):
        release_manager = ReleaseManager(Config(str(tmp_path), environ={}), mock_hgit)
        with pytest.raises(UnsupportedBranchError):
            release_manager.run('pull_request', payload(target='develop'))

    def test_error_report(self):
        assert error_report(UnsupportedBranchError('develop', ['main', 'beta'])).startswith(
            'validateBranch: Unsupported branch: develop')
        assert error_report(ValueError('boom')) == 'boom'
