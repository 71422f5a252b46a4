"""
Tests for PullRequestEvent.
"""

import json

import pytest

from release_flow.exceptions import ReleaseFlowError, UnsupportedEventError
from release_flow.pull_request import PullRequestEvent


def payload(merged=False, state='open', labels=('minor',)):
    return {
        'action': 'closed' if merged else 'opened',
        'pull_request': {
            'number': 42,
            'title': 'Add login',
            'state': state,
            'merged': merged,
            'head': {'ref': 'feature/login'},
            'base': {'ref': 'beta'},
            'labels': [{'name': name} for name in labels],
        },
    }


class TestPullRequestEvent:

    def test_open_pull_request_is_preview(self):
        event = PullRequestEvent.from_payload('pull_request', payload())
        assert event.number == 42
        assert event.source_branch == 'feature/login'
        assert event.target_branch == 'beta'
        assert event.labels == ('minor',)
        assert event.is_dry_run
        assert event.describe() == 'feature/login -> beta (preview)'

    def test_merged_pull_request(self):
        event = PullRequestEvent.from_payload('pull_request', payload(merged=True, state='closed'))
        assert not event.is_dry_run
        assert event.mode == 'merge'

    def test_closed_without_merge_is_preview(self):
        event = PullRequestEvent.from_payload('pull_request', payload(merged=False, state='closed'))
        assert event.is_dry_run

    def test_other_events_rejected(self):
        with pytest.raises(UnsupportedEventError) as excinfo:
            PullRequestEvent.from_payload('push', {})
        assert excinfo.value.context == 'validateEvent'

    def test_missing_pull_request(self):
        with pytest.raises(ReleaseFlowError):
            PullRequestEvent.from_payload('pull_request', {})

    def test_from_file(self, tmp_path):
        event_path = tmp_path / 'event.json'
        event_path.write_text(json.dumps(payload(labels=())))
        event = PullRequestEvent.from_file('pull_request', str(event_path))
        assert event.labels == ()

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(ReleaseFlowError):
            PullRequestEvent.from_file('pull_request', str(tmp_path / 'missing.json'))
