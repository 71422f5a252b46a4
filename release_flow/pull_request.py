"""
Pull request metadata, read from the event payload of the workflow run.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

from release_flow import utils
from release_flow.exceptions import ReleaseFlowError, UnsupportedEventError

logger = logging.getLogger(__name__)

PULL_REQUEST_EVENT = 'pull_request'


@dataclass(frozen=True)
class PullRequestEvent:
    """
    What the engine needs to know about the triggering pull request.

    Attributes:
        number (int): Pull request number
        source_branch (str): head.ref
        target_branch (str): base.ref
        labels (Tuple[str, ...]): Label names
        merged (bool): True once the pull request is closed and merged
        title (str): Pull request title, for logs
        head_commit_message (Optional[str]): Head commit message of push events
    """
    number: Optional[int]
    source_branch: str
    target_branch: str
    labels: Tuple[str, ...] = field(default_factory=tuple)
    merged: bool = False
    title: str = ''
    head_commit_message: Optional[str] = None

    @property
    def is_dry_run(self) -> bool:
        "Preview mode: the pull request is not merged yet."
        return not self.merged

    @property
    def mode(self) -> str:
        return 'preview' if self.is_dry_run else 'merge'

    @classmethod
    def from_payload(cls, event_name: str, payload: dict) -> 'PullRequestEvent':
        """
        Build the event from a webhook payload.

        Raises:
            UnsupportedEventError: If ``event_name`` is not "pull_request"
            ReleaseFlowError: If the payload has no pull request
        """
        if event_name != PULL_REQUEST_EVENT:
            raise UnsupportedEventError(event_name)
        pull_request = payload.get('pull_request')
        if not pull_request:
            raise ReleaseFlowError("Pull request payload is missing", "extractPRInfo")
        return cls(
            number=pull_request.get('number'),
            source_branch=pull_request['head']['ref'],
            target_branch=pull_request['base']['ref'],
            labels=tuple(label['name'] for label in pull_request.get('labels') or []),
            merged=pull_request.get('state') == 'closed' and pull_request.get('merged') is True,
            title=pull_request.get('title') or '',
            head_commit_message=(payload.get('head_commit') or {}).get('message'),
        )

    @classmethod
    def from_file(cls, event_name: str, event_path: str) -> 'PullRequestEvent':
        "Build the event from the JSON file GitHub Actions writes (GITHUB_EVENT_PATH)."
        return cls.from_payload(event_name, read_payload(event_path))

    def describe(self) -> str:
        return f"{self.source_branch} -> {self.target_branch} ({self.mode})"


def read_payload(event_path: str) -> dict:
    "Loads the JSON event payload written by GitHub Actions."
    try:
        return json.loads(utils.read(event_path))
    except (OSError, ValueError) as err:
        raise ReleaseFlowError(f"Cannot read event payload {event_path}: {err}", "extractPRInfo", err)
