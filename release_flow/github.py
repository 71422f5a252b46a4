"""
GitHub REST client for release-flow.

Only the calls the engine needs: issue creation (terminal merge conflict)
and the pull request comment reporting errors.
"""

import logging
from typing import Iterator, List, Optional

import requests

from release_flow.constants import (COMMENTS_PER_PAGE, DEFAULT_COMMENT_TITLE, GITHUB_API_URL,
                                    REQUEST_TIMEOUT)
from release_flow.exceptions import CodeHostError

logger = logging.getLogger(__name__)


class GitHubClient:
    """
    Minimal GitHub REST client.

    Args:
        token: API token (GITHUB_TOKEN)
        repository: "owner/name"
        api_url: API root (default: https://api.github.com)
        comment_title: Heading identifying the comments this tool owns
        session: Optional requests session (tests inject a mock)

    Raises:
        CodeHostError: From every call, when the request fails or GitHub
            answers with an error status
    """

    def __init__(self, token: str, repository: str, api_url: str = GITHUB_API_URL,
                 comment_title: str = DEFAULT_COMMENT_TITLE, session: Optional[requests.Session] = None):
        if not repository or '/' not in repository:
            raise CodeHostError(f"Invalid repository: {repository!r}, expected owner/name")
        self._repository = repository
        self._api_url = api_url.rstrip('/')
        self._comment_title = comment_title
        self._session = session or requests.Session()
        self._session.headers.update({
            'Accept': 'application/vnd.github+json',
            'X-GitHub-Api-Version': '2022-11-28',
        })
        if token:
            self._session.headers['Authorization'] = f'Bearer {token}'

    @property
    def repository(self) -> str:
        return self._repository

    @property
    def comment_identifier(self) -> str:
        return f"## {self._comment_title}"

    def _url(self, path: str) -> str:
        return f"{self._api_url}/repos/{self._repository}/{path}"

    def _request(self, method: str, path: str, **kwargs):
        url = self._url(path)
        logger.debug("GitHub %s %s", method, url)
        try:
            response = self._session.request(method, url, timeout=REQUEST_TIMEOUT, **kwargs)
            response.raise_for_status()
        except requests.RequestException as err:
            raise CodeHostError(f"GitHub {method} {path} failed: {err}", err)
        return response.json() if response.content else None

    def create_issue(self, title: str, body: str, labels: List[str]) -> dict:
        "Opens an issue, returns the created issue."
        issue = self._request('POST', 'issues', json={'title': title, 'body': body, 'labels': labels})
        logger.info("Created issue #%s: %s", issue.get('number') if issue else '?', title)
        return issue

    def iter_comments(self, number: int) -> Iterator[dict]:
        "Comments of an issue or pull request, page by page."
        page = 1
        while True:
            comments = self._request('GET', f'issues/{number}/comments',
                                     params={'per_page': COMMENTS_PER_PAGE, 'page': page}) or []
            yield from comments
            if len(comments) < COMMENTS_PER_PAGE:
                return
            page += 1

    def find_comment(self, number: int, identifier: str) -> Optional[dict]:
        "First bot comment of ``number`` containing ``identifier``."
        for comment in self.iter_comments(number):
            user = comment.get('user') or {}
            if user.get('type') == 'Bot' and identifier in (comment.get('body') or ''):
                return comment
        return None

    def update_pr_comment(self, number: int, body: str, identifier: Optional[str] = None) -> None:
        """
        Creates the comment of this tool on pull request ``number``, or
        updates it when it already exists.
        """
        identifier = identifier or self.comment_identifier
        existing = self.find_comment(number, identifier)
        if existing:
            self._request('PATCH', f"issues/comments/{existing['id']}", json={'body': body})
            logger.info("Updated comment %s on pull request #%s", existing['id'], number)
        else:
            self._request('POST', f'issues/{number}/comments', json={'body': body})
            logger.info("Created comment on pull request #%s", number)

    def create_error_comment(self, number: int, message: str) -> None:
        "Reports ``message`` on pull request ``number``."
        body = f"{self.comment_identifier}\n\n**Error**\n\n{message}\n"
        self.update_pr_comment(number, body)
