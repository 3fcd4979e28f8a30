"""
GitHub Issues integration.

This module creates issues through the GitHub REST API using requests.

Usage:
    from integrations.github_issues import GitHubIssuePublisher

    publisher = GitHubIssuePublisher(token, owner="wallabag", repo="wallabag")
    issue = publisher.create_issue(
        title="Site config for example.com",
        body="*Sent by Ann and automatically created by email*...",
        labels=["Site Config"]
    )
    print(issue.number, issue.html_url)
"""

import logging
import time
from typing import List, Optional

import requests

from domain.errors import ConfigurationError, UpstreamFailure
from domain.models import PublishedIssue

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"

# (connect, read) timeouts in seconds; no retries
REQUEST_TIMEOUT = (10, 30)


class GitHubIssuePublisher:
    """
    Creates issues on a single GitHub repository.

    Args:
        token: GitHub token with issues:write permission
        owner: Repository owner
        repo: Repository name
        session: Optional requests.Session (a new one is created if None)
        base_url: API base URL (GitHub Enterprise or tests)
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        session: Optional[requests.Session] = None,
        base_url: str = GITHUB_API_URL
    ):
        if not token:
            raise ConfigurationError("GitHub token is required to create issues")
        if not owner or not repo:
            raise ConfigurationError("GitHub owner and repo are required")

        self.owner = owner
        self.repo = repo
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {token}',
            'Accept': 'application/vnd.github+json',
            'X-GitHub-Api-Version': GITHUB_API_VERSION,
            'User-Agent': 'siteconfig-email-intake',
        })

    def create_issue(self, title: str, body: str, labels: List[str]) -> PublishedIssue:
        """
        Create an issue.

        Args:
            title: Issue title
            body: Issue body (markdown)
            labels: Labels to apply

        Returns:
            PublishedIssue with number and html_url

        Raises:
            UpstreamFailure: If the request fails or GitHub rejects it
        """
        url = f"{self.base_url}/repos/{self.owner}/{self.repo}/issues"
        payload = {
            'title': title,
            'body': body,
            'labels': list(labels),
        }

        logger.info(
            f"Creating GitHub issue: repo={self.owner}/{self.repo}, "
            f"title_length={len(title)}, body_length={len(body)}, labels={list(labels)}"
        )
        start_time = time.time()

        try:
            response = self.session.post(url, json=payload, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            logger.error(f"GitHub request failed: {e}")
            raise UpstreamFailure(f"GitHub API request failed: {e}") from e

        if response.status_code != 201:
            error_message = _error_message(response)
            logger.error(
                f"GitHub issue creation failed: status={response.status_code}, "
                f"error_message={error_message}"
            )
            raise UpstreamFailure(
                f"GitHub API error ({response.status_code}): {error_message}"
            )

        try:
            data = response.json()
            issue = PublishedIssue(number=int(data['number']), html_url=data['html_url'])
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Unexpected GitHub response: {response.text[:200]}")
            raise UpstreamFailure(f"Unexpected GitHub API response: {e}") from e

        logger.info(
            f"GitHub issue created: number={issue.number}, "
            f"execution_time={time.time() - start_time:.2f}s"
        )
        return issue


def _error_message(response: requests.Response) -> str:
    """Extract GitHub's error message, falling back to the raw body."""
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict) and data.get('message'):
        return data['message']
    return response.text[:200]
