"""
Tests for the GitHub Issues integration.
"""

import pytest
import requests
from unittest.mock import Mock

from domain.errors import ConfigurationError, UpstreamFailure
from domain.models import PublishedIssue
from integrations.github_issues import GitHubIssuePublisher, REQUEST_TIMEOUT


def make_response(status_code, json_data=None, text=''):
    response = Mock()
    response.status_code = status_code
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def session():
    session = Mock()
    session.headers = {}
    session.post.return_value = make_response(201, {
        'number': 123,
        'html_url': 'https://github.com/wallabag/wallabag/issues/123',
    })
    return session


@pytest.fixture
def publisher(session):
    return GitHubIssuePublisher('test-token', owner='wallabag', repo='wallabag', session=session)


class TestCreateIssue:
    """Test issue creation."""

    def test_create_issue_success(self, publisher, session):
        """Test the request payload and returned issue."""
        issue = publisher.create_issue('Test Subject', 'Issue body', ['Site Config'])

        assert issue == PublishedIssue(
            number=123,
            html_url='https://github.com/wallabag/wallabag/issues/123'
        )
        session.post.assert_called_once_with(
            'https://api.github.com/repos/wallabag/wallabag/issues',
            json={'title': 'Test Subject', 'body': 'Issue body', 'labels': ['Site Config']},
            timeout=REQUEST_TIMEOUT
        )

    def test_auth_headers_set(self, publisher, session):
        """Test the session carries token and API headers."""
        assert session.headers['Authorization'] == 'Bearer test-token'
        assert session.headers['Accept'] == 'application/vnd.github+json'

    def test_custom_base_url(self, session):
        """Test GitHub Enterprise style base URLs."""
        publisher = GitHubIssuePublisher(
            'test-token', owner='acme', repo='configs',
            session=session, base_url='https://github.example.com/api/v3/'
        )

        publisher.create_issue('t', 'b', [])

        assert session.post.call_args.args[0] == \
            'https://github.example.com/api/v3/repos/acme/configs/issues'

    def test_api_error(self, publisher, session):
        """Test non-201 responses raise UpstreamFailure with GitHub's message."""
        session.post.return_value = make_response(401, {'message': 'Bad credentials'})

        with pytest.raises(UpstreamFailure, match=r"GitHub API error \(401\): Bad credentials"):
            publisher.create_issue('Test Subject', 'Issue body', ['Site Config'])

    def test_api_error_without_json(self, publisher, session):
        """Test error responses with a non-JSON body."""
        session.post.return_value = make_response(502, text='Bad Gateway')

        with pytest.raises(UpstreamFailure, match="Bad Gateway"):
            publisher.create_issue('Test Subject', 'Issue body', ['Site Config'])

    def test_connection_error(self, publisher, session):
        """Test network errors raise UpstreamFailure."""
        session.post.side_effect = requests.ConnectionError("Connection refused")

        with pytest.raises(UpstreamFailure, match="Connection refused"):
            publisher.create_issue('Test Subject', 'Issue body', ['Site Config'])

    def test_unexpected_response_body(self, publisher, session):
        """Test a 201 without number/html_url."""
        session.post.return_value = make_response(201, {'id': 1}, text='{"id": 1}')

        with pytest.raises(UpstreamFailure, match="Unexpected GitHub API response"):
            publisher.create_issue('Test Subject', 'Issue body', ['Site Config'])


class TestConfiguration:
    """Test publisher construction."""

    def test_missing_token(self, session):
        """Test a token is required."""
        with pytest.raises(ConfigurationError):
            GitHubIssuePublisher('', owner='wallabag', repo='wallabag', session=session)

    def test_missing_repo(self, session):
        """Test owner and repo are required."""
        with pytest.raises(ConfigurationError):
            GitHubIssuePublisher('token', owner='wallabag', repo='', session=session)
