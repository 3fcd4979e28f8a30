"""
Pytest configuration and fixtures for all tests.
"""

import json
import os
import sys
from unittest.mock import Mock

import pytest

# Add src to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

# Set up test environment variables before importing any modules
os.environ.setdefault('GITHUB_TOKEN', 'test-github-token')
os.environ.setdefault('AWS_DEFAULT_REGION', 'eu-west-1')
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('LOG_LEVEL', 'INFO')

from domain.models import PublishedIssue  # noqa: E402

ISSUE_URL = 'https://github.com/wallabag/wallabag/issues/123'


def build_email_content(from_header, subject, body, in_reply_to=None, references=None):
    """Build a plain text MIME email."""
    email_content = f"From: {from_header}\nTo: siteconfig@aws.wallabag.org\nSubject: {subject}"
    if in_reply_to:
        email_content += f"\nIn-Reply-To: {in_reply_to}"
    if references:
        email_content += f"\nReferences: {' '.join(references)}"
    email_content += f"\nContent-Type: text/plain; charset=UTF-8\n\n{body}"
    return email_content


def build_notification(sender, subject, content=None, bucket_name=None, object_key=None):
    """Build an SES notification with inline content or an S3 receipt action."""
    notification = {
        'mail': {
            'source': sender,
            'messageId': 'test-message-id',
            'commonHeaders': {
                'from': [sender],
                'to': ['siteconfig@aws.wallabag.org'],
                'subject': subject,
            },
        },
    }
    if content is not None:
        notification['content'] = content
    if bucket_name is not None:
        notification['receipt'] = {
            'action': {
                'type': 'S3',
                'bucketName': bucket_name,
                'objectKey': object_key,
            },
        }
    return notification


def build_sns_event(notification):
    """Wrap an SES notification in an SNS Lambda event."""
    return {'Records': [{'Sns': {'Message': json.dumps(notification)}}]}


def build_inline_event(sender, subject, body, **headers):
    content = build_email_content(sender, subject, body, **headers)
    return build_sns_event(build_notification(sender, subject, content=content))


@pytest.fixture
def content_store():
    """S3 email store double."""
    return Mock()


@pytest.fixture
def issue_publisher():
    """GitHub publisher double returning issue #123."""
    publisher = Mock()
    publisher.create_issue.return_value = PublishedIssue(number=123, html_url=ISSUE_URL)
    return publisher


@pytest.fixture
def notifier():
    """SES notifier double."""
    return Mock()


@pytest.fixture
def mock_context():
    """Mock Lambda context."""
    context = Mock()
    context.request_id = "test-request-id"
    context.invoked_function_arn = "arn:aws:lambda:eu-west-1:123456789012:function:test"
    context.function_name = "siteconfig-email-test"
    return context
