"""
Runtime configuration loaded from environment variables.

Settings are read once per Lambda container and passed explicitly to the
components that need them.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Sender identity policies for the "Sent by ..." line of the issue body
SENDER_IDENTITY_NAME = 'name'
SENDER_IDENTITY_MASKED_ADDRESS = 'masked_address'
SENDER_IDENTITY_MASKED_ADDRESS_AND_NAME = 'masked_address_and_name'
SENDER_IDENTITY_POLICIES = (
    SENDER_IDENTITY_NAME,
    SENDER_IDENTITY_MASKED_ADDRESS,
    SENDER_IDENTITY_MASKED_ADDRESS_AND_NAME,
)

DEFAULT_REGION = 'eu-west-1'
DEFAULT_OWNER = 'wallabag'
DEFAULT_REPO = 'wallabag'
DEFAULT_LABELS = 'Site Config'
DEFAULT_CONFIRMATION_SENDER = 'siteconfig@aws.wallabag.org'
DEFAULT_LOG_LEVEL = 'INFO'
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass(frozen=True)
class Settings:
    """
    Pipeline configuration.

    Attributes:
        github_token: Token used to create issues
        github_owner: Owner of the target repository
        github_repo: Name of the target repository
        issue_labels: Labels applied to every created issue
        confirmation_sender: From address of the confirmation email
        aws_region: Region for the S3 and SES clients
        sender_identity: One of SENDER_IDENTITY_POLICIES
        environment: Deployment environment name
        log_level: Root logger level (one of LOG_LEVELS)
    """
    github_token: str
    github_owner: str = DEFAULT_OWNER
    github_repo: str = DEFAULT_REPO
    issue_labels: Tuple[str, ...] = (DEFAULT_LABELS,)
    confirmation_sender: str = DEFAULT_CONFIRMATION_SENDER
    aws_region: str = DEFAULT_REGION
    sender_identity: str = SENDER_IDENTITY_NAME
    environment: str = 'dev'
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self):
        if self.sender_identity not in SENDER_IDENTITY_POLICIES:
            raise ConfigurationError(
                f"SENDER_IDENTITY has invalid value '{self.sender_identity}'. "
                f"Expected one of: {', '.join(SENDER_IDENTITY_POLICIES)}"
            )
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f"LOG_LEVEL has invalid value '{self.log_level}'. "
                f"Expected one of: {', '.join(LOG_LEVELS)}"
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """
        Read settings from environment variables.

        Raises:
            ConfigurationError: If GITHUB_TOKEN is missing or a value is invalid
        """
        env = os.environ if environ is None else environ

        github_token = env.get('GITHUB_TOKEN')
        if not github_token:
            raise ConfigurationError(
                "GITHUB_TOKEN environment variable is required but not set. "
                "Please configure this in your Lambda environment."
            )

        labels = tuple(
            label.strip()
            for label in env.get('ISSUE_LABELS', DEFAULT_LABELS).split(',')
            if label.strip()
        )

        settings = cls(
            github_token=github_token,
            github_owner=env.get('GITHUB_OWNER', DEFAULT_OWNER),
            github_repo=env.get('GITHUB_REPO', DEFAULT_REPO),
            issue_labels=labels,
            confirmation_sender=env.get('CONFIRMATION_SENDER', DEFAULT_CONFIRMATION_SENDER),
            aws_region=env.get('AWS_REGION', env.get('AWS_DEFAULT_REGION', DEFAULT_REGION)),
            sender_identity=env.get('SENDER_IDENTITY', SENDER_IDENTITY_NAME).strip().lower(),
            environment=env.get('ENVIRONMENT', 'dev'),
            log_level=env.get('LOG_LEVEL', DEFAULT_LOG_LEVEL).strip().upper(),
        )

        logger.info(
            f"Settings loaded for {settings.environment}: "
            f"repo={settings.github_owner}/{settings.github_repo}, "
            f"labels={list(settings.issue_labels)}, region={settings.aws_region}, "
            f"sender_identity={settings.sender_identity}"
        )
        return settings
