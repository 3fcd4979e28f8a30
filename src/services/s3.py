"""
S3 operations for Lambda handlers.

This module fetches raw emails stored in S3 by the SES receipt rule.
"""

import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from domain.errors import UpstreamFailure

logger = logging.getLogger(__name__)

# Configure S3 client with timeouts to prevent infinite hangs
s3_config = Config(
    retries={
        'max_attempts': 1,  # 1 attempt total (no retries)
        'mode': 'standard'
    },
    connect_timeout=10,  # 10 seconds to establish connection
    read_timeout=60      # 60 seconds max for reading response
)


def create_s3_client(region: Optional[str] = None):
    """
    Create an S3 client with the no-retry timeout configuration.

    Args:
        region: AWS region (None uses the default boto3 resolution)

    Returns:
        boto3 S3 client
    """
    client = boto3.client('s3', region_name=region, config=s3_config)
    logger.info("S3 client initialized with timeouts: connect=10s, read=60s, max_attempts=1")
    return client


class S3EmailStore:
    """
    Reads raw emails from S3.

    Args:
        s3_client: boto3 S3 client (or a test double with get_object)
    """

    def __init__(self, s3_client):
        self.s3_client = s3_client

    def fetch_email(self, bucket: str, key: str) -> bytes:
        """
        Fetch raw email content from S3.

        Args:
            bucket: S3 bucket name
            key: S3 object key (path to the email file)

        Returns:
            bytes: The raw email content as bytes

        Raises:
            UpstreamFailure: If the S3 operation fails

        Example:
            >>> store = S3EmailStore(create_s3_client())
            >>> email_bytes = store.fetch_email(
            ...     bucket="my-ses-bucket",
            ...     key="emails/2025/11/12/message-id.eml"
            ... )
        """
        logger.info(f"Fetching email from S3: {bucket}/{key}")
        try:
            response = self.s3_client.get_object(Bucket=bucket, Key=key)
            content = response['Body'].read()
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', '')
            if error_code == 'NoSuchKey':
                logger.error(f"S3 object not found: s3://{bucket}/{key}")
                raise UpstreamFailure(f"Email file not found in S3: {key}") from e
            elif error_code == 'NoSuchBucket':
                logger.error(f"S3 bucket not found: {bucket}")
                raise UpstreamFailure(f"S3 bucket not found: {bucket}") from e
            else:
                logger.error(f"Failed to fetch from S3 s3://{bucket}/{key}: {e}")
                raise UpstreamFailure(f"Failed to fetch email from S3: {e}") from e
        except BotoCoreError as e:
            logger.error(f"Failed to fetch from S3 s3://{bucket}/{key}: {e}")
            raise UpstreamFailure(f"Failed to fetch email from S3: {e}") from e

        logger.info(f"Fetched {len(content):,} bytes from S3")
        return content
