"""
Confirmation email delivery through Amazon SES.
"""

import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from domain.errors import UpstreamFailure
from services import templates

logger = logging.getLogger(__name__)

CONFIRMATION_SUBJECT = 'Your wallabag site configuration request has been received'
TEXT_TEMPLATE = 'confirmation.txt'
HTML_TEMPLATE = 'confirmation.html'
CHARSET = 'UTF-8'

ses_config = Config(
    retries={
        'max_attempts': 1,  # 1 attempt total (no retries)
        'mode': 'standard'
    },
    connect_timeout=10,
    read_timeout=60
)


def create_ses_client(region: Optional[str] = None):
    """Create an SES client with the no-retry timeout configuration."""
    client = boto3.client('ses', region_name=region, config=ses_config)
    logger.info(f"SES client initialized: region={region}, max_attempts=1")
    return client


class SesNotifier:
    """
    Sends the confirmation email after an issue has been created.

    Args:
        ses_client: boto3 SES client (or a test double with send_email)
        source: From address of the confirmation email
    """

    def __init__(self, ses_client, source: str):
        self.ses_client = ses_client
        self.source = source

    def build_message(self, issue_url: str, issue_number: int) -> dict:
        """
        Render the plain text and HTML confirmation bodies.

        Returns:
            dict: SES Message parameter
        """
        text_body = templates.format_template(
            templates.load_template(TEXT_TEMPLATE),
            issue_number=issue_number,
            issue_url=issue_url
        )
        html_body = templates.format_template(
            templates.load_template(HTML_TEMPLATE),
            issue_number=issue_number,
            issue_url=issue_url
        )

        return {
            'Subject': {'Data': CONFIRMATION_SUBJECT, 'Charset': CHARSET},
            'Body': {
                'Text': {'Data': text_body, 'Charset': CHARSET},
                'Html': {'Data': html_body, 'Charset': CHARSET},
            },
        }

    def send_confirmation(self, recipient: str, issue_url: str, issue_number: int) -> None:
        """
        Send the confirmation email to the original sender.

        Args:
            recipient: Unmasked sender address
            issue_url: URL of the created issue
            issue_number: Number of the created issue

        Raises:
            UpstreamFailure: If SES rejects the request
        """
        message = self.build_message(issue_url, issue_number)

        try:
            response = self.ses_client.send_email(
                Source=self.source,
                Destination={'ToAddresses': [recipient]},
                Message=message
            )
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', 'Unknown')
            error_message = e.response.get('Error', {}).get('Message', str(e))
            logger.error(
                f"Failed to send confirmation email: "
                f"error_code={error_code}, error_message={error_message}"
            )
            raise UpstreamFailure(f"Failed to send confirmation email: {error_message}") from e
        except BotoCoreError as e:
            logger.error(f"Failed to send confirmation email: {e}")
            raise UpstreamFailure(f"Failed to send confirmation email: {e}") from e

        logger.info(f"Confirmation email sent: message_id={response.get('MessageId', 'UNKNOWN')}")
