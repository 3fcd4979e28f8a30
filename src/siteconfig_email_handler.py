"""
AWS Lambda handler for site configuration requests received by email.

Thin orchestration layer that delegates to EmailProcessor.
Policy: No retries. Every invocation returns {statusCode, body}; errors are
logged to CloudWatch and reported as status 500.
"""

import json
import logging
from typing import Dict, Any, Optional

from domain.config import DEFAULT_LOG_LEVEL, Settings
from domain.email_processor import EmailProcessor
from domain.errors import ConfigurationError
from integrations.github_issues import GitHubIssuePublisher
from services import s3 as s3_service
from services import ses as ses_service

# Configure logging; the level from Settings is applied once they are loaded
logger = logging.getLogger()
logger.setLevel(DEFAULT_LOG_LEVEL)

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    formatter = logging.Formatter('%(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Built on the first invocation and reused across warm invocations
_email_processor: Optional[EmailProcessor] = None


def build_processor(settings: Settings) -> EmailProcessor:
    """
    Wire the pipeline with real AWS and GitHub clients.

    Args:
        settings: Loaded configuration

    Returns:
        EmailProcessor ready to process events
    """
    content_store = s3_service.S3EmailStore(s3_service.create_s3_client(settings.aws_region))
    notifier = ses_service.SesNotifier(
        ses_service.create_ses_client(settings.aws_region),
        source=settings.confirmation_sender
    )
    publisher = GitHubIssuePublisher(
        settings.github_token,
        owner=settings.github_owner,
        repo=settings.github_repo
    )

    return EmailProcessor(
        content_store=content_store,
        issue_publisher=publisher,
        notifier=notifier,
        labels=settings.issue_labels,
        sender_identity=settings.sender_identity
    )


def get_processor() -> EmailProcessor:
    """Return the container-wide processor, building it on first use."""
    global _email_processor
    if _email_processor is None:
        settings = Settings.from_env()
        logger.setLevel(settings.log_level)
        logger.info(f"Environment: {settings.environment}")
        _email_processor = build_processor(settings)
    return _email_processor


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Process an SES email notification delivered by SNS.

    Args:
        event: Lambda event with SNS (or SQS) records
        context: Lambda context

    Returns:
        Dict with statusCode and JSON body
    """
    logger.info("=" * 70)
    logger.info("Site Config Email Processor - Started")
    logger.info("=" * 70)

    try:
        processor = get_processor()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Error processing email',
                'error': str(e),
            })
        }

    result = processor.process_event(event)

    if result.success:
        logger.info(f"✓ {result.body.get('message')} ({result.state.value})")
    else:
        logger.warning(f"⚠ Processed email with ERRORS: {result.error_message}")

    logger.info("=" * 70)
    return result.to_response()
