"""
Email processing pipeline - core business logic.

This module handles the end-to-end processing of one SES email notification:
1. Locate the raw email (inline content or S3)
2. Parse it into an InboundMessage
3. Classify reply vs. original (replies stop here)
4. Sanitize the body
5. Create a GitHub issue
6. Send a confirmation email to the sender

Stages run strictly in order with no retries. All errors are caught and
returned as a ProcessingResult with status 500; no exceptions propagate out
of the public methods. A failed confirmation after a created issue is still
a failure: the issue is not rolled back.
"""

import json
import logging
from typing import Any, Dict, Iterable, Optional

from .config import (
    SENDER_IDENTITY_MASKED_ADDRESS,
    SENDER_IDENTITY_MASKED_ADDRESS_AND_NAME,
    SENDER_IDENTITY_NAME,
    SENDER_IDENTITY_POLICIES,
)
from .errors import ConfigurationError, ContentUnavailable, MalformedInput, PipelineError
from .models import (
    EmailNotification,
    InboundMessage,
    PipelineState,
    ProcessingResult,
    S3Location,
)
from .reply_classifier import ReplyClassifier
from .sanitizer import BodySanitizer, mask_addresses, mask_email
from services import email as email_service

logger = logging.getLogger(__name__)

ANONYMOUS_SENDER = 'an anonymous user'
DEFAULT_SUBJECT = 'No Subject'


def format_sender_identity(message: InboundMessage, policy: str = SENDER_IDENTITY_NAME) -> str:
    """
    Build the sender identity shown in the issue body.

    Args:
        message: Parsed message
        policy: One of SENDER_IDENTITY_POLICIES

    Returns:
        str: Display name, masked address, or both
    """
    # Display names often repeat the address itself
    name = mask_addresses(message.sender_name) if message.sender_name else None

    if policy == SENDER_IDENTITY_MASKED_ADDRESS:
        return mask_email(message.sender)
    if policy == SENDER_IDENTITY_MASKED_ADDRESS_AND_NAME:
        masked = mask_email(message.sender)
        if name:
            return f"{name} ({masked})"
        return masked
    return name or ANONYMOUS_SENDER


def format_issue_body(sender_identity: str, body: str) -> str:
    """Compose the issue body from the sender identity and sanitized body."""
    return f"*Sent by {sender_identity} and automatically created by email*\n\n---\n\n{body}"


def parse_notification(record: Dict[str, Any]) -> EmailNotification:
    """
    Parse an SNS or SQS record and extract the SES notification.

    Handles SES->SNS->Lambda, SES->SQS and SES->SNS->SQS deliveries.

    Args:
        record: Event record

    Returns:
        EmailNotification: Structured notification summary

    Raises:
        MalformedInput: If the record or notification structure is invalid
    """
    try:
        if 'Sns' in record:
            ses_notification = json.loads(record['Sns']['Message'])
        elif 'body' in record:
            sqs_body = json.loads(record['body'])
            # Check if wrapped in SNS (SES -> SNS -> SQS)
            if sqs_body.get('Type') == 'Notification' and 'Message' in sqs_body:
                logger.info("Unwrapping SNS message (SES -> SNS -> SQS)")
                ses_notification = json.loads(sqs_body['Message'])
            else:
                ses_notification = sqs_body
        else:
            raise MalformedInput("Record contains neither an SNS message nor an SQS body")
    except (KeyError, TypeError, AttributeError, json.JSONDecodeError) as e:
        raise MalformedInput(f"Invalid notification record: {e}") from e

    if not isinstance(ses_notification, dict) or 'mail' not in ses_notification:
        raise MalformedInput("SES notification missing 'mail' field")

    mail = ses_notification['mail'] or {}
    common_headers = mail.get('commonHeaders', {}) or {}

    # Sender can be a list, a string, or absent (fallback to envelope source)
    from_field = common_headers.get('from', [])
    if isinstance(from_field, list) and len(from_field) > 0:
        sender = from_field[0]
    elif isinstance(from_field, str) and from_field:
        sender = from_field
    else:
        sender = mail.get('source') or mail.get('returnPath') or ''

    s3_location = None
    receipt = ses_notification.get('receipt') or {}
    action = receipt.get('action') or {}
    if action.get('type') == 'S3':
        bucket_name = action.get('bucketName')
        object_key = action.get('objectKey')
        if not bucket_name or not object_key:
            raise MalformedInput("S3 receipt action is missing bucketName or objectKey")
        s3_location = S3Location(bucket_name=bucket_name, object_key=object_key)

    return EmailNotification(
        message_id=mail.get('messageId', 'UNKNOWN'),
        sender=sender,
        subject=common_headers.get('subject'),
        inline_content=ses_notification.get('content') or None,
        s3_location=s3_location
    )


class EmailProcessor:
    """
    Handles the end-to-end email intake pipeline.

    Collaborators are injected so the pipeline runs without network access
    in tests.

    Args:
        content_store: Object with fetch_email(bucket, key) -> bytes
        issue_publisher: Object with create_issue(title, body, labels) -> PublishedIssue
        notifier: Object with send_confirmation(recipient, issue_url, issue_number)
        labels: Labels applied to created issues
        sender_identity: Sender identity policy for the issue body
        classifier: Reply classifier (default locale patterns if None)
        sanitizer: Body sanitizer (default locale patterns if None)
    """

    def __init__(
        self,
        content_store,
        issue_publisher,
        notifier,
        labels: Iterable[str] = ('Site Config',),
        sender_identity: str = SENDER_IDENTITY_NAME,
        classifier: Optional[ReplyClassifier] = None,
        sanitizer: Optional[BodySanitizer] = None
    ):
        if sender_identity not in SENDER_IDENTITY_POLICIES:
            raise ConfigurationError(f"Unknown sender identity policy: {sender_identity}")

        self.content_store = content_store
        self.issue_publisher = issue_publisher
        self.notifier = notifier
        self.labels = list(labels)
        self.sender_identity = sender_identity
        self.classifier = classifier or ReplyClassifier()
        self.sanitizer = sanitizer or BodySanitizer()

    def process_event(self, event: Dict[str, Any]) -> ProcessingResult:
        """
        Process a Lambda event carrying one SES notification.

        Only the first record is processed; SNS delivers one record per
        invocation.

        Args:
            event: Lambda event with SNS or SQS records

        Returns:
            ProcessingResult (status 200 or 500)
        """
        records = []
        if isinstance(event, dict):
            records = event.get('Records') or []
        if not records:
            return self._failure(MalformedInput("Event contains no records"))

        if len(records) > 1:
            logger.warning(f"Event contains {len(records)} records, processing the first one only")

        return self.process_record(records[0])

    def process_record(self, record: Dict[str, Any]) -> ProcessingResult:
        """
        Process a single record containing an SES notification.

        Args:
            record: SNS or SQS record

        Returns:
            ProcessingResult with status 200 (processed or skipped) or 500
        """
        state = PipelineState.LOCATING
        try:
            notification = parse_notification(record)
            logger.info(f"Processing SES message: {notification.message_id}")
            raw_email = self._locate_content(notification)

            state = self._enter(PipelineState.PARSING)
            message = email_service.parse_inbound_message(
                raw_email,
                fallback_subject=notification.subject,
                fallback_sender=notification.sender
            )
            subject = notification.subject or message.subject or DEFAULT_SUBJECT
            logger.info(f"Processing email from: {mask_email(message.sender)}, subject: {subject}")

            state = self._enter(PipelineState.CLASSIFYING)
            classification = self.classifier.classify(subject, message)
            if classification.is_reply:
                self._enter(PipelineState.SKIPPED)
                logger.info(
                    f"Email detected as a reply ({classification.matched_signal}) - "
                    f"skipping issue creation"
                )
                return ProcessingResult(
                    status_code=200,
                    body={
                        'message': 'Email is a reply - no action taken',
                        'reason': 'Reply emails are not processed',
                    },
                    state=PipelineState.SKIPPED
                )

            state = self._enter(PipelineState.SANITIZING)
            cleaned_body = self.sanitizer.sanitize(message.body_for_issue)
            issue_body = format_issue_body(
                format_sender_identity(message, self.sender_identity),
                cleaned_body
            )

            state = self._enter(PipelineState.PUBLISHING)
            issue = self.issue_publisher.create_issue(subject, issue_body, self.labels)
            logger.info(f"Created GitHub issue #{issue.number}: {issue.html_url}")

            state = self._enter(PipelineState.NOTIFYING)
            self.notifier.send_confirmation(message.sender, issue.html_url, issue.number)
            logger.info(f"Sent confirmation email to: {mask_email(message.sender)}")

            self._enter(PipelineState.DONE)
            return ProcessingResult(
                status_code=200,
                body={
                    'message': 'Email processed successfully',
                    'issueNumber': issue.number,
                    'issueUrl': issue.html_url,
                },
                state=PipelineState.DONE,
                issue=issue
            )

        except PipelineError as e:
            logger.error(f"Failed while {state.value}: {e}")
            return self._failure(e)
        except Exception as e:
            logger.error(f"Unexpected error while {state.value}: {e}", exc_info=True)
            return self._failure(e)

    def _locate_content(self, notification: EmailNotification):
        """
        Resolve the raw email from S3 or the inline payload.

        Raises:
            ContentUnavailable: If neither is present
            UpstreamFailure: If the S3 fetch fails
        """
        if notification.s3_location is not None:
            location = notification.s3_location
            return self.content_store.fetch_email(location.bucket_name, location.object_key)

        if notification.inline_content:
            logger.info(f"Using inline email content: {len(notification.inline_content)} characters")
            return notification.inline_content

        raise ContentUnavailable()

    def _enter(self, state: PipelineState) -> PipelineState:
        logger.info(f"Pipeline state: {state.value}")
        return state

    def _failure(self, error: Exception) -> ProcessingResult:
        return ProcessingResult(
            status_code=500,
            body={
                'message': 'Error processing email',
                'error': str(error),
            },
            state=PipelineState.FAILED,
            error_message=str(error)
        )
