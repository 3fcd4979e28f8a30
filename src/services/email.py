"""
Email parsing utilities for Lambda handlers.

This module converts raw MIME content into an InboundMessage with the headers
and bodies the pipeline needs.
"""

import logging
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import getaddresses
from typing import Dict, List, Optional, Tuple, Union

from domain.errors import MalformedInput
from domain.models import InboundMessage

logger = logging.getLogger(__name__)


def parse_inbound_message(
    email_content: Union[str, bytes],
    fallback_subject: Optional[str] = None,
    fallback_sender: Optional[str] = None
) -> InboundMessage:
    """
    Parse raw email (MIME format) into an InboundMessage.

    Args:
        email_content: Raw email from S3 or the inline SES payload
        fallback_subject: Subject to use when the MIME message has none
        fallback_sender: Sender to use when the From header is missing

    Returns:
        InboundMessage with sender, subject, bodies and threading headers

    Raises:
        MalformedInput: If content is empty or cannot be parsed

    Example:
        >>> message = parse_inbound_message("From: Ann <ann@example.com>\\n\\nHello")
        >>> print(message.sender, message.sender_name)
        ann@example.com Ann
    """
    if not email_content:
        raise MalformedInput("Email content cannot be empty")

    if isinstance(email_content, str):
        email_content = email_content.encode('utf-8')

    try:
        msg = BytesParser(policy=policy.default).parsebytes(email_content)
        sender_name, sender = _parse_sender(msg, fallback_sender)
        bodies = extract_email_body(msg)
        subject = str(msg.get('Subject', '') or '') or fallback_subject or ''
        in_reply_to = str(msg.get('In-Reply-To', '') or '').strip() or None
        references = _parse_references(msg.get('References'))
    except MalformedInput:
        raise
    except Exception as e:
        logger.error(f"Failed to parse email: {e}")
        raise MalformedInput(f"Failed to parse email: {str(e)}")

    return InboundMessage(
        sender=sender,
        sender_name=sender_name,
        subject=subject,
        text_body=bodies['text_body'],
        html_body=bodies['html_body'] or None,
        in_reply_to=in_reply_to,
        references=references
    )


def extract_email_body(msg: EmailMessage) -> Dict[str, str]:
    """
    Extract the first text/plain and text/html parts of a message.

    Attachments (parts with a filename or attachment disposition) are skipped.

    Args:
        msg: Parsed email message

    Returns:
        Dictionary with text_body and html_body (empty strings if absent)
    """
    result = {
        'text_body': '',
        'html_body': ''
    }

    parts = msg.walk() if msg.is_multipart() else [msg]
    for part in parts:
        if part.is_multipart():
            continue

        content_type = part.get_content_type()
        content_disposition = str(part.get("Content-Disposition", ""))
        if "attachment" in content_disposition or part.get_filename():
            continue

        if content_type == "text/plain" and not result['text_body']:
            result['text_body'] = _decode_part(part)
        elif content_type == "text/html" and not result['html_body']:
            result['html_body'] = _decode_part(part)

    if not result['text_body'] and not result['html_body']:
        logger.warning(
            f"No text or HTML body found (content type: {msg.get_content_type()}). "
            f"Email body will be empty."
        )

    return result


def _decode_part(part: EmailMessage) -> str:
    try:
        # get_content() handles quoted-printable, base64, etc automatically
        return part.get_content()
    except Exception as e:
        logger.warning(f"Failed to decode body with get_content(): {e}")
        # Fallback: manual decode with get_payload(decode=True)
        payload = part.get_payload(decode=True)
        if payload:
            return payload.decode('utf-8', errors='ignore')
        return ''


def _parse_sender(msg: EmailMessage, fallback_sender: Optional[str]) -> Tuple[Optional[str], str]:
    """Split the From header into (display name, bare address)."""
    raw_from = str(msg.get('From', '') or '') or fallback_sender or ''
    addresses = getaddresses([raw_from])
    if not addresses or not addresses[0][1]:
        raise MalformedInput("Email has no sender address")

    name, address = addresses[0]
    return (name.strip() or None), address.strip()


def _parse_references(raw_references) -> List[str]:
    """Split the References header into individual Message-IDs."""
    if not raw_references:
        return []
    return str(raw_references).split()
