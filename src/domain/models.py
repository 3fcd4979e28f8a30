"""
Data models for the email intake domain.

These type-safe data structures define clear contracts between components.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any


class PipelineState(Enum):
    """Stages of a single pipeline invocation."""
    LOCATING = "locating"
    PARSING = "parsing"
    CLASSIFYING = "classifying"
    SANITIZING = "sanitizing"
    PUBLISHING = "publishing"
    NOTIFYING = "notifying"
    SKIPPED = "skipped"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class S3Location:
    """Bucket and key of a raw email stored by the SES receipt rule."""
    bucket_name: str
    object_key: str


@dataclass(frozen=True)
class EmailNotification:
    """
    Structured summary extracted from an SES notification.

    Attributes:
        message_id: SES message identifier
        sender: Sender from commonHeaders (may include a display name)
        subject: Subject from commonHeaders (None if absent)
        inline_content: Raw MIME text when SES delivered it inline
        s3_location: Storage reference when SES stored the email in S3
    """
    message_id: str
    sender: str
    subject: Optional[str]
    inline_content: Optional[str] = None
    s3_location: Optional[S3Location] = None


@dataclass(frozen=True)
class InboundMessage:
    """
    Parsed email message.

    Attributes:
        sender: Bare sender address
        sender_name: Display name from the From header (None if absent)
        subject: Subject line
        text_body: Plain text body (empty string if not present)
        html_body: HTML body (None if not present)
        in_reply_to: In-Reply-To header value (None if absent)
        references: Message-IDs listed in the References header
    """
    sender: str
    subject: str
    text_body: str
    html_body: Optional[str] = None
    sender_name: Optional[str] = None
    in_reply_to: Optional[str] = None
    references: List[str] = field(default_factory=list)

    @property
    def body_for_issue(self) -> str:
        """
        Get best available body content for the issue.

        Priority: text_body > html_body > empty string
        """
        return self.text_body or self.html_body or ""


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of reply detection; matched_signal is for logging only."""
    is_reply: bool
    matched_signal: Optional[str] = None

    def __bool__(self) -> bool:
        return self.is_reply


@dataclass(frozen=True)
class PublishedIssue:
    """Issue created on the tracker."""
    number: int
    html_url: str


@dataclass
class ProcessingResult:
    """
    Result of one pipeline invocation.

    Attributes:
        status_code: 200 for success or skip, 500 for failure
        body: JSON-serializable response body
        state: Terminal pipeline state (DONE, SKIPPED or FAILED)
        issue: Created issue (None unless an issue was published)
        error_message: Error description (if processing failed)
    """
    status_code: int
    body: Dict[str, Any]
    state: PipelineState
    issue: Optional[PublishedIssue] = None
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status_code == 200

    def to_response(self) -> Dict[str, Any]:
        """Convert to the Lambda response shape."""
        return {
            'statusCode': self.status_code,
            'body': json.dumps(self.body),
        }

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.success:
            return f"ProcessingResult(status={self.status_code}, state={self.state.value})"
        else:
            return (
                f"ProcessingResult(status={self.status_code}, state={self.state.value}, "
                f"error={self.error_message})"
            )
