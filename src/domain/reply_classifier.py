"""
Reply detection for inbound emails.

A message is treated as a reply when any reply signal is present. Signals are
checked in a fixed order and the first match wins; the order only changes
which signal is reported, never the outcome.

1. Subject starts with a reply prefix (Re:, AW:, SV:, ...)
2. In-Reply-To header present
3. References header present
4. Quoted text near the top of the plain text body
"""

import logging
import re
from typing import Any, Callable, List, Optional, Tuple

from .models import ClassificationResult
from .patterns import DEFAULT_PATTERNS, LocalePatterns

logger = logging.getLogger(__name__)

# Only the beginning of the body is inspected for quoted text
BODY_SCAN_LENGTH = 500

SIGNAL_SUBJECT_PREFIX = 'subject_prefix'
SIGNAL_IN_REPLY_TO = 'in_reply_to'
SIGNAL_REFERENCES = 'references'
SIGNAL_QUOTED_BODY = 'quoted_body'


class ReplyClassifier:
    """
    Decides whether an inbound message continues an existing thread.

    The classifier holds only compiled patterns and is safe to share between
    concurrent invocations.
    """

    def __init__(self, patterns: LocalePatterns = DEFAULT_PATTERNS):
        self._subject_prefixes = tuple(p.casefold() for p in patterns.reply_subject_prefixes)

        body_sources = (
            list(patterns.quote_introducers)
            + list(patterns.original_message_dividers)
            + [patterns.quote_marker]
        )
        self._body_patterns = [
            re.compile(rf'^(?:{source})', re.IGNORECASE | re.MULTILINE)
            for source in body_sources
        ]

        self._checks: List[Tuple[str, Callable[[str, Any], Optional[str]]]] = [
            (SIGNAL_SUBJECT_PREFIX, self._match_subject_prefix),
            (SIGNAL_IN_REPLY_TO, self._match_in_reply_to),
            (SIGNAL_REFERENCES, self._match_references),
            (SIGNAL_QUOTED_BODY, self._match_quoted_body),
        ]

    def classify(self, subject: Optional[str], message: Any = None) -> ClassificationResult:
        """
        Classify a message as reply or original.

        Args:
            subject: Email subject (None or empty is never a reply by prefix)
            message: Object exposing in_reply_to, references and text_body;
                missing attributes count as absent signals

        Returns:
            ClassificationResult with the first matching signal
        """
        subject = subject or ''

        for signal, check in self._checks:
            detail = check(subject, message)
            if detail is not None:
                logger.info(f"Reply detected: {signal} ({detail})")
                return ClassificationResult(is_reply=True, matched_signal=signal)

        logger.info("Email does not appear to be a reply")
        return ClassificationResult(is_reply=False)

    def is_reply(self, subject: Optional[str], message: Any = None) -> bool:
        return self.classify(subject, message).is_reply

    def _match_subject_prefix(self, subject: str, message: Any) -> Optional[str]:
        normalized = subject.strip().casefold()
        for prefix in self._subject_prefixes:
            if normalized.startswith(prefix):
                return f"subject starts with '{prefix}'"
        return None

    def _match_in_reply_to(self, subject: str, message: Any) -> Optional[str]:
        in_reply_to = getattr(message, 'in_reply_to', None)
        if in_reply_to and in_reply_to.strip():
            return f"In-Reply-To: {in_reply_to}"
        return None

    def _match_references(self, subject: str, message: Any) -> Optional[str]:
        references = getattr(message, 'references', None) or []
        if len(references) > 0:
            return f"References: {' '.join(references)}"
        return None

    def _match_quoted_body(self, subject: str, message: Any) -> Optional[str]:
        head = (getattr(message, 'text_body', None) or '')[:BODY_SCAN_LENGTH]
        if not head:
            return None
        for pattern in self._body_patterns:
            if pattern.search(head):
                return f"body matches {pattern.pattern}"
        return None


_default_classifier = ReplyClassifier()


def is_reply_email(subject: Optional[str], message: Any = None) -> bool:
    """Classify with the default locale patterns."""
    return _default_classifier.is_reply(subject, message)
