"""
Email body cleaning before publication.

The body of an inbound email is published on a public issue tracker, so
everything that is not the sender's actual request is removed and personal
data is redacted. Steps run in a fixed order, each one on the output of the
previous step:

1. Signature stripping
2. Embedded header stripping (clusters of two or more header lines only)
3. Quoted reply stripping (lines starting with '>')
4. Quote introducer and "Original Message" divider stripping
5. PII redaction (email addresses, card numbers, phone numbers, secrets)
6. Whitespace normalization
"""

import logging
import re
from typing import Callable, List, Pattern, Tuple

from .patterns import DEFAULT_PATTERNS, LocalePatterns

logger = logging.getLogger(__name__)

INVALID_EMAIL = '[invalid email]'
EMAIL_MASK = '***'
PHONE_PLACEHOLDER = '[phone redacted]'
CARD_PLACEHOLDER = '[card number redacted]'
SECRET_PLACEHOLDER = '[redacted]'

EMAIL_PATTERN = re.compile(r'[\w.+-]+@[\w.-]+\.\w+')
CARD_PATTERN = re.compile(r'(?<!\d)\d{4}[ \t-]?\d{4}[ \t-]?\d{4}[ \t-]?\d{4}(?!\d)')
PHONE_PATTERN = re.compile(
    r'(?<!\d)(?:\+?\d{1,3}[-. \t]?)?\(?\d{3}\)?[-. \t]?\d{3}[-. \t]?\d{4}(?!\d)'
)

_FLAGS = re.IGNORECASE | re.MULTILINE


def mask_email(email) -> str:
    """
    Mask email address for privacy.

    Keeps the first character and, for local parts longer than two
    characters, the last one. The domain is never altered.

    Args:
        email: Address to mask (any value is accepted)

    Returns:
        str: Masked address, or '[invalid email]'

    Example:
        >>> mask_email("john.doe@example.com")
        'j***e@example.com'
        >>> mask_email("ab@example.com")
        'a***@example.com'
        >>> mask_email("not-an-email")
        '[invalid email]'
    """
    if not email or not isinstance(email, str):
        return INVALID_EMAIL

    parts = email.split('@')
    if len(parts) != 2:
        return INVALID_EMAIL

    local_part, domain = parts
    if not local_part:
        return INVALID_EMAIL

    if len(local_part) <= 2:
        return f"{local_part[0]}{EMAIL_MASK}@{domain}"

    return f"{local_part[0]}{EMAIL_MASK}{local_part[-1]}@{domain}"


def mask_addresses(text: str) -> str:
    """Replace every email address found in text by its masked form."""
    return EMAIL_PATTERN.sub(lambda match: mask_email(match.group(0)), text)


def _line_pattern(sources) -> Pattern:
    """Compile sources into a pattern matching whole lines, newline included."""
    alternatives = '|'.join(f'(?:{source})' for source in sources)
    return re.compile(rf'^[ \t]*(?:{alternatives})[ \t]*$\n?', _FLAGS)


class BodySanitizer:
    """
    Removes email artifacts and personal data from a message body.

    Holds only compiled patterns; safe to share between invocations.
    """

    def __init__(self, patterns: LocalePatterns = DEFAULT_PATTERNS):
        self._signature_delimiter = re.compile(r'^--[ \t]*$.*\Z', re.MULTILINE | re.DOTALL)
        openers = '|'.join(patterns.signature_separator_openers)
        self._separated_footer = re.compile(
            rf'^[ \t]*-+[ \t]*\n[ \t]*(?:{openers})\b.*\Z',
            _FLAGS | re.DOTALL,
        )
        self._signature_markers = _line_pattern(patterns.signature_markers)

        labels = '|'.join(f'(?:{label})' for label in patterns.embedded_header_labels)
        self._header_line = re.compile(rf'^[ \t]*(?:{labels})[ \t]*:[ \t]*\S.*$', re.IGNORECASE)

        self._quoted_line = re.compile(rf'^(?:{patterns.quote_marker}).*$\n?', re.MULTILINE)
        self._quote_headers = _line_pattern(
            tuple(patterns.quote_introducers)
            + tuple(patterns.original_message_dividers)
            + tuple(patterns.forwarded_message_dividers)
        )

        secret_labels = '|'.join(re.escape(label) for label in patterns.secret_labels)
        self._secret = re.compile(rf'({secret_labels})[ \t]*:[ \t]*\S.*$', _FLAGS)

        self._steps: List[Tuple[str, Callable[[str], str]]] = [
            ('signatures', self._strip_signatures),
            ('embedded_headers', self._strip_embedded_headers),
            ('quoted_replies', self._strip_quoted_replies),
            ('quote_headers', self._strip_quote_headers),
            ('pii', self._redact_pii),
            ('whitespace', self._normalize_whitespace),
        ]

    def sanitize(self, body: str) -> str:
        """
        Clean email body by removing sensitive information and email artifacts.

        Args:
            body: Raw email body

        Returns:
            str: Cleaned email body
        """
        cleaned = (body or '').replace('\r\n', '\n')
        for name, step in self._steps:
            cleaned = step(cleaned)
            logger.debug(f"After {name}: {len(cleaned)} characters")

        logger.info(f"Email body cleaned: {len(body or '')} -> {len(cleaned)} characters")
        return cleaned

    def _strip_signatures(self, text: str) -> str:
        text = self._signature_delimiter.sub('', text)
        text = self._separated_footer.sub('', text)
        return self._signature_markers.sub('', text)

    def _strip_embedded_headers(self, text: str) -> str:
        lines = text.split('\n')
        keep = [True] * len(lines)

        index = 0
        while index < len(lines):
            if not self._header_line.match(lines[index]):
                index += 1
                continue

            end = index
            while end < len(lines) and self._header_line.match(lines[end]):
                end += 1

            # A lone "Date: tomorrow" line is ordinary prose
            if end - index >= 2:
                for position in range(index, end):
                    keep[position] = False
            index = end

        return '\n'.join(line for line, kept in zip(lines, keep) if kept)

    def _strip_quoted_replies(self, text: str) -> str:
        return self._quoted_line.sub('', text)

    def _strip_quote_headers(self, text: str) -> str:
        return self._quote_headers.sub('', text)

    def _redact_pii(self, text: str) -> str:
        text = mask_addresses(text)
        # Cards before phones: a phone match would split a card number
        text = CARD_PATTERN.sub(CARD_PLACEHOLDER, text)
        text = PHONE_PATTERN.sub(PHONE_PLACEHOLDER, text)
        return self._secret.sub(rf'\1: {SECRET_PLACEHOLDER}', text)

    def _normalize_whitespace(self, text: str) -> str:
        text = re.sub(r'\n(?:[ \t]*\n){2,}', '\n\n', text)
        return text.strip()


_default_sanitizer = BodySanitizer()


def clean_email_body(body: str) -> str:
    """Sanitize with the default locale patterns."""
    return _default_sanitizer.sanitize(body)
