"""
Locale data for reply detection and body cleaning.

Reply idioms differ per mail client and language. The lists below are
maintained data: add a locale by extending a tuple (or by building a
LocalePatterns with extra entries), never by editing the classifier or
sanitizer control flow.

Regex sources are compiled case-insensitively and in multiline mode by
their consumers.
"""

from dataclasses import dataclass, replace
from typing import Tuple

# Subject prefixes of a reply, compared against the trimmed subject
REPLY_SUBJECT_PREFIXES = (
    're:',     # English, French
    'aw:',     # German (Antwort)
    'sv:',     # Swedish, Norwegian (Svar)
    'vs:',     # Danish, Finnish (Vastaus)
    'rif:',    # Italian (Riferimento)
    'ref:',    # Portuguese (Referência)
    'antw:',   # Dutch (Antwoord)
    'odp:',    # Polish (Odpowiedź)
    '回复:',    # Chinese
    '回复：',
    '答复:',
    '답장:',    # Korean
    '답장：',
)

# "On <date> <person> wrote:" and its translations, without anchors
QUOTE_INTRODUCERS = (
    r'on[ \t]+.+?[ \t]+wrote[ \t]*:',
    r'le[ \t]+.+?[ \t]+a[ \t]+écrit[ \t]*:',
    r'am[ \t]+.+?[ \t]+schrieb\b.*:',
    r'el[ \t]+.+?[ \t]+escribió[ \t]*:',
)

# "----- Original Message -----" dividers, without anchors
ORIGINAL_MESSAGE_DIVIDERS = (
    r'-+[ \t]*original message[ \t]*-+',
    r"-+[ \t]*message d'origine[ \t]*-+",
    r'-+[ \t]*ursprüngliche nachricht[ \t]*-+',
    r'-+[ \t]*mensaje original[ \t]*-+',
)

# Forwarded message dividers; stripped from the body but not a reply signal
FORWARDED_MESSAGE_DIVIDERS = (
    r'-+[ \t]*forwarded message[ \t]*-+',
    r'-+[ \t]*message transféré[ \t]*-+',
    r'-+[ \t]*weitergeleitete nachricht[ \t]*-+',
    r'-+[ \t]*mensaje reenviado[ \t]*-+',
)

# Leading quote markers of a quoted line
QUOTE_MARKER = r'>+'

# Mobile client footers, each removed as a single line
SIGNATURE_MARKERS = (
    r'sent from my (?:iphone|ipad|android|mobile|phone)\b.*',
    r'envoyé de mon (?:iphone|ipad|android|mobile|téléphone)\b.*',
    r'von meinem (?:iphone|ipad|android|handy|smartphone|mobiltelefon)\b.*',
    r'enviado desde mi (?:iphone|ipad|android|móvil|celular|teléfono)\b.*',
    r'get outlook for (?:ios|android)\b.*',
    r'télécharger outlook pour (?:ios|android)\b.*',
)

# Openers of a footer that follows a dashed separator line
SIGNATURE_SEPARATOR_OPENERS = (
    r'sent from',
    r'envoyé de',
    r'envoyé depuis',
    r'enviado desde',
    r'gesendet von',
)

# Header labels of a forwarded or quoted message block
EMBEDDED_HEADER_LABELS = (
    r'from|de|von|från',
    r'to|à|an|till',
    r'sent|date|envoyé|gesendet|datum|skickat',
    r'cc|bcc|kopie',
    r'subject|objet|betreff|ämne',
)

SECRET_LABELS = (
    'password',
    'passwd',
    'pwd',
    'token',
    'api-key',
    'api_key',
    'apikey',
    'secret',
)


@dataclass(frozen=True)
class LocalePatterns:
    """Bundle of locale data consumed by ReplyClassifier and BodySanitizer."""
    reply_subject_prefixes: Tuple[str, ...] = REPLY_SUBJECT_PREFIXES
    quote_introducers: Tuple[str, ...] = QUOTE_INTRODUCERS
    original_message_dividers: Tuple[str, ...] = ORIGINAL_MESSAGE_DIVIDERS
    forwarded_message_dividers: Tuple[str, ...] = FORWARDED_MESSAGE_DIVIDERS
    quote_marker: str = QUOTE_MARKER
    signature_markers: Tuple[str, ...] = SIGNATURE_MARKERS
    signature_separator_openers: Tuple[str, ...] = SIGNATURE_SEPARATOR_OPENERS
    embedded_header_labels: Tuple[str, ...] = EMBEDDED_HEADER_LABELS
    secret_labels: Tuple[str, ...] = SECRET_LABELS

    def extended(self, **extra: Tuple[str, ...]) -> 'LocalePatterns':
        """
        Return a copy with entries appended to the named tuples.

        Example:
            >>> patterns = DEFAULT_PATTERNS.extended(reply_subject_prefixes=('vá:',))
        """
        changes = {
            name: getattr(self, name) + tuple(values)
            for name, values in extra.items()
        }
        return replace(self, **changes)


DEFAULT_PATTERNS = LocalePatterns()
