"""
Trash Rules - Decide which emails are trash

A rule set is an ordered list of keyword rules evaluated with OR semantics.
Emails must go through normalize_email() before they are matched.
"""

import re
import logging
import unicodedata
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterable, Iterator, Protocol, Tuple

from trash_cleaner.errors import InvalidKeyword
from trash_cleaner.models import WILDCARD, Email, TrashKeyword


logger = logging.getLogger(__name__)


class EmailField(Enum):
    """The text fields of an email a keyword can be matched against"""
    SNIPPET = 'snippet'
    SUBJECT = 'subject'
    FROM = 'from'
    BODY = 'body'

    @classmethod
    def parse(cls, name: str) -> 'EmailField':
        try:
            return cls(name.strip().lower())
        except ValueError:
            known = ', '.join(f.value for f in cls)
            raise InvalidKeyword(f"Unknown email field '{name}' (expected one of: {known})") from None


FIELD_GETTERS: Dict[EmailField, Callable[[Email], str]] = {
    EmailField.SNIPPET: lambda email: email.snippet,
    EmailField.SUBJECT: lambda email: email.subject,
    EmailField.FROM: lambda email: email.sender,
    EmailField.BODY: lambda email: email.body,
}


# === Normalization ===

def _is_latin(char: str) -> bool:
    return bool(char) and unicodedata.name(char, '').startswith('LATIN ')


def strip_diacritics(text: str) -> str:
    """Remove accents from Latin letters ('Ápplé' -> 'Apple')

    The text is split into base characters and combining marks (NFD). Marks
    in the Combining Diacritical Marks block (U+0300-U+036F) are dropped when
    they sit on a Latin letter, then the rest is recomposed (NFC). Other
    scripts, such as Cyrillic 'й' or kana 'ガ', are returned unchanged.
    """
    if not text:
        return text

    kept = []
    base = ''
    for char in unicodedata.normalize('NFD', text):
        if not unicodedata.combining(char):
            base = char
        elif '\u0300' <= char <= '\u036f' and _is_latin(base):
            continue
        kept.append(char)

    return unicodedata.normalize('NFC', ''.join(kept))


def normalize_email(email: Email) -> Email:
    """Prepare an email for matching, in place

    Text fields lose their diacritics, labels are lower-cased. Case of the
    text fields is left alone; keyword patterns are case-insensitive.
    """
    email.snippet = strip_diacritics(email.snippet)
    email.subject = strip_diacritics(email.subject)
    email.sender = strip_diacritics(email.sender)
    email.body = strip_diacritics(email.body)

    email.labels = {label.lower() for label in email.labels}

    return email


# === Rules ===

class TrashRule(Protocol):
    def is_match(self, email: Email) -> bool: ...


class KeywordTrashRule:
    """A trash rule compiled from a TrashKeyword"""

    def __init__(self, keyword: TrashKeyword):
        if not isinstance(keyword, TrashKeyword):
            raise InvalidKeyword(f"Invalid keyword: {keyword!r}")

        try:
            # Normalized like the email text it is matched against
            self.regex = re.compile(strip_diacritics(keyword.value), re.IGNORECASE)
        except re.error as error:
            raise InvalidKeyword(f"Invalid keyword pattern '{keyword.value}': {error}") from error

        self.all_fields = WILDCARD in keyword.fields
        self.fields: FrozenSet[EmailField] = frozenset(
            EmailField.parse(name) for name in keyword.fields if name != WILDCARD
        )

        self.any_label = WILDCARD in keyword.labels
        self.labels: FrozenSet[str] = frozenset(
            label.lower() for label in keyword.labels if label != WILDCARD
        )

    def __repr__(self) -> str:
        fields = WILDCARD if self.all_fields else sorted(f.value for f in self.fields)
        labels = WILDCARD if self.any_label else sorted(self.labels)
        return f"KeywordTrashRule(pattern={self.regex.pattern!r}, fields={fields}, labels={labels})"

    def is_match(self, email: Email) -> bool:
        """True if the pattern hits a selected field and the label constraint holds"""
        return self._has_field_hit(email) and self._has_label_hit(email)

    def _selected_fields(self) -> Iterable[EmailField]:
        return EmailField if self.all_fields else self.fields

    def _has_field_hit(self, email: Email) -> bool:
        return any(
            self.regex.search(FIELD_GETTERS[f](email))
            for f in self._selected_fields()
        )

    def _has_label_hit(self, email: Email) -> bool:
        return self.any_label or not self.labels.isdisjoint(email.labels)


class RuleSet:
    """Ordered collection of trash rules, any of which marks an email as trash"""

    def __init__(self, rules: Iterable[TrashRule] = ()):
        self.rules: Tuple[TrashRule, ...] = tuple(rules)

    @classmethod
    def from_keywords(cls, keywords: Iterable[TrashKeyword]) -> 'RuleSet':
        rules = [KeywordTrashRule(keyword) for keyword in keywords]
        logger.debug(f"Compiled {len(rules)} trash rules")
        return cls(rules)

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[TrashRule]:
        return iter(self.rules)

    def is_trash_email(self, email: Email) -> bool:
        for rule in self.rules:
            if rule.is_match(email):
                logger.debug(f"Email {email.id} matched {rule!r}")
                return True
        return False
