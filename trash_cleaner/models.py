"""
Shared data models for Trash Cleaner
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set, Tuple, Union

from trash_cleaner.errors import InvalidKeyword


# Matches every field or every label
WILDCARD = '*'


@dataclass
class Email:
    """A single mail message, independent of the provider it came from"""
    id: str = ''
    labels: Set[str] = field(default_factory=set)
    snippet: str = ''
    subject: str = ''
    sender: str = ''  # the 'From' header
    body: str = ''

    def __post_init__(self):
        # Providers omit fields freely; matching code expects strings and sets
        self.id = self.id or ''
        if isinstance(self.labels, str):
            self.labels = {self.labels} if self.labels else set()
        else:
            self.labels = set(self.labels or ())
        self.snippet = self.snippet or ''
        self.subject = self.subject or ''
        self.sender = self.sender or ''
        self.body = self.body or ''


@dataclass(frozen=True)
class TrashKeyword:
    """One trash keyword configuration entry"""
    value: str  # regex pattern
    fields: Tuple[str, ...]  # field names or '*'
    labels: Tuple[str, ...]  # label names or '*'

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value:
            raise InvalidKeyword(f"Invalid keyword: value must be a non-empty string, got {self.value!r}")
        for name in ('fields', 'labels'):
            items = getattr(self, name)
            if not isinstance(items, (list, tuple)) or not items:
                raise InvalidKeyword(f"Invalid keyword '{self.value}': {name} must be a non-empty list")
            if not all(isinstance(item, str) and item for item in items):
                raise InvalidKeyword(f"Invalid keyword '{self.value}': {name} must contain non-empty strings")
            # Freeze lists handed in by callers
            object.__setattr__(self, name, tuple(items))

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'TrashKeyword':
        """Build a keyword from a keywords.json record

        Fields and labels may be comma-delimited strings or lists and
        default to the wildcard when absent.
        """
        if not isinstance(record, dict):
            raise InvalidKeyword(f"Invalid keyword: expected an object, got {record!r}")

        return cls(
            value=record.get('value'),
            fields=split_list(_or_wildcard(record.get('fields'))),
            labels=split_list(_or_wildcard(record.get('labels'))),
        )


def _or_wildcard(raw):
    return WILDCARD if raw is None else raw


def split_list(raw: Union[str, Iterable[str]]) -> List[str]:
    """Split a comma-delimited config value into trimmed, non-empty items

    Blank entries of a string are skipped; a list must hold non-empty strings only.
    """
    if isinstance(raw, str):
        return [item.strip() for item in raw.split(',') if item.strip()]
    if not isinstance(raw, (list, tuple)):
        raise InvalidKeyword(f"Invalid keyword list: {raw!r}")

    for item in raw:
        if not isinstance(item, str) or not item.strip():
            raise InvalidKeyword(f"Invalid keyword list item {item!r} in {raw!r}")
    return [item.strip() for item in raw]
