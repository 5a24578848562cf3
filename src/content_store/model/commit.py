"""
Commit object model.

Commits record a snapshot of a tree plus authorship, linked to their
parent commit by digest.
"""

from datetime import datetime, timezone
from typing import List, Optional

from ..errors import InvalidObjectError, ValidationError
from ..integrity.canonical import (
    COMMIT,
    commit_payload,
    encode_object,
    parse_commit_payload,
)
from ..integrity.hashing import compute_hash
from .cache import DigestCache


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC timestamp, e.g. 2024-01-15T10:30:00Z."""
    return datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


class Commit:
    """
    Immutable commit object.

    A commit references:
    - A tree digest (the snapshot content)
    - Optional parent commit digest
    - Message, author name, author email and timestamp

    Commits form a singly linked history through parent references.
    A commit without a parent is a root snapshot. Nothing here prevents
    cycles; callers must not build them.

    Header fields are validated on construction: none may contain a
    newline, and author name and email may not contain angle brackets.
    """

    def __init__(
        self,
        tree_digest: str,
        parent_digest: Optional[str],
        message: str,
        author_name: str,
        author_email: str,
        timestamp: str,
    ):
        _check_header_fields(tree_digest, parent_digest, author_name, author_email, timestamp)

        self._tree_digest = tree_digest
        self._parent_digest = parent_digest or None
        self._message = message
        self._author_name = author_name
        self._author_email = author_email
        self._timestamp = timestamp
        self._digest = DigestCache()

    @classmethod
    def initial(
        cls,
        tree_digest: str,
        message: str,
        author_name: str,
        author_email: str,
        timestamp: str,
    ) -> 'Commit':
        """Create a root commit (no parent)."""
        return cls(tree_digest, None, message, author_name, author_email, timestamp)

    @classmethod
    def from_payload(cls, payload: bytes, digest: Optional[str] = None) -> 'Commit':
        """
        Rebuild a commit from its canonical payload.

        If digest is given it is trusted and cached as-is.
        """
        try:
            commit = cls(**parse_commit_payload(payload))
        except ValidationError as e:
            raise InvalidObjectError(f"Bad commit header: {e}")
        if digest:
            commit._digest = DigestCache(digest)
        return commit

    @property
    def tree_digest(self) -> str:
        return self._tree_digest

    @property
    def parent_digest(self) -> Optional[str]:
        return self._parent_digest

    @property
    def message(self) -> str:
        return self._message

    @property
    def author_name(self) -> str:
        return self._author_name

    @property
    def author_email(self) -> str:
        return self._author_email

    @property
    def timestamp(self) -> str:
        return self._timestamp

    def is_initial(self) -> bool:
        """True if this commit has no parent."""
        return self._parent_digest is None

    def payload(self) -> bytes:
        return commit_payload(
            self._tree_digest,
            self._parent_digest,
            self._message,
            self._author_name,
            self._author_email,
            self._timestamp,
        )

    def encode(self) -> bytes:
        """Canonical bytes this commit is hashed over."""
        return encode_object(COMMIT, self.payload())

    def digest(self) -> str:
        """Content hash of this commit, computed once and cached."""
        return self._digest.get(lambda: compute_hash(self.encode()))

    def cached_digest(self) -> Optional[str]:
        return self._digest.value

    def get_all_references(self) -> List[str]:
        """
        Get all object hashes referenced by this commit.

        Returns the tree hash plus parent if present.
        """
        refs = [self._tree_digest]
        if self._parent_digest:
            refs.append(self._parent_digest)
        return refs

    def to_dict(self) -> dict:
        """
        Convert commit to an external dictionary representation.

        parent_digest is None for root commits. The hash is only included
        once it has been computed.
        """
        obj = {
            'tree_digest': self._tree_digest,
            'parent_digest': self._parent_digest,
            'message': self._message,
            'author_name': self._author_name,
            'author_email': self._author_email,
            'timestamp': self._timestamp,
        }

        if self._digest.is_computed():
            obj['hash'] = self._digest.value

        return obj

    @classmethod
    def from_dict(cls, data: dict) -> 'Commit':
        """
        Reconstruct commit from dictionary.

        Raises ValueError if data is invalid.
        """
        required = ('tree_digest', 'message', 'author_name', 'author_email', 'timestamp')
        missing = [k for k in required if k not in data]
        if missing:
            raise ValueError(f"Commit missing fields: {', '.join(missing)}")

        commit = cls(
            tree_digest=data['tree_digest'],
            parent_digest=data.get('parent_digest'),
            message=data['message'],
            author_name=data['author_name'],
            author_email=data['author_email'],
            timestamp=data['timestamp'],
        )
        if data.get('hash'):
            commit._digest = DigestCache(data['hash'])
        return commit

    def __repr__(self) -> str:
        hash_preview = self.digest()[:8]
        parent_preview = self._parent_digest[:8] + "..." if self._parent_digest else "None"
        return f"Commit(tree={self._tree_digest[:8]}..., parent={parent_preview}, hash={hash_preview}...)"


def _check_header_fields(tree_digest, parent_digest, author_name, author_email, timestamp):
    """
    Reject header values that would make the commit text ambiguous.

    Header fields are single lines, and the author name and email must
    not contain the angle brackets that delimit the email.
    """
    fields = {
        'tree_digest': tree_digest,
        'parent_digest': parent_digest or '',
        'author_name': author_name,
        'author_email': author_email,
        'timestamp': timestamp,
    }
    for field, value in fields.items():
        if '\n' in value:
            raise ValidationError(field, "cannot contain a newline")

    for field in ('author_name', 'author_email'):
        if '<' in fields[field] or '>' in fields[field]:
            raise ValidationError(field, "cannot contain '<' or '>'")
