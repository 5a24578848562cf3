"""
Blob object model.

Blobs store raw file content, content-addressed by hash.
"""

import base64
import binascii
import os
from pathlib import Path
from typing import Optional

from ..errors import StorageError
from ..integrity.canonical import BLOB, blob_payload, encode_object, object_header
from ..integrity.hashing import compute_hash, compute_stream_hash
from .cache import DigestCache


class Blob:
    """
    Immutable blob object containing raw data.

    Blobs are leaf objects - they contain no references and carry no
    name, path or permission metadata. Two blobs with equal content have
    equal digests.
    """

    def __init__(self, content: bytes):
        """
        Create a blob from raw bytes.

        The digest is computed on first access.
        """
        self._content = bytes(content)
        self._digest = DigestCache()

    @classmethod
    def with_digest(cls, content: bytes, digest: str) -> 'Blob':
        """
        Create a blob whose digest is already known, e.g. read back from storage.

        The digest is trusted as given; no verification is performed.
        """
        blob = cls(content)
        blob._digest = DigestCache(digest)
        return blob

    @property
    def content(self) -> bytes:
        return self._content

    def size(self) -> int:
        """Get size of blob data in bytes."""
        return len(self._content)

    def encode(self) -> bytes:
        """Canonical bytes this blob is hashed over."""
        return encode_object(BLOB, blob_payload(self._content))

    def digest(self) -> str:
        """Content hash of this blob, computed once and cached."""
        return self._digest.get(lambda: compute_hash(self.encode()))

    def cached_digest(self) -> Optional[str]:
        """Digest if already computed, else None."""
        return self._digest.value

    def is_text(self) -> bool:
        """Heuristic: content is text if it contains no NUL byte."""
        return b'\0' not in self._content

    def as_text(self) -> Optional[str]:
        """Decode content as UTF-8, or None if it is not valid UTF-8."""
        try:
            return self._content.decode('utf-8')
        except UnicodeDecodeError:
            return None

    def to_dict(self) -> dict:
        """
        Convert blob to an external dictionary representation.

        The hash is only included once it has been computed.
        """
        obj = {
            'content': base64.b64encode(self._content).decode('ascii'),
        }

        if self._digest.is_computed():
            obj['hash'] = self._digest.value

        return obj

    @classmethod
    def from_dict(cls, data: dict) -> 'Blob':
        """
        Reconstruct blob from dictionary.

        Raises ValueError if data is invalid.
        """
        if 'content' not in data:
            raise ValueError("Blob missing content field")

        try:
            content = base64.b64decode(data['content'], validate=True)
        except (binascii.Error, TypeError) as e:
            raise ValueError(f"Failed to decode blob content: {e}")

        if data.get('hash'):
            return cls.with_digest(content, data['hash'])
        return cls(content)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Blob):
            return NotImplemented
        return self._content == other._content

    def __hash__(self) -> int:
        return hash(self._content)

    def __repr__(self) -> str:
        hash_preview = self.digest()[:8]
        return f"Blob(size={self.size()}, hash={hash_preview}...)"


def blob_file_digest(path: str | Path) -> str:
    """
    Digest of a file's content as a blob, without loading it into memory.

    Equal to Blob(path.read_bytes()).digest().

    Raises StorageError if the file cannot be opened or read.
    """
    path = Path(path)
    try:
        with path.open('rb') as f:
            size = os.fstat(f.fileno()).st_size
            return compute_stream_hash(f, prefix=object_header(BLOB, size))
    except OSError as e:
        raise StorageError("hash_file", str(path), e)
