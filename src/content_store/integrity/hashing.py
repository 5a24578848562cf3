"""
Content-addressed hashing using SHA-256.

Provides deterministic digest computation over bytes, streams and files.
All functions are stateless and safe to call from multiple threads.
"""

import hashlib
import string
from pathlib import Path
from typing import BinaryIO

from ..errors import StorageError

HASH_LENGTH = 32
HASH_HEX_LENGTH = 64

# Files are hashed in fixed chunks so memory use does not grow with file size
CHUNK_SIZE = 8 * 1024

_HEX_DIGITS = frozenset(string.hexdigits.lower())


def compute_hash(data: bytes) -> str:
    """
    Compute hash of raw bytes.

    Returns 64-character lowercase hex-encoded SHA-256 digest.
    """
    return hashlib.sha256(data).hexdigest()


def compute_str_hash(text: str) -> str:
    """Compute hash of a string's UTF-8 encoding."""
    return compute_hash(text.encode('utf-8'))


def compute_stream_hash(
    stream: BinaryIO,
    chunk_size: int = CHUNK_SIZE,
    prefix: bytes = b'',
) -> str:
    """
    Compute hash of data read incrementally from a binary stream.

    Reads chunk_size bytes at a time until EOF. Produces the same digest
    as compute_hash(prefix + full content).

    OSError raised by the stream propagates to the caller.
    """
    hasher = hashlib.sha256(prefix)
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        hasher.update(chunk)
    return hasher.hexdigest()


def compute_file_hash(path: str | Path) -> str:
    """
    Compute hash of a file's content without loading it into memory.

    Raises StorageError if the file cannot be opened or read.
    """
    path = Path(path)
    try:
        with path.open('rb') as f:
            return compute_stream_hash(f)
    except OSError as e:
        raise StorageError("hash_file", str(path), e)


def verify_hash(data: bytes, expected_hash: str) -> bool:
    """
    Verify that data matches expected hash.

    Comparison is case-insensitive. Not constant-time; intended for
    integrity checks only.

    Returns True if match, False otherwise.
    """
    return compute_hash(data) == expected_hash.lower()


def verify_file_hash(path: str | Path, expected_hash: str) -> bool:
    """Verify that a file's content matches expected hash."""
    return compute_file_hash(path) == expected_hash.lower()


def is_valid_hash(hash_str: str) -> bool:
    """Check that a string is a well-formed lowercase hex digest."""
    return (
        isinstance(hash_str, str)
        and len(hash_str) == HASH_HEX_LENGTH
        and all(c in _HEX_DIGITS for c in hash_str)
    )


def get_hash_prefix(hash_str: str, prefix_length: int = 2) -> str:
    """
    Get prefix of hash for directory sharding.

    Default is 2 characters, creating 256 subdirectories.
    """
    if len(hash_str) < prefix_length:
        raise ValueError(f"Hash too short for prefix length {prefix_length}")
    return hash_str[:prefix_length]


class Hasher:
    """
    Stateless digest engine.

    Thin object wrapper around the module functions, for collaborators
    that take the digest engine as a dependency.
    """

    def hash_bytes(self, data: bytes) -> str:
        return compute_hash(data)

    def hash_str(self, text: str) -> str:
        return compute_str_hash(text)

    def hash_stream(self, stream: BinaryIO) -> str:
        return compute_stream_hash(stream)

    def hash_file(self, path: str | Path) -> str:
        return compute_file_hash(path)

    def verify(self, data: bytes, expected_hash: str) -> bool:
        return verify_hash(data, expected_hash)

    def verify_file(self, path: str | Path, expected_hash: str) -> bool:
        return verify_file_hash(path, expected_hash)

    def __repr__(self) -> str:
        return "Hasher(sha256)"
