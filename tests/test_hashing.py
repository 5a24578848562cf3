"""
Test the SHA-256 digest engine.
"""

import io

import pytest

from content_store import StorageError
from content_store.integrity.hashing import (
    CHUNK_SIZE,
    HASH_HEX_LENGTH,
    Hasher,
    compute_file_hash,
    compute_hash,
    compute_str_hash,
    compute_stream_hash,
    get_hash_prefix,
    is_valid_hash,
    verify_file_hash,
    verify_hash,
)

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
HELLO_WORLD_SHA256 = "b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9"


class _CountingStream(io.BytesIO):
    """BytesIO that records the size of every read request."""

    def __init__(self, data: bytes):
        super().__init__(data)
        self.requests = []

    def read(self, size=-1):
        self.requests.append(size)
        return super().read(size)


class _FailingStream:
    def read(self, size=-1):
        raise OSError("disk on fire")


class TestKnownVectors:

    def test_empty_input(self):
        assert compute_hash(b"") == EMPTY_SHA256

    def test_hello_world(self):
        assert compute_hash(b"hello world") == HELLO_WORLD_SHA256
        assert len(compute_hash(b"hello world")) == HASH_HEX_LENGTH

    def test_str_hash_matches_bytes(self):
        assert compute_str_hash("hello") == compute_hash(b"hello")

    def test_hasher_object_matches_functions(self):
        hasher = Hasher()
        assert hasher.hash_bytes(b"hello world") == HELLO_WORLD_SHA256
        assert hasher.hash_str("hello world") == HELLO_WORLD_SHA256


class TestStreamHashing:

    def test_stream_matches_in_memory(self):
        data = bytes(range(256)) * 100
        assert compute_stream_hash(io.BytesIO(data)) == compute_hash(data)

    def test_stream_reads_fixed_chunks(self):
        """Large input is read 8 KiB at a time."""
        stream = _CountingStream(b"a" * (CHUNK_SIZE * 3 + 5))

        compute_stream_hash(stream)

        assert CHUNK_SIZE == 8192
        assert set(stream.requests) == {CHUNK_SIZE}
        assert len(stream.requests) == 5  # 4 data reads + EOF

    def test_empty_stream(self):
        assert compute_stream_hash(io.BytesIO(b"")) == EMPTY_SHA256

    def test_stream_with_prefix(self):
        data = b"x" * (CHUNK_SIZE + 1)
        digest = compute_stream_hash(io.BytesIO(data), prefix=b"blob 8193\0")

        assert digest == compute_hash(b"blob 8193\0" + data)

    def test_stream_error_propagates(self):
        with pytest.raises(OSError):
            compute_stream_hash(_FailingStream())

    def test_file_hash(self, tmp_path):
        path = tmp_path / "greeting.txt"
        path.write_bytes(b"hello world")

        assert compute_file_hash(path) == HELLO_WORLD_SHA256
        assert Hasher().hash_file(str(path)) == HELLO_WORLD_SHA256

    def test_missing_file_raises_storage_error(self, tmp_path):
        with pytest.raises(StorageError) as exc_info:
            compute_file_hash(tmp_path / "nope")

        assert exc_info.value.operation == "hash_file"
        assert isinstance(exc_info.value.cause, OSError)


class TestVerify:

    def test_verify_matching(self):
        data = b"test data"
        assert verify_hash(data, compute_hash(data))

    def test_verify_mismatch(self):
        assert not verify_hash(b"different data", compute_hash(b"test data"))

    def test_verify_case_insensitive(self):
        data = b"test"
        assert verify_hash(data, compute_hash(data).upper())
        assert Hasher().verify(data, compute_hash(data).upper())

    def test_verify_file(self, tmp_path):
        path = tmp_path / "f"
        path.write_bytes(b"hello world")

        assert verify_file_hash(path, HELLO_WORLD_SHA256.upper())
        assert not verify_file_hash(path, EMPTY_SHA256)


class TestHashHelpers:

    def test_is_valid_hash(self):
        assert is_valid_hash(EMPTY_SHA256)
        assert not is_valid_hash(EMPTY_SHA256.upper())
        assert not is_valid_hash(EMPTY_SHA256[:-1])
        assert not is_valid_hash("g" * 64)
        assert not is_valid_hash("../" + "a" * 61)

    def test_get_hash_prefix(self):
        assert get_hash_prefix(EMPTY_SHA256) == "e3"
        assert get_hash_prefix(EMPTY_SHA256, 4) == "e3b0"

    def test_get_hash_prefix_too_short(self):
        with pytest.raises(ValueError):
            get_hash_prefix("a", 2)
