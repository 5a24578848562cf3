"""
Test tamper detection.

Verifies that tampering with stored objects is detected.
"""

import pytest
import tempfile

from content_store import (
    Commit,
    ContentStoreEngine,
    ContentStoreError,
    CorruptDataError,
    InvalidObjectError,
    ObjectCorruptedError,
    ObjectNotFoundError,
    SizeLimitExceededError,
    Tree,
    TreeEntry,
)
from content_store.compression import compress
from content_store.integrity.hashing import compute_hash
from content_store.integrity.verification import (
    extract_references,
    verify_object_integrity,
)


class TestTamperDetection:
    """Test detection of tampered objects."""

    @pytest.fixture
    def store(self):
        """Create a temporary store for testing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            engine = ContentStoreEngine(tmpdir)
            engine.initialize()
            yield engine

    def test_detect_modified_content(self, store):
        """Detect when object content is replaced by other valid content."""
        blob_hash = store.put_blob(b"original content")

        obj_path = store.layout.get_object_path(blob_hash)
        obj_path.write_bytes(compress(b"blob 16\0tampered content"))

        with pytest.raises(ObjectCorruptedError) as exc_info:
            store.verify_object(blob_hash)

        assert exc_info.value.object_hash == blob_hash

    def test_detect_corrupted_container(self, store):
        """Detect when object file is no longer a zlib container."""
        blob_hash = store.put_blob(b"original content")

        store.layout.get_object_path(blob_hash).write_bytes(b"{ invalid }")

        with pytest.raises(CorruptDataError):
            store.get_blob(blob_hash)

    def test_detect_deleted_object(self, store):
        """Detect when object file is deleted."""
        blob_hash = store.put_blob(b"data")

        store.layout.get_object_path(blob_hash).unlink()

        with pytest.raises(ObjectNotFoundError):
            store.get_blob(blob_hash)

    def test_detect_type_change(self, store):
        """A blob re-labelled as a tree no longer matches its hash."""
        blob_hash = store.put_blob(b"data")

        store.layout.get_object_path(blob_hash).write_bytes(compress(b"tree 4\0data"))

        with pytest.raises(ObjectCorruptedError):
            store.verify_object(blob_hash)

    def test_detect_tree_reference_tampering(self, store):
        """Pointing a tree entry at another object is detected."""
        blob_hash = store.put_blob(b"file")
        tree = Tree.with_entries([TreeEntry.file("f", blob_hash)])
        tree_hash = store.put_tree(tree)

        forged = Tree.with_entries([TreeEntry.file("f", "a" * 64)])
        store.layout.get_object_path(tree_hash).write_bytes(compress(forged.encode()))

        with pytest.raises(ObjectCorruptedError):
            store.get_tree(tree_hash)

    def test_detect_tamper_in_store_scan(self, store):
        """Detect tampering via full store scan."""
        store.put_blob(b"one")
        blob2 = store.put_blob(b"two")
        store.put_blob(b"three")

        store.layout.get_object_path(blob2).write_bytes(compress(b"blob 3\0owt"))

        result = store.detect_tampering()

        assert result['tampered'] == [blob2]
        assert result['verified'] == 2
        assert len(result['errors']) == 1

    def test_no_false_positives(self, store):
        """Valid objects are not flagged as tampered."""
        store.put_blob(b"one")
        store.put_blob(b"two")

        result = store.detect_tampering()

        assert len(result['tampered']) == 0
        assert result['verified'] == 2

    def test_put_repairs_damaged_object(self, store):
        """Re-storing an object overwrites a damaged copy."""
        blob_hash = store.put_blob(b"repair me")
        obj_path = store.layout.get_object_path(blob_hash)
        obj_path.write_bytes(b"garbage")

        assert store.put_blob(b"repair me") == blob_hash
        assert store.get_blob(blob_hash).content == b"repair me"


class TestRealWorldTamperingScenarios:
    """Test realistic tampering scenarios."""

    @pytest.fixture
    def store(self):
        """Create a temporary store for testing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            engine = ContentStoreEngine(tmpdir)
            engine.initialize()
            yield engine

    def test_detect_bitflip(self, store):
        """Detect single bit flip in stored data."""
        blob_hash = store.put_blob(b"some reasonably long content " * 20)

        obj_path = store.layout.get_object_path(blob_hash)
        byte_array = bytearray(obj_path.read_bytes())
        byte_array[len(byte_array) // 2] ^= 0x01
        obj_path.write_bytes(bytes(byte_array))

        with pytest.raises(ContentStoreError):
            store.verify_object(blob_hash)

    def test_detect_partial_write(self, store):
        """Detect truncated/partial write."""
        blob_hash = store.put_blob(b"partial " * 100)

        obj_path = store.layout.get_object_path(blob_hash)
        data = obj_path.read_bytes()
        obj_path.write_bytes(data[:len(data) // 2])

        with pytest.raises(CorruptDataError):
            store.verify_object(blob_hash)

    def test_detect_appended_data(self, store):
        """Detect extra data appended to file."""
        blob_hash = store.put_blob(b"data")

        obj_path = store.layout.get_object_path(blob_hash)
        with open(obj_path, 'ab') as f:
            f.write(b'\n\nextra data here')

        with pytest.raises(CorruptDataError):
            store.verify_object(blob_hash)

    def test_decompression_bomb_is_refused(self):
        """An object that inflates past max_object_size is never materialized."""
        with tempfile.TemporaryDirectory() as tmpdir:
            engine = ContentStoreEngine(tmpdir, max_object_size=1024)
            engine.initialize()

            small_hash = engine.put_blob(b"x" * 100)
            assert engine.get_blob(small_hash).size() == 100

            big_hash = engine.put_blob(bytes(10_000))
            with pytest.raises(SizeLimitExceededError):
                engine.get_blob(big_hash)

    def test_header_length_mismatch(self, store):
        """Stored bytes that hash correctly but lie about their length are invalid."""
        forged = b"blob 99\0short"
        obj_hash = store.storage.put(forged)

        with pytest.raises(InvalidObjectError):
            store.verify_object(obj_hash)


class TestVerificationHelpers:
    """Direct checks of the verification building blocks."""

    def test_verify_object_integrity(self):
        data = b"blob 1\0x"

        verify_object_integrity(data, compute_hash(data))
        with pytest.raises(ObjectCorruptedError):
            verify_object_integrity(data, "0" * 64)

    def test_extract_tree_references(self):
        tree = Tree.with_entries([
            TreeEntry.file("f", "1" * 64),
            TreeEntry.directory("d", "2" * 64),
        ])

        refs = extract_references("tree", tree.payload())

        assert refs == [("2" * 64, "tree"), ("1" * 64, "blob")]

    def test_extract_commit_references(self):
        commit = Commit("3" * 64, "4" * 64, "m", "A", "a@x", "ts")

        assert extract_references("commit", commit.payload()) == [
            ("3" * 64, "tree"),
            ("4" * 64, "commit"),
        ]
        assert extract_references("blob", b"anything") == []

    def test_extract_references_unknown_mode(self):
        with pytest.raises(InvalidObjectError):
            extract_references("tree", b"120000 link\0" + b"5" * 64)
