"""
Content Store Engine.

Main entry point coordinating the object model and storage.
"""

import logging
import stat
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .compression import LEVEL_DEFAULT
from .errors import (
    ContentStoreError,
    InvalidObjectError,
    StorageError,
)
from .integrity.canonical import BLOB, COMMIT, TREE, decode_object
from .integrity.hashing import Hasher
from .integrity.verification import (
    verify_commit_recursive,
    verify_references_exist,
)
from .model.blob import Blob, blob_file_digest
from .model.commit import Commit, utc_timestamp
from .model.names import RepositoryName, validate_entry_name
from .model.tree import Tree, TreeEntry
from .storage.base import ObjectStorage
from .storage.layout import StorageLayout
from .storage.object_store import DEFAULT_MAX_OBJECT_SIZE, FilesystemObjectStore

logger = logging.getLogger(__name__)


class ContentStoreEngine:
    """
    Main engine for content-addressed object operations.

    This is the primary interface for:
    - Storing objects (blobs, trees, commits)
    - Retrieving and verifying objects
    - Snapshotting directories and walking commit history
    """

    def __init__(
        self,
        store_path: Optional[str | Path] = None,
        compression_level: int = LEVEL_DEFAULT,
        max_object_size: int = DEFAULT_MAX_OBJECT_SIZE,
        storage: Optional[ObjectStorage] = None,
    ):
        """
        Initialize content store.

        Args:
            store_path: filesystem path for object storage
            compression_level: zlib level for stored objects
            max_object_size: largest decompressed object accepted on read
            storage: alternative backend; replaces the filesystem store
        """
        if storage is None and store_path is None:
            raise ValueError("Either store_path or storage is required")

        self.hasher = Hasher()

        if storage is not None:
            self.store_path = None
            self.layout = None
            self.storage = storage
        else:
            self.store_path = Path(store_path).resolve()
            self.layout = StorageLayout(self.store_path)
            self.storage = FilesystemObjectStore(
                self.layout,
                compression_level=compression_level,
                max_object_size=max_object_size,
            )

    @classmethod
    def for_repository(
        cls,
        root: str | Path,
        name: str | RepositoryName,
        **kwargs,
    ) -> 'ContentStoreEngine':
        """
        Create an engine whose store lives in a per-repository directory.

        Raises ValidationError if name is not a valid repository name.
        """
        if not isinstance(name, RepositoryName):
            name = RepositoryName(name)
        return cls(Path(root) / name.value, **kwargs)

    def initialize(self) -> None:
        """
        Initialize the store.

        Creates necessary directory structure.
        Safe to call multiple times (idempotent).
        """
        if self.layout is not None:
            self.layout.initialize()
        logger.info("Content store ready: %r", self.storage)

    # ========== Object Storage ==========

    def put_blob(self, content: bytes | Blob) -> str:
        """
        Store a blob and return its hash.

        Args:
            content: raw file content, or an existing Blob

        Returns:
            str: content hash of stored blob
        """
        blob = content if isinstance(content, Blob) else Blob(content)
        return self._put(blob.encode(), blob.digest())

    def put_file(self, path: str | Path) -> str:
        """Store a file's content as a blob and return its hash."""
        path = Path(path)
        try:
            content = path.read_bytes()
        except OSError as e:
            raise StorageError("read_file", str(path), e)
        return self.put_blob(content)

    def get_blob(self, blob_hash: str) -> Blob:
        """Retrieve a blob by hash."""
        return Blob.with_digest(self._load(blob_hash, BLOB), blob_hash)

    def put_tree(self, tree: Tree) -> str:
        """
        Store a tree and return its hash.

        Referenced objects are not required to exist yet; use
        verify_commit() to check completeness of a snapshot.
        """
        return self._put(tree.encode(), tree.digest())

    def get_tree(self, tree_hash: str) -> Tree:
        """Retrieve a tree by hash."""
        return Tree.from_payload(self._load(tree_hash, TREE), tree_hash)

    def put_commit(self, commit: Commit) -> str:
        """Store a commit and return its hash."""
        return self._put(commit.encode(), commit.digest())

    def get_commit(self, commit_hash: str) -> Commit:
        """Retrieve a commit by hash."""
        return Commit.from_payload(self._load(commit_hash, COMMIT), commit_hash)

    def commit(
        self,
        tree_hash: str,
        message: str,
        author_name: str,
        author_email: str,
        parent: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> str:
        """
        Record a new commit of an already stored tree.

        Unlike put_commit(), the tree and parent must already be in the
        store. timestamp defaults to the current UTC time.

        Raises ReferenceMissingError if the tree or parent is missing.
        """
        refs = {tree_hash}
        if parent:
            refs.add(parent)

        commit = Commit(
            tree_digest=tree_hash,
            parent_digest=parent,
            message=message,
            author_name=author_name,
            author_email=author_email,
            timestamp=timestamp or utc_timestamp(),
        )
        verify_references_exist(commit.digest(), refs, self.storage.exists)

        commit_hash = self.put_commit(commit)
        logger.info("Committed %s (tree %s, parent %s)", commit_hash, tree_hash, parent)
        return commit_hash

    def write_tree(self, directory: str | Path, ignore: Iterable[str] = ()) -> str:
        """
        Snapshot a directory on disk and return the hash of its tree.

        Regular files become blobs (executable ones with mode 100755),
        sub-directories become sub-trees. Symlinks and other special
        files are skipped, as are entries whose name is in ignore.
        Files whose blob is already stored are only hashed, not read
        into memory.

        Raises ValidationError for a name that cannot be a tree entry,
        such as one that is not valid UTF-8.
        """
        directory = Path(directory)
        ignore = frozenset(ignore)

        try:
            children = sorted(directory.iterdir())
        except OSError as e:
            raise StorageError("list_directory", str(directory), e)

        tree = Tree()
        for child in children:
            if child.name in ignore:
                continue
            validate_entry_name(child.name)

            try:
                mode = child.lstat().st_mode
            except OSError as e:
                raise StorageError("stat", str(child), e)

            if stat.S_ISDIR(mode):
                tree.add_entry(TreeEntry.directory(child.name, self.write_tree(child, ignore)))
            elif stat.S_ISREG(mode):
                blob_hash = self.hash_blob_file(child)
                if not self.storage.exists(blob_hash):
                    blob_hash = self.put_file(child)
                if mode & 0o111:
                    tree.add_entry(TreeEntry.executable(child.name, blob_hash))
                else:
                    tree.add_entry(TreeEntry.file(child.name, blob_hash))
            else:
                logger.debug("Skipping non-regular file %s", child)

        return self.put_tree(tree)

    def has_object(self, obj_hash: str) -> bool:
        """Check if an object exists."""
        return self.storage.exists(obj_hash)

    def get_object_type(self, obj_hash: str) -> str:
        """Return 'blob', 'tree' or 'commit' for a stored object."""
        obj_type, _ = decode_object(self.storage.get(obj_hash))
        return obj_type

    def get_object_raw(self, obj_hash: str) -> bytes:
        """Get canonical object bytes (header + payload)."""
        return self.storage.get(obj_hash)

    def hash_file(self, path: str | Path) -> str:
        """Hash a file's raw content (no object header), streaming it from disk."""
        return self.hasher.hash_file(path)

    def hash_blob_file(self, path: str | Path) -> str:
        """Digest a file would have as a blob, streaming it from disk."""
        return blob_file_digest(path)

    # ========== History ==========

    def iter_history(self, commit_hash: str) -> Iterator[Tuple[str, Commit]]:
        """
        Walk the parent chain from commit_hash back to its root.

        Yields (hash, Commit) pairs, newest first.

        Raises InvalidObjectError if the chain loops back on itself.
        """
        seen = set()
        current = commit_hash

        while current:
            if current in seen:
                raise InvalidObjectError("Cycle in commit history", current)
            seen.add(current)

            commit = self.get_commit(current)
            yield current, commit
            current = commit.parent_digest

    def log(self, commit_hash: str, limit: Optional[int] = None) -> List[Commit]:
        """Return up to limit commits of history, newest first."""
        commits = []
        for _, commit in self.iter_history(commit_hash):
            if limit is not None and len(commits) >= limit:
                break
            commits.append(commit)
        return commits

    # ========== Integrity Verification ==========

    def verify_object(self, obj_hash: str) -> bool:
        """
        Verify an object's integrity.

        Returns True if valid.
        Raises ObjectCorruptedError, CorruptDataError or InvalidObjectError
        if the object is damaged.
        """
        decode_object(self.storage.get(obj_hash))
        return True

    def verify_commit(self, commit_hash: str) -> Dict[str, object]:
        """
        Verify a commit, its whole tree and all its ancestors.

        Returns dict with:
            - valid: bool
            - errors: list of error messages
        """
        is_valid, errors = verify_commit_recursive(
            commit_hash,
            load_func=self.storage.get,
            exists_func=self.storage.exists,
        )

        if not is_valid:
            logger.warning("Commit %s failed verification: %d error(s)", commit_hash, len(errors))

        return {
            'valid': is_valid,
            'errors': errors,
        }

    def detect_tampering(self) -> Dict[str, object]:
        """
        Detect tampering across all stored objects.

        Verifies that all objects' content matches their hashes.

        Returns dict with:
            - tampered: list of tampered object hashes
            - verified: count of verified objects
            - errors: list of errors encountered
        """
        result = {
            'tampered': [],
            'verified': 0,
            'errors': [],
        }

        for obj_hash in self.storage.list_all_objects():
            try:
                self.verify_object(obj_hash)
                result['verified'] += 1
            except ContentStoreError as e:
                result['tampered'].append(obj_hash)
                result['errors'].append(f"{obj_hash}: {e}")

        if result['tampered']:
            logger.warning("Detected %d tampered object(s)", len(result['tampered']))

        return result

    # ========== Statistics and Diagnostics ==========

    def list_all_objects(self) -> List[str]:
        """List all object hashes in store."""
        return self.storage.list_all_objects()

    def get_statistics(self) -> Dict[str, int]:
        """
        Get store statistics.

        Returns dict with total_objects and total_size_bytes (stored,
        compressed size).
        """
        return self.storage.get_stats()

    # ========== Internals ==========

    def _put(self, data: bytes, expected_hash: str) -> str:
        obj_hash = self.storage.put(data)
        if obj_hash != expected_hash:
            raise InvalidObjectError(
                f"Storage returned {obj_hash}, object digest is {expected_hash}"
            )
        return obj_hash

    def _load(self, obj_hash: str, expected_type: str) -> bytes:
        """Load an object and return its payload, checking its type."""
        obj_type, payload = decode_object(self.storage.get(obj_hash))
        if obj_type != expected_type:
            raise InvalidObjectError(
                f"Expected a {expected_type}, found a {obj_type}", obj_hash
            )
        return payload

    def __repr__(self) -> str:
        stats = self.get_statistics()
        return (
            f"ContentStoreEngine("
            f"storage={self.storage!r}, "
            f"objects={stats.get('total_objects', 0)})"
        )
