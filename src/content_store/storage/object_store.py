"""
Content-addressed object storage on the local filesystem.

Objects are stored as zlib-compressed canonical bytes, named by the
SHA-256 digest of the uncompressed bytes.
"""

import logging
import os
import tempfile
from pathlib import Path

from ..compression import LEVEL_DEFAULT, compress, decompress_with_limit
from ..errors import (
    CorruptDataError,
    ObjectCorruptedError,
    ObjectNotFoundError,
    SizeLimitExceededError,
    StorageError,
)
from ..integrity.hashing import compute_hash
from .layout import StorageLayout

logger = logging.getLogger(__name__)

# Upper bound on the decompressed size of any single stored object
DEFAULT_MAX_OBJECT_SIZE = 512 * 1024 * 1024


class FilesystemObjectStore:
    """
    Content-addressed object store with immutable objects.

    Objects are stored by their content hash.
    Once written, objects never change.
    """

    def __init__(
        self,
        layout: StorageLayout,
        compression_level: int = LEVEL_DEFAULT,
        max_object_size: int = DEFAULT_MAX_OBJECT_SIZE,
    ):
        """
        Initialize object store with given layout.

        Args:
            layout: filesystem layout to store objects under
            compression_level: zlib level used when writing objects
            max_object_size: largest decompressed object accepted on read
        """
        self.layout = layout
        self.compression_level = compression_level
        self.max_object_size = max_object_size

    def put(self, data: bytes) -> str:
        """
        Store canonical object bytes and return their hash.

        The object is stored immutably:
        - Hash is computed from the uncompressed bytes
        - Object is written atomically
        - If a valid object already exists under the hash, no action

        Returns the content hash.
        """
        obj_hash = compute_hash(data)
        obj_path = self.layout.get_object_path(obj_hash)

        if obj_path.exists():
            try:
                self.get(obj_hash)
                return obj_hash
            except (ObjectCorruptedError, CorruptDataError, SizeLimitExceededError) as e:
                logger.warning("Rewriting damaged object %s: %s", obj_hash, e)

        self.layout.ensure_object_directory(obj_hash)
        self._write_object_atomic(obj_path, compress(data, self.compression_level))
        logger.debug("Stored object %s (%d bytes)", obj_hash, len(data))

        return obj_hash

    def get(self, obj_hash: str) -> bytes:
        """
        Retrieve canonical object bytes by hash.

        Decompression is bounded by max_object_size and the result is
        checked against the hash before it is returned.

        Raises ObjectNotFoundError if object doesn't exist.
        Raises CorruptDataError if the stored container is damaged.
        Raises SizeLimitExceededError if it inflates past max_object_size.
        Raises ObjectCorruptedError if content does not match its hash.
        """
        if not self.layout.object_exists(obj_hash):
            raise ObjectNotFoundError(obj_hash)

        obj_path = self.layout.get_object_path(obj_hash)
        compressed = self._read_object_file(obj_path)

        try:
            data = decompress_with_limit(compressed, self.max_object_size)
        except (CorruptDataError, SizeLimitExceededError) as e:
            logger.warning("Unreadable object %s: %s", obj_hash, e)
            raise

        actual_hash = compute_hash(data)
        if actual_hash != obj_hash:
            logger.warning("Hash mismatch for object %s (got %s)", obj_hash, actual_hash)
            raise ObjectCorruptedError(obj_hash, obj_hash, actual_hash)

        return data

    def exists(self, obj_hash: str) -> bool:
        """Check if an object exists in the store."""
        return self.layout.object_exists(obj_hash)

    def list_all_objects(self) -> list[str]:
        """List all object hashes in the store."""
        return self.layout.list_all_objects()

    def get_stats(self) -> dict:
        """Get storage statistics."""
        return self.layout.get_storage_stats()

    def _read_object_file(self, path: Path) -> bytes:
        """Read object file contents."""
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageError("read_file", str(path), e)

    def _write_object_atomic(self, path: Path, data: bytes) -> None:
        """
        Write object file atomically.

        Uses temp file + rename for atomicity.
        """
        dir_path = path.parent
        temp_path = None
        try:
            fd, temp_path = tempfile.mkstemp(
                dir=str(dir_path),
                prefix='.tmp_',
            )

            # Buffered write loops until every byte is written
            with os.fdopen(fd, 'wb') as f:
                f.write(data)

            # Atomic replace (works cross-platform including Windows)
            os.replace(temp_path, path)
            temp_path = None

        except OSError as e:
            if temp_path is not None and os.path.exists(temp_path):
                os.unlink(temp_path)
            raise StorageError("write_file", str(path), e)

    def __repr__(self) -> str:
        return f"FilesystemObjectStore(root={self.layout.store_root})"
