"""
In-memory object storage.

Same contract as FilesystemObjectStore, backed by a dict. Objects are
still held compressed so reads exercise the bounded decompression path.
"""

import logging

from ..compression import LEVEL_DEFAULT, compress, decompress_with_limit
from ..errors import ObjectCorruptedError, ObjectNotFoundError
from ..integrity.hashing import compute_hash
from .object_store import DEFAULT_MAX_OBJECT_SIZE

logger = logging.getLogger(__name__)


class InMemoryObjectStore:
    """Dict-backed content-addressed object store."""

    def __init__(
        self,
        compression_level: int = LEVEL_DEFAULT,
        max_object_size: int = DEFAULT_MAX_OBJECT_SIZE,
    ):
        self.compression_level = compression_level
        self.max_object_size = max_object_size
        self._objects: dict[str, bytes] = {}

    def put(self, data: bytes) -> str:
        obj_hash = compute_hash(data)
        if obj_hash not in self._objects:
            self._objects[obj_hash] = compress(data, self.compression_level)
            logger.debug("Stored object %s (%d bytes)", obj_hash, len(data))
        return obj_hash

    def get(self, obj_hash: str) -> bytes:
        if obj_hash not in self._objects:
            raise ObjectNotFoundError(obj_hash)

        data = decompress_with_limit(self._objects[obj_hash], self.max_object_size)
        actual_hash = compute_hash(data)
        if actual_hash != obj_hash:
            raise ObjectCorruptedError(obj_hash, obj_hash, actual_hash)
        return data

    def exists(self, obj_hash: str) -> bool:
        return obj_hash in self._objects

    def list_all_objects(self) -> list[str]:
        return sorted(self._objects)

    def get_stats(self) -> dict:
        return {
            'total_objects': len(self._objects),
            'total_size_bytes': sum(len(v) for v in self._objects.values()),
        }

    def __len__(self) -> int:
        return len(self._objects)

    def __repr__(self) -> str:
        return f"InMemoryObjectStore(objects={len(self._objects)})"
