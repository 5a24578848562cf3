"""
Filesystem layout for object storage.

Implements content-addressed storage with directory sharding.
"""

import logging
from pathlib import Path

from ..errors import StorageError
from ..integrity.hashing import get_hash_prefix, is_valid_hash

logger = logging.getLogger(__name__)


class StorageLayout:
    """
    Manages filesystem layout for content-addressed objects.

    Layout:
        store_root/
            objects/
                <prefix>/
                    <hash>       # zlib-compressed canonical object bytes
    """

    def __init__(self, store_root: str | Path):
        """Initialize storage layout at given root."""
        self.store_root = Path(store_root).resolve()
        self.objects_dir = self.store_root / "objects"

    def initialize(self) -> None:
        """
        Initialize storage directory structure.

        Idempotent - safe to call multiple times.
        """
        try:
            self.store_root.mkdir(parents=True, exist_ok=True)
            self.objects_dir.mkdir(exist_ok=True)
        except OSError as e:
            raise StorageError("initialize", str(self.store_root), e)
        logger.debug("Initialized object layout at %s", self.store_root)

    def get_object_path(self, obj_hash: str) -> Path:
        """
        Get filesystem path for an object by its hash.

        Uses 2-character prefix for directory sharding. Only well-formed
        digests are accepted, so a hash can never escape objects/.
        """
        if not is_valid_hash(obj_hash):
            raise ValueError(f"Not a valid object hash: {obj_hash!r}")
        prefix = get_hash_prefix(obj_hash, 2)
        return self.objects_dir / prefix / obj_hash

    def ensure_object_directory(self, obj_hash: str) -> None:
        """Ensure the directory for an object exists."""
        prefix_dir = self.get_object_path(obj_hash).parent
        try:
            prefix_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError("mkdir", str(prefix_dir), e)

    def list_all_objects(self) -> list[str]:
        """
        List all object hashes in the store.

        Scans all prefix directories. Leftover temp files are skipped.
        """
        objects = []

        if not self.objects_dir.exists():
            return objects

        try:
            for prefix_dir in self.objects_dir.iterdir():
                if not prefix_dir.is_dir():
                    continue

                for obj_file in prefix_dir.iterdir():
                    if obj_file.is_file() and is_valid_hash(obj_file.name):
                        objects.append(obj_file.name)

        except OSError as e:
            raise StorageError("list_objects", str(self.objects_dir), e)

        return sorted(objects)

    def object_exists(self, obj_hash: str) -> bool:
        """Check if an object exists in storage."""
        if not is_valid_hash(obj_hash):
            return False
        return self.get_object_path(obj_hash).exists()

    def get_storage_stats(self) -> dict:
        """
        Get storage statistics.

        Returns dict with:
        - total_objects: number of objects
        - total_size_bytes: total compressed size on disk in bytes
        """
        stats = {
            'total_objects': 0,
            'total_size_bytes': 0,
        }

        for obj_hash in self.list_all_objects():
            obj_path = self.get_object_path(obj_hash)
            try:
                size = obj_path.stat().st_size
            except OSError as e:
                raise StorageError("stat", str(obj_path), e)
            stats['total_objects'] += 1
            stats['total_size_bytes'] += size

        return stats
