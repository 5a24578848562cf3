"""
Storage collaborator interface.

The object model does not know how objects are persisted. Any backend
that stores canonical object bytes keyed by their SHA-256 digest can be
plugged into the engine.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ObjectStorage(Protocol):
    """Protocol for object storage backends.

    Implementations store canonical object bytes and address them by
    the digest of those bytes, so the digest returned by put() is the
    same digest the object model computes.
    """

    def put(self, data: bytes) -> str:
        """Store canonical bytes and return their digest.

        Storing the same bytes twice is a no-op returning the same digest.
        """
        ...

    def get(self, digest: str) -> bytes:
        """Return the canonical bytes stored under digest.

        Raises:
            ObjectNotFoundError: If nothing is stored under digest
            ObjectCorruptedError: If stored bytes no longer match digest
        """
        ...

    def exists(self, digest: str) -> bool:
        """Check if an object is stored under digest."""
        ...

    def list_all_objects(self) -> list[str]:
        """List every stored digest."""
        ...

    def get_stats(self) -> dict:
        """Return at least total_objects and total_size_bytes."""
        ...
