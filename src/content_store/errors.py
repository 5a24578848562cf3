"""
Error types for content store operations.

All errors are explicit and never silent.
"""


class ContentStoreError(Exception):
    """Base exception for all content store errors."""
    pass


class ObjectNotFoundError(ContentStoreError):
    """Raised when a requested object does not exist."""

    def __init__(self, object_hash: str):
        self.object_hash = object_hash
        super().__init__(f"Object not found: {object_hash}")


class ObjectCorruptedError(ContentStoreError):
    """Raised when an object's content does not match its hash."""

    def __init__(self, object_hash: str, expected: str, actual: str):
        self.object_hash = object_hash
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Object corrupted: {object_hash}\n"
            f"Expected hash: {expected}\n"
            f"Actual hash: {actual}"
        )


class InvalidObjectError(ContentStoreError):
    """Raised when an object is malformed or invalid."""

    def __init__(self, reason: str, object_hash: str = None):
        self.reason = reason
        self.object_hash = object_hash
        msg = f"Invalid object: {reason}"
        if object_hash:
            msg += f" (hash: {object_hash})"
        super().__init__(msg)


class ReferenceMissingError(ContentStoreError):
    """Raised when a referenced object is missing."""

    def __init__(self, referencing_hash: str, missing_hash: str):
        self.referencing_hash = referencing_hash
        self.missing_hash = missing_hash
        super().__init__(
            f"Object {referencing_hash} references missing object {missing_hash}"
        )


class CorruptDataError(ContentStoreError):
    """Raised when compressed data has a bad header, checksum or is truncated."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Corrupt compressed data: {reason}")


class SizeLimitExceededError(ContentStoreError):
    """
    Raised when decompressed output would exceed a caller-supplied bound.

    Kept apart from CorruptDataError so callers can tell oversized input
    from malformed input.
    """

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Decompressed data exceeds {limit} bytes limit")


class ValidationError(ContentStoreError):
    """Raised when a value object is constructed from invalid input."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class StorageError(ContentStoreError):
    """Raised when filesystem operations fail."""

    def __init__(self, operation: str, path: str, cause: Exception = None):
        self.operation = operation
        self.path = path
        self.cause = cause
        msg = f"Storage error during {operation}: {path}"
        if cause:
            msg += f"\nCause: {cause}"
        super().__init__(msg)
