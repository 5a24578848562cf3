"""
Content Store - content-addressed object model for file history.

This package provides:
- SHA-256 digests over bytes, streams and files
- Blob, Tree and Commit objects with deterministic canonical encoding
- zlib compression with bounded decompression
- Filesystem and in-memory object storage keyed by digest

Main entry point:
    ContentStoreEngine - primary interface for all operations

Example usage:
    from content_store import ContentStoreEngine

    engine = ContentStoreEngine('/path/to/store')
    engine.initialize()

    tree_hash = engine.write_tree('/path/to/project', ignore=['.git'])
    commit_hash = engine.commit(tree_hash, 'Initial import', 'Jane', 'jane@example.com')

    result = engine.verify_commit(commit_hash)
"""

from .engine import ContentStoreEngine
from .errors import (
    ContentStoreError,
    ObjectNotFoundError,
    ObjectCorruptedError,
    InvalidObjectError,
    ReferenceMissingError,
    CorruptDataError,
    SizeLimitExceededError,
    ValidationError,
    StorageError,
)
from .model.blob import Blob
from .model.commit import Commit
from .model.names import RepositoryName
from .model.tree import Tree, TreeEntry

__version__ = '0.1.0'

__all__ = [
    # Main engine
    'ContentStoreEngine',

    # Errors
    'ContentStoreError',
    'ObjectNotFoundError',
    'ObjectCorruptedError',
    'InvalidObjectError',
    'ReferenceMissingError',
    'CorruptDataError',
    'SizeLimitExceededError',
    'ValidationError',
    'StorageError',

    # Models
    'Blob',
    'Commit',
    'RepositoryName',
    'Tree',
    'TreeEntry',
]
