"""
Integrity verification for objects and commit history.

Provides tamper detection and recursive verification.
"""

from typing import Callable, List, Set, Tuple

from ..errors import (
    ContentStoreError,
    InvalidObjectError,
    ObjectCorruptedError,
    ReferenceMissingError,
)
from .canonical import (
    BLOB,
    COMMIT,
    TREE,
    decode_object,
    parse_commit_payload,
    parse_tree_payload,
)
from .hashing import compute_hash

# Tree entry mode -> type of the object the entry must point at
_MODE_TYPES = {
    '100644': BLOB,
    '100755': BLOB,
    '040000': TREE,
}


def verify_object_integrity(data: bytes, expected_hash: str) -> None:
    """
    Verify that canonical object bytes match their hash.

    Raises ObjectCorruptedError if mismatch detected.
    """
    actual_hash = compute_hash(data)
    if actual_hash != expected_hash:
        raise ObjectCorruptedError(expected_hash, expected_hash, actual_hash)


def extract_references(obj_type: str, payload: bytes) -> List[Tuple[str, str]]:
    """
    Extract all object references from an object payload.

    References are found in:
    - commit: tree (a tree) and parent (a commit, if present)
    - tree: every entry (a blob or a tree, by mode)
    - blob: no references (leaf object)

    Returns list of (referenced hash, expected object type).
    Raises InvalidObjectError if the payload cannot be parsed.
    """
    refs = []

    if obj_type == COMMIT:
        fields = parse_commit_payload(payload)
        refs.append((fields['tree_digest'], TREE))
        if fields['parent_digest']:
            refs.append((fields['parent_digest'], COMMIT))

    elif obj_type == TREE:
        for mode, name, digest in parse_tree_payload(payload):
            if mode not in _MODE_TYPES:
                raise InvalidObjectError(f"Unknown mode {mode!r} for entry {name!r}")
            refs.append((digest, _MODE_TYPES[mode]))

    return refs


def verify_references_exist(
    obj_hash: str,
    references: Set[str],
    exists_func: Callable[[str], bool],
) -> None:
    """
    Verify that all referenced objects exist.

    Raises ReferenceMissingError if any reference is missing.
    """
    for ref_hash in sorted(references):
        if not exists_func(ref_hash):
            raise ReferenceMissingError(obj_hash, ref_hash)


def verify_commit_recursive(
    commit_hash: str,
    load_func: Callable[[str], bytes],
    exists_func: Callable[[str], bool],
) -> Tuple[bool, List[str]]:
    """
    Verify a commit, its tree, every object below it, and its ancestors.

    load_func: callable that loads canonical object bytes by hash
    exists_func: callable that checks if object exists by hash

    Each reachable object is checked for presence, hash integrity and
    parseable structure, and against the type every referrer expects.
    Revisiting a commit means the parent chain loops back on itself.

    Returns (is_valid, errors) where errors is list of error messages.
    """
    errors = []
    visited = set()
    pending = [(commit_hash, COMMIT, None)]

    while pending:
        obj_hash, expected_type, referrer = pending.pop()

        # One digest may be referenced as different types
        key = (obj_hash, expected_type)
        if key in visited:
            if expected_type == COMMIT:
                errors.append(f"Cycle detected: {obj_hash}")
            continue
        visited.add(key)

        if not exists_func(obj_hash):
            if referrer is None:
                errors.append(f"Commit not found: {obj_hash}")
            else:
                errors.append(str(ReferenceMissingError(referrer, obj_hash)))
            continue

        try:
            data = load_func(obj_hash)
            verify_object_integrity(data, obj_hash)
            obj_type, payload = decode_object(data)
            refs = extract_references(obj_type, payload)
        except ContentStoreError as e:
            errors.append(f"Failed to verify {obj_hash}: {e}")
            continue

        if obj_type != expected_type:
            errors.append(
                f"Object {obj_hash} is a {obj_type}, expected a {expected_type}"
            )
            continue

        for ref_hash, ref_type in refs:
            pending.append((ref_hash, ref_type, obj_hash))

    return not errors, errors

