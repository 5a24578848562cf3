"""
Canonical encoding for deterministic hashing.

Every object is hashed over a header followed by its payload:

    "<type> <payload-length>\\0" + payload

where <type> is one of blob, tree, commit and <payload-length> is the
decimal byte length of the payload. Two logically equal objects always
produce byte-identical encodings, and therefore identical digests.

Tree payloads embed each entry's digest as hex text, not raw bytes.
This is kept as-is for hash compatibility with existing objects.
"""

from typing import Iterable, List, Optional, Tuple

from ..errors import InvalidObjectError
from .hashing import HASH_HEX_LENGTH

BLOB = 'blob'
TREE = 'tree'
COMMIT = 'commit'

OBJECT_TYPES = (BLOB, TREE, COMMIT)


def encode_object(obj_type: str, payload: bytes) -> bytes:
    """
    Prepend the canonical header to a payload.

    Same input always produces same output.
    """
    return object_header(obj_type, len(payload)) + payload


def object_header(obj_type: str, length: int) -> bytes:
    """Header for an object whose payload is length bytes long."""
    if obj_type not in OBJECT_TYPES:
        raise InvalidObjectError(f"Unknown object type: {obj_type}")
    return f"{obj_type} {length}\0".encode('ascii')


def decode_object(data: bytes) -> Tuple[str, bytes]:
    """
    Split canonical bytes into (type, payload).

    Raises InvalidObjectError if the header is malformed or the
    declared length does not match the payload.
    """
    nul = data.find(b'\0')
    if nul < 0:
        raise InvalidObjectError("Missing header terminator")

    try:
        header = data[:nul].decode('ascii')
    except UnicodeDecodeError:
        raise InvalidObjectError("Header is not ASCII")

    obj_type, sep, length_str = header.partition(' ')
    if not sep or obj_type not in OBJECT_TYPES:
        raise InvalidObjectError(f"Invalid header: {header!r}")
    if not (length_str.isascii() and length_str.isdigit()):
        raise InvalidObjectError(f"Invalid payload length: {length_str!r}")

    payload = data[nul + 1:]
    if int(length_str) != len(payload):
        raise InvalidObjectError(
            f"Payload length mismatch: header says {length_str}, got {len(payload)}"
        )

    return obj_type, payload


def blob_payload(content: bytes) -> bytes:
    """Blob payload is the raw content, unmodified."""
    return bytes(content)


def tree_payload(entries: Iterable[Tuple[str, str, str]]) -> bytes:
    """
    Build tree payload from (mode, name, digest) triples.

    Entries must already be sorted by name; the caller owns ordering.
    """
    parts = []
    for mode, name, digest in entries:
        parts.append(f"{mode} {name}\0".encode('utf-8'))
        parts.append(digest.encode('ascii'))
    return b''.join(parts)


def parse_tree_payload(payload: bytes) -> List[Tuple[str, str, str]]:
    """
    Parse a tree payload back into (mode, name, digest) triples.

    Raises InvalidObjectError on malformed input, including entries that
    are not in strictly increasing name byte order.
    """
    entries = []
    pos = 0
    end = len(payload)
    previous_name = None

    while pos < end:
        space = payload.find(b' ', pos)
        nul = payload.find(b'\0', pos)
        if space < 0 or nul < 0 or space > nul:
            raise InvalidObjectError(f"Malformed tree entry at offset {pos}")

        digest_end = nul + 1 + HASH_HEX_LENGTH
        if digest_end > end:
            raise InvalidObjectError(f"Truncated tree entry at offset {pos}")

        try:
            mode = payload[pos:space].decode('ascii')
            name = payload[space + 1:nul].decode('utf-8')
            digest = payload[nul + 1:digest_end].decode('ascii')
        except UnicodeDecodeError:
            raise InvalidObjectError(f"Undecodable tree entry at offset {pos}")

        name_bytes = payload[space + 1:nul]
        if previous_name is not None and name_bytes <= previous_name:
            raise InvalidObjectError(
                f"Tree entry {name!r} is out of order or duplicated"
            )
        previous_name = name_bytes

        entries.append((mode, name, digest))
        pos = digest_end

    return entries


def commit_payload(
    tree_digest: str,
    parent_digest: Optional[str],
    message: str,
    author_name: str,
    author_email: str,
    timestamp: str,
) -> bytes:
    """
    Build commit payload text.

    A root commit has an empty parent line.
    """
    text = (
        f"tree {tree_digest}\n"
        f"parent {parent_digest or ''}\n"
        f"author {author_name} <{author_email}>\n"
        f"date {timestamp}\n"
        f"\n"
        f"{message}"
    )
    return text.encode('utf-8')


def parse_commit_payload(payload: bytes) -> dict:
    """
    Parse commit payload back into its fields.

    Returns dict with tree_digest, parent_digest (None for root commits),
    message, author_name, author_email and timestamp.

    Raises InvalidObjectError on malformed input.
    """
    try:
        text = payload.decode('utf-8')
    except UnicodeDecodeError:
        raise InvalidObjectError("Commit payload is not valid UTF-8")

    head, sep, message = text.partition('\n\n')
    if not sep:
        raise InvalidObjectError("Commit payload missing message separator")

    lines = head.split('\n')
    if len(lines) != 4:
        raise InvalidObjectError(f"Commit header has {len(lines)} lines, expected 4")

    fields = {}
    for line, key in zip(lines, ('tree', 'parent', 'author', 'date')):
        prefix = key + ' '
        if not line.startswith(prefix):
            raise InvalidObjectError(f"Commit header line should start with {key!r}")
        fields[key] = line[len(prefix):]

    author = fields['author']
    name, sep, email = author.rpartition(' <')
    if not sep or not email.endswith('>'):
        raise InvalidObjectError(f"Malformed author line: {author!r}")

    return {
        'tree_digest': fields['tree'],
        'parent_digest': fields['parent'] or None,
        'message': message,
        'author_name': name,
        'author_email': email[:-1],
        'timestamp': fields['date'],
    }
