"""
Tree object model.

Trees record one directory level: named entries pointing at blobs or
sub-trees by digest.
"""

from typing import Iterable, Iterator, List, Optional

from ..errors import InvalidObjectError, ValidationError
from ..integrity.canonical import (
    BLOB,
    TREE,
    encode_object,
    parse_tree_payload,
    tree_payload,
)
from ..integrity.hashing import compute_hash
from .cache import DigestCache
from .names import validate_entry_name

MODE_FILE = '100644'
MODE_EXECUTABLE = '100755'
MODE_DIRECTORY = '040000'

ENTRY_MODES = {
    MODE_FILE: BLOB,
    MODE_EXECUTABLE: BLOB,
    MODE_DIRECTORY: TREE,
}


class TreeEntry:
    """
    A single named entry in a tree.

    The name is a local name, not a path. The mode distinguishes regular
    files, executables and directories; kind says whether the digest
    refers to a blob or a tree.

    Entries are immutable; trees share them freely.
    """

    __slots__ = ('_name', '_kind', '_digest', '_mode')

    def __init__(self, name: str, kind: str, digest: str, mode: str):
        if mode not in ENTRY_MODES:
            raise ValidationError('entry mode', f"unknown mode {mode!r}")
        if ENTRY_MODES[mode] != kind:
            raise ValidationError(
                'entry kind',
                f"mode {mode} requires kind {ENTRY_MODES[mode]!r}, got {kind!r}",
            )
        self._name = validate_entry_name(name)
        self._kind = kind
        self._digest = digest
        self._mode = mode

    @property
    def name(self) -> str:
        return self._name

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def digest(self) -> str:
        return self._digest

    @property
    def mode(self) -> str:
        return self._mode

    @classmethod
    def file(cls, name: str, digest: str) -> 'TreeEntry':
        """Regular file entry (mode 100644)."""
        return cls(name, BLOB, digest, MODE_FILE)

    @classmethod
    def executable(cls, name: str, digest: str) -> 'TreeEntry':
        """Executable file entry (mode 100755)."""
        return cls(name, BLOB, digest, MODE_EXECUTABLE)

    @classmethod
    def directory(cls, name: str, digest: str) -> 'TreeEntry':
        """Sub-directory entry (mode 040000)."""
        return cls(name, TREE, digest, MODE_DIRECTORY)

    def is_file(self) -> bool:
        return self.kind == BLOB

    def is_executable(self) -> bool:
        return self.mode == MODE_EXECUTABLE

    def is_directory(self) -> bool:
        return self.kind == TREE

    def sort_key(self) -> bytes:
        return self.name.encode('utf-8')

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'kind': self.kind,
            'digest': self.digest,
            'mode': self.mode,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'TreeEntry':
        """
        Reconstruct entry from dictionary.

        Raises ValueError if a field is missing.
        """
        missing = [k for k in ('name', 'kind', 'digest', 'mode') if k not in data]
        if missing:
            raise ValueError(f"Tree entry missing fields: {', '.join(missing)}")
        return cls(data['name'], data['kind'], data['digest'], data['mode'])

    def __eq__(self, other) -> bool:
        if not isinstance(other, TreeEntry):
            return NotImplemented
        return (
            self.name == other.name
            and self.kind == other.kind
            and self.digest == other.digest
            and self.mode == other.mode
        )

    def __hash__(self) -> int:
        return hash((self.name, self.kind, self.digest, self.mode))

    def __repr__(self) -> str:
        return f"TreeEntry({self.mode} {self.kind} {self.digest[:8]} {self.name!r})"


class Tree:
    """
    Tree object: an ordered set of entries.

    Entries are always kept sorted by name (byte order of the UTF-8
    encoding), so the digest depends only on which entries are present,
    not on the order they were added in. Entry names are unique.

    add_entry() is the only mutation; it clears the cached digest.
    Concurrent add_entry() calls on one tree must be serialized by the
    caller.
    """

    def __init__(self):
        """Create an empty tree."""
        self._entries: List[TreeEntry] = []
        self._digest = DigestCache()

    @classmethod
    def with_entries(cls, entries: Iterable[TreeEntry]) -> 'Tree':
        """Create a tree from entries given in any order."""
        tree = cls()
        entries = list(entries)
        _check_unique_names(entries)
        tree._entries = sorted(entries, key=TreeEntry.sort_key)
        return tree

    @classmethod
    def from_payload(cls, payload: bytes, digest: Optional[str] = None) -> 'Tree':
        """
        Rebuild a tree from its canonical payload.

        The payload must list entries in canonical order with unique
        names, otherwise InvalidObjectError is raised. If digest is given
        it is trusted and cached as-is.
        """
        try:
            entries = [
                TreeEntry(name, ENTRY_MODES.get(mode), entry_digest, mode)
                for mode, name, entry_digest in parse_tree_payload(payload)
            ]
            tree = cls.with_entries(entries)
        except ValidationError as e:
            raise InvalidObjectError(f"Bad tree entry: {e.reason}")
        if digest:
            tree._digest = DigestCache(digest)
        return tree

    def add_entry(self, entry: TreeEntry) -> None:
        """
        Insert an entry, keep entries sorted and invalidate the digest.

        Raises ValidationError if an entry with the same name exists.
        """
        if self.find(entry.name) is not None:
            raise ValidationError('entry name', f"duplicate name {entry.name!r}")
        self._entries.append(entry)
        self._entries.sort(key=TreeEntry.sort_key)
        self._digest.invalidate()

    @property
    def entries(self) -> List[TreeEntry]:
        """Entries in sorted order (a copy)."""
        return list(self._entries)

    def find(self, name: str) -> Optional[TreeEntry]:
        """Find an entry by name, or None."""
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    def is_empty(self) -> bool:
        return not self._entries

    def payload(self) -> bytes:
        return tree_payload((e.mode, e.name, e.digest) for e in self._entries)

    def encode(self) -> bytes:
        """Canonical bytes this tree is hashed over."""
        return encode_object(TREE, self.payload())

    def digest(self) -> str:
        """Content hash of this tree, cached until the next add_entry()."""
        return self._digest.get(lambda: compute_hash(self.encode()))

    def cached_digest(self) -> Optional[str]:
        return self._digest.value

    def get_all_references(self) -> List[str]:
        """Digests of every object this tree points at."""
        return [e.digest for e in self._entries]

    def to_dict(self) -> dict:
        """
        Convert tree to an external dictionary representation.

        The hash is only included once it has been computed.
        """
        obj = {
            'entries': [e.to_dict() for e in self._entries],
        }

        if self._digest.is_computed():
            obj['hash'] = self._digest.value

        return obj

    @classmethod
    def from_dict(cls, data: dict) -> 'Tree':
        """
        Reconstruct tree from dictionary.

        Raises ValueError if data is invalid.
        """
        if 'entries' not in data:
            raise ValueError("Tree missing entries field")

        entries = data['entries']
        if not isinstance(entries, list):
            raise ValueError("Tree entries must be a list")

        tree = cls.with_entries(TreeEntry.from_dict(e) for e in entries)
        if data.get('hash'):
            tree._digest = DigestCache(data['hash'])
        return tree

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TreeEntry]:
        return iter(list(self._entries))

    def __repr__(self) -> str:
        hash_preview = self.digest()[:8]
        return f"Tree(entries={len(self._entries)}, hash={hash_preview}...)"


def _check_unique_names(entries: List[TreeEntry]) -> None:
    seen = set()
    for entry in entries:
        if entry.name in seen:
            raise ValidationError('entry name', f"duplicate name {entry.name!r}")
        seen.add(entry.name)
