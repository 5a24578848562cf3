"""
Validated name value objects.

Names are checked once at construction; an instance that exists is valid.
"""

import string

from ..errors import ValidationError

REPOSITORY_NAME_MAX_LENGTH = 100
ENTRY_NAME_MAX_LENGTH = 255

_REPOSITORY_NAME_CHARS = frozenset(string.ascii_letters + string.digits + '-_')


class RepositoryName:
    """
    Name of a repository.

    Must be 1-100 characters of ASCII letters, digits, hyphens and
    underscores.
    """

    __slots__ = ('_value',)

    def __init__(self, name: str):
        if not name:
            raise ValidationError('repository name', "cannot be empty")
        if len(name) > REPOSITORY_NAME_MAX_LENGTH:
            raise ValidationError(
                'repository name',
                f"too long (max {REPOSITORY_NAME_MAX_LENGTH})",
            )
        if not all(c in _REPOSITORY_NAME_CHARS for c in name):
            raise ValidationError(
                'repository name',
                "can only contain letters, numbers, hyphens, underscores",
            )
        self._value = name

    @property
    def value(self) -> str:
        return self._value

    def __eq__(self, other) -> bool:
        if not isinstance(other, RepositoryName):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"RepositoryName({self._value!r})"


def validate_entry_name(name: str) -> str:
    """
    Check that a tree entry name is a single local path component.

    Rejects empty names, '.' and '..', names with '/' or NUL, names that
    cannot be encoded as UTF-8 and names whose encoding is longer than
    255 bytes.

    Returns the name unchanged.
    """
    if not isinstance(name, str) or not name:
        raise ValidationError('entry name', "cannot be empty")
    if name in ('.', '..'):
        raise ValidationError('entry name', f"{name!r} is reserved")
    if '/' in name or '\0' in name:
        raise ValidationError('entry name', f"{name!r} contains '/' or NUL")
    try:
        encoded = name.encode('utf-8')
    except UnicodeEncodeError:
        # Undecodable filesystem names arrive as lone surrogates
        raise ValidationError('entry name', f"{name!r} is not valid UTF-8")
    if len(encoded) > ENTRY_NAME_MAX_LENGTH:
        raise ValidationError(
            'entry name',
            f"too long (max {ENTRY_NAME_MAX_LENGTH} bytes)",
        )
    return name
