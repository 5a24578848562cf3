"""
Lazily computed digest slot shared by all object kinds.
"""

from typing import Callable, Optional


class DigestCache:
    """
    Two-state digest holder: unset, or computed with a value.

    The only way back to unset is invalidate(), which the owning object
    calls from its content-mutating operations.
    """

    __slots__ = ('_value',)

    def __init__(self, value: Optional[str] = None):
        self._value = value

    @property
    def value(self) -> Optional[str]:
        """Cached digest, or None while unset."""
        return self._value

    def is_computed(self) -> bool:
        return self._value is not None

    def get(self, compute: Callable[[], str]) -> str:
        """Return the cached digest, computing and storing it first if unset."""
        if self._value is None:
            self._value = compute()
        return self._value

    def invalidate(self) -> None:
        self._value = None

    def __repr__(self) -> str:
        if self._value is None:
            return "DigestCache(unset)"
        return f"DigestCache({self._value[:8]}...)"
