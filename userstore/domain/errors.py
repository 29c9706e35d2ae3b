"""Error taxonomy shared by repositories and services."""

from __future__ import annotations

from typing import Optional


class UserStoreError(Exception):
    """Base class for user store failures."""


class NotFoundError(UserStoreError):
    """Raised when the requested id has no stored record."""

    def __init__(self, user_id: int):
        super().__init__(f"user {user_id} not found")
        self.user_id = user_id


class SerializationError(UserStoreError):
    """The persisted document could not be decoded, or the cache could not be encoded."""


class StorageIOError(UserStoreError):
    """The backing file could not be read or rewritten."""


def caused_by(exc: Optional[BaseException], kind: type[BaseException]) -> bool:
    """Return True when exc, or any exception it was raised from, is a `kind`."""
    seen: set[int] = set()
    while exc is not None and id(exc) not in seen:
        if isinstance(exc, kind):
            return True
        seen.add(id(exc))
        exc = exc.__cause__
    return False
