"""Domain entities and errors, free of storage or HTTP concerns."""

from .errors import NotFoundError, SerializationError, StorageIOError, UserStoreError, caused_by
from .user import User

__all__ = [
    "User",
    "UserStoreError",
    "NotFoundError",
    "SerializationError",
    "StorageIOError",
    "caused_by",
]
