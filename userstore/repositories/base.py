"""
Base Repository - abstract interface for user storage.

Lets the use-case layer stay independent of the storage technology.
"""

from abc import ABC, abstractmethod

from userstore.domain.user import User


class UserRepository(ABC):
    """Contract every user storage adapter follows."""

    @abstractmethod
    def get_by_id(self, user_id: int) -> User:
        """
        Return a copy of the stored user.

        Raises:
            NotFoundError: no record under user_id
        """

    @abstractmethod
    def create(self, user: User) -> int:
        """Store user under a newly allocated id (user.id is ignored) and return that id."""

    @abstractmethod
    def update(self, user: User) -> None:
        """Store user under user.id, whether or not a record exists there."""

    @abstractmethod
    def delete(self, user_id: int) -> None:
        """Remove the record under user_id. Absent ids are a no-op."""
