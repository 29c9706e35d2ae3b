"""User use cases: existence checks before mutation and error wrapping."""

from __future__ import annotations

import logging

from userstore.domain.errors import NotFoundError, UserStoreError
from userstore.domain.user import User
from userstore.repositories.base import UserRepository

logger = logging.getLogger(__name__)


class UserServiceError(UserStoreError):
    """Wraps a storage failure with the use case that hit it. The original error is __cause__."""

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"UserService - {operation}: {cause}")
        self.operation = operation


class UserService:
    """
    Turns the repository's unconditional update/delete into checked operations.

    NotFoundError always reaches the caller as the very object the repository
    raised; every other failure is wrapped in UserServiceError.

    The existence check and the mutation take the repository lock separately,
    so a concurrent delete between the two can be overwritten by an update.
    """

    def __init__(self, repository: UserRepository) -> None:
        self.repository = repository

    def get_user_by_id(self, user_id: int) -> User:
        try:
            return self.repository.get_by_id(user_id)
        except NotFoundError:
            raise
        except UserStoreError as exc:
            raise UserServiceError("get_user_by_id", exc) from exc

    def create_user(self, user: User) -> int:
        try:
            return self.repository.create(user)
        except UserStoreError as exc:
            raise UserServiceError("create_user", exc) from exc

    def update_user(self, user: User) -> None:
        self._ensure_exists("update_user", user.id)
        try:
            self.repository.update(user)
        except UserStoreError as exc:
            raise UserServiceError("update_user", exc) from exc

    def delete_user(self, user_id: int) -> None:
        self._ensure_exists("delete_user", user_id)
        try:
            self.repository.delete(user_id)
        except UserStoreError as exc:
            raise UserServiceError("delete_user", exc) from exc

    # -------------------------------------- helpers --------------------------------------
    def _ensure_exists(self, operation: str, user_id: int) -> None:
        try:
            self.get_user_by_id(user_id)
        except NotFoundError:
            logger.debug("%s rejected: user %s does not exist", operation, user_id)
            raise
        except UserServiceError as exc:
            cause = exc.__cause__ or exc
            raise UserServiceError(operation, cause) from cause
