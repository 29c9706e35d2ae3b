from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Make the userstore package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from userstore.domain.errors import (  # noqa: E402
    NotFoundError,
    SerializationError,
    StorageIOError,
    caused_by,
)
from userstore.domain.user import User  # noqa: E402
from userstore.repositories.base import UserRepository  # noqa: E402
from userstore.repositories.json_storage import UserFileRepository  # noqa: E402
from userstore.services.user_service import UserService, UserServiceError  # noqa: E402

CREATED = datetime(2024, 5, 1, 10, 0, 0, tzinfo=timezone.utc)


class RecordingRepository(UserRepository):
    """In-memory stand-in that records calls and can be told to fail."""

    def __init__(self, users=None, fail_with=None):
        self.users = dict(users or {})
        self.fail_with = fail_with or {}
        self.calls = []

    def _maybe_fail(self, op):
        exc = self.fail_with.get(op)
        if exc is not None:
            raise exc

    def get_by_id(self, user_id):
        self.calls.append(("get_by_id", user_id))
        self._maybe_fail("get_by_id")
        if user_id not in self.users:
            raise NotFoundError(user_id)
        return self.users[user_id]

    def create(self, user):
        self.calls.append(("create", user))
        self._maybe_fail("create")
        new_id = max(self.users, default=0) + 1
        self.users[new_id] = user
        return new_id

    def update(self, user):
        self.calls.append(("update", user))
        self._maybe_fail("update")
        self.users[user.id] = user

    def delete(self, user_id):
        self.calls.append(("delete", user_id))
        self._maybe_fail("delete")
        self.users.pop(user_id, None)


def _user(name: str, user_id=None) -> User:
    return User(display_name=name, email=f"{name.lower()}@example.com", created_at=CREATED, id=user_id)


def test_get_passes_not_found_through_unchanged():
    err = NotFoundError(5)
    svc = UserService(RecordingRepository(fail_with={"get_by_id": err}))
    with pytest.raises(NotFoundError) as excinfo:
        svc.get_user_by_id(5)
    assert excinfo.value is err


def test_get_wraps_other_errors_with_operation_context():
    svc = UserService(RecordingRepository(fail_with={"get_by_id": StorageIOError("boom")}))
    with pytest.raises(UserServiceError) as excinfo:
        svc.get_user_by_id(1)
    assert excinfo.value.operation == "get_user_by_id"
    assert "get_user_by_id" in str(excinfo.value)
    assert caused_by(excinfo.value, StorageIOError)
    assert not caused_by(excinfo.value, NotFoundError)


def test_create_delegates_and_wraps_errors():
    repo = RecordingRepository()
    svc = UserService(repo)
    assert svc.create_user(_user("Alice")) == 1

    repo.fail_with["create"] = SerializationError("cannot encode")
    with pytest.raises(UserServiceError) as excinfo:
        svc.create_user(_user("Bob"))
    assert excinfo.value.operation == "create_user"
    assert isinstance(excinfo.value.__cause__, SerializationError)


def test_update_missing_user_raises_not_found_without_writing():
    repo = RecordingRepository()
    svc = UserService(repo)
    with pytest.raises(NotFoundError) as excinfo:
        svc.update_user(_user("Ghost", user_id=9))
    assert excinfo.value.user_id == 9
    assert [name for name, _ in repo.calls] == ["get_by_id"]


def test_update_existing_user_delegates():
    repo = RecordingRepository(users={1: _user("Alice", 1)})
    svc = UserService(repo)
    svc.update_user(_user("Alicia", 1))
    assert repo.users[1].display_name == "Alicia"
    assert [name for name, _ in repo.calls] == ["get_by_id", "update"]


def test_update_wraps_check_and_write_failures():
    repo = RecordingRepository(users={1: _user("Alice", 1)}, fail_with={"get_by_id": StorageIOError("read")})
    svc = UserService(repo)
    with pytest.raises(UserServiceError) as excinfo:
        svc.update_user(_user("Alicia", 1))
    assert excinfo.value.operation == "update_user"
    assert caused_by(excinfo.value, StorageIOError)

    repo.fail_with = {"update": StorageIOError("write")}
    with pytest.raises(UserServiceError) as excinfo:
        svc.update_user(_user("Alicia", 1))
    assert excinfo.value.operation == "update_user"
    assert str(excinfo.value.__cause__) == "write"


def test_delete_missing_user_raises_not_found_without_writing():
    repo = RecordingRepository()
    svc = UserService(repo)
    with pytest.raises(NotFoundError):
        svc.delete_user(3)
    assert [name for name, _ in repo.calls] == ["get_by_id"]


def test_delete_existing_user_and_wraps_failures():
    repo = RecordingRepository(users={1: _user("Alice", 1), 2: _user("Bob", 2)})
    svc = UserService(repo)
    svc.delete_user(1)
    assert 1 not in repo.users

    repo.fail_with["delete"] = StorageIOError("write")
    with pytest.raises(UserServiceError) as excinfo:
        svc.delete_user(2)
    assert excinfo.value.operation == "delete_user"
    assert caused_by(excinfo.value, StorageIOError)


def test_repository_and_service_disagree_on_missing_ids(tmp_path):
    with UserFileRepository.open(tmp_path / "users.json") as repo:
        svc = UserService(repo)

        with pytest.raises(NotFoundError):
            svc.update_user(_user("Ghost", 4))
        with pytest.raises(NotFoundError):
            svc.delete_user(4)

        # The repository itself is unconditional.
        repo.delete(4)
        repo.update(_user("Ghost", 4))
        assert svc.get_user_by_id(4).display_name == "Ghost"
        svc.delete_user(4)
        with pytest.raises(NotFoundError):
            svc.get_user_by_id(4)


def test_check_then_update_is_not_atomic(tmp_path):
    """A delete landing between the existence check and the write is overwritten."""

    class DeleteAfterRead(UserFileRepository):
        def get_by_id(self, user_id):
            user = super().get_by_id(user_id)
            self.delete(user_id)  # concurrent delete
            return user

    path = tmp_path / "users.json"
    path.touch()
    with path.open("r", encoding="utf-8") as f:
        repo = DeleteAfterRead(f)
        svc = UserService(repo)
        new_id = repo.create(_user("Alice"))

        svc.update_user(_user("Alicia", new_id))

        assert UserFileRepository.get_by_id(repo, new_id).display_name == "Alicia"
