"""
JSON-file persistence adapter for users.

The whole store lives in one document:

    {"increment": <highest id ever allocated>, "list": {"<id>": {...record...}}}

It is decoded once into an in-memory cache and rewritten in full after every
mutation. Mutations build the next state aside and only swap it into the
cache once the file write succeeded, so a failed write leaves memory and disk
in agreement.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import IO, Dict, Tuple
import json
import logging
import os
import stat
import tempfile

from userstore.core.rwlock import ReadWriteLock
from userstore.repositories.base import UserRepository
from userstore.domain.errors import NotFoundError, SerializationError, StorageIOError
from userstore.domain.user import User

logger = logging.getLogger(__name__)


def _parse_key(key: str) -> int:
    """Canonical positive decimal id, as written by encode_document."""
    try:
        if key.isascii() and key.isdigit() and str(int(key)) == key and int(key) > 0:
            return int(key)
    except ValueError as exc:
        raise SerializationError(f"invalid user id key {key[:20]!r}...: {exc}") from exc
    raise SerializationError(f"invalid user id key {key!r}")


def decode_document(raw: str) -> Dict[int, User]:
    """
    Parse the persisted document into a cache keyed by int id.

    An empty document is a new store. The stored "increment" is validated
    but not returned: callers derive the counter from the keys.
    """
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError as exc:
        # JSONDecodeError, or an integer literal over the int digit limit
        raise SerializationError(f"invalid JSON document: {exc}") from exc
    if not isinstance(data, dict):
        raise SerializationError(f"document must be an object, got {type(data).__name__}")

    increment = data.get("increment", 0)
    if isinstance(increment, bool) or not isinstance(increment, int):
        raise SerializationError(f"'increment' must be an integer, got {increment!r}")
    records = data.get("list")
    if records is None:
        records = {}
    if not isinstance(records, dict):
        raise SerializationError(f"'list' must be an object, got {type(records).__name__}")

    cache: Dict[int, User] = {}
    for key, record in records.items():
        user_id = _parse_key(key)
        try:
            cache[user_id] = User.from_record(user_id, record)
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"invalid record {key!r}: {exc}") from exc
    return cache


def encode_document(increment: int, cache: Dict[int, User]) -> str:
    data = {
        "increment": increment,
        "list": {str(user_id): user.to_record() for user_id, user in cache.items()},
    }
    return json.dumps(data, ensure_ascii=False, indent=2)


class UserFileRepository(UserRepository):
    """CRUD storage for users keyed by an auto-incrementing id."""

    def __init__(self, file: IO[str], *, atomic_writes: bool = False) -> None:
        self._file = file
        self._path = Path(file.name)
        self._atomic_writes = atomic_writes
        self._lock = ReadWriteLock()
        try:
            raw = file.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageIOError(f"failed to read {self._path}: {exc}") from exc
        self._cache = decode_document(raw)
        # The counter is recomputed from the keys; the stored "increment" is ignored.
        self._increment = max(self._cache, default=0)
        logger.info(
            "Loaded %d users from %s (last id %d)", len(self._cache), self._path, self._increment
        )

    @classmethod
    def open(cls, path: str | os.PathLike, *, atomic_writes: bool = False) -> "UserFileRepository":
        """Open (creating it and its directory when missing) the store at `path`."""
        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.touch(exist_ok=True)
            file = target.open("r", encoding="utf-8")
        except OSError as exc:
            raise StorageIOError(f"failed to open {target}: {exc}") from exc
        try:
            return cls(file, atomic_writes=atomic_writes)
        except Exception:
            file.close()
            raise

    @property
    def path(self) -> Path:
        return self._path

    @property
    def last_id(self) -> int:
        """Highest id allocated so far (0 for a new store)."""
        with self._lock.read():
            return self._increment

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> "UserFileRepository":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -------------------------- reads --------------------------
    def get_by_id(self, user_id: int) -> User:
        with self._lock.read():
            user = self._cache.get(user_id)
            if user is None:
                raise NotFoundError(user_id)
            return replace(user)

    def snapshot(self) -> Tuple[int, Dict[int, User]]:
        """Consistent copy of (last id, cache) taken under the read lock."""
        with self._lock.read():
            return self._increment, {user_id: replace(user) for user_id, user in self._cache.items()}

    # -------------------------- writes --------------------------
    def create(self, user: User) -> int:
        with self._lock.write():
            new_id = self._increment + 1
            cache = dict(self._cache)
            cache[new_id] = replace(user, id=new_id)
            self._commit("create", new_id, cache)
            logger.debug("Created user %d", new_id)
            return new_id

    def update(self, user: User) -> None:
        if user.id is None or user.id <= 0:
            raise ValueError(f"update requires a positive user id, got {user.id!r}")
        # No existence check here: a missing id is inserted.
        with self._lock.write():
            cache = dict(self._cache)
            cache[user.id] = replace(user)
            # An inserted id above the counter must never be handed out by create.
            self._commit("update", max(self._increment, user.id), cache)
            logger.debug("Updated user %d", user.id)

    def delete(self, user_id: int) -> None:
        with self._lock.write():
            cache = dict(self._cache)
            if cache.pop(user_id, None) is None:
                logger.debug("Delete of unknown user %d is a no-op", user_id)
            self._commit("delete", self._increment, cache)

    # -------------------------- persistence --------------------------
    def _commit(self, operation: str, increment: int, cache: Dict[int, User]) -> None:
        """Write the next state to disk, then make it the live state. Caller holds the write lock."""
        try:
            # Encoding to bytes up front keeps UnicodeEncodeError away from the truncated file.
            payload = encode_document(increment, cache).encode("utf-8")
        except (TypeError, ValueError) as exc:
            logger.exception("Failed to encode users document during %s", operation)
            raise SerializationError(f"{operation}: {exc}") from exc
        try:
            self._write(payload)
        except OSError as exc:
            logger.exception("Failed to write %s during %s", self._path, operation)
            raise StorageIOError(f"{operation}: {exc}") from exc
        self._cache = cache
        self._increment = increment

    def _write(self, payload: bytes) -> None:
        if not self._atomic_writes:
            self._path.write_bytes(payload)
            return
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            try:
                mode = stat.S_IMODE(os.stat(self._path).st_mode)
            except FileNotFoundError:
                mode = None
            if mode is not None:
                # mkstemp creates 0600; keep the store's own permissions.
                os.chmod(tmp_name, mode)
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
