"""User entity and its persisted record shape."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

RECORD_FIELDS = ("created_at", "display_name", "email")

# RFC 3339 allows any number of fraction digits; datetime keeps exactly microseconds.
_FRACTION = re.compile(r"\.(\d+)")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime as RFC 3339, using Z for UTC."""
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp. Raises ValueError on malformed input."""
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {type(value).__name__}")
    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp {value!r} has no UTC offset")
    return parsed


@dataclass
class User:
    display_name: str
    email: str
    created_at: datetime = field(default_factory=_utc_now)
    id: Optional[int] = None

    def __post_init__(self) -> None:
        # Naive datetimes are taken as UTC so every stored timestamp carries an offset.
        if self.created_at.tzinfo is None:
            self.created_at = self.created_at.replace(tzinfo=timezone.utc)

    def to_record(self) -> dict:
        """Persisted representation. The id is the storage key, not part of the record."""
        return {
            "created_at": format_timestamp(self.created_at),
            "display_name": self.display_name,
            "email": self.email,
        }

    @classmethod
    def from_record(cls, user_id: int, record: Mapping[str, Any]) -> "User":
        """Build a User from a persisted record. Raises ValueError/TypeError on bad shape."""
        if not isinstance(record, Mapping):
            raise TypeError(f"record {user_id} must be an object, got {type(record).__name__}")
        missing = [name for name in RECORD_FIELDS if name not in record]
        if missing:
            raise ValueError(f"record {user_id} is missing {', '.join(missing)}")
        display_name = record["display_name"]
        email = record["email"]
        if not isinstance(display_name, str) or not isinstance(email, str):
            raise TypeError(f"record {user_id}: display_name and email must be strings")
        return cls(
            display_name=display_name,
            email=email,
            created_at=parse_timestamp(record["created_at"]),
            id=user_id,
        )
