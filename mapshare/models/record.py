"""State record envelope."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class Record:
    """One saved state snapshot.

    ``payload`` is opaque JSON; nothing about its shape is enforced.
    ``created_at`` is epoch milliseconds, or None for values written
    before records carried an envelope.
    """

    id: str
    owner_id: str | None
    payload: Any
    created_at: int | None = None
    name: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "name": self.name,
            "payload": self.payload,
            "createdAt": self.created_at,
        }

    def summary(self) -> dict:
        """Listing view without the payload."""
        return {"id": self.id, "name": self.name, "createdAt": self.created_at}

    @classmethod
    def from_value(cls, record_id: str, owner_id: str | None, value: Any) -> "Record":
        """Build a record from a stored value.

        Values that are not envelopes are bare states saved by older
        handlers; the whole value becomes the payload.
        """
        if isinstance(value, dict) and "payload" in value and value.get("id") == record_id:
            return cls(
                id=record_id,
                owner_id=value.get("ownerId"),
                payload=value["payload"],
                created_at=value.get("createdAt"),
                name=value.get("name"),
            )
        return cls(id=record_id, owner_id=owner_id, payload=value)
