"""User account model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Account:
    """A registered user.

    ``password_hash`` never leaves the service layer; ``to_public`` is the
    view handed to HTTP responses.
    """

    user_id: str
    username: str
    password_hash: str
    email: str | None = None
    model_id: str | None = None
    created_at: int = 0
    last_location: dict | None = None
    profile_data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "username": self.username,
            "passwordHash": self.password_hash,
            "email": self.email,
            "modelId": self.model_id,
            "createdAt": self.created_at,
            "lastLocation": self.last_location,
            "profileData": self.profile_data,
        }

    def to_public(self) -> dict:
        data = self.to_dict()
        del data["passwordHash"]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Account":
        return cls(
            user_id=data["id"],
            username=data["username"],
            password_hash=data["passwordHash"],
            email=data.get("email"),
            model_id=data.get("modelId"),
            created_at=data.get("createdAt", 0),
            last_location=data.get("lastLocation"),
            profile_data=data.get("profileData") or {},
        )
