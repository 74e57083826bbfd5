"""Request and response models for the HTTP API.

Field names on the wire are camelCase to match the web client.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class StateCreated(BaseModel):
    id: str


class StateEntry(BaseModel):
    id: str
    state: Any


class StateList(BaseModel):
    states: list[StateEntry]


class UserStateCreate(BaseModel):
    name: str | None = None
    state: Any = None


class AuthRequest(CamelModel):
    """Body of POST /api/auth; which fields matter depends on ``action``."""

    action: str
    username: str | None = None
    password: str | None = None
    email: str | None = None
    model_id: str | None = Field(default=None, alias="modelId")
    profile_data: dict[str, Any] | None = Field(default=None, alias="profileData")
    session_token: str | None = Field(default=None, alias="sessionToken")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {"action": "login", "username": "alice", "password": "correct horse"}
            ]
        },
    }


class LocationUpdate(BaseModel):
    lat: float
    lng: float


class ModelLink(CamelModel):
    model_id: str = Field(alias="modelId")


class SessionCreate(CamelModel):
    owner_name: str | None = Field(default=None, alias="ownerName")


class PresenceUpdate(CamelModel):
    user_id: str = Field(alias="userId", min_length=1)
    lat: float
    lng: float
    nickname: str = ""
    timestamp: int | None = None
    draws: Any = None
    models: Any = None


class EmployeeLocation(CamelModel):
    employee_id: str = Field(alias="employeeId", min_length=1)
    latitude: float
    longitude: float


class HealthResponse(BaseModel):
    status: str
    service: str = "mapshare"
    components: dict  # {"config": bool, "store": bool}
