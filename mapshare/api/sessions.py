"""Collaborative map sessions and participant locations."""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from mapshare.api.deps import get_location_service, get_session_service
from mapshare.api.schemas import PresenceUpdate, SessionCreate
from mapshare.errors import InvalidPayload
from mapshare.services.locations import LocationService
from mapshare.services.sessions import MapSessionService

router = APIRouter(prefix="/session", tags=["sessions"])
# Flat paths older web clients still call
legacy_router = APIRouter(tags=["sessions"])
logger = logging.getLogger(__name__)


def _snapshot_from_body(body: Any) -> Any:
    if isinstance(body, dict) and "session" in body:
        return body["session"]
    return body


@router.post("", status_code=201)
async def create_session(
    body: SessionCreate | None = None,
    sessions: MapSessionService = Depends(get_session_service),
):
    """Create an empty map session. Responds with both ``sessionId`` and ``id``."""
    session_id = await sessions.create(body.owner_name if body else None)
    return {"sessionId": session_id, "id": session_id}


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    sessions: MapSessionService = Depends(get_session_service),
):
    return {"session": await sessions.get(session_id)}


@router.put("/{session_id}")
async def update_session(
    session_id: str,
    body: Any = Body(default=None),
    sessions: MapSessionService = Depends(get_session_service),
):
    """Replace the session snapshot (``{"session": {...}}`` or bare object)."""
    snapshot = await sessions.update(session_id, _snapshot_from_body(body))
    return {"ok": True, "session": snapshot}


@router.post("/{session_id}/location")
async def post_location(
    session_id: str,
    body: PresenceUpdate,
    locations: LocationService = Depends(get_location_service),
):
    """Publish the caller's position (and optional drawings/models) to a session."""
    await locations.post_presence(
        session_id,
        body.user_id,
        body.lat,
        body.lng,
        nickname=body.nickname,
        timestamp=body.timestamp,
        draws=body.draws,
        models=body.models,
    )
    return {"ok": True}


@router.get("/{session_id}/locations")
async def get_locations(
    session_id: str,
    locations: LocationService = Depends(get_location_service),
):
    """Every participant's latest position in the session."""
    return {"users": await locations.list_presence(session_id)}


@legacy_router.post("/create-session")
async def legacy_create_session(
    body: SessionCreate | None = None,
    sessions: MapSessionService = Depends(get_session_service),
):
    session_id = await sessions.create(body.owner_name if body else None)
    return {"id": session_id}


@legacy_router.get("/get-session")
async def legacy_get_session(
    id: str | None = Query(default=None),
    session_id: str | None = Query(default=None),
    sessions: MapSessionService = Depends(get_session_service),
):
    sid = id or session_id
    if not sid:
        raise InvalidPayload("Missing id")
    return {"session": await sessions.get(sid)}


@legacy_router.post("/update-session")
async def legacy_update_session(
    body: Any = Body(default=None),
    sessions: MapSessionService = Depends(get_session_service),
):
    if not isinstance(body, dict) or not body.get("id") or not body.get("session"):
        raise InvalidPayload("Missing id or session")
    await sessions.update(body["id"], body["session"])
    return {"ok": True}
