"""Per-user saved states."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from mapshare.api.deps import current_owner_id, get_state_service
from mapshare.api.schemas import UserStateCreate
from mapshare.errors import InvalidPayload
from mapshare.services.state import StateService

router = APIRouter(prefix="/user-states", tags=["user-states"])
logger = logging.getLogger(__name__)


@router.post("")
async def save_user_state(
    body: UserStateCreate,
    request: Request,
    owner_id: str = Depends(current_owner_id),
    states: StateService = Depends(get_state_service),
):
    """
    Save a named state into the caller's partition.

    Returns the new id plus a share URL built from the request Origin.

    Raises:
        HTTPException 400: Name or state missing
        HTTPException 401: Missing or invalid session token
    """
    if not body.name or body.state is None:
        raise InvalidPayload("Name and state required")
    state_id = await states.save(owner_id, body.state, name=body.name)
    origin = request.headers.get("origin") or "https://localhost"
    return {
        "success": True,
        "id": state_id,
        "message": "State saved successfully",
        "shareUrl": f"{origin}?user_state_id={state_id}",
    }


@router.get("")
async def get_user_states(
    id: str | None = Query(default=None, description="State id; omit to list"),
    owner_id: str = Depends(current_owner_id),
    states: StateService = Depends(get_state_service),
):
    """
    Fetch one of the caller's states, or list them newest first.

    Listings carry ``id``, ``name`` and ``createdAt`` only.
    """
    if id:
        return {"success": True, "state": await states.fetch(owner_id, id)}
    records = await states.list(owner_id)
    return {"success": True, "states": [r.summary() for r in records]}


@router.delete("")
async def delete_user_state(
    id: str | None = Query(default=None),
    owner_id: str = Depends(current_owner_id),
    states: StateService = Depends(get_state_service),
):
    if not id:
        raise InvalidPayload("State ID required")
    if not await states.remove(owner_id, id):
        raise HTTPException(status_code=404, detail="State not found")
    return {"success": True, "message": "State deleted successfully"}
