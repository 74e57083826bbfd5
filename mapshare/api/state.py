"""Anonymous shared-state endpoints (share a map by link)."""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from mapshare.api.deps import get_state_service, require_admin
from mapshare.api.schemas import StateCreated, StateEntry, StateList
from mapshare.errors import InvalidPayload
from mapshare.services.state import StateService

router = APIRouter(prefix="/state", tags=["state"])
logger = logging.getLogger(__name__)


@router.post("", response_model=StateCreated, status_code=201)
async def save_state(
    body: Any = Body(default=None),
    states: StateService = Depends(get_state_service),
):
    """
    Save a map state and return its short id.

    Accepts ``{"state": {...}}`` or the bare state object.

    Raises:
        HTTPException 400: Missing or non-serializable state
        HTTPException 500: Store unavailable
    """
    state = body.get("state", body) if isinstance(body, dict) else body
    if state is None or state == {}:
        raise InvalidPayload("Missing state in request body")
    state_id = await states.save(None, state)
    return StateCreated(id=state_id)


# Declared before /{state_id} so "list" is not taken as an id
@router.get("/list", response_model=StateList, dependencies=[Depends(require_admin)])
async def list_states(states: StateService = Depends(get_state_service)):
    """
    List every anonymous state (admin only, ``X-Admin-Token``).

    Raises:
        HTTPException 403: Missing or wrong admin token
    """
    records = await states.list(None)
    logger.info(f"Listed {len(records)} states")
    return StateList(states=[StateEntry(id=r.id, state=r.payload) for r in records])


@router.get("/{state_id}")
async def get_state(state_id: str, states: StateService = Depends(get_state_service)):
    """Fetch a saved state by id. 404 when absent."""
    return {"state": await states.fetch(None, state_id)}


@router.delete("/{state_id}")
async def delete_state(state_id: str, states: StateService = Depends(get_state_service)):
    """Delete a saved state. 404 when it was already gone."""
    if not await states.remove(None, state_id):
        raise HTTPException(status_code=404, detail="Not found or already deleted")
    return {"ok": True, "deleted": state_id}
