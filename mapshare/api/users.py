"""User profile endpoints."""

from fastapi import APIRouter, Depends

from mapshare.api.deps import current_owner_id, get_account_service, require_admin
from mapshare.api.schemas import LocationUpdate, ModelLink
from mapshare.services.accounts import AccountService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", dependencies=[Depends(require_admin)])
async def list_users(accounts: AccountService = Depends(get_account_service)):
    """All users without password hashes (admin only)."""
    return {"users": [a.to_public() for a in await accounts.list_users()]}


@router.get("/me")
async def my_profile(
    user_id: str = Depends(current_owner_id),
    accounts: AccountService = Depends(get_account_service),
):
    account = await accounts.profile(user_id)
    return {"user": account.to_public()}


@router.post("/location")
async def update_my_location(
    body: LocationUpdate,
    user_id: str = Depends(current_owner_id),
    accounts: AccountService = Depends(get_account_service),
):
    """Store the caller's last known GPS position on their profile."""
    location = await accounts.update_location(user_id, body.lat, body.lng)
    return {"success": True, "message": "Location updated", "lastLocation": location}


@router.post("/model")
async def link_my_model(
    body: ModelLink,
    user_id: str = Depends(current_owner_id),
    accounts: AccountService = Depends(get_account_service),
):
    """Link the caller to a 3D model id."""
    await accounts.link_model(user_id, body.model_id)
    return {"success": True, "message": "Model linked successfully"}
