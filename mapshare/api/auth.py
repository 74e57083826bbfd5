"""Login, registration and token verification (POST /api/auth)."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from mapshare import config
from mapshare.api.deps import get_account_service, session_token
from mapshare.api.schemas import AuthRequest
from mapshare.services.accounts import AccountService

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("")
async def auth_action(
    body: AuthRequest,
    header_token: str | None = Depends(session_token),
    accounts: AccountService = Depends(get_account_service),
):
    """
    Dispatch on ``action``: test, register, login, verify, logout.

    ``register`` and ``login`` both answer with a fresh ``sessionToken``.
    ``verify`` and ``logout`` take the token from the body or the
    Authorization header.

    Raises:
        HTTPException 400: Unknown action or missing credentials
        HTTPException 401: Bad credentials or invalid session
        HTTPException 409: Username taken
    """
    action = body.action

    if action == "test":
        return {
            "success": True,
            "message": "API is working",
            "envStatus": {
                "hasRedisUrl": bool(config.UPSTASH_REDIS_REST_URL),
                "hasRedisToken": bool(config.UPSTASH_REDIS_REST_TOKEN),
            },
        }

    if action == "register":
        account = await accounts.register(
            body.username or "",
            body.password or "",
            email=body.email,
            model_id=body.model_id,
            profile_data=body.profile_data,
        )
        token, account = await accounts.login(account.username, body.password or "")
        return {
            "success": True,
            "userId": account.user_id,
            "username": account.username,
            "sessionToken": token,
            "message": "User registered successfully",
        }

    if action == "login":
        token, account = await accounts.login(body.username or "", body.password or "")
        return {
            "success": True,
            "userId": account.user_id,
            "username": account.username,
            "sessionToken": token,
            "user": account.to_public(),
        }

    token = body.session_token or header_token

    if action == "verify":
        account = await accounts.verify(token)
        return {
            "success": True,
            "userId": account.user_id,
            "username": account.username,
            "message": "Session valid",
        }

    if action == "logout":
        await accounts.logout(token)
        return {"success": True, "message": "Logged out successfully"}

    logger.warning(f"[/auth] unknown action {action!r}")
    raise HTTPException(status_code=400, detail=f"Unknown action: {action}")
