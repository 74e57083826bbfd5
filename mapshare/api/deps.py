"""FastAPI dependencies: services, credentials, outbound HTTP."""

import secrets
from collections.abc import AsyncGenerator

import httpx
from fastapi import Depends, Header, HTTPException, Request

from mapshare import config
from mapshare._core import get_store
from mapshare.errors import ConfigError
from mapshare.services.accounts import AccountService, IdentityResolver
from mapshare.services.locations import LocationService
from mapshare.services.sessions import MapSessionService
from mapshare.services.state import StateService
from mapshare.storage.base import BlobStore

PROXY_TIMEOUT_SECONDS = 10.0


def get_blob_store() -> BlobStore:
    return get_store()


def get_state_service(store: BlobStore = Depends(get_blob_store)) -> StateService:
    return StateService(store)


def get_account_service(store: BlobStore = Depends(get_blob_store)) -> AccountService:
    return AccountService(store)


def get_identity_resolver(
    accounts: AccountService = Depends(get_account_service),
) -> IdentityResolver:
    return accounts


def get_session_service(store: BlobStore = Depends(get_blob_store)) -> MapSessionService:
    return MapSessionService(store)


def get_location_service(store: BlobStore = Depends(get_blob_store)) -> LocationService:
    return LocationService(store)


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Outbound client for the image proxy."""
    async with httpx.AsyncClient(timeout=PROXY_TIMEOUT_SECONDS, follow_redirects=True) as client:
        yield client


def session_token(request: Request) -> str | None:
    """Read the caller's token from X-Session-Token or ``Authorization: Bearer``."""
    token = request.headers.get("x-session-token")
    if token:
        return token.strip()
    auth = request.headers.get("authorization", "")
    scheme, _, value = auth.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


async def current_owner_id(
    token: str | None = Depends(session_token),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> str:
    """Resolve the authenticated owner id; Unauthenticated becomes 401."""
    return await resolver.resolve_owner_id(token)


def require_admin(x_admin_token: str | None = Header(default=None)) -> None:
    """Guard for admin-only listings."""
    expected = config.STATE_ADMIN_TOKEN
    if not expected or not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=403, detail="Forbidden - missing or invalid admin token")


def get_optional_store() -> BlobStore | None:
    """The store, or None when it is not configured (health checks only)."""
    try:
        return get_store()
    except ConfigError:
        return None
