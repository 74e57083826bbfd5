"""Service health endpoint."""

from fastapi import APIRouter, Depends

from mapshare.api.deps import get_optional_store
from mapshare.api.schemas import HealthResponse
from mapshare.health_checks import check_store, check_store_config
from mapshare.storage.base import BlobStore

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(store: BlobStore | None = Depends(get_optional_store)):
    """
    healthy when the store is configured and answers PING.

    Never fails: an unconfigured store is reported, not raised.
    """
    config_ok = check_store_config()
    store_ok = store is not None and await check_store(store)
    return HealthResponse(
        status="healthy" if store_ok else "unhealthy",
        components={"config": config_ok, "store": store_ok},
    )
