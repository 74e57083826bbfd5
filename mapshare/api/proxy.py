"""Image proxy so map canvases can draw cross-origin tiles and textures.

Usage: ``/api/image-proxy?url=<encoded image url>``. The response carries
CORS headers (added by the app middleware) so ``canvas.drawImage`` works.
Bodies larger than ``IMAGE_PROXY_MAX_BYTES`` are refused, as are literal
private, loopback and link-local addresses.
"""

import ipaddress
import logging
from urllib.parse import unquote, urlsplit

import httpx
from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse, Response

from mapshare import config
from mapshare.api.deps import get_http_client

router = APIRouter(tags=["proxy"])
logger = logging.getLogger(__name__)


def _is_public_host(host: str | None) -> bool:
    if not host:
        return False
    if host == "localhost" or host.endswith(".localhost"):
        return False
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        # A DNS name
        return True
    return address.is_global


@router.get("/image-proxy")
async def image_proxy(
    url: str | None = Query(default=None),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    if not url:
        return PlainTextResponse("Missing url parameter", status_code=400)
    target = unquote(url)
    if not target.lower().startswith(("http://", "https://")):
        return PlainTextResponse("Invalid URL scheme", status_code=400)
    if not _is_public_host(urlsplit(target).hostname):
        return PlainTextResponse("Forbidden host", status_code=400)

    max_bytes = config.IMAGE_PROXY_MAX_BYTES
    try:
        async with client.stream("GET", target) as upstream:
            if not upstream.is_success:
                return PlainTextResponse(
                    f"Upstream fetch failed: {upstream.status_code}", status_code=502
                )
            declared = upstream.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > max_bytes:
                return PlainTextResponse("Upstream image too large", status_code=502)

            chunks = []
            size = 0
            async for chunk in upstream.aiter_bytes():
                size += len(chunk)
                if size > max_bytes:
                    logger.warning(f"[/image-proxy] {target} exceeded {max_bytes} bytes")
                    return PlainTextResponse("Upstream image too large", status_code=502)
                chunks.append(chunk)
            media_type = upstream.headers.get("content-type", "application/octet-stream")
            cache_control = upstream.headers.get("cache-control")
    except httpx.HTTPError as e:
        logger.warning(f"[/image-proxy] fetch failed for {target}: {e}")
        return PlainTextResponse("Upstream fetch failed", status_code=502)

    headers = {"Cache-Control": cache_control} if cache_control else {}
    return Response(content=b"".join(chunks), media_type=media_type, headers=headers)
