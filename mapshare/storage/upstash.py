"""Upstash Redis REST blob store.

Each Redis command is a JSON array POSTed to the REST endpoint; several
commands can share one round trip through ``/pipeline``. See
https://upstash.com/docs/redis/features/restapi.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

import httpx

from mapshare.config import STORE_SCAN_LIMIT, STORE_SCAN_PAGE_SIZE, StoreSettings
from mapshare.errors import StoreError, StoreUnavailable
from mapshare.storage.base import BlobStore, decode_blob, encode_blob

logger = logging.getLogger(__name__)

# Keys per MGET request
MGET_BATCH_SIZE = 100


class UpstashStore(BlobStore):
    """Blob store backed by the Upstash Redis REST API."""

    def __init__(
        self,
        url: str,
        token: str,
        timeout: float = 5.0,
        scan_page_size: int = STORE_SCAN_PAGE_SIZE,
        scan_limit: int = STORE_SCAN_LIMIT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._scan_page_size = scan_page_size
        self._scan_limit = scan_limit
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: StoreSettings) -> "UpstashStore":
        return cls(settings.url, settings.token, timeout=settings.timeout)

    def _http(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._url,
                headers={"Authorization": f"Bearer {self._token}"},
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def _post(self, path: str, body: list) -> Any:
        """POST a command body and return the decoded JSON response."""
        try:
            resp = await self._http().post(path, json=body)
        except httpx.TimeoutException as e:
            raise StoreUnavailable(f"Store request timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise StoreUnavailable(f"Store request failed: {e}") from e

        if resp.status_code in (401, 403):
            raise StoreUnavailable(f"Store rejected credentials (HTTP {resp.status_code})")
        if resp.status_code >= 500:
            raise StoreUnavailable(f"Store error (HTTP {resp.status_code})")
        try:
            data = resp.json()
        except ValueError as e:
            raise StoreUnavailable(f"Malformed store response (HTTP {resp.status_code})") from e
        if resp.status_code >= 400:
            message = data.get("error") if isinstance(data, dict) else None
            raise StoreError(message or f"Store error (HTTP {resp.status_code})")
        return data

    async def _command(self, *args: Any) -> Any:
        data = await self._post("", list(args))
        if not isinstance(data, dict):
            raise StoreUnavailable("Malformed store response")
        if "error" in data:
            raise StoreError(data["error"])
        return data.get("result")

    async def _pipeline(self, commands: list[list[Any]]) -> list[Any]:
        data = await self._post("/pipeline", commands)
        if not isinstance(data, list) or len(data) != len(commands):
            raise StoreUnavailable("Malformed pipeline response")
        results = []
        for item in data:
            if "error" in item:
                raise StoreError(item["error"])
            results.append(item.get("result"))
        return results

    async def put(
        self,
        key: str,
        blob: Any,
        ttl: int | None = None,
        if_absent: bool = False,
    ) -> bool:
        args: list[Any] = ["SET", key, encode_blob(blob)]
        if ttl:
            args += ["EX", int(ttl)]
        if if_absent:
            args.append("NX")
        result = await self._command(*args)
        return result == "OK"

    async def get(self, key: str) -> Any | None:
        return decode_blob(await self._command("GET", key))

    async def delete(self, key: str) -> int:
        return int(await self._command("DEL", key))

    async def scan_prefix(
        self,
        prefix: str,
        limit: int | None = None,
    ) -> AsyncIterator[str]:
        limit = self._scan_limit if limit is None else limit
        if limit <= 0:
            return
        seen: set[str] = set()
        cursor = "0"
        while True:
            result = await self._command(
                "SCAN", cursor, "MATCH", f"{prefix}*", "COUNT", self._scan_page_size
            )
            cursor, keys = str(result[0]), result[1]
            for key in keys:
                # SCAN may return a key more than once across pages
                if key in seen:
                    continue
                seen.add(key)
                yield key
                if len(seen) >= limit:
                    logger.debug(f"scan of {prefix!r} stopped at limit={limit}")
                    return
            if cursor == "0":
                return

    async def multi_get(self, keys: Sequence[str]) -> list[tuple[str, Any | None]]:
        keys = list(keys)
        results: list[tuple[str, Any | None]] = []
        for i in range(0, len(keys), MGET_BATCH_SIZE):
            batch = keys[i:i + MGET_BATCH_SIZE]
            values = await self._command("MGET", *batch)
            results.extend(zip(batch, (decode_blob(v) for v in values)))
        return results

    async def push_capped(self, key: str, blob: Any, max_len: int) -> None:
        await self._pipeline([
            ["LPUSH", key, encode_blob(blob)],
            ["LTRIM", key, 0, max_len - 1],
        ])

    async def list_range(self, key: str, start: int = 0, stop: int = -1) -> list[Any]:
        values = await self._command("LRANGE", key, start, stop)
        return [decode_blob(v) for v in values or []]

    async def ping(self) -> bool:
        try:
            return await self._command("PING") == "PONG"
        except StoreError as e:
            logger.warning(f"Store ping failed: {e}")
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
