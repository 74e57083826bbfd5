"""Abstract base class for the key-value blob store."""

import json
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from typing import Any

from mapshare.errors import InvalidPayload


def encode_blob(blob: Any) -> str:
    """Serialize a blob to the JSON text stored in the key-value service."""
    try:
        return json.dumps(blob, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise InvalidPayload(f"Payload is not JSON-serializable: {e}") from e


def decode_blob(raw: Any) -> Any:
    """Parse stored JSON text. Non-JSON strings come back unchanged."""
    if raw is None or not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw


class BlobStore(ABC):
    """Abstract JSON blob store over a remote key-value service.

    Values are any JSON-serializable object. Missing keys are reported as
    ``None`` rather than raised. Transport failures raise
    ``StoreUnavailable``; nothing is retried.
    """

    @abstractmethod
    async def put(
        self,
        key: str,
        blob: Any,
        ttl: int | None = None,
        if_absent: bool = False,
    ) -> bool:
        """Write ``blob`` at ``key``. Returns False only when ``if_absent`` skipped the write."""
        ...

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Read the value at ``key``, or None."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> int:
        """Delete ``key``. Returns the number of keys removed (0 or 1)."""
        ...

    @abstractmethod
    def scan_prefix(
        self,
        prefix: str,
        limit: int | None = None,
    ) -> AsyncIterator[str]:
        """Yield keys starting with ``prefix``, at most ``limit`` of them."""
        ...

    @abstractmethod
    async def multi_get(self, keys: Sequence[str]) -> list[tuple[str, Any | None]]:
        """Read many keys at once, preserving request order."""
        ...

    @abstractmethod
    async def push_capped(self, key: str, blob: Any, max_len: int) -> None:
        """Prepend ``blob`` to the list at ``key`` and keep the newest ``max_len``."""
        ...

    @abstractmethod
    async def list_range(self, key: str, start: int = 0, stop: int = -1) -> list[Any]:
        """Return list items ``start..stop`` inclusive (newest first)."""
        ...

    async def ping(self) -> bool:
        """Return True when the store answers. Override if needed."""
        return True

    async def close(self) -> None:
        """Release connections. Override if needed."""
