"""MapShare main class (facade pattern) and the process-wide store handle."""

from __future__ import annotations

import logging
import threading

from mapshare.config import get_store_settings
from mapshare.services.accounts import AccountService
from mapshare.services.locations import LocationService
from mapshare.services.sessions import MapSessionService
from mapshare.services.state import StateService
from mapshare.storage.base import BlobStore
from mapshare.storage.upstash import UpstashStore

logger = logging.getLogger(__name__)

_store: BlobStore | None = None
_store_lock = threading.Lock()


def get_store() -> BlobStore:
    """Return the process-wide store client, creating it on first use.

    Sharing it across requests is safe because the client keeps no
    request-specific state. Creation is lazy so a misconfigured
    environment fails the request, not the import.

    Raises:
        ConfigError: store URL or token missing or invalid.
    """
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                settings = get_store_settings()
                _store = UpstashStore.from_settings(settings)
                logger.info(f"Store client created for {settings.url}")
    return _store


def reset_store() -> None:
    """Forget the memoized store client (tests and reconfiguration)."""
    global _store
    with _store_lock:
        _store = None


class MapShare:
    """Bundles every service over one store.

    Example:
        app = MapShare(get_store())
        state_id = await app.states.save("alice", {"zoom": 15, "models": []})
    """

    def __init__(self, store: BlobStore | None = None):
        self.store = store if store is not None else get_store()
        self.states = StateService(self.store)
        self.accounts = AccountService(self.store)
        self.sessions = MapSessionService(self.store)
        self.locations = LocationService(self.store)

    async def close(self) -> None:
        await self.store.close()
