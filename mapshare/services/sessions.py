"""Map session service - shared snapshots of a collaborative map."""

from __future__ import annotations

import logging

from mapshare.clock import now_ms
from mapshare.config import SESSION_TTL_SECONDS
from mapshare.errors import InvalidPayload, RecordNotFound
from mapshare.ids import generate_hex_id
from mapshare.keys import build_key
from mapshare.storage.base import BlobStore, encode_blob

logger = logging.getLogger(__name__)

SESSION_NAMESPACE = "session"


class MapSessionService:
    """Create, read and replace collaborative map session snapshots.

    A snapshot is ``{id, owner, createdAt, models, draws, camera}``; clients
    replace it wholesale on every update.
    """

    def __init__(self, store: BlobStore, ttl: int = SESSION_TTL_SECONDS):
        self.store = store
        self.ttl = ttl or None

    def _key(self, session_id: str) -> str:
        return build_key(SESSION_NAMESPACE, None, session_id)

    async def create(self, owner_name: str | None = None) -> str:
        """Create an empty session and return its id."""
        session_id = generate_hex_id()
        snapshot = {
            "id": session_id,
            "owner": owner_name or "guest",
            "createdAt": now_ms(),
            "models": [],
            "draws": [],
            "camera": None,
        }
        await self.store.put(self._key(session_id), snapshot, ttl=self.ttl)
        logger.info(f"Created map session {session_id} owner={snapshot['owner']}")
        return session_id

    async def get(self, session_id: str) -> dict:
        snapshot = await self.store.get(self._key(session_id))
        if snapshot is None:
            raise RecordNotFound(session_id, f"Session not found: {session_id}")
        return snapshot

    async def update(self, session_id: str, snapshot: dict) -> dict:
        """Replace the stored snapshot of an existing session.

        ``id`` always matches the session; ``createdAt`` and ``owner`` are
        kept from the stored snapshot when the client omits them.
        """
        if not isinstance(snapshot, dict):
            raise InvalidPayload("Session snapshot must be a JSON object")
        encode_blob(snapshot)
        current = await self.get(session_id)
        merged = {
            "owner": current.get("owner"),
            "createdAt": current.get("createdAt"),
            **snapshot,
            "id": session_id,
            "updatedAt": now_ms(),
        }
        await self.store.put(self._key(session_id), merged, ttl=self.ttl)
        return merged
