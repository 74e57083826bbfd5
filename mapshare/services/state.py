"""State service - save/fetch/list/remove arbitrary JSON map states."""

from __future__ import annotations

import logging
from typing import Any

from mapshare.clock import now_ms
from mapshare.errors import InvalidPayload, RecordNotFound
from mapshare.ids import generate_id
from mapshare.keys import build_key, build_prefix, parse_key
from mapshare.models.record import Record
from mapshare.storage.base import BlobStore, encode_blob

logger = logging.getLogger(__name__)

STATE_NAMESPACE = "state"


class StateService:
    """Saved map states, optionally partitioned by owner.

    Owner scoping comes from the key alone: a record saved under one owner
    is simply not at the key another owner's fetch builds.
    """

    def __init__(self, store: BlobStore, namespace: str = STATE_NAMESPACE):
        self.store = store
        self.namespace = namespace

    def _key(self, owner_id: str | None, record_id: str) -> str:
        return build_key(self.namespace, owner_id, record_id)

    async def save(
        self,
        owner_id: str | None,
        payload: Any,
        name: str | None = None,
    ) -> str:
        """Store ``payload`` under a fresh id and return the id."""
        if payload is None:
            raise InvalidPayload("Missing state payload")
        record = Record(
            id=generate_id(),
            owner_id=owner_id,
            payload=payload,
            created_at=now_ms(),
            name=name,
        )
        envelope = record.to_dict()
        # Serialize up front so a bad payload fails before any I/O
        encode_blob(envelope)
        await self.store.put(self._key(owner_id, record.id), envelope)
        logger.info(f"Saved state id={record.id} owner={owner_id}")
        return record.id

    async def get_record(self, owner_id: str | None, record_id: str) -> Record:
        """Fetch the full record envelope.

        Raises:
            RecordNotFound: no record at this owner's key.
        """
        value = await self.store.get(self._key(owner_id, record_id))
        if value is None:
            raise RecordNotFound(record_id)
        record = Record.from_value(record_id, owner_id, value)
        if record.owner_id != owner_id:
            logger.warning(
                f"State {record_id} envelope owner {record.owner_id!r} disagrees with key owner {owner_id!r}"
            )
            raise RecordNotFound(record_id)
        return record

    async def fetch(self, owner_id: str | None, record_id: str) -> Any:
        """Return the payload saved under ``record_id``."""
        record = await self.get_record(owner_id, record_id)
        return record.payload

    async def list(self, owner_id: str | None) -> list[Record]:
        """List the owner's records, newest first."""
        prefix = build_prefix(self.namespace, owner_id)
        keys = []
        async for key in self.store.scan_prefix(prefix):
            try:
                _, key_owner, _ = parse_key(key)
            except ValueError:
                logger.debug(f"Skipping foreign key {key!r}")
                continue
            if key_owner == owner_id:
                keys.append(key)
        if not keys:
            return []

        records = []
        for key, value in await self.store.multi_get(keys):
            # Deleted between scan and read
            if value is None:
                continue
            _, _, record_id = parse_key(key)
            record = Record.from_value(record_id, owner_id, value)
            if record.owner_id == owner_id:
                records.append(record)
        records.sort(key=lambda r: r.created_at or 0, reverse=True)
        return records

    async def remove(self, owner_id: str | None, record_id: str) -> bool:
        """Delete a record. Returns whether it existed."""
        deleted = await self.store.delete(self._key(owner_id, record_id)) > 0
        if deleted:
            logger.info(f"Deleted state id={record_id} owner={owner_id}")
        return deleted
