"""Location service - live participant positions and employee tracking."""

from __future__ import annotations

import logging
import math
from typing import Any

from mapshare.clock import now_ms
from mapshare.config import EMPLOYEE_HISTORY_LIMIT
from mapshare.errors import InvalidPayload
from mapshare.keys import build_key, build_prefix, parse_key
from mapshare.storage.base import BlobStore

logger = logging.getLogger(__name__)

PRESENCE_NAMESPACE = "presence"
EMPLOYEE_NAMESPACE = "employee"
EMPLOYEE_HISTORY_NAMESPACE = "employee_history"


def validate_coordinates(lat: Any, lng: Any) -> tuple[float, float]:
    """Return (lat, lng) as floats or raise InvalidPayload."""
    # bool is an int subclass; reject it explicitly
    if isinstance(lat, bool) or isinstance(lng, bool):
        raise InvalidPayload("Latitude and longitude must be numbers")
    try:
        lat_f, lng_f = float(lat), float(lng)
    except (TypeError, ValueError) as e:
        raise InvalidPayload("Latitude and longitude must be numbers") from e
    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        raise InvalidPayload("Latitude and longitude must be finite")
    if not -90.0 <= lat_f <= 90.0:
        raise InvalidPayload(f"Latitude out of range: {lat_f}")
    if not -180.0 <= lng_f <= 180.0:
        raise InvalidPayload(f"Longitude out of range: {lng_f}")
    return lat_f, lng_f


class LocationService:
    """Positions shared by map session participants and tracked employees."""

    def __init__(self, store: BlobStore, history_limit: int = EMPLOYEE_HISTORY_LIMIT):
        self.store = store
        self.history_limit = history_limit

    # -------------------------------------------------------------------------
    # Session presence
    # -------------------------------------------------------------------------

    async def post_presence(
        self,
        session_id: str,
        user_id: str,
        lat: Any,
        lng: Any,
        nickname: str = "",
        timestamp: int | None = None,
        draws: Any = None,
        models: Any = None,
    ) -> dict:
        """Record where ``user_id`` is in map session ``session_id``.

        The entry replaces the participant's previous one. Drawings and
        placed models ride along when the client sends them.
        """
        if not session_id or not user_id:
            raise InvalidPayload("Missing sessionId or userId")
        lat_f, lng_f = validate_coordinates(lat, lng)
        entry = {
            "userId": user_id,
            "nickname": nickname or "",
            "lat": lat_f,
            "lng": lng_f,
            "timestamp": timestamp or now_ms(),
        }
        if draws is not None:
            entry["draws"] = draws
        if models is not None:
            entry["models"] = models
        await self.store.put(build_key(PRESENCE_NAMESPACE, session_id, user_id), entry)
        logger.debug(f"Presence session={session_id} user={user_id}")
        return entry

    async def list_presence(self, session_id: str) -> list[dict]:
        """Return every participant's latest entry, oldest update first."""
        prefix = build_prefix(PRESENCE_NAMESPACE, session_id)
        keys = [key async for key in self.store.scan_prefix(prefix)]
        if not keys:
            return []
        users = [value for _, value in await self.store.multi_get(keys) if isinstance(value, dict)]
        users.sort(key=lambda u: u.get("timestamp") or 0)
        return users

    # -------------------------------------------------------------------------
    # Employee tracking
    # -------------------------------------------------------------------------

    async def record_employee(self, employee_id: str, latitude: Any, longitude: Any) -> dict:
        """Save an employee's latest position and append it to their history."""
        if not employee_id:
            raise InvalidPayload("Missing employeeId")
        lat_f, lng_f = validate_coordinates(latitude, longitude)
        mark = {"latitude": lat_f, "longitude": lng_f, "ts": now_ms()}
        await self.store.put(build_key(EMPLOYEE_NAMESPACE, None, employee_id), mark)
        await self.store.push_capped(
            build_key(EMPLOYEE_HISTORY_NAMESPACE, None, employee_id),
            mark,
            self.history_limit,
        )
        return mark

    async def list_employees(self) -> list[dict]:
        """Return ``{"id", "latitude", "longitude", "ts"}`` for every employee."""
        prefix = build_prefix(EMPLOYEE_NAMESPACE, None)
        keys = [key async for key in self.store.scan_prefix(prefix)]
        if not keys:
            return []
        employees = []
        for key, value in await self.store.multi_get(keys):
            if not isinstance(value, dict) or "latitude" not in value or "longitude" not in value:
                continue
            _, _, employee_id = parse_key(key)
            employees.append({"id": employee_id, **value})
        return employees

    async def employee_history(self, employee_id: str, limit: int | None = None) -> list[dict]:
        """Return up to ``limit`` past positions, newest first."""
        limit = self.history_limit if limit is None else min(limit, self.history_limit)
        if limit <= 0:
            return []
        key = build_key(EMPLOYEE_HISTORY_NAMESPACE, None, employee_id)
        return await self.store.list_range(key, 0, limit - 1)
