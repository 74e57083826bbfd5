"""Test configuration and fixtures for mapshare tests."""

from collections.abc import AsyncIterator, Sequence
from typing import Any

import pytest
from fastapi.testclient import TestClient

from mapshare.api import deps
from mapshare.http_server import app
from mapshare.services.accounts import AccountService
from mapshare.services.locations import LocationService
from mapshare.services.sessions import MapSessionService
from mapshare.services.state import StateService
from mapshare.storage.base import BlobStore, decode_blob, encode_blob


class InMemoryStore(BlobStore):
    """Dict-backed store for tests (no network, values kept as JSON text)."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.lists: dict[str, list[str]] = {}
        self.ttls: dict[str, int] = {}
        self.scan_calls = 0

    async def put(self, key: str, blob: Any, ttl: int | None = None, if_absent: bool = False) -> bool:
        if if_absent and key in self.values:
            return False
        self.values[key] = encode_blob(blob)
        if ttl:
            self.ttls[key] = ttl
        return True

    async def get(self, key: str) -> Any | None:
        return decode_blob(self.values.get(key))

    async def delete(self, key: str) -> int:
        existed = key in self.values or key in self.lists
        self.values.pop(key, None)
        self.lists.pop(key, None)
        return 1 if existed else 0

    async def scan_prefix(self, prefix: str, limit: int | None = None) -> AsyncIterator[str]:
        self.scan_calls += 1
        count = 0
        for key in sorted(self.values):
            if limit is not None and count >= limit:
                return
            if key.startswith(prefix):
                count += 1
                yield key

    async def multi_get(self, keys: Sequence[str]) -> list[tuple[str, Any | None]]:
        return [(key, decode_blob(self.values.get(key))) for key in keys]

    async def push_capped(self, key: str, blob: Any, max_len: int) -> None:
        items = self.lists.setdefault(key, [])
        items.insert(0, encode_blob(blob))
        del items[max_len:]

    async def list_range(self, key: str, start: int = 0, stop: int = -1) -> list[Any]:
        items = self.lists.get(key, [])
        end = None if stop == -1 else stop + 1
        return [decode_blob(v) for v in items[start:end]]


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def states(store) -> StateService:
    return StateService(store)


@pytest.fixture
def accounts(store) -> AccountService:
    return AccountService(store, token_ttl=3600)


@pytest.fixture
def map_sessions(store) -> MapSessionService:
    return MapSessionService(store)


@pytest.fixture
def locations(store) -> LocationService:
    return LocationService(store, history_limit=100)


@pytest.fixture
def client(store):
    """TestClient whose services all share the in-memory store."""
    app.dependency_overrides[deps.get_blob_store] = lambda: store
    app.dependency_overrides[deps.get_optional_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client) -> dict:
    """Register a user through the API and return its bearer header."""
    r = client.post(
        "/api/auth",
        json={"action": "register", "username": "alice", "password": "s3cret-pass"},
    )
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['sessionToken']}"}
