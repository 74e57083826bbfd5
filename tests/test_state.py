"""Tests for StateService: save, fetch, list and remove of map states."""

import json
from fnmatch import fnmatchcase
from unittest.mock import patch

import httpx
import pytest

from mapshare.errors import InvalidPayload, RecordNotFound
from mapshare.keys import build_key
from mapshare.services.state import StateService
from mapshare.storage.upstash import UpstashStore


class TestSaveFetch:

    @pytest.mark.asyncio
    async def test_round_trip_preserves_payload(self, states):
        payload = {"zoom": 15, "center": [12.5, 41.9], "models": [{"id": "m1", "scale": 0.5}]}
        state_id = await states.save(None, payload)
        assert await states.fetch(None, state_id) == payload

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [[1, 2, 3], "plain text", 42, {"nested": {"deep": [None, True]}}])
    async def test_any_json_value_round_trips(self, states, payload):
        state_id = await states.save("alice", payload)
        assert await states.fetch("alice", state_id) == payload

    @pytest.mark.asyncio
    async def test_missing_payload_rejected(self, states, store):
        with pytest.raises(InvalidPayload):
            await states.save(None, None)
        assert store.values == {}

    @pytest.mark.asyncio
    async def test_unserializable_payload_fails_before_write(self, states, store):
        with pytest.raises(InvalidPayload):
            await states.save(None, {"bad": float("nan")})
        with pytest.raises(InvalidPayload):
            await states.save(None, {"bad": object()})
        assert store.values == {}

    @pytest.mark.asyncio
    async def test_unknown_id_not_found(self, states):
        with pytest.raises(RecordNotFound):
            await states.fetch(None, "nope1234")

    @pytest.mark.asyncio
    async def test_record_carries_envelope(self, states):
        state_id = await states.save("alice", {"zoom": 3}, name="Trip")
        record = await states.get_record("alice", state_id)
        assert record.id == state_id
        assert record.owner_id == "alice"
        assert record.name == "Trip"
        assert isinstance(record.created_at, int)

    @pytest.mark.asyncio
    async def test_legacy_bare_value_readable(self, states, store):
        await store.put(build_key("state", None, "legacy01"), {"zoom": 9})
        assert await states.fetch(None, "legacy01") == {"zoom": 9}
        record = await states.get_record(None, "legacy01")
        assert record.created_at is None


class TestOwnerIsolation:

    @pytest.mark.asyncio
    async def test_concrete_alice_bob_scenario(self, states, store):
        with patch("mapshare.services.state.generate_id", return_value="a1b2c3d4"):
            state_id = await states.save("alice", {"zoom": 15})
        assert state_id == "a1b2c3d4"
        assert "state:alice:a1b2c3d4" in store.values

        assert await states.fetch("alice", "a1b2c3d4") == {"zoom": 15}
        with pytest.raises(RecordNotFound):
            await states.fetch("bob", "a1b2c3d4")
        with pytest.raises(RecordNotFound):
            await states.fetch(None, "a1b2c3d4")
        assert await states.remove("bob", "a1b2c3d4") is False
        assert await states.fetch("alice", "a1b2c3d4") == {"zoom": 15}

    @pytest.mark.asyncio
    async def test_lists_are_partitioned(self, states):
        await states.save("alice", {"n": 1})
        await states.save("alice", {"n": 2})
        await states.save("bob", {"n": 3})
        await states.save(None, {"n": 4})

        assert len(await states.list("alice")) == 2
        assert len(await states.list("bob")) == 1
        unowned = await states.list(None)
        assert [r.payload for r in unowned] == [{"n": 4}]

    @pytest.mark.asyncio
    async def test_envelope_owner_mismatch_hidden(self, states, store):
        await store.put(
            build_key("state", "bob", "x1y2z3w4"),
            {"id": "x1y2z3w4", "ownerId": "alice", "payload": {}, "createdAt": 1},
        )
        with pytest.raises(RecordNotFound):
            await states.fetch("bob", "x1y2z3w4")


class TestListRemove:

    @pytest.mark.asyncio
    async def test_list_newest_first(self, states):
        with patch("mapshare.services.state.now_ms", side_effect=[1000, 3000, 2000]):
            first = await states.save("alice", {"n": 1})
            second = await states.save("alice", {"n": 2})
            third = await states.save("alice", {"n": 3})
        assert [r.id for r in await states.list("alice")] == [second, third, first]

    @pytest.mark.asyncio
    async def test_list_empty(self, states):
        assert await states.list("nobody") == []

    @pytest.mark.asyncio
    async def test_remove_is_idempotent(self, states):
        state_id = await states.save("alice", {"n": 1})
        assert await states.remove("alice", state_id) is True
        assert await states.remove("alice", state_id) is False
        with pytest.raises(RecordNotFound):
            await states.fetch("alice", state_id)
        assert await states.list("alice") == []

    @pytest.mark.asyncio
    async def test_custom_namespace(self, store):
        drafts = StateService(store, namespace="draft")
        state_id = await drafts.save(None, {"n": 1})
        assert build_key("draft", None, state_id) in store.values


class FakeRedisRest:
    """Enough of the Upstash REST protocol for SET/GET/DEL/MGET/SCAN.

    SCAN walks the sorted key space ``COUNT`` keys per page and returns
    the matches among them, like Redis does.
    """

    def __init__(self):
        self.data: dict[str, str] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        cmd, *args = json.loads(request.content)
        cmd = cmd.upper()
        if cmd == "SET":
            self.data[args[0]] = args[1]
            result = "OK"
        elif cmd == "GET":
            result = self.data.get(args[0])
        elif cmd == "DEL":
            result = 1 if self.data.pop(args[0], None) is not None else 0
        elif cmd == "MGET":
            result = [self.data.get(k) for k in args]
        elif cmd == "SCAN":
            start, pattern, count = int(args[0]), args[2], int(args[4])
            keys = sorted(self.data)
            page = keys[start:start + count]
            cursor = start + count if start + count < len(keys) else 0
            result = [str(cursor), [k for k in page if fnmatchcase(k, pattern)]]
        else:
            return httpx.Response(200, json={"error": f"ERR unknown command {cmd}"})
        return httpx.Response(200, json={"result": result})


class TestListOverRestStore:
    """Listing through UpstashStore, where SCAN is paged and bounded."""

    @pytest.fixture
    def rest_states(self):
        store = UpstashStore(
            "https://fake.upstash.io",
            "tok",
            scan_page_size=2,
            scan_limit=5,
            transport=httpx.MockTransport(FakeRedisRest()),
        )
        return StateService(store)

    @pytest.mark.asyncio
    async def test_owned_keys_do_not_use_up_unowned_scan_bound(self, rest_states):
        for n in range(5):
            await rest_states.save("alice", {"n": n})
        for n in range(3):
            await rest_states.save("bob", {"n": n})
        anon_id = await rest_states.save(None, {"n": "anon"})

        unowned = await rest_states.list(None)
        assert [r.id for r in unowned] == [anon_id]
        assert len(await rest_states.list("alice")) == 5
        assert len(await rest_states.list("bob")) == 3

    @pytest.mark.asyncio
    async def test_list_count_matches_saves(self, rest_states):
        ids = {await rest_states.save(None, {"n": n}) for n in range(4)}
        await rest_states.save("alice", {"n": 99})
        assert {r.id for r in await rest_states.list(None)} == ids

        await rest_states.remove(None, ids.pop())
        assert {r.id for r in await rest_states.list(None)} == ids
