"""Tests for the Upstash REST store, against a mocked HTTP transport."""

import json
import os

import httpx
import pytest

from mapshare.errors import StoreError, StoreUnavailable
from mapshare.storage.upstash import UpstashStore


def make_store(handler, **kwargs) -> UpstashStore:
    return UpstashStore(
        "https://example.upstash.io/",
        "tok",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class Recorder:
    """Answers each request with the next canned reply and keeps the bodies."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies.pop(0)
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    def body(self, i: int = -1):
        return json.loads(self.requests[i].content)


class TestCommands:

    @pytest.mark.asyncio
    async def test_put_sends_set_with_bearer(self):
        rec = Recorder({"result": "OK"})
        store = make_store(rec)
        assert await store.put("state:abc", {"zoom": 1}) is True
        assert rec.body() == ["SET", "state:abc", '{"zoom": 1}']
        assert rec.requests[0].headers["Authorization"] == "Bearer tok"
        assert str(rec.requests[0].url).rstrip("/") == "https://example.upstash.io"
        await store.close()

    @pytest.mark.asyncio
    async def test_put_with_ttl_and_nx(self):
        rec = Recorder({"result": None})
        store = make_store(rec)
        assert await store.put("k:1", "v", ttl=60, if_absent=True) is False
        assert rec.body() == ["SET", "k:1", '"v"', "EX", 60, "NX"]

    @pytest.mark.asyncio
    async def test_get_decodes_json(self):
        store = make_store(Recorder({"result": '{"a": [1, 2]}'}))
        assert await store.get("k:1") == {"a": [1, 2]}

    @pytest.mark.asyncio
    async def test_get_missing_and_raw_string(self):
        store = make_store(Recorder({"result": None}, {"result": "not json"}))
        assert await store.get("k:1") is None
        assert await store.get("k:2") == "not json"

    @pytest.mark.asyncio
    async def test_delete_returns_count(self):
        store = make_store(Recorder({"result": 1}, {"result": 0}))
        assert await store.delete("k:1") == 1
        assert await store.delete("k:1") == 0

    @pytest.mark.asyncio
    async def test_multi_get_batches(self):
        keys = [f"k:{i}" for i in range(150)]
        rec = Recorder(
            {"result": [json.dumps(i) for i in range(100)]},
            {"result": [json.dumps(i) for i in range(100, 149)] + [None]},
        )
        store = make_store(rec)
        pairs = await store.multi_get(keys)
        assert len(rec.requests) == 2
        assert rec.body(0)[0] == "MGET" and len(rec.body(0)) == 101
        assert pairs[0] == ("k:0", 0)
        assert pairs[-1] == ("k:149", None)

    @pytest.mark.asyncio
    async def test_push_capped_uses_pipeline(self):
        rec = Recorder([{"result": 3}, {"result": "OK"}])
        store = make_store(rec)
        await store.push_capped("h:1", {"ts": 1}, 100)
        assert rec.requests[0].url.path == "/pipeline"
        assert rec.body() == [["LPUSH", "h:1", '{"ts": 1}'], ["LTRIM", "h:1", 0, 99]]

    @pytest.mark.asyncio
    async def test_list_range(self):
        rec = Recorder({"result": ['{"ts": 2}', '{"ts": 1}']})
        store = make_store(rec)
        assert await store.list_range("h:1", 0, 9) == [{"ts": 2}, {"ts": 1}]
        assert rec.body() == ["LRANGE", "h:1", 0, 9]

    @pytest.mark.asyncio
    async def test_ping(self):
        store = make_store(Recorder({"result": "PONG"}, {"error": "NOPERM"}))
        assert await store.ping() is True
        assert await store.ping() is False


class TestScan:

    @pytest.mark.asyncio
    async def test_follows_cursor_and_dedups(self):
        rec = Recorder(
            {"result": ["17", ["state:a", "state:b"]]},
            {"result": ["0", ["state:b", "state:c"]]},
        )
        store = make_store(rec)
        keys = [k async for k in store.scan_prefix("state:")]
        assert keys == ["state:a", "state:b", "state:c"]
        assert rec.body(0) == ["SCAN", "0", "MATCH", "state:*", "COUNT", 200]
        assert rec.body(1)[1] == "17"

    @pytest.mark.asyncio
    async def test_stops_at_limit(self):
        rec = Recorder(
            {"result": ["5", ["s:1", "s:2", "s:3"]]},
            {"result": ["0", ["s:4"]]},
        )
        store = make_store(rec)
        keys = [k async for k in store.scan_prefix("s:", limit=2)]
        assert keys == ["s:1", "s:2"]
        assert len(rec.requests) == 1

    @pytest.mark.asyncio
    async def test_configured_limit_applies_by_default(self):
        rec = Recorder({"result": ["9", ["s:1", "s:2"]]})
        store = make_store(rec, scan_limit=1)
        assert [k async for k in store.scan_prefix("s:")] == ["s:1"]


class TestFailures:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403, 500, 503])
    async def test_auth_and_server_errors_unavailable(self, status):
        store = make_store(Recorder(httpx.Response(status, json={"error": "nope"})))
        with pytest.raises(StoreUnavailable):
            await store.get("k:1")

    @pytest.mark.asyncio
    async def test_timeout_unavailable(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(StoreUnavailable):
            await make_store(handler).get("k:1")

    @pytest.mark.asyncio
    async def test_connect_error_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(StoreUnavailable):
            await make_store(handler).put("k:1", 1)

    @pytest.mark.asyncio
    async def test_error_reply_is_store_error(self):
        store = make_store(Recorder({"error": "WRONGTYPE Operation against a key"}))
        with pytest.raises(StoreError) as exc_info:
            await store.get("k:1")
        assert not isinstance(exc_info.value, StoreUnavailable)

    @pytest.mark.asyncio
    async def test_bad_request_is_store_error(self):
        store = make_store(Recorder(httpx.Response(400, json={"error": "ERR syntax error"})))
        with pytest.raises(StoreError, match="syntax"):
            await store.get("k:1")

    @pytest.mark.asyncio
    async def test_non_json_body_unavailable(self):
        store = make_store(Recorder(httpx.Response(200, text="<html>gateway</html>")))
        with pytest.raises(StoreUnavailable):
            await store.get("k:1")

    @pytest.mark.asyncio
    async def test_pipeline_error_item(self):
        store = make_store(Recorder([{"result": 1}, {"error": "ERR"}]))
        with pytest.raises(StoreError):
            await store.push_capped("h:1", 1, 10)


@pytest.mark.slow
@pytest.mark.skipif(
    not (os.getenv("UPSTASH_REDIS_REST_URL") and os.getenv("UPSTASH_REDIS_REST_TOKEN")),
    reason="needs a live Upstash database",
)
class TestLiveUpstash:
    """Round trip against a real database (set UPSTASH_REDIS_REST_URL/TOKEN)."""

    @pytest.mark.asyncio
    async def test_state_round_trip(self):
        from mapshare.config import get_store_settings
        from mapshare.services.state import StateService

        store = UpstashStore.from_settings(get_store_settings())
        states = StateService(store, namespace="mapshare_test")
        try:
            state_id = await states.save("pytest", {"hello": "world"})
            assert await states.fetch("pytest", state_id) == {"hello": "world"}
            assert state_id in [r.id for r in await states.list("pytest")]
            assert await states.remove("pytest", state_id) is True
        finally:
            await store.close()
