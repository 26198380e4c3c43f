import json

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from dashboard.sources.cache import EventCache
from dashboard.sources.email_stats import EmailStatsClient
from dashboard.sources.mixpanel import (
    EventSourceError,
    MissingCredentialsError,
    MixpanelEventSource,
    parse_export,
)
from helpers import make_event

EXPORT_BODY = "\n".join([
    json.dumps({"event": "Search", "properties": {"distinct_id": "u1", "time": 1736942400}}),
    "",
    "not json",
    json.dumps(["not", "a", "record"]),
    json.dumps({"event": "Page_Viewed", "properties": {"distinct_id": "u2", "time": 1736942400}}),
])


class FakeRedis:
    def __init__(self, fail: bool = False):
        self.store = {}
        self.expiry = {}
        self.fail = fail

    async def get(self, key):
        if self.fail:
            raise RedisConnectionError("down")
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self.fail:
            raise RedisConnectionError("down")
        self.store[key] = value
        self.expiry[key] = ex


def export_transport(requests, status_code=200, body=EXPORT_BODY):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, text=body)

    return httpx.MockTransport(handler)


def test_parse_export_skips_bad_lines():
    events = parse_export(EXPORT_BODY)
    assert [(e.name, e.user_id) for e in events] == [("Search", "u1"), ("Page_Viewed", "u2")]


@pytest.mark.asyncio
async def test_fetch_events_sends_window_and_basic_auth():
    requests = []
    source = MixpanelEventSource("secret", transport=export_transport(requests))

    events = await source.fetch_events("2025-01-01", "2025-01-31")

    assert len(events) == 2
    request = requests[0]
    assert request.url.params["from_date"] == "2025-01-01"
    assert request.url.params["to_date"] == "2025-01-31"
    assert request.headers["Authorization"].startswith("Basic ")


@pytest.mark.asyncio
async def test_missing_secret_raises():
    source = MixpanelEventSource("")
    with pytest.raises(MissingCredentialsError):
        await source.fetch_events("2025-01-01", "2025-01-31")


@pytest.mark.asyncio
async def test_upstream_error_status_raises():
    source = MixpanelEventSource("secret", transport=export_transport([], status_code=401, body="bad auth"))
    with pytest.raises(EventSourceError) as exc_info:
        await source.fetch_events("2025-01-01", "2025-01-31")
    assert "401" in str(exc_info.value)


@pytest.mark.asyncio
async def test_transport_failure_is_wrapped():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    source = MixpanelEventSource("secret", transport=httpx.MockTransport(handler))
    with pytest.raises(EventSourceError):
        await source.fetch_events("2025-01-01", "2025-01-31")


@pytest.mark.asyncio
async def test_cache_serves_second_fetch():
    requests = []
    redis = FakeRedis()
    cache = EventCache(redis, ttl_seconds=300)
    source = MixpanelEventSource("secret", cache=cache, transport=export_transport(requests))

    first = await source.fetch_events("2025-01-01", "2025-01-31")
    second = await source.fetch_events("2025-01-01", "2025-01-31")

    assert len(requests) == 1
    assert first == second
    assert redis.expiry["events:2025-01-01:2025-01-31"] == 300


@pytest.mark.asyncio
async def test_cache_failure_falls_through_to_upstream():
    requests = []
    cache = EventCache(FakeRedis(fail=True))
    source = MixpanelEventSource("secret", cache=cache, transport=export_transport(requests))

    events = await source.fetch_events("2025-01-01", "2025-01-31")

    assert len(events) == 2
    assert len(requests) == 1


@pytest.mark.asyncio
async def test_cache_round_trips_events():
    cache = EventCache(FakeRedis())
    events = [make_event("Search", "u1", mode="fast")]
    await cache.set("2025-01-01", "2025-01-02", events)
    assert await cache.get("2025-01-01", "2025-01-02") == events
    assert await cache.get("2025-02-01", "2025-02-02") is None


@pytest.mark.asyncio
async def test_email_stats_passthrough():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"period_days": 7, "totals": {"sent": 12}, "by_email_type": {"trial": {}}})

    client = EmailStatsClient("https://mail.test/", "token", transport=httpx.MockTransport(handler))
    stats = await client.fetch(7)

    assert seen[0].url.path == "/webhooks/revenuecat/email-stats"
    assert seen[0].headers["Authorization"] == "token"
    assert stats["totals"] == {"sent": 12, "converted": 0, "overallConversionRate": 0}
    assert stats["by_email_type"] == {"trial": {}}
    assert "note" not in stats


@pytest.mark.asyncio
async def test_email_stats_timeout_returns_zeroed_payload():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    client = EmailStatsClient("https://mail.test", "token", transport=httpx.MockTransport(handler))
    stats = await client.fetch(30)

    assert stats["totals"]["sent"] == 0
    assert stats["period_days"] == 30
    assert "timeout" in stats["note"]


@pytest.mark.asyncio
async def test_email_stats_not_configured():
    stats = await EmailStatsClient("", "").fetch(30)
    assert stats["note"].startswith("Data unavailable")


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", ["{not json", json.dumps({"event": "Search"}), json.dumps(42)])
async def test_corrupt_cache_entry_falls_through_to_upstream(payload):
    requests = []
    redis = FakeRedis()
    redis.store["events:2025-01-01:2025-01-31"] = payload
    source = MixpanelEventSource("secret", cache=EventCache(redis), transport=export_transport(requests))

    events = await source.fetch_events("2025-01-01", "2025-01-31")

    assert len(events) == 2
    assert len(requests) == 1
    assert json.loads(redis.store["events:2025-01-01:2025-01-31"])[0]["event"] == "Search"
