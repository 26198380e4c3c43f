import json
from typing import List, Optional

import structlog
from prometheus_client import Counter
from redis.exceptions import RedisError

from dashboard.db.redis_client import RedisClient
from dashboard.models.events import Event, parse_events

logger = structlog.get_logger()

cache_hits_counter = Counter('event_cache_hits_total', 'Event cache lookups served from cache')
cache_misses_counter = Counter('event_cache_misses_total', 'Event cache lookups that missed')


class EventCache:
    """Fetched event batches keyed by date window, expiring after ``ttl_seconds``.

    Cache failures never fail a fetch: they are logged and treated as misses.
    """

    def __init__(self, client: RedisClient, ttl_seconds: int = 300, prefix: str = "events"):
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    def key(self, from_date: str, to_date: str) -> str:
        return f"{self.prefix}:{from_date}:{to_date}"

    async def get(self, from_date: str, to_date: str) -> Optional[List[Event]]:
        key = self.key(from_date, to_date)
        try:
            cached = await self.client.get(key)
        except RedisError as e:
            logger.warning("event_cache_get_failed", key=key, error=str(e))
            return None

        if cached is None:
            cache_misses_counter.inc()
            return None

        try:
            events = parse_events(json.loads(cached))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("event_cache_decode_failed", key=key, error=str(e))
            cache_misses_counter.inc()
            return None

        cache_hits_counter.inc()
        return events

    async def set(self, from_date: str, to_date: str, events: List[Event]):
        key = self.key(from_date, to_date)
        payload = json.dumps([event.to_raw() for event in events])
        try:
            await self.client.set(key, payload, ex=self.ttl_seconds)
        except RedisError as e:
            logger.warning("event_cache_set_failed", key=key, error=str(e))
