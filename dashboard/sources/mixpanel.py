import json
import time
from typing import List, Optional

import httpx
import structlog
from prometheus_client import Counter, Histogram

from dashboard.config import settings
from dashboard.db.redis_client import redis_client
from dashboard.models.events import Event
from dashboard.sources.cache import EventCache

logger = structlog.get_logger()

fetch_counter = Counter('upstream_fetches_total', 'Event export requests sent upstream')
fetch_failed_counter = Counter('upstream_fetches_failed_total', 'Event export requests that failed')
fetch_duration = Histogram('upstream_fetch_seconds', 'Event export request duration')


class EventSourceError(Exception):
    pass


class MissingCredentialsError(EventSourceError):
    pass


class EmptyEventSource:
    async def fetch_events(self, from_date: str, to_date: str) -> List[Event]:
        return []


class MixpanelEventSource:
    def __init__(
            self,
            api_secret: str,
            export_url: str = "https://data.mixpanel.com/api/2.0/export",
            timeout: float = 60.0,
            cache: Optional[EventCache] = None,
            transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_secret = api_secret
        self.export_url = export_url
        self.timeout = timeout
        self.cache = cache
        self.transport = transport

    async def fetch_events(self, from_date: str, to_date: str) -> List[Event]:
        if self.cache is not None:
            cached = await self.cache.get(from_date, to_date)
            if cached is not None:
                return cached

        events = await self._export(from_date, to_date)

        if self.cache is not None:
            await self.cache.set(from_date, to_date, events)
        return events

    async def _export(self, from_date: str, to_date: str) -> List[Event]:
        if not self.api_secret:
            raise MissingCredentialsError("MIXPANEL_API_SECRET environment variable is not set")

        fetch_counter.inc()
        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    self.export_url,
                    params={"from_date": from_date, "to_date": to_date},
                    auth=(self.api_secret, "")
                )
        except httpx.HTTPError as e:
            fetch_failed_counter.inc()
            logger.error("upstream_fetch_failed", from_date=from_date, to_date=to_date, error=str(e))
            raise EventSourceError(f"Mixpanel API request failed: {e}") from e
        finally:
            fetch_duration.observe(time.time() - start_time)

        if response.status_code >= 400:
            fetch_failed_counter.inc()
            logger.error("upstream_fetch_rejected", status_code=response.status_code)
            raise EventSourceError(f"Mixpanel API error: {response.status_code} - {response.text}")

        events = parse_export(response.text)
        logger.info("upstream_fetch_completed", from_date=from_date, to_date=to_date, count=len(events))
        return events


def parse_export(body: str) -> List[Event]:
    events = []
    for line_number, line in enumerate(body.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning("export_line_parse_failed", line=line_number, error=str(e))
            continue
        if not isinstance(record, dict):
            continue
        events.append(Event.from_raw(record))
    return events


def build_event_source(cache: Optional[EventCache] = None) -> MixpanelEventSource:
    return MixpanelEventSource(
        api_secret=settings.mixpanel_api_secret,
        export_url=settings.mixpanel_export_url,
        timeout=settings.mixpanel_timeout_seconds,
        cache=cache
    )


async def get_event_source() -> MixpanelEventSource:
    cache = None
    if redis_client.connected:
        cache = EventCache(redis_client, ttl_seconds=settings.cache_ttl_seconds)
    return build_event_source(cache)
