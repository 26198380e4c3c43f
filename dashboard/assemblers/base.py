from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Protocol

import structlog

from dashboard.core.classifier import filter_by_user_tier
from dashboard.core.dates import DateRange, enumerate_days, prior_period, resolve_range
from dashboard.core.platforms import filter_by_platform
from dashboard.models.events import Event
from dashboard.models.metrics import MetricsQuery
from dashboard.sources.mixpanel import EventSourceError

logger = structlog.get_logger()


class EventSource(Protocol):
    async def fetch_events(self, from_date: str, to_date: str) -> List[Event]:
        ...


@dataclass
class Window:
    date_range: DateRange
    all_events: List[Event]
    platform_events: List[Event]
    events: List[Event]
    days: List[str] = field(default_factory=list)


def last_updated() -> str:
    return datetime.now(timezone.utc).isoformat()


def narrow(events: List[Event], query: MetricsQuery, by_platform: bool = True, by_user: bool = True) -> List[Event]:
    if by_platform:
        events = filter_by_platform(events, query.platform)
    if by_user:
        events = filter_by_user_tier(events, query.user_type)
    return events


async def load_window(
        source: EventSource,
        query: MetricsQuery,
        by_platform: bool = True,
        by_user: bool = True
) -> Window:
    date_range = resolve_range(query.range, query.from_date, query.to_date)
    all_events = await source.fetch_events(date_range.from_date, date_range.to_date)
    platform_events = narrow(all_events, query, by_platform=by_platform, by_user=False)
    events = narrow(platform_events, query, by_platform=False, by_user=by_user)
    return Window(
        date_range=date_range,
        all_events=all_events,
        platform_events=platform_events,
        events=events,
        days=enumerate_days(date_range),
    )


async def load_prior(source: EventSource, window: Window, query: MetricsQuery) -> List[Event]:
    previous = prior_period(window.date_range)
    try:
        events = await source.fetch_events(previous.from_date, previous.to_date)
    except EventSourceError as e:
        logger.warning("prior_period_unavailable", from_date=previous.from_date, to_date=previous.to_date, error=str(e))
        return []
    return narrow(events, query)


def envelope(window: Window, query: MetricsQuery, **metrics) -> dict:
    metrics.update(
        dateRange=window.date_range.to_dict(),
        platform=query.platform,
        userType=query.user_type,
        lastUpdated=last_updated(),
    )
    return metrics
