from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from prometheus_client import Counter

from dashboard.api.metrics import CACHE_CONTROL
from dashboard.assemblers.base import last_updated
from dashboard.core.dates import resolve_range
from dashboard.sources.mixpanel import EventSourceError, get_event_source

router = APIRouter(prefix="/api")
logger = structlog.get_logger()

events_served_counter = Counter('events_served_total', 'Raw events returned to clients')


@router.get("/events")
async def get_events(
        response: Response,
        range_token: str = Query("30d", alias="range"),
        from_date: Optional[str] = Query(None, alias="from", pattern=r"^\d{4}-\d{2}-\d{2}$"),
        to_date: Optional[str] = Query(None, alias="to", pattern=r"^\d{4}-\d{2}-\d{2}$"),
        source=Depends(get_event_source)
):
    date_range = resolve_range(range_token, from_date, to_date)
    try:
        events = await source.fetch_events(date_range.from_date, date_range.to_date)
    except EventSourceError as e:
        logger.error("events_fetch_failed", error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    events_served_counter.inc(len(events))
    logger.info("events_query", from_date=date_range.from_date, to_date=date_range.to_date, count=len(events))

    response.headers["Cache-Control"] = CACHE_CONTROL
    return {
        "events": [event.to_raw() for event in events],
        "count": len(events),
        "dateRange": date_range.to_dict(),
        "lastUpdated": last_updated(),
    }
