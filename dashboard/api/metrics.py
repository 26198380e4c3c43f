from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from prometheus_client import Counter

from dashboard.assemblers import (
    acquisition,
    collections,
    engagement,
    features,
    marketing,
    notes,
    onboarding,
    overview,
    push,
    research,
    searches,
    sharing,
    subscriptions,
    users,
)
from dashboard.models.metrics import MetricsQuery
from dashboard.sources.mixpanel import EmptyEventSource, EventSourceError, get_event_source

router = APIRouter(prefix="/api/metrics")
logger = structlog.get_logger()

degraded_counter = Counter('metrics_degraded_total', 'Views served without upstream data', ['view'])

CACHE_CONTROL = "public, s-maxage=300, stale-while-revalidate=600"

VIEWS = {
    "overview": overview.build,
    "acquisition": acquisition.build,
    "funnel": subscriptions.build,
    "subscriptions": subscriptions.build,
    "notes": notes.build,
    "collections": collections.build,
    "research": research.build,
    "sharing": sharing.build,
    "marketing": marketing.build,
    "push": push.build,
    "onboarding": onboarding.build,
    "users": users.build,
    "features": features.build,
    "searches": searches.build,
    "engagement": engagement.build,
    "advanced": engagement.build,
}


@router.get("/{view}")
async def get_metrics(
        view: str,
        response: Response,
        range_token: str = Query("30d", alias="range"),
        from_date: Optional[str] = Query(None, alias="from", pattern=r"^\d{4}-\d{2}-\d{2}$"),
        to_date: Optional[str] = Query(None, alias="to", pattern=r"^\d{4}-\d{2}-\d{2}$"),
        platform: Optional[str] = None,
        user_type: str = Query("all", alias="userType"),
        source=Depends(get_event_source)
):
    builder = VIEWS.get(view)
    if builder is None:
        raise HTTPException(status_code=404, detail=f"Unknown view: {view}")

    query = MetricsQuery(
        range=range_token,
        from_date=from_date,
        to_date=to_date,
        platform=platform or ("mobile" if view == "onboarding" else "all"),
        user_type=user_type,
    )

    try:
        result = await builder(source, query)
    except EventSourceError as e:
        degraded_counter.labels(view=view).inc()
        logger.error("metrics_source_unavailable", view=view, error=str(e))
        result = await builder(EmptyEventSource(), query)
        result["note"] = f"Data unavailable - {e}"
    except Exception as e:
        logger.error("metrics_query_failed", view=view, error=str(e))
        raise HTTPException(status_code=500, detail=f"Failed to fetch {view} metrics")

    logger.info("metrics_query", view=view, range=range_token, platform=query.platform, user_type=user_type)
    response.headers["Cache-Control"] = CACHE_CONTROL
    return result
