import sys
import asyncio
import json
from dashboard.api.metrics import VIEWS
from dashboard.core.dates import RANGE_DAYS
from dashboard.models.metrics import MetricsQuery
from dashboard.sources.mixpanel import EventSourceError, build_event_source
import structlog

logger = structlog.get_logger()


async def dump_metrics(view: str, range_token: str) -> dict:
    query = MetricsQuery(range=range_token, platform="mobile" if view == "onboarding" else "all")
    logger.info("dump_started", view=view, range=range_token)

    result = await VIEWS[view](build_event_source(), query)

    logger.info("dump_completed", view=view)
    return result


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python dump_metrics.py <view> [range]")
        sys.exit(1)

    view = sys.argv[1]
    range_token = sys.argv[2] if len(sys.argv) > 2 else "30d"

    if view not in VIEWS:
        print(f"Unknown view: {view}. Choose from: {', '.join(sorted(VIEWS))}")
        sys.exit(1)

    if range_token not in RANGE_DAYS:
        print(f"Unknown range: {range_token}. Choose from: {', '.join(RANGE_DAYS)}")
        sys.exit(1)

    try:
        metrics = asyncio.run(dump_metrics(view, range_token))
    except EventSourceError as e:
        logger.error("dump_failed", view=view, error=str(e))
        sys.exit(2)

    print(json.dumps(metrics, indent=2))
