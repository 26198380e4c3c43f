import structlog
from fastapi import APIRouter, Depends, Query

from dashboard.sources.email_stats import build_email_stats_client

router = APIRouter(prefix="/api")
logger = structlog.get_logger()


@router.get("/emails")
async def get_email_stats(
        days: int = Query(30, ge=1, le=365),
        client=Depends(build_email_stats_client)
):
    stats = await client.fetch(days)
    logger.info("email_stats_query", days=days, degraded="note" in stats)
    return stats
