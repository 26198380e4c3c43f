from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
import structlog

from dashboard.config import settings

logger = structlog.get_logger()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def empty_stats(days: int, note: Optional[str] = None) -> Dict[str, Any]:
    stats = {
        "period_days": days,
        "generated_at": _now(),
        "by_email_type": {},
        "totals": {"sent": 0, "converted": 0, "overallConversionRate": 0},
        "lastUpdated": _now(),
    }
    if note:
        stats["note"] = note
    return stats


class EmailStatsClient:
    """Pass-through to the email statistics service; the payload is not interpreted."""

    def __init__(
            self,
            base_url: str,
            token: str,
            timeout: float = 25.0,
            transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, days: int) -> Dict[str, Any]:
        if not self.token or not self.base_url:
            logger.error("email_stats_not_configured")
            return empty_stats(days, note="Data unavailable - email stats service not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    f"{self.base_url}/webhooks/revenuecat/email-stats",
                    params={"days": days},
                    headers={"Authorization": self.token}
                )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException:
            logger.error("email_stats_timeout", days=days)
            return empty_stats(days, note="Data unavailable - email stats server timeout. Try refreshing.")
        except (httpx.HTTPError, ValueError) as e:
            logger.error("email_stats_failed", days=days, error=str(e))
            return empty_stats(days, note=f"Data unavailable - {e}")

        if not isinstance(data, dict):
            data = {}
        totals = data.get("totals") or {}
        return {
            "period_days": data.get("period_days", days),
            "generated_at": data.get("generated_at", _now()),
            "by_email_type": data.get("by_email_type") or {},
            "totals": {
                "sent": totals.get("sent", 0),
                "converted": totals.get("converted", 0),
                "overallConversionRate": totals.get("overallConversionRate", 0),
            },
            "lastUpdated": _now(),
        }


def build_email_stats_client() -> EmailStatsClient:
    return EmailStatsClient(
        base_url=settings.email_stats_url,
        token=settings.email_stats_token,
        timeout=settings.email_stats_timeout_seconds
    )
