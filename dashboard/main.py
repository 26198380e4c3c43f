from fastapi import FastAPI
from dashboard.api import emails, events, metrics
from dashboard.config import settings
from dashboard.db.redis_client import redis_client
from dashboard.middleware.rate_limit import rate_limit_middleware
from dashboard.middleware.logging import logging_middleware
from prometheus_client import make_asgi_app
from redis.exceptions import RedisError
import structlog

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ]
)

logger = structlog.get_logger()

app = FastAPI(title="Analytics Dashboard API")

@app.on_event("startup")
async def startup():
    if not settings.redis_enabled:
        logger.info("redis_disabled")
        return
    await redis_client.connect()
    try:
        await redis_client.ping()
    except (RedisError, OSError) as e:
        logger.warning("redis_unavailable", error=str(e))
        await redis_client.close()

@app.on_event("shutdown")
async def shutdown():
    await redis_client.close()

app.middleware("http")(rate_limit_middleware)
app.middleware("http")(logging_middleware)

app.include_router(metrics.router, tags=["metrics"])
app.include_router(events.router, tags=["events"])
app.include_router(emails.router, tags=["emails"])

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

@app.get("/health")
async def health():
    return {"status": "healthy", "cache": "connected" if redis_client.connected else "disabled"}
