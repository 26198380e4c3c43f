import structlog
from fastapi import Request
import time

logger = structlog.get_logger()


async def logging_middleware(request: Request, call_next):
    start_time = time.perf_counter()
    log = logger.bind(
        method=request.method,
        path=request.url.path,
        query=request.url.query,
        client_ip=request.client.host if request.client else None
    )

    response = await call_next(request)

    duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
    cache_control = response.headers.get("cache-control")

    if response.status_code >= 500:
        log.warning("request_failed", status_code=response.status_code, duration_ms=duration_ms)
    else:
        log.info("request_completed", status_code=response.status_code, duration_ms=duration_ms,
                 cached=cache_control is not None and "s-maxage" in cache_control)

    return response
