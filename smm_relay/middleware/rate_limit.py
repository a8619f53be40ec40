"""
Per-IP rate limiting for every route.

Built on slowapi with a moving window, so a client gets at most
rate_limit_requests requests in any rate_limit_window seconds.
"""

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from smm_relay.config import Settings

logger = structlog.get_logger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


def build_limiter(settings: Settings) -> Limiter:
    """Create the limiter; application limits share one counter per IP across routes."""
    return Limiter(
        key_func=get_remote_address,
        application_limits=[settings.rate_limit],
        storage_uri=settings.rate_limit_storage_url,
        strategy="moving-window",
        enabled=settings.rate_limit_enabled,
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Reply to a throttled request.

    Must stay synchronous: SlowAPIMiddleware returns its result without
    awaiting it.
    """
    path = request.url.path
    logger.warning(
        "rate_limit_exceeded",
        client_ip=get_remote_address(request),
        method=request.method,
        path=path,
        limit=str(exc.detail),
    )

    metrics = getattr(request.app.state, "metrics", None)
    if metrics is not None:
        metrics.rate_limited.labels(endpoint=path).inc()

    return JSONResponse(
        status_code=429,
        content={"error": RATE_LIMIT_MESSAGE},
    )
