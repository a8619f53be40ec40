"""FastAPI middleware components.

This package contains the inbound gate applied to every route: request
logging, security headers, body size limits and rate limiting.
"""

from smm_relay.middleware.http import (
    BodySizeLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from smm_relay.middleware.rate_limit import (
    RATE_LIMIT_MESSAGE,
    build_limiter,
    rate_limit_exceeded_handler,
)

__all__ = [
    "BodySizeLimitMiddleware",
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "RATE_LIMIT_MESSAGE",
    "build_limiter",
    "rate_limit_exceeded_handler",
]
