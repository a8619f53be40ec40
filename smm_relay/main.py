"""
FastAPI application entry point for the SMM relay.

This module provides the application factory with:
- Catalog relay and order notifier wiring
- Shared aiohttp session lifecycle
- CORS, security headers, body size limit and rate limiting
- Request logging and Prometheus metrics
- Exception handlers that turn every relay error into a JSON response
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import aiohttp
import structlog
import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from shared.logging import configure_logging
from shared.metrics import RelayMetrics, get_metrics_handler
from smm_relay import __version__
from smm_relay.config import Settings, get_settings
from smm_relay.errors import RelayError, UpstreamLogicalError, UpstreamTransportError
from smm_relay.middleware import (
    BodySizeLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    build_limiter,
    rate_limit_exceeded_handler,
)
from smm_relay.routers import health, order, services
from smm_relay.services import CatalogRelay, OrderNotifier, UpstreamClient

logger = structlog.get_logger(__name__)


def warn_missing_configuration(settings: Settings) -> None:
    """Log a warning for each upstream whose credentials are not set."""
    if settings.catalog_credentials is None:
        logger.warning(
            "medanpedia_credentials_missing",
            message="MEDANPEDIA_API_ID/MEDANPEDIA_API_KEY not set; /api/services will fail",
        )
    if not settings.telegram_configured:
        logger.warning(
            "telegram_credentials_missing",
            message="BOT_TOKEN/CHAT_ID not set; /api/order will fail",
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the relay application.

    Args:
        settings: Settings to use (defaults to the cached environment settings)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    configure_logging(
        app_name=settings.app_name,
        log_level=settings.log_level,
        json_logs=settings.log_format == "json",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Application lifespan manager.

        Opens the shared upstream session and builds the relay components;
        closes the session on shutdown.
        """
        logger.info(
            "application_starting",
            app_name=settings.app_name,
            version=settings.app_version,
        )
        warn_missing_configuration(settings)

        session = aiohttp.ClientSession(
            headers={"Content-Type": "application/json"},
        )
        client = UpstreamClient(
            session,
            timeout=settings.upstream_timeout,
            secrets=settings.secrets,
            metrics=app.state.metrics,
        )
        app.state.catalog_relay = CatalogRelay(
            client,
            endpoint=settings.medanpedia_endpoint,
            credentials=settings.catalog_credentials,
        )
        app.state.order_notifier = OrderNotifier(
            client,
            api_base=settings.telegram_api_base,
            bot_token=settings.bot_token,
            chat_id=settings.chat_id,
        )

        logger.info(
            "application_started",
            port=settings.port,
            allowed_origin=settings.allowed_origin,
        )

        try:
            yield
        finally:
            logger.info("application_shutting_down")
            await session.close()
            logger.info("application_shutdown_complete")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Relay for the Medanpedia SMM panel and Telegram order notifications. "
            "Keeps panel credentials and the bot token on the server."
        ),
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.metrics = RelayMetrics(registry=CollectorRegistry())
    app.state.limiter = build_limiter(settings)

    # ========================================================================
    # Middleware (last added runs first)
    # ========================================================================

    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(BodySizeLimitMiddleware, max_size=settings.max_request_size)

    logger.info("configuring_cors", origins=settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    if settings.security_headers_enabled:
        app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(RequestLoggingMiddleware)

    # ========================================================================
    # Exception Handlers
    # ========================================================================

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        """Convert relay errors into their JSON envelopes."""
        if isinstance(exc, (UpstreamTransportError, UpstreamLogicalError)):
            logger.error(
                "upstream_failure",
                path=request.url.path,
                upstream=exc.upstream,
                error=exc.message,
                status_code=exc.status_code,
            )
        else:
            logger.warning(
                "request_rejected",
                path=request.url.path,
                error=exc.message,
                status_code=exc.status_code,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response()
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(
            "unexpected_exception",
            path=request.url.path,
            error=str(exc),
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"}
        )

    # ========================================================================
    # Routes
    # ========================================================================

    app.include_router(services.router, prefix="/api")
    app.include_router(order.router, prefix="/api")
    app.include_router(health.router, prefix="/api")

    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    async def root() -> str:
        return f"{settings.app_name} is running."

    metrics_handler = get_metrics_handler(app.state.metrics.registry)

    @app.get("/metrics", tags=["Monitoring"], response_class=PlainTextResponse)
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(
            content=metrics_handler(),
            media_type=CONTENT_TYPE_LATEST
        )

    logger.debug("application_created", version=__version__)
    return app


app = create_app()


def run() -> None:
    """Run the relay with Uvicorn."""
    settings = get_settings()
    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port,
    )

    uvicorn.run(
        "smm_relay.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run()
