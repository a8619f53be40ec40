"""
FastAPI dependency injection for the relay services.

The relay and notifier are built once during application startup and stored
on app.state; these dependencies hand them to the route handlers.
"""

import json
from typing import Any, Dict

import structlog
from fastapi import Request

from smm_relay.errors import BODY_TOO_LARGE_MESSAGE, InvalidRequestError, PayloadTooLargeError
from smm_relay.services.catalog_relay import CatalogRelay
from smm_relay.services.order_notifier import OrderNotifier

logger = structlog.get_logger(__name__)

INVALID_BODY_MESSAGE = "Request body must be a JSON object"


def get_catalog_relay(request: Request) -> CatalogRelay:
    """Get the catalog relay built at startup."""
    return request.app.state.catalog_relay


def get_order_notifier(request: Request) -> OrderNotifier:
    """Get the order notifier built at startup."""
    return request.app.state.order_notifier


async def get_json_object(request: Request) -> Dict[str, Any]:
    """
    Decode the request body as a JSON object.

    An empty body is treated as an empty object. Reading stops once the
    body passes max_request_size, so chunked uploads without a
    Content-Length are bounded too.

    Raises:
        PayloadTooLargeError: If the body exceeds max_request_size
        InvalidRequestError: If the body is not valid JSON or is not an object
    """
    max_size = request.app.state.settings.max_request_size
    raw = bytearray()
    async for chunk in request.stream():
        raw.extend(chunk)
        if len(raw) > max_size:
            logger.warning("request_body_too_large", path=request.url.path, max_size=max_size)
            raise PayloadTooLargeError(BODY_TOO_LARGE_MESSAGE)

    if not raw.strip():
        return {}

    try:
        body = json.loads(raw)
    except ValueError as e:
        logger.warning("invalid_json_body", path=request.url.path)
        raise InvalidRequestError(INVALID_BODY_MESSAGE) from e

    if not isinstance(body, dict):
        logger.warning("non_object_json_body", path=request.url.path, type=type(body).__name__)
        raise InvalidRequestError(INVALID_BODY_MESSAGE)

    return body
