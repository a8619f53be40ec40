"""
Outbound HTTP calls to upstream APIs.

UpstreamClient wraps the shared aiohttp session. Each call is a single
attempt bounded by the configured timeout. Failures are converted into
UpstreamTransportError with a detail string that is stable, bounded in size,
and scrubbed of configured secrets.
"""

import asyncio
import json
import time
from typing import Any, Iterable, Optional, Tuple

import aiohttp
import structlog

from shared.metrics import RelayMetrics
from smm_relay.errors import UpstreamTransportError

logger = structlog.get_logger(__name__)

MAX_DETAIL_LENGTH = 200
REDACTED = "***"

# decoding failures of a 2xx body; not ValueError, which aiohttp.InvalidURL subclasses
BODY_DECODE_ERRORS = (json.JSONDecodeError, UnicodeDecodeError)
CALL_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError) + BODY_DECODE_ERRORS


def sanitize_detail(text: str, secrets: Iterable[str] = ()) -> str:
    """Mask secrets and cap the length of a detail string."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    if len(text) > MAX_DETAIL_LENGTH:
        text = text[: MAX_DETAIL_LENGTH - 3] + "..."
    return text


def describe_failure(exc: BaseException, timeout: float, secrets: Iterable[str] = ()) -> str:
    """
    Build the client-facing detail for a failed upstream call.

    Args:
        exc: Exception raised by the call
        timeout: Timeout that was applied (seconds)
        secrets: Values to mask in the result

    Returns:
        Detail string, at most MAX_DETAIL_LENGTH characters
    """
    if isinstance(exc, asyncio.TimeoutError):
        text = f"timeout of {int(timeout * 1000)}ms exceeded"
    elif isinstance(exc, aiohttp.ClientResponseError):
        text = f"Request failed with status code {exc.status}"
    elif isinstance(exc, BODY_DECODE_ERRORS):
        text = "Upstream returned a body that is not valid JSON"
    else:
        text = str(exc) or exc.__class__.__name__
    return sanitize_detail(text, secrets)


class UpstreamClient:
    """JSON-over-HTTP client shared by the relay and the notifier."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: float = 10.0,
        secrets: Iterable[str] = (),
        metrics: Optional[RelayMetrics] = None,
    ):
        self._session = session
        self._timeout = timeout
        self._secrets = tuple(s for s in secrets if s)
        self._metrics = metrics

    @property
    def timeout(self) -> float:
        return self._timeout

    def record(self, upstream: str, outcome: str, started: Optional[float] = None) -> None:
        """Record the outcome of one upstream call."""
        if self._metrics is None:
            return
        self._metrics.upstream_requests.labels(upstream=upstream, outcome=outcome).inc()
        if started is not None:
            self._metrics.upstream_request_duration.labels(upstream=upstream).observe(
                time.perf_counter() - started
            )

    async def post_json(
        self,
        upstream: str,
        url: str,
        payload: dict,
        error_message: str,
    ) -> Tuple[int, Any]:
        """
        POST a JSON payload and return the upstream status and decoded body.

        Args:
            upstream: Upstream name used in logs and metrics
            url: Target URL (may embed secrets, never logged)
            payload: JSON body
            error_message: Static client-facing message used on failure

        Returns:
            Tuple of (status code, decoded JSON body)

        Raises:
            UpstreamTransportError: On timeout, connection failure, non-2xx
                status, or a body that is not JSON
        """
        started = time.perf_counter()

        try:
            async with self._session.post(
                url,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as response:
                if not 200 <= response.status < 300:
                    body_text = await response.text(errors="replace")
                    logger.warning(
                        "upstream_error_status",
                        upstream=upstream,
                        status_code=response.status,
                        body=sanitize_detail(body_text, self._secrets),
                    )
                    # raise_for_status() ignores 1xx and 3xx
                    raise aiohttp.ClientResponseError(
                        response.request_info,
                        response.history,
                        status=response.status,
                        message=response.reason or "",
                        headers=response.headers,
                    )

                body = await response.json(content_type=None)
                status = response.status

        except CALL_ERRORS as e:
            detail = describe_failure(e, self._timeout, self._secrets)
            logger.error(
                "upstream_request_failed",
                upstream=upstream,
                error_type=e.__class__.__name__,
                detail=detail,
            )
            self.record(upstream, "transport_error", started)
            raise UpstreamTransportError(error_message, detail, upstream=upstream) from e

        self.record(upstream, "success", started)
        logger.debug("upstream_request_completed", upstream=upstream, status_code=status)
        return status, body
