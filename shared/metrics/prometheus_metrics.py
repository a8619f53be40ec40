"""Prometheus metrics definitions and helpers.

Provides the metric definitions for the relay: inbound HTTP traffic and the
calls made to each upstream.
"""

from typing import Callable

from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    REGISTRY,
    CollectorRegistry,
)


class RelayMetrics:
    """Relay metrics."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize relay metrics.

        Args:
            registry: Prometheus registry to use
        """
        self.registry = registry

        self.http_requests = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status"],
            registry=registry,
        )

        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=registry,
        )

        # outcome: success | transport_error | not_configured
        self.upstream_requests = Counter(
            "upstream_requests_total",
            "Total calls made to upstream APIs",
            ["upstream", "outcome"],
            registry=registry,
        )

        self.upstream_request_duration = Histogram(
            "upstream_request_duration_seconds",
            "Upstream call duration in seconds",
            ["upstream"],
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
            registry=registry,
        )

        self.rate_limited = Counter(
            "rate_limited_requests_total",
            "Requests rejected by the rate limiter",
            ["endpoint"],
            registry=registry,
        )


def get_metrics_handler(registry: CollectorRegistry = REGISTRY) -> Callable[[], bytes]:
    """Get metrics handler for HTTP endpoint.

    Args:
        registry: Prometheus registry to expose

    Returns:
        Function that generates Prometheus metrics output
    """

    def metrics_handler() -> bytes:
        return generate_latest(registry)

    return metrics_handler
