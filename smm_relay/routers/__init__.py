"""API routers mounted under /api."""

from smm_relay.routers import health, order, services

__all__ = ["health", "order", "services"]
