"""Relay services.

Business logic for forwarding requests to upstream APIs.
"""

from smm_relay.services.catalog_relay import CatalogRelay
from smm_relay.services.order_notifier import OrderNotifier
from smm_relay.services.upstream import UpstreamClient

__all__ = ["CatalogRelay", "OrderNotifier", "UpstreamClient"]
