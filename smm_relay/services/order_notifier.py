"""
Order notifier.

Validates an order payload and relays a formatted notification to the
Telegram Bot API.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

import structlog
from pydantic import ValidationError

from smm_relay.errors import (
    OrderValidationError,
    UpstreamLogicalError,
    UpstreamNotConfiguredError,
)
from smm_relay.models.order import OrderRequest, REQUIRED_ORDER_FIELDS
from smm_relay.services.upstream import UpstreamClient

logger = structlog.get_logger(__name__)

UPSTREAM_NAME = "telegram"
MISSING_FIELDS_MESSAGE = (
    "Incomplete order fields. Required: " + ", ".join(REQUIRED_ORDER_FIELDS)
)
INVALID_FIELDS_MESSAGE = "Invalid order fields"
SEND_ERROR_MESSAGE = "Failed to send message to Telegram"
NOT_ACKNOWLEDGED_MESSAGE = "Telegram API did not return ok:true"

ORDER_MESSAGE_TEMPLATE = (
    "🛒 Pesanan Baru\n"
    "━━━━━━━━━━━━━━━\n"
    "📌 Layanan: {service_name}\n"
    "📦 Jumlah: {quantity}\n"
    "🎯 Target: {target}\n"
    "📱 WhatsApp: {whatsapp}\n"
    "💰 Total: Rp {total}\n"
)

# id-ID renders 15000.5 as 15.000,5
_ID_SEPARATORS = str.maketrans({",": ".", ".": ","})


def _is_blank(value: Any) -> bool:
    """False, None, empty string, zero and NaN count as not provided."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)):
        return value == 0 or value != value
    return False


def missing_order_fields(fields: Mapping[str, Any]) -> List[str]:
    """
    List the required order fields that are not provided.

    serviceName, quantity, target and whatsapp are missing when blank.
    total is missing only when absent or null, so an order totalling zero
    is accepted.
    """
    missing = [
        name for name in REQUIRED_ORDER_FIELDS[:-1] if _is_blank(fields.get(name))
    ]
    if fields.get("total") is None:
        missing.append("total")
    return missing


def format_thousands(value: Union[int, float]) -> str:
    """Format a number with Indonesian separators, up to 3 fraction digits."""
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return text.translate(_ID_SEPARATORS)


def _format_quantity(value: Union[int, float]) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_order_message(order: OrderRequest) -> str:
    """Render the chat message for an order."""
    return ORDER_MESSAGE_TEMPLATE.format(
        service_name=order.service_name,
        quantity=_format_quantity(order.quantity),
        target=order.target,
        whatsapp=order.whatsapp,
        total=format_thousands(order.total),
    )


def validate_order(fields: Mapping[str, Any]) -> OrderRequest:
    """
    Validate raw order fields.

    Args:
        fields: Decoded JSON body

    Returns:
        Validated order

    Raises:
        OrderValidationError: If a required field is missing or has a
            value of the wrong type
    """
    missing = missing_order_fields(fields)
    if missing:
        logger.warning("order_validation_failed", missing_fields=missing)
        raise OrderValidationError(MISSING_FIELDS_MESSAGE)

    try:
        return OrderRequest.model_validate(dict(fields))
    except ValidationError as e:
        invalid = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        logger.warning("order_validation_failed", invalid_fields=invalid)
        raise OrderValidationError(
            f"{INVALID_FIELDS_MESSAGE}: {', '.join(invalid)}"
        ) from e


class OrderNotifier:
    """Sends order notifications to a Telegram chat."""

    def __init__(
        self,
        client: UpstreamClient,
        api_base: str,
        bot_token: Optional[str],
        chat_id: Optional[str],
    ):
        self._client = client
        self._api_base = api_base.rstrip("/")
        self._bot_token = bot_token
        self._chat_id = chat_id

    @property
    def send_message_url(self) -> str:
        return f"{self._api_base}/bot{self._bot_token}/sendMessage"

    async def submit_order(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Validate an order and notify the configured chat.

        Args:
            fields: Decoded JSON body with serviceName, quantity, target,
                whatsapp and total

        Returns:
            {"ok": True, "result": <Telegram result>}

        Raises:
            OrderValidationError: If the order is incomplete
            UpstreamTransportError: If Telegram cannot be reached, times out,
                or answers with a non-2xx status
            UpstreamLogicalError: If Telegram answers without ok:true
        """
        order = validate_order(fields)

        if not self._bot_token or not self._chat_id:
            logger.error("telegram_not_configured")
            self._client.record(UPSTREAM_NAME, "not_configured")
            raise UpstreamNotConfiguredError(
                SEND_ERROR_MESSAGE,
                "Telegram BOT_TOKEN/CHAT_ID are not configured",
                upstream=UPSTREAM_NAME,
            )

        payload = {
            "chat_id": self._chat_id,
            "text": format_order_message(order),
            "parse_mode": "Markdown",
        }
        _, body = await self._client.post_json(
            UPSTREAM_NAME, self.send_message_url, payload, SEND_ERROR_MESSAGE
        )

        if isinstance(body, dict) and body.get("ok"):
            logger.info("order_notification_sent", service_name=order.service_name)
            return {"ok": True, "result": body.get("result")}

        logger.warning("order_notification_not_acknowledged", response=body)
        raise UpstreamLogicalError(NOT_ACKNOWLEDGED_MESSAGE, body, upstream=UPSTREAM_NAME)
