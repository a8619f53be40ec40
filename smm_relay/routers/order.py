"""
Order router.

POST /api/order validates an order and notifies the shop's Telegram chat.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from smm_relay.dependencies import get_json_object, get_order_notifier
from smm_relay.models.order import OrderErrorResponse, OrderResponse
from smm_relay.services.order_notifier import OrderNotifier

router = APIRouter(
    prefix="/order",
    tags=["Orders"],
)


@router.post(
    "",
    response_model=OrderResponse,
    summary="Submit Order",
    description="""
    Send an order notification to Telegram.

    **Request Body:**
    - serviceName, quantity, target, whatsapp: required, must not be empty or zero
    - total: required, zero is accepted

    **Error Responses:**
    - 400: Missing or invalid fields (Telegram is not contacted)
    - 502: Telegram unreachable, timed out, or did not acknowledge
    """,
    responses={
        400: {"model": OrderErrorResponse, "description": "Incomplete order"},
        502: {"model": OrderErrorResponse, "description": "Telegram call failed"},
    }
)
async def submit_order(
    body: Dict[str, Any] = Depends(get_json_object),
    notifier: OrderNotifier = Depends(get_order_notifier),
) -> Dict[str, Any]:
    return await notifier.submit_order(body)
