"""
Order notification models.

Defines the order payload accepted by POST /api/order and the response
envelopes it produces.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


REQUIRED_ORDER_FIELDS = ("serviceName", "quantity", "target", "whatsapp", "total")


class OrderRequest(BaseModel):
    """Order placed by a storefront client."""

    service_name: str = Field(..., alias="serviceName", description="Catalog service name")
    quantity: Union[int, float] = Field(..., description="Ordered quantity")
    target: str = Field(..., description="Account or link the service is applied to")
    whatsapp: str = Field(..., description="Customer WhatsApp number")
    total: Union[int, float] = Field(..., description="Order total in rupiah")

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        frozen=True,
    )


class OrderResponse(BaseModel):
    """Successful notification response."""

    ok: bool = True
    result: Any = None


class OrderErrorResponse(BaseModel):
    """Error envelope for order failures."""

    error: str
    ok: Optional[bool] = None
    detail: Optional[str] = None
    data: Any = None
