"""
Pydantic Schemas for Request/Response Validation

JSON bodies use camelCase keys, the same convention as the pushed
notification events; snake_case names are accepted on input too.
"""

import re
from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from orderstream.services.orders.base import DiscountType, OrderRecord, OrderType


class ApiModel(BaseModel):
    """Base for all API schemas."""
    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        from_attributes=True,
    )


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class OrderItemCreate(ApiModel):
    """Single item in an order."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Margherita"])
    quantity: int = Field(..., ge=1, le=99, examples=[2])
    price: float = Field(..., ge=0, examples=[249.0])


class OrderCreate(ApiModel):
    """Request schema for creating a new (cash / admin) order."""

    customer_name: str = Field(..., min_length=1, max_length=100, examples=["Asha Rao"])
    contact_number: str = Field(..., min_length=1, max_length=20, examples=["9876543210"])
    order_type: OrderType = Field(default=OrderType.TAKEAWAY, examples=["takeaway"])
    delivery_address: Optional[str] = Field(None, max_length=500)
    items: List[OrderItemCreate] = Field(..., min_length=1)

    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = Field(None, ge=0)

    payment_method: str = Field(default="cash", examples=["cash", "online"])
    is_admin_order: bool = True

    @field_validator("contact_number")
    @classmethod
    def validate_contact(cls, v: str) -> str:
        cleaned = re.sub(r"[^\d+]", "", v)
        if not cleaned:
            raise ValueError("Contact number must contain digits")
        return v.strip()

    @model_validator(mode="after")
    def require_delivery_address(self) -> "OrderCreate":
        if self.order_type == OrderType.DELIVERY and not (self.delivery_address or "").strip():
            raise ValueError("Delivery address is required for delivery orders")
        return self


class OrderStatusUpdate(ApiModel):
    """
    Body of a status update.

    The status is validated by the route so that a missing or unknown
    value is answered with 400 rather than 422.
    """
    status: Optional[str] = Field(None, examples=["being_prepared"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class OrderResponse(ApiModel):
    """Response schema for a single order."""
    id: str
    daily_order_id: int
    order_date: str
    customer_name: str
    contact_number: str
    order_type: str
    delivery_address: Optional[str]
    items: List[dict[str, Any]]
    subtotal: float
    delivery_charge: float
    packing_charge: float
    discount_type: Optional[str]
    discount_value: Optional[float]
    discount_amount: float
    total: float
    status: str
    payment_status: str
    payment_method: str
    is_admin_order: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, order: OrderRecord) -> "OrderResponse":
        return cls(
            **{
                **order.__dict__,
                "order_type": order.order_type.value,
                "status": order.status.value,
            }
        )


class OrderCreateResponse(ApiModel):
    """Response after successfully creating an order."""
    success: bool
    message: str
    order_id: str
    daily_order_id: int
    order_date: str
    total: float


class OrderListResponse(ApiModel):
    """Response for listing multiple orders."""
    total: int
    orders: List[OrderResponse]


class StatusUpdateResponse(ApiModel):
    """Response after a status change."""
    success: bool
    message: str
    order_id: str
    status: str
    subscribers_notified: int = 0


class OrderStatusSummary(ApiModel):
    """Subset of an order returned by the pull-based status check."""
    id: str = Field(
        ...,
        validation_alias=AliasChoices("id", "_id"),
        serialization_alias="_id",
    )
    daily_order_id: int
    status: str
    order_type: str
    customer_name: str
    total: float
    created_at: datetime
    updated_at: datetime


class OrderStatusCheckResponse(ApiModel):
    order: Optional[OrderStatusSummary] = None


class NextOrderIdResponse(ApiModel):
    order_id: int
    order_date: str


class NotificationStatsResponse(ApiModel):
    """Live subscriber counts, for diagnostics."""
    total_subscribers: int
    topics: dict[str, int]


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    order_store: str
    redis: str
    sms_service: str
    active_streams: int
    timestamp: datetime
