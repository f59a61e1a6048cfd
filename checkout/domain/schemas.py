# checkout/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime

from checkout.domain.status import OrderStatus, PaymentStatus


class CheckoutIn(BaseModel):
    """Checkout request. The idempotency key may come here or in the Idempotency-Key header."""

    address_id: int = Field(..., gt=0, description="Shipping address owned by the user")
    idempotency_key: str | None = Field(default=None, min_length=1, max_length=255)


class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    base_price: Decimal
    material_id: int
    material_name: str
    material_price: Decimal
    quantity: int
    item_price: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderAddressOut(BaseModel):
    full_name: str
    phone: str
    line1: str
    line2: str | None = None
    city: str
    state: str
    postal_code: str
    country: str

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    user_id: int
    status: OrderStatus
    subtotal: Decimal
    total: Decimal
    items: List[OrderItemOut]
    address: OrderAddressOut | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderSummaryOut(BaseModel):
    id: int
    status: OrderStatus
    total: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InitiatePaymentOut(BaseModel):
    """What the client needs to open the gateway checkout. `amount` is in minor units."""

    order_id: int
    gateway_order_id: str
    amount: int
    currency: str
    public_key: str

    model_config = ConfigDict(from_attributes=True)


class VerifyPaymentIn(BaseModel):
    gateway_order_id: str = Field(..., min_length=1, max_length=255)
    gateway_payment_id: str = Field(..., min_length=1, max_length=255)
    signature: str = Field(..., min_length=1, max_length=512)


class VerifyPaymentOut(BaseModel):
    order_id: int
    payment_status: PaymentStatus
    order_status: OrderStatus

    model_config = ConfigDict(from_attributes=True)


class PaymentOut(BaseModel):
    id: int
    order_id: int
    amount: Decimal
    currency: str
    status: PaymentStatus
    gateway: str
    gateway_order_id: str
    gateway_payment_id: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WebhookAck(BaseModel):
    received: bool
    error: str | None = None
