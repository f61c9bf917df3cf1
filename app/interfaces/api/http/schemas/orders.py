"""
===============================================================================
TARJETA CRC — schemas/orders.py
===============================================================================

Módulo:
    Schemas HTTP para pedidos, carrito, wishlist y pagos

Responsabilidades:
    - DTOs de checkout (guest permitido) y de administración de estados.
    - Representar el carrito como lista (el dict interno es por product_id).
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from app.domain.entities import Cart
from pydantic import BaseModel, ConfigDict, Field


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------
class OrderLineReq(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1, le=999)


class CreateOrderReq(BaseModel):
    items: list[OrderLineReq] = Field(..., min_length=1, max_length=100)
    shipping_address: dict[str, Any]
    payment_intent: str | None = Field(default=None, max_length=255)


class OrderStatusReq(BaseModel):
    status: str | None = None
    payment_status: str | None = None
    tracking_number: str | None = Field(default=None, max_length=120)


class CartItemReq(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=0, le=999)


class WishlistItemReq(BaseModel):
    product_id: int


class PaymentIntentReq(BaseModel):
    amount: Decimal = Field(..., gt=0)


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------
class OrderItemRes(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    name: str
    price: float
    quantity: int
    image: str | None = None


class OrderRes(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int | None = None
    items: list[OrderItemRes]
    total_amount: float
    shipping_address: dict[str, Any]
    status: str
    payment_status: str
    payment_intent: str | None = None
    tracking_number: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class WishlistRes(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    product_ids: list[int]


class CartRes(BaseModel):
    user_id: int
    items: list[OrderItemRes]
    total: float

    @classmethod
    def of(cls, cart: Cart) -> "CartRes":
        return cls(
            user_id=cart.user_id,
            items=[OrderItemRes.model_validate(i) for i in cart.items.values()],
            total=cart.total,
        )


class PaymentIntentRes(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    client_secret: str
    amount_cents: int
    currency: str
