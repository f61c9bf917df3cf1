"""
===============================================================================
TARJETA CRC — schemas/admin.py
===============================================================================

Módulo:
    Schemas HTTP para administración (dashboard, cambio de rol)
===============================================================================
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .catalog import ProductRes
from .orders import OrderRes


class RoleChangeReq(BaseModel):
    """Target por id numérico, UID externo o email (al menos uno)."""

    role: str = Field(..., min_length=1, max_length=20)
    user_id: int | str | None = None
    external_uid: str | None = Field(default=None, max_length=128)
    email: str | None = Field(default=None, max_length=320)


class TopProductRes(BaseModel):
    product_id: int
    sold: int
    product: ProductRes | None = None


class DashboardRes(BaseModel):
    total_revenue: float
    total_orders: int
    total_users: int
    total_products: int
    recent_orders: list[OrderRes]
    top_products: list[TopProductRes]
