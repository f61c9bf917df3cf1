"""
===============================================================================
TARJETA CRC — schemas/catalog.py
===============================================================================

Módulo:
    Schemas HTTP para catálogo (categorías, productos, reseñas)

Responsabilidades:
    - DTOs de request con validación de borde (precios, stock, rating).
    - DTOs de response construidos desde entidades canónicas (from_attributes).
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------
class CategoryReq(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    image: str | None = Field(default=None, max_length=2048)
    description: str | None = Field(default=None, max_length=2000)
    featured: bool = False


class CategoryPatchReq(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    image: str | None = Field(default=None, max_length=2048)
    description: str | None = Field(default=None, max_length=2000)
    featured: bool | None = None


class ProductReq(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=10000)
    price: Decimal = Field(..., gt=0)
    discount_price: Decimal | None = Field(default=None, ge=0)
    category_id: int
    images: list[str] = Field(default_factory=list, max_length=20)
    sizes: list[str] = Field(default_factory=list, max_length=50)
    colors: list[str] = Field(default_factory=list, max_length=50)
    stock: int = Field(default=0, ge=0)
    featured: bool = False
    trending: bool = False


class ProductPatchReq(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=10000)
    price: Decimal | None = Field(default=None, gt=0)
    discount_price: Decimal | None = Field(default=None, ge=0)
    category_id: int | None = None
    images: list[str] | None = None
    sizes: list[str] | None = None
    colors: list[str] | None = None
    stock: int | None = Field(default=None, ge=0)
    featured: bool | None = None
    trending: bool | None = None


class ReviewReq(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(default=None, max_length=5000)
    images: list[str] = Field(default_factory=list, max_length=10)


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------
class CategoryRes(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    image: str | None = None
    description: str | None = None
    featured: bool = False


class ProductRes(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    price: float
    discount_price: float | None = None
    category_id: int
    images: list[str]
    sizes: list[str]
    colors: list[str]
    stock: int
    featured: bool
    trending: bool
    is_on_sale: bool
    effective_price: float
    created_at: datetime | None = None


class ReviewRes(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    user_id: int
    rating: int
    comment: str | None = None
    images: list[str]
    created_at: datetime | None = None
