"""
===============================================================================
TARJETA CRC — domain/entities.py
===============================================================================

Módulo:
    Entidades canónicas del storefront (catálogo, pedidos, reseñas, listas)

Responsabilidades:
    - Definir UNA forma canónica por tipo de entidad, independiente del store
      que la persistió (IDs numéricos siempre como int).
    - Brindar helpers mínimos (subtotales, totales, ventana de banners).

Colaboradores:
    - domain.repositories: persisten/recuperan estas entidades.
    - infrastructure.repositories.*: adaptadores fila <-> entidad y
      documento <-> entidad.
    - application: DualStoreAccessor y casos de uso.

Principios:
    - Sin dependencias a DB/Firestore/FastAPI.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any


def _utcnow() -> datetime:
    """Fecha/hora UTC (helper interno)."""
    return datetime.now(timezone.utc)


class EntityKind(str, Enum):
    """Tipos de entidad que viven (en principio) en ambos stores."""

    PRODUCT = "product"
    CATEGORY = "category"
    ORDER = "order"
    REVIEW = "review"
    WISHLIST = "wishlist"
    CART = "cart"


# ---------------------------------------------------------------------------
# Catálogo
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Category:
    id: int
    name: str
    image: str | None = None
    description: str | None = None
    featured: bool = False


@dataclass(frozen=True, slots=True)
class Product:
    id: int
    name: str
    description: str
    price: Decimal
    category_id: int
    discount_price: Decimal | None = None
    images: list[str] = field(default_factory=list)
    sizes: list[str] = field(default_factory=list)
    colors: list[str] = field(default_factory=list)
    stock: int = 0
    featured: bool = False
    trending: bool = False
    created_at: datetime | None = None

    @property
    def is_on_sale(self) -> bool:
        """En oferta: discount_price definido, positivo y estrictamente menor a price."""
        return (
            self.discount_price is not None
            and self.discount_price > 0
            and self.discount_price < self.price
        )

    @property
    def effective_price(self) -> Decimal:
        return self.discount_price if self.is_on_sale else self.price


# ---------------------------------------------------------------------------
# Pedidos
# ---------------------------------------------------------------------------


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


@dataclass(frozen=True, slots=True)
class OrderItem:
    product_id: int
    name: str
    price: Decimal
    quantity: int
    image: str | None = None

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True, slots=True)
class Order:
    """
    Pedido. user_id es None para pedidos de invitados (guest checkout).
    """

    id: int
    user_id: int | None
    items: list[OrderItem]
    total_amount: Decimal
    shipping_address: dict[str, Any]
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_intent: str | None = None
    tracking_number: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_guest(self) -> bool:
        return self.user_id is None


@dataclass(frozen=True, slots=True)
class OrderDraft:
    """Pedido aún sin id (lo asigna el store relacional, que es de registro)."""

    user_id: int | None
    items: list[OrderItem]
    shipping_address: dict[str, Any]
    payment_intent: str | None = None

    @property
    def total_amount(self) -> Decimal:
        return sum((item.subtotal for item in self.items), Decimal("0"))


# ---------------------------------------------------------------------------
# Reseñas
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Review:
    id: int
    product_id: int
    user_id: int
    rating: int
    comment: str | None = None
    images: list[str] = field(default_factory=list)
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class ReviewDraft:
    product_id: int
    user_id: int
    rating: int
    comment: str | None = None
    images: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Listas por usuario (wishlist / carrito)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Wishlist:
    """Wishlist de un usuario (clave = id numérico del usuario)."""

    user_id: int
    product_ids: list[int] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.user_id

    def with_product(self, product_id: int) -> "Wishlist":
        if product_id in self.product_ids:
            return self
        return Wishlist(self.user_id, [*self.product_ids, product_id])

    def without_product(self, product_id: int) -> "Wishlist":
        return Wishlist(self.user_id, [p for p in self.product_ids if p != product_id])


@dataclass(frozen=True, slots=True)
class CartItem:
    product_id: int
    name: str
    price: Decimal
    quantity: int
    image: str | None = None


@dataclass(frozen=True, slots=True)
class Cart:
    """Carrito de un usuario; items indexados por product_id."""

    user_id: int
    items: dict[int, CartItem] = field(default_factory=dict)
    updated_at: datetime | None = None

    @property
    def id(self) -> int:
        return self.user_id

    @property
    def total(self) -> Decimal:
        return sum(
            (item.price * item.quantity for item in self.items.values()), Decimal("0")
        )

    def with_item(self, item: CartItem) -> "Cart":
        items = dict(self.items)
        if item.quantity <= 0:
            items.pop(item.product_id, None)
        else:
            items[item.product_id] = item
        return Cart(self.user_id, items, _utcnow())

    def without_item(self, product_id: int) -> "Cart":
        items = {k: v for k, v in self.items.items() if k != product_id}
        return Cart(self.user_id, items, _utcnow())


# ---------------------------------------------------------------------------
# Códigos de un solo uso
# ---------------------------------------------------------------------------


class CodePurpose(str, Enum):
    """Flujo al que pertenece un código (cada flujo tiene su propia expiración)."""

    LOGIN = "login_2fa"
    SETUP = "setup_2fa"
    DISABLE = "disable_2fa"
    PASSWORD_RESET = "password_reset"


@dataclass(frozen=True, slots=True)
class OneTimeCode:
    """
    Código emitido. El mismo registro se archiva bajo varias claves de owner
    (id numérico, UID externo, email) y comparte issuance_id entre ellas.
    """

    issuance_id: str
    purpose: CodePurpose
    code: str
    expires_at: datetime
    user_id: int | None = None
    used: bool = False
    attempts: int = 0
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Contenido de home (solo relacional)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HeroBanner:
    id: int
    title: str
    image: str
    subtitle: str | None = None
    button_text: str | None = None
    button_link: str | None = None
    active: bool = True
    start_date: datetime | None = None
    end_date: datetime | None = None

    def is_visible(self, now: datetime | None = None) -> bool:
        """Activo y dentro de la ventana [start_date, end_date] si están definidas."""
        if not self.active:
            return False
        moment = now or _utcnow()
        if self.start_date is not None and moment < self.start_date:
            return False
        if self.end_date is not None and moment > self.end_date:
            return False
        return True


@dataclass(frozen=True, slots=True)
class Testimonial:
    id: int
    name: str
    comment: str
    rating: int = 5
    image: str | None = None
    featured: bool = False
