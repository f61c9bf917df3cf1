"""
===============================================================================
TARJETA CRC — domain/value_objects.py
===============================================================================

Módulo:
    Objetos de valor del core (hints de identidad, filtros de catálogo)

Responsabilidades:
    - IdentityHints: bolsa no ordenada de pistas de identidad de un request.
    - RegistrationPayload: datos inline para auto-provisionar una cuenta.
    - ProductFilter: filtros de catálogo aplicados en proceso, después de leer.

Colaboradores:
    - identity.resolver (IdentityHints)
    - identity.session (construye hints desde headers/token/body)
    - application.dual_store (ProductFilter.apply)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from .entities import Product


@dataclass(frozen=True, slots=True)
class RegistrationPayload:
    """Datos para auto-provisionar; email puede venir en los hints."""

    email: str | None = None
    username: str | None = None
    photo_url: str | None = None
    full_name: str | None = None


@dataclass(frozen=True, slots=True)
class IdentityHints:
    """
    Pistas de identidad de un request.

    numeric_id se guarda tal como llegó (int o str) porque el resolver debe
    poder tratar un valor no numérico como UID externo.
    """

    numeric_id: int | str | None = None
    external_uid: str | None = None
    email: str | None = None
    registration: RegistrationPayload | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.numeric_id in (None, "")
            and not self.external_uid
            and not self.email
        )

    @property
    def normalized_email(self) -> str | None:
        email = (self.email or "").strip().lower()
        return email or None


@dataclass(frozen=True, slots=True)
class ProductFilter:
    """
    Filtros de catálogo.

    - search: substring case-insensitive sobre name + description
    - min_price / max_price: límites inclusivos sobre price
    - on_sale: discount_price definido, > 0 y < price
    """

    category_id: int | None = None
    search: str | None = None
    featured: bool | None = None
    trending: bool | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    on_sale: bool | None = None

    def matches(self, product: Product) -> bool:
        if self.category_id is not None and product.category_id != self.category_id:
            return False
        if self.featured is not None and product.featured != self.featured:
            return False
        if self.trending is not None and product.trending != self.trending:
            return False
        if self.min_price is not None and product.price < self.min_price:
            return False
        if self.max_price is not None and product.price > self.max_price:
            return False
        if self.on_sale is not None and product.is_on_sale != self.on_sale:
            return False
        term = (self.search or "").strip().casefold()
        if term:
            haystack = f"{product.name} {product.description or ''}".casefold()
            if term not in haystack:
                return False
        return True

    def apply(self, products: Iterable[Product]) -> list[Product]:
        return [p for p in products if self.matches(p)]


@dataclass(frozen=True, slots=True)
class ExternalIdentity:
    """Identidad verificada por el proveedor externo (token firmado)."""

    uid: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    email_verified: bool = False


@dataclass(frozen=True, slots=True)
class PaymentIntent:
    """Handle opaco devuelto por el gateway de pagos."""

    id: str
    client_secret: str
    amount_cents: int
    currency: str
