"""
===============================================================================
TARJETA CRC — domain/__init__.py
===============================================================================

Módulo:
    Exportaciones de la Capa de Dominio

Responsabilidades:
    - Centralizar exports para imports limpios en application/interfaces.

Reglas:
    - Solo re-exporta contratos/entidades del dominio.
    - No importar infraestructura aquí.
===============================================================================
"""

from .entities import (
    Cart,
    CartItem,
    Category,
    CodePurpose,
    EntityKind,
    HeroBanner,
    OneTimeCode,
    Order,
    OrderDraft,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    Product,
    Review,
    ReviewDraft,
    Testimonial,
    Wishlist,
)
from .repositories import CodeStore, DocumentStore, RelationalStore
from .results import Found, NotFound, StoreOutcome, SyncOutcome
from .services import IdentityProvider, NotificationChannel, PaymentGateway
from .value_objects import (
    ExternalIdentity,
    IdentityHints,
    PaymentIntent,
    ProductFilter,
    RegistrationPayload,
)

__all__ = [
    "Cart",
    "CartItem",
    "Category",
    "CodePurpose",
    "CodeStore",
    "DocumentStore",
    "EntityKind",
    "ExternalIdentity",
    "Found",
    "HeroBanner",
    "IdentityHints",
    "IdentityProvider",
    "NotFound",
    "NotificationChannel",
    "OneTimeCode",
    "Order",
    "OrderDraft",
    "OrderItem",
    "OrderStatus",
    "PaymentGateway",
    "PaymentIntent",
    "PaymentStatus",
    "Product",
    "ProductFilter",
    "RegistrationPayload",
    "RelationalStore",
    "Review",
    "ReviewDraft",
    "StoreOutcome",
    "SyncOutcome",
    "Testimonial",
    "Wishlist",
]
