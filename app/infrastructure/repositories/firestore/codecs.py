"""
============================================================
TARJETA CRC — infrastructure/repositories/firestore/codecs.py
============================================================
Module: codecs documento <-> entidad canónica

Responsibilities:
  - Convertir entidades canónicas a documentos camelCase (y viceversa).
  - Normalizar tipos que Firestore no soporta (Decimal -> float al escribir,
    float/str -> Decimal al leer).
  - Traducir perfiles de usuario (displayName, photoURL, twoFactorEnabled).

Collaborators:
  - domain.entities, identity.users.DocumentProfile / UserRole

Constraints:
  - El ID del documento (str(id)) es la fuente de verdad del id numérico;
    un campo `id` dentro del documento sólo se usa si el ID no es numérico.
  - Un documento que no se puede decodificar -> DocumentStoreError.
============================================================
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Mapping

from ....crosscutting.exceptions import DocumentStoreError
from ....domain.entities import (
    Cart,
    CartItem,
    Category,
    EntityKind,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    Product,
    Review,
    Wishlist,
)
from ....domain.ids import try_parse_numeric_id
from ....identity.users import DocumentProfile, UserRole

COLLECTIONS: dict[EntityKind, str] = {
    EntityKind.PRODUCT: "products",
    EntityKind.CATEGORY: "categories",
    EntityKind.ORDER: "orders",
    EntityKind.REVIEW: "reviews",
    EntityKind.WISHLIST: "wishlists",
    EntityKind.CART: "carts",
}
USERS_COLLECTION = "users"

# R: campos de perfil canónicos -> nombre en el documento.
PROFILE_FIELD_NAMES: dict[str, str] = {
    "email": "email",
    "username": "username",
    "display_name": "displayName",
    "photo_url": "photoURL",
    "role": "role",
    "two_factor_enabled": "twoFactorEnabled",
    "full_name": "fullName",
    "user_id": "userId",
}

# R: filtros canónicos (snake_case) -> campo del documento.
WHERE_FIELD_NAMES: dict[str, str] = {
    "category_id": "categoryId",
    "user_id": "userId",
    "product_id": "productId",
    "featured": "featured",
    "trending": "trending",
    "status": "status",
    "payment_status": "paymentStatus",
}


def _money(value: Any) -> Decimal:
    return Decimal(str(value if value is not None else 0))


def _opt_money(value: Any) -> Decimal | None:
    return None if value in (None, "") else Decimal(str(value))


def _to_number(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def _int(value: Any, default: int = 0) -> int:
    parsed = try_parse_numeric_id(value) if value is not None else None
    return parsed if parsed is not None else default


def _items_to_doc(items) -> list[dict[str, Any]]:
    return [
        {
            "productId": i.product_id,
            "name": i.name,
            "price": _to_number(i.price),
            "quantity": i.quantity,
            "image": i.image,
        }
        for i in items
    ]


def _doc_items(raw: Any, cls):
    return [
        cls(
            product_id=_int(i.get("productId")),
            name=i.get("name") or "",
            price=_money(i.get("price")),
            quantity=_int(i.get("quantity"), 1),
            image=i.get("image"),
        )
        for i in (raw or [])
    ]


# ============================================================
# Entidades
# ============================================================
def _category_from(doc_id: int, d: Mapping[str, Any]) -> Category:
    return Category(
        id=doc_id,
        name=d.get("name") or "",
        image=d.get("image"),
        description=d.get("description"),
        featured=bool(d.get("featured", False)),
    )


def _category_to(c: Category) -> dict[str, Any]:
    return {
        "id": c.id,
        "name": c.name,
        "image": c.image,
        "description": c.description,
        "featured": c.featured,
    }


def _product_from(doc_id: int, d: Mapping[str, Any]) -> Product:
    return Product(
        id=doc_id,
        name=d.get("name") or "",
        description=d.get("description") or "",
        price=_money(d.get("price")),
        category_id=_int(d.get("categoryId")),
        discount_price=_opt_money(d.get("discountPrice")),
        images=list(d.get("images") or []),
        sizes=list(d.get("sizes") or []),
        colors=list(d.get("colors") or []),
        stock=_int(d.get("stock")),
        featured=bool(d.get("featured", False)),
        trending=bool(d.get("trending", False)),
        created_at=d.get("createdAt"),
    )


def _product_to(p: Product) -> dict[str, Any]:
    doc = {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "price": _to_number(p.price),
        "discountPrice": _to_number(p.discount_price),
        "categoryId": p.category_id,
        "images": list(p.images),
        "sizes": list(p.sizes),
        "colors": list(p.colors),
        "stock": p.stock,
        "featured": p.featured,
        "trending": p.trending,
    }
    if p.created_at is not None:
        doc["createdAt"] = p.created_at
    return doc


def _order_from(doc_id: int, d: Mapping[str, Any]) -> Order:
    user_id = d.get("userId")
    return Order(
        id=doc_id,
        user_id=try_parse_numeric_id(user_id) if user_id is not None else None,
        items=_doc_items(d.get("items"), OrderItem),
        total_amount=_money(d.get("totalAmount")),
        shipping_address=dict(d.get("shippingAddress") or {}),
        status=OrderStatus(d.get("status") or OrderStatus.PENDING.value),
        payment_status=PaymentStatus(d.get("paymentStatus") or PaymentStatus.PENDING.value),
        payment_intent=d.get("paymentIntent"),
        tracking_number=d.get("trackingNumber"),
        created_at=d.get("createdAt"),
        updated_at=d.get("updatedAt"),
    )


def _order_to(o: Order) -> dict[str, Any]:
    doc = {
        "id": o.id,
        "userId": o.user_id,
        "items": _items_to_doc(o.items),
        "totalAmount": _to_number(o.total_amount),
        "shippingAddress": dict(o.shipping_address),
        "status": o.status.value,
        "paymentStatus": o.payment_status.value,
        "paymentIntent": o.payment_intent,
        "trackingNumber": o.tracking_number,
    }
    if o.created_at is not None:
        doc["createdAt"] = o.created_at
    if o.updated_at is not None:
        doc["updatedAt"] = o.updated_at
    return doc


def _review_from(doc_id: int, d: Mapping[str, Any]) -> Review:
    return Review(
        id=doc_id,
        product_id=_int(d.get("productId")),
        user_id=_int(d.get("userId")),
        rating=_int(d.get("rating"), 5),
        comment=d.get("comment"),
        images=list(d.get("images") or []),
        created_at=d.get("createdAt"),
    )


def _review_to(r: Review) -> dict[str, Any]:
    doc = {
        "id": r.id,
        "productId": r.product_id,
        "userId": r.user_id,
        "rating": r.rating,
        "comment": r.comment,
        "images": list(r.images),
    }
    if r.created_at is not None:
        doc["createdAt"] = r.created_at
    return doc


def _wishlist_from(doc_id: int, d: Mapping[str, Any]) -> Wishlist:
    return Wishlist(
        user_id=doc_id,
        product_ids=[_int(p) for p in (d.get("productIds") or [])],
    )


def _wishlist_to(w: Wishlist) -> dict[str, Any]:
    return {"userId": w.user_id, "productIds": list(w.product_ids)}


def _cart_from(doc_id: int, d: Mapping[str, Any]) -> Cart:
    items: list[CartItem] = _doc_items(d.get("items"), CartItem)
    return Cart(
        user_id=doc_id,
        items={i.product_id: i for i in items},
        updated_at=d.get("updatedAt"),
    )


def _cart_to(c: Cart) -> dict[str, Any]:
    doc = {"userId": c.user_id, "items": _items_to_doc(c.items.values())}
    if c.updated_at is not None:
        doc["updatedAt"] = c.updated_at
    return doc


_DECODERS: dict[EntityKind, Callable[[int, Mapping[str, Any]], Any]] = {
    EntityKind.CATEGORY: _category_from,
    EntityKind.PRODUCT: _product_from,
    EntityKind.ORDER: _order_from,
    EntityKind.REVIEW: _review_from,
    EntityKind.WISHLIST: _wishlist_from,
    EntityKind.CART: _cart_from,
}
_ENCODERS: dict[EntityKind, Callable[[Any], dict[str, Any]]] = {
    EntityKind.CATEGORY: _category_to,
    EntityKind.PRODUCT: _product_to,
    EntityKind.ORDER: _order_to,
    EntityKind.REVIEW: _review_to,
    EntityKind.WISHLIST: _wishlist_to,
    EntityKind.CART: _cart_to,
}


def entity_key(kind: EntityKind, entity: Any) -> int:
    """Id numérico de la entidad (user_id para listas por usuario)."""
    if kind in (EntityKind.WISHLIST, EntityKind.CART):
        return entity.user_id
    return entity.id


def decode_entity(kind: EntityKind, doc_id: str, data: Mapping[str, Any]) -> Any | None:
    """
    Documento -> entidad. Retorna None si el documento no tiene id numérico
    (documentos legacy con IDs autogenerados se ignoran en listados).
    """
    numeric = try_parse_numeric_id(doc_id)
    if numeric is None:
        numeric = try_parse_numeric_id(data.get("id")) if data.get("id") is not None else None
    if numeric is None:
        return None
    try:
        return _DECODERS[kind](numeric, data)
    except (KeyError, ValueError, TypeError, ArithmeticError) as exc:
        raise DocumentStoreError(
            f"Undecodable {kind.value} document {doc_id}", original_error=exc
        ) from exc


def encode_entity(kind: EntityKind, entity: Any) -> dict[str, Any]:
    return _ENCODERS[kind](entity)


def where_to_document(where: Mapping[str, Any] | None) -> list[tuple[str, Any]]:
    """Filtros canónicos traducibles a igualdades del documento."""
    pairs: list[tuple[str, Any]] = []
    for key, value in (where or {}).items():
        field = WHERE_FIELD_NAMES.get(key)
        if field is None:
            continue
        pairs.append((field, value.value if hasattr(value, "value") else value))
    return pairs


# ============================================================
# Perfiles
# ============================================================
def decode_profile(uid: str, d: Mapping[str, Any]) -> DocumentProfile:
    role = UserRole.parse(d.get("role") or UserRole.USER, default=UserRole.USER)
    return DocumentProfile(
        uid=uid,
        email=d.get("email"),
        username=d.get("username"),
        display_name=d.get("displayName"),
        photo_url=d.get("photoURL"),
        role=role,
        two_factor_enabled=bool(d.get("twoFactorEnabled", False)),
    )


def encode_profile_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Campos canónicos -> campos del documento (las claves desconocidas pasan tal cual)."""
    doc: dict[str, Any] = {}
    for key, value in fields.items():
        name = PROFILE_FIELD_NAMES.get(key, key)
        doc[name] = value.value if isinstance(value, UserRole) else value
    return doc
