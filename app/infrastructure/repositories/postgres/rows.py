"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/rows.py
============================================================
Module: adaptadores fila relacional <-> entidad canónica

Responsibilities:
  - Declarar, por tipo de entidad, la tabla, la clave y la lista explícita
    de columnas (contrato con la migración 001_storefront).
  - Mapear filas (dict_row) -> entidades canónicas y entidades/drafts ->
    parámetros de INSERT/UPSERT.
  - Serializar columnas JSONB (items, imágenes, direcciones) con Jsonb.

Collaborators:
  - domain.entities (Category, Product, Order, Review, Wishlist, Cart,
    HeroBanner, Testimonial)
  - identity.users.User
  - psycopg.types.json.Jsonb

Constraints:
  - Un valor persistido fuera de los enums -> DatabaseError (drift de esquema).
  - created_at/updated_at en None no se envían: los completa el DEFAULT.
============================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Mapping

from psycopg.types.json import Jsonb

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import (
    Cart,
    CartItem,
    Category,
    EntityKind,
    HeroBanner,
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
from ....identity.users import User, UserRole

# ============================================================
# Users
# ============================================================
USER_COLUMNS = (
    "id, email, username, password_hash, role, external_uid, full_name, address, "
    "phone, photo_url, two_factor_enabled, stripe_customer_id, created_at"
)

# R: columnas que update_user acepta (whitelist: nunca interpolar claves del caller).
USER_UPDATABLE_COLUMNS: frozenset[str] = frozenset(
    {
        "email",
        "username",
        "password_hash",
        "role",
        "external_uid",
        "full_name",
        "address",
        "phone",
        "photo_url",
        "two_factor_enabled",
        "stripe_customer_id",
    }
)


def row_to_user(row: Mapping[str, Any]) -> User:
    try:
        role = UserRole.parse(row["role"])
    except ValueError as exc:
        raise DatabaseError(f"Invalid user role in database: {row['role']}") from exc
    return User(
        id=row["id"],
        email=row["email"],
        username=row["username"],
        password_hash=row["password_hash"],
        role=role,
        external_uid=row["external_uid"],
        full_name=row["full_name"],
        address=row["address"],
        phone=row["phone"],
        photo_url=row["photo_url"],
        two_factor_enabled=bool(row["two_factor_enabled"]),
        stripe_customer_id=row["stripe_customer_id"],
        created_at=row["created_at"],
    )


def user_param(value: Any) -> Any:
    """Enums -> valor plano para psycopg."""
    return value.value if isinstance(value, UserRole) else value


# ============================================================
# JSON helpers
# ============================================================
def _items_to_json(items: list[OrderItem] | list[CartItem]) -> list[dict[str, Any]]:
    return [
        {
            "product_id": item.product_id,
            "name": item.name,
            "price": str(item.price),
            "quantity": item.quantity,
            "image": item.image,
        }
        for item in items
    ]


def _json_to_order_items(raw: Any) -> list[OrderItem]:
    return [
        OrderItem(
            product_id=int(i["product_id"]),
            name=i.get("name") or "",
            price=Decimal(str(i.get("price", "0"))),
            quantity=int(i.get("quantity", 1)),
            image=i.get("image"),
        )
        for i in (raw or [])
    ]


def _json_to_cart_items(raw: Any) -> dict[int, CartItem]:
    items: dict[int, CartItem] = {}
    for i in raw or []:
        item = CartItem(
            product_id=int(i["product_id"]),
            name=i.get("name") or "",
            price=Decimal(str(i.get("price", "0"))),
            quantity=int(i.get("quantity", 1)),
            image=i.get("image"),
        )
        items[item.product_id] = item
    return items


def _strip_none_timestamps(row: dict[str, Any]) -> dict[str, Any]:
    return {
        k: v
        for k, v in row.items()
        if not (k in ("created_at", "updated_at") and v is None)
    }


def _enum(enum_cls, value: Any):
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise DatabaseError(f"Invalid {enum_cls.__name__} in database: {value}") from exc


# ============================================================
# Mappers por entidad
# ============================================================
def _row_to_category(row: Mapping[str, Any]) -> Category:
    return Category(
        id=row["id"],
        name=row["name"],
        image=row["image"],
        description=row["description"],
        featured=bool(row["featured"]),
    )


def _category_to_row(c: Category) -> dict[str, Any]:
    return {
        "id": c.id,
        "name": c.name,
        "image": c.image,
        "description": c.description,
        "featured": c.featured,
    }


def _row_to_product(row: Mapping[str, Any]) -> Product:
    return Product(
        id=row["id"],
        name=row["name"],
        description=row["description"] or "",
        price=Decimal(row["price"]),
        category_id=row["category_id"],
        discount_price=(
            Decimal(row["discount_price"]) if row["discount_price"] is not None else None
        ),
        images=list(row["images"] or []),
        sizes=list(row["sizes"] or []),
        colors=list(row["colors"] or []),
        stock=row["stock"] or 0,
        featured=bool(row["featured"]),
        trending=bool(row["trending"]),
        created_at=row["created_at"],
    )


def _product_to_row(p: Product) -> dict[str, Any]:
    return _strip_none_timestamps(
        {
            "id": p.id,
            "name": p.name,
            "description": p.description,
            "price": p.price,
            "discount_price": p.discount_price,
            "category_id": p.category_id,
            "images": Jsonb(list(p.images)),
            "sizes": Jsonb(list(p.sizes)),
            "colors": Jsonb(list(p.colors)),
            "stock": p.stock,
            "featured": p.featured,
            "trending": p.trending,
            "created_at": p.created_at,
        }
    )


def _row_to_order(row: Mapping[str, Any]) -> Order:
    return Order(
        id=row["id"],
        user_id=row["user_id"],
        items=_json_to_order_items(row["items"]),
        total_amount=Decimal(row["total_amount"]),
        shipping_address=dict(row["shipping_address"] or {}),
        status=_enum(OrderStatus, row["status"]),
        payment_status=_enum(PaymentStatus, row["payment_status"]),
        payment_intent=row["payment_intent"],
        tracking_number=row["tracking_number"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _order_to_row(o: Order) -> dict[str, Any]:
    return _strip_none_timestamps(
        {
            "id": o.id,
            "user_id": o.user_id,
            "items": Jsonb(_items_to_json(o.items)),
            "total_amount": o.total_amount,
            "shipping_address": Jsonb(dict(o.shipping_address)),
            "status": o.status.value,
            "payment_status": o.payment_status.value,
            "payment_intent": o.payment_intent,
            "tracking_number": o.tracking_number,
            "created_at": o.created_at,
            "updated_at": o.updated_at,
        }
    )


def _order_draft_to_row(d: OrderDraft) -> dict[str, Any]:
    return {
        "user_id": d.user_id,
        "items": Jsonb(_items_to_json(d.items)),
        "total_amount": d.total_amount,
        "shipping_address": Jsonb(dict(d.shipping_address)),
        "status": OrderStatus.PENDING.value,
        "payment_status": PaymentStatus.PENDING.value,
        "payment_intent": d.payment_intent,
    }


def _row_to_review(row: Mapping[str, Any]) -> Review:
    return Review(
        id=row["id"],
        product_id=row["product_id"],
        user_id=row["user_id"],
        rating=row["rating"],
        comment=row["comment"],
        images=list(row["images"] or []),
        created_at=row["created_at"],
    )


def _review_to_row(r: Review) -> dict[str, Any]:
    return _strip_none_timestamps(
        {
            "id": r.id,
            "product_id": r.product_id,
            "user_id": r.user_id,
            "rating": r.rating,
            "comment": r.comment,
            "images": Jsonb(list(r.images)),
            "created_at": r.created_at,
        }
    )


def _review_draft_to_row(d: ReviewDraft) -> dict[str, Any]:
    return {
        "product_id": d.product_id,
        "user_id": d.user_id,
        "rating": d.rating,
        "comment": d.comment,
        "images": Jsonb(list(d.images)),
    }


def _row_to_wishlist(row: Mapping[str, Any]) -> Wishlist:
    return Wishlist(
        user_id=row["user_id"],
        product_ids=[int(p) for p in (row["product_ids"] or [])],
    )


def _wishlist_to_row(w: Wishlist) -> dict[str, Any]:
    return {"user_id": w.user_id, "product_ids": Jsonb(list(w.product_ids))}


def _row_to_cart(row: Mapping[str, Any]) -> Cart:
    return Cart(
        user_id=row["user_id"],
        items=_json_to_cart_items(row["items"]),
        updated_at=row["updated_at"],
    )


def _cart_to_row(c: Cart) -> dict[str, Any]:
    return _strip_none_timestamps(
        {
            "user_id": c.user_id,
            "items": Jsonb(_items_to_json(list(c.items.values()))),
            "updated_at": c.updated_at,
        }
    )


# ============================================================
# Tabla por tipo de entidad
# ============================================================
@dataclass(frozen=True)
class TableSpec:
    table: str
    key: str
    columns: tuple[str, ...]
    to_entity: Callable[[Mapping[str, Any]], Any]
    to_row: Callable[[Any], dict[str, Any]]
    draft_to_row: Callable[[Any], dict[str, Any]] | None = None

    @property
    def select_list(self) -> str:
        return ", ".join(self.columns)


TABLES: dict[EntityKind, TableSpec] = {
    EntityKind.CATEGORY: TableSpec(
        "categories",
        "id",
        ("id", "name", "image", "description", "featured"),
        _row_to_category,
        _category_to_row,
    ),
    EntityKind.PRODUCT: TableSpec(
        "products",
        "id",
        (
            "id",
            "name",
            "description",
            "price",
            "discount_price",
            "category_id",
            "images",
            "sizes",
            "colors",
            "stock",
            "featured",
            "trending",
            "created_at",
        ),
        _row_to_product,
        _product_to_row,
    ),
    EntityKind.ORDER: TableSpec(
        "orders",
        "id",
        (
            "id",
            "user_id",
            "items",
            "total_amount",
            "shipping_address",
            "status",
            "payment_status",
            "payment_intent",
            "tracking_number",
            "created_at",
            "updated_at",
        ),
        _row_to_order,
        _order_to_row,
        _order_draft_to_row,
    ),
    EntityKind.REVIEW: TableSpec(
        "reviews",
        "id",
        ("id", "product_id", "user_id", "rating", "comment", "images", "created_at"),
        _row_to_review,
        _review_to_row,
        _review_draft_to_row,
    ),
    EntityKind.WISHLIST: TableSpec(
        "wishlists",
        "user_id",
        ("user_id", "product_ids"),
        _row_to_wishlist,
        _wishlist_to_row,
    ),
    EntityKind.CART: TableSpec(
        "carts",
        "user_id",
        ("user_id", "items", "updated_at"),
        _row_to_cart,
        _cart_to_row,
    ),
}


# ============================================================
# Home content
# ============================================================
BANNER_COLUMNS = (
    "id, title, subtitle, image, button_text, button_link, active, start_date, end_date"
)
TESTIMONIAL_COLUMNS = "id, name, comment, rating, image, featured"


def row_to_banner(row: Mapping[str, Any]) -> HeroBanner:
    return HeroBanner(
        id=row["id"],
        title=row["title"],
        image=row["image"],
        subtitle=row["subtitle"],
        button_text=row["button_text"],
        button_link=row["button_link"],
        active=bool(row["active"]),
        start_date=row["start_date"],
        end_date=row["end_date"],
    )


def row_to_testimonial(row: Mapping[str, Any]) -> Testimonial:
    return Testimonial(
        id=row["id"],
        name=row["name"],
        comment=row["comment"],
        rating=row["rating"],
        image=row["image"],
        featured=bool(row["featured"]),
    )
