"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 001_storefront (Alembic Migration)

Responsibilities:
  - Crear el esquema relacional completo de la tienda (migración fundacional).
  - Usuarios, catálogo, pedidos, reseñas, listas por usuario, contenido de
    home y códigos de un solo uso.

Collaborators:
  - PostgreSQL 16+
  - infrastructure.repositories.postgres (rows.py define las columnas)

Policy:
  - Migración BASELINE. Downgrade elimina todo el esquema.
  - categories / products usan ids explícitos (minteados contra ambos stores);
    users / orders / reviews usan BIGSERIAL.
  - Money en NUMERIC(12, 2); listas y direcciones en JSONB.
  - Convención de nombres:
      pk_<tabla>, uq_<tabla>_<col>, ix_<tabla>_<col>, fk_<tabla>_<col>__<ref>
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_storefront"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(12, 2)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def _jsonb(name: str, default: str = "'[]'::jsonb") -> sa.Column:
    return sa.Column(
        name, postgresql.JSONB, nullable=False, server_default=sa.text(default)
    )


def upgrade() -> None:
    # =========================================================
    # 1) IDENTITY
    # =========================================================
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("password_hash", sa.Text, nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("external_uid", sa.String(128), nullable=True),
        sa.Column("full_name", sa.String(120), nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("phone", sa.String(40), nullable=True),
        sa.Column("photo_url", sa.Text, nullable=True),
        sa.Column(
            "two_factor_enabled", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column("stripe_customer_id", sa.String(255), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("external_uid", name="uq_users_external_uid"),
        sa.CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
    )
    # R: unicidad de email case-insensitive (lookup usa lower(email)).
    op.execute("CREATE UNIQUE INDEX uq_users_email_lower ON users (lower(email))")

    # =========================================================
    # 2) CATALOG
    # =========================================================
    op.create_table(
        "categories",
        sa.Column("id", sa.BigInteger, autoincrement=False, nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("image", sa.Text, nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("featured", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id", name="pk_categories"),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.BigInteger, autoincrement=False, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("price", MONEY, nullable=False),
        sa.Column("discount_price", MONEY, nullable=True),
        sa.Column("category_id", sa.BigInteger, nullable=False),
        _jsonb("images"),
        _jsonb("sizes"),
        _jsonb("colors"),
        sa.Column("stock", sa.Integer, nullable=False, server_default="0"),
        sa.Column("featured", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("trending", sa.Boolean, nullable=False, server_default=sa.false()),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_products"),
        sa.CheckConstraint("price > 0", name="ck_products_price_positive"),
        sa.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )
    # Sin FK a categories: la categoría puede existir sólo en el store documental.
    op.create_index("ix_products_category_id", "products", ["category_id"])

    # =========================================================
    # 3) ORDERS / REVIEWS
    # =========================================================
    op.create_table(
        "orders",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger, nullable=True),
        _jsonb("items"),
        sa.Column("total_amount", MONEY, nullable=False),
        _jsonb("shipping_address", "'{}'::jsonb"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column(
            "payment_status", sa.String(20), nullable=False, server_default="pending"
        ),
        sa.Column("payment_intent", sa.String(255), nullable=True),
        sa.Column("tracking_number", sa.String(120), nullable=True),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_orders"),
    )
    op.create_index("ix_orders_user_id", "orders", ["user_id"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("product_id", sa.BigInteger, nullable=False),
        sa.Column("user_id", sa.BigInteger, nullable=False),
        sa.Column("rating", sa.SmallInteger, nullable=False),
        sa.Column("comment", sa.Text, nullable=True),
        _jsonb("images"),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_reviews"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating"),
    )
    op.create_index("ix_reviews_product_id", "reviews", ["product_id"])

    # =========================================================
    # 4) PER-USER LISTS
    # =========================================================
    op.create_table(
        "wishlists",
        sa.Column("user_id", sa.BigInteger, autoincrement=False, nullable=False),
        _jsonb("product_ids"),
        sa.PrimaryKeyConstraint("user_id", name="pk_wishlists"),
    )
    op.create_table(
        "carts",
        sa.Column("user_id", sa.BigInteger, autoincrement=False, nullable=False),
        _jsonb("items"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("user_id", name="pk_carts"),
    )

    # =========================================================
    # 5) HOME CONTENT
    # =========================================================
    op.create_table(
        "hero_banners",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("subtitle", sa.Text, nullable=True),
        sa.Column("image", sa.Text, nullable=False),
        sa.Column("button_text", sa.String(60), nullable=True),
        sa.Column("button_link", sa.Text, nullable=True),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_hero_banners"),
    )
    op.create_table(
        "testimonials",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("comment", sa.Text, nullable=False),
        sa.Column("rating", sa.SmallInteger, nullable=False, server_default="5"),
        sa.Column("image", sa.Text, nullable=True),
        sa.Column("featured", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id", name="pk_testimonials"),
    )

    # =========================================================
    # 6) ONE-TIME CODES
    # =========================================================
    # R: una emisión se indexa bajo varios owner keys (id, UID, email) que
    # comparten issuance_id; emitir de nuevo reemplaza las filas previas.
    op.create_table(
        "one_time_codes",
        sa.Column("purpose", sa.String(32), nullable=False),
        sa.Column("owner_key", sa.String(320), nullable=False),
        sa.Column("issuance_id", sa.String(64), nullable=False),
        sa.Column("code", sa.String(12), nullable=False),
        sa.Column("user_id", sa.BigInteger, nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("attempts", sa.Integer, nullable=False, server_default="0"),
        _created_at(),
        sa.PrimaryKeyConstraint("purpose", "owner_key", name="pk_one_time_codes"),
    )
    op.create_index("ix_one_time_codes_issuance_id", "one_time_codes", ["issuance_id"])


def downgrade() -> None:
    for table in (
        "one_time_codes",
        "testimonials",
        "hero_banners",
        "carts",
        "wishlists",
        "reviews",
        "orders",
        "products",
        "categories",
        "users",
    ):
        op.drop_table(table)
