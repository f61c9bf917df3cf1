"""
Unit tests for relational row mappers (no database needed).
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.crosscutting.exceptions import DatabaseError
from app.domain.entities import Cart, CartItem, EntityKind, OrderDraft, OrderItem, Wishlist
from app.identity.users import UserRole
from app.infrastructure.repositories.postgres.rows import (
    TABLES,
    USER_UPDATABLE_COLUMNS,
    row_to_user,
    user_param,
)

pytestmark = pytest.mark.unit

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _user_row(**overrides):
    row = {
        "id": 1,
        "email": "a@example.com",
        "username": "a",
        "password_hash": "x",
        "role": "admin",
        "external_uid": None,
        "full_name": None,
        "address": None,
        "phone": None,
        "photo_url": None,
        "two_factor_enabled": None,
        "stripe_customer_id": None,
        "created_at": NOW,
    }
    row.update(overrides)
    return row


class TestUsers:
    def test_row_to_user(self):
        user = row_to_user(_user_row())

        assert user.role == UserRole.ADMIN
        assert user.two_factor_enabled is False

    def test_invalid_role_is_database_error(self):
        with pytest.raises(DatabaseError):
            row_to_user(_user_row(role="root"))

    def test_user_param_flattens_enum(self):
        assert user_param(UserRole.USER) == "user"
        assert user_param(3) == 3

    def test_identity_columns_are_not_updatable(self):
        assert "id" not in USER_UPDATABLE_COLUMNS
        assert "created_at" not in USER_UPDATABLE_COLUMNS


class TestEntityTables:
    def test_every_kind_has_a_table(self):
        assert set(TABLES) == set(EntityKind)

    def test_order_draft_row_has_total(self):
        spec = TABLES[EntityKind.ORDER]
        draft = OrderDraft(
            user_id=None,
            items=[OrderItem(product_id=1, name="A", price=Decimal("3.10"), quantity=2)],
            shipping_address={"city": "X"},
        )

        row = spec.draft_to_row(draft)

        assert row["user_id"] is None
        assert row["total_amount"] == Decimal("6.20")
        assert row["items"].obj[0]["price"] == "3.10"

    def test_order_row_round_trip(self):
        spec = TABLES[EntityKind.ORDER]
        row = {
            "id": 9,
            "user_id": 4,
            "items": [{"product_id": "1", "name": "A", "price": "3.10", "quantity": 2}],
            "total_amount": Decimal("6.20"),
            "shipping_address": {"city": "X"},
            "status": "pending",
            "payment_status": "paid",
            "payment_intent": "pi_1",
            "tracking_number": None,
            "created_at": NOW,
            "updated_at": NOW,
        }

        order = spec.to_entity(row)

        assert order.items[0].product_id == 1
        assert order.items[0].price == Decimal("3.10")
        assert order.payment_status.value == "paid"

    def test_bad_order_status_is_database_error(self):
        spec = TABLES[EntityKind.ORDER]
        with pytest.raises(DatabaseError):
            spec.to_entity(
                {
                    "id": 1,
                    "user_id": None,
                    "items": [],
                    "total_amount": Decimal("0"),
                    "shipping_address": None,
                    "status": "lost",
                    "payment_status": "pending",
                    "payment_intent": None,
                    "tracking_number": None,
                    "created_at": None,
                    "updated_at": None,
                }
            )

    def test_lists_are_keyed_by_user(self):
        assert TABLES[EntityKind.WISHLIST].key == "user_id"
        assert TABLES[EntityKind.CART].key == "user_id"

        wishlist_row = TABLES[EntityKind.WISHLIST].to_row(Wishlist(user_id=3, product_ids=[5]))
        cart = Cart(user_id=3, items={5: CartItem(5, "A", Decimal("1"), 2)})
        cart_row = TABLES[EntityKind.CART].to_row(cart)

        assert wishlist_row["product_ids"].obj == [5]
        assert "updated_at" not in cart_row
        assert cart_row["items"].obj[0]["quantity"] == 2
