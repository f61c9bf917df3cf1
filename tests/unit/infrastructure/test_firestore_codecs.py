"""
Unit tests for the document <-> entity codecs used by the Firestore store.
"""

from decimal import Decimal

import pytest

from app.crosscutting.exceptions import DocumentStoreError
from app.domain.entities import (
    Cart,
    CartItem,
    EntityKind,
    Order,
    OrderItem,
    OrderStatus,
    Product,
)
from app.infrastructure.repositories.firestore.codecs import (
    decode_entity,
    decode_profile,
    encode_entity,
    encode_profile_fields,
    entity_key,
    where_to_document,
)
from app.identity.users import UserRole

pytestmark = pytest.mark.unit


class TestProducts:
    def test_money_is_written_as_number_and_read_as_decimal(self):
        product = Product(
            id=15,
            name="Shirt",
            description="",
            price=Decimal("19.99"),
            category_id=2,
            discount_price=Decimal("15.50"),
        )

        doc = encode_entity(EntityKind.PRODUCT, product)
        back = decode_entity(EntityKind.PRODUCT, "15", doc)

        assert doc["price"] == 19.99
        assert doc["categoryId"] == 2
        assert back.price == Decimal("19.99")
        assert back.discount_price == Decimal("15.5")

    def test_document_id_is_source_of_truth(self):
        product = decode_entity(
            EntityKind.PRODUCT, "15", {"id": 99, "name": "x", "price": 1, "categoryId": "3"}
        )

        assert product.id == 15
        assert product.category_id == 3

    def test_legacy_document_with_numeric_id_field(self):
        product = decode_entity(EntityKind.PRODUCT, "AbCdEf", {"id": "42", "name": "x", "price": 1})
        assert product.id == 42

    def test_legacy_document_without_numeric_id_is_skipped(self):
        assert decode_entity(EntityKind.PRODUCT, "AbCdEf", {"name": "x"}) is None

    def test_undecodable_document_raises(self):
        with pytest.raises(DocumentStoreError):
            decode_entity(EntityKind.PRODUCT, "1", {"name": "x", "price": "not-money"})


class TestOrdersAndCarts:
    def test_guest_order(self):
        order = Order(
            id=3,
            user_id=None,
            items=[OrderItem(product_id=1, name="A", price=Decimal("2.5"), quantity=2)],
            total_amount=Decimal("5"),
            shipping_address={"city": "X"},
            status=OrderStatus.SHIPPED,
        )

        doc = encode_entity(EntityKind.ORDER, order)
        back = decode_entity(EntityKind.ORDER, "3", doc)

        assert doc["userId"] is None
        assert doc["status"] == "shipped"
        assert back.user_id is None
        assert back.items[0].price == Decimal("2.5")
        assert back.status == OrderStatus.SHIPPED

    def test_cart_is_keyed_by_user(self):
        cart = Cart(user_id=8).with_item(
            CartItem(product_id=4, name="B", price=Decimal("1"), quantity=3)
        )

        doc = encode_entity(EntityKind.CART, cart)
        back = decode_entity(EntityKind.CART, "8", doc)

        assert entity_key(EntityKind.CART, cart) == 8
        assert back.items[4].quantity == 3


class TestProfiles:
    def test_decode_profile_is_tolerant(self):
        profile = decode_profile(
            "fb-1",
            {"email": "a@b.c", "displayName": "Ana", "photoURL": "/p.png", "role": "Admin"},
        )

        assert profile.display_name == "Ana"
        assert profile.photo_url == "/p.png"
        assert profile.role == UserRole.ADMIN
        assert profile.two_factor_enabled is False

    def test_unknown_role_falls_back_to_user(self):
        assert decode_profile("fb-1", {"role": "superuser"}).role == UserRole.USER

    def test_encode_profile_fields(self):
        doc = encode_profile_fields(
            {"role": UserRole.ADMIN, "two_factor_enabled": True, "display_name": "Ana"}
        )

        assert doc == {"role": "admin", "twoFactorEnabled": True, "displayName": "Ana"}


def test_where_translation_drops_unknown_fields():
    pairs = where_to_document(
        {"category_id": 3, "status": OrderStatus.PENDING, "colour": "red"}
    )

    assert pairs == [("categoryId", 3), ("status", "pending")]
