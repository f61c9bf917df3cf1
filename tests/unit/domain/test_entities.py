"""
Unit tests for storefront entities and catalog filters.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.domain.entities import (
    Cart,
    CartItem,
    HeroBanner,
    OrderDraft,
    OrderItem,
    Product,
    Wishlist,
)
from app.domain.value_objects import IdentityHints, ProductFilter
from app.identity.users import UserRole

pytestmark = pytest.mark.unit


def _product(pid: int, **overrides) -> Product:
    data = dict(
        id=pid,
        name=f"Product {pid}",
        description="Cotton shirt",
        price=Decimal("100"),
        category_id=1,
    )
    data.update(overrides)
    return Product(**data)


class TestProductPricing:
    def test_on_sale_requires_lower_positive_discount(self):
        assert _product(1, discount_price=Decimal("80")).is_on_sale
        assert not _product(1, discount_price=Decimal("100")).is_on_sale
        assert not _product(1, discount_price=Decimal("120")).is_on_sale
        assert not _product(1, discount_price=Decimal("0")).is_on_sale
        assert not _product(1).is_on_sale

    def test_effective_price(self):
        assert _product(1, discount_price=Decimal("80")).effective_price == Decimal("80")
        assert _product(1, discount_price=Decimal("150")).effective_price == Decimal("100")


class TestProductFilter:
    def test_search_is_case_insensitive_over_name_and_description(self):
        products = [
            _product(1, name="Blue Jeans", description="denim"),
            _product(2, name="Red Shirt", description="Cotton"),
        ]

        assert [p.id for p in ProductFilter(search="JEANS").apply(products)] == [1]
        assert [p.id for p in ProductFilter(search="cotton").apply(products)] == [2]

    def test_price_bounds_are_inclusive(self):
        products = [_product(i, price=Decimal(p)) for i, p in [(1, "10"), (2, "20"), (3, "30")]]

        result = ProductFilter(min_price=Decimal("10"), max_price=Decimal("20")).apply(products)

        assert [p.id for p in result] == [1, 2]

    def test_flags_and_category(self):
        products = [
            _product(1, category_id=2, featured=True),
            _product(2, category_id=2, trending=True, discount_price=Decimal("50")),
            _product(3, category_id=3, featured=True),
        ]

        assert [p.id for p in ProductFilter(category_id=2).apply(products)] == [1, 2]
        assert [p.id for p in ProductFilter(featured=True).apply(products)] == [1, 3]
        assert [p.id for p in ProductFilter(on_sale=True).apply(products)] == [2]
        assert [p.id for p in ProductFilter(on_sale=False).apply(products)] == [1, 3]

    def test_empty_filter_keeps_everything(self):
        products = [_product(1), _product(2)]
        assert ProductFilter().apply(products) == products


class TestOrdersAndLists:
    def test_order_draft_total(self):
        draft = OrderDraft(
            user_id=None,
            items=[
                OrderItem(product_id=1, name="A", price=Decimal("9.99"), quantity=2),
                OrderItem(product_id=2, name="B", price=Decimal("5"), quantity=1),
            ],
            shipping_address={"city": "Rosario"},
        )
        assert draft.total_amount == Decimal("24.98")

    def test_wishlist_add_is_idempotent(self):
        wishlist = Wishlist(user_id=3).with_product(10).with_product(10).with_product(11)
        assert wishlist.product_ids == [10, 11]
        assert wishlist.without_product(10).product_ids == [11]

    def test_cart_zero_quantity_removes_item(self):
        cart = Cart(user_id=3).with_item(
            CartItem(product_id=1, name="A", price=Decimal("2.50"), quantity=4)
        )
        assert cart.total == Decimal("10.00")

        cart = cart.with_item(CartItem(product_id=1, name="A", price=Decimal("2.50"), quantity=0))

        assert cart.items == {}
        assert cart.total == Decimal("0")


class TestBannerVisibility:
    def test_window_and_active_flag(self):
        now = datetime(2026, 5, 1, tzinfo=timezone.utc)
        banner = HeroBanner(
            id=1,
            title="Sale",
            image="/img.png",
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=1),
        )

        assert banner.is_visible(now)
        assert not banner.is_visible(now + timedelta(days=2))
        assert not banner.is_visible(now - timedelta(days=2))
        assert not HeroBanner(id=2, title="x", image="y", active=False).is_visible(now)


class TestIdentityValues:
    def test_email_is_normalized(self):
        assert IdentityHints(email="  Ana@Example.COM ").normalized_email == "ana@example.com"
        assert IdentityHints(email="  ").normalized_email is None

    def test_empty_hints(self):
        assert IdentityHints().is_empty
        assert not IdentityHints(numeric_id="abc").is_empty

    @pytest.mark.parametrize("raw", ["admin", "Admin", " ADMIN "])
    def test_role_parse_is_tolerant(self, raw):
        assert UserRole.parse(raw) is UserRole.ADMIN

    def test_role_parse_default(self):
        assert UserRole.parse("owner", default=UserRole.USER) is UserRole.USER
        with pytest.raises(ValueError):
            UserRole.parse("owner")
