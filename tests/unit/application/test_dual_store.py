"""
Unit tests for DualStoreAccessor (document-first reads, store-of-record writes).
"""

import asyncio
from decimal import Decimal

import pytest

from app.crosscutting.exceptions import MalformedKeyError, StoreUnavailableError
from app.domain.entities import (
    Cart,
    CartItem,
    Category,
    EntityKind,
    OrderDraft,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    Product,
    Wishlist,
)
from app.domain.results import Found, NotFound
from app.domain.value_objects import ProductFilter

pytestmark = pytest.mark.unit


def _product(pid: int, **overrides) -> Product:
    data = dict(
        id=pid,
        name=f"Product {pid}",
        description="",
        price=Decimal("10"),
        category_id=1,
    )
    data.update(overrides)
    return Product(**data)


class TestRead:
    @pytest.mark.asyncio
    async def test_document_store_answers_first(self, accessor, relational, document):
        await document.save_entity(EntityKind.PRODUCT, _product(15, name="doc"))
        await relational.save_entity(EntityKind.PRODUCT, _product(15, name="rel"))

        lookup = await accessor.read(EntityKind.PRODUCT, "15")

        assert lookup.value.name == "doc"
        assert "get_entity" not in relational.faults.calls

    @pytest.mark.asyncio
    async def test_document_failure_falls_back_to_relational(self, accessor, relational, document):
        await relational.save_entity(EntityKind.PRODUCT, _product(15, name="rel"))
        document.faults.fail("get_entity")

        lookup = await accessor.read(EntityKind.PRODUCT, 15)

        assert lookup == Found(_product(15, name="rel"))

    @pytest.mark.asyncio
    async def test_document_timeout_falls_back(self, accessor, relational, document):
        await relational.save_entity(EntityKind.CATEGORY, Category(id=3, name="Shoes"))
        document.faults.delay(1.0, "get_entity")

        lookup = await accessor.read(EntityKind.CATEGORY, 3)

        assert lookup.value.name == "Shoes"

    @pytest.mark.asyncio
    async def test_missing_everywhere_is_not_found(self, accessor):
        assert isinstance(await accessor.read(EntityKind.PRODUCT, 99), NotFound)

    @pytest.mark.asyncio
    async def test_document_miss_and_relational_down_is_not_found(self, accessor, relational):
        relational.faults.fail()

        assert isinstance(await accessor.read(EntityKind.PRODUCT, 99), NotFound)

    @pytest.mark.asyncio
    async def test_both_down_raises(self, accessor, relational, document):
        relational.faults.fail()
        document.faults.fail()

        with pytest.raises(StoreUnavailableError):
            await accessor.read(EntityKind.PRODUCT, 1)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["abc", "1.5", "", None, -4])
    async def test_malformed_key_never_touches_stores(self, accessor, relational, document, key):
        with pytest.raises(MalformedKeyError):
            await accessor.read(EntityKind.PRODUCT, key)

        assert document.faults.calls == []
        assert relational.faults.calls == []


class TestList:
    @pytest.mark.asyncio
    async def test_filters_run_in_process(self, accessor, document):
        await document.save_entity(EntityKind.PRODUCT, _product(2, name="Blue Jeans", category_id=4))
        await document.save_entity(EntityKind.PRODUCT, _product(1, name="Red jeans", category_id=4))
        await document.save_entity(EntityKind.PRODUCT, _product(3, name="Jeans", category_id=5))

        result = await accessor.list(
            EntityKind.PRODUCT,
            product_filter=ProductFilter(category_id=4, search="jeans"),
        )

        assert [p.id for p in result] == [1, 2]

    @pytest.mark.asyncio
    async def test_empty_document_store_falls_back(self, accessor, relational):
        await relational.save_entity(EntityKind.CATEGORY, Category(id=1, name="A"))

        result = await accessor.list(EntityKind.CATEGORY)

        assert [c.name for c in result] == ["A"]

    @pytest.mark.asyncio
    async def test_both_down_raises(self, accessor, relational, document):
        relational.faults.fail()
        document.faults.fail()

        with pytest.raises(StoreUnavailableError):
            await accessor.list(EntityKind.CATEGORY)


class TestWrites:
    @pytest.mark.asyncio
    async def test_mint_id_uses_max_of_both_stores(self, accessor, relational, document):
        await document.save_entity(EntityKind.PRODUCT, _product(12))
        await relational.save_entity(EntityKind.PRODUCT, _product(30))

        assert await accessor.mint_id(EntityKind.PRODUCT) == 31

    @pytest.mark.asyncio
    async def test_mint_id_tolerates_one_store_down(self, accessor, relational, document):
        await relational.save_entity(EntityKind.PRODUCT, _product(8))
        document.faults.fail("max_entity_id")

        assert await accessor.mint_id(EntityKind.PRODUCT) == 9

    @pytest.mark.asyncio
    async def test_create_mirrors_document_record(self, accessor, relational, document):
        created = await accessor.create(
            EntityKind.CATEGORY, lambda new_id: Category(id=new_id, name="Hats")
        )

        assert created.id == 1
        assert await document.get_entity(EntityKind.CATEGORY, 1) == created
        assert await relational.get_entity(EntityKind.CATEGORY, 1) == created

    @pytest.mark.asyncio
    async def test_document_record_falls_back_to_relational(self, accessor, relational, document):
        document.faults.fail("save_entity")
        cart = Cart(user_id=5).with_item(
            CartItem(product_id=1, name="A", price=Decimal("3"), quantity=1)
        )

        saved = await accessor.save(EntityKind.CART, cart)

        assert saved == cart
        assert await relational.get_entity(EntityKind.CART, 5) == cart

    @pytest.mark.asyncio
    async def test_relational_record_mirror_failure_is_tolerated(
        self, accessor, relational, document
    ):
        document.faults.fail("save_entity")

        saved = await accessor.save(EntityKind.WISHLIST, Wishlist(user_id=5, product_ids=[1]))

        assert await relational.get_entity(EntityKind.WISHLIST, 5) == saved
        assert await document.get_entity(EntityKind.WISHLIST, 5) is None

    @pytest.mark.asyncio
    async def test_relational_record_down_raises(self, accessor, relational):
        relational.faults.fail("save_entity")

        with pytest.raises(StoreUnavailableError):
            await accessor.save(EntityKind.WISHLIST, Wishlist(user_id=5))

    @pytest.mark.asyncio
    async def test_insert_assigns_serial_and_mirrors(self, accessor, relational, document):
        draft = OrderDraft(
            user_id=None,
            items=[OrderItem(product_id=1, name="A", price=Decimal("4"), quantity=2)],
            shipping_address={"street": "Main 1"},
        )

        order = await accessor.insert(EntityKind.ORDER, draft)

        assert order.id == 1
        assert order.total_amount == Decimal("8")
        assert (await document.get_entity(EntityKind.ORDER, 1)).id == 1

    @pytest.mark.asyncio
    async def test_insert_rejects_document_record_kinds(self, accessor):
        with pytest.raises(ValueError):
            await accessor.insert(EntityKind.PRODUCT, _product(1))

    @pytest.mark.asyncio
    async def test_write_patches_known_fields_only(self, accessor, document):
        await document.save_entity(EntityKind.PRODUCT, _product(4, stock=1))

        lookup = await accessor.write(
            EntityKind.PRODUCT, "4", {"stock": 9, "id": 77, "unknown": True}
        )

        assert lookup.value.id == 4
        assert lookup.value.stock == 9

    @pytest.mark.asyncio
    async def test_write_missing_is_not_found(self, accessor):
        assert isinstance(await accessor.write(EntityKind.PRODUCT, 1, {"stock": 1}), NotFound)

    @pytest.mark.asyncio
    async def test_delete_from_both_stores(self, accessor, relational, document):
        await document.save_entity(EntityKind.PRODUCT, _product(6))
        relational.faults.fail("delete_entity")

        assert await accessor.delete(EntityKind.PRODUCT, 6)
        assert not await accessor.delete(EntityKind.PRODUCT, 6)
        with pytest.raises(MalformedKeyError):
            await accessor.delete(EntityKind.PRODUCT, "six")


class TestCreateIfAbsent:
    @pytest.mark.asyncio
    async def test_concurrent_creates_get_distinct_ids(self, accessor, relational, document):
        # Ambas altas mintean antes de que ninguna escriba.
        document.faults.delay(0.01, "max_entity_id")

        first, second = await asyncio.gather(
            accessor.create(EntityKind.PRODUCT, lambda new_id: _product(new_id, name="A")),
            accessor.create(EntityKind.PRODUCT, lambda new_id: _product(new_id, name="B")),
        )

        assert {first.id, second.id} == {1, 2}
        stored = {p.name for p in await document.list_entities(EntityKind.PRODUCT)}
        assert stored == {"A", "B"}
        assert (await relational.get_entity(EntityKind.PRODUCT, first.id)).name == first.name
        assert (await relational.get_entity(EntityKind.PRODUCT, second.id)).name == second.name

    @pytest.mark.asyncio
    async def test_create_never_overwrites_existing_id(self, accessor, document):
        await document.save_entity(EntityKind.CATEGORY, Category(id=1, name="Old"))

        assert await document.create_entity(EntityKind.CATEGORY, Category(id=1, name="New")) is None
        created = await accessor.create(
            EntityKind.CATEGORY, lambda new_id: Category(id=new_id, name="New")
        )

        assert created.id == 2
        assert (await document.get_entity(EntityKind.CATEGORY, 1)).name == "Old"

    @pytest.mark.asyncio
    async def test_create_falls_back_to_relational(self, accessor, relational, document):
        document.faults.fail("create_entity")

        created = await accessor.create(
            EntityKind.CATEGORY, lambda new_id: Category(id=new_id, name="Hats")
        )

        assert await relational.get_entity(EntityKind.CATEGORY, created.id) == created
        assert await document.get_entity(EntityKind.CATEGORY, created.id) is None

    @pytest.mark.asyncio
    async def test_create_gives_up_when_ids_keep_colliding(self, accessor, document):
        document.faults.fail("max_entity_id")
        await document.save_entity(EntityKind.CATEGORY, Category(id=1, name="Hidden"))

        with pytest.raises(StoreUnavailableError):
            await accessor.create(
                EntityKind.CATEGORY, lambda new_id: Category(id=new_id, name="New")
            )


class TestStaleMirror:
    @pytest.mark.asyncio
    async def test_order_update_after_failed_mirror_keeps_record(
        self, accessor, relational, document
    ):
        order = await accessor.insert(
            EntityKind.ORDER,
            OrderDraft(
                user_id=3,
                items=[OrderItem(product_id=1, name="A", price=Decimal("4"), quantity=1)],
                shipping_address={"street": "Main 1"},
            ),
        )

        document.faults.fail("save_entity")
        await accessor.write(EntityKind.ORDER, order.id, {"status": OrderStatus.SHIPPED})
        document.faults.heal()
        lookup = await accessor.write(
            EntityKind.ORDER, order.id, {"payment_status": PaymentStatus.PAID}
        )

        stored = await relational.get_entity(EntityKind.ORDER, order.id)
        assert (stored.status, stored.payment_status) == (
            OrderStatus.SHIPPED,
            PaymentStatus.PAID,
        )
        assert lookup.value == stored
        assert await document.get_entity(EntityKind.ORDER, order.id) == stored

    @pytest.mark.asyncio
    async def test_read_for_update_prefers_record_store(self, accessor, relational, document):
        await relational.save_entity(EntityKind.WISHLIST, Wishlist(user_id=4, product_ids=[1, 2]))
        await document.save_entity(EntityKind.WISHLIST, Wishlist(user_id=4, product_ids=[1]))

        plain = await accessor.read(EntityKind.WISHLIST, 4)
        for_update = await accessor.read_for_update(EntityKind.WISHLIST, 4)

        assert plain.value.product_ids == [1]
        assert for_update.value.product_ids == [1, 2]

    @pytest.mark.asyncio
    async def test_read_for_update_falls_back_when_record_is_down(
        self, accessor, relational, document
    ):
        await document.save_entity(EntityKind.WISHLIST, Wishlist(user_id=4, product_ids=[7]))
        relational.faults.fail("get_entity")

        lookup = await accessor.read_for_update(EntityKind.WISHLIST, 4)

        assert lookup == Found(Wishlist(user_id=4, product_ids=[7]))
