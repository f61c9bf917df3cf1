"""
Unit tests for storefront use cases: catalog, orders (including guest
checkout), wishlist/cart, home content, payments and admin operations.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio

from app.application.usecases.admin import (
    AdminDashboardUseCase,
    ChangeUserRoleUseCase,
    RoleChangeTarget,
)
from app.application.usecases.catalog import (
    CategoryInput,
    CreateCategoryUseCase,
    CreateProductUseCase,
    CreateReviewUseCase,
    DeleteProductUseCase,
    ListProductReviewsUseCase,
    ProductInput,
    UpdateProductUseCase,
)
from app.application.usecases.content import (
    CreateBannerUseCase,
    CreateTestimonialUseCase,
    ListBannersUseCase,
    ListTestimonialsUseCase,
)
from app.application.usecases.lists import (
    AddToWishlistUseCase,
    ClearCartUseCase,
    GetCartUseCase,
    GetWishlistUseCase,
    PutCartItemUseCase,
    RemoveFromWishlistUseCase,
)
from app.application.usecases.orders import (
    CreateOrderUseCase,
    GetOrderUseCase,
    ListMyOrdersUseCase,
    OrderLineInput,
    UpdateOrderStatusUseCase,
)
from app.application.usecases.payments import CreatePaymentIntentUseCase, to_cents
from app.application.usecases.results import UseCaseErrorCode
from app.crosscutting.exceptions import MalformedKeyError
from app.domain.entities import EntityKind, OrderStatus, Product
from app.domain.results import DOCUMENT, RELATIONAL, StoreOutcome
from app.identity.session import Authenticated, FirebaseOnly, Guest
from app.identity.users import UserRole
from app.infrastructure.services.fakes import FakePaymentGateway

pytestmark = pytest.mark.unit

ADDRESS = {"street": "Av. Siempre Viva 742", "city": "Springfield"}


@pytest_asyncio.fixture
async def shirt(accessor) -> Product:
    category = await CreateCategoryUseCase(accessor).execute(CategoryInput(name="Shirts"))
    result = await CreateProductUseCase(accessor).execute(
        ProductInput(
            name="Linen shirt",
            description="Summer",
            price=Decimal("40"),
            discount_price=Decimal("30"),
            category_id=category.value.id,
            images=["/shirt.png"],
        )
    )
    return result.value


class TestCatalog:
    @pytest.mark.asyncio
    async def test_product_ids_are_minted_after_both_stores(self, accessor, relational, shirt):
        await relational.save_entity(
            EntityKind.PRODUCT,
            Product(id=50, name="legacy", description="", price=Decimal("1"), category_id=1),
        )

        second = await CreateProductUseCase(accessor).execute(
            ProductInput(name="Hat", description="", price=Decimal("9"), category_id=shirt.category_id)
        )

        assert shirt.id == 1
        assert second.value.id == 51

    @pytest.mark.asyncio
    async def test_unknown_category_is_rejected(self, accessor):
        result = await CreateProductUseCase(accessor).execute(
            ProductInput(name="Hat", description="", price=Decimal("9"), category_id=77)
        )

        assert result.error.code == UseCaseErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_non_positive_price_is_rejected(self, accessor, shirt):
        result = await UpdateProductUseCase(accessor).execute(shirt.id, {"price": Decimal("0")})

        assert result.error.code == UseCaseErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_update_and_delete(self, accessor, shirt):
        updated = await UpdateProductUseCase(accessor).execute(str(shirt.id), {"stock": 12})
        deleted = await DeleteProductUseCase(accessor).execute(shirt.id)
        again = await DeleteProductUseCase(accessor).execute(shirt.id)

        assert updated.value.stock == 12
        assert deleted.ok
        assert again.error.code == UseCaseErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_reviews(self, accessor, shirt, make_user):
        user = await make_user()

        created = await CreateReviewUseCase(accessor).execute(user, shirt.id, 5, " Great ")
        bad = await CreateReviewUseCase(accessor).execute(user, shirt.id, 6)
        listed = await ListProductReviewsUseCase(accessor).execute(str(shirt.id))

        assert created.value.comment == "Great"
        assert bad.error.code == UseCaseErrorCode.VALIDATION_ERROR
        assert [r.id for r in listed] == [created.value.id]


class TestOrders:
    @pytest.mark.asyncio
    async def test_guest_checkout_has_no_owner(self, accessor, shirt):
        result = await CreateOrderUseCase(accessor).execute(
            Guest(), [OrderLineInput(product_id=shirt.id, quantity=2)], ADDRESS
        )

        order = result.value
        assert order.user_id is None
        assert order.is_guest
        assert order.total_amount == Decimal("60")
        assert order.items[0].price == Decimal("30")
        assert order.items[0].image == "/shirt.png"

    @pytest.mark.asyncio
    async def test_firebase_only_checkout_is_guest_order(self, accessor, shirt):
        result = await CreateOrderUseCase(accessor).execute(
            FirebaseOnly(uid="fb-x"), [OrderLineInput(shirt.id, 1)], ADDRESS
        )

        assert result.value.user_id is None

    @pytest.mark.asyncio
    async def test_authenticated_order_is_owned(self, accessor, shirt, make_user):
        user = await make_user()
        context = Authenticated(user)

        created = await CreateOrderUseCase(accessor).execute(
            context, [OrderLineInput(shirt.id, 1)], ADDRESS, payment_intent="pi_1"
        )
        mine = await ListMyOrdersUseCase(accessor).execute(context)

        assert created.value.user_id == user.id
        assert [o.id for o in mine] == [created.value.id]
        assert await ListMyOrdersUseCase(accessor).execute(Guest()) == []

    @pytest.mark.asyncio
    async def test_order_validation(self, accessor, shirt):
        use_case = CreateOrderUseCase(accessor)

        empty = await use_case.execute(Guest(), [], ADDRESS)
        no_address = await use_case.execute(Guest(), [OrderLineInput(shirt.id, 1)], {})
        zero = await use_case.execute(Guest(), [OrderLineInput(shirt.id, 0)], ADDRESS)
        missing = await use_case.execute(Guest(), [OrderLineInput(999, 1)], ADDRESS)

        for result in (empty, no_address, zero, missing):
            assert result.error.code == UseCaseErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_only_owner_or_admin_reads_order(self, accessor, shirt, make_user):
        owner = await make_user("owner@example.com")
        stranger = await make_user("stranger@example.com")
        created = await CreateOrderUseCase(accessor).execute(
            Authenticated(owner), [OrderLineInput(shirt.id, 1)], ADDRESS
        )
        use_case = GetOrderUseCase(accessor)

        assert (await use_case.execute(created.value.id, owner)).ok
        denied = await use_case.execute(created.value.id, stranger)
        assert denied.error.code == UseCaseErrorCode.FORBIDDEN
        assert (await use_case.execute(created.value.id, stranger, is_admin=True)).ok

    @pytest.mark.asyncio
    async def test_update_status(self, accessor, shirt):
        created = await CreateOrderUseCase(accessor).execute(
            Guest(), [OrderLineInput(shirt.id, 1)], ADDRESS
        )
        use_case = UpdateOrderStatusUseCase(accessor)

        shipped = await use_case.execute(
            created.value.id, status="shipped", tracking_number=" TRK-1 "
        )
        invalid = await use_case.execute(created.value.id, status="teleported")

        assert shipped.value.status == OrderStatus.SHIPPED
        assert shipped.value.tracking_number == "TRK-1"
        assert invalid.error.code == UseCaseErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_malformed_order_id(self, accessor, make_user):
        with pytest.raises(MalformedKeyError):
            await GetOrderUseCase(accessor).execute("abc", await make_user())


class TestLists:
    @pytest.mark.asyncio
    async def test_guest_lists_are_empty_and_not_persisted(self, accessor, relational, shirt):
        added = await AddToWishlistUseCase(accessor).execute(Guest(), shirt.id)
        cart = await PutCartItemUseCase(accessor).execute(Guest(), shirt.id, 2)

        assert added.value.product_ids == []
        assert cart.value.items == {}
        assert (await GetWishlistUseCase(accessor).execute(Guest())).product_ids == []
        assert await relational.max_entity_id(EntityKind.WISHLIST) is None

    @pytest.mark.asyncio
    async def test_wishlist(self, accessor, shirt, make_user):
        context = Authenticated(await make_user())

        await AddToWishlistUseCase(accessor).execute(context, shirt.id)
        await AddToWishlistUseCase(accessor).execute(context, str(shirt.id))
        listed = await GetWishlistUseCase(accessor).execute(context)
        removed = await RemoveFromWishlistUseCase(accessor).execute(context, shirt.id)

        assert listed.product_ids == [shirt.id]
        assert removed.product_ids == []

    @pytest.mark.asyncio
    async def test_wishlist_survives_a_missed_mirror(self, accessor, relational, document, make_user):
        user = await make_user()
        context = Authenticated(user)
        for pid in (1, 2, 3):
            await document.save_entity(
                EntityKind.PRODUCT,
                Product(id=pid, name=f"P{pid}", description="", price=Decimal("5"), category_id=1),
            )
        add = AddToWishlistUseCase(accessor)

        await add.execute(context, 1)
        document.faults.fail("save_entity")
        await add.execute(context, 2)
        document.faults.heal()
        result = await add.execute(context, 3)

        assert result.value.product_ids == [1, 2, 3]
        assert (await relational.get_entity(EntityKind.WISHLIST, user.id)).product_ids == [1, 2, 3]
        assert (await document.get_entity(EntityKind.WISHLIST, user.id)).product_ids == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_wishlist_rejects_malformed_product(self, accessor, make_user):
        context = Authenticated(await make_user())

        with pytest.raises(MalformedKeyError):
            await AddToWishlistUseCase(accessor).execute(context, "shirt")

    @pytest.mark.asyncio
    async def test_cart_uses_effective_price(self, accessor, shirt, make_user):
        context = Authenticated(await make_user())

        put = await PutCartItemUseCase(accessor).execute(context, shirt.id, 3)
        fetched = await GetCartUseCase(accessor).execute(context)
        cleared = await ClearCartUseCase(accessor).execute(context)

        assert put.value.total == Decimal("90")
        assert fetched.items[shirt.id].quantity == 3
        assert cleared.items == {}

    @pytest.mark.asyncio
    async def test_negative_quantity(self, accessor, shirt, make_user):
        context = Authenticated(await make_user())

        result = await PutCartItemUseCase(accessor).execute(context, shirt.id, -1)

        assert result.error.code == UseCaseErrorCode.VALIDATION_ERROR


class TestHomeContent:
    @pytest.mark.asyncio
    async def test_only_visible_banners_are_listed(self, relational):
        now = datetime(2026, 3, 1, tzinfo=timezone.utc)
        create = CreateBannerUseCase(relational)
        live = await create.execute({"title": "Live", "image": "/a.png"})
        await create.execute({"title": "Off", "image": "/b.png", "active": False})
        await create.execute(
            {"title": "Later", "image": "/c.png", "start_date": now + timedelta(days=3)}
        )

        visible = await ListBannersUseCase(relational, clock=lambda: now).execute()
        everything = await ListBannersUseCase(relational).execute(visible_only=False)

        assert [b.id for b in visible] == [live.value.id]
        assert len(everything) == 3

    @pytest.mark.asyncio
    async def test_banner_window_must_be_ordered(self, relational):
        now = datetime(2026, 3, 1, tzinfo=timezone.utc)

        result = await CreateBannerUseCase(relational).execute(
            {"title": "x", "image": "y", "start_date": now, "end_date": now - timedelta(days=1)}
        )

        assert result.error.code == UseCaseErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_testimonials(self, relational):
        create = CreateTestimonialUseCase(relational)
        await create.execute({"name": "Ana", "comment": "Great", "featured": True})
        await create.execute({"name": "Leo", "comment": "Ok", "rating": 4})
        bad = await create.execute({"name": "Bo", "comment": "Meh", "rating": 9})

        featured = await ListTestimonialsUseCase(relational).execute(featured_only=True)

        assert [t.name for t in featured] == ["Ana"]
        assert featured[0].rating == 5
        assert bad.error.code == UseCaseErrorCode.VALIDATION_ERROR


class TestPayments:
    def test_to_cents_rounds_half_up(self):
        assert to_cents(Decimal("10.005")) == 1001
        assert to_cents(Decimal("19.99")) == 1999

    @pytest.mark.asyncio
    async def test_intent_carries_owner_metadata(self, make_user):
        gateway = FakePaymentGateway()
        user = await make_user()

        result = await CreatePaymentIntentUseCase(gateway).execute(Authenticated(user), "25.50")

        assert result.value.amount_cents == 2550
        assert result.value.currency == "usd"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-5", "abc", "NaN"])
    async def test_invalid_amounts(self, amount):
        result = await CreatePaymentIntentUseCase(FakePaymentGateway()).execute(Guest(), amount)

        assert result.error.code == UseCaseErrorCode.VALIDATION_ERROR


class TestAdmin:
    @pytest.mark.asyncio
    async def test_promote_by_email(self, resolver, synchronizer, relational, make_user):
        user = await make_user("promote@example.com")

        result = await ChangeUserRoleUseCase(resolver, synchronizer).execute(
            RoleChangeTarget(email="promote@example.com"), "admin"
        )

        assert result.ok
        assert (await relational.get_user_by_id(user.id)).role == UserRole.ADMIN

    @pytest.mark.asyncio
    async def test_promote_document_only_user_without_email(
        self, resolver, synchronizer, relational, document
    ):
        await document.merge_profile("fb-doc-only", {"username": "ghost"})

        result = await ChangeUserRoleUseCase(resolver, synchronizer).execute(
            RoleChangeTarget(external_uid="fb-doc-only"), "admin"
        )

        assert result.ok
        assert result.value.per_store[RELATIONAL] == StoreOutcome.FAILED
        assert result.value.per_store[DOCUMENT] == StoreOutcome.SUCCEEDED
        assert (await document.get_profile("fb-doc-only")).role == UserRole.ADMIN

    @pytest.mark.asyncio
    async def test_role_change_validation(self, resolver, synchronizer):
        use_case = ChangeUserRoleUseCase(resolver, synchronizer)

        bad_role = await use_case.execute(RoleChangeTarget(user_id=1), "owner")
        no_target = await use_case.execute(RoleChangeTarget(), "admin")
        missing = await use_case.execute(RoleChangeTarget(user_id=99), "admin")

        assert bad_role.error.code == UseCaseErrorCode.VALIDATION_ERROR
        assert no_target.error.code == UseCaseErrorCode.VALIDATION_ERROR
        assert missing.error.code == UseCaseErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_dashboard(self, accessor, relational, shirt, make_user):
        user = await make_user()
        orders = CreateOrderUseCase(accessor)
        await orders.execute(Authenticated(user), [OrderLineInput(shirt.id, 2)], ADDRESS)
        cancelled = await orders.execute(Guest(), [OrderLineInput(shirt.id, 5)], ADDRESS)
        await UpdateOrderStatusUseCase(accessor).execute(cancelled.value.id, status="cancelled")

        stats = await AdminDashboardUseCase(accessor, relational).execute()

        assert stats.total_orders == 2
        assert stats.total_revenue == Decimal("60")
        assert stats.total_users == 1
        assert stats.total_products == 1
        assert stats.top_products[0].product_id == shirt.id
        assert stats.top_products[0].sold == 2
