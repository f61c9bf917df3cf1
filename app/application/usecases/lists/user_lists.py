"""
===============================================================================
USE CASES: Wishlist y Carrito (listas por usuario)
===============================================================================

Business Goal:
    Mantener wishlist y carrito de usuarios con registro canónico.

Why (Context / Intención):
    - Para invitados (y FirebaseOnly) las operaciones NO fallan: devuelven
      vacío / no-op. Guest checkout es un camino de primera clase.
    - Wishlist: relacional de registro. Carrito: documental de registro con
      fallback relacional. Ambos indexados por el id numérico del usuario.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Classes:
    GetWishlistUseCase / AddToWishlistUseCase / RemoveFromWishlistUseCase
    GetCartUseCase / PutCartItemUseCase / RemoveCartItemUseCase / ClearCartUseCase

Collaborators:
    - DualStoreAccessor
    - identity.session (can_persist_lists, owner_id)
===============================================================================
"""

from __future__ import annotations

from ....domain.entities import Cart, CartItem, EntityKind, Wishlist
from ....domain.ids import parse_numeric_id
from ....domain.results import Found, NotFound
from ....identity.session import SessionContext, can_persist_lists, owner_id
from ...dual_store import DualStoreAccessor
from ..results import Result, not_found, validation_failed

GUEST_LIST_OWNER = 0


def empty_wishlist(user_id: int = GUEST_LIST_OWNER) -> Wishlist:
    return Wishlist(user_id=user_id)


def empty_cart(user_id: int = GUEST_LIST_OWNER) -> Cart:
    return Cart(user_id=user_id)


class _UserListUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def _load_wishlist(self, user_id: int, *, for_update: bool = False) -> Wishlist:
        read = self._accessor.read_for_update if for_update else self._accessor.read
        lookup = await read(EntityKind.WISHLIST, user_id)
        return lookup.value if isinstance(lookup, Found) else empty_wishlist(user_id)

    async def _load_cart(self, user_id: int, *, for_update: bool = False) -> Cart:
        read = self._accessor.read_for_update if for_update else self._accessor.read
        lookup = await read(EntityKind.CART, user_id)
        return lookup.value if isinstance(lookup, Found) else empty_cart(user_id)


# ---------------------------------------------------------------------------
# Wishlist
# ---------------------------------------------------------------------------


class GetWishlistUseCase(_UserListUseCase):
    async def execute(self, context: SessionContext) -> Wishlist:
        if not can_persist_lists(context):
            return empty_wishlist()
        return await self._load_wishlist(owner_id(context))


class AddToWishlistUseCase(_UserListUseCase):
    async def execute(self, context: SessionContext, product_id: object) -> Result[Wishlist]:
        pid = parse_numeric_id(product_id, entity=EntityKind.PRODUCT.value)
        if not can_persist_lists(context):
            return Result(value=empty_wishlist())
        product = await self._accessor.read(EntityKind.PRODUCT, pid)
        if isinstance(product, NotFound):
            return not_found("Producto", pid)
        current = await self._load_wishlist(owner_id(context), for_update=True)
        if pid in current.product_ids:
            return Result(value=current)
        return Result(
            value=await self._accessor.save(EntityKind.WISHLIST, current.with_product(pid))
        )


class RemoveFromWishlistUseCase(_UserListUseCase):
    async def execute(self, context: SessionContext, product_id: object) -> Wishlist:
        pid = parse_numeric_id(product_id, entity=EntityKind.PRODUCT.value)
        if not can_persist_lists(context):
            return empty_wishlist()
        current = await self._load_wishlist(owner_id(context), for_update=True)
        if pid not in current.product_ids:
            return current
        return await self._accessor.save(EntityKind.WISHLIST, current.without_product(pid))


# ---------------------------------------------------------------------------
# Carrito
# ---------------------------------------------------------------------------


class GetCartUseCase(_UserListUseCase):
    async def execute(self, context: SessionContext) -> Cart:
        if not can_persist_lists(context):
            return empty_cart()
        return await self._load_cart(owner_id(context))


class PutCartItemUseCase(_UserListUseCase):
    """Fija la cantidad de un producto en el carrito (0 lo quita)."""

    async def execute(
        self, context: SessionContext, product_id: object, quantity: int
    ) -> Result[Cart]:
        pid = parse_numeric_id(product_id, entity=EntityKind.PRODUCT.value)
        if quantity < 0:
            return validation_failed("La cantidad no puede ser negativa.")
        if not can_persist_lists(context):
            return Result(value=empty_cart())
        product = await self._accessor.read(EntityKind.PRODUCT, pid)
        if isinstance(product, NotFound):
            return not_found("Producto", pid)
        p = product.value
        item = CartItem(
            product_id=p.id,
            name=p.name,
            price=p.effective_price,
            quantity=quantity,
            image=p.images[0] if p.images else None,
        )
        current = await self._load_cart(owner_id(context), for_update=True)
        return Result(value=await self._accessor.save(EntityKind.CART, current.with_item(item)))


class RemoveCartItemUseCase(_UserListUseCase):
    async def execute(self, context: SessionContext, product_id: object) -> Cart:
        pid = parse_numeric_id(product_id, entity=EntityKind.PRODUCT.value)
        if not can_persist_lists(context):
            return empty_cart()
        current = await self._load_cart(owner_id(context), for_update=True)
        if pid not in current.items:
            return current
        return await self._accessor.save(EntityKind.CART, current.without_item(pid))


class ClearCartUseCase(_UserListUseCase):
    async def execute(self, context: SessionContext) -> Cart:
        if not can_persist_lists(context):
            return empty_cart()
        user_id = owner_id(context)
        return await self._accessor.save(EntityKind.CART, Cart(user_id=user_id))
