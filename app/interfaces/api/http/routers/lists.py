"""
===============================================================================
TARJETA CRC — routers/lists.py (Wishlist y carrito)
===============================================================================

Responsabilidades:
  - Exponer wishlist y carrito del dueño de la sesión.
  - Invitados: respuestas vacías, nada se persiste.
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.application.usecases.lists import (
    AddToWishlistUseCase,
    ClearCartUseCase,
    GetCartUseCase,
    GetWishlistUseCase,
    PutCartItemUseCase,
    RemoveCartItemUseCase,
    RemoveFromWishlistUseCase,
)
from app.container import (
    get_add_to_wishlist_use_case,
    get_clear_cart_use_case,
    get_get_cart_use_case,
    get_get_wishlist_use_case,
    get_put_cart_item_use_case,
    get_remove_cart_item_use_case,
    get_remove_from_wishlist_use_case,
)
from app.identity.session import SessionContext

from ..dependencies import get_session_context
from ..error_mapping import unwrap
from ..schemas.orders import CartItemReq, CartRes, WishlistItemReq, WishlistRes

router = APIRouter()


# -----------------------------------------------------------------------------
# Wishlist
# -----------------------------------------------------------------------------
@router.get("/wishlist", response_model=WishlistRes, tags=["wishlist"])
async def get_wishlist(
    context: SessionContext = Depends(get_session_context),
    use_case: GetWishlistUseCase = Depends(get_get_wishlist_use_case),
):
    return WishlistRes.model_validate(await use_case.execute(context))


@router.post("/wishlist", response_model=WishlistRes, tags=["wishlist"])
async def add_to_wishlist(
    req: WishlistItemReq,
    context: SessionContext = Depends(get_session_context),
    use_case: AddToWishlistUseCase = Depends(get_add_to_wishlist_use_case),
):
    result = await use_case.execute(context, req.product_id)
    return WishlistRes.model_validate(unwrap(result, req.product_id))


@router.delete("/wishlist/{product_id}", response_model=WishlistRes, tags=["wishlist"])
async def remove_from_wishlist(
    product_id: str,
    context: SessionContext = Depends(get_session_context),
    use_case: RemoveFromWishlistUseCase = Depends(get_remove_from_wishlist_use_case),
):
    return WishlistRes.model_validate(await use_case.execute(context, product_id))


# -----------------------------------------------------------------------------
# Carrito
# -----------------------------------------------------------------------------
@router.get("/cart", response_model=CartRes, tags=["cart"])
async def get_cart(
    context: SessionContext = Depends(get_session_context),
    use_case: GetCartUseCase = Depends(get_get_cart_use_case),
):
    return CartRes.of(await use_case.execute(context))


@router.put("/cart/items", response_model=CartRes, tags=["cart"])
async def put_cart_item(
    req: CartItemReq,
    context: SessionContext = Depends(get_session_context),
    use_case: PutCartItemUseCase = Depends(get_put_cart_item_use_case),
):
    result = await use_case.execute(context, req.product_id, req.quantity)
    return CartRes.of(unwrap(result, req.product_id))


@router.delete("/cart/items/{product_id}", response_model=CartRes, tags=["cart"])
async def remove_cart_item(
    product_id: str,
    context: SessionContext = Depends(get_session_context),
    use_case: RemoveCartItemUseCase = Depends(get_remove_cart_item_use_case),
):
    return CartRes.of(await use_case.execute(context, product_id))


@router.delete("/cart", response_model=CartRes, tags=["cart"])
async def clear_cart(
    context: SessionContext = Depends(get_session_context),
    use_case: ClearCartUseCase = Depends(get_clear_cart_use_case),
):
    return CartRes.of(await use_case.execute(context))
