"""Wishlist / cart use cases (no-op para invitados)."""

from .user_lists import (
    AddToWishlistUseCase,
    ClearCartUseCase,
    GetCartUseCase,
    GetWishlistUseCase,
    PutCartItemUseCase,
    RemoveCartItemUseCase,
    RemoveFromWishlistUseCase,
    empty_cart,
    empty_wishlist,
)

__all__ = [
    "AddToWishlistUseCase",
    "ClearCartUseCase",
    "GetCartUseCase",
    "GetWishlistUseCase",
    "PutCartItemUseCase",
    "RemoveCartItemUseCase",
    "RemoveFromWishlistUseCase",
    "empty_cart",
    "empty_wishlist",
]
