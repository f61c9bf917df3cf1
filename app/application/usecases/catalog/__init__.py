"""Catalog use cases: categorías, productos y reseñas."""

from .categories import (
    CategoryInput,
    CreateCategoryUseCase,
    DeleteCategoryUseCase,
    GetCategoryUseCase,
    ListCategoriesUseCase,
    UpdateCategoryUseCase,
)
from .products import (
    CreateProductUseCase,
    DeleteProductUseCase,
    GetProductUseCase,
    ListProductsUseCase,
    ProductInput,
    UpdateProductUseCase,
)
from .reviews import CreateReviewUseCase, ListProductReviewsUseCase

__all__ = [
    "CategoryInput",
    "CreateCategoryUseCase",
    "CreateProductUseCase",
    "CreateReviewUseCase",
    "DeleteCategoryUseCase",
    "DeleteProductUseCase",
    "GetCategoryUseCase",
    "GetProductUseCase",
    "ListCategoriesUseCase",
    "ListProductReviewsUseCase",
    "ListProductsUseCase",
    "ProductInput",
    "UpdateCategoryUseCase",
    "UpdateProductUseCase",
]
