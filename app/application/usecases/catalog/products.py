"""
===============================================================================
USE CASES: Products (list con filtros / get / create / update / delete)
===============================================================================

Business Goal:
    Exponer el catálogo de productos con filtros aplicados en proceso
    (categoría, búsqueda, featured, trending, rango de precio, oferta) y su
    administración.

Why (Context / Intención):
    - Los filtros se aplican DESPUÉS de leer, sobre lo que haya respondido
      cualquiera de los stores: mismo resultado sin importar el origen.
    - Un producto siempre referencia una categoría existente.

Collaborators:
    - DualStoreAccessor
    - domain.value_objects.ProductFilter
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping

from ....domain.entities import EntityKind, Product
from ....domain.results import NotFound
from ....domain.value_objects import ProductFilter
from ...dual_store import DualStoreAccessor
from ..results import Result, not_found, validation_failed

RESOURCE = "Producto"


@dataclass(frozen=True)
class ProductInput:
    name: str
    description: str
    price: Decimal
    category_id: int
    discount_price: Decimal | None = None
    images: list[str] = field(default_factory=list)
    sizes: list[str] = field(default_factory=list)
    colors: list[str] = field(default_factory=list)
    stock: int = 0
    featured: bool = False
    trending: bool = False


def _validate_prices(price: Decimal | None, discount: Decimal | None) -> str | None:
    if price is not None and price <= 0:
        return "El precio debe ser mayor a cero."
    if discount is not None and discount < 0:
        return "El precio de oferta no puede ser negativo."
    return None


class ListProductsUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(self, product_filter: ProductFilter | None = None) -> list[Product]:
        return await self._accessor.list(
            EntityKind.PRODUCT, product_filter=product_filter or ProductFilter()
        )


class GetProductUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(self, product_id: object) -> Result[Product]:
        lookup = await self._accessor.read(EntityKind.PRODUCT, product_id)
        if isinstance(lookup, NotFound):
            return not_found(RESOURCE, product_id)
        return Result(value=lookup.value)


class CreateProductUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(self, data: ProductInput) -> Result[Product]:
        name = (data.name or "").strip()
        if not name:
            return validation_failed("El nombre del producto es obligatorio.")
        problem = _validate_prices(data.price, data.discount_price)
        if problem:
            return validation_failed(problem)
        if data.stock < 0:
            return validation_failed("El stock no puede ser negativo.")
        category = await self._accessor.read(EntityKind.CATEGORY, data.category_id)
        if isinstance(category, NotFound):
            return validation_failed(f"La categoría {data.category_id} no existe.")

        product = await self._accessor.create(
            EntityKind.PRODUCT,
            lambda new_id: Product(
                id=new_id,
                name=name,
                description=data.description,
                price=data.price,
                category_id=data.category_id,
                discount_price=data.discount_price,
                images=list(data.images),
                sizes=list(data.sizes),
                colors=list(data.colors),
                stock=data.stock,
                featured=data.featured,
                trending=data.trending,
            ),
        )
        return Result(value=product)


class UpdateProductUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(
        self, product_id: object, patch: Mapping[str, Any]
    ) -> Result[Product]:
        problem = _validate_prices(patch.get("price"), patch.get("discount_price"))
        if problem:
            return validation_failed(problem)
        if "category_id" in patch:
            category = await self._accessor.read(EntityKind.CATEGORY, patch["category_id"])
            if isinstance(category, NotFound):
                return validation_failed(f"La categoría {patch['category_id']} no existe.")
        lookup = await self._accessor.write(EntityKind.PRODUCT, product_id, patch)
        if isinstance(lookup, NotFound):
            return not_found(RESOURCE, product_id)
        return Result(value=lookup.value)


class DeleteProductUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(self, product_id: object) -> Result[bool]:
        if not await self._accessor.delete(EntityKind.PRODUCT, product_id):
            return not_found(RESOURCE, product_id)
        return Result(value=True)
