"""
===============================================================================
USE CASES: Categories (list / featured / get / create / update / delete)
===============================================================================

Business Goal:
    Administrar las categorías del catálogo. El store documental es de
    registro para contenido de catálogo; el DualStoreAccessor resuelve
    fallback, espejo y minteo de ids.

Collaborators:
    - DualStoreAccessor
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ....domain.entities import Category, EntityKind
from ....domain.results import NotFound
from ...dual_store import DualStoreAccessor
from ..results import Result, not_found, validation_failed

RESOURCE = "Categoría"


@dataclass(frozen=True)
class CategoryInput:
    name: str
    image: str | None = None
    description: str | None = None
    featured: bool = False


class ListCategoriesUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(self, *, featured: bool | None = None) -> list[Category]:
        where = {"featured": featured} if featured is not None else None
        return await self._accessor.list(EntityKind.CATEGORY, where=where)


class GetCategoryUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(self, category_id: object) -> Result[Category]:
        lookup = await self._accessor.read(EntityKind.CATEGORY, category_id)
        if isinstance(lookup, NotFound):
            return not_found(RESOURCE, category_id)
        return Result(value=lookup.value)


class CreateCategoryUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(self, data: CategoryInput) -> Result[Category]:
        name = (data.name or "").strip()
        if not name:
            return validation_failed("El nombre de la categoría es obligatorio.")
        category = await self._accessor.create(
            EntityKind.CATEGORY,
            lambda new_id: Category(
                id=new_id,
                name=name,
                image=data.image,
                description=data.description,
                featured=data.featured,
            ),
        )
        return Result(value=category)


class UpdateCategoryUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(
        self, category_id: object, patch: Mapping[str, Any]
    ) -> Result[Category]:
        if "name" in patch and not (patch["name"] or "").strip():
            return validation_failed("El nombre de la categoría no puede estar vacío.")
        lookup = await self._accessor.write(EntityKind.CATEGORY, category_id, patch)
        if isinstance(lookup, NotFound):
            return not_found(RESOURCE, category_id)
        return Result(value=lookup.value)


class DeleteCategoryUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(self, category_id: object) -> Result[bool]:
        if not await self._accessor.delete(EntityKind.CATEGORY, category_id):
            return not_found(RESOURCE, category_id)
        return Result(value=True)
