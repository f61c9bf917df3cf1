"""
===============================================================================
USE CASES: Reviews (listar por producto / crear)
===============================================================================

Business Goal:
    Reseñas de usuarios autenticados sobre productos existentes.
    Relacional de registro; espejo documental best-effort.

Collaborators:
    - DualStoreAccessor
===============================================================================
"""

from __future__ import annotations

from ....domain.entities import EntityKind, Review, ReviewDraft
from ....domain.ids import parse_numeric_id
from ....domain.results import NotFound
from ....identity.users import User
from ...dual_store import DualStoreAccessor
from ..results import Result, not_found, validation_failed

MIN_RATING = 1
MAX_RATING = 5


class ListProductReviewsUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(self, product_id: object) -> list[Review]:
        pid = parse_numeric_id(product_id, entity=EntityKind.PRODUCT.value)
        return await self._accessor.list(EntityKind.REVIEW, where={"product_id": pid})


class CreateReviewUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(
        self,
        user: User,
        product_id: object,
        rating: int,
        comment: str | None = None,
        images: list[str] | None = None,
    ) -> Result[Review]:
        if not MIN_RATING <= rating <= MAX_RATING:
            return validation_failed(
                f"El rating debe estar entre {MIN_RATING} y {MAX_RATING}."
            )
        product = await self._accessor.read(EntityKind.PRODUCT, product_id)
        if isinstance(product, NotFound):
            return not_found("Producto", product_id)

        review = await self._accessor.insert(
            EntityKind.REVIEW,
            ReviewDraft(
                product_id=product.value.id,
                user_id=user.id,
                rating=rating,
                comment=(comment or "").strip() or None,
                images=list(images or []),
            ),
        )
        return Result(value=review)
