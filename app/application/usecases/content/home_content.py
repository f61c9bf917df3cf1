"""
===============================================================================
USE CASES: Home content (hero banners / testimonials)
===============================================================================

Business Goal:
    Contenido editorial de la home. Vive solo en el store relacional.

Reglas:
    - Banner visible = active y now dentro de [start_date, end_date]
      (cada extremo solo si está definido).
    - Testimonios: rating 1..5; el listado público puede pedir solo featured.

Collaborators:
    - RelationalStore (list/get/insert/update/delete banners, testimonials)
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Mapping

from ....domain.entities import HeroBanner, Testimonial
from ....domain.ids import parse_numeric_id
from ....domain.repositories import RelationalStore
from ..results import Result, not_found, validation_failed

BANNER_FIELDS: frozenset[str] = frozenset(
    {
        "title",
        "subtitle",
        "image",
        "button_text",
        "button_link",
        "active",
        "start_date",
        "end_date",
    }
)


def _check_window(start: datetime | None, end: datetime | None) -> str | None:
    if start is not None and end is not None and end < start:
        return "end_date no puede ser anterior a start_date."
    return None


class ListBannersUseCase:
    def __init__(
        self,
        relational: RelationalStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._relational = relational
        self._clock = clock

    async def execute(self, *, visible_only: bool = True) -> list[HeroBanner]:
        banners = await self._relational.list_banners()
        if not visible_only:
            return banners
        now = self._clock() if self._clock else None
        return [b for b in banners if b.is_visible(now)]


class CreateBannerUseCase:
    def __init__(self, relational: RelationalStore) -> None:
        self._relational = relational

    async def execute(self, data: Mapping[str, Any]) -> Result[HeroBanner]:
        fields = {k: v for k, v in data.items() if k in BANNER_FIELDS}
        if not (fields.get("title") or "").strip() or not (fields.get("image") or "").strip():
            return validation_failed("title e image son obligatorios.")
        problem = _check_window(fields.get("start_date"), fields.get("end_date"))
        if problem:
            return validation_failed(problem)
        return Result(value=await self._relational.insert_banner(fields))


class UpdateBannerUseCase:
    def __init__(self, relational: RelationalStore) -> None:
        self._relational = relational

    async def execute(
        self, banner_id: object, patch: Mapping[str, Any]
    ) -> Result[HeroBanner]:
        bid = parse_numeric_id(banner_id, entity="hero_banner")
        current = await self._relational.get_banner(bid)
        if current is None:
            return not_found("Banner", bid)
        changes = {k: v for k, v in patch.items() if k in BANNER_FIELDS}
        problem = _check_window(
            changes.get("start_date", current.start_date),
            changes.get("end_date", current.end_date),
        )
        if problem:
            return validation_failed(problem)
        updated = await self._relational.update_banner(bid, changes)
        if updated is None:
            return not_found("Banner", bid)
        return Result(value=updated)


class DeleteBannerUseCase:
    def __init__(self, relational: RelationalStore) -> None:
        self._relational = relational

    async def execute(self, banner_id: object) -> Result[bool]:
        bid = parse_numeric_id(banner_id, entity="hero_banner")
        if not await self._relational.delete_banner(bid):
            return not_found("Banner", bid)
        return Result(value=True)


class ListTestimonialsUseCase:
    def __init__(self, relational: RelationalStore) -> None:
        self._relational = relational

    async def execute(self, *, featured_only: bool = False) -> list[Testimonial]:
        items = await self._relational.list_testimonials()
        if featured_only:
            items = [t for t in items if t.featured]
        return items


class CreateTestimonialUseCase:
    def __init__(self, relational: RelationalStore) -> None:
        self._relational = relational

    async def execute(self, data: Mapping[str, Any]) -> Result[Testimonial]:
        name = (data.get("name") or "").strip()
        comment = (data.get("comment") or "").strip()
        rating = data.get("rating", 5)
        if not name or not comment:
            return validation_failed("name y comment son obligatorios.")
        if not isinstance(rating, int) or not 1 <= rating <= 5:
            return validation_failed("El rating debe estar entre 1 y 5.")
        fields = {
            "name": name,
            "comment": comment,
            "rating": rating,
            "image": data.get("image"),
            "featured": bool(data.get("featured", False)),
        }
        return Result(value=await self._relational.insert_testimonial(fields))
