"""
===============================================================================
TARJETA CRC — routers/content.py (Contenido de home)
===============================================================================

Responsabilidades:
  - Hero banners: listado público (sólo visibles), ABM para admin.
  - Testimonios: listado público, alta para admin.
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.application.usecases.content import (
    CreateBannerUseCase,
    CreateTestimonialUseCase,
    DeleteBannerUseCase,
    ListBannersUseCase,
    ListTestimonialsUseCase,
    UpdateBannerUseCase,
)
from app.container import (
    get_create_banner_use_case,
    get_create_testimonial_use_case,
    get_delete_banner_use_case,
    get_list_banners_use_case,
    get_list_testimonials_use_case,
    get_update_banner_use_case,
)
from app.identity.users import User

from ..dependencies import require_admin
from ..error_mapping import unwrap
from ..schemas.content import (
    BannerPatchReq,
    BannerReq,
    BannerRes,
    TestimonialReq,
    TestimonialRes,
)

router = APIRouter(prefix="/content", tags=["content"])


@router.get("/banners", response_model=list[BannerRes])
async def list_banners(
    use_case: ListBannersUseCase = Depends(get_list_banners_use_case),
):
    return [BannerRes.model_validate(b) for b in await use_case.execute()]


@router.get("/banners/all", response_model=list[BannerRes])
async def list_all_banners(
    _admin: User = Depends(require_admin),
    use_case: ListBannersUseCase = Depends(get_list_banners_use_case),
):
    banners = await use_case.execute(visible_only=False)
    return [BannerRes.model_validate(b) for b in banners]


@router.post("/banners", response_model=BannerRes, status_code=201)
async def create_banner(
    req: BannerReq,
    _admin: User = Depends(require_admin),
    use_case: CreateBannerUseCase = Depends(get_create_banner_use_case),
):
    return BannerRes.model_validate(unwrap(await use_case.execute(req.model_dump())))


@router.patch("/banners/{banner_id}", response_model=BannerRes)
async def update_banner(
    banner_id: str,
    req: BannerPatchReq,
    _admin: User = Depends(require_admin),
    use_case: UpdateBannerUseCase = Depends(get_update_banner_use_case),
):
    result = await use_case.execute(banner_id, req.model_dump(exclude_unset=True))
    return BannerRes.model_validate(unwrap(result, banner_id))


@router.delete("/banners/{banner_id}", status_code=204)
async def delete_banner(
    banner_id: str,
    _admin: User = Depends(require_admin),
    use_case: DeleteBannerUseCase = Depends(get_delete_banner_use_case),
):
    unwrap(await use_case.execute(banner_id), banner_id)


@router.get("/testimonials", response_model=list[TestimonialRes])
async def list_testimonials(
    featured: bool = Query(False),
    use_case: ListTestimonialsUseCase = Depends(get_list_testimonials_use_case),
):
    items = await use_case.execute(featured_only=featured)
    return [TestimonialRes.model_validate(t) for t in items]


@router.post("/testimonials", response_model=TestimonialRes, status_code=201)
async def create_testimonial(
    req: TestimonialReq,
    _admin: User = Depends(require_admin),
    use_case: CreateTestimonialUseCase = Depends(get_create_testimonial_use_case),
):
    return TestimonialRes.model_validate(unwrap(await use_case.execute(req.model_dump())))
