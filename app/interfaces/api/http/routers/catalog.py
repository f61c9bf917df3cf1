"""
===============================================================================
TARJETA CRC — routers/catalog.py (Categorías, productos y reseñas)
===============================================================================

Responsabilidades:
  - Lectura pública del catálogo (filtros de productos en query string).
  - Escritura restringida a admin (create/update/delete).
  - Reseñas: listado público, alta con sesión autenticada.

Notas:
  - Los IDs de path llegan como str: el accessor valida y responde
    MALFORMED_KEY (400) si no son numéricos.
===============================================================================
"""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Query

from app.application.usecases.catalog import (
    CategoryInput,
    CreateCategoryUseCase,
    CreateProductUseCase,
    CreateReviewUseCase,
    DeleteCategoryUseCase,
    DeleteProductUseCase,
    GetCategoryUseCase,
    GetProductUseCase,
    ListCategoriesUseCase,
    ListProductReviewsUseCase,
    ListProductsUseCase,
    ProductInput,
    UpdateCategoryUseCase,
    UpdateProductUseCase,
)
from app.container import (
    get_create_category_use_case,
    get_create_product_use_case,
    get_create_review_use_case,
    get_delete_category_use_case,
    get_delete_product_use_case,
    get_get_category_use_case,
    get_get_product_use_case,
    get_list_categories_use_case,
    get_list_product_reviews_use_case,
    get_list_products_use_case,
    get_update_category_use_case,
    get_update_product_use_case,
)
from app.domain.value_objects import ProductFilter
from app.identity.users import User

from ..dependencies import require_admin, require_user
from ..error_mapping import unwrap
from ..schemas.catalog import (
    CategoryPatchReq,
    CategoryReq,
    CategoryRes,
    ProductPatchReq,
    ProductReq,
    ProductRes,
    ReviewReq,
    ReviewRes,
)

router = APIRouter()


# =============================================================================
# Categorías
# =============================================================================
@router.get("/categories", response_model=list[CategoryRes], tags=["catalog"])
async def list_categories(
    featured: bool | None = Query(None),
    use_case: ListCategoriesUseCase = Depends(get_list_categories_use_case),
):
    return [CategoryRes.model_validate(c) for c in await use_case.execute(featured=featured)]


@router.get("/categories/{category_id}", response_model=CategoryRes, tags=["catalog"])
async def get_category(
    category_id: str,
    use_case: GetCategoryUseCase = Depends(get_get_category_use_case),
):
    return CategoryRes.model_validate(unwrap(await use_case.execute(category_id), category_id))


@router.post(
    "/categories", response_model=CategoryRes, status_code=201, tags=["catalog"]
)
async def create_category(
    req: CategoryReq,
    _admin: User = Depends(require_admin),
    use_case: CreateCategoryUseCase = Depends(get_create_category_use_case),
):
    category = unwrap(await use_case.execute(CategoryInput(**req.model_dump())))
    return CategoryRes.model_validate(category)


@router.patch("/categories/{category_id}", response_model=CategoryRes, tags=["catalog"])
async def update_category(
    category_id: str,
    req: CategoryPatchReq,
    _admin: User = Depends(require_admin),
    use_case: UpdateCategoryUseCase = Depends(get_update_category_use_case),
):
    result = await use_case.execute(category_id, req.model_dump(exclude_unset=True))
    return CategoryRes.model_validate(unwrap(result, category_id))


@router.delete("/categories/{category_id}", status_code=204, tags=["catalog"])
async def delete_category(
    category_id: str,
    _admin: User = Depends(require_admin),
    use_case: DeleteCategoryUseCase = Depends(get_delete_category_use_case),
):
    unwrap(await use_case.execute(category_id), category_id)


# =============================================================================
# Productos
# =============================================================================
@router.get("/products", response_model=list[ProductRes], tags=["catalog"])
async def list_products(
    category_id: int | None = Query(None),
    search: str | None = Query(None, max_length=200),
    featured: bool | None = Query(None),
    trending: bool | None = Query(None),
    min_price: Decimal | None = Query(None, ge=0),
    max_price: Decimal | None = Query(None, ge=0),
    on_sale: bool | None = Query(None),
    use_case: ListProductsUseCase = Depends(get_list_products_use_case),
):
    product_filter = ProductFilter(
        category_id=category_id,
        search=search,
        featured=featured,
        trending=trending,
        min_price=min_price,
        max_price=max_price,
        on_sale=on_sale,
    )
    return [ProductRes.model_validate(p) for p in await use_case.execute(product_filter)]


@router.get("/products/{product_id}", response_model=ProductRes, tags=["catalog"])
async def get_product(
    product_id: str,
    use_case: GetProductUseCase = Depends(get_get_product_use_case),
):
    return ProductRes.model_validate(unwrap(await use_case.execute(product_id), product_id))


@router.post("/products", response_model=ProductRes, status_code=201, tags=["catalog"])
async def create_product(
    req: ProductReq,
    _admin: User = Depends(require_admin),
    use_case: CreateProductUseCase = Depends(get_create_product_use_case),
):
    product = unwrap(await use_case.execute(ProductInput(**req.model_dump())))
    return ProductRes.model_validate(product)


@router.patch("/products/{product_id}", response_model=ProductRes, tags=["catalog"])
async def update_product(
    product_id: str,
    req: ProductPatchReq,
    _admin: User = Depends(require_admin),
    use_case: UpdateProductUseCase = Depends(get_update_product_use_case),
):
    result = await use_case.execute(product_id, req.model_dump(exclude_unset=True))
    return ProductRes.model_validate(unwrap(result, product_id))


@router.delete("/products/{product_id}", status_code=204, tags=["catalog"])
async def delete_product(
    product_id: str,
    _admin: User = Depends(require_admin),
    use_case: DeleteProductUseCase = Depends(get_delete_product_use_case),
):
    unwrap(await use_case.execute(product_id), product_id)


# =============================================================================
# Reseñas
# =============================================================================
@router.get(
    "/products/{product_id}/reviews", response_model=list[ReviewRes], tags=["reviews"]
)
async def list_reviews(
    product_id: str,
    use_case: ListProductReviewsUseCase = Depends(get_list_product_reviews_use_case),
):
    return [ReviewRes.model_validate(r) for r in await use_case.execute(product_id)]


@router.post(
    "/products/{product_id}/reviews",
    response_model=ReviewRes,
    status_code=201,
    tags=["reviews"],
)
async def create_review(
    product_id: str,
    req: ReviewReq,
    user: User = Depends(require_user),
    use_case: CreateReviewUseCase = Depends(get_create_review_use_case),
):
    result = await use_case.execute(
        user, product_id, req.rating, comment=req.comment, images=req.images
    )
    return ReviewRes.model_validate(unwrap(result, product_id))
