"""
===============================================================================
TARJETA CRC — routers/admin.py (Administración)
===============================================================================

Responsabilidades:
  - Dashboard (ingresos, conteos, pedidos recientes, top productos).
  - Gestión de pedidos (listado completo, cambio de estado/tracking).
  - Usuarios: listado y cambio de rol propagado a ambos stores
    (POST /admin/users/role y POST /users/role).

Reglas:
  - Todo el router exige require_admin (admin en cualquiera de los stores).
  - El cambio de rol responde con el resultado por store; una falla parcial
    NO es un error HTTP.
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.application.usecases.admin import (
    AdminDashboardUseCase,
    ChangeUserRoleUseCase,
    ListUsersUseCase,
    RoleChangeTarget,
)
from app.application.usecases.orders import ListAllOrdersUseCase, UpdateOrderStatusUseCase
from app.container import (
    get_admin_dashboard_use_case,
    get_change_user_role_use_case,
    get_list_all_orders_use_case,
    get_list_users_use_case,
    get_update_order_status_use_case,
)

from ..dependencies import require_admin
from ..error_mapping import unwrap
from ..schemas.accounts import SyncRes, UserRes
from ..schemas.admin import DashboardRes, RoleChangeReq, TopProductRes
from ..schemas.catalog import ProductRes
from ..schemas.orders import OrderRes, OrderStatusReq

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

# R: el cambio de rol también se publica en /users/role (mismo guard admin).
users_router = APIRouter(prefix="/users", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/dashboard", response_model=DashboardRes)
async def dashboard(
    use_case: AdminDashboardUseCase = Depends(get_admin_dashboard_use_case),
):
    stats = await use_case.execute()
    return DashboardRes(
        total_revenue=float(stats.total_revenue),
        total_orders=stats.total_orders,
        total_users=stats.total_users,
        total_products=stats.total_products,
        recent_orders=[OrderRes.model_validate(o) for o in stats.recent_orders],
        top_products=[
            TopProductRes(
                product_id=t.product_id,
                sold=t.sold,
                product=ProductRes.model_validate(t.product) if t.product else None,
            )
            for t in stats.top_products
        ],
    )


@router.get("/orders", response_model=list[OrderRes])
async def list_orders(
    use_case: ListAllOrdersUseCase = Depends(get_list_all_orders_use_case),
):
    return [OrderRes.model_validate(o) for o in await use_case.execute()]


@router.patch("/orders/{order_id}", response_model=OrderRes)
async def update_order_status(
    order_id: str,
    req: OrderStatusReq,
    use_case: UpdateOrderStatusUseCase = Depends(get_update_order_status_use_case),
):
    result = await use_case.execute(
        order_id,
        status=req.status,
        payment_status=req.payment_status,
        tracking_number=req.tracking_number,
    )
    return OrderRes.model_validate(unwrap(result, order_id))


@router.get("/users", response_model=list[UserRes])
async def list_users(
    limit: int = Query(200, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    use_case: ListUsersUseCase = Depends(get_list_users_use_case),
):
    users = await use_case.execute(limit=limit, offset=offset)
    return [UserRes.of(u) for u in users]


@users_router.post("/role", response_model=SyncRes)
@router.post("/users/role", response_model=SyncRes)
async def change_user_role(
    req: RoleChangeReq,
    use_case: ChangeUserRoleUseCase = Depends(get_change_user_role_use_case),
):
    """Propaga el rol a ambos stores; overall_success=False => 503."""
    target = RoleChangeTarget(
        user_id=req.user_id, external_uid=req.external_uid, email=req.email
    )
    outcome = unwrap(await use_case.execute(target, req.role), req.user_id or req.email)
    return SyncRes.of(outcome)
