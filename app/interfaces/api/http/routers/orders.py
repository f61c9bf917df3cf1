"""
===============================================================================
TARJETA CRC — routers/orders.py (Checkout, historial y pagos)
===============================================================================

Responsabilidades:
  - Checkout con sesión o como invitado (user_id nulo).
  - Historial propio y detalle (dueño o admin).
  - Payment intents (Stripe) para el monto del checkout.

Colaboradores:
  - dependencies.get_session_context (Authenticated / FirebaseOnly / Guest)
  - container.get_identity_resolver (is_admin para el detalle)
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.application.usecases.orders import (
    CreateOrderUseCase,
    GetOrderUseCase,
    ListMyOrdersUseCase,
    OrderLineInput,
)
from app.application.usecases.payments import CreatePaymentIntentUseCase
from app.container import (
    get_create_order_use_case,
    get_create_payment_intent_use_case,
    get_get_order_use_case,
    get_identity_resolver,
    get_list_my_orders_use_case,
)
from app.identity.session import SessionContext
from app.identity.users import User

from ..dependencies import get_session_context, require_user
from ..error_mapping import unwrap
from ..schemas.orders import (
    CreateOrderReq,
    OrderRes,
    PaymentIntentReq,
    PaymentIntentRes,
)

router = APIRouter(tags=["orders"])


@router.post("/orders", response_model=OrderRes, status_code=201)
async def create_order(
    req: CreateOrderReq,
    context: SessionContext = Depends(get_session_context),
    use_case: CreateOrderUseCase = Depends(get_create_order_use_case),
):
    lines = [OrderLineInput(product_id=i.product_id, quantity=i.quantity) for i in req.items]
    order = unwrap(
        await use_case.execute(
            context, lines, req.shipping_address, payment_intent=req.payment_intent
        )
    )
    return OrderRes.model_validate(order)


@router.get("/orders", response_model=list[OrderRes])
async def list_my_orders(
    context: SessionContext = Depends(get_session_context),
    use_case: ListMyOrdersUseCase = Depends(get_list_my_orders_use_case),
):
    """Invitados reciben lista vacía."""
    return [OrderRes.model_validate(o) for o in await use_case.execute(context)]


@router.get("/orders/{order_id}", response_model=OrderRes)
async def get_order(
    order_id: str,
    user: User = Depends(require_user),
    use_case: GetOrderUseCase = Depends(get_get_order_use_case),
):
    is_admin = await get_identity_resolver().is_admin(user)
    order = unwrap(await use_case.execute(order_id, user, is_admin=is_admin), order_id)
    return OrderRes.model_validate(order)


@router.post(
    "/payments/intent", response_model=PaymentIntentRes, status_code=201, tags=["payments"]
)
async def create_payment_intent(
    req: PaymentIntentReq,
    context: SessionContext = Depends(get_session_context),
    use_case: CreatePaymentIntentUseCase = Depends(get_create_payment_intent_use_case),
):
    intent = unwrap(await use_case.execute(context, req.amount))
    return PaymentIntentRes.model_validate(intent)
