"""
===============================================================================
USE CASES: Orders (crear / listar propios / obtener / admin: listar y estado)
===============================================================================

Business Goal:
    Checkout para cualquier identidad: usuarios autenticados e invitados.
    Un pedido de invitado queda con dueño nulo (guest checkout).

Why (Context / Intención):
    - El precio de cada item sale del catálogo (precio efectivo), no del
      cliente; subtotal = precio × cantidad y total = suma de subtotales.
    - Relacional de registro: se escribe ahí primero y se espeja al
      documental best-effort.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Classes:
    CreateOrderUseCase / ListMyOrdersUseCase / GetOrderUseCase /
    ListAllOrdersUseCase / UpdateOrderStatusUseCase

Collaborators:
    - DualStoreAccessor
    - identity.session (SessionContext, owner_id)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from ....domain.entities import (
    EntityKind,
    Order,
    OrderDraft,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)
from ....domain.results import NotFound
from ....identity.session import SessionContext, owner_id
from ....identity.users import User
from ...dual_store import DualStoreAccessor
from ..results import Result, forbidden, not_found, validation_failed

RESOURCE = "Pedido"


@dataclass(frozen=True)
class OrderLineInput:
    product_id: int
    quantity: int


def _newest_first(orders: list[Order]) -> list[Order]:
    return sorted(
        orders,
        key=lambda o: (o.created_at is not None, o.created_at, o.id),
        reverse=True,
    )


class CreateOrderUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(
        self,
        context: SessionContext,
        lines: Sequence[OrderLineInput],
        shipping_address: Mapping[str, Any],
        *,
        payment_intent: str | None = None,
    ) -> Result[Order]:
        if not lines:
            return validation_failed("El pedido no tiene items.")
        if not shipping_address:
            return validation_failed("Falta la dirección de envío.")

        items: list[OrderItem] = []
        for line in lines:
            if line.quantity <= 0:
                return validation_failed("La cantidad debe ser mayor a cero.")
            lookup = await self._accessor.read(EntityKind.PRODUCT, line.product_id)
            if isinstance(lookup, NotFound):
                return validation_failed(f"El producto {line.product_id} no existe.")
            product = lookup.value
            items.append(
                OrderItem(
                    product_id=product.id,
                    name=product.name,
                    price=product.effective_price,
                    quantity=line.quantity,
                    image=product.images[0] if product.images else None,
                )
            )

        draft = OrderDraft(
            user_id=owner_id(context),
            items=items,
            shipping_address=dict(shipping_address),
            payment_intent=payment_intent,
        )
        order = await self._accessor.insert(EntityKind.ORDER, draft)
        return Result(value=order)


class ListMyOrdersUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(self, context: SessionContext) -> list[Order]:
        user_id = owner_id(context)
        if user_id is None:
            return []
        orders = await self._accessor.list(EntityKind.ORDER, where={"user_id": user_id})
        return _newest_first(orders)


class GetOrderUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(
        self, order_id: object, actor: User, *, is_admin: bool = False
    ) -> Result[Order]:
        lookup = await self._accessor.read(EntityKind.ORDER, order_id)
        if isinstance(lookup, NotFound):
            return not_found(RESOURCE, order_id)
        if not is_admin and lookup.value.user_id != actor.id:
            return forbidden()
        return Result(value=lookup.value)


class ListAllOrdersUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(self) -> list[Order]:
        return _newest_first(await self._accessor.list(EntityKind.ORDER))


class UpdateOrderStatusUseCase:
    def __init__(self, accessor: DualStoreAccessor) -> None:
        self._accessor = accessor

    async def execute(
        self,
        order_id: object,
        *,
        status: str | None = None,
        payment_status: str | None = None,
        tracking_number: str | None = None,
    ) -> Result[Order]:
        patch: dict[str, Any] = {}
        try:
            if status is not None:
                patch["status"] = OrderStatus(status)
            if payment_status is not None:
                patch["payment_status"] = PaymentStatus(payment_status)
        except ValueError:
            return validation_failed("Estado de pedido o de pago inválido.")
        if tracking_number is not None:
            patch["tracking_number"] = tracking_number.strip() or None
        if not patch:
            return validation_failed("No hay cambios para aplicar.")

        lookup = await self._accessor.write(EntityKind.ORDER, order_id, patch)
        if isinstance(lookup, NotFound):
            return not_found(RESOURCE, order_id)
        return Result(value=lookup.value)
