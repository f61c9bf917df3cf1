"""
===============================================================================
USE CASES: Admin (dashboard / usuarios / cambio de rol)
===============================================================================

Business Goal:
    Back-office: métricas de venta, listado de usuarios y cambio de rol.

Why (Context / Intención):
    - El cambio de rol es LA operación que dispara syncRole: se aplica a
      ambos stores en paralelo y devuelve el resultado por-store.
    - Un usuario que solo existe en el store documental (sin registro
      relacional) igual puede recibir un rol: se sincroniza por UID.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Classes:
    AdminDashboardUseCase / ListUsersUseCase / ChangeUserRoleUseCase

Collaborators:
    - DualStoreAccessor (pedidos, productos)
    - RelationalStore (usuarios)
    - IdentityResolver + RoleStateSynchronizer
===============================================================================
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal

from ....domain.entities import EntityKind, Order, OrderStatus, Product
from ....domain.repositories import RelationalStore
from ....domain.results import Found, SyncOutcome
from ....domain.value_objects import IdentityHints
from ....identity.resolver import IdentityResolver
from ....identity.users import User, UserRole
from ...dual_store import DualStoreAccessor
from ...role_sync import RoleStateSynchronizer, SyncTarget
from ..results import Result, not_found, sync_failed, validation_failed

RECENT_ORDERS = 5
TOP_PRODUCTS = 5


@dataclass(frozen=True)
class TopProduct:
    product_id: int
    sold: int
    product: Product | None = None


@dataclass(frozen=True)
class DashboardStats:
    total_revenue: Decimal
    total_orders: int
    total_users: int
    total_products: int
    recent_orders: list[Order] = field(default_factory=list)
    top_products: list[TopProduct] = field(default_factory=list)


class AdminDashboardUseCase:
    def __init__(self, accessor: DualStoreAccessor, relational: RelationalStore) -> None:
        self._accessor = accessor
        self._relational = relational

    async def execute(self) -> DashboardStats:
        orders = await self._accessor.list(EntityKind.ORDER)
        products = await self._accessor.list(EntityKind.PRODUCT)
        total_users = await self._relational.count_users()

        billable = [o for o in orders if o.status != OrderStatus.CANCELLED]
        revenue = sum((o.total_amount for o in billable), Decimal("0"))

        recent = sorted(
            orders,
            key=lambda o: (o.created_at is not None, o.created_at, o.id),
            reverse=True,
        )[:RECENT_ORDERS]

        sold: Counter[int] = Counter()
        for order in billable:
            for item in order.items:
                sold[item.product_id] += item.quantity
        by_id = {p.id: p for p in products}
        top = [
            TopProduct(product_id=pid, sold=qty, product=by_id.get(pid))
            for pid, qty in sold.most_common(TOP_PRODUCTS)
        ]

        return DashboardStats(
            total_revenue=revenue,
            total_orders=len(orders),
            total_users=total_users,
            total_products=len(products),
            recent_orders=recent,
            top_products=top,
        )


class ListUsersUseCase:
    def __init__(self, relational: RelationalStore) -> None:
        self._relational = relational

    async def execute(self, *, limit: int = 200, offset: int = 0) -> list[User]:
        return await self._relational.list_users(limit=limit, offset=offset)


@dataclass(frozen=True)
class RoleChangeTarget:
    user_id: int | str | None = None
    external_uid: str | None = None
    email: str | None = None


class ChangeUserRoleUseCase:
    def __init__(
        self, resolver: IdentityResolver, synchronizer: RoleStateSynchronizer
    ) -> None:
        self._resolver = resolver
        self._synchronizer = synchronizer

    async def execute(self, target: RoleChangeTarget, role: str) -> Result[SyncOutcome]:
        try:
            new_role = UserRole.parse(role)
        except ValueError:
            return validation_failed("Rol inválido (user | admin).")

        hints = IdentityHints(
            numeric_id=target.user_id,
            external_uid=target.external_uid,
            email=target.email,
        )
        if hints.is_empty:
            return validation_failed("Se requiere userId, uid o email.")

        lookup = await self._resolver.resolve(hints)
        if isinstance(lookup, Found):
            sync_target = SyncTarget(
                user_id=lookup.value.id,
                external_uid=lookup.value.external_uid or target.external_uid,
                email=lookup.value.email,
            )
        elif target.external_uid:
            # R: solo existe en el store documental; se intenta materializar.
            sync_target = SyncTarget(
                external_uid=target.external_uid, email=hints.normalized_email
            )
        else:
            return not_found("Usuario", target.user_id or target.email)

        outcome = await self._synchronizer.sync_role(sync_target, new_role)
        if not outcome.overall_success:
            return Result(value=outcome, error=sync_failed().error)
        return Result(value=outcome)
